"""Read verification signals from JSON-lines files."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from .schema import VerificationSignalPayload

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from cl_lifecycle.domain.signals import VerificationSignal

log = logging.getLogger(__name__)


class SignalFileError(ValueError):
    """Raised when a signal file line is not a valid verification signal."""

    def __init__(self, line_number: int, detail: str) -> None:
        super().__init__(f"Invalid signal on line {line_number}: {detail}")
        self.line_number = line_number


def parse_signal_lines(lines: Iterable[str]) -> Iterator[VerificationSignal]:
    """Yield one signal per non-blank line, failing on the first invalid one."""

    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            payload = VerificationSignalPayload.model_validate_json(line)
        except ValidationError as exc:
            raise SignalFileError(line_number, str(exc)) from exc
        yield payload.to_domain()


def read_signal_file(path: Path) -> list[VerificationSignal]:
    with path.open(encoding="utf-8") as handle:
        signals = list(parse_signal_lines(handle))
    log.info("Read %s signals from %s", len(signals), path)
    return signals
