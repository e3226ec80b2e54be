from __future__ import annotations

import json
import uuid
from typing import TYPE_CHECKING

import pytest

from cl_lifecycle.adapters.signals import (
    SignalFileError,
    VerificationSignalPayload,
    parse_signal_lines,
    read_signal_file,
)

if TYPE_CHECKING:
    from pathlib import Path


def _line(**fields: object) -> str:
    payload: dict[str, object] = {"company_id": str(uuid.uuid4()), "pass_name": "existence"}
    payload.update(fields)
    return json.dumps(payload)


def test_parse_signal_lines_skips_blank_lines() -> None:
    lines = [
        _line(verified=True),
        "   ",
        _line(verified=False, reason_code="DOMAIN_FAIL", evidence={"domain_error": "HTTP 404"}),
    ]

    signals = list(parse_signal_lines(lines))

    assert [signal.verified for signal in signals] == [True, False]
    assert signals[1].reason_code == "DOMAIN_FAIL"
    assert signals[1].evidence == {"domain_error": "HTTP 404"}


def test_failed_signal_requires_reason_code() -> None:
    with pytest.raises(SignalFileError) as excinfo:
        list(parse_signal_lines([_line(verified=True), _line(verified=False, reason_code="  ")]))

    assert excinfo.value.line_number == 2
    assert "reason_code" in str(excinfo.value)


def test_unknown_fields_are_rejected() -> None:
    with pytest.raises(SignalFileError):
        list(parse_signal_lines([_line(verified=True, confidence=0.9)]))


def test_payload_blank_reason_code_is_dropped_for_passes() -> None:
    payload = VerificationSignalPayload.model_validate_json(_line(verified=True, reason_code=""))

    assert payload.to_domain().reason_code is None


def test_read_signal_file(tmp_path: Path) -> None:
    path = tmp_path / "signals.jsonl"
    path.write_text(
        "\n".join([_line(verified=True), _line(verified=True)]) + "\n",
        encoding="utf-8",
    )

    assert len(read_signal_file(path)) == 2
