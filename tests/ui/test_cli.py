from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from cl_lifecycle.domain.errors import TransactionAborted
from cl_lifecycle.domain.ledger import HTTP_404_RECLASSIFICATION, http_404_domain_failures
from cl_lifecycle.domain.model import ArchiveReason
from cl_lifecycle.domain.predicates import In
from cl_lifecycle.domain.reports import ApplyReport, DriftReport, PreviewReport
from cl_lifecycle.domain.signals import SignalIngestResult
from cl_lifecycle.ui import cli as cli_module


def _capture(captured: dict[str, object], result: object) -> Any:
    def fake(*args: object, **kwargs: object) -> object:
        captured["args"] = args
        captured.update(kwargs)
        return result

    return fake


def _preview(name: str) -> PreviewReport:
    return PreviewReport(operation=name, counts={"resolved": 2}, snapshot={"errors.open": 2})


def test_drift_command_renders_report(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    report = DriftReport(
        status_counts={"PENDING": 1, "PASS": 0, "FAIL": 0, "NULL": 2},
        total=3,
        needs_sync=3,
        would_pass=1,
        would_fail=0,
        would_pend=2,
    )
    monkeypatch.setattr(cli_module, "compute_drift", lambda: report)

    cli_module.main(["drift"])

    output = capsys.readouterr().out
    assert "needs_sync=3" in output
    assert "would_pend=2" in output


def test_sync_command_passes_flags(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured: dict[str, object] = {}
    result = ApplyReport(
        operation="sync-force",
        counts={"passed": 1, "failed": 1, "pending": 0},
        before={"companies.NULL": 2},
        after={"companies.NULL": 0},
    )
    monkeypatch.setattr(cli_module, "sync_identity_status", _capture(captured, result))

    cli_module.main(["sync", "--force", "--no-dry-run"])

    assert captured["force"] is True
    assert captured["dry_run"] is False
    assert "sync-force: 2 rows changed" in capsys.readouterr().out


def test_sync_command_defers_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}
    monkeypatch.setattr(cli_module, "sync_identity_status", _capture(captured, _preview("sync")))

    cli_module.main(["sync"])

    assert captured["force"] is None
    assert captured["dry_run"] is None


def test_resolve_command_parses_selector(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured: dict[str, object] = {}
    monkeypatch.setattr(cli_module, "resolve_errors", _capture(captured, _preview("resolve")))

    cli_module.main(["resolve", "--selector", '{"reason_codes": ["NAME_EMPTY"]}', "--dry-run"])

    assert captured["args"] == (In("reason_code", ("NAME_EMPTY",)),)
    assert captured["dry_run"] is True
    assert "[dry run] resolve: 2 rows would change" in capsys.readouterr().out


def test_resolve_command_requires_selector(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "resolve_errors", _capture({}, _preview("resolve")))

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["resolve"])

    assert excinfo.value.code == 2


def test_invalid_selector_exits_with_validation_code(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "resolve_errors", _capture({}, _preview("resolve")))

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["resolve", "--selector", '{"bogus": 1}'])

    assert excinfo.value.code == 2


def test_reclassify_http_404_uses_builtin_classification(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}
    monkeypatch.setattr(cli_module, "reclassify_errors", _capture(captured, _preview("reclassify")))

    cli_module.main(["reclassify", "--http-404", "--verify-companies", "--dry-run"])

    assert captured["args"] == (http_404_domain_failures(), dict(HTTP_404_RECLASSIFICATION))
    assert captured["verify_companies"] is True


def test_reclassify_requires_classification(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "reclassify_errors", _capture({}, _preview("reclassify")))

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["reclassify", "--named", "existence_confirmed"])

    assert excinfo.value.code == 2


def test_archive_command_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}
    monkeypatch.setattr(cli_module, "archive_errors", _capture(captured, _preview("archive")))

    cli_module.main(["archive", "--reason", "DUPLICATE"])

    assert captured["reason"] is ArchiveReason.DUPLICATE
    assert captured["selector"] is None


def test_ingest_signals_command(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured: dict[str, object] = {}
    result = SignalIngestResult(received=3, verifications=2, failures_recorded=1)
    monkeypatch.setattr(cli_module, "ingest_signals", _capture(captured, result))

    cli_module.main(["ingest-signals", "signals.jsonl"])

    assert captured["args"] == (Path("signals.jsonl"),)
    assert "signals=3" in capsys.readouterr().out


def test_store_failures_exit_with_error_code(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_drift() -> DriftReport:
        raise TransactionAborted("database is locked")

    monkeypatch.setattr(cli_module, "compute_drift", failing_drift)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["drift"])

    assert excinfo.value.code == 1
