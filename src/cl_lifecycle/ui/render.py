"""Plain-text rendering of operation reports."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cl_lifecycle.domain.reports import PreviewReport

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cl_lifecycle.domain.model import CompanyRecord
    from cl_lifecycle.domain.reports import (
        ApplyReport,
        DriftReport,
        DuplicateGroup,
        LedgerBucket,
    )
    from cl_lifecycle.domain.signals import SignalIngestResult


def _table(headers: Sequence[str], rows: Sequence[Sequence[object]]) -> str:
    cells = [[str(value) for value in row] for row in rows]
    widths = [len(header) for header in headers]
    for row in cells:
        for index, value in enumerate(row):
            widths[index] = max(widths[index], len(value))
    lines = [
        "  ".join(header.ljust(width) for header, width in zip(headers, widths, strict=True)),
        "  ".join("-" * width for width in widths),
    ]
    lines.extend(
        "  ".join(value.ljust(width) for value, width in zip(row, widths, strict=True))
        for row in cells
    )
    return "\n".join(lines)


def render_drift(report: DriftReport) -> str:
    rows = [(status, count) for status, count in report.status_counts.items()]
    summary = (
        f"total={report.total} needs_sync={report.needs_sync} "
        f"would_pass={report.would_pass} would_fail={report.would_fail} "
        f"would_pend={report.would_pend}"
    )
    return f"{_table(('status', 'count'), rows)}\n{summary}"


def render_operation(report: PreviewReport | ApplyReport) -> str:
    if isinstance(report, PreviewReport):
        header = f"[dry run] {report.operation}: {report.total} rows would change"
        rows = [(category, count) for category, count in report.counts.items()]
        return f"{header}\n{_table(('category', 'rows'), rows)}"
    header = f"{report.operation}: {report.total} rows changed"
    rows = [(category, count) for category, count in report.counts.items()]
    snapshot_rows = [
        (key, report.before.get(key, 0), report.after.get(key, 0))
        for key in sorted(set(report.before) | set(report.after))
    ]
    return "\n".join(
        (
            header,
            _table(("category", "rows"), rows),
            "",
            _table(("store", "before", "after"), snapshot_rows),
        )
    )


def render_duplicates(groups: Sequence[DuplicateGroup]) -> str:
    if not groups:
        return "No duplicate ledger groups"
    rows = [
        (group.company_id, group.pass_name, group.reason_code, group.count, group.surplus)
        for group in groups
    ]
    return _table(("company_id", "pass", "reason", "count", "surplus"), rows)


def render_buckets(buckets: Sequence[LedgerBucket]) -> str:
    if not buckets:
        return "Ledger is empty"
    rows = [
        (bucket.pass_name, bucket.reason_code, bucket.open, bucket.resolved, bucket.total)
        for bucket in buckets
    ]
    return _table(("pass", "reason", "open", "resolved", "total"), rows)


def render_signals(result: SignalIngestResult) -> str:
    return (
        f"signals={result.received} verifications={result.verifications} "
        f"failures_recorded={result.failures_recorded} "
        f"failures_existing={result.failures_existing} "
        f"unknown_companies={result.unknown_companies}"
    )


def render_company(record: CompanyRecord) -> str:
    return (
        f"id={record.id} sovereign_id={record.sovereign_id} "
        f"fingerprint={record.fingerprint} name={record.name!r}"
    )
