# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from cl_lifecycle.app import (
    archive_errors,
    compute_drift,
    converge_errors,
    dedupe_errors,
    find_duplicates,
    ingest_signals,
    ledger_status,
    reclassify_errors,
    register_company,
    resolve_errors,
    sync_identity_status,
)
from cl_lifecycle.config import configure_logging
from cl_lifecycle.domain.ledger import (
    HTTP_404_RECLASSIFICATION,
    http_404_domain_failures,
    named_selector,
)
from cl_lifecycle.domain.model import ArchiveReason
from cl_lifecycle.ui.render import (
    render_buckets,
    render_company,
    render_drift,
    render_duplicates,
    render_operation,
    render_signals,
)
from cl_lifecycle.ui.selectors import parse_classification, parse_selector

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType
    from typing import Any

    from cl_lifecycle.domain.predicates import Predicate

log = logging.getLogger(__name__)


def _add_dry_run(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Preview the change without mutating the store (defaults to CL_DRY_RUN)",
    )


def _add_selector(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--selector",
        type=str,
        help='JSON selector, e.g. \'{"reason_code": "DOMAIN_FAIL", "pass_name": "existence"}\'',
    )
    parser.add_argument(
        "--named",
        type=str,
        help="Named selector (existence_confirmed, domain_collision_cleared, "
        "http_404_domain_failures)",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Maintain the company lifecycle registry")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("drift", help="Report identity status drift")

    sync = subparsers.add_parser("sync", help="Sync identity status from verification")
    sync.add_argument(
        "--force",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Recompute decided PASS/FAIL records too (defaults to CL_FORCE)",
    )
    _add_dry_run(sync)

    resolve = subparsers.add_parser("resolve", help="Resolve open ledger entries")
    _add_selector(resolve)
    _add_dry_run(resolve)

    reclassify = subparsers.add_parser("reclassify", help="Reclassify and resolve ledger entries")
    _add_selector(reclassify)
    reclassify.add_argument(
        "--classification",
        type=str,
        help="JSON object merged into each entry's inputs snapshot",
    )
    reclassify.add_argument(
        "--http-404",
        action="store_true",
        help="Reclassify DOMAIN_FAIL entries caused by HTTP 404 as existing domains",
    )
    reclassify.add_argument(
        "--verify-companies",
        action="store_true",
        help="Mark owning companies that are not yet verified as existing",
    )
    _add_dry_run(reclassify)

    duplicates = subparsers.add_parser("duplicates", help="Report duplicate ledger groups")
    duplicates.add_argument(
        "--include-resolved",
        action="store_true",
        help="Group the full history instead of open entries only",
    )

    dedupe = subparsers.add_parser("dedupe", help="Archive surplus duplicate ledger entries")
    _add_dry_run(dedupe)

    converge = subparsers.add_parser("converge", help="Converge open failures to PASS/FAIL")
    _add_dry_run(converge)

    archive = subparsers.add_parser("archive", help="Archive resolved ledger entries")
    archive.add_argument(
        "--reason",
        type=ArchiveReason,
        choices=list(ArchiveReason),
        default=ArchiveReason.RESOLVED,
        help="Archive reason recorded on each entry (default: %(default)s)",
    )
    _add_selector(archive)
    _add_dry_run(archive)

    subparsers.add_parser("ledger-status", help="Count open and resolved entries per bucket")

    signals = subparsers.add_parser("ingest-signals", help="Apply a JSON-lines signal file")
    signals.add_argument("path", type=Path, help="Path to the signal file")

    register = subparsers.add_parser("register", help="Register a new company identity")
    register.add_argument("--name", type=str, required=True, help="Company name")
    register.add_argument("--domain", type=str, help="Company domain or website URL")
    register.add_argument("--linkedin-url", type=str, help="Company LinkedIn URL")

    return parser.parse_args(list(argv))


def _optional_selector(args: argparse.Namespace) -> Predicate | None:
    if args.selector is not None and args.named is not None:
        raise ValueError("Use either --selector or --named, not both")
    if args.selector is not None:
        return parse_selector(args.selector)
    if args.named is not None:
        return named_selector(args.named)
    return None


def _selector(args: argparse.Namespace) -> Predicate:
    selector = _optional_selector(args)
    if selector is None:
        raise ValueError(f"{args.command} requires --selector or --named")
    return selector


def _reclassification(args: argparse.Namespace) -> tuple[Predicate, dict[str, Any]]:
    if args.http_404:
        if args.selector is not None or args.named is not None:
            raise ValueError("--http-404 selects its own entries")
        classification = (
            parse_classification(args.classification)
            if args.classification
            else dict(HTTP_404_RECLASSIFICATION)
        )
        return http_404_domain_failures(), classification
    if not args.classification:
        raise ValueError("reclassify requires --classification or --http-404")
    return _selector(args), parse_classification(args.classification)


def _run(args: argparse.Namespace) -> None:  # noqa: C901, PLR0912
    if args.command == "drift":
        print(render_drift(compute_drift()))
    elif args.command == "sync":
        print(render_operation(sync_identity_status(force=args.force, dry_run=args.dry_run)))
    elif args.command == "resolve":
        print(render_operation(resolve_errors(_selector(args), dry_run=args.dry_run)))
    elif args.command == "reclassify":
        selector, classification = _reclassification(args)
        report = reclassify_errors(
            selector,
            classification,
            verify_companies=args.verify_companies,
            dry_run=args.dry_run,
        )
        print(render_operation(report))
    elif args.command == "duplicates":
        print(render_duplicates(find_duplicates(include_resolved=args.include_resolved)))
    elif args.command == "dedupe":
        print(render_operation(dedupe_errors(dry_run=args.dry_run)))
    elif args.command == "converge":
        print(render_operation(converge_errors(dry_run=args.dry_run)))
    elif args.command == "archive":
        report = archive_errors(
            reason=args.reason,
            selector=_optional_selector(args),
            dry_run=args.dry_run,
        )
        print(render_operation(report))
    elif args.command == "ledger-status":
        print(render_buckets(ledger_status()))
    elif args.command == "ingest-signals":
        print(render_signals(ingest_signals(args.path)))
    elif args.command == "register":
        record = register_company(
            name=args.name,
            domain=args.domain,
            linkedin_url=args.linkedin_url,
        )
        print(render_company(record))
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        _run(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
