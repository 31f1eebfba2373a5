# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from loresync.app import (
    link_graph,
    plan_sync,
    push_filtered,
    refresh_campaign,
    reset_store,
    run_import,
    run_sync,
    sample_import,
)
from loresync.config import configure_logging
from loresync.domain.importer import PushFilter, kinds_from_names
from loresync.domain.model import TargetType
from loresync.domain.sync import CreateLocalChoices

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from loresync.domain.importer import ImportSummary
    from loresync.domain.sync import SyncPlan, SyncProgress

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Keep a local world store and a remote campaign in agreement"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    parser.add_argument(
        "--campaign",
        type=str,
        help="Campaign id (defaults to REMOTE_CAMPAIGN_ID)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("plan", help="Reconcile and print the sync plan without running it")

    sync = subparsers.add_parser("sync", help="Reconcile, plan and run a full sync")
    sync.add_argument(
        "--no-create-local",
        action="store_true",
        help="Import unmatched remote records as reference entries only",
    )

    importer = subparsers.add_parser("import", help="Push confident local entities to the remote")
    importer.add_argument(
        "--sample",
        type=int,
        metavar="N",
        help="Print the proposals for the first N entities instead of importing",
    )
    importer.add_argument(
        "--kinds",
        type=str,
        help="Comma-separated entity kinds to push regardless of score",
    )
    importer.add_argument(
        "--target",
        type=str,
        choices=[str(target) for target in TargetType if target is not TargetType.NOTE],
        help="Only push entities mapped to this target type",
    )
    importer.add_argument(
        "--folder",
        type=str,
        help="Only push entities whose folder matches this regular expression",
    )

    subparsers.add_parser("refresh", help="Pull remote names, images, recaps and links")

    reset = subparsers.add_parser("reset", help="Clear sync metadata from every local record")
    reset.add_argument(
        "--yes",
        action="store_true",
        help="Confirm the reset",
    )

    graph = subparsers.add_parser("graph", help="Print the links and location tree of a record")
    graph.add_argument("key", type=str, help="Remote id or local record id")

    return parser.parse_args(list(argv))


def _print_plan(plan: SyncPlan) -> None:
    print(f"Campaign {plan.campaign_id}: {plan.total} jobs")
    print(
        f"  imports: {plan.imports.total}  exports: {plan.exports.total}  "
        f"linked: {plan.linked.total}"
    )
    for job in plan.jobs:
        print(f"  - {job.label}")


def _print_progress(progress: SyncProgress) -> None:
    print(f"[{progress.processed}/{progress.total}] {progress.current or ''}")


def _print_import_progress(summary: ImportSummary) -> None:
    log.debug(f"Import progress {summary.completed}/{summary.total}")


def _push_filter(args: argparse.Namespace) -> PushFilter | None:
    if args.kinds is None and args.target is None and args.folder is None:
        return None
    return PushFilter(
        kinds=kinds_from_names(args.kinds.split(",")) if args.kinds else frozenset(),
        target_type=TargetType(args.target) if args.target else None,
        folder_pattern=args.folder,
    )


def _run_command(args: argparse.Namespace) -> int:
    campaign_id: str | None = args.campaign
    if args.command == "plan":
        planned = plan_sync(campaign_id=campaign_id)
        _print_plan(planned.plan)
        return 0

    if args.command == "sync":
        choices = CreateLocalChoices.none() if args.no_create_local else None
        report = run_sync(campaign_id=campaign_id, choices=choices, on_progress=_print_progress)
        for failure in report.failed:
            suffix = " (description too long)" if failure.description_too_long else ""
            print(f"FAILED {failure.job.label}: {failure.message}{suffix}")
        return 0 if report.ok else 1

    if args.command == "import":
        if args.sample is not None:
            if args.sample <= 0:
                raise ValueError("--sample must be positive")
            for item in sample_import(args.sample, campaign_id=campaign_id):
                marker = "" if item.include else " [excluded]"
                print(
                    f"{item.entity.kind}:{item.entity.name} -> {item.proposal.target_type} "
                    f"score={item.proposal.score:.2f} rule={item.proposal.rule_name}{marker}"
                )
            return 0
        push_filter = _push_filter(args)
        if push_filter is not None:
            pushed = push_filtered(push_filter, campaign_id=campaign_id)
            print(f"Pushed {pushed} entities")
            return 0
        summary = run_import(campaign_id=campaign_id, on_progress=_print_import_progress)
        print(
            f"Imported {summary.auto_imported}, unchanged {summary.unchanged}, "
            f"queued {summary.queued}, dropped {summary.dropped}, errors {summary.errors}"
        )
        for item in summary.review_queue:
            print(
                f"  review: {item.entity.name} -> {item.proposal.target_type} "
                f"({item.proposal.score:.2f})"
            )
        return 0 if summary.errors == 0 else 1

    if args.command == "refresh":
        result = refresh_campaign(campaign_id=campaign_id)
        print(
            f"Renamed {result.renamed}, images {result.images_updated}, "
            f"parents {result.parents_aligned}, recaps {result.recaps}, "
            f"links {result.links_hydrated}, failures {result.failures}"
        )
        return 0 if result.failures == 0 else 1

    if args.command == "reset":
        if not args.yes:
            raise ValueError("Refusing to reset without --yes")
        reset = reset_store()
        print(f"Cleared {reset.cleared} of {reset.scanned} records")
        return 0

    if args.command == "graph":
        graph = link_graph()
        outbound = graph.outbound(args.key)
        print(f"{args.key}:")
        for bucket, ids in outbound.model_dump(by_alias=True).items():
            if ids:
                print(f"  {bucket}: {', '.join(ids)}")
        ancestors = graph.ancestors(args.key)
        if ancestors:
            print(f"  ancestors: {' > '.join(ancestors)}")
        children = graph.children(args.key)
        if children:
            print(f"  children: {', '.join(children)}")
        return 0

    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        exit_code = _run_command(parsed_args)
    except ValueError as exc:
        log.error(f"Invalid arguments: {exc}")  # noqa: TRY400
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
