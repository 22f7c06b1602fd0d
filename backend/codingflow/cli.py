"""CLI entry point for the CodingFlow data layer.

Usage:
    codingflow init-db
    codingflow issues --project <id> --status done --ai --search oauth
    codingflow project-stats <project-id>
    codingflow cycle-stats <cycle-id>
    codingflow export -o dump.json

The database location comes from DATABASE_URL (see codingflow.config).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from codingflow.config import settings
from codingflow.errors import CodingFlowError
from codingflow.models.issue import IssuePriority, IssueStatus
from codingflow.models.query import IssueQuery, SortOrder
from codingflow.workspace import Workspace

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="codingflow", description="CodingFlow local issue tracker")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create all tables")

    issues = sub.add_parser("issues", help="List issues matching filters")
    issues.add_argument("--project", help="Project id")
    issues.add_argument("--status", choices=[s.value for s in IssueStatus])
    issues.add_argument("--priority", choices=[p.name.lower() for p in IssuePriority])
    issues.add_argument("--ai", action="store_true", help="Only AI-generated issues")
    issues.add_argument("--search", default="", help="Case-insensitive title/description search")
    issues.add_argument("--sort", choices=[o.value for o in SortOrder], default=SortOrder.UPDATED_DESC.value)

    project_stats = sub.add_parser("project-stats", help="Issue counts for a project")
    project_stats.add_argument("project_id")

    cycle_stats = sub.add_parser("cycle-stats", help="Completion and capacity for a cycle")
    cycle_stats.add_argument("cycle_id")

    export = sub.add_parser("export", help="Dump every table as JSON")
    export.add_argument("--output", "-o", help="Output JSON file path (default: stdout)")
    return parser


def run(args: argparse.Namespace, ws: Workspace) -> None:
    if args.command == "init-db":
        print("Tables ready.")

    elif args.command == "issues":
        criteria = IssueQuery(
            project_id=args.project,
            status=IssueStatus(args.status) if args.status else None,
            priority=IssuePriority[args.priority.upper()] if args.priority else None,
            only_ai_generated=args.ai,
            search_text=args.search,
            sort_order=SortOrder(args.sort),
        )
        for issue in ws.query.fetch_issues(criteria):
            print(f"#{issue.issue_number} [{issue.status.value}] {issue.title}")

    elif args.command == "project-stats":
        print(ws.project_stats.stats(args.project_id).model_dump_json(indent=2))

    elif args.command == "cycle-stats":
        print(ws.cycle_stats.stats(args.cycle_id).model_dump_json(indent=2))

    elif args.command == "export":
        payload = json.dumps(ws.export(), indent=2)
        if args.output:
            with open(args.output, "w") as f:
                f.write(payload)
            logger.info("Export written to %s", args.output)
        else:
            print(payload)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)

    try:
        ws = Workspace.open(args.database_url)
        run(args, ws)
    except CodingFlowError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
