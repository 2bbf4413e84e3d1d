"""Timesheet engine command line interface.

Provides operational tools for:
- Resolving ISO week labels
- Exporting the weekly grid and invoices as CSV
- Creating database tables

Usage:
    timesheet-engine resolve-week --week 2025-W36
    timesheet-engine export-weekly --week 2025-W36 --output weekly.csv
    timesheet-engine export-invoices --week 2025-W36 --user-id <admin uuid>
    timesheet-engine init-db
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_engine.calculators.week_resolver import resolve_week
from timesheet_engine.config import get_settings
from timesheet_engine.database import dispose_engine, get_session, init_db
from timesheet_engine.errors import NotFoundError, TimesheetError
from timesheet_engine.models import AppUser
from timesheet_engine.services.authorization import Principal, Role
from timesheet_engine.services.invoice_service import InvoiceService
from timesheet_engine.services.weekly_service import WeeklyService

logger = logging.getLogger(__name__)


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


async def load_admin(session: AsyncSession, user_id: UUID | None) -> Principal:
    """The admin the export runs as; the first admin user when none is given."""
    query = select(AppUser).where(AppUser.role == Role.ADMIN.value)
    if user_id is not None:
        query = query.where(AppUser.user_id == user_id)
    user = await session.scalar(query.order_by(AppUser.created_at).limit(1))
    if user is None:
        raise NotFoundError("Admin user", user_id)
    return Principal.from_user(user)


class TimesheetCli:
    """Timesheet engine command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="timesheet-engine",
            description="Timesheet and worker invoice tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # resolve-week command
        resolve = subparsers.add_parser(
            "resolve-week",
            help="Print the date window of a week as JSON",
        )
        resolve.add_argument("--week", type=str, help="ISO week label, e.g. 2025-W36")
        resolve.add_argument(
            "--week-start",
            type=str,
            help="Explicit start date (YYYY-MM-DD); takes precedence over --week",
        )

        # export-weekly command
        weekly = subparsers.add_parser(
            "export-weekly",
            help="Export the weekly timesheet grid as CSV",
        )
        self._add_export_arguments(weekly)
        weekly.add_argument("--week-start", type=str, help="Explicit start date")
        weekly.add_argument("--builder-id", type=parse_uuid, help="Only this builder")
        weekly.add_argument("--location-id", type=parse_uuid, help="Only this location")

        # export-invoices command
        invoices = subparsers.add_parser(
            "export-invoices",
            help="Export a week's worker invoices as CSV",
        )
        self._add_export_arguments(invoices)

        # init-db command
        subparsers.add_parser(
            "init-db",
            help="Create database tables that do not exist yet",
        )

        return parser

    @staticmethod
    def _add_export_arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--week", type=str, help="ISO week label, e.g. 2025-W36")
        parser.add_argument("--q", type=str, help="Search on contractor name or email")
        parser.add_argument(
            "--user-id",
            type=parse_uuid,
            help="Admin user to export as (default: first admin)",
        )
        parser.add_argument(
            "--output",
            type=Path,
            help="Write to this file instead of stdout",
        )

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[[argparse.Namespace], int]] = {
            "resolve-week": self._cmd_resolve_week,
            "export-weekly": self._cmd_export_weekly,
            "export-invoices": self._cmd_export_invoices,
            "init-db": self._cmd_init_db,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1
        try:
            return handler(parsed)
        except TimesheetError as e:
            print(f"ERROR: {e.message}", file=sys.stderr)
            return 1

    def _cmd_resolve_week(self, args: argparse.Namespace) -> int:
        """Print the resolved window."""
        window = resolve_week(args.week, args.week_start)
        print(
            json.dumps(
                {
                    "week": window.iso_label,
                    "start": window.start.isoformat(),
                    "end": window.end.isoformat(),
                    "week_start": window.start_date.isoformat(),
                    "week_end": window.last_day.isoformat(),
                    "label": window.label,
                },
                indent=2,
            )
        )
        return 0

    def _cmd_export_weekly(self, args: argparse.Namespace) -> int:
        async def export() -> tuple[str, str]:
            try:
                async with get_session() as session:
                    principal = await load_admin(session, args.user_id)
                    return await WeeklyService(session).export_weekly_csv(
                        principal,
                        week=args.week,
                        week_start=args.week_start,
                        builder_id=args.builder_id,
                        location_id=args.location_id,
                        q=args.q,
                    )
            finally:
                await dispose_engine()

        return self._write_csv(args, *asyncio.run(export()))

    def _cmd_export_invoices(self, args: argparse.Namespace) -> int:
        if not args.week:
            print("ERROR: --week is required", file=sys.stderr)
            return 1

        async def export() -> tuple[str, str]:
            try:
                async with get_session() as session:
                    principal = await load_admin(session, args.user_id)
                    return await InvoiceService(session).export_invoices_csv(
                        principal, args.week, args.q
                    )
            finally:
                await dispose_engine()

        return self._write_csv(args, *asyncio.run(export()))

    def _cmd_init_db(self, args: argparse.Namespace) -> int:
        async def create() -> None:
            try:
                await init_db()
            finally:
                await dispose_engine()

        asyncio.run(create())
        print("Database tables created.")
        return 0

    @staticmethod
    def _write_csv(args: argparse.Namespace, filename: str, content: str) -> int:
        if args.output is None:
            sys.stdout.write(content)
            return 0
        output: Path = args.output
        if output.is_dir():
            output = output / filename
        output.write_text(content, encoding="utf-8")
        print(f"Wrote {output}", file=sys.stderr)
        return 0


def main() -> int:
    """CLI entry point."""
    logging.basicConfig(level=get_settings().log_level)
    cli = TimesheetCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
