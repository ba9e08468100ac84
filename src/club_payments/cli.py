"""Club payments command line interface.

Provides operational tools for:
- Resolving a player's payment status
- Setting a player's status for a month
- Team monthly classification
- A team's per-player statuses for one month
- Payment history

Usage:
    python -m club_payments.cli status PLAYER_ID
    python -m club_payments.cli set-status PLAYER_ID paid --by coach-7
    python -m club_payments.cli team-status TEAM_ID --year 2025
    python -m club_payments.cli team-payments TEAM_ID --year 2025 --month 4
    python -m club_payments.cli history PLAYER_ID
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from typing import Any, Awaitable, Callable

from club_payments.config import get_settings
from club_payments.database import create_schema, get_engine, make_session_factory
from club_payments.errors import PaymentStatusError
from club_payments.service import PaymentStatusService
from club_payments.store.sql import SqlPaymentStore

logger = logging.getLogger(__name__)


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


class PaymentsCli:
    """Club payments command line interface.

    A service may be injected; otherwise one is built over the configured
    database for the duration of a command.
    """

    def __init__(self, service: PaymentStatusService | None = None) -> None:
        self._service = service
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m club_payments.cli",
            description="Player payment status tools",
        )
        parser.add_argument(
            "--database-url",
            help="Override DATABASE_URL",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        status = subparsers.add_parser("status", help="Resolve a player's status")
        status.add_argument("player_id")

        set_status = subparsers.add_parser(
            "set-status", help="Set a player's paid/unpaid status"
        )
        set_status.add_argument("player_id")
        set_status.add_argument("status", choices=["paid", "unpaid"])
        set_status.add_argument("--by", default="cli", help="Actor id recorded on the write")
        set_status.add_argument("--year", type=int)
        set_status.add_argument("--month", type=int)

        team = subparsers.add_parser(
            "team-status", help="Monthly all-paid classification for a team"
        )
        team.add_argument("team_id")
        team.add_argument("--year", type=int, required=True)

        roster = subparsers.add_parser(
            "team-payments", help="Each player's status in one month of a team"
        )
        roster.add_argument("team_id")
        roster.add_argument("--year", type=int, required=True)
        roster.add_argument("--month", type=int, required=True)

        history = subparsers.add_parser("history", help="A player's payment history")
        history.add_argument("player_id")

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., Awaitable[int]]] = {
            "status": self._cmd_status,
            "set-status": self._cmd_set_status,
            "team-status": self._cmd_team_status,
            "team-payments": self._cmd_team_payments,
            "history": self._cmd_history,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return asyncio.run(self._with_service(handler, parsed))
        except PaymentStatusError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    async def _with_service(
        self,
        handler: Callable[[PaymentStatusService, argparse.Namespace], Awaitable[int]],
        args: argparse.Namespace,
    ) -> int:
        if self._service is not None:
            return await handler(self._service, args)

        settings = get_settings()
        engine = get_engine(args.database_url)
        try:
            await create_schema(engine)
            store = SqlPaymentStore(make_session_factory(engine), settings.status_function)
            service = PaymentStatusService.from_settings(store, settings)
            return await handler(service, args)
        finally:
            await engine.dispose()

    async def _cmd_status(
        self, service: PaymentStatusService, args: argparse.Namespace
    ) -> int:
        """Resolve and print a player's status."""
        resolved = await service.get_status(args.player_id)
        if resolved is None:
            print(f"No payment status found for {args.player_id}", file=sys.stderr)
            return 1
        _emit(asdict(resolved))
        return 0

    async def _cmd_set_status(
        self, service: PaymentStatusService, args: argparse.Namespace
    ) -> int:
        """Write a player's status."""
        result = await service.set_status(
            args.player_id, args.status, args.by, year=args.year, month=args.month
        )
        _emit(
            {
                **asdict(result.record),
                "last_payment_date": result.last_payment_date,
                "aggregate_updated": result.aggregate_updated,
            }
        )
        return 0

    async def _cmd_team_status(
        self, service: PaymentStatusService, args: argparse.Namespace
    ) -> int:
        """Print a team's monthly classification."""
        months = await service.team_month_status(args.team_id, args.year)
        _emit({key: value.value for key, value in months.items()})
        return 0

    async def _cmd_team_payments(
        self, service: PaymentStatusService, args: argparse.Namespace
    ) -> int:
        """Print a team's roster for one month with paid/unpaid totals."""
        roster = await service.team_month_roster(args.team_id, args.year, args.month)
        _emit(
            {
                "team_id": roster.team_id,
                "year": roster.year,
                "month": roster.month,
                "players": [asdict(e) for e in roster.entries],
                "total_players": roster.total_players,
                "paid_players": roster.paid_players,
                "unpaid_players": roster.unpaid_players,
            }
        )
        return 0

    async def _cmd_history(
        self, service: PaymentStatusService, args: argparse.Namespace
    ) -> int:
        """Print a player's payment history."""
        entries = await service.payment_history(args.player_id)
        _emit([asdict(e) for e in entries])
        return 0


def main() -> int:
    """CLI entry point."""
    logging.basicConfig(level=logging.WARNING)
    cli = PaymentsCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
