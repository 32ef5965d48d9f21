#!/usr/bin/env python3
"""Command line client: log in, load one screen, optionally perform one action.

Examples:
    python -m judging dashboard
    python -m judging evaluate --stand 3 --score 1=8 --score 2=10
    python -m judging warnings --issue 3 --comment "Lautstärke"
    python -m judging warnings --invalidate 12 --comment "Irrtum"
    python -m judging rooms --clean 4 --comment "Alles ok"
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import httpx
from pydantic import ValidationError

from .auth import login, logout
from .client import ApiClient
from .errors import JudgingError
from .logging_config import configure_logging
from .models import GroupedWarning
from .screens import DashboardScreen, EvaluationScreen, RoomInspectionScreen, WarningsScreen
from .session_context import SessionContext
from .settings import JudgingSettings, get_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="judging", description="Stand judging client")
    parser.add_argument("--server", help="Server address (default: JUDGING_SERVER_ADDRESS)")
    parser.add_argument("--username", help="Login name (default: JUDGING_USERNAME)")
    parser.add_argument("--password", help="Password (default: JUDGING_PASSWORD)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("dashboard", help="Show counts and top rankings")

    evaluate = sub.add_parser("evaluate", help="Show or submit an evaluation")
    evaluate.add_argument("--stand", type=int, required=True, help="Stand id")
    evaluate.add_argument(
        "--score",
        type=_score_pair,
        action="append",
        default=[],
        metavar="CRITERION=VALUE",
        help="Score input (repeatable)",
    )

    warnings = sub.add_parser("warnings", help="Show or change warnings")
    action = warnings.add_mutually_exclusive_group()
    action.add_argument("--issue", type=int, metavar="STAND", help="Issue a warning for a stand")
    action.add_argument("--invalidate", type=int, metavar="WARNING", help="Invalidate a warning")
    action.add_argument("--reinstate", type=int, metavar="WARNING", help="Reinstate a warning")
    warnings.add_argument("--comment", default="", help="Warning or invalidation comment")

    rooms = sub.add_parser("rooms", help="Show or record room inspections")
    verdict = rooms.add_mutually_exclusive_group()
    verdict.add_argument("--clean", type=int, metavar="ROOM", help="Mark a room clean")
    verdict.add_argument("--not-clean", type=int, metavar="ROOM", help="Mark a room not clean")
    rooms.add_argument("--comment", help="Inspection comment")

    return parser


def _score_pair(pair: str) -> tuple[int, str]:
    """argparse type for ``--score CRITERION=VALUE``; the value is validated later."""
    criterion, sep, value = pair.partition("=")
    if not sep or not criterion.strip().isdigit():
        raise argparse.ArgumentTypeError(f"invalid score '{pair}', expected CRITERION=VALUE")
    return int(criterion), value


def _print_groups(groups: list[GroupedWarning]) -> None:
    for group in groups:
        print(f"{group.stand_name}: {group.valid_count} gültig / {len(group.warnings)} gesamt")
        for w in group.warnings:
            state = "UNGÜLTIG" if w.is_invalidated else "gültig"
            print(f"  #{w.id} [{state}] {w.timestamp} {w.warner_name}: {w.comment}")
            if w.is_invalidated:
                print(f"      ungültig durch {w.invalidated_by or 'N/A'}: {w.invalidation_comment or '-'}")


async def _dashboard(context: SessionContext, client: ApiClient, args: argparse.Namespace) -> None:
    screen = DashboardScreen(context, client)
    await screen.refresh()
    summary = screen.summary
    print(screen.app_settings.title)
    if screen.shows_evaluation_cards:
        print(f"Meine Bewertungen: {summary.my_evaluations_count if summary.my_evaluations_count is not None else '-'}")
    if screen.shows_inspection_card:
        print(f"Offene Räume: {summary.open_rooms_count if summary.open_rooms_count is not None else '-'}")
    for place, entry in enumerate(summary.top_rankings, start=1):
        print(f"{place}. {entry.get('stand_name') or entry.get('name') or entry}")
    if screen.state.error:
        print(f"Fehler: {screen.state.error}")


async def _evaluate(context: SessionContext, client: ApiClient, args: argparse.Namespace) -> None:
    screen = EvaluationScreen(context, client)
    await screen.refresh()
    if screen.state.error:
        raise JudgingError(screen.state.error)
    await screen.select_stand(args.stand)
    scores = dict(args.score)
    if scores:
        for criterion_id, raw in scores.items():
            screen.set_score(criterion_id, raw)
        print(await screen.submit())
    for criterion in screen.criteria:
        print(f"{criterion.name} (0-{criterion.max_score}): {screen.criteria.draft(criterion.id) or '-'}")
    if screen.stored and screen.stored.timestamp:
        print(f"Zuletzt bewertet: {screen.stored.timestamp}")


async def _warnings(context: SessionContext, client: ApiClient, args: argparse.Namespace) -> None:
    screen = WarningsScreen(context, client)
    await screen.refresh()
    if screen.state.error:
        raise JudgingError(screen.state.error)
    if args.issue is not None:
        screen.new_warning_stand_id = args.issue
        screen.new_warning_comment = args.comment
        print((await screen.issue()).message)
    elif args.invalidate is not None:
        await screen.invalidate(args.invalidate, args.comment)
        print(screen.state.notice)
    elif args.reinstate is not None:
        await screen.reinstate(args.reinstate)
        print(screen.state.notice)
    _print_groups(screen.groups)


async def _rooms(context: SessionContext, client: ApiClient, args: argparse.Namespace) -> None:
    screen = RoomInspectionScreen(context, client)
    await screen.refresh()
    if screen.state.error:
        raise JudgingError(screen.state.error)
    room_id = args.clean if args.clean is not None else args.not_clean
    if room_id is not None:
        if args.comment is not None:
            screen.set_comment(room_id, args.comment)
        print(await screen.submit(room_id, is_clean=args.clean is not None))
    for room in screen.rooms:
        print(
            f"{room.room_name}: {room.status.value} ({room.stands_in_room_count} Stände, "
            f"zuletzt {room.last_inspected_by}, {room.inspection_timestamp or '-'})"
        )
    print(f"Offen: {screen.open_rooms_count}")


COMMANDS = {
    "dashboard": _dashboard,
    "evaluate": _evaluate,
    "warnings": _warnings,
    "rooms": _rooms,
}


async def run(
    args: argparse.Namespace,
    settings: JudgingSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    context = SessionContext()
    async with ApiClient.from_settings(settings, transport=transport) as client:
        try:
            result = await login(
                client,
                context,
                args.username or settings.username,
                args.password or settings.password,
                cookie_name=settings.session_cookie_name,
            )
            logger.info(result.message)
            if result.redirect_to_setup:
                print("Der Server verlangt die Ersteinrichtung eines Administrators.")
                return 1
            await COMMANDS[args.command](context, client, args)
        except JudgingError as e:
            print(f"Fehler: {e.message}", file=sys.stderr)
            return 1
        finally:
            if context.session.present:
                try:
                    await logout(client, context)
                except JudgingError as e:
                    logger.warning(e.message)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = JudgingSettings(server_address=args.server) if args.server else get_settings()
    except ValidationError as e:
        print(f"Fehler: ungültige Konfiguration: {e}", file=sys.stderr)
        return 2

    configure_logging(source="cli", debug=args.debug, cookie_name=settings.session_cookie_name)
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
