"""
CLI (Command Line Interface).

Terminal front-end around the reconciliation engine, e.g.:

    learnhelper refresh --source https://example.org/snapshot.json
    learnhelper list --category homework --unread
    learnhelper read homework <id>
    learnhelper star file <id>
    learnhelper ignore-course <course_id> notification
    learnhelper mark-all-read
    learnhelper switch-semester <semester_id>

Every command loads the stored state, applies exactly one action and saves
the resulting state.
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from rich import box
from rich.console import Console
from rich.table import Table

from learnhelper import actions, state as st
from learnhelper.config import Settings, load_settings
from learnhelper.courses import is_ignored
from learnhelper.errors import LearnHelperError
from learnhelper.fetch import get_snapshot
from learnhelper.model import ContentType, DataState
from learnhelper.refresh import refresh
from learnhelper.storage import Migration, load_state, save_state

console = Console()

_CATEGORIES = [t.value for t in ContentType.all()]

# command -> (action class, flag value)
_FLAG_COMMANDS: dict[str, tuple[Callable[..., object], bool]] = {
    "read": (actions.SetRead, True),
    "unread": (actions.SetRead, False),
    "star": (actions.SetStarred, True),
    "unstar": (actions.SetStarred, False),
    "ignore": (actions.SetIgnored, True),
    "unignore": (actions.SetIgnored, False),
}


def _load(settings: Settings) -> DataState:
    result = load_state(settings.state_path)
    if result.migration == Migration.ALL_CLEARED:
        print("Warning: stored data was unreadable, all local data has been cleared.")
    elif result.migration == Migration.FETCHED_CLEARED:
        print("Storage upgraded: fetched data has been cleared, settings were kept.")
    return result.state


def _fmt_time(dt: datetime | None) -> str:
    return dt.astimezone().strftime("%Y-%m-%d %H:%M") if dt else ""


def _cmd_refresh(args: argparse.Namespace, settings: Settings, state: DataState) -> tuple[int, DataState]:
    source = args.source or settings.source
    if not source:
        print("Please provide a snapshot source (--source or LEARNHELPER_SOURCE).")
        return 1, state

    now = datetime.now(timezone.utc)
    if not args.force and not st.needs_refresh(state, now, settings.refresh_interval):
        print(f"Up to date (last update: {_fmt_time(state.last_update_time)}). Use --force to refresh anyway.")
        return 0, state

    snapshot = get_snapshot(source)
    new = refresh(state, snapshot, now=now)

    if new.fetched_semester.id != new.semester.id:
        print(
            f"Note: the platform is now on semester {new.fetched_semester.id}, "
            f"still showing {new.semester.id} (insist is on)."
        )
    unread = sum(1 for t in ContentType.all() for c in new.store(t).values() if not c.has_read)
    print(f"Refreshed {len(new.courses)} courses, {unread} unread items.")
    return 0, new


def _cmd_list(args: argparse.Namespace, state: DataState) -> int:
    categories = [ContentType(args.category)] if args.category else list(ContentType.all())

    rows = []
    for t in categories:
        for c in state.store(t).values():
            if not args.all and (c.ignored or is_ignored(state.content_ignore, c)):
                continue
            if args.unread and c.has_read:
                continue
            if args.starred and not c.starred:
                continue
            rows.append(c)

    if not rows:
        print("No content.")
        return 0

    rows.sort(key=lambda c: (c.date or datetime.min.replace(tzinfo=timezone.utc)), reverse=True)

    table = Table(box=box.SIMPLE)
    table.add_column("Type")
    table.add_column("Course")
    table.add_column("Title")
    table.add_column("Date")
    table.add_column("")
    table.add_column("ID", overflow="fold")
    for c in rows:
        marks = ("•" if not c.has_read else " ") + ("★" if c.starred else " ")
        table.add_row(c.category.value, c.course_name, c.title, _fmt_time(c.date), marks, c.id)
    console.print(table)
    return 0


def _cmd_flag(args: argparse.Namespace, state: DataState) -> tuple[int, DataState]:
    category = ContentType(args.category)
    if args.id not in state.store(category):
        print(f"Not found: {category.value} {args.id}")
        return 1, state

    action_cls, value = _FLAG_COMMANDS[args.command]
    new = actions.reduce(state, action_cls(category, args.id, value))
    print(f"{args.command.capitalize()}: {category.value} {args.id}")
    return 0, new


def _cmd_ignore_course(args: argparse.Namespace, state: DataState) -> tuple[int, DataState]:
    cid = args.course_id.strip()
    if cid not in state.courses:
        print(f"Unknown course: {cid}")
        return 1, state

    new = actions.reduce(state, actions.ToggleCourseIgnore(cid, ContentType(args.category), not args.off))
    status = "shown" if args.off else "hidden"
    print(f"{args.category} of {state.courses[cid].name} is now {status}.")
    return 0, new


def _cmd_semester(args: argparse.Namespace, state: DataState) -> tuple[int, DataState]:
    new = state
    if args.insist:
        new = actions.reduce(state, actions.InsistSemester(True))
    elif args.follow:
        new = actions.reduce(state, actions.InsistSemester(False))

    print(f"Current semester : {new.semester.id or '(unset)'}")
    print(f"Platform semester: {new.fetched_semester.id or '(unknown)'}")
    print(f"Known semesters  : {', '.join(new.semesters) or '-'}")
    print(f"Insist           : {'yes' if new.insist_semester else 'no'}")
    return 0, new


def _cmd_switch_semester(args: argparse.Namespace, state: DataState) -> tuple[int, DataState]:
    target = args.semester_id.strip()
    if target != state.fetched_semester.id:
        # only the platform's current semester carries full metadata
        print(f"Can only switch to the platform semester ({state.fetched_semester.id or 'unknown'}).")
        return 1, state

    new = actions.reduce(state, actions.SwitchSemester(state.fetched_semester))
    print(f"Switched to {target}; run 'refresh' to load its content.")
    return 0, new


def _cmd_clear(args: argparse.Namespace, state: DataState) -> tuple[int, DataState]:
    if args.fetched:
        print("Cleared fetched data (settings kept).")
        return 0, actions.reduce(state, actions.ClearFetchedData())
    print("Cleared all data.")
    return 0, actions.reduce(state, actions.ClearAllData())


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="learnhelper", description="Learn Helper CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--state", type=str, default=None, help="State file (default: LEARNHELPER_STATE)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_refresh = sub.add_parser("refresh", help="Fetch a snapshot and merge it")
    p_refresh.add_argument("--source", type=str, default=None, help="Snapshot URL or JSON file")
    p_refresh.add_argument("--force", action="store_true", help="Refresh even if recently updated")

    p_list = sub.add_parser("list", help="List content")
    p_list.add_argument("--category", "-c", choices=_CATEGORIES, default=None)
    p_list.add_argument("--unread", action="store_true", help="Only unread items")
    p_list.add_argument("--starred", action="store_true", help="Only starred items")
    p_list.add_argument("--all", action="store_true", help="Include ignored items")

    for name in _FLAG_COMMANDS:
        p = sub.add_parser(name, help=f"Mark one item as {name}")
        p.add_argument("category", choices=_CATEGORIES)
        p.add_argument("id", type=str)

    sub.add_parser("mark-all-read", help="Mark every item as read")

    p_ign = sub.add_parser("ignore-course", help="Hide one category of a course")
    p_ign.add_argument("course_id", type=str)
    p_ign.add_argument("category", choices=_CATEGORIES)
    p_ign.add_argument("--off", action="store_true", help="Show it again")

    sub.add_parser("reset-ignore", help="Show every category of every course")

    p_sem = sub.add_parser("semester", help="Show semester info")
    g = p_sem.add_mutually_exclusive_group()
    g.add_argument("--insist", action="store_true", help="Stay on the current semester")
    g.add_argument("--follow", action="store_true", help="Follow the platform's semester")

    p_switch = sub.add_parser("switch-semester", help="Switch to the platform semester (clears content)")
    p_switch.add_argument("semester_id", type=str)

    p_clear = sub.add_parser("clear", help="Clear local data")
    p_clear.add_argument("--fetched", action="store_true", help="Keep settings, drop fetched data")

    return parser


def _dispatch(args: argparse.Namespace, settings: Settings, state: DataState) -> tuple[int, DataState]:
    if args.command == "refresh":
        return _cmd_refresh(args, settings, state)
    if args.command == "list":
        return _cmd_list(args, state), state
    if args.command in _FLAG_COMMANDS:
        return _cmd_flag(args, state)
    if args.command == "mark-all-read":
        print("Marked all items as read.")
        return 0, actions.reduce(state, actions.MarkAllRead())
    if args.command == "ignore-course":
        return _cmd_ignore_course(args, state)
    if args.command == "reset-ignore":
        print("Ignore settings reset.")
        return 0, actions.reduce(state, actions.ResetIgnore())
    if args.command == "semester":
        return _cmd_semester(args, state)
    if args.command == "switch-semester":
        return _cmd_switch_semester(args, state)
    if args.command == "clear":
        return _cmd_clear(args, state)
    return 2, state


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    saves the new state if it changed, and exits via SystemExit.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings()
        if args.state:
            settings = Settings(
                state_path=Path(args.state),
                source=settings.source,
                refresh_interval=settings.refresh_interval,
            )
        state = _load(settings)
        code, new = _dispatch(args, settings, state)
    except LearnHelperError as e:
        # the stored state is left as it was
        print(f"Error: {e}")
        raise SystemExit(1)

    if new is not state:
        save_state(new, settings.state_path)
    raise SystemExit(code)
