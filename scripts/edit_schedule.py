"""Edit an outing's day-by-day schedule from the command line.

Standalone CLI over the outing store configured by OUTINGS_* environment
variables (JSON files under data/outings by default, or the record service
when OUTINGS_STORE_URL is set).

Show:      python scripts/edit_schedule.py show <outing-id>
New:       python scripts/edit_schedule.py new --name "Spring Campout" --start 2026-04-10 --end 2026-04-12
Dates:     python scripts/edit_schedule.py dates <outing-id> --end 2026-04-11
           (prompts before dropping days that hold activities; --yes skips the prompt)
Add:       python scripts/edit_schedule.py add <outing-id> day-1 --time "9:00 AM" --activity "Hike"
Move:      python scripts/edit_schedule.py move <outing-id> <activity-id> <anchor-activity-id>
Drop day:  python scripts/edit_schedule.py delete-day <outing-id> day-2

Exit codes:
  0 = success (schedule printed on stdout)
  1 = error (message on stderr)
"""

import argparse
import os
import sys
from datetime import date

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.outings.config import get_config  # noqa: E402
from src.outings.editor import OutingEditor  # noqa: E402
from src.outings.errors import OutingsError  # noqa: E402
from src.outings.gate import ConfirmationGate, ConfirmationRequest  # noqa: E402
from src.outings.logging import setup_logging_from_config  # noqa: E402
from src.outings.models import Person  # noqa: E402
from src.outings.preview import render_text  # noqa: E402
from src.outings.reconcile import ReconcileOutcome  # noqa: E402
from src.outings.store import OutingStore, store_from_config  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean."""
    print(msg, file=sys.stderr)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Edit an outing's day-by-day schedule.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Print the schedule.")
    show.add_argument("outing_id")

    new = sub.add_parser("new", help="Create an outing.")
    new.add_argument("--name", required=True, help="Event name.")
    new.add_argument("--destination", default="", help="Destination.")
    new.add_argument("--start", type=date.fromisoformat, help="Start date (YYYY-MM-DD).")
    new.add_argument("--end", type=date.fromisoformat, help="End date (YYYY-MM-DD).")

    dates = sub.add_parser("dates", help="Change the start and/or end date.")
    dates.add_argument("outing_id")
    dates.add_argument("--start", type=date.fromisoformat, help="New start date.")
    dates.add_argument("--end", type=date.fromisoformat, help="New end date.")
    dates.add_argument(
        "--yes",
        action="store_true",
        help="Drop days holding activities without asking.",
    )

    add = sub.add_parser("add", help="Add an activity to a day.")
    add.add_argument("outing_id")
    add.add_argument("day_id")
    add.add_argument("--activity", required=True, help="What happens.")
    add.add_argument("--time", default="", help='Display time, e.g. "9:00 AM".')
    add.add_argument("--location", default="", help="Where.")
    add.add_argument(
        "--lead", action="append", default=[], help="Leader name (repeatable)."
    )

    move = sub.add_parser("move", help="Move an activity onto another one.")
    move.add_argument("outing_id")
    move.add_argument("activity_id")
    move.add_argument("anchor_id")

    delete_day = sub.add_parser("delete-day", help="Remove a day.")
    delete_day.add_argument("outing_id")
    delete_day.add_argument("day_id")

    return parser.parse_args(argv)


def _confirm_listener(assume_yes: bool):
    """Build the gate listener that plays the confirmation dialog."""

    def _ask(request: ConfirmationRequest) -> None:
        if assume_yes:
            request.on_confirm()
            return
        answer = input(
            f"This removes {request.days_to_lose} day(s), some with activities. "
            "Continue? [y/N] "
        )
        if answer.strip().lower() in ("y", "yes"):
            request.on_confirm()
        else:
            _log("Kept the schedule and the previous dates.")
            request.on_cancel()

    return _ask


def _apply_dates(editor: OutingEditor, start: date | None, end: date | None) -> None:
    """Apply date edits one field at a time, in an order that stays valid.

    Stops at the first edit whose confirmation the user declines.
    """
    edits = []
    if start is not None:
        edits.append(("start", start))
    if end is not None:
        edits.append(("end", end))
    current_end = editor.date_range.end
    if start is not None and current_end is not None and start > current_end:
        edits.reverse()

    for field, value in edits:
        setter = editor.set_start if field == "start" else editor.set_end
        result = setter(value)
        if result.rejection is not None:
            raise OutingsError(result.rejection.message)
        if result.outcome is ReconcileOutcome.CANCELLED:
            return


def run(args: argparse.Namespace, store: OutingStore) -> str:
    """Execute one command and return the text to print."""
    if args.command == "new":
        editor = OutingEditor(store=store)
        editor.set_details(event_name=args.name, destination=args.destination)
        _apply_dates(editor, args.start, args.end)
        outing_id = editor.save()
        return f"Created outing {outing_id}\n\n" + render_text(
            editor.schedule, editor.date_range.start
        )

    gate = ConfirmationGate(on_request=_confirm_listener(getattr(args, "yes", False)))
    editor = OutingEditor.load(store, args.outing_id, gate=gate)

    if args.command == "dates":
        _apply_dates(editor, args.start, args.end)
    elif args.command == "add":
        activity_id = editor.add_activity(args.day_id)
        if activity_id is None:
            raise OutingsError(f"Outing has no day {args.day_id!r}")
        day = next(d for d in editor.schedule if d.id == args.day_id)
        blank = next(a for a in day.activities if a.id == activity_id)
        editor.update_activity(
            args.day_id,
            blank.model_copy(
                update={
                    "time": args.time,
                    "activity": args.activity,
                    "location": args.location,
                    "lead": [Person(name=name) for name in args.lead],
                }
            ),
        )
    elif args.command == "move":
        editor.move(args.activity_id, args.anchor_id)
    elif args.command == "delete-day":
        if not editor.can_delete_day:
            raise OutingsError("An outing keeps at least one day")
        editor.delete_day(args.day_id)

    if args.command != "show":
        editor.save()
    return render_text(editor.schedule, editor.date_range.start)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = get_config()
    setup_logging_from_config(config)

    try:
        print(run(args, store_from_config(config)))
    except OutingsError as e:
        _log(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
