from __future__ import annotations

import argparse
import asyncio
import logging
import stat
from dataclasses import replace
from typing import Any

from . import mood as moodscale
from .badges import get_badge_definition, rarity_label
from .datekey import is_valid_date_key, today_key
from .models import (
    ACTIVITY_CATEGORIES,
    EVENT_KINDS,
    MED_TIME_SLOTS,
    DayRecord,
    TimelineEvent,
    event_field_names,
    make_event,
)
from .paths import data_path_reason, resolve_data_path
from .safety import assert_safe_data_path
from .service import DayLedgerService
from .stats import PERIOD_DAYS, activity_mood_effect, collect_doctor_symptoms, weekly_insights
from .storage import Store, load_json, migrate, save_json
from .timeparse import parse_clock


# -------------------------
# Parsing helpers
# -------------------------

def _parse_date(value: str | None) -> str:
    if not value or value.strip().lower() == "today":
        return today_key()
    s = value.strip()
    if not is_valid_date_key(s):
        raise SystemExit(f"--date must be a real date like 2026-02-25 (got {value!r})")
    return s


def _parse_mood_value(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        v = float(value)
    except ValueError:
        raise SystemExit(f"--value must be a number, 1..5 or -2..2 (got {value!r})") from None
    if moodscale.normalize(v) is None:
        raise SystemExit(f"--value must be in 1..5 or -2..2 (got {value!r})")
    return int(v) if v.is_integer() else v


def _event_changes(args: argparse.Namespace, kind: str) -> dict[str, Any]:
    """Fields the user actually passed, mapped onto the event kind's fields."""
    candidates: dict[str, Any] = {
        "time": parse_clock(args.time) if args.time else None,
        "end_time": parse_clock(args.end) if args.end else None,
        "label": args.label,
        "memo": args.memo,
        "value": _parse_mood_value(args.value),
        "time_slot": args.slot,
        "dosage": args.dose,
        "med_id": args.med_id,
        "category": args.category,
        "for_doctor": True if args.for_doctor else None,
    }
    allowed = event_field_names(kind)
    return {k: v for k, v in candidates.items() if v is not None and k in allowed}


def _sparkline(values: list[float], vmin: float = 1.0, vmax: float = 5.0) -> str:
    if not values:
        return ""
    blocks = "▁▂▃▄▅▆▇█"
    span = max(1e-9, vmax - vmin)
    out = []
    for v in values:
        x = (v - vmin) / span
        idx = int(round(x * (len(blocks) - 1)))
        idx = max(0, min(len(blocks) - 1, idx))
        out.append(blocks[idx])
    return "".join(out)


def _progress_bar(progress: float, width: int = 10) -> str:
    filled = int(round(max(0.0, min(1.0, progress)) * width))
    return "█" * filled + "░" * (width - filled)


def _fmt_hours(hours: float | None) -> str:
    return "—" if hours is None else f"{hours:.1f}h"


def _fmt_rate(rate: float) -> str:
    return f"{rate * 100:.0f}%"


# -------------------------
# Print blocks
# -------------------------

def _event_line(e: TimelineEvent) -> str:
    when = f"{e.time}–{e.end_time}" if e.end_time else e.time
    extra = ""
    if e.kind == "mood":
        extra = f" {moodscale.display_text(e.value)}" if e.value is not None else ""
    elif e.kind == "medication" and e.dosage:
        extra = f" ({e.dosage})"
    elif e.kind == "symptom" and e.for_doctor:
        extra = " [for doctor]"
    elif e.kind == "activity":
        extra = f" [{e.category}]"
    line = f"{when or '--:--'} {e.kind:<10} {e.label}{extra}"
    if e.memo:
        line += f" ({e.memo})"
    return f"{line}  #{e.id}"


def _print_day_block(date: str, record: DayRecord | None, log_events) -> None:
    print("```")
    print(f"📒 Day {date}")
    if record is None:
        print("- nothing logged")
        print("```")
        return

    if record.mood:
        d = moodscale.describe(record.mood.value)
        print(f"- 🙂 Mood: {d.emoji} {d.label} ({record.mood.value:g}/5)" + (f" @ {record.mood.time}" if record.mood.time else ""))
    else:
        print("- 🙂 Mood: —")

    if record.sleep:
        print(f"- 😴 Sleep: bed {record.sleep.bed_time or '—'} → wake {record.sleep.wake_time or '—'}")
    else:
        print("- 😴 Sleep: —")

    print(f"- 💊 Medications: {len(record.medications)}")
    for m in record.medications:
        print(f"    {m.time} {m.label}" + (f" {m.dosage}" if m.dosage else ""))
    print(f"- 🩺 Symptoms: {len(record.symptoms)}")
    for s in record.symptoms:
        print(f"    {s.time} {s.label}" + (" [for doctor]" if s.for_doctor else ""))
    print(f"- 📝 Notes: {len(record.notes)}")
    for n in record.notes:
        print(f"    {n.time} {n.text}")

    print("- 🕒 Timeline:")
    for e in log_events:
        print(f"    {_event_line(e)}")
    print("```")


def _print_new_badges(newly) -> None:
    for a in newly:
        b = get_badge_definition(a.badge_id)
        if b:
            print(f"🏅 New badge: {b.emoji} {b.name}: {b.description}")


# -------------------------
# Service plumbing
# -------------------------

async def _open_service(args: argparse.Namespace) -> DayLedgerService:
    service = DayLedgerService(Store(args.data_path))
    await service.load()
    return service


async def _finish(service: DayLedgerService) -> None:
    await service.flush()
    _print_new_badges(await service.check_badges())


# -------------------------
# Event commands
# -------------------------

async def cmd_log(args: argparse.Namespace) -> None:
    date = _parse_date(args.date)
    fields = _event_changes(args, args.kind)
    fields.setdefault("time", parse_clock(None))
    if args.kind == "mood" and "label" not in fields and "value" in fields:
        fields["label"] = moodscale.to_label(moodscale.normalize(fields["value"]))
    if args.kind == "medication" and args.slot and args.slot not in MED_TIME_SLOTS:
        raise SystemExit(f"--slot must be one of: {', '.join(MED_TIME_SLOTS)}")
    event = make_event(args.kind, **fields)

    service = await _open_service(args)
    record = service.add_event(date, event)

    if args.format == "block":
        _print_day_block(date, record, service.ledger(date).sorted_by_time())
    else:
        print(f"📝 Logged {event.kind} @ {event.time} on {date} (id {event.id})")
    await _finish(service)


async def cmd_edit(args: argparse.Namespace) -> None:
    date = _parse_date(args.date)
    service = await _open_service(args)
    current = service.ledger(date).get(args.id)
    if current is None:
        raise SystemExit(f"No event {args.id!r} on {date}.")

    changes = _event_changes(args, current.kind)
    if not changes:
        raise SystemExit("Nothing to change; pass at least one field (e.g. --time, --label).")

    service.edit_event(date, args.id, replace(current, **changes))
    print(f"✏️ Updated {current.kind} #{args.id} on {date}")
    await _finish(service)


async def cmd_rm(args: argparse.Namespace) -> None:
    date = _parse_date(args.date)
    service = await _open_service(args)
    if service.delete_event(date, args.id) is None:
        raise SystemExit(f"No event {args.id!r} on {date}.")
    print(f"🗑️ Removed #{args.id} from {date}")
    await _finish(service)


async def cmd_day(args: argparse.Namespace) -> None:
    date = _parse_date(args.date)
    service = await _open_service(args)
    _print_day_block(date, service.record_for(date), service.ledger(date).sorted_by_time())


async def cmd_forget_day(args: argparse.Namespace) -> None:
    date = _parse_date(args.date)
    if not args.yes:
        raise SystemExit("Refusing to delete a whole day without --yes.")
    service = await _open_service(args)
    if not service.delete_day(date):
        print(f"Nothing stored for {date}.")
        return
    print(f"🧹 Deleted every entry for {date}.")
    await _finish(service)


# -------------------------
# Stats commands
# -------------------------

async def cmd_streak(args: argparse.Namespace) -> None:
    service = await _open_service(args)
    n = service.current_streak()
    print(f"🔥 Current streak: {n} day{'s' if n != 1 else ''}")


async def cmd_stats(args: argparse.Namespace) -> None:
    service = await _open_service(args)
    days = PERIOD_DAYS[f"{args.window}d"]
    rows = service.period_rows(days)
    s = service.period_summary(days)

    print(f"=== Stats (last {days} days, since {rows[0].date}) ===")
    print(f"- recorded: {s.days_with_record}/{s.total_days} days ({_fmt_rate(s.record_rate)})")
    if s.avg_mood is not None:
        print(f"- mood: avg {s.avg_mood:.2f}/5 ({s.avg_mood_label}), range {s.min_mood:g}…{s.max_mood:g}")
    else:
        print("- mood: —")
    print(f"- mood trend: {s.mood_trend}, stability: {s.mood_stability}")
    print(f"- mood sparkline: {_sparkline([r.mood_avg for r in rows if r.mood_avg is not None])}")
    print(
        f"- sleep: avg {_fmt_hours(s.avg_sleep_hours)} "
        f"({_fmt_hours(s.min_sleep_hours)}…{_fmt_hours(s.max_sleep_hours)}), "
        f"consistency: {s.sleep_consistency}, volume: {s.sleep_quality}"
    )
    print(f"- medication: {s.days_with_meds} days ({_fmt_rate(s.med_record_rate)})")
    print(f"- activity: {s.total_activity_minutes} min over {s.days_with_activity} days")
    print(f"- notes: {s.total_notes}, symptoms: {s.total_symptoms}")

    effect = activity_mood_effect(rows)
    if effect.diff is not None:
        print(f"- mood with vs. without activity: {effect.diff:+.2f}")

    print("\n[Insights]")
    for i in weekly_insights(s):
        print(f"{i.icon} {i.title}: {i.message}")

    if args.rows:
        print("\n[Daily rows]")
        for r in rows:
            mood_txt = f"{r.mood_avg:g}" if r.mood_avg is not None else "—"
            sleep_txt = _fmt_hours(r.sleep_minutes / 60) if r.sleep_minutes is not None else "—"
            print(
                f"- {r.date} {r.date_label:<12} mood={mood_txt} sleep={sleep_txt} "
                f"meds={r.meds_count} notes={r.notes_count} symptoms={r.symptoms_count} "
                f"activity={r.activity_minutes}m"
            )


async def cmd_badges(args: argparse.Namespace) -> None:
    service = await _open_service(args)
    progress = await service.badge_progress()
    for p in progress:
        if args.achieved and not p.is_achieved:
            continue
        mark = "✅" if p.is_achieved else "  "
        print(
            f"{mark} {p.badge.emoji} {p.badge.name:<24} {_progress_bar(p.progress)} "
            f"{min(p.current_value, p.badge.requirement)}/{p.badge.requirement} "
            f"[{rarity_label(p.badge.rarity)}] {p.badge.requirement_text}"
        )
    print(f"\n{sum(1 for p in progress if p.is_achieved)}/{len(progress)} badges achieved")


async def cmd_breathe(args: argparse.Namespace) -> None:
    service = await _open_service(args)
    count = await service.complete_breathing_exercise()
    print(f"🫁 Breathing exercises completed: {count}")
    await _finish(service)


async def cmd_doctor_notes(args: argparse.Namespace) -> None:
    service = await _open_service(args)
    items = collect_doctor_symptoms(service.records)
    if not items:
        print("No symptoms flagged for your doctor.")
        return
    print("=== To discuss with your doctor (newest first) ===")
    for s in items[: args.limit]:
        line = f"- {s.date} {s.time} {s.label}"
        if s.memo:
            line += f" ({s.memo})"
        print(line)


# -------------------------
# Core commands
# -------------------------

async def cmd_init(args: argparse.Namespace) -> None:
    save_json(args.data_path, migrate(load_json(args.data_path)))
    print(f"✅ Initialized data file: {args.data_path}")


async def cmd_where(args: argparse.Namespace) -> None:
    print(args.data_path)
    print(f"↳ using {data_path_reason(args.data_arg, args.profile)}")


async def cmd_doctor(args: argparse.Namespace) -> None:
    print("=== SereNote Doctor ===")

    assert_safe_data_path(args.data_path, args.allow_repo_data_path)
    print("✅ Data path safety guard: OK")

    raw = load_json(args.data_path)
    data = migrate(raw)
    print("✅ JSON readable: OK")
    if "version" not in raw:
        print("ℹ️ No version envelope yet (run `serenote init` to upgrade)")
    print(f"📚 Days stored: {len(data['entries'])}, badges: {len(data['achieved_badges'])}")

    try:
        mode = args.data_path.stat().st_mode
        perms = stat.S_IMODE(mode)
        print(f"🔐 File permissions: {oct(perms)} (target 0o600)")
    except FileNotFoundError:
        print("⚠️ Data file missing (run `serenote init`)")

    print("=== Done ===")


def _add_event_fields(p: argparse.ArgumentParser) -> None:
    p.add_argument("--date", default=None, help="YYYY-MM-DD (default today)")
    p.add_argument("--time", default=None, help="Clock time: 7:34am, 19:34, now (default now)")
    p.add_argument("--end", default=None, help="End time for activities")
    p.add_argument("--label", default=None)
    p.add_argument("--memo", default=None)
    p.add_argument("--value", default=None, help="Mood value, 1..5 or -2..2")
    p.add_argument("--slot", default=None, help=f"Medication slot: {', '.join(MED_TIME_SLOTS)}")
    p.add_argument("--dose", default=None, help="Dosage text, e.g. '1 tablet / 5mg'")
    p.add_argument("--med-id", dest="med_id", default=None)
    p.add_argument("--category", choices=ACTIVITY_CATEGORIES, default=None, help="Activity category")
    p.add_argument("--for-doctor", dest="for_doctor", action="store_true", help="Flag a symptom for your doctor")


def main(argv=None) -> None:
    p = argparse.ArgumentParser(prog="serenote", description="SereNote day ledger")
    p.add_argument("--data", default=None, help="Path to data JSON (overrides env/default)")
    p.add_argument("--profile", default=None, help="Profile name (e.g. dev/test)")
    p.add_argument("--allow-repo-data-path", action="store_true", help="Override safety guard (not recommended)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = p.add_subparsers(dest="cmd", required=True)
    sub.add_parser("init", help="Initialize data store safely").set_defaults(func=cmd_init)
    sub.add_parser("where", help="Show which data file is active and why").set_defaults(func=cmd_where)
    sub.add_parser("doctor", help="Run safety + health checks").set_defaults(func=cmd_doctor)

    log = sub.add_parser("log", help="Log an event")
    log.add_argument("kind", choices=EVENT_KINDS)
    _add_event_fields(log)
    log.add_argument("--format", choices=["line", "block"], default="line")
    log.set_defaults(func=cmd_log)

    edit = sub.add_parser("edit", help="Edit an event (unchanged fields are kept)")
    edit.add_argument("id")
    _add_event_fields(edit)
    edit.set_defaults(func=cmd_edit)

    rm = sub.add_parser("rm", help="Remove an event")
    rm.add_argument("id")
    rm.add_argument("--date", default=None)
    rm.set_defaults(func=cmd_rm)

    day = sub.add_parser("day", help="Show one day")
    day.add_argument("date", nargs="?", default=None)
    day.set_defaults(func=cmd_day)

    forget = sub.add_parser("forget-day", help="Delete every entry for a day (requires --yes)")
    forget.add_argument("date")
    forget.add_argument("--yes", action="store_true", help="Confirm destructive delete")
    forget.set_defaults(func=cmd_forget_day)

    sub.add_parser("streak", help="Current recording streak").set_defaults(func=cmd_streak)

    stats = sub.add_parser("stats", help="Period statistics + insights")
    stats.add_argument("--window", choices=["7", "30", "90"], default="7")
    stats.add_argument("--rows", action="store_true", help="Also print one line per day")
    stats.set_defaults(func=cmd_stats)

    badges = sub.add_parser("badges", help="Badge progress")
    badges.add_argument("--achieved", action="store_true", help="Only achieved badges")
    badges.set_defaults(func=cmd_badges)

    sub.add_parser("breathe", help="Count a finished breathing exercise").set_defaults(func=cmd_breathe)

    notes = sub.add_parser("doctor-notes", help="Symptoms flagged for your doctor")
    notes.add_argument("--limit", type=int, default=50)
    notes.set_defaults(func=cmd_doctor_notes)

    args = p.parse_args(argv)
    args.data_arg = args.data
    args.data_path = resolve_data_path(args.data, args.profile)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    assert_safe_data_path(args.data_path, args.allow_repo_data_path)
    asyncio.run(args.func(args))


if __name__ == "__main__":
    main()
