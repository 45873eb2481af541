"""
Prompt scheduling: per-patient daily prompts and per-practice week previews.

Both generators draw notification times through ``random_time_in_window`` so
the slot windows live in one place (``SLOT_WINDOWS``).
"""

from __future__ import annotations

import logging
import random
from datetime import date, datetime, time, timedelta

from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from .errors import InvalidInput, NotFound, UnsupportedDatabase
from .extensions import db
from .models import DailyPrompt, ScheduleSlot, Slot
from .patients import get_patient, get_practice

log = logging.getLogger(__name__)

# slot -> (start hour inclusive, end hour exclusive)
SLOT_WINDOWS: dict[Slot, tuple[int, int]] = {
    Slot.MORNING: (8, 10),
    Slot.MIDDAY: (12, 15),
    Slot.EVENING: (19, 21),
}
DEADLINE_OFFSET = timedelta(minutes=2)
WEEK_DAYS = 7

SUPPORTED_DIALECTS = ("postgresql", "sqlite", "mysql", "mariadb")


def random_time_in_window(start_hour: int, end_hour: int, rng: random.Random | None = None) -> time:
    """Draw a whole-minute time of day uniformly from [start_hour:00, end_hour:00)."""
    if not 0 <= start_hour < end_hour <= 24:
        raise InvalidInput(f"Invalid window: {start_hour}-{end_hour}")
    rng = rng or random
    minutes = start_hour * 60 + rng.randrange((end_hour - start_hour) * 60)
    return time(minutes // 60, minutes % 60)


def slot_time(slot: Slot, rng: random.Random | None = None) -> time:
    start, end = SLOT_WINDOWS[slot]
    return random_time_in_window(start, end, rng)


def parse_slot(value) -> Slot:
    try:
        return Slot(int(value))
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid slot: {value}")


def _insert_statement(dialect: str, model, rows: list[dict], index_elements: list[str]):
    """Build an INSERT that skips rows already present on the model's unique key."""
    if dialect == "postgresql":
        return pg_insert(model).values(rows).on_conflict_do_nothing(index_elements=index_elements)
    if dialect == "sqlite":
        return sqlite_insert(model).values(rows).on_conflict_do_nothing(index_elements=index_elements)
    if dialect in ("mysql", "mariadb"):
        # no-op update: the existing row is left as it is
        pk = model.__table__.c.id
        return mysql_insert(model).values(rows).on_duplicate_key_update(id=pk)
    raise UnsupportedDatabase(
        f"Database dialect {dialect!r} cannot insert prompts idempotently",
        {"supported": list(SUPPORTED_DIALECTS)},
    )


def _insert_if_absent(model, rows: list[dict], index_elements: list[str]) -> None:
    if not rows:
        return
    db.session.execute(_insert_statement(db.engine.dialect.name, model, rows, index_elements))


def _prompts_for(patient_id: int, day: date) -> list[DailyPrompt]:
    return (
        DailyPrompt.query.filter_by(patient_id=patient_id, date=day)
        .order_by(DailyPrompt.slot)
        .all()
    )


def ensure_daily_prompts(patient_id: int, day: date, rng: random.Random | None = None) -> list[DailyPrompt]:
    """
    Return the three prompts of ``day`` for a patient, creating them on first ask.

    Existing prompts are never regenerated. When any slot is missing, all three
    are drawn and inserted with ON CONFLICT DO NOTHING, so concurrent callers
    and partially populated days both converge on one row per slot.
    """
    get_patient(patient_id)

    prompts = _prompts_for(patient_id, day)
    if len(prompts) == len(Slot):
        return prompts

    rows = []
    for slot in Slot:
        notification_at = datetime.combine(day, slot_time(slot, rng))
        rows.append({
            "patient_id": patient_id,
            "date": day,
            "slot": int(slot),
            "notification_at": notification_at,
            "deadline_at": notification_at + DEADLINE_OFFSET,
            "created_at": datetime.now(),
        })
    _insert_if_absent(DailyPrompt, rows, ["patient_id", "date", "slot"])
    db.session.commit()
    log.info("Generated daily prompts for patient %s on %s", patient_id, day.isoformat())

    return _prompts_for(patient_id, day)


def _week_rows(practice_id: int, week_start: date, rng: random.Random | None) -> list[dict]:
    rows = []
    for offset in range(WEEK_DAYS):
        day = week_start + timedelta(days=offset)
        for slot in Slot:
            rows.append({
                "practice_id": practice_id,
                "date": day,
                "slot": int(slot),
                "notification_time": slot_time(slot, rng),
            })
    return rows


def _week_query(practice_id: int, week_start: date):
    week_end = week_start + timedelta(days=WEEK_DAYS)
    return ScheduleSlot.query.filter(
        ScheduleSlot.practice_id == practice_id,
        ScheduleSlot.date >= week_start,
        ScheduleSlot.date < week_end,
    )


def _week_slots(practice_id: int, week_start: date) -> list[ScheduleSlot]:
    return _week_query(practice_id, week_start).order_by(ScheduleSlot.date, ScheduleSlot.slot).all()


def generate_week_schedule(practice_id: int, week_start: date, rng: random.Random | None = None) -> list[ScheduleSlot]:
    """Return the practice's 21 schedule cells for the week, generating any that are missing."""
    get_practice(practice_id)

    slots = _week_slots(practice_id, week_start)
    if len(slots) == WEEK_DAYS * len(Slot):
        return slots

    _insert_if_absent(
        ScheduleSlot,
        _week_rows(practice_id, week_start, rng),
        ["practice_id", "date", "slot"],
    )
    db.session.commit()
    log.info("Generated week schedule for practice %s from %s", practice_id, week_start.isoformat())
    return _week_slots(practice_id, week_start)


def randomize_week_schedule(practice_id: int, week_start: date, rng: random.Random | None = None) -> list[ScheduleSlot]:
    """Discard the week's cells, manual edits included, and draw all 21 again in one transaction."""
    get_practice(practice_id)

    try:
        _week_query(practice_id, week_start).delete(synchronize_session="fetch")
        db.session.add_all(ScheduleSlot(**row) for row in _week_rows(practice_id, week_start, rng))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    log.info("Randomized week schedule for practice %s from %s", practice_id, week_start.isoformat())
    return _week_slots(practice_id, week_start)


def update_schedule_slot(practice_id: int, day: date, slot: Slot, notification_time: time) -> ScheduleSlot:
    """Override the drawn time of a single schedule cell."""
    cell = ScheduleSlot.query.filter_by(practice_id=practice_id, date=day, slot=int(slot)).first()
    if cell is None:
        raise NotFound(
            "Schedule slot not found",
            {"practice_id": practice_id, "date": day.isoformat(), "slot": int(slot)},
        )
    cell.notification_time = notification_time
    db.session.commit()
    return cell
