"""Compliance and timeliness metrics over a trailing window of days."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import math

from sqlalchemy import and_, case, func

from .evaluation import prompt_state
from .extensions import db
from .models import DailyPrompt, Patient, PhotoSubmission, Slot
from .patients import get_patient, get_practice


def percent(part: int, whole: int) -> int:
    """Whole percentage, exact halves rounded up (12.5 -> 13)."""
    if not whole:
        return 0
    return (part * 200 + whole) // (2 * whole)


def _window(days: int, today: date) -> tuple[date, date]:
    return today - timedelta(days=days - 1), today


def _count_if(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def patient_metrics(patient_id: int, days: int, today: date | None = None) -> dict:
    """
    Aggregate one patient's prompts dated within the last ``days`` days (today included).

    compliance = band present / reviewed, on-time = on time / received,
    missing = 3 per day minus received.
    """
    get_patient(patient_id)
    start, end = _window(days, today or date.today())

    row = (
        db.session.query(
            func.count(DailyPrompt.id).label("expected"),
            func.count(PhotoSubmission.id).label("received"),
            _count_if(PhotoSubmission.is_on_time.is_(True)).label("on_time"),
            _count_if(PhotoSubmission.band_present.is_(True)).label("band_present"),
            _count_if(PhotoSubmission.reviewer_id.isnot(None)).label("reviewed"),
        )
        .select_from(DailyPrompt)
        .outerjoin(PhotoSubmission, PhotoSubmission.prompt_id == DailyPrompt.id)
        .filter(
            DailyPrompt.patient_id == patient_id,
            DailyPrompt.date >= start,
            DailyPrompt.date <= end,
        )
        .one()
    )

    received = int(row.received)
    reviewed = int(row.reviewed)
    return {
        "expected": int(row.expected),
        "received": received,
        "on_time": int(row.on_time),
        "band_present": int(row.band_present),
        "reviewed": reviewed,
        "compliance_pct": percent(int(row.band_present), reviewed),
        "on_time_pct": percent(int(row.on_time), received),
        "missing": max(days * len(Slot) - received, 0),
    }


def practice_report(practice_id: int, days: int, today: date | None = None) -> list[dict]:
    """Metrics for every active patient of a practice, most compliant first."""
    get_practice(practice_id)
    patients = (
        Patient.query.filter_by(practice_id=practice_id, status="active")
        .order_by(Patient.name)
        .all()
    )
    rows = [
        {"id": p.id, "name": p.name, **patient_metrics(p.id, days, today)}
        for p in patients
    ]
    rows.sort(key=lambda r: -r["compliance_pct"])
    return rows


def patient_daily_report(patient_id: int, days: int, today: date | None = None) -> list[dict]:
    """Per-day breakdown of the three slots, newest day first."""
    get_patient(patient_id)
    start, end = _window(days, today or date.today())

    prompts = (
        DailyPrompt.query.filter(
            DailyPrompt.patient_id == patient_id,
            DailyPrompt.date >= start,
            DailyPrompt.date <= end,
        )
        .order_by(DailyPrompt.date.desc(), DailyPrompt.slot)
        .all()
    )

    by_day: dict[date, dict] = {}
    for prompt in prompts:
        entry = by_day.setdefault(
            prompt.date,
            {"date": prompt.date.isoformat(), "slots": {int(s): None for s in Slot}},
        )
        submission = prompt.submission
        entry["slots"][prompt.slot] = {
            "submitted": submission is not None,
            "is_on_time": submission.is_on_time if submission else None,
            "band_present": submission.band_present if submission else None,
            "reviewed": bool(submission and submission.reviewer_id is not None),
        }
    return list(by_day.values())


def day_review(patient_id: int, day: date, now: datetime | None = None) -> list[dict]:
    """
    The reviewer's view of one day: each prompt with its submission and state.

    Read-only; prompts are not generated here.
    """
    get_patient(patient_id)
    prompts = (
        DailyPrompt.query.filter_by(patient_id=patient_id, date=day)
        .order_by(DailyPrompt.slot)
        .all()
    )
    return [{"prompt": p, "submission": p.submission, "state": prompt_state(p, now)} for p in prompts]


def practice_summary(practice_id: int, days: int = 7, now: datetime | None = None) -> dict:
    """Headline numbers for a practice over submissions made in the last ``days`` days."""
    get_practice(practice_id)
    since = (now or datetime.now()) - timedelta(days=days)

    monitored = Patient.query.filter_by(practice_id=practice_id).count()
    row = (
        db.session.query(
            func.count(PhotoSubmission.id).label("total"),
            _count_if(PhotoSubmission.is_on_time.is_(True)).label("on_time"),
            _count_if(PhotoSubmission.band_present.is_(True)).label("band_present"),
            _count_if(PhotoSubmission.reviewer_id.isnot(None)).label("reviewed"),
        )
        .select_from(PhotoSubmission)
        .join(DailyPrompt, PhotoSubmission.prompt_id == DailyPrompt.id)
        .join(Patient, DailyPrompt.patient_id == Patient.id)
        .filter(Patient.practice_id == practice_id, PhotoSubmission.submitted_at >= since)
        .one()
    )

    total = int(row.total)
    reviewed = int(row.reviewed)
    return {
        "patients_monitored": monitored,
        "compliance_pct": percent(int(row.band_present), reviewed),
        "on_time_pct": percent(int(row.on_time), total),
        "unreviewed_photos": total - reviewed,
    }


def practice_today(practice_id: int, today: date | None = None) -> list[dict]:
    """
    Active patients with today's prompt counts and their unreviewed backlog.

    The backlog counts every unreviewed submission, not only today's; it is
    what the review queue is sorted on.
    """
    get_practice(practice_id)
    today = today or date.today()
    is_today = DailyPrompt.date == today

    rows = (
        db.session.query(
            Patient.id,
            Patient.name,
            Patient.status,
            _count_if(is_today).label("expected_today"),
            _count_if(and_(is_today, PhotoSubmission.id.isnot(None))).label("received_today"),
            _count_if(and_(is_today, PhotoSubmission.is_on_time.is_(True))).label("on_time_today"),
            _count_if(and_(PhotoSubmission.id.isnot(None), PhotoSubmission.reviewer_id.is_(None))).label("unreviewed"),
        )
        .outerjoin(DailyPrompt, DailyPrompt.patient_id == Patient.id)
        .outerjoin(PhotoSubmission, PhotoSubmission.prompt_id == DailyPrompt.id)
        .filter(Patient.practice_id == practice_id, Patient.status == "active")
        .group_by(Patient.id, Patient.name, Patient.status)
        .order_by(Patient.name)
        .all()
    )
    return [
        {
            "id": r.id,
            "name": r.name,
            "status": r.status,
            "expected_today": int(r.expected_today),
            "received_today": int(r.received_today),
            "on_time_today": int(r.on_time_today),
            "unreviewed": int(r.unreviewed),
        }
        for r in rows
    ]


def _on_time_counts(patient_id: int, start: date | None = None, end: date | None = None) -> tuple[int, int]:
    q = (
        db.session.query(
            func.count(PhotoSubmission.id).label("total"),
            _count_if(PhotoSubmission.is_on_time.is_(True)).label("on_time"),
        )
        .select_from(PhotoSubmission)
        .join(DailyPrompt, PhotoSubmission.prompt_id == DailyPrompt.id)
        .filter(DailyPrompt.patient_id == patient_id)
    )
    if start is not None:
        q = q.filter(DailyPrompt.date >= start)
    if end is not None:
        q = q.filter(DailyPrompt.date <= end)
    row = q.one()
    return int(row.on_time), int(row.total)


def practice_ranking(practice_id: int, patient_id: int) -> int:
    """
    Percent rank of a patient's all-time on-time rate within the practice.

    0 is the best patient, 100 the worst; a tie shares the better rank.
    Patients without any prompt yet are unranked and get 50.
    """
    rows = (
        db.session.query(
            DailyPrompt.patient_id,
            func.count(PhotoSubmission.id).label("total"),
            _count_if(PhotoSubmission.is_on_time.is_(True)).label("on_time"),
        )
        .select_from(DailyPrompt)
        .join(Patient, DailyPrompt.patient_id == Patient.id)
        .outerjoin(PhotoSubmission, PhotoSubmission.prompt_id == DailyPrompt.id)
        .filter(Patient.practice_id == practice_id)
        .group_by(DailyPrompt.patient_id)
        .all()
    )
    rates = {r.patient_id: (int(r.on_time) / int(r.total) if r.total else 0.0) for r in rows}
    if patient_id not in rates:
        return 50
    ahead = sum(1 for rate in rates.values() if rate > rates[patient_id])
    return percent(ahead, len(rates) - 1)


def patient_stats(patient_id: int, today: date | None = None, now: datetime | None = None) -> dict:
    """All-time snap stats for the patient app, with week-over-week on-time change."""
    patient = get_patient(patient_id)
    now = now or datetime.now()
    today = today or now.date()

    on_time, total = _on_time_counts(patient_id)

    this_week = _on_time_counts(patient_id, today - timedelta(days=6), today)
    last_week = _on_time_counts(patient_id, today - timedelta(days=13), today - timedelta(days=7))
    rates = [100 * part / whole if whole else 0.0 for part, whole in (this_week, last_week)]
    change = math.floor(rates[0] - rates[1] + 0.5)

    enrolled = (now - patient.created_at).days if patient.created_at else 0
    return {
        "patient": {
            "id": patient.id,
            "name": patient.name,
            "practice": patient.practice.name,
        },
        "stats": {
            "on_time_pct": percent(on_time, total),
            "on_time_change": change,
            "on_time_change_label": f"{change:+d}%",
            "total_snaps": total,
            "total_days": max(enrolled, 1),
            "ranking": practice_ranking(patient.practice_id, patient_id),
        },
    }
