# bandz/routes/api_v1.py
from __future__ import annotations
from flask import Blueprint, request, current_app
from datetime import date
from ..errors import InvalidInput
from ..evaluation import mark_all_reviewed, record_review, submit_photo
from ..patients import get_patient, set_patient_status
from ..reports import (
    day_review,
    patient_daily_report,
    patient_metrics,
    patient_stats,
    practice_report,
    practice_summary,
    practice_today,
)
from ..scheduling import (
    DEADLINE_OFFSET,
    SLOT_WINDOWS,
    ensure_daily_prompts,
    generate_week_schedule,
    parse_slot,
    randomize_week_schedule,
    update_schedule_slot,
)
from ..schemas import (
    MarkAllReviewedSchema,
    PatientSchema,
    PatientStatusSchema,
    PhotoSubmitSchema,
    PromptSchema,
    ReviewSchema,
    ScheduleSlotSchema,
    SlotUpdateSchema,
    SubmissionSchema,
    WeekStartSchema,
)

api_v1_bp = Blueprint("api_v1", __name__, url_prefix="/api/v1")

MAX_REPORT_DAYS = 365


def header_id(name: str) -> int:
    """
    Read a required integer identity header (X-Practice-Id, X-Orthodontist-Id).

    Identity comes from the caller's auth layer; nothing is defaulted here.
    """
    raw = request.headers.get(name)
    if not raw:
        raise InvalidInput(f"{name} header required")
    try:
        return int(raw)
    except ValueError:
        raise InvalidInput(f"Invalid {name}: {raw}")


def parse_date(s: str | None) -> date:
    """Parse an ISO date (YYYY-MM-DD); missing means today."""
    if not s:
        return date.today()
    try:
        return date.fromisoformat(s)
    except ValueError:
        raise InvalidInput(f"Invalid date: {s}")


def parse_days() -> int:
    raw = request.args.get("days")
    if raw is None:
        return current_app.config["REPORT_DEFAULT_DAYS"]
    try:
        days = int(raw)
    except ValueError:
        raise InvalidInput(f"Invalid days: {raw}")
    if not 1 <= days <= MAX_REPORT_DAYS:
        raise InvalidInput(f"days must be between 1 and {MAX_REPORT_DAYS}")
    return days


# ---------------- Prompts & submissions ----------------

@api_v1_bp.get("/patients/<int:patient_id>/prompts")
def get_prompts(patient_id):
    """Return the day's three prompts (default today), generating them on first request."""
    day = parse_date(request.args.get("date"))
    prompts = ensure_daily_prompts(patient_id, day)
    return {"date": day.isoformat(), "prompts": PromptSchema(many=True).dump(prompts)}, 200


@api_v1_bp.post("/prompts/<int:prompt_id>/submission")
def post_submission(prompt_id):
    """Patient submits the photo for a prompt; on-time is decided now and never again."""
    body = PhotoSubmitSchema().load(request.get_json(silent=True) or {})
    submission = submit_photo(prompt_id, body["image_ref"])
    return SubmissionSchema().dump(submission), 201


@api_v1_bp.post("/prompts/<int:prompt_id>/review")
def post_review(prompt_id):
    reviewer_id = header_id("X-Orthodontist-Id")
    body = ReviewSchema().load(request.get_json(silent=True) or {})
    submission = record_review(prompt_id, body["band_present"], reviewer_id, note=body["note"])
    return SubmissionSchema().dump(submission), 200


@api_v1_bp.post("/review/mark-all")
def post_mark_all():
    """Mark every unreviewed submission of a patient's day as reviewed."""
    reviewer_id = header_id("X-Orthodontist-Id")
    body = MarkAllReviewedSchema().load(request.get_json(silent=True) or {})
    marked = mark_all_reviewed(body["patient_id"], body["date"], reviewer_id)
    return {"success": True, "marked": marked, "marked_count": marked}, 200


# ---------------- Patients ----------------

@api_v1_bp.patch("/patients/<int:patient_id>/status")
def patch_status(patient_id):
    body = PatientStatusSchema().load(request.get_json(silent=True) or {})
    patient = set_patient_status(patient_id, body["status"])
    return PatientSchema().dump(patient), 200


@api_v1_bp.get("/patients/<int:patient_id>/review")
def get_day_review(patient_id):
    day = parse_date(request.args.get("date"))
    items = []
    for entry in day_review(patient_id, day):
        item = PromptSchema().dump(entry["prompt"])
        item["state"] = entry["state"]
        items.append(item)
    return {"date": day.isoformat(), "prompts": items}, 200


@api_v1_bp.get("/patients/<int:patient_id>/metrics")
def get_metrics(patient_id):
    days = parse_days()
    patient = get_patient(patient_id)
    return {
        "patient": PatientSchema().dump(patient),
        "days": days,
        "metrics": patient_metrics(patient_id, days),
    }, 200


@api_v1_bp.get("/patients/<int:patient_id>/report")
def get_patient_report(patient_id):
    days = parse_days()
    return {"days": days, "results": patient_daily_report(patient_id, days)}, 200


@api_v1_bp.get("/patients/<int:patient_id>/stats")
def get_patient_stats(patient_id):
    """All-time stats shown in the patient app."""
    return patient_stats(patient_id), 200


# ---------------- Practice schedule ----------------

@api_v1_bp.get("/schedule")
def get_schedule():
    practice_id = header_id("X-Practice-Id")
    week_start = parse_date(request.args.get("week_start"))
    slots = generate_week_schedule(practice_id, week_start)
    return {"week_start": week_start.isoformat(), "slots": ScheduleSlotSchema(many=True).dump(slots)}, 200


@api_v1_bp.post("/schedule/randomize")
def post_randomize():
    """Throw away the week's times, manual edits included, and draw new ones."""
    practice_id = header_id("X-Practice-Id")
    body = WeekStartSchema().load(request.get_json(silent=True) or {})
    slots = randomize_week_schedule(practice_id, body["week_start"])
    return {"week_start": body["week_start"].isoformat(), "slots": ScheduleSlotSchema(many=True).dump(slots)}, 200


@api_v1_bp.put("/schedule/slot")
def put_slot():
    practice_id = header_id("X-Practice-Id")
    body = SlotUpdateSchema().load(request.get_json(silent=True) or {})
    cell = update_schedule_slot(practice_id, body["date"], parse_slot(body["slot"]), body["time"])
    return ScheduleSlotSchema().dump(cell), 200


# ---------------- Reports & settings ----------------

@api_v1_bp.get("/reports/practice")
def get_practice_report():
    practice_id = header_id("X-Practice-Id")
    days = parse_days()
    return {"days": days, "results": practice_report(practice_id, days)}, 200


@api_v1_bp.get("/dashboard/stats")
def get_dashboard_stats():
    practice_id = header_id("X-Practice-Id")
    days = parse_days()
    return {"days": days, **practice_summary(practice_id, days)}, 200


@api_v1_bp.get("/dashboard/patients")
def get_dashboard_patients():
    """Active patients with today's snap counts; feeds the review queue."""
    practice_id = header_id("X-Practice-Id")
    day = parse_date(request.args.get("date"))
    return {"date": day.isoformat(), "results": practice_today(practice_id, day)}, 200


@api_v1_bp.get("/settings")
def get_settings():
    """Photo windows and deadline as actually applied by the scheduler."""
    windows = {
        slot.name.lower(): {"slot": int(slot), "start": f"{start:02d}:00", "end": f"{end:02d}:00"}
        for slot, (start, end) in SLOT_WINDOWS.items()
    }
    return {
        "photo_windows": windows,
        "deadline_minutes": int(DEADLINE_OFFSET.total_seconds() // 60),
    }, 200
