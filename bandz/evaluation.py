"""
Submission evaluation: timeliness at submit time, band presence at review time.

The two judgments are independent. ``is_on_time`` is frozen when the
submission row is created; reviews only ever write the band-presence columns.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError

from .errors import Conflict, NotFound
from .extensions import db
from .models import DailyPrompt, Orthodontist, PhotoSubmission
from .patients import get_patient

log = logging.getLogger(__name__)

PENDING = "pending"
MISSED = "missed"
SUBMITTED = "submitted"
REVIEWED = "reviewed"


def is_on_time(submitted_at: datetime, deadline_at: datetime | None) -> bool:
    """On-time means at or before the deadline; a prompt without one never counts as late."""
    if deadline_at is None:
        return True
    return submitted_at <= deadline_at


def get_prompt(prompt_id: int) -> DailyPrompt:
    prompt = db.session.get(DailyPrompt, prompt_id)
    if prompt is None:
        raise NotFound("Prompt not found", {"prompt_id": prompt_id})
    return prompt


def get_orthodontist(orthodontist_id: int) -> Orthodontist:
    reviewer = db.session.get(Orthodontist, orthodontist_id)
    if reviewer is None:
        raise NotFound("Orthodontist not found", {"orthodontist_id": orthodontist_id})
    return reviewer


def submit_photo(prompt_id: int, image_ref: str, now: datetime | None = None) -> PhotoSubmission:
    """
    Record the photo for a prompt and stamp it on-time or late.

    A prompt takes one submission; a second attempt raises ``Conflict``.
    """
    prompt = get_prompt(prompt_id)
    if prompt.submission is not None:
        raise Conflict("Prompt already has a submission", {"prompt_id": prompt_id})

    submitted_at = now or datetime.now()
    submission = PhotoSubmission(
        prompt_id=prompt.id,
        image_ref=image_ref,
        submitted_at=submitted_at,
        is_on_time=is_on_time(submitted_at, prompt.deadline_at),
    )
    db.session.add(submission)
    try:
        db.session.commit()
    except IntegrityError:
        # lost a race with a concurrent submit for the same prompt
        db.session.rollback()
        raise Conflict("Prompt already has a submission", {"prompt_id": prompt_id})

    log.info(
        "Photo submitted for prompt %s (%s)",
        prompt_id,
        "on time" if submission.is_on_time else "late",
    )
    return submission


def record_review(
    prompt_id: int,
    band_present: bool,
    reviewer_id: int,
    note: str | None = None,
    now: datetime | None = None,
) -> PhotoSubmission:
    """Set the band-presence judgment for a prompt's submission. Later calls overwrite earlier ones."""
    submission = PhotoSubmission.query.filter_by(prompt_id=prompt_id).first()
    if submission is None:
        raise NotFound("No submission found for this prompt", {"prompt_id": prompt_id})
    get_orthodontist(reviewer_id)

    submission.band_present = band_present
    submission.reviewer_id = reviewer_id
    submission.review_note = note or None
    submission.reviewed_at = now or datetime.now()
    db.session.commit()

    log.info("Prompt %s reviewed by %s: band_present=%s", prompt_id, reviewer_id, band_present)
    return submission


def mark_all_reviewed(patient_id: int, day: date, reviewer_id: int, now: datetime | None = None) -> int:
    """
    Stamp reviewer and review time on every unreviewed submission of a patient's day.

    ``band_present`` is left as it is. Already reviewed submissions are skipped,
    so the returned count drops to zero on a repeated call.
    """
    get_patient(patient_id)
    get_orthodontist(reviewer_id)
    reviewed_at = now or datetime.now()

    pending = (
        PhotoSubmission.query.join(DailyPrompt)
        .filter(
            DailyPrompt.patient_id == patient_id,
            DailyPrompt.date == day,
            PhotoSubmission.reviewer_id.is_(None),
        )
        .all()
    )
    for submission in pending:
        submission.reviewer_id = reviewer_id
        submission.reviewed_at = reviewed_at
    db.session.commit()

    log.info("Marked %d submissions reviewed for patient %s on %s", len(pending), patient_id, day.isoformat())
    return len(pending)


def prompt_state(prompt: DailyPrompt, now: datetime | None = None) -> str:
    submission = prompt.submission
    if submission is None:
        now = now or datetime.now()
        if prompt.deadline_at is not None and now > prompt.deadline_at:
            return MISSED
        return PENDING
    if submission.reviewer_id is not None:
        return REVIEWED
    return SUBMITTED
