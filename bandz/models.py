# bandz/models.py
import enum
from datetime import datetime
from .extensions import db


class Slot(enum.IntEnum):
    MORNING = 1
    MIDDAY = 2
    EVENING = 3


PATIENT_STATUSES = ("active", "paused")


class Practice(db.Model):
    __tablename__ = "practices"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.now)


class Orthodontist(db.Model):
    __tablename__ = "orthodontists"
    id = db.Column(db.Integer, primary_key=True)
    practice_id = db.Column(db.Integer, db.ForeignKey("practices.id"), nullable=False, index=True)
    name = db.Column(db.String, nullable=False)
    email = db.Column(db.String, unique=True)
    created_at = db.Column(db.DateTime, default=datetime.now)


class Patient(db.Model):
    __tablename__ = "patients"
    id = db.Column(db.Integer, primary_key=True)
    practice_id = db.Column(db.Integer, db.ForeignKey("practices.id"), nullable=False, index=True)
    name = db.Column(db.String, nullable=False)
    status = db.Column(db.String, nullable=False, default="active")
    created_at = db.Column(db.DateTime, default=datetime.now)

    practice = db.relationship("Practice")


class DailyPrompt(db.Model):
    __tablename__ = "daily_prompts"
    __table_args__ = (
        db.UniqueConstraint("patient_id", "date", "slot", name="uq_daily_prompt_patient_date_slot"),
    )
    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.Integer, db.ForeignKey("patients.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    slot = db.Column(db.Integer, nullable=False)
    notification_at = db.Column(db.DateTime, nullable=False)
    deadline_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.now)

    submission = db.relationship("PhotoSubmission", back_populates="prompt", uselist=False)


class PhotoSubmission(db.Model):
    __tablename__ = "photo_submissions"
    id = db.Column(db.Integer, primary_key=True)
    prompt_id = db.Column(db.Integer, db.ForeignKey("daily_prompts.id"), nullable=False, unique=True)
    image_ref = db.Column(db.String, nullable=False)
    submitted_at = db.Column(db.DateTime, nullable=False)
    is_on_time = db.Column(db.Boolean, nullable=False)
    band_present = db.Column(db.Boolean)
    reviewer_id = db.Column(db.Integer, db.ForeignKey("orthodontists.id"))
    review_note = db.Column(db.Text)
    reviewed_at = db.Column(db.DateTime)

    prompt = db.relationship("DailyPrompt", back_populates="submission")


class ScheduleSlot(db.Model):
    __tablename__ = "schedule_slots"
    __table_args__ = (
        db.UniqueConstraint("practice_id", "date", "slot", name="uq_schedule_slot_practice_date_slot"),
    )
    id = db.Column(db.Integer, primary_key=True)
    practice_id = db.Column(db.Integer, db.ForeignKey("practices.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    slot = db.Column(db.Integer, nullable=False)
    notification_time = db.Column(db.Time, nullable=False)
