# bandz/schemas.py
from marshmallow import Schema, fields, validate

from .models import PATIENT_STATUSES

SLOT_RANGE = validate.Range(min=1, max=3)


# ---- request payloads ----

class PhotoSubmitSchema(Schema):
    image_ref = fields.String(required=True, validate=validate.Length(min=1))


class ReviewSchema(Schema):
    band_present = fields.Boolean(required=True)
    note = fields.String(load_default=None, allow_none=True)


class MarkAllReviewedSchema(Schema):
    patient_id = fields.Integer(required=True)
    date = fields.Date(required=True)


class WeekStartSchema(Schema):
    week_start = fields.Date(required=True)


class SlotUpdateSchema(Schema):
    date = fields.Date(required=True)
    slot = fields.Integer(required=True, validate=SLOT_RANGE)
    time = fields.Time(required=True)


class PatientStatusSchema(Schema):
    status = fields.String(required=True, validate=validate.OneOf(PATIENT_STATUSES))


# ---- responses ----

class SubmissionSchema(Schema):
    id = fields.Integer()
    prompt_id = fields.Integer()
    image_ref = fields.String()
    submitted_at = fields.DateTime()
    is_on_time = fields.Boolean()
    band_present = fields.Boolean(allow_none=True)
    reviewer_id = fields.Integer(allow_none=True)
    review_note = fields.String(allow_none=True)
    reviewed_at = fields.DateTime(allow_none=True)


class PromptSchema(Schema):
    id = fields.Integer()
    patient_id = fields.Integer()
    date = fields.Date()
    slot = fields.Integer()
    notification_at = fields.DateTime()
    deadline_at = fields.DateTime(allow_none=True)
    submission = fields.Nested(SubmissionSchema, allow_none=True)


class ScheduleSlotSchema(Schema):
    date = fields.Date()
    slot = fields.Integer()
    notification_time = fields.Time()


class PatientSchema(Schema):
    id = fields.Integer()
    practice_id = fields.Integer()
    name = fields.String()
    status = fields.String()
