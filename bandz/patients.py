import logging

from .errors import InvalidInput, NotFound
from .extensions import db
from .models import PATIENT_STATUSES, Patient, Practice

log = logging.getLogger(__name__)


def get_patient(patient_id: int) -> Patient:
    patient = db.session.get(Patient, patient_id)
    if patient is None:
        raise NotFound("Patient not found", {"patient_id": patient_id})
    return patient


def get_practice(practice_id: int) -> Practice:
    practice = db.session.get(Practice, practice_id)
    if practice is None:
        raise NotFound("Practice not found", {"practice_id": practice_id})
    return practice


def set_patient_status(patient_id: int, status: str) -> Patient:
    """Pause or resume a patient. Patients are never deleted."""
    if status not in PATIENT_STATUSES:
        raise InvalidInput("Invalid status", {"status": status, "allowed": list(PATIENT_STATUSES)})
    patient = get_patient(patient_id)
    patient.status = status
    db.session.commit()
    log.info("Patient %s set to %s", patient_id, status)
    return patient
