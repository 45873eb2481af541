import logging
from flask import Blueprint, request
from ..extensions import db
from ..models import Orthodontist, Patient, Practice

log = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

@admin_bp.route("/init-db", methods=["POST", "GET"])
def init_db():
    if request.method == "GET" and request.args.get("confirm") != "yes":
        return {"message": "Use POST or /admin/init-db?confirm=yes (local only)"}, 200
    db.create_all()
    log.info("Tables created on %s", db.engine.url.render_as_string(hide_password=True))
    return {"status": "initialized"}, 201

@admin_bp.post("/seed-demo")
def seed_demo():
    """Create one practice with an orthodontist and a patient for local clients."""
    data = request.get_json(silent=True) or {}
    practice = Practice(name=data.get("practice_name", "Demo Orthodontics"))
    db.session.add(practice)
    db.session.flush()

    ortho = Orthodontist(practice_id=practice.id, name=data.get("orthodontist_name", "Dr. Demo"))
    patient = Patient(practice_id=practice.id, name=data.get("patient_name", "Demo Patient"))
    db.session.add_all([ortho, patient])
    db.session.commit()
    log.info("Seeded demo practice %s", practice.id)
    return {"practice_id": practice.id, "orthodontist_id": ortho.id, "patient_id": patient.id}, 201
