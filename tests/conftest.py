"""
Global test fixtures for pytest.

Every test gets a fresh app on an in-memory SQLite database with one
practice, one orthodontist and one active patient already in place.
"""
import random
from datetime import date

import pytest

from bandz import create_app
from bandz.config import TestConfig
from bandz.extensions import db
from bandz.models import Orthodontist, Patient, Practice

DAY = date(2026, 3, 2)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def practice(app):
    practice = Practice(name="Smile Orthodontics")
    db.session.add(practice)
    db.session.commit()
    return practice


@pytest.fixture
def orthodontist(practice):
    ortho = Orthodontist(practice_id=practice.id, name="Dr. Rivera", email="rivera@example.com")
    db.session.add(ortho)
    db.session.commit()
    return ortho


@pytest.fixture
def patient(practice):
    patient = Patient(practice_id=practice.id, name="Alex Kim")
    db.session.add(patient)
    db.session.commit()
    return patient


@pytest.fixture
def day():
    return DAY
