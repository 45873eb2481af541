from datetime import datetime, time, timedelta

import pytest

from bandz.errors import NotFound
from bandz.evaluation import mark_all_reviewed, record_review, submit_photo
from bandz.extensions import db
from bandz.models import Patient
from bandz.reports import (
    day_review,
    patient_daily_report,
    patient_metrics,
    patient_stats,
    percent,
    practice_ranking,
    practice_report,
    practice_summary,
    practice_today,
)
from bandz.scheduling import ensure_daily_prompts


def test_percent():
    assert percent(0, 0) == 0
    assert percent(2, 3) == 67
    assert percent(3, 3) == 100


def test_percent_rounds_halves_up():
    assert percent(1, 8) == 13
    assert percent(5, 8) == 63
    assert percent(1, 200) == 1


@pytest.fixture
def history(patient, orthodontist, day, rng):
    """Two days of prompts: day one fully submitted and reviewed, day two one late snap."""
    first = ensure_daily_prompts(patient.id, day, rng)
    for p in first:
        submit_photo(p.id, "img", now=p.notification_at)
    record_review(first[0].id, True, orthodontist.id)
    record_review(first[1].id, True, orthodontist.id)
    record_review(first[2].id, False, orthodontist.id)

    second = ensure_daily_prompts(patient.id, day + timedelta(days=1), rng)
    submit_photo(second[0].id, "img", now=second[0].deadline_at + timedelta(minutes=3))
    return first, second


def test_patient_metrics(patient, day, history):
    m = patient_metrics(patient.id, 7, today=day + timedelta(days=1))

    assert m["expected"] == 6
    assert m["received"] == 4
    assert m["on_time"] == 3
    assert m["reviewed"] == 3
    assert m["band_present"] == 2
    assert m["compliance_pct"] == 67
    assert m["on_time_pct"] == 75
    assert m["missing"] == 17


def test_patient_metrics_window_excludes_older_days(patient, day, history):
    m = patient_metrics(patient.id, 1, today=day + timedelta(days=1))

    assert m["expected"] == 3
    assert m["received"] == 1
    assert m["on_time_pct"] == 0
    assert m["compliance_pct"] == 0


def test_bulk_marked_counts_as_reviewed(patient, orthodontist, day, history):
    mark_all_reviewed(patient.id, day + timedelta(days=1), orthodontist.id)
    m = patient_metrics(patient.id, 7, today=day + timedelta(days=1))
    assert m["reviewed"] == 4
    assert m["compliance_pct"] == 50


def test_practice_report_orders_by_compliance(practice, patient, orthodontist, day, history):
    paused = Patient(practice_id=practice.id, name="Paused Pat", status="paused")
    idle = Patient(practice_id=practice.id, name="Idle Ida")
    db.session.add_all([paused, idle])
    db.session.commit()

    rows = practice_report(practice.id, 7, today=day + timedelta(days=1))

    assert [r["name"] for r in rows] == ["Alex Kim", "Idle Ida"]
    assert rows[0]["compliance_pct"] == 67
    assert rows[1]["missing"] == 21


def test_daily_report(patient, day, history):
    report = patient_daily_report(patient.id, 7, today=day + timedelta(days=1))

    assert [r["date"] for r in report] == [(day + timedelta(days=1)).isoformat(), day.isoformat()]
    newest = report[0]["slots"]
    assert newest[1] == {"submitted": True, "is_on_time": False, "band_present": None, "reviewed": False}
    assert newest[2]["submitted"] is False
    assert report[1]["slots"][3]["band_present"] is False


def test_day_review_does_not_create_prompts(patient, day):
    assert day_review(patient.id, day) == []


def test_day_review_states(patient, day, history):
    items = day_review(patient.id, day + timedelta(days=1), now=history[1][2].deadline_at + timedelta(minutes=1))
    assert [i["state"] for i in items] == ["submitted", "missed", "missed"]


def test_unknown_patient(app):
    with pytest.raises(NotFound):
        patient_metrics(1000, 7)


def test_compliance_half_rounds_up(patient, orthodontist, day, rng):
    prompts = ensure_daily_prompts(patient.id, day, rng) + ensure_daily_prompts(patient.id, day + timedelta(days=1), rng)
    prompts += ensure_daily_prompts(patient.id, day + timedelta(days=2), rng)[:2]
    for i, p in enumerate(prompts):
        submit_photo(p.id, "img", now=p.notification_at)
        record_review(p.id, i == 0, orthodontist.id)

    m = patient_metrics(patient.id, 7, today=day + timedelta(days=2))

    assert m["reviewed"] == 8
    assert m["compliance_pct"] == 13


class TestDashboard:
    """Practice-wide headline numbers and the per-patient list for today."""

    @pytest.fixture
    def others(self, practice):
        paused = Patient(practice_id=practice.id, name="Paused Pat", status="paused")
        idle = Patient(practice_id=practice.id, name="Idle Ida")
        db.session.add_all([paused, idle])
        db.session.commit()
        return paused, idle

    def test_summary_counts_recent_submissions(self, practice, day, history, others):
        s = practice_summary(practice.id, 7, now=datetime.combine(day + timedelta(days=1), time(23, 0)))

        assert s == {
            "patients_monitored": 3,
            "compliance_pct": 67,
            "on_time_pct": 75,
            "unreviewed_photos": 1,
        }

    def test_summary_window_drops_old_submissions(self, practice, day, history):
        s = practice_summary(practice.id, 7, now=datetime.combine(day + timedelta(days=30), time(9, 0)))
        assert s["on_time_pct"] == 0
        assert s["unreviewed_photos"] == 0
        assert s["patients_monitored"] == 1

    def test_today_lists_active_patients(self, practice, patient, day, history, others):
        rows = practice_today(practice.id, today=day + timedelta(days=1))

        assert [r["name"] for r in rows] == ["Alex Kim", "Idle Ida"]
        assert rows[0] == {
            "id": patient.id,
            "name": "Alex Kim",
            "status": "active",
            "expected_today": 3,
            "received_today": 1,
            "on_time_today": 0,
            "unreviewed": 1,
        }
        assert rows[1]["expected_today"] == 0
        assert rows[1]["unreviewed"] == 0

    def test_unknown_practice(self, app):
        with pytest.raises(NotFound):
            practice_today(404)


class TestPatientStats:

    def test_ranking_within_practice(self, practice, patient, day, history, rng):
        punctual = Patient(practice_id=practice.id, name="Bo Punctual")
        newcomer = Patient(practice_id=practice.id, name="New Nia")
        db.session.add_all([punctual, newcomer])
        db.session.commit()
        for p in ensure_daily_prompts(punctual.id, day, rng):
            submit_photo(p.id, "img", now=p.notification_at)

        assert practice_ranking(practice.id, punctual.id) == 0
        assert practice_ranking(practice.id, patient.id) == 100
        assert practice_ranking(practice.id, newcomer.id) == 50

    def test_stats(self, patient, day, history):
        today = day + timedelta(days=1)
        body = patient_stats(patient.id, today=today, now=datetime.combine(today, time(12, 0)))

        assert body["patient"] == {"id": patient.id, "name": "Alex Kim", "practice": "Smile Orthodontics"}
        stats = body["stats"]
        assert stats["total_snaps"] == 4
        assert stats["on_time_pct"] == 75
        assert stats["on_time_change"] == 75
        assert stats["on_time_change_label"] == "+75%"
        assert stats["total_days"] >= 1
        assert stats["ranking"] == 0

    def test_change_against_last_week(self, patient, day, history):
        today = day + timedelta(days=7)
        stats = patient_stats(patient.id, today=today, now=datetime.combine(today, time(12, 0)))["stats"]
        # day one (3/3 on time) fell into last week; this week has only the late snap
        assert stats["on_time_change"] == -100
        assert stats["on_time_change_label"] == "-100%"
