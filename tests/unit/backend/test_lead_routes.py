"""
Unit tests for the lead endpoints.

Tests the Flask blueprint routes:
- POST /api/leads (public)
- GET /api/leads (kanban view, archived, search)
- GET /api/leads/dashboard
- GET/PATCH/DELETE /api/leads/<id>
- PUT /api/leads/<id>/archive, /unarchive
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..', 'backend'))

from datetime import datetime, timedelta

import pytest

from clinic_crm.db.sqlite import get_db_session
from clinic_crm.errors import BadRequestError
from clinic_crm.models import ClinicStatus, Lead
from clinic_crm.services.lead_service import period_cutoff


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def submit_lead(client, default_clinic):
    def _submit(name="Maria Silva", phone="(11) 98888-7777", **extra):
        response = client.post("/api/leads", json={"name": name, "phone": phone, **extra})
        assert response.status_code == 201, response.get_json()
        return response.get_json()["id"]
    return _submit


def set_lead(lead_id, **fields):
    with get_db_session() as session:
        session.query(Lead).filter(Lead.id == lead_id).update(fields)
        session.commit()


def kanban(client, header, period="all"):
    return client.get(f"/api/leads?view=kanban&period={period}", headers=header).get_json()


# =============================================================================
# POST /api/leads
# =============================================================================

class TestPublicSubmission:

    def test_creates_novo_lead(self, client, auth_header, submit_lead):
        lead_id = submit_lead(type="retorno")
        lead = client.get(f"/api/leads/{lead_id}", headers=auth_header).get_json()["data"]
        assert lead["status"] == "novo"
        assert lead["type"] == "retorno"
        assert lead["phone"] == "11988887777"

    def test_default_type(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        assert client.get(f"/api/leads/{lead_id}", headers=auth_header).get_json()["data"]["type"] == "geral"

    @pytest.mark.parametrize("body", [
        {"name": "M", "phone": "11988887777"},
        {"name": "Maria", "phone": "123"},
        {"name": "Maria", "phone": "11988887777", "type": "vip"},
        {},
    ])
    def test_validation(self, client, default_clinic, body):
        response = client.post("/api/leads", json=body)
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_clinic_slug(self, client, make_clinic, make_user):
        clinic = make_clinic("sorriso")
        _, header = make_user("sorriso-staff", clinic_id=clinic.id)
        client.post("/api/leads", json={"name": "Maria", "phone": "11988887777", "clinic": "sorriso"})
        assert len(kanban(client, header)) == 1

    @pytest.mark.parametrize("slug", ["missing", "closed"])
    def test_unknown_or_suspended_clinic(self, client, make_clinic, slug):
        make_clinic("closed", status=ClinicStatus.SUSPENDED)
        response = client.post("/api/leads", json={"name": "Maria", "phone": "11988887777", "clinic": slug})
        assert response.status_code == 404

    def test_public_submission_not_audited(self, client, submit_lead):
        from clinic_crm.models import EventLog
        submit_lead()
        with get_db_session() as session:
            assert session.query(EventLog).count() == 0


# =============================================================================
# GET /api/leads
# =============================================================================

class TestKanbanListing:

    def test_pipeline_order(self, client, auth_header, submit_lead):
        first = submit_lead("Ana Souza")
        second = submit_lead("Bruno Lima")
        third = submit_lead("Carla Dias")
        client.patch(f"/api/leads/{first}", json={"status": "agendado", "appointment_date": datetime.utcnow().isoformat()}, headers=auth_header)
        client.patch(f"/api/leads/{third}", json={"status": "em_atendimento"}, headers=auth_header)

        rows = kanban(client, auth_header)
        assert [row["id"] for row in rows] == [second, third, first]

    def test_archived_hidden(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        client.delete(f"/api/leads/{lead_id}", headers=auth_header)
        assert kanban(client, auth_header) == []

    def test_period_filter(self, client, auth_header, submit_lead):
        fresh = submit_lead("Ana Souza")
        old_scheduled = submit_lead("Bruno Lima")
        old_finished = submit_lead("Carla Dias")
        recent_finished = submit_lead("Davi Reis")

        long_ago = datetime.utcnow() - timedelta(days=40)
        set_lead(fresh, created_at=long_ago)
        set_lead(old_scheduled, status="agendado", appointment_date=long_ago)
        set_lead(old_finished, status="finalizado", attendance_status="compareceu", created_at=long_ago, updated_at=long_ago)
        set_lead(recent_finished, status="finalizado", attendance_status="compareceu")

        ids = {row["id"] for row in kanban(client, auth_header, period="7days")}
        assert ids == {fresh, recent_finished}

        ids = {row["id"] for row in kanban(client, auth_header, period="all")}
        assert ids == {fresh, old_scheduled, old_finished, recent_finished}

    def test_search_and_archived_listing(self, client, auth_header, submit_lead):
        keep = submit_lead("Maria Silva")
        gone = submit_lead("Joana Prado", phone="21977776666")
        client.put(f"/api/leads/{gone}/archive", json={"archive_reason": "Duplicate"}, headers=auth_header)

        rows = client.get("/api/leads?search=Maria", headers=auth_header).get_json()
        assert [row["id"] for row in rows] == [keep]

        rows = client.get("/api/leads?show_archived=true", headers=auth_header).get_json()
        assert [(row["id"], row["archive_reason"]) for row in rows] == [(gone, "Duplicate")]


class TestPeriodCutoff:

    def test_cutoffs(self):
        now = datetime(2026, 10, 18, 15, 30)
        assert period_cutoff("all", now) is None
        assert period_cutoff(None, now) is None
        assert period_cutoff("today", now) == datetime(2026, 10, 18)
        assert period_cutoff("thisMonth", now) == datetime(2026, 10, 1)
        assert period_cutoff("7days", now) == now - timedelta(days=7)
        assert period_cutoff("30days", now) == now - timedelta(days=30)

    def test_unknown_period_rejected(self):
        with pytest.raises(BadRequestError) as exc_info:
            period_cutoff("bogus")
        assert exc_info.value.code == "INVALID_PERIOD"

    def test_unknown_period_over_http(self, client, auth_header):
        response = client.get("/api/leads?view=kanban&period=fortnight", headers=auth_header)
        assert response.status_code == 400
        assert response.get_json()["code"] == "INVALID_PERIOD"


# =============================================================================
# PATCH /api/leads/<id>
# =============================================================================

class TestUpdateLead:

    def test_status_transition(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        response = client.patch(f"/api/leads/{lead_id}", json={"status": "em_atendimento"}, headers=auth_header)
        assert response.status_code == 200
        assert response.get_json()["status"] == "em_atendimento"

    def test_finalize_requires_outcome(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        response = client.patch(f"/api/leads/{lead_id}", json={"status": "finalizado"}, headers=auth_header)
        assert response.status_code == 400

    def test_finalize_then_correct_outcome(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        client.patch(
            f"/api/leads/{lead_id}",
            json={"status": "finalizado", "attendance_status": "compareceu"},
            headers=auth_header,
        )
        response = client.patch(f"/api/leads/{lead_id}", json={"attendance_status": "remarcado"}, headers=auth_header)
        assert response.get_json()["attendance_status"] == "remarcado"

    def test_outcome_alone_rejected_before_finalizado(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        response = client.patch(f"/api/leads/{lead_id}", json={"attendance_status": "compareceu"}, headers=auth_header)
        assert response.status_code == 400

    def test_schedule_fields(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        response = client.patch(
            f"/api/leads/{lead_id}",
            json={"appointment_date": "2026-10-20T14:00:00", "doctor": "Dr. Silva", "notes": "Bring exams"},
            headers=auth_header,
        )
        assert response.status_code == 200
        lead = client.get(f"/api/leads/{lead_id}", headers=auth_header).get_json()["data"]
        assert lead["appointment_date"].startswith("2026-10-20T14:00")
        assert lead["doctor"] == "Dr. Silva"

    def test_nothing_to_update(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        assert client.patch(f"/api/leads/{lead_id}", json={"name": "x"}, headers=auth_header).status_code == 400

    def test_archived_not_accepted_as_status(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        response = client.patch(f"/api/leads/{lead_id}", json={"status": "archived"}, headers=auth_header)
        assert response.status_code == 400
        assert response.get_json()["code"] == "INVALID_STATUS"

    def test_other_clinic_cannot_update(self, client, submit_lead, make_clinic, make_user):
        lead_id = submit_lead()
        other = make_clinic("other")
        _, header = make_user("other-staff", clinic_id=other.id)
        response = client.patch(f"/api/leads/{lead_id}", json={"status": "agendado"}, headers=header)
        assert response.status_code == 404


# =============================================================================
# Archive / dashboard
# =============================================================================

class TestArchive:

    def test_delete_is_soft(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        assert client.delete(f"/api/leads/{lead_id}", headers=auth_header).status_code == 200
        lead = client.get(f"/api/leads/{lead_id}", headers=auth_header).get_json()["data"]
        assert lead["status"] == "archived"
        assert lead["archive_reason"] == "Removed by user"

    def test_unarchive_returns_to_novo(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        client.patch(f"/api/leads/{lead_id}", json={"status": "agendado"}, headers=auth_header)
        client.put(f"/api/leads/{lead_id}/archive", json={}, headers=auth_header)

        response = client.put(f"/api/leads/{lead_id}/unarchive", headers=auth_header)
        assert response.get_json()["status"] == "novo"
        lead = client.get(f"/api/leads/{lead_id}", headers=auth_header).get_json()["data"]
        assert lead["archive_reason"] is None


    def test_unarchive_finished_lead_clears_outcome(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        client.patch(
            f"/api/leads/{lead_id}",
            json={"status": "finalizado", "attendance_status": "compareceu"},
            headers=auth_header,
        )
        client.put(f"/api/leads/{lead_id}/archive", json={"archive_reason": "Done"}, headers=auth_header)

        archived = client.get(f"/api/leads/{lead_id}", headers=auth_header).get_json()["data"]
        assert archived["status"] == "archived"
        assert archived["attendance_status"] is None

        response = client.put(f"/api/leads/{lead_id}/unarchive", headers=auth_header)
        assert response.status_code == 200
        lead = client.get(f"/api/leads/{lead_id}", headers=auth_header).get_json()["data"]
        assert lead["status"] == "novo"
        assert lead["attendance_status"] is None

    def test_unarchive_requires_archived_lead(self, client, auth_header, submit_lead):
        lead_id = submit_lead()
        client.patch(
            f"/api/leads/{lead_id}",
            json={"status": "finalizado", "attendance_status": "compareceu"},
            headers=auth_header,
        )

        response = client.put(f"/api/leads/{lead_id}/unarchive", headers=auth_header)
        assert response.status_code == 400
        assert response.get_json()["code"] == "NOT_ARCHIVED"

        lead = client.get(f"/api/leads/{lead_id}", headers=auth_header).get_json()["data"]
        assert lead["status"] == "finalizado"
        assert lead["attendance_status"] == "compareceu"

    def test_archive_and_restore_recorded_in_history(self, client, auth_header, submit_lead, staff):
        lead_id = submit_lead()
        client.patch(f"/api/leads/{lead_id}", json={"status": "em_atendimento"}, headers=auth_header)
        client.delete(f"/api/leads/{lead_id}", headers=auth_header)
        client.put(f"/api/leads/{lead_id}/unarchive", headers=auth_header)

        events = client.get(f"/api/leads/{lead_id}/history", headers=auth_header).get_json()["data"]
        assert [(e["payload"]["from_status"], e["payload"]["to_status"]) for e in events] == [
            ("novo", "em_atendimento"),
            ("em_atendimento", "archived"),
            ("archived", "novo"),
        ]
        assert {e["actor_user_id"] for e in events} == {staff[0].id}


class TestCalendar:

    @pytest.fixture
    def scheduled(self, client, auth_header, submit_lead):
        """Three appointments on 2026-10-19, 2026-10-20 and 2026-10-21."""
        ids = []
        for day, name in ((21, "Carla Dias"), (19, "Ana Souza"), (20, "Bruno Lima")):
            lead_id = submit_lead(name)
            client.patch(
                f"/api/leads/{lead_id}",
                json={"status": "agendado", "appointment_date": f"2026-10-{day}T09:30:00", "doctor": "Dr. Silva"},
                headers=auth_header,
            )
            ids.append((day, lead_id))
        submit_lead("Davi Reis")  # never scheduled
        return dict(ids)

    def test_ordered_by_appointment(self, client, auth_header, scheduled):
        rows = client.get("/api/leads/calendar", headers=auth_header).get_json()
        assert [row["id"] for row in rows] == [scheduled[19], scheduled[20], scheduled[21]]

    def test_date_range_includes_whole_end_day(self, client, auth_header, scheduled):
        rows = client.get("/api/leads/calendar?start=2026-10-20&end=2026-10-21", headers=auth_header).get_json()
        assert [row["id"] for row in rows] == [scheduled[20], scheduled[21]]

    def test_datetime_end_is_exclusive(self, client, auth_header, scheduled):
        rows = client.get(
            "/api/leads/calendar?start=2026-10-19&end=2026-10-20T09:30:00", headers=auth_header
        ).get_json()
        assert [row["id"] for row in rows] == [scheduled[19]]

    def test_archived_hidden(self, client, auth_header, scheduled):
        client.delete(f"/api/leads/{scheduled[20]}", headers=auth_header)
        rows = client.get("/api/leads/calendar", headers=auth_header).get_json()
        assert scheduled[20] not in [row["id"] for row in rows]

    def test_scoped_to_clinic(self, client, scheduled, make_clinic, make_user):
        other = make_clinic("other")
        _, header = make_user("other-staff", clinic_id=other.id)
        assert client.get("/api/leads/calendar", headers=header).get_json() == []

    def test_bad_date(self, client, auth_header):
        response = client.get("/api/leads/calendar?start=yesterday", headers=auth_header)
        assert response.status_code == 400



class TestDashboard:

    def test_metrics(self, client, auth_header, submit_lead):
        first = submit_lead(type="exame")
        submit_lead()
        client.patch(
            f"/api/leads/{first}",
            json={"status": "finalizado", "attendance_status": "nao_compareceu"},
            headers=auth_header,
        )

        data = client.get("/api/leads/dashboard", headers=auth_header).get_json()
        assert data["total"] == 2
        assert {row["status"]: row["count"] for row in data["by_status"]} == {"novo": 1, "finalizado": 1}
        assert {row["type"]: row["count"] for row in data["by_type"]} == {"exame": 1, "geral": 1}
        assert data["by_attendance_status"] == [{"attendance_status": "nao_compareceu", "count": 1}]
        assert sum(day["count"] for day in data["history"]) == 2

    def test_requires_auth(self, client):
        assert client.get("/api/leads/dashboard").status_code == 401
