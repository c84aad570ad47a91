"""
Unit tests for the pipeline status registries.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..', 'backend'))

import pytest

from clinic_crm.statuses import (
    PATIENT_PIPELINE,
    LEAD_PIPELINE,
    LEAD_ARCHIVED,
    ATTENDANCE_OUTCOME_VALUES,
    DEFAULT_ATTENDANCE_OUTCOME,
    PipelineRegistry,
    is_attendance_outcome,
)


class TestPatientPipeline:

    def test_statuses_in_board_order(self):
        assert PATIENT_PIPELINE.statuses == ("waiting", "triage", "consultation", "finished")
        assert PATIENT_PIPELINE.terminal == "finished"
        assert PATIENT_PIPELINE.initial == "waiting"

    @pytest.mark.parametrize("status", ["waiting", "triage", "consultation", "finished"])
    def test_valid_statuses(self, status):
        assert PATIENT_PIPELINE.is_valid(status)

    @pytest.mark.parametrize("status", ["done", "", None, 3, "Waiting"])
    def test_invalid_statuses(self, status):
        assert not PATIENT_PIPELINE.is_valid(status)

    def test_status_path(self):
        assert PATIENT_PIPELINE.status_path(42) == "/api/patients/42/status"
        assert PATIENT_PIPELINE.collection_path == "/api/patients"
        assert PATIENT_PIPELINE.board_params() == {}


class TestLeadPipeline:

    def test_archived_is_not_a_column(self):
        assert LEAD_ARCHIVED not in LEAD_PIPELINE.statuses
        assert not LEAD_PIPELINE.is_valid(LEAD_ARCHIVED)

    def test_paths(self):
        assert LEAD_PIPELINE.status_path(7) == "/api/leads/7"
        assert LEAD_PIPELINE.board_params() == {"view": "kanban"}

    def test_terminal(self):
        assert LEAD_PIPELINE.is_terminal("finalizado")
        assert not LEAD_PIPELINE.is_terminal("agendado")


class TestColumnMapping:

    def test_column_ids_round_trip(self):
        for status in PATIENT_PIPELINE.statuses:
            assert PATIENT_PIPELINE.status_for_column(PATIENT_PIPELINE.column_for_status(status)) == status

    def test_bare_status_accepted_as_column(self):
        assert PATIENT_PIPELINE.status_for_column("triage") == "triage"

    def test_unknown_column(self):
        assert PATIENT_PIPELINE.status_for_column("column-discharged") is None
        assert PATIENT_PIPELINE.status_for_column(None) is None

    def test_column_for_unknown_status_raises(self):
        with pytest.raises(ValueError):
            PATIENT_PIPELINE.column_for_status("discharged")

    def test_order_of_unknown_sorts_last(self):
        assert PATIENT_PIPELINE.order_of("consultation") == 2
        assert PATIENT_PIPELINE.order_of("nope") == 4


class TestAttendanceOutcomes:

    def test_menu_order(self):
        assert ATTENDANCE_OUTCOME_VALUES == ("compareceu", "nao_compareceu", "cancelado", "remarcado")
        assert DEFAULT_ATTENDANCE_OUTCOME == "compareceu"

    def test_is_attendance_outcome(self):
        assert is_attendance_outcome("remarcado")
        assert not is_attendance_outcome("attended")
        assert not is_attendance_outcome(None)

    def test_terminal_must_be_a_status(self):
        with pytest.raises(ValueError):
            PipelineRegistry(
                resource="x", statuses=("a", "b"), terminal="c",
                collection_path="/x", status_path_template="/x/{id}",
            )
