"""
Tests unitaires de la machine a etats des interventions.

Ces tests verifient:
- Les tables de transitions des modeles base et etendu
- Le caractere terminal de completed et cancelled
- Le statut de fin de travaux selon le modele
- L'ajout de notes sans ecrasement
"""

import pytest

from src.core.entities import InterventionStatus as S
from src.core.errors import ValidationError
from src.core.permissions import Action
from src.core.workflow import InterventionStateMachine, WorkflowModel, append_note


@pytest.fixture
def base() -> InterventionStateMachine:
    return InterventionStateMachine(WorkflowModel.BASE)


@pytest.fixture
def extended() -> InterventionStateMachine:
    return InterventionStateMachine(WorkflowModel.EXTENDED)


class TestBaseModel:
    """Tests du modele de base."""

    def test_statuses(self, base):
        assert base.statuses == [S.PENDING, S.APPROVED, S.IN_PROGRESS, S.COMPLETED, S.CANCELLED]

    @pytest.mark.parametrize(
        "current,target",
        [
            (S.PENDING, S.APPROVED),
            (S.PENDING, S.CANCELLED),
            (S.APPROVED, S.IN_PROGRESS),
            (S.IN_PROGRESS, S.COMPLETED),
            (S.IN_PROGRESS, S.CANCELLED),
        ],
    )
    def test_allowed_transitions(self, base, current, target):
        base.validate_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (S.PENDING, S.COMPLETED),
            (S.PENDING, S.IN_PROGRESS),
            (S.APPROVED, S.PENDING),
            (S.COMPLETED, S.IN_PROGRESS),
            (S.APPROVED, S.SCHEDULED),
        ],
    )
    def test_forbidden_transitions(self, base, current, target):
        with pytest.raises(ValidationError) as exc:
            base.validate_transition(current, target)
        assert current.value in str(exc.value)
        assert target.value in str(exc.value)

    def test_completion_status(self, base):
        assert base.completion_status is S.COMPLETED

    def test_raw_values_are_accepted(self, base):
        assert base.can_transition("pending", "approved")


class TestExtendedModel:
    """Tests du modele etendu."""

    def test_scheduling_path(self, extended):
        extended.validate_transition(S.APPROVED, S.SCHEDULING)
        extended.validate_transition(S.SCHEDULING, S.SCHEDULED)
        extended.validate_transition(S.SCHEDULED, S.IN_PROGRESS)

    def test_closure_path(self, extended):
        extended.validate_transition(S.IN_PROGRESS, S.PROVIDER_COMPLETED)
        extended.validate_transition(S.PROVIDER_COMPLETED, S.TENANT_VALIDATED)
        extended.validate_transition(S.TENANT_VALIDATED, S.COMPLETED)

    def test_tenant_contest_reopens(self, extended):
        assert extended.can_transition(S.PROVIDER_COMPLETED, S.IN_PROGRESS)

    def test_in_progress_cannot_jump_to_completed(self, extended):
        assert not extended.can_transition(S.IN_PROGRESS, S.COMPLETED)

    def test_completion_status(self, extended):
        assert extended.completion_status is S.PROVIDER_COMPLETED

    def test_action_for_target(self, extended):
        assert extended.action_for(S.SCHEDULED) is Action.SCHEDULE
        assert extended.action_for(S.TENANT_VALIDATED) is Action.VALIDATE_AS_TENANT
        assert extended.action_for(S.PENDING) is None


@pytest.mark.parametrize("model", list(WorkflowModel))
@pytest.mark.parametrize("terminal", [S.COMPLETED, S.CANCELLED])
def test_terminal_statuses_have_no_exit(model, terminal):
    machine = InterventionStateMachine(model)
    assert machine.allowed_targets(terminal) == ()
    assert machine.is_terminal(terminal)


class TestAppendNote:
    """Tests pour append_note."""

    def test_first_note(self):
        assert append_note(None, "Approbation", "ok") == "[Approbation] ok"

    def test_appends_on_new_line(self):
        notes = append_note("Fuite signalee", "Annulation par manager", "doublon")
        assert notes == "Fuite signalee\n[Annulation par manager] doublon"

    def test_empty_comment_keeps_tag_only(self):
        assert append_note("", "Démarrage", "  ") == "[Démarrage]"
