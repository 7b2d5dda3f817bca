"""
Tests du modele de workflow etendu (planification et retour du locataire).
"""

import uuid
from datetime import datetime, timezone

import pytest
import pytest_asyncio

from src.core.entities import InterventionStatus, UserRole
from src.core.errors import PermissionDeniedError, ValidationError
from src.services.intervention import (
    ApprovalData,
    ExecutionData,
    FinalizationData,
    PlanningData,
    PlanningOption,
    TenantValidationData,
    TimeSlot,
)

UTC = timezone.utc


@pytest_asyncio.fixture
async def approved(extended_service, lot, tenant, manager, provider):
    """Intervention approuvee avec prestataire affecte, sur le modele etendu."""
    created = (await extended_service.create({"title": "Chaudiere en panne", "lot_id": lot.id}, tenant)).data
    await extended_service.approve_intervention(created.id, ApprovalData(), manager)
    await extended_service.assign_provider(created.id, provider.id, manager)
    return created


@pytest_asyncio.fixture
async def provider_completed(extended_service, approved, manager, provider):
    await extended_service.schedule_intervention(
        approved.id,
        PlanningData(option=PlanningOption.DIRECT, scheduled_date=datetime(2026, 11, 5, 8, 30)),
        manager,
    )
    await extended_service.start_execution(approved.id, None, provider)
    result = await extended_service.complete_execution(approved.id, ExecutionData(actual_duration=90), provider)
    return result.data


class TestExtendedLifecycle:
    """Parcours complet du modele etendu."""

    @pytest.mark.asyncio
    async def test_full_path(self, extended_service, approved, manager, provider, tenant):
        slots = [TimeSlot(start=datetime(2026, 11, 4, 9), end=datetime(2026, 11, 4, 12))]
        proposed = await extended_service.schedule_intervention(
            approved.id, PlanningData(option=PlanningOption.PROPOSE, proposed_slots=slots), provider
        )
        assert proposed.data.status is InterventionStatus.SCHEDULING

        scheduled = await extended_service.schedule_intervention(
            approved.id,
            PlanningData(option=PlanningOption.DIRECT, scheduled_date=datetime(2026, 11, 4, 9)),
            manager,
        )
        assert scheduled.data.status is InterventionStatus.SCHEDULED

        started = await extended_service.start_execution(approved.id, None, provider)
        assert started.data.status is InterventionStatus.IN_PROGRESS

        done = await extended_service.complete_execution(approved.id, ExecutionData(actual_duration=45), provider)
        assert done.data.status is InterventionStatus.PROVIDER_COMPLETED
        assert done.data.completed_date is not None

        validated = await extended_service.validate_by_tenant(
            approved.id, TenantValidationData(comment="Parfait", satisfaction=5), tenant
        )
        assert validated.data.status is InterventionStatus.TENANT_VALIDATED
        assert "[Validation locataire] Parfait (5/5)" in validated.data.notes

        finalized = await extended_service.finalize_intervention(
            approved.id, FinalizationData(final_amount=180.0, manager_comment="Facture recue"), manager
        )
        assert finalized.data.status is InterventionStatus.COMPLETED
        assert finalized.data.final_amount == 180.0

    @pytest.mark.asyncio
    async def test_organize_moves_to_scheduling_without_slots(self, extended_service, approved, manager):
        result = await extended_service.schedule_intervention(
            approved.id, PlanningData(option=PlanningOption.ORGANIZE), manager
        )
        assert result.data.status is InterventionStatus.SCHEDULING

    @pytest.mark.asyncio
    async def test_can_start_directly_from_approved(self, extended_service, approved, provider):
        result = await extended_service.start_execution(approved.id, None, provider)
        assert result.data.status is InterventionStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_propose_without_slots(self, extended_service, approved, manager):
        with pytest.raises(ValidationError, match="At least one time slot"):
            await extended_service.schedule_intervention(
                approved.id, PlanningData(option=PlanningOption.PROPOSE), manager
            )
        assert (await extended_service.get_by_id(approved.id)).data.status is InterventionStatus.APPROVED

    @pytest.mark.asyncio
    async def test_finalize_requires_tenant_validation(self, extended_service, provider_completed, manager):
        with pytest.raises(ValidationError, match="validated by the tenant"):
            await extended_service.finalize_intervention(provider_completed.id, None, manager)


class TestTimeSlots:
    """Proposition puis selection d'un creneau."""

    @pytest_asyncio.fixture
    async def proposed(self, extended_service, approved, provider):
        slots = [
            TimeSlot(start=datetime(2026, 11, 4, 9, tzinfo=UTC), end=datetime(2026, 11, 4, 12, tzinfo=UTC)),
            TimeSlot(start=datetime(2026, 11, 4, 14, tzinfo=UTC), end=datetime(2026, 11, 4, 17, tzinfo=UTC)),
        ]
        result = await extended_service.schedule_intervention(
            approved.id, PlanningData(option=PlanningOption.PROPOSE, proposed_slots=slots), provider
        )
        return result.data

    @pytest.mark.asyncio
    async def test_slots_are_stored_with_ids(self, proposed):
        assert proposed.status is InterventionStatus.SCHEDULING
        assert [s.start.hour for s in proposed.proposed_slots] == [9, 14]
        assert all(uuid.UUID(s.id) for s in proposed.proposed_slots)
        assert "[Planification] option propose, 2 creneau(x)" in proposed.notes

    @pytest.mark.asyncio
    async def test_select_schedules_on_slot_start(self, extended_service, proposed, manager):
        chosen = proposed.proposed_slots[1]
        result = await extended_service.select_time_slot(proposed.id, chosen.id, manager)

        assert result.data.status is InterventionStatus.SCHEDULED
        assert result.data.scheduled_date == chosen.start
        assert result.data.proposed_slots == []
        assert result.data.notes.endswith("[Planification] creneau retenu 2026-11-04 14:00")

    @pytest.mark.asyncio
    async def test_unknown_slot_changes_nothing(self, extended_service, proposed, manager):
        with pytest.raises(ValidationError, match="Unknown time slot"):
            await extended_service.select_time_slot(proposed.id, str(uuid.uuid4()), manager)
        current = (await extended_service.get_by_id(proposed.id)).data
        assert current.status is InterventionStatus.SCHEDULING
        assert len(current.proposed_slots) == 2

    @pytest.mark.asyncio
    async def test_malformed_slot_id(self, extended_service, proposed, manager):
        with pytest.raises(ValidationError, match="Invalid UUID format for 'slot_id'"):
            await extended_service.select_time_slot(proposed.id, "matin", manager)

    @pytest.mark.asyncio
    async def test_tenant_cannot_select(self, extended_service, proposed, tenant):
        with pytest.raises(PermissionDeniedError):
            await extended_service.select_time_slot(proposed.id, proposed.proposed_slots[0].id, tenant)

    @pytest.mark.asyncio
    async def test_nothing_to_select_before_proposal(self, extended_service, approved, manager):
        with pytest.raises(ValidationError, match="No time slot selection is pending"):
            await extended_service.select_time_slot(approved.id, str(uuid.uuid4()), manager)


class TestTenantFeedback:
    """Validation et contestation par le locataire."""

    @pytest.mark.asyncio
    async def test_contest_reopens_work(self, extended_service, provider_completed, tenant):
        assert provider_completed.completed_date is not None

        result = await extended_service.contest_by_tenant(provider_completed.id, "Fuite toujours presente", tenant)
        assert result.data.status is InterventionStatus.IN_PROGRESS
        assert result.data.completed_date is None
        assert result.data.notes.endswith("[Contestation locataire] Fuite toujours presente")

    @pytest.mark.asyncio
    async def test_contest_then_complete_again(self, extended_service, provider_completed, tenant, provider):
        await extended_service.contest_by_tenant(provider_completed.id, "Bruit persistant", tenant)
        again = await extended_service.complete_execution(provider_completed.id, None, provider)
        assert again.data.status is InterventionStatus.PROVIDER_COMPLETED

    @pytest.mark.asyncio
    async def test_contest_requires_reason(self, extended_service, provider_completed, tenant):
        with pytest.raises(ValidationError, match="Contest reason is required"):
            await extended_service.contest_by_tenant(provider_completed.id, "", tenant)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("satisfaction", [0, 6])
    async def test_satisfaction_out_of_range(self, extended_service, provider_completed, tenant, satisfaction):
        with pytest.raises(ValidationError, match="between 1 and 5"):
            await extended_service.validate_by_tenant(
                provider_completed.id, TenantValidationData(satisfaction=satisfaction), tenant
            )
        current = (await extended_service.get_by_id(provider_completed.id)).data
        assert current.status is InterventionStatus.PROVIDER_COMPLETED

    @pytest.mark.asyncio
    async def test_other_tenant_is_denied(self, extended_service, provider_completed, make_user):
        neighbour = make_user(UserRole.TENANT)
        with pytest.raises(PermissionDeniedError, match="not linked"):
            await extended_service.validate_by_tenant(provider_completed.id, None, neighbour)

    @pytest.mark.asyncio
    async def test_manager_cannot_validate_for_tenant(self, extended_service, provider_completed, manager):
        with pytest.raises(PermissionDeniedError):
            await extended_service.validate_by_tenant(provider_completed.id, None, manager)

    @pytest.mark.asyncio
    async def test_validate_before_provider_completion(self, extended_service, approved, tenant):
        with pytest.raises(ValidationError, match="completed by the provider"):
            await extended_service.validate_by_tenant(approved.id, None, tenant)

    @pytest.mark.asyncio
    async def test_generic_update_follows_extended_table(self, extended_service, approved, manager):
        with pytest.raises(ValidationError, match="from 'approved' to 'completed'"):
            await extended_service.update(approved.id, {"status": "completed"}, manager)
