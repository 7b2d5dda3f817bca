"""
Tests unitaires pour OperationJournal.

Verifie:
- Le marquage des etapes (pending, completed, failed)
- Le message d'erreur nommant l'entite et l'etape en echec
- La compensation en ordre inverse, limitee aux creations terminees
- La consignation des compensations en echec
"""

from dataclasses import dataclass
from datetime import datetime
from itertools import count
from unittest.mock import AsyncMock

import pytest

from src.core.errors import ConflictError, NotFoundError, ServiceError
from src.core.result import ServiceResult
from src.services.composite import (
    CompositeStepError,
    OperationJournal,
    OperationStatus,
    OperationType,
)

FIXED_TIME = datetime(2026, 10, 18, 12, 0)


@dataclass
class Entity:
    id: str


@pytest.fixture
def journal() -> OperationJournal:
    ids = count(1)
    return OperationJournal(id_factory=lambda: str(next(ids)), clock=lambda: FIXED_TIME)


def _ok(entity_id: str):
    return AsyncMock(return_value=ServiceResult.ok(Entity(entity_id)))


class TestRunStep:
    """Tests pour run_step."""

    @pytest.mark.asyncio
    async def test_completed_step_records_produced_id(self, journal):
        data = await journal.run_step(OperationType.CREATE, "building", "building", _ok("b1"), data={"name": "X"})

        assert data.id == "b1"
        [operation] = journal.operations
        assert operation.id == "building-1"
        assert operation.status is OperationStatus.COMPLETED
        assert operation.entity_id == "b1"
        assert operation.timestamp == FIXED_TIME
        assert operation.data == {"name": "X"}

    @pytest.mark.asyncio
    async def test_failed_result_marks_step_and_raises(self, journal):
        call = AsyncMock(return_value=ServiceResult.fail(ConflictError("Reference already used")))

        with pytest.raises(CompositeStepError) as exc:
            await journal.run_step(OperationType.CREATE, "lot", "lot", call)

        assert exc.value.error.code == "CONFLICT"
        assert exc.value.error.message == "Lot creation failed: Reference already used"
        assert exc.value.error.details["step"] == "lot-1"
        [operation] = journal.operations
        assert operation.status is OperationStatus.FAILED
        assert operation.error is exc.value.error

    @pytest.mark.asyncio
    async def test_exception_is_converted(self, journal):
        call = AsyncMock(side_effect=NotFoundError("User", "u9"))

        with pytest.raises(CompositeStepError) as exc:
            await journal.run_step(OperationType.UPDATE, "user", "user", call, entity_id="u9")

        assert exc.value.error.code == "NOT_FOUND"
        assert exc.value.error.message.startswith("User update failed:")
        assert journal.operations[0].entity_id == "u9"

    @pytest.mark.asyncio
    async def test_entity_name_is_readable(self, journal):
        call = AsyncMock(return_value=ServiceResult.fail(ServiceError("CONFLICT", "duplicate")))
        with pytest.raises(CompositeStepError, match="Building contact creation failed: duplicate"):
            await journal.run_step(OperationType.CREATE, "contact", "building_contact", call)


class TestRollback:
    """Tests pour rollback."""

    @pytest.mark.asyncio
    async def test_reverse_order_and_creates_only(self, journal):
        await journal.run_step(OperationType.CREATE, "building", "building", _ok("b1"))
        await journal.run_step(OperationType.UPDATE, "building", "building", _ok("b1"), entity_id="b1")
        await journal.run_step(OperationType.CREATE, "lot", "lot", _ok("l1"))
        await journal.run_step(OperationType.CREATE, "lot", "lot", _ok("l2"))

        calls: list[str] = []

        async def compensate(op):
            calls.append(op.entity_id)
            return ServiceResult.ok(True)

        await journal.rollback({("building", "building"): compensate, ("lot", "lot"): compensate})

        assert calls == ["l2", "l1", "b1"]
        assert [op.id for op in journal.rollback_operations] == [
            "rollback-lot-4",
            "rollback-lot-3",
            "rollback-building-1",
        ]
        assert all(op.type is OperationType.DELETE for op in journal.rollback_operations)
        assert all(op.status is OperationStatus.COMPLETED for op in journal.rollback_operations)
        assert journal.rollback_errors == []

    @pytest.mark.asyncio
    async def test_failed_step_is_not_compensated(self, journal):
        await journal.run_step(OperationType.CREATE, "building", "building", _ok("b1"))
        with pytest.raises(CompositeStepError):
            await journal.run_step(
                OperationType.CREATE, "lot", "lot", AsyncMock(return_value=ServiceResult.fail(ConflictError("dup")))
            )

        compensate = AsyncMock(return_value=ServiceResult.ok(True))
        await journal.rollback({("building", "building"): compensate, ("lot", "lot"): compensate})

        compensate.assert_awaited_once()
        assert compensate.await_args.args[0].entity_id == "b1"

    @pytest.mark.asyncio
    async def test_compensation_failures_are_collected(self, journal):
        await journal.run_step(OperationType.CREATE, "team", "team", _ok("t1"))
        await journal.run_step(OperationType.CREATE, "building", "building", _ok("b1"))

        failing = AsyncMock(return_value=ServiceResult.fail(ServiceError("REPOSITORY_ERROR", "locked")))
        raising = AsyncMock(side_effect=RuntimeError("connection reset"))
        await journal.rollback({("building", "building"): failing, ("team", "team"): raising})

        assert failing.await_count == 1
        assert raising.await_count == 1
        assert [op.status for op in journal.rollback_operations] == [OperationStatus.FAILED, OperationStatus.FAILED]
        assert [e.message for e in journal.rollback_errors] == [
            "Failed to rollback building b1: locked",
            "Failed to rollback team t1: connection reset",
        ]

    @pytest.mark.asyncio
    async def test_entity_without_compensation_is_skipped(self, journal):
        await journal.run_step(OperationType.CREATE, "contact", "contact", _ok("c1"))
        await journal.rollback({})
        assert journal.rollback_operations == []

    def test_result_snapshots_journal(self, journal):
        result = journal.result(True, {"ok": 1})
        assert result.success
        assert result.operations == []
        assert result.partial_success is False
