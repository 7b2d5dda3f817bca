"""
Implementation SQLModel du repository Intervention.

Gere les interventions et la table de jointure intervention_assignments
(affectation des gestionnaires, prestataires et locataires).
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete, func
from sqlmodel import select

from src.core.entities import (
    AssignmentRole,
    Intervention,
    InterventionAssignment,
    InterventionPriority,
    InterventionStatus,
    TimeSlot,
)
from src.core.ports.repositories import IInterventionRepository
from src.infrastructure.persistence.models import InterventionAssignmentModel, InterventionModel
from src.infrastructure.persistence.repositories.base import SQLModelRepository

_COUNTABLE_COLUMNS = {
    "status": InterventionModel.status,
    "priority": InterventionModel.priority,
}


def _slot_to_json(slot: TimeSlot) -> dict[str, str]:
    return {"id": slot.id, "start": slot.start.isoformat(), "end": slot.end.isoformat()}


def _slot_from_json(data: dict[str, str]) -> TimeSlot:
    return TimeSlot(
        id=data["id"],
        start=datetime.fromisoformat(data["start"]),
        end=datetime.fromisoformat(data["end"]),
    )


class SQLModelInterventionRepository(SQLModelRepository[InterventionModel], IInterventionRepository):
    """Repository SQLModel pour les interventions."""

    model_class = InterventionModel
    table = "interventions"

    def _to_entity(self, model: InterventionModel) -> Intervention:
        return Intervention(
            id=model.id,
            title=model.title,
            description=model.description,
            category=model.category,
            requested_by=model.requested_by,
            lot_id=model.lot_id,
            building_id=model.building_id,
            status=InterventionStatus(model.status),
            priority=InterventionPriority(model.priority),
            scheduled_date=model.scheduled_date,
            completed_date=model.completed_date,
            estimated_duration=model.estimated_duration,
            actual_duration=model.actual_duration,
            notes=model.notes,
            quote_amount=model.quote_amount,
            final_amount=model.final_amount,
            proposed_slots=[_slot_from_json(s) for s in model.proposed_slots or []],
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _to_assignment(model: InterventionAssignmentModel) -> InterventionAssignment:
        return InterventionAssignment(
            id=model.id,
            intervention_id=model.intervention_id,
            user_id=model.user_id,
            role=AssignmentRole(model.role),
            is_primary=model.is_primary,
            assigned_at=model.assigned_at,
        )

    def _list(self, statement, context: str) -> list[Intervention]:
        statement = statement.order_by(InterventionModel.created_at.desc())
        models = self._read(lambda: self._session.exec(statement).all(), context)
        return [self._to_entity(m) for m in models]

    def get_by_id(self, intervention_id: str) -> Optional[Intervention]:
        model = self._read(lambda: self._get_model(intervention_id), "get_by_id")
        return self._to_entity(model) if model else None

    def list_interventions(
        self,
        status: Optional[InterventionStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Intervention]:
        statement = select(InterventionModel)
        if status is not None:
            statement = statement.where(InterventionModel.status == InterventionStatus(status).value)
        statement = statement.order_by(InterventionModel.created_at.desc()).offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        models = self._read(lambda: self._session.exec(statement).all(), "list_interventions")
        return [self._to_entity(m) for m in models]

    def list_by_lot(self, lot_id: str) -> list[Intervention]:
        return self._list(select(InterventionModel).where(InterventionModel.lot_id == lot_id), "list_by_lot")

    def list_by_building(self, building_id: str) -> list[Intervention]:
        statement = select(InterventionModel).where(InterventionModel.building_id == building_id)
        return self._list(statement, "list_by_building")

    def list_by_requester(self, user_id: str) -> list[Intervention]:
        statement = select(InterventionModel).where(InterventionModel.requested_by == user_id)
        return self._list(statement, "list_by_requester")

    def list_by_assignee(self, user_id: str, role: AssignmentRole) -> list[Intervention]:
        statement = (
            select(InterventionModel)
            .join(
                InterventionAssignmentModel,
                InterventionAssignmentModel.intervention_id == InterventionModel.id,
            )
            .where(
                InterventionAssignmentModel.user_id == user_id,
                InterventionAssignmentModel.role == AssignmentRole(role).value,
            )
        )
        return self._list(statement, "list_by_assignee")

    def _values(self, entity: Any) -> dict[str, Any]:
        values = super()._values(entity)
        values["proposed_slots"] = [_slot_to_json(s) for s in entity.proposed_slots]
        return values

    def save(self, intervention: Intervention) -> Intervention:
        return self._to_entity(self._upsert(intervention))

    def delete(self, intervention_id: str) -> bool:
        def operation() -> bool:
            model = self._get_model(intervention_id)
            if model is None:
                return False
            self._session.execute(
                delete(InterventionAssignmentModel).where(
                    InterventionAssignmentModel.intervention_id == intervention_id
                )
            )
            self._session.delete(model)
            return True

        return self._write(operation, "delete")

    def count(self) -> int:
        statement = select(func.count()).select_from(InterventionModel)
        return self._read(lambda: self._session.exec(statement).one(), "count")

    def count_by(self, column: str) -> dict[str, int]:
        """Compte les interventions groupees par 'status' ou 'priority'."""
        target = _COUNTABLE_COLUMNS[column]
        statement = select(target, func.count()).group_by(target)
        rows = self._read(lambda: self._session.exec(statement).all(), "count_by")
        return {value: total for value, total in rows}

    def add_assignment(self, assignment: InterventionAssignment) -> InterventionAssignment:
        model = InterventionAssignmentModel(
            intervention_id=assignment.intervention_id,
            user_id=assignment.user_id,
            role=AssignmentRole(assignment.role).value,
            is_primary=assignment.is_primary,
        )

        def operation() -> InterventionAssignmentModel:
            self._session.add(model)
            return model

        self._write(operation, "add_assignment")
        self._session.refresh(model)
        return self._to_assignment(model)

    def remove_assignment(self, intervention_id: str, user_id: str, role: AssignmentRole) -> bool:
        statement = delete(InterventionAssignmentModel).where(
            InterventionAssignmentModel.intervention_id == intervention_id,
            InterventionAssignmentModel.user_id == user_id,
            InterventionAssignmentModel.role == AssignmentRole(role).value,
        )
        result = self._write(lambda: self._session.execute(statement), "remove_assignment")
        return result.rowcount > 0

    def list_assignments(
        self, intervention_id: str, role: Optional[AssignmentRole] = None
    ) -> list[InterventionAssignment]:
        statement = select(InterventionAssignmentModel).where(
            InterventionAssignmentModel.intervention_id == intervention_id
        )
        if role is not None:
            statement = statement.where(InterventionAssignmentModel.role == AssignmentRole(role).value)
        models = self._read(lambda: self._session.exec(statement).all(), "list_assignments")
        return [self._to_assignment(m) for m in models]
