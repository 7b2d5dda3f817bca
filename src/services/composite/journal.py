"""
Journal des operations composites et compensation en ordre inverse.

Chaque appel d'orchestration possede son propre journal. Les etapes y sont
ajoutees a leur debut (pending) puis marquees completed ou failed des leur
resolution ; les ajouts et changements d'etat sont serialises par un
asyncio.Lock pour les etapes lancees en parallele.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping, Optional

from loguru import logger

from src.core.errors import ServiceError, to_service_error
from src.core.result import ServiceResult
from src.utils.helpers import utcnow

from .dataclasses import CompositeOperation, CompositeOperationResult, OperationStatus, OperationType

Compensation = Callable[[CompositeOperation], Awaitable[Optional[ServiceResult]]]

_VERBS = {
    OperationType.CREATE: "creation",
    OperationType.UPDATE: "update",
    OperationType.DELETE: "deletion",
    OperationType.READ: "read",
}


class CompositeStepError(Exception):
    """Echec d'une etape journalisee ; interrompt les etapes suivantes."""

    def __init__(self, operation: CompositeOperation, error: ServiceError) -> None:
        self.operation = operation
        self.error = error
        super().__init__(error.message)


def _default_id() -> str:
    return uuid.uuid4().hex[:12]


class OperationJournal:
    """
    Journal ordonne d'une operation composite.

    Utilisation:
        journal = OperationJournal()
        try:
            user = await journal.run_step(OperationType.CREATE, "user", "user",
                                          partial(users.create, payload), data=payload)
        except CompositeStepError as e:
            await journal.rollback(compensations)
            return journal.result(False, data, error=e.error)
    """

    def __init__(
        self,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Args:
            id_factory: Generateur d'identifiants d'etape (uuid4 par defaut)
            clock: Horloge des horodatages (utcnow par defaut)
        """
        self._id_factory = id_factory or _default_id
        self._clock = clock or utcnow
        self._lock = asyncio.Lock()
        self._operations: list[CompositeOperation] = []
        self._rollback_operations: list[CompositeOperation] = []
        self._rollback_errors: list[ServiceError] = []

    @property
    def operations(self) -> list[CompositeOperation]:
        return list(self._operations)

    @property
    def rollback_operations(self) -> list[CompositeOperation]:
        return list(self._rollback_operations)

    @property
    def rollback_errors(self) -> list[ServiceError]:
        return list(self._rollback_errors)

    async def begin(
        self,
        op_type: OperationType,
        service: str,
        entity: str,
        data: Any = None,
        entity_id: Optional[str] = None,
    ) -> CompositeOperation:
        """Ajoute une etape pending au journal."""
        async with self._lock:
            operation = CompositeOperation(
                id=f"{entity}-{self._id_factory()}",
                type=op_type,
                service=service,
                entity=entity,
                entity_id=entity_id,
                data=data,
                timestamp=self._clock(),
            )
            self._operations.append(operation)
            return operation

    async def complete(self, operation: CompositeOperation, entity_id: Optional[str] = None) -> None:
        async with self._lock:
            if entity_id is not None:
                operation.entity_id = entity_id
            operation.status = OperationStatus.COMPLETED

    async def fail(self, operation: CompositeOperation, error: ServiceError) -> None:
        async with self._lock:
            operation.status = OperationStatus.FAILED
            operation.error = error

    async def run_step(
        self,
        op_type: OperationType,
        service: str,
        entity: str,
        call: Callable[[], Awaitable[ServiceResult]],
        data: Any = None,
        entity_id: Optional[str] = None,
    ) -> Any:
        """
        Execute une etape journalisee et retourne les donnees produites.

        Un resultat en echec ou une exception marquent l'etape failed et levent
        CompositeStepError. L'identifiant produit est lu sur data.id quand
        entity_id n'est pas fourni.

        Raises:
            CompositeStepError: L'etape a echoue
        """
        operation = await self.begin(op_type, service, entity, data, entity_id)
        try:
            result = await call()
        except Exception as e:
            raise await self._abort(operation, to_service_error(e)) from e
        if not result.success:
            raise await self._abort(
                operation, result.error or ServiceError(code="UNKNOWN_ERROR", message="An unknown error occurred")
            )
        produced_id = entity_id or getattr(result.data, "id", None)
        await self.complete(operation, produced_id)
        return result.data

    async def _abort(self, operation: CompositeOperation, cause: ServiceError) -> CompositeStepError:
        """Marque l'etape failed et retourne l'exception a lever."""
        error = ServiceError(
            code=cause.code,
            message=f"{operation.entity.replace('_', ' ').capitalize()} {_VERBS[operation.type]} failed: {cause.message}",
            details={
                "step": operation.id,
                "service": operation.service,
                "entity": operation.entity,
                "cause": cause.details,
            },
            hint=cause.hint,
        )
        await self.fail(operation, error)
        logger.bind(step=operation.id).warning(f"Etape en echec: {error.message}")
        return CompositeStepError(operation, error)

    async def rollback(self, compensations: Mapping[tuple[str, str], Compensation]) -> None:
        """
        Compense les creations terminees, de la plus recente a la plus ancienne.

        Les mises a jour ne sont pas compensees. Une compensation en echec est
        consignee dans rollback_errors sans interrompre les suivantes.
        """
        completed = [
            op for op in reversed(self._operations)
            if op.status is OperationStatus.COMPLETED and op.type is OperationType.CREATE
        ]
        for operation in completed:
            compensate = compensations.get((operation.service, operation.entity))
            if compensate is None:
                continue
            rollback_op = CompositeOperation(
                id=f"rollback-{operation.id}",
                type=OperationType.DELETE,
                service=operation.service,
                entity=operation.entity,
                entity_id=operation.entity_id,
                data=operation.data,
                timestamp=self._clock(),
            )
            try:
                result = await compensate(operation)
                if result is not None and not result.success:
                    raise CompositeStepError(rollback_op, result.error or ServiceError("UNKNOWN_ERROR", "Rollback failed"))
            except Exception as e:
                cause = e.error if isinstance(e, CompositeStepError) else to_service_error(e)
                error = ServiceError(
                    code=cause.code,
                    message=f"Failed to rollback {operation.service} {operation.entity_id}: {cause.message}",
                    details={"step": operation.id, "entity": operation.entity},
                )
                rollback_op.status = OperationStatus.FAILED
                rollback_op.error = error
                self._rollback_errors.append(error)
                logger.bind(step=rollback_op.id).error(error.message)
            else:
                rollback_op.status = OperationStatus.COMPLETED
                logger.bind(step=rollback_op.id).debug("Compensation effectuee")
            self._rollback_operations.append(rollback_op)

    def result(
        self,
        success: bool,
        data: Any,
        error: Optional[ServiceError] = None,
        partial_success: bool = False,
    ) -> CompositeOperationResult:
        """Construit le resultat a partir de l'etat courant du journal."""
        return CompositeOperationResult(
            success=success,
            data=data,
            error=error,
            operations=self.operations,
            rollback_operations=self.rollback_operations,
            rollback_errors=self.rollback_errors,
            partial_success=partial_success,
        )
