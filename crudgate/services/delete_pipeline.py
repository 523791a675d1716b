"""
Delete Pipeline Module

Normalize -> Authenticate -> ResolveTargets -> LoadCurrentRecords ->
Authorize -> CheckDeletable -> RemoveStorage -> InvalidateCache -> AuditLog
"""

import logging
from typing import Any, Mapping, Union

from crudgate.common.errors import (
    AppError,
    NotFoundError,
    ReadFailureError,
    UnauthorizedError,
    WriteFailureError,
)
from crudgate.domain.record import ID_FIELD
from crudgate.domain.request import Action, CrudParams
from crudgate.domain.result import CrudResult
from crudgate.services.context import (
    CrudComponents,
    PipelineContext,
    authenticate,
    failure_result,
)
from crudgate.services.param_normalizer import Operation
from crudgate.services.permission_engine import AuthTarget

logger = logging.getLogger(__name__)


class DeletePipeline:
    """
    Delete Pipeline

    Deletes by id (owners, delete-grant holders, admins) or by filter (admins only).
    Deletes never cascade: referenced records block the delete.
    """

    def __init__(self, components: CrudComponents):
        """
        Initialize Pipeline

        Args:
            components: Shared collaborators
        """
        self.c = components

    async def delete_record(self, params: Union[CrudParams, Mapping[str, Any]]) -> CrudResult:
        """
        Delete records

        Returns:
            CrudResult: value {"docCount", "requestedCount"} on success
        """
        try:
            return await self._delete(params)
        except AppError as e:
            return failure_result(self.c.messages, e)

    async def _delete(self, params: Union[CrudParams, Mapping[str, Any]]) -> CrudResult:
        request = self.c.normalizer.normalize(params, Operation.DELETE)
        ctx = await authenticate(self.c, PipelineContext(request=request))

        if request.recursive_delete:
            logger.debug(
                "Recursive delete requested for %s; sub-items are not removed",
                request.collection,
            )

        ctx = await self._load_targets(ctx)
        await self.c.permissions.authorize(
            ctx.identity,
            Action.DELETE,
            AuthTarget(request.collection, records=ctx.current_records),
        )
        await self.c.integrity.check_deletable(
            ctx.target_ids, request.collection, request.child_collections
        )

        try:
            removed = await self.c.store.collection(request.collection).delete_many(
                {ID_FIELD: {"$in": list(ctx.target_ids)}}
            )
        except Exception as e:
            logger.exception("Failed to delete records from %s", request.collection)
            raise WriteFailureError(message=f"Error deleting record(s): {e}") from e
        finally:
            await self.c.cache.invalidate(request.collection)

        await self.c.audit.delete_log(request.collection, ctx.current_records, ctx.actor_id)

        requested = len(request.doc_ids) if request.doc_ids else len(ctx.target_ids)
        logger.info(
            "Deleted records: collection=%s removed=%d requested=%d actor=%s",
            request.collection,
            removed,
            requested,
            ctx.actor_id,
        )
        return CrudResult.success(
            self.c.messages.format_message("deleted", {"count": removed}).text,
            value={"docCount": removed, "requestedCount": requested},
        )

    async def _load_targets(self, ctx: PipelineContext) -> PipelineContext:
        request = ctx.request
        if request.doc_ids:
            selector = {ID_FIELD: {"$in": list(request.doc_ids)}}
        else:
            if not ctx.identity.is_admin:
                raise UnauthorizedError(
                    message="Delete by filter is restricted to administrators",
                    code="delete_denied",
                )
            selector = dict(request.filter)

        try:
            current = await self.c.store.collection(request.collection).find(selector)
        except Exception as e:
            logger.exception("Failed to load records from %s", request.collection)
            raise ReadFailureError(message=f"Error reading record(s): {e}") from e

        if not current:
            raise NotFoundError(message="Record(s) requested for delete not found")
        return ctx.evolve(
            current_records=tuple(current),
            target_ids=tuple(record[ID_FIELD] for record in current),
        )
