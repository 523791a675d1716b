"""
Save Pipeline Module

Creates and updates records:
Normalize -> Authenticate -> Partition -> CheckProbeCount -> CheckUnique ->
LoadCurrent -> Authorize -> WriteStorage -> InvalidateCache -> AuditLog
"""

import logging
from typing import Any, Mapping, Union

from crudgate.common.errors import (
    AppError,
    NotFoundError,
    ReadFailureError,
    ValidationError,
    WriteFailureError,
)
from crudgate.common.ids import to_object_id
from crudgate.common.time import utc_now
from crudgate.domain.record import (
    CREATED_AT,
    CREATED_BY,
    ID_FIELD,
    UPDATED_AT,
    UPDATED_BY,
    Record,
)
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

# Fields set by the pipeline that callers may not overwrite on update
_OWNERSHIP_FIELDS = (CREATED_BY, CREATED_AT)


class SavePipeline:
    """
    Save Pipeline

    Items with `_id` are updates, items without are creates; a batch is either
    one or the other. Every item needs an existence probe. Storage is only
    touched after all checks pass.
    """

    def __init__(self, components: CrudComponents):
        """
        Initialize Pipeline

        Args:
            components: Shared collaborators
        """
        self.c = components

    async def save_record(self, params: Union[CrudParams, Mapping[str, Any]]) -> CrudResult:
        """
        Create and/or update records

        Returns:
            CrudResult: value {"docCount", "createdCount", "updatedCount", "docIds"} on success
        """
        try:
            return await self._save(params)
        except AppError as e:
            return failure_result(self.c.messages, e)

    async def _save(self, params: Union[CrudParams, Mapping[str, Any]]) -> CrudResult:
        request = self.c.normalizer.normalize(params, Operation.SAVE)
        ctx = await authenticate(self.c, PipelineContext(request=request))

        if self._is_update_by_filter(ctx):
            return await self._update_by_filter(ctx)

        ctx = self._partition(ctx)
        self._check_probe_count(ctx)
        await self.c.integrity.check_unique(request.probes, request.collection)

        if ctx.create_items:
            await self.c.permissions.authorize(ctx.identity, Action.CREATE, AuthTarget(request.collection))
        else:
            ctx = await self._load_current(ctx)
            await self.c.permissions.authorize(
                ctx.identity,
                Action.UPDATE,
                AuthTarget(request.collection, records=ctx.current_records),
            )
            ctx = self._guard_updates(ctx)

        created_ids: list[Any] = []
        updated = 0
        try:
            if ctx.create_items:
                created_ids = await self._insert(ctx)
            else:
                updated = await self._apply_updates(ctx)
        finally:
            await self.c.cache.invalidate(request.collection)

        total = len(created_ids) + updated
        if total == 0:
            raise WriteFailureError(message="No record was saved")

        if created_ids:
            created = [{**item, ID_FIELD: new_id} for item, new_id in zip(ctx.create_items, created_ids)]
            await self.c.audit.create_log(request.collection, created, ctx.actor_id)
        else:
            await self.c.audit.update_log(
                request.collection, ctx.current_records, ctx.update_items, ctx.actor_id
            )

        kind = "created" if created_ids else "updated"
        message = self.c.messages.format_message(kind, {"count": total}).text
        logger.info(
            "Saved records: collection=%s created=%d updated=%d actor=%s",
            request.collection,
            len(created_ids),
            updated,
            ctx.actor_id,
        )
        return CrudResult.success(
            message,
            value={
                "docCount": total,
                "createdCount": len(created_ids),
                "updatedCount": updated,
                "docIds": [str(new_id) for new_id in created_ids],
            },
        )

    @staticmethod
    def _is_update_by_filter(ctx: PipelineContext) -> bool:
        request = ctx.request
        return (
            ctx.identity.is_admin
            and bool(request.filter)
            and not request.doc_ids
            and len(request.items) == 1
            and not request.items[0].get(ID_FIELD)
        )

    def _partition(self, ctx: PipelineContext) -> PipelineContext:
        """Split items into creates and updates, stamping ownership/modification fields"""
        now = utc_now()
        user_id = ctx.identity.user_id
        creates: list[Record] = []
        updates: list[Record] = []
        for item in ctx.request.items:
            if item.get(ID_FIELD):
                record = {k: v for k, v in item.items() if k not in _OWNERSHIP_FIELDS}
                record[ID_FIELD] = to_object_id(item[ID_FIELD])
                record[UPDATED_BY] = user_id
                record[UPDATED_AT] = now
                updates.append(record)
            else:
                record = {k: v for k, v in item.items() if k != ID_FIELD}
                record[CREATED_BY] = user_id
                record[CREATED_AT] = now
                creates.append(record)

        if creates and updates:
            raise ValidationError(
                message="A request may either create or update records, not both",
                code="mixed_batch",
                details={"creates": len(creates), "updates": len(updates)},
            )

        update_ids = [record[ID_FIELD] for record in updates]
        if len(set(update_ids)) != len(update_ids):
            raise ValidationError(
                message="Each record may only be updated once per request",
                code="duplicate_id",
            )
        return ctx.evolve(
            create_items=tuple(creates),
            update_items=tuple(updates),
            target_ids=tuple(update_ids),
        )

    @staticmethod
    def _check_probe_count(ctx: PipelineContext) -> None:
        items = len(ctx.create_items) + len(ctx.update_items)
        probes = len(ctx.request.probes)
        if items > probes:
            raise ValidationError(
                message=f"An existence probe is required for every item ({items} item(s), {probes} probe(s))",
                code="missing_probes",
                details={"items": items, "probes": probes},
            )

    async def _find(self, collection: str, filter: dict[str, Any]) -> list[Record]:
        try:
            return await self.c.store.collection(collection).find(filter)
        except Exception as e:
            logger.exception("Failed to load records from %s", collection)
            raise ReadFailureError(message=f"Error reading record(s): {e}") from e

    async def _load_current(self, ctx: PipelineContext) -> PipelineContext:
        """Load the records to update; every requested id must exist"""
        current = await self._find(ctx.request.collection, {ID_FIELD: {"$in": list(ctx.target_ids)}})
        found = {record[ID_FIELD] for record in current}
        missing = [str(target) for target in ctx.target_ids if target not in found]
        if missing:
            raise NotFoundError(
                message="Record(s) requested for update not found",
                details={"missing": missing},
            )
        return ctx.evolve(current_records=tuple(current))

    def _guard_updates(self, ctx: PipelineContext) -> PipelineContext:
        by_id = {record[ID_FIELD]: record for record in ctx.current_records}
        guarded = tuple(
            self.c.permissions.guard_admin_flag(
                ctx.identity, ctx.request.collection, item, by_id[item[ID_FIELD]]
            )
            for item in ctx.update_items
        )
        return ctx.evolve(update_items=guarded)

    async def _insert(self, ctx: PipelineContext) -> list[Any]:
        try:
            return await self.c.store.collection(ctx.request.collection).insert_many(list(ctx.create_items))
        except Exception as e:
            logger.exception("Failed to insert records into %s", ctx.request.collection)
            raise WriteFailureError(message=f"Error creating record(s): {e}") from e

    async def _apply_updates(self, ctx: PipelineContext) -> int:
        coll = self.c.store.collection(ctx.request.collection)
        modified = 0
        try:
            for item in ctx.update_items:
                fields = {k: v for k, v in item.items() if k != ID_FIELD}
                modified += await coll.update_one({ID_FIELD: item[ID_FIELD]}, {"$set": fields})
        except Exception as e:
            logger.exception("Failed to update records in %s", ctx.request.collection)
            raise WriteFailureError(message=f"Error updating record(s): {e}") from e
        return modified

    async def _update_by_filter(self, ctx: PipelineContext) -> CrudResult:
        """Apply a single id-less item to every record matching the filter (admin only)"""
        request = ctx.request
        if len(request.probes) < 1:
            raise ValidationError(
                message="An existence probe is required for every item (1 item(s), 0 probe(s))",
                code="missing_probes",
                details={"items": 1, "probes": 0},
            )
        await self.c.integrity.check_unique(request.probes, request.collection)

        current = await self._find(request.collection, dict(request.filter))
        if not current:
            raise NotFoundError(message="No record matches the update filter")
        await self.c.permissions.authorize(
            ctx.identity, Action.UPDATE, AuthTarget(request.collection, records=tuple(current))
        )

        fields = {k: v for k, v in request.items[0].items() if k not in (ID_FIELD, *_OWNERSHIP_FIELDS)}
        fields[UPDATED_BY] = ctx.identity.user_id
        fields[UPDATED_AT] = utc_now()
        try:
            updated = await self.c.store.collection(request.collection).update_many(
                dict(request.filter), {"$set": fields}
            )
        except Exception as e:
            logger.exception("Failed to update records in %s", request.collection)
            raise WriteFailureError(message=f"Error updating record(s): {e}") from e
        finally:
            await self.c.cache.invalidate(request.collection)

        if updated == 0:
            raise WriteFailureError(message="No record was updated")

        await self.c.audit.update_log(request.collection, current, [fields], ctx.actor_id)
        logger.info(
            "Updated records by filter: collection=%s updated=%d actor=%s",
            request.collection,
            updated,
            ctx.actor_id,
        )
        return CrudResult.success(
            self.c.messages.format_message("updated", {"count": updated}).text,
            value={"docCount": updated, "createdCount": 0, "updatedCount": updated, "docIds": []},
        )
