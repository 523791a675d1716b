"""
Query Pipeline Module

Normalize -> Authenticate -> ReadAudit -> CacheLookup -> [miss] ->
ScopeByIdentity -> StorageRead -> CacheStore
"""

import logging
from typing import Any, AsyncIterator, Mapping, Union

from crudgate.common.errors import AppError, ReadFailureError, UnauthorizedError
from crudgate.domain.record import ID_FIELD, Record
from crudgate.domain.request import CrudParams, CrudRequest
from crudgate.domain.result import CrudResult
from crudgate.services.context import (
    CrudComponents,
    PipelineContext,
    authenticate,
    failure_result,
)
from crudgate.services.param_normalizer import Operation

logger = logging.getLogger(__name__)

Params = Union[CrudParams, Mapping[str, Any]]


class QueryPipeline:
    """
    Query Pipeline

    Results are scoped by identity: admins and collection-level readers see every
    record, everyone else sees their own records plus any records granted to them
    by record-level read grants. Anonymous GetAll (when enabled) is unscoped.
    """

    def __init__(self, components: CrudComponents):
        """
        Initialize Pipeline

        Args:
            components: Shared collaborators
        """
        self.c = components

    async def get_record(self, params: Params) -> CrudResult:
        """Get records by id and/or filter; requires a credential"""
        return await self._run(params, Operation.GET, stream=False)

    async def get_all_record(self, params: Params) -> CrudResult:
        """Get records by filter; anonymous callers allowed when configured"""
        return await self._run(params, Operation.GET_ALL, stream=False)

    async def get_record_stream(self, params: Params) -> CrudResult:
        """
        Like get_record, the result value is an async iterator of records

        Errors before iteration come back as the result. A storage error while
        iterating is raised from the iterator as ReadFailureError.
        """
        return await self._run(params, Operation.GET, stream=True)

    async def get_all_record_stream(self, params: Params) -> CrudResult:
        """
        Like get_all_record, the result value is an async iterator of records

        Raises ReadFailureError from the iterator when storage fails mid-stream.
        """
        return await self._run(params, Operation.GET_ALL, stream=True)

    async def _run(self, params: Params, operation: Operation, stream: bool) -> CrudResult:
        try:
            request = self.c.normalizer.normalize(params, operation)
            ctx = await self._authenticate(PipelineContext(request=request), operation)
            await self.c.audit.read_log(request.collection, request.filter, ctx.actor_id)
            if stream:
                return await self._stream(ctx)
            return await self._read(ctx)
        except AppError as e:
            return failure_result(self.c.messages, e)

    async def _authenticate(self, ctx: PipelineContext, operation: Operation) -> PipelineContext:
        if ctx.request.credential.is_empty:
            if operation == Operation.GET_ALL and self.c.options.anonymous_get_all:
                return ctx
            raise UnauthorizedError(
                message="Unauthorized: please ensure that you have a registered account and are logged in",
                code="missing_credential",
            )
        return await authenticate(self.c, ctx)

    async def _scoped_filter(self, ctx: PipelineContext) -> dict[str, Any]:
        """Combine the query filter, requested ids and read scope"""
        request = ctx.request
        scope = await self.c.permissions.read_scope(ctx.identity, request.collection, request.doc_ids)

        clauses: list[dict[str, Any]] = []
        if request.filter:
            clauses.append(dict(request.filter))
        if request.doc_ids:
            clauses.append({ID_FIELD: {"$in": list(request.doc_ids)}})
        if scope.filter:
            clauses.append(scope.filter)

        if not clauses:
            return {}
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}

    async def _read(self, ctx: PipelineContext) -> CrudResult:
        request = ctx.request
        cached = await self.c.cache.lookup(request.collection, request, ctx.scope_key)
        if cached:
            return CrudResult.success(
                self.c.messages.format_message("from_cache", {"count": len(cached)}).text,
                value=cached,
                from_cache=True,
            )

        query = await self._scoped_filter(ctx)

        try:
            records = await self.c.store.collection(request.collection).find(
                query,
                projection=request.projection or None,
                sort=request.sort or None,
                skip=request.skip,
                limit=request.limit,
            )
        except Exception as e:
            logger.exception("Failed to read records from %s", request.collection)
            raise ReadFailureError(message=f"Error reading record(s): {e}") from e

        if not records:
            return CrudResult.not_found()

        await self.c.cache.store(request.collection, request, ctx.scope_key, records)
        return CrudResult.success(
            self.c.messages.format_message("success", {"count": len(records)}).text,
            value=records,
        )

    async def _stream(self, ctx: PipelineContext) -> CrudResult:
        query = await self._scoped_filter(ctx)
        return CrudResult.success(
            self.c.messages.format_message("stream", {}).text,
            value=self._iterate(ctx.request, query),
        )

    async def _iterate(self, request: CrudRequest, query: dict[str, Any]) -> AsyncIterator[Record]:
        cursor = self.c.store.collection(request.collection).stream(
            query,
            projection=request.projection or None,
            sort=request.sort or None,
            skip=request.skip,
            limit=request.limit,
        )
        try:
            async for record in cursor:
                yield record
        except Exception as e:
            logger.exception("Record stream failed for %s", request.collection)
            raise ReadFailureError(message=f"Error reading record(s): {e}") from e
