"""
Load Pipeline Module

Admin-only bulk refresh of a collection, used by ETL tasks:
Normalize -> Authenticate -> RequireAdmin -> DeleteAll -> InsertMany -> InvalidateCache
"""

import logging
from typing import Any, Mapping, Union

from crudgate.common.errors import AppError, UnauthorizedError, WriteFailureError
from crudgate.domain.request import CrudParams
from crudgate.domain.result import CrudResult
from crudgate.services.context import (
    CrudComponents,
    PipelineContext,
    authenticate,
    failure_result,
)
from crudgate.services.param_normalizer import Operation

logger = logging.getLogger(__name__)


class LoadPipeline:
    """Load Pipeline"""

    def __init__(self, components: CrudComponents):
        self.c = components

    async def load_record(self, params: Union[CrudParams, Mapping[str, Any]]) -> CrudResult:
        """
        Replace the content of a collection with `items`

        Returns:
            CrudResult: value {"docCount"} on success
        """
        try:
            return await self._load(params)
        except AppError as e:
            return failure_result(self.c.messages, e)

    async def _load(self, params: Union[CrudParams, Mapping[str, Any]]) -> CrudResult:
        request = self.c.normalizer.normalize(params, Operation.LOAD)
        ctx = await authenticate(self.c, PipelineContext(request=request))
        if not ctx.identity.is_admin:
            raise UnauthorizedError(
                message="Loading records is restricted to administrators",
                code="load_denied",
            )

        coll = self.c.store.collection(request.collection)
        try:
            removed = await coll.delete_many({})
            inserted = await coll.insert_many(list(request.items))
        except Exception as e:
            logger.exception("Failed to load records into %s", request.collection)
            raise WriteFailureError(message=f"Error loading record(s): {e}") from e
        finally:
            await self.c.cache.invalidate(request.collection)

        if not inserted:
            raise WriteFailureError(message="No record was loaded")

        logger.info(
            "Loaded records: collection=%s removed=%d inserted=%d actor=%s",
            request.collection,
            removed,
            len(inserted),
            ctx.actor_id,
        )
        return CrudResult.success(
            self.c.messages.format_message("loaded", {"count": len(inserted)}).text,
            value={"docCount": len(inserted)},
        )
