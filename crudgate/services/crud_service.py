"""
CRUD Service Module

Facade wiring the pipeline collaborators and exposing the CRUD operations.
"""

from typing import Any, Mapping, Optional, Union

from crudgate.common.messages import MessageCatalog
from crudgate.config import CrudOptions
from crudgate.domain.request import CrudParams
from crudgate.domain.result import CrudResult
from crudgate.repositories.audit_repo import AuditLogRepository
from crudgate.repositories.cache_repo import CacheRepository
from crudgate.repositories.document_store import DocumentStore
from crudgate.services.access_resolver import AccessResolver
from crudgate.services.audit_logger import AuditLogger
from crudgate.services.cache_coordinator import CacheCoordinator
from crudgate.services.context import CrudComponents
from crudgate.services.delete_pipeline import DeletePipeline
from crudgate.services.integrity_checker import IntegrityChecker
from crudgate.services.load_pipeline import LoadPipeline
from crudgate.services.param_normalizer import ParamNormalizer
from crudgate.services.permission_engine import PermissionEngine
from crudgate.services.query_pipeline import QueryPipeline
from crudgate.services.save_pipeline import SavePipeline

Params = Union[CrudParams, Mapping[str, Any]]


class CrudService:
    """
    CRUD Service

    Every operation returns a CrudResult; errors never propagate to the caller.
    """

    def __init__(
        self,
        store: DocumentStore,
        cache_repo: CacheRepository,
        audit_repo: Optional[AuditLogRepository] = None,
        options: Optional[CrudOptions] = None,
        messages: Optional[MessageCatalog] = None,
        access_store: Optional[DocumentStore] = None,
    ):
        """
        Initialize Service

        Args:
            store: Document store holding the application collections
            cache_repo: Query cache repository
            audit_repo: Audit log repository (None disables auditing)
            options: CRUD options, defaults to CrudOptions()
            messages: Message catalog for display messages
            access_store: Store holding the access-control collections, defaults to `store`
        """
        options = options or CrudOptions()
        access_store = access_store or store
        self.options = options
        self.components = CrudComponents(
            store=store,
            normalizer=ParamNormalizer(options),
            resolver=AccessResolver(access_store, options),
            permissions=PermissionEngine(access_store, options),
            integrity=IntegrityChecker(store),
            cache=CacheCoordinator(cache_repo, options.cache_ttl_seconds),
            audit=AuditLogger(audit_repo, options),
            messages=messages or MessageCatalog(),
            options=options,
        )
        self._save = SavePipeline(self.components)
        self._delete = DeletePipeline(self.components)
        self._query = QueryPipeline(self.components)
        self._load = LoadPipeline(self.components)

    async def save_record(self, params: Params) -> CrudResult:
        return await self._save.save_record(params)

    async def delete_record(self, params: Params) -> CrudResult:
        return await self._delete.delete_record(params)

    async def get_record(self, params: Params) -> CrudResult:
        return await self._query.get_record(params)

    async def get_all_record(self, params: Params) -> CrudResult:
        return await self._query.get_all_record(params)

    async def get_record_stream(self, params: Params) -> CrudResult:
        """Streamed get_record; iterating the value may raise ReadFailureError"""
        return await self._query.get_record_stream(params)

    async def get_all_record_stream(self, params: Params) -> CrudResult:
        """Streamed get_all_record; iterating the value may raise ReadFailureError"""
        return await self._query.get_all_record_stream(params)

    async def load_record(self, params: Params) -> CrudResult:
        return await self._load.load_record(params)
