"""
Pipeline Context Module

Defines the immutable context threaded through pipeline stages, the collaborator
bundle every pipeline is composed from, and the stages shared by all pipelines.
"""

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Optional

from crudgate.common.errors import AppError, UnauthorizedError
from crudgate.common.messages import MessageCatalog
from crudgate.config import CrudOptions
from crudgate.domain.identity import Identity
from crudgate.domain.record import Record
from crudgate.domain.request import CrudRequest
from crudgate.domain.result import CrudResult
from crudgate.repositories.document_store import DocumentStore

if TYPE_CHECKING:
    from crudgate.services.access_resolver import AccessResolver
    from crudgate.services.audit_logger import AuditLogger
    from crudgate.services.cache_coordinator import CacheCoordinator
    from crudgate.services.integrity_checker import IntegrityChecker
    from crudgate.services.param_normalizer import ParamNormalizer
    from crudgate.services.permission_engine import PermissionEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineContext:
    """
    Pipeline Context

    Each stage receives the context and returns an evolved copy; stages never
    mutate shared state.
    """

    request: CrudRequest
    identity: Optional[Identity] = None
    # Records loaded before an update/delete, used for permission checks and audit
    current_records: tuple[Record, ...] = ()
    # Ids of the records a mutation applies to
    target_ids: tuple[Any, ...] = ()
    create_items: tuple[Record, ...] = ()
    update_items: tuple[Record, ...] = ()

    def evolve(self, **changes: Any) -> "PipelineContext":
        return replace(self, **changes)

    @property
    def actor_id(self) -> Optional[str]:
        return str(self.identity.user_id) if self.identity else None

    @property
    def scope_key(self) -> str:
        return self.identity.scope_key if self.identity else "anonymous"


@dataclass(frozen=True)
class CrudComponents:
    """Collaborators shared by the pipelines of one CrudService"""

    store: DocumentStore
    normalizer: "ParamNormalizer"
    resolver: "AccessResolver"
    permissions: "PermissionEngine"
    integrity: "IntegrityChecker"
    cache: "CacheCoordinator"
    audit: "AuditLogger"
    messages: MessageCatalog
    options: CrudOptions


async def authenticate(components: CrudComponents, ctx: PipelineContext) -> PipelineContext:
    """
    Resolve the request credential to an Identity

    Any resolver failure (expired token, lookup error) surfaces as UnauthorizedError,
    keeping the resolver's code.
    """
    try:
        identity = await components.resolver.resolve(ctx.request.credential)
    except UnauthorizedError:
        raise
    except AppError as e:
        raise UnauthorizedError(message=e.message, code=e.code, details=e.details) from e
    if not (identity.active and identity.user_id):
        raise UnauthorizedError()
    return ctx.evolve(identity=identity)


def failure_result(messages: MessageCatalog, error: AppError) -> CrudResult:
    """Render a stage error as a CrudResult"""
    kind = error.code if error.code in messages.templates else error.kind
    display = messages.format_message(kind, {**error.details, "message": error.message})
    logger.info("CRUD request failed: kind=%s code=%s message=%s", error.kind, error.code, error.message)
    return CrudResult.failure(error, message=display.text)
