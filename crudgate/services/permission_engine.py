"""
Permission Engine Module

Decides allow/deny for create/read/update/delete by combining admin override,
record ownership, collection-level and record-level role grants.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from bson import ObjectId

from crudgate.common.errors import ReadFailureError, UnauthorizedError
from crudgate.common.ids import id_variants
from crudgate.config import CrudOptions
from crudgate.domain.identity import Identity
from crudgate.domain.record import (
    ADMIN_FLAG,
    CREATED_BY,
    ID_FIELD,
    PROFILE_FIELD,
    Record,
    is_admin_record,
)
from crudgate.domain.request import Action
from crudgate.repositories.document_store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthTarget:
    """Collection and (optionally) the records an action applies to"""

    collection: str
    records: tuple[Record, ...] = ()


@dataclass(frozen=True)
class ReadScope:
    """
    Read scope of an identity

    `filter` is AND-ed with the caller's query; None means unrestricted.
    """

    filter: Optional[dict[str, Any]] = None


class PermissionEngine:
    """
    Permission Engine

    Rules are OR-ed per record; every target record must be permitted by at least
    one rule. Decisions only depend on their inputs.
    """

    def __init__(self, store: DocumentStore, options: CrudOptions):
        """
        Initialize Engine

        Args:
            store: Document store holding the services collection
            options: CRUD options (collection names)
        """
        self.store = store
        self.options = options

    async def collection_ref(self, collection: str) -> Optional[Any]:
        """
        Look up the service id registered for a collection

        Services are registered by lower-case or capitalized name with type "Collection".

        Returns:
            Service id, or None if the collection is not registered
        """
        names = list(dict.fromkeys([collection.lower(), collection.capitalize()]))
        try:
            service = await self.store.collection(self.options.service_coll).find_one(
                {"name": {"$in": names}, "type": "Collection"}
            )
        except Exception as e:
            logger.exception("Service lookup failed for collection %s", collection)
            raise ReadFailureError(
                message=f"Collection permissions could not be loaded: {e}",
                code="service_lookup_failed",
            ) from e
        return service[ID_FIELD] if service else None

    def is_permitted(
        self,
        identity: Identity,
        action: Action,
        collection: str,
        collection_ref: Any,
        record: Optional[Record] = None,
    ) -> bool:
        """Evaluate the rules for a single record (or the collection when record is None)"""
        if identity.is_admin:
            return True

        record_id = record.get(ID_FIELD) if record else None

        if record is not None and action != Action.CREATE:
            owner = record.get(CREATED_BY)
            if owner is not None and str(owner) == str(identity.user_id):
                return True
            # Self-service update of the caller's own user record
            if (
                action == Action.UPDATE
                and collection == self.options.user_coll
                and str(record_id) == str(identity.user_id)
            ):
                return True

        return any(
            grant.allows(action.value) and grant.matches(collection_ref, record_id)
            for grant in identity.role_grants
        )

    async def authorize(self, identity: Identity, action: Action, target: AuthTarget) -> None:
        """
        Authorize an action

        Args:
            identity: Resolved identity
            action: Requested action
            target: Collection and the records the action applies to

        Raises:
            UnauthorizedError: Any target record is not permitted
        """
        if not identity.active:
            raise UnauthorizedError()
        if identity.is_admin:
            return

        collection_ref = await self.collection_ref(target.collection) if identity.role_grants else None

        if action == Action.CREATE:
            if not self.is_permitted(identity, action, target.collection, collection_ref):
                raise UnauthorizedError(
                    message=f"You are not authorized to create records in {target.collection}",
                    code="create_denied",
                )
            return

        if not target.records:
            raise UnauthorizedError()

        denied = [
            str(record.get(ID_FIELD))
            for record in target.records
            if not self.is_permitted(identity, action, target.collection, collection_ref, record)
        ]
        if denied:
            raise UnauthorizedError(
                message=f"You are not authorized to {action.value} the requested record(s)",
                code=f"{action.value}_denied",
                details={"denied": denied},
            )

    async def read_scope(
        self,
        identity: Optional[Identity],
        collection: str,
        doc_ids: tuple[Any, ...] = (),
    ) -> ReadScope:
        """
        Compute the read scope of an identity

        - anonymous (unscoped lookup) or admin: unrestricted
        - collection-level read grant: unrestricted
        - otherwise: own records, plus the records named by record-level read grants
          (only the requested ones when doc_ids is given)
        """
        if identity is None or identity.is_admin:
            return ReadScope()

        owned = {CREATED_BY: {"$in": id_variants([identity.user_id])}}
        read_grants = [grant for grant in identity.role_grants if grant.can_read]
        if not read_grants:
            return ReadScope(filter=owned)

        collection_ref = await self.collection_ref(collection)
        if any(grant.matches(collection_ref) for grant in read_grants):
            return ReadScope()

        granted = {str(grant.service) for grant in read_grants}
        if doc_ids:
            granted_ids = [doc_id for doc_id in doc_ids if str(doc_id) in granted]
        else:
            granted_ids = [ObjectId(ref) if ObjectId.is_valid(ref) else ref for ref in sorted(granted)]
        if not granted_ids:
            return ReadScope(filter=owned)
        return ReadScope(filter={"$or": [{ID_FIELD: {"$in": id_variants(granted_ids)}}, owned]})

    def guard_admin_flag(
        self,
        identity: Identity,
        collection: str,
        item: Record,
        current: Record,
    ) -> Record:
        """
        Keep the admin flag of a user record unchanged unless the caller is admin

        Returns:
            Record: Item with `profile.isAdmin` reset to its prior value
        """
        if identity.is_admin or collection != self.options.user_coll:
            return item

        prior = is_admin_record(current)
        guarded = dict(item)
        if isinstance(guarded.get(PROFILE_FIELD), dict):
            profile = dict(guarded[PROFILE_FIELD])
            if profile.get(ADMIN_FLAG, prior) != prior:
                logger.warning("Admin flag change rejected for user %s", current.get(ID_FIELD))
            profile[ADMIN_FLAG] = prior
            guarded[PROFILE_FIELD] = profile
        dotted = f"{PROFILE_FIELD}.{ADMIN_FLAG}"
        if dotted in guarded:
            guarded[dotted] = prior
        return guarded
