"""
Access Resolver Module

Resolves a credential (bearer token or authenticated user descriptor) to an Identity
using the access, user and role collections.
"""

import logging
from typing import Any, Optional

from bson import ObjectId

from crudgate.common.errors import NotFoundError, TokenExpiredError, UnauthorizedError
from crudgate.common.time import is_expired
from crudgate.config import CrudOptions
from crudgate.domain.identity import Credential, Identity, RoleGrant
from crudgate.domain.record import ID_FIELD, Record, is_admin_record
from crudgate.repositories.document_store import DocumentStore

logger = logging.getLogger(__name__)


def _id_condition(value: Any) -> Any:
    """Match an id stored either as ObjectId or as its string form"""
    if isinstance(value, ObjectId):
        return {"$in": [value, str(value)]}
    if isinstance(value, str) and ObjectId.is_valid(value):
        return {"$in": [ObjectId(value), value]}
    return value


class AccessResolver:
    """
    Access Resolver

    Looks up the access grant for a credential, checks its expiry, loads the active
    user and derives the role grants of the user's default group. Identities are
    resolved fresh on every call.
    """

    def __init__(self, store: DocumentStore, options: CrudOptions):
        """
        Initialize Resolver

        Args:
            store: Document store holding the access-control collections
            options: CRUD options (collection names)
        """
        self.store = store
        self.options = options

    async def _find_one(self, collection: str, filter: dict[str, Any]) -> Optional[Record]:
        try:
            return await self.store.collection(collection).find_one(filter)
        except Exception as e:
            logger.exception("Access lookup failed on collection %s", collection)
            raise NotFoundError(
                message=f"Access information could not be loaded: {e}",
                code="access_lookup_failed",
            ) from e

    async def resolve(self, credential: Credential) -> Identity:
        """
        Resolve a credential to an Identity

        Args:
            credential: Token and/or user descriptor

        Returns:
            Identity: Active identity with role grants

        Raises:
            UnauthorizedError: No credential, unknown token, inactive user
            TokenExpiredError: Access grant expired
            NotFoundError: Access store lookup failed
        """
        if credential.token:
            grant = await self._find_one(self.options.access_coll, {"token": credential.token})
        elif credential.user_info is not None and credential.user_info.is_active:
            grant = await self._find_one(
                self.options.access_coll,
                {"userId": _id_condition(credential.user_info.user_id)},
            )
        else:
            raise UnauthorizedError(
                message="Unauthorized: please ensure that you have a registered account and are logged in",
                code="missing_credential",
            )

        if not grant:
            raise UnauthorizedError(
                message="Unauthorized: please ensure that you are logged in",
                code="access_not_found",
            )
        if is_expired(grant.get("expire")):
            raise TokenExpiredError()

        user = await self._find_one(
            self.options.user_coll,
            {ID_FIELD: _id_condition(grant.get("userId")), "isActive": True},
        )
        if not user:
            raise UnauthorizedError(
                message="Unauthorized: user information not found or inactive",
                code="inactive_user",
            )

        group = user.get("defaultGroup")
        role_grants = await self.role_grants(group) if group else ()

        return Identity(
            active=True,
            user_id=user[ID_FIELD],
            is_admin=is_admin_record(user),
            group=group,
            groups=tuple(user.get("groups") or ()),
            role_grants=role_grants,
        )

    async def role_grants(self, group: Any) -> tuple[RoleGrant, ...]:
        """Load the active role grants of a group"""
        try:
            roles = await self.store.collection(self.options.role_coll).find(
                {"group": group, "isActive": True}
            )
        except Exception as e:
            logger.exception("Role lookup failed for group %s", group)
            raise NotFoundError(
                message=f"Role assignments could not be loaded: {e}",
                code="access_lookup_failed",
            ) from e
        return tuple(RoleGrant.model_validate(role) for role in roles if role.get("service") is not None)
