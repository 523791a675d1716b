"""
Integrity Checker Module

Uniqueness checks before writes and referential checks before deletes.
"""

import logging
from typing import Any, Sequence

from crudgate.common.errors import HasSubItemsError, ReadFailureError, RecordExistsError
from crudgate.common.ids import id_variants
from crudgate.domain.record import PARENT_ID
from crudgate.repositories.document_store import DocumentStore

logger = logging.getLogger(__name__)


class IntegrityChecker:
    """
    Integrity Checker

    Blocks writes that would duplicate a record and deletes of records still
    referenced through `parentId`. Nothing is cascaded.
    """

    def __init__(self, store: DocumentStore):
        """
        Initialize Checker

        Args:
            store: Document store
        """
        self.store = store

    async def _exists(self, collection: str, filter: dict[str, Any]) -> bool:
        try:
            return await self.store.collection(collection).find_one(filter) is not None
        except Exception as e:
            logger.exception("Integrity lookup failed on collection %s", collection)
            raise ReadFailureError(message=f"Error reading record(s): {e}") from e

    async def check_unique(self, probes: Sequence[dict[str, Any]], collection: str) -> None:
        """
        Check that no probe matches a stored record

        Args:
            probes: Existence probe filters
            collection: Collection to check

        Raises:
            RecordExistsError: A probe matched; details carry its field/value pairs
        """
        for probe in probes:
            if not probe:
                continue
            if await self._exists(collection, probe):
                attributes = {field: str(value) for field, value in probe.items()}
                summary = " | ".join(f"{field}: {value}" for field, value in attributes.items())
                raise RecordExistsError(
                    message=f"Record with similar information already exists [{summary}]",
                    details={"collection": collection, "attributes": attributes},
                )

    async def check_deletable(
        self,
        target_ids: Sequence[Any],
        collection: str,
        child_collections: Sequence[str] = (),
    ) -> None:
        """
        Check that no record references the delete targets as parent

        Args:
            target_ids: Ids of the records to delete
            collection: Collection of the targets
            child_collections: Collections whose records may reference the targets

        Raises:
            HasSubItemsError: Targets are referenced by sub-items
        """
        if not target_ids:
            return
        parent_filter = {PARENT_ID: {"$in": id_variants(target_ids)}}

        if await self._exists(collection, parent_filter):
            raise HasSubItemsError(
                message="A record that includes sub-items cannot be deleted. Delete/remove the sub-items first",
                details={"collections": [collection]},
            )

        offending = []
        for child in dict.fromkeys(child_collections):
            if await self._exists(child, parent_filter):
                offending.append(child)
        if offending:
            raise HasSubItemsError(
                message=(
                    "A record that contains sub-items cannot be deleted. "
                    f"Delete/remove the sub-items [from {', '.join(offending)} collection(s)] first"
                ),
                details={"collections": offending},
            )
