"""
Audit Log Repository Document Store Implementation

Writes audit logs into a collection of the document store itself.
"""

from typing import Any, Optional

from bson import ObjectId

from crudgate.domain.audit import AuditLogCreate, AuditLogModel
from crudgate.repositories.audit_repo import AuditLogRepository
from crudgate.repositories.document_store import DocumentStore


class DocumentAuditLogRepository(AuditLogRepository):
    """Audit Log Repository backed by a DocumentStore collection"""

    def __init__(self, store: DocumentStore, collection: str = "audits"):
        """
        Initialize Repository

        Args:
            store: Document store holding the audit collection
            collection: Audit collection name
        """
        self.logs = store.collection(collection)

    def _to_domain(self, document: dict[str, Any]) -> AuditLogModel:
        return AuditLogModel(
            id=str(document["_id"]),
            collection=document["collection"],
            action=document["action"],
            actor_id=document.get("actor_id"),
            payload=document.get("payload"),
            previous=document.get("previous"),
            logged_at=document["logged_at"],
        )

    async def create(self, data: AuditLogCreate) -> AuditLogModel:
        document = {
            "collection": data.collection,
            "action": data.action.value,
            "actor_id": data.actor_id,
            "payload": data.payload,
            "previous": data.previous,
            "logged_at": data.logged_at,
        }
        inserted = await self.logs.insert_many([document])
        return self._to_domain({**document, "_id": inserted[0]})

    async def list_by_collection(self, collection: str, limit: int = 100) -> list[AuditLogModel]:
        documents = await self.logs.find(
            {"collection": collection},
            sort=[("logged_at", -1)],
            limit=limit,
        )
        return [self._to_domain(document) for document in documents]

    async def get_by_id(self, id: str) -> Optional[AuditLogModel]:
        if not ObjectId.is_valid(id):
            return None
        document = await self.logs.find_one({"_id": ObjectId(id)})
        return self._to_domain(document) if document else None
