"""
Diagram Store

Persists generated diagrams in Firestore and reads a user's history back,
newest first. Each generation writes exactly one document; documents are
never updated afterwards.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from firebase_admin import firestore
from google.cloud.firestore_v1 import FieldFilter

from config import DIAGRAMS_COLLECTION
from user_friendly_errors import DiagramStoreError

logger = logging.getLogger(__name__)


def _serialize_timestamp(value: Any) -> Optional[str]:
    """Firestore returns DatetimeWithNanoseconds; expose ISO strings to clients"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "timestamp"):
        return datetime.fromtimestamp(value.timestamp()).isoformat()
    return str(value)


def _error_details(exc: Exception) -> Any:
    details = getattr(exc, "details", None)
    if callable(details):
        try:
            details = details()
        except Exception:
            details = None
    return details if details is not None else str(exc)


class DiagramStore:
    """Firestore-backed storage for DiagramRecords"""

    def __init__(self, db_client=None, collection: str = DIAGRAMS_COLLECTION):
        self.db = db_client
        self.collection = collection

    def set_db(self, db_client):
        self.db = db_client

    def is_available(self) -> bool:
        return self.db is not None

    def _ensure_db(self):
        if not self.db:
            raise DiagramStoreError("Storage error: Database not available", 500)

    def insert_diagram(
        self,
        user_id: str,
        title: str,
        description: str,
        diagram_type: str,
        diagram_code: str,
        analysis: Dict[str, Any],
    ) -> str:
        """
        Insert one DiagramRecord

        Returns:
            The id assigned by Firestore

        Raises:
            DiagramStoreError: when the write fails
        """
        self._ensure_db()
        data = {
            "user_id": user_id,
            "title": title,
            "description": description,
            "diagram_type": diagram_type,
            "diagram_code": diagram_code,
            "analysis": analysis,
            "created_at": firestore.SERVER_TIMESTAMP,
        }
        try:
            _, doc_ref = self.db.collection(self.collection).add(data)
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            logger.error(f"❌ Failed to store diagram for user {user_id}: {message}")
            raise DiagramStoreError(
                f"Storage error: {message}",
                500,
                {"details": _error_details(e), "userId": user_id},
            ) from e

        logger.info(f"💾 Stored diagram {doc_ref.id} for user {user_id}")
        return doc_ref.id

    def list_user_diagrams(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Return the user's DiagramRecords ordered by creation time, newest first"""
        self._ensure_db()
        try:
            query = (
                self.db.collection(self.collection)
                .where(filter=FieldFilter("user_id", "==", user_id))
                .order_by("created_at", direction=firestore.Query.DESCENDING)
                .limit(limit)
            )
            return [self._to_record(doc.id, doc.to_dict() or {}) for doc in query.stream()]
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            logger.error(f"❌ Failed to fetch diagrams for user {user_id}: {message}")
            raise DiagramStoreError(f"Storage error: {message}", 500, {"details": _error_details(e)}) from e

    @staticmethod
    def _to_record(doc_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": doc_id,
            "userId": data.get("user_id"),
            "title": data.get("title"),
            "description": data.get("description"),
            "diagramType": data.get("diagram_type"),
            "diagramCode": data.get("diagram_code"),
            "analysis": data.get("analysis"),
            "createdAt": _serialize_timestamp(data.get("created_at")),
        }


# Global instance
diagram_store = DiagramStore()
