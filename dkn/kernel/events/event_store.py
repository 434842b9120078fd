"""
Event Store service for the append-only activity log.

Events are added to the caller's session and committed together with the
change they describe.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from dkn.kernel.models.event_log import EventLog, EventType
from dkn.logging_config import get_request_id


class EventStore:
    """
    Service for managing the immutable activity log.
    
    Usage:
        event_store = EventStore(session)
        await event_store.log(
            event_type=EventType.KNOWLEDGE_CREATED,
            entity_type="knowledge_item",
            entity_id=item.id,
            user_id=principal.id,
            payload={"title": item.title},
        )
    """
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def log(
        self,
        event_type: EventType,
        entity_type: str,
        entity_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> EventLog:
        """
        Add an event to the activity log.
        
        Args:
            event_type: The type of event
            entity_type: The type of entity (account, knowledge_item, flag, ...)
            entity_id: The ID of the entity
            user_id: The acting account (optional for system events)
            payload: Additional event data
            
        Returns:
            The pending EventLog record
        """
        event = EventLog(
            event_type=event_type.value,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            payload=self._serialize_payload(payload or {}),
            request_id=get_request_id(),
        )
        
        self.session.add(event)
        return event
    
    def _serialize_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Convert payload values to JSON-serializable types."""
        return {key: self._serialize_value(value) for key, value in payload.items()}
    
    def _serialize_value(self, value: Any) -> Any:
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, dict):
            return self._serialize_payload(value)
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self._serialize_value(v) for v in value]
        return value
