"""
Workflow Audit Log

Append-only record of workflow mutations. Each event carries the SHA-256 of
its predecessor, so editing or removing a stored event breaks the chain and
shows up in verify_integrity().
"""

import hashlib
import json
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .storage import StorageInterface, StorageRecord, to_jsonable


class AuditEventType(Enum):
    WORKFLOW_CREATED = "workflow_created"
    WORKFLOW_STAGE_UPDATED = "workflow_stage_updated"
    WORKFLOW_APPROVAL_RECORDED = "workflow_approval_recorded"
    WORKFLOW_ESCALATED = "workflow_escalated"
    WORKFLOW_MILESTONE_UPDATED = "workflow_milestone_updated"


@dataclass
class AuditEvent(StorageRecord):
    """One link of the chain; metadata is normalized to JSON types on creation"""
    event_type: AuditEventType
    entity_type: str
    entity_id: str
    previous_hash: str
    current_hash: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    user_id: Optional[str] = None

    def __post_init__(self):
        self.metadata = to_jsonable(self.metadata or {})

    def calculate_hash(self) -> str:
        """SHA-256 over every field except current_hash"""
        body = {
            'id': self.id,
            'created_at': self.created_at.isoformat(),
            'event_type': self.event_type.value,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'previous_hash': self.previous_hash,
            'user_id': self.user_id,
            'metadata': self.metadata
        }
        canonical = json.dumps(body, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(canonical.encode('utf-8')).hexdigest()

    def verify_hash(self) -> bool:
        return self.current_hash == self.calculate_hash()

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['event_type'] = self.event_type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditEvent':
        fields = dict(data)
        fields['created_at'] = datetime.fromisoformat(fields['created_at'])
        fields['updated_at'] = datetime.fromisoformat(fields['updated_at'])
        fields['event_type'] = AuditEventType(fields['event_type'])
        return cls(**fields)


def _in_order(records: Iterable[Dict[str, Any]]) -> List[AuditEvent]:
    # sorted() is stable, so events sharing a timestamp keep insertion order
    return sorted((AuditEvent.from_dict(r) for r in records), key=lambda e: e.created_at)


class AuditTrail:
    """Hash-chained audit log kept in its own storage table"""

    def __init__(self, storage: StorageInterface, table_name: str = "audit_events"):
        self.storage = storage
        self.table_name = table_name
        self._lock = threading.Lock()
        events = _in_order(self.storage.load_all(self.table_name))
        self._last_hash = events[-1].current_hash if events else ""

    def log_event(self, event_type: AuditEventType, entity_type: str, entity_id: str,
                  metadata: Optional[Dict[str, Any]] = None,
                  user_id: Optional[str] = None) -> AuditEvent:
        """
        Append an event to the chain.

        Args:
            event_type: What happened
            entity_type: Kind of entity affected (``decision_workflow``)
            entity_id: ID of the affected entity
            metadata: Event details; enums and datetimes are stored by value
            user_id: Who caused the change, when known

        Returns:
            The stored AuditEvent
        """
        with self._lock:
            now = datetime.now(timezone.utc)
            event = AuditEvent(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                event_type=event_type,
                entity_type=entity_type,
                entity_id=entity_id,
                previous_hash=self._last_hash,
                current_hash="",
                metadata=metadata or {},
                user_id=user_id
            )
            event.current_hash = event.calculate_hash()
            self.storage.save(self.table_name, event.id, event.to_dict())
            self._last_hash = event.current_hash
            return event

    def get_events_for_entity(self, entity_type: str, entity_id: str,
                              limit: Optional[int] = None) -> List[AuditEvent]:
        """Events for one entity, oldest first; ``limit`` keeps the most recent"""
        events = _in_order(self.storage.find(
            self.table_name, {'entity_type': entity_type, 'entity_id': entity_id}
        ))
        return events[-limit:] if limit else events

    def verify_integrity(self) -> Dict[str, Any]:
        """Recompute every hash and walk the previous_hash links"""
        events = _in_order(self.storage.load_all(self.table_name))
        hash_errors = []
        chain_breaks = []

        expected_previous = ""
        for position, event in enumerate(events):
            recomputed = event.calculate_hash()
            if recomputed != event.current_hash:
                hash_errors.append({
                    'event_id': event.id,
                    'position': position,
                    'expected_hash': recomputed,
                    'actual_hash': event.current_hash
                })
            if event.previous_hash != expected_previous:
                chain_breaks.append({
                    'event_id': event.id,
                    'position': position,
                    'expected_previous_hash': expected_previous,
                    'actual_previous_hash': event.previous_hash
                })
            expected_previous = event.current_hash

        return {
            'valid': not (hash_errors or chain_breaks),
            'total_events': len(events),
            'hash_errors': hash_errors,
            'chain_breaks': chain_breaks
        }

    def count_events(self) -> int:
        return self.storage.count(self.table_name)
