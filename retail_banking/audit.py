"""
Audit Trail Module

Hash-chained immutable audit log with SHA-256 for tamper detection.
Account openings and every transfer outcome are logged here.
"""

import hashlib
import json
import threading
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Dict, List, Optional, Any, Tuple
from enum import Enum
from decimal import Decimal
import uuid

from .storage import StorageInterface, StorageRecord


class AuditEventType(Enum):
    """Types of audit events"""
    ACCOUNT_OPENED = "account_opened"
    TRANSFER_COMPLETED = "transfer_completed"
    TRANSFER_REJECTED = "transfer_rejected"  # Failed validation, nothing attempted
    TRANSFER_FAILED = "transfer_failed"      # Commit attempted and rolled back


@dataclass
class AuditEvent(StorageRecord):
    """
    Immutable audit event with hash chaining for tamper detection
    """
    event_type: AuditEventType
    entity_type: str  # account or transfer
    entity_id: str
    previous_hash: str
    current_hash: str
    metadata: Dict[str, Any]
    user_id: Optional[str] = None  # Principal who initiated the action
    sequence: int = 0  # Position in the chain

    def __post_init__(self):
        if self.metadata:
            self._serialize_metadata()

    def _serialize_metadata(self) -> None:
        """Convert metadata values to JSON-serializable format"""
        def convert_value(value):
            if isinstance(value, Decimal):
                return str(value)
            elif isinstance(value, datetime):
                return value.isoformat()
            elif isinstance(value, Enum):
                return value.value
            elif isinstance(value, dict):
                return {k: convert_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [convert_value(v) for v in value]
            else:
                return value

        self.metadata = {k: convert_value(v) for k, v in self.metadata.items()}

    def calculate_hash(self) -> str:
        """
        Calculate SHA-256 hash of this event
        Hash includes all fields except current_hash to prevent circular reference
        """
        hash_data = {
            'id': self.id,
            'created_at': self.created_at.isoformat(),
            'event_type': self.event_type.value,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'previous_hash': self.previous_hash,
            'user_id': self.user_id,
            'sequence': self.sequence,
            'metadata': self.metadata
        }

        json_data = json.dumps(hash_data, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(json_data.encode('utf-8')).hexdigest()

    def verify_hash(self) -> bool:
        """Verify that the current hash is correct"""
        return self.current_hash == self.calculate_hash()

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['event_type'] = self.event_type.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditEvent':
        if isinstance(data['event_type'], str):
            data['event_type'] = AuditEventType(data['event_type'])
        return super().from_dict(data)


class AuditTrail:
    """
    Hash-chained audit trail for tamper detection
    """

    def __init__(self, storage: StorageInterface, table_name: str = "audit_events"):
        self.storage = storage
        self.table_name = table_name
        self._lock = threading.Lock()
        self._tip: Optional[Tuple[int, str]] = None  # (sequence, hash) of the last event

    def _chain_tip(self) -> Tuple[int, str]:
        """
        Sequence and hash of the most recent stored event

        Served from the cache while the stored event count still matches it;
        the table is rescanned only when another writer has appended events.
        Must be called with ``self._lock`` held.
        """
        count = self.storage.count(self.table_name)
        if self._tip is not None and self._tip[0] == count:
            return self._tip
        if count == 0:
            self._tip = (0, "")
            return self._tip

        latest = max(self.storage.load_all(self.table_name), key=lambda e: e['sequence'])
        self._tip = (count, latest['current_hash'])
        return self._tip

    def log_event(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        metadata: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None
    ) -> AuditEvent:
        """
        Log an audit event with hash chaining

        Args:
            event_type: Type of audit event
            entity_type: Type of entity being audited
            entity_id: ID of the entity
            metadata: Additional event-specific data
            user_id: Principal who initiated the action

        Returns:
            Created AuditEvent
        """
        with self._lock:
            last_sequence, last_hash = self._chain_tip()
            now = datetime.now(timezone.utc)

            event = AuditEvent(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                event_type=event_type,
                entity_type=entity_type,
                entity_id=entity_id,
                previous_hash=last_hash,
                current_hash="",  # Calculated below
                metadata=metadata or {},
                user_id=user_id,
                sequence=last_sequence + 1
            )
            event.current_hash = event.calculate_hash()

            self.storage.save(self.table_name, event.id, event.to_dict())
            self._tip = (event.sequence, event.current_hash)
            return event

    def get_events_for_entity(self, entity_type: str, entity_id: str) -> List[AuditEvent]:
        """Get all audit events for a specific entity, oldest first"""
        events_data = self.storage.find(
            self.table_name,
            {'entity_type': entity_type, 'entity_id': entity_id}
        )
        events = [AuditEvent.from_dict(data) for data in events_data]
        events.sort(key=lambda x: x.sequence)
        return events

    def get_events_by_type(self, event_type: AuditEventType) -> List[AuditEvent]:
        """Get all audit events of one type, oldest first"""
        events_data = self.storage.find(self.table_name, {'event_type': event_type.value})
        events = [AuditEvent.from_dict(data) for data in events_data]
        events.sort(key=lambda x: x.sequence)
        return events

    def verify_integrity(self) -> Dict[str, Any]:
        """
        Verify the integrity of the entire audit chain

        Returns:
            Dictionary with integrity check results
        """
        result = {
            'valid': True,
            'total_events': 0,
            'hash_errors': [],
            'chain_breaks': []
        }

        all_events_data = self.storage.load_all(self.table_name)
        if not all_events_data:
            return result

        events = [AuditEvent.from_dict(data) for data in all_events_data]
        events.sort(key=lambda x: x.sequence)
        result['total_events'] = len(events)

        previous_hash = ""
        for position, event in enumerate(events):
            if not event.verify_hash():
                result['valid'] = False
                result['hash_errors'].append({
                    'event_id': event.id,
                    'position': position
                })
            if event.previous_hash != previous_hash:
                result['valid'] = False
                result['chain_breaks'].append({
                    'event_id': event.id,
                    'position': position
                })
            previous_hash = event.current_hash

        return result
