"""Owner notifications for generation outcomes.

Records are pushed onto the owner's Redis list and published on
``notifications:{owner}`` for real-time delivery. Delivery is fire-and-forget:
``notify`` logs failures and never raises.
"""
from __future__ import annotations

import os
import json
import time
import uuid
import threading
from typing import Any, Dict, List, Optional

import redis

from studygen.utils import get_logger, log_notification

LOG = get_logger()

NOTIFICATION_HISTORY_LIMIT = int(os.getenv('NOTIFICATION_HISTORY_LIMIT', '100'))

FLASHCARDS_CREATED = 'flashcards_created'
QUIZ_QUESTIONS_CREATED = 'quiz_questions_created'
GENERATION_NO_NEW_ITEMS = 'generation_no_new_items'
DOCUMENT_PROCESS_FAILED = 'document_process_failed'

NOTIFICATION_MESSAGES = {
    FLASHCARDS_CREATED: 'Flashcards created from your notes.',
    QUIZ_QUESTIONS_CREATED: 'Quiz questions created from your notes.',
    GENERATION_NO_NEW_ITEMS: 'No new study items were found in your document.',
    DOCUMENT_PROCESS_FAILED: 'Failed to process document.',
}

TYPE_TO_CATEGORY = {
    FLASHCARDS_CREATED: 'flashcards',
    QUIZ_QUESTIONS_CREATED: 'quiz',
    GENERATION_NO_NEW_ITEMS: 'documents',
    DOCUMENT_PROCESS_FAILED: 'documents',
}

TYPE_TO_PRIORITY = {
    DOCUMENT_PROCESS_FAILED: 'high',
    GENERATION_NO_NEW_ITEMS: 'low',
}
DEFAULT_PRIORITY = 'medium'


def channel_for(owner_id: str) -> str:
    return f'notifications:{owner_id}'


def build_notification(owner_id: str, event_type: str, metadata: Optional[Dict[str, Any]] = None, priority: Optional[str] = None) -> Dict[str, Any]:
    metadata = dict(metadata or {})
    message = NOTIFICATION_MESSAGES.get(event_type, 'New notification')
    return {
        'id': str(uuid.uuid4()),
        'owner_id': owner_id,
        'type': event_type,
        'title': message,
        'message': message,
        'category': TYPE_TO_CATEGORY.get(event_type, 'progress'),
        'priority': priority or TYPE_TO_PRIORITY.get(event_type, DEFAULT_PRIORITY),
        'metadata': metadata,
        'related_id': metadata.get('document_id'),
        'related_type': 'document' if metadata.get('document_id') else None,
        'is_read': False,
        'created_at': int(time.time()),
    }


class NotificationEmitter:
    def __init__(self, client=None):
        self._client = client
        self._lock = threading.Lock()
        self._in_memory: Dict[str, List[Dict[str, Any]]] = {}

    def _deliver(self, record: Dict[str, Any]):
        owner_id = record['owner_id']
        if self._client is None:
            with self._lock:
                history = self._in_memory.setdefault(owner_id, [])
                history.insert(0, record)
                del history[NOTIFICATION_HISTORY_LIMIT:]
            return
        payload = json.dumps(record)
        self._client.lpush(channel_for(owner_id), payload)
        self._client.ltrim(channel_for(owner_id), 0, NOTIFICATION_HISTORY_LIMIT - 1)
        self._client.publish(channel_for(owner_id), payload)

    def notify(self, owner_id: str, event_type: str, metadata: Optional[Dict[str, Any]] = None, priority: Optional[str] = None) -> Optional[Dict[str, Any]]:
        if not owner_id or not event_type:
            log_notification(owner_id, event_type, False, error='owner_id and event_type are required')
            return None
        try:
            record = build_notification(owner_id, event_type, metadata, priority)
            self._deliver(record)
        except (redis.RedisError, TypeError, ValueError) as e:
            log_notification(owner_id, event_type, False, error=str(e))
            return None
        log_notification(owner_id, event_type, True)
        return record

    def list_notifications(self, owner_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        if self._client is None:
            with self._lock:
                return list(self._in_memory.get(owner_id, [])[:limit])
        try:
            return [json.loads(r) for r in self._client.lrange(channel_for(owner_id), 0, limit - 1)]
        except redis.RedisError as e:
            LOG.warning('notification_list_failed', extra={'owner_id': owner_id, 'error': str(e)})
            return []
