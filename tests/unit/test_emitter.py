import json

import pytest

from studygen.notifications import (
    DOCUMENT_PROCESS_FAILED,
    FLASHCARDS_CREATED,
    NotificationEmitter,
    build_notification,
    channel_for,
)

from tests.fixtures.mock_redis import BrokenRedisClient, MockRedisClient


@pytest.mark.unit
def test_record_fields_from_tables():
    rec = build_notification('u1', FLASHCARDS_CREATED, {'document_id': 'd1', 'count': 6})
    assert rec['message'] == 'Flashcards created from your notes.'
    assert rec['category'] == 'flashcards'
    assert rec['priority'] == 'medium'
    assert rec['related_id'] == 'd1'
    assert rec['is_read'] is False
    failed = build_notification('u1', DOCUMENT_PROCESS_FAILED, {'document_id': 'd1'})
    assert failed['priority'] == 'high'
    assert build_notification('u1', 'something_else')['category'] == 'progress'


@pytest.mark.unit
def test_in_memory_delivery():
    emitter = NotificationEmitter()
    emitter.notify('u1', FLASHCARDS_CREATED, {'document_id': 'd1'})
    emitter.notify('u1', DOCUMENT_PROCESS_FAILED, {'document_id': 'd1', 'error': 'boom'})
    items = emitter.list_notifications('u1')
    assert [n['type'] for n in items] == [DOCUMENT_PROCESS_FAILED, FLASHCARDS_CREATED]


@pytest.mark.unit
def test_redis_push_and_publish():
    client = MockRedisClient()
    emitter = NotificationEmitter(client)
    rec = emitter.notify('u1', FLASHCARDS_CREATED, {'document_id': 'd1', 'count': 2})
    assert client.published[0][0] == channel_for('u1') == 'notifications:u1'
    assert json.loads(client.published[0][1])['id'] == rec['id']
    assert emitter.list_notifications('u1')[0]['metadata']['count'] == 2


@pytest.mark.unit
def test_delivery_failure_never_raises():
    emitter = NotificationEmitter(BrokenRedisClient())
    assert emitter.notify('u1', FLASHCARDS_CREATED, {'document_id': 'd1'}) is None
    assert emitter.notify('', FLASHCARDS_CREATED) is None
