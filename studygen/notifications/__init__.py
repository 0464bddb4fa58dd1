"""Notification subpackage"""

from .emitter import (
    NotificationEmitter,
    build_notification,
    channel_for,
    FLASHCARDS_CREATED,
    QUIZ_QUESTIONS_CREATED,
    GENERATION_NO_NEW_ITEMS,
    DOCUMENT_PROCESS_FAILED,
)

__all__ = [
    'NotificationEmitter',
    'build_notification',
    'channel_for',
    'FLASHCARDS_CREATED',
    'QUIZ_QUESTIONS_CREATED',
    'GENERATION_NO_NEW_ITEMS',
    'DOCUMENT_PROCESS_FAILED',
]
