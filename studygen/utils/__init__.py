"""Utility subpackage: logging and stored-file access"""

from .logger import (
    get_logger,
    log_request,
    log_error,
    log_llm_call,
    log_content_extracted,
    log_status_change,
    log_generation_run,
    log_notification,
    set_request_context,
    get_request_context,
)
from .file_handler import FileHandler, FileDownloadError, ResolvedFile, guess_media_type

__all__ = [
    'get_logger',
    'log_request',
    'log_error',
    'log_llm_call',
    'log_content_extracted',
    'log_status_change',
    'log_generation_run',
    'log_notification',
    'set_request_context',
    'get_request_context',
    'FileHandler',
    'FileDownloadError',
    'ResolvedFile',
    'guess_media_type',
]
