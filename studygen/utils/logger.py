import os
import sys
import logging
import pathlib
import contextvars
from logging.handlers import RotatingFileHandler
from pythonjsonlogger import jsonlogger

_request_ctx_var = contextvars.ContextVar('request_ctx', default={})


def set_request_context(request_id: str, user_id: str = None):
    _request_ctx_var.set({'request_id': request_id, 'user_id': user_id})


def get_request_context():
    return _request_ctx_var.get()


def _inject_request_context(record):
    ctx = get_request_context()
    record.request_id = ctx.get('request_id')
    record.user_id = ctx.get('user_id')
    return True


def get_logger(name: str = 'studygen'):
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'json')
    LOG_FILE_PATH = os.getenv('LOG_FILE_PATH', 'logs')
    LOG_MAX_SIZE = int(os.getenv('LOG_MAX_SIZE', str(10 * 1024 * 1024)))
    LOG_MAX_FILES = int(os.getenv('LOG_MAX_FILES', '7'))

    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(LOG_LEVEL.upper())
    log_path = pathlib.Path(LOG_FILE_PATH)
    if not log_path.is_absolute():
        log_path = pathlib.Path(os.getcwd()) / log_path
    log_path.mkdir(parents=True, exist_ok=True)

    ch = logging.StreamHandler(sys.stdout)
    if LOG_FORMAT == 'json':
        fmt = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s')
    else:
        fmt = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    combined = RotatingFileHandler(log_path / 'combined.log', maxBytes=LOG_MAX_SIZE, backupCount=LOG_MAX_FILES)
    combined.setFormatter(fmt)
    logger.addHandler(combined)

    errors = RotatingFileHandler(log_path / 'error.log', maxBytes=LOG_MAX_SIZE, backupCount=LOG_MAX_FILES)
    errors.setLevel(logging.ERROR)
    errors.setFormatter(fmt)
    logger.addHandler(errors)

    f = logging.Filter()
    f.filter = _inject_request_context
    logger.addFilter(f)

    logging.captureWarnings(True)

    return logger


def log_request(request_id: str, method: str, path: str, status_code: int, duration_ms: float, ip: str = None):
    logger = get_logger()
    logger.info('http_request_end', extra={'request_id': request_id, 'method': method, 'path': path, 'status_code': status_code, 'duration_ms': duration_ms, 'ip': ip})


def log_error(error: Exception, context: dict = None):
    logger = get_logger()
    logger.exception('error', exc_info=True, extra=context or {})


def log_llm_call(request_id: str, model: str, prompt_tokens: int, completion_tokens: int, duration_ms: float, kind: str = None):
    logger = get_logger()
    logger.info('llm_call', extra={'request_id': request_id, 'model': model, 'prompt_tokens': prompt_tokens, 'completion_tokens': completion_tokens, 'duration_ms': duration_ms, 'kind': kind})


def log_content_extracted(document_id: str, source: str, text_length: int, duration_ms: float, page_count: int = None):
    logger = get_logger()
    logger.info('content_extracted', extra={
        'document_id': document_id,
        'source': source,
        'text_length': text_length,
        'page_count': page_count,
        'duration_ms': duration_ms,
    })


def log_status_change(document_id: str, status: str, previous: str = None, error: str = None):
    logger = get_logger()
    logger.info('generation_status_changed', extra={
        'document_id': document_id,
        'status': status,
        'previous_status': previous,
        'error': error,
    })


def log_generation_run(document_id: str, kind: str, status: str, created: int, duplicates: int, skipped: int, duration_ms: float, error: str = None):
    logger = get_logger()
    logger.info('generation_run', extra={
        'document_id': document_id,
        'kind': kind,
        'status': status,
        'created_count': created,
        'duplicate_count': duplicates,
        'skipped_count': skipped,
        'duration_ms': duration_ms,
        'error': error,
    })


def log_notification(owner_id: str, event_type: str, delivered: bool, error: str = None):
    logger = get_logger()
    if delivered:
        logger.info('notification_emitted', extra={'owner_id': owner_id, 'event_type': event_type})
    else:
        logger.warning('notification_failed', extra={'owner_id': owner_id, 'event_type': event_type, 'error': error})
