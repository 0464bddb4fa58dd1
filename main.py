import os
import time
import signal
import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from studygen.errors import StoreError, DocumentNotFoundError
from studygen.extraction import ContentExtractor, TesseractOCR, OCRError
from studygen.generation import ArtifactGenerator, ArtifactKind, GenerationClient, resolve_api_key, clamp_max_items
from studygen.notifications import NotificationEmitter
from studygen.pipeline import (
    Document,
    DocumentStore,
    GenerationOrchestrator,
    GenerationRequest,
)
from studygen.utils import get_logger, set_request_context, log_request, log_error, FileHandler

LOG = get_logger()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    HOST: str = '0.0.0.0'
    PORT: int = 8000
    ENVIRONMENT: str = 'development'
    LOG_LEVEL: str = 'INFO'
    CORS_ORIGIN: str = 'http://backend:5000'
    GENERATION_WORKERS: int = 4
    AUTO_FLASHCARDS_ON_UPLOAD: bool = True
    AUTO_FLASHCARDS_COUNT: int = 6
    OCR_ENABLED: bool = True
    REDIS_REQUIRED_FOR_READY: bool = False
    GENERATION_REQUIRED_FOR_READY: bool = True
    OCR_REQUIRED_FOR_READY: bool = False


settings = Settings()

app = FastAPI(title='StudyGen Service', version='1.0.0', description='Generates flashcards and quiz questions from uploaded study documents')

origins = [o.strip() for o in settings.CORS_ORIGIN.split(',') if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ['*'],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.middleware('http')
async def add_request_id_and_logging(request: Request, call_next):
    # prefer incoming X-Request-ID header for cross-service tracing
    request_id = request.headers.get('x-request-id') or os.urandom(8).hex()
    request.state.request_id = request_id
    set_request_context(request_id)
    start = time.time()
    LOG.info('http_request_start', extra={'method': request.method, 'path': request.url.path, 'request_id': request_id, 'client': request.client.host if request.client else None})
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        log_error(exc, {'path': request.url.path, 'request_id': request_id})
        body = {'success': False, 'error': {'message': 'Internal server error', 'request_id': request_id}}
        return JSONResponse(status_code=500, content=body)
    duration = int((time.time() - start) * 1000)
    log_request(request_id, request.method, request.url.path, response.status_code, duration, request.client.host if request.client else None)
    response.headers['X-Request-ID'] = request_id
    return response


def create_generation_client() -> Optional[GenerationClient]:
    if not resolve_api_key():
        LOG.warning('GENERATION_API_KEY not set; generation requests will fail')
        return None
    return GenerationClient.get_instance()


def create_ocr() -> Optional[TesseractOCR]:
    if not settings.OCR_ENABLED:
        LOG.info('ocr_disabled')
        return None
    ocr = TesseractOCR()
    try:
        ocr.start()
    except OCRError as e:
        LOG.warning('OCR backend unavailable; image documents will fail extraction', extra={'error': str(e)})
        return None
    return ocr


def create_store() -> DocumentStore:
    return DocumentStore()


def _error(status_code: int, message: str, request: Request, code: str = None) -> JSONResponse:
    body = {'success': False, 'error': {'message': message, 'code': code, 'request_id': getattr(request.state, 'request_id', None)}}
    return JSONResponse(status_code=status_code, content=body)


def _status_block(doc: Document) -> Dict[str, Any]:
    gen = doc.generation
    return {
        'document_id': doc.id,
        'status': gen.status.value,
        'last_generated_count': gen.last_generated_count,
        'last_generated_at': gen.last_generated_at,
        'last_error': gen.last_error,
        'last_kind': gen.last_kind.value if gen.last_kind else None,
    }


@app.get('/health')
async def health():
    return {'status': 'ok', 'timestamp': datetime.utcnow().isoformat() + 'Z', 'service': 'studygen'}


@app.get('/ready')
async def ready():
    services = {}
    store: DocumentStore = app.state.store
    if store.ping():
        services['store'] = f'ok: {store.backend}'
    else:
        services['store'] = 'error: store unreachable'
    if store.backend != 'redis' and settings.REDIS_REQUIRED_FOR_READY:
        services['store'] = 'error: redis required'
    services['generation'] = 'ok' if app.state.generator.is_configured else 'error: no generation api key'
    services['ocr'] = 'ok' if app.state.ocr is not None and app.state.ocr.started else 'warn: ocr unavailable'
    if settings.OCR_REQUIRED_FOR_READY and not services['ocr'].startswith('ok'):
        services['ocr'] = 'error: ocr unavailable'

    ready_ok = True
    if services['store'].startswith('error'):
        ready_ok = False
    if settings.GENERATION_REQUIRED_FOR_READY and services['generation'].startswith('error'):
        ready_ok = False
    if services['ocr'].startswith('error'):
        ready_ok = False

    status_code = 200 if ready_ok else 503
    return JSONResponse(status_code=status_code, content={'status': 'ready' if ready_ok else 'not ready', 'services': services})


class DocumentUploadRequest(BaseModel):
    id: Optional[str] = Field(None, description='Document id assigned upstream')
    owner_id: str = Field(..., min_length=1)
    title: str = ''
    file_ref: str = Field(..., min_length=1, description='Path under UPLOADS_DIR or S3 URL')
    media_type: str = ''
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    file_size: int = Field(0, ge=0)
    auto_generate: Optional[bool] = None


class GenerateRequestBody(BaseModel):
    kind: ArtifactKind = ArtifactKind.FLASHCARD
    max_items: Optional[int] = None
    options: Dict[str, Any] = Field(default_factory=dict)


@app.post('/documents', status_code=202)
async def register_document(req: DocumentUploadRequest, fastapi_request: Request):
    request_id = getattr(fastapi_request.state, 'request_id', None)
    fields = req.model_dump(exclude={'auto_generate'}, exclude_none=True)
    doc = Document(**fields)
    store: DocumentStore = app.state.store
    try:
        await asyncio.to_thread(store.save_document, doc)
    except StoreError as e:
        LOG.error('document_save_failed', extra={'document_id': doc.id, 'error': str(e)})
        return _error(500, 'Failed to save document', fastapi_request, 'StoreError')
    LOG.info('document_registered', extra={'document_id': doc.id, 'owner_id': doc.owner_id, 'media_type': doc.media_type})

    auto = settings.AUTO_FLASHCARDS_ON_UPLOAD if req.auto_generate is None else req.auto_generate
    if auto:
        gen_req = GenerationRequest(document_id=doc.id, kind=ArtifactKind.FLASHCARD, max_items=settings.AUTO_FLASHCARDS_COUNT, request_id=request_id)
        try:
            doc = await app.state.orchestrator.enqueue(gen_req)
        except StoreError as e:
            LOG.error('generation_enqueue_failed', extra={'document_id': doc.id, 'error': str(e)})
            return _error(500, 'Failed to queue generation', fastapi_request, 'StoreError')
    return _status_block(doc)


@app.post('/documents/{document_id}/generate', status_code=202)
async def generate_for_document(document_id: str, req: GenerateRequestBody, fastapi_request: Request):
    request_id = getattr(fastapi_request.state, 'request_id', None)
    gen_req = GenerationRequest(
        document_id=document_id,
        kind=req.kind,
        max_items=clamp_max_items(req.max_items),
        options=req.options,
        request_id=request_id,
    )
    try:
        doc = await app.state.orchestrator.enqueue(gen_req)
    except DocumentNotFoundError:
        return _error(404, 'Document not found', fastapi_request, 'DocumentNotFound')
    except StoreError as e:
        LOG.error('generation_enqueue_failed', extra={'document_id': document_id, 'error': str(e)})
        return _error(500, 'Failed to queue generation', fastapi_request, 'StoreError')
    return _status_block(doc)


@app.get('/documents/{document_id}/generation')
async def generation_status(document_id: str, fastapi_request: Request):
    doc = await asyncio.to_thread(app.state.store.get_document, document_id)
    if doc is None:
        return _error(404, 'Document not found', fastapi_request, 'DocumentNotFound')
    return _status_block(doc)


@app.get('/documents/{document_id}/artifacts')
async def list_document_artifacts(document_id: str, fastapi_request: Request, kind: ArtifactKind = ArtifactKind.FLASHCARD):
    store: DocumentStore = app.state.store
    doc = await asyncio.to_thread(store.get_document, document_id)
    if doc is None:
        return _error(404, 'Document not found', fastapi_request, 'DocumentNotFound')
    items = await asyncio.to_thread(store.list_artifacts, doc.owner_id, doc.id, kind)
    return {'document_id': doc.id, 'kind': kind.value, 'count': len(items), 'items': [i.model_dump(mode='json') for i in items]}


@app.on_event('startup')
async def on_startup():
    LOG.info('StudyGen service starting', extra={'env': settings.ENVIRONMENT})
    store = create_store()
    ocr = create_ocr()
    generator = ArtifactGenerator(create_generation_client())
    emitter = NotificationEmitter(store.client)
    extractor = ContentExtractor(ocr=ocr, file_handler=FileHandler())
    orchestrator = GenerationOrchestrator(store, extractor, generator, emitter, workers=settings.GENERATION_WORKERS)
    await orchestrator.start()
    app.state.store = store
    app.state.ocr = ocr
    app.state.generator = generator
    app.state.emitter = emitter
    app.state.orchestrator = orchestrator
    LOG.info('StudyGen service ready', extra={'store': store.backend, 'ocr': ocr is not None, 'generation_configured': generator.is_configured})


@app.on_event('shutdown')
async def on_shutdown():
    LOG.info('StudyGen service shutting down')
    orchestrator = getattr(app.state, 'orchestrator', None)
    if orchestrator is not None:
        await orchestrator.stop()
    ocr = getattr(app.state, 'ocr', None)
    if ocr is not None:
        ocr.close()
        LOG.info('OCR backend closed')


def _install_signal_handlers(loop: Optional[asyncio.AbstractEventLoop] = None):
    if loop is None:
        loop = asyncio.get_event_loop()

    def _handler(signum, frame):
        LOG.info('Received shutdown signal', extra={'signal': signum})
        loop.call_soon_threadsafe(loop.stop)

    signal.signal(signal.SIGTERM, _handler)
    signal.signal(signal.SIGINT, _handler)


if __name__ == '__main__':
    import uvicorn

    _install_signal_handlers()
    # background workers live in-process; a single uvicorn worker keeps per-document ordering
    uvicorn.run(
        'main:app',
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.ENVIRONMENT == 'development',
    )
