import os
import tempfile
from pathlib import Path

import pytest
from dotenv import load_dotenv

# load test env first
env_path = Path(__file__).resolve().parents[1] / '.env.test'
if env_path.exists():
    load_dotenv(env_path)

os.environ.setdefault('TESTING', '1')
os.environ.setdefault('LOG_FILE_PATH', os.path.join(tempfile.gettempdir(), 'studygen-test-logs'))

from studygen.extraction import ContentExtractor  # noqa: E402
from studygen.generation import ArtifactGenerator  # noqa: E402
from studygen.notifications import NotificationEmitter  # noqa: E402
from studygen.pipeline import Document, DocumentStore, GenerationOrchestrator  # noqa: E402
from studygen.utils import FileHandler  # noqa: E402

from tests.fixtures.fake_generation import FakeGenerationClient  # noqa: E402
from tests.fixtures.mock_redis import MockRedisClient  # noqa: E402
from tests.fixtures.sample_data import STUDY_TEXT, flashcard_items, as_response  # noqa: E402


@pytest.fixture
def memory_store():
    return DocumentStore(use_redis=False)


@pytest.fixture
def mock_redis():
    return MockRedisClient()


@pytest.fixture
def emitter():
    return NotificationEmitter()


@pytest.fixture
def fake_client():
    return FakeGenerationClient([as_response(flashcard_items(6))])


@pytest.fixture
def make_document(tmp_path, memory_store):
    """Write a file under tmp_path and register a Document for it."""

    def _make(text=STUDY_TEXT, name='notes.txt', media_type='text/plain', store=None, **fields):
        path = tmp_path / name
        if isinstance(text, bytes):
            path.write_bytes(text)
        else:
            path.write_text(text, encoding='utf-8')
        doc = Document(owner_id=fields.pop('owner_id', 'user-1'), title=fields.pop('title', 'Plant Biology'), file_ref=str(path), media_type=media_type, **fields)
        (store or memory_store).save_document(doc)
        return doc

    return _make


@pytest.fixture
def build_orchestrator(memory_store, emitter, tmp_path):
    def _build(client=None, ocr=None, store=None, workers=2):
        extractor = ContentExtractor(ocr=ocr, file_handler=FileHandler(uploads_dir=str(tmp_path)))
        generator = ArtifactGenerator(client)
        return GenerationOrchestrator(store or memory_store, extractor, generator, emitter, workers=workers)

    return _build
