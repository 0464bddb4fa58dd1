"""Content extraction: stored document file -> plain text.

Dispatches on the document's media category:
- image/*          -> OCR backend (unsupported subtypes rejected before any I/O)
- application/pdf  -> embedded text extraction
- text/plain, text/markdown -> read directly

Anything else raises ``UnsupportedFormatError``. Backend failures surface as
``ExtractionFailedError``. The extractor never mutates the document.
"""
from __future__ import annotations

import time
from typing import Optional

from pydantic import BaseModel

from studygen.errors import UnsupportedFormatError, ExtractionFailedError
from studygen.utils import get_logger, log_content_extracted, FileHandler, FileDownloadError, guess_media_type
from .ocr_handler import TesseractOCR, OCRError, is_ocr_supported
from .pdf_handler import extract_pdf_text, PDFExtractionError

LOG = get_logger()

TEXT_MEDIA_TYPES = ('text/plain', 'text/markdown')


class ExtractedContent(BaseModel):
    text: str
    source: str
    media_type: str
    page_count: Optional[int] = None

    @property
    def is_ocr(self) -> bool:
        return self.source == 'ocr'


def resolve_media_type(file_ref: str, media_type: Optional[str]) -> str:
    declared = (media_type or '').strip().lower()
    if declared:
        return declared
    return (guess_media_type(file_ref or '') or '').lower()


class ContentExtractor:
    def __init__(self, ocr: Optional[TesseractOCR] = None, file_handler: Optional[FileHandler] = None):
        self.ocr = ocr
        self.file_handler = file_handler or FileHandler()

    def _source_for(self, media_type: str) -> str:
        if media_type.startswith('image/'):
            if not is_ocr_supported(media_type):
                raise UnsupportedFormatError(f'Image format {media_type} is not supported for OCR. Supported formats: JPEG, PNG, GIF, BMP, WebP')
            return 'ocr'
        if media_type == 'application/pdf':
            return 'pdf'
        if media_type in TEXT_MEDIA_TYPES:
            return 'text'
        raise UnsupportedFormatError(f'Unsupported document format: {media_type or "unknown"}')

    def _read_image(self, path: str) -> ExtractedContent:
        if self.ocr is None:
            raise ExtractionFailedError('OCR backend is not available')
        try:
            res = self.ocr.extract_text(path)
        except OCRError as e:
            raise ExtractionFailedError(str(e)) from e
        return ExtractedContent(text=res['text'], source='ocr', media_type='', page_count=1)

    def _read_pdf(self, path: str) -> ExtractedContent:
        with open(path, 'rb') as fh:
            data = fh.read()
        try:
            res = extract_pdf_text(data)
        except PDFExtractionError as e:
            raise ExtractionFailedError(str(e)) from e
        return ExtractedContent(text=res['text'], source='pdf', media_type='', page_count=res['page_count'])

    def _read_text(self, path: str) -> ExtractedContent:
        with open(path, 'r', encoding='utf-8', errors='replace') as fh:
            text = fh.read()
        return ExtractedContent(text=text, source='text', media_type='')

    def extract(self, file_ref: str, media_type: Optional[str] = None, document_id: Optional[str] = None) -> ExtractedContent:
        resolved_type = resolve_media_type(file_ref, media_type)
        # fail fast on format before touching storage
        source = self._source_for(resolved_type)
        start = time.time()
        try:
            resolved = self.file_handler.resolve(file_ref)
        except FileNotFoundError as e:
            raise ExtractionFailedError('Document file not found on server') from e
        except (FileDownloadError, ValueError) as e:
            raise ExtractionFailedError(str(e)) from e
        try:
            if source == 'ocr':
                content = self._read_image(resolved.path)
            elif source == 'pdf':
                content = self._read_pdf(resolved.path)
            else:
                content = self._read_text(resolved.path)
        except OSError as e:
            raise ExtractionFailedError(f'Failed to read document file: {e}') from e
        finally:
            if resolved.is_temp:
                self.file_handler.cleanup_temp_file(resolved.path)
        content.media_type = resolved_type
        duration = int((time.time() - start) * 1000)
        log_content_extracted(document_id, source, len(content.text), duration, content.page_count)
        return content
