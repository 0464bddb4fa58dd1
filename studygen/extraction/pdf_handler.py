from __future__ import annotations

import io
from typing import Dict, Any

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from studygen.utils import get_logger

LOG = get_logger()


class PDFExtractionError(Exception):
    pass


def extract_pdf_text(data: bytes) -> Dict[str, Any]:
    """Extract embedded text from a PDF byte buffer.

    Returns a dict with ``text`` and ``page_count``. Scanned, image-only PDFs
    produce no text and raise ``PDFExtractionError``.
    """
    if not data:
        raise PDFExtractionError('PDF file is empty')
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = []
        for idx, page in enumerate(reader.pages):
            try:
                pages.append((page.extract_text() or '').strip())
            except (KeyError, ValueError, TypeError) as e:
                LOG.warning('pdf_page_extract_failed', extra={'page': idx, 'error': str(e)})
        page_count = len(reader.pages)
    except PdfReadError as e:
        raise PDFExtractionError(f'Failed to read PDF: {e}') from e
    text = '\n\n'.join(p for p in pages if p)
    if not text.strip():
        raise PDFExtractionError('Failed to extract text from PDF. Please ensure the PDF contains text (not scanned images).')
    return {'text': text, 'page_count': page_count}
