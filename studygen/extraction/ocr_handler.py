"""Tesseract OCR backend.

``TesseractOCR`` is an explicitly owned resource: the service creates one at
startup, calls ``start()``, injects it into the ``ContentExtractor`` and calls
``close()`` on shutdown. It can also be used as a context manager.

Raises ``OCRError`` for backend failures and ``OCRNoTextError`` when an image
contains no readable text.
"""
from __future__ import annotations

import os
import time
import threading
from typing import Dict, Any, Optional

import pytesseract
from PIL import Image, UnidentifiedImageError

from studygen.utils import get_logger
from .preprocess import prepare_for_ocr, ImagePreprocessingError

LOG = get_logger()

OCR_LANGUAGE = os.getenv('OCR_LANGUAGE', 'eng')
TESSERACT_CMD = os.getenv('TESSERACT_CMD')
OCR_PREPROCESSING_ENABLED = os.getenv('OCR_PREPROCESSING_ENABLED', 'false').lower() in ('1', 'true', 'yes')
OCR_TIMEOUT = int(os.getenv('OCR_TIMEOUT', '0'))

SUPPORTED_IMAGE_TYPES = (
    'image/jpeg',
    'image/jpg',
    'image/png',
    'image/gif',
    'image/bmp',
    'image/webp',
)


class OCRError(Exception):
    pass


class OCRNoTextError(OCRError):
    pass


def is_ocr_supported(media_type: Optional[str]) -> bool:
    return bool(media_type) and media_type.lower() in SUPPORTED_IMAGE_TYPES


class TesseractOCR:
    def __init__(self, language: str = None, tesseract_cmd: str = None, preprocess: bool = None):
        self.language = language or OCR_LANGUAGE
        self.tesseract_cmd = tesseract_cmd or TESSERACT_CMD
        self.preprocess = OCR_PREPROCESSING_ENABLED if preprocess is None else preprocess
        self.version = None
        self._started = False
        self._lock = threading.Lock()

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> 'TesseractOCR':
        with self._lock:
            if self._started:
                return self
            if self.tesseract_cmd:
                pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
            try:
                self.version = str(pytesseract.get_tesseract_version())
            except (pytesseract.TesseractNotFoundError, OSError) as e:
                LOG.exception('ocr_backend_start_failed', exc_info=True)
                raise OCRError(f'Tesseract OCR is not available: {e}') from e
            self._started = True
            LOG.info('ocr_backend_started', extra={'language': self.language, 'version': self.version})
        return self

    def close(self):
        with self._lock:
            if self._started:
                self._started = False
                LOG.info('ocr_backend_closed')

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def extract_text(self, image_path: str) -> Dict[str, Any]:
        if not self._started:
            raise OCRError('OCR backend has not been started')
        if not os.path.exists(image_path):
            raise OCRError(f'Image file not found: {image_path}')
        start = time.time()
        try:
            with Image.open(image_path) as img:
                img.load()
                image = img.convert('RGB')
            if self.preprocess:
                image = prepare_for_ocr(image)
            raw = pytesseract.image_to_string(image, lang=self.language, timeout=OCR_TIMEOUT)
        except (UnidentifiedImageError, ImagePreprocessingError) as e:
            raise OCRError(f'Failed to extract text from image: {e}') from e
        except (pytesseract.TesseractError, RuntimeError, OSError) as e:
            LOG.exception('ocr_failed', exc_info=True)
            raise OCRError(f'Failed to extract text from image: {e}') from e
        text = (raw or '').strip()
        if not text:
            raise OCRNoTextError('No text could be extracted from the image. Please ensure the image contains clear, readable text.')
        duration = int((time.time() - start) * 1000)
        LOG.info('ocr_complete', extra={'path': image_path, 'text_length': len(text), 'duration_ms': duration})
        return {'text': text, 'language': self.language, 'preprocessed': self.preprocess, 'duration_ms': duration}
