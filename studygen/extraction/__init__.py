"""
Content extraction for uploaded study documents.
Images go through Tesseract OCR, PDFs through pypdf, text files are read directly.
"""
from .content_extractor import ContentExtractor, ExtractedContent, resolve_media_type, TEXT_MEDIA_TYPES
from .ocr_handler import TesseractOCR, OCRError, OCRNoTextError, is_ocr_supported, SUPPORTED_IMAGE_TYPES
from .pdf_handler import extract_pdf_text, PDFExtractionError
from .preprocess import prepare_for_ocr, ImagePreprocessingError

__all__ = [
    'ContentExtractor',
    'ExtractedContent',
    'resolve_media_type',
    'TEXT_MEDIA_TYPES',
    'TesseractOCR',
    'OCRError',
    'OCRNoTextError',
    'is_ocr_supported',
    'SUPPORTED_IMAGE_TYPES',
    'extract_pdf_text',
    'PDFExtractionError',
    'prepare_for_ocr',
    'ImagePreprocessingError',
]
