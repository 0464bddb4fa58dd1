"""Image cleanup ahead of OCR.

Functions:
- denoise_image: fast non-local means denoising on a grayscale array
- binarize_image: Otsu or adaptive thresholding
- prepare_for_ocr: PIL image in, cleaned PIL image out

Exceptions:
- ImagePreprocessingError
"""
from __future__ import annotations

import os
import time

import cv2
import numpy as np
from PIL import Image

from studygen.utils import get_logger

LOG = get_logger()

OCR_PREPROCESS_DENOISE = os.getenv('OCR_PREPROCESS_DENOISE', 'true').lower() in ('1', 'true', 'yes')
OCR_PREPROCESS_THRESHOLD = os.getenv('OCR_PREPROCESS_THRESHOLD', 'otsu')


class ImagePreprocessingError(Exception):
    """Raised when an image cannot be decoded or cleaned."""
    pass


def denoise_image(gray: np.ndarray) -> np.ndarray:
    if gray is None:
        raise ImagePreprocessingError('Input image is None')
    try:
        return cv2.fastNlMeansDenoising(gray, None, h=10, templateWindowSize=7, searchWindowSize=21)
    except cv2.error as e:
        raise ImagePreprocessingError(str(e)) from e


def binarize_image(gray: np.ndarray, method: str = 'otsu') -> np.ndarray:
    """Binarize a grayscale array.

    Args:
        gray: single-channel numpy array
        method: 'otsu' or 'adaptive'
    """
    try:
        if method == 'adaptive':
            return cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 11, 2)
        if method == 'otsu':
            _, thresh = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
            return thresh
    except cv2.error as e:
        raise ImagePreprocessingError(str(e)) from e
    raise ImagePreprocessingError(f'Unknown threshold method: {method}')


def prepare_for_ocr(image: Image.Image, denoise: bool = None, threshold: str = None) -> Image.Image:
    start = time.time()
    denoise = OCR_PREPROCESS_DENOISE if denoise is None else denoise
    threshold = OCR_PREPROCESS_THRESHOLD if threshold is None else threshold
    steps = []
    gray = np.array(image.convert('L'))
    if denoise:
        gray = denoise_image(gray)
        steps.append('denoise')
    if threshold and threshold != 'none':
        gray = binarize_image(gray, method=threshold)
        steps.append('threshold')
    duration = int((time.time() - start) * 1000)
    LOG.info('ocr_preprocess_complete', extra={'steps': steps, 'duration_ms': duration})
    return Image.fromarray(gray)
