"""Pull a JSON array of candidates out of free-form model output."""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List

from studygen.errors import MalformedResponseError

_OPEN_FENCE_RE = re.compile(r'^```[A-Za-z]*[ \t]*\n?')
_CLOSE_FENCE_RE = re.compile(r'\n?```$')


def extract_json_array(text: str) -> str:
    """Strip a wrapping code fence and isolate the outermost ``[...]`` span.

    Only a fence that opens or closes the whole response is removed, so
    backticks inside string values survive. A response that is wholly an
    array is returned as-is; otherwise the slice between the first ``[`` and
    the last ``]`` is returned. When no array brackets are present the cleaned
    text is returned unchanged so the parser can report it.
    """
    if not text:
        return ''
    cleaned = text.strip()
    cleaned = _OPEN_FENCE_RE.sub('', cleaned, count=1)
    cleaned = _CLOSE_FENCE_RE.sub('', cleaned, count=1).strip()
    if cleaned.startswith('[') and cleaned.endswith(']'):
        return cleaned
    start = cleaned.find('[')
    end = cleaned.rfind(']')
    if start != -1 and end > start:
        return cleaned[start:end + 1]
    return cleaned


def parse_candidates(text: str) -> List[Dict[str, Any]]:
    payload = extract_json_array(text)
    if not payload:
        raise MalformedResponseError('Empty response from generation service')
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedResponseError('Failed to parse generation service response. Try again with a shorter document.') from e
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise MalformedResponseError('Generation service returned an unexpected format')
    return data
