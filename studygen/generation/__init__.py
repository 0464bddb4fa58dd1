"""Generation subpackage: prompt building, service adapter, response validation"""

from .schemas import (
    ArtifactKind,
    GenerationContext,
    FlashcardCandidate,
    QuizQuestionCandidate,
    normalize_difficulty,
    normalize_quiz_difficulty,
)
from .json_parser import extract_json_array, parse_candidates
from .normalizer import NormalizationResult, normalize_candidate, normalize_candidates
from .prompts import build_flashcard_prompt, build_quiz_prompt, build_prompt
from .client import GenerationClient, resolve_api_key
from .generator import ArtifactGenerator, GenerationResult, KindSettings, KIND_SETTINGS, clamp_max_items

__all__ = [
    'ArtifactKind',
    'GenerationContext',
    'FlashcardCandidate',
    'QuizQuestionCandidate',
    'normalize_difficulty',
    'normalize_quiz_difficulty',
    'extract_json_array',
    'parse_candidates',
    'NormalizationResult',
    'normalize_candidate',
    'normalize_candidates',
    'build_flashcard_prompt',
    'build_quiz_prompt',
    'build_prompt',
    'GenerationClient',
    'resolve_api_key',
    'ArtifactGenerator',
    'GenerationResult',
    'KindSettings',
    'KIND_SETTINGS',
    'clamp_max_items',
]
