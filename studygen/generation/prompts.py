from __future__ import annotations

from typing import Tuple

from .schemas import ArtifactKind, GenerationContext

MAX_PROMPT_TAGS = 6


def _tag_line(context: GenerationContext) -> str:
    tags = [t for t in (context.tags or []) if t][:MAX_PROMPT_TAGS]
    if not tags:
        return 'Document tags: (not provided)'
    return 'Document tags: ' + ' '.join(f'#{t}' for t in tags)


def _source_line(context: GenerationContext, kind: ArtifactKind) -> str:
    if context.is_ocr_source:
        line = 'The text was extracted from an image via OCR, so clean up spacing and assume minor typos.'
        if kind == ArtifactKind.FLASHCARD:
            line += ' Focus on capturing what the text actually says.'
        return line
    return 'The text came from a typed document; retain important terminology verbatim.'


def _user_message(content: str, closing: str) -> str:
    return '\n'.join(['CONTENT START', content, 'CONTENT END', '', closing])


def build_flashcard_prompt(content: str, context: GenerationContext, max_items: int) -> Tuple[str, str]:
    system = '\n'.join([
        'You are an expert study coach who transforms study material into high-quality flashcards.',
        f'Generate up to {max_items} flashcards covering the most important facts, definitions, or concepts.',
        f'Never return more than {max_items} items.',
        'Output a pure JSON array. Do NOT include any explanations outside the JSON.',
        'Flashcard JSON schema:',
        '[{',
        '  "question": "Clear question text (string, required)",',
        '  "answer": "Concise but complete answer (string, required)",',
        '  "hint": "Optional hint or mnemonic (string)",',
        '  "difficulty": "easy|medium|advanced",',
        '  "subject": "Subject/category (string)",',
        '  "tags": ["tag1", "tag2"],',
        '  "examples": ["optional example sentences"]',
        '}]',
        f'Document title: {context.document_title}',
        _tag_line(context),
        f'Default subject if uncertain: {context.subject}.',
        'Questions must be unique, factual, and suitable for spaced repetition.',
        'Every flashcard MUST be grounded strictly in the provided content. Quote or paraphrase the relevant portion.',
        'Do NOT invent facts or use outside knowledge. If the content does not cover a topic, do not create a card about it.',
        'Prefer cloze-deletion style questions for formulas or key facts when appropriate.',
        'If the content is short, derive multiple perspectives (definition, example, consequence, comparison).',
        _source_line(context, ArtifactKind.FLASHCARD),
        "Before finalizing, double-check that each card's answer can be directly supported by a sentence in the provided content.",
    ])
    user = _user_message(content, 'For each flashcard, reference the exact phrase used as the source in the answer.')
    return system, user


def build_quiz_prompt(content: str, context: GenerationContext, max_items: int) -> Tuple[str, str]:
    system = '\n'.join([
        'You are an expert quiz creator who transforms study material into high-quality multiple-choice quiz questions.',
        f'Generate up to {max_items} quiz questions covering the most important facts, definitions, or concepts from the content.',
        f'Never return more than {max_items} items.',
        'Output a pure JSON array. Do NOT include any explanations outside the JSON.',
        'Question JSON schema:',
        '[{',
        '  "question": "Clear, specific question text (string, required)",',
        '  "options": ["Option A", "Option B", "Option C", "Option D"],',
        '  "correctAnswer": 0,',
        '  "explanation": "Brief explanation of why the correct answer is right",',
        '  "category": "Topic/category name",',
        '  "difficulty": "easy|medium|hard",',
        '  "timeLimit": 60',
        '}]',
        f'Document title: {context.document_title}',
        _tag_line(context),
        f'Default subject if uncertain: {context.subject}.',
        'IMPORTANT RULES:',
        '1. Every question MUST be grounded strictly in the provided content. Do NOT invent facts.',
        '2. Each question must have exactly 4 options.',
        '3. correctAnswer must be the zero-based integer index of the correct option.',
        '4. Make incorrect options plausible but clearly wrong.',
        '5. Questions should test understanding, not just memorization.',
        '6. Vary difficulty levels (easy, medium, hard) based on complexity.',
        '7. Include clear explanations for each answer.',
        _source_line(context, ArtifactKind.QUIZ_QUESTION),
        "Before finalizing, verify that each question's correct answer can be directly supported by the content.",
    ])
    user = _user_message(content, 'For each question, ensure the correct answer is clearly supported by the content above.')
    return system, user


def build_prompt(kind: ArtifactKind, content: str, context: GenerationContext, max_items: int) -> Tuple[str, str]:
    if kind == ArtifactKind.FLASHCARD:
        return build_flashcard_prompt(content, context, max_items)
    return build_quiz_prompt(content, context, max_items)
