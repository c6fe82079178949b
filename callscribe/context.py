"""Rolling context prompt fed to the transcriber before every segment.

The prompt is assembled from, in order and joined with ". ":

    1. the configured base prompt (domain hint)
    2. "Named entities: ..." capitalised words seen in the last 20 turns
    3. "Vocabulary: ..." up to 15 enabled vocabulary terms
    4. the most recent turns as "Speaker N: text"

Sections 2-4 need turn history; with no turns yet only the base prompt is
sent. The result is cut to ``max_context_length`` characters on a word
boundary (any Unicode whitespace), or on a grapheme-cluster boundary when no
word fits, and marked with "...".
"""

import logging
import re
from typing import Iterable, Optional, Sequence

import regex

from callscribe.domain.models import ContextSnapshot, Turn

logger = logging.getLogger(__name__)

ENTITY_WINDOW = 20
MAX_VOCABULARY_TERMS = 15
ELLIPSIS = "..."

ENTITY_PATTERN = re.compile(r"\b[A-Z][a-z]+|\b[А-ЯЁ][а-яё]+")

STOP_WORDS = frozenset({
    # English
    "a", "an", "the", "i", "you", "he", "she", "it", "we", "they", "me", "him", "her", "us", "them",
    "my", "your", "his", "its", "our", "their", "this", "that", "these", "those",
    "and", "but", "or", "so", "if", "then", "yes", "no", "ok", "okay", "well", "oh",
    "hello", "hi", "thanks", "thank", "please", "sorry", "what", "when", "where", "who", "why", "how",
    "is", "are", "was", "were", "do", "does", "did", "can", "will", "just", "now", "there", "here",
    "speaker",
    # Russian
    "я", "ты", "он", "она", "оно", "мы", "вы", "они", "меня", "тебя", "его", "ее", "её", "нас", "вас", "их",
    "мой", "твой", "наш", "ваш", "это", "этот", "эта", "эти", "тот", "та", "те",
    "и", "а", "но", "или", "да", "нет", "ну", "вот", "так", "там", "тут", "здесь", "уже", "еще", "ещё",
    "алло", "привет", "здравствуйте", "спасибо", "пожалуйста", "извините", "хорошо", "ладно", "конечно",
    "что", "как", "где", "когда", "кто", "почему", "зачем", "если", "то", "потом", "сейчас",
})

# Extended grapheme cluster: flags, emoji ZWJ and tag sequences, Hangul syllables, combining marks.
_GRAPHEME = regex.compile(r"\X")


def extract_named_entities(turns: Sequence[Turn], window: int = ENTITY_WINDOW) -> list[str]:
    """Sorted, de-duplicated capitalised words from the last ``window`` turns."""
    found = set()
    for turn in turns[-window:]:
        found.update(ENTITY_PATTERN.findall(turn.text))
    return sorted(word for word in found if word.lower() not in STOP_WORDS)


def select_vocabulary_terms(terms: Iterable[str], limit: int = MAX_VOCABULARY_TERMS) -> list[str]:
    """First ``limit`` distinct non-blank terms, keeping their input order."""
    selected: list[str] = []
    for term in terms:
        term = term.strip()
        if term and term not in selected:
            selected.append(term)
            if len(selected) == limit:
                break
    return selected


def _last_whitespace(text: str, limit: int) -> int:
    """Index of the last whitespace character at or before ``limit``, or 0."""
    return next((i for i in range(min(limit, len(text) - 1), 0, -1) if text[i].isspace()), 0)


def _grapheme_boundary(text: str, limit: int) -> int:
    """End of the last whole grapheme cluster that fits in ``limit`` characters."""
    cut = 0
    for match in _GRAPHEME.finditer(text):
        if match.end() > limit:
            break
        cut = match.end()
    return cut


def truncate_context(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text

    cut = _last_whitespace(text, max_length)
    if cut <= 0:
        cut = _grapheme_boundary(text, max_length)

    return text[:cut] + ELLIPSIS


class ContextPromptBuilder:
    """Builds the decoding prompt from a settings snapshot and the turns so far.

    Stateless between calls: the same turns always give the same prompt.
    """

    def __init__(self, snapshot: ContextSnapshot, vocabulary_terms: Iterable[str] = ()):
        self.snapshot = snapshot
        self.vocabulary_terms = select_vocabulary_terms(vocabulary_terms)

    def build(self, turns: Sequence[Turn], max_turns: Optional[int] = None) -> str:
        snapshot = self.snapshot
        parts: list[str] = []

        base = snapshot.base_context_prompt.strip()
        if base:
            parts.append(base)

        if turns:
            if snapshot.enable_entity_extraction:
                entities = extract_named_entities(turns)
                if entities:
                    parts.append(f"Named entities: {', '.join(entities)}")

            if snapshot.enable_vocabulary_integration and self.vocabulary_terms:
                parts.append(f"Vocabulary: {', '.join(self.vocabulary_terms)}")

            limit = snapshot.max_recent_turns if max_turns is None else max_turns
            if limit > 0:
                parts.append(" ".join(
                    f"{turn.speaker.display_name}: {turn.text}" for turn in turns[-limit:]
                ))

        prompt = truncate_context(". ".join(parts), snapshot.max_context_length)
        logger.debug(f"Context prompt: {len(prompt)} chars from {len(turns)} turns")
        return prompt
