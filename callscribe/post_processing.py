"""Text clean-up applied to every transcribed segment before it becomes a turn.

Functions for whitespace normalisation, user find/replace rules and
vocabulary corrections.
"""

import re
import logging
from typing import Dict, List, Optional, Pattern, Tuple

from callscribe.ports.vocabulary import VocabularyPort

logger = logging.getLogger(__name__)

# Collapse runs of whitespace left by the decoder or by replacements.
_MULTI_SPACE = re.compile(r"\s+")
# Whisper emits these for non-speech; they must not become turns.
_NON_SPEECH_MARKERS = re.compile(r"\[(?:BLANK_AUDIO|MUSIC|NOISE|SILENCE)\]|\((?:music|silence)\)", re.IGNORECASE)


def compile_rules(rules: List[Dict[str, str]]) -> List[Tuple[Pattern, str]]:
    """Compile find/replace rules into whole-word, case-insensitive patterns.

    Each rule is {"find": "text", "replace": "replacement"}. Find text is
    escaped, so rules never act as regular expressions.
    """
    compiled = []
    for rule in rules:
        find = rule.get("find", "")
        replace = rule.get("replace", "")
        if find:
            try:
                pattern = re.compile(r"\b" + re.escape(find) + r"\b", re.IGNORECASE)
                compiled.append((pattern, replace))
            except re.error as e:
                logger.warning(f"Invalid find/replace pattern '{find}': {e}")
    return compiled


def find_and_replace(text: str, rules: List[Tuple[Pattern, str]]) -> str:
    for pattern, replacement in rules:
        text = pattern.sub(replacement, text)
    return text


def clean_text(text: str) -> str:
    """Drop non-speech markers and normalise whitespace."""
    text = _NON_SPEECH_MARKERS.sub(" ", text)
    return _MULTI_SPACE.sub(" ", text).strip()


def apply_text_rules(
    text: str,
    rules: Optional[List[Tuple[Pattern, str]]] = None,
    vocabulary: Optional[VocabularyPort] = None,
) -> str:
    """Full clean-up chain: markers, vocabulary corrections, user rules."""
    cleaned = clean_text(text)
    if vocabulary is not None and cleaned:
        cleaned = vocabulary.correct(cleaned)
    if rules:
        cleaned = find_and_replace(cleaned, rules)
    return clean_text(cleaned)
