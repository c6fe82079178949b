"""DictionaryVocabulary: predefined term dictionaries plus a corrections map."""

import logging
import re
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from callscribe.ports.vocabulary import VocabularyPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VocabularyDictionary:
    id: str
    name: str
    category: str
    terms: tuple[str, ...]
    description: str = ""


PREDEFINED_DICTIONARIES: tuple[VocabularyDictionary, ...] = (
    VocabularyDictionary(
        id="ip-telephony",
        name="IP Telephony",
        category="Telephony",
        description="IP telephony and VoIP terms",
        terms=(
            "SIP", "RTP", "SDP", "VoIP", "Asterisk", "FreePBX", "MikoPBX",
            "extension", "trunk", "dialplan", "codec", "G.711", "G.729", "Opus",
            "DTMF", "IVR", "queue", "ring group", "call transfer", "voicemail",
            "caller ID", "DID", "NAT", "STUN", "jitter", "softphone", "PBX",
            "CDR", "WebRTC", "PJSIP", "AMI", "AGI", "ARI",
        ),
    ),
    VocabularyDictionary(
        id="cloud-devops",
        name="Cloud & DevOps",
        category="Infrastructure",
        description="Cloud services and DevOps commands",
        terms=(
            "Docker", "Kubernetes", "kubectl", "helm", "AWS", "S3", "Lambda",
            "Azure", "GCP", "CI/CD", "Jenkins", "GitLab CI", "GitHub Actions",
            "Git", "pull request", "nginx", "HAProxy", "TLS", "DNS", "VPN",
            "Prometheus", "Grafana", "Elasticsearch", "Terraform", "Ansible", "systemd",
        ),
    ),
    VocabularyDictionary(
        id="database-sql",
        name="Database & SQL",
        category="Programming",
        description="Database and SQL terms",
        terms=(
            "SQL", "MySQL", "PostgreSQL", "SQLite", "MongoDB", "Redis",
            "SELECT", "INSERT", "UPDATE", "DELETE", "JOIN", "index", "primary key",
            "foreign key", "transaction", "migration", "replication", "schema",
        ),
    ),
)

DEFAULT_CORRECTIONS: Dict[str, str] = {
    "гит": "git",
    "гитхаб": "GitHub",
    "гугл": "Google",
    "майкрософт": "Microsoft",
    "апи": "API",
    "джейсон": "JSON",
    "астериск": "Asterisk",
    "щас": "сейчас",
}

# Punctuation that may wrap a word without being part of it.
_WORD_EDGES = re.compile(r"^(\W*)(.*?)(\W*)$", re.DOTALL)


class DictionaryVocabulary(VocabularyPort):
    """Named dictionaries that can be switched on and off, plus custom terms.

    ``correct`` rewrites whole words found in the corrections map (case
    insensitive), keeping surrounding punctuation and a leading capital.
    """

    def __init__(
        self,
        dictionaries: Iterable[VocabularyDictionary] = PREDEFINED_DICTIONARIES,
        enabled: Iterable[str] = (),
        custom_terms: Iterable[str] = (),
        corrections: Optional[Dict[str, str]] = None,
    ):
        self._lock = threading.Lock()
        self._dictionaries = {d.id: d for d in dictionaries}
        self._enabled: List[str] = []
        self._custom_terms = list(custom_terms)
        self._corrections: Dict[str, str] = {}
        for incorrect, correct in (DEFAULT_CORRECTIONS if corrections is None else corrections).items():
            self._corrections[incorrect.lower()] = correct
        for dictionary_id in enabled:
            self.enable(dictionary_id)

    @property
    def dictionaries(self) -> list[VocabularyDictionary]:
        return list(self._dictionaries.values())

    @property
    def enabled_ids(self) -> list[str]:
        with self._lock:
            return list(self._enabled)

    def enable(self, dictionary_id: str) -> None:
        if dictionary_id not in self._dictionaries:
            raise KeyError(f"Unknown vocabulary dictionary: {dictionary_id}")
        with self._lock:
            if dictionary_id not in self._enabled:
                self._enabled.append(dictionary_id)
        logger.debug(f"Vocabulary dictionary enabled: {dictionary_id}")

    def disable(self, dictionary_id: str) -> None:
        with self._lock:
            if dictionary_id in self._enabled:
                self._enabled.remove(dictionary_id)

    def add_terms(self, terms: Iterable[str]) -> None:
        with self._lock:
            self._custom_terms.extend(t for t in terms if t.strip())

    def enabled_terms(self) -> list[str]:
        """Custom terms first, then each enabled dictionary in the order it was enabled."""
        with self._lock:
            terms = list(self._custom_terms)
            for dictionary_id in self._enabled:
                terms.extend(self._dictionaries[dictionary_id].terms)
        return terms

    def add_correction(self, incorrect: str, correct: str) -> None:
        with self._lock:
            self._corrections[incorrect.lower()] = correct

    def remove_correction(self, incorrect: str) -> None:
        with self._lock:
            self._corrections.pop(incorrect.lower(), None)

    @property
    def corrections(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._corrections)

    def _correct_word(self, word: str, corrections: Dict[str, str]) -> str:
        prefix, core, suffix = _WORD_EDGES.match(word).groups()
        replacement = corrections.get(core.lower())
        if replacement is None:
            return word
        if core[:1].isupper() and replacement:
            replacement = replacement[0].upper() + replacement[1:]
        return f"{prefix}{replacement}{suffix}"

    def correct(self, text: str) -> str:
        corrections = self.corrections
        if not corrections:
            return text
        return " ".join(self._correct_word(word, corrections) for word in text.split(" "))
