"""
Language aware label tokenizer backed by spaCy's rule based tokenizers.

Only ``spacy.blank(lang)`` is used, so no trained pipeline has to be
installed. Languages spaCy does not know fall back to the simple tokenizer.
"""

import logging
import threading
from typing import Dict, List, Optional

import spacy

from keyword_linker.registry import tokenizers
from keyword_linker.tokenizers.simple import SimpleLabelTokenizer

logger = logging.getLogger(__name__)


@tokenizers.register("spacy")
class SpacyLabelTokenizer:
    """Tokenizes labels with the spaCy tokenizer of the label's language."""

    def __init__(self, default_language: Optional[str] = "xx"):
        self.default_language = default_language
        self.fallback = SimpleLabelTokenizer()
        self._tokenizers: Dict[str, Optional[object]] = {}
        self._lock = threading.Lock()

    def _get_tokenizer(self, language: Optional[str]):
        lang = (language or self.default_language or "").split("-")[0].split("_")[0].lower()
        if not lang:
            return None
        with self._lock:
            if lang not in self._tokenizers:
                try:
                    self._tokenizers[lang] = spacy.blank(lang).tokenizer
                except ImportError:
                    logger.info(
                        f"No spaCy tokenizer for language '{lang}', using simple tokenizer"
                    )
                    self._tokenizers[lang] = None
            return self._tokenizers[lang]

    def tokenize(self, label: str, language: Optional[str] = None) -> List[str]:
        tokenizer = self._get_tokenizer(language)
        if tokenizer is None:
            return self.fallback.tokenize(label, language)
        return [
            token.text
            for token in tokenizer(label)
            if not (token.is_punct or token.is_space)
        ]
