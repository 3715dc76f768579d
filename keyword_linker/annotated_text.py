"""
Annotated text consumed by the text processing filter.

An ``AnnotatedText`` is the output of an upstream linguistic analysis:
sentences, chunks (phrases) and tokens as half-open character spans over the
text, where tokens carry POS annotations and chunks an optional phrase
annotation. Spans are stored as given; they are validated when the text is
processed so that corrupt upstream annotations can be skipped.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from keyword_linker.nlp import LexicalCategory, PhraseTag, Pos, PosTag


@dataclass(frozen=True)
class Annotation:
    """An annotation value with the confidence of the component that produced it."""

    value: Any
    probability: float = 1.0


@dataclass
class Sentence:
    start: int
    end: int


@dataclass
class Chunk:
    start: int
    end: int
    phrase: Optional[Annotation] = None

    @property
    def phrase_tag(self) -> Optional[PhraseTag]:
        return self.phrase.value if self.phrase is not None else None


@dataclass
class Token:
    start: int
    end: int
    pos: List[Annotation] = field(default_factory=list)

    def add_pos(self, tag: PosTag, probability: float = 1.0) -> "Token":
        self.pos.append(Annotation(tag, probability))
        return self


class AnnotatedText:
    """Text with sentence, chunk and token annotations."""

    def __init__(self, text: str, language: Optional[str] = None):
        self.text = text
        self.language = language
        self._sentences: List[Sentence] = []
        self._chunks: List[Chunk] = []
        self._tokens: List[Token] = []

    def __len__(self) -> int:
        return len(self.text)

    def add_sentence(self, start: int, end: int) -> Sentence:
        sentence = Sentence(start, end)
        self._sentences.append(sentence)
        return sentence

    def add_chunk(
        self,
        start: int,
        end: int,
        phrase: Optional[PhraseTag] = None,
        probability: float = 1.0,
    ) -> Chunk:
        chunk = Chunk(start, end, Annotation(phrase, probability) if phrase else None)
        self._chunks.append(chunk)
        return chunk

    def add_token(self, start: int, end: int) -> Token:
        token = Token(start, end)
        self._tokens.append(token)
        return token

    def span_text(self, start: int, end: int) -> str:
        return self.text[start:end]

    def sentences(self) -> List[Sentence]:
        """Sentences in document order; the whole text if none were added."""
        if not self._sentences:
            return [Sentence(0, len(self.text))]
        return sorted(self._sentences, key=lambda s: (s.start, -s.end))

    def chunks(self, start: int = 0, end: Optional[int] = None) -> List[Chunk]:
        """Chunks within ``[start, end)`` in document order."""
        return _within(self._chunks, start, len(self.text) if end is None else end)

    def tokens(self, start: int = 0, end: Optional[int] = None) -> List[Token]:
        """Tokens within ``[start, end)`` in document order."""
        return _within(self._tokens, start, len(self.text) if end is None else end)

    def all_chunks(self) -> List[Chunk]:
        """All chunks as added, including ones with invalid spans."""
        return list(self._chunks)

    def all_tokens(self) -> List[Token]:
        """All tokens as added, including ones with invalid spans."""
        return list(self._tokens)

    # ------------------------------------------------------------------
    # JSON form
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "language": self.language,
            "sentences": [[s.start, s.end] for s in self._sentences],
            "chunks": [_chunk_to_dict(c) for c in self._chunks],
            "tokens": [_token_to_dict(t) for t in self._tokens],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnnotatedText":
        """
        Build from the JSON form::

            {"text": "...", "language": "en",
             "sentences": [[0, 42]],
             "chunks": [{"start": 0, "end": 11, "phrase": {"tag": "NP", "category": "Noun"}}],
             "tokens": [{"start": 0, "end": 3, "pos": [{"tag": "NE", "pos": ["CommonNoun"], "probability": 1.0}]}]}
        """
        annotated = cls(data["text"], data.get("language"))
        for start, end in data.get("sentences", []):
            annotated.add_sentence(start, end)
        for item in data.get("chunks", []):
            phrase = item.get("phrase")
            tag = None
            if phrase:
                category = phrase.get("category")
                tag = PhraseTag(
                    phrase["tag"],
                    LexicalCategory.parse(category) if category else None,
                )
            annotated.add_chunk(
                item["start"], item["end"], tag, (phrase or {}).get("probability", 1.0)
            )
        for item in data.get("tokens", []):
            token = annotated.add_token(item["start"], item["end"])
            for pos in item.get("pos", []):
                tag = PosTag(
                    tag=pos["tag"],
                    pos=frozenset(Pos.parse(p) for p in pos.get("pos", [])),
                    categories=frozenset(
                        LexicalCategory.parse(c) for c in pos.get("categories", [])
                    ),
                )
                token.add_pos(tag, pos.get("probability", 1.0))
        return annotated


def _within(spans, start: int, end: int) -> list:
    selected = [s for s in spans if s.start >= start and s.end <= end]
    return sorted(selected, key=lambda s: (s.start, -s.end))


def _chunk_to_dict(chunk: Chunk) -> Dict[str, Any]:
    data: Dict[str, Any] = {"start": chunk.start, "end": chunk.end}
    tag = chunk.phrase_tag
    if tag is not None:
        data["phrase"] = {
            "tag": tag.tag,
            "category": tag.category.value if tag.category else None,
            "probability": chunk.phrase.probability,
        }
    return data


def _token_to_dict(token: Token) -> Dict[str, Any]:
    return {
        "start": token.start,
        "end": token.end,
        "pos": [
            {
                "tag": a.value.tag,
                "pos": sorted(p.value for p in a.value.pos),
                "categories": sorted(c.value for c in a.value.categories),
                "probability": a.probability,
            }
            for a in token.pos
        ],
    }
