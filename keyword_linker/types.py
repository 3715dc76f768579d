from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from keyword_linker.annotated_text import AnnotatedText

# Logical field names. An Entity resolves them against its configured fields.
LABEL = "label"
TYPE = "type"
REDIRECT = "redirect"

RDFS_LABEL = "http://www.w3.org/2000/01/rdf-schema#label"
RDF_TYPE = "http://www.w3.org/1999/02/22-rdf-syntax-ns#type"
RDFS_SEE_ALSO = "http://www.w3.org/2000/01/rdf-schema#seeAlso"


@dataclass
class Document:
    """A document to link, optionally with annotations from an upstream analysis."""

    id: Optional[str]
    text: str
    language: Optional[str] = None
    annotated: Optional[AnnotatedText] = None
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Occurrence:
    """Half-open character span ``[start, end)`` of a mention."""

    start: int
    end: int


@dataclass(frozen=True)
class Label:
    """Natural language label with an optional language tag."""

    text: str
    language: Optional[str] = None


@dataclass
class Entity:
    """
    Entity record from a knowledge base.

    Values are stored per field: natural language texts under ``texts`` and
    entity references (types, redirects) under ``references``. The logical
    fields ``LABEL``, ``TYPE`` and ``REDIRECT`` are mapped to the configured
    ``label_field``, ``type_field`` and ``redirect_field``, so the same entity
    can be linked through a different label property without copying it.
    """

    id: str
    texts: Dict[str, List[Label]] = field(default_factory=dict)
    references: Dict[str, List[str]] = field(default_factory=dict)
    label_field: str = RDFS_LABEL
    type_field: str = RDF_TYPE
    redirect_field: str = RDFS_SEE_ALSO

    def resolve_field(self, name: str) -> str:
        if name == LABEL:
            return self.label_field
        if name == TYPE:
            return self.type_field
        if name == REDIRECT:
            return self.redirect_field
        return name

    def add_text(self, name: str, text: str, language: Optional[str] = None) -> "Entity":
        self.texts.setdefault(self.resolve_field(name), []).append(Label(text, language))
        return self

    def add_reference(self, name: str, reference: str) -> "Entity":
        self.references.setdefault(self.resolve_field(name), []).append(reference)
        return self

    def get_text(self, name: str, language: Optional[str] = None) -> List[Label]:
        """Texts of a field, restricted to ``language`` (and untagged texts) if given."""
        values = self.texts.get(self.resolve_field(name), [])
        if language is None:
            return list(values)
        return [v for v in values if v.language is None or v.language == language]

    def get_references(self, name: str) -> List[str]:
        return list(self.references.get(self.resolve_field(name), []))

    @property
    def labels(self) -> Dict[Optional[str], List[str]]:
        """Labels as a multimap from language to label texts."""
        labels: Dict[Optional[str], List[str]] = {}
        for label in self.get_text(LABEL):
            labels.setdefault(label.language, []).append(label.text)
        return labels

    @property
    def types(self) -> List[str]:
        return self.get_references(TYPE)

    @property
    def redirects(self) -> List[str]:
        return self.get_references(REDIRECT)

    def with_fields(
        self,
        label_field: Optional[str] = None,
        type_field: Optional[str] = None,
        redirect_field: Optional[str] = None,
    ) -> "Entity":
        """The same data seen through other label/type/redirect fields."""
        return Entity(
            id=self.id,
            texts=self.texts,
            references=self.references,
            label_field=label_field or self.label_field,
            type_field=type_field or self.type_field,
            redirect_field=redirect_field or self.redirect_field,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entity":
        """
        Build an entity from a knowledge base record::

            {"id": "urn:x", "labels": {"en": ["X"]}, "types": [...], "redirects": [...]}

        ``labels`` may also be a plain list of untagged labels; ``title`` is
        accepted as a single untagged label.
        """
        entity = cls(id=data["id"])
        labels = data.get("labels")
        if labels is None and data.get("title"):
            labels = [data["title"]]
        if isinstance(labels, dict):
            for language, texts in labels.items():
                if isinstance(texts, str):
                    texts = [texts]
                for text in texts:
                    entity.add_text(LABEL, text, language or None)
        else:
            for text in labels or []:
                entity.add_text(LABEL, text)
        for type_ref in data.get("types", []):
            entity.add_reference(TYPE, type_ref)
        for redirect in data.get("redirects", []):
            entity.add_reference(REDIRECT, redirect)
        return entity


@dataclass
class Candidate:
    """Entity returned by a searcher with its base relevance score in [0, 1]."""

    entity: Entity
    score: float

    @property
    def entity_id(self) -> str:
        return self.entity.id


@dataclass(frozen=True)
class MentionCandidate:
    """Span of text selected for entity lookup."""

    start: int
    end: int
    text: str
    tokens: Tuple[str, ...] = ()

    @property
    def occurrence(self) -> Occurrence:
        return Occurrence(self.start, self.end)


class MatchType(str, Enum):
    """How well the matched label covers the mention."""

    EXACT = "exact"
    FULL = "full"
    PARTIAL = "partial"


@dataclass(frozen=True)
class Suggestion:
    """Scored candidate entity for a mention. Equality uses id and score only."""

    entity_id: str
    score: float
    entity: Optional[Entity] = field(default=None, compare=False, repr=False)
    match_factor: float = field(default=1.0, compare=False)
    match: MatchType = field(default=MatchType.FULL, compare=False)
    matched_label: Optional[str] = field(default=None, compare=False)
    redirected_from: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class LinkedEntity:
    """All occurrences of one surface text with their ranked suggestions."""

    selected_text: str
    occurrences: Tuple[Occurrence, ...]
    suggestions: Tuple[Suggestion, ...]
    types: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def score(self) -> float:
        return self.suggestions[0].score if self.suggestions else 0.0


class FailureKind(str, Enum):
    SEARCH_UNAVAILABLE = "search_unavailable"
    SEARCH_TIMEOUT = "search_timeout"
    INVALID_SPAN = "invalid_span"


@dataclass(frozen=True)
class SoftFailure:
    """A recovered problem reported alongside the linking result."""

    kind: FailureKind
    message: str
    text: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None


@dataclass
class LinkingResult:
    """Linked entities keyed by selected text, in first-occurrence order."""

    linked_entities: Dict[str, LinkedEntity] = field(default_factory=dict)
    failures: List[SoftFailure] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.linked_entities)

    def __getitem__(self, selected_text: str) -> LinkedEntity:
        return self.linked_entities[selected_text]

    def __contains__(self, selected_text: object) -> bool:
        return selected_text in self.linked_entities

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entities": [
                {
                    "text": linked.selected_text,
                    "score": linked.score,
                    "types": list(linked.types),
                    "occurrences": [
                        {"start": o.start, "end": o.end} for o in linked.occurrences
                    ],
                    "suggestions": [
                        {
                            "entity_id": s.entity_id,
                            "score": s.score,
                            "match": s.match.value,
                            "label": s.matched_label,
                            "redirected_from": s.redirected_from,
                        }
                        for s in linked.suggestions
                    ],
                }
                for linked in self.linked_entities.values()
            ],
            "failures": [
                {
                    "kind": f.kind.value,
                    "message": f.message,
                    "text": f.text,
                    "start": f.start,
                    "end": f.end,
                }
                for f in self.failures
            ],
        }


# Called with an InvalidSpanError for every skipped span
InvalidSpanCallback = Callable[[Exception], None]
