"""Shared fixtures for keyword linker tests."""

import json
import os
import re
import tempfile
import threading
import time
from typing import Dict, Iterator, List, Optional

import pytest

from keyword_linker.annotated_text import AnnotatedText
from keyword_linker.errors import SearchUnavailable
from keyword_linker.nlp import LexicalCategory, PhraseTag, Pos, PosTag
from keyword_linker.searchers.memory import InMemoryEntitySearcher
from keyword_linker.tokenizers.simple import SimpleLabelTokenizer
from keyword_linker.types import LABEL, REDIRECT, TYPE, Candidate, Entity

DBPEDIA = "http://dbpedia.org/ontology/"
SKOS_CONCEPT = "http://www.w3.org/2004/02/skos/core#Concept"

TEST_TEXT = (
    "Dr. Patrick Marshall (1869 - November 1950) was a"
    " geologist who lived in New Zealand and worked at the University of Otago."
)


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------


def make_entity(entity_id: str, *labels: str, types=(), redirects=()) -> Entity:
    entity = Entity(id=entity_id)
    for label in labels:
        entity.add_text(LABEL, label)
    for type_ref in types:
        entity.add_reference(TYPE, type_ref)
    for redirect in redirects:
        entity.add_reference(REDIRECT, redirect)
    return entity


def build_test_entities() -> List[Entity]:
    return [
        make_entity("urn:test:PatrickMarshall", "Patrick Marshall", types=[DBPEDIA + "Person"]),
        make_entity(
            "urn:test:Geologist",
            "Geologist",
            types=[SKOS_CONCEPT],
            redirects=["urn:test:redirect:Geologist"],
        ),
        make_entity("urn:test:redirect:Geologist", "Geologe (redirect)", types=[SKOS_CONCEPT]),
        make_entity("urn:test:NewZealand", "New Zealand", types=[DBPEDIA + "Place"]),
        make_entity(
            "urn:test:UniversityOfOtago",
            "University of Otago",
            types=[DBPEDIA + "Organisation"],
        ),
        make_entity("urn:test:University", "University", types=[SKOS_CONCEPT]),
        make_entity("urn:test:Otago", "Otago", types=[DBPEDIA + "Place"]),
        make_entity("urn:test:Otago_Texas", "Otago (Texas)", "Otago", types=[DBPEDIA + "Place"]),
        make_entity(
            "urn:test:UniversityOfOtago_Texas",
            "University of Otago (Texas)",
            types=[DBPEDIA + "Organisation"],
        ),
    ]


def build_test_text() -> AnnotatedText:
    """The Patrick Marshall sentence with noun phrases and POS tags."""
    text = TEST_TEXT
    noun_phrase = PhraseTag("NP", LexicalCategory.NOUN)
    annotated = AnnotatedText(text, "en")
    annotated.add_sentence(0, len(text))

    annotated.add_chunk(0, len("Dr. Patrick Marshall"), noun_phrase)
    start = text.index("New Zealand")
    annotated.add_chunk(start, start + len("New Zealand"), noun_phrase)
    start = text.index("geologist")
    annotated.add_chunk(start, start + len("geologist"), noun_phrase)
    annotated.add_chunk(text.index("the University of Otago"), len(text) - 1, noun_phrase)

    annotated.add_token(0, 2).add_pos(PosTag.of("NE", Pos.ABBREVIATION))
    annotated.add_token(2, 3).add_pos(PosTag.of(".", Pos.POINT))
    annotated.add_token(4, 11).add_pos(PosTag.of("NP", Pos.PROPER_NOUN))
    annotated.add_token(12, 20).add_pos(PosTag.of("NP", Pos.PROPER_NOUN))

    start = text.index("(1869 - November 1950)")
    annotated.add_token(start, start + 1).add_pos(PosTag.of("(", Pos.OPEN_BRACKET))
    annotated.add_token(start + 1, start + 5).add_pos(PosTag.of("NUM", Pos.NUMERAL))
    annotated.add_token(start + 6, start + 7).add_pos(PosTag.of("-", Pos.HYPHEN))
    annotated.add_token(start + 8, start + 16).add_pos(PosTag.of("NE", Pos.COMMON_NOUN))
    annotated.add_token(start + 17, start + 21).add_pos(PosTag.of("NUM", Pos.NUMERAL))
    annotated.add_token(start + 21, start + 22).add_pos(PosTag.of(")", Pos.CLOSE_BRACKET))

    start = text.index("geologist")
    annotated.add_token(start, start + 9).add_pos(PosTag.of("NE", Pos.COMMON_NOUN))

    start = text.index("New Zealand")
    annotated.add_token(start, start + 3).add_pos(PosTag.of("NE", Pos.COMMON_NOUN))
    annotated.add_token(start + 4, start + 11).add_pos(PosTag.of("NP", Pos.PROPER_NOUN))

    start = text.index("the University of Otago")
    annotated.add_token(start, start + 3).add_pos(PosTag.of("ART", Pos.ARTICLE))
    annotated.add_token(start + 4, start + 14).add_pos(PosTag.of("NE", Pos.COMMON_NOUN))
    annotated.add_token(start + 15, start + 17).add_pos(
        PosTag.of("OF", LexicalCategory.PRONOUN_OR_DETERMINER)
    )
    annotated.add_token(start + 18, start + 23).add_pos(PosTag.of("NP", Pos.PROPER_NOUN))
    annotated.add_token(start + 23, start + 24).add_pos(PosTag.of(".", Pos.POINT))
    return annotated


@pytest.fixture
def test_entities() -> List[Entity]:
    return build_test_entities()


@pytest.fixture
def annotated_text() -> AnnotatedText:
    return build_test_text()


@pytest.fixture
def tokenizer() -> SimpleLabelTokenizer:
    return SimpleLabelTokenizer()


@pytest.fixture
def searcher(test_entities: List[Entity]) -> InMemoryEntitySearcher:
    return InMemoryEntitySearcher(test_entities)


# ---------------------------------------------------------------------------
# Mock classes
# ---------------------------------------------------------------------------


class MockSearcher:
    """Searcher returning predefined candidates per query text."""

    def __init__(
        self,
        results: Optional[Dict[str, List[Candidate]]] = None,
        entities: Optional[List[Entity]] = None,
    ):
        self.results = results or {}
        self.entities = {e.id: e for e in entities or []}
        self.calls: List[str] = []

    def search(self, field: str, text: str, language=None, limit: int = 10) -> List[Candidate]:
        self.calls.append(text)
        return list(self.results.get(text, []))[:limit]

    def get_entity(self, entity_id: str) -> Optional[Entity]:
        return self.entities.get(entity_id)


class FailingSearcher(InMemoryEntitySearcher):
    """Raises SearchUnavailable for selected query texts."""

    def __init__(self, entities: List[Entity], failing: List[str]):
        super().__init__(entities)
        self.failing = set(failing)

    def search(self, field, text, language=None, limit=10):
        if text in self.failing:
            raise SearchUnavailable(f"backend down for '{text}'")
        return super().search(field, text, language, limit)


class SlowSearcher(InMemoryEntitySearcher):
    """Blocks on selected query texts until released."""

    def __init__(self, entities: List[Entity], slow: List[str]):
        super().__init__(entities)
        self.slow = set(slow)
        self.release = threading.Event()

    def search(self, field, text, language=None, limit=10):
        if text in self.slow:
            self.release.wait(timeout=5)
        return super().search(field, text, language, limit)


class DelayedSearcher(InMemoryEntitySearcher):
    """Answers earlier mentions later, to shuffle completion order."""

    def __init__(self, entities: List[Entity], delays: Dict[str, float]):
        super().__init__(entities)
        self.delays = delays

    def search(self, field, text, language=None, limit=10):
        time.sleep(self.delays.get(text, 0.0))
        return super().search(field, text, language, limit)


# ---------------------------------------------------------------------------
# Temporary file fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def temp_jsonl_kb(test_entities: List[Entity]) -> Iterator[str]:
    """Create a temporary JSONL knowledge base file."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".jsonl", delete=False) as f:
        for entity in test_entities:
            line = json.dumps({
                "id": entity.id,
                "labels": [label for label in entity.labels.get(None, [])],
                "types": entity.types,
                "redirects": entity.redirects,
            })
            f.write(line + "\n")
        path = f.name
    yield path
    os.unlink(path)


@pytest.fixture
def temp_documents_file() -> Iterator[str]:
    """JSONL documents carrying their own annotations."""
    record = {
        "id": "marshall",
        "text": TEST_TEXT,
        "language": "en",
        "annotations": build_test_text().to_dict(),
    }
    with tempfile.NamedTemporaryFile(mode="w", suffix=".jsonl", delete=False) as f:
        f.write(json.dumps(record) + "\n")
        path = f.name
    yield path
    os.unlink(path)


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def minimal_config_dict(temp_jsonl_kb: str) -> Dict:
    """Config dict for a pipeline over the test knowledge base."""
    return {
        "searcher": {"name": "jsonl", "params": {"path": temp_jsonl_kb}},
        "tokenizer": {"name": "simple", "params": {}},
        "loader": {"name": "jsonl", "params": {}},
        "language": "en",
        "text_processing": {
            "processed_lexical_categories": ["Noun"],
            "processed_pos_tags": [],
        },
        "linking": {"redirect_mode": "follow", "max_suggestions": 3},
    }


@pytest.fixture
def temp_config_file(minimal_config_dict: Dict) -> Iterator[str]:
    """Temporary config JSON file for CLI testing."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
        json.dump(minimal_config_dict, f)
        path = f.name
    yield path
    os.unlink(path)


# ---------------------------------------------------------------------------
# Annotation helpers
# ---------------------------------------------------------------------------


def annotate(text: str, tags: Dict[str, Pos], language: str = "en") -> AnnotatedText:
    """Single sentence without chunks; words listed in ``tags`` get that POS."""
    annotated = AnnotatedText(text, language)
    for match in re.finditer(r"\w+|[^\w\s]", text):
        token = annotated.add_token(match.start(), match.end())
        pos = tags.get(match.group())
        if pos is not None:
            token.add_pos(PosTag.of(pos.value, pos))
    return annotated
