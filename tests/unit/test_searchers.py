"""Unit tests for entity searchers."""

import pytest

from keyword_linker.errors import SearchUnavailable
from keyword_linker.registry import searchers
from keyword_linker.searchers import InMemoryEntitySearcher, JSONLEntitySearcher
from keyword_linker.types import LABEL, Entity

from tests.conftest import make_entity


class TestInMemoryEntitySearcher:
    def test_exact_label_scores_highest(self, searcher):
        candidates = searcher.search(LABEL, "University of Otago", "en")
        ids = [c.entity_id for c in candidates]
        assert ids[0] == "urn:test:UniversityOfOtago"
        assert candidates[0].score == pytest.approx(1.0)
        assert ids.index("urn:test:UniversityOfOtago_Texas") == 1
        assert candidates[1].score < 1.0

    def test_scores_within_unit_interval(self, searcher):
        for candidate in searcher.search(LABEL, "University of Otago"):
            assert 0.0 <= candidate.score <= 1.0

    def test_scores_sorted_descending(self, searcher):
        scores = [c.score for c in searcher.search(LABEL, "Otago University")]
        assert scores == sorted(scores, reverse=True)

    def test_case_insensitive(self, searcher):
        candidates = searcher.search(LABEL, "geologist")
        assert [c.entity_id for c in candidates] == ["urn:test:Geologist"]

    def test_no_match_is_empty(self, searcher):
        assert searcher.search(LABEL, "November") == []

    def test_limit(self, searcher):
        assert len(searcher.search(LABEL, "University of Otago", limit=2)) == 2

    def test_ties_keep_insertion_order(self):
        searcher = InMemoryEntitySearcher(
            [make_entity("urn:b", "Paris"), make_entity("urn:a", "Paris")]
        )
        assert [c.entity_id for c in searcher.search(LABEL, "Paris")] == ["urn:b", "urn:a"]

    def test_language_filter(self):
        entity = Entity(id="urn:x").add_text(LABEL, "Neuseeland", "de")
        searcher = InMemoryEntitySearcher([entity])
        assert searcher.search(LABEL, "Neuseeland", "en") == []
        assert [c.entity_id for c in searcher.search(LABEL, "Neuseeland", "de")] == ["urn:x"]

    def test_search_other_text_field(self):
        pref_label = "http://www.w3.org/2004/02/skos/core#prefLabel"
        entity = Entity(id="urn:x").add_text(pref_label, "Otago")
        searcher = InMemoryEntitySearcher([entity])
        assert [c.entity_id for c in searcher.search(pref_label, "Otago")] == ["urn:x"]
        assert searcher.search(LABEL, "Otago") == []

    def test_get_entity(self, searcher):
        assert searcher.get_entity("urn:test:NewZealand").labels == {None: ["New Zealand"]}
        assert searcher.get_entity("urn:test:Atlantis") is None

    def test_closed_searcher_is_unavailable(self, searcher):
        searcher.close()
        with pytest.raises(SearchUnavailable):
            searcher.search(LABEL, "Otago")
        with pytest.raises(SearchUnavailable):
            searcher.get_entity("urn:test:Otago")

    def test_registered(self):
        assert searchers.get("memory") is InMemoryEntitySearcher


class TestJSONLEntitySearcher:
    def test_loads_entities(self, temp_jsonl_kb, test_entities):
        searcher = JSONLEntitySearcher(temp_jsonl_kb)
        assert len(searcher) == len(test_entities)
        geologist = searcher.get_entity("urn:test:Geologist")
        assert geologist.redirects == ["urn:test:redirect:Geologist"]

    def test_search(self, temp_jsonl_kb):
        searcher = JSONLEntitySearcher(temp_jsonl_kb)
        candidates = searcher.search(LABEL, "New Zealand", "en")
        assert [c.entity_id for c in candidates] == ["urn:test:NewZealand"]

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            JSONLEntitySearcher("/nonexistent/kb.jsonl")

    def test_registered(self):
        assert searchers.get("jsonl") is JSONLEntitySearcher
