"""Unit tests for data types."""

import pytest

from keyword_linker.types import (
    LABEL,
    RDFS_LABEL,
    REDIRECT,
    TYPE,
    Entity,
    FailureKind,
    Label,
    LinkedEntity,
    LinkingResult,
    MatchType,
    MentionCandidate,
    Occurrence,
    SoftFailure,
    Suggestion,
)

SKOS_PREF_LABEL = "http://www.w3.org/2004/02/skos/core#prefLabel"


class TestEntity:
    def test_logical_fields_resolve_to_configured_fields(self):
        entity = Entity(id="urn:x").add_text(LABEL, "Otago", "en")
        assert entity.texts == {RDFS_LABEL: [Label("Otago", "en")]}
        assert entity.get_text(RDFS_LABEL) == [Label("Otago", "en")]
        assert entity.get_text(LABEL) == [Label("Otago", "en")]

    def test_label_field_remapping(self):
        entity = Entity(id="urn:x")
        entity.add_text(LABEL, "University of Otago")
        entity.add_text(SKOS_PREF_LABEL, "Otago University")
        remapped = entity.with_fields(label_field=SKOS_PREF_LABEL)
        assert [l.text for l in remapped.get_text(LABEL)] == ["Otago University"]
        # other fields are still reachable directly
        assert [l.text for l in remapped.get_text(RDFS_LABEL)] == ["University of Otago"]
        assert remapped.id == entity.id

    def test_get_text_language_filter_keeps_untagged(self):
        entity = Entity(id="urn:x")
        entity.add_text(LABEL, "Geologist", "en")
        entity.add_text(LABEL, "Geologe", "de")
        entity.add_text(LABEL, "Geo")
        assert [l.text for l in entity.get_text(LABEL, "de")] == ["Geologe", "Geo"]

    def test_labels_multimap(self):
        entity = Entity(id="urn:x")
        entity.add_text(LABEL, "Geologist", "en")
        entity.add_text(LABEL, "Geologe", "de")
        entity.add_text(LABEL, "Earth scientist", "en")
        assert entity.labels == {"en": ["Geologist", "Earth scientist"], "de": ["Geologe"]}

    def test_types_and_redirects(self):
        entity = Entity(id="urn:x")
        entity.add_reference(TYPE, "urn:type:Concept")
        entity.add_reference(REDIRECT, "urn:y")
        assert entity.types == ["urn:type:Concept"]
        assert entity.redirects == ["urn:y"]

    def test_from_dict_language_map(self):
        entity = Entity.from_dict(
            {
                "id": "urn:test:NewZealand",
                "labels": {"en": ["New Zealand"], "mi": "Aotearoa"},
                "types": ["urn:type:Place"],
            }
        )
        assert entity.labels == {"en": ["New Zealand"], "mi": ["Aotearoa"]}
        assert entity.types == ["urn:type:Place"]
        assert entity.redirects == []

    def test_from_dict_title(self):
        entity = Entity.from_dict({"id": "Q76", "title": "Barack Obama"})
        assert entity.labels == {None: ["Barack Obama"]}


class TestSuggestion:
    def test_equality_uses_id_and_score(self):
        a = Suggestion("urn:x", 0.8, match=MatchType.EXACT, matched_label="X")
        b = Suggestion("urn:x", 0.8, match=MatchType.PARTIAL, matched_label="X (y)")
        assert a == b
        assert a != Suggestion("urn:x", 0.7)

    def test_immutable(self):
        suggestion = Suggestion("urn:x", 0.8)
        with pytest.raises(AttributeError):
            suggestion.score = 1.0


class TestLinkedEntity:
    def test_score_is_top_suggestion_score(self):
        linked = LinkedEntity(
            selected_text="Otago",
            occurrences=(Occurrence(0, 5),),
            suggestions=(Suggestion("urn:a", 0.9), Suggestion("urn:b", 0.4)),
        )
        assert linked.score == 0.9

    def test_mention_candidate_occurrence(self):
        mention = MentionCandidate(start=5, end=10, text="Otago")
        assert mention.occurrence == Occurrence(5, 10)


class TestLinkingResult:
    def test_to_dict(self):
        linked = LinkedEntity(
            selected_text="Otago",
            occurrences=(Occurrence(5, 10), Occurrence(40, 45)),
            suggestions=(Suggestion("urn:a", 0.9, matched_label="Otago", match=MatchType.EXACT),),
            types=("Place",),
        )
        result = LinkingResult(
            linked_entities={"Otago": linked},
            failures=[SoftFailure(FailureKind.SEARCH_TIMEOUT, "too slow", "Texas", 50, 55)],
        )
        data = result.to_dict()
        assert data["entities"][0]["text"] == "Otago"
        assert data["entities"][0]["occurrences"] == [
            {"start": 5, "end": 10},
            {"start": 40, "end": 45},
        ]
        assert data["entities"][0]["suggestions"][0]["match"] == "exact"
        assert data["entities"][0]["types"] == ["Place"]
        assert data["failures"][0]["kind"] == "search_timeout"
        assert "Otago" in result
        assert len(result) == 1
