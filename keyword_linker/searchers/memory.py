import logging
import threading
from typing import Dict, Iterable, List, Optional

from rapidfuzz import fuzz, utils

from keyword_linker.errors import SearchUnavailable
from keyword_linker.registry import searchers
from keyword_linker.tokenizers.base import LabelTokenizer, normalize_token
from keyword_linker.tokenizers.simple import SimpleLabelTokenizer
from keyword_linker.types import Candidate, Entity

logger = logging.getLogger(__name__)


@searchers.register("memory")
class InMemoryEntitySearcher:
    """
    Small in-memory entity index.

    Entities sharing at least one normalized token with the query are
    candidates; they are ranked by RapidFuzz ``token_sort_ratio`` of their
    best label against the query. Ties keep insertion order, so results are
    reproducible.
    """

    def __init__(
        self,
        entities: Optional[Iterable[Entity]] = None,
        tokenizer: Optional[LabelTokenizer] = None,
        min_score: float = 0.0,
    ):
        self.tokenizer = tokenizer or SimpleLabelTokenizer()
        self.min_score = min_score
        self.entities: Dict[str, Entity] = {}
        # token -> entity ids, both in insertion order
        self._index: Dict[str, Dict[str, None]] = {}
        self._lock = threading.Lock()
        self._closed = False
        for entity in entities or []:
            self.add_entity(entity)

    def __len__(self) -> int:
        return len(self.entities)

    def add_entity(self, entity: Entity) -> None:
        with self._lock:
            self.entities[entity.id] = entity
            # every text field is indexed, so any field can serve as the label field
            for labels in entity.texts.values():
                for label in labels:
                    for token in self._tokens(label.text, label.language):
                        self._index.setdefault(token, {})[entity.id] = None

    def close(self) -> None:
        """Make further lookups fail with SearchUnavailable."""
        self._closed = True

    def _tokens(self, text: str, language: Optional[str]) -> List[str]:
        return [normalize_token(t) for t in self.tokenizer.tokenize(text, language)]

    def _check_open(self) -> None:
        if self._closed:
            raise SearchUnavailable("In-memory searcher is closed")

    def get_entity(self, entity_id: str) -> Optional[Entity]:
        self._check_open()
        return self.entities.get(entity_id)

    def all_entities(self) -> Iterable[Entity]:
        return self.entities.values()

    def search(
        self, field: str, text: str, language: Optional[str] = None, limit: int = 10
    ) -> List[Candidate]:
        self._check_open()
        with self._lock:
            ids: Dict[str, None] = {}
            for token in self._tokens(text, language):
                ids.update(self._index.get(token, {}))
            entities = [self.entities[i] for i in ids]

        candidates: List[Candidate] = []
        for entity in entities:
            labels = entity.get_text(field, language)
            if not labels:
                continue
            best = max(
                fuzz.token_sort_ratio(text, label.text, processor=utils.default_process)
                for label in labels
            )
            score = best / 100.0
            if score > self.min_score:
                candidates.append(Candidate(entity=entity, score=score))

        candidates.sort(key=lambda c: -c.score)
        logger.debug(f"Search '{text}' ({language}): {len(candidates)} candidates")
        return candidates[:limit]
