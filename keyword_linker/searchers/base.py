from typing import List, Optional, Protocol

from keyword_linker.types import Candidate, Entity


class EntitySearcher(Protocol):
    """
    Entity lookup capability consumed by the linker.

    ``search`` returns candidates ordered by decreasing relevance, each with a
    base score in [0, 1]. No match is an empty list. Implementations raise
    ``SearchUnavailable`` when they cannot answer.
    """

    def search(
        self, field: str, text: str, language: Optional[str] = None, limit: int = 10
    ) -> List[Candidate]:
        ...

    def get_entity(self, entity_id: str) -> Optional[Entity]:
        ...
