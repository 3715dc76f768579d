import unicodedata
from typing import List, Optional, Protocol


class LabelTokenizer(Protocol):
    """Splits labels and mention texts into comparable tokens."""

    def tokenize(self, label: str, language: Optional[str] = None) -> List[str]:
        ...


def normalize_token(token: str) -> str:
    """Case fold a token and strip diacritics ("Zürich" -> "zurich")."""
    decomposed = unicodedata.normalize("NFKD", token)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.casefold()
