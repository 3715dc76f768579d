"""Entity searchers."""

from .base import EntitySearcher  # noqa: F401
from .jsonl import JSONLEntitySearcher  # noqa: F401
from .memory import InMemoryEntitySearcher  # noqa: F401
