import json
import logging
from pathlib import Path
from typing import Optional

from keyword_linker.registry import searchers
from keyword_linker.searchers.memory import InMemoryEntitySearcher
from keyword_linker.tokenizers.base import LabelTokenizer
from keyword_linker.types import Entity

logger = logging.getLogger(__name__)


@searchers.register("jsonl")
class JSONLEntitySearcher(InMemoryEntitySearcher):
    """
    Loads entities from a JSONL file with fields: id, labels, types, redirects.

    ``labels`` is either ``{"<lang>": ["label", ...]}`` or a list of labels;
    a ``title`` field is accepted in place of ``labels``.
    """

    def __init__(
        self,
        path: str,
        tokenizer: Optional[LabelTokenizer] = None,
        min_score: float = 0.0,
    ):
        super().__init__(tokenizer=tokenizer, min_score=min_score)
        self.source_path = path
        with Path(path).open(encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                self.add_entity(Entity.from_dict(json.loads(line)))
        logger.info(f"Loaded {len(self.entities)} entities from {path}")
