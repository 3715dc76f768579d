"""
Document loaders.

``text`` reads one document per file. ``jsonl`` reads one document per line;
a line may carry the annotations of an upstream analysis in the JSON form of
``AnnotatedText``, in which case no spaCy pipeline is needed to link it.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Protocol

from keyword_linker.annotated_text import AnnotatedText
from keyword_linker.registry import loaders
from keyword_linker.types import Document

logger = logging.getLogger(__name__)


class DocumentLoader(Protocol):
    def load(self, path: str) -> Iterator[Document]:
        ...


@loaders.register("text")
class TextLoader:
    """Loads a plain text file as a single document."""

    def __init__(self, language: Optional[str] = None) -> None:
        self.language = language

    def load(self, path: str) -> Iterator[Document]:
        text = Path(path).read_text(encoding="utf-8")
        yield Document(
            id=Path(path).stem, text=text, language=self.language, meta={"source": path}
        )


@loaders.register("jsonl")
class JSONLLoader:
    """
    Loads JSONL documents: ``{"id": ..., "text": ..., "language": ..., "annotations": {...}}``.

    Only the text field is required. Fields other than id, language and
    annotations are passed through as document metadata.
    """

    def __init__(self, text_field: str = "text") -> None:
        self.text_field = text_field

    def load(self, path: str) -> Iterator[Document]:
        with Path(path).open(encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError as exc:
                    raise ValueError(f"{path}:{line_no}: invalid JSON ({exc})") from exc
                yield self._document(record, path, line_no)

    def _document(self, record: Dict[str, Any], path: str, line_no: int) -> Document:
        if self.text_field not in record:
            raise ValueError(f"{path}:{line_no}: missing '{self.text_field}' field")
        text = record[self.text_field]
        language = record.get("language")

        annotated = None
        annotations = record.get("annotations")
        if annotations:
            annotated = AnnotatedText.from_dict({**annotations, "text": text})
            annotated.language = annotated.language or language
            logger.debug(
                f"{path}:{line_no}: {len(annotated.all_tokens())} annotated tokens"
            )

        meta = {
            k: v
            for k, v in record.items()
            if k not in {"id", "language", "annotations", self.text_field}
        }
        return Document(
            id=record.get("id") or f"{Path(path).stem}-{line_no}",
            text=text,
            language=language,
            annotated=annotated,
            meta={"source": path, **meta},
        )
