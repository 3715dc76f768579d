import json
import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

import spacy
from spacy.language import Language

# importing these registers their components
from keyword_linker import loaders as _loaders_module  # noqa: F401
from keyword_linker import searchers as _searchers_pkg  # noqa: F401
from keyword_linker import tokenizers as _tokenizers_pkg  # noqa: F401

from .annotated_text import AnnotatedText
from .config import PipelineConfig
from .errors import ConfigurationError
from .linker import EntityLinker
from .registry import loaders, searchers, tokenizers
from .spacy_adapter import annotated_text_from_doc
from .types import Document

logger = logging.getLogger(__name__)


class LinkingPipeline:
    """Loads documents, annotates them with spaCy and links their mentions."""

    def __init__(self, config: PipelineConfig) -> None:
        self.config = config

        if config.loader.name == "text" and not config.spacy_model:
            # plain text carries no annotations and a blank pipeline tags nothing
            raise ConfigurationError(
                "The 'text' loader needs a 'spacy_model' with a tagger to annotate documents."
            )

        self.tokenizer = tokenizers.create(config.tokenizer.name, **config.tokenizer.params)
        # searchers index labels with the same tokenizer the linker matches with
        self.searcher = searchers.create(
            config.searcher.name, tokenizer=self.tokenizer, **config.searcher.params
        )
        self.loader = loaders.create(config.loader.name, **config.loader.params)
        logger.info(
            f"Pipeline: searcher={config.searcher.name}, tokenizer={config.tokenizer.name}, "
            f"loader={config.loader.name}"
        )

        self.linker = EntityLinker(
            self.searcher,
            self.tokenizer,
            config.text_processing,
            config.linking,
        )
        self._nlp: Optional[Language] = None

    @property
    def nlp(self) -> Language:
        if self._nlp is None:
            if self.config.spacy_model:
                logger.info(f"Loading spaCy model {self.config.spacy_model}")
                self._nlp = spacy.load(self.config.spacy_model)
            else:
                self._nlp = spacy.blank(self.config.language)
        return self._nlp

    def language_of(self, doc: Document) -> str:
        shipped = doc.annotated.language if doc.annotated is not None else None
        return shipped or doc.language or self.config.language

    def annotate(self, doc: Document) -> AnnotatedText:
        """Annotations shipped with the document, else the spaCy pipeline's analysis."""
        if doc.annotated is not None:
            return doc.annotated
        annotated = annotated_text_from_doc(self.nlp(doc.text), self.language_of(doc))
        if not any(token.pos for token in annotated.all_tokens()):
            logger.warning(
                f"Document {doc.id}: spaCy pipeline produced no POS tags, nothing can be linked "
                "(set 'spacy_model' to a pipeline with a tagger)"
            )
        return annotated

    def process_document(
        self, doc: Document, cancel_event: Optional[threading.Event] = None
    ) -> Dict:
        language = self.language_of(doc)
        result = self.linker.process(self.annotate(doc), language, cancel_event=cancel_event)
        return {
            "id": doc.id,
            "text": doc.text,
            "language": language,
            **result.to_dict(),
            "meta": doc.meta,
        }

    def iter_results(self, paths: Iterable[str]) -> Iterator[Dict]:
        for path in paths:
            count = 0
            for doc in self.loader.load(path):
                yield self.process_document(doc)
                count += 1
            logger.info(f"Linked {count} documents from {path}")

    def run(self, paths: Iterable[str], output_path: Optional[str] = None) -> List[Dict]:
        """Link every document of ``paths``; results are also written as JSONL if requested."""
        results: List[Dict] = []
        writer = Path(output_path).open("w", encoding="utf-8") if output_path else None
        try:
            for result in self.iter_results(paths):
                if writer:
                    writer.write(json.dumps(result, ensure_ascii=False) + "\n")
                results.append(result)
        finally:
            if writer:
                writer.close()
        return results
