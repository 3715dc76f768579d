"""
Selection of mention candidates from annotated text.

Tokens are *processable* when one of their POS annotations carries a
configured POS tag or lexical category. A chunk that contains a processable
token yields one mention reaching from its first to its last processable or
*matchable* token, so "University of Otago" inside "the University of Otago"
is looked up as a whole. Tokens outside of any chunk form mentions from runs of
adjacent processable tokens. Mentions never cross a chunk boundary.
"""

import logging
from typing import Dict, List, Optional, Sequence

from keyword_linker.annotated_text import AnnotatedText, Chunk, Sentence, Token
from keyword_linker.config import TextProcessingConfig
from keyword_linker.errors import InvalidSpanError, check_span
from keyword_linker.nlp import LexicalCategory
from keyword_linker.types import InvalidSpanCallback, MentionCandidate

logger = logging.getLogger(__name__)


def normalize_text(text: str, case_sensitive: bool = False) -> str:
    """Key under which mentions of the same surface text are merged."""
    text = " ".join(text.split())
    return text if case_sensitive else text.lower()


def _categories(token: Token, config: TextProcessingConfig) -> List[LexicalCategory]:
    return [
        category
        for annotation in token.pos
        if annotation.probability >= config.min_pos_annotation_probability
        for category in annotation.value.categories
    ]


def is_processable(token: Token, config: TextProcessingConfig) -> bool:
    for annotation in token.pos:
        if annotation.probability < config.min_pos_annotation_probability:
            continue
        tag = annotation.value
        if tag.pos & config.processed_pos_tags:
            return True
        if tag.categories & config.processed_lexical_categories:
            return True
    return False


def is_matchable(token: Token, config: TextProcessingConfig) -> bool:
    return is_processable(token, config) or any(
        c in config.matched_lexical_categories for c in _categories(token, config)
    )


def _uses_chunk(chunk: Chunk, config: TextProcessingConfig) -> bool:
    tag = chunk.phrase_tag
    if tag is None or not config.processed_phrase_categories:
        return True
    return tag.category in config.processed_phrase_categories


class TextProcessingFilter:
    """Selects the mention candidates of an annotated text."""

    def __init__(
        self,
        config: Optional[TextProcessingConfig] = None,
        on_invalid_span: Optional[InvalidSpanCallback] = None,
    ):
        self.config = (config or TextProcessingConfig()).validate()
        self.on_invalid_span = on_invalid_span

    def _valid(self, spans: Sequence, text_length: int, kind: str) -> list:
        valid = []
        for span in spans:
            try:
                check_span(span.start, span.end, text_length, kind)
            except InvalidSpanError as err:
                if self.on_invalid_span is None:
                    logger.warning(f"Skipping {kind}: {err}")
                else:
                    self.on_invalid_span(err)
                continue
            valid.append(span)
        return sorted(valid, key=lambda s: (s.start, -s.end))

    def select(self, annotated: AnnotatedText) -> List[MentionCandidate]:
        if self.config.links_nothing:
            return []
        text_length = len(annotated.text)
        sentences = self._valid(annotated.sentences(), text_length, "sentence")
        chunks = [
            c
            for c in self._valid(annotated.all_chunks(), text_length, "chunk")
            if _uses_chunk(c, self.config)
        ]
        tokens = self._valid(annotated.all_tokens(), text_length, "token")

        mentions: List[MentionCandidate] = []
        for sentence in sentences:
            sentence_tokens = [
                t for t in tokens if t.start >= sentence.start and t.end <= sentence.end
            ]
            sentence_chunks = [
                c for c in chunks if c.start >= sentence.start and c.end <= sentence.end
            ]
            mentions.extend(
                self._select_in_sentence(annotated, sentence, sentence_chunks, sentence_tokens)
            )

        selected = [
            m
            for m in mentions
            if len(normalize_text(m.text, self.config.case_sensitive_matching))
            >= self.config.min_search_token_length
        ]
        logger.debug(
            f"Selected {len(selected)} of {len(mentions)} mention candidates "
            f"(min_search_token_length={self.config.min_search_token_length})"
        )
        return selected

    def _select_in_sentence(
        self,
        annotated: AnnotatedText,
        sentence: Sentence,
        chunks: List[Chunk],
        tokens: List[Token],
    ) -> List[MentionCandidate]:
        # each token belongs to the first chunk that fully contains it
        chunk_of: Dict[int, int] = {}
        for index, token in enumerate(tokens):
            for chunk_index, chunk in enumerate(chunks):
                if chunk.start <= token.start and token.end <= chunk.end:
                    chunk_of[index] = chunk_index
                    break

        mentions: List[MentionCandidate] = []
        run: List[Token] = []
        group: List[Token] = []
        group_chunk: Optional[int] = None

        def flush_run() -> None:
            if run:
                mentions.append(self._mention(annotated, list(run)))
                run.clear()

        def flush_group() -> None:
            nonlocal group_chunk
            group_chunk = None
            if group:
                mention = self._chunk_mention(annotated, group)
                if mention is not None:
                    mentions.append(mention)
                group.clear()

        for index, token in enumerate(tokens):
            chunk_index = chunk_of.get(index)
            if chunk_index is None:
                flush_group()
                if is_processable(token, self.config):
                    run.append(token)
                else:
                    flush_run()
                continue
            flush_run()
            if chunk_index != group_chunk:
                flush_group()
                group_chunk = chunk_index
            group.append(token)
        flush_run()
        flush_group()
        return mentions

    def _chunk_mention(
        self, annotated: AnnotatedText, tokens: List[Token]
    ) -> Optional[MentionCandidate]:
        if not any(is_processable(t, self.config) for t in tokens):
            return None
        linkable = [i for i, t in enumerate(tokens) if is_matchable(t, self.config)]
        return self._mention(annotated, tokens[linkable[0] : linkable[-1] + 1])

    @staticmethod
    def _mention(annotated: AnnotatedText, tokens: List[Token]) -> MentionCandidate:
        start, end = tokens[0].start, tokens[-1].end
        return MentionCandidate(
            start=start,
            end=end,
            text=annotated.span_text(start, end),
            tokens=tuple(annotated.span_text(t.start, t.end) for t in tokens),
        )


def select(
    annotated: AnnotatedText,
    config: Optional[TextProcessingConfig] = None,
    on_invalid_span: Optional[InvalidSpanCallback] = None,
) -> List[MentionCandidate]:
    """Ordered mention candidates of ``annotated`` (see TextProcessingFilter)."""
    return TextProcessingFilter(config, on_invalid_span).select(annotated)
