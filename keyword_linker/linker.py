"""
Entity linker.

Links the mentions selected from an annotated text against an entity
searcher. Mentions with the same normalized surface text are looked up once
and share one ranked suggestion list; their spans are collected as
occurrences of a single ``LinkedEntity``.

Scoring of a candidate: the *match factor* is the fraction of mention tokens
found in the candidate's best label (tokens are compared case and diacritic
insensitively); candidates below ``min_match_factor`` are dropped and the
final score is ``base score * match factor``. Suggestions are sorted by
decreasing score, ties keep the searcher's order.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from keyword_linker.annotated_text import AnnotatedText
from keyword_linker.config import EntityLinkerConfig, RedirectMode, TextProcessingConfig
from keyword_linker.errors import (
    InvalidSpanError,
    LinkingCancelled,
    SearchTimeout,
    SearchUnavailable,
)
from keyword_linker.processing import TextProcessingFilter, normalize_text
from keyword_linker.searchers.base import EntitySearcher
from keyword_linker.tokenizers.base import LabelTokenizer, normalize_token
from keyword_linker.types import (
    Candidate,
    Entity,
    FailureKind,
    LinkedEntity,
    LinkingResult,
    MatchType,
    MentionCandidate,
    Occurrence,
    SoftFailure,
    Suggestion,
)

logger = logging.getLogger(__name__)


@dataclass
class _MentionGroup:
    """All mentions sharing one normalized surface text."""

    selected_text: str
    occurrences: List[Occurrence] = field(default_factory=list)

    def add(self, occurrence: Occurrence) -> None:
        if occurrence not in self.occurrences:
            self.occurrences.append(occurrence)


@dataclass
class _Resolution:
    suggestions: List[Suggestion] = field(default_factory=list)
    failures: List[SoftFailure] = field(default_factory=list)


class EntityLinker:
    """Links mentions of an annotated text to entities of a searcher."""

    def __init__(
        self,
        searcher: EntitySearcher,
        tokenizer: LabelTokenizer,
        text_processing_config: Optional[TextProcessingConfig] = None,
        linker_config: Optional[EntityLinkerConfig] = None,
    ):
        self.searcher = searcher
        self.tokenizer = tokenizer
        self.text_processing_config = (
            text_processing_config or TextProcessingConfig()
        ).validate()
        self.config = (linker_config or EntityLinkerConfig()).validate()

    # ------------------------------------------------------------------
    # Linking pass
    # ------------------------------------------------------------------

    def process(
        self,
        annotated: AnnotatedText,
        language: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> LinkingResult:
        """
        Link all mentions of ``annotated``.

        Args:
            annotated: Text with sentence, chunk and token annotations
            language: Document language (defaults to the text's language,
                then to ``default_language`` of the linker config)
            cancel_event: Set to abort the pass; ``LinkingCancelled`` is raised
                and nothing is returned

        Returns:
            LinkingResult with linked entities in first-occurrence order and
            the soft failures recovered during the pass
        """
        language = language or annotated.language or self.config.default_language
        failures: List[SoftFailure] = []

        def invalid_span(err: Exception) -> None:
            if isinstance(err, InvalidSpanError):
                failures.append(
                    SoftFailure(
                        kind=FailureKind.INVALID_SPAN,
                        message=str(err),
                        start=err.start,
                        end=err.end,
                    )
                )

        mentions = TextProcessingFilter(
            self.text_processing_config, on_invalid_span=invalid_span
        ).select(annotated)
        groups = self._group(mentions)
        self._check_cancelled(cancel_event)

        resolutions = self._resolve_all(groups, language, cancel_event)

        linked: Dict[str, LinkedEntity] = {}
        for key, group in groups.items():
            resolution = resolutions[key]
            first = group.occurrences[0]
            failures.extend(
                replace(f, start=first.start, end=first.end) if f.start is None else f
                for f in resolution.failures
            )
            if not resolution.suggestions:
                logger.debug(f"No suggestions for '{group.selected_text}'")
                continue
            linked[group.selected_text] = LinkedEntity(
                selected_text=group.selected_text,
                occurrences=tuple(group.occurrences),
                suggestions=tuple(resolution.suggestions),
                types=self._types(resolution.suggestions[0]),
            )

        for failure in failures:
            logger.warning(f"Soft failure ({failure.kind.value}): {failure.message}")
        logger.info(
            f"Linked {len(linked)} of {len(groups)} distinct mentions "
            f"({len(mentions)} occurrences, {len(failures)} soft failures)"
        )
        return LinkingResult(linked_entities=linked, failures=failures)

    def _group(self, mentions: List[MentionCandidate]) -> Dict[str, _MentionGroup]:
        groups: Dict[str, _MentionGroup] = {}
        for mention in mentions:
            key = normalize_text(mention.text, self.text_processing_config.case_sensitive_matching)
            group = groups.get(key)
            if group is None:
                group = groups[key] = _MentionGroup(selected_text=mention.text.strip())
            group.add(mention.occurrence)
        return groups

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise LinkingCancelled("Linking pass cancelled")

    def _resolve_all(
        self,
        groups: Dict[str, _MentionGroup],
        language: Optional[str],
        cancel_event: Optional[threading.Event],
    ) -> Dict[str, _Resolution]:
        if self.config.max_workers == 1 and self.config.search_timeout is None:
            resolutions = {}
            for key, group in groups.items():
                self._check_cancelled(cancel_event)
                resolutions[key] = self._resolve(group.selected_text, language)
            return resolutions
        if not groups:
            return {}

        timeout = self.config.search_timeout
        keys = list(groups)
        # at most max_workers searches run at once; a timed-out search is
        # abandoned and gives up its slot, so the pool needs a thread per text
        executor = ThreadPoolExecutor(max_workers=len(keys), thread_name_prefix="keyword-linker")
        running: Dict[str, Tuple[Future, float]] = {}
        submitted = 0

        def fill() -> None:
            nonlocal submitted
            while submitted < len(keys) and len(running) < self.config.max_workers:
                key = keys[submitted]
                submitted += 1
                future = executor.submit(self._resolve, groups[key].selected_text, language)
                running[key] = (future, time.monotonic())

        try:
            resolutions = {}
            # searches start in first-occurrence order and are collected in that
            # order, so the searched key is always running when it is awaited
            for key in keys:
                self._check_cancelled(cancel_event)
                fill()
                future, started = running.pop(key)
                remaining = None
                if timeout is not None:
                    remaining = max(0.0, started + timeout - time.monotonic())
                try:
                    resolutions[key] = future.result(timeout=remaining)
                except FutureTimeoutError:
                    future.cancel()
                    text = groups[key].selected_text
                    err = SearchTimeout(f"Search for '{text}' exceeded {timeout}s")
                    resolutions[key] = _Resolution(
                        failures=[self._failure(FailureKind.SEARCH_TIMEOUT, err, text)]
                    )
            return resolutions
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------
    # Resolution of one surface text
    # ------------------------------------------------------------------

    def _resolve(self, text: str, language: Optional[str] = None) -> _Resolution:
        """Search, score, redirect and rank the candidates for one surface text."""
        resolution = _Resolution()
        mention_tokens = self._tokens(text, language)
        if not mention_tokens:
            return resolution

        try:
            candidates = self.searcher.search(
                self.config.label_field, text, language, self.config.search_size
            )
        except SearchUnavailable as err:
            logger.debug(f"Search for '{text}' failed", exc_info=True)
            resolution.failures.append(self._failure(self._failure_kind(err), err, text))
            return resolution

        ranked: Dict[str, Suggestion] = {}
        for candidate in candidates:
            for suggestion in self._suggestions(candidate, text, mention_tokens, language, resolution):
                if not self._allowed(suggestion.entity):
                    continue
                current = ranked.get(suggestion.entity_id)
                if current is None or suggestion.score > current.score:
                    # keeps the position of the first occurrence of an id
                    ranked[suggestion.entity_id] = suggestion

        suggestions = sorted(ranked.values(), key=lambda s: -s.score)
        resolution.suggestions = suggestions[: self.config.max_suggestions]
        return resolution

    def _suggestions(
        self,
        candidate: Candidate,
        text: str,
        mention_tokens: List[str],
        language: Optional[str],
        resolution: _Resolution,
    ) -> List[Suggestion]:
        label, factor = self.best_label(candidate.entity, mention_tokens, language)
        if label is None or factor < self.config.min_match_factor:
            logger.debug(
                f"Discarding {candidate.entity_id} for '{text}' (match factor {factor:.2f})"
            )
            return []

        score = min(1.0, max(0.0, candidate.score)) * factor
        suggestion = Suggestion(
            entity_id=candidate.entity_id,
            score=score,
            entity=candidate.entity,
            match_factor=factor,
            match=self._match_type(label, mention_tokens, factor, language),
            matched_label=label,
        )

        mode = self.config.redirect_mode
        if mode is RedirectMode.IGNORE:
            return [suggestion]

        redirects = candidate.entity.redirects
        if mode is RedirectMode.FOLLOW:
            if len(redirects) != 1:
                return [suggestion]
            target = self._lookup(redirects[0], text, resolution)
            if target is None:
                return [suggestion]
            logger.debug(f"Following redirect {candidate.entity_id} -> {target.id}")
            return [
                Suggestion(
                    entity_id=target.id,
                    score=score,
                    entity=target,
                    match_factor=factor,
                    match=suggestion.match,
                    matched_label=label,
                    redirected_from=candidate.entity_id,
                )
            ]

        # RedirectMode.ADD
        added = [suggestion]
        for redirect in redirects:
            target = self._lookup(redirect, text, resolution)
            if target is None:
                continue
            target_label, target_factor = self.best_label(target, mention_tokens, language)
            if target_label is None or target_factor < self.config.min_match_factor:
                continue
            added.append(
                Suggestion(
                    entity_id=target.id,
                    score=score,
                    entity=target,
                    match_factor=target_factor,
                    match=self._match_type(target_label, mention_tokens, target_factor, language),
                    matched_label=target_label,
                    redirected_from=candidate.entity_id,
                )
            )
        return added

    def _lookup(
        self, entity_id: str, text: str, resolution: _Resolution
    ) -> Optional[Entity]:
        try:
            entity = self.searcher.get_entity(entity_id)
        except SearchUnavailable as err:
            logger.debug(f"Lookup of redirect target {entity_id} failed", exc_info=True)
            resolution.failures.append(self._failure(self._failure_kind(err), err, text))
            return None
        if entity is None:
            logger.debug(f"Redirect target {entity_id} not found")
        return entity

    # ------------------------------------------------------------------
    # Label matching
    # ------------------------------------------------------------------

    def _tokens(self, text: str, language: Optional[str]) -> List[str]:
        return [normalize_token(t) for t in self.tokenizer.tokenize(text, language)]

    def match_factor(self, mention_tokens: List[str], label: str, language: Optional[str]) -> float:
        """Fraction of ``mention_tokens`` also present in the tokens of ``label``."""
        if not mention_tokens:
            return 0.0
        label_tokens = set(self._tokens(label, language))
        found = sum(1 for token in mention_tokens if token in label_tokens)
        return found / len(mention_tokens)

    def best_label(
        self, entity: Entity, mention_tokens: List[str], language: Optional[str]
    ) -> Tuple[Optional[str], float]:
        """
        The label of ``entity`` that matches the mention best.

        Labels in ``language`` are preferred, then labels without language,
        then any label. Ties keep label order.
        """
        labels = entity.get_text(self.config.label_field)
        if not labels:
            return None, 0.0
        preferred = [l for l in labels if language is not None and l.language == language]
        if not preferred:
            preferred = [l for l in labels if l.language is None] or labels

        best_label, best_factor = None, -1.0
        for label in preferred:
            factor = self.match_factor(mention_tokens, label.text, language)
            if factor > best_factor:
                best_label, best_factor = label.text, factor
        return best_label, best_factor

    def _match_type(
        self, label: str, mention_tokens: List[str], factor: float, language: Optional[str]
    ) -> MatchType:
        if self._tokens(label, language) == mention_tokens:
            return MatchType.EXACT
        if factor >= 1.0:
            return MatchType.FULL
        return MatchType.PARTIAL

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def _allowed(self, entity: Optional[Entity]) -> bool:
        if not self.config.allowed_types or entity is None:
            return True
        return any(t in self.config.allowed_types for t in entity.types)

    def _types(self, suggestion: Suggestion) -> Tuple[str, ...]:
        if suggestion.entity is None:
            return ()
        types = suggestion.entity.types
        mappings = self.config.type_mappings
        if mappings is None:
            return tuple(types)
        mapped: List[str] = []
        for type_ref in types:
            target = mappings.get(type_ref)
            if target is not None and target not in mapped:
                mapped.append(target)
        return tuple(mapped)

    # ------------------------------------------------------------------
    # Failures
    # ------------------------------------------------------------------

    @staticmethod
    def _failure_kind(err: SearchUnavailable) -> FailureKind:
        if isinstance(err, SearchTimeout):
            return FailureKind.SEARCH_TIMEOUT
        return FailureKind.SEARCH_UNAVAILABLE

    @staticmethod
    def _failure(kind: FailureKind, err: Exception, text: str) -> SoftFailure:
        return SoftFailure(kind=kind, message=str(err), text=text)


def link(
    annotated: AnnotatedText,
    language: Optional[str],
    text_processing_config: TextProcessingConfig,
    linker_config: EntityLinkerConfig,
    searcher: EntitySearcher,
    tokenizer: LabelTokenizer,
    cancel_event: Optional[threading.Event] = None,
) -> LinkingResult:
    """Run a single linking pass; see ``EntityLinker.process``."""
    linker = EntityLinker(searcher, tokenizer, text_processing_config, linker_config)
    return linker.process(annotated, language, cancel_event=cancel_event)
