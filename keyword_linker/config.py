from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional

from keyword_linker.errors import ConfigurationError
from keyword_linker.nlp import LexicalCategory, Pos
from keyword_linker.types import LABEL


class RedirectMode(str, Enum):
    """How candidates that redirect to another entity are handled."""

    IGNORE = "ignore"
    ADD = "add"
    FOLLOW = "follow"


DEFAULT_PROCESSED_LEXICAL_CATEGORIES = frozenset({LexicalCategory.NOUN})
DEFAULT_PROCESSED_POS_TAGS = frozenset({Pos.PROPER_NOUN})
DEFAULT_MATCHED_LEXICAL_CATEGORIES = frozenset(
    {LexicalCategory.NOUN, LexicalCategory.ADJECTIVE}
)
DEFAULT_PROCESSED_PHRASE_CATEGORIES = frozenset({LexicalCategory.NOUN})


def _check_keys(cls, data: Dict[str, Any]) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown {cls.__name__} option(s): {', '.join(unknown)}")


def _parse_set(parser, values: Iterable[Any], option: str) -> FrozenSet[Any]:
    try:
        return frozenset(parser(v) for v in values)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid value for '{option}': {exc}") from exc


@dataclass
class TextProcessingConfig:
    """Which tokens of an annotated text are used to look up entities."""

    processed_lexical_categories: FrozenSet[LexicalCategory] = DEFAULT_PROCESSED_LEXICAL_CATEGORIES
    processed_pos_tags: FrozenSet[Pos] = DEFAULT_PROCESSED_POS_TAGS
    # tokens that may extend a mention within a chunk holding a processable token
    matched_lexical_categories: FrozenSet[LexicalCategory] = DEFAULT_MATCHED_LEXICAL_CATEGORIES
    # empty means every chunk is used
    processed_phrase_categories: FrozenSet[LexicalCategory] = DEFAULT_PROCESSED_PHRASE_CATEGORIES
    min_pos_annotation_probability: float = 0.75
    min_search_token_length: int = 3
    case_sensitive_matching: bool = False

    def validate(self) -> "TextProcessingConfig":
        if self.min_search_token_length < 0:
            raise ConfigurationError(
                f"min_search_token_length must be >= 0 (got {self.min_search_token_length})"
            )
        if not 0.0 <= self.min_pos_annotation_probability <= 1.0:
            raise ConfigurationError(
                "min_pos_annotation_probability must be within [0, 1] "
                f"(got {self.min_pos_annotation_probability})"
            )
        return self

    @property
    def links_nothing(self) -> bool:
        return not self.processed_lexical_categories and not self.processed_pos_tags

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "TextProcessingConfig":
        _check_keys(TextProcessingConfig, data)
        params: Dict[str, Any] = dict(data)
        for option in (
            "processed_lexical_categories",
            "matched_lexical_categories",
            "processed_phrase_categories",
        ):
            if option in params:
                params[option] = _parse_set(LexicalCategory.parse, params[option], option)
        if "processed_pos_tags" in params:
            params["processed_pos_tags"] = _parse_set(
                Pos.parse, params["processed_pos_tags"], "processed_pos_tags"
            )
        return TextProcessingConfig(**params).validate()


@dataclass
class EntityLinkerConfig:
    """Scoring, ranking and redirect handling of the entity linker."""

    redirect_mode: RedirectMode = RedirectMode.IGNORE
    max_suggestions: int = 3
    min_match_factor: float = 0.5
    # entity type -> type reported for the linked entity
    type_mappings: Optional[Dict[str, str]] = None
    # candidates need at least one of these types
    allowed_types: Optional[FrozenSet[str]] = None
    label_field: str = LABEL
    default_language: Optional[str] = None
    search_limit: int = 10
    max_workers: int = 1
    search_timeout: Optional[float] = None

    def validate(self) -> "EntityLinkerConfig":
        if not isinstance(self.redirect_mode, RedirectMode):
            raise ConfigurationError(f"Invalid redirect_mode: {self.redirect_mode!r}")
        if self.max_suggestions < 1:
            raise ConfigurationError(
                f"max_suggestions must be >= 1 (got {self.max_suggestions})"
            )
        if not 0.0 < self.min_match_factor <= 1.0:
            raise ConfigurationError(
                f"min_match_factor must be within (0, 1] (got {self.min_match_factor})"
            )
        if self.search_limit < 1:
            raise ConfigurationError(f"search_limit must be >= 1 (got {self.search_limit})")
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1 (got {self.max_workers})")
        if self.search_timeout is not None and self.search_timeout <= 0:
            raise ConfigurationError(
                f"search_timeout must be positive (got {self.search_timeout})"
            )
        return self

    @property
    def search_size(self) -> int:
        """Number of results requested from the searcher, leaving room for filtering."""
        return max(self.max_suggestions, self.search_limit)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "EntityLinkerConfig":
        _check_keys(EntityLinkerConfig, data)
        params: Dict[str, Any] = dict(data)
        if "redirect_mode" in params:
            try:
                params["redirect_mode"] = RedirectMode(str(params["redirect_mode"]).lower())
            except ValueError as exc:
                raise ConfigurationError(
                    f"Invalid redirect_mode: {params['redirect_mode']!r}"
                ) from exc
        if params.get("allowed_types") is not None:
            params["allowed_types"] = frozenset(params["allowed_types"])
        return EntityLinkerConfig(**params).validate()


@dataclass
class ComponentConfig:
    """Generic component configuration."""

    name: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PipelineConfig:
    """Top-level pipeline configuration."""

    searcher: ComponentConfig
    tokenizer: ComponentConfig = field(default_factory=lambda: ComponentConfig(name="simple"))
    loader: ComponentConfig = field(default_factory=lambda: ComponentConfig(name="text"))
    text_processing: TextProcessingConfig = field(default_factory=TextProcessingConfig)
    linking: EntityLinkerConfig = field(default_factory=EntityLinkerConfig)
    spacy_model: Optional[str] = None
    language: str = "en"

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PipelineConfig":
        def build(section: str) -> Optional[ComponentConfig]:
            if section not in data or data[section] is None:
                return None
            entry = data[section]
            return ComponentConfig(name=entry["name"], params=entry.get("params", {}))

        searcher = build("searcher")
        if searcher is None:
            raise ConfigurationError("A 'searcher' section is required.")

        return PipelineConfig(
            searcher=searcher,
            tokenizer=build("tokenizer") or ComponentConfig(name="simple"),
            loader=build("loader") or ComponentConfig(name="text"),
            text_processing=TextProcessingConfig.from_dict(data.get("text_processing") or {}),
            linking=EntityLinkerConfig.from_dict(data.get("linking") or {}),
            spacy_model=data.get("spacy_model"),
            language=data.get("language", "en"),
        )
