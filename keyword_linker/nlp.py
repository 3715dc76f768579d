"""
Part-of-speech and phrase tag model.

Lexical categories are coarse word classes (noun, verb, ...). ``Pos`` values
are finer grained tags, each belonging to exactly one lexical category. A
``PosTag`` as produced by a tagger carries the raw tag string plus the
categories and POS values it was mapped to; a tag may carry a category
without any finer ``Pos`` (e.g. a determiner-like "of").
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Union


def _normalize_name(name: str) -> str:
    return name.replace("_", "").replace("-", "").replace(" ", "").lower()


class _ParsableEnum(Enum):
    @classmethod
    def parse(cls, name: Union[str, "_ParsableEnum"]):
        """Parse ``ProperNoun``, ``PROPER_NOUN`` or ``proper-noun`` style names."""
        if isinstance(name, cls):
            return name
        wanted = _normalize_name(str(name))
        for member in cls:
            if _normalize_name(member.name) == wanted:
                return member
        raise ValueError(f"Unknown {cls.__name__}: '{name}'")


class LexicalCategory(_ParsableEnum):
    NOUN = "Noun"
    VERB = "Verb"
    ADJECTIVE = "Adjective"
    ADPOSITION = "Adposition"
    ADVERB = "Adverb"
    CONJUNCTION = "Conjunction"
    INTERJECTION = "Interjection"
    PRONOUN_OR_DETERMINER = "PronounOrDeterminer"
    PUNCTUATION = "Punctuation"
    QUANTIFIER = "Quantifier"
    RESIDUAL = "Residual"
    UNIQUE = "Unique"


class Pos(_ParsableEnum):
    PROPER_NOUN = "ProperNoun"
    COMMON_NOUN = "CommonNoun"
    ABBREVIATION = "Abbreviation"
    ADJECTIVE = "Adjective"
    MAIN_VERB = "MainVerb"
    AUXILIARY_VERB = "AuxiliaryVerb"
    ADVERB = "Adverb"
    PREPOSITION = "Preposition"
    ARTICLE = "Article"
    DETERMINER = "Determiner"
    PRONOUN = "Pronoun"
    NUMERAL = "Numeral"
    COORDINATING_CONJUNCTION = "CoordinatingConjunction"
    SUBORDINATING_CONJUNCTION = "SubordinatingConjunction"
    INTERJECTION = "Interjection"
    PARTICLE = "Particle"
    POINT = "Point"
    COMMA = "Comma"
    HYPHEN = "Hyphen"
    OPEN_BRACKET = "OpenBracket"
    CLOSE_BRACKET = "CloseBracket"
    PUNCTUATION_MARK = "PunctuationMark"
    SYMBOL = "Symbol"
    FOREIGN = "Foreign"

    @property
    def category(self) -> LexicalCategory:
        return _POS_CATEGORIES[self]


_POS_CATEGORIES: Dict[Pos, LexicalCategory] = {
    Pos.PROPER_NOUN: LexicalCategory.NOUN,
    Pos.COMMON_NOUN: LexicalCategory.NOUN,
    Pos.ABBREVIATION: LexicalCategory.RESIDUAL,
    Pos.ADJECTIVE: LexicalCategory.ADJECTIVE,
    Pos.MAIN_VERB: LexicalCategory.VERB,
    Pos.AUXILIARY_VERB: LexicalCategory.VERB,
    Pos.ADVERB: LexicalCategory.ADVERB,
    Pos.PREPOSITION: LexicalCategory.ADPOSITION,
    Pos.ARTICLE: LexicalCategory.PRONOUN_OR_DETERMINER,
    Pos.DETERMINER: LexicalCategory.PRONOUN_OR_DETERMINER,
    Pos.PRONOUN: LexicalCategory.PRONOUN_OR_DETERMINER,
    Pos.NUMERAL: LexicalCategory.QUANTIFIER,
    Pos.COORDINATING_CONJUNCTION: LexicalCategory.CONJUNCTION,
    Pos.SUBORDINATING_CONJUNCTION: LexicalCategory.CONJUNCTION,
    Pos.INTERJECTION: LexicalCategory.INTERJECTION,
    Pos.PARTICLE: LexicalCategory.UNIQUE,
    Pos.POINT: LexicalCategory.PUNCTUATION,
    Pos.COMMA: LexicalCategory.PUNCTUATION,
    Pos.HYPHEN: LexicalCategory.PUNCTUATION,
    Pos.OPEN_BRACKET: LexicalCategory.PUNCTUATION,
    Pos.CLOSE_BRACKET: LexicalCategory.PUNCTUATION,
    Pos.PUNCTUATION_MARK: LexicalCategory.PUNCTUATION,
    Pos.SYMBOL: LexicalCategory.RESIDUAL,
    Pos.FOREIGN: LexicalCategory.RESIDUAL,
}

# Universal Dependencies coarse tags (spaCy's ``token.pos_``)
UD_POS: Dict[str, Pos] = {
    "PROPN": Pos.PROPER_NOUN,
    "NOUN": Pos.COMMON_NOUN,
    "ADJ": Pos.ADJECTIVE,
    "VERB": Pos.MAIN_VERB,
    "AUX": Pos.AUXILIARY_VERB,
    "ADV": Pos.ADVERB,
    "ADP": Pos.PREPOSITION,
    "DET": Pos.DETERMINER,
    "PRON": Pos.PRONOUN,
    "NUM": Pos.NUMERAL,
    "CCONJ": Pos.COORDINATING_CONJUNCTION,
    "CONJ": Pos.COORDINATING_CONJUNCTION,
    "SCONJ": Pos.SUBORDINATING_CONJUNCTION,
    "INTJ": Pos.INTERJECTION,
    "PART": Pos.PARTICLE,
    "PUNCT": Pos.PUNCTUATION_MARK,
    "SYM": Pos.SYMBOL,
    "X": Pos.FOREIGN,
}


@dataclass(frozen=True)
class PosTag:
    """A tagger's POS tag mapped to ``Pos`` values and lexical categories."""

    tag: str
    pos: FrozenSet[Pos] = field(default_factory=frozenset)
    categories: FrozenSet[LexicalCategory] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        # the categories of the mapped Pos values are always implied
        implied = frozenset(p.category for p in self.pos)
        object.__setattr__(self, "categories", frozenset(self.categories) | implied)
        object.__setattr__(self, "pos", frozenset(self.pos))

    @classmethod
    def of(cls, tag: str, *mapped: Union[Pos, LexicalCategory]) -> "PosTag":
        """``PosTag.of("NP", Pos.PROPER_NOUN)`` or ``PosTag.of("OF", LexicalCategory.ADPOSITION)``."""
        pos = frozenset(m for m in mapped if isinstance(m, Pos))
        categories = frozenset(m for m in mapped if isinstance(m, LexicalCategory))
        return cls(tag=tag, pos=pos, categories=categories)


@dataclass(frozen=True)
class PhraseTag:
    """Phrase (chunk) tag such as ``NP`` with its lexical category."""

    tag: str
    category: Optional[LexicalCategory] = None
