"""Label tokenizers."""

from .base import LabelTokenizer, normalize_token  # noqa: F401
from .simple import SimpleLabelTokenizer  # noqa: F401
from .spacy import SpacyLabelTokenizer  # noqa: F401
