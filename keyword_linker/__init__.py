"""
Keyword linking engine.

Selects mentions from linguistically annotated text, looks them up in an
entity searcher and ranks the candidate entities per distinct surface text.
"""

__all__ = [
    "AnnotatedText",
    "EntityLinker",
    "EntityLinkerConfig",
    "LinkingPipeline",
    "PipelineConfig",
    "RedirectMode",
    "TextProcessingConfig",
    "link",
]

__version__ = "0.1.0"

from .annotated_text import AnnotatedText  # noqa: E402
from .config import (  # noqa: E402
    EntityLinkerConfig,
    PipelineConfig,
    RedirectMode,
    TextProcessingConfig,
)
from .linker import EntityLinker, link  # noqa: E402
from .pipeline import LinkingPipeline  # noqa: E402
