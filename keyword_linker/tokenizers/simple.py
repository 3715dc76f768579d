import re
from typing import List, Optional

from keyword_linker.registry import tokenizers


@tokenizers.register("simple")
class SimpleLabelTokenizer:
    """Whitespace/punctuation tokenizer used when no language specific one is available."""

    pattern = re.compile(r"\w+(?:['’-]\w+)*")

    def tokenize(self, label: str, language: Optional[str] = None) -> List[str]:
        return self.pattern.findall(label)
