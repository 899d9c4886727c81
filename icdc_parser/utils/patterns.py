"""
Named regex patterns with examples, shared by detectors and extractors.
"""

import re
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class PatternSpec:
    """A named regex pattern with example and notes for documentation."""
    name: str
    pattern: str
    example: str
    notes: Optional[str] = None
    flags: int = 0
    compiled: re.Pattern = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'compiled', re.compile(self.pattern, self.flags))

    def match(self, text: str) -> Optional[re.Match]:
        return self.compiled.match(text)

    def search(self, text: str) -> Optional[re.Match]:
        return self.compiled.search(text)

    def finditer(self, text: str):
        return self.compiled.finditer(text)
