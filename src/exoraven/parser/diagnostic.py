"""
Diagnostic value objects shared by every analysis pass.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any

from exoraven.parser.source import Range


class Severity(Enum):
    """Diagnostic severity levels."""
    ERROR = "error"         # Structural problems, broken references
    WARNING = "warning"     # Likely a bug, never blocks
    INFO = "info"           # Informational (disabled files)
    HINT = "hint"           # Style suggestions

    @property
    def lsp_level(self) -> int:
        """Numeric level used by editor protocols (1 = Error .. 4 = Hint)."""
        return _LSP_LEVELS[self]


_LSP_LEVELS = {
    Severity.ERROR: 1,
    Severity.WARNING: 2,
    Severity.INFO: 3,
    Severity.HINT: 4,
}


@dataclass(frozen=True)
class Diagnostic:
    """A single problem found in a document."""
    message: str
    range: Range
    severity: Severity
    code: str
    source: str = "exoscript"

    @property
    def line(self) -> int:
        return self.range.start.line

    def __str__(self):
        start = self.range.start
        return f"[{self.severity.value.upper()}] {self.code} {start.line + 1}:{start.character + 1}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "range": self.range.to_dict(),
            "severity": self.severity.lsp_level,
            "message": self.message,
            "code": self.code,
            "source": self.source,
        }


def error(message: str, range: Range, code: str) -> Diagnostic:
    return Diagnostic(message, range, Severity.ERROR, code)


def warning(message: str, range: Range, code: str) -> Diagnostic:
    return Diagnostic(message, range, Severity.WARNING, code)
