"""Match strategies, one per pattern match type."""

from deepscan.scanner.strategies.ast_ import AstStrategy
from deepscan.scanner.strategies.base import MatchStrategy, resolve_severity
from deepscan.scanner.strategies.hybrid import HybridStrategy
from deepscan.scanner.strategies.regex import RegexStrategy
from deepscan.scanner.strategies.semantic import SemanticStrategy

__all__ = [
    "AstStrategy",
    "HybridStrategy",
    "MatchStrategy",
    "RegexStrategy",
    "SemanticStrategy",
    "resolve_severity",
]
