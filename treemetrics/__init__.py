"""
treemetrics

Cyclomatic complexity issues and copy-paste-detection token streams for
JavaScript and TypeScript syntax trees.
"""

__version__ = "1.0.0"

from treemetrics.analysis.complexity import compute_complexity
from treemetrics.analysis.cpd import CpdToken, extract_cpd_tokens
from treemetrics.core.config import Config
from treemetrics.core.engine import AnalysisEngine

__all__ = [
    "AnalysisEngine",
    "Config",
    "CpdToken",
    "compute_complexity",
    "extract_cpd_tokens",
]
