"""vibelint: repository code-quality analysis."""

from .engine import Engine
from .models import AnalysisReport, CheckResult, CheckStatus

__all__ = ["AnalysisReport", "CheckResult", "CheckStatus", "Engine"]
__version__ = "0.1.0"
