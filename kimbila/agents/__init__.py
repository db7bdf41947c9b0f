"""AI Agents package."""

from kimbila.agents.advisor import (
    FALLBACK_ERROR,
    FALLBACK_NO_TIPS,
    BusinessAdvisorAgent,
)

__all__ = [
    "FALLBACK_ERROR",
    "FALLBACK_NO_TIPS",
    "BusinessAdvisorAgent",
]
