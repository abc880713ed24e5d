"""Response Parser Module

Turns raw model replies into pipeline values:
- Relevance score from the triage reply
- Trimmed summary text from the summary reply
"""

import re
from typing import Optional
import structlog

logger = structlog.get_logger()

# Score assigned when the triage reply is not a float in [0, 1]
BORDERLINE_SCORE = 0.5

_LEADING_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)")


class ResponseParser:
    """Parses triage and summary replies."""

    def parse_relevance_score(self, content: Optional[str]) -> float:
        """Parse the triage reply into a relevance score.

        The reply is expected to be a bare number. A leading number followed
        by trailing text ("0.8 - relevant") is accepted; anything else, or a
        number outside [0, 1], yields BORDERLINE_SCORE.

        Args:
            content: Raw reply text

        Returns:
            Score in [0, 1]
        """
        text = (content or "").strip()
        match = _LEADING_NUMBER.match(text)

        if match is None:
            logger.warning("invalid_relevance_score", reply=text[:50], default=BORDERLINE_SCORE)
            return BORDERLINE_SCORE

        score = float(match.group(0))
        if score < 0.0 or score > 1.0:
            logger.warning("relevance_score_out_of_range", reply=text[:50], default=BORDERLINE_SCORE)
            return BORDERLINE_SCORE

        return score

    def parse_summary(self, content: Optional[str]) -> str:
        """Strip whitespace from the summary reply."""
        return (content or "").strip()
