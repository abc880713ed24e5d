"""Prompt Builder Module

Builds the two prompts of the scoring pipeline:
- Triage: rate a document's relevance to the user's topics, bare float reply
- Summary: three-sentence summary (problem, approach, results)
"""

from typing import List
import structlog

logger = structlog.get_logger()


TRIAGE_TEMPLATE = """You are screening new research papers for a researcher.

USER INTERESTS: {topics}

SCORING CRITERIA:
- 0.9-1.0: Directly addresses one of the interests with a novel contribution
- 0.7-0.9: Clearly relevant technique or result the researcher would act on
- 0.5-0.7: Indirectly applicable (methods transferable to the interests)
- 0.3-0.5: Tangentially related (mentions the area but not its focus)
- 0.0-0.3: Irrelevant

Paper Title: {title}

Abstract: {abstract}

Return ONLY a number between 0.0 and 1.0. No explanation."""


SUMMARY_TEMPLATE = """Summarize this research paper in exactly 3 sentences. Focus on:
1. The problem being addressed
2. The approach or method used
3. The key results or findings

Paper Title: {title}

Abstract: {abstract}

Provide ONLY the 3-sentence summary, nothing else."""


class PromptBuilder:
    """Builds triage and summary prompts from document metadata."""

    def build_triage_prompt(
        self,
        title: str,
        abstract: str,
        topic_names: List[str],
    ) -> str:
        """Build the relevance triage prompt.

        Args:
            title: Document title
            abstract: Document abstract
            topic_names: Names of the user's enabled topics

        Returns:
            Prompt asking for a single float in [0, 1]
        """
        topics = ", ".join(topic_names) if topic_names else "general research"
        prompt = TRIAGE_TEMPLATE.format(topics=topics, title=title, abstract=abstract)

        logger.debug(
            "triage_prompt_built",
            topics_count=len(topic_names),
            prompt_length=len(prompt),
        )
        return prompt

    def build_summary_prompt(self, title: str, abstract: str) -> str:
        """Build the three-sentence summary prompt."""
        return SUMMARY_TEMPLATE.format(title=title, abstract=abstract)
