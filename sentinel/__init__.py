"""arxiv-sentinel: checkpointed daily arXiv discovery with two-stage AI triage."""

__version__ = "0.1.0"
