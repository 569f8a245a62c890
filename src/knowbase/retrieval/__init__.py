"""Search orchestration and question answering."""

from .answer import Answer, ask, build_prompts
from .fill import fill
from .search import ALL_LABELS, parse_limits, search, search_fragments

__all__ = [
    "ALL_LABELS",
    "Answer",
    "ask",
    "build_prompts",
    "fill",
    "parse_limits",
    "search",
    "search_fragments",
]
