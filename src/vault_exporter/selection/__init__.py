"""Tag decomposition and document selection module."""

from .tags import decompose, expand_tags, parse_tag_query
from .selector import DocumentSelector, SelectionCriteria, SelectionResult, select_documents

__all__ = [
    "decompose",
    "expand_tags",
    "parse_tag_query",
    "DocumentSelector",
    "SelectionCriteria",
    "SelectionResult",
    "select_documents"
]
