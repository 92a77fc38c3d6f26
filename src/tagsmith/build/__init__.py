"""
Build orchestration: traversal, copying and concurrent document expansion.
"""

from .executor import BuildReport, SiteBuilder, partition, process_directory
from .tree import copy_tree, document_depth, is_document, iter_documents

__all__ = [
    "BuildReport",
    "SiteBuilder",
    "copy_tree",
    "document_depth",
    "is_document",
    "iter_documents",
    "partition",
    "process_directory",
]
