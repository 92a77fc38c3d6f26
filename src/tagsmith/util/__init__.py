"""
Shared utility helpers.
"""

from .filesystem import copy_file, file_lock, is_relative_to, read_text_file, safe_unlink, write_text_file

__all__ = [
    "copy_file",
    "file_lock",
    "is_relative_to",
    "read_text_file",
    "safe_unlink",
    "write_text_file",
]
