"""Utility functions."""
from melodee.utils.normalize import normalize_name, normalize_sort_name, fold_ascii
from melodee.utils.paths import (
    album_directory,
    clean_directory_name,
    format_filename,
    safe_move_file,
    unique_path,
)

__all__ = [
    "normalize_name",
    "normalize_sort_name",
    "fold_ascii",
    "album_directory",
    "clean_directory_name",
    "format_filename",
    "safe_move_file",
    "unique_path",
]
