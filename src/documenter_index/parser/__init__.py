"""Parser module: search index loading and build discovery."""
from documenter_index.parser.files import build_id_for, discover_index_files
from documenter_index.parser.loader import dump, dumps, load, loads, to_jsonl

__all__ = [
    "build_id_for",
    "discover_index_files",
    "dump",
    "dumps",
    "load",
    "loads",
    "to_jsonl",
]
