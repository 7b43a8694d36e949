"""Search index discovery in a built documentation site."""
import logging
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

INDEX_FILENAME = "search_index.js"

# Directories to skip while walking a site tree
EXCLUDED_DIRS = {
    ".git",
    ".github",
    "node_modules",
    ".pytest_cache",
    "__pycache__",
    ".venv",
    "venv",
}


def discover_index_files(site_root: Path) -> List[Path]:
    """Discover search_index.js files of every build under a site root.

    Args:
        site_root: Root directory of the published documentation

    Returns:
        Sorted list of absolute index file paths

    A versioned site holds one build per directory (``v0.1.0/``, ``dev/``,
    ``previews/PR40/``), each with its own index.
    """
    site_root = Path(site_root)

    if not site_root.is_dir():
        raise ValueError(f"site_root must be a directory: {site_root}")

    files = []

    for path in site_root.rglob(INDEX_FILENAME):
        relative_parts = path.relative_to(site_root).parts
        if any(part in EXCLUDED_DIRS for part in relative_parts):
            continue
        if path.is_file():
            files.append(path)

    files.sort()

    logger.info(f"Discovered {len(files)} search index files in {site_root}")

    return files


def build_id_for(index_file: Path, site_root: Path) -> str:
    """Return the build identifier of an index file.

    Examples:
        site/v0.1.0/search_index.js -> v0.1.0
        site/previews/PR40/search_index.js -> previews/PR40
        site/search_index.js -> root
    """
    relative_dir = Path(index_file).parent.relative_to(Path(site_root))
    build_id = relative_dir.as_posix()
    return "root" if build_id == "." else build_id
