"""Index builder: export a search index to JSONL, FTS5 and a manifest."""
import hashlib
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from documenter_index import __version__
from documenter_index.index.fts import build_fts_index, check_fts5_available
from documenter_index.index.schemas import IndexConfig, IndexManifest

logger = logging.getLogger(__name__)


def build_full_index(
    index_file: Path,
    output_dir: Path,
    build_id: str,
    config: Optional[IndexConfig] = None,
) -> Dict[str, Any]:
    """Build full export: search_index.js → JSONL + FTS5 + IndexManifest.

    Pipeline:
    1. Load and validate the search index
    2. Apply the category filter from config, if any
    3. Write fragments to JSONL
    4. Build FTS5 table
    5. Create and persist IndexManifest

    Args:
        index_file: Path to search_index.js
        output_dir: Directory where <index_id>/ will be created
        build_id: Documentation build identifier, e.g. "v0.1.0"
        config: Export options (default IndexConfig())

    Returns:
        Dict with keys:
            - index_id, build_id
            - fragment_count, page_count, categories
            - fragments_path, fts_db_path, index_manifest_path
            - created_at
            - status: "success" | "failed"
            - error: failure code, only when status is "failed"

    Raises:
        FileNotFoundError: If index_file does not exist.
        FormatError: If index_file is malformed.
    """
    from documenter_index.parser.loader import loads

    config = config or IndexConfig()
    index_file = Path(index_file)
    output_dir = Path(output_dir)

    logger.info(f"Building index for build {build_id} from {index_file}")
    source_bytes = index_file.read_bytes()
    index = loads(source_bytes)
    logger.info(f"Loaded {len(index)} fragments from {index_file}")

    if config.categories is not None:
        index = index.filter_categories(config.categories)
        logger.info(f"Category filter {config.categories} kept {len(index)} fragments")

    if not check_fts5_available():
        logger.error("FTS5 not available on this system")
        return {
            "status": "failed",
            "error": "fts5_unavailable",
        }

    # Timestamp-based index_id (unique, sortable)
    created_at = _created_at()
    index_id = IndexManifest.compute_index_id(build_id, created_at)

    index_dir = output_dir / index_id
    output_dir.mkdir(parents=True, exist_ok=True)
    try:
        index_dir.mkdir()
    except FileExistsError:
        logger.error(f"Index directory already exists: {index_dir}")
        return {
            "status": "failed",
            "error": "index_exists",
        }

    fragments_file = index_dir / "fragments.jsonl"
    try:
        with open(fragments_file, "w", encoding="utf-8") as f:
            for fragment in index:
                f.write(fragment.to_jsonl_line())
        logger.info(f"Wrote {len(index)} fragments to {fragments_file}")
    except OSError as e:
        logger.error(f"Failed to write fragments file: {e}")
        shutil.rmtree(index_dir, ignore_errors=True)
        return {
            "status": "failed",
            "error": f"fragments_write_failed:{e}",
        }

    fts_db_path = index_dir / "fts.sqlite"
    fts_stats = build_fts_index(fts_db_path, index, build_id, tokenize=config.tokenize)

    if fts_stats.get("status") != "success":
        logger.error(f"FTS5 index build failed: {fts_stats.get('status')}")
        shutil.rmtree(index_dir, ignore_errors=True)
        return {
            "status": "failed",
            "error": "fts_build_failed",
        }

    categories = dict(index.categories())
    page_count = len(index.pages())

    index_manifest = IndexManifest(
        index_id=index_id,
        build_id=build_id,
        source_path=str(index_file),
        source_sha256=hashlib.sha256(source_bytes).hexdigest(),
        fragments_path=str(fragments_file),
        fts_db_path=str(fts_db_path),
        fragment_count=len(index),
        page_count=page_count,
        categories=categories,
        created_at=created_at,
        tool_version=__version__,
    )

    manifest_file = index_dir / "index_manifest.json"
    try:
        index_manifest.save(manifest_file)
        logger.info(f"Saved index manifest to {manifest_file}")
    except OSError as e:
        logger.error(f"Failed to save index manifest: {e}")
        shutil.rmtree(index_dir, ignore_errors=True)
        return {
            "status": "failed",
            "error": f"manifest_write_failed:{e}",
        }

    logger.info(
        f"Index ready: {index_id}, "
        f"fragments={len(index)}, "
        f"pages={page_count}"
    )

    return {
        "index_id": index_id,
        "build_id": build_id,
        "fragment_count": len(index),
        "page_count": page_count,
        "categories": categories,
        "fragments_path": str(fragments_file),
        "fts_db_path": str(fts_db_path),
        "index_manifest_path": str(manifest_file),
        "created_at": created_at,
        "status": "success",
    }


def _created_at() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
