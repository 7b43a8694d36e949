"""SQLite FTS5 export of documentation fragments."""
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

from documenter_index.core.errors import IndexBuildError
from documenter_index.index.schemas import DocFragment, DocPageIndex

logger = logging.getLogger(__name__)


def check_fts5_available() -> bool:
    """Check if SQLite FTS5 module is available.

    Returns:
        True if FTS5 is available, False otherwise.
    """
    try:
        conn = sqlite3.connect(":memory:")
        conn.execute("CREATE VIRTUAL TABLE test_fts USING fts5(content)")
        conn.close()
        return True
    except (sqlite3.OperationalError, sqlite3.DatabaseError) as e:
        logger.warning(f"FTS5 not available: {e}")
        return False


def create_fts5_db(db_path: Path, tokenize: str = "unicode61") -> None:
    """Create FTS5 SQLite database with fragments virtual table.

    Args:
        db_path: Path where SQLite database will be created.
        tokenize: FTS5 tokenizer definition, e.g. "unicode61" or "porter unicode61".

    Raises:
        IndexBuildError: If the database already exists.
        sqlite3.OperationalError: If FTS5 table creation fails.
    """
    db_path = Path(db_path)
    if db_path.exists():
        raise IndexBuildError(f"FTS database already exists: {db_path}")
    db_path.parent.mkdir(exist_ok=True, parents=True)

    conn = sqlite3.connect(str(db_path))
    try:
        # Indexed columns are matched against; UNINDEXED ones only carry
        # provenance back to the source record.
        tokenize_sql = tokenize.replace("'", "''")
        conn.execute(f"""
            CREATE VIRTUAL TABLE fragments_fts USING fts5(
                title,
                text,
                page,
                location,
                category,
                fragment_id UNINDEXED,
                position UNINDEXED,
                build_id UNINDEXED,
                tokenize='{tokenize_sql}'
            )
        """)
        conn.commit()
    finally:
        conn.close()
    logger.info(f"Created FTS5 database at {db_path}")


def _fragment_row(fragment: DocFragment, position: int, build_id: str) -> tuple:
    return (
        fragment.title,
        fragment.text,
        fragment.page,
        fragment.location,
        fragment.category,
        DocFragment.compute_fragment_id(position, fragment.location, fragment.title),
        position,
        build_id,
    )


def insert_fragments_into_fts(db_path: Path, index: DocPageIndex, build_id: str) -> Dict[str, int]:
    """Insert fragments into FTS5 database in traversal order.

    Args:
        db_path: Path to FTS5 SQLite database.
        index: Loaded DocPageIndex.
        build_id: Documentation build the fragments belong to.

    Returns:
        Dict with keys "inserted" and "errors" (counts).
    """
    db_path = Path(db_path)

    conn = sqlite3.connect(str(db_path))
    cursor = conn.cursor()

    inserted = 0
    errors = 0

    try:
        for position, fragment in enumerate(index):
            try:
                cursor.execute("""
                    INSERT INTO fragments_fts (
                        title,
                        text,
                        page,
                        location,
                        category,
                        fragment_id,
                        position,
                        build_id
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, _fragment_row(fragment, position, build_id))
                inserted += 1
            except sqlite3.Error as e:
                logger.error(f"Failed to insert fragment {position} ({fragment.location}): {e}")
                errors += 1
        conn.commit()
    finally:
        conn.close()
    logger.info(f"Inserted {inserted} fragments into FTS5 (errors: {errors})")

    return {"inserted": inserted, "errors": errors}


def build_fts_index(
    db_path: Path,
    index: DocPageIndex,
    build_id: str,
    tokenize: str = "unicode61",
) -> Dict:
    """Build FTS5 index from a loaded DocPageIndex.

    Orchestrator function that creates DB and inserts fragments.

    Args:
        db_path: Path where FTS5 SQLite database will be created.
        index: Fragments to export.
        build_id: Documentation build identifier stored with every row.
        tokenize: FTS5 tokenizer definition.

    Returns:
        Dict with keys: db_path (str), fragment_count (int), created_at (str), status (str).
    """
    try:
        create_fts5_db(db_path, tokenize=tokenize)
        stats = insert_fragments_into_fts(db_path, index, build_id)
    except (sqlite3.Error, IndexBuildError) as e:
        logger.error(f"Failed to build FTS5 index: {e}")
        return {
            "db_path": str(db_path),
            "fragment_count": 0,
            "created_at": _utc_timestamp(),
            "status": "failed",
            "error": str(e),
        }

    logger.info(f"FTS5 index ready: {db_path} ({stats['inserted']} fragments)")
    return {
        "db_path": str(db_path),
        "fragment_count": stats["inserted"],
        "created_at": _utc_timestamp(),
        "status": "success" if stats["errors"] == 0 else "partial",
    }


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
