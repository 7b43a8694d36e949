"""Index module: fragment schemas and FTS5 export."""
from documenter_index.index.builder import build_full_index
from documenter_index.index.fts import check_fts5_available
from documenter_index.index.schemas import DocFragment, DocPageIndex, IndexConfig, IndexManifest

__all__ = [
    "DocFragment",
    "DocPageIndex",
    "IndexConfig",
    "IndexManifest",
    "build_full_index",
    "check_fts5_available",
]
