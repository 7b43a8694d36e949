"""DocFragment, DocPageIndex and IndexManifest schemas with validation."""
import hashlib
import json
import sqlite3
from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from documenter_index.core.errors import ConfigError

# Categories the generator is known to emit. The set is open: anything else
# is still a valid category.
KNOWN_CATEGORIES = ("page", "section", "type", "method")

# Wire order of record keys
FRAGMENT_FIELDS = ("location", "page", "title", "text", "category")


class DocFragment(BaseModel):
    """One addressable unit of a documentation site.

    A fragment is a page, a heading inside a page, or an API entry. Several
    fragments may share a location when a page has multiple indexed
    paragraphs or sub-sections.
    """

    model_config = ConfigDict(
        frozen=True,
        strict=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "location": "api/#ImplicitDifferentiation.ImplicitFunction",
                "page": "API reference",
                "title": "ImplicitDifferentiation.ImplicitFunction",
                "text": "Differentiable wrapper for an implicit function.",
                "category": "type",
            }
        },
    )

    location: str = Field(..., description="URL fragment of the page or section")
    page: str = Field(..., description="Human-readable page name")
    title: str = Field(..., description="Heading or symbol name")
    text: str = Field(default="", description="Plain-text body, may be empty")
    category: str = Field(..., description="page, section, type, method, ...")

    @field_validator("category")
    @classmethod
    def validate_category_nonempty(cls, v: str) -> str:
        """Ensure category is a non-empty identifier."""
        if not v:
            raise ValueError("category must not be empty")
        return v

    @property
    def path(self) -> str:
        """Location without its anchor, e.g. ``api/``."""
        return self.location.partition("#")[0]

    @property
    def anchor(self) -> Optional[str]:
        """Anchor part of the location, or None for whole-page fragments."""
        _, sep, anchor = self.location.partition("#")
        return anchor if sep else None

    @classmethod
    def compute_fragment_id(cls, position: int, location: str, title: str) -> str:
        """Compute a deterministic fragment ID.

        Locations repeat, so the traversal position is part of the key.
        """
        key = f"{position}:{location}:{title}"
        return hashlib.sha256(key.encode()).hexdigest()[:12]

    def to_record(self) -> Dict[str, str]:
        """Return the wire record with keys in generator order."""
        return {name: getattr(self, name) for name in FRAGMENT_FIELDS}

    def to_jsonl_line(self) -> str:
        """Serialize fragment to JSONL line (JSON + newline)."""
        return json.dumps(self.to_record(), ensure_ascii=False) + "\n"


class DocPageIndex:
    """Ordered, read-only collection of all fragments of one documentation build.

    Behaves like a tuple of DocFragment: iteration is restartable and always
    yields the same fragments in document traversal order.
    """

    __slots__ = ("_fragments",)

    def __init__(self, fragments: Iterable[DocFragment] = ()):
        self._fragments: Tuple[DocFragment, ...] = tuple(fragments)

    def iterate(self) -> Iterator[DocFragment]:
        """Return a fresh iterator over the fragments."""
        return iter(self._fragments)

    def __iter__(self) -> Iterator[DocFragment]:
        return self.iterate()

    def __len__(self) -> int:
        return len(self._fragments)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return DocPageIndex(self._fragments[item])
        return self._fragments[item]

    def __eq__(self, other) -> bool:
        if not isinstance(other, DocPageIndex):
            return NotImplemented
        return self._fragments == other._fragments

    def __hash__(self) -> int:
        return hash(self._fragments)

    def __repr__(self) -> str:
        return f"DocPageIndex({len(self._fragments)} fragments)"

    @property
    def fragments(self) -> Tuple[DocFragment, ...]:
        return self._fragments

    def pages(self) -> Dict[str, Tuple[DocFragment, ...]]:
        """Group fragments by page name, pages in first-appearance order."""
        grouped: Dict[str, List[DocFragment]] = {}
        for fragment in self._fragments:
            grouped.setdefault(fragment.page, []).append(fragment)
        return {page: tuple(items) for page, items in grouped.items()}

    def categories(self) -> Counter:
        """Count fragments per category."""
        return Counter(fragment.category for fragment in self._fragments)

    def by_category(self, category: str) -> Tuple[DocFragment, ...]:
        return tuple(f for f in self._fragments if f.category == category)

    def locations(self) -> List[str]:
        """Distinct locations in first-appearance order."""
        return list(dict.fromkeys(f.location for f in self._fragments))

    def filter_categories(self, categories: Iterable[str]) -> "DocPageIndex":
        """Return a new index keeping only the given categories."""
        wanted = set(categories)
        return DocPageIndex(f for f in self._fragments if f.category in wanted)


class IndexConfig(BaseModel):
    """Options for the ``index`` command, read from a JSON config file."""

    model_config = ConfigDict(extra="forbid")

    categories: Optional[List[str]] = Field(
        default=None, description="Restrict export to these categories"
    )
    tokenize: str = Field(default="unicode61", description="FTS5 tokenizer definition")

    @field_validator("tokenize")
    @classmethod
    def validate_tokenize_usable(cls, v: str) -> str:
        """Ensure SQLite FTS5 accepts the tokenizer definition."""
        conn = sqlite3.connect(":memory:")
        try:
            tokenize_sql = v.replace("'", "''")
            conn.execute(f"CREATE VIRTUAL TABLE tokenizer_check USING fts5(content, tokenize='{tokenize_sql}')")
        except sqlite3.OperationalError as e:
            # Missing FTS5 itself is reported separately by check_fts5_available
            if "no such module" not in str(e):
                raise ValueError(f"unusable FTS5 tokenizer {v!r}: {e}") from e
        finally:
            conn.close()
        return v

    @classmethod
    def load(cls, path: Path) -> "IndexConfig":
        """Load config from JSON file.

        Raises:
            ConfigError: If the file is missing, unreadable or invalid.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            return cls.model_validate_json(path.read_text(encoding="utf-8"))
        except (ValidationError, OSError) as e:
            raise ConfigError(f"Invalid config file {path}: {e}") from e


class IndexManifest(BaseModel):
    """Provenance of an exported FTS5 index.

    Records which search_index.js was exported, its checksum and counts, so an
    export can be checked against the build it came from.
    """

    # === Index identification ===
    index_id: str = Field(..., description="Unique index identifier (build_id + timestamp)")
    build_id: str = Field(..., description="Documentation build identifier, e.g. v0.1.0")

    # === Source ===
    source_path: str = Field(..., description="Path to the exported search_index.js")
    source_sha256: str = Field(..., description="SHA256 of the source file bytes")

    # === Artifact paths ===
    fragments_path: str = Field(..., description="Path to fragments.jsonl file")
    fts_db_path: str = Field(..., description="Path to FTS5 SQLite database")

    # === Statistics ===
    fragment_count: int = Field(..., ge=0, description="Total fragments in index")
    page_count: int = Field(..., ge=0, description="Distinct pages in index")
    categories: Dict[str, int] = Field(default_factory=dict, description="Fragments per category")

    # === Versions and metadata ===
    schema_version: str = Field(default="1.0.0", description="Index manifest schema version")
    created_at: str = Field(..., description="Index creation timestamp (ISO8601)")
    tool_version: str = Field(default="0.1.0", description="documenter-index tool version")

    @staticmethod
    def compute_index_id(build_id: str, created_at: str) -> str:
        """Compute unique index ID from build and timestamp.

        Format: {build_id with / replaced by __}__<timestamp_compact>
        Example: previews__PR40__20261019T101500Z
        """
        slug = build_id.strip("/").replace("/", "__") or "root"
        timestamp_compact = created_at.replace("-", "").replace(":", "").replace(".", "")
        return f"{slug}__{timestamp_compact}"

    def save(self, path: Path) -> None:
        """Write manifest to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2))

    @classmethod
    def load(cls, path: Path) -> "IndexManifest":
        """Load manifest from JSON file."""
        path = Path(path)
        return cls.model_validate_json(path.read_text())

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "index_id": "v0.1.0__20261019T101500Z",
                "build_id": "v0.1.0",
                "source_path": "site/v0.1.0/search_index.js",
                "source_sha256": "9f2c...",
                "fragments_path": "data/indexes/v0.1.0__20261019T101500Z/fragments.jsonl",
                "fts_db_path": "data/indexes/v0.1.0__20261019T101500Z/fts.sqlite",
                "fragment_count": 183,
                "page_count": 7,
                "categories": {"page": 136, "section": 34, "method": 9, "type": 4},
                "schema_version": "1.0.0",
                "created_at": "2026-10-19T10:15:00Z",
                "tool_version": "0.1.0",
            }
        }
    )
