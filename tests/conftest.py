"""Pytest fixtures for documenter-index tests."""
import json
from pathlib import Path
from typing import Dict, List

import pytest


DATA_DIR = Path(__file__).parent / "data"

SAMPLE_RECORDS = [
    {
        "location": "api/#API-reference",
        "page": "API reference",
        "title": "API reference",
        "text": "",
        "category": "section",
    },
    {
        "location": "api/",
        "page": "API reference",
        "title": "API reference",
        "text": "Modules = [ImplicitDifferentiation]",
        "category": "page",
    },
    {
        "location": "api/#ImplicitDifferentiation.ImplicitFunction",
        "page": "API reference",
        "title": "ImplicitDifferentiation.ImplicitFunction",
        "text": "ImplicitFunction{F,C,L}\n\nDifferentiable wrapper for an implicit function x -> ŷ(x).",
        "category": "type",
    },
    {
        "location": "api/#ChainRulesCore.rrule-Tuple{ChainRulesCore.RuleConfig, ImplicitFunction, AbstractVector}",
        "page": "API reference",
        "title": "ChainRulesCore.rrule",
        "text": "rrule(rc, implicit, x)\n\nCustom reverse rule for ImplicitFunction{F,C,L}.",
        "category": "method",
    },
    {
        "location": "examples/4_struct/",
        "page": "Custom structs",
        "title": "Custom structs",
        "text": "In this example, we demonstrate implicit differentiation through functions that manipulate NamedTuples.",
        "category": "page",
    },
    {
        "location": "examples/4_struct/#Implicit-function-wrapper",
        "page": "Custom structs",
        "title": "Implicit function wrapper",
        "text": "",
        "category": "section",
    },
    {
        "location": "examples/4_struct/",
        "page": "Custom structs",
        "title": "Custom structs",
        "text": "This page was generated using Literate.jl.",
        "category": "page",
    },
]


def render_index(records: List[Dict], variable: str = "documenterSearchIndex") -> str:
    """Render records the way the documentation generator writes them."""
    body = ",".join(json.dumps(r, ensure_ascii=False, separators=(",", ":")) for r in records)
    return f'var {variable} = {{"docs":\n[{body}]\n}}'


@pytest.fixture
def sample_records() -> List[Dict]:
    return [dict(record) for record in SAMPLE_RECORDS]


@pytest.fixture
def index_file(tmp_path: Path) -> Path:
    """Write a search_index.js with the sample records into a build directory."""
    build_dir = tmp_path / "site" / "v0.1.0"
    build_dir.mkdir(parents=True)
    path = build_dir / "search_index.js"
    path.write_text(render_index(SAMPLE_RECORDS), encoding="utf-8")
    return path


@pytest.fixture
def generator_index_file() -> Path:
    """Excerpt of a search_index.js exactly as the documentation generator wrote it."""
    return DATA_DIR / "search_index_v0.1.0.js"


@pytest.fixture
def site_fixture(tmp_path: Path) -> Dict[str, any]:
    """Create a versioned documentation site with several builds.

    Returns dict with:
        - path: site root
        - builds: {build_id: index file path}
    """
    site_root = tmp_path / "site"
    builds = {
        "v0.1.0": SAMPLE_RECORDS,
        "previews/PR40": SAMPLE_RECORDS[:3],
        "dev": [],
    }

    paths = {}
    for build_id, records in builds.items():
        build_dir = site_root / build_id
        build_dir.mkdir(parents=True)
        (build_dir / "index.html").write_text("<html></html>")
        path = build_dir / "search_index.js"
        path.write_text(render_index(records), encoding="utf-8")
        paths[build_id] = path

    # Vendored copies must not be picked up as builds
    vendored = site_root / "node_modules" / "pkg"
    vendored.mkdir(parents=True)
    (vendored / "search_index.js").write_text(render_index([]))

    return {
        "path": site_root,
        "builds": paths,
    }
