"""documenter-index CLI - inspect, convert and export documentation search indexes."""
import logging
import sys
from pathlib import Path

import click

from documenter_index.core.errors import ConfigError, FormatError
from documenter_index.index import IndexConfig, build_full_index, check_fts5_available
from documenter_index.index.schemas import KNOWN_CATEGORIES
from documenter_index.parser import build_id_for, discover_index_files, dump, load, to_jsonl

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(name)s: %(message)s",
)
logger = logging.getLogger("documenter_index")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """documenter-index - Documentation search index tooling."""
    if verbose:
        logging.getLogger("documenter_index").setLevel(logging.DEBUG)


@main.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
def inspect(path: Path):
    """Load a search_index.js file and summarise its contents.

    Examples:
        documenter-index inspect site/v0.1.0/search_index.js

    Exit codes:
        0: Success
        1: Generic runtime failure
        4: Malformed search index
    """
    try:
        index = load(path)
    except FormatError as e:
        logger.error(f"Invalid search index {path}: {e}")
        sys.exit(4)
    except OSError as e:
        logger.error(f"Cannot read {path}: {e}")
        sys.exit(1)

    pages = index.pages()
    click.echo(f"[OK] {path}")
    click.echo(f"  Fragments: {len(index)}")
    click.echo(f"  Pages: {len(pages)}")
    click.echo(f"  Locations: {len(index.locations())}")
    for category, count in sorted(index.categories().items()):
        marker = "" if category in KNOWN_CATEGORIES else " (unrecognised)"
        click.echo(f"  {category}: {count}{marker}")
    sys.exit(0)


@main.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="File to write",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["js", "jsonl"]),
    default="js",
    help="js: search_index.js wire format, jsonl: one record per line",
)
@click.option(
    "--variable",
    default="documenterSearchIndex",
    help="Variable name assigned in js output",
)
def export(path: Path, output: Path, output_format: str, variable: str):
    """Re-serialize a search index in normalised form.

    Examples:
        documenter-index export site/v0.1.0/search_index.js -o out/search_index.js
        documenter-index export site/v0.1.0/search_index.js -o out/fragments.jsonl --format jsonl

    Exit codes:
        0: Success
        1: Generic runtime failure
        4: Malformed search index
    """
    try:
        index = load(path)
        if output_format == "jsonl":
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(to_jsonl(index), encoding="utf-8")
        else:
            dump(index, output, variable=variable)
    except FormatError as e:
        logger.error(f"Invalid search index {path}: {e}")
        sys.exit(4)
    except OSError as e:
        logger.error(f"Export failed: {e}")
        sys.exit(1)

    click.echo(f"[OK] Exported {len(index)} fragments to {output}")
    sys.exit(0)


@main.command()
@click.argument("site_root", type=click.Path(file_okay=False, path_type=Path))
def discover(site_root: Path):
    """List every documentation build under a site root.

    Examples:
        documenter-index discover site/

    Exit codes:
        0: Success (all indexes valid)
        1: Generic runtime failure
        4: At least one malformed search index
    """
    try:
        index_files = discover_index_files(site_root)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    malformed = 0
    for index_file in index_files:
        build_id = build_id_for(index_file, site_root)
        try:
            index = load(index_file)
        except FormatError as e:
            logger.error(f"Invalid search index for build {build_id}: {e}")
            malformed += 1
            continue
        click.echo(f"{build_id}\t{len(index)} fragments\t{len(index.pages())} pages")

    if malformed:
        click.echo(f"[FAIL] {malformed} of {len(index_files)} builds malformed")
        sys.exit(4)

    click.echo(f"[OK] {len(index_files)} builds found")
    sys.exit(0)


@main.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("data/indexes"),
    help="Output directory for indexes",
)
@click.option(
    "--site-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Site root PATH belongs to; the default build ID is then the same one discover reports",
)
@click.option(
    "--build-id",
    default=None,
    help="Build identifier (default: PATH relative to --site-root, else the name of the directory holding PATH)",
)
@click.option(
    "--config",
    type=click.Path(exists=False),
    default=None,
    help="JSON configuration file (categories, tokenize)",
)
def index(path: Path, output_dir: Path, site_root: Path, build_id: str, config: str):
    """Export a search index to an SQLite FTS5 database.

    Writes fragments.jsonl, fts.sqlite and index_manifest.json under
    OUTPUT_DIR/<index_id>/.

    Examples:
        documenter-index index site/v0.1.0/search_index.js
        documenter-index index site/dev/search_index.js --config index.json
        documenter-index index site/previews/PR40/search_index.js --site-root site

    Exit codes:
        0: Success
        1: Generic runtime failure
        2: Invalid CLI arguments
        4: Malformed search index
        7: Configuration file error
        8: FTS5 not available on this system
    """
    index_config = IndexConfig()
    if config:
        try:
            index_config = IndexConfig.load(Path(config))
        except ConfigError as e:
            logger.error(str(e))
            sys.exit(7)

    if not check_fts5_available():
        logger.error("FTS5 is not available on this system")
        sys.exit(8)

    if build_id is None:
        if site_root is not None:
            try:
                build_id = build_id_for(path.resolve(), site_root.resolve())
            except ValueError:
                logger.error(f"{path} is not inside site root {site_root}")
                sys.exit(2)
        else:
            build_id = path.resolve().parent.name or "root"

    try:
        result = build_full_index(
            index_file=path,
            output_dir=output_dir,
            build_id=build_id,
            config=index_config,
        )
    except FormatError as e:
        logger.error(f"Invalid search index {path}: {e}")
        sys.exit(4)
    except OSError as e:
        logger.error(f"Index build failed: {e}")
        sys.exit(1)

    if result.get("status") != "success":
        error = result.get("error", "unknown")
        logger.error(f"Index build failed: {error}")
        sys.exit(8 if error == "fts5_unavailable" else 1)

    click.echo(f"[OK] Index created: {result['index_id']}")
    click.echo(f"  Build ID: {result['build_id']}")
    click.echo(f"  Fragments: {result['fragment_count']}")
    click.echo(f"  Pages: {result['page_count']}")
    click.echo(f"  Categories: {', '.join(sorted(result['categories']))}")
    click.echo(f"  Fragments file: {result['fragments_path']}")
    click.echo(f"  FTS DB: {result['fts_db_path']}")
    click.echo(f"  Manifest: {result['index_manifest_path']}")
    sys.exit(0)


if __name__ == "__main__":
    main()
