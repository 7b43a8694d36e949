"""Load and write search_index.js payloads."""
import json
import logging
import re
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from documenter_index.core.errors import FormatError
from documenter_index.index.schemas import DocFragment, DocPageIndex

logger = logging.getLogger(__name__)

DEFAULT_VARIABLE = "documenterSearchIndex"

# `var documenterSearchIndex = ` prefix written by the generator
ASSIGNMENT_PATTERN = re.compile(r"^\s*(?:var|let|const)\s+([A-Za-z_$][\w$]*)\s*=\s*")


def _strip_assignment(text: str) -> str:
    """Return the JSON part of the payload, without the variable assignment."""
    text = text.lstrip("\ufeff")
    match = ASSIGNMENT_PATTERN.match(text)
    if match:
        logger.debug(f"Payload assigns variable {match.group(1)}")
        text = text[match.end():]
    text = text.strip()
    if text.endswith(";"):
        text = text[:-1].rstrip()
    return text


def _describe_validation_error(error: ValidationError) -> str:
    """Summarise a pydantic error as a short message."""
    messages = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "record"
        if item["type"] == "missing":
            messages.append(f"missing required field '{field}'")
        elif item["type"] == "string_type":
            messages.append(f"field '{field}' must be a string")
        else:
            messages.append(f"field '{field}': {item['msg']}")
    return "; ".join(messages)


def _parse_fragment(record: Any, position: int) -> DocFragment:
    if not isinstance(record, dict):
        raise FormatError(
            f"expected an object, got {type(record).__name__}", position=position
        )
    try:
        return DocFragment.model_validate(record)
    except ValidationError as e:
        raise FormatError(_describe_validation_error(e), position=position) from e


def loads(raw: Union[str, bytes]) -> DocPageIndex:
    """Parse a search index payload into a DocPageIndex.

    Accepts the generator's ``var <name> = {"docs": [...]}`` form or a bare
    ``{"docs": [...]}`` object. A missing ``text`` field defaults to "".

    Raises:
        FormatError: If the payload is not an object with a ``docs`` array of
            records carrying string ``location``, ``page``, ``title`` and
            ``category`` fields.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"payload is not valid UTF-8: {e}") from e
    elif not isinstance(raw, str):
        raise FormatError(f"payload must be str or bytes, got {type(raw).__name__}")

    body = _strip_assignment(raw)
    if not body:
        raise FormatError("payload is empty")

    try:
        data = json.loads(body)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, oversized integer literals and over-deep nesting
        raise FormatError(f"payload is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise FormatError(f"top level must be an object, got {type(data).__name__}")
    if "docs" not in data:
        raise FormatError("top-level object has no 'docs' key")
    docs = data["docs"]
    if not isinstance(docs, list):
        raise FormatError(f"'docs' must be an array, got {type(docs).__name__}")

    index = DocPageIndex(_parse_fragment(record, i) for i, record in enumerate(docs))
    logger.debug(f"Loaded {len(index)} fragments")
    return index


def load(path: Path) -> DocPageIndex:
    """Read and parse a search_index.js file.

    Raises:
        FileNotFoundError: If the file does not exist.
        FormatError: If the file content is malformed.
    """
    path = Path(path)
    index = loads(path.read_bytes())
    logger.info(f"Loaded {len(index)} fragments from {path}")
    return index


def dumps(index: DocPageIndex, variable: str = DEFAULT_VARIABLE) -> str:
    """Serialize an index to the generator's wire format."""
    records = ",".join(
        json.dumps(fragment.to_record(), ensure_ascii=False, separators=(",", ":"))
        for fragment in index
    )
    return f'var {variable} = {{"docs":\n[{records}]\n}}'


def dump(index: DocPageIndex, path: Path, variable: str = DEFAULT_VARIABLE) -> None:
    """Write an index to a search_index.js file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(index, variable=variable), encoding="utf-8")
    logger.info(f"Wrote {len(index)} fragments to {path}")


def to_jsonl(index: DocPageIndex) -> str:
    """Serialize an index as JSON Lines, one record per fragment."""
    return "".join(fragment.to_jsonl_line() for fragment in index)
