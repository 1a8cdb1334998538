"""
Profile document model: partial updates and completion scoring for ``profile_json``.

A document is a plain dict holding the eleven sections below, each a dict of
optional fields. Every operation returns a new document and leaves its input
untouched, so callers can always store the whole result.
"""
import copy
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from .exceptions import InvalidPayload, InvalidSection
from ..schemas.profile import ProfileDocument

SECTIONS = (
    "identity",
    "audience",
    "offer",
    "positioning",
    "voice",
    "content_strategy",
    "assets",
    "constraints",
    "signals",
    "examples",
    "calendar",
)

ProfileJson = Dict[str, Dict[str, Any]]


def default_profile_json() -> ProfileJson:
    """Empty document: every section present as {}."""
    return {section: {} for section in SECTIONS}


def _check_section(section: str) -> None:
    if section not in SECTIONS:
        raise InvalidSection(section)


def normalize_document(document: Optional[Mapping[str, Any]]) -> ProfileJson:
    """Copy of ``document`` with every missing or null section set to {}."""
    normalized = copy.deepcopy(dict(document or {}))
    for section in SECTIONS:
        if not isinstance(normalized.get(section), dict):
            normalized[section] = {}
    return normalized


def merge_section(
    document: Optional[Mapping[str, Any]],
    section: str,
    field_updates: Mapping[str, Any],
) -> ProfileJson:
    """
    Shallow-merge ``field_updates`` into one section.

    Fields named in ``field_updates`` override the stored ones; all other
    fields of the section, and all other sections, are kept as they are.

    Raises:
        InvalidSection: if ``section`` is not one of SECTIONS
    """
    _check_section(section)
    merged = normalize_document(document)
    merged[section] = {**merged[section], **copy.deepcopy(dict(field_updates))}
    return merged


def append_array_field(
    document: Optional[Mapping[str, Any]],
    section: str,
    field: str,
    value: str,
) -> ProfileJson:
    """Append ``value`` stripped of surrounding whitespace; blank values are ignored."""
    _check_section(section)
    updated = normalize_document(document)
    item = (value or "").strip()
    if not item:
        return updated
    current = updated[section].get(field)
    items = list(current) if isinstance(current, list) else []
    items.append(item)
    updated[section][field] = items
    return updated


def remove_array_field(
    document: Optional[Mapping[str, Any]],
    section: str,
    field: str,
    index: int,
) -> ProfileJson:
    """Remove the element at ``index``. An out-of-range index changes nothing."""
    _check_section(section)
    updated = normalize_document(document)
    current = updated[section].get(field)
    if not isinstance(current, list) or index < 0 or index >= len(current):
        return updated
    updated[section][field] = current[:index] + current[index + 1:]
    return updated


def _is_filled(value: Any) -> bool:
    if value is None or value == "":
        return False
    if isinstance(value, list):
        return len(value) > 0
    return True


def completion_percentage(document: Optional[Mapping[str, Any]]) -> int:
    """
    Share of filled fields, as an integer percentage.

    Counts every field key present in every section. Progress indicator
    only; nothing gates on it.
    """
    total = 0
    filled = 0
    for section in (document or {}).values():
        if not isinstance(section, dict):
            continue
        for value in section.values():
            total += 1
            if _is_filled(value):
                filled += 1
    if total == 0:
        return 0
    return round(100 * filled / total)


def validate_document(document: Any) -> ProfileJson:
    """
    Validate a whole document against the section schemas.

    Returns the normalized document with unset fields dropped.

    Raises:
        InvalidPayload: with pydantic's field-level errors as details
    """
    try:
        parsed = ProfileDocument.model_validate(document)
    except ValidationError as e:
        raise InvalidPayload(
            "Invalid profile_json",
            details=e.errors(include_url=False, include_context=False),
        ) from e
    return normalize_document(parsed.model_dump(exclude_none=True))


def validate_section(document: Mapping[str, Any], section: str) -> ProfileJson:
    """
    Validate one section of a document against its schema.

    The other sections are returned exactly as given, so keys outside the
    current schema in untouched sections survive an edit.

    Raises:
        InvalidSection: if ``section`` is not one of SECTIONS
        InvalidPayload: with pydantic's field-level errors as details
    """
    _check_section(section)
    checked = normalize_document(document)
    section_model = ProfileDocument.model_fields[section].annotation
    try:
        parsed = section_model.model_validate(checked[section])
    except ValidationError as e:
        errors = e.errors(include_url=False, include_context=False)
        raise InvalidPayload(
            "Invalid profile_json",
            details=[{**error, "loc": (section, *error["loc"])} for error in errors],
        ) from e
    checked[section] = parsed.model_dump(exclude_none=True)
    return checked
