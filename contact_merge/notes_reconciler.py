"""
Free-text notes reconciliation.

Contact notes are semi-structured: "Key: value" segments mixed with prose,
separated by semicolons or newlines. This module merges two such notes,
keeping the more detailed value per key and each prose line once, and then
removes segments that only repeat a structured field of the merged contact.

Only byte-identical prose lines collapse. Rewording and capitalization
differences are left for an AI-assisted merge to resolve.

Dependencies:
    - re: Standard library for segment splitting
    - typing: Standard library for type hints
    - logging: Standard library for logging
"""
# pylint: disable=logging-fstring-interpolation

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger("contact_merge")

# Rendered first, in this order
STANDARD_KEYS = ('company', 'title', 'position', 'location', 'email', 'phone')

ROLE_KEYS = ('role', 'position', 'title')
COMPANY_KEYS = ('company', 'employer')
LOCATION_KEYS = ('location',)

CONNECTED_MARKERS = ('connected:', 'connected on')

_SEGMENT_SEPARATOR = re.compile(r'[;\n]')
_LINKEDIN_CONNECTED = re.compile(r'linkedin connected:[^\n\r;]*', re.IGNORECASE)


def _split_key_value(segment: str) -> Optional[Tuple[str, str]]:
    """
    Split a "Key: value" segment on its first colon.

    A colon that opens a URL authority ("https://...") does not make the
    segment key-value.

    :param segment: Stripped note segment
    :return: (lower-cased key, value) or None for free text
    """
    colon_index = segment.find(':')
    if colon_index <= 0:
        return None
    if segment[colon_index + 1:colon_index + 3] == '//':
        return None
    key = segment[:colon_index].strip().lower()
    if not key:
        return None
    return key, segment[colon_index + 1:].strip()


def parse_notes(notes: str) -> Tuple[Dict[str, str], List[str]]:
    """
    Parse notes into key-value pairs and free-text lines.

    :param notes: Notes text
    :return: Tuple of (key -> value, free-text lines in first-seen order)
    """
    key_values: Dict[str, str] = {}
    free_text: Dict[str, None] = {}

    for raw_segment in _SEGMENT_SEPARATOR.split(notes or ''):
        segment = raw_segment.strip()
        if not segment:
            continue

        pair = _split_key_value(segment)
        if pair is None:
            free_text.setdefault(segment, None)
            continue

        key, value = pair
        current = key_values.get(key)
        if current is None or len(value) > len(current):
            key_values[key] = value

    return key_values, list(free_text)


def merge_note_values(
    existing: Mapping[str, str],
    incoming: Mapping[str, str]
) -> Dict[str, str]:
    """
    Merge two key-value maps, keeping the longer value for each key.

    Ties keep the existing value. Existing keys come first, then keys only
    the incoming map has.

    :param existing: Parsed key-values of the existing notes
    :param incoming: Parsed key-values of the incoming notes
    :return: Merged key-value map
    """
    merged = dict(existing)
    for key, value in incoming.items():
        current = merged.get(key)
        if current is None or len(value) > len(current):
            merged[key] = value
    return merged


def _format_key(key: str) -> str:
    return key[:1].upper() + key[1:]


def render_notes(key_values: Mapping[str, str], free_text: List[str]) -> str:
    """
    Assemble notes text: standard keys, other keys, a blank line, prose.

    :param key_values: Key-value pairs (lower-cased keys)
    :param free_text: Free-text lines
    :return: Notes text
    """
    lines = []
    for key in STANDARD_KEYS:
        if key in key_values:
            lines.append(f"{_format_key(key)}: {key_values[key]}")
    for key, value in key_values.items():
        if key not in STANDARD_KEYS:
            lines.append(f"{_format_key(key)}: {value}")

    if free_text:
        if lines:
            lines.append('')
        lines.extend(free_text)

    return '\n'.join(lines)


def reconcile_notes(existing_notes: Any, incoming_notes: Any) -> str:
    """
    Merge the notes of an existing and an incoming contact.

    When one side is blank the other is returned verbatim, and identical
    notes are returned unchanged.

    :param existing_notes: Notes of the existing contact
    :param incoming_notes: Notes of the incoming contact
    :return: Reconciled notes text
    """
    existing_notes = existing_notes if isinstance(existing_notes, str) else ''
    incoming_notes = incoming_notes if isinstance(incoming_notes, str) else ''

    if not existing_notes.strip():
        return incoming_notes
    if not incoming_notes.strip() or incoming_notes == existing_notes:
        return existing_notes

    existing_values, existing_text = parse_notes(existing_notes)
    incoming_values, incoming_text = parse_notes(incoming_notes)

    merged_values = merge_note_values(existing_values, incoming_values)
    merged_text = list(dict.fromkeys(existing_text + incoming_text))

    logger.debug(
        f"Reconciled notes: {len(merged_values)} key-value pair(s), "
        f"{len(merged_text)} free-text line(s)"
    )
    return render_notes(merged_values, merged_text)


def _duplicates_structured_field(
    segment: str,
    structured: Mapping[str, Any]
) -> bool:
    """Check whether a segment repeats a structured field value."""
    lower_segment = segment.lower()
    if any(marker in lower_segment for marker in CONNECTED_MARKERS):
        return True

    pair = _split_key_value(segment)
    if pair is None:
        return False
    key, value = pair
    # "Job title" counts as title
    key = key.split()[-1]

    for field, keys in (
        ('role', ROLE_KEYS),
        ('company', COMPANY_KEYS),
        ('location', LOCATION_KEYS),
    ):
        field_value = structured.get(field)
        if (
            key in keys
            and isinstance(field_value, str)
            and field_value.strip()
            and value.lower() == field_value.strip().lower()
        ):
            return True
    return False


def clean_notes(notes: Any, structured: Mapping[str, Any]) -> str:
    """
    Remove note segments that repeat structured contact fields.

    A "Role:", "Position:", "Title:", "Company:", "Employer:" or "Location:"
    segment is removed when its value equals the matching structured field,
    ignoring case. Connection-date segments ("Connected: ...",
    "Connected on ...") are always removed. Notes with nothing to remove are
    returned verbatim.

    :param notes: Notes text
    :param structured: Mapping with the merged company, role and location
    :return: Cleaned notes text
    """
    if not isinstance(notes, str) or not notes:
        return ''

    removed = 0
    cleaned_lines = []
    for line in notes.split('\n'):
        segments = line.split(';')
        kept = [
            segment for segment in segments
            if not (segment.strip() and _duplicates_structured_field(segment.strip(), structured))
        ]
        removed += len(segments) - len(kept)
        if len(kept) == len(segments):
            cleaned_lines.append(line)
        elif any(segment.strip() for segment in kept):
            cleaned_lines.append('; '.join(segment.strip() for segment in kept if segment.strip()))

    if not removed:
        return notes

    logger.debug(f"Removed {removed} note segment(s) repeating structured fields")

    # Collapse blank lines left behind by removed sections
    result: List[str] = []
    for line in cleaned_lines:
        if not line.strip() and (not result or not result[-1].strip()):
            continue
        result.append(line)
    while result and not result[-1].strip():
        result.pop()
    return '\n'.join(result)


def normalize_notes_for_comparison(notes: Any) -> str:
    """
    Normalize notes for equality checks.

    LinkedIn connection dates are dropped and whitespace is collapsed.

    :param notes: Notes text
    :return: Comparison form of the notes
    """
    if not isinstance(notes, str):
        return ''
    without_dates = _LINKEDIN_CONNECTED.sub('', notes)
    return ' '.join(without_dates.split())
