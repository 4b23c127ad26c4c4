"""
JSON contact file reading, writing and validation.

Files use the web application's format: a JSON array of camelCase contact
records with ISO-8601 timestamps.
"""

import json
from pathlib import Path
from typing import List, Dict, Any
import logging

from contact_merge.contact_schema import normalize_contact, to_record

logger = logging.getLogger("contact_merge")


def _read_records(file_path: Path) -> List[Any]:
    """Read a JSON array of records; a {"contacts": [...]} wrapper is accepted."""
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Malformed JSON in {file_path}: {e}") from e

    if isinstance(data, dict) and 'contacts' in data:
        data = data['contacts']
    if not isinstance(data, list):
        raise ValueError(
            f"Expected a list of contacts in {file_path}, "
            f"got {type(data).__name__}"
        )
    return data


def load_contacts(
    file_path: Path,
    partial: bool = False,
    missing_ok: bool = False
) -> List[Dict[str, Any]]:
    """
    Load contacts from a JSON file.

    Args:
        file_path: Path to the JSON file
        partial: Load records as incoming partial contacts
        missing_ok: Return an empty list when the file doesn't exist

    Returns:
        List of canonical contact dictionaries

    Raises:
        FileNotFoundError: If the file doesn't exist and missing_ok is False
        ValueError: If the file is not a JSON list of contact objects
    """
    if not file_path.exists():
        if missing_ok:
            logger.info(f"No contact file at {file_path}, starting empty")
            return []
        raise FileNotFoundError(f"Contact file not found: {file_path}")

    records = _read_records(file_path)

    contacts = []
    skipped = 0
    for index, record in enumerate(records, 1):
        if not isinstance(record, dict):
            logger.warning(f"Skipping entry {index} in {file_path}: not an object")
            skipped += 1
            continue
        contacts.append(normalize_contact(record, partial=partial))

    if skipped:
        logger.warning(f"Skipped {skipped} of {len(records)} entries in {file_path}")

    logger.info(f"Loaded {len(contacts)} contacts from {file_path}")
    return contacts


def save_contacts(contacts: List[Dict[str, Any]], output_path: Path) -> None:
    """
    Write contacts to a JSON file.

    Args:
        contacts: List of canonical contact dictionaries
        output_path: Path where the JSON file should be written
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = [to_record(contact) for contact in contacts]
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(records, f, indent=2, ensure_ascii=False)
        f.write('\n')

    logger.info(f"Successfully wrote {len(contacts)} contacts to {output_path}")


def validate_contacts_file(
    output_path: Path,
    expected_contact_count: int
) -> tuple[bool, Dict[str, Any]]:
    """
    Validate a written contact file to ensure no contact was lost.

    Args:
        output_path: Path to the output JSON file
        expected_contact_count: Expected number of contacts

    Returns:
        Tuple of (is_valid, validation_report_dict)
    """
    report = {
        'valid': False,
        'output_contact_count': 0,
        'expected_contact_count': expected_contact_count,
        'contacts_lost': 0,
        'parse_successful': False,
        'errors': [],
        'warnings': []
    }

    if not output_path.exists():
        report['errors'].append(f"Output file does not exist: {output_path}")
        return False, report

    try:
        records = _read_records(output_path)
    except ValueError as e:
        report['errors'].append(f"Failed to parse output file: {e}")
        logger.error(f"Validation error: {e}")
        return False, report

    report['parse_successful'] = True
    report['output_contact_count'] = len(records)

    if len(records) != expected_contact_count:
        report['errors'].append(
            f"Contact count mismatch: expected {expected_contact_count}, got {len(records)}"
        )
        report['contacts_lost'] = expected_contact_count - len(records)
    else:
        logger.info(f"Validation: Contact count matches expected ({expected_contact_count})")

    seen_ids = set()
    repeated_ids = []
    missing_ids = []
    without_name = []

    for i, record in enumerate(records, 1):
        if not isinstance(record, dict):
            report['errors'].append(f"Entry {i} is not a contact object")
            continue
        contact_id = record.get('id')
        if not contact_id:
            missing_ids.append(i)
        elif contact_id in seen_ids:
            repeated_ids.append(contact_id)
        else:
            seen_ids.add(contact_id)
        if not (record.get('name') or '').strip():
            without_name.append(i)

    if missing_ids:
        report['errors'].append(
            f"Found {len(missing_ids)} contacts without an id (indices: {missing_ids[:10]})"
        )
    if repeated_ids:
        report['errors'].append(
            f"Found {len(repeated_ids)} repeated contact ids: {repeated_ids[:10]}"
        )
    if without_name:
        report['warnings'].append(
            f"Found {len(without_name)} contacts without a name (indices: {without_name[:10]})"
        )

    report['valid'] = not report['errors']

    if report['valid']:
        logger.info("Validation passed: Output file is valid and all contacts are present")
    else:
        logger.warning(f"Validation failed: {len(report['errors'])} errors found")

    return report['valid'], report
