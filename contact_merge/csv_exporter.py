"""
CSV export module for contact data.

This module exports contacts to CSV with the same columns as the web
application's export, for viewing and import into spreadsheet applications.

Dependencies:
    - csv: Standard library for CSV file handling
    - pathlib: Standard library for path handling
    - typing: Standard library for type hints
    - logging: Standard library for logging
"""
# pylint: disable=logging-fstring-interpolation

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from contact_merge.contact_schema import (
    get_contact_values,
    get_linkedin_urls,
    get_other_urls,
)

logger = logging.getLogger("contact_merge")

CSV_HEADERS = [
    'Name',
    'Company',
    'Role',
    'Location',
    'Emails',
    'Phones',
    'LinkedIn URL',
    'Other URLs',
    'Notes',
    'Source',
    'Created Date',
    'Updated Date',
]

LIST_SEPARATOR = '; '


def _format_date(date_value: Any) -> str:
    """
    Format a date value for CSV export.

    :param date_value: datetime, ISO string or None
    :return: ISO-8601 string or empty string
    """
    if not date_value:
        return ''
    if isinstance(date_value, datetime):
        return date_value.isoformat()
    return str(date_value)


def _format_other_urls(urls: List[Dict[str, str]]) -> str:
    """
    Format platform URLs as "platform: url" pairs.

    :param urls: List of {platform, url} dictionaries
    :return: Semicolon-separated string
    """
    return LIST_SEPARATOR.join(
        f"{url['platform']}: {url['url']}" if url['platform'] else url['url']
        for url in urls
    )


def _contact_to_csv_row(contact: Dict[str, Any]) -> List[str]:
    """
    Convert a contact dictionary to a CSV row.

    :param contact: Contact dictionary
    :return: List of CSV row values
    """
    return [
        contact.get('name') or '',
        contact.get('company') or '',
        contact.get('role') or '',
        contact.get('location') or '',
        LIST_SEPARATOR.join(get_contact_values(contact, 'emails')),
        LIST_SEPARATOR.join(get_contact_values(contact, 'phones')),
        LIST_SEPARATOR.join(get_linkedin_urls(contact)),
        _format_other_urls(get_other_urls(contact)),
        contact.get('notes') or '',
        contact.get('source') or '',
        _format_date(contact.get('created_at')),
        _format_date(contact.get('updated_at')),
    ]


def export_contacts_to_csv(
    contacts: List[Dict[str, Any]],
    output_path: Path
) -> None:
    """
    Export contacts to a CSV file.

    :param contacts: List of contact dictionaries
    :param output_path: Path where CSV file should be written
    :raises IOError: If file cannot be written
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
            writer = csv.writer(csvfile, quoting=csv.QUOTE_MINIMAL)
            writer.writerow(CSV_HEADERS)
            writer.writerows(_contact_to_csv_row(contact) for contact in contacts)

        logger.info(
            f"Successfully exported {len(contacts)} contacts to {output_path}"
        )

    except IOError as e:
        logger.error(f"Failed to write CSV file {output_path}: {e}")
        raise
