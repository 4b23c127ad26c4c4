"""
Unit tests for CSV export.
"""

import csv

from contact_merge.csv_exporter import CSV_HEADERS, export_contacts_to_csv


def _read_rows(path):
    with open(path, newline='', encoding='utf-8') as f:
        return list(csv.reader(f))


def test_headers_and_row(tmp_path, make_contact):
    path = tmp_path / 'export' / 'contacts.csv'
    contact = make_contact(
        company='Acme',
        role='CEO',
        notes='Line one\nLine two, with comma',
        contact_info={
            'emails': ['a@x.com', 'b@x.com'],
            'phones': ['555-123-4567'],
            'linkedin_urls': ['https://linkedin.com/in/jd'],
            'other_urls': [
                {'platform': 'github', 'url': 'https://github.com/jd'},
                {'platform': '', 'url': 'https://jd.dev'},
            ],
        },
    )

    export_contacts_to_csv([contact], path)

    rows = _read_rows(path)
    assert rows[0] == CSV_HEADERS
    row = dict(zip(rows[0], rows[1]))
    assert row['Name'] == 'John Doe'
    assert row['Company'] == 'Acme'
    assert row['Location'] == ''
    assert row['Emails'] == 'a@x.com; b@x.com'
    assert row['LinkedIn URL'] == 'https://linkedin.com/in/jd'
    assert row['Other URLs'] == 'github: https://github.com/jd; https://jd.dev'
    assert row['Notes'] == 'Line one\nLine two, with comma'
    assert row['Created Date'] == '2024-01-15T00:00:00+00:00'


def test_empty_export(tmp_path):
    path = tmp_path / 'contacts.csv'

    export_contacts_to_csv([], path)

    assert _read_rows(path) == [CSV_HEADERS]
