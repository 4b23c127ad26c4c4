"""
Unit tests for reading, writing and validating JSON contact files.
"""

import json

import pytest

from contact_merge.contact_store import (
    load_contacts,
    save_contacts,
    validate_contacts_file,
)


def _write_json(path, data):
    path.write_text(json.dumps(data), encoding='utf-8')
    return path


class TestLoadContacts:
    """Tests for load_contacts."""

    def test_loads_camel_case_records(self, tmp_path):
        path = _write_json(tmp_path / 'contacts.json', [{
            'id': 'a',
            'name': 'Ann Lee',
            'contactInfo': {'emails': ['ann@x.com']},
        }])

        contacts = load_contacts(path)

        assert len(contacts) == 1
        assert contacts[0]['contact_info']['emails'] == ['ann@x.com']
        assert contacts[0]['source'] == 'manual'

    def test_accepts_contacts_wrapper(self, tmp_path):
        path = _write_json(tmp_path / 'contacts.json', {'contacts': [{'name': 'Ann'}]})

        assert [c['name'] for c in load_contacts(path, partial=True)] == ['Ann']

    def test_skips_non_objects(self, tmp_path):
        path = _write_json(tmp_path / 'contacts.json', [{'name': 'Ann'}, 'junk', 3])

        assert len(load_contacts(path)) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_contacts(tmp_path / 'missing.json')

    def test_missing_file_ok(self, tmp_path):
        assert load_contacts(tmp_path / 'missing.json', missing_ok=True) == []

    def test_malformed_json(self, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('[{"name": ', encoding='utf-8')

        with pytest.raises(ValueError):
            load_contacts(path)

    def test_not_a_list(self, tmp_path):
        path = _write_json(tmp_path / 'contacts.json', {'name': 'Ann'})

        with pytest.raises(ValueError):
            load_contacts(path)


class TestSaveContacts:
    """Tests for save_contacts."""

    def test_writes_camel_case(self, tmp_path, make_contact):
        path = tmp_path / 'out' / 'contacts.json'

        save_contacts([make_contact(contact_info={'linkedin_urls': ['u']})], path)

        records = json.loads(path.read_text(encoding='utf-8'))
        assert records[0]['contactInfo']['linkedinUrls'] == ['u']
        assert records[0]['createdAt'] == '2024-01-15T00:00:00+00:00'
        assert path.read_text(encoding='utf-8').endswith('\n')

    def test_round_trip(self, tmp_path, make_contact):
        path = tmp_path / 'contacts.json'
        contacts = [make_contact(id='1', company='Acme'), make_contact(id='2', notes='Hi')]

        save_contacts(contacts, path)

        assert load_contacts(path) == contacts


class TestValidateContactsFile:
    """Tests for validate_contacts_file."""

    def test_valid_file(self, tmp_path, make_contact):
        path = tmp_path / 'contacts.json'
        save_contacts([make_contact(id='1'), make_contact(id='2')], path)

        is_valid, report = validate_contacts_file(path, 2)

        assert is_valid
        assert report['parse_successful']
        assert report['errors'] == []

    def test_count_mismatch(self, tmp_path, make_contact):
        path = tmp_path / 'contacts.json'
        save_contacts([make_contact(id='1')], path)

        is_valid, report = validate_contacts_file(path, 2)

        assert not is_valid
        assert report['contacts_lost'] == 1

    def test_repeated_and_missing_ids(self, tmp_path):
        path = _write_json(tmp_path / 'contacts.json', [
            {'id': 'a', 'name': 'A'},
            {'id': 'a', 'name': 'B'},
            {'name': 'C'},
        ])

        is_valid, report = validate_contacts_file(path, 3)

        assert not is_valid
        assert len(report['errors']) == 2

    def test_empty_name_is_warning(self, tmp_path):
        path = _write_json(tmp_path / 'contacts.json', [{'id': 'a', 'name': ''}])

        is_valid, report = validate_contacts_file(path, 1)

        assert is_valid
        assert len(report['warnings']) == 1

    def test_missing_output(self, tmp_path):
        is_valid, report = validate_contacts_file(tmp_path / 'nope.json', 0)

        assert not is_valid
        assert not report['parse_successful']
