"""
Unit tests for contact shape normalization and accessors.
"""

from datetime import datetime, timezone

import pytest

from contact_merge.contact_schema import (
    DEFAULT_SOURCE,
    clean_field,
    get_contact_values,
    get_linkedin_urls,
    get_other_urls,
    is_placeholder,
    normalize_contact,
    normalize_email,
    normalize_name,
    parse_timestamp,
    to_record,
)


class TestPlaceholders:
    """Tests for placeholder detection."""

    @pytest.mark.parametrize('value', ['', '  ', 'N/A', 'unknown', ' None ', 'TBD', '-', None, 3])
    def test_placeholders(self, value):
        assert is_placeholder(value)
        assert clean_field(value) is None

    @pytest.mark.parametrize('value', ['Acme', 'NA Corp', 'Unknown Pleasures'])
    def test_real_values(self, value):
        assert not is_placeholder(value)

    def test_clean_field_strips(self):
        assert clean_field('  Acme  ') == 'Acme'


class TestAccessors:
    """Tests for defensive field accessors."""

    def test_normalize_name(self):
        assert normalize_name('  John   DOE ') == 'john doe'
        assert normalize_name(None) == ''

    def test_normalize_email(self):
        assert normalize_email(' John@Example.COM ') == 'john@example.com'

    def test_get_contact_values(self):
        contact = {'contact_info': {'emails': ['a@x.com', '', None, 5, '  ']}}

        assert get_contact_values(contact, 'emails') == ['a@x.com']
        assert get_contact_values(contact, 'phones') == []
        assert get_contact_values({'contact_info': None}, 'emails') == []
        assert get_contact_values(None, 'emails') == []

    def test_get_other_urls(self):
        contact = {'contact_info': {'other_urls': [
            {'platform': 'github', 'url': 'https://github.com/jd'},
            {'platform': 'x'},
            'https://bare.example',
            {'url': 'https://site.example'},
        ]}}

        assert get_other_urls(contact) == [
            {'platform': 'github', 'url': 'https://github.com/jd'},
            {'platform': '', 'url': 'https://site.example'},
        ]

    def test_get_linkedin_urls_reads_both_schema_versions(self):
        contact = {'contact_info': {
            'linkedin_url': ' https://linkedin.com/in/a ',
            'linkedin_urls': ['https://linkedin.com/in/b', 'https://linkedin.com/in/a', 7],
        }}

        assert get_linkedin_urls(contact) == [
            'https://linkedin.com/in/a',
            'https://linkedin.com/in/b',
        ]

    def test_get_linkedin_urls_camel_case_and_bad_input(self):
        assert get_linkedin_urls({'contact_info': {'linkedinUrl': 'https://linkedin.com/in/a'}}) == [
            'https://linkedin.com/in/a'
        ]
        assert get_linkedin_urls({'contact_info': {'linkedin_url': ['not', 'a', 'string']}}) == []
        assert get_linkedin_urls({'contact_info': 'nope'}) == []
        assert get_linkedin_urls(None) == []


class TestParseTimestamp:
    """Tests for timestamp parsing."""

    def test_zulu_suffix(self):
        assert parse_timestamp('2024-01-15T10:00:00Z') == datetime(
            2024, 1, 15, 10, tzinfo=timezone.utc
        )

    def test_naive_is_utc(self):
        assert parse_timestamp(datetime(2024, 1, 15)).tzinfo == timezone.utc

    @pytest.mark.parametrize('value', ['not a date', '', None, 12])
    def test_unparseable(self, value):
        assert parse_timestamp(value) is None


class TestNormalizeContact:
    """Tests for boundary normalization of contact records."""

    def test_camel_case_record(self):
        contact = normalize_contact({
            'id': 'c1',
            'name': ' Jane Roe ',
            'company': 'N/A',
            'contactInfo': {
                'emails': ['jane@x.com'],
                'phones': 'not-a-list',
                'linkedinUrl': 'https://linkedin.com/in/jane',
                'otherUrls': [{'platform': 'github', 'url': 'https://github.com/jane'}],
            },
            'source': 'linkedin',
            'createdAt': '2024-01-15T10:00:00.000Z',
        })

        assert contact['id'] == 'c1'
        assert contact['name'] == 'Jane Roe'
        assert contact['company'] is None
        assert contact['contact_info'] == {
            'emails': ['jane@x.com'],
            'phones': [],
            'linkedin_urls': ['https://linkedin.com/in/jane'],
            'other_urls': [{'platform': 'github', 'url': 'https://github.com/jane'}],
        }
        assert contact['source'] == 'linkedin'
        assert contact['created_at'] == datetime(2024, 1, 15, 10, tzinfo=timezone.utc)
        assert contact['updated_at'] == contact['created_at']
        assert contact['notes'] == ''

    def test_single_and_plural_linkedin(self):
        contact = normalize_contact({'contactInfo': {
            'linkedinUrl': 'https://linkedin.com/in/a',
            'linkedinUrls': ['https://linkedin.com/in/b', 'https://linkedin.com/in/a'],
        }})

        assert contact['contact_info']['linkedin_urls'] == [
            'https://linkedin.com/in/a',
            'https://linkedin.com/in/b',
        ]

    def test_repeated_emails_and_phones_kept_once(self):
        contact = normalize_contact({'contact_info': {
            'emails': ['a@x.com', ' A@x.com', 'b@x.com'],
            'phones': ['555-123-4567', '(555) 123-4567', 'ext. only', 'EXT. ONLY'],
        }})

        assert contact['contact_info']['emails'] == ['a@x.com', 'b@x.com']
        assert contact['contact_info']['phones'] == ['555-123-4567', 'ext. only']

    def test_full_record_defaults(self):
        contact = normalize_contact({'source': 'fax'})

        assert contact['id']
        assert contact['name'] == ''
        assert contact['source'] == DEFAULT_SOURCE
        assert contact['created_at'].tzinfo is not None

    def test_partial_record_keeps_absent_fields(self):
        contact = normalize_contact({'name': 'Jane'}, partial=True)

        assert contact['id'] is None
        assert contact['notes'] is None
        assert contact['source'] is None
        assert contact['created_at'] is None
        assert contact['contact_info']['emails'] == []

    def test_non_mapping_rejected(self):
        with pytest.raises(TypeError):
            normalize_contact(['not', 'a', 'contact'])


class TestToRecord:
    """Tests for conversion to the camelCase file format."""

    def test_camel_case_output(self, make_contact):
        record = to_record(make_contact(
            role='CEO',
            contact_info={'linkedin_urls': ['https://linkedin.com/in/jd']},
        ))

        assert record['contactInfo']['linkedinUrls'] == ['https://linkedin.com/in/jd']
        assert record['createdAt'] == '2024-01-15T00:00:00+00:00'
        assert record['role'] == 'CEO'
        assert 'company' not in record
        assert 'location' not in record

    def test_round_trip_through_normalize(self, make_contact):
        contact = make_contact(company='Acme', notes='Hello')

        assert normalize_contact(to_record(contact)) == contact
