"""
Field-by-field contact merging module.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import logging

from contact_merge.contact_schema import (
    clean_field,
    get_contact_values,
    get_linkedin_urls,
    get_other_urls,
    normalize_email,
    utc_now,
)
from contact_merge.notes_reconciler import clean_notes, reconcile_notes
from contact_merge.phone_normalizer import DEFAULT_REGION, phone_match_keys

logger = logging.getLogger("contact_merge")

STRUCTURED_FIELDS = ('company', 'role', 'location')


class ContactMerger:
    """
    Merges an incoming contact into an existing one without losing data.

    The existing contact always absorbs the incoming one: id, source and
    created_at come from the existing record, so references to it stay valid.
    Inputs are never modified.
    """

    def __init__(
        self,
        phone_region: Optional[str] = DEFAULT_REGION,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the merger.

        Args:
            phone_region: Default region for phones without a country code
            clock: Callable returning the merge time (defaults to UTC now)
        """
        self.phone_region = phone_region
        self.clock = clock or utc_now

    def merge_contacts(self, existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge an incoming (possibly partial) contact into an existing contact.

        Merging a contact with itself returns it unchanged apart from
        updated_at, provided it went through normalize_contact() and none of
        its phones are the same number written with and without a country
        code.

        Args:
            existing: Existing contact, whose identity is kept
            incoming: Incoming contact to absorb

        Returns:
            New merged contact dictionary
        """
        merged = self.merge_fields(existing, incoming)
        merged['notes'] = clean_notes(
            reconcile_notes(existing.get('notes'), incoming.get('notes')),
            merged
        )
        return merged

    def merge_fields(self, existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge everything except the notes.

        The returned contact carries the existing notes unchanged so that
        callers with their own notes policy can replace them.

        Args:
            existing: Existing contact, whose identity is kept
            incoming: Incoming contact to absorb

        Returns:
            New merged contact dictionary
        """
        merged = existing.copy()

        merged['id'] = existing.get('id')
        merged['name'] = self._merge_names(existing.get('name'), incoming.get('name'))

        for field in STRUCTURED_FIELDS:
            merged[field] = self._merge_field(existing.get(field), incoming.get(field))

        merged['contact_info'] = self._merge_contact_info(existing, incoming)

        existing_notes = existing.get('notes')
        merged['notes'] = existing_notes if isinstance(existing_notes, str) else ''

        # Provenance and identity never change on merge
        merged['source'] = existing.get('source')
        merged['created_at'] = existing.get('created_at')
        merged['updated_at'] = self.clock()

        return merged

    def _merge_names(self, existing_name: Any, incoming_name: Any) -> str:
        """Keep the existing name unless the incoming one is longer."""
        existing_name = existing_name if isinstance(existing_name, str) else ''
        incoming_name = clean_field(incoming_name)

        if incoming_name and len(incoming_name) > len(existing_name.strip()):
            return incoming_name
        return existing_name

    def _merge_field(self, existing_value: Any, incoming_value: Any) -> Optional[str]:
        """
        Merge a single-valued field, preferring the more detailed value.

        Placeholders never win over a real value. On equal length the
        incoming value is taken.
        """
        existing_value = clean_field(existing_value)
        incoming_value = clean_field(incoming_value)

        if not incoming_value:
            return existing_value
        if not existing_value:
            return incoming_value
        if len(existing_value) > len(incoming_value):
            return existing_value
        return incoming_value

    def _merge_contact_info(self, existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
        """Union every contact-method list."""
        contact_info = existing.get('contact_info')
        merged = dict(contact_info) if isinstance(contact_info, dict) else {}

        merged['emails'] = self._merge_email_addresses(
            get_contact_values(existing, 'emails'),
            get_contact_values(incoming, 'emails')
        )
        merged['phones'] = self._merge_phone_numbers(
            get_contact_values(existing, 'phones'),
            get_contact_values(incoming, 'phones')
        )
        merged['linkedin_urls'] = self._merge_lists(
            get_linkedin_urls(existing),
            get_linkedin_urls(incoming)
        )
        for key in ('linkedin_url', 'linkedinUrl', 'linkedinUrls'):
            merged.pop(key, None)
        merged['other_urls'] = self._merge_other_urls(
            get_other_urls(existing),
            get_other_urls(incoming)
        )
        return merged

    def _merge_email_addresses(self, existing_emails: List[str], incoming_emails: List[str]) -> List[str]:
        """Merge email lists, keeping case-insensitively unique addresses."""
        merged = []
        seen_emails = set()

        for email in existing_emails + incoming_emails:
            key = normalize_email(email)
            if key and key not in seen_emails:
                merged.append(email)
                seen_emails.add(key)

        return merged

    def _merge_phone_numbers(self, existing_phones: List[str], incoming_phones: List[str]) -> List[str]:
        """
        Merge phone lists, dropping numbers that share a comparison key with
        one already kept.
        """
        merged = []
        seen_keys = set()

        for phone in existing_phones + incoming_phones:
            keys = phone_match_keys(phone, self.phone_region)
            if keys and not keys & seen_keys:
                merged.append(phone)
                seen_keys |= keys

        return merged

    def _merge_other_urls(self, existing_urls: List[Dict[str, str]], incoming_urls: List[Dict[str, str]]) -> List[Dict[str, str]]:
        """Merge platform URLs, unique by (platform, url)."""
        merged = []
        seen = set()

        for url in existing_urls + incoming_urls:
            key = (url['platform'], url['url'])
            if key not in seen:
                merged.append(dict(url))
                seen.add(key)

        return merged

    def _merge_lists(self, existing_list: List[str], incoming_list: List[str]) -> List[str]:
        """Merge two lists, keeping exact-string unique items."""
        return list(dict.fromkeys(existing_list + incoming_list))


def merge_contacts(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """Merge with a default ContactMerger."""
    return ContactMerger().merge_contacts(existing, incoming)
