"""
Information-content comparison between an existing and an incoming contact.

Used to skip duplicates that would add nothing when merged.
"""

from typing import Any, Dict, Optional, Set
import logging

from contact_merge.contact_schema import (
    clean_field,
    get_contact_values,
    get_linkedin_urls,
    get_other_urls,
    normalize_email,
    normalize_name,
)
from contact_merge.notes_reconciler import normalize_notes_for_comparison
from contact_merge.phone_normalizer import DEFAULT_REGION, phone_match_keys

logger = logging.getLogger("contact_merge")


def _phone_groups(contact: Dict[str, Any], region: Optional[str]) -> Set[frozenset]:
    return {
        frozenset(phone_match_keys(phone, region))
        for phone in get_contact_values(contact, 'phones')
    }


def _has_phone(keys: frozenset, groups: Set[frozenset]) -> bool:
    return any(keys & group for group in groups)


def _email_set(contact: Dict[str, Any]) -> Set[str]:
    return {normalize_email(e) for e in get_contact_values(contact, 'emails')}


def _other_url_set(contact: Dict[str, Any]) -> Set[tuple]:
    return {(u['platform'], u['url']) for u in get_other_urls(contact)}


def are_contacts_identical(
    existing: Dict[str, Any],
    incoming: Dict[str, Any],
    phone_region: Optional[str] = DEFAULT_REGION
) -> bool:
    """
    Check whether two contacts carry the same information.

    LinkedIn connection dates in the notes are ignored. LinkedIn URLs must
    match as sets, so an incoming URL the existing contact lacks is a
    difference even when the existing contact has none.

    :param existing: Existing contact
    :param incoming: Incoming (possibly partial) contact
    :param phone_region: Default region for phone comparison
    :return: True if merging would not change the existing contact
    """
    if normalize_name(existing.get('name')) != normalize_name(incoming.get('name')):
        return False

    for field in ('company', 'role', 'location'):
        if clean_field(existing.get(field)) != clean_field(incoming.get(field)):
            return False

    existing_phones = _phone_groups(existing, phone_region)
    incoming_phones = _phone_groups(incoming, phone_region)
    if len(existing_phones) != len(incoming_phones):
        return False
    if not all(_has_phone(keys, existing_phones) for keys in incoming_phones):
        return False

    if _email_set(existing) != _email_set(incoming):
        return False

    if set(get_linkedin_urls(existing)) != set(get_linkedin_urls(incoming)):
        return False

    if _other_url_set(existing) != _other_url_set(incoming):
        return False

    return (
        normalize_notes_for_comparison(existing.get('notes'))
        == normalize_notes_for_comparison(incoming.get('notes'))
    )


def has_less_or_equal_information(
    existing: Dict[str, Any],
    incoming: Dict[str, Any],
    phone_region: Optional[str] = DEFAULT_REGION
) -> bool:
    """
    Check whether the incoming contact adds nothing to the existing one.

    :param existing: Existing contact
    :param incoming: Incoming (possibly partial) contact
    :param phone_region: Default region for phone comparison
    :return: True if every incoming value is already present
    """
    if are_contacts_identical(existing, incoming, phone_region):
        return True

    if normalize_name(existing.get('name')) != normalize_name(incoming.get('name')):
        return False

    for field in ('company', 'role', 'location'):
        incoming_value = clean_field(incoming.get(field))
        if incoming_value and incoming_value != clean_field(existing.get(field)):
            return False

    existing_phones = _phone_groups(existing, phone_region)
    if not all(_has_phone(keys, existing_phones) for keys in _phone_groups(incoming, phone_region)):
        return False

    if not _email_set(incoming) <= _email_set(existing):
        return False

    if not set(get_linkedin_urls(incoming)) <= set(get_linkedin_urls(existing)):
        return False

    if not _other_url_set(incoming) <= _other_url_set(existing):
        return False

    incoming_notes = normalize_notes_for_comparison(incoming.get('notes'))
    existing_notes = normalize_notes_for_comparison(existing.get('notes'))
    if incoming_notes and incoming_notes not in existing_notes:
        return False

    logger.debug(
        f"Incoming contact {incoming.get('name') or 'Unknown'} adds no "
        f"information to {existing.get('id')}"
    )
    return True
