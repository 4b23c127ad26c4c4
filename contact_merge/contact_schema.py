"""
Contact record shape and boundary normalization.

Contacts travel through the engine as plain dictionaries with snake_case
keys. The TypedDict declarations below document that shape. Records coming
from outside (the web application's camelCase JSON, AI normalizer output,
Python callers) pass through normalize_contact() once at the boundary, so
the detector and merger only ever see the canonical form. Both still read
fields through the accessors in this module and never fail on a
missing or wrong-typed field.

Dependencies:
    - datetime: Standard library for timestamps
    - typing: Standard library for type hints
    - uuid: Standard library for contact id generation
    - re: Standard library for phone digit extraction
    - logging: Standard library for logging
"""
# pylint: disable=logging-fstring-interpolation

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, TypedDict

logger = logging.getLogger("contact_merge")

SOURCES = ('google', 'linkedin', 'manual')
DEFAULT_SOURCE = 'manual'

MATCH_TYPES = ('name', 'email', 'phone', 'linkedin')

LIST_FIELDS = ('emails', 'phones', 'linkedin_urls')

PLACEHOLDER_VALUES = frozenset({
    '',
    'unknown',
    '<unknown>',
    '<n/a>',
    'n/a',
    'na',
    'none',
    'null',
    'undefined',
    'not available',
    'not specified',
    'tbd',
    '-',
    '--',
})

# camelCase (web application) -> snake_case (engine)
_KEY_ALIASES = {
    'contactInfo': 'contact_info',
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
}

_INFO_KEY_ALIASES = {
    'otherUrls': 'other_urls',
    'linkedinUrls': 'linkedin_urls',
    'linkedinUrl': 'linkedin_url',
}


class OtherUrl(TypedDict):
    platform: str
    url: str


class ContactInfo(TypedDict, total=False):
    emails: List[str]
    phones: List[str]
    linkedin_urls: List[str]
    other_urls: List[OtherUrl]


class Contact(TypedDict, total=False):
    id: str
    name: str
    company: Optional[str]
    role: Optional[str]
    location: Optional[str]
    contact_info: ContactInfo
    notes: str
    source: str
    created_at: datetime
    updated_at: datetime


class DuplicateMatch(TypedDict):
    existing: Contact
    incoming: Contact
    match_type: str
    match_value: str
    name_similarity: float


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def is_placeholder(value: Any) -> bool:
    """
    Check whether a field value semantically means "no data".

    :param value: Field value of any type
    :return: True for None, non-strings, blank strings and placeholder tokens
    """
    if not isinstance(value, str):
        return True
    return value.strip().lower() in PLACEHOLDER_VALUES


def clean_field(value: Any) -> Optional[str]:
    """Return the stripped value, or None when it is a placeholder."""
    if is_placeholder(value):
        return None
    return value.strip()


def normalize_name(name: Any) -> str:
    """
    Normalize a name for comparison.

    :param name: Original name string
    :return: Lowercase, trimmed name with internal whitespace collapsed
    """
    if not isinstance(name, str):
        return ''
    return ' '.join(name.lower().split())


def normalize_email(email: Any) -> str:
    """Normalize an email address for comparison (lowercase, trimmed)."""
    if not isinstance(email, str):
        return ''
    return email.strip().lower()


def get_contact_values(contact: Any, field: str) -> List[str]:
    """
    Read a list field of contact_info, tolerating missing or wrong types.

    :param contact: Contact dictionary (possibly partial or malformed)
    :param field: One of emails, phones, linkedin_urls
    :return: Non-blank string items, or an empty list
    """
    if not isinstance(contact, Mapping):
        return []
    contact_info = contact.get('contact_info')
    if not isinstance(contact_info, Mapping):
        return []
    values = contact_info.get(field)
    if not isinstance(values, (list, tuple)):
        return []
    return [v for v in values if isinstance(v, str) and v.strip()]


def get_other_urls(contact: Any) -> List[Dict[str, str]]:
    """Read contact_info.other_urls, keeping well-formed pairs."""
    if not isinstance(contact, Mapping):
        return []
    contact_info = contact.get('contact_info')
    if not isinstance(contact_info, Mapping):
        return []
    values = contact_info.get('other_urls')
    if not isinstance(values, (list, tuple)):
        return []
    urls = []
    for item in values:
        if not isinstance(item, Mapping):
            continue
        url = item.get('url')
        if not isinstance(url, str) or not url.strip():
            continue
        platform = item.get('platform')
        urls.append({
            'platform': platform if isinstance(platform, str) else '',
            'url': url,
        })
    return urls


def get_linkedin_urls(contact: Any) -> List[str]:
    """
    Read the LinkedIn identity URLs of a contact.

    Both schema versions are understood: the single linkedin_url
    (linkedinUrl) and the plural linkedin_urls (linkedinUrls). The single
    URL comes first; repeats are dropped by exact string.

    :param contact: Contact dictionary (possibly partial or malformed)
    :return: Stripped URLs, or an empty list
    """
    if not isinstance(contact, Mapping):
        return []
    contact_info = contact.get('contact_info')
    if not isinstance(contact_info, Mapping):
        return []

    urls = []
    for key in ('linkedin_url', 'linkedinUrl'):
        single = contact_info.get(key)
        if isinstance(single, str) and single.strip():
            urls.append(single.strip())
    for key in ('linkedin_urls', 'linkedinUrls'):
        urls.extend(_string_list(contact_info.get(key)))
    return list(dict.fromkeys(urls))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp from a datetime or an ISO-8601 string.

    Naive values are taken as UTC.

    :param value: datetime, ISO string or anything else
    :return: Timezone-aware datetime, or None if not parseable
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _string_list(values: Any) -> List[str]:
    if not isinstance(values, (list, tuple)):
        return []
    return [v.strip() for v in values if isinstance(v, str) and v.strip()]


def _unique_by(values: List[str], key: Callable[[str], str]) -> List[str]:
    """Keep the first value of each key, in order."""
    unique = {}
    for value in values:
        unique.setdefault(key(value), value)
    return list(unique.values())


def _phone_digits(phone: str) -> str:
    # Digit-less entries keep their own text as key
    return re.sub(r'\D', '', phone) or phone.lower()


def _normalize_contact_info(raw: Any) -> Dict[str, Any]:
    info = {}
    if isinstance(raw, Mapping):
        for key, value in raw.items():
            info[_INFO_KEY_ALIASES.get(key, key)] = value

    return {
        'emails': _unique_by(_string_list(info.get('emails')), normalize_email),
        'phones': _unique_by(_string_list(info.get('phones')), _phone_digits),
        'linkedin_urls': get_linkedin_urls({'contact_info': info}),
        'other_urls': get_other_urls({'contact_info': info}),
    }


def normalize_contact(
    record: Mapping[str, Any],
    partial: bool = False
) -> Dict[str, Any]:
    """
    Convert an externally produced record into the canonical contact shape.

    Accepts camelCase and snake_case keys, the single linkedinUrl and the
    plural linkedinUrls schema versions, and ISO timestamp strings.
    Wrong-typed list fields become empty lists and placeholder values
    become None. Emails repeated in another case and phones repeated with
    other punctuation are kept once, first spelling first.

    Full records (partial=False) are completed with an id, empty notes, a
    valid source and timestamps. Partial records keep absent fields absent.

    :param record: Contact-shaped mapping
    :param partial: Whether the record is an incoming PartialContact
    :return: New canonical contact dictionary
    :raises TypeError: If record is not a mapping
    """
    if not isinstance(record, Mapping):
        raise TypeError(
            f"Contact record must be a mapping, got {type(record).__name__}"
        )

    raw = {_KEY_ALIASES.get(key, key): value for key, value in record.items()}
    contact = dict(raw)

    contact_id = raw.get('id')
    contact['id'] = str(contact_id) if contact_id not in (None, '') else None

    contact['name'] = clean_field(raw.get('name'))
    for field in ('company', 'role', 'location'):
        contact[field] = clean_field(raw.get(field))

    contact['contact_info'] = _normalize_contact_info(raw.get('contact_info'))

    notes = raw.get('notes')
    contact['notes'] = notes if isinstance(notes, str) else None

    source = raw.get('source')
    contact['source'] = source if source in SOURCES else None

    contact['created_at'] = parse_timestamp(raw.get('created_at'))
    contact['updated_at'] = parse_timestamp(raw.get('updated_at'))

    if partial:
        return contact

    if not contact['id']:
        contact['id'] = str(uuid.uuid4())
    if contact['name'] is None:
        logger.debug(f"Contact {contact['id']} has no usable name")
        contact['name'] = ''
    if contact['notes'] is None:
        contact['notes'] = ''
    if contact['source'] is None:
        if source is not None:
            logger.warning(
                f"Unknown source {source!r} for contact {contact['id']}, "
                f"using '{DEFAULT_SOURCE}'"
            )
        contact['source'] = DEFAULT_SOURCE
    now = utc_now()
    if contact['created_at'] is None:
        contact['created_at'] = now
    if contact['updated_at'] is None:
        contact['updated_at'] = contact['created_at']

    return contact


def to_record(contact: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Convert a canonical contact into the web application's JSON shape.

    :param contact: Canonical contact dictionary
    :return: camelCase dictionary with ISO-8601 timestamps
    """
    def _iso(value: Any) -> Optional[str]:
        if isinstance(value, datetime):
            return value.isoformat()
        return value

    contact_info = contact.get('contact_info') or {}
    record = {
        'id': contact.get('id'),
        'name': contact.get('name') or '',
        'company': contact.get('company'),
        'role': contact.get('role'),
        'location': contact.get('location'),
        'contactInfo': {
            'emails': list(contact_info.get('emails') or []),
            'phones': list(contact_info.get('phones') or []),
            'linkedinUrls': list(contact_info.get('linkedin_urls') or []),
            'otherUrls': [
                dict(url) for url in contact_info.get('other_urls') or []
            ],
        },
        'notes': contact.get('notes') or '',
        'source': contact.get('source') or DEFAULT_SOURCE,
        'createdAt': _iso(contact.get('created_at')),
        'updatedAt': _iso(contact.get('updated_at')),
    }
    for field in ('company', 'role', 'location'):
        if record[field] is None:
            del record[field]
    return record
