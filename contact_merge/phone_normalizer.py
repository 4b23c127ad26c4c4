"""
Phone number comparison keys and E.164 formatting.

Two phone numbers are the same number when they share a key. A number's
keys are its digits-only form and, when phonenumbers accepts it as a
possible number, its E.164 form. The E.164 key is what lets
"+1 (555) 123-4567" and "5551234567" compare equal although their digit
strings differ by the country code.

Numbers without a leading '+' are read in a default region, which comes
from the command line, the system locale or DEFAULT_REGION, in that order.

Dependencies:
    - phonenumbers: Third-party library for phone number parsing and formatting
    - locale: Standard library for locale detection
    - re: Standard library for digit extraction
    - logging: Standard library for logging
"""
# pylint: disable=logging-fstring-interpolation

import locale
import logging
import re
from typing import Any, Dict, List, Optional, Set, Tuple

import phonenumbers
from phonenumbers import NumberParseException

logger = logging.getLogger("contact_merge")

DEFAULT_REGION = "US"

_NON_DIGITS = re.compile(r'\D')
# "en_US.UTF-8" -> "US"
_LOCALE_COUNTRY = re.compile(r'_([A-Za-z]{2})(?:[.@]|$)')


def validate_region_code(region_code: Optional[str]) -> bool:
    """
    Check that a region code is an upper-case ISO country code phonenumbers
    has metadata for.

    :param region_code: Candidate code, e.g. "NL"
    :return: True when phonenumbers supports the region
    """
    return (
        isinstance(region_code, str)
        and region_code.isupper()
        and region_code in phonenumbers.SUPPORTED_REGIONS
    )


def detect_region_from_locale() -> Optional[str]:
    """
    Read the country part of the system locale.

    :return: Region code such as "GB", or None when the locale has none
    """
    try:
        language_code = locale.getlocale()[0]
    except ValueError as e:
        logger.debug(f"Locale lookup failed: {e}")
        return None

    match = _LOCALE_COUNTRY.search(language_code or '')
    if not match:
        return None

    region = match.group(1).upper()
    if not validate_region_code(region):
        return None
    logger.debug(f"Locale {language_code} implies phone region {region}")
    return region


def get_default_region(
    provided_region: Optional[str] = None,
    auto_detect: bool = True,
    require_explicit: bool = False
) -> Optional[str]:
    """
    Resolve the region used for numbers without a country code.

    An explicit region is used when supported; otherwise the locale is
    consulted, and finally DEFAULT_REGION applies unless require_explicit
    asks for None instead.

    :param provided_region: Region given by the user, any case
    :param auto_detect: Whether the system locale may be used
    :param require_explicit: Return None rather than DEFAULT_REGION
    :return: Region code or None
    """
    if provided_region:
        candidate = provided_region.strip().upper()
        if validate_region_code(candidate):
            logger.info(f"Phone region: {candidate}")
            return candidate
        logger.warning(f"Ignoring unsupported phone region '{provided_region}'")

    detected = detect_region_from_locale() if auto_detect else None
    if detected:
        logger.info(f"Phone region from system locale: {detected}")
        return detected

    if require_explicit:
        logger.warning("No phone region given and none could be detected")
        return None

    logger.warning(
        f"No phone region given or detected, assuming {DEFAULT_REGION} "
        f"(use --phone-region to override)"
    )
    return DEFAULT_REGION


def digits_only(phone: str) -> str:
    """Strip every non-digit character from a phone number."""
    return _NON_DIGITS.sub('', phone or '')


def _parse_phone(phone_number: str, region: Optional[str]):
    """
    Parse a phone number, returning None when phonenumbers rejects it.

    :param phone_number: Phone number string to parse
    :param region: Region code for parsing (None for international format)
    :return: Parsed PhoneNumber or None
    """
    try:
        return phonenumbers.parse(phone_number, region)
    except NumberParseException:
        return None


def _possible_e164(phone: str, region: Optional[str]) -> Optional[str]:
    """
    Format a phone number as E.164 when it is a possible number.

    Possibility is a length check only, so test and reserved ranges such as
    555 numbers still get a key.
    """
    parsed = _parse_phone(phone, region)
    if parsed is None and phone.startswith('+'):
        parsed = _parse_phone(phone, None)
    if parsed is None or not phonenumbers.is_possible_number(parsed):
        return None
    return phonenumbers.format_number(
        parsed,
        phonenumbers.PhoneNumberFormat.E164
    )


def phone_match_keys(
    phone: Any,
    region: Optional[str] = DEFAULT_REGION
) -> Set[str]:
    """
    Compute the comparison keys of a phone number.

    :param phone: Phone number string
    :param region: Default region for numbers without a country code
    :return: Set of keys; empty for non-string or blank input
    """
    if not isinstance(phone, str) or not phone.strip():
        return set()

    phone = phone.strip()
    digits = digits_only(phone)
    if not digits:
        return {phone.lower()}

    keys = {digits}
    e164 = _possible_e164(phone, region)
    if e164:
        keys.add(e164)
    return keys


def phones_match(
    phone_a: Any,
    phone_b: Any,
    region: Optional[str] = DEFAULT_REGION
) -> bool:
    """Check whether two phone numbers share a comparison key."""
    return bool(
        phone_match_keys(phone_a, region) & phone_match_keys(phone_b, region)
    )


def normalize_phone_to_e164(
    phone_number: str,
    default_region: str = DEFAULT_REGION
) -> Optional[str]:
    """
    Rewrite a valid phone number in E.164 form.

    "0646432757" read in region "NL" becomes "+31646432757". Numbers that
    phonenumbers does not consider valid are not rewritten.

    :param phone_number: Phone number as entered
    :param default_region: Region for numbers without a country code
    :return: E.164 string, or None when the number is not valid
    """
    text = (phone_number or '').strip()
    if not text:
        return None

    regions = [default_region]
    if text.startswith('+'):
        regions.append(None)

    for region in regions:
        parsed = _parse_phone(text, region)
        if parsed is not None and phonenumbers.is_valid_number(parsed):
            return phonenumbers.format_number(
                parsed,
                phonenumbers.PhoneNumberFormat.E164
            )

    logger.debug(f"Not a valid number, left as is: {text}")
    return None


def normalize_contact_phones(
    contact: Dict[str, Any],
    default_region: str = DEFAULT_REGION
) -> Tuple[Dict[str, Any], int, int]:
    """
    Rewrite the phones of one contact in E.164 form.

    Numbers that are not valid keep their original text. Numbers that end up
    with the same E.164 value are kept once.

    :param contact: Contact with contact_info.phones
    :param default_region: Region for numbers without a country code
    :return: (new contact, rewritten count, left-as-is count)
    """
    contact_info = contact.get('contact_info')
    if not isinstance(contact_info, dict) or not contact_info.get('phones'):
        return contact, 0, 0

    rewritten = 0
    kept_as_is = 0
    phones: List[str] = []

    for phone in contact_info['phones']:
        if not isinstance(phone, str):
            continue
        e164 = normalize_phone_to_e164(phone, default_region)
        if e164 is None:
            kept_as_is += 1
            logger.debug(
                f"Keeping '{phone}' of {contact.get('name') or 'Unknown'} unchanged"
            )
            e164 = phone
        else:
            rewritten += 1
        if e164 not in phones:
            phones.append(e164)

    updated = dict(contact)
    updated['contact_info'] = dict(contact_info, phones=phones)
    return updated, rewritten, kept_as_is


def normalize_contacts_phones(
    contacts: List[Dict[str, Any]],
    default_region: str = DEFAULT_REGION
) -> Tuple[List[Dict[str, Any]], Dict[str, int]]:
    """
    Rewrite the phones of every contact in E.164 form.

    :param contacts: Contacts to process
    :param default_region: Region for numbers without a country code
    :return: (new contacts, statistics)
    """
    stats = dict.fromkeys(
        ('contacts_with_phones', 'total_phones', 'normalized_phones',
         'failed_normalizations'),
        0
    )
    stats['total_contacts'] = len(contacts)

    results = []
    for contact in contacts:
        updated, rewritten, kept_as_is = normalize_contact_phones(
            contact, default_region
        )
        if rewritten or kept_as_is:
            stats['contacts_with_phones'] += 1
        stats['total_phones'] += rewritten + kept_as_is
        stats['normalized_phones'] += rewritten
        stats['failed_normalizations'] += kept_as_is
        results.append(updated)

    logger.info(
        f"E.164 rewrite: {stats['normalized_phones']} of "
        f"{stats['total_phones']} phones, "
        f"{stats['failed_normalizations']} left as entered"
    )
    return results, stats
