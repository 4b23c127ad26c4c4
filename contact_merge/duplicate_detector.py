"""
Duplicate detection module with prioritized signal matching.
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Set
import logging

from rapidfuzz import fuzz

from contact_merge.contact_schema import (
    get_contact_values,
    get_linkedin_urls,
    normalize_email,
    normalize_name,
)
from contact_merge.phone_normalizer import DEFAULT_REGION, phone_match_keys

logger = logging.getLogger("contact_merge")

PHONE_CACHE_SIZE = 10000


class DuplicateDetector:
    """
    Finds existing contacts that plausibly describe the same person as an
    incoming contact.

    Signals are tested in priority order (name, email, phone, LinkedIn URL)
    and the first one that hits is reported. An existing contact appears at
    most once per incoming contact.
    """

    def __init__(
        self,
        phone_region: Optional[str] = DEFAULT_REGION,
        phone_cache_size: int = PHONE_CACHE_SIZE
    ):
        """
        Initialize the duplicate detector.

        Args:
            phone_region: Default region for phones without a country code
            phone_cache_size: Most phone numbers whose keys are kept cached
        """
        self.phone_region = phone_region
        self.phone_cache_size = phone_cache_size
        self.phone_cache: Dict[str, Set[str]] = {}  # Cache phone keys

    def find_duplicates(
        self,
        existing_contacts: List[Dict[str, Any]],
        incoming: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        """
        Compare one incoming contact against every existing contact.

        Args:
            existing_contacts: Full existing contacts
            incoming: Incoming (possibly partial) contact

        Returns:
            Duplicate matches in existing-list order, one per existing id
        """
        incoming_name = normalize_name(incoming.get('name'))
        incoming_emails = get_contact_values(incoming, 'emails')
        incoming_phones = get_contact_values(incoming, 'phones')
        incoming_urls = get_linkedin_urls(incoming)

        matches = []
        for existing in self._unique_by_id(existing_contacts):
            match = None

            # Name
            if incoming_name and normalize_name(existing.get('name')) == incoming_name:
                match = self._make_match(existing, incoming, 'name', incoming.get('name'))

            # Email
            if match is None and incoming_emails:
                existing_emails = {
                    normalize_email(e) for e in get_contact_values(existing, 'emails')
                }
                for email in incoming_emails:
                    if normalize_email(email) in existing_emails:
                        match = self._make_match(existing, incoming, 'email', email)
                        break

            # Phone
            if match is None and incoming_phones:
                existing_keys = set()
                for phone in get_contact_values(existing, 'phones'):
                    existing_keys |= self._phone_keys(phone)
                for phone in incoming_phones:
                    if self._phone_keys(phone) & existing_keys:
                        match = self._make_match(existing, incoming, 'phone', phone)
                        break

            # LinkedIn identity URL, exact string only
            if match is None and incoming_urls:
                existing_urls = set(get_linkedin_urls(existing))
                for url in incoming_urls:
                    if url in existing_urls:
                        match = self._make_match(existing, incoming, 'linkedin', url)
                        break

            if match is not None:
                matches.append(match)

        logger.debug(
            f"{incoming.get('name') or 'Unnamed contact'}: "
            f"{len(matches)} duplicate(s) found"
        )
        return matches

    def find_duplicates_batch(
        self,
        existing_contacts: List[Dict[str, Any]],
        incoming_contacts: List[Dict[str, Any]]
    ) -> List[List[Dict[str, Any]]]:
        """
        Find duplicates for a batch of incoming contacts using lookup indexes.

        Produces exactly what find_duplicates() would produce for each
        incoming contact, without the pairwise scan.

        Args:
            existing_contacts: Full existing contacts
            incoming_contacts: Incoming (possibly partial) contacts

        Returns:
            One list of matches per incoming contact, in input order
        """
        logger.info(
            f"Checking {len(incoming_contacts)} incoming contacts against "
            f"{len(existing_contacts)} existing contacts..."
        )
        self.phone_cache.clear()

        existing = self._unique_by_id(existing_contacts)
        name_index = defaultdict(list)
        email_index = defaultdict(list)
        phone_index = defaultdict(list)
        linkedin_index = defaultdict(list)

        for position, contact in enumerate(existing):
            name_key = normalize_name(contact.get('name'))
            if name_key:
                name_index[name_key].append(position)
            for email in get_contact_values(contact, 'emails'):
                email_index[normalize_email(email)].append(position)
            for phone in get_contact_values(contact, 'phones'):
                for key in self._phone_keys(phone):
                    phone_index[key].append(position)
            for url in get_linkedin_urls(contact):
                linkedin_index[url].append(position)

        results = []
        for incoming in incoming_contacts:
            # position -> (match_type, match_value); first signal wins
            hits: Dict[int, tuple] = {}

            name_key = normalize_name(incoming.get('name'))
            if name_key:
                for position in name_index.get(name_key, []):
                    hits.setdefault(position, ('name', incoming.get('name')))

            email_hits = {}
            for email in get_contact_values(incoming, 'emails'):
                for position in email_index.get(normalize_email(email), []):
                    email_hits.setdefault(position, email)
            self._merge_hits(hits, email_hits, 'email')

            phone_hits = {}
            for phone in get_contact_values(incoming, 'phones'):
                for key in self._phone_keys(phone):
                    for position in phone_index.get(key, []):
                        phone_hits.setdefault(position, phone)
            self._merge_hits(hits, phone_hits, 'phone')

            linkedin_hits = {}
            for url in get_linkedin_urls(incoming):
                for position in linkedin_index.get(url, []):
                    linkedin_hits.setdefault(position, url)
            self._merge_hits(hits, linkedin_hits, 'linkedin')

            matches = [
                self._make_match(existing[position], incoming, match_type, value)
                for position, (match_type, value) in sorted(hits.items())
            ]
            results.append(matches)

        total = sum(1 for matches in results if matches)
        logger.info(f"Found duplicates for {total} of {len(incoming_contacts)} incoming contacts")
        return results

    def _merge_hits(
        self,
        hits: Dict[int, tuple],
        signal_hits: Dict[int, str],
        match_type: str
    ) -> None:
        """Record a signal's hits for positions not already matched."""
        for position, value in signal_hits.items():
            hits.setdefault(position, (match_type, value))

    def _unique_by_id(self, contacts: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Drop later contacts that repeat an id already seen."""
        unique = []
        seen = set()
        for contact in contacts:
            contact_id = contact.get('id')
            if contact_id in seen:
                continue
            seen.add(contact_id)
            unique.append(contact)
        return unique

    def _phone_keys(self, phone: str) -> Set[str]:
        """Phone comparison keys, cached per raw string for one batch."""
        keys = self.phone_cache.get(phone)
        if keys is None:
            keys = phone_match_keys(phone, self.phone_region)
            if len(self.phone_cache) >= self.phone_cache_size:
                self.phone_cache.clear()
            self.phone_cache[phone] = keys
        return keys

    def _make_match(
        self,
        existing: Dict[str, Any],
        incoming: Dict[str, Any],
        match_type: str,
        match_value: Any
    ) -> Dict[str, Any]:
        """Build a duplicate match record."""
        return {
            'existing': existing,
            'incoming': incoming,
            'match_type': match_type,
            'match_value': match_value or '',
            'name_similarity': self.name_similarity(existing, incoming),
        }

    def name_similarity(self, contact1: Dict[str, Any], contact2: Dict[str, Any]) -> float:
        """
        Score how similar two contact names are.

        The score is informational; it never decides a match.

        Args:
            contact1: First contact
            contact2: Second contact

        Returns:
            Similarity from 0 to 100, or 0 when either name is missing
        """
        name1 = normalize_name(contact1.get('name'))
        name2 = normalize_name(contact2.get('name'))
        if not name1 or not name2:
            return 0.0
        return round(fuzz.ratio(name1, name2), 1)

    def describe_match(self, match: Dict[str, Any]) -> str:
        """
        Describe why a duplicate was reported.

        Args:
            match: Duplicate match record

        Returns:
            Description of match criteria
        """
        labels = {
            'name': "Exact name",
            'email': "Email address",
            'phone': "Phone number",
            'linkedin': "LinkedIn URL",
        }
        label = labels.get(match.get('match_type'), "Unknown signal")
        description = f"{label} ({match.get('match_value')})"
        if match.get('match_type') != 'name':
            description += f", names {match.get('name_similarity', 0):.0f}% similar"
        return description
