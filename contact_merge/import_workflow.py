"""
Import workflow: route incoming contacts to insert, merge, skip or keep-both.

Dependencies:
    - typing: Standard library for type hints
    - logging: Standard library for logging
    - contact_merge.duplicate_detector: Duplicate detection
    - contact_merge.merge_strategy: Merge strategies
    - contact_merge.contact_comparison: Information-content checks
"""
# pylint: disable=logging-fstring-interpolation

import logging
from typing import Any, Callable, Dict, List, Optional

from contact_merge.contact_comparison import has_less_or_equal_information
from contact_merge.contact_schema import normalize_contact
from contact_merge.duplicate_detector import DuplicateDetector
from contact_merge.logger import log_duplicate_match, log_merge_operation
from contact_merge.merge_strategy import DeterministicMerge, MergeStrategy

logger = logging.getLogger("contact_merge")

DECISION_MERGE = 'merge'
DECISION_SKIP = 'skip'
DECISION_KEEP_BOTH = 'keep-both'
DECISIONS = (DECISION_MERGE, DECISION_SKIP, DECISION_KEEP_BOTH)

Decider = Callable[[Dict[str, Any]], str]


def always_merge(match: Dict[str, Any]) -> str:
    """Default decider: merge every duplicate."""
    return DECISION_MERGE


def _new_contact(incoming: Dict[str, Any]) -> Dict[str, Any]:
    """Complete an incoming record into a full contact with a fresh id."""
    record = dict(incoming)
    record.pop('id', None)
    return normalize_contact(record)


def process_import(
    existing_contacts: List[Dict[str, Any]],
    incoming_contacts: List[Dict[str, Any]],
    strategy: Optional[MergeStrategy] = None,
    decide: Optional[Decider] = None,
    skip_identical: bool = True,
    detector: Optional[DuplicateDetector] = None
) -> Dict[str, Any]:
    """
    Import a batch of incoming contacts into an existing contact set.

    Incoming contacts without duplicates are inserted as new contacts. For a
    contact with duplicates the first match is resolved: it is skipped when
    it adds no information (unless skip_identical is False), otherwise the
    decider chooses merge, skip or keep-both. Merges apply to the current
    version of the existing contact, so several incoming contacts that match
    the same existing contact are merged one after another.

    :param existing_contacts: Existing contact records
    :param incoming_contacts: Incoming contact records (partial allowed)
    :param strategy: Merge strategy (defaults to DeterministicMerge)
    :param decide: Callable returning a decision for a duplicate match
    :param skip_identical: Whether to skip duplicates that add nothing
    :param detector: Duplicate detector to use
    :return: Dictionary with contacts, matches, merged_ids and stats
    """
    strategy = strategy or DeterministicMerge()
    decide = decide or always_merge
    detector = detector or DuplicateDetector()

    existing = []
    seen_ids = set()
    for record in existing_contacts:
        contact = normalize_contact(record)
        if contact['id'] in seen_ids:
            logger.warning(f"Ignoring repeated existing contact id {contact['id']}")
            continue
        seen_ids.add(contact['id'])
        existing.append(contact)
    incoming = [normalize_contact(record, partial=True) for record in incoming_contacts]

    all_matches = detector.find_duplicates_batch(existing, incoming)

    current = {contact['id']: contact for contact in existing}
    new_contacts: List[Dict[str, Any]] = []
    reported_matches: List[Dict[str, Any]] = []
    merged_ids: List[str] = []
    stats = {
        'total_existing': len(existing),
        'total_incoming': len(incoming),
        'new_contacts': 0,
        'merged': 0,
        'skipped': 0,
        'kept_both': 0,
    }

    for contact, matches in zip(incoming, all_matches):
        if not matches:
            new_contacts.append(_new_contact(contact))
            stats['new_contacts'] += 1
            continue

        match = dict(matches[0])
        match['existing'] = current[match['existing']['id']]
        reported_matches.append(match)
        log_duplicate_match(
            logger, len(reported_matches), match, detector.describe_match(match)
        )
        if len(matches) > 1:
            logger.debug(
                f"  {len(matches) - 1} further match(es) not resolved for "
                f"{contact.get('name') or 'Unknown'}"
            )

        if skip_identical and has_less_or_equal_information(
            match['existing'], contact, detector.phone_region
        ):
            logger.info(
                f"Skipping {contact.get('name') or 'Unknown'}: no new information"
            )
            stats['skipped'] += 1
            continue

        decision = decide(match)
        if decision not in DECISIONS:
            logger.warning(f"Unknown merge decision {decision!r}, skipping")
            decision = DECISION_SKIP

        if decision == DECISION_SKIP:
            stats['skipped'] += 1
        elif decision == DECISION_KEEP_BOTH:
            new_contacts.append(_new_contact(contact))
            stats['kept_both'] += 1
        else:
            target = match['existing']
            merged = strategy.merge(target, contact)
            current[target['id']] = merged
            if target['id'] not in merged_ids:
                merged_ids.append(target['id'])
            stats['merged'] += 1
            log_merge_operation(logger, merged, target, contact, strategy.name)

    contacts = [current[contact['id']] for contact in existing] + new_contacts
    stats['final_contacts'] = len(contacts)

    return {
        'contacts': contacts,
        'new_contacts': new_contacts,
        'matches': reported_matches,
        'merged_ids': merged_ids,
        'stats': stats,
    }
