"""
Preview generation and display module.

This module provides functionality to generate and display previews of
duplicate detection and merge results of an import.

Dependencies:
    - typing: Standard library for type hints
    - logging: Standard library for logging
    - pathlib: Standard library for path handling
    - json: Standard library for JSON serialization
"""
# pylint: disable=logging-fstring-interpolation

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from contact_merge.contact_schema import get_contact_values

logger = logging.getLogger("contact_merge")

MAX_MATCHES_TO_SHOW = 10


class PreviewGenerator:
    """
    Generates and displays previews of duplicate detection and merging.
    """

    def __init__(self) -> None:
        """Initialize the preview generator."""
        self.preview_data: Dict[str, Any] = {
            'matches': [],
            'statistics': {}
        }

    def _summarize_contact(self, contact: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'id': contact.get('id'),
            'name': contact.get('name') or 'Unknown',
            'phones': get_contact_values(contact, 'phones'),
            'emails': get_contact_values(contact, 'emails'),
        }

    def generate_preview(self, import_result: Dict[str, Any]) -> Dict[str, Any]:
        """
        Generate preview data from an import result.

        :param import_result: Result dictionary of process_import()
        :return: Preview data dictionary
        """
        merged_ids = set(import_result.get('merged_ids', []))
        contacts_by_id = {
            contact.get('id'): contact
            for contact in import_result.get('contacts', [])
        }

        self.preview_data['matches'] = []
        for match_id, match in enumerate(import_result.get('matches', []), 1):
            existing_id = match['existing'].get('id')
            merged = contacts_by_id.get(existing_id) if existing_id in merged_ids else None
            self.preview_data['matches'].append({
                'id': match_id,
                'match_type': match.get('match_type'),
                'match_value': match.get('match_value'),
                'name_similarity': match.get('name_similarity'),
                'existing': self._summarize_contact(match['existing']),
                'incoming': self._summarize_contact(match['incoming']),
                'merged_contact': self._summarize_contact(merged) if merged else None,
            })

        self.preview_data['statistics'] = dict(import_result.get('stats', {}))
        return self.preview_data

    def display_preview(
        self,
        preview_data: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Display preview in the console.

        :param preview_data: Preview data dictionary (uses self.preview_data
                             if None)
        """
        if preview_data is None:
            preview_data = self.preview_data

        stats = preview_data.get('statistics', {})
        matches = preview_data.get('matches', [])

        print("\n" + "=" * 80)
        print("DUPLICATE DETECTION PREVIEW")
        print("=" * 80)
        print()

        print("STATISTICS:")
        print(f"  Existing contacts: {stats.get('total_existing', 0)}")
        print(f"  Incoming contacts: {stats.get('total_incoming', 0)}")
        print(f"  Duplicates found: {len(matches)}")
        print(f"  New contacts: {stats.get('new_contacts', 0)}")
        print(f"  Merged: {stats.get('merged', 0)}")
        print(f"  Skipped: {stats.get('skipped', 0)}")
        print(f"  Kept both: {stats.get('kept_both', 0)}")
        print(f"  Final contact count: {stats.get('final_contacts', 0)}")
        print()

        matches_to_show = matches[:MAX_MATCHES_TO_SHOW]
        if matches_to_show:
            print(f"DUPLICATES (showing first {len(matches_to_show)}):")
            print()
            for match in matches_to_show:
                self._display_match(match)

            if len(matches) > MAX_MATCHES_TO_SHOW:
                remaining = len(matches) - MAX_MATCHES_TO_SHOW
                print(f"... and {remaining} more duplicates")
                print()

        print("=" * 80)
        print()

    def _display_match(self, match: Dict[str, Any]) -> None:
        """
        Display a single duplicate pair and its merge result.

        :param match: Preview entry for one duplicate
        """
        print(
            f"Duplicate #{match['id']} (matched by {match['match_type']}: "
            f"{match['match_value']})"
        )
        for label in ('existing', 'incoming', 'merged_contact'):
            contact = match.get(label)
            if not contact:
                continue
            print(f"  {label.replace('_contact', '').capitalize()}: {contact['name']}")
            if contact.get('phones'):
                print(f"     Phones: {self._format_list(contact['phones'])}")
            if contact.get('emails'):
                print(f"     Emails: {self._format_list(contact['emails'])}")
        print()

    def _format_list(self, values: List[str], max_display: int = 3) -> str:
        """
        Format a value list for display.

        :param values: Values to show
        :param max_display: Maximum number of values to display
        :return: Formatted string
        """
        text = ', '.join(values[:max_display])
        if len(values) > max_display:
            text += f" (+{len(values) - max_display} more)"
        return text

    def save_preview_to_file(
        self,
        output_path: Path,
        preview_data: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Save preview data to a JSON file.

        :param output_path: Path where preview should be saved
        :param preview_data: Preview data dictionary (uses self.preview_data
                             if None)
        """
        if preview_data is None:
            preview_data = self.preview_data

        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(preview_data, f, indent=2, ensure_ascii=False)

        logger.info(f"Preview saved to {output_path}")
