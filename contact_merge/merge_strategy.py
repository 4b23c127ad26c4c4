"""
Merge strategies selectable by the caller.

DeterministicMerge is the local merge path. AIAssistedMerge shares its
structured-field and list policy but takes the notes from an external
collaborator (usually a hosted language model). The two paths may produce
different notes: the assisted path keeps LinkedIn connection-date lines
that the deterministic path strips.
"""
# pylint: disable=logging-fstring-interpolation, broad-except

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from contact_merge.contact_merger import ContactMerger
from contact_merge.notes_reconciler import clean_notes, reconcile_notes

logger = logging.getLogger("contact_merge")

NotesMerger = Callable[[str, str, Dict[str, Any]], str]


class MergeStrategy(ABC):
    """Combines a confirmed duplicate pair into one contact."""

    name = "base"

    @abstractmethod
    def merge(self, existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge the incoming contact into the existing one.

        :param existing: Existing contact, whose identity is kept
        :param incoming: Incoming contact to absorb
        :return: New merged contact
        """


class DeterministicMerge(MergeStrategy):
    """Rule-based merge with local notes reconciliation."""

    name = "deterministic"

    def __init__(self, merger: Optional[ContactMerger] = None):
        self.merger = merger or ContactMerger()

    def merge(self, existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
        return self.merger.merge_contacts(existing, incoming)


class AIAssistedMerge(MergeStrategy):
    """
    Rule-based merge for fields and lists, collaborator-provided notes.

    The collaborator is called as notes_merger(existing_notes,
    incoming_notes, merged_contact) and returns the merged notes text. If it
    raises or returns something other than a string, the deterministic notes
    are used instead.
    """

    name = "ai"

    def __init__(
        self,
        notes_merger: NotesMerger,
        merger: Optional[ContactMerger] = None
    ):
        self.notes_merger = notes_merger
        self.merger = merger or ContactMerger()

    def merge(self, existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
        merged = self.merger.merge_fields(existing, incoming)
        existing_notes = existing.get('notes') if isinstance(existing.get('notes'), str) else ''
        incoming_notes = incoming.get('notes') if isinstance(incoming.get('notes'), str) else ''

        if not existing_notes.strip() or not incoming_notes.strip():
            merged['notes'] = reconcile_notes(existing_notes, incoming_notes)
            return merged

        try:
            notes = self.notes_merger(existing_notes, incoming_notes, dict(merged))
        except Exception as e:
            logger.warning(
                f"AI notes merge failed for contact {existing.get('id')}, "
                f"using deterministic notes: {e}"
            )
            notes = None

        if not isinstance(notes, str):
            if notes is not None:
                logger.warning(
                    f"AI notes merge returned {type(notes).__name__} for contact "
                    f"{existing.get('id')}, using deterministic notes"
                )
            notes = clean_notes(reconcile_notes(existing_notes, incoming_notes), merged)

        merged['notes'] = notes.strip()
        return merged


def get_merge_strategy(name: str = "deterministic", **kwargs: Any) -> MergeStrategy:
    """
    Build a merge strategy by name.

    :param name: "deterministic" or "ai"
    :param kwargs: Constructor arguments (notes_merger is required for "ai")
    :return: Merge strategy instance
    :raises ValueError: If the name is unknown or "ai" lacks a notes_merger
    """
    if name == DeterministicMerge.name:
        return DeterministicMerge(merger=kwargs.get('merger'))
    if name == AIAssistedMerge.name:
        notes_merger = kwargs.get('notes_merger')
        if notes_merger is None:
            raise ValueError("The 'ai' merge strategy requires a notes_merger")
        return AIAssistedMerge(notes_merger, merger=kwargs.get('merger'))
    raise ValueError(f"Unknown merge strategy: {name}")
