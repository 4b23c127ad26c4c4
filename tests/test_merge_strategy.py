"""
Unit tests for the merge strategies.
"""

import pytest

from contact_merge.contact_merger import ContactMerger
from contact_merge.merge_strategy import (
    AIAssistedMerge,
    DeterministicMerge,
    MergeStrategy,
    get_merge_strategy,
)


@pytest.fixture
def merger(fixed_clock):
    return ContactMerger(clock=fixed_clock)


class TestDeterministicMerge:
    """Tests for the local merge path."""

    def test_delegates_to_merger(self, merger, make_contact):
        strategy = DeterministicMerge(merger)
        existing = make_contact(notes='Connected: 2021-01-01\nMet in Rome')

        merged = strategy.merge(existing, {'role': 'CTO', 'notes': 'Title: CTO'})

        assert merged['role'] == 'CTO'
        assert merged['notes'] == 'Met in Rome'
        assert strategy.name == 'deterministic'

    def test_is_a_merge_strategy(self):
        assert isinstance(DeterministicMerge(), MergeStrategy)

    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            MergeStrategy()


class TestAIAssistedMerge:
    """Tests for the collaborator-backed merge path."""

    def test_uses_collaborator_notes(self, merger, make_contact):
        calls = []

        def notes_merger(existing_notes, incoming_notes, merged):
            calls.append((existing_notes, incoming_notes, merged['role']))
            return '  Met in Rome\nLinkedIn connected: 2021-01-01  '

        strategy = AIAssistedMerge(notes_merger, merger)
        merged = strategy.merge(
            make_contact(notes='Met in Rome'),
            {'role': 'CTO', 'notes': 'LinkedIn connected: 2021-01-01'},
        )

        assert calls == [('Met in Rome', 'LinkedIn connected: 2021-01-01', 'CTO')]
        assert merged['notes'] == 'Met in Rome\nLinkedIn connected: 2021-01-01'
        assert merged['role'] == 'CTO'
        assert strategy.name == 'ai'

    def test_collaborator_skipped_when_one_side_blank(self, merger, make_contact):
        def notes_merger(existing_notes, incoming_notes, merged):
            raise AssertionError('should not be called')

        merged = AIAssistedMerge(notes_merger, merger).merge(
            make_contact(notes=''),
            {'notes': 'Connected: 2021-01-01'},
        )

        assert merged['notes'] == 'Connected: 2021-01-01'

    def test_falls_back_on_failure(self, merger, make_contact):
        def notes_merger(existing_notes, incoming_notes, merged):
            raise RuntimeError('model unavailable')

        merged = AIAssistedMerge(notes_merger, merger).merge(
            make_contact(notes='Met at conference\nCompany: Acme'),
            {'notes': 'Met at conference\nRole: CEO'},
        )

        assert merged['notes'] == 'Company: Acme\nRole: CEO\n\nMet at conference'

    def test_falls_back_on_non_string_result(self, merger, make_contact):
        merged = AIAssistedMerge(lambda *args: {'notes': 'x'}, merger).merge(
            make_contact(notes='A'),
            {'notes': 'B'},
        )

        assert merged['notes'] == 'A\nB'

    def test_identity_from_existing(self, merger, make_contact):
        merged = AIAssistedMerge(lambda *args: 'notes', merger).merge(
            make_contact(id='keep', source='google', notes='x'),
            make_contact(id='drop', source='linkedin', notes='y'),
        )

        assert merged['id'] == 'keep'
        assert merged['source'] == 'google'


class TestGetMergeStrategy:
    """Tests for strategy lookup by name."""

    def test_deterministic(self):
        assert isinstance(get_merge_strategy('deterministic'), DeterministicMerge)

    def test_ai_requires_notes_merger(self):
        with pytest.raises(ValueError):
            get_merge_strategy('ai')

    def test_ai(self):
        strategy = get_merge_strategy('ai', notes_merger=lambda *args: '')

        assert isinstance(strategy, AIAssistedMerge)

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_merge_strategy('magic')
