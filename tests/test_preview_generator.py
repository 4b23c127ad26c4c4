"""
Unit tests for preview generation.
"""

import json

from contact_merge.import_workflow import process_import
from contact_merge.preview_generator import MAX_MATCHES_TO_SHOW, PreviewGenerator


def _import_result(make_contact):
    existing = [make_contact(id='1', name='John Doe', contact_info={'emails': ['j@x.com']})]
    incoming = [
        {'name': 'Johnny Doe', 'contact_info': {'emails': ['J@x.com'], 'phones': ['555-123-4567']}},
        {'name': 'New Person'},
    ]
    return process_import(existing, incoming)


def test_generate_preview(make_contact):
    preview = PreviewGenerator().generate_preview(_import_result(make_contact))

    assert len(preview['matches']) == 1
    match = preview['matches'][0]
    assert match['id'] == 1
    assert match['match_type'] == 'email'
    assert match['existing']['id'] == '1'
    assert match['merged_contact']['name'] == 'Johnny Doe'
    assert match['merged_contact']['phones'] == ['555-123-4567']
    assert preview['statistics']['new_contacts'] == 1
    assert preview['statistics']['final_contacts'] == 2


def test_skipped_match_has_no_merged_contact(make_contact):
    result = process_import(
        [make_contact(id='1', name='John Doe')],
        [{'name': 'John Doe', 'role': 'CEO'}],
        decide=lambda match: 'skip',
    )

    preview = PreviewGenerator().generate_preview(result)

    assert preview['matches'][0]['merged_contact'] is None


def test_display_preview(capsys, make_contact):
    generator = PreviewGenerator()
    generator.generate_preview(_import_result(make_contact))

    generator.display_preview()

    out = capsys.readouterr().out
    assert 'DUPLICATE DETECTION PREVIEW' in out
    assert 'matched by email: J@x.com' in out
    assert 'Final contact count: 2' in out


def test_display_preview_truncates(capsys):
    preview = {
        'statistics': {},
        'matches': [
            {
                'id': i,
                'match_type': 'name',
                'match_value': 'X',
                'existing': {'name': 'X'},
                'incoming': {'name': 'X'},
                'merged_contact': None,
            }
            for i in range(1, MAX_MATCHES_TO_SHOW + 3)
        ],
    }

    PreviewGenerator().display_preview(preview)

    assert '... and 2 more duplicates' in capsys.readouterr().out


def test_format_list():
    assert PreviewGenerator()._format_list(['a', 'b', 'c', 'd', 'e']) == 'a, b, c (+2 more)'


def test_save_preview(tmp_path, make_contact):
    generator = PreviewGenerator()
    preview = generator.generate_preview(_import_result(make_contact))
    path = tmp_path / 'previews' / 'preview.json'

    generator.save_preview_to_file(path)

    assert json.loads(path.read_text(encoding='utf-8')) == preview
