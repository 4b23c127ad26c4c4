#!/usr/bin/env python3
"""
Main entry point for the contact merge tool.

This module provides the command-line interface for importing a batch of
contacts into an existing contact file: argument parsing, workflow
orchestration, and user interaction.

Dependencies:
    - argparse: Standard library for command-line argument parsing
    - sys: Standard library for system-specific parameters
    - pathlib: Standard library for path handling
    - contact_merge.contact_store: Local module for JSON contact files
    - contact_merge.import_workflow: Local module for duplicate routing
    - contact_merge.preview_generator: Local module for preview generation
    - contact_merge.logger: Local module for logging configuration
"""
# pylint: disable=logging-fstring-interpolation, broad-except

import argparse
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from contact_merge.contact_store import (
    load_contacts,
    save_contacts,
    validate_contacts_file,
)
from contact_merge.csv_exporter import export_contacts_to_csv
from contact_merge.duplicate_detector import DuplicateDetector
from contact_merge.import_workflow import (
    DECISION_KEEP_BOTH,
    DECISION_MERGE,
    DECISION_SKIP,
    process_import,
)
from contact_merge.contact_merger import ContactMerger
from contact_merge.logger import log_statistics, setup_logger
from contact_merge.merge_strategy import DeterministicMerge
from contact_merge.phone_normalizer import (
    DEFAULT_REGION,
    get_default_region,
    normalize_contacts_phones,
)
from contact_merge.preview_generator import PreviewGenerator

_DECISION_ANSWERS = {
    '': DECISION_MERGE,
    'm': DECISION_MERGE,
    'merge': DECISION_MERGE,
    's': DECISION_SKIP,
    'skip': DECISION_SKIP,
    'k': DECISION_KEEP_BOTH,
    'keep': DECISION_KEEP_BOTH,
    'keep-both': DECISION_KEEP_BOTH,
}


def _create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    :return: Configured argument parser
    """
    parser = argparse.ArgumentParser(
        description='Import contacts into a contact file, merging duplicates',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--existing', '-e',
        type=str,
        required=True,
        help='Path to the existing contacts JSON file (created if missing)'
    )

    parser.add_argument(
        '--incoming', '-i',
        type=str,
        required=True,
        help='Path to the incoming contacts JSON file'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        default=None,
        help='Path to the output JSON file (default: overwrite --existing)'
    )

    parser.add_argument(
        '--preview', '-p',
        action='store_true',
        default=True,
        help='Show the import preview and save it next to the output (default)'
    )

    parser.add_argument(
        '--no-preview',
        action='store_true',
        help='Do not show or save the import preview'
    )

    parser.add_argument(
        '--no-confirm',
        action='store_true',
        help='Merge every duplicate without prompting (use with caution)'
    )

    parser.add_argument(
        '--keep-identical',
        action='store_true',
        help='Do not auto-skip duplicates that add no new information'
    )

    parser.add_argument(
        '--no-validate',
        action='store_true',
        help='Do not re-read and check the written file'
    )

    parser.add_argument(
        '--log-level',
        type=str.upper,
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Log file verbosity (default: INFO)'
    )

    parser.add_argument(
        '--normalize-phones',
        action='store_true',
        default=False,
        help='Rewrite valid phone numbers as E.164 (+31612345678) in the output'
    )

    parser.add_argument(
        '--no-normalize-phones',
        action='store_true',
        help='Keep phone numbers as entered without asking'
    )

    parser.add_argument(
        '--phone-region',
        type=str,
        default=None,
        metavar='CODE',
        help='2-letter country code for phone numbers without a country '
             'code (e.g., US, GB, NL). Defaults to the system locale, '
             f'then {DEFAULT_REGION}.'
    )

    parser.add_argument(
        '--csv',
        '--export-csv',
        type=str,
        dest='csv_output',
        help='Export the resulting contacts to a CSV file (provide path)'
    )

    return parser


def _prompt_for_normalization(logger: Any) -> bool:
    """
    Ask whether phone numbers should be rewritten as E.164.

    :param logger: Logger instance
    :return: True when the user answers yes
    """
    try:
        response = input(
            "Rewrite phone numbers as E.164 (e.g. +31612345678)? (yes/no): "
        ).strip().lower()
    except (EOFError, KeyboardInterrupt):
        logger.info("No terminal input, keeping phone numbers as entered")
        return False
    return response in ('yes', 'y')


def _determine_phone_settings(
    args: argparse.Namespace,
    logger: Any
) -> tuple[bool, str]:
    """
    Determine phone region and output normalization settings.

    :param args: Parsed command-line arguments
    :param logger: Logger instance
    :return: Tuple of (normalize_phones, phone_region)
    """
    phone_region = get_default_region(
        provided_region=args.phone_region,
        auto_detect=True,
        require_explicit=False
    )

    if args.normalize_phones:
        normalize_phones = True
    elif args.no_normalize_phones or args.no_confirm:
        normalize_phones = False
    else:
        normalize_phones = _prompt_for_normalization(logger)

    return normalize_phones, phone_region


def _make_interactive_decider(
    detector: DuplicateDetector,
    logger: Any
) -> Callable[[Dict[str, Any]], str]:
    """
    Build a decider that asks the user about each duplicate.

    :param detector: DuplicateDetector used for match descriptions
    :param logger: Logger instance
    :return: Decider callable for process_import()
    """
    state = {'interactive': True}

    def decide(match: Dict[str, Any]) -> str:
        if not state['interactive']:
            return DECISION_MERGE

        existing = match['existing']
        incoming = match['incoming']
        print()
        print(f"Possible duplicate: {detector.describe_match(match)}")
        print(f"  Existing: {existing.get('name') or 'Unknown'} ({existing.get('id')})")
        print(f"  Incoming: {incoming.get('name') or 'Unknown'}")

        while True:
            try:
                response = input(
                    "Merge, skip or keep both? (m/s/k) [enter for merge]: "
                ).strip().lower()
            except (EOFError, KeyboardInterrupt):
                logger.info("Non-interactive mode detected, merging remaining duplicates")
                state['interactive'] = False
                return DECISION_MERGE
            if response in _DECISION_ANSWERS:
                return _DECISION_ANSWERS[response]
            print("Please answer m, s or k.")

    return decide


def _confirm_write(logger: Any, no_confirm: bool) -> bool:
    """
    Ask for confirmation before writing the output file.

    :param logger: Logger instance
    :param no_confirm: Whether to skip confirmation
    :return: True if should proceed, False otherwise
    """
    if no_confirm:
        return True
    try:
        response = input("\nWrite merged contacts? (yes/no): ").strip().lower()
        if response not in ['yes', 'y']:
            logger.info("Import cancelled by user")
            return False
    except (EOFError, KeyboardInterrupt):
        logger.info("Non-interactive mode, proceeding with write")
    return True


def _display_validation_report(
    validation_report: dict,
    output_path: Path
) -> None:
    """
    Print the output validation report.

    :param validation_report: Report of validate_contacts_file()
    :param output_path: Path to the written contact file
    """
    print("\n" + "=" * 80)
    print(f"OUTPUT CHECK: {output_path}")
    print("=" * 80)
    print(
        f"Contacts written: {validation_report['output_contact_count']} "
        f"(expected {validation_report['expected_contact_count']}), "
        f"readable: {'yes' if validation_report['parse_successful'] else 'no'}"
    )

    for title, marker, key in (
        ("Errors", "✗", 'errors'),
        ("Warnings", "⚠", 'warnings'),
    ):
        entries = validation_report[key]
        if entries:
            print(f"\n{title} ({len(entries)}):")
            for entry in entries:
                print(f"  {marker} {entry}")

    if validation_report['valid']:
        print("\n✓ Output file is valid and contains every contact")
    else:
        print("\n✗ Output file has problems, see errors above")
    print("=" * 80)


def _handle_validation(
    output_path: Path,
    final_contacts: list,
    skip_validation: bool,
    logger: Any
) -> None:
    """
    Validate output file if requested.

    :param output_path: Path to output file
    :param final_contacts: List of final contacts
    :param skip_validation: Whether to skip validation
    :param logger: Logger instance
    :raises SystemExit: If validation fails
    """
    if skip_validation:
        logger.info("Output validation skipped (--no-validate flag used)")
        return

    logger.info("Validating output file...")
    is_valid, validation_report = validate_contacts_file(
        output_path=output_path,
        expected_contact_count=len(final_contacts)
    )

    _display_validation_report(validation_report, output_path)

    if not is_valid:
        logger.error("Validation failed - output file may have issues")
        sys.exit(1)


def _handle_csv_export(
    csv_output: Optional[str],
    final_contacts: list,
    logger: Any
) -> None:
    """
    Export contacts to CSV if requested.

    :param csv_output: CSV output path or None
    :param final_contacts: List of contacts to export
    :param logger: Logger instance
    """
    if not csv_output:
        return

    csv_path = Path(csv_output)
    logger.info(f"Exporting {len(final_contacts)} contacts to CSV: {csv_path}")
    export_contacts_to_csv(final_contacts, csv_path)


def main(argv: Optional[list] = None) -> None:
    """Main application entry point."""
    parser = _create_argument_parser()
    args = parser.parse_args(argv)

    logger = setup_logger(log_level=args.log_level)
    preview_mode = args.preview and not args.no_preview

    normalize_phones, phone_region = _determine_phone_settings(args, logger)

    try:
        existing_path = Path(args.existing)
        incoming_path = Path(args.incoming)
        output_path = Path(args.output) if args.output else existing_path

        existing = load_contacts(existing_path, missing_ok=True)
        incoming = load_contacts(incoming_path, partial=True)

        if not incoming:
            logger.error("No contacts found in incoming file")
            sys.exit(1)

        detector = DuplicateDetector(phone_region=phone_region)
        strategy = DeterministicMerge(ContactMerger(phone_region=phone_region))
        decide = None
        if not args.no_confirm:
            decide = _make_interactive_decider(detector, logger)

        result = process_import(
            existing,
            incoming,
            strategy=strategy,
            decide=decide,
            skip_identical=not args.keep_identical,
            detector=detector
        )
        final_contacts = result['contacts']

        if normalize_phones:
            logger.info(
                f"Normalizing phone numbers to E.164 format (region: {phone_region})..."
            )
            final_contacts, _ = normalize_contacts_phones(
                final_contacts, default_region=phone_region
            )

        preview_gen = PreviewGenerator()
        preview_data = preview_gen.generate_preview(result)
        if preview_mode:
            preview_gen.display_preview(preview_data)

        if not _confirm_write(logger, args.no_confirm):
            sys.exit(0)

        logger.info(f"Writing {len(final_contacts)} contacts to {output_path}")
        save_contacts(final_contacts, output_path)

        _handle_validation(output_path, final_contacts, args.no_validate, logger)

        log_statistics(logger, result['stats'])
        logger.info("Contact import completed successfully!")

        if preview_mode:
            preview_file = output_path.parent / f"{output_path.stem}_preview.json"
            preview_gen.save_preview_to_file(preview_file, preview_data)

        _handle_csv_export(args.csv_output, final_contacts, logger)

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        sys.exit(1)
    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
