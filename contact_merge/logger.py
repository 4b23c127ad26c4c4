"""
Logging setup and structured log helpers for contact imports.

Every module logs through logging.getLogger("contact_merge"). setup_logger()
attaches a concise console handler and a verbose per-run file handler.

Dependencies:
    - logging: Standard library for logging functionality
    - sys: Standard library for the console stream
    - pathlib: Standard library for path handling
    - datetime: Standard library for log file timestamps
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from logging import Logger

LOGGER_NAME = "contact_merge"
LOG_DIR = Path("logs")

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'


def setup_logger(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True
) -> Logger:
    """
    Configure the contact_merge logger for one run.

    :param log_level: Name of the logger level (DEBUG, INFO, WARNING, ERROR)
    :param log_file: Log file path; defaults to a timestamped file in logs/
    :param console_output: Whether INFO and above also go to stdout
    :return: The configured logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console_output:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.INFO)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console)

    if log_file is None:
        run_stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = LOG_DIR / f"{LOGGER_NAME}_{run_stamp}.log"
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    file_output = logging.FileHandler(log_file, encoding='utf-8')
    file_output.setLevel(logging.DEBUG)
    file_output.setFormatter(
        logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    )
    logger.addHandler(file_output)

    logger.info("Writing log to %s", log_file)
    return logger


def log_duplicate_match(
    logger: Logger,
    match_id: int,
    match: Dict[str, Any],
    reason: str
) -> None:
    """
    Log a detected duplicate pair.

    :param logger: Logger instance
    :param match_id: Sequence number of the match in this run
    :param match: Duplicate match dictionary
    :param reason: Description of how the duplicate was matched
    """
    existing = match.get('existing') or {}
    incoming = match.get('incoming') or {}
    logger.info(
        f"Duplicate #{match_id}: {incoming.get('name') or 'Unknown'} "
        f"matches existing {existing.get('name') or 'Unknown'}"
    )
    logger.debug(f"  Match criteria: {reason}")
    logger.debug(f"  Existing id: {existing.get('id')}")


def log_merge_operation(
    logger: Logger,
    merged_contact: Dict[str, Any],
    existing: Dict[str, Any],
    incoming: Dict[str, Any],
    strategy_name: str = "deterministic"
) -> None:
    """
    Log one merge of an incoming contact into an existing contact.

    :param logger: Logger instance
    :param merged_contact: Result of the merge
    :param existing: Contact that absorbed the incoming one
    :param incoming: Incoming contact
    :param strategy_name: Name of the merge strategy used
    """
    logger.info(
        f"Merged {incoming.get('name') or 'Unknown'} into "
        f"{merged_contact.get('name') or 'Unknown'} ({strategy_name})"
    )
    logger.debug(f"  Kept id: {merged_contact.get('id')}")
    logger.debug(
        f"  Names before merge: {existing.get('name')!r}, {incoming.get('name')!r}"
    )


def log_statistics(logger: Logger, stats: Dict[str, Any]) -> None:
    """
    Log the import summary.

    :param logger: Logger instance
    :param stats: Statistics of process_import()
    """
    rows = (
        ("Existing contacts", 'total_existing'),
        ("Incoming contacts", 'total_incoming'),
        ("New contacts added", 'new_contacts'),
        ("Contacts merged", 'merged'),
        ("Duplicates skipped", 'skipped'),
        ("Duplicates kept separately", 'kept_both'),
        ("Final contact count", 'final_contacts'),
    )
    logger.info("=" * 60)
    logger.info("IMPORT SUMMARY")
    logger.info("=" * 60)
    for label, key in rows:
        logger.info(f"{label}: {stats.get(key, 0)}")
    logger.info("=" * 60)
