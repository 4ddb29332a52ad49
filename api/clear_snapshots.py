"""
Script to clear stored flashcard, quiz, attempt and XP snapshots.

Usage:
    python clear_snapshots.py                 # clear everything
    python clear_snapshots.py quiz_attempts   # clear selected keys
"""
import sys
import logging
from studywithme.core.database import engine, init_db
from studywithme.core.exceptions import PersistenceError
from studywithme.services.storage_service import (
    SnapshotStorage,
    FLASHCARDS_KEY,
    QUIZZES_KEY,
    QUIZ_ATTEMPTS_KEY,
    XP_LEDGER_KEY,
)

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

ALL_KEYS = [FLASHCARDS_KEY, QUIZZES_KEY, QUIZ_ATTEMPTS_KEY, XP_LEDGER_KEY]


def clear_snapshots(keys):
    """Delete the snapshots stored under the given keys."""
    init_db(engine)
    storage = SnapshotStorage(engine)
    for key in keys:
        if storage.delete(key):
            logger.info(f"Deleted snapshot '{key}'")
        else:
            logger.info(f"No snapshot stored under '{key}'")


if __name__ == "__main__":
    keys = sys.argv[1:] or ALL_KEYS
    unknown = [key for key in keys if key not in ALL_KEYS]
    if unknown:
        logger.error(f"Unknown snapshot key(s): {', '.join(unknown)}. Valid keys: {', '.join(ALL_KEYS)}")
        sys.exit(2)

    logger.info("Starting snapshot clearing...")
    try:
        clear_snapshots(keys)
        logger.info("Successfully completed!")
    except PersistenceError as e:
        logger.error(f"Error during snapshot clearing: {e}", exc_info=True)
        sys.exit(1)
