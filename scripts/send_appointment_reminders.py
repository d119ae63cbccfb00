"""Run one appointment reminder pass and exit.

    python scripts/send_appointment_reminders.py

Sends the send-now, T-10 and T-5 push reminders that are due right now.
Exits non-zero when the pass fails, so a scheduler can notice.
"""
import asyncio
import logging
import sys
from pathlib import Path

# Resolve project root so imports work when run from any cwd
_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_ROOT))

from db.connection import dispose_engine, get_db
from services.reminders import run_reminders

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)


async def main() -> dict:
    try:
        async with get_db() as session:
            return await run_reminders(session)
    finally:
        await dispose_engine()


if __name__ == "__main__":
    try:
        summary = asyncio.run(main())
    except Exception:
        logger.exception("Reminder pass failed")
        sys.exit(1)
    logger.info("Done: %s", summary)
