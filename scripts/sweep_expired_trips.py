"""
One-shot expiry sweep.

Deletes every trip whose departure has passed, with its requests, messages
and notifications. Suitable for cron when the in-process sweeper is
disabled (EXPIRY_SWEEP_INTERVAL_SECONDS=0).
"""

import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from bunkride.app.core.observability import configure_logging
from bunkride.app.core.reliability import RetriesExhaustedError
from bunkride.app.db.session import AsyncSessionLocal, engine
from bunkride.app.services.expiry_sweeper import sweep_once

logger = logging.getLogger("bunkride.sweeper")


async def main() -> int:
    configure_logging()
    try:
        removed = await sweep_once(AsyncSessionLocal)
    except RetriesExhaustedError as e:
        logger.error("Sweep failed: %s", e.message)
        return 1
    finally:
        await engine.dispose()
    print(f"Removed {len(removed)} expired trip(s): {sorted(removed)}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
