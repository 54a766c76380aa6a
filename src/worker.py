from __future__ import annotations

import asyncio
import logging
import os

from src.adapters.api.dependencies import get_poll_scheduler, get_runtime_config

logger = logging.getLogger(__name__)


async def _main() -> int:
    scheduler = get_poll_scheduler()

    loop = os.getenv("WORKER_LOOP", "1").strip().lower() not in {"0", "false", "no"}
    if not loop:
        report = await scheduler.run_once()
        return 0 if report is not None else 1

    await scheduler.run_forever()
    return 0


def main() -> None:
    """Run the feed poller without the HTTP server (useful for smoke-testing feeds)."""

    config = get_runtime_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        code = asyncio.run(_main())
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return
    if code:
        raise SystemExit(code)


if __name__ == "__main__":
    main()
