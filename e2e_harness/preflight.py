"""Check that the application under test is reachable before running."""

import asyncio
import logging

import aiohttp

from e2e_harness.errors import RunnerFatal

log = logging.getLogger(__name__)

VERIFY_ATTEMPTS = 3
VERIFY_INTERVAL = 1.0
VERIFY_TIMEOUT = 5.0


async def verify_server(
    base_url: str,
    *,
    attempts: int = VERIFY_ATTEMPTS,
    interval: float = VERIFY_INTERVAL,
    timeout: float = VERIFY_TIMEOUT,
) -> None:
    """Request ``base_url`` until any HTTP response comes back.

    Error statuses count as reachable; only connection failures and timeouts
    are retried.

    Raises:
        RunnerFatal: If the server does not answer within ``attempts`` tries

    """
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    async with aiohttp.ClientSession(timeout=client_timeout) as session:
        for attempt in range(1, attempts + 1):
            try:
                async with session.get(base_url) as response:
                    log.info(
                        "Verified %s is running (HTTP %d)", base_url, response.status
                    )
                    return
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                log.warning(
                    "Server at %s not reachable (attempt %d of %d): %s",
                    base_url,
                    attempt,
                    attempts,
                    e,
                )
            if attempt < attempts:
                await asyncio.sleep(interval)

    raise RunnerFatal(
        f"Could not verify that this server is running: {base_url}. "
        "Start the application or set verifyServer: false"
    )
