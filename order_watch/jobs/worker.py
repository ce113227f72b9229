"""
Order watch worker runner.

Loads the watch file named by ORDER_WATCH_CONFIG (or the first CLI arg),
then runs the poll loop until it is signalled to stop or gives up after a
sustained run of failing ticks.

Exit codes: 0 on shutdown, 1 on sustained failure, 2 on bad startup config.
"""

import asyncio
import signal
import sys

from order_watch.config import settings
from order_watch.infrastructure.observability.logging import get_logger, setup_logging
from order_watch.jobs.poll_loop import PollLoop, SustainedFailureError
from order_watch.models.domain.config_domain import ConfigError
from order_watch.models.domain.phone import PhoneNumberError
from order_watch.services.config_loader import ConfigLoader
from order_watch.services.notifier import build_notifier
from order_watch.services.order_status_client import OrderStatusClient

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_SUSTAINED_FAILURE = 1
EXIT_BAD_CONFIG = 2


def _resolve_config_path() -> str | None:
    """Pick the watch file from CLI args, else defer to settings."""
    if len(sys.argv) > 1:
        return sys.argv[1].strip()
    return None


def _install_signal_handlers(loop: PollLoop) -> None:
    event_loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            event_loop.add_signal_handler(sig, loop.request_stop)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            signal.signal(sig, lambda *_: loop.request_stop())


async def run_worker(config_path: str | None = None) -> int:
    """Run the poll loop and return the process exit code."""
    loader = ConfigLoader(config_path)

    try:
        snapshot = loader.load()
    except (ConfigError, PhoneNumberError) as e:
        logger.error("Unable to load watch file", error=str(e), error_type=type(e).__name__)
        return EXIT_BAD_CONFIG

    client = OrderStatusClient(**settings.get_fetch_config())
    poll_loop = PollLoop(
        snapshot=snapshot,
        config_source=loader,
        fetcher=client,
        notifier=build_notifier(settings),
    )
    _install_signal_handlers(poll_loop)

    try:
        await poll_loop.run()
    except SustainedFailureError as e:
        logger.error(
            "Order watch giving up",
            consecutive_errors=e.consecutive_errors,
            limit=e.limit,
        )
        return EXIT_SUSTAINED_FAILURE
    except PhoneNumberError as e:
        logger.error("Reloaded watch file has a malformed phone number", error=str(e), raw=e.raw)
        return EXIT_BAD_CONFIG
    finally:
        await client.close()

    return EXIT_OK


def main() -> None:
    """CLI entrypoint."""
    setup_logging(settings.LOG_LEVEL)
    sys.exit(asyncio.run(run_worker(_resolve_config_path())))


if __name__ == "__main__":
    main()
