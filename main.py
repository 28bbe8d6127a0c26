#!/usr/bin/env python3
"""
chatnimate - text animation for chat messages

Reads lines from stdin and turns them into a single animated message:
- The first line is posted as a new message
- Every following line edits that same message
- With --loop the whole input is replayed until interrupted

Architecture:
- Domain: Value objects, errors and endpoint interfaces
- Application: Frame sources, updater and the animation service
- Infrastructure: Slack/Telegram/terminal endpoints, stdin reader
- Presentation: Command line interface
"""

import asyncio
import logging
import signal
import sys
from typing import Optional, Sequence

from application.services.animation_service import AnimationService
from application.services.updater import UpdaterOptions
from domain.exceptions import AnimationError, OperationCancelled
from domain.services.messaging_service import IMessagingEndpoint
from infrastructure.io.line_reader import StreamLineReader
from infrastructure.messaging.preview_endpoint import PreviewEndpoint
from infrastructure.messaging.slack_endpoint import SlackEndpoint
from infrastructure.messaging.telegram_endpoint import TelegramEndpoint
from presentation.cli import CliOptions, log_update, parse_options
from shared.cancellation import CancellationToken
from shared.logging.config import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def build_endpoint(options: CliOptions) -> IMessagingEndpoint:
    """Pick the messaging endpoint for the selected backend"""
    if options.preview:
        return PreviewEndpoint()
    if options.backend == "telegram":
        return TelegramEndpoint.from_token(options.token)
    return SlackEndpoint(options.token, api_url=options.api_url)


def install_signal_handlers(token: CancellationToken) -> None:
    """Cancel the run on SIGINT/SIGTERM (Unix only)"""
    if sys.platform == "win32":
        return
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _on_signal, sig, token)


def _on_signal(sig: signal.Signals, token: CancellationToken) -> None:
    logger.info(f"Got {sig.name} signal. Aborting...")
    token.cancel()


async def run(options: CliOptions, stdin=None) -> None:
    """Animate stdin according to `options` until input ends or the run is cancelled"""
    if options.timeout:
        token = CancellationToken.with_timeout(options.timeout)
    else:
        token = CancellationToken()
    install_signal_handlers(token)

    endpoint = build_endpoint(options)
    service = AnimationService(
        endpoint,
        loop=options.loop,
        max_frames=options.max_frames,
        options=UpdaterOptions(
            min_delay=options.delay,
            on_update=None if options.preview else log_update,
            style=options.style,
        ),
    )
    reader = StreamLineReader(stdin or sys.stdin.buffer)

    try:
        await service.animate(reader, options.channel or "preview", token)
    finally:
        await endpoint.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    options = parse_options(argv)
    setup_logging(options.log_level, options.log_dir)

    try:
        asyncio.run(run(options))
    except OperationCancelled as e:
        logger.info(f"Animation stopped: {e}")
    except AnimationError as e:
        logger.error(f"Fatal error: {e}")
        return EXIT_FAILURE
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
