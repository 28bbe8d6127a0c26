"""
Command line interface.

Every option falls back to the environment (see shared.config.settings),
so a .env file with SLACK_TOKEN and SLACK_CHANNEL is enough to run:

    tail -f build.log | chatnimate --delay 2
    cat frames.txt | chatnimate --loop --channel "#random"
"""

import argparse
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from domain.entities.update import UpdateOutcome
from domain.value_objects.style_options import StyleOptions
from shared.config.settings import Settings

logger = logging.getLogger(__name__)

__version__ = "1.0.1"

BACKENDS = ("slack", "telegram")

# Anything shorter would flood the messaging API
MIN_DELAY = 0.001


@dataclass
class CliOptions:
    """Validated command line options"""
    backend: str
    token: Optional[str]
    channel: Optional[str]
    delay: float
    loop: bool
    max_frames: int
    timeout: Optional[float]
    preview: bool
    style: StyleOptions
    log_level: str
    log_dir: Optional[str]
    api_url: str


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    animation = settings.animation
    parser = argparse.ArgumentParser(
        prog="chatnimate",
        description="Text animation for chat messages: posts the first line read from "
                    "stdin and edits the same message with every following line.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--backend", choices=BACKENDS, default=settings.backend,
        help="messaging service to post to (env: ANIMATE_BACKEND)",
    )
    parser.add_argument("-a", "--token", help="API token* (env: SLACK_TOKEN / TELEGRAM_TOKEN)")
    parser.add_argument("-c", "--channel", help="channel/destination* (env: SLACK_CHANNEL / TELEGRAM_CHAT_ID)")
    parser.add_argument("--username", default=settings.slack.username, help="override sender name (env: SLACK_USERNAME)")
    parser.add_argument("--icon-url", default=settings.slack.icon_url, help="override sender icon from url (env: SLACK_ICON_URL)")
    parser.add_argument("--icon-emoji", default=settings.slack.icon_emoji, help="override sender icon from emoji (env: SLACK_ICON_EMOJI)")
    parser.add_argument(
        "-d", "--delay", type=float, default=animation.delay,
        help="minimum delay between frames in seconds (default: %(default)s)",
    )
    parser.add_argument("-l", "--loop", action="store_true", default=animation.loop, help="loop content upon reaching end of input")
    parser.add_argument(
        "--max-frames", type=int, default=animation.max_frames,
        help="maximum number of lines accepted with --loop, 0 for no limit (default: %(default)s)",
    )
    parser.add_argument("--timeout", type=float, default=animation.timeout, help="stop animating after this many seconds")
    parser.add_argument("--preview", action="store_true", help="preview on terminal only")
    parser.add_argument("--log-level", default=settings.log_level, help="log level (default: %(default)s)")
    return parser


def parse_options(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> CliOptions:
    """Parse and validate the command line, exiting with status 2 on bad input"""
    env_error = None
    if settings is None:
        try:
            settings = Settings.from_env()
        except ValueError as e:
            env_error = f"invalid environment configuration: {e}"
            settings = Settings()
    parser = build_parser(settings)
    if env_error:
        parser.error(env_error)
    args = parser.parse_args(argv)

    if args.backend == "telegram":
        token = args.token or settings.telegram.token
        channel = args.channel or settings.telegram.chat_id
    else:
        token = args.token or settings.slack.token
        channel = args.channel or settings.slack.channel

    options = CliOptions(
        backend=args.backend,
        token=token,
        channel=channel,
        delay=args.delay,
        loop=args.loop,
        max_frames=args.max_frames,
        timeout=args.timeout,
        preview=args.preview,
        style=StyleOptions(
            display_name=args.username or None,
            icon_emoji=args.icon_emoji or None,
            icon_url=args.icon_url or None,
        ),
        log_level=args.log_level,
        log_dir=settings.log_dir,
        api_url=settings.slack.api_url,
    )

    error = validate_options(options)
    if error:
        parser.error(error)
    return options


def validate_options(options: CliOptions) -> Optional[str]:
    """Return a description of the first invalid option, or None"""
    if options.max_frames < 0:
        return "max-frames cannot be negative"
    if options.timeout is not None and options.timeout <= 0:
        return "timeout must be positive"
    if options.delay < 0:
        return "delay cannot be negative"
    if options.preview:
        return None
    if not options.token:
        return "api token is required"
    if not options.channel:
        return "channel is required"
    if options.delay < MIN_DELAY:
        return f"delay must be >= {MIN_DELAY} to avoid creating a time paradox"
    return None


def log_update(outcome: UpdateOutcome) -> None:
    """Default update observer: one log line per edited frame"""
    if outcome.ok:
        logger.info(f"posted frame {outcome.destination}/{outcome.message_id}: {outcome.frame}")
    else:
        logger.error(
            f"ERROR updating {outcome.destination}/{outcome.message_id} "
            f"with frame {outcome.frame}: {outcome.error}"
        )
