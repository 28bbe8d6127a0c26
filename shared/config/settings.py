from dataclasses import dataclass, field
from typing import Optional
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


@dataclass
class SlackConfig:
    """Slack Web API configuration"""
    token: Optional[str] = None
    channel: Optional[str] = None
    username: Optional[str] = None
    icon_url: Optional[str] = None
    icon_emoji: Optional[str] = None
    api_url: str = "https://slack.com/api"

    @classmethod
    def from_env(cls) -> "SlackConfig":
        return cls(
            token=os.getenv("SLACK_TOKEN"),
            channel=os.getenv("SLACK_CHANNEL"),
            username=os.getenv("SLACK_USERNAME"),
            icon_url=os.getenv("SLACK_ICON_URL"),
            icon_emoji=os.getenv("SLACK_ICON_EMOJI"),
            api_url=os.getenv("SLACK_API_URL", "https://slack.com/api"),
        )


@dataclass
class TelegramConfig:
    """Telegram bot configuration"""
    token: Optional[str] = None
    chat_id: Optional[str] = None

    @classmethod
    def from_env(cls) -> "TelegramConfig":
        return cls(
            token=os.getenv("TELEGRAM_TOKEN"),
            chat_id=os.getenv("TELEGRAM_CHAT_ID"),
        )


@dataclass
class AnimationConfig:
    """Frame pacing and input handling"""
    delay: float = 1.0  # minimum seconds between frames
    loop: bool = False
    max_frames: int = 4096  # frame limit for looping input, 0 = unbounded
    timeout: Optional[float] = None  # stop the whole run after this many seconds

    @classmethod
    def from_env(cls) -> "AnimationConfig":
        return cls(
            delay=float(os.getenv("ANIMATE_DELAY", "1.0")),
            loop=_env_bool("ANIMATE_LOOP"),
            max_frames=int(os.getenv("ANIMATE_MAX_FRAMES", "4096")),
            timeout=_env_float("ANIMATE_TIMEOUT"),
        )


@dataclass
class Settings:
    """Application settings"""
    slack: SlackConfig = field(default_factory=SlackConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    animation: AnimationConfig = field(default_factory=AnimationConfig)
    backend: str = "slack"
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            slack=SlackConfig.from_env(),
            telegram=TelegramConfig.from_env(),
            animation=AnimationConfig.from_env(),
            backend=os.getenv("ANIMATE_BACKEND", "slack").lower(),
            log_level=os.getenv("LOG_LEVEL") or ("DEBUG" if _env_bool("DEBUG") else "INFO"),
            log_dir=os.getenv("LOG_DIR") or None,
        )
