"""Process configuration loaded from the environment."""
import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv
from slackwire.errors import ConfigurationError

DEFAULT_MODEL = "anthropic/claude-sonnet-4-5"
DEFAULT_NEWS_CHANNEL = "C09FCMVAUB0"
DEFAULT_TASK_PATH = "/daily-news"

@dataclass
class Settings:
    """Runtime settings for a slackwire deployment."""
    slack_bot_token: str
    slack_signing_secret: str
    exa_api_key: Optional[str] = None
    model_name: str = DEFAULT_MODEL
    database_url: Optional[str] = None
    news_channel: str = DEFAULT_NEWS_CHANNEL
    task_path: str = DEFAULT_TASK_PATH
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    wandb_api_key: Optional[str] = None

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """Build settings from environment variables.

        Args:
            load_env_file: Whether to load a .env file first

        Returns:
            The populated Settings

        Raises:
            ConfigurationError: If a Slack credential is missing or PORT is not a number
        """
        if load_env_file:
            load_dotenv()

        missing = [name for name in ("SLACK_BOT_TOKEN", "SLACK_SIGNING_SECRET") if not os.getenv(name)]
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

        try:
            port = int(os.getenv("PORT", "8000"))
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got {os.getenv('PORT')!r}")

        task_path = os.getenv("SLACKWIRE_TASK_PATH", DEFAULT_TASK_PATH)
        if not task_path.startswith("/"):
            task_path = "/" + task_path

        return cls(
            slack_bot_token=os.environ["SLACK_BOT_TOKEN"],
            slack_signing_secret=os.environ["SLACK_SIGNING_SECRET"],
            exa_api_key=os.getenv("EXA_API_KEY") or None,
            model_name=os.getenv("SLACKWIRE_MODEL", DEFAULT_MODEL),
            database_url=os.getenv("SLACKWIRE_DATABASE_URL") or None,
            news_channel=os.getenv("SLACKWIRE_NEWS_CHANNEL", DEFAULT_NEWS_CHANNEL),
            task_path=task_path,
            host=os.getenv("HOST", "0.0.0.0"),
            port=port,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            wandb_api_key=os.getenv("WANDB_API_KEY") or None,
        )
