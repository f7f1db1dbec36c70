"""
Configuration loader for the newsfeed client.
Loads settings from config.json with fallback defaults; store credentials
can also come from the NEWSFEED_PROJECT_ID / NEWSFEED_API_KEY environment
variables.
"""

import json
import os
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional

from newsfeed.utils.exceptions import ConfigError
from newsfeed.utils.logging_config import get_logger

logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.json"

ENV_PROJECT_ID = "NEWSFEED_PROJECT_ID"
ENV_API_KEY = "NEWSFEED_API_KEY"


@dataclass
class StoreConfig:
    """Hosted document store (Firestore REST) configuration."""
    project_id: str = ""
    api_key: str = ""
    database: str = "(default)"
    base_url: str = "https://firestore.googleapis.com/v1"
    timeout: float = 30.0
    connect_timeout: float = 10.0


@dataclass
class ListingConfig:
    """Feed and page sizing."""
    page_size: int = 6
    search_page_size: int = 10
    admin_search_limit: int = 50
    articles_collection: str = "articles"
    politics_category: str = "politics-governance"


@dataclass
class RetryConfig:
    """Fixed-delay retry for store calls."""
    max_attempts: int = 3
    delay: float = 1.0


@dataclass
class LocalStateConfig:
    """Client-side liked/saved/preview state."""
    filename: str = "local_state.json"


@dataclass
class Config:
    """Root configuration object."""
    store: StoreConfig = field(default_factory=StoreConfig)
    listing: ListingConfig = field(default_factory=ListingConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    local_state: LocalStateConfig = field(default_factory=LocalStateConfig)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Reject values the listing core cannot work with."""
        if self.listing.page_size < 1:
            raise ConfigError(f"listing.page_size must be positive, got {self.listing.page_size}")
        if self.listing.search_page_size < 1:
            raise ConfigError(
                f"listing.search_page_size must be positive, got {self.listing.search_page_size}"
            )
        if self.retry.max_attempts < 1:
            raise ConfigError(f"retry.max_attempts must be at least 1, got {self.retry.max_attempts}")
        if self.retry.delay < 0:
            raise ConfigError(f"retry.delay cannot be negative, got {self.retry.delay}")

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary."""
        try:
            return cls(
                store=StoreConfig(**data.get("store", {})),
                listing=ListingConfig(**data.get("listing", {})),
                retry=RetryConfig(**data.get("retry", {})),
                local_state=LocalStateConfig(**data.get("local_state", {})),
            )
        except TypeError as e:
            raise ConfigError(f"Unknown configuration key: {e}") from e

    def to_dict(self) -> dict:
        """Convert Config to dictionary."""
        return asdict(self)


def apply_env_overrides(config: Config) -> Config:
    """Fill store credentials from the environment when set."""
    project_id = os.environ.get(ENV_PROJECT_ID)
    api_key = os.environ.get(ENV_API_KEY)
    if project_id:
        config.store.project_id = project_id
    if api_key:
        config.store.api_key = api_key
    return config


# Global config instance
_config: Optional[Config] = None


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to config.json. If None, looks in the package directory.

    Returns:
        Config instance with loaded or default values.

    Raises:
        ConfigError: If the file parses but holds invalid values.
    """
    global _config

    resolved_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if resolved_path.exists():
        try:
            with open(resolved_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not read {resolved_path}: {e}. Using defaults.")
            data = {}
        else:
            logger.info(f"Loaded configuration from {resolved_path}")
        config = Config.from_dict(data)
    else:
        logger.info(f"{resolved_path} not found. Using defaults.")
        config = Config()

    _config = apply_env_overrides(config)
    return _config


def get_config() -> Config:
    """Get the current configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[Config]) -> None:
    """Replace the current configuration (None forces a reload on next get)."""
    global _config
    _config = config


def save_config(config: Config, config_path: Optional[str] = None) -> None:
    """Save configuration to JSON file."""
    resolved_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    with open(resolved_path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=4)

    logger.info(f"Saved configuration to {resolved_path}")
