"""
Auction configuration parameters for sealbid.

Defines economic parameters and operational limits. Values can be
overridden through SEALBID_* environment variables or a .env file.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "SEALBID_"


@dataclass
class AuctionConfig:
    """Auction-wide configuration parameters"""

    # Economic parameters
    minimum_deposit: int = 100  # Deposit required to submit a proposal

    # Operational limits
    max_participants: int = 1024  # Registry size cap per auction
    max_blob_size: int = 4096  # Max bytes per ciphertext/nonce/capsule

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False
    log_dir: Path = field(default_factory=lambda: Path("logs"))

    def __post_init__(self):
        if self.minimum_deposit < 0:
            raise ValueError(f"minimum_deposit must be >= 0, got {self.minimum_deposit}")
        if self.max_participants < 1:
            raise ValueError(f"max_participants must be >= 1, got {self.max_participants}")
        if self.max_blob_size < 1:
            raise ValueError(f"max_blob_size must be >= 1, got {self.max_blob_size}")
        if self.log_level.upper() not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {self.log_level}")
        self.log_dir = Path(self.log_dir)

    @property
    def log_level_value(self) -> int:
        """Numeric logging level."""
        return logging.getLevelNamesMapping()[self.log_level.upper()]


# Global config instance (can be overridden)
config = AuctionConfig()


def _coerce(raw: str, default):
    """Convert an environment string to the type of the default value."""
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, Path):
        return Path(raw)
    return raw


def load_config(env_file: Optional[str] = None) -> AuctionConfig:
    """
    Load configuration from the environment.

    A .env file is read first (without overriding variables that are
    already set), then every SEALBID_<FIELD> variable overrides the
    matching AuctionConfig field.

    Args:
        env_file: Optional path to a .env file. None searches upwards
            from the working directory.

    Returns:
        AuctionConfig instance
    """
    if env_file:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(override=False)

    defaults = AuctionConfig()
    overrides = {}
    for f in fields(AuctionConfig):
        raw = os.environ.get(ENV_PREFIX + f.name.upper())
        if raw is None:
            continue
        try:
            overrides[f.name] = _coerce(raw, getattr(defaults, f.name))
        except ValueError as exc:
            raise ValueError(f"Invalid value for {ENV_PREFIX}{f.name.upper()}: {raw!r}") from exc

    return AuctionConfig(**overrides)
