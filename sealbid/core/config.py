"""
Configuration parameters for sealbid.

Values are resolved in this order (later wins):
1. Defaults on AuctionConfig
2. JSON config file (if given)
3. Environment variables prefixed SEALBID_ (a .env file is read first)
"""

import json
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from sealbid.crypto import is_valid_address

ENV_PREFIX = "SEALBID_"

# 0.01 ether, in wei
DEFAULT_FEE_AMOUNT = 10**16
DEFAULT_DURATION = 3600


class AuctionConfig(BaseModel):
    """Deployment-wide configuration"""

    # Auction parameters
    fee_amount: int = Field(default=DEFAULT_FEE_AMOUNT, ge=0)  # Fee collected per commitment
    default_duration: int = Field(default=DEFAULT_DURATION, gt=0)  # Commit phase length in seconds
    operator: Optional[str] = None  # Identity allowed to finalize

    # Paths
    data_dir: Path = Field(default=Path("~/.sealbid"), validate_default=True)
    db_name: str = "auctions.db"

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False

    @field_validator("operator")
    @classmethod
    def _check_operator(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_address(value):
            raise ValueError(f"operator is not a valid address: {value}")
        return value.lower() if value else value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return value

    @field_validator("data_dir")
    @classmethod
    def _expand_data_dir(cls, value: Path) -> Path:
        return Path(value).expanduser()

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "logs"


def _env_overrides() -> dict:
    overrides = {}
    for name in AuctionConfig.model_fields:
        value = os.environ.get(ENV_PREFIX + name.upper())
        if value is not None:
            overrides[name] = value
    return overrides


def load_config(config_path: Optional[str] = None, env_file: Optional[str] = None) -> AuctionConfig:
    """
    Load configuration from file, .env and environment.

    Args:
        config_path: Optional path to a JSON config file
        env_file: Optional .env path (defaults to searching from the cwd)

    Returns:
        AuctionConfig instance
    """
    load_dotenv(dotenv_path=env_file)

    values = {}
    if config_path:
        values.update(json.loads(Path(config_path).read_text()))

    values.update(_env_overrides())
    return AuctionConfig.model_validate(values)


__all__ = ["AuctionConfig", "load_config", "DEFAULT_FEE_AMOUNT", "DEFAULT_DURATION"]
