"""
Tests for configuration loading.
"""

import json
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from sealbid.core.config import DEFAULT_FEE_AMOUNT, AuctionConfig, load_config


OPERATOR = "0x" + "0F" * 20


@pytest.fixture
def no_env(monkeypatch, tmp_path):
    """Clear SEALBID_* variables and point .env lookup at an empty file."""
    for key in list(os.environ):
        if key.startswith("SEALBID_"):
            monkeypatch.delenv(key)
    env_file = tmp_path / "empty.env"
    env_file.write_text("")
    return str(env_file)


class TestAuctionConfig:

    def test_defaults(self):
        config = AuctionConfig()

        assert config.fee_amount == DEFAULT_FEE_AMOUNT
        assert config.default_duration == 3600
        assert config.operator is None
        assert config.db_path == Path("~/.sealbid").expanduser() / "auctions.db"
        assert config.log_dir == config.data_dir / "logs"

    def test_operator_normalized(self):
        assert AuctionConfig(operator=OPERATOR).operator == OPERATOR.lower()

    def test_invalid_operator(self):
        with pytest.raises(ValidationError):
            AuctionConfig(operator="bob")

    def test_negative_fee_rejected(self):
        with pytest.raises(ValidationError):
            AuctionConfig(fee_amount=-1)

    def test_zero_duration_rejected(self):
        with pytest.raises(ValidationError):
            AuctionConfig(default_duration=0)

    def test_log_level_uppercased(self):
        assert AuctionConfig(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            AuctionConfig(log_level="chatty")


class TestLoadConfig:

    def test_no_sources_gives_defaults(self, no_env):
        assert load_config(env_file=no_env) == AuctionConfig()

    def test_json_file(self, no_env, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"fee_amount": 7, "data_dir": str(tmp_path)}))

        config = load_config(str(path), env_file=no_env)

        assert config.fee_amount == 7
        assert config.data_dir == tmp_path

    def test_environment_overrides_file(self, no_env, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"fee_amount": 7}))
        monkeypatch.setenv("SEALBID_FEE_AMOUNT", "9")
        monkeypatch.setenv("SEALBID_LOG_TO_FILE", "true")

        config = load_config(str(path), env_file=no_env)

        assert config.fee_amount == 9
        assert config.log_to_file is True

    def test_dotenv_file(self, no_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(f"SEALBID_OPERATOR={OPERATOR}\nSEALBID_DEFAULT_DURATION=60\n")

        try:
            config = load_config(env_file=str(env_file))
        finally:
            os.environ.pop("SEALBID_OPERATOR", None)
            os.environ.pop("SEALBID_DEFAULT_DURATION", None)

        assert config.operator == OPERATOR.lower()
        assert config.default_duration == 60
