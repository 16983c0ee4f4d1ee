import pytest

from privacy_distro.config import Settings
from privacy_distro.core.models import FEE_BUFFER_LAMPORTS
from privacy_distro.logging_config import build_logging_config


def test_defaults_without_environment():
    settings = Settings.from_env({})
    assert settings.rpc_url == "https://api.mainnet-beta.solana.com"
    assert settings.relay_url == "http://127.0.0.1:8787"
    assert settings.fee_buffer_lamports == FEE_BUFFER_LAMPORTS
    assert settings.default_network_fee == 5_000
    assert settings.funder_secret is None
    assert settings.settle_policy.max_attempts == 10
    assert settings.settle_policy.interval == 1.5


def test_environment_overrides():
    settings = Settings.from_env(
        {
            "PRIVACY_DISTRO_RPC_URL": "https://api.devnet.solana.com",
            "PRIVACY_DISTRO_RELAY_URL": "http://relay:9000",
            "PRIVACY_DISTRO_FEE_BUFFER_LAMPORTS": "1000",
            "PRIVACY_DISTRO_SETTLE_ATTEMPTS": "3",
            "PRIVACY_DISTRO_SETTLE_INTERVAL": "0.5",
            "PRIVACY_DISTRO_LOG_LEVEL": "debug",
            "PRIVACY_DISTRO_FUNDER_SECRET": "s3cret",
        }
    )
    assert settings.rpc_url == "https://api.devnet.solana.com"
    assert settings.relay_url == "http://relay:9000"
    assert settings.fee_buffer_lamports == 1000
    assert settings.settle_policy.max_attempts == 3
    assert settings.settle_policy.interval == 0.5
    assert settings.log_level == "DEBUG"
    assert settings.funder_secret == "s3cret"


def test_blank_numbers_fall_back_to_defaults():
    assert Settings.from_env({"PRIVACY_DISTRO_HTTP_TIMEOUT": " "}).http_timeout == 30.0


def test_bad_number_is_reported():
    with pytest.raises(ValueError, match="PRIVACY_DISTRO_SETTLE_ATTEMPTS must be a int"):
        Settings.from_env({"PRIVACY_DISTRO_SETTLE_ATTEMPTS": "many"})


def test_repr_hides_funder_secret():
    settings = Settings(funder_secret="s3cret")
    assert "s3cret" not in repr(settings)
    assert "funder=set" in repr(settings)


def test_logging_config_level():
    config = build_logging_config("DEBUG")
    assert config["loggers"]["privacy_distro"]["level"] == "DEBUG"
    assert config["loggers"]["httpx"]["level"] == "WARNING"
