from datetime import timedelta

import pytest

from ollama_api_proxy.config import Config, ConfigError, default_config, load_config


def test_load_config():
    environ = {
        "PROXY_PORT": "8080",
        "PROXY_HOST": "example.com",
        "PROXY_OPENAI_BASE_URL": "https://api.example.com/v1",
        "PROXY_OPENAI_API_KEY": "placeholder",
        "PROXY_TRUST_DOMAINS": "example.com,localhost",
        "PROXY_TIMEOUT": "30s",
    }
    config = load_config(environ)
    assert config.port == 8080
    assert config.host == "example.com"
    assert config.openai_base_url == "https://api.example.com/v1"
    assert config.openai_api_key == "placeholder"
    assert config.log_level == "info"
    assert "example.com" in config.trust_domains[0]
    assert "localhost" in config.trust_domains[1]
    assert int(config.timeout.total_seconds()) == 30


def test_defaults_when_environment_empty():
    assert load_config({}) == default_config()


def test_default_values():
    config = default_config()
    assert config.port == 11434
    assert config.host == "0.0.0.0"
    assert config.gin_mode == "debug"
    assert config.openai_base_url == "https://api.openai.com/v1"
    assert config.trust_domains == ["localhost", "127.0.0.1", "::1"]
    assert config.timeout == timedelta(minutes=5)


def test_unrelated_variables_ignored():
    config = load_config({"HOME": "/tmp", "PROXY_UNKNOWN": "x", "PROXY_LOG_LEVEL": "debug"})
    assert config.log_level == "debug"
    assert config.port == Config().port


def test_single_trust_domain_becomes_list():
    assert load_config({"PROXY_TRUST_DOMAINS": "example.com"}).trust_domains == ["example.com"]


def test_list_items_are_stripped():
    config = load_config({"PROXY_TRUST_DOMAINS": " example.com , ::1 "})
    assert config.trust_domains == ["example.com", "::1"]


@pytest.mark.parametrize(
    "environ",
    [
        {"PROXY_PORT": "0"},
        {"PROXY_PORT": "70000"},
        {"PROXY_HOST": "not a host"},
        {"PROXY_GIN_MODE": "production"},
        {"PROXY_OPENAI_BASE_URL": "no-scheme"},
        {"PROXY_LOG_LEVEL": "verbose"},
        {"PROXY_TRUST_DOMAINS": "example.com,bad domain"},
        {"PROXY_TIMEOUT": "-1s"},
    ],
)
def test_validation_failures(environ):
    with pytest.raises(ConfigError) as info:
        load_config(environ)
    assert str(info.value).startswith("configuration validation failed:\n - ")


def test_validation_reports_every_problem():
    with pytest.raises(ConfigError) as info:
        load_config({"PROXY_PORT": "0", "PROXY_LOG_LEVEL": "verbose"})
    message = str(info.value)
    assert "'Config.port': require 'min 1' (value: '0')" in message
    assert "'Config.log_level'" in message


@pytest.mark.parametrize(
    "environ",
    [
        {"PROXY_PORT": "eighty"},
        {"PROXY_TIMEOUT": "30"},
        {"PROXY_HOST": "example.com,localhost"},
    ],
)
def test_decoding_failures(environ):
    with pytest.raises(ConfigError):
        load_config(environ)


def test_ip_host_accepted():
    assert load_config({"PROXY_HOST": "127.0.0.1"}).host == "127.0.0.1"
    assert load_config({"PROXY_HOST": "::1"}).host == "::1"