import logging
import os
from unittest import mock

import pytest

from ollama_api_proxy.cli import init_config, main
from ollama_api_proxy.config import ConfigError


@pytest.fixture(autouse=True)
def isolated():
    root = logging.getLogger()
    level = root.level
    with mock.patch.dict(os.environ, {}, clear=True):
        yield
    root.setLevel(level)


def test_env_file_values_are_loaded(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("PROXY_PORT=8080\nPROXY_LOG_LEVEL=debug\n")
    config = init_config(str(env_file))
    assert config.port == 8080
    assert config.log_level == "debug"
    assert logging.getLogger().level == logging.DEBUG


def test_environment_takes_precedence_over_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("PROXY_PORT=8080\n")
    os.environ["PROXY_PORT"] = "9000"
    assert init_config(str(env_file)).port == 9000


def test_missing_env_file_gives_defaults(tmp_path):
    config = init_config(str(tmp_path / "absent.env"))
    assert config.port == 11434
    assert logging.getLogger().level == logging.INFO


def test_invalid_configuration_raises(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("PROXY_LOG_LEVEL=loud\n")
    with pytest.raises(ConfigError):
        init_config(str(env_file))


def test_main_reports_invalid_configuration(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("PROXY_PORT=0\n")
    assert main(["--env-file", str(env_file)]) == 1


def test_main_rejects_unknown_arguments():
    with pytest.raises(SystemExit) as excinfo:
        main(["--bogus"])
    assert excinfo.value.code == 2