"""
Test Configuration, Classification and Finish Signals
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from core.config import FAST_CONFIG, MAX_ROUNDS, BackendConfig, ReassemblyConfig
from core.content_classes import class_for_language, classify, detect_language, load_context_file
from core.errors import ConfigurationError
from core.schemas import ContentClass, FinishSignal

ENV_VARS = [
    "PRESTO_MAX_ROUNDS",
    "PRESTO_CONTEXT_LINES",
    "PRESTO_REASONABLE_RATIO",
    "PRESTO_ROUND_TIMEOUT",
    "PRESTO_MAX_CONCURRENT",
    "PRESTO_MODEL",
    "PRESTO_MAX_TOKENS",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults():
    config = ReassemblyConfig()

    assert config.max_rounds == MAX_ROUNDS == 5
    assert config.context_lines == 10
    assert config.reasonable_ratio == 0.9
    assert config.round_timeout is None
    assert config.max_workers == 3
    assert config.check() is config
    assert FAST_CONFIG.max_rounds == 2


@pytest.mark.parametrize("overrides", [
    {"max_rounds": 0},
    {"context_lines": 0},
    {"reasonable_ratio": 0.0},
    {"reasonable_ratio": 1.5},
    {"round_timeout": -1.0},
    {"cancel_poll_interval": 0},
    {"max_workers": 0},
])
def test_check_rejects_out_of_range(overrides):
    with pytest.raises(ConfigurationError):
        ReassemblyConfig(**overrides).check()


def test_configuration_error_is_value_error():
    assert issubclass(ConfigurationError, ValueError)


def test_from_env(clean_env, tmp_path):
    clean_env.setenv("PRESTO_MAX_ROUNDS", "3")
    clean_env.setenv("PRESTO_ROUND_TIMEOUT", "12.5")
    clean_env.setenv("PRESTO_MAX_CONCURRENT", "7")

    config = ReassemblyConfig.from_env(str(tmp_path / "missing.env"))

    assert config.max_rounds == 3
    assert config.round_timeout == 12.5
    assert config.max_workers == 7
    assert config.context_lines == 10


def test_from_env_reads_dotenv_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("PRESTO_CONTEXT_LINES=4\nPRESTO_REASONABLE_RATIO=0.8\n")
    # Register with monkeypatch so values loaded from the file are removed afterwards
    clean_env.setenv("PRESTO_CONTEXT_LINES", "")
    clean_env.setenv("PRESTO_REASONABLE_RATIO", "")
    clean_env.delenv("PRESTO_CONTEXT_LINES")
    clean_env.delenv("PRESTO_REASONABLE_RATIO")

    config = ReassemblyConfig.from_env(str(env_file))

    assert config.context_lines == 4
    assert config.reasonable_ratio == 0.8


def test_from_env_rejects_bad_values(clean_env, tmp_path):
    clean_env.setenv("PRESTO_MAX_ROUNDS", "0")

    with pytest.raises(ConfigurationError):
        ReassemblyConfig.from_env(str(tmp_path / "missing.env"))


def test_backend_config_from_env(clean_env, tmp_path):
    clean_env.setenv("PRESTO_MODEL", "openai/gpt-4o")
    clean_env.setenv("PRESTO_MAX_TOKENS", "2048")

    config = BackendConfig.from_env(str(tmp_path / "missing.env"))

    assert config.model == "openai/gpt-4o"
    assert config.max_tokens == 2048
    assert config.base_url == "https://openrouter.ai/api/v1"


def test_backend_config_check(monkeypatch):
    monkeypatch.setenv("PRESTO_TEST_KEY", "sk-test")
    assert BackendConfig(api_key_env="PRESTO_TEST_KEY").check().get_api_key() == "sk-test"

    monkeypatch.delenv("PRESTO_TEST_KEY")
    with pytest.raises(ConfigurationError):
        BackendConfig(api_key_env="PRESTO_TEST_KEY").check()


@pytest.mark.parametrize("file_name,language,content_class", [
    ("main.go", "go", ContentClass.BRACE),
    ("src/App.TSX", "typescript", ContentClass.BRACE),
    ("script.py", "python", ContentClass.INDENT),
    ("config.yml", "yaml", ContentClass.INDENT),
    ("index.html", "html", ContentClass.TAG),
    ("README.md", "markdown", ContentClass.FREEFORM),
    ("Makefile", "text", ContentClass.FREEFORM),
    ("archive.xyz", "unknown", ContentClass.FREEFORM),
])
def test_classification(file_name, language, content_class):
    assert detect_language(file_name) == language
    assert classify(file_name) == content_class


def test_class_for_language_is_case_insensitive():
    assert class_for_language("Python") == ContentClass.INDENT
    assert class_for_language(None) == ContentClass.FREEFORM


@pytest.mark.parametrize("reason,signal", [
    ("stop", FinishSignal.NATURAL_STOP),
    ("end_turn", FinishSignal.NATURAL_STOP),
    ("length", FinishSignal.LENGTH_LIMIT),
    ("max_tokens", FinishSignal.LENGTH_LIMIT),
    ("content_filter", FinishSignal.UNKNOWN),
    ("", FinishSignal.UNKNOWN),
    (None, FinishSignal.UNKNOWN),
])
def test_finish_signal_from_vendor(reason, signal):
    assert FinishSignal.from_vendor(reason) == signal


def test_load_context_file(tmp_path):
    path = tmp_path / "style.py"
    path.write_text("MAX = 3\n", encoding="utf-8")

    ctx = load_context_file(str(path))
    assert ctx.content == "MAX = 3\n"
    assert ctx.language == "python"
    assert ctx.label in ("style.py", os.path.relpath(str(path)))

    assert load_context_file(str(path), label="limits").label == "limits"
