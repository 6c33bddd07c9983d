from collections.abc import Generator

import pytest

from sqlfill.core.config import FillConfig, get_default_config, update_default_config
from sqlfill.parameters import MarkerPattern, ParameterStyle
from sqlfill.parameters.binder import DEFAULT_PARAMETER_TEMPLATE
from sqlfill.parameters.patterns import DEFAULT_MARKER_REGEX


@pytest.fixture
def restore_default_config() -> Generator[None, None, None]:
    original = get_default_config()
    yield
    update_default_config(original)


def test_defaults() -> None:
    config = FillConfig()
    assert config.parameter_template == DEFAULT_PARAMETER_TEMPLATE == "{prefix}vxv_{counter}_{name}"
    assert config.parameter_style is ParameterStyle.NAMED_AT
    assert config.marker_pattern == MarkerPattern(DEFAULT_MARKER_REGEX)
    assert config.case_sensitive is False
    assert config.null_replacement == ""
    assert config.value_converter is None
    assert config.max_parameter_name_length == 30


def test_marker_pattern_accepts_raw_regex() -> None:
    config = FillConfig(marker_pattern=r"(?P<open_marker>\[\[)(?P<param>.*?)(?P<close_marker>\]\])")
    assert isinstance(config.marker_pattern, MarkerPattern)


def test_replace_returns_changed_copy() -> None:
    config = FillConfig()
    changed = config.replace(case_sensitive=True, null_replacement="NULL")
    assert changed.case_sensitive is True
    assert changed.null_replacement == "NULL"
    assert config.case_sensitive is False
    assert changed.parameter_template == config.parameter_template


def test_replace_rejects_unknown_options() -> None:
    with pytest.raises(TypeError, match="bogus"):
        FillConfig().replace(bogus=1)


def test_equality_and_hash() -> None:
    assert FillConfig() == FillConfig()
    assert hash(FillConfig()) == hash(FillConfig())
    assert FillConfig() != FillConfig(case_sensitive=True)


@pytest.mark.usefixtures("restore_default_config")
def test_update_default_config() -> None:
    custom = FillConfig(null_replacement="N/A")
    update_default_config(custom)
    assert get_default_config() is custom


def test_default_config_is_shared() -> None:
    assert get_default_config() is get_default_config()
