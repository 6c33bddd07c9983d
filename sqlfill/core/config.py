"""Library-wide configuration.

:class:`FillConfig` bundles every tunable of the binder, the template filler
and the connection guard. A process-wide default is kept behind a lock; any
call can also take its own instance.
"""

import threading
from collections.abc import Callable
from typing import Any, Optional, Union

from mypy_extensions import mypyc_attr

from sqlfill.parameters.binder import DEFAULT_PARAMETER_TEMPLATE
from sqlfill.parameters.patterns import DEFAULT_MARKER_REGEX, DEFAULT_TYPE_HINT_REGEX, MarkerPattern, as_marker_pattern
from sqlfill.parameters.types import ParameterStyle
from sqlfill.utils.logging import get_logger

__all__ = ("FillConfig", "ValueConverter", "get_default_config", "update_default_config")

ValueConverter = Callable[[str, Any], str]
"""``(placeholder name, value) -> text`` used by :func:`~sqlfill.fill`."""

_config_lock = threading.Lock()
_default_config: "Optional[FillConfig]" = None


@mypyc_attr(allow_interpreted_subclasses=False)
class FillConfig:
    """Settings for rewriting, filling and connection polling."""

    __slots__ = (
        "case_sensitive",
        "marker_pattern",
        "max_parameter_name_length",
        "max_poll_attempts",
        "null_replacement",
        "parameter_style",
        "parameter_template",
        "poll_interval",
        "type_hint_pattern",
        "value_converter",
    )

    def __init__(
        self,
        *,
        parameter_template: str = DEFAULT_PARAMETER_TEMPLATE,
        parameter_style: ParameterStyle = ParameterStyle.NAMED_AT,
        marker_pattern: "Union[str, MarkerPattern]" = DEFAULT_MARKER_REGEX,
        type_hint_pattern: str = DEFAULT_TYPE_HINT_REGEX,
        case_sensitive: bool = False,
        null_replacement: str = "",
        value_converter: "Optional[ValueConverter]" = None,
        max_parameter_name_length: Optional[int] = 30,
        poll_interval: float = 0.1,
        max_poll_attempts: Optional[int] = 600,
    ) -> None:
        """Initialize configuration.

        Args:
            parameter_template: Naming template for generated parameters. Must
                contain ``{prefix}``, ``{counter}`` and ``{name}``.
            parameter_style: Placeholder syntax used when the connection does
                not declare one.
            marker_pattern: Marker pattern for sources that do not carry one.
            type_hint_pattern: Regular expression for inline column type hints.
            case_sensitive: Match placeholder names and text with case.
            null_replacement: Text written by ``fill`` for missing values.
            value_converter: Default value-to-text conversion for ``fill``.
            max_parameter_name_length: Longer sanitized names switch to the
                short ``p{index}`` form. None or 0 disables the limit.
            poll_interval: Seconds between connection state checks.
            max_poll_attempts: Polls before giving up on a busy connection.
                None polls forever.
        """
        self.parameter_template = parameter_template
        self.parameter_style = parameter_style
        self.marker_pattern = as_marker_pattern(marker_pattern)
        self.type_hint_pattern = type_hint_pattern
        self.case_sensitive = case_sensitive
        self.null_replacement = null_replacement
        self.value_converter = value_converter
        self.max_parameter_name_length = max_parameter_name_length
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts

    def replace(self, **kwargs: Any) -> "FillConfig":
        """Return a copy with the given fields changed.

        Returns:
            The new configuration.
        """
        unknown = set(kwargs).difference(self.__slots__)
        if unknown:
            msg = f"Unknown configuration option(s): {', '.join(sorted(unknown))}"
            raise TypeError(msg)
        current = {name: getattr(self, name) for name in self.__slots__}
        current.update(kwargs)
        return FillConfig(**current)

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in self.__slots__)
        return f"FillConfig({fields})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FillConfig):
            return False
        return all(getattr(self, name) == getattr(other, name) for name in self.__slots__)

    def __hash__(self) -> int:
        return hash(tuple(getattr(self, name) for name in self.__slots__ if name != "value_converter"))


def get_default_config() -> FillConfig:
    """Get the process-wide configuration.

    Returns:
        Current default configuration instance
    """
    global _default_config
    if _default_config is None:
        with _config_lock:
            if _default_config is None:
                _default_config = FillConfig()
    return _default_config


def update_default_config(config: FillConfig) -> None:
    """Replace the process-wide configuration.

    Args:
        config: New configuration to apply globally
    """
    logger = get_logger("config")
    logger.info("Default configuration updated: %s", config)

    global _default_config
    with _config_lock:
        _default_config = config
