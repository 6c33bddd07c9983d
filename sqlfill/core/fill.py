"""Plain-text placeholder substitution.

:func:`fill` writes values straight into the template. It shares the marker
patterns and source handling of the SQL binder but produces text only, so
it must never be used to build SQL from untrusted values.
"""

from typing import Any, Optional, Union

from sqlfill.core.config import FillConfig, ValueConverter, get_default_config
from sqlfill.parameters.patterns import MarkerPattern
from sqlfill.parameters.reducer import reduce_sources
from sqlfill.parameters.sources import coerce_sources
from sqlfill.parameters.template import TemplateText
from sqlfill.utils.logging import get_logger

__all__ = ("fill",)

logger = get_logger("fill")


def fill(
    template: Optional[str],
    sources: Any,
    null_replacement: Optional[str] = None,
    value_converter: "Optional[ValueConverter]" = None,
    *,
    pattern: "Union[str, MarkerPattern, None]" = None,
    case_sensitive: Optional[bool] = None,
    config: Optional[FillConfig] = None,
) -> str:
    """Substitute placeholder values into ``template``.

    ``sources`` is a model, a :class:`~sqlfill.parameters.ParameterSource`, or
    a list of sources with their own marker patterns. When several sources
    answer to the same placeholder, the last one wins.

    Placeholders whose value is missing or None are replaced with
    ``null_replacement`` once every source has had its turn. Substituted text
    is never scanned again.

    Args:
        template: Text with placeholders. None or empty yields ``""``.
        sources: Where the values come from.
        null_replacement: Text for unresolved placeholders. Defaults to the
            configured value, normally ``""``.
        value_converter: ``(name, value) -> text``. Defaults to ``str``.
        pattern: Marker pattern for a bare model. Defaults to ``{{name}}``.
        case_sensitive: Match names and placeholder text with case.
        config: Settings to use instead of the process-wide defaults.

    Returns:
        The filled text.
    """
    if not template:
        return ""
    config = config or get_default_config()
    source_list = coerce_sources(sources, pattern, config.marker_pattern)
    if not source_list:
        return template

    if case_sensitive is None:
        case_sensitive = config.case_sensitive
    if null_replacement is None:
        null_replacement = config.null_replacement
    converter = value_converter or config.value_converter
    ignore_case = not case_sensitive

    text = TemplateText(template)
    unresolved: "dict[str, str]" = {}
    for group in reduce_sources(source_list, reverse=True, case_sensitive=case_sensitive):
        for placeholder in text.placeholders(group.pattern, case_sensitive=case_sensitive):
            value = group.parameters.get(placeholder.name)
            if value is None:
                key = placeholder.text if case_sensitive else placeholder.text.casefold()
                unresolved.setdefault(key, placeholder.text)
                continue
            replacement = converter(placeholder.name, value) if converter else str(value)
            text.substitute(placeholder.text, replacement, ignore_case=ignore_case)

    for placeholder_text in unresolved.values():
        text.substitute(placeholder_text, null_replacement, ignore_case=ignore_case)
    if unresolved:
        logger.debug("Replaced %d unresolved placeholder(s) with the null replacement", len(unresolved))
    return text.render()
