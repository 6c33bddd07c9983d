"""Rewrite templated SQL into provider-parameterized SQL."""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Final, Optional

from sqlfill.parameters.template import TemplateText
from sqlfill.parameters.types import BoundParameter, BoundQuery, ParameterStyle, ReducedGroup
from sqlfill.utils.logging import get_logger
from sqlfill.utils.text import sanitize_parameter_name

if TYPE_CHECKING:
    from sqlfill.core.config import FillConfig

__all__ = ("DEFAULT_PARAMETER_TEMPLATE", "bind_parameters", "render_parameter_name")

logger = get_logger("parameters.binder")

DEFAULT_PARAMETER_TEMPLATE: Final[str] = "{prefix}vxv_{counter}_{name}"


def render_parameter_name(template: str, *, prefix: str, counter: int, name: str) -> str:
    """Fill the ``{prefix}``, ``{counter}`` and ``{name}`` slots of a naming template.

    Slots are replaced literally; other braces in the template are left alone.

    Returns:
        The rendered name.
    """
    return template.replace("{prefix}", prefix).replace("{counter}", str(counter)).replace("{name}", name)


def _name_part(name: str, index: int, max_length: Optional[int]) -> str:
    sanitized = sanitize_parameter_name(name)
    if max_length and len(sanitized) > max_length:
        return f"p{index}"
    return sanitized


def bind_parameters(
    query: str,
    groups: "Sequence[ReducedGroup]",
    *,
    style: ParameterStyle,
    config: "FillConfig",
) -> BoundQuery:
    """Replace every placeholder in ``query`` with a provider parameter.

    Groups are numbered from 1 in the order given; that number becomes the
    ``{counter}`` slot of the naming template, so identical names in
    different groups never collide. Every distinct placeholder gets exactly
    one parameter, including placeholders with no value, which bind None.

    Returns:
        The rewritten SQL and its parameters in creation order.
    """
    text = TemplateText(query)
    parameters: "list[BoundParameter]" = []
    used_keys: "set[str]" = set()
    case_sensitive = config.case_sensitive

    for counter, group in enumerate(groups, start=1):
        for index, placeholder in enumerate(text.placeholders(group.pattern, case_sensitive=case_sensitive), start=1):
            value = group.parameters.get(placeholder.name)
            name_part = _name_part(placeholder.name, index, config.max_parameter_name_length)
            key = render_parameter_name(config.parameter_template, prefix="", counter=counter, name=name_part)
            suffix = 1
            while key in used_keys:
                suffix += 1
                key = render_parameter_name(
                    config.parameter_template, prefix="", counter=counter, name=f"{name_part}_{suffix}"
                )
            used_keys.add(key)
            final_name = name_part if suffix == 1 else f"{name_part}_{suffix}"
            sql_name = (
                render_parameter_name(config.parameter_template, prefix=style.prefix, counter=counter, name=final_name)
                + style.suffix
            )
            text.substitute(placeholder.text, sql_name, ignore_case=not case_sensitive)
            parameters.append(BoundParameter(sql_name, key, value))

    bound = BoundQuery(text.render(), parameters)
    logger.debug(
        "Bound %d parameter(s)",
        len(parameters),
        extra={"extra_fields": {"sql": bound.sql, "parameters": [parameter.key for parameter in parameters]}},
    )
    return bound
