"""Placeholder scanning, source normalization and parameter binding."""

from sqlfill.parameters.binder import DEFAULT_PARAMETER_TEMPLATE, bind_parameters, render_parameter_name
from sqlfill.parameters.patterns import (
    DEFAULT_MARKER_REGEX,
    DEFAULT_TYPE_HINT_REGEX,
    MarkerPattern,
    PlaceholderMatch,
    as_marker_pattern,
    compile_pattern,
)
from sqlfill.parameters.reducer import reduce_sources
from sqlfill.parameters.sources import ParameterSource, coerce_sources, normalize, select_adapter
from sqlfill.parameters.template import TemplateText
from sqlfill.parameters.types import BoundParameter, BoundQuery, ParameterMap, ParameterStyle, ReducedGroup

__all__ = (
    "DEFAULT_MARKER_REGEX",
    "DEFAULT_PARAMETER_TEMPLATE",
    "DEFAULT_TYPE_HINT_REGEX",
    "BoundParameter",
    "BoundQuery",
    "MarkerPattern",
    "ParameterMap",
    "ParameterSource",
    "ParameterStyle",
    "PlaceholderMatch",
    "ReducedGroup",
    "TemplateText",
    "as_marker_pattern",
    "bind_parameters",
    "coerce_sources",
    "compile_pattern",
    "normalize",
    "reduce_sources",
    "render_parameter_name",
    "select_adapter",
)
