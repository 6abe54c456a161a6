"""Public package surface for hierarchical code-generation overrides.

Exports the attribute bag, the path-indexed registry with its resolution
entry point, the rule-file loader, the error taxonomy, and the logging hooks,
so both ``import lib_codegen_overrides`` and ``python -m lib_codegen_overrides``
exercise the same API.
"""

from __future__ import annotations

from .core import EncodeDecode, GeneratorSettings, OverrideRegistry, load_overrides, materialize_fragments
from .domain.config import EMPTY_CONFIG, Config, CustomField, CustomFieldKind, IntType, MergePolicy, merge_policy
from .domain.errors import (
    InvalidFormat,
    InvalidOverrideRule,
    MalformedOverride,
    MissingCustomField,
    NotFound,
    OverrideError,
)
from .domain.fragments import AttributeList, ParsedCustomField, TypeRef
from .domain.pathtree import PathTree
from .observability import bind_trace_id, get_logger

__all__ = [
    "AttributeList",
    "Config",
    "CustomField",
    "CustomFieldKind",
    "EMPTY_CONFIG",
    "EncodeDecode",
    "GeneratorSettings",
    "IntType",
    "InvalidFormat",
    "InvalidOverrideRule",
    "MalformedOverride",
    "MergePolicy",
    "MissingCustomField",
    "NotFound",
    "OverrideError",
    "OverrideRegistry",
    "ParsedCustomField",
    "PathTree",
    "TypeRef",
    "bind_trace_id",
    "get_logger",
    "load_overrides",
    "materialize_fragments",
    "merge_policy",
]
