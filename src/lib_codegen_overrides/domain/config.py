"""Domain-level attribute bag and its merge algebra.

Purpose
-------
Anchor the immutable :class:`Config` value object that carries per-element
code-generation overrides. This module belongs to the domain layer and
contains no I/O.

Contents
--------
* :class:`IntType` – integer representation (width and signedness).
* :class:`CustomFieldKind` / :class:`CustomField` – tagged union describing a
  fully custom field type or a delegate to an externally defined accessor.
* :class:`MergePolicy` – the two per-attribute inheritance policies.
* :class:`Config` – frozen record of independently optional attributes with
  fluent setters, a single generic :meth:`Config.merge`, and typed fragment
  accessors that parse raw strings on demand.
* :data:`EMPTY_CONFIG` – canonical fully-absent instance.

System Role
-----------
Bags are built once while override rules are registered, stored in the
:class:`~lib_codegen_overrides.domain.pathtree.PathTree`, and folded
root-to-leaf by :mod:`lib_codegen_overrides.application.resolve`. Every
attribute is either present or absent; absence means "inherit or use the
generator default", never an implicit zero value.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any

from .errors import InvalidOverrideRule, MissingCustomField
from .fragments import (
    AttributeList,
    ParsedCustomField,
    TypeRef,
    parse_attribute_list,
    parse_container_type,
    parse_identifier,
    parse_type_ref,
)


class IntType(Enum):
    """Integer representation used for a field or an enum.

    Examples
    --------
    >>> IntType.I16.is_signed, IntType.I16.bits
    (True, 16)
    >>> IntType.U8.max_value
    255
    """

    I8 = "i8"
    U8 = "u8"
    I16 = "i16"
    U16 = "u16"
    I32 = "i32"
    U32 = "u32"
    I64 = "i64"
    U64 = "u64"
    ISIZE = "isize"
    USIZE = "usize"

    @property
    def is_signed(self) -> bool:
        return self.value.startswith("i")

    @property
    def bits(self) -> int:
        digits = self.value[1:]
        # pointer-sized types are treated as 64 bit
        return 64 if digits == "size" else int(digits)

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.is_signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.is_signed else (1 << self.bits) - 1

    @classmethod
    def from_name(cls, name: str) -> IntType:
        """Look up a member by its lower-case name (``"u8"``), raising ``ValueError``."""

        return cls(name.strip().lower())


class CustomFieldKind(Enum):
    """Variant tag of :class:`CustomField`."""

    TYPE = "type"
    DELEGATE = "delegate"


@dataclass(frozen=True, slots=True)
class CustomField:
    """Raw custom-field override: a variant tag plus its unparsed string.

    ``TYPE`` replaces the generated field with a user supplied type;
    ``DELEGATE`` hands encoding and decoding to the accessor named by ``value``.

    Examples
    --------
    >>> CustomField.delegate("payload_accessor")
    CustomField(kind=<CustomFieldKind.DELEGATE: 'delegate'>, value='payload_accessor')
    """

    kind: CustomFieldKind
    value: str

    @classmethod
    def type_(cls, raw: str) -> CustomField:
        return cls(CustomFieldKind.TYPE, raw)

    @classmethod
    def delegate(cls, raw: str) -> CustomField:
        return cls(CustomFieldKind.DELEGATE, raw)


class MergePolicy(Enum):
    """How an attribute combines when a descendant bag is merged over an ancestor.

    ``OVERLAY`` keeps the ancestor value unless the descendant sets one.
    ``REPLACE`` always takes the descendant value, absent or not, so the
    attribute never propagates below the path where it was declared.
    """

    OVERLAY = "overlay"
    REPLACE = "replace"


_POLICY = "policy"
_KIND = "kind"
_CUSTOM_FIELD_KEYS = frozenset(kind.value for kind in CustomFieldKind)
# length limits are unsigned 32-bit counts
_U32_MAX = (1 << 32) - 1


def _attribute(kind: str, policy: MergePolicy = MergePolicy.OVERLAY) -> Any:
    """Declare an optional attribute with its rule-file kind and merge policy."""

    return field(default=None, metadata={_KIND: kind, _POLICY: policy})


@dataclass(frozen=True, slots=True)
class Config:
    """Immutable bag of optional code-generation overrides for one schema element.

    Why
    ----
    Operators attach overrides at arbitrary levels of the schema hierarchy;
    the generator needs a single effective view per element. Keeping each
    attribute independently optional lets a child override exactly what it
    states and inherit the rest.

    What
    ----
    Sixteen optional attributes in three tiers (field, type, general). Raw
    string overrides are stored verbatim and only parsed by the ``*_parsed``
    accessors. Each attribute declares its :class:`MergePolicy` in the
    dataclass field metadata; :meth:`merge` applies it uniformly.

    Examples
    --------
    >>> parent = Config.new().with_skip(True).with_vec_type("collections.deque")
    >>> child = Config.new().with_vec_type("list")
    >>> merged = parent.merge(child)
    >>> merged.skip, merged.vec_type
    (True, 'list')
    """

    # Field configs
    max_len: int | None = _attribute("int")
    max_bytes: int | None = _attribute("int")
    int_type: IntType | None = _attribute("int_type")
    field_attributes: str | None = _attribute("str")
    boxed: bool | None = _attribute("bool")
    vec_type: str | None = _attribute("str")
    string_type: str | None = _attribute("str")
    map_type: str | None = _attribute("str")
    no_hazzer: bool | None = _attribute("bool")
    custom_field: CustomField | None = _attribute("custom_field", MergePolicy.REPLACE)
    rename_field: str | None = _attribute("str", MergePolicy.REPLACE)

    # Type configs
    enum_int_type: IntType | None = _attribute("int_type")
    type_attributes: str | None = _attribute("str")
    hazzer_attributes: str | None = _attribute("str")
    no_debug_derive: bool | None = _attribute("bool")

    # General configs
    skip: bool | None = _attribute("bool")

    @classmethod
    def new(cls) -> Config:
        """Return a bag with every attribute absent."""

        return cls()

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], *, path: str | None = None) -> Config:
        """Build a bag from one rule-file table.

        Why
        ----
        Rule files carry primitive values only. The structural shape (known
        attribute, right primitive type, known enum member) is checked here so
        typos fail while the file is read; string overrides are still stored
        verbatim and parsed later.

        Parameters
        ----------
        mapping:
            Attribute name to primitive value.
        path:
            Element path the table belongs to, used in error messages.

        Raises
        ------
        InvalidOverrideRule
            On unknown attributes or values of the wrong type.

        Examples
        --------
        >>> Config.from_mapping({"max_len": 4, "int_type": "u8"}).int_type
        <IntType.U8: 'u8'>
        >>> Config.from_mapping({"colour": "red"}, path="pkg.Msg")
        Traceback (most recent call last):
        ...
        lib_codegen_overrides.domain.errors.InvalidOverrideRule: Unknown override attribute 'colour' at pkg.Msg
        """

        specs = {spec.name: spec for spec in fields(cls)}
        values: dict[str, Any] = {}
        for name, value in mapping.items():
            spec = specs.get(name)
            if spec is None:
                raise InvalidOverrideRule(f"Unknown override attribute {name!r} at {path or '<root>'}")
            values[name] = _coerce(spec.metadata[_KIND], value, name=name, path=path)
        return cls(**values)

    def merge(self, other: Config) -> Config:
        """Return a new bag with *other* merged over ``self``.

        ``OVERLAY`` attributes take ``other``'s value when present and keep
        ``self``'s otherwise. ``REPLACE`` attributes (``custom_field`` and
        ``rename_field``) always take ``other``'s value, so an ancestor's
        choice is erased by any descendant bag that does not restate it.
        Pure, total and associative; callers fold ancestor-then-descendant.

        Examples
        --------
        >>> a = Config.new().with_rename_field("renamed").with_boxed(True)
        >>> b = Config.new()
        >>> merged = a.merge(b)
        >>> merged.rename_field is None, merged.boxed
        (True, True)
        """

        merged: dict[str, Any] = {}
        for spec in fields(self):
            ours = getattr(self, spec.name)
            theirs = getattr(other, spec.name)
            if spec.metadata[_POLICY] is MergePolicy.REPLACE or theirs is not None:
                merged[spec.name] = theirs
            else:
                merged[spec.name] = ours
        return Config(**merged)

    def is_default(self) -> bool:
        """Return ``True`` when no attribute is present."""

        return all(getattr(self, spec.name) is None for spec in fields(self))

    def present(self) -> dict[str, Any]:
        """Return the present attributes keyed by name, in declaration order."""

        return {spec.name: getattr(self, spec.name) for spec in fields(self) if getattr(self, spec.name) is not None}

    def as_dict(self) -> dict[str, Any]:
        """Return present attributes as JSON-friendly primitives.

        Examples
        --------
        >>> Config.new().with_enum_int_type(IntType.U16).with_custom_field(CustomField.type_("Blob")).as_dict()
        {'custom_field': {'type': 'Blob'}, 'enum_int_type': 'u16'}
        """

        return {name: _to_primitive(value) for name, value in self.present().items()}

    # Fluent setters, one per attribute

    def with_max_len(self, value: int) -> Config:
        return replace(self, max_len=value)

    def with_max_bytes(self, value: int) -> Config:
        return replace(self, max_bytes=value)

    def with_int_type(self, value: IntType) -> Config:
        return replace(self, int_type=value)

    def with_field_attributes(self, value: str) -> Config:
        return replace(self, field_attributes=value)

    def with_boxed(self, value: bool) -> Config:
        return replace(self, boxed=value)

    def with_vec_type(self, value: str) -> Config:
        return replace(self, vec_type=value)

    def with_string_type(self, value: str) -> Config:
        return replace(self, string_type=value)

    def with_map_type(self, value: str) -> Config:
        return replace(self, map_type=value)

    def with_no_hazzer(self, value: bool) -> Config:
        return replace(self, no_hazzer=value)

    def with_custom_field(self, value: CustomField) -> Config:
        return replace(self, custom_field=value)

    def with_rename_field(self, value: str) -> Config:
        return replace(self, rename_field=value)

    def with_enum_int_type(self, value: IntType) -> Config:
        return replace(self, enum_int_type=value)

    def with_type_attributes(self, value: str) -> Config:
        return replace(self, type_attributes=value)

    def with_hazzer_attributes(self, value: str) -> Config:
        return replace(self, hazzer_attributes=value)

    def with_no_debug_derive(self, value: bool) -> Config:
        return replace(self, no_debug_derive=value)

    def with_skip(self, value: bool) -> Config:
        return replace(self, skip=value)

    # Typed fragments, parsed on every call

    def field_attr_parsed(self, *, path: str | None = None) -> AttributeList:
        """Parse ``field_attributes``; an absent override yields an empty list."""

        return parse_attribute_list(self.field_attributes or "", path=path, attribute="field_attributes")

    def type_attr_parsed(self, *, path: str | None = None) -> AttributeList:
        """Parse ``type_attributes``; an absent override yields an empty list."""

        return parse_attribute_list(self.type_attributes or "", path=path, attribute="type_attributes")

    def hazzer_attr_parsed(self, *, path: str | None = None) -> AttributeList:
        """Parse ``hazzer_attributes``; an absent override yields an empty list."""

        return parse_attribute_list(self.hazzer_attributes or "", path=path, attribute="hazzer_attributes")

    def field_name(self, original: str, *, path: str | None = None) -> str:
        """Return the generated field identifier, falling back to *original*.

        Examples
        --------
        >>> Config.new().field_name("payload")
        'payload'
        >>> Config.new().with_rename_field("body").field_name("payload")
        'body'
        """

        if self.rename_field is None:
            return parse_identifier(original, path=path, attribute="field_name")
        return parse_identifier(self.rename_field, path=path, attribute="rename_field")

    def vec_type_parsed(self, *, path: str | None = None) -> TypeRef | None:
        if self.vec_type is None:
            return None
        return parse_container_type(self.vec_type, path=path, attribute="vec_type")

    def string_type_parsed(self, *, path: str | None = None) -> TypeRef | None:
        if self.string_type is None:
            return None
        return parse_container_type(self.string_type, path=path, attribute="string_type")

    def map_type_parsed(self, *, path: str | None = None) -> TypeRef | None:
        if self.map_type is None:
            return None
        return parse_container_type(self.map_type, path=path, attribute="map_type")

    def custom_field_parsed(self, *, path: str | None = None) -> ParsedCustomField:
        """Parse ``custom_field`` into a type reference or a delegate identifier.

        Raises
        ------
        MissingCustomField
            When no custom field is configured. Callers check
            ``config.custom_field is not None`` first.
        MalformedOverride
            When the raw string is not a valid fragment for its variant.
        """

        custom = self.custom_field
        if custom is None:
            raise MissingCustomField(path)
        if custom.kind is CustomFieldKind.TYPE:
            return ParsedCustomField.of_type(parse_type_ref(custom.value, path=path, attribute="custom_field"))
        return ParsedCustomField.of_delegate(parse_identifier(custom.value, path=path, attribute="custom_field"))


def merge_policy(attribute: str) -> MergePolicy:
    """Return the merge policy declared for *attribute*.

    Examples
    --------
    >>> merge_policy("rename_field")
    <MergePolicy.REPLACE: 'replace'>
    >>> merge_policy("skip")
    <MergePolicy.OVERLAY: 'overlay'>
    """

    for spec in fields(Config):
        if spec.name == attribute:
            return spec.metadata[_POLICY]
    raise KeyError(attribute)


def attribute_names() -> tuple[str, ...]:
    """Return every :class:`Config` attribute name in declaration order."""

    return tuple(spec.name for spec in fields(Config))


def _coerce(kind: str, value: Any, *, name: str, path: str | None) -> Any:
    """Validate a rule-file primitive for an attribute of *kind*."""

    where = path or "<root>"
    if kind == "bool":
        if not isinstance(value, bool):
            raise InvalidOverrideRule(f"{name} at {where} must be a boolean, got {value!r}")
        return value
    if kind == "int":
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _U32_MAX:
            raise InvalidOverrideRule(f"{name} at {where} must be an integer between 0 and {_U32_MAX}, got {value!r}")
        return value
    if kind == "str":
        if not isinstance(value, str):
            raise InvalidOverrideRule(f"{name} at {where} must be a string, got {value!r}")
        return value
    if kind == "int_type":
        if isinstance(value, IntType):
            return value
        try:
            return IntType.from_name(value)
        except (AttributeError, ValueError) as exc:
            choices = ", ".join(member.value for member in IntType)
            raise InvalidOverrideRule(f"{name} at {where} must be one of {choices}, got {value!r}") from exc
    if isinstance(value, CustomField):
        return value
    return _coerce_custom_field(value, name=name, where=where)


def _coerce_custom_field(value: Any, *, name: str, where: str) -> CustomField:
    """Translate ``{"type": ...}`` or ``{"delegate": ...}`` into :class:`CustomField`."""

    if isinstance(value, Mapping) and len(value) == 1:
        ((key, raw),) = value.items()
        if key in _CUSTOM_FIELD_KEYS and isinstance(raw, str):
            return CustomField(CustomFieldKind(key), raw)
    raise InvalidOverrideRule(f"{name} at {where} must be a table with exactly one of 'type' or 'delegate', got {value!r}")


def _to_primitive(value: Any) -> Any:
    if isinstance(value, IntType):
        return value.value
    if isinstance(value, CustomField):
        return {value.kind.value: value.value}
    return value


#: Shared fully-absent bag; safe to re-use because :class:`Config` is frozen.
EMPTY_CONFIG = Config()
