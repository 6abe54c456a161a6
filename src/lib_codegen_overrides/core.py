"""Composition root for ``lib_codegen_overrides``.

Purpose
-------
Provide the entry points a code generator uses: register override bags by
schema path, load them from rule files, and resolve the effective
configuration of any schema element.

Contents
--------
* :class:`EncodeDecode` / :class:`GeneratorSettings` – generator-wide switches
  that are not per element.
* :class:`OverrideRegistry` – owns the :class:`PathTree` of bags and exposes
  ``insert``/``configure``/``resolve``.
* :func:`load_overrides` – build a registry from a TOML/JSON/YAML rule file.

System Role
-----------
Connects the rule-file adapters with the domain store and the resolution
algorithm while emitting structured observability signals. Registration
happens once, sequentially; resolution afterwards is read-only.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping

from .adapters.rule_files.structured import loader_for
from .application.resolve import explain, resolve
from .domain.config import Config
from .domain.errors import InvalidFormat, InvalidOverrideRule, MalformedOverride, MissingCustomField, NotFound, OverrideError
from .domain.pathtree import PathTree
from .observability import bind_trace_id, log_debug, log_error, log_info, make_event

_OVERRIDES_KEY = "overrides"
_GENERATOR_KEY = "generator"


class EncodeDecode(Enum):
    """Which halves of the wire codec the generator emits."""

    ENCODE_ONLY = "encode_only"
    DECODE_ONLY = "decode_only"
    BOTH = "both"


@dataclass(frozen=True, slots=True)
class GeneratorSettings:
    """Generator-wide switches read from the ``[generator]`` table.

    Examples
    --------
    >>> GeneratorSettings.from_mapping({"encode_decode": "decode_only"}).encode_decode
    <EncodeDecode.DECODE_ONLY: 'decode_only'>
    >>> GeneratorSettings().strip_enum_prefix
    True
    """

    encode_decode: EncodeDecode = EncodeDecode.BOTH
    size_cache: bool = False
    default_pkg_filename: str = "mod"
    strip_enum_prefix: bool = True
    format: bool = True
    use_std: bool = True

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> GeneratorSettings:
        """Build settings from a rule-file table, validating names and types."""

        defaults = {spec.name: spec.default for spec in fields(cls)}
        values: dict[str, Any] = {}
        for name, value in mapping.items():
            if name not in defaults:
                raise InvalidOverrideRule(f"Unknown generator setting {name!r}")
            if name == "encode_decode":
                try:
                    values[name] = EncodeDecode(value)
                except ValueError as exc:
                    choices = ", ".join(member.value for member in EncodeDecode)
                    raise InvalidOverrideRule(f"encode_decode must be one of {choices}, got {value!r}") from exc
            elif type(value) is not type(defaults[name]):
                raise InvalidOverrideRule(
                    f"Generator setting {name} must be {type(defaults[name]).__name__}, got {value!r}"
                )
            else:
                values[name] = value
        return cls(**values)


class OverrideRegistry:
    """Path-indexed override store with resolution.

    Why
    ----
    The generator registers overrides while reading user rules, then asks for
    the effective configuration of every element it renders. This class is
    that single seam.

    What
    ----
    Wraps a :class:`PathTree` of :class:`Config` bags. :meth:`insert` replaces
    the bag at a path; :meth:`configure` merges into it. :meth:`resolve`
    folds every bag on the path root first and never mutates the store.

    Examples
    --------
    >>> registry = OverrideRegistry()
    >>> registry.configure("pkg", Config.new().with_vec_type("collections.deque"))
    >>> registry.configure("pkg.Msg.items", Config.new().with_max_len(8))
    >>> effective = registry.resolve("pkg.Msg.items")
    >>> effective.vec_type, effective.max_len
    ('collections.deque', 8)
    """

    def __init__(self, settings: GeneratorSettings | None = None) -> None:
        self.settings = settings or GeneratorSettings()
        self._tree: PathTree[Config] = PathTree()

    def insert(self, path: str, config: Config) -> None:
        """Store *config* at exactly *path*, replacing any previous bag."""

        previous = self._tree.insert(path, config)
        event = "override_replaced" if previous is not None else "override_registered"
        log_debug(event, **make_event(path, None, {"attributes": sorted(config.present())}))

    def configure(self, path: str, config: Config) -> None:
        """Merge *config* into the bag already registered at *path*, if any.

        Repeated rules for one path therefore accumulate, with later rules
        winning attribute by attribute (``custom_field`` and ``rename_field``
        follow their replace policy).
        """

        existing = self._tree.get(path)
        self.insert(path, config if existing is None else existing.merge(config))

    def configure_many(self, paths: Iterable[str], config: Config) -> None:
        """Apply :meth:`configure` with the same bag at each of *paths*."""

        for path in paths:
            self.configure(path, config)

    def resolve(self, path: str) -> Config:
        """Return the effective configuration for the element at *path*."""

        return resolve(self._tree, path)

    def explain(self, path: str) -> list[tuple[str, Config]]:
        """Return the ``(prefix, bag)`` pairs that contribute to *path*, root first."""

        return explain(self._tree, path)

    def registered(self) -> Iterator[tuple[str, Config]]:
        """Yield every registered ``(path, bag)`` pair."""

        return self._tree.items()

    def __contains__(self, path: object) -> bool:
        return path in self._tree

    def __len__(self) -> int:
        return len(self._tree)


def load_overrides(path: str, *, registry: OverrideRegistry | None = None, trace_id: str | None = None) -> OverrideRegistry:
    """Read the rule file at *path* and register its overrides.

    Why
    ----
    Operators keep overrides in a rule file next to their schema rather than
    in build-script code.

    What
    ----
    Picks a loader by suffix, reads the optional ``generator`` table into
    :class:`GeneratorSettings`, then registers each entry of the
    ``overrides`` table via :meth:`OverrideRegistry.configure` in file order.
    String overrides are stored verbatim; they are parsed only when a
    fragment is requested.

    Parameters
    ----------
    path:
        Rule file (``.toml``, ``.json``, ``.yaml`` or ``.yml``).
    registry:
        Existing registry to extend. Its settings are replaced when the file
        carries a ``generator`` table.
    trace_id:
        Identifier bound to every log event emitted during loading.

    Raises
    ------
    NotFound
        When the file does not exist.
    InvalidFormat
        When it cannot be parsed or its tables have the wrong shape.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> from pathlib import Path
    >>> tmp = TemporaryDirectory()
    >>> rules = Path(tmp.name) / "rules.toml"
    >>> _ = rules.write_text('[overrides."pkg.Msg"]\\nskip = true\\n', encoding="utf-8")
    >>> load_overrides(str(rules)).resolve("pkg.Msg.field").skip
    True
    >>> tmp.cleanup()
    """

    bind_trace_id(trace_id)
    document = loader_for(path).load(path)
    if registry is None:
        registry = OverrideRegistry()

    generator = document.get(_GENERATOR_KEY)
    if generator is not None:
        registry.settings = GeneratorSettings.from_mapping(_expect_table(generator, _GENERATOR_KEY, path))

    overrides = _expect_table(document.get(_OVERRIDES_KEY, {}), _OVERRIDES_KEY, path)
    for element_path, table in overrides.items():
        if not isinstance(element_path, str):
            raise InvalidOverrideRule(f"Override path {element_path!r} in {path} must be a string")
        bag = Config.from_mapping(_expect_table(table, f"{_OVERRIDES_KEY}.{element_path}", path), path=element_path)
        try:
            registry.configure(element_path, bag)
        except ValueError as exc:
            raise InvalidOverrideRule(f"Invalid override path {element_path!r} in {path}: {exc}") from exc

    log_info("rule_file_registered", **make_event(None, None, {"file": path, "overrides": len(overrides)}))
    return registry


def materialize_fragments(config: Config, path: str, *, name: str | None = None) -> dict[str, object]:
    """Parse every fragment *config* carries for the element at *path*.

    Why
    ----
    Fragments are normally parsed one at a time by the emitter; operators
    checking a rule file want every present override parsed up front.

    What
    ----
    Returns rendered fragments keyed by attribute. ``name`` is the element's
    schema name used as the rename fallback; it defaults to the last path
    segment.

    Raises
    ------
    MalformedOverride
        On the first override that does not parse; the failure is logged as
        ``override_malformed`` before it propagates.

    Examples
    --------
    >>> cfg = Config.new().with_vec_type("collections.deque").with_rename_field("items_")
    >>> materialize_fragments(cfg, "pkg.Msg.items")
    {'field_name': 'items_', 'vec_type': 'collections.deque'}
    """

    original = name if name is not None else path.rsplit(".", 1)[-1]
    fragments: dict[str, object] = {}
    try:
        for attribute, attrs in (
            ("field_attributes", config.field_attr_parsed(path=path)),
            ("type_attributes", config.type_attr_parsed(path=path)),
            ("hazzer_attributes", config.hazzer_attr_parsed(path=path)),
        ):
            if attrs:
                fragments[attribute] = list(attrs)
        fragments["field_name"] = config.field_name(original, path=path)
        for attribute, ref in (
            ("vec_type", config.vec_type_parsed(path=path)),
            ("string_type", config.string_type_parsed(path=path)),
            ("map_type", config.map_type_parsed(path=path)),
        ):
            if ref is not None:
                fragments[attribute] = ref.text
        if config.custom_field is not None:
            custom = config.custom_field_parsed(path=path)
            fragments["custom_field"] = {custom.kind.value: custom.delegate or str(custom.type_ref)}
    except MalformedOverride as exc:
        log_error("override_malformed", **make_event(exc.path, exc.attribute, {"raw": exc.raw}))
        raise
    return fragments


def _expect_table(value: object, name: str, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidOverrideRule(f"{name} in {path} must be a table, got {type(value).__name__}")
    return value


__all__ = [
    "Config",
    "EncodeDecode",
    "GeneratorSettings",
    "InvalidFormat",
    "InvalidOverrideRule",
    "MalformedOverride",
    "MissingCustomField",
    "NotFound",
    "OverrideError",
    "OverrideRegistry",
    "load_overrides",
    "materialize_fragments",
]
