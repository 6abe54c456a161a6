"""Domain-level exception hierarchy.

Purpose
-------
Expose the error taxonomy shared by the override parser, the rule-file
adapters, and the composition root. The hierarchy lives in the domain layer so
outer layers depend on it and never the other way round.

Contents
--------
* :class:`OverrideError` – umbrella base class for every library failure.
* :class:`MalformedOverride` – a raw override string is not a valid fragment.
* :class:`MissingCustomField` – a custom-field fragment was requested for an
  element that has no custom-field override.
* :class:`InvalidFormat` – a rule file could not be parsed.
* :class:`InvalidOverrideRule` – a rule table is structurally wrong.
* :class:`NotFound` – a rule file does not exist.

System Role
-----------
Merging and path traversal never raise. Only fragment conversion and rule
loading do, so callers catch :class:`OverrideError` at the generator's
top-level diagnostics boundary.
"""

from __future__ import annotations


class OverrideError(Exception):
    """Base type for all exceptions emitted by ``lib_codegen_overrides``."""


class MalformedOverride(OverrideError):
    """Raised when a raw override string cannot be parsed into its fragment.

    Why
    ----
    Overrides are accepted verbatim at registration time and only parsed when
    the generator needs them, so the error has to carry enough context to
    point the operator back at the rule that produced it.

    Attributes
    ----------
    path:
        Dotted path of the schema element whose override failed.
    attribute:
        Name of the :class:`~lib_codegen_overrides.domain.config.Config`
        attribute holding the raw string.
    raw:
        The offending raw string.
    reason:
        Short description of what was expected.

    Examples
    --------
    >>> err = MalformedOverride("pkg.Msg.f", "vec_type", "not<<valid", "not a valid type reference")
    >>> str(err)
    "Malformed vec_type override at pkg.Msg.f: 'not<<valid' is not a valid type reference"
    """

    def __init__(self, path: str | None, attribute: str, raw: str, reason: str) -> None:
        self.path = path
        self.attribute = attribute
        self.raw = raw
        self.reason = reason
        where = path if path else "<unknown path>"
        super().__init__(f"Malformed {attribute} override at {where}: {raw!r} is {reason}")


class MissingCustomField(OverrideError):
    """Raised when a custom-field fragment is requested but none is configured.

    This is a contract violation by the caller, which must check
    ``config.custom_field is not None`` before asking for the parsed form.
    """

    def __init__(self, path: str | None) -> None:
        self.path = path
        where = path if path else "<unknown path>"
        super().__init__(f"No custom_field override is configured at {where}")


class InvalidFormat(OverrideError):
    """Raised when a rule file cannot be parsed into structured data.

    Typical Sources
    ---------------
    Structured rule loaders (:mod:`tomllib`, :mod:`json`, :mod:`yaml`).
    """


class InvalidOverrideRule(InvalidFormat):
    """A syntactically valid rule file carries a structurally invalid rule.

    Covers unknown attribute names, values of the wrong primitive type, and
    unknown enum members. Raw string overrides are still not parsed here.
    """


class NotFound(OverrideError):
    """Represents a rule file that does not exist."""
