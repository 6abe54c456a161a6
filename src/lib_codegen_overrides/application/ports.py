"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts that adapters and consumers rely on so the
composition root can be wired without depending on concrete implementations.

Contents
--------
* :class:`RuleLoader` – parses an override-rule file into a mapping.
* :class:`ConfigResolver` – answers "what is the effective Config at this
  path?" for the code emission stage.

System Role
-----------
These protocols keep the rule-file format and the emitter at arm's length from
the resolution engine. Each adapter implements one protocol.
"""

from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable

from ..domain.config import Config


@runtime_checkable
class RuleLoader(Protocol):
    """Parse a structured override-rule file into a mapping.

    Why
    ----
    Segregate parsing concerns (TOML/JSON/YAML) from registration logic.
    """

    def load(self, path: str) -> Mapping[str, object]:
        """Read *path* and return a mapping or raise ``InvalidFormat``/``NotFound``."""


@runtime_checkable
class ConfigResolver(Protocol):
    """Resolve the effective configuration for a schema element.

    Why
    ----
    The emitter only needs resolution; it should not care how overrides were
    registered or stored.
    """

    def resolve(self, path: str) -> Config:
        """Return the effective :class:`Config` for the element at *path*."""
