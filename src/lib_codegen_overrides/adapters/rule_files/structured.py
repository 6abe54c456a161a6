"""Structured override-rule file loaders.

Purpose
-------
Turn an on-disk rule file into the plain mapping the composition root
registers from. Loaders are thin wrappers around ``tomllib``, ``json`` and
``yaml.safe_load`` so error translation and observability live in one place.

Contents
--------
* :class:`RuleFileLoader` – shared read/decode/validate flow.
* :class:`TOMLRuleLoader` / :class:`JSONRuleLoader` / :class:`YAMLRuleLoader` –
  format specific decoders.
* :func:`loader_for` – pick a loader from the file suffix.

System Role
-----------
Invoked by :func:`lib_codegen_overrides.core.load_overrides`. Loaders check
only that the document is a mapping; the meaning of its tables is validated
by the composition root and :meth:`Config.from_mapping`.
"""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any, ClassVar, Mapping

import yaml

from ...domain.errors import InvalidFormat, NotFound
from ...observability import log_debug, log_error


class RuleFileLoader:
    """Read a rule file and decode it into a mapping.

    Subclasses set :attr:`format` and implement :meth:`_decode`, translating
    their parser's errors into ``ValueError``.
    """

    format: ClassVar[str] = ""

    def load(self, path: str) -> Mapping[str, object]:
        """Return the mapping stored in the rule file at *path*.

        Raises
        ------
        NotFound
            When *path* is not a file.
        InvalidFormat
            When the content cannot be decoded or is not a mapping.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile('w', suffix='.json', delete=False, encoding='utf-8')
        >>> _ = tmp.write('{"overrides": {"pkg.Msg": {"skip": true}}}')
        >>> tmp.close()
        >>> JSONRuleLoader().load(tmp.name)["overrides"]["pkg.Msg"]
        {'skip': True}
        >>> Path(tmp.name).unlink()
        """

        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f"Rule file not found: {path}")
        payload = file_path.read_bytes()
        try:
            data = self._decode(payload)
        except ValueError as exc:
            log_error("rule_file_invalid", path=path, format=self.format, error=str(exc))
            raise InvalidFormat(f"Invalid {self.format.upper()} in {path}: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise InvalidFormat(f"Rule file {path} did not produce a mapping")
        log_debug("rule_file_loaded", path=path, format=self.format, size=len(payload))
        return data

    def _decode(self, payload: bytes) -> Any:
        raise NotImplementedError


class TOMLRuleLoader(RuleFileLoader):
    """Decode TOML rule files, the primary documented format."""

    format = "toml"

    def _decode(self, payload: bytes) -> Any:
        # TOMLDecodeError and UnicodeDecodeError are both ValueError subclasses
        return tomllib.loads(payload.decode("utf-8"))


class JSONRuleLoader(RuleFileLoader):
    """Decode JSON rule files."""

    format = "json"

    def _decode(self, payload: bytes) -> Any:
        return json.loads(payload)


class YAMLRuleLoader(RuleFileLoader):
    """Decode YAML rule files; an empty document counts as an empty mapping."""

    format = "yaml"

    def _decode(self, payload: bytes) -> Any:
        try:
            return yaml.safe_load(payload)
        except yaml.YAMLError as exc:
            raise ValueError(str(exc)) from exc


_LOADERS: dict[str, RuleFileLoader] = {
    ".toml": TOMLRuleLoader(),
    ".json": JSONRuleLoader(),
    ".yaml": YAMLRuleLoader(),
    ".yml": YAMLRuleLoader(),
}


def loader_for(path: str) -> RuleFileLoader:
    """Return the loader registered for the suffix of *path*.

    Raises
    ------
    InvalidFormat
        When the suffix is not one of ``.toml``, ``.json``, ``.yaml``, ``.yml``.

    Examples
    --------
    >>> loader_for("overrides.toml").format
    'toml'
    """

    suffix = Path(path).suffix.lower()
    try:
        return _LOADERS[suffix]
    except KeyError as exc:
        supported = ", ".join(sorted(_LOADERS))
        raise InvalidFormat(f"Unsupported rule file type {suffix or '<none>'!r} for {path}; expected one of {supported}") from exc
