"""Contract tests for the application-layer ports.

Verify that the default adapters and the registry keep satisfying the
protocols in ``src/lib_codegen_overrides/application/ports.py`` so dependency
inversion stays enforceable through automated tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from lib_codegen_overrides.adapters.rule_files.structured import JSONRuleLoader, TOMLRuleLoader, YAMLRuleLoader
from lib_codegen_overrides.application import ports
from lib_codegen_overrides.core import OverrideRegistry
from lib_codegen_overrides.domain.config import Config


@pytest.mark.parametrize(
    ("loader", "name", "body"),
    [
        (TOMLRuleLoader(), "rules.toml", '[overrides."pkg"]\nskip = true\n'),
        (JSONRuleLoader(), "rules.json", '{"overrides": {"pkg": {"skip": true}}}'),
        (YAMLRuleLoader(), "rules.yaml", "overrides:\n  pkg:\n    skip: true\n"),
    ],
)
def test_rule_loaders_fulfil_port(tmp_path: Path, loader: ports.RuleLoader, name: str, body: str) -> None:
    """Every format must satisfy RuleLoader and decode to the same mapping."""

    assert isinstance(loader, ports.RuleLoader)
    path = tmp_path / name
    path.write_text(body, encoding="utf-8")
    assert loader.load(str(path)) == {"overrides": {"pkg": {"skip": True}}}


def test_registry_fulfils_resolver_port() -> None:
    """OverrideRegistry is what the emitter receives as its ConfigResolver."""

    registry = OverrideRegistry()
    registry.insert("pkg", Config.new().with_skip(True))
    resolver: ports.ConfigResolver = registry
    assert isinstance(resolver, ports.ConfigResolver)
    assert resolver.resolve("pkg.Msg").skip is True
