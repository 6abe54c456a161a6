"""CLI adapter for ``lib_codegen_overrides`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect how their override rules resolve for concrete schema
elements without running the whole code generator.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command wiring traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata.
* :func:`cli_resolve` – prints effective configs (optionally with the
  contributing prefixes) as JSON.
* :func:`cli_list` – prints every registered override bag.
* :func:`cli_check` – parses every fragment of the resolved configs and fails
  on the first malformed override.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
Outermost layer. It calls :func:`lib_codegen_overrides.core.load_overrides`
and the registry API and never reaches into adapters directly.
``lib_cli_exit_tools`` centralises the exit code strategy.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .core import load_overrides, materialize_fragments

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_DISTRIBUTION: Final[str] = "lib_codegen_overrides"
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

_rules_option = click.option(
    "--rules",
    "rules",
    type=click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True),
    required=True,
    help="Override rule file (.toml, .json, .yaml)",
)
_indent_option = click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` for source checkouts."""

    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Resolve hierarchical code-generation overrides",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DISTRIBUTION,
    message="lib_codegen_overrides version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        click.echo(f"{_DISTRIBUTION} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DISTRIBUTION)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.11')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("resolve", context_settings=CLICK_CONTEXT_SETTINGS)
@_rules_option
@click.option(
    "--explain/--no-explain",
    default=False,
    help="Include the registered bags that contributed to each result",
)
@_indent_option
@click.argument("paths", nargs=-1, required=True)
def cli_resolve(rules: Path, explain: bool, indent: Optional[int], paths: Sequence[str]) -> None:
    """Print the effective configuration of each schema PATH as JSON.

    Attributes that resolve to absent are omitted. With ``--explain`` each
    entry becomes ``{"config": ..., "sources": [{"path": ..., "config": ...}]}``.
    """

    registry = load_overrides(str(rules))
    payload: dict[str, object] = {}
    for path in paths:
        effective = registry.resolve(path).as_dict()
        if explain:
            sources = [{"path": prefix, "config": bag.as_dict()} for prefix, bag in registry.explain(path)]
            payload[path] = {"config": effective, "sources": sources}
        else:
            payload[path] = effective
    click.echo(json.dumps(payload, indent=indent, separators=(",", ":")))


@cli.command("list", context_settings=CLICK_CONTEXT_SETTINGS)
@_rules_option
@_indent_option
def cli_list(rules: Path, indent: Optional[int]) -> None:
    """Print every registered override bag keyed by its path."""

    registry = load_overrides(str(rules))
    payload = {path: bag.as_dict() for path, bag in registry.registered()}
    click.echo(json.dumps(payload, indent=indent, separators=(",", ":")))


@cli.command("check", context_settings=CLICK_CONTEXT_SETTINGS)
@_rules_option
@click.option(
    "--name",
    default=None,
    help="Original schema name used when no rename applies (defaults to the last path segment)",
)
@_indent_option
@click.argument("paths", nargs=-1, required=True)
def cli_check(rules: Path, name: Optional[str], indent: Optional[int], paths: Sequence[str]) -> None:
    """Parse every override fragment that applies to each PATH.

    Prints the parsed fragments as JSON; a malformed override aborts with a
    non-zero exit code and a message naming the path and attribute.
    """

    registry = load_overrides(str(rules))
    payload = {path: materialize_fragments(registry.resolve(path), path, name=name) for path in paths}
    click.echo(json.dumps(payload, indent=indent, separators=(",", ":")))


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DISTRIBUTION,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
