from __future__ import annotations

import json
from pathlib import Path

import pytest

from lib_codegen_overrides import (
    Config,
    CustomField,
    EncodeDecode,
    GeneratorSettings,
    IntType,
    InvalidOverrideRule,
    MalformedOverride,
    MissingCustomField,
    NotFound,
    OverrideRegistry,
    bind_trace_id,
    load_overrides,
    materialize_fragments,
)


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_load_overrides_from_toml(tmp_path: Path) -> None:
    rules = write(
        tmp_path / "rules.toml",
        """
[generator]
encode_decode = "encode_only"
strip_enum_prefix = false

[overrides.".pkg"]
int_type = "u16"

[overrides."pkg.Color"]
enum_int_type = "u8"
no_debug_derive = true

[overrides."pkg.Msg.blob"]
custom_field = { type = "bytes | None" }
""",
    )
    registry = load_overrides(str(rules))

    assert registry.settings == GeneratorSettings(encode_decode=EncodeDecode.ENCODE_ONLY, strip_enum_prefix=False)
    assert len(registry) == 3
    assert registry.resolve("pkg.Color").enum_int_type is IntType.U8
    blob = registry.resolve("pkg.Msg.blob")
    assert blob.int_type is IntType.U16
    assert blob.custom_field == CustomField.type_("bytes | None")
    assert blob.custom_field_parsed(path="pkg.Msg.blob").type_ref.text == "bytes | None"


def test_load_overrides_formats_agree(tmp_path: Path) -> None:
    document = {"overrides": {"pkg": {"skip": True}, "pkg.Msg.f": {"max_bytes": 32, "rename_field": "g"}}}
    toml = write(
        tmp_path / "rules.toml",
        '[overrides."pkg"]\nskip = true\n[overrides."pkg.Msg.f"]\nmax_bytes = 32\nrename_field = "g"\n',
    )
    json_file = write(tmp_path / "rules.json", json.dumps(document))
    yaml_file = write(
        tmp_path / "rules.yml",
        "overrides:\n  pkg:\n    skip: true\n  pkg.Msg.f:\n    max_bytes: 32\n    rename_field: g\n",
    )
    resolved = {load_overrides(str(path)).resolve("pkg.Msg.f") for path in (toml, json_file, yaml_file)}
    assert resolved == {Config.new().with_skip(True).with_max_bytes(32).with_rename_field("g")}


def test_malformed_strings_load_but_fail_on_use(tmp_path: Path) -> None:
    rules = write(tmp_path / "rules.toml", '[overrides."pkg.Msg.f"]\nmap_type = "dict["\nskip = false\n')
    registry = load_overrides(str(rules))
    resolved = registry.resolve("pkg.Msg.f")
    assert resolved.skip is False
    with pytest.raises(MalformedOverride, match="map_type override at pkg.Msg.f"):
        materialize_fragments(resolved, "pkg.Msg.f")


def test_materialize_logs_malformed_override(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("ERROR", logger="lib_codegen_overrides")
    config = Config.new().with_field_attributes("not a decorator")
    with pytest.raises(MalformedOverride):
        materialize_fragments(config, "pkg.Msg.f")
    record = caplog.records[-1]
    assert record.getMessage() == "override_malformed"
    assert getattr(record, "context")["attribute"] == "field_attributes"


def test_load_overrides_extends_existing_registry(tmp_path: Path) -> None:
    registry = OverrideRegistry()
    registry.configure("pkg.Msg", Config.new().with_boxed(True))
    rules = write(tmp_path / "rules.json", json.dumps({"overrides": {"pkg.Msg": {"max_len": 2}}}))
    assert load_overrides(str(rules), registry=registry) is registry
    assert registry.resolve("pkg.Msg") == Config.new().with_boxed(True).with_max_len(2)


def test_load_overrides_missing_file(tmp_path: Path) -> None:
    with pytest.raises(NotFound):
        load_overrides(str(tmp_path / "absent.toml"))


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ('overrides = "pkg"\n', "overrides in .* must be a table"),
        ('[overrides]\n"pkg" = 3\n', "overrides.pkg in .* must be a table"),
        ('[overrides."pkg"]\nsize = 3\n', "Unknown override attribute 'size' at pkg"),
        ('[overrides."."]\nskip = true\n', "Invalid override path '.'"),
        ('[generator]\nuse_std = "yes"\n', "Generator setting use_std must be bool"),
        ('[generator]\nencode_decode = "neither"\n', "encode_decode must be one of"),
        ('[generator]\nfast = true\n', "Unknown generator setting 'fast'"),
    ],
)
def test_load_overrides_rejects_bad_rules(tmp_path: Path, body: str, message: str) -> None:
    rules = write(tmp_path / "rules.toml", body)
    with pytest.raises(InvalidOverrideRule, match=message):
        load_overrides(str(rules))


@pytest.mark.parametrize("key", ["1", "~", "true"])
def test_load_overrides_rejects_non_string_yaml_keys(tmp_path: Path, key: str) -> None:
    rules = write(tmp_path / "rules.yaml", f"overrides:\n  {key}:\n    skip: true\n")
    with pytest.raises(InvalidOverrideRule, match="Override path .* must be a string"):
        load_overrides(str(rules))


def test_load_overrides_logs_registration(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("INFO", logger="lib_codegen_overrides")
    rules = write(tmp_path / "rules.toml", '[overrides."a"]\nskip = true\n[overrides."a.b"]\nboxed = true\n')
    try:
        load_overrides(str(rules), trace_id="run-7")
    finally:
        bind_trace_id(None)
    record = next(record for record in caplog.records if record.getMessage() == "rule_file_registered")
    context = getattr(record, "context")
    assert (context["trace_id"], context["file"], context["overrides"]) == ("run-7", str(rules), 2)


def test_configure_accumulates_while_insert_replaces() -> None:
    registry = OverrideRegistry()
    registry.configure("pkg.Msg", Config.new().with_max_len(1).with_rename_field("a"))
    registry.configure("pkg.Msg", Config.new().with_boxed(True))
    assert registry.resolve("pkg.Msg") == Config.new().with_max_len(1).with_boxed(True)

    registry.insert("pkg.Msg", Config.new().with_skip(True))
    assert registry.resolve("pkg.Msg") == Config.new().with_skip(True)


def test_configure_many_and_registered() -> None:
    registry = OverrideRegistry()
    registry.configure_many(["a.x", "a.y"], Config.new().with_no_hazzer(True))
    assert "a.x" in registry and "a.y" in registry and "a" not in registry
    assert [path for path, _ in registry.registered()] == ["a.x", "a.y"]
    assert registry.explain("a.x.z") == [("a.x", Config.new().with_no_hazzer(True))]


def test_custom_field_presence_must_be_checked_first() -> None:
    registry = OverrideRegistry()
    registry.configure("pkg.Msg", Config.new().with_custom_field(CustomField.delegate("acc")))
    registry.configure("pkg.Msg.f", Config.new().with_boxed(True))
    field_config = registry.resolve("pkg.Msg.f")
    assert field_config.custom_field is None
    with pytest.raises(MissingCustomField, match="pkg.Msg.f"):
        field_config.custom_field_parsed(path="pkg.Msg.f")
