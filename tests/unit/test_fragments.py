from __future__ import annotations

import pytest

from lib_codegen_overrides.domain.config import Config, CustomField, CustomFieldKind
from lib_codegen_overrides.domain.errors import MalformedOverride, MissingCustomField
from lib_codegen_overrides.domain.fragments import (
    AttributeList,
    TypeRef,
    parse_attribute_list,
    parse_container_type,
    parse_identifier,
    parse_type_ref,
)

PATH = "pkg.Msg.field"


def test_parse() -> None:
    config = (
        Config.new()
        .with_vec_type("collections.deque")
        .with_string_type("builtins.bytearray")
        .with_map_type("Map")
        .with_hazzer_attributes("@dataclass(eq=True)")
        .with_type_attributes("@functools.total_ordering")
    )

    assert config.vec_type_parsed(path=PATH) == TypeRef("collections.deque", "collections.deque")
    assert config.string_type_parsed(path=PATH).text == "builtins.bytearray"
    assert config.map_type_parsed(path=PATH).text == "Map"
    assert list(config.hazzer_attr_parsed(path=PATH)) == ["dataclass(eq=True)"]
    assert list(config.type_attr_parsed(path=PATH)) == ["functools.total_ordering"]

    assert config.field_attr_parsed(path=PATH) == AttributeList()
    config = config.with_field_attributes("@property")
    assert config.field_attr_parsed(path=PATH).items == ("property",)

    assert config.field_name("name", path=PATH) == "name"
    config = config.with_rename_field("rename")
    assert config.field_name("name", path=PATH) == "rename"

    config = config.with_custom_field(CustomField.type_("Vec[ int, 4 ]"))
    parsed = config.custom_field_parsed(path=PATH)
    assert parsed.kind is CustomFieldKind.TYPE
    assert parsed.type_ref is not None and parsed.type_ref.text == "Vec[int, 4]"
    assert parsed.delegate is None

    config = config.with_custom_field(CustomField.delegate("name"))
    parsed = config.custom_field_parsed(path=PATH)
    assert parsed.kind is CustomFieldKind.DELEGATE
    assert parsed.delegate == "name"
    assert parsed.type_ref is None


def test_absent_overrides_yield_defaults() -> None:
    config = Config.new()
    assert config.vec_type_parsed(path=PATH) is None
    assert config.string_type_parsed(path=PATH) is None
    assert config.map_type_parsed(path=PATH) is None
    assert not config.type_attr_parsed(path=PATH)
    assert not config.hazzer_attr_parsed(path=PATH)
    assert config.field_attr_parsed(path=PATH).render() == ""
    assert config.field_name("original", path=PATH) == "original"


def test_missing_custom_field_is_a_contract_violation() -> None:
    with pytest.raises(MissingCustomField) as excinfo:
        Config.new().custom_field_parsed(path=PATH)
    assert excinfo.value.path == PATH
    assert PATH in str(excinfo.value)


def test_malformed_container_names_path_and_attribute() -> None:
    config = Config.new().with_vec_type("not<<valid")
    with pytest.raises(MalformedOverride) as excinfo:
        config.vec_type_parsed(path=PATH)
    error = excinfo.value
    assert error.path == PATH
    assert error.attribute == "vec_type"
    assert error.raw == "not<<valid"
    assert "vec_type" in str(error) and PATH in str(error)


def test_malformed_fragments_fail_on_every_request() -> None:
    config = Config.new().with_map_type("dict[")
    for _ in range(2):
        with pytest.raises(MalformedOverride):
            config.map_type_parsed(path=PATH)


@pytest.mark.parametrize(
    "raw",
    ["int", "typing.Optional[bytes]", "list[int]", "dict[str, list[int]]", "int | None", "Callable[[int], str]", "Literal['a', 1]"],
)
def test_parse_type_ref_accepts_type_expressions(raw: str) -> None:
    assert parse_type_ref(raw).text == raw


@pytest.mark.parametrize("raw", ["", "   ", "not<<valid", "1", "f(x)", "a + b", "lambda: int", "x[1:2]", "'Forward'"])
def test_parse_type_ref_rejects_non_types(raw: str) -> None:
    with pytest.raises(MalformedOverride, match="not a valid type reference"):
        parse_type_ref(raw, path=PATH)


def test_type_ref_reports_head_and_module() -> None:
    ref = parse_type_ref("collections.abc.Sequence[int]")
    assert ref.head == "collections.abc.Sequence"
    assert ref.module == "collections.abc"
    assert parse_type_ref("int | None").head is None
    assert str(ref) == "collections.abc.Sequence[int]"


@pytest.mark.parametrize("raw", ["int | None", "None", "Map | Dict", "[int]"])
def test_parse_container_type_requires_a_dotted_head(raw: str) -> None:
    with pytest.raises(MalformedOverride, match="not a valid container type path"):
        parse_container_type(raw, path=PATH, attribute="map_type")


def test_parse_container_type_allows_subscripts() -> None:
    assert parse_container_type("collections.deque[int]").head == "collections.deque"


@pytest.mark.parametrize("raw", ["", "1abc", "with space", "class", "None", "a.b", "kebab-case"])
def test_parse_identifier_rejects(raw: str) -> None:
    with pytest.raises(MalformedOverride, match="not a valid identifier"):
        parse_identifier(raw, path=PATH)


def test_invalid_original_name_is_reported_as_field_name() -> None:
    with pytest.raises(MalformedOverride) as excinfo:
        Config.new().field_name("def", path=PATH)
    assert excinfo.value.attribute == "field_name"


def test_parse_attribute_list_handles_multiple_lines() -> None:
    raw = """
        @dataclass(frozen=True, slots=True)
        @functools.total_ordering
    """
    attrs = parse_attribute_list(raw)
    assert attrs.items == ("dataclass(frozen=True, slots=True)", "functools.total_ordering")
    assert len(attrs) == 2
    assert attrs.render() == "@dataclass(frozen=True, slots=True)\n@functools.total_ordering"


def test_parse_attribute_list_ignores_uneven_indentation() -> None:
    attrs = parse_attribute_list("@a\n    @b(1)\n  @c.d", path=PATH)
    assert attrs.items == ("a", "b(1)", "c.d")


@pytest.mark.parametrize(
    "raw",
    ["dataclass", "@", "@a @b", "@a\nx = 1", "@(lambda c: c)", "@a\nclass Other: pass", "@a[0]", "@a("],
)
def test_parse_attribute_list_rejects(raw: str) -> None:
    with pytest.raises(MalformedOverride, match="not a valid decorator list") as excinfo:
        parse_attribute_list(raw, path=PATH, attribute="field_attributes")
    assert excinfo.value.attribute == "field_attributes"
