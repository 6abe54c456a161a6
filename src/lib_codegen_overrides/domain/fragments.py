"""Typed source fragments parsed from raw override strings.

Purpose
-------
Convert the verbatim strings held by :class:`~lib_codegen_overrides.domain.config.Config`
into the typed values the code emitter consumes. Parsing is a pure function of
the raw string, uses the standard-library :mod:`ast` module, and runs every
time a fragment is requested.

Contents
--------
* :class:`TypeRef` – canonical Python type expression.
* :class:`AttributeList` – decorator lines injected above a generated type or
  field.
* :class:`ParsedCustomField` – parsed custom-field override.
* :func:`parse_type_ref` / :func:`parse_container_type` /
  :func:`parse_identifier` / :func:`parse_attribute_list` – the parsers.

System Role
-----------
Failures raise :class:`~lib_codegen_overrides.domain.errors.MalformedOverride`
naming the element path and attribute, so a bad override surfaces only when
the generator stage that needs it runs.
"""

from __future__ import annotations

import ast
import keyword
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, NoReturn

from .errors import MalformedOverride

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import CustomFieldKind

_TYPE_REASON = "not a valid type reference"
_CONTAINER_REASON = "not a valid container type path"
_IDENTIFIER_REASON = "not a valid identifier"
_ATTRIBUTES_REASON = "not a valid decorator list"


@dataclass(frozen=True, slots=True)
class TypeRef:
    """A parsed type expression.

    Attributes
    ----------
    text:
        Canonical rendering produced by :func:`ast.unparse`.
    head:
        Dotted name at the outermost position (``"collections.deque"`` for
        ``collections.deque[int]``); ``None`` for unions.
    """

    text: str
    head: str | None = None

    @property
    def module(self) -> str | None:
        """Return the module part of :attr:`head`, if it is qualified.

        Examples
        --------
        >>> TypeRef("collections.deque[int]", "collections.deque").module
        'collections'
        >>> TypeRef("list[int]", "list").module is None
        True
        """

        if self.head is None or "." not in self.head:
            return None
        return self.head.rsplit(".", 1)[0]

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class AttributeList:
    """Decorator expressions (without the leading ``@``) in source order."""

    items: tuple[str, ...] = ()

    def __iter__(self) -> Iterator[str]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)

    def render(self, indent: str = "") -> str:
        """Return the decorator lines joined by newlines.

        Examples
        --------
        >>> AttributeList(("dataclass(frozen=True)", "total_ordering")).render("    ")
        '    @dataclass(frozen=True)\\n    @total_ordering'
        """

        return "\n".join(f"{indent}@{item}" for item in self.items)


@dataclass(frozen=True, slots=True)
class ParsedCustomField:
    """Parsed custom-field override; exactly one of the payloads is set."""

    kind: CustomFieldKind
    type_ref: TypeRef | None = None
    delegate: str | None = None

    @classmethod
    def of_type(cls, type_ref: TypeRef) -> ParsedCustomField:
        from .config import CustomFieldKind

        return cls(CustomFieldKind.TYPE, type_ref=type_ref)

    @classmethod
    def of_delegate(cls, delegate: str) -> ParsedCustomField:
        from .config import CustomFieldKind

        return cls(CustomFieldKind.DELEGATE, delegate=delegate)


def parse_type_ref(raw: str, *, path: str | None = None, attribute: str = "custom_field") -> TypeRef:
    """Parse *raw* as a Python type expression.

    Accepted forms are names, dotted names, subscripts (``Dict[str, int]``),
    ``|`` unions and ``None``. Subscript arguments may additionally be int or
    string literals, ``...`` and bracketed lists (``Callable[[int], str]``).

    Examples
    --------
    >>> parse_type_ref("typing.Dict[ str,int ]").text
    'typing.Dict[str, int]'
    >>> parse_type_ref("not<<valid", path="pkg.Msg.f", attribute="vec_type")
    Traceback (most recent call last):
    ...
    lib_codegen_overrides.domain.errors.MalformedOverride: Malformed vec_type override at pkg.Msg.f: 'not<<valid' is not a valid type reference
    """

    node = _parse_expression(raw, path=path, attribute=attribute, reason=_TYPE_REASON)
    if not _is_type_expr(node):
        _fail(raw, path=path, attribute=attribute, reason=_TYPE_REASON)
    return TypeRef(ast.unparse(node), _head_of(node))


def parse_container_type(raw: str, *, path: str | None = None, attribute: str = "vec_type") -> TypeRef:
    """Parse *raw* as a container type: a dotted name, optionally subscripted.

    Examples
    --------
    >>> ref = parse_container_type("collections.deque")
    >>> ref.text, ref.module
    ('collections.deque', 'collections')
    >>> parse_container_type("int | None").text
    Traceback (most recent call last):
    ...
    lib_codegen_overrides.domain.errors.MalformedOverride: Malformed vec_type override at <unknown path>: 'int | None' is not a valid container type path
    """

    node = _parse_expression(raw, path=path, attribute=attribute, reason=_CONTAINER_REASON)
    target = node.value if isinstance(node, ast.Subscript) else node
    if not _is_dotted(target) or not _is_type_expr(node):
        _fail(raw, path=path, attribute=attribute, reason=_CONTAINER_REASON)
    return TypeRef(ast.unparse(node), _head_of(node))


def parse_identifier(raw: str, *, path: str | None = None, attribute: str = "rename_field") -> str:
    """Return *raw* when it is a Python identifier that is not a keyword.

    Examples
    --------
    >>> parse_identifier("payload_v2")
    'payload_v2'
    >>> parse_identifier("class")
    Traceback (most recent call last):
    ...
    lib_codegen_overrides.domain.errors.MalformedOverride: Malformed rename_field override at <unknown path>: 'class' is not a valid identifier
    """

    if not raw.isidentifier() or keyword.iskeyword(raw):
        _fail(raw, path=path, attribute=attribute, reason=_IDENTIFIER_REASON)
    return raw


def parse_attribute_list(raw: str, *, path: str | None = None, attribute: str = "type_attributes") -> AttributeList:
    """Parse *raw* as zero or more decorator lines.

    Each entry is ``@name`` or ``@name(args)`` where ``name`` is a dotted name.
    Empty or blank text yields an empty list.

    Examples
    --------
    >>> parse_attribute_list("@dataclass(frozen=True)\\n@functools.total_ordering").items
    ('dataclass(frozen=True)', 'functools.total_ordering')
    >>> bool(parse_attribute_list("   "))
    False
    """

    if not raw.strip():
        return AttributeList()
    # a trailing class gives the decorators something to attach to
    lines = "\n".join(line.strip() for line in raw.strip().splitlines())
    source = lines + "\nclass _Decorated:\n    pass\n"
    try:
        module = ast.parse(source)
    except (SyntaxError, ValueError) as exc:
        _fail(raw, path=path, attribute=attribute, reason=_ATTRIBUTES_REASON, cause=exc)
    if len(module.body) != 1 or not isinstance(module.body[0], ast.ClassDef):
        _fail(raw, path=path, attribute=attribute, reason=_ATTRIBUTES_REASON)
    decorators = module.body[0].decorator_list
    if not all(_is_decorator(node) for node in decorators):
        _fail(raw, path=path, attribute=attribute, reason=_ATTRIBUTES_REASON)
    return AttributeList(tuple(ast.unparse(node) for node in decorators))


def _parse_expression(raw: str, *, path: str | None, attribute: str, reason: str) -> ast.expr:
    text = raw.strip()
    if not text:
        _fail(raw, path=path, attribute=attribute, reason=reason)
    try:
        return ast.parse(text, mode="eval").body
    except (SyntaxError, ValueError) as exc:
        _fail(raw, path=path, attribute=attribute, reason=reason, cause=exc)


def _fail(raw: str, *, path: str | None, attribute: str, reason: str, cause: BaseException | None = None) -> NoReturn:
    raise MalformedOverride(path, attribute, raw, reason) from cause


def _is_dotted(node: ast.expr) -> bool:
    if isinstance(node, ast.Name):
        return True
    return isinstance(node, ast.Attribute) and _is_dotted(node.value)


def _is_type_expr(node: ast.expr) -> bool:
    if _is_dotted(node):
        return True
    if isinstance(node, ast.Constant):
        return node.value is None
    if isinstance(node, ast.BinOp):
        return isinstance(node.op, ast.BitOr) and _is_type_expr(node.left) and _is_type_expr(node.right)
    if isinstance(node, ast.Subscript):
        arguments = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]
        return _is_dotted(node.value) and all(_is_type_argument(arg) for arg in arguments)
    return False


def _is_type_argument(node: ast.expr) -> bool:
    if isinstance(node, ast.Constant):
        return node.value is None or node.value is Ellipsis or isinstance(node.value, (int, str))
    if isinstance(node, ast.List):
        return all(_is_type_expr(item) for item in node.elts)
    return _is_type_expr(node)


def _is_decorator(node: ast.expr) -> bool:
    if isinstance(node, ast.Call):
        return _is_dotted(node.func)
    return _is_dotted(node)


def _head_of(node: ast.expr) -> str | None:
    if isinstance(node, ast.Subscript):
        node = node.value
    return ast.unparse(node) if _is_dotted(node) else None
