"""
ESTree node model used by the shaker.

Parsers (acorn, espree, @babel/parser) emit plain JSON dictionaries. ``from_estree``
wraps them into :class:`Node` objects that know their parent, so a node can be
removed or replaced in place; ``to_estree`` turns the tree back into plain data.

Only the keys holding nodes are converted. Positions, comments and parser extras
are carried along verbatim.
"""
from __future__ import annotations

import json
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Union


# Keys that never hold child nodes even though they may contain dicts with "type"
RAW_KEYS = frozenset(
    {
        "loc",
        "range",
        "extra",
        "comments",
        "tokens",
        "leadingComments",
        "trailingComments",
        "innerComments",
    }
)

FUNCTION_TYPES = frozenset(
    {
        "FunctionDeclaration",
        "FunctionExpression",
        "ArrowFunctionExpression",
        "ObjectMethod",
        "ClassMethod",
        "ClassPrivateMethod",
    }
)

CLASS_TYPES = frozenset({"ClassDeclaration", "ClassExpression"})

LITERAL_TYPES = frozenset(
    {
        "Literal",
        "StringLiteral",
        "NumericLiteral",
        "BooleanLiteral",
        "NullLiteral",
        "BigIntLiteral",
    }
)

PROPERTY_TYPES = frozenset({"Property", "ObjectProperty"})

MEMBER_TYPES = frozenset({"MemberExpression", "OptionalMemberExpression"})

CALL_TYPES = frozenset({"CallExpression", "OptionalCallExpression", "NewExpression"})

IMPORT_SPECIFIER_TYPES = frozenset(
    {"ImportSpecifier", "ImportDefaultSpecifier", "ImportNamespaceSpecifier"}
)


class Special(Enum):
    """Export names that are not names."""

    WILDCARD = "*"
    SIDE_EFFECT = "side-effect"

    def __repr__(self) -> str:
        return f"Special.{self.name}"


ExportName = Union[str, Special]


def parse_export_name(value: Union[str, Special]) -> ExportName:
    """Map request strings ``"*"`` and ``"side-effect"`` to their tags."""
    if isinstance(value, Special):
        return value
    if value == Special.WILDCARD.value:
        return Special.WILDCARD
    if value == Special.SIDE_EFFECT.value:
        return Special.SIDE_EFFECT
    return value


def export_label(name: ExportName) -> str:
    return name.value if isinstance(name, Special) else name


class Node:
    """A parent-aware ESTree node.

    Identity is object identity: two nodes with the same content are different
    nodes, which is what the reference graph relies on.
    """

    __slots__ = ("type", "fields", "parent", "key", "removed", "scope")

    def __init__(self, type_: str, **fields: Any) -> None:
        self.type = type_
        self.fields: Dict[str, Any] = {}
        self.parent: Optional[Node] = None
        self.key: Optional[str] = None
        self.removed = False
        self.scope = None  # set by scope analysis on scope-creating nodes
        for key, value in fields.items():
            self[key] = value

    def __repr__(self) -> str:
        name = self.fields.get("name")
        suffix = f" {name}" if isinstance(name, str) else ""
        return f"<Node {self.type}{suffix}>"

    def __getitem__(self, key: str) -> Any:
        return self.fields[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.fields[key] = value
        if isinstance(value, Node):
            value._attach(self, key)
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, Node):
                    item._attach(self, key)

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def _attach(self, parent: Node, key: str) -> None:
        self.parent = parent
        self.key = key
        self.removed = False

    # --- navigation ---
    @property
    def container(self) -> Optional[List[Any]]:
        if self.parent is None:
            return None
        value = self.parent.fields.get(self.key)
        return value if isinstance(value, list) else None

    @property
    def index(self) -> Optional[int]:
        container = self.container
        if container is None:
            return None
        for i, item in enumerate(container):
            if item is self:
                return i
        return None

    def children(self) -> Iterator[Node]:
        for key, value in list(self.fields.items()):
            if key in RAW_KEYS:
                continue
            if isinstance(value, Node):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield item

    def walk(self, prune: Optional[Callable[[Node], bool]] = None) -> Iterator[Node]:
        """Pre-order traversal; subtrees whose root satisfies ``prune`` are skipped."""
        stack: List[Node] = [self]
        while stack:
            node = stack.pop()
            if prune is not None and prune(node):
                continue
            yield node
            stack.extend(reversed(list(node.children())))

    def ancestors(self) -> Iterator[Node]:
        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    def find_parent(self, predicate: Callable[[Node], bool]) -> Optional[Node]:
        for ancestor in self.ancestors():
            if predicate(ancestor):
                return ancestor
        return None

    def contains(self, other: Node) -> bool:
        """True if ``other`` is this node or one of its descendants."""
        if other is self:
            return True
        return any(ancestor is self for ancestor in other.ancestors())

    def is_removed(self) -> bool:
        if self.removed:
            return True
        return any(ancestor.removed for ancestor in self.ancestors())

    # --- mutation ---
    def remove(self) -> None:
        """Detach from the parent; a single-node slot becomes ``None``."""
        parent = self.parent
        if parent is not None:
            container = self.container
            if container is not None:
                index = self.index
                if index is not None:
                    del container[index]
            elif parent.fields.get(self.key) is self:
                parent.fields[self.key] = None
        self.removed = True

    def replace_with(self, replacement: Node) -> Node:
        parent = self.parent
        if parent is None:
            raise ValueError("cannot replace a root node")
        container = self.container
        if container is not None:
            container[self.index] = replacement
        else:
            parent.fields[self.key] = replacement
        replacement._attach(parent, self.key)
        self.removed = True
        return replacement

    def insert(self, key: str, index: int, node: Node) -> Node:
        self.fields.setdefault(key, []).insert(index, node)
        node._attach(self, key)
        return node

    def append(self, key: str, node: Node) -> Node:
        self.fields.setdefault(key, []).append(node)
        node._attach(self, key)
        return node


# --- conversion ---
def from_estree(data: Dict[str, Any]) -> Node:
    node = Node(data["type"])
    for key, value in data.items():
        if key == "type":
            continue
        node[key] = value if key in RAW_KEYS else _convert(value)
    return node


def _convert(value: Any) -> Any:
    if isinstance(value, dict) and isinstance(value.get("type"), str):
        return from_estree(value)
    if isinstance(value, list):
        return [_convert(item) for item in value]
    return value


def to_estree(node: Node) -> Dict[str, Any]:
    data: Dict[str, Any] = {"type": node.type}
    for key, value in node.fields.items():
        data[key] = _unconvert(value)
    return data


def _unconvert(value: Any) -> Any:
    if isinstance(value, Node):
        return to_estree(value)
    if isinstance(value, list):
        return [_unconvert(item) for item in value]
    return value


# --- small predicates and builders ---
def is_identifier(node: Any, name: Optional[str] = None) -> bool:
    return (
        isinstance(node, Node)
        and node.type == "Identifier"
        and (name is None or node.get("name") == name)
    )


def literal_value(node: Any) -> Any:
    if isinstance(node, Node) and node.type in LITERAL_TYPES:
        return node.get("value")
    return None


def string_value(node: Any) -> Optional[str]:
    value = literal_value(node)
    return value if isinstance(value, str) else None


def member_property_name(node: Node) -> Optional[str]:
    """``a.b`` and ``a["b"]`` both give ``"b"``."""
    prop = node.get("property")
    if node.get("computed"):
        return string_value(prop)
    if is_identifier(prop):
        return prop["name"]
    return None


def module_export_name(node: Node) -> Optional[str]:
    """Name of an import/export specifier part: identifier or string literal."""
    if is_identifier(node):
        return node["name"]
    return string_value(node)


def identifier(name: str) -> Node:
    return Node("Identifier", name=name)


def null_literal() -> Node:
    return Node("Literal", value=None, raw="null")


def string_literal(value: str) -> Node:
    return Node("Literal", value=value, raw=json.dumps(value))


def member_expression(obj: Node, name: str) -> Node:
    if name.isidentifier():
        return Node(
            "MemberExpression", object=obj, property=identifier(name), computed=False, optional=False
        )
    return Node("MemberExpression", object=obj, property=string_literal(name), computed=True, optional=False)


def assignment(left: Node, right: Node) -> Node:
    return Node("AssignmentExpression", operator="=", left=left, right=right)


def expression_statement(expression: Node) -> Node:
    return Node("ExpressionStatement", expression=expression)


def var_declaration(name: str, kind: str = "var") -> Node:
    declarator = Node("VariableDeclarator", id=identifier(name), init=None)
    return Node("VariableDeclaration", kind=kind, declarations=[declarator])
