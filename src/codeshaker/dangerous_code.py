"""
Strip code that cannot run outside a browser before evaluation.

JSX becomes ``null``; ``typeof window`` becomes ``"undefined"``; any other use of
an unbound browser global becomes ``undefined`` together with the member
accesses and calls hanging off it (``window.location.href`` → ``undefined``).
Declarations only used by the stripped code are removed by the usual cascade.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .actions import replace_node
from .node_types import CALL_TYPES, MEMBER_TYPES, Node, identifier, null_literal, string_literal
from .scope import binding_of, is_reference

logger = logging.getLogger(__name__)

BROWSER_GLOBALS = frozenset(
    {
        "$RefreshReg$",
        "$RefreshSig$",
        "XMLHttpRequest",
        "cancelAnimationFrame",
        "clearImmediate",
        "clearInterval",
        "clearTimeout",
        "document",
        "fetch",
        "localStorage",
        "location",
        "navigator",
        "requestAnimationFrame",
        "sessionStorage",
        "setImmediate",
        "setInterval",
        "setTimeout",
        "window",
    }
)

JSX_TYPES = frozenset({"JSXElement", "JSXFragment"})

Replacement = Tuple[Node, Node]


def remove_dangerous_code(program: Node) -> List[Replacement]:
    """Rewrite ``program`` in place; returns ``(old, new)`` for every replaced node."""
    jsx: List[Node] = []
    globals_: List[Node] = []
    for node in program.walk():
        if node.type in JSX_TYPES:
            jsx.append(node)
        elif node.type == "Identifier" and node["name"] in BROWSER_GLOBALS:
            if is_reference(node) and binding_of(node) is None:
                globals_.append(node)

    replaced: List[Replacement] = []
    for node in jsx:
        if node.is_removed():
            continue
        new = null_literal()
        replace_node(node, new)
        replaced.append((node, new))

    for node in globals_:
        if node.is_removed():
            continue
        target, new = _global_replacement(node)
        replace_node(target, new)
        replaced.append((target, new))

    if replaced:
        logger.debug("replaced %d browser-only expression(s)", len(replaced))
    return replaced


def _global_replacement(node: Node) -> Tuple[Node, Node]:
    parent = node.parent
    if parent is not None and parent.type == "UnaryExpression" and parent.get("operator") == "typeof":
        return parent, string_literal("undefined")

    # window.a.b(), document.querySelector(...).value, new window.Foo()
    top = node
    while top.parent is not None:
        p = top.parent
        if p.type in MEMBER_TYPES and top.key == "object":
            top = p
        elif p.type in CALL_TYPES and top.key == "callee":
            top = p
        elif p.type == "ChainExpression":
            top = p
        else:
            break

    holder: Optional[Node] = top.parent
    if holder is not None and (
        (holder.type == "AssignmentExpression" and top.key == "left")
        or holder.type == "UpdateExpression"
        or (holder.type == "UnaryExpression" and holder.get("operator") == "delete")
    ):
        # not an expression position, drop the write as a whole
        return holder, identifier("undefined")
    return top, identifier("undefined")
