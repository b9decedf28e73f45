"""
Deletion units and the primitives that apply them.

An :class:`Action` pairs a node slated for deletion with the smallest enclosing
node that has to go with it: removing one declarator of ``const a = 1, b = 2``
removes only that declarator, removing the only one removes the declaration,
removing the value of ``exports.a = v`` removes the whole statement.

Applying an action keeps the reference graph in sync: identifiers inside the
removed subtree are dereferenced, bindings declared there are dropped, and any
declaration left without references is removed in turn.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .node_types import (
    CALL_TYPES,
    IMPORT_SPECIFIER_TYPES,
    MEMBER_TYPES,
    PROPERTY_TYPES,
    Node,
    identifier,
)
from .scope import Binding, binding_of

STATEMENT_LIST_PARENTS = frozenset({"Program", "BlockStatement", "StaticBlock"})

# Bindings whose declaration is never removed just because nothing reads it
_NOT_CASCADED = frozenset({"param", "local"})


@dataclass
class Action:
    kind: str  # remove|replace
    target: Node
    replacement: Optional[Node] = None


def find_action_for_node(node: Node) -> Optional[Action]:
    if node.is_removed():
        return None
    parent = node.parent
    if parent is None:
        return None
    pt, key = parent.type, node.key

    if pt in STATEMENT_LIST_PARENTS or (pt == "SwitchCase" and key == "consequent"):
        return Action("remove", node)
    if pt == "ExpressionStatement":
        return find_action_for_node(parent)
    if pt in ("ExportNamedDeclaration", "ExportDefaultDeclaration") and key == "declaration":
        return find_action_for_node(parent)
    if pt in ("FunctionDeclaration", "ClassDeclaration") and key == "id":
        return find_action_for_node(parent)
    if pt == "VariableDeclarator":
        return find_action_for_node(parent)
    if pt == "VariableDeclaration":
        if len(parent["declarations"]) > 1:
            return Action("remove", node)
        action = find_action_for_node(parent)
        if action is None and parent.key == "init" and parent.parent is not None and parent.parent.type == "ForStatement":
            return Action("remove", parent)
        return action
    if pt in IMPORT_SPECIFIER_TYPES or pt == "ExportSpecifier":
        return find_action_for_node(parent)
    if node.type in IMPORT_SPECIFIER_TYPES or node.type == "ExportSpecifier":
        if len(parent.get("specifiers") or []) > 1:
            return Action("remove", node)
        return find_action_for_node(parent)
    if pt == "AssignmentExpression":
        grandparent = parent.parent
        if grandparent is not None and grandparent.type == "ExpressionStatement":
            return find_action_for_node(parent)
        if key == "left":
            return Action("replace", parent, parent["right"])
        return find_action_for_node(parent)
    if pt in MEMBER_TYPES and key == "object":
        return find_action_for_node(parent)
    if pt in CALL_TYPES:
        return find_action_for_node(parent)
    if pt == "ChainExpression":
        return find_action_for_node(parent)
    if pt in PROPERTY_TYPES and key == "value":
        holder = parent.parent
        if holder is not None and holder.type == "ObjectExpression":
            return Action("remove", parent)
        if holder is not None and holder.type == "ObjectPattern":
            if len(holder.get("properties") or []) > 1:
                return Action("remove", parent)
            return find_action_for_node(holder)
        return None
    if pt == "ArrayExpression":
        return Action("replace", node, identifier("undefined"))
    if pt == "SequenceExpression" and len(parent["expressions"]) > 1:
        return Action("remove", node)
    if pt == "ArrowFunctionExpression" and key == "body" and node.type != "BlockStatement":
        return Action("replace", node, identifier("undefined"))
    return None


def apply_action(action: Action) -> None:
    target = action.target
    if target.is_removed():
        return
    replacement = action.replacement
    if action.kind == "replace" and replacement is not None:
        target.replace_with(replacement)
    else:
        target.remove()
    touched = _unlink(target, keep=replacement)
    _remove_dangling(touched)


def remove_with_related(nodes: Iterable[Node]) -> None:
    """Remove nodes that have no action, cleaning up what they leave dangling."""
    for node in nodes:
        if node.is_removed():
            continue
        action = _nearest_action(node)
        if action is not None:
            apply_action(action)
            continue
        if node.parent is None:
            continue
        node.remove()
        _remove_dangling(_unlink(node))


def replace_node(node: Node, replacement: Node) -> None:
    if node.is_removed():
        return
    apply_action(Action("replace", node, replacement))


def _nearest_action(node: Node) -> Optional[Action]:
    current: Optional[Node] = node
    while current is not None:
        action = find_action_for_node(current)
        if action is not None:
            return action
        current = current.parent
    return None


def _unlink(root: Node, keep: Optional[Node] = None) -> List[Binding]:
    """Detach the identifiers of a removed subtree from their bindings.

    Returns the outside bindings that lost a reference or a write.
    """
    pairs: List[Tuple[Node, Binding]] = []
    for node in root.walk(prune=lambda n: n is keep):
        if node.type not in ("Identifier", "JSXIdentifier"):
            continue
        binding = binding_of(node)
        if binding is not None:
            pairs.append((node, binding))

    touched: List[Binding] = []
    for node, binding in pairs:
        if binding.identifier is node:
            binding.scope.remove_binding(binding)
            continue
        lost = binding.dereference(node)
        lost = binding.remove_violation(node) or lost
        if lost and not root.contains(binding.identifier) and not any(b is binding for b in touched):
            touched.append(binding)
    return touched


def _remove_dangling(bindings: List[Binding]) -> None:
    for binding in bindings:
        if binding.references or binding.kind in _NOT_CASCADED:
            continue
        if binding.scope.get_own_binding(binding.name) is not binding:
            continue
        if binding.identifier.is_removed():
            continue
        # writes to a binding nobody reads go first, then the declaration
        for violation in list(binding.constant_violations):
            if violation is binding.identifier or violation.is_removed():
                continue
            action = find_action_for_node(violation)
            if action is not None:
                apply_action(action)
        if binding.identifier.is_removed():
            continue
        # `if (c) x = 1;` has no removable unit; x must stay declared
        if any(v is not binding.identifier and not v.is_removed() for v in binding.constant_violations):
            continue
        action = find_action_for_node(binding.identifier)
        if action is not None:
            apply_action(action)
