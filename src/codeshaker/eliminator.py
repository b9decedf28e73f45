"""
Fixed-point removal of the deletion worklist.

Each pass looks at every pending candidate. A candidate whose bindings are no
longer read from outside its own deletion unit is removed; removing it may free
the next one, so passes repeat until one removes nothing.

A candidate identifier that is still read elsewhere is *severed*: it is kept out
of the outer-reference count of later checks, so a reference that is itself
about to be deleted does not keep its declaration alive. Severing is recorded in
a shadow set only, the bindings' reference lists are never edited for it. After
the loop the surviving severed identifiers are re-attached to their bindings.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .actions import apply_action, find_action_for_node, remove_with_related
from .node_types import Node
from .scope import Binding, binding_of, bound_identifiers, reference

logger = logging.getLogger(__name__)


@dataclass
class EliminationResult:
    deleted: List[Node] = field(default_factory=list)
    severed: List[Node] = field(default_factory=list)
    restored: List[Node] = field(default_factory=list)
    passes: int = 0


def bindings_for_candidate(node: Node) -> List[Binding]:
    """Bindings a worklist entry stands for."""
    if node.type == "Identifier":
        binding = binding_of(node)
        return [binding] if binding is not None else []

    declarator = node if node.type == "VariableDeclarator" else node.find_parent(
        lambda p: p.type == "VariableDeclarator"
    )
    if declarator is not None:
        return _bindings_of_identifiers(bound_identifiers(declarator.get("id")))

    if node.type in ("FunctionDeclaration", "ClassDeclaration") and node.get("id") is not None:
        return _bindings_of_identifiers([node["id"]])

    if node.type == "AssignmentExpression" and node["left"].type == "Identifier":
        return _bindings_of_identifiers([node["left"]])

    return []


def _bindings_of_identifiers(identifiers: List[Node]) -> List[Binding]:
    out: List[Binding] = []
    for ident in identifiers:
        binding = binding_of(ident)
        if binding is not None and not any(b is binding for b in out):
            out.append(binding)
    return out


def eliminate(candidates: List[Node]) -> EliminationResult:
    result = EliminationResult()
    pending: List[Node] = []
    seen: Set[int] = set()
    for node in candidates:
        if id(node) not in seen:
            seen.add(id(node))
            pending.append(node)

    deleted: List[Node] = result.deleted
    severed: List[Node] = result.severed
    # membership by identity; the lists above keep the nodes alive
    deleted_ids: Set[int] = set()
    severed_ids: Set[int] = set()

    def is_deleted(node: Node) -> bool:
        return id(node) in deleted_ids

    def is_severed(node: Node) -> bool:
        return id(node) in severed_ids

    def mark_deleted(node: Node) -> None:
        deleted.append(node)
        deleted_ids.add(id(node))

    changed = True
    while changed and len(deleted) < len(pending):
        changed = False
        result.passes += 1
        for node in pending:
            if is_deleted(node):
                continue
            if node.is_removed():
                # swept away by an earlier cascade
                mark_deleted(node)
                changed = True
                continue

            bindings = bindings_for_candidate(node)
            action = find_action_for_node(node)
            target: Optional[Node] = action.target if action is not None else None
            outer = [
                ref
                for binding in bindings
                for ref in binding.references
                if not is_severed(ref) and (target is None or not target.contains(ref))
            ]

            if outer and node.type == "Identifier" and not is_severed(node):
                severed.append(node)
                severed_ids.add(id(node))

            if not bindings or not outer:
                if action is not None:
                    apply_action(action)
                else:
                    remove_with_related([node])
                mark_deleted(node)
                changed = True

    for node in severed:
        if not node.is_removed():
            reference(node)
            result.restored.append(node)

    logger.debug(
        "eliminated %d of %d candidate(s) in %d pass(es), %d severed, %d restored",
        len(deleted),
        len(pending),
        result.passes,
        len(severed),
        len(result.restored),
    )
    return result


def remove_all_statements(program: Node) -> int:
    """Empty the module body; returns the number of statements removed."""
    body = list(program.get("body") or [])
    for statement in body:
        statement.remove()
    return len(body)
