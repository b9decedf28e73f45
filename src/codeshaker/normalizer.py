"""
Route exports that the module reads back through one local variable.

``exports.foo = 1; use(exports.foo)`` mixes the public surface with internal
logic. When an export is touched more than once it is rewritten to::

    var _foo;
    _foo = 1;
    use(_foo);
    exports.foo = _foo;

so the export itself becomes the single tail assignment and can be dropped
without touching the code that uses the value.
"""
from __future__ import annotations

import logging
from typing import Dict, List

from .node_types import (
    ExportName,
    Node,
    assignment,
    expression_statement,
    identifier,
    member_expression,
    var_declaration,
)
from .scope import reference, register_constant_violation

logger = logging.getLogger(__name__)


def rearrange_exports(
    program: Node,
    export_refs: Dict[str, List[Node]],
    exports: Dict[ExportName, Node],
) -> Dict[ExportName, Node]:
    """Return a copy of ``exports`` with re-read exports pointing at the tail assignment."""
    rearranged = dict(exports)
    scope = program.scope

    for name, refs in export_refs.items():
        if len(refs) <= 1:
            continue

        uid = scope.generate_uid(name)
        declaration = program.insert("body", _directive_count(program), var_declaration(uid))
        declarator = declaration["declarations"][0]
        scope.declare(declarator["id"], declarator, "var")

        for ref in refs:
            replaced = ref.replace_with(identifier(uid))
            if replaced.parent is not None and replaced.parent.type == "AssignmentExpression" and replaced.key == "left":
                register_constant_violation(replaced)
            else:
                reference(replaced)

        tail = program.append(
            "body",
            expression_statement(assignment(member_expression(identifier("exports"), name), identifier(uid))),
        )
        local = tail["expression"]["right"]
        reference(local)
        rearranged[name] = local
        logger.debug("export %s is read %d times, routed through %s", name, len(refs), uid)

    # exports.a = a = v writes ``a`` without reading it; the export does read it
    for local in exports.values():
        if local.type == "AssignmentExpression" and local["left"].type == "Identifier":
            reference(local["left"])

    return rearranged


def _directive_count(program: Node) -> int:
    count = 0
    for statement in program.get("body") or []:
        if statement.type == "ExpressionStatement" and statement.get("directive") is not None:
            count += 1
        else:
            break
    return count
