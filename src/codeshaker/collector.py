"""
Export/import collection for a single module.

One pass over the top-level statements records what the module exports, what it
imports and what it re-exports, for both ES-module syntax and the CommonJS shape
transpilers emit (``exports.x = …``, ``require(…)``). Nothing is mutated.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .node_types import (
    IMPORT_SPECIFIER_TYPES,
    MEMBER_TYPES,
    ExportName,
    Node,
    Special,
    is_identifier,
    member_property_name,
    module_export_name,
    string_value,
)
from .scope import Scope, bound_identifiers

ES_MODULE_MARKER = "__esModule"


@dataclass
class ImportRecord:
    imported: ExportName  # name, Special.WILDCARD or Special.SIDE_EFFECT
    source: str
    local: Optional[Node]


@dataclass
class ReexportRecord:
    exported: ExportName  # name or Special.WILDCARD
    imported: ExportName
    source: str
    local: Node


@dataclass
class CollectedModule:
    exports: Dict[ExportName, Node] = field(default_factory=dict)
    export_refs: Dict[str, List[Node]] = field(default_factory=dict)
    imports: List[ImportRecord] = field(default_factory=list)
    reexports: List[ReexportRecord] = field(default_factory=list)
    is_es_module: bool = False

    @property
    def side_effect_imports(self) -> List[ImportRecord]:
        return [i for i in self.imports if i.imported is Special.SIDE_EFFECT]


def collect_exports_and_imports(program: Node) -> CollectedModule:
    """Collect exports, internal export reads, imports and re-exports.

    ``program`` must have been through :func:`codeshaker.scope.analyze`.
    """
    collector = _Collector(program)
    for statement in list(program.get("body") or []):
        collector.visit_statement(statement)
    collector.collect_export_refs()
    return collector.module


class _Collector:
    def __init__(self, program: Node):
        self.program = program
        self.scope: Scope = program.scope
        self.module = CollectedModule()

    # --- helpers ---
    def _is_global(self, name: str) -> bool:
        return self.scope.get_own_binding(name) is None

    def _require_source(self, node: Optional[Node]) -> Optional[str]:
        """``require("s")`` → ``"s"``."""
        if node is None or node.type != "CallExpression":
            return None
        callee = node.get("callee")
        args = node.get("arguments") or []
        if is_identifier(callee, "require") and self._is_global("require") and len(args) == 1:
            return string_value(args[0])
        return None

    def _is_exports_object(self, node: Optional[Node]) -> bool:
        if is_identifier(node, "exports"):
            return self._is_global("exports")
        if node is not None and node.type in MEMBER_TYPES:
            return (
                is_identifier(node.get("object"), "module")
                and self._is_global("module")
                and member_property_name(node) == "exports"
            )
        return False

    def _is_module_exports(self, node: Optional[Node]) -> bool:
        return (
            node is not None
            and node.type in MEMBER_TYPES
            and is_identifier(node.get("object"), "module")
            and self._is_global("module")
            and member_property_name(node) == "exports"
        )

    def _exports_member_name(self, node: Optional[Node]) -> Optional[str]:
        """``exports.x`` / ``module.exports.x`` / ``exports["x"]`` → ``"x"``."""
        if node is None or node.type not in MEMBER_TYPES:
            return None
        if not self._is_exports_object(node.get("object")):
            return None
        return member_property_name(node)

    def _add_export(self, name: ExportName, local: Node) -> None:
        self.module.exports[name] = local

    def _add_import(self, imported: ExportName, source: str, local: Optional[Node]) -> None:
        self.module.imports.append(ImportRecord(imported=imported, source=source, local=local))

    # --- statements ---
    def visit_statement(self, node: Node) -> None:
        method = getattr(self, f"visit_{node.type}", None)
        if method is not None:
            method(node)

    def visit_ImportDeclaration(self, node: Node) -> None:
        self.module.is_es_module = True
        source = string_value(node.get("source")) or ""
        specifiers = node.get("specifiers") or []
        if not specifiers:
            self._add_import(Special.SIDE_EFFECT, source, node)
            return
        for spec in specifiers:
            if spec.type == "ImportDefaultSpecifier":
                imported: ExportName = "default"
            elif spec.type == "ImportNamespaceSpecifier":
                imported = Special.WILDCARD
            else:
                imported = module_export_name(spec.get("imported") or spec["local"]) or ""
            self._add_import(imported, source, spec["local"])

    def visit_ExportNamedDeclaration(self, node: Node) -> None:
        self.module.is_es_module = True
        source_node = node.get("source")
        if source_node is not None:
            source = string_value(source_node) or ""
            for spec in node.get("specifiers") or []:
                exported = module_export_name(spec["exported"]) or ""
                if spec.type == "ExportNamespaceSpecifier":
                    imported: ExportName = Special.WILDCARD
                else:
                    imported = module_export_name(spec["local"]) or ""
                self.module.reexports.append(ReexportRecord(exported, imported, source, spec))
            return

        declaration = node.get("declaration")
        if declaration is not None:
            if declaration.type == "VariableDeclaration":
                for declarator in declaration.get("declarations") or []:
                    init = declarator.get("init")
                    for ident in bound_identifiers(declarator.get("id")):
                        self._add_export(ident["name"], init if init is not None else ident)
            elif declaration.get("id") is not None:
                self._add_export(declaration["id"]["name"], declaration)
            return

        for spec in node.get("specifiers") or []:
            exported = module_export_name(spec["exported"]) or ""
            record = self._import_for_local(spec["local"])
            if record is not None:
                self.module.reexports.append(
                    ReexportRecord(exported, record.imported, record.source, spec)
                )
            else:
                self._add_export(exported, spec)

    def _import_for_local(self, local: Node) -> Optional[ImportRecord]:
        if not is_identifier(local):
            return None
        binding = self.scope.get_own_binding(local["name"])
        if binding is None or binding.kind != "module" or binding.path.type not in IMPORT_SPECIFIER_TYPES:
            return None
        for record in self.module.imports:
            if record.local is binding.identifier:
                return record
        return None

    def visit_ExportDefaultDeclaration(self, node: Node) -> None:
        self.module.is_es_module = True
        self._add_export("default", node["declaration"])

    def visit_ExportAllDeclaration(self, node: Node) -> None:
        self.module.is_es_module = True
        source = string_value(node.get("source")) or ""
        exported_node = node.get("exported")
        exported: ExportName = Special.WILDCARD
        if exported_node is not None:
            exported = module_export_name(exported_node) or ""
        self.module.reexports.append(ReexportRecord(exported, Special.WILDCARD, source, node))

    def visit_VariableDeclaration(self, node: Node) -> None:
        for declarator in node.get("declarations") or []:
            self._collect_require(declarator.get("id"), declarator.get("init"))

    def _collect_require(self, target: Optional[Node], init: Optional[Node]) -> None:
        if target is None or init is None:
            return
        source = self._require_source(init)
        if source is not None:
            if is_identifier(target):
                self._add_import(Special.WILDCARD, source, target)
            elif target.type == "ObjectPattern":
                for prop in target.get("properties") or []:
                    if prop.type == "RestElement" or prop.get("computed"):
                        continue
                    name = module_export_name(prop["key"])
                    for ident in bound_identifiers(prop.get("value")):
                        self._add_import(name or "", source, ident)
            return

        # require("s").name
        if init.type in MEMBER_TYPES and is_identifier(target):
            source = self._require_source(init.get("object"))
            name = member_property_name(init)
            if source is not None and name is not None:
                self._add_import(name, source, target)
            return

        # _interopRequireDefault(require("s")) and friends
        if init.type == "CallExpression" and is_identifier(target):
            callee = init.get("callee")
            args = init.get("arguments") or []
            helper = callee["name"] if is_identifier(callee) else ""
            source = self._require_source(args[0]) if args else None
            if source is None:
                return
            if helper.endswith("interopRequireDefault"):
                self._add_import("default", source, target)
            elif helper.endswith("interopRequireWildcard"):
                self._add_import(Special.WILDCARD, source, target)

    def visit_ExpressionStatement(self, node: Node) -> None:
        expression = node["expression"]
        source = self._require_source(expression)
        if source is not None:
            self._add_import(Special.SIDE_EFFECT, source, expression)
            return
        if expression.type == "AssignmentExpression":
            self._collect_assignment(expression, node)
            return
        if expression.type == "CallExpression":
            self._collect_call(expression, node)

    def _collect_assignment(self, expression: Node, statement: Node) -> None:
        # exports.a = exports.b = value: every name in the chain maps to value
        names: List[Optional[str]] = []
        current: Node = expression
        while current.type == "AssignmentExpression":
            left = current["left"]
            if self._is_module_exports(left):
                names.append("default")
            elif left.type in MEMBER_TYPES and self._is_exports_object(left.get("object")):
                names.append(member_property_name(left))
            else:
                break
            current = current["right"]

        for name in names:
            if name is None:
                # exports[key] = …  (re-export loops)
                self._add_export(Special.WILDCARD, statement)
            elif name == ES_MODULE_MARKER:
                self.module.is_es_module = True
            elif not _is_void(current):
                self._add_export(name, current)

        if Special.WILDCARD not in self.module.exports and self._writes_computed_export(statement):
            self._add_export(Special.WILDCARD, statement)

    def _collect_call(self, call: Node, statement: Node) -> None:
        callee = call.get("callee")
        args = call.get("arguments") or []
        if (
            callee is not None
            and callee.type in MEMBER_TYPES
            and is_identifier(callee.get("object"), "Object")
            and member_property_name(callee) == "defineProperty"
            and len(args) >= 2
            and self._is_exports_object(args[0])
        ):
            name = string_value(args[1])
            if name == ES_MODULE_MARKER:
                self.module.is_es_module = True
            elif name is not None:
                self._add_export(name, call)
            return

        # __exportStar(require("x"), exports) / Object.keys(_x).forEach(... exports[key] = ...)
        if any(self._is_exports_object(arg) for arg in args) or self._writes_computed_export(statement):
            self._add_export(Special.WILDCARD, statement)

    def _writes_computed_export(self, statement: Node) -> bool:
        for node in statement.walk():
            if node.type != "AssignmentExpression":
                continue
            left = node["left"]
            if (
                left.type in MEMBER_TYPES
                and left.get("computed")
                and self._is_exports_object(left.get("object"))
                and member_property_name(left) is None
            ):
                return True
        return False

    # --- internal reads of exports ---
    def collect_export_refs(self) -> None:
        exported = {name for name in self.module.exports if isinstance(name, str)}
        refs: Dict[str, List[Node]] = {}
        for node in self.program.walk():
            name = self._exports_member_name(node)
            if name is None or name == ES_MODULE_MARKER or name not in exported:
                continue
            if _is_void_placeholder(node):
                continue
            refs.setdefault(name, []).append(node)
        self.module.export_refs = refs


def _is_void(node: Optional[Node]) -> bool:
    return node is not None and node.type == "UnaryExpression" and node.get("operator") == "void"


def _is_void_placeholder(member: Node) -> bool:
    """``exports.a = exports.b = void 0`` hoisted by transpilers."""
    current = member
    while current.parent is not None and current.parent.type == "AssignmentExpression" and current.key == "left":
        right = current.parent["right"]
        if _is_void(right):
            return True
        if right.type != "AssignmentExpression":
            return False
        current = right["left"]
    return False
