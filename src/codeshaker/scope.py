"""
Scope analysis over ESTree: bindings, reference sites and constant violations.

This is the reference graph the shaker reasons about. It is intentionally
small:
 - scopes are created for the program, functions and catch clauses; ``let``,
   ``const`` and ``class`` declarations inside nested blocks are hoisted to the
   enclosing function scope;
 - a binding records the identifier that declares it, the node that owns the
   declaration (declarator, function, import specifier, ...), every identifier
   reading it and every identifier assigning it;
 - an exported declaration references its own binding, so an export keeps its
   declaration alive until the export itself is removed;
 - bindings are always looked up by name from the scope of the asking node.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Set

from .node_types import (
    CLASS_TYPES,
    FUNCTION_TYPES,
    IMPORT_SPECIFIER_TYPES,
    MEMBER_TYPES,
    PROPERTY_TYPES,
    Node,
    is_identifier,
)


class Binding:
    def __init__(self, name: str, identifier: Node, path: Node, kind: str, scope: "Scope"):
        self.name = name
        self.identifier = identifier
        self.path = path
        self.kind = kind  # var|let|const|hoisted|class|module|param|local
        self.scope = scope
        self.references: List[Node] = []
        self.constant_violations: List[Node] = []

    def __repr__(self) -> str:
        return f"<Binding {self.kind} {self.name} refs={len(self.references)}>"

    def reference(self, node: Node) -> None:
        if not any(ref is node for ref in self.references):
            self.references.append(node)

    def dereference(self, node: Node) -> bool:
        for i, ref in enumerate(self.references):
            if ref is node:
                del self.references[i]
                return True
        return False

    def add_violation(self, node: Node) -> None:
        if not any(v is node for v in self.constant_violations):
            self.constant_violations.append(node)

    def remove_violation(self, node: Node) -> bool:
        for i, v in enumerate(self.constant_violations):
            if v is node:
                del self.constant_violations[i]
                return True
        return False


class Scope:
    def __init__(self, node: Node, parent: Optional["Scope"] = None, kind: str = "function"):
        self.node = node
        self.parent = parent
        self.kind = kind
        self.bindings: Dict[str, Binding] = {}
        # program scope only: every identifier name in the module plus generated ones
        self.used_names: Set[str] = set()
        node.scope = self

    def __repr__(self) -> str:
        return f"<Scope {self.kind} {sorted(self.bindings)}>"

    @property
    def program_scope(self) -> "Scope":
        scope = self
        while scope.parent is not None:
            scope = scope.parent
        return scope

    def get_own_binding(self, name: str) -> Optional[Binding]:
        return self.bindings.get(name)

    def get_binding(self, name: str) -> Optional[Binding]:
        scope: Optional[Scope] = self
        while scope is not None:
            binding = scope.bindings.get(name)
            if binding is not None:
                return binding
            scope = scope.parent
        return None

    def declare(self, identifier: Node, path: Node, kind: str) -> Binding:
        name = identifier["name"]
        self.program_scope.used_names.add(name)
        existing = self.bindings.get(name)
        if existing is not None:
            # redeclaration (var a; var a = 1) writes the first binding
            existing.add_violation(identifier)
            return existing
        binding = Binding(name, identifier, path, kind, self)
        self.bindings[name] = binding
        return binding

    def remove_binding(self, binding: Binding) -> None:
        if self.bindings.get(binding.name) is binding:
            del self.bindings[binding.name]

    def generate_uid(self, name: str = "temp") -> str:
        """Collision-free identifier: ``_name``, ``_name2``, ``_name3``, ..."""
        program = self.program_scope
        base = re.sub(r"[^A-Za-z0-9_$]", "", name)
        base = re.sub(r"^_+|\d+$", "", base) or "temp"
        i = 1
        while True:
            uid = f"_{base}" if i == 1 else f"_{base}{i}"
            if uid not in program.used_names and self.get_binding(uid) is None:
                break
            i += 1
        program.used_names.add(uid)
        return uid


# --- pattern helpers ---
def bound_identifiers(pattern: Optional[Node]) -> List[Node]:
    """Identifiers bound by a declaration id or parameter pattern."""
    if pattern is None:
        return []
    t = pattern.type
    if t == "Identifier":
        return [pattern]
    out: List[Node] = []
    if t == "ObjectPattern":
        for prop in pattern.get("properties") or []:
            if prop.type == "RestElement":
                out.extend(bound_identifiers(prop.get("argument")))
            else:
                out.extend(bound_identifiers(prop.get("value")))
    elif t == "ArrayPattern":
        for element in pattern.get("elements") or []:
            out.extend(bound_identifiers(element))
    elif t == "RestElement":
        out.extend(bound_identifiers(pattern.get("argument")))
    elif t == "AssignmentPattern":
        out.extend(bound_identifiers(pattern.get("left")))
    return out


# --- analysis ---
def analyze(program: Node) -> Scope:
    """Build scopes and the reference graph for ``program`` (always from scratch)."""
    for node in program.walk():
        node.scope = None
    root = Scope(program, kind="program")
    _Declarations(root).visit(program, root)
    _References(root).visit_children(program, root)
    return root


class _Declarations:
    """First pass: scopes and bindings, so later-declared names resolve."""

    def __init__(self, root: Scope):
        self.root = root

    def visit(self, node: Node, scope: Scope) -> None:
        t = node.type
        if t == "Identifier":
            self.root.used_names.add(node["name"])
            return
        if t in FUNCTION_TYPES:
            if t == "FunctionDeclaration" and node.get("id") is not None:
                scope.declare(node["id"], node, "hoisted")
            inner = Scope(node, parent=scope)
            if t == "FunctionExpression" and node.get("id") is not None:
                inner.declare(node["id"], node, "local")
            for param in node.get("params") or []:
                for ident in bound_identifiers(param):
                    inner.declare(ident, param, "param")
            for child in node.children():
                self.visit(child, inner)
            return
        if t == "ClassDeclaration" and node.get("id") is not None:
            scope.declare(node["id"], node, "class")
        elif t == "VariableDeclaration":
            for declarator in node.get("declarations") or []:
                for ident in bound_identifiers(declarator.get("id")):
                    scope.declare(ident, declarator, node.get("kind", "var"))
        elif t in IMPORT_SPECIFIER_TYPES:
            scope.declare(node["local"], node, "module")
        elif t == "CatchClause":
            inner = Scope(node, parent=scope, kind="catch")
            for ident in bound_identifiers(node.get("param")):
                inner.declare(ident, node, "let")
            for child in node.children():
                self.visit(child, inner)
            return
        for child in node.children():
            self.visit(child, scope)


class _References:
    """Second pass: attach every identifier read or write to its binding.

    Dispatch follows ``ast.NodeVisitor``: ``visit_<Type>`` when defined, otherwise
    every child is visited.
    """

    def __init__(self, root: Scope):
        self.root = root

    def visit(self, node: Node, scope: Scope) -> None:
        if node.type in FUNCTION_TYPES:
            self._visit_function(node, scope)
            return
        method = getattr(self, f"visit_{node.type}", None)
        if method is not None:
            method(node, scope)
        else:
            self.visit_children(node, scope)

    def visit_children(self, node: Node, scope: Scope) -> None:
        for child in node.children():
            self.visit(child, scope)

    def _reference(self, ident: Node, scope: Scope) -> None:
        binding = scope.get_binding(ident["name"])
        if binding is not None:
            binding.reference(ident)

    def _violation(self, ident: Node, scope: Scope) -> None:
        binding = scope.get_binding(ident["name"])
        if binding is not None:
            binding.add_violation(ident)

    def visit_pattern(self, node: Optional[Node], scope: Scope, declaring: bool) -> None:
        if node is None:
            return
        t = node.type
        if t == "Identifier":
            if not declaring:
                self._violation(node, scope)
        elif t == "ObjectPattern":
            for prop in node.get("properties") or []:
                if prop.type == "RestElement":
                    self.visit_pattern(prop.get("argument"), scope, declaring)
                    continue
                if prop.get("computed"):
                    self.visit(prop["key"], scope)
                self.visit_pattern(prop.get("value"), scope, declaring)
        elif t == "ArrayPattern":
            for element in node.get("elements") or []:
                self.visit_pattern(element, scope, declaring)
        elif t == "RestElement":
            self.visit_pattern(node.get("argument"), scope, declaring)
        elif t == "AssignmentPattern":
            self.visit_pattern(node.get("left"), scope, declaring)
            self.visit(node["right"], scope)
        else:
            # member expressions as assignment targets read their object
            self.visit(node, scope)

    # --- expressions ---
    def visit_Identifier(self, node: Node, scope: Scope) -> None:
        self._reference(node, scope)

    def visit_MemberExpression(self, node: Node, scope: Scope) -> None:
        self.visit(node["object"], scope)
        if node.get("computed"):
            self.visit(node["property"], scope)

    visit_OptionalMemberExpression = visit_MemberExpression

    def visit_Property(self, node: Node, scope: Scope) -> None:
        if node.get("computed"):
            self.visit(node["key"], scope)
        value = node.get("value")
        if value is not None:
            self.visit(value, scope)

    visit_ObjectProperty = visit_Property

    def visit_MethodDefinition(self, node: Node, scope: Scope) -> None:
        self.visit_Property(node, scope)

    visit_PropertyDefinition = visit_MethodDefinition
    visit_ClassProperty = visit_MethodDefinition
    visit_ClassPrivateProperty = visit_MethodDefinition

    def _visit_function(self, node: Node, scope: Scope) -> None:
        inner = node.scope
        key = node.get("key")
        if key is not None and node.get("computed"):
            self.visit(key, scope)
        for param in node.get("params") or []:
            self.visit_pattern(param, inner, declaring=True)
        body = node.get("body")
        if body is not None:
            self.visit(body, inner)

    def _visit_class(self, node: Node, scope: Scope) -> None:
        if node.get("superClass") is not None:
            self.visit(node["superClass"], scope)
        self.visit(node["body"], scope)

    visit_ClassDeclaration = _visit_class
    visit_ClassExpression = _visit_class

    def visit_VariableDeclarator(self, node: Node, scope: Scope) -> None:
        self.visit_pattern(node.get("id"), scope, declaring=True)
        if node.get("init") is not None:
            self.visit(node["init"], scope)

    def visit_AssignmentExpression(self, node: Node, scope: Scope) -> None:
        left = node["left"]
        self.visit_pattern(left, scope, declaring=False)
        # x += 1 reads x too
        if node.get("operator", "=") != "=" and is_identifier(left):
            self._reference(left, scope)
        self.visit(node["right"], scope)

    def visit_UpdateExpression(self, node: Node, scope: Scope) -> None:
        argument = node["argument"]
        if is_identifier(argument):
            self._violation(argument, scope)
            self._reference(argument, scope)
        else:
            self.visit(argument, scope)

    def visit_CatchClause(self, node: Node, scope: Scope) -> None:
        inner = node.scope
        self.visit_pattern(node.get("param"), inner, declaring=True)
        self.visit(node["body"], inner)

    # --- statements ---
    def visit_ImportDeclaration(self, node: Node, scope: Scope) -> None:
        return

    def visit_ExportAllDeclaration(self, node: Node, scope: Scope) -> None:
        return

    def visit_ExportNamedDeclaration(self, node: Node, scope: Scope) -> None:
        declaration = node.get("declaration")
        if declaration is not None:
            self.visit(declaration, scope)
            for ident in declared_identifiers(declaration):
                self._reference(ident, scope)
        elif node.get("source") is None:
            for spec in node.get("specifiers") or []:
                if is_identifier(spec.get("local")):
                    self._reference(spec["local"], scope)

    def visit_ExportDefaultDeclaration(self, node: Node, scope: Scope) -> None:
        declaration = node["declaration"]
        self.visit(declaration, scope)
        if declaration.type in ("FunctionDeclaration", "ClassDeclaration") and declaration.get("id"):
            self._reference(declaration["id"], scope)

    def visit_LabeledStatement(self, node: Node, scope: Scope) -> None:
        self.visit(node["body"], scope)

    def visit_BreakStatement(self, node: Node, scope: Scope) -> None:
        return

    visit_ContinueStatement = visit_BreakStatement
    visit_MetaProperty = visit_BreakStatement
    visit_PrivateName = visit_BreakStatement
    visit_PrivateIdentifier = visit_BreakStatement

    # --- JSX ---
    def visit_JSXOpeningElement(self, node: Node, scope: Scope) -> None:
        self._visit_jsx_name(node["name"], scope)
        for attribute in node.get("attributes") or []:
            self.visit(attribute, scope)

    def visit_JSXClosingElement(self, node: Node, scope: Scope) -> None:
        return

    def _visit_jsx_name(self, name: Node, scope: Scope) -> None:
        if name.type == "JSXMemberExpression":
            self._visit_jsx_name(name["object"], scope)
        elif name.type == "JSXIdentifier" and name["name"][:1].isupper():
            self._reference(name, scope)

    def visit_JSXAttribute(self, node: Node, scope: Scope) -> None:
        if node.get("value") is not None:
            self.visit(node["value"], scope)

    def visit_JSXIdentifier(self, node: Node, scope: Scope) -> None:
        return


def declared_identifiers(declaration: Node) -> List[Node]:
    """Identifiers a statement-level declaration binds in its scope."""
    if declaration.type == "VariableDeclaration":
        out: List[Node] = []
        for declarator in declaration.get("declarations") or []:
            out.extend(bound_identifiers(declarator.get("id")))
        return out
    if declaration.type in ("FunctionDeclaration", "ClassDeclaration") and declaration.get("id"):
        return [declaration["id"]]
    return []


# --- graph accessors used by the shaker ---
def scope_of(node: Node) -> Optional[Scope]:
    """Scope an identifier at ``node`` resolves in."""
    current = node.parent
    if current is not None and node.key == "id" and current.type in ("FunctionDeclaration", "ClassDeclaration"):
        current = current.parent
    while current is not None:
        if current.scope is not None:
            return current.scope
        current = current.parent
    return None


def binding_of(node: Node) -> Optional[Binding]:
    if node.type not in ("Identifier", "JSXIdentifier"):
        return None
    scope = scope_of(node)
    if scope is None:
        return None
    return scope.get_binding(node["name"])


def reference(node: Node) -> Optional[Binding]:
    """Add ``node`` to the reference list of the binding it names."""
    binding = binding_of(node)
    if binding is not None:
        binding.reference(node)
    return binding


def register_constant_violation(node: Node) -> Optional[Binding]:
    binding = binding_of(node)
    if binding is not None:
        binding.add_violation(node)
    return binding


def is_reference(node: Node) -> bool:
    """True if an identifier sits in a reading position."""
    parent = node.parent
    key = node.key
    if parent is None:
        return False
    pt = parent.type
    if pt in MEMBER_TYPES and key == "property" and not parent.get("computed"):
        return False
    if key == "key" and not parent.get("computed"):
        return False
    if pt in PROPERTY_TYPES and key == "value" and parent.parent is not None and parent.parent.type == "ObjectPattern":
        return False
    if key in ("id", "params", "label", "param"):
        return False
    if pt in IMPORT_SPECIFIER_TYPES or (pt == "ExportSpecifier" and key == "exported"):
        return False
    if pt == "ExportSpecifier" and parent.parent is not None and parent.parent.get("source") is not None:
        return False
    if pt == "MetaProperty":
        return False
    if pt == "AssignmentExpression" and key == "left":
        return False
    if pt in ("ArrayPattern", "RestElement") or (pt == "AssignmentPattern" and key == "left"):
        return False
    if pt in CLASS_TYPES and key == "id":
        return False
    return True
