"""Small ESTree (acorn flavour) builders for tests."""
import json


def ident(name):
    return {"type": "Identifier", "name": name}


def lit(value):
    return {"type": "Literal", "value": value, "raw": json.dumps(value)}


def program(*body):
    return {"type": "Program", "sourceType": "module", "body": list(body)}


def stmt(expression):
    return {"type": "ExpressionStatement", "expression": expression}


def directive(value):
    return {"type": "ExpressionStatement", "expression": lit(value), "directive": value}


def declare(kind, *declarators):
    return {"type": "VariableDeclaration", "kind": kind, "declarations": list(declarators)}


def declarator(target, init=None):
    if isinstance(target, str):
        target = ident(target)
    return {"type": "VariableDeclarator", "id": target, "init": init}


def const(name, init):
    return declare("const", declarator(name, init))


def var(name, init=None):
    return declare("var", declarator(name, init))


def call(callee, *args):
    if isinstance(callee, str):
        callee = ident(callee)
    return {"type": "CallExpression", "callee": callee, "arguments": list(args), "optional": False}


def member(obj, prop, computed=False):
    if isinstance(obj, str):
        obj = ident(obj)
    if isinstance(prop, str):
        prop = lit(prop) if computed else ident(prop)
    return {"type": "MemberExpression", "object": obj, "property": prop, "computed": computed, "optional": False}


def assign(left, right, operator="="):
    return {"type": "AssignmentExpression", "operator": operator, "left": left, "right": right}


def update(operator, argument, prefix=False):
    return {"type": "UpdateExpression", "operator": operator, "argument": argument, "prefix": prefix}


def if_stmt(test, consequent, alternate=None):
    return {"type": "IfStatement", "test": test, "consequent": consequent, "alternate": alternate}


def binary(operator, left, right):
    return {"type": "BinaryExpression", "operator": operator, "left": left, "right": right}


def unary(operator, argument):
    return {"type": "UnaryExpression", "operator": operator, "prefix": True, "argument": argument}


def ret(argument=None):
    return {"type": "ReturnStatement", "argument": argument}


def block(*body):
    return {"type": "BlockStatement", "body": list(body)}


def function(name=None, params=(), body=()):
    return {
        "type": "FunctionExpression",
        "id": ident(name) if name else None,
        "params": [ident(p) for p in params],
        "body": block(*body),
        "generator": False,
        "async": False,
        "expression": False,
    }


def function_decl(name, params=(), body=()):
    node = function(name, params, body)
    node["type"] = "FunctionDeclaration"
    return node


def arrow(body, params=()):
    return {
        "type": "ArrowFunctionExpression",
        "id": None,
        "params": [ident(p) for p in params],
        "body": body,
        "generator": False,
        "async": False,
        "expression": body.get("type") != "BlockStatement",
    }


def prop(key, value, shorthand=False):
    return {
        "type": "Property",
        "key": ident(key),
        "value": value,
        "kind": "init",
        "method": False,
        "shorthand": shorthand,
        "computed": False,
    }


def obj(**props):
    return {"type": "ObjectExpression", "properties": [prop(k, v) for k, v in props.items()]}


def obj_pattern(*names):
    return {"type": "ObjectPattern", "properties": [prop(n, ident(n), shorthand=True) for n in names]}


def import_decl(source, *specifiers):
    return {"type": "ImportDeclaration", "specifiers": list(specifiers), "source": lit(source)}


def import_spec(imported, local=None):
    return {"type": "ImportSpecifier", "imported": ident(imported), "local": ident(local or imported)}


def import_default(local):
    return {"type": "ImportDefaultSpecifier", "local": ident(local)}


def import_namespace(local):
    return {"type": "ImportNamespaceSpecifier", "local": ident(local)}


def export_named(declaration=None, specifiers=(), source=None):
    return {
        "type": "ExportNamedDeclaration",
        "declaration": declaration,
        "specifiers": list(specifiers),
        "source": lit(source) if source else None,
    }


def export_spec(local, exported=None):
    return {"type": "ExportSpecifier", "local": ident(local), "exported": ident(exported or local)}


def export_default(declaration):
    return {"type": "ExportDefaultDeclaration", "declaration": declaration}


def export_all(source, exported=None):
    return {"type": "ExportAllDeclaration", "exported": ident(exported) if exported else None, "source": lit(source)}


def require(source):
    return call("require", lit(source))


def exports_member(name):
    return member("exports", name)


def exports_assign(name, value):
    return stmt(assign(exports_member(name), value))


def es_module_flag():
    return stmt(
        call(member("Object", "defineProperty"), ident("exports"), lit("__esModule"), obj(value=lit(True)))
    )


def jsx(name):
    return {
        "type": "JSXElement",
        "openingElement": {
            "type": "JSXOpeningElement",
            "name": {"type": "JSXIdentifier", "name": name},
            "attributes": [],
            "selfClosing": True,
        },
        "closingElement": None,
        "children": [],
    }


# --- inspection helpers ---
def walk(node):
    if isinstance(node, dict):
        if isinstance(node.get("type"), str):
            yield node
        for key, value in node.items():
            if key in ("loc", "range"):
                continue
            yield from walk(value)
    elif isinstance(node, list):
        for item in node:
            yield from walk(item)


def identifier_names(node):
    return [n["name"] for n in walk(node) if n["type"] == "Identifier"]


def pattern_names(pattern):
    t = pattern["type"]
    if t == "Identifier":
        return [pattern["name"]]
    if t == "ObjectPattern":
        return [name for p in pattern["properties"] for name in pattern_names(p.get("value") or p["argument"])]
    if t == "ArrayPattern":
        return [name for e in pattern["elements"] if e for name in pattern_names(e)]
    if t == "AssignmentPattern":
        return pattern_names(pattern["left"])
    if t == "RestElement":
        return pattern_names(pattern["argument"])
    return []


def declared_names(program_data):
    """Top-level names declared by var/let/const/function/class/import, in order."""
    names = []
    for statement in program_data["body"]:
        target = statement
        if statement["type"] in ("ExportNamedDeclaration", "ExportDefaultDeclaration"):
            target = statement.get("declaration") or {}
        t = target.get("type")
        if t == "VariableDeclaration":
            for d in target["declarations"]:
                names.extend(pattern_names(d["id"]))
        elif t in ("FunctionDeclaration", "ClassDeclaration") and target.get("id"):
            names.append(target["id"]["name"])
        elif t == "ImportDeclaration":
            names.extend(s["local"]["name"] for s in target["specifiers"])
    return names
