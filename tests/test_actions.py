from builders import (
    arrow,
    assign,
    call,
    const,
    declare,
    declarator,
    export_named,
    ident,
    if_stmt,
    import_decl,
    import_spec,
    lit,
    obj,
    program,
    stmt,
    update,
)

from codeshaker.actions import Action, apply_action, find_action_for_node
from codeshaker.node_types import from_estree, to_estree
from codeshaker.scope import analyze


def _analyzed(*body):
    node = from_estree(program(*body))
    return node, analyze(node)


def test_one_of_several_declarators_removes_only_it():
    node, scope = _analyzed(declare("const", declarator("a", lit(1)), declarator("b", lit(2))))
    b_init = node["body"][0]["declarations"][1]["init"]
    action = find_action_for_node(b_init)
    assert action.kind == "remove"
    assert action.target.type == "VariableDeclarator"
    apply_action(action)
    out = to_estree(node)
    assert [d["id"]["name"] for d in out["body"][0]["declarations"]] == ["a"]


def test_single_declarator_removes_declaration():
    node, scope = _analyzed(const("a", lit(1)), stmt(call("f")))
    action = find_action_for_node(node["body"][0]["declarations"][0]["init"])
    assert action.target is node["body"][0]


def test_exported_declaration_removes_export_statement():
    node, scope = _analyzed(export_named(const("a", lit(1))))
    action = find_action_for_node(node["body"][0]["declaration"]["declarations"][0]["init"])
    assert action.target.type == "ExportNamedDeclaration"


def test_object_property_value_removes_property():
    node, scope = _analyzed(const("o", obj(a=lit(1), b=lit(2))))
    value = node["body"][0]["declarations"][0]["init"]["properties"][0]["value"]
    action = find_action_for_node(value)
    assert action.target.type == "Property"


def test_removal_cascades_to_unreferenced_declarations():
    node, scope = _analyzed(
        const("helper", lit(1)),
        const("a", call("wrap", ident("helper"))),
        stmt(call("run")),
    )
    apply_action(Action("remove", node["body"][1]))
    out = to_estree(node)
    assert [s["type"] for s in out["body"]] == ["ExpressionStatement"]
    assert scope.get_own_binding("helper") is None
    assert scope.get_own_binding("a") is None


def test_removal_cascades_through_imports():
    node, scope = _analyzed(
        import_decl("lib", import_spec("x"), import_spec("y")),
        stmt(call(ident("x"))),
        stmt(call(ident("y"))),
    )
    apply_action(Action("remove", node["body"][1]))
    out = to_estree(node)
    assert [s["local"]["name"] for s in out["body"][0]["specifiers"]] == ["y"]


def test_still_referenced_declaration_survives():
    node, scope = _analyzed(
        const("helper", lit(1)),
        stmt(call("a", ident("helper"))),
        stmt(call("b", ident("helper"))),
    )
    apply_action(Action("remove", node["body"][1]))
    assert len(to_estree(node)["body"]) == 2
    assert len(scope.get_own_binding("helper").references) == 1


def test_unread_binding_loses_its_writes_and_declaration():
    node, scope = _analyzed(
        declare("let", declarator("counter", lit(0))),
        const("inc", arrow(update("++", ident("counter")))),
        stmt(assign(ident("counter"), lit(5))),
        stmt(call("run")),
    )
    apply_action(Action("remove", node["body"][1]))
    out = to_estree(node)
    assert [s["type"] for s in out["body"]] == ["ExpressionStatement"]
    assert out["body"][0]["expression"]["callee"]["name"] == "run"
    assert scope.get_own_binding("counter") is None


def test_declaration_kept_while_a_nested_write_survives():
    # `if (cond) counter = 5;` has no removable unit of its own
    node, scope = _analyzed(
        declare("let", declarator("counter", lit(0))),
        const("inc", arrow(update("++", ident("counter")))),
        if_stmt(ident("cond"), stmt(assign(ident("counter"), lit(5)))),
    )
    apply_action(Action("remove", node["body"][1]))
    out = to_estree(node)
    assert [s["type"] for s in out["body"]] == ["VariableDeclaration", "IfStatement"]
    binding = scope.get_own_binding("counter")
    assert binding.references == []
    assert len(binding.constant_violations) == 1
