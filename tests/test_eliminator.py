from builders import (
    call,
    const,
    export_named,
    exports_assign,
    function,
    ident,
    import_decl,
    import_spec,
    lit,
    program,
    ret,
    var,
)

from codeshaker.eliminator import bindings_for_candidate, eliminate, remove_all_statements
from codeshaker.node_types import from_estree, to_estree
from codeshaker.scope import analyze


def _analyzed(*body):
    node = from_estree(program(*body))
    return node, analyze(node)


def test_candidate_still_read_elsewhere_is_severed_and_restored():
    node, scope = _analyzed(
        var("a", lit(1)),
        exports_assign("a", ident("a")),
        exports_assign("b", function(body=[ret(ident("a"))])),
    )
    candidate = node["body"][1]["expression"]["right"]
    result = eliminate([candidate])

    assert result.deleted == []
    assert result.severed == [candidate]
    assert result.restored == [candidate]
    binding = scope.get_own_binding("a")
    assert sum(1 for ref in binding.references if ref is candidate) == 1
    assert len(to_estree(node)["body"]) == 3


def test_severed_reference_does_not_keep_declaration_alive():
    node, scope = _analyzed(
        import_decl("lib", import_spec("helper")),
        export_named(const("a", call(ident("helper"), lit(1)))),
        export_named(const("b", call(ident("helper"), lit(2)))),
    )
    binding = scope.get_own_binding("helper")
    first, second = binding.references
    result = eliminate([first, second])

    assert result.passes == 2
    assert len(result.deleted) == 2
    assert result.severed == [first]
    assert result.restored == []
    assert to_estree(node)["body"] == []


def test_duplicate_candidates_enter_once():
    node, scope = _analyzed(export_named(const("a", lit(1))), export_named(const("b", lit(2))))
    candidate = node["body"][1]["declaration"]["declarations"][0]["init"]
    result = eliminate([candidate, candidate])
    assert result.deleted == [candidate]
    assert len(to_estree(node)["body"]) == 1


def test_candidate_removed_by_cascade_counts_as_deleted():
    node, scope = _analyzed(
        const("helper", function(body=[ret(lit(1))])),
        exports_assign("a", ident("helper")),
    )
    helper_fn = node["body"][0]["declarations"][0]["init"]
    export_value = node["body"][1]["expression"]["right"]
    result = eliminate([export_value, helper_fn])
    assert len(result.deleted) == 2
    assert to_estree(node)["body"] == []


def test_bindings_for_declarator_candidate():
    node, scope = _analyzed(export_named(const("a", lit(1))))
    init = node["body"][0]["declaration"]["declarations"][0]["init"]
    assert bindings_for_candidate(init) == [scope.get_own_binding("a")]


def test_remove_all_statements():
    node, scope = _analyzed(var("a"), var("b"))
    assert remove_all_statements(node) == 2
    assert to_estree(node)["body"] == []
