import copy

from builders import (
    arrow,
    assign,
    binary,
    call,
    const,
    declare,
    declarator,
    declared_names,
    es_module_flag,
    export_all,
    export_default,
    export_named,
    exports_assign,
    exports_member,
    function,
    function_decl,
    ident,
    if_stmt,
    import_decl,
    import_spec,
    lit,
    member,
    obj,
    obj_pattern,
    program,
    ret,
    stmt,
    update,
    var,
)

from codeshaker.liveness import Outcome
from codeshaker.shaker import ShakeSession, shake_estree


def _module_ab():
    return program(
        import_decl("./dep", import_spec("dep")),
        const("helper", binary("+", ident("dep"), lit(1))),
        export_named(const("a", call(ident("helper")))),
        function_decl("makeB", body=[ret(lit(2))]),
        export_named(const("b", call(ident("makeB")))),
    )


def test_unrequested_export_and_its_dependencies_are_removed(config):
    result = shake_estree(_module_ab(), ["a"], config=config)
    out = result.to_estree()

    assert result.outcome is Outcome.SHAKE
    assert declared_names(out) == ["dep", "helper", "a"]
    assert list(result.exports) == ["a"]
    assert result.dead_exports == ["b"]
    assert result.summary_dict() == {"deadExports": ["b"], "exports": ["a"], "imports": {"./dep": ["dep"]}}


def test_destructured_export_keeps_shared_initializer(config):
    data = program(
        export_named(declare("const", declarator(obj_pattern("x", "y"), call("compute")))),
        export_named(const("z", lit(1))),
    )
    result = shake_estree(data, ["x"], config=config)
    out = result.to_estree()

    assert declared_names(out) == ["x", "y"]
    assert result.exports["x"] is result.exports["y"]
    assert result.dead_exports == ["z"]


def test_reexport_all_keeps_star_reexport(config):
    config.if_unknown_export = "reexport-all"
    data = program(export_all("./util"), export_named(const("bar", lit(1))))
    result = shake_estree(data, ["foo"], config=config)
    out = result.to_estree()

    assert [s["type"] for s in out["body"]] == ["ExportAllDeclaration"]
    assert len(result.reexports) == 1
    assert result.summary.imports == {"./util": ["*"]}
    assert result.dead_exports == ["bar"]


def test_side_effect_import_is_removed(config):
    data = program(import_decl("./polyfill"), export_named(const("a", lit(1))))
    result = shake_estree(data, ["a"], config=config)
    out = result.to_estree()

    assert [s["type"] for s in out["body"]] == ["ExportNamedDeclaration"]
    assert result.imports == []
    assert result.summary.imports == {}


def test_side_effect_import_kept_when_requested(config):
    data = program(import_decl("./polyfill"), export_named(const("a", lit(1))))
    result = shake_estree(data, ["a", "side-effect"], config=config)
    assert result.summary.imports == {"./polyfill": ["side-effect"]}


def test_default_of_non_es_module_is_left_unshaken(config):
    data = program(
        var("unused", lit(1)),
        stmt(assign(member("module", "exports"), obj(foo=lit(1)))),
    )
    before = copy.deepcopy(data)
    result = shake_estree(data, ["default"], config=config)

    assert result.outcome is Outcome.KEEP_ALL
    assert result.dead_exports == []
    assert result.to_estree() == before
    assert result.elimination is None


def test_default_of_flagged_module_is_shaken(config):
    data = program(
        es_module_flag(),
        exports_assign("default", function(body=[ret(lit(1))])),
        exports_assign("other", lit(2)),
    )
    result = shake_estree(data, ["default"], config=config)
    assert result.outcome is Outcome.SHAKE
    assert result.dead_exports == ["other"]


def test_empty_request_removes_everything(config):
    data = _module_ab()
    data["body"].append(export_all("./util"))
    result = shake_estree(data, [], config=config)

    assert result.outcome is Outcome.FAST_PATH
    assert result.to_estree()["body"] == []
    assert result.exports == {}
    assert result.imports == []
    assert result.reexports == []
    assert result.dead_exports == ["a", "b"]


def test_shaking_twice_is_a_noop(config):
    first = shake_estree(_module_ab(), ["a"], config=config).to_estree()
    snapshot = copy.deepcopy(first)
    second = shake_estree(first, ["a"], config=config)
    assert second.to_estree() == snapshot
    assert second.dead_exports == []


def test_normalized_export_removed_with_its_readers(config):
    data = program(
        exports_assign("foo", lit(1)),
        exports_assign("bar", function(body=[ret(exports_member("foo"))])),
        exports_assign("baz", lit(3)),
    )
    result = shake_estree(data, ["baz"], config=config)
    out = result.to_estree()

    assert len(out["body"]) == 1
    assert out["body"][0]["expression"]["left"]["property"]["name"] == "baz"
    assert result.dead_exports == ["foo", "bar"]


def test_export_read_by_live_code_is_kept(config):
    data = program(
        exports_assign("foo", lit(1)),
        exports_assign("bar", function(body=[ret(exports_member("foo"))])),
    )
    result = shake_estree(data, ["bar"], config=config)
    assert sorted(result.exports) == ["bar", "foo"]
    assert result.elimination.restored != []


def test_default_export_declaration(config):
    data = program(
        function_decl("used", body=[ret(lit(1))]),
        export_default(function_decl("main", body=[ret(call("used"))])),
        export_named(const("other", lit(1))),
    )
    result = shake_estree(data, ["other"], config=config)
    assert declared_names(result.to_estree()) == ["other"]
    assert result.dead_exports == ["default"]


def test_babel_file_root_is_preserved(config):
    data = {"type": "File", "program": program(export_named(const("a", lit(1)))), "comments": []}
    result = shake_estree(data, ["a"], config=config)
    out = result.to_estree()
    assert out["type"] == "File"
    assert out["comments"] == []
    assert out["program"]["type"] == "Program"


def test_metadata_is_forwarded_verbatim(config):
    metadata = {"dependencies": ["x"], "processors": []}
    result = shake_estree(program(export_named(const("a", lit(1)))), ["a"], config=config, metadata=metadata)
    assert result.metadata is metadata


def test_session_numbers_files_in_first_seen_order(config):
    session = ShakeSession(config)
    assert session.file_index("b.js") == 1
    assert session.file_index("a.js") == 2
    assert session.file_index("b.js") == 1


def test_nested_write_keeps_its_declaration(config):
    data = program(
        declare("let", declarator("counter", lit(0))),
        export_named(const("inc", arrow(update("++", ident("counter"))))),
        if_stmt(ident("cond"), stmt(assign(ident("counter"), lit(5)))),
        export_named(const("keep", lit(1))),
    )
    result = shake_estree(data, ["keep"], config=config)
    out = result.to_estree()

    assert [s["type"] for s in out["body"]] == ["VariableDeclaration", "IfStatement", "ExportNamedDeclaration"]
    assert declared_names(out) == ["counter", "keep"]
    assert result.dead_exports == ["inc"]


def test_compound_assignment_in_kept_export_survives(config):
    data = program(
        declare("let", declarator("x", lit(0))),
        export_named(const("peek", arrow(ident("x")))),
        export_named(const("keep", arrow(call("log", assign(ident("x"), lit(1), operator="+="))))),
    )
    result = shake_estree(data, ["keep"], config=config)
    out = result.to_estree()

    assert declared_names(out) == ["x", "keep"]
    argument = out["body"][1]["declaration"]["declarations"][0]["init"]["body"]["arguments"][0]
    assert argument["type"] == "AssignmentExpression"
    assert argument["operator"] == "+="
    assert result.dead_exports == ["peek"]


def test_session_keep_predicate_overrides_keep_list(config):
    data = program(
        import_decl("./polyfill"),
        import_decl("./theme.css"),
        export_named(const("a", lit(1))),
    )
    session = ShakeSession(config, keep_side_effect=lambda source: source == "./polyfill")
    result = session.shake_estree(data, ["a"])
    out = result.to_estree()

    assert [s["type"] for s in out["body"]] == ["ImportDeclaration", "ExportNamedDeclaration"]
    assert out["body"][0]["source"]["value"] == "./polyfill"
    assert result.summary.imports == {"./polyfill": ["side-effect"]}
