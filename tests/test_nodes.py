"""
test_nodes.py - Testes dos nos da AST fiz

Propósito:
    Validar children(), dumps, clear_positions e serializacao.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from fizgraph.ast.nodes import (
    Assignment,
    Call,
    Import,
    LocalVariable,
    NamedStyle,
    Namespace,
    NodeType,
    Position,
    QualifiedVariable,
    Recipe,
    StatementList,
    Style,
    StyleBinding,
    StyleTag,
    ValueList,
)
from fizgraph.ast.utils import get_imports_from_recipe


def test_call_children_are_args_then_styling():
    arg = QualifiedVariable(("x",))
    styling = Style({"color": "red"})
    call = Call("g", [arg], styling)
    assert call.children() == [arg, styling]
    assert call.node_type == NodeType.CALL


def test_namespace_accepts_plain_lists():
    ns = Namespace("n", [Call("f")], [QualifiedVariable(("a",))])
    assert isinstance(ns.statement_list, StatementList)
    assert isinstance(ns.arg_list, ValueList)
    assert ns.statements == [Call("f")]
    assert ns.args == [QualifiedVariable(("a",))]


def test_import_empty_alias_normalizes_to_none():
    assert Import("lib.fiz", "").alias is None
    assert Import("lib.fiz", "lib").alias == "lib"


def test_alias_detection():
    assert Assignment([LocalVariable("y")], QualifiedVariable(("x",))).is_alias
    assert not Assignment([LocalVariable("y")], Call("f")).is_alias


def test_clear_positions_enables_structural_equality():
    left = Recipe([Call("f", [QualifiedVariable(("x",), position=Position(2, 3))], position=Position(0, 4))])
    right = Recipe([Call("f", [QualifiedVariable(("x",))])])
    assert left != right
    left.clear_positions()
    assert left == right


def test_nodes_are_frozen_except_for_clearing_positions():
    call = Call("f", [QualifiedVariable(("x",))], position=Position(0, 4))
    with pytest.raises(FrozenInstanceError):
        call.name = "g"
    with pytest.raises(FrozenInstanceError):
        call.position = Position(1, 2)
    call.clear_positions()
    assert call.position is None
    assert call.args[0].position is None


def test_style_tag_paths():
    style = Style({}, [StyleTag(("a",)), StyleTag(("lib", "b"))])
    assert style.tag_paths == [("a",), ("lib", "b")]


def test_debug_dump_tree():
    recipe = Recipe(
        [
            Assignment([LocalVariable("x")], Call("f")),
            Call("g", [QualifiedVariable(("n", "x"))]),
            NamedStyle("s", Style({"a": "1"})),
            StyleBinding("kw", [StyleTag(("s",))]),
        ]
    )
    expected = (
        "Recipe:\n"
        "\tAssignment:\n"
        "\t\tLocalVariable: x\n"
        "\t\tCall: f\n"
        "\tCall: g\n"
        "\t\tQualifiedVariable: n.x\n"
        "\tStyleName: s\n"
        '\t\tStyleTagList: [] StyleKeyValueMap: {"a": "1"}\n'
        "\tStyleBinding: kw StyleTagList: [s]\n"
        "\t\tStyleTag: s\n"
    )
    assert recipe.debug_dump_tree() == expected


def test_to_dict_includes_type_and_position():
    call = Call("f", [QualifiedVariable(("x",))], position=Position(0, 4))
    data = call.to_dict()
    assert data["type"] == "Call"
    assert data["name"] == "f"
    assert data["args"][0]["path"] == ["x"]
    assert data["position"] == {"from": 0, "to": 4}


def test_get_imports_from_recipe_descends_into_namespaces():
    recipe = Recipe(
        [
            Import("a.fiz"),
            Assignment([LocalVariable("b")], Import("b.fiz", "b")),
            Namespace("n", [Import("c.fiz"), Assignment([LocalVariable("m")], Namespace("", [Import("d.fiz")]))]),
            Call("f"),
        ]
    )
    assert get_imports_from_recipe(recipe) == {"a.fiz", "b.fiz", "c.fiz", "d.fiz"}
