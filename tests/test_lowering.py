"""
test_lowering.py - Testes de compilacao da AST para Dags

Propósito:
    Validar nos, arestas, variaveis, estilos, bindings e namespaces
    gerados pelo DagLowerer, incluindo diagnosticos de referencia.
"""

from __future__ import annotations

import pytest

from fizgraph.ast.nodes import Assignment, Call, Import, LocalVariable, Recipe, Style
from fizgraph.ast.results import (
    DiagnosticSource,
    ImportFailed,
    IncompleteAssignment,
    UndefinedAliasTarget,
    UndefinedStyleTag,
    UndefinedVariable,
    UnknownNodeKind,
)
from fizgraph.semantic.dag import DagEdge, DagNode
from fizgraph.semantic.lowering import make_dag


class TestCallsAndEdges:
    """Chamadas viram nos; argumentos viram arestas de entrada."""

    def test_alias_chain_with_deterministic_ids(self, compile_text):
        compilation = compile_text("y = f()\nx = y\nz(x)")
        dag = compilation.dag
        assert compilation.errors == []
        assert dag.id == "id0"
        assert dag.nodes == {"id1": DagNode("id1", "f"), "id2": DagNode("id2", "z")}
        assert dag.edges == {"id3": DagEdge("id3", "x", "id1", "id2")}
        assert dag.var_name_to_node_id == {"y": "id1", "x": "id1"}

    def test_multiple_lhs_share_one_node(self, compile_text, node_by_name):
        dag = compile_text("a, b = c()\ng(a)\nh(b)").dag
        c = node_by_name(dag, "c")
        edges = sorted((edge.name, edge.src_node_id) for edge in dag.edges.values())
        assert edges == [("a", c.id), ("b", c.id)]

    def test_nested_call_argument_creates_unnamed_edge(self, compile_text, node_by_name):
        dag = compile_text("g(f())").dag
        f = node_by_name(dag, "f")
        g = node_by_name(dag, "g")
        [edge] = dag.edges.values()
        assert (edge.name, edge.src_node_id, edge.dest_node_id) == ("", f.id, g.id)

    def test_qualified_argument_edge_is_named_by_last_segment(self, compile_text, node_by_name):
        dag = compile_text("n[x = f()]\ng(n.x)").dag
        [edge] = dag.edges.values()
        assert edge.name == "x"
        assert edge.dest_node_id == node_by_name(dag, "g").id

    def test_call_styling_is_copied_to_node(self, compile_text, node_by_name):
        dag = compile_text("#s{}\ng(){color: red; #s}").dag
        g = node_by_name(dag, "g")
        assert g.style_tags == [("s",)]
        assert g.style_properties == {"color": "red"}

    def test_undefined_variable_skips_edge(self, compile_text, node_by_name):
        compilation = compile_text("g(q)")
        assert compilation.dag.edges == {}
        node_by_name(compilation.dag, "g")
        [error] = compilation.errors
        assert isinstance(error, UndefinedVariable)
        assert error.source == DiagnosticSource.REFERENCE
        assert error.message == "Variable 'q' not found"

    def test_bare_variable_statement_has_no_effect(self, compile_text):
        compilation = compile_text("x = f()\nx")
        assert compilation.errors == []
        assert len(compilation.dag.nodes) == 1


class TestAssignments:
    """Atribuicoes, aliases e estilos de variaveis."""

    def test_variable_style_flows_into_edge(self, compile_text):
        compilation = compile_text("#s{}\nx{color: red; #s} = f()\ng(x)")
        assert compilation.errors == []
        [edge] = compilation.dag.edges.values()
        assert edge.style_tags == [("s",)]
        assert edge.style_properties == {"color": "red"}

    def test_alias_takes_its_own_style(self, compile_text):
        dag = compile_text("y{weight: 2} = f()\nx{weight: 5} = y\ng(x)\nh(y)").dag
        styles = {edge.name: edge.style_properties for edge in dag.edges.values()}
        assert styles == {"x": {"weight": "5"}, "y": {"weight": "2"}}

    def test_unstyled_alias_inherits_referent_style(self, compile_text):
        dag = compile_text("y{weight: 2} = f()\nx = y\ng(x)").dag
        [edge] = dag.edges.values()
        assert edge.name == "x"
        assert edge.style_properties == {"weight": "2"}
        assert dag.var_name_to_style["x"] is not dag.var_name_to_style["y"]

    def test_undefined_alias_target(self, compile_text):
        compilation = compile_text("a, b = missing")
        [error] = compilation.errors
        assert isinstance(error, UndefinedAliasTarget)
        assert error.message == "Variable 'missing' not found for alias 'a, b'"
        assert compilation.dag.var_name_to_node_id == {}

    def test_reassignment_rebinds_variable(self, compile_text, node_by_name):
        dag = compile_text("x = f()\nx = g()\nh(x)").dag
        [edge] = dag.edges.values()
        assert edge.src_node_id == node_by_name(dag, "g").id

    @pytest.mark.asyncio
    async def test_missing_left_hand_side(self):
        dag, errors = await make_dag(Recipe([Assignment([], Call("f"))]))
        assert [type(err) for err in errors] == [IncompleteAssignment]
        assert errors[0].message == "Assignment missing left hand side"
        assert errors[0].source == DiagnosticSource.SYNTAX
        assert [node.name for node in dag.nodes.values()] == ["f"]

    @pytest.mark.asyncio
    async def test_missing_right_hand_side(self):
        dag, errors = await make_dag(Recipe([Assignment([LocalVariable("x")], None)]))
        assert [err.message for err in errors] == ["Assignment missing right hand side"]
        assert dag.nodes == {}
        assert dag.var_name_to_node_id == {}


class TestStyles:
    """Estilos nomeados, validacao de tags e bindings."""

    def test_named_style_flattens_referenced_tags(self, compile_text):
        dag = compile_text("#a{color: red; size: 1}\n#b{#a; color: blue}").dag
        assert dag.get_style(("b",)) == {"color": "blue", "size": "1"}
        assert dag.get_style(("a",)) == {"color": "red", "size": "1"}

    def test_named_style_with_undefined_tag(self, compile_text):
        compilation = compile_text("#b{#missing; color: blue}")
        [error] = compilation.errors
        assert isinstance(error, UndefinedStyleTag)
        assert error.message == "Style tag 'missing' not found"
        assert compilation.dag.get_style(("b",)) == {"color": "blue"}

    def test_tag_must_be_declared_before_use(self, compile_text):
        compilation = compile_text("g(){#late}\n#late{}")
        assert [type(err) for err in compilation.errors] == [UndefinedStyleTag]

    def test_qualified_tag_from_namespace(self, compile_text):
        compilation = compile_text("lib[#s{color: red}]\n#t{#lib.s}\ng(){#lib.s}")
        assert compilation.errors == []
        assert compilation.dag.get_style(("t",)) == {"color": "red"}

    def test_lhs_style_tags_are_validated(self, compile_text):
        compilation = compile_text("x{#nope} = f()")
        assert [type(err) for err in compilation.errors] == [UndefinedStyleTag]
        assert "x" in compilation.dag.var_name_to_node_id

    def test_style_binding_is_recorded(self, compile_text):
        dag = compile_text("#a{}\n%kw{#a}").dag
        assert dag.get_style_bindings() == {"kw": [("a",)]}


class TestNamespaces:
    """Namespaces aninhados e escopo lexico."""

    def test_named_namespace_becomes_child_dag(self, compile_text, child_by_name, node_by_name):
        dag = compile_text("n[x = f()]").dag
        child = child_by_name(dag, "n")
        assert child.parent is dag
        assert node_by_name(child, "f").id == child.var_name_to_node_id["x"]
        assert dag.nodes == {}

    def test_namespace_args_feed_the_child_dag(self, compile_text, child_by_name, node_by_name):
        dag = compile_text("a = f()\nn[g()](a)").dag
        child = child_by_name(dag, "n")
        [edge] = dag.edges.values()
        assert (edge.name, edge.src_node_id, edge.dest_node_id) == (
            "a",
            node_by_name(dag, "f").id,
            child.id,
        )

    def test_assigned_anonymous_namespace(self, compile_text):
        compilation = compile_text("m = [f()]{shape: box}\ng(m)")
        dag = compilation.dag
        [child] = dag.get_child_dags()
        assert child.name == ""
        assert child.dag_style.style_properties == {"shape": "box"}
        assert dag.var_name_to_node_id["m"] == child.id
        [edge] = dag.edges.values()
        assert edge.src_node_id == child.id

    def test_inner_scope_shadows_outer(self, compile_text, child_by_name, node_by_name):
        dag = compile_text("x = f()\nn[x = g()\nh(x)]").dag
        child = child_by_name(dag, "n")
        [edge] = child.edges.values()
        assert edge.src_node_id == node_by_name(child, "g").id

    def test_inner_scope_sees_outer_variables(self, compile_text, child_by_name, node_by_name):
        dag = compile_text("x = f()\nn[h(x)]").dag
        child = child_by_name(dag, "n")
        [edge] = child.edges.values()
        assert edge.src_node_id == node_by_name(dag, "f").id

    @pytest.mark.parametrize("text", ["n[x = f()]\ng(x)", "[x = f()]\ng(x)"])
    def test_child_variable_is_invisible_from_parent(self, compile_text, text):
        compilation = compile_text(text)
        [error] = compilation.errors
        assert isinstance(error, UndefinedVariable)
        assert error.source == DiagnosticSource.REFERENCE
        assert compilation.dag.edges == {}

    def test_sibling_namespace_is_visible_by_qualified_name(
        self, compile_text, child_by_name, node_by_name
    ):
        compilation = compile_text("a[x = f()]\nb[g(a.x)]")
        assert compilation.errors == []
        a = child_by_name(compilation.dag, "a")
        b = child_by_name(compilation.dag, "b")
        [edge] = b.edges.values()
        assert edge.src_node_id == node_by_name(a, "f").id
        assert edge.dest_node_id == node_by_name(b, "g").id

    def test_last_sibling_with_a_name_wins(self, compile_text, node_by_name):
        dag = compile_text("n[x = f()]\nn[x = g()]\nh(n.x)").dag
        assert len(dag.child_dags) == 2
        [edge] = dag.edges.values()
        second = dag.child_dags[dag.namespace_name_to_dag_id["n"]]
        assert edge.src_node_id == node_by_name(second, "g").id

    def test_namespace_style_tags_are_validated(self, compile_text):
        compilation = compile_text("n[]{#nope}")
        assert [type(err) for err in compilation.errors] == [UndefinedStyleTag]

    def test_lineage_of_nested_namespaces(self, compile_text, child_by_name):
        dag = compile_text("a[b[f()]]").dag
        a = child_by_name(dag, "a")
        b = child_by_name(a, "b")
        assert b.lineage_path == f"/{a.id}/{b.id}"
        assert b.dag_lineage_path == f"/{a.id}"


class TestMakeDag:
    """Chamada direta de make_dag com ASTs construidas a mao."""

    @pytest.mark.asyncio
    async def test_unknown_statement_is_internal(self):
        dag, errors = await make_dag(Recipe([Style()]))
        [error] = errors
        assert isinstance(error, UnknownNodeKind)
        assert error.source == DiagnosticSource.INTERNAL
        assert dag.nodes == {}

    @pytest.mark.asyncio
    async def test_import_without_cache(self):
        dag, errors = await make_dag(Recipe([Import("lib.fiz")]))
        [error] = errors
        assert isinstance(error, ImportFailed)
        assert dag.used_imports == {"lib.fiz"}

    @pytest.mark.asyncio
    async def test_uses_id_factory(self, id_factory):
        dag, errors = await make_dag(Recipe([Call("f")]), id_factory=id_factory)
        assert errors == []
        assert dag.id == "id0"
        assert list(dag.nodes) == ["id1"]
