"""
conftest.py - Fixtures compartilhadas para testes do fizgraph

Propósito:
    Fornecer fixtures comuns para parsing, compilação e importação.

Componentes principais:
    - ids deterministicos para nos, arestas e Dags
    - fetcher de pacotes em memoria
    - helpers de parsing e busca no Dag
"""

from __future__ import annotations

import itertools
from typing import Dict, List

import pytest

from fizgraph.api import compile_string
from fizgraph.ast.nodes import Recipe
from fizgraph.compiler import Compilation
from fizgraph.parser.lexer import parse_string
from fizgraph.parser.transformer import RecipeBuilder
from fizgraph.semantic.dag import Dag, DagNode
from fizgraph.semantic.imports import PackageFetchError


class MemoryFetcher:
    """Fetcher de pacotes que le de um dicionario e registra as chamadas."""

    def __init__(self, packages: Dict[str, str]) -> None:
        self.packages = packages
        self.calls: List[str] = []

    async def __call__(self, location: str) -> str:
        self.calls.append(location)
        if location not in self.packages:
            raise PackageFetchError(location, "Not Found")
        return self.packages[location]


def _parse_ast(text: str) -> Recipe:
    result = RecipeBuilder.build(parse_string(text, "test.fiz"), text)
    assert result.errors == []
    result.ast.clear_positions()
    return result.ast


def _node_by_name(dag: Dag, name: str) -> DagNode:
    matches = [node for node in dag.nodes.values() if node.name == name]
    assert len(matches) == 1, f"esperado um no '{name}', encontrados {len(matches)}"
    return matches[0]


def _child_by_name(dag: Dag, name: str) -> Dag:
    return dag.child_dags[dag.namespace_name_to_dag_id[name]]


@pytest.fixture()
def id_factory():
    counter = itertools.count()
    return lambda: f"id{next(counter)}"


@pytest.fixture()
def memory_fetcher():
    return MemoryFetcher


@pytest.fixture()
def compile_text(id_factory):
    def _compile(text: str, packages: Dict[str, str] | None = None) -> Compilation:
        fetcher = MemoryFetcher(packages or {})
        return compile_string(text, "test.fiz", fetcher=fetcher, id_factory=id_factory)

    return _compile


@pytest.fixture()
def parse_ast():
    return _parse_ast


@pytest.fixture()
def node_by_name():
    return _node_by_name


@pytest.fixture()
def child_by_name():
    return _child_by_name
