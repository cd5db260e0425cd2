"""
utils.py - Consultas utilitarias sobre a AST fiz

Proposito:
    Funcoes puras que percorrem uma Recipe sem compila-la.
"""

from __future__ import annotations

from typing import Iterable, Set

from fizgraph.ast.nodes import Assignment, Import, Namespace, Recipe, Statement


def _collect_imports(statements: Iterable[Statement], found: Set[str]) -> None:
    for statement in statements:
        match statement:
            case Import(location=location):
                found.add(location)
            case Assignment(rhs=Import(location=location)):
                found.add(location)
            case Assignment(rhs=Namespace() as namespace):
                _collect_imports(namespace.statements, found)
            case Namespace():
                _collect_imports(statement.statements, found)
            case _:
                pass


def get_imports_from_recipe(recipe: Recipe) -> Set[str]:
    """Locais de pacote referenciados na recipe, inclusive em namespaces aninhados."""
    found: Set[str] = set()
    _collect_imports(recipe.statements, found)
    return found
