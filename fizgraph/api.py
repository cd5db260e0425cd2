"""
api.py - API publica para compilacao em memoria

Proposito:
    Expor funcoes para compilar recipes fiz a partir de strings, sem
    exigir que o chamador gerencie um event loop. Ideal para notebooks,
    scripts e testes.

Componentes principais:
    - compile_string(): compilacao sincrona (asyncio.run)
    - compile_string_async(): mesma operacao dentro de um loop existente
    - parse_recipe(): apenas AST, sem lowering

Dependencias criticas:
    - fizgraph.compiler: FizCompiler e Compilation

Exemplo de uso:
    import fizgraph
    compilation = fizgraph.compile_string("x = f()\\ng(x)")
    print(compilation.dag.debug_dump_dag())

Notas de implementacao:
    - Cada chamada sincrona cria seu proprio ImportCache, pois as Tasks
      em cache pertencem ao event loop que as criou.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from fizgraph.compiler import Compilation, FizCompiler
from fizgraph.parser.transformer import BuildResult
from fizgraph.semantic.imports import PackageFetcher
from fizgraph.semantic.lowering import IdFactory


async def compile_string_async(
    content: str,
    filename: str = "<string>",
    fetcher: Optional[PackageFetcher] = None,
    id_factory: Optional[IdFactory] = None,
) -> Compilation:
    compiler = FizCompiler(fetcher=fetcher, id_factory=id_factory)
    return await compiler.compile(content, filename=filename)


def compile_string(
    content: str,
    filename: str = "<string>",
    fetcher: Optional[PackageFetcher] = None,
    id_factory: Optional[IdFactory] = None,
) -> Compilation:
    """
    Compila uma recipe fiz completa, incluindo importacoes.

    Args:
        content: Texto-fonte da recipe
        filename: Nome virtual para mensagens de erro
        fetcher: Leitor de pacotes (padrao: HTTP para URLs, arquivo local)
        id_factory: Gerador de ids (padrao: uuid4)

    Returns:
        Compilation com AST, Dag raiz e diagnosticos. Nunca lanca
        excecao por erro do usuario.

    Example:
        >>> compilation = fizgraph.compile_string("a, b = c()\\ng(a)\\nh(b)")
        >>> len(compilation.dag.edges)
        2
    """
    return asyncio.run(
        compile_string_async(content, filename, fetcher=fetcher, id_factory=id_factory)
    )


def parse_recipe(content: str, filename: str = "<string>") -> BuildResult:
    """Parseia e constroi a AST sem compilar para Dag."""
    return FizCompiler().parse(content, filename)
