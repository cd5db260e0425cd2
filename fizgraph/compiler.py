"""
compiler.py - Orquestrador principal do compilador fiz

Proposito:
    Executar o pipeline completo: texto -> arvore Lark -> AST -> Dag,
    reunindo todos os diagnosticos numa Compilation.

Componentes principais:
    - FizCompiler: executa o pipeline e serve de compilador de pacotes
      para o ImportCache
    - Compilation: fonte, AST, Dag raiz e diagnosticos

Dependencias criticas:
    - fizgraph.parser: parsing com Lark e construcao da AST
    - fizgraph.semantic: lowering e cache de importacoes

Exemplo de uso:
    compiler = FizCompiler(fetcher=LocalPackageFetcher("receitas"))
    compilation = await compiler.compile(texto, filename="main.fiz")
    if compilation.has_errors():
        print(compilation.get_diagnostics().to_diagnostics())

Notas de implementacao:
    - Nenhuma excecao escapa para entradas do usuario: erro de sintaxe vira
      um unico diagnostico Syntax e uma Recipe vazia.
    - Um unico ImportCache e compartilhado por toda a arvore de pacotes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional

from fizgraph.ast.nodes import Position, Recipe
from fizgraph.ast.results import Diagnostic, Diagnostics, MalformedSource
from fizgraph.exporters.json_export import build_json_payload, export_json
from fizgraph.parser.lexer import FizSyntaxError, parse_string
from fizgraph.parser.transformer import BuildResult, RecipeBuilder
from fizgraph.semantic.dag import Dag
from fizgraph.semantic.imports import ImportCache, PackageFetcher
from fizgraph.semantic.lowering import IdFactory, make_dag

logger = logging.getLogger(__name__)


@dataclass
class Compilation:
    source: str
    ast: Recipe
    dag: Dag
    errors: List[Diagnostic] = field(default_factory=list)

    def has_errors(self) -> bool:
        return self.get_diagnostics().has_errors()

    def has_warnings(self) -> bool:
        return self.get_diagnostics().has_warnings()

    def get_diagnostics(self) -> Diagnostics:
        return Diagnostics(list(self.errors))

    def to_json_dict(self) -> Dict[str, Any]:
        return build_json_payload(self)

    def to_json(self, path: Path) -> None:
        export_json(self, path)


class FizCompiler:
    def __init__(
        self,
        fetcher: Optional[PackageFetcher] = None,
        import_cache: Optional[ImportCache] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        self.id_factory = id_factory
        if import_cache is None:
            import_cache = ImportCache(fetcher, compile_source=self._compile_package)
        self.import_cache = import_cache

    def parse(self, source: str, filename: str = "<string>") -> BuildResult:
        try:
            tree = parse_string(source, filename)
        except FizSyntaxError as exc:
            logger.debug("Erro de sintaxe em %s: %s", filename, exc.position)
            return BuildResult(
                ast=Recipe(position=Position(0, len(source))),
                errors=[MalformedSource(exc.position, exc.message)],
            )
        return RecipeBuilder.build(tree, source)

    async def compile(
        self,
        source: str,
        filename: str = "<string>",
        seen_imports: FrozenSet[str] = frozenset(),
    ) -> Compilation:
        built = self.parse(source, filename)
        dag, dag_errors = await make_dag(
            built.ast, self.import_cache, seen_imports, self.id_factory
        )
        return Compilation(
            source=source,
            ast=built.ast,
            dag=dag,
            errors=built.errors + dag_errors,
        )

    async def _compile_package(
        self,
        location: str,
        text: str,
        seen_imports: FrozenSet[str],
    ) -> Dag:
        compilation = await self.compile(text, filename=location, seen_imports=seen_imports)
        if compilation.errors:
            logger.warning(
                "Pacote %s compilado com %d diagnostico(s)", location, len(compilation.errors)
            )
        return compilation.dag
