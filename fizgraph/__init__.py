"""
fizgraph: Compilador de recipes fiz para grafos de dependencia

Compila a linguagem textual fiz (chamadas, atribuicoes, namespaces,
estilos e importacoes de pacotes) numa arvore de Dags aninhados em
escopos, pronta para visualizacao e analise.

API em Memoria (fizgraph.compile_string):
    >>> import fizgraph
    >>> compilation = fizgraph.compile_string("x = f()\\ng(x)")
    >>> if not compilation.has_errors():
    ...     data = compilation.to_json_dict()

Compilador assincrono (fizgraph.FizCompiler):
    >>> from fizgraph import FizCompiler, LocalPackageFetcher
    >>> compiler = FizCompiler(fetcher=LocalPackageFetcher("receitas"))
    >>> compilation = await compiler.compile(texto, filename="main.fiz")
"""

# API em memoria
from fizgraph.api import (
    compile_string,
    compile_string_async,
    parse_recipe,
)

# Compilador
from fizgraph.compiler import (
    Compilation,
    FizCompiler,
)

# AST Nodes
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

# Diagnosticos
from fizgraph.ast.results import (
    DEFAULT_POSITION,
    Diagnostic,
    DiagnosticSource,
    Diagnostics,
    ErrorSeverity,
)

# Semantica
from fizgraph.semantic.dag import Dag, DagEdge, DagNode, DagStyle
from fizgraph.semantic.imports import (
    CircularImportError,
    DefaultPackageFetcher,
    HttpPackageFetcher,
    ImportCache,
    LocalPackageFetcher,
    PackageExtensionError,
    PackageFetchError,
    PackageImportError,
)

from fizgraph.constants import VERSION

__version__ = VERSION
__all__ = [
    # API em memoria
    "compile_string",
    "compile_string_async",
    "parse_recipe",
    # Compilador
    "Compilation",
    "FizCompiler",
    # AST
    "Assignment",
    "Call",
    "Import",
    "LocalVariable",
    "NamedStyle",
    "Namespace",
    "NodeType",
    "Position",
    "QualifiedVariable",
    "Recipe",
    "StatementList",
    "Style",
    "StyleBinding",
    "StyleTag",
    "ValueList",
    # Diagnosticos
    "DEFAULT_POSITION",
    "Diagnostic",
    "DiagnosticSource",
    "Diagnostics",
    "ErrorSeverity",
    # Semantica
    "Dag",
    "DagEdge",
    "DagNode",
    "DagStyle",
    "ImportCache",
    "DefaultPackageFetcher",
    "HttpPackageFetcher",
    "LocalPackageFetcher",
    "PackageImportError",
    "CircularImportError",
    "PackageExtensionError",
    "PackageFetchError",
]
