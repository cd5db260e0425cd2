"""
cli.py - Interface de linha de comando do compilador fiz

Proposito:
    Expor comandos de compilacao e verificacao de sintaxe de recipes.
    Gerencia saida de diagnosticos e codigos de retorno.

Componentes principais:
    - main: grupo principal Click
    - compile/check: comandos CLI

Dependencias criticas:
    - click: CLI
    - fizgraph.compiler: pipeline principal

Exemplo de uso:
    fizgraph compile receita.fiz --json grafo.json --dump-dag

Notas de implementacao:
    - Saidas usam formato arquivo:linha:coluna: [SEVERITY] (Origem) mensagem.
    - Importacoes relativas sao resolvidas a partir do diretorio do arquivo.
    - --dump-ast lista tambem os pacotes importados (inclusive em namespaces).
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable

try:
    import click
except ImportError:
    raise ImportError(
        "click nao encontrado. CLI requer instalacao com: pip install fizgraph[cli]"
    )

from fizgraph.ast.results import Diagnostic, ErrorSeverity
from fizgraph.ast.utils import get_imports_from_recipe
from fizgraph.compiler import FizCompiler
from fizgraph.constants import VERSION
from fizgraph.error_handler import ErrorReporter
from fizgraph.exporters.json_export import export_json
from fizgraph.parser.lexer import FizSyntaxError, parse_file
from fizgraph.semantic.imports import DefaultPackageFetcher

HELP_EPILOG = (
    "Examples:\n"
    "  fizgraph compile receita.fiz --json grafo.json\n"
    "  fizgraph compile receita.fiz --dump-dag\n"
    "  fizgraph check receita.fiz\n"
)

SEVERITY_COLORS = {
    ErrorSeverity.ERROR: "red",
    ErrorSeverity.WARNING: "yellow",
    ErrorSeverity.INFO: "cyan",
    ErrorSeverity.HINT: "cyan",
}


@click.group(invoke_without_command=True, epilog=HELP_EPILOG)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.pass_context
def main(ctx, version: bool) -> None:
    """fizgraph - Compiler for fiz recipes into dependency graphs"""
    if version:
        click.echo(f"fizgraph v{VERSION}")
        raise SystemExit(0)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "json_path", type=click.Path(), help="Write the compiled graph as JSON")
@click.option("--dump-ast", is_flag=True, help="Print the statement tree")
@click.option("--dump-dag", is_flag=True, help="Print the compiled graph")
@click.option("--strict", is_flag=True, help="Treat warnings as errors")
@click.option("--report", is_flag=True, help="Print a detailed report for each diagnostic")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def compile(
    file: str,
    json_path: str | None,
    dump_ast: bool,
    dump_dag: bool,
    strict: bool,
    report: bool,
    verbose: bool,
) -> None:
    """Compile a fiz recipe."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    path = Path(file)
    source = path.read_text(encoding="utf-8")
    compiler = FizCompiler(fetcher=DefaultPackageFetcher(base_dir=path.parent))
    compilation = asyncio.run(compiler.compile(source, filename=str(path)))

    if dump_ast:
        click.echo(compilation.ast.debug_dump_tree())
        for location in sorted(get_imports_from_recipe(compilation.ast)):
            click.echo(f"Imports: {location}")
    if dump_dag:
        click.echo(compilation.dag.debug_dump_dag())

    _print_diagnostics(compilation.errors, source, str(path))
    if report and compilation.errors:
        click.echo(ErrorReporter(source).make_error_report(compilation.errors), err=True)

    has_errors = compilation.has_errors()
    exit_code = 1 if has_errors or (strict and compilation.has_warnings()) else 0

    if json_path:
        export_json(compilation, Path(json_path))

    raise SystemExit(exit_code)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def check(file: str) -> None:
    """Check the syntax of a single fiz file."""
    try:
        parse_file(Path(file))
        click.echo(click.style("OK", fg="green"))
        raise SystemExit(0)
    except FizSyntaxError as exc:
        click.echo(click.style(str(exc), fg="red"), err=True)
        raise SystemExit(1)


def _line_col(source: str, offset: int) -> tuple[int, int]:
    offset = max(0, min(offset, len(source)))
    line = source.count("\n", 0, offset) + 1
    column = offset - (source.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _print_diagnostics(errors: Iterable[Diagnostic], source: str, filename: str) -> None:
    for err in errors:
        line, column = _line_col(source, err.position.start)
        color = SEVERITY_COLORS.get(err.severity, "red")
        lines = err.message.strip().split("\n")
        first_line = (
            f"{filename}:{line}:{column}: [{err.severity.value.upper()}] "
            f"({err.source.value}) {lines[0]}"
        )
        click.echo(click.style(first_line, fg=color), err=True)
        for extra in lines[1:]:
            click.echo(click.style(f"  {extra}", fg=color), err=True)


if __name__ == "__main__":
    main()
