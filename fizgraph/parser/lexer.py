"""
lexer.py - Carregamento e execucao do parser Lark

Proposito:
    Ler a gramatica fiz e expor funcoes de parsing para arquivos e strings.
    Centraliza a criacao do parser LALR e o tratamento de quebras de linha.

Componentes principais:
    - load_grammar: leitura do arquivo fiz.lark do pacote
    - create_parser: construcao do parser Lark
    - BracketPostLex: descarta quebras de linha dentro de (...) e {...}
    - parse_file/parse_string: parsing com tratamento de erros

Dependencias criticas:
    - lark: parser LALR e excecoes de sintaxe
    - importlib.resources: acesso a dados do pacote

Exemplo de uso:
    from fizgraph.parser.lexer import parse_string
    tree = parse_string("x = f()\\ng(x)", "receita.fiz")

Notas de implementacao:
    - propagate_positions=True garante meta.start_pos/end_pos nas regras.
    - Erros de sintaxe geram FizSyntaxError com a faixa do token ofensor.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Iterator, List, Optional

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedToken
from lark.lark import PostLex

from fizgraph.ast.nodes import Position
from fizgraph.error_handler import create_pedagogical_error

OPENERS = {"_LPAR": "_RPAR", "_LBRACE": "_RBRACE", "_LSQB": "_RSQB"}
CLOSERS = set(OPENERS.values())

# Delimitadores onde quebras de linha nao separam instrucoes
NEWLINE_TRANSPARENT = {"_LPAR", "_LBRACE"}


@dataclass
class FizSyntaxError(Exception):
    """
    Erro de sintaxe com localizacao precisa.

    Attributes:
        message: mensagem pedagogica completa
        position: faixa de caracteres do token ofensor
        expected: lista de tokens esperados (quando disponivel)
    """

    message: str
    position: Position
    expected: Optional[List[str]] = None

    def __str__(self) -> str:
        return self.message


class BracketPostLex(PostLex):
    """Remove _NL quando o delimitador aberto mais interno e '(' ou '{'."""

    always_accept = ("_NL",)

    def process(self, stream: Iterator[Token]) -> Iterator[Token]:
        stack: List[str] = []
        for token in stream:
            if token.type in OPENERS:
                stack.append(token.type)
            elif token.type in CLOSERS:
                if stack and OPENERS[stack[-1]] == token.type:
                    stack.pop()
            elif token.type == "_NL" and stack and stack[-1] in NEWLINE_TRANSPARENT:
                continue
            yield token


@lru_cache(maxsize=1)
def load_grammar() -> str:
    """Carrega o arquivo fiz.lark a partir do pacote fizgraph.grammar."""
    grammar_path = resources.files("fizgraph.grammar").joinpath("fiz.lark")
    return grammar_path.read_text(encoding="utf-8")


@lru_cache(maxsize=1)
def create_parser() -> Lark:
    """Cria o parser LALR com lexer contextual."""
    grammar_text = load_grammar()
    return Lark(
        grammar_text,
        start="recipe",
        parser="lalr",
        lexer="contextual",
        maybe_placeholders=False,
        postlex=BracketPostLex(),
        propagate_positions=True,
    )


def _error_position(content: str, exc: Exception) -> Position:
    start = getattr(exc, "pos_in_stream", None)
    token = getattr(exc, "token", None)
    if token is not None and getattr(token, "start_pos", None) is not None:
        start = token.start_pos
        end = token.end_pos if token.end_pos is not None else start
        return Position(start, max(end, start))
    if start is None:
        start = len(content)
    return Position(start, min(start + 1, len(content)))


def parse_string(content: str, filename: str = "<string>") -> Tree:
    """Parseia conteudo fiz a partir de uma string."""
    parser = create_parser()
    try:
        return parser.parse(content)
    except UnexpectedToken as exc:
        pedagogical_msg = create_pedagogical_error(exc, content, filename)
        expected = sorted(exc.expected) if exc.expected else None
        raise FizSyntaxError(
            message=pedagogical_msg,
            position=_error_position(content, exc),
            expected=expected,
        ) from exc
    except UnexpectedCharacters as exc:
        pedagogical_msg = create_pedagogical_error(exc, content, filename)
        raise FizSyntaxError(
            message=pedagogical_msg,
            position=_error_position(content, exc),
        ) from exc


def parse_file(path: Path | str) -> Tree:
    """Parseia conteudo fiz a partir de um arquivo."""
    file_path = Path(path)
    content = file_path.read_text(encoding="utf-8")
    return parse_string(content, str(file_path))
