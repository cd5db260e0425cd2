"""
error_handler.py - Mensagens de erro pedagogicas e relatorios de diagnosticos

Proposito:
    Transformar erros brutos do Lark em mensagens que ensinam a sintaxe
    fiz correta, e renderizar diagnosticos do compilador como blocos de
    texto legiveis no terminal.

Componentes principais:
    - FizErrorHandler: gerador de mensagens para UnexpectedToken/Characters
    - create_pedagogical_error: fabrica usada pelo parser
    - ErrorReporter: relatorio textual de Diagnostic com trecho de codigo

Dependencias criticas:
    - lark.exceptions: UnexpectedToken, UnexpectedCharacters

Exemplo de uso:
    from fizgraph.error_handler import create_pedagogical_error
    try:
        tree = parser.parse(content)
    except UnexpectedInput as exc:
        print(create_pedagogical_error(exc, content, "receita.fiz"))

Notas de implementacao:
    - Heuristicas simples sobre a linha do erro detectam os enganos
      mais comuns: delimitador sem fechamento, duas instrucoes na mesma
      linha, string sem aspas de fechamento e propriedade sem valor.
    - Linhas e colunas exibidas sao 1-indexed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from lark.exceptions import UnexpectedCharacters, UnexpectedToken

from fizgraph.ast.results import Diagnostic

CLOSERS = {
    "_RPAR": ")",
    "_RBRACE": "}",
    "_RSQB": "]",
}

SEPARATORS = {"_NL", "SEMICOLON", "$END"}


class FizErrorHandler:
    """
    Gerador de mensagens de erro pedagogicas.

    Example:
        handler = FizErrorHandler()
        try:
            tree = parser.parse(content)
        except UnexpectedToken as e:
            print(handler.handle_unexpected_token(e, content))
    """

    def handle_unexpected_token(
        self,
        error: UnexpectedToken,
        source: str,
        filename: str | Path = "<unknown>",
    ) -> str:
        location = self._location(filename, error.line, error.column)
        context_lines = self._get_context_lines(source, error.line)
        current_line = self._line_at(source, error.line)
        expected = set(error.expected or ())
        if not self._statement_can_end(expected):
            # _NL e aceito em todo estado pelo post-lexer
            expected.discard("_NL")
        token_type = error.token.type if error.token else "$END"

        if token_type == "$END":
            closer = self._missing_closer(expected)
            if closer:
                return self._format_unclosed_error(location, closer, current_line)

        if self._is_missing_style_value(expected):
            return self._format_missing_style_value_error(location, current_line)

        if self._statement_can_end(expected) and token_type not in SEPARATORS:
            return self._format_missing_separator_error(
                location, error, current_line
            )

        return self._format_generic_unexpected_token(
            location, error, current_line, context_lines, expected
        )

    def handle_unexpected_characters(
        self,
        error: UnexpectedCharacters,
        source: str,
        filename: str | Path = "<unknown>",
    ) -> str:
        location = self._location(filename, error.line, error.column)
        current_line = self._line_at(source, error.line)

        char = getattr(error, "char", None)
        if char in ('"', "'"):
            return self._format_unterminated_string_error(
                location, current_line, error.column, char
            )

        return self._format_generic_unexpected_char(location, error, current_line)

    # =========================================================================
    # DETECTORES DE PADROES
    # =========================================================================

    def _missing_closer(self, expected: set) -> Optional[str]:
        for name, char in CLOSERS.items():
            if name in expected:
                return char
        return None

    def _statement_can_end(self, expected: set) -> bool:
        return "SEMICOLON" in expected and "_RBRACE" not in expected

    def _is_missing_style_value(self, expected: set) -> bool:
        return "STYLE_VALUE" in expected and "PROPERTY_NAME" not in expected

    # =========================================================================
    # FORMATADORES
    # =========================================================================

    def _format_unclosed_error(self, location: str, closer: str, line: str) -> str:
        return (
            f"error: {location}: Input ended before a closing '{closer}'.\n"
            f"    {line}\n"
            f"\nEvery '(', '{{' and '[' needs a matching ')', '}}' or ']'.\n"
            f"Example:\n"
            f"    g(f(x)){{#style}}"
        )

    def _format_missing_separator_error(
        self,
        location: str,
        error: UnexpectedToken,
        line: str,
    ) -> str:
        marker = " " * max(error.column - 1, 0) + "^"
        return (
            f"error: {location}: Unexpected {self._describe_token(error)}.\n"
            f"    {line}\n"
            f"    {marker} a new statement starts here\n"
            f"\nSeparate statements with a line break or ';':\n"
            f"    x = f(); g(x)"
        )

    def _format_missing_style_value_error(self, location: str, line: str) -> str:
        return (
            f"error: {location}: Style property is missing its value.\n"
            f"    {line}\n"
            f"\nWrite the value after ':' (several values are separated by ','):\n"
            f"    f(){{color: red; font: \"Fira Sans\", mono}}"
        )

    def _format_unterminated_string_error(
        self,
        location: str,
        line: str,
        column: int,
        quote: str,
    ) -> str:
        marker = " " * max(column - 1, 0) + "^"
        return (
            f"error: {location}: String literal is never closed.\n"
            f"    {line}\n"
            f"    {marker} opened here\n"
            f"\nClose the string with {quote} on the same line:\n"
            f"    x = @{quote}lib/steps.fiz{quote}"
        )

    def _format_generic_unexpected_token(
        self,
        location: str,
        error: UnexpectedToken,
        current_line: str,
        context_lines: List[str],
        expected: set,
    ) -> str:
        msg = f"error: {location}: Unexpected {self._describe_token(error)}\n"

        if len(context_lines) >= 3:
            msg += "\nContext:\n"
            for i, ctx_line in enumerate(context_lines):
                prefix = "  " if i != 1 else ">>>"
                msg += f"{prefix} {ctx_line}\n"
        else:
            msg += f"    {current_line}\n"

        if expected:
            expected_friendly = self._humanize_expected_tokens(sorted(expected))
            msg += f"\nExpected: {', '.join(expected_friendly[:5])}"
            if len(expected_friendly) > 5:
                msg += f" (and {len(expected_friendly) - 5} more)"

        return msg

    def _format_generic_unexpected_char(
        self,
        location: str,
        error: UnexpectedCharacters,
        current_line: str,
    ) -> str:
        char_repr = repr(error.char) if hasattr(error, "char") else "<unknown>"

        msg = f"error: {location}: Unexpected character {char_repr}\n"
        msg += f"    {current_line}\n"
        msg += f"    {' ' * max(error.column - 1, 0)}^ here\n"
        msg += "\nCheck for:\n"
        msg += "  - identifiers starting with a digit\n"
        msg += "  - style values outside a '{...}' block\n"
        return msg

    # =========================================================================
    # UTILITARIOS
    # =========================================================================

    def _location(self, filename: str | Path, line: int, column: int) -> str:
        return f"{filename}:{max(line, 1)}:{max(column, 1)}"

    def _line_at(self, source: str, line_number: int) -> str:
        lines = source.splitlines()
        idx = line_number - 1
        if 0 <= idx < len(lines):
            return lines[idx]
        return lines[-1] if lines else ""

    def _describe_token(self, error: UnexpectedToken) -> str:
        token = error.token
        if token is None or token.type == "$END":
            return "end of input"
        if token.type == "_NL":
            return "line break"
        return repr(str(token))

    def _get_context_lines(
        self,
        source: str,
        line_number: int,
        context: int = 1,
    ) -> List[str]:
        """
        Extrai linhas de contexto ao redor do erro.

        Returns:
            Lista [linha_anterior, linha_erro, linha_seguinte]
        """
        lines = source.splitlines()
        idx = line_number - 1
        start = max(0, idx - context)
        end = min(len(lines), idx + context + 1)
        return lines[start:end]

    def _humanize_expected_tokens(self, expected: List[str]) -> List[str]:
        """
        Converte nomes de tokens tecnicos para nomes amigaveis.

        Example:
            ["_RPAR", "IDENTIFIER"] -> ["')'", "identifier"]
        """
        friendly_names = {
            "_NL": "line break",
            "SEMICOLON": "';'",
            "IDENTIFIER": "identifier",
            "PROPERTY_NAME": "style property",
            "STYLE_VALUE": "style value",
            "STRING_LITERAL": "quoted string",
            "_LPAR": "'('",
            "_RPAR": "')'",
            "_LSQB": "'['",
            "_RSQB": "']'",
            "_LBRACE": "'{'",
            "_RBRACE": "'}'",
            "COMMA": "','",
            "EQUAL": "'='",
            "DOT": "'.'",
            "COLON": "':'",
            "HASH": "'#'",
            "PERCENT": "'%'",
            "AT": "'@'",
        }
        return [friendly_names.get(token, token) for token in expected]


def create_pedagogical_error(
    exc: Exception,
    source: str,
    filename: str | Path = "<unknown>",
) -> str:
    """
    Factory function para criar mensagens pedagogicas a partir de excecoes.

    Example:
        try:
            tree = parser.parse(content)
        except (UnexpectedToken, UnexpectedCharacters) as e:
            print(create_pedagogical_error(e, content, "receita.fiz"))
    """
    handler = FizErrorHandler()

    if isinstance(exc, UnexpectedToken):
        return handler.handle_unexpected_token(exc, source, filename)
    elif isinstance(exc, UnexpectedCharacters):
        return handler.handle_unexpected_characters(exc, source, filename)
    else:
        return f"error: {filename}: {str(exc)}"


class ErrorReporter:
    """Renderiza diagnosticos como blocos de texto com trecho do codigo."""

    def __init__(self, source: str) -> None:
        self.source = source

    def line_of(self, offset: int) -> int:
        offset = max(0, min(offset, len(self.source)))
        return self.source.count("\n", 0, offset) + 1

    def snippet(self, start: int, end: int) -> str:
        lines = self.source.splitlines()
        first, last = self.line_of(start), self.line_of(end)
        return "\n".join(lines[first - 1:last])

    def make_error_message(self, diagnostic: Diagnostic) -> str:
        start, end = diagnostic.position.start, diagnostic.position.end
        blocks = [
            f"Severity: {diagnostic.severity.value}",
            f"Source: {diagnostic.source.value}",
            f"Message: {diagnostic.message}",
            f"Location: from {start} to {end}",
            f"Lines: {self.line_of(start)}-{self.line_of(end)}",
            f"Code:\n{self.snippet(start, end)}",
        ]
        return "\n\n".join(blocks)

    def make_error_report(self, diagnostics: Iterable[Diagnostic]) -> str:
        return "\n\n".join(self.make_error_message(item) for item in diagnostics)
