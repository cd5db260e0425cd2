"""
results.py - Diagnosticos tipados do compilador fiz

Proposito:
    Centralizar os problemas encontrados em qualquer etapa do pipeline
    (sintaxe, referencias, importacoes, defeitos internos) como valores,
    nunca como excecoes que escapam para o chamador.

Componentes principais:
    - ErrorSeverity / DiagnosticSource: classificacao de cada diagnostico
    - Diagnostic e subclasses: um tipo por problema, com mensagem pronta
    - Diagnostics: agregador ordenado com consultas por severidade e origem

Dependencias criticas:
    - fizgraph.ast.nodes: Position para localizacao no texto

Exemplo de uso:
    from fizgraph.ast.results import Diagnostics, UndefinedVariable
    diagnostics = Diagnostics()
    diagnostics.add(UndefinedVariable(DEFAULT_POSITION, ("x",)))
    print(diagnostics.to_diagnostics())

Notas de implementacao:
    - to_dict() emite exatamente position/message/severity/source.
    - A ordem de insercao e preservada; relatorios agrupam por severidade.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, Iterator, List, Optional

from fizgraph.ast.nodes import Position, QualifiableIdentifier, TreeNode, join_path

DEFAULT_POSITION = Position(0, 0)


class ErrorSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


class DiagnosticSource(Enum):
    SYNTAX = "Syntax"
    REFERENCE = "Reference"
    IMPORT = "Import"
    INTERNAL = "Internal"


def position_of(node: Optional[TreeNode]) -> Position:
    if node is None or node.position is None:
        return DEFAULT_POSITION
    return node.position


@dataclass(frozen=True)
class Diagnostic:
    """Classe base para todos os diagnosticos."""

    position: Position
    severity: ErrorSeverity = field(init=False, default=ErrorSeverity.ERROR)
    DEFAULT_SEVERITY: ClassVar[ErrorSeverity] = ErrorSeverity.ERROR
    SOURCE: ClassVar[DiagnosticSource] = DiagnosticSource.INTERNAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "severity", self.DEFAULT_SEVERITY)

    @property
    def source(self) -> DiagnosticSource:
        return self.SOURCE

    @property
    def message(self) -> str:
        return self.to_diagnostic()

    def to_diagnostic(self) -> str:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position.to_dict(),
            "message": self.message,
            "severity": self.severity.value,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class MalformedSource(Diagnostic):
    """Texto que o parser nao conseguiu reconhecer."""

    detail: str
    SOURCE: ClassVar[DiagnosticSource] = DiagnosticSource.SYNTAX

    def to_diagnostic(self) -> str:
        return self.detail


@dataclass(frozen=True)
class IncompleteAssignment(Diagnostic):
    """Atribuicao sem lado esquerdo ou sem lado direito."""

    missing_side: str
    SOURCE: ClassVar[DiagnosticSource] = DiagnosticSource.SYNTAX

    def to_diagnostic(self) -> str:
        return f"Assignment missing {self.missing_side} hand side"


@dataclass(frozen=True)
class UndefinedVariable(Diagnostic):
    """Variavel usada como argumento sem declaracao visivel."""

    path: QualifiableIdentifier
    SOURCE: ClassVar[DiagnosticSource] = DiagnosticSource.REFERENCE

    def to_diagnostic(self) -> str:
        return f"Variable '{join_path(self.path)}' not found"


@dataclass(frozen=True)
class UndefinedAliasTarget(Diagnostic):
    """Alias cujo lado direito nao resolve para nenhum no."""

    path: QualifiableIdentifier
    alias: str
    SOURCE: ClassVar[DiagnosticSource] = DiagnosticSource.REFERENCE

    def to_diagnostic(self) -> str:
        return f"Variable '{join_path(self.path)}' not found for alias '{self.alias}'"


@dataclass(frozen=True)
class UndefinedStyleTag(Diagnostic):
    """Tag de estilo referenciada antes (ou sem) declaracao."""

    path: QualifiableIdentifier
    SOURCE: ClassVar[DiagnosticSource] = DiagnosticSource.REFERENCE

    def to_diagnostic(self) -> str:
        return f"Style tag '{join_path(self.path)}' not found"


@dataclass(frozen=True)
class ImportFailed(Diagnostic):
    location: str
    reason: str
    SOURCE: ClassVar[DiagnosticSource] = DiagnosticSource.IMPORT

    def to_diagnostic(self) -> str:
        return f"Import failed: {self.reason}"


@dataclass(frozen=True)
class UnknownNodeKind(Diagnostic):
    """Producao da arvore de parse que o construtor nao reconhece."""

    kind: str
    SOURCE: ClassVar[DiagnosticSource] = DiagnosticSource.INTERNAL

    def to_diagnostic(self) -> str:
        return f"Unknown node type '{self.kind}'"


@dataclass
class Diagnostics:
    """Lista ordenada de diagnosticos com consultas agregadas."""

    items: List[Diagnostic] = field(default_factory=list)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def add(self, diagnostic: Diagnostic) -> None:
        self.items.append(diagnostic)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        self.items.extend(diagnostics)

    @property
    def errors(self) -> List[Diagnostic]:
        return self._with_severity(ErrorSeverity.ERROR)

    @property
    def warnings(self) -> List[Diagnostic]:
        return self._with_severity(ErrorSeverity.WARNING)

    def _with_severity(self, severity: ErrorSeverity) -> List[Diagnostic]:
        return [item for item in self.items if item.severity == severity]

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def by_source(self, source: DiagnosticSource) -> List[Diagnostic]:
        return [item for item in self.items if item.source == source]

    def to_diagnostics(self) -> str:
        sections = (
            ("=== ERRORS ===", ErrorSeverity.ERROR),
            ("=== WARNINGS ===", ErrorSeverity.WARNING),
            ("=== INFO ===", ErrorSeverity.INFO),
            ("=== HINTS ===", ErrorSeverity.HINT),
        )
        lines: list[str] = []
        for title, severity in sections:
            selected = self._with_severity(severity)
            if not selected:
                continue
            lines.append(title)
            for item in selected:
                lines.append(f"({item.source.value}) {item.position}: {item.to_diagnostic()}")
                lines.append("")
        return "\n".join(lines)
