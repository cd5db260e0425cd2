"""
constants.py - Constantes compartilhadas do compilador fiz

Proposito:
    Centralizar valores fixos usados pelo parser, compilador e importador.

Notas de implementacao:
    - DESCRIPTION_PROPERTY recebe as strings soltas de um bloco de estilo.
    - Pacotes importados precisam terminar em FIZ_FILE_EXTENSION.
"""

from __future__ import annotations

VERSION = "0.3.0"

# Propriedades especiais de estilo
DESCRIPTION_PROPERTY = "description"

# Importacao de pacotes
FIZ_FILE_EXTENSION = ".fiz"
DEFAULT_FETCH_TIMEOUT = 30.0
