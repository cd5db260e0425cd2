"""
imports.py - Cache assincrono de pacotes fiz importados

Proposito:
    Resolver instrucoes de importacao para Dags ja compilados. Cada local
    e buscado e compilado no maximo uma vez; chamadas concorrentes para o
    mesmo local recebem a mesma Task.

Componentes principais:
    - ImportCache: mapa local -> asyncio.Task com insercao antes do await
    - PackageImportError e subclasses: falhas de importacao
    - HttpPackageFetcher / LocalPackageFetcher / DefaultPackageFetcher:
      leitura do texto-fonte de um pacote

Dependencias criticas:
    - asyncio: Tasks e Futures em andamento
    - httpx: GET assincrono de pacotes remotos

Exemplo de uso:
    cache = ImportCache(DefaultPackageFetcher(base_dir=Path(".")))
    dag = await cache.get_package_dag("lib/steps.fiz", frozenset())

Notas de implementacao:
    - Importacao circular e extensao invalida falham sem nenhum fetch.
    - Tasks com falha permanecem no cache; clear_cache() permite nova tentativa.
    - A deteccao de ciclo considera apenas a cadeia de importacao ativa.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, FrozenSet, Optional

import httpx

from fizgraph.constants import DEFAULT_FETCH_TIMEOUT, FIZ_FILE_EXTENSION

if TYPE_CHECKING:
    from fizgraph.semantic.dag import Dag

logger = logging.getLogger(__name__)

PackageFetcher = Callable[[str], Awaitable[str]]
CompileSource = Callable[[str, str, FrozenSet[str]], Awaitable["Dag"]]


class PackageImportError(Exception):
    """Base das falhas de importacao de pacote."""

    def __init__(self, location: str, message: str) -> None:
        super().__init__(message)
        self.location = location


class CircularImportError(PackageImportError):
    def __init__(self, location: str) -> None:
        super().__init__(location, f"Circular import of package '{location}'")


class PackageExtensionError(PackageImportError):
    def __init__(self, location: str) -> None:
        super().__init__(
            location, f"Package '{location}' missing file extension {FIZ_FILE_EXTENSION}"
        )


class PackageFetchError(PackageImportError):
    def __init__(self, location: str, reason: str) -> None:
        super().__init__(location, f"Failed to fetch package from '{location}': {reason}")
        self.reason = reason


class HttpPackageFetcher:
    """Busca o texto de um pacote por HTTP GET."""

    def __init__(
        self,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport

    async def __call__(self, location: str) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(location)
        except httpx.HTTPError as exc:
            logger.warning("Falha de rede ao buscar %s: %s", location, exc)
            raise PackageFetchError(location, str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            logger.warning("Pacote %s respondeu %s", location, response.status_code)
            raise PackageFetchError(location, response.reason_phrase or str(response.status_code))
        return response.text


class LocalPackageFetcher:
    """Le pacotes do sistema de arquivos, relativos a base_dir."""

    def __init__(self, base_dir: Path | str = ".") -> None:
        self.base_dir = Path(base_dir)

    async def __call__(self, location: str) -> str:
        path = Path(location)
        if not path.is_absolute():
            path = self.base_dir / path
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except OSError as exc:
            logger.warning("Falha ao ler pacote %s: %s", path, exc)
            raise PackageFetchError(location, exc.strerror or str(exc)) from exc


class DefaultPackageFetcher:
    """URLs http(s) vao para HttpPackageFetcher; demais locais sao arquivos."""

    def __init__(
        self,
        base_dir: Path | str = ".",
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> None:
        self.http = HttpPackageFetcher(timeout=timeout)
        self.local = LocalPackageFetcher(base_dir)

    async def __call__(self, location: str) -> str:
        if location.startswith(("http://", "https://")):
            return await self.http(location)
        return await self.local(location)


class ImportCache:
    """Memoiza a compilacao de pacotes por local (single flight)."""

    def __init__(
        self,
        fetcher: Optional[PackageFetcher] = None,
        compile_source: Optional[CompileSource] = None,
    ) -> None:
        self.fetcher = fetcher if fetcher is not None else DefaultPackageFetcher()
        if compile_source is None:
            compile_source = _compile_with_default_compiler(self)
        self.compile_source = compile_source
        self._cache: Dict[str, asyncio.Future] = {}

    def __contains__(self, location: str) -> bool:
        return location in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def get_package_dag(
        self,
        location: str,
        seen_imports: FrozenSet[str] = frozenset(),
    ) -> "asyncio.Future[Dag]":
        """
        Retorna um awaitable com o Dag compilado do pacote.

        Deve ser chamado com um event loop em execucao. Pedidos repetidos
        para o mesmo local devolvem o mesmo objeto.
        """
        loop = asyncio.get_running_loop()

        if location in seen_imports:
            logger.debug("Importacao circular rejeitada: %s", location)
            return _failed_future(loop, CircularImportError(location))

        if not location.endswith(FIZ_FILE_EXTENSION):
            return _failed_future(loop, PackageExtensionError(location))

        cached = self._cache.get(location)
        if cached is not None:
            logger.debug("Cache de pacotes: acerto para %s", location)
            return cached

        logger.debug("Cache de pacotes: falha para %s", location)
        chain = frozenset(seen_imports) | {location}
        task = loop.create_task(self._load(location, chain))
        self._cache[location] = task
        return task

    async def _load(self, location: str, chain: FrozenSet[str]) -> "Dag":
        logger.debug("Buscando pacote %s", location)
        text = await self.fetcher(location)
        return await self.compile_source(location, text, chain)

    def clear_cache(self) -> None:
        self._cache.clear()


def _failed_future(loop: asyncio.AbstractEventLoop, exc: Exception) -> asyncio.Future:
    future = loop.create_future()
    future.set_exception(exc)
    return future


def _compile_with_default_compiler(cache: ImportCache) -> CompileSource:
    async def compile_source(location: str, text: str, chain: FrozenSet[str]) -> "Dag":
        from fizgraph.compiler import FizCompiler

        compilation = await FizCompiler(import_cache=cache).compile(
            text, filename=location, seen_imports=chain
        )
        return compilation.dag

    return compile_source
