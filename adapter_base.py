"""
Contrato base dos provedores judiciais
======================================

Cada país tem seu adaptador (ver colombia_adapter.py). O reconciliador só
conhece este contrato e o ProviderRegistry.
"""

import threading
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Union

import requests

from config import settings
from schemas import GenericAction, GenericProcessSummary
from utils import normalize_string


class ProviderError(Exception):
    """Falha de transporte, timeout, status inesperado ou JSON inválido."""


class ProviderNotFound(LookupError):
    """Nenhum provedor registrado para o país."""


class JudicialProvider:
    """Contrato base para adaptadores de consulta a sistemas judiciais."""

    def get_process_id_by_radicado(self, radicado: str) -> Optional[GenericProcessSummary]:
        """Busca o processo pelo radicado. Retorna None se não existir no sistema remoto."""
        raise NotImplementedError

    def get_process_detail(self, process_id: str) -> Dict[str, Any]:
        """Campos complementares do processo (chaves dependem do país)."""
        raise NotImplementedError

    def get_process_actions(self, process_id: str) -> List[GenericAction]:
        """Actuaciones do processo, da mais recente para a mais antiga."""
        raise NotImplementedError


class BaseProvider(JudicialProvider):
    """Provedor HTTP com sessão compartilhada e timeout fixo."""

    def __init__(self, base_url: str, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.JUDICIAL_HTTP_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderError(f"request failed: {e}") from e

        if resp.status_code != 200:
            raise ProviderError(f"API returned status: {resp.status_code}")

        try:
            return resp.json()
        except ValueError as e:
            raise ProviderError(f"failed to decode response: {e}") from e


def normalize_country(country: Optional[str]) -> str:
    return normalize_string(country or "") or ""


class ProviderRegistry:
    """
    Mapa país -> provedor.

    As chaves são normalizadas (sem acento, minúsculas), então "CO",
    "Colombia" e "colombia" caem no mesmo adaptador quando registrados
    como aliases.
    """

    def __init__(self):
        self._providers: Dict[str, JudicialProvider] = {}
        self._lock = threading.Lock()

    def register(self, aliases: Union[str, Iterable[str]], provider: Optional[JudicialProvider]):
        """Registra (ou remove, se provider=None) o provedor para cada alias."""
        if isinstance(aliases, str):
            aliases = [aliases]
        with self._lock:
            for alias in aliases:
                key = normalize_country(alias)
                if provider is None:
                    self._providers.pop(key, None)
                else:
                    self._providers[key] = provider

    def unregister(self, alias: str):
        self.register(alias, None)

    def get(self, country: Optional[str]) -> JudicialProvider:
        key = normalize_country(country)
        with self._lock:
            provider = self._providers.get(key)
        if provider is None:
            raise ProviderNotFound(f"judicial provider not implemented for country: {country}")
        return provider

    def __contains__(self, country: str) -> bool:
        with self._lock:
            return normalize_country(country) in self._providers

    def countries(self) -> List[str]:
        with self._lock:
            return sorted(self._providers)


COLOMBIA_ALIASES = ("CO", "COL", "Colombia")


def build_default_registry(use_mock: Optional[bool] = None) -> ProviderRegistry:
    """Registry com os adaptadores disponíveis (mock em desenvolvimento)."""
    # Imports locais para evitar ciclo com os adaptadores
    from colombia_adapter import ColombiaProvider
    from mock_adapter import MockJudicialProvider

    if use_mock is None:
        use_mock = settings.USE_MOCK_PROVIDER

    registry = ProviderRegistry()
    if use_mock:
        registry.register(COLOMBIA_ALIASES, MockJudicialProvider.with_sample_data())
    else:
        registry.register(COLOMBIA_ALIASES, ColombiaProvider())
    return registry


@lru_cache(maxsize=1)
def get_default_registry() -> ProviderRegistry:
    """Registry padrão do processo, usado quando ninguém injeta outro."""
    return build_default_registry()
