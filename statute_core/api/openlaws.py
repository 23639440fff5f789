import logging
import time
from typing import Any, Callable, Optional, Union

import httpx

from statute_core.api.fetcher import RetryableFetcher
from statute_core.citations.parser import CitationParser
from statute_core.config import (
    DEFAULT_RESOLVER_CONFIG,
    ResolverConfig,
    get_api_keys,
    get_base_url,
)
from statute_core.db.store import SQLiteStatuteStore, StatuteStore
from statute_core.exceptions import APIKeyMissingError
from statute_core.models import FEDERAL, Statute
from statute_core.registry import JurisdictionRegistry
from statute_core.resolver.cache_first import CacheFirstResolver, Resolution
from statute_core.resolver.pacing import Pacer
from statute_core.resolver.traversal import DivisionTraversal

logger = logging.getLogger(__name__)


def _get_api_headers(api_key: Optional[str]) -> dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "User-Agent": "Statute-Core/1.0",
    }
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


class OpenLawsClient:
    """
    Public entry point for statute lookups against the OpenLaws divisions API.

    Wires the registry, parser, retrying fetcher, traversal and cache-first
    resolver together. Without an API key the client still answers from the
    store but never calls the network.

    Usage:
        with OpenLawsClient.from_config(load_config()) as client:
            statute = client.get_statute_by_citation("Cal. Penal Code § 187")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        config: ResolverConfig = DEFAULT_RESOLVER_CONFIG,
        registry: Optional[JurisdictionRegistry] = None,
        store: Optional[StatuteStore] = None,
        http: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key if api_key is not None else get_api_keys()["openlaws"]
        self.is_configured = bool(self.api_key)
        self.base_url = base_url or get_base_url()
        self.config = config
        self.registry = registry or JurisdictionRegistry.default()
        self.store = store

        self._owns_http = http is None
        self.http = http or httpx.Client(
            base_url=self.base_url,
            timeout=config.API_TIMEOUT,
            headers=_get_api_headers(self.api_key),
        )
        self.fetcher = RetryableFetcher(
            self.http,
            max_retries=config.MAX_RETRIES,
            base_delay=config.RETRY_BASE_DELAY,
            network_delay=config.NETWORK_RETRY_DELAY,
            sleep=sleep,
        )
        self.parser = CitationParser(self.registry)

        traversal = None
        if self.is_configured:
            traversal = DivisionTraversal(
                self.fetcher,
                config=config,
                pacer_factory=lambda: Pacer(every=config.PACE_EVERY, delay=config.PACE_DELAY, sleep=sleep),
            )
        self.resolver = CacheFirstResolver(self.parser, traversal, self.registry, store=store, sleep=sleep)

    @classmethod
    def from_config(cls, config: dict[str, Any], **kwargs: Any) -> "OpenLawsClient":
        """Build a client from a loaded config.yaml dictionary."""
        resolver_config = ResolverConfig.from_dict(config.get("openlaws"))
        registry = JurisdictionRegistry.default(config.get("law_keys") or None)

        store = kwargs.pop("store", None)
        cache = config.get("cache", {}) or {}
        if store is None and cache.get("enabled"):
            store = SQLiteStatuteStore.open(cache.get("db_path", "statutes.db"))

        return cls(
            base_url=kwargs.pop("base_url", None) or get_base_url(config),
            config=resolver_config,
            registry=registry,
            store=store,
            **kwargs,
        )

    def __enter__(self) -> "OpenLawsClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise APIKeyMissingError("OpenLaws API key not configured. Set OPENLAWS_API_KEY environment variable.")

    # -------------------------------------------------------------------------
    # Availability and listings
    # -------------------------------------------------------------------------

    def check_availability(self) -> dict[str, Any]:
        """
        Health check against GET /jurisdictions. Never raises.

        Returns:
            {"available": bool, "message": str, "jurisdiction_count": int | None}
        """
        if not self.is_configured:
            return {
                "available": False,
                "message": "OpenLaws API key not configured. Set OPENLAWS_API_KEY environment variable.",
                "jurisdiction_count": None,
            }

        try:
            response = self.http.get("/jurisdictions", timeout=self.config.HEALTH_CHECK_TIMEOUT)
            response.raise_for_status()
            data = response.json()
            count = len(data) if isinstance(data, list) else len(data.get("results", []) or [])
            return {
                "available": True,
                "message": f"OpenLaws API available. Found {count} jurisdictions.",
                "jurisdiction_count": count,
            }
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                message = "OpenLaws API key is invalid or expired."
            else:
                message = f"OpenLaws API check failed: HTTP {e.response.status_code}"
        except (httpx.ConnectError, httpx.TimeoutException):
            message = "OpenLaws API is unreachable. Service may be down or URL is incorrect."
        except Exception as e:
            message = f"OpenLaws API check failed: {e}"

        logger.warning(message)
        return {"available": False, "message": message, "jurisdiction_count": None}

    def list_jurisdictions(self) -> list[dict[str, Any]]:
        self._require_configured()
        return self.fetcher.get_json("/jurisdictions")

    def list_laws(self, jurisdiction_key: str) -> list[dict[str, Any]]:
        self._require_configured()
        return self.fetcher.get_json(f"/jurisdictions/{jurisdiction_key}/laws")

    # -------------------------------------------------------------------------
    # Statute lookup
    # -------------------------------------------------------------------------

    def resolve_citation(self, citation: str, import_if_found: bool = False) -> Resolution:
        return self.resolver.resolve_detailed(citation, import_if_found=import_if_found)

    def get_statute_by_citation(self, citation: str, import_if_found: bool = False) -> Optional[Statute]:
        """
        Resolve a citation to a statute, cache first.

        Args:
            citation: Free-text citation, e.g. "Cal. Penal Code § 187"
            import_if_found: Persist a remotely resolved statute to the store

        Returns:
            Statute, or None if unparseable, not configured or not found
        """
        return self.resolver.resolve(citation, import_if_found=import_if_found)

    def get_state_statute(self, jurisdiction: str, section: str, import_if_found: bool = False) -> Optional[Statute]:
        citation = self.registry.format_citation(jurisdiction, section)
        return self.get_statute_by_citation(citation, import_if_found=import_if_found)

    def get_california_statute(self, section: str, code: str = "Penal", import_if_found: bool = False) -> Optional[Statute]:
        return self.get_statute_by_citation(f"Cal. {code} Code § {section}", import_if_found=import_if_found)

    def get_federal_statute(self, title: Union[int, str], section: str, import_if_found: bool = False) -> Optional[Statute]:
        citation = self.registry.format_citation(FEDERAL, section, title=str(title))
        return self.get_statute_by_citation(citation, import_if_found=import_if_found)
