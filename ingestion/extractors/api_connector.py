"""
API data source connector.

Wraps a REST data provider (Crunchbase, PitchBook, CB Insights or a custom
API) behind the shared adapter contract:
- Health checks against the provider base URL, tracking remaining rate limit
- Endpoint keys resolved through the configured endpoint map
- Bearer/API-key headers from configuration
- HTTP status codes mapped onto the error taxonomy
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urlencode, urljoin
import logging

from core.exceptions import FetchError
from ingestion.base import ClientFactory, SourceAdapter
from models.base import SourceKind
from schemas.config import SourceConfig
from schemas.status import ConnectionStatus

logger = logging.getLogger(__name__)


class ApiConnector(SourceAdapter):
    """
    Connector for external funding data APIs.
    
    Attributes:
        config: Static source configuration
        timeout: Bound on every health check and fetch (seconds)
    """
    
    def __init__(
        self,
        config: SourceConfig,
        timeout: Optional[float] = None,
        client_factory: Optional[ClientFactory] = None
    ):
        super().__init__(
            source_id=config.id,
            name=config.name,
            kind=SourceKind.API,
            timeout=timeout,
            client_factory=client_factory
        )
        self.config = config
    
    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", **self.config.headers}
        if self.config.api_key and "Authorization" not in headers:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers
    
    def build_url(self, endpoint_key: str, params: Optional[Dict[str, Any]] = None) -> str:
        """
        Resolve an endpoint key against the base URL.
        
        Unknown keys are treated as a path relative to the base URL.
        """
        path = self.config.endpoints.get(endpoint_key, endpoint_key)
        url = urljoin(self.config.base_url, path)
        
        if params:
            query = urlencode({k: str(v) for k, v in params.items()})
            url = f"{url}{'&' if '?' in url else '?'}{query}"
        
        return url
    
    async def _probe(self) -> ConnectionStatus:
        async with self._client(headers=self._headers()) as client:
            response = await self._get(client, self.config.base_url)
        
        return ConnectionStatus(
            connected=True,
            rate_limit_remaining=self._rate_limit_remaining(response)
        )
    
    async def _fetch_records(
        self,
        endpoint_key: Optional[str],
        params: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        if not endpoint_key:
            raise FetchError(
                f"No endpoint given for {self.name}",
                context={"source_id": self.source_id, "endpoints": list(self.config.endpoints)}
            )
        
        url = self.build_url(endpoint_key, params)
        logger.info(f"Fetching data from {self.name} - {endpoint_key}...")
        
        async with self._client(headers=self._headers()) as client:
            response = await self._get(client, url)
        
        remaining = self._rate_limit_remaining(response)
        if remaining is not None and self._status is not None:
            self._status = self._status.model_copy(update={"rate_limit_remaining": remaining})
        
        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(
                "Failed to parse JSON response",
                context={
                    "source_id": self.source_id,
                    "url": url,
                    "response_body": response.text[:500]
                },
                original_exception=e
            )
        
        # Handle different API response formats
        if isinstance(data, list):
            records = data
        elif isinstance(data, dict):
            records = data.get("data", data.get("results", []))
        else:
            records = []
        
        return [r for r in records if isinstance(r, dict)]
    
    def get_config(self) -> SourceConfig:
        """Configuration with the API key masked"""
        return self.config.masked()
