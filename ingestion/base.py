"""
Abstract base class for source adapters with connection health tracking
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional
import asyncio
import logging
import uuid

import httpx

from core.config import settings
from core.exceptions import (
    AuthenticationError,
    ConnectivityError,
    FetchError,
    IntegrationError,
    RateLimitError,
    ResourceNotFoundError,
)
from models.base import SourceKind
from schemas.status import ConnectionStatus, FetchResult, ResultMetadata

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., httpx.AsyncClient]


class SourceAdapter(ABC):
    """
    Abstract base class for all source adapters.
    
    Responsibilities:
    - Health checks with a persisted, last-known ConnectionStatus
    - Health-gated fetches returning a typed FetchResult
    - Bounded timeouts on every network call
    
    Neither ``check_health`` nor ``fetch`` raises; failures end up in the
    status snapshot or in ``FetchResult.error``. Only this adapter writes
    its status.
    """
    
    def __init__(
        self,
        source_id: str,
        name: str,
        kind: SourceKind,
        timeout: Optional[float] = None,
        client_factory: Optional[ClientFactory] = None
    ):
        self.source_id = source_id
        self.name = name
        self.kind = kind
        self.timeout = timeout if timeout is not None else settings.SOURCE_TIMEOUT_SECONDS
        self._client_factory = client_factory or httpx.AsyncClient
        self._status: Optional[ConnectionStatus] = None
    
    @abstractmethod
    async def _probe(self) -> ConnectionStatus:
        """
        Check connectivity to the source.
        
        Returns:
            Fresh ConnectionStatus
        
        Raises:
            ConnectivityError: If the source cannot be reached
        """
        pass
    
    @abstractmethod
    async def _fetch_records(
        self,
        endpoint_key: Optional[str],
        params: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        """
        Retrieve a batch of raw records.
        
        Raises:
            FetchError: If the request fails while connected
            ConnectivityError: If the source becomes unreachable
        """
        pass
    
    @property
    def last_status(self) -> Optional[ConnectionStatus]:
        """Last known status, None before the first health check"""
        return self._status
    
    def get_status(self) -> ConnectionStatus:
        """Read-only snapshot of the last known connection status"""
        return self._status or ConnectionStatus(connected=False)
    
    async def check_health(self) -> ConnectionStatus:
        """Probe the source and persist the resulting status"""
        logger.info(f"Checking connection to {self.name}...")
        
        try:
            status = await asyncio.wait_for(self._probe(), timeout=self.timeout)
        except asyncio.TimeoutError:
            status = ConnectionStatus(
                connected=False,
                error=f"Health check timed out after {self.timeout} seconds",
                rate_limit_remaining=0
            )
        except IntegrationError as e:
            status = ConnectionStatus(connected=False, error=e.message, rate_limit_remaining=0)
        except Exception as e:
            status = ConnectionStatus(connected=False, error=str(e), rate_limit_remaining=0)
        
        self._status = status
        
        if status.connected:
            logger.info(f"Connected to {self.name} (rate limit remaining: {status.rate_limit_remaining})")
        else:
            logger.warning(f"Connection to {self.name} failed: {status.error}")
        
        return status
    
    async def fetch(
        self,
        endpoint_key: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> FetchResult:
        """
        Fetch raw records, checking health first when the source is not
        known to be connected.
        """
        if self._status is None or not self._status.connected:
            await self.check_health()
            if not self._status.connected:
                return self._failure(f"Failed to connect to {self.name}")
        
        request_id = f"req_{uuid.uuid4().hex[:12]}"
        
        try:
            records = await asyncio.wait_for(
                self._fetch_records(endpoint_key, params or {}),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            self._mark_disconnected(f"Request timed out after {self.timeout} seconds")
            return self._failure("Request failed or timed out", request_id)
        except ConnectivityError as e:
            self._mark_disconnected(e.message)
            logger.warning(f"Lost connection to {self.name}: {e}")
            return self._failure(e.message, request_id)
        except FetchError as e:
            logger.error(f"Fetch from {self.name} failed: {e}")
            return self._failure(e.message, request_id)
        except Exception as e:
            logger.exception(f"Unexpected error fetching from {self.name}")
            return self._failure(f"Unexpected error: {e}", request_id)
        
        logger.info(f"Fetched {len(records)} records from {self.name}")
        
        return FetchResult(
            success=True,
            data=records,
            metadata=ResultMetadata(source=self.name, request_id=request_id)
        )
    
    def _failure(self, error: str, request_id: Optional[str] = None) -> FetchResult:
        return FetchResult(
            success=False,
            error=error,
            metadata=ResultMetadata(source=self.name, request_id=request_id)
        )
    
    def _mark_disconnected(self, error: str):
        self._status = ConnectionStatus(connected=False, error=error, rate_limit_remaining=0)
    
    def _client(self, **kwargs) -> httpx.AsyncClient:
        return self._client_factory(timeout=self.timeout, **kwargs)
    
    async def _get(self, client: httpx.AsyncClient, url: str, **kwargs) -> httpx.Response:
        """
        GET with HTTP status mapping.
        
        Raises:
            ConnectivityError: Transport failures (DNS, refused, reset)
            AuthenticationError: HTTP 401/403
            ResourceNotFoundError: HTTP 404
            RateLimitError: HTTP 429
            FetchError: Any other status >= 400
        """
        context = {"source_id": self.source_id, "url": url}
        
        try:
            response = await client.get(url, **kwargs)
        except httpx.TimeoutException as e:
            raise ConnectivityError(
                f"Request to {url} timed out",
                context={**context, "timeout": self.timeout},
                original_exception=e
            )
        except httpx.TransportError as e:
            raise ConnectivityError(
                f"Could not reach {url}",
                context=context,
                original_exception=e
            )
        
        status_code = response.status_code
        
        if status_code in (401, 403):
            raise AuthenticationError(
                f"Authentication failed for {url}",
                context={**context, "status_code": status_code}
            )
        
        if status_code == 404:
            raise ResourceNotFoundError(
                f"Resource not found: {url}",
                context={**context, "status_code": 404}
            )
        
        if status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                f"Rate limit exceeded for {url}",
                context={**context, "status_code": 429},
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None
            )
        
        if status_code >= 400:
            raise FetchError(
                f"HTTP {status_code} from {url}",
                context={
                    **context,
                    "status_code": status_code,
                    "response_body": response.text[:500]  # Truncate
                }
            )
        
        return response
    
    @staticmethod
    def _rate_limit_remaining(response: httpx.Response) -> Optional[int]:
        for header in ("X-RateLimit-Remaining", "RateLimit-Remaining"):
            value = response.headers.get(header)
            if value is not None and value.strip().isdigit():
                return int(value)
        return None
