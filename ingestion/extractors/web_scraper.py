"""
Web scraper for news and filing pages.

Fetches the target page with httpx and extracts one record per item
container using CSS selectors (BeautifulSoup). Field selectors named
``url`` or ``link`` yield the element's absolute ``href``; all others yield
its stripped text.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urljoin
import logging

from bs4 import BeautifulSoup

from ingestion.base import ClientFactory, SourceAdapter
from models.base import ScrapeState, SourceKind
from schemas.config import ScraperConfig
from schemas.status import ConnectionStatus, FetchResult, ScrapeStatus

logger = logging.getLogger(__name__)

LINK_FIELDS = ("url", "link")


class WebScraper(SourceAdapter):
    """Scrape-style adapter sharing the health/status contract with ApiConnector"""
    
    DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; DealflowIntegration/1.0)"
    
    def __init__(
        self,
        config: ScraperConfig,
        timeout: Optional[float] = None,
        client_factory: Optional[ClientFactory] = None
    ):
        super().__init__(
            source_id=config.id,
            name=config.name,
            kind=SourceKind.SCRAPER,
            timeout=timeout,
            client_factory=client_factory
        )
        self.config = config
        self._scrape_status = ScrapeStatus()
    
    def _client_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "headers": {"User-Agent": self.config.user_agent or self.DEFAULT_USER_AGENT},
            "cookies": dict(self.config.cookies),
            "follow_redirects": True,
        }
        if self.config.proxy_config:
            options["proxy"] = self.config.proxy_config.url()
        return options
    
    async def _probe(self) -> ConnectionStatus:
        async with self._client(**self._client_options()) as client:
            await self._get(client, self.config.target_url)
        return ConnectionStatus(connected=True)
    
    async def _fetch_records(
        self,
        endpoint_key: Optional[str],
        params: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        logger.info(f"Scraping data from {self.config.target_url}...")
        
        async with self._client(**self._client_options()) as client:
            response = await self._get(client, self.config.target_url, params=params or None)
        
        return self.parse(response.text)
    
    def parse(self, html: str) -> List[Dict[str, Any]]:
        """Extract records from a page"""
        soup = BeautifulSoup(html, "html.parser")
        
        if self.config.item_selector:
            containers = soup.select(self.config.item_selector)
        else:
            containers = [soup]
        
        records = []
        for container in containers:
            record: Dict[str, Any] = {}
            for field, selector in self.config.selectors.items():
                element = container.select_one(selector)
                if element is None:
                    record[field] = None
                elif field in LINK_FIELDS and element.get("href"):
                    record[field] = urljoin(self.config.target_url, element["href"])
                else:
                    record[field] = element.get_text(strip=True)
            
            if any(value is not None for value in record.values()):
                records.append(record)
        
        return records
    
    async def scrape(self) -> FetchResult:
        """Fetch the target page, tracking scrape status"""
        self._scrape_status = ScrapeStatus(
            status=ScrapeState.RUNNING,
            last_scraped=self._scrape_status.last_scraped
        )
        
        result = await self.fetch()
        
        if result.success:
            self._scrape_status = ScrapeStatus(
                status=ScrapeState.IDLE,
                last_scraped=result.metadata.timestamp
            )
        else:
            self._scrape_status = ScrapeStatus(
                status=ScrapeState.ERROR,
                last_scraped=result.metadata.timestamp,
                error=f"Failed to scrape data: {result.error}"
            )
        
        return result
    
    def get_scrape_status(self) -> ScrapeStatus:
        return self._scrape_status
    
    def get_config(self) -> ScraperConfig:
        return self.config
