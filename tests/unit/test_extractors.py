"""
Unit tests for source adapters
"""

import asyncio

import httpx
import pytest

from ingestion.extractors.api_connector import ApiConnector
from ingestion.extractors.web_scraper import WebScraper
from models.base import ScrapeState


class TestApiConnectorHealth:
    """Test API connector health checks"""
    
    @pytest.mark.asyncio
    async def test_healthy_source(self, api_source_config, fake_api):
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        
        status = await connector.check_health()
        
        assert status.connected is True
        assert status.error is None
        assert status.rate_limit_remaining == 99
        assert connector.get_status() == status
        assert fake_api.paths == ["/v1/"]
        assert fake_api.requests[0].headers["Authorization"] == "Bearer secret-key"
    
    @pytest.mark.asyncio
    async def test_status_is_none_before_first_check(self, api_source_config, fake_api):
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        
        assert connector.last_status is None
        assert connector.get_status().connected is False
    
    @pytest.mark.asyncio
    async def test_authentication_failure(self, api_source_config, fake_api):
        fake_api.statuses["/v1/"] = 401
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        
        status = await connector.check_health()
        
        assert status.connected is False
        assert status.error == "Authentication failed for https://api.example.com/v1/"
        assert status.rate_limit_remaining == 0
    
    @pytest.mark.asyncio
    async def test_unreachable_source(self, api_source_config, fake_api):
        fake_api.error = httpx.ConnectError("connection refused")
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        
        status = await connector.check_health()
        
        assert status.connected is False
        assert "Could not reach" in status.error
    
    @pytest.mark.asyncio
    async def test_timeout_is_connectivity_failure(self, api_source_config):
        async def slow(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json={})
        
        transport = httpx.MockTransport(slow)
        connector = ApiConnector(
            api_source_config,
            timeout=0.05,
            client_factory=lambda **kw: httpx.AsyncClient(transport=transport, **kw)
        )
        
        status = await connector.check_health()
        
        assert status.connected is False
        assert "timed out" in status.error


class TestApiConnectorFetch:
    """Test API connector fetch"""
    
    @pytest.mark.asyncio
    async def test_fetch_checks_health_first(self, api_source_config, fake_api):
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        
        result = await connector.fetch("funding_rounds")
        
        assert result.success is True
        assert len(result.data) == 5
        assert result.metadata.source == "Test API"
        assert result.metadata.request_id.startswith("req_")
        assert fake_api.paths == ["/v1/", "/v1/funding-rounds"]
    
    @pytest.mark.asyncio
    async def test_connected_source_is_not_rechecked(self, api_source_config, fake_api):
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        
        await connector.fetch("funding_rounds")
        await connector.fetch("funding_rounds")
        
        assert fake_api.paths == ["/v1/", "/v1/funding-rounds", "/v1/funding-rounds"]
    
    @pytest.mark.asyncio
    async def test_disconnected_source_skips_fetch(self, api_source_config, fake_api):
        fake_api.statuses["/v1/"] = 503
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        
        result = await connector.fetch("funding_rounds")
        
        assert result.success is False
        assert result.error == "Failed to connect to Test API"
        assert fake_api.paths == ["/v1/"]
    
    @pytest.mark.asyncio
    async def test_disconnected_source_is_rechecked_on_next_fetch(self, api_source_config, fake_api):
        fake_api.statuses["/v1/"] = 503
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        await connector.fetch("funding_rounds")
        
        del fake_api.statuses["/v1/"]
        result = await connector.fetch("funding_rounds")
        
        assert result.success is True
        assert connector.get_status().connected is True
        assert fake_api.paths == ["/v1/", "/v1/", "/v1/funding-rounds"]
    
    @pytest.mark.asyncio
    async def test_fetch_error_keeps_connection(self, api_source_config, fake_api):
        fake_api.statuses["/v1/funding-rounds"] = 404
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        
        result = await connector.fetch("funding_rounds")
        
        assert result.success is False
        assert result.error == "Resource not found: https://api.example.com/v1/funding-rounds"
        assert connector.get_status().connected is True
    
    @pytest.mark.asyncio
    async def test_rate_limited(self, api_source_config, fake_api):
        fake_api.statuses["/v1/funding-rounds"] = 429
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        
        result = await connector.fetch("funding_rounds")
        
        assert result.success is False
        assert "Rate limit exceeded" in result.error
    
    @pytest.mark.asyncio
    async def test_lost_connection_marks_disconnected(self, api_source_config, fake_api):
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        await connector.check_health()
        
        fake_api.error = httpx.ConnectError("connection reset")
        result = await connector.fetch("funding_rounds")
        
        assert result.success is False
        assert connector.get_status().connected is False
        assert connector.get_status().rate_limit_remaining == 0
    
    @pytest.mark.asyncio
    async def test_records_under_data_key(self, api_source_config, fake_api):
        fake_api.routes["/v1/funding-rounds"] = {"data": [{"id": "a"}, {"id": "b"}], "count": 2}
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        
        result = await connector.fetch("funding_rounds")
        
        assert result.data == [{"id": "a"}, {"id": "b"}]
    
    @pytest.mark.asyncio
    async def test_rate_limit_updated_by_fetch(self, api_source_config, fake_api):
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        await connector.check_health()
        
        fake_api.rate_limit_remaining = 42
        await connector.fetch("funding_rounds")
        
        assert connector.get_status().rate_limit_remaining == 42
    
    @pytest.mark.asyncio
    async def test_fetch_without_endpoint_fails(self, api_source_config, fake_api):
        connector = ApiConnector(api_source_config, client_factory=fake_api.client_factory())
        
        result = await connector.fetch()
        
        assert result.success is False
        assert result.error == "No endpoint given for Test API"


class TestApiConnectorConfig:
    """Test URL building and config exposure"""
    
    def test_build_url(self, api_source_config):
        connector = ApiConnector(api_source_config)
        
        assert connector.build_url("funding_rounds") == "https://api.example.com/v1/funding-rounds"
        assert connector.build_url("funding_rounds", {"limit": 10, "q": "ai labs"}) == (
            "https://api.example.com/v1/funding-rounds?limit=10&q=ai+labs"
        )
    
    def test_unknown_endpoint_key_is_a_path(self, api_source_config):
        connector = ApiConnector(api_source_config)
        
        assert connector.build_url("people") == "https://api.example.com/v1/people"
    
    def test_config_masks_api_key(self, api_source_config):
        connector = ApiConnector(api_source_config)
        
        assert connector.get_config().api_key == "****"
        assert connector.config.api_key == "secret-key"


class TestWebScraper:
    """Test web scraper"""
    
    def test_parse_items(self, scraper_config, news_html):
        records = WebScraper(scraper_config).parse(news_html)
        
        assert records == [
            {
                "title": "Acme Robotics raises $12M Series A",
                "url": "https://news.example.com/2025/07/01/acme-raises",
                "date": "2025-07-01",
                "content": "Acme Robotics secured new funding."
            },
            {
                "title": "Globex lands seed round",
                "url": "https://news.example.com/2025/07/02/globex",
                "date": "2025-07-02",
                "content": "Globex closes its first round."
            },
        ]
    
    def test_parse_without_item_selector(self, scraper_config, news_html):
        config = scraper_config.model_copy(update={"item_selector": None})
        
        records = WebScraper(config).parse(news_html)
        
        assert len(records) == 1
        assert records[0]["title"] == "Acme Robotics raises $12M Series A"
    
    def test_missing_elements_are_none(self, scraper_config):
        records = WebScraper(scraper_config).parse("<article><time>2025-07-01</time></article>")
        
        assert records == [{"title": None, "url": None, "date": "2025-07-01", "content": None}]
    
    @pytest.mark.asyncio
    async def test_scrape_success(self, scraper_config, fake_news):
        scraper = WebScraper(scraper_config, client_factory=fake_news.client_factory())
        
        result = await scraper.scrape()
        
        assert result.success is True
        assert len(result.data) == 2
        assert scraper.get_status().connected is True
        assert scraper.get_scrape_status().status == ScrapeState.IDLE
        assert scraper.get_scrape_status().last_scraped is not None
        assert fake_news.requests[-1].headers["User-Agent"] == "TestAgent/1.0"
    
    @pytest.mark.asyncio
    async def test_scrape_failure(self, scraper_config, fake_news):
        fake_news.statuses["/funding/"] = 500
        scraper = WebScraper(scraper_config, client_factory=fake_news.client_factory())
        
        result = await scraper.scrape()
        
        assert result.success is False
        assert scraper.get_status().connected is False
        scrape_status = scraper.get_scrape_status()
        assert scrape_status.status == ScrapeState.ERROR
        assert scrape_status.error == "Failed to scrape data: Failed to connect to Test Scraper"
    
    @pytest.mark.asyncio
    async def test_sends_cookies(self, scraper_config, fake_news):
        config = scraper_config.model_copy(update={"cookies": {"session": "abc"}})
        scraper = WebScraper(config, client_factory=fake_news.client_factory())
        
        await scraper.fetch()
        
        assert fake_news.requests[-1].headers["Cookie"] == "session=abc"
