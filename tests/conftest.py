"""
Pytest configuration and fixtures
"""

import copy
import random

import httpx
import pytest

from schemas.config import ETLJobConfig, ScraperConfig, SourceConfig

API_BASE_URL = "https://api.example.com/v1/"
NEWS_URL = "https://news.example.com/funding/"

FUNDING_ROUNDS = [
    {
        "id": "fr-1",
        "company_id": "acme",
        "company_name": "Acme Robotics",
        "announced_date": "2025-07-01",
        "round_type": "series_a",
        "amount": "$12,000,000",
        "investors": ["Sequoia Capital"],
        "description": "Acme Robotics raises Series A"
    },
    {
        "id": "fr-2",
        "company_id": "globex",
        "company_name": "Globex",
        "announced_date": "2025-07-02",
        "round_type": "seed",
        "amount": "$2,500,000",
        "investors": ["Y Combinator"],
        "description": "Globex seed round"
    },
    {
        "id": "fr-3",
        "company_id": "initech",
        "company_name": "Initech",
        "announced_date": "2025-07-03",
        "round_type": "series_b",
        "amount": "$45,000,000",
        "investors": ["Accel Partners", "Andreessen Horowitz"],
        "description": "Initech Series B"
    },
    {
        "id": "fr-4",
        "company_id": "umbrella",
        "company_name": "Umbrella Health",
        "announced_date": "2025-07-04",
        "round_type": "series_a",
        "amount": "$8,000,000",
        "investors": [],
        "description": "Umbrella Health Series A"
    },
    {
        "id": "fr-5",
        "company_id": "hooli",
        "company_name": "Hooli",
        "announced_date": "2025-07-05",
        "round_type": "ipo",
        "amount": "$300,000,000",
        "investors": [],
        "description": "Hooli goes public"
    },
]

NEWS_HTML = """
<html>
  <body>
    <article>
      <h2><a href="/2025/07/01/acme-raises">Acme Robotics raises $12M Series A</a></h2>
      <time>2025-07-01</time>
      <p class="summary">Acme Robotics secured new funding.</p>
    </article>
    <article>
      <h2><a href="https://news.example.com/2025/07/02/globex">Globex lands seed round</a></h2>
      <time>2025-07-02</time>
      <p class="summary">Globex closes its first round.</p>
    </article>
    <div class="ad">Sponsored</div>
  </body>
</html>
"""


class FakeSource:
    """
    httpx.MockTransport handler serving canned bodies by URL path.
    
    Unknown paths answer 200 with a small JSON body, so health checks
    against base URLs succeed unless a status is set for them.
    """
    
    def __init__(self, routes=None, rate_limit_remaining=99):
        self.routes = dict(routes or {})
        self.statuses = {}
        self.headers = {}
        self.error = None
        self.rate_limit_remaining = rate_limit_remaining
        self.requests = []
    
    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        
        path = request.url.path
        status_code = self.statuses.get(path, 200)
        headers = {"X-RateLimit-Remaining": str(self.rate_limit_remaining), **self.headers}
        body = self.routes.get(path, {"status": "ok"})
        
        if isinstance(body, str):
            return httpx.Response(status_code, text=body, headers={**headers, "Content-Type": "text/html"})
        return httpx.Response(status_code, json=body, headers=headers)
    
    @property
    def paths(self):
        return [r.url.path for r in self.requests]
    
    def client_factory(self):
        transport = httpx.MockTransport(self)
        
        def factory(**kwargs):
            return httpx.AsyncClient(transport=transport, **kwargs)
        
        return factory


@pytest.fixture
def funding_rounds():
    """Raw funding round records as an API returns them"""
    return copy.deepcopy(FUNDING_ROUNDS)


@pytest.fixture
def fake_api():
    return FakeSource({"/v1/funding-rounds": FUNDING_ROUNDS})


@pytest.fixture
def fake_news():
    return FakeSource({"/funding/": NEWS_HTML})


@pytest.fixture
def api_source_config():
    return SourceConfig(
        id="test-api",
        name="Test API",
        base_url=API_BASE_URL,
        api_key="secret-key",
        endpoints={"funding_rounds": "funding-rounds"}
    )


@pytest.fixture
def scraper_config():
    return ScraperConfig(
        id="test-scraper",
        name="Test Scraper",
        target_url=NEWS_URL,
        item_selector="article",
        selectors={
            "title": "h2 a",
            "url": "h2 a",
            "date": "time",
            "content": ".summary"
        },
        user_agent="TestAgent/1.0"
    )


@pytest.fixture
def funding_job_config():
    """Funding rounds job: filter, map, normalize, deduplicate"""
    return ETLJobConfig.model_validate({
        "id": "funding-rounds-etl",
        "name": "Funding Rounds ETL",
        "sourceType": "api",
        "sourceId": "test-api",
        "endpoint": "funding_rounds",
        "transformations": [
            {
                "type": "filter",
                "config": {
                    "field": "round_type",
                    "operator": "in",
                    "value": ["seed", "series_a", "series_b", "series_c"]
                }
            },
            {
                "type": "map",
                "config": {
                    "mapping": {
                        "id": "id",
                        "companyId": "company_id",
                        "companyName": "company_name",
                        "date": "announced_date",
                        "type": "round_type",
                        "amount": "amount",
                        "investors": "investors"
                    }
                }
            },
            {"type": "normalize", "config": {"dateFields": ["date"], "monetaryFields": ["amount"]}},
            {"type": "deduplicate", "config": {"keyField": "id"}}
        ]
    })


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def news_html():
    return NEWS_HTML
