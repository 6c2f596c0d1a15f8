"""
Built-in integration configuration, used when INTEGRATION_CONFIG_PATH is unset.

Three API sources, three scrapers, three ETL jobs and five schedules.
Keys use the camelCase wire names accepted by the config schemas.
"""

from typing import Any, Dict

from schemas.config import IntegrationConfig

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

API_SOURCES = [
    {
        "id": "crunchbase-api",
        "name": "Crunchbase API",
        "type": "crunchbase",
        "baseUrl": "https://api.crunchbase.com/api/v4/",
        "endpoints": {
            "funding_rounds": "funding-rounds",
            "acquisitions": "acquisitions",
            "companies": "entities/organizations",
            "investors": "entities/investors",
        },
        "rateLimits": {"requestsPerMinute": 25, "requestsPerDay": 2500},
    },
    {
        "id": "pitchbook-api",
        "name": "PitchBook API",
        "type": "pitchbook",
        "baseUrl": "https://api.pitchbook.com/v1/",
        "endpoints": {
            "deals": "deals",
            "companies": "companies",
            "investors": "investors",
        },
        "rateLimits": {"requestsPerMinute": 30, "requestsPerDay": 5000},
    },
    {
        "id": "cbinsights-api",
        "name": "CB Insights API",
        "type": "cbinsights",
        "baseUrl": "https://api.cbinsights.com/v2/",
        "endpoints": {
            "funding_rounds": "funding-rounds",
            "acquisitions": "acquisitions",
            "companies": "companies",
            "investors": "investors",
        },
        "rateLimits": {"requestsPerMinute": 20, "requestsPerDay": 1500},
    },
]

SCRAPERS = [
    {
        "id": "techcrunch-scraper",
        "name": "TechCrunch Scraper",
        "targetUrl": "https://techcrunch.com/category/fundings-exits/",
        "itemSelector": "article.post-block",
        "selectors": {
            "title": ".post-block__title a",
            "url": ".post-block__title a",
            "date": "time",
            "content": ".post-block__content",
        },
        "frequency": "daily",
        "userAgent": BROWSER_USER_AGENT,
    },
    {
        "id": "sec-filings-scraper",
        "name": "SEC Filings Scraper",
        "targetUrl": "https://www.sec.gov/edgar/search/",
        "itemSelector": ".filing",
        "selectors": {
            "companyName": ".company-name",
            "filingType": ".filing-type",
            "filingDate": ".filing-date",
            "url": ".filing-link",
        },
        "frequency": "daily",
        "userAgent": BROWSER_USER_AGENT,
    },
    {
        "id": "venturebeat-scraper",
        "name": "VentureBeat Scraper",
        "targetUrl": "https://venturebeat.com/category/funding/",
        "itemSelector": "article",
        "selectors": {
            "title": "h2 a",
            "url": "h2 a",
            "date": "time",
            "content": ".article-content",
        },
        "frequency": "daily",
        "userAgent": BROWSER_USER_AGENT,
    },
]

ETL_JOBS = [
    {
        "id": "funding-rounds-etl",
        "name": "Funding Rounds ETL",
        "sourceType": "api",
        "sourceId": "crunchbase-api",
        "endpoint": "funding_rounds",
        "transformations": [
            {
                "type": "filter",
                "config": {
                    "field": "round_type",
                    "operator": "in",
                    "value": ["seed", "series_a", "series_b", "series_c", "series_d", "series_e"],
                },
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
                        "investors": "investors",
                        "description": "description",
                    }
                },
            },
            {"type": "normalize", "config": {"dateFields": ["date"], "monetaryFields": ["amount"]}},
            {"type": "deduplicate", "config": {"keyField": "id"}},
        ],
        "outputFormat": "json",
        "destination": "database",
    },
    {
        "id": "acquisitions-etl",
        "name": "Acquisitions ETL",
        "sourceType": "api",
        "sourceId": "pitchbook-api",
        "endpoint": "deals",
        "transformations": [
            {
                "type": "filter",
                "config": {"field": "deal_type", "operator": "equals", "value": "acquisition"},
            },
            {
                "type": "map",
                "config": {
                    "mapping": {
                        "id": "id",
                        "companyId": "acquired_company_id",
                        "companyName": "acquired_company_name",
                        "acquirerId": "acquirer_id",
                        "acquirerName": "acquirer_name",
                        "date": "announced_date",
                        "type": "deal_type",
                        "amount": "price",
                        "description": "description",
                    }
                },
            },
            {"type": "normalize", "config": {"dateFields": ["date"], "monetaryFields": ["amount"]}},
        ],
        "outputFormat": "json",
        "destination": "database",
    },
    {
        "id": "news-etl",
        "name": "News Articles ETL",
        "sourceType": "scraper",
        "sourceId": "techcrunch-scraper",
        "transformations": [
            {
                "type": "map",
                "config": {
                    "mapping": {
                        "id": "url",
                        "title": "title",
                        "date": "date",
                        "content": "content",
                        "url": "url",
                    }
                },
            },
            {"type": "normalize", "config": {"dateFields": ["date"]}},
            {"type": "enrich", "config": {"source": "internal"}},
        ],
        "outputFormat": "json",
        "destination": "database",
    },
]

SCHEDULES = [
    {
        "id": "funding-daily",
        "jobType": "api",
        "jobId": "crunchbase-api",
        "frequency": "daily",
        "time": "06:00",
        "enabled": True,
    },
    {
        "id": "news-hourly",
        "jobType": "scraper",
        "jobId": "techcrunch-scraper",
        "frequency": "hourly",
        "enabled": True,
    },
    {
        "id": "process-funding-etl",
        "jobType": "etl",
        "jobId": "funding-rounds-etl",
        "frequency": "daily",
        "time": "08:00",
        "enabled": True,
    },
    {
        "id": "process-acquisitions-etl",
        "jobType": "etl",
        "jobId": "acquisitions-etl",
        "frequency": "daily",
        "time": "08:30",
        "enabled": True,
    },
    {
        "id": "sec-filings-daily",
        "jobType": "scraper",
        "jobId": "sec-filings-scraper",
        "frequency": "daily",
        "time": "10:00",
        "enabled": True,
    },
]


def default_config_data() -> Dict[str, Any]:
    return {
        "apiSources": API_SOURCES,
        "scrapers": SCRAPERS,
        "etlJobs": ETL_JOBS,
        "schedules": SCHEDULES,
    }


def default_integration_config() -> IntegrationConfig:
    return IntegrationConfig.model_validate(default_config_data())
