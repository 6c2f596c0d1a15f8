"""
Pydantic schemas for the static integration configuration.

Configuration is loaded once at startup and is immutable for the process
lifetime. JSON keys may use the camelCase wire names (``baseUrl``,
``sourceId``, ``jobId``) or snake_case attribute names.

Transformations are a discriminated union on ``type``; each kind validates
its own ``config`` block at load time.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field, validator
from pydantic.alias_generators import to_camel
from models.base import (
    DataSourceType,
    Destination,
    Frequency,
    JobType,
    OutputFormat,
    SourceKind,
)


class CamelModel(BaseModel):
    """Base model accepting camelCase aliases and field names"""
    
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


# ============================================================================
# Source Adapters
# ============================================================================

class RateLimits(CamelModel):
    requests_per_minute: int = Field(..., ge=0)
    requests_per_day: int = Field(..., ge=0)


class SourceConfig(CamelModel):
    """API-style data source"""
    
    id: str = Field(..., min_length=1)
    name: str
    type: DataSourceType = DataSourceType.CUSTOM
    api_key: Optional[str] = None
    base_url: str
    endpoints: Dict[str, str] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)
    rate_limits: Optional[RateLimits] = None
    
    @property
    def kind(self) -> SourceKind:
        return SourceKind.API
    
    def masked(self) -> "SourceConfig":
        """Copy safe to expose: credentials replaced by ****"""
        return self.model_copy(update={"api_key": "****" if self.api_key else None})


class ProxyAuth(CamelModel):
    username: str
    password: str


class ProxyConfig(CamelModel):
    host: str
    port: int = Field(..., gt=0, lt=65536)
    auth: Optional[ProxyAuth] = None
    
    def url(self) -> str:
        credentials = ""
        if self.auth:
            credentials = f"{self.auth.username}:{self.auth.password}@"
        return f"http://{credentials}{self.host}:{self.port}"


class ScraperConfig(CamelModel):
    """Scraper-style data source"""
    
    id: str = Field(..., min_length=1)
    name: str
    target_url: str
    item_selector: Optional[str] = None
    selectors: Dict[str, str] = Field(default_factory=dict)
    frequency: Frequency = Frequency.DAILY
    cookies: Dict[str, str] = Field(default_factory=dict)
    user_agent: Optional[str] = None
    proxy_config: Optional[ProxyConfig] = None
    
    @property
    def kind(self) -> SourceKind:
        return SourceKind.SCRAPER


# ============================================================================
# Transformations
# ============================================================================

class FilterConfig(CamelModel):
    field: Optional[str] = None
    operator: Literal["equals", "in"] = "equals"
    value: Optional[Any] = None
    
    @validator("value")
    def value_matches_operator(cls, v, values):
        if values.get("operator") == "in" and v is not None and not isinstance(v, (list, tuple)):
            raise ValueError("operator 'in' requires a list value")
        return v


class MapConfig(CamelModel):
    mapping: Optional[Dict[str, str]] = None


class NormalizeConfig(CamelModel):
    date_fields: List[str] = Field(default_factory=list)
    monetary_fields: List[str] = Field(default_factory=list)


class DeduplicateConfig(CamelModel):
    key_field: str = "id"


class EnrichConfig(CamelModel):
    source: str = "internal"


class MergeConfig(CamelModel):
    key_field: Optional[str] = None


class FilterStep(CamelModel):
    type: Literal["filter"] = "filter"
    config: FilterConfig = Field(default_factory=FilterConfig)


class MapStep(CamelModel):
    type: Literal["map"] = "map"
    config: MapConfig = Field(default_factory=MapConfig)


class NormalizeStep(CamelModel):
    type: Literal["normalize"] = "normalize"
    config: NormalizeConfig = Field(default_factory=NormalizeConfig)


class DeduplicateStep(CamelModel):
    type: Literal["deduplicate"] = "deduplicate"
    config: DeduplicateConfig = Field(default_factory=DeduplicateConfig)


class EnrichStep(CamelModel):
    type: Literal["enrich"] = "enrich"
    config: EnrichConfig = Field(default_factory=EnrichConfig)


class MergeStep(CamelModel):
    type: Literal["merge"] = "merge"
    config: MergeConfig = Field(default_factory=MergeConfig)


Transformation = Annotated[
    Union[FilterStep, MapStep, NormalizeStep, DeduplicateStep, EnrichStep, MergeStep],
    Field(discriminator="type"),
]


# ============================================================================
# ETL Jobs and Schedules
# ============================================================================

class ETLJobConfig(CamelModel):
    """Named transform pipeline bound to one source"""
    
    id: str = Field(..., min_length=1)
    name: str
    source_type: SourceKind = SourceKind.API
    source_id: str
    endpoint: Optional[str] = None  # API endpoint key to extract; all endpoints when unset
    transformations: List[Transformation] = Field(default_factory=list)
    output_format: OutputFormat = OutputFormat.JSON
    destination: Destination = Destination.DATABASE
    destination_path: Optional[str] = None


class ScheduleConfig(CamelModel):
    """Periodic trigger binding a job to a frequency"""
    
    id: str = Field(..., min_length=1)
    job_type: JobType
    job_id: Optional[str] = None
    frequency: Frequency = Frequency.DAILY
    time: Optional[str] = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    enabled: bool = True


class IntegrationConfig(CamelModel):
    """Root of the static configuration surface"""
    
    api_sources: List[SourceConfig] = Field(default_factory=list)
    scrapers: List[ScraperConfig] = Field(default_factory=list)
    etl_jobs: List[ETLJobConfig] = Field(default_factory=list)
    schedules: List[ScheduleConfig] = Field(default_factory=list)
