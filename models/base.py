import enum


# ============================================================================
# ENUMS
# ============================================================================

class SourceKind(str, enum.Enum):
    """Adapter capability variants"""
    API = "api"
    SCRAPER = "scraper"


class DataSourceType(str, enum.Enum):
    """API data providers"""
    CRUNCHBASE = "crunchbase"
    PITCHBOOK = "pitchbook"
    CBINSIGHTS = "cbinsights"
    CUSTOM = "custom"


class JobType(str, enum.Enum):
    """What a schedule triggers"""
    API = "api"
    SCRAPER = "scraper"
    ETL = "etl"
    ALL = "all"


class Frequency(str, enum.Enum):
    """Schedule frequency"""
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


class PipelineStatus(str, enum.Enum):
    """ETL job run status"""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class ScrapeState(str, enum.Enum):
    """Scraper run status"""
    IDLE = "idle"
    RUNNING = "running"
    ERROR = "error"


class TransformationType(str, enum.Enum):
    """Pipeline step kinds"""
    FILTER = "filter"
    MAP = "map"
    NORMALIZE = "normalize"
    DEDUPLICATE = "deduplicate"
    ENRICH = "enrich"
    MERGE = "merge"


class OutputFormat(str, enum.Enum):
    JSON = "json"
    CSV = "csv"


class Destination(str, enum.Enum):
    DATABASE = "database"
    FILE = "file"


class FundingEventType(str, enum.Enum):
    """Standardized funding round types"""
    SEED = "seed"
    SERIES_A = "series_a"
    SERIES_B = "series_b"
    SERIES_C_PLUS = "series_c_plus"
    ACQUISITION = "acquisition"
    IPO = "ipo"
    SPAC = "spac"
    PE_BUYOUT = "pe_buyout"


class EventCategory(str, enum.Enum):
    """Event categories a notification rule can target"""
    FUNDING = "funding"
    ACQUISITION = "acquisition"
    ANY = "any"


class ChannelType(str, enum.Enum):
    """Notification delivery targets"""
    IN_APP = "in-app"
    EMAIL = "email"
    MOBILE = "mobile"


class NotificationType(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
