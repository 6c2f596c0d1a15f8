"""
Normalized funding event emitted by ETL pipelines.

Events are published on the in-process event bus and consumed by the
notification engine; they are not retained after matching.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from models.base import FundingEventType


class FundingEvent(BaseModel):
    """A funding round, acquisition or listing reported by a source"""
    
    id: str
    company_id: str = ""
    company_name: str = ""
    date: datetime
    type: FundingEventType = FundingEventType.SEED
    amount: float = 0
    investors: List[str] = Field(default_factory=list)
    description: str = ""
    source: str
    source_url: Optional[str] = None
    
    @property
    def is_acquisition(self) -> bool:
        return self.type == FundingEventType.ACQUISITION
