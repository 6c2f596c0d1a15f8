"""
Convert pipeline output into normalized FundingEvent records
"""

from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
import logging
import uuid

from models.base import FundingEventType
from models.funding_event import FundingEvent
from ingestion.transformers.steps import to_iso_timestamp, to_number

logger = logging.getLogger(__name__)


def map_event_type(raw_type: str) -> FundingEventType:
    """
    Map provider round labels ("Series B", "series_b", "acquired") onto
    standardized types. Unrecognized labels default to seed.
    """
    label = (raw_type or "").lower().replace("_", " ")
    
    if "seed" in label:
        return FundingEventType.SEED
    if "series a" in label:
        return FundingEventType.SERIES_A
    if "series b" in label:
        return FundingEventType.SERIES_B
    if any(s in label for s in ("series c", "series d", "series e", "late stage")):
        return FundingEventType.SERIES_C_PLUS
    if "acquisition" in label or "acquired" in label:
        return FundingEventType.ACQUISITION
    if "ipo" in label:
        return FundingEventType.IPO
    if "spac" in label:
        return FundingEventType.SPAC
    if "buyout" in label or "private equity" in label:
        return FundingEventType.PE_BUYOUT
    
    return FundingEventType.SEED


class FundingEventConverter:
    """
    Normalize records from different sources into FundingEvents.
    
    Handles both raw provider fields (company_id, announced_date, round_type)
    and the camelCase fields produced by map steps (companyId, date, type).
    """
    
    def __init__(self, source_name: str):
        self.source_name = source_name
    
    def convert(self, records: List[Dict[str, Any]]) -> List[FundingEvent]:
        events = []
        for record in records:
            if not self.describes_company_event(record):
                continue
            try:
                events.append(self.convert_one(record))
            except (ValueError, TypeError) as e:
                logger.warning(f"Skipping record from {self.source_name}: {e}")
        return events
    
    @staticmethod
    def describes_company_event(record: Dict[str, Any]) -> bool:
        """Articles and other records without a company are not events"""
        return any(record.get(k) for k in ("company_id", "companyId", "company_name", "companyName"))

    def convert_one(self, record: Dict[str, Any]) -> FundingEvent:
        investors = record.get("investors")
        
        return FundingEvent(
            id=str(record.get("id") or f"event_{uuid.uuid4().hex[:12]}"),
            company_id=str(record.get("company_id") or record.get("companyId") or ""),
            company_name=str(record.get("company_name") or record.get("companyName") or ""),
            date=self._parse_datetime(record.get("date") or record.get("announced_date")),
            type=map_event_type(str(record.get("round_type") or record.get("type") or "")),
            amount=self._parse_amount(record.get("amount")),
            investors=[str(i) for i in investors] if isinstance(investors, list) else [],
            description=str(record.get("description") or ""),
            source=self.source_name,
            source_url=record.get("url"),
        )
    
    @staticmethod
    def _parse_amount(value: Any) -> float:
        if value is None or value == "":
            return 0
        if isinstance(value, str):
            return to_number(value)
        return float(value)
    
    @staticmethod
    def _parse_datetime(value: Any) -> datetime:
        if not value:
            return datetime.now(timezone.utc)
        return datetime.fromisoformat(to_iso_timestamp(value).replace("Z", "+00:00"))


def convert_to_funding_events(records: List[Dict[str, Any]], source_name: str) -> List[FundingEvent]:
    return FundingEventConverter(source_name).convert(records)
