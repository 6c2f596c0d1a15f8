"""
Transformation steps applied by ETL pipelines.

Each step takes a batch of records and returns a new batch; input records
are never mutated, so folding the steps over a batch by hand gives the same
result as running the pipeline.
"""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional
import random
import re

from core.exceptions import TransformationError
from models.base import TransformationType
from schemas.config import (
    DeduplicateConfig,
    EnrichConfig,
    FilterConfig,
    MapConfig,
    MergeConfig,
    NormalizeConfig,
)

Record = Dict[str, Any]

MAJOR_DEAL_THRESHOLD = 50_000_000

_NON_NUMERIC = re.compile(r"[^0-9.-]+")

_DATE_FORMATS = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%Y/%m/%d",
    "%m/%d/%Y",
)


# ============================================================================
# Value coercion
# ============================================================================

def to_iso_timestamp(value: Any) -> str:
    """
    Render a date as ISO-8601 UTC with millisecond precision, e.g.
    ``2025-07-02T00:00:00.000Z``. Naive values are taken as UTC; numbers are
    epoch milliseconds.
    
    Raises:
        ValueError: If the value is not a recognizable date
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str):
        dt = _parse_date_string(value.strip())
    else:
        raise ValueError(f"Unsupported date value: {value!r}")
    
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def _parse_date_string(text: str) -> datetime:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    
    try:
        return parsedate_to_datetime(text)  # RFC 2822, as found in feeds
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date: {text!r}")


def to_number(text: str) -> float:
    """
    Strip everything but digits, '.' and '-' and coerce to float.
    An empty remainder is 0.
    
    Raises:
        ValueError: If the remainder is not a number (e.g. ``1.2.3``)
    """
    cleaned = _NON_NUMERIC.sub("", text)
    if cleaned == "":
        return 0.0
    return float(cleaned)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _hashable(value: Any) -> Any:
    try:
        hash(value)
        return value
    except TypeError:
        return repr(value)


# ============================================================================
# Steps
# ============================================================================

def apply_filter(records: List[Record], config: FilterConfig) -> List[Record]:
    """Keep records whose ``field`` equals ``value`` (or is in it, for operator 'in')"""
    if config.field is None or config.value is None:
        return list(records)
    
    if config.operator == "in":
        allowed = list(config.value)
        return [r for r in records if r.get(config.field) in allowed]
    
    return [r for r in records if r.get(config.field) == config.value]


def apply_map(records: List[Record], config: MapConfig) -> List[Record]:
    """Reshape records as {target: record[source]}; unmapped fields are dropped"""
    if not config.mapping:
        return [dict(r) for r in records]
    
    return [
        {target: record.get(source) for target, source in config.mapping.items()}
        for record in records
    ]


def apply_normalize(records: List[Record], config: NormalizeConfig) -> List[Record]:
    """Canonical timestamps for date fields, floats for monetary strings"""
    output = []
    
    for index, record in enumerate(records):
        normalized = dict(record)
        
        for field in config.date_fields:
            if normalized.get(field):
                try:
                    normalized[field] = to_iso_timestamp(normalized[field])
                except ValueError as e:
                    raise TransformationError(
                        f"Cannot normalize date field '{field}'",
                        context={"field_name": field, "field_value": normalized[field], "record_index": index},
                        original_exception=e
                    )
        
        for field in config.monetary_fields:
            if normalized.get(field) and isinstance(normalized[field], str):
                try:
                    normalized[field] = to_number(normalized[field])
                except ValueError as e:
                    raise TransformationError(
                        f"Cannot normalize monetary field '{field}'",
                        context={"field_name": field, "field_value": normalized[field], "record_index": index},
                        original_exception=e
                    )
        
        output.append(normalized)
    
    return output


def apply_deduplicate(records: List[Record], config: DeduplicateConfig) -> List[Record]:
    """Drop records whose key was already seen; first occurrence wins"""
    seen = set()
    output = []
    
    for record in records:
        key = _hashable(record.get(config.key_field))
        if key in seen:
            continue
        seen.add(key)
        output.append(record)
    
    return output


def apply_enrich(
    records: List[Record],
    config: EnrichConfig,
    rng: Optional[random.Random] = None
) -> List[Record]:
    """Attach sentiment score, deal-size category and provenance"""
    rng = rng or random.Random()
    
    return [
        {
            **record,
            "sentimentScore": rng.random() * 100,
            "category": (
                "major"
                if _is_number(record.get("amount")) and record["amount"] > MAJOR_DEAL_THRESHOLD
                else "minor"
            ),
            "enriched": True,
            "enrichmentSource": config.source,
        }
        for record in records
    ]


def apply_merge(records: List[Record], config: MergeConfig) -> List[Record]:
    """
    Fold records sharing ``key_field`` into one, in first-seen order; later
    non-null values override. Pass-through without a key field.
    """
    if not config.key_field:
        return list(records)
    
    merged: Dict[Any, Record] = {}
    unkeyed: List[Record] = []
    order: List[Any] = []
    
    for record in records:
        key = record.get(config.key_field)
        if key is None:
            unkeyed.append(record)
            order.append(("unkeyed", len(unkeyed) - 1))
            continue
        
        key = _hashable(key)
        if key not in merged:
            merged[key] = dict(record)
            order.append(("keyed", key))
        else:
            merged[key].update({k: v for k, v in record.items() if v is not None})
    
    return [merged[ref] if kind == "keyed" else unkeyed[ref] for kind, ref in order]


def apply_transformation(records: List[Record], step, rng: Optional[random.Random] = None) -> List[Record]:
    """Dispatch one configured step"""
    step_type = TransformationType(step.type)
    
    if step_type == TransformationType.FILTER:
        return apply_filter(records, step.config)
    if step_type == TransformationType.MAP:
        return apply_map(records, step.config)
    if step_type == TransformationType.NORMALIZE:
        return apply_normalize(records, step.config)
    if step_type == TransformationType.DEDUPLICATE:
        return apply_deduplicate(records, step.config)
    if step_type == TransformationType.ENRICH:
        return apply_enrich(records, step.config, rng)
    if step_type == TransformationType.MERGE:
        return apply_merge(records, step.config)
    
    raise TransformationError(f"Unknown transformation type: {step.type}")
