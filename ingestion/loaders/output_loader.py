"""
Output loader for transformed batches.

``database`` destinations keep the latest batch in memory (nothing is
persisted across restarts); ``file`` destinations write JSON or CSV to the
configured path.
"""

from pathlib import Path
from typing import Any, Dict, List
import asyncio
import json
import logging

import pandas as pd

from core.exceptions import LoadError
from models.base import Destination, OutputFormat
from schemas.config import ETLJobConfig

logger = logging.getLogger(__name__)


class OutputLoader:
    """Load phase of an ETL job"""
    
    def __init__(self, job: ETLJobConfig):
        self.job = job
        self.loaded: List[Dict[str, Any]] = []
    
    async def load(self, records: List[Dict[str, Any]]) -> int:
        """
        Load a batch, replacing the previous one.
        
        Returns:
            Number of records loaded
        
        Raises:
            LoadError: If the output file cannot be written
        """
        if self.job.destination == Destination.FILE:
            try:
                await asyncio.to_thread(self._write_file, records)
            except (OSError, TypeError, ValueError) as e:
                raise LoadError(
                    "Failed to write output file",
                    context={
                        "job_id": self.job.id,
                        "destination": self.job.destination.value,
                        "destination_path": self.job.destination_path
                    },
                    original_exception=e
                )
        
        self.loaded = [dict(r) for r in records]
        logger.info(f"Loaded {len(records)} records to {self.job.destination.value}")
        return len(records)
    
    def _write_file(self, records: List[Dict[str, Any]]):
        path = Path(self.job.destination_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        
        if self.job.output_format == OutputFormat.JSON:
            path.write_text(json.dumps(records, indent=2, default=str), encoding="utf-8")
            return
        
        # Nested values are JSON encoded so cells round-trip
        df = pd.DataFrame([
            {k: json.dumps(v) if isinstance(v, (list, dict)) else v for k, v in record.items()}
            for record in records
        ])
        df.to_csv(path, index=False, encoding="utf-8")
