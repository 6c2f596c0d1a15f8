"""
Unit tests for the output loader
"""

import json

import pandas as pd
import pytest

from core.exceptions import LoadError
from ingestion.loaders.output_loader import OutputLoader
from schemas.config import ETLJobConfig

RECORDS = [
    {"id": "fr-1", "amount": 12_000_000.0, "investors": ["Sequoia Capital"]},
    {"id": "fr-2", "amount": 2_500_000.0, "note": "seed"},
]


def make_job(**overrides):
    data = {"id": "job1", "name": "Test Job", "sourceId": "test-api"}
    data.update(overrides)
    return ETLJobConfig.model_validate(data)


class TestOutputLoader:
    """Test load destinations"""
    
    @pytest.mark.asyncio
    async def test_database_destination_keeps_batch_in_memory(self):
        loader = OutputLoader(make_job())
        
        count = await loader.load(RECORDS)
        
        assert count == 2
        assert loader.loaded == RECORDS
    
    @pytest.mark.asyncio
    async def test_batch_replaces_previous(self):
        loader = OutputLoader(make_job())
        
        await loader.load(RECORDS)
        await loader.load(RECORDS[:1])
        
        assert loader.loaded == RECORDS[:1]
    
    @pytest.mark.asyncio
    async def test_json_file(self, tmp_path):
        path = tmp_path / "out" / "funding.json"
        loader = OutputLoader(make_job(destination="file", destinationPath=str(path)))
        
        await loader.load(RECORDS)
        
        assert json.loads(path.read_text()) == RECORDS
    
    @pytest.mark.asyncio
    async def test_csv_file(self, tmp_path):
        path = tmp_path / "funding.csv"
        loader = OutputLoader(make_job(destination="file", destinationPath=str(path), outputFormat="csv"))
        
        await loader.load(RECORDS)
        
        df = pd.read_csv(path)
        
        assert list(df.columns) == ["id", "amount", "investors", "note"]
        assert df["amount"].tolist() == [12_000_000.0, 2_500_000.0]
        assert json.loads(df.loc[0, "investors"]) == ["Sequoia Capital"]
        assert pd.isna(df.loc[0, "note"])
        assert df.loc[1, "note"] == "seed"
    
    @pytest.mark.asyncio
    async def test_unwritable_path_raises_load_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        loader = OutputLoader(make_job(destination="file", destinationPath=str(blocker / "out.json")))
        
        with pytest.raises(LoadError) as exc_info:
            await loader.load(RECORDS)
        
        assert exc_info.value.context["job_id"] == "job1"
