"""
Tests for skew_service.py, batch_summary.py and SkewSettings.
"""

import pandas as pd
import pytest

from SkewFinder.batch_summary import SUMMARY_COLUMNS, summarize_batch
from SkewFinder.cache_store import CacheStore
from SkewFinder.config.analysis import SKEW_CONFIG, SkewSettings
from SkewFinder.errors import DecodeError, PipelineError
from SkewFinder.records import GenomeRecord
from SkewFinder.skew_service import ERROR_MESSAGES, SkewService

from conftest import CountingSource, StubRenderer, write_fasta


class TestSettings:

    def test_defaults_follow_config(self):
        settings = SkewSettings()
        assert settings.max_lines == SKEW_CONFIG['max_lines'] == 1000
        assert settings.max_workers == SKEW_CONFIG['max_workers']

    def test_overrides(self):
        settings = SkewSettings.from_mapping({'max_workers': 8, 'max_lines': None})
        assert settings.max_workers == 8
        assert settings.max_lines is None
        assert settings.output_dir == SKEW_CONFIG['output_dir']

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            SkewSettings.from_mapping({'max_worker': 8})

    @pytest.mark.parametrize("overrides", [{'max_workers': 0}, {'max_lines': 0}, {'task_timeout': -1}])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            SkewSettings.from_mapping(overrides)


class TestSkewService:

    def make_service(self, tmp_path, sequences):
        settings = SkewSettings.from_mapping({'output_dir': str(tmp_path / "plots")})
        source = CountingSource(sequences)
        cache = CacheStore.from_settings(settings, source=source, renderer=StubRenderer())
        return SkewService(settings, cache=cache), source

    def test_successful_request(self, tmp_path):
        service, source = self.make_service(tmp_path, {"https://x/genome.fa": "GGCC"})
        response = service.process_request("https://x/genome.fa")
        assert response.ok
        assert response.artifact == f"skew_{CacheStore.key('https://x/genome.fa')}.png"
        assert (service.output_dir / response.artifact).exists()

    def test_repeated_request_hits_cache(self, tmp_path):
        service, source = self.make_service(tmp_path, {"id": "GGCC"})
        first = service.process_request("id")
        second = service.process_request("id")
        assert first.artifact == second.artifact
        assert source.call_count == 1

    def test_overwrite_flag(self, tmp_path):
        service, source = self.make_service(tmp_path, {"id": "GGCC"})
        service.process_request("id")
        service.process_request("id", overwrite=True)
        assert source.call_count == 2

    def test_missing_identifier(self, tmp_path):
        service, source = self.make_service(tmp_path, {})
        response = service.process_request(None)
        assert not response.ok
        assert response.error_kind == "MissingIdentifier"
        assert response.message == ERROR_MESSAGES["MissingIdentifier"]

    def test_pipeline_error_becomes_response(self, tmp_path):
        service, source = self.make_service(tmp_path, {"bad": DecodeError("garbled"), "good": "G"})
        response = service.process_request("bad")
        assert not response.ok
        assert response.error_kind == "DecodeError"
        assert response.message == ERROR_MESSAGES["DecodeError"]
        assert "garbled" in response.detail
        assert response.to_dict()["ok"] is False

        # Subsequent requests still work
        assert service.process_request("good").ok

    def test_invalid_path_becomes_response(self, tmp_path):
        settings = SkewSettings.from_mapping({'output_dir': str(tmp_path / "plots")})
        response = SkewService(settings).process_request("a" * 5000)
        assert not response.ok
        assert response.error_kind == "SourceUnavailable"
        assert response.message == ERROR_MESSAGES["SourceUnavailable"]

    def test_unexpected_error_becomes_response(self, tmp_path):
        service, source = self.make_service(tmp_path, {"id": ZeroDivisionError("boom")})
        response = service.process_request("id")
        assert not response.ok
        assert response.error_kind == "ZeroDivisionError"
        assert "boom" in response.detail

    def test_real_pipeline(self, tmp_path):
        genome = write_fasta(tmp_path / "genome.fa.gz", ["GGCCAT"] * 20, compress=True)
        settings = SkewSettings.from_mapping({'output_dir': str(tmp_path / "plots")})
        response = SkewService(settings).process_request(str(genome))
        assert response.ok
        assert (tmp_path / "plots" / response.artifact).read_bytes().startswith(b"\x89PNG")

    def test_process_batch_with_render(self, tmp_path, fasta_dir):
        settings = SkewSettings.from_mapping({'output_dir': str(tmp_path / "plots"), 'max_workers': 2})
        service = SkewService(settings)
        records = [GenomeRecord(p.stem, str(p)) for p in sorted(fasta_dir.iterdir())]
        results = service.process_batch(records, render=True)
        assert set(results) == {"alpha", "beta", "gamma"}
        assert sorted(p.name for p in (tmp_path / "plots").iterdir()) == ["alpha.png", "beta.png", "gamma.png"]


class TestSummarizeBatch:

    def test_rows_for_success_and_failure(self):
        results = {
            "beta": [0, -1, -2, -1],
            "alpha": PipelineError("alpha", DecodeError("garbled")),
        }
        df = summarize_batch(results)

        assert list(df.columns) == SUMMARY_COLUMNS
        assert df["Name"].tolist() == ["alpha", "beta"]
        beta = df.set_index("Name").loc["beta"]
        assert beta["Status"] == "ok"
        assert beta["Length"] == 3
        assert beta["Min_Skew"] == -2
        assert beta["Min_Position"] == 2
        assert beta["Final_Skew"] == -1
        alpha = df.set_index("Name").loc["alpha"]
        assert alpha["Status"] == "error"
        assert alpha["Error_Kind"] == "DecodeError"
        assert pd.isna(alpha["Length"])

    def test_custom_order(self):
        results = {"a": [0], "b": [0, 1]}
        df = summarize_batch(results, order={"b": 0, "a": 1})
        assert df["Name"].tolist() == ["b", "a"]

    def test_empty(self):
        assert summarize_batch({}).empty
