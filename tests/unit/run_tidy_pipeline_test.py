import os
import shutil

import pandas as pd
import pytest

from data_pipeline.pipeline_log import init_report
from data_pipeline.run_tidy_pipeline import run_catch_stage, run_pipeline

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "data")


@pytest.fixture
def source_dir(tmp_path):
    src = tmp_path / "source"
    src.mkdir()
    for name in ("weather.csv", "gillnet.csv"):
        shutil.copy(os.path.join(DATA_DIR, name), src / name)
    return src


def test_pipeline_writes_tidy_tables(source_dir, tmp_path):
    out_dir = tmp_path / "tidy"

    report = run_pipeline(str(source_dir), str(out_dir), write_output=True, random_state=0)

    assert report["errors"] == []
    written = sorted(os.listdir(out_dir))
    assert written == ["catch_nutrients.csv", "catch_summary.csv", "gillnet_dense.csv", "weather_tidy.csv"]

    dense = pd.read_csv(out_dir / "gillnet_dense.csv")
    assert len(dense) == 5 * 9
    assert dense.columns.tolist() == ["date", "sample", "commonName", "cue", "cueWt"]

    weather = pd.read_csv(out_dir / "weather_tidy.csv")
    assert weather.columns.tolist() == ["id", "year", "month", "day", "tmax", "tmin"]
    assert len(weather) == 8


def test_pipeline_warns_about_fabricated_events(source_dir, tmp_path):
    report = run_pipeline(str(source_dir), str(tmp_path / "tidy"), write_output=False, random_state=0)

    assert not (tmp_path / "tidy").exists()
    assert any("invents 3 sampling event(s)" in message for message in report["warnings"])


def test_pipeline_refuses_to_write_into_source(source_dir):
    report = run_pipeline(str(source_dir), str(source_dir), write_output=True, random_state=0)

    assert len(report["errors"]) == 1
    assert sorted(os.listdir(source_dir)) == ["gillnet.csv", "weather.csv"]


def test_pipeline_stops_on_invalid_source(source_dir, tmp_path):
    gillnet = pd.read_csv(source_dir / "gillnet.csv")
    pd.concat([gillnet, gillnet.iloc[[0]]]).to_csv(source_dir / "gillnet.csv", index=False)

    report = run_pipeline(str(source_dir), str(tmp_path / "tidy"), write_output=True, random_state=0)

    assert report["errors"][-1] == "Source validation failed; no tables were transformed"
    assert not (tmp_path / "tidy").exists()


def test_catch_stage_joins_nutrients():
    gillnet = pd.read_csv(os.path.join(DATA_DIR, "gillnet.csv"))
    report = init_report()

    tables = run_catch_stage(gillnet, report, random_state=7)

    joined = tables["catch_nutrients"]
    assert len(joined) == 4
    assert joined["totPhos"].notna().all()
    assert set(zip(joined["year"], joined["TKN"])) <= {(1972, 300), (1974, 250)}
    assert len(tables["catch_summary"]) == 2 * 5
