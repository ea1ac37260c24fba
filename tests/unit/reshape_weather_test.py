import numpy as np
import pandas as pd
import pytest

from data_pipeline.pipeline_errors import DuplicateObservationError, MissingFieldError
from data_pipeline.reshape_weather import (
    drop_missing,
    fill_down,
    gather_columns,
    gather_weather_days,
    parse_number,
    replace_missing,
    select_column_range,
    spread_column,
    tidy_weather,
)


def _weather(readings):
    """Wide weather table for station X1, 2010; readings maps (month, element, day) -> temp."""
    rows = []
    for month, element in sorted({(m, e) for m, e, _ in readings}):
        row = {"id": "X1", "year": 2010, "month": month, "element": element}
        for day in range(1, 32):
            row[f"d{day}"] = readings.get((month, element, day), np.nan)
        rows.append(row)
    return pd.DataFrame(rows)


def test_select_column_range_is_inclusive():
    df = pd.DataFrame(columns=["id", "d1", "d2", "d3", "extra"])

    assert select_column_range(df, "d1", "d3") == ["d1", "d2", "d3"]


def test_select_column_range_rejects_reversed_and_missing():
    df = pd.DataFrame(columns=["id", "d1", "d2"])

    with pytest.raises(ValueError):
        select_column_range(df, "d2", "d1")
    with pytest.raises(MissingFieldError):
        select_column_range(df, "d1", "d31")


def test_gather_columns_drop_na():
    df = pd.DataFrame({"id": ["a", "b"], "d1": [1.0, np.nan], "d2": [np.nan, 4.0]})

    kept = gather_columns(df, "day", "temp", ["d1", "d2"])
    dropped = gather_columns(df, "day", "temp", ["d1", "d2"], drop_na=True)

    assert len(kept) == 4
    assert dropped.to_dict("list") == {"id": ["a", "b"], "day": ["d1", "d2"], "temp": [1.0, 4.0]}


def test_parse_number_extracts_embedded_digits():
    parsed = parse_number(pd.Series(["d1", "d12", "day", "x-3.5"]))

    assert parsed.iloc[0] == 1
    assert parsed.iloc[1] == 12
    assert np.isnan(parsed.iloc[2])
    assert parsed.iloc[3] == -3.5


def test_spread_column_creates_one_column_per_key():
    long_df = pd.DataFrame({
        "id": ["a", "a", "b"],
        "element": ["tmax", "tmin", "tmax"],
        "temp": [30.0, 10.0, 25.0],
    })

    wide = spread_column(long_df, "element", "temp")

    assert wide.columns.tolist() == ["id", "tmax", "tmin"]
    assert wide["tmax"].tolist() == [30.0, 25.0]
    assert np.isnan(wide.loc[1, "tmin"])


def test_spread_column_rejects_duplicates():
    long_df = pd.DataFrame({"id": ["a", "a"], "element": ["tmax", "tmax"], "temp": [1.0, 2.0]})

    with pytest.raises(DuplicateObservationError):
        spread_column(long_df, "element", "temp")


def test_gather_weather_days_orders_by_date():
    df = _weather({
        (2, "tmax", 3): 24.1,
        (1, "tmax", 30): 27.8,
        (2, "tmax", 2): 27.3,
    })

    long_df = gather_weather_days(df)

    assert long_df.columns.tolist() == ["id", "year", "month", "day", "element", "temp"]
    assert list(zip(long_df["month"], long_df["day"])) == [(1, 30), (2, 2), (2, 3)]


def test_tidy_weather_spreads_elements():
    df = _weather({
        (1, "tmax", 30): 27.8,
        (1, "tmin", 30): 14.5,
        (2, "tmax", 2): 27.3,
        (2, "tmin", 2): 14.4,
        (2, "tmax", 11): 29.7,
    })

    tidy = tidy_weather(df)

    assert tidy.columns.tolist() == ["id", "year", "month", "day", "tmax", "tmin"]
    assert len(tidy) == 3
    row = tidy[(tidy["month"] == 1) & (tidy["day"] == 30)].iloc[0]
    assert row["tmax"] == 27.8
    assert row["tmin"] == 14.5
    assert np.isnan(tidy[(tidy["month"] == 2) & (tidy["day"] == 11)]["tmin"].iloc[0])


def test_missing_value_verbs():
    df = pd.DataFrame({"day": [1, 2, 3, 4], "temp": [np.nan, 10.0, np.nan, 12.0]})

    assert drop_missing(df, ["temp"])["day"].tolist() == [2, 4]

    filled = fill_down(df, ["temp"])
    assert np.isnan(filled.loc[0, "temp"])
    assert filled["temp"].tolist()[1:] == [10.0, 10.0, 12.0]

    replaced = replace_missing(df, {"temp": 42})
    assert replaced["temp"].tolist() == [42.0, 10.0, 42.0, 12.0]

    # source frame untouched
    assert df["temp"].isna().sum() == 2


def test_missing_value_verbs_reject_unknown_columns():
    df = pd.DataFrame({"temp": [1.0]})

    with pytest.raises(MissingFieldError):
        drop_missing(df, ["tmax"])
    with pytest.raises(MissingFieldError):
        fill_down(df, ["tmax"])
    with pytest.raises(MissingFieldError):
        replace_missing(df, {"tmax": 0})
