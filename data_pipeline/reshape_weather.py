# =============================================================================
# Reshape Weather Station Data
# =============================================================================
# - Gather the 31 day columns into one long temperature column
# - Spread the element column (tmax / tmin) back out into variables
# - Handle missing readings: drop, carry forward, or replace


from typing import Any, List, Mapping, Optional, Sequence
import pandas as pd

from data_pipeline.pipeline_errors import (
    MissingFieldError,
    require_columns,
    require_unique,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

FIRST_DAY_COLUMN = 'd1'
LAST_DAY_COLUMN = 'd31'

DAY_LABEL_COLUMN = 'day_label'
READING_COLUMN = 'temp'
ELEMENT_COLUMN = 'element'

WEATHER_ID_COLUMNS = ['id', 'year', 'month', 'day']


# ------------------------------------------------------------
# GATHER / SPREAD
# ------------------------------------------------------------

def select_column_range(df: pd.DataFrame, first: str, last: str) -> List[str]:
    """
    Column names from `first` to `last` inclusive, in table order.
    """

    missing = [col for col in (first, last) if col not in df.columns]
    if missing:
        raise MissingFieldError(missing)

    start = df.columns.get_loc(first)
    stop = df.columns.get_loc(last)
    if stop < start:
        raise ValueError(f'column `{last}` comes before `{first}`')

    return df.columns[start:stop + 1].tolist()


def gather_columns(df: pd.DataFrame,
                   key: str,
                   value: str,
                   columns: Sequence[str],
                   drop_na: bool = False
                   ) -> pd.DataFrame:
    """
    Collapse `columns` into key-value pairs; all other columns identify rows.
    """

    columns = list(columns)
    require_columns(df, columns)

    id_columns = [col for col in df.columns if col not in columns]
    long_df = pd.melt(
        df,
        id_vars=id_columns,
        value_vars=columns,
        var_name=key,
        value_name=value
        )

    if drop_na:
        long_df = long_df.dropna(subset=[value]).reset_index(drop=True)

    return long_df


def parse_number(values: pd.Series) -> pd.Series:
    """
    First number embedded in each value ('d12' -> 12); missing if none.
    """

    extracted = values.astype(str).str.extract(r'(-?\d+(?:\.\d+)?)', expand=False)

    return pd.to_numeric(extracted, errors='coerce')


def spread_column(df: pd.DataFrame, key: str, value: str) -> pd.DataFrame:
    """
    Spread a key-value pair across columns, one per distinct key.

    Every column other than `key` and `value` identifies a row, and each
    identifier must hold at most one value per key.
    """

    require_columns(df, [key, value])

    id_columns = [col for col in df.columns if col not in (key, value)]
    if not id_columns:
        raise ValueError('spread needs at least one identifier column')

    require_unique(df, id_columns + [key])

    wide = df.pivot(index=id_columns, columns=key, values=value).reset_index()
    wide.columns.name = None

    return wide


def gather_weather_days(df: pd.DataFrame, drop_na: bool = True) -> pd.DataFrame:
    """
    Long weather readings: one row per station, date and element.
    """

    day_columns = select_column_range(df, FIRST_DAY_COLUMN, LAST_DAY_COLUMN)
    long_df = gather_columns(df, DAY_LABEL_COLUMN, READING_COLUMN, day_columns, drop_na=drop_na)

    long_df = long_df.assign(day=parse_number(long_df[DAY_LABEL_COLUMN]))
    require_columns(long_df, WEATHER_ID_COLUMNS + [ELEMENT_COLUMN], 'weather')

    long_df = long_df[WEATHER_ID_COLUMNS + [ELEMENT_COLUMN, READING_COLUMN]]

    return (
        long_df
        .sort_values(WEATHER_ID_COLUMNS, kind='stable')
        .reset_index(drop=True)
    )


def tidy_weather(df: pd.DataFrame) -> pd.DataFrame:
    long_df = gather_weather_days(df, drop_na=True)

    return spread_column(long_df, ELEMENT_COLUMN, READING_COLUMN)


# ------------------------------------------------------------
# MISSING VALUES
# ------------------------------------------------------------

def drop_missing(df: pd.DataFrame, columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Remove rows with a missing value in any of `columns` (all columns if None).
    """

    if columns is not None:
        columns = list(columns)
        require_columns(df, columns)

    return df.dropna(subset=columns).reset_index(drop=True)


def fill_down(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """
    Replace missing values with the most recent non-missing value above.
    Leading missing values stay missing.
    """

    columns = list(columns)
    require_columns(df, columns)

    out = df.copy()
    out[columns] = out[columns].ffill()

    return out


def replace_missing(df: pd.DataFrame, replacements: Mapping[str, Any]) -> pd.DataFrame:
    require_columns(df, list(replacements))

    return df.fillna(value=dict(replacements))


# =============================================================================
# END OF SCRIPT
# =============================================================================
