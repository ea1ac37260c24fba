# =============================================================================
# Complete Sampling Events
# =============================================================================
# - Split and combine cells (separate / unite)
# - Expand tables to every combination of observed values (expand / complete)
# - Densify catch records to one row per (sampling event, species) pair
#   without fabricating sampling events that were never observed


from typing import Any, Dict, List, Mapping, Optional, Sequence
import pandas as pd

from data_pipeline.pipeline_errors import (
    KeyCollisionError,
    require_columns,
    require_present,
    require_unique,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

EVENT_KEY_SEP = ','

_PRESENCE_INDICATOR = '__complete_source__'


# ------------------------------------------------------------
# SPLIT / COMBINE CELLS
# ------------------------------------------------------------

def _insert_position(df: pd.DataFrame, anchor: str, removed: Sequence[str]) -> int:
    """
    Position of `anchor` once the `removed` columns are gone.
    """

    preceding = df.columns[:df.columns.get_loc(anchor)]

    return sum(1 for col in preceding if col not in removed)


def unite_columns(df: pd.DataFrame,
                  new_column: str,
                  columns: Sequence[str],
                  sep: str = EVENT_KEY_SEP
                  ) -> pd.DataFrame:
    """
    Paste several columns into one string column.

    The united column replaces its sources, at the position of the first one.
    Raises KeyCollisionError when `sep` already occurs in a source value,
    since such a value could not be separated again.
    """

    columns = list(columns)
    require_columns(df, columns)

    if new_column in df.columns and new_column not in columns:
        raise ValueError(f'column `{new_column}` already exists')

    parts = []
    for col in columns:
        values = df[col].astype(str)
        collisions = values[values.str.contains(sep, regex=False)]
        if not collisions.empty:
            raise KeyCollisionError(col, sep, collisions.unique().tolist())
        parts.append(values)

    united = parts[0]
    for values in parts[1:]:
        united = united + sep + values

    position = _insert_position(df, columns[0], columns)
    out = df.drop(columns=columns)
    out.insert(position, new_column, united)

    return out


def _restore_dtype(values: pd.Series, dtype) -> pd.Series:
    if pd.api.types.is_bool_dtype(dtype):
        return values.map({'True': True, 'False': False})

    if pd.api.types.is_datetime64_any_dtype(dtype):
        return pd.to_datetime(values)

    if pd.api.types.is_numeric_dtype(dtype):
        return pd.to_numeric(values).astype(dtype)

    return values.astype(dtype)


def _convert_types(values: pd.Series) -> pd.Series:
    numeric = pd.to_numeric(values, errors='coerce')
    if numeric[values.notna()].notna().all():
        return numeric

    return values


def separate_column(df: pd.DataFrame,
                    column: str,
                    into: Sequence[str],
                    sep: str = EVENT_KEY_SEP,
                    dtypes: Optional[Mapping[str, Any]] = None,
                    convert: bool = False
                    ) -> pd.DataFrame:
    """
    Split one string column into several at each occurrence of `sep`.

    At most len(into) pieces are produced, the last keeping any remaining
    separators; rows with fewer pieces are padded with missing values.
    `dtypes` casts named pieces back to a known dtype, `convert` turns
    pieces that are entirely numeric into numbers.
    """

    into = list(into)
    if len(into) < 2:
        raise ValueError('separate needs at least two target columns')

    require_columns(df, [column])

    clashing = [name for name in into if name in df.columns and name != column]
    if clashing:
        raise ValueError(f'separated column name(s) already exist: {clashing}')

    pieces = (
        df[column]
        .astype(str)
        .str.split(sep, n=len(into) - 1, expand=True, regex=False)
        .reindex(columns=range(len(into)))
    )
    pieces.columns = into

    dtypes = dict(dtypes or {})
    for name in into:
        if name in dtypes:
            pieces[name] = _restore_dtype(pieces[name], dtypes[name])
        elif convert:
            pieces[name] = _convert_types(pieces[name])

    position = df.columns.get_loc(column)
    before = df.columns[:position].tolist()
    after = df.columns[position + 1:].tolist()

    return pd.concat([df[before], pieces, df[after]], axis=1)


# ------------------------------------------------------------
# EXPAND TABLES
# ------------------------------------------------------------

def observed_values(df: pd.DataFrame, column: str) -> List[Any]:
    """
    Distinct values of `column`, sorted; missing values sort last.
    """

    require_columns(df, [column])

    return df[column].drop_duplicates().sort_values(kind='stable').tolist()


def expand_combinations(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """
    Every combination of the distinct values of `columns`, whether or not the
    combination occurs in `df`. Rows are ordered lexicographically.
    """

    columns = list(columns)
    require_columns(df, columns)

    levels = [observed_values(df, col) for col in columns]
    combos = pd.MultiIndex.from_product(levels, names=columns).to_frame(index=False)

    for col in columns:
        combos[col] = combos[col].astype(df[col].dtype)

    return combos


def complete_combinations(df: pd.DataFrame,
                          columns: Sequence[str],
                          fill_values: Optional[Mapping[str, Any]] = None
                          ) -> pd.DataFrame:
    """
    Turn implicit missing combinations of `columns` into explicit rows.

    Rows added for absent combinations take their values from `fill_values`;
    columns without a fill value stay missing. Rows already present are
    returned unchanged, including missing values they carried and repeated
    rows for the same combination. Integer
    columns keep their dtype when the fill leaves them whole.
    """

    columns = list(columns)
    fill_values = dict(fill_values or {})
    require_columns(df, columns + list(fill_values))

    combos = expand_combinations(df, columns)
    dense = combos.merge(df, on=columns, how='left', indicator=_PRESENCE_INDICATOR)
    absent = dense[_PRESENCE_INDICATOR] == 'left_only'

    for col, value in fill_values.items():
        dense[col] = dense[col].mask(absent, value)

        if (pd.api.types.is_integer_dtype(df[col].dtype)
                and dense[col].notna().all()
                and (pd.to_numeric(dense[col], errors='coerce') % 1 == 0).all()):
            dense[col] = dense[col].astype(df[col].dtype)

    return dense[df.columns.tolist()]


# ------------------------------------------------------------
# SPARSE-TO-DENSE COMBINATION EXPANDER
# ------------------------------------------------------------

def compound_key_name(df: pd.DataFrame, key_part_1: str, key_part_2: str) -> str:
    name = f'{key_part_1}_{key_part_2}'
    while name in df.columns:
        name = f'_{name}'

    return name


def expand_sampling_events(df: pd.DataFrame,
                           key_part_1: str,
                           key_part_2: str,
                           category: str,
                           fill_values: Dict[str, Any],
                           sep: str = EVENT_KEY_SEP
                           ) -> pd.DataFrame:
    """
    One row for every (observed sampling event, observed category) pair.

    A sampling event is a (key_part_1, key_part_2) pair that actually occurs
    in `df`; the two parts are never crossed independently. Both parts are
    united into a compound key, completed against `category`, then separated
    again with their original dtypes. Rows are ordered by compound key, then
    category. Key parts must be non-null and each (event, category) pair
    may occur at most once.
    """

    event_columns = [key_part_1, key_part_2, category]
    require_columns(df, event_columns + list(fill_values))
    require_present(df, [key_part_1, key_part_2])
    require_unique(df, event_columns)

    key = compound_key_name(df, key_part_1, key_part_2)
    dtypes = {
        key_part_1: df[key_part_1].dtype,
        key_part_2: df[key_part_2].dtype,
    }

    united = unite_columns(df, key, [key_part_1, key_part_2], sep=sep)
    dense = complete_combinations(united, [key, category], fill_values)

    return separate_column(dense, key, [key_part_1, key_part_2], sep=sep, dtypes=dtypes)


def count_fabricated_events(completed: pd.DataFrame,
                            source: pd.DataFrame,
                            event_columns: Sequence[str]
                            ) -> int:
    """
    Number of distinct events in `completed` that never occur in `source`.
    """

    event_columns = list(event_columns)
    require_columns(source, event_columns)
    require_columns(completed, event_columns)

    observed = source[event_columns].drop_duplicates()
    produced = completed[event_columns].drop_duplicates()
    merged = produced.merge(observed, on=event_columns, how='left', indicator=True)

    return int((merged['_merge'] == 'left_only').sum())


# =============================================================================
# END OF SCRIPT
# =============================================================================
