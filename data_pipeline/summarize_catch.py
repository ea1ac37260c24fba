# =============================================================================
# Summarize Gillnet Catch
# =============================================================================
# - Wrangle the densified catch table with single-table verbs
# - Condense catch weights to per-year, per-species summaries
# - Attach per-year nutrient measurements from a lookup table


from typing import Dict, List, Mapping, Optional, Sequence
import pandas as pd

from data_pipeline.pipeline_errors import (
    DuplicateObservationError,
    require_columns,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

FOCUS_SPECIES = [
    'Alewife',
    'Gizzard shad',
    'Northern pike',
    'White perch',
    'Yellow perch',
]

DATE_FORMAT = '%m/%d/%y'

# new name -> source column
SUMMARY_COLUMNS = {
    'year': 'yr',
    'month': 'month',
    'julian': 'julien',
    'sample': 'sample',
    'commonName': 'commonName',
    'cueWt': 'cueWt',
}

NUTRIENT_RECORDS = [
    (1972, 55, 300),
    (1974, 47, 250),
]
NUTRIENT_COLUMNS = ['year', 'totPhos', 'TKN']


# ------------------------------------------------------------
# SINGLE-TABLE VERBS
# ------------------------------------------------------------

def filter_categories(df: pd.DataFrame, column: str, keep: Sequence) -> pd.DataFrame:
    require_columns(df, [column])

    return df[df[column].isin(list(keep))].reset_index(drop=True)


def arrange(df: pd.DataFrame, columns: Sequence[str], descending: bool = False) -> pd.DataFrame:
    columns = list(columns)
    require_columns(df, columns)

    return (
        df
        .sort_values(columns, ascending=not descending, kind='stable')
        .reset_index(drop=True)
    )


def add_date_parts(df: pd.DataFrame,
                   column: str = 'date',
                   date_format: str = DATE_FORMAT
                   ) -> pd.DataFrame:
    """
    Parse `column` as dates and derive calendar fields from it.

    Adds `yr`, `month` and `julien` (day of year). The parsed dates overwrite
    the original strings; any value that does not match `date_format` raises.
    """

    require_columns(df, [column])

    dates = pd.to_datetime(df[column], format=date_format, errors='coerce')
    unparsable = dates.isna() & df[column].notna()
    if unparsable.any():
        raise ValueError(
            f'{int(unparsable.sum())} value(s) in `{column}` do not match {date_format!r}'
            )

    return df.assign(**{
        column: dates,
        'yr': dates.dt.year,
        'month': dates.dt.month,
        'julien': dates.dt.dayofyear,
    })


def select_rename(df: pd.DataFrame, columns: Mapping[str, str]) -> pd.DataFrame:
    """
    Keep only the source columns of `columns` ({new_name: old_name}), in
    mapping order, under their new names.
    """

    require_columns(df, list(columns.values()))

    selected = df[list(columns.values())].copy()
    selected.columns = list(columns.keys())

    return selected


def summarize_by(df: pd.DataFrame, by: Sequence[str], column: str) -> pd.DataFrame:
    """
    Mean and maximum of `column` per group, as mean<Column> / max<Column>.
    """

    by = list(by)
    require_columns(df, by + [column])

    suffix = column[:1].upper() + column[1:]

    return (
        df
        .groupby(by, sort=True)
        .agg(**{
            f'mean{suffix}': (column, 'mean'),
            f'max{suffix}': (column, 'max'),
        })
        .reset_index()
    )


def sample_per_group(df: pd.DataFrame,
                     by: Sequence[str],
                     size: Optional[int] = None,
                     frac: Optional[float] = None,
                     replace: bool = False,
                     random_state: Optional[int] = None
                     ) -> pd.DataFrame:
    """
    Random rows from each group: `size` rows, or a `frac` share of the group.
    """

    if (size is None) == (frac is None):
        raise ValueError('pass exactly one of `size` or `frac`')

    by = list(by)
    require_columns(df, by)

    sampled = df.groupby(by, sort=True).sample(
        n=size,
        frac=frac,
        replace=replace,
        random_state=random_state
        )

    return sampled.reset_index(drop=True)


# ------------------------------------------------------------
# COMBINING TABLES
# ------------------------------------------------------------

def nutrient_lookup() -> pd.DataFrame:
    return pd.DataFrame.from_records(NUTRIENT_RECORDS, columns=NUTRIENT_COLUMNS)


def left_join(left: pd.DataFrame, right: pd.DataFrame, on: Sequence[str]) -> pd.DataFrame:
    """
    Keep every row of `left` and append the matching columns of `right`.

    `right` is a lookup: a key occurring twice would duplicate left rows, so
    it is rejected.
    """

    on = list(on)
    require_columns(left, on, 'left')
    require_columns(right, on, 'right')

    duplicate_count = int(right.duplicated(subset=on).sum())
    if duplicate_count > 0:
        raise DuplicateObservationError(on, duplicate_count)

    return left.merge(right, on=on, how='left', validate='many_to_one')


# ------------------------------------------------------------
# CATCH SUMMARY
# ------------------------------------------------------------

def summarize_catch(dense: pd.DataFrame,
                    species: Optional[List[str]] = None,
                    samples_per_year: int = 2,
                    random_state: Optional[int] = None
                    ) -> Dict[str, pd.DataFrame]:
    """
    Per-year catch weight summaries for the focus species.

    Returns the `summary` table (one row per year and species) and the
    `sampled` table (`samples_per_year` rows drawn with replacement from
    each year of the summary).
    """

    species = FOCUS_SPECIES if species is None else species

    catch = filter_categories(dense, 'commonName', species)
    catch = arrange(catch, ['commonName'])
    catch = add_date_parts(catch, 'date')
    catch = select_rename(catch, SUMMARY_COLUMNS)

    summary = summarize_by(catch, ['year', 'commonName'], 'cueWt')
    sampled = sample_per_group(
        summary,
        ['year'],
        size=samples_per_year,
        replace=True,
        random_state=random_state
        )

    return {
        'summary': summary,
        'sampled': sampled,
    }


# =============================================================================
# END OF SCRIPT
# =============================================================================
