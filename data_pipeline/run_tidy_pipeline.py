# =============================================================================
# RUN TIDY DATA PIPELINE
# =============================================================================
# - Load and validate the weather and gillnet source tables
# - Reshape weather readings and handle missing values
# - Complete implicit zero catches per sampling event, then summarize
# - Write tidy tables to the output directory; source data is never rewritten


import os
import sys
from typing import Dict, Optional
import pandas as pd

from data_pipeline.complete_sampling_events import (
    complete_combinations,
    count_fabricated_events,
    expand_sampling_events,
)
from data_pipeline.pipeline_errors import PipelineError
from data_pipeline.pipeline_log import (
    Report,
    has_errors,
    init_report,
    log_error,
    log_info,
    log_warning,
)
from data_pipeline.reshape_weather import (
    READING_COLUMN,
    drop_missing,
    fill_down,
    gather_weather_days,
    replace_missing,
    tidy_weather,
)
from data_pipeline.summarize_catch import (
    left_join,
    nutrient_lookup,
    summarize_catch,
)
from data_pipeline.validate_raw_data import RAW_DATA_BASE_PATH, load_source_tables


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

OUTPUT_PATH = os.getenv('TIDY_OUTPUT_PATH', os.path.join(RAW_DATA_BASE_PATH, 'tidy'))
SAMPLE_SEED = int(os.getenv('TIDY_SAMPLE_SEED', '42'))
WRITE_OUTPUT = os.getenv('TIDY_WRITE_OUTPUT', 'true').lower() == 'true'

CATCH_COLUMNS = ['date', 'sample', 'commonName', 'cue', 'cueWt']
CATCH_FILL = {'cue': 0, 'cueWt': 0}

MISSING_READING_FILL = 42


# ------------------------------------------------------------
# WEATHER STAGE
# ------------------------------------------------------------

def run_weather_stage(weather: pd.DataFrame,
                      report: Report
                      ) -> Dict[str, pd.DataFrame]:
    """
    Gather / spread the weather table and compare missing-value strategies.
    """

    every_day = gather_weather_days(weather, drop_na=False)
    missing_count = int(every_day[READING_COLUMN].isna().sum())
    log_info(
        f'weather: gathered {len(every_day)} day reading(s), {missing_count} missing',
        report
        )

    dropped = drop_missing(every_day, [READING_COLUMN])
    filled = fill_down(every_day, [READING_COLUMN])
    replaced = replace_missing(every_day, {READING_COLUMN: MISSING_READING_FILL})
    log_info(
        f'weather: drop keeps {len(dropped)} row(s), fill-down leaves '
        f'{int(filled[READING_COLUMN].isna().sum())} missing, replace leaves '
        f'{int(replaced[READING_COLUMN].isna().sum())} missing',
        report
        )

    tidy = tidy_weather(weather)
    log_info(f'weather: tidy table has {len(tidy)} row(s), columns {tidy.columns.tolist()}', report)

    return {'weather_tidy': tidy}


# ------------------------------------------------------------
# CATCH STAGE
# ------------------------------------------------------------

def run_catch_stage(gillnet: pd.DataFrame,
                    report: Report,
                    random_state: Optional[int] = None
                    ) -> Dict[str, pd.DataFrame]:
    """
    Fill missing zeros per sampling event, then summarize focus species.
    """

    catch = gillnet[CATCH_COLUMNS]

    by_date = complete_combinations(catch, ['date', 'commonName'], CATCH_FILL)
    log_info(
        f'gillnet: {len(catch)} observed row(s), {len(by_date)} after completing '
        f'date x commonName',
        report
        )

    naive = complete_combinations(catch, ['date', 'sample', 'commonName'], CATCH_FILL)
    fabricated = count_fabricated_events(naive, catch, ['date', 'sample'])
    if fabricated > 0:
        log_warning(
            f'gillnet: completing date x sample x commonName invents '
            f'{fabricated} sampling event(s) that were never observed',
            report
            )

    dense = expand_sampling_events(catch, 'date', 'sample', 'commonName', CATCH_FILL)
    log_info(f'gillnet: {len(dense)} row(s) after completing sampling events x commonName', report)

    summaries = summarize_catch(dense, random_state=random_state)
    with_nutrients = left_join(summaries['sampled'], nutrient_lookup(), on=['year'])
    log_info(
        f'gillnet: {len(summaries["summary"])} year/species summary row(s), '
        f'{len(with_nutrients)} sampled row(s) joined to nutrients',
        report
        )

    return {
        'gillnet_dense': dense,
        'catch_summary': summaries['summary'],
        'catch_nutrients': with_nutrients,
    }


# ------------------------------------------------------------
# INPUT-OUTPUT HELPER
# ------------------------------------------------------------

def write_tidy_tables(tables: Dict[str, pd.DataFrame],
                      output_path: str,
                      source_path: str,
                      report: Report
                      ) -> None:
    """
    Write each table to <output_path>/<name>.csv.
    Does not write into the source directory.
    """

    if os.path.abspath(output_path) == os.path.abspath(source_path):
        log_error(f'Refusing to write tidy tables into source directory {source_path}', report)

        return

    os.makedirs(output_path, exist_ok=True)

    for name, df in tables.items():
        csv_path = os.path.join(output_path, f'{name}.csv')
        df.to_csv(csv_path, index=False)
        log_info(f'Wrote {name}: {csv_path} ({len(df)} rows)', report)


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def run_pipeline(base_path: str = RAW_DATA_BASE_PATH,
                 output_path: str = OUTPUT_PATH,
                 write_output: bool = WRITE_OUTPUT,
                 random_state: Optional[int] = SAMPLE_SEED
                 ) -> Report:
    report = init_report()

    sources = load_source_tables(base_path, report)
    if has_errors(report):
        log_error('Source validation failed; no tables were transformed', report)

        return report

    tables: Dict[str, pd.DataFrame] = {}

    try:
        tables.update(run_weather_stage(sources['weather'], report))
    except (PipelineError, ValueError) as e:
        log_error(f'weather stage failed: {e}', report)

    try:
        tables.update(run_catch_stage(sources['gillnet'], report, random_state=random_state))
    except (PipelineError, ValueError) as e:
        log_error(f'catch stage failed: {e}', report)

    if write_output and tables:
        write_tidy_tables(tables, output_path, base_path, report)

    return report


def main() -> None:
    report = run_pipeline()

    if has_errors(report):
        sys.exit(1)

    sys.exit(0)


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
