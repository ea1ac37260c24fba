# =============================================================================
# VALIDATE RAW TEACHING DATASETS
# =============================================================================
# - Check the structure of the weather and gillnet source tables
# - Record problems that would break reshaping, completion or summaries
# - Runs standalone (exit status 1 on errors) or from the pipeline driver


import os
import sys
from typing import Dict, List, Optional
import pandas as pd

from data_pipeline.pipeline_log import (
    Report,
    has_errors,
    init_report,
    log_error,
    log_info,
    log_warning,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

RAW_DATA_BASE_PATH = os.getenv('TIDY_DATA_PATH', 'data')

DAY_COLUMNS = [f'd{day}' for day in range(1, 32)]

TABLE_CONFIG = {
    'weather': {
        'role': 'wide_measurement',
        'file_name': 'weather.csv',
        'primary_key': ['id', 'year', 'month', 'element'],
    },
    'gillnet': {
        'role': 'observation',
        'file_name': 'gillnet.csv',
        'primary_key': ['date', 'sample', 'commonName'],
        'measures': ['cue', 'cueWt'],
    },
}


# ------------------------------------------------------------
# BASE VALIDATIONS (ALL TABLES)
# ------------------------------------------------------------

def run_base_validations(df: pd.DataFrame,
                         table_name: str,
                         primary_key: List[str],
                         report: Report
                         ) -> None:
    """
    Structural checks shared by every table.

    Stops early when the key columns cannot be checked.
    """

    if df.empty:
        log_error(f'{table_name}: dataset is empty', report)

        return

    repeated_columns = df.columns[df.columns.duplicated()].tolist()
    if repeated_columns:
        log_error(f'{table_name}: duplicate column names detected: {repeated_columns}', report)

    absent_key_columns = [col for col in primary_key if col not in df.columns]
    if absent_key_columns:
        log_error(f'{table_name}: missing key column(s): {absent_key_columns}', report)

        return

    null_key_rows = int(df[primary_key].isnull().any(axis=1).sum())
    if null_key_rows > 0:
        log_error(f'{table_name}: {null_key_rows} row(s) with null key values', report)

    repeated_keys = int(df.duplicated(subset=primary_key).sum())
    if repeated_keys > 0:
        log_error(
            f'{table_name}: {repeated_keys} duplicated key value(s) for {primary_key}',
            report
            )


# ------------------------------------------------------------
# WIDE MEASUREMENT VALIDATIONS
# ------------------------------------------------------------

def run_wide_measurement_validations(df: pd.DataFrame,
                                     table_name: str,
                                     report: Report
                                     ) -> None:
    """
    One column per day of month, holding numeric readings.
    """

    absent_days = [col for col in DAY_COLUMNS if col not in df.columns]
    if absent_days:
        log_error(f'{table_name}: missing day column(s): {absent_days}', report)

        return

    non_numeric = [
        col for col in DAY_COLUMNS
        if not pd.api.types.is_numeric_dtype(df[col])
    ]
    if non_numeric:
        log_error(f'{table_name}: non-numeric reading column(s): {non_numeric}', report)

        return

    empty_days = [col for col in DAY_COLUMNS if df[col].isna().all()]
    if empty_days:
        log_warning(f'{table_name}: {len(empty_days)} day column(s) without any reading', report)


# ------------------------------------------------------------
# OBSERVATION VALIDATIONS
# ------------------------------------------------------------

def run_observation_validations(df: pd.DataFrame,
                                table_name: str,
                                measures: List[str],
                                report: Report
                                ) -> None:
    """
    Counts and weights must be present, numeric and non-negative.
    """

    absent_measures = [col for col in measures if col not in df.columns]
    if absent_measures:
        log_error(f'{table_name}: missing measure column(s): {absent_measures}', report)

        return

    for col in measures:
        if not pd.api.types.is_numeric_dtype(df[col]):
            log_error(f'{table_name}: measure column `{col}` is not numeric', report)

            return

        negative_count = int((df[col] < 0).sum())
        if negative_count > 0:
            log_error(
                f'{table_name}: {negative_count} negative value(s) in measure column `{col}`',
                report
                )

            return

        missing_count = int(df[col].isna().sum())
        if missing_count > 0:
            log_warning(f'{table_name}: {missing_count} missing value(s) in `{col}`', report)


# ------------------------------------------------------------
# Input-Output Helpers
# ------------------------------------------------------------

def load_csv_file(csv_path: str, table_name: str, report: Report) -> Optional[pd.DataFrame]:
    try:
        df = pd.read_csv(csv_path)
        log_info(f'Loaded {table_name} file: {os.path.basename(csv_path)} ({len(df)} rows)', report)

        return df

    except (OSError, ValueError) as e:
        log_error(f'Failed to load {table_name} file {csv_path}: {e}', report)

        return None


def load_source_tables(base_path: str, report: Report) -> Dict[str, pd.DataFrame]:
    """
    Load and validate every configured table found under `base_path`.
    Tables that fail to load are left out of the result.
    """

    tables: Dict[str, pd.DataFrame] = {}

    for table_name, config in TABLE_CONFIG.items():
        csv_path = os.path.join(base_path, config['file_name'])

        if not os.path.exists(csv_path):
            log_error(f'Missing file: {csv_path}', report)

            continue

        df = load_csv_file(csv_path, table_name, report)
        if df is None:

            continue

        run_base_validations(df, table_name, config['primary_key'], report)

        if config['role'] == 'wide_measurement':
            run_wide_measurement_validations(df, table_name, report)

        elif config['role'] == 'observation':
            run_observation_validations(df, table_name, config['measures'], report)

        tables[table_name] = df

    return tables


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def main() -> None:
    report = init_report()

    load_source_tables(RAW_DATA_BASE_PATH, report)

    if has_errors(report):
        sys.exit(1)

    sys.exit(0)


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
