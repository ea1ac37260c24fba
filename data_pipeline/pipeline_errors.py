# =============================================================================
# Pipeline Errors
# =============================================================================
# - Failures raised by wrangling stages when their input breaks a stage contract
# - Stages raise, the driver records; nothing here is recovered silently


from typing import Iterable, List


class PipelineError(Exception):
    """
    Base class for every contract violation raised by a pipeline stage.
    """


class MissingFieldError(PipelineError, KeyError):
    """
    One or more required columns are absent from the input table.
    """

    def __init__(self, fields: Iterable[str], table_name: str = 'table'):
        self.fields: List[str] = list(fields)
        self.table_name = table_name
        super().__init__(f'{table_name}: missing required column(s): {self.fields}')

    def __str__(self) -> str:
        return self.args[0]


class KeyCollisionError(PipelineError, ValueError):
    """
    The separator used to build a compound key already occurs in a key value,
    so the key could not be split back into its parts.
    """

    def __init__(self, column: str, sep: str, values: Iterable[str]):
        self.column = column
        self.sep = sep
        self.values: List[str] = list(values)
        super().__init__(
            f'separator {sep!r} occurs in {len(self.values)} value(s) of `{column}`: '
            f'{self.values[:5]}'
            )


class DuplicateObservationError(PipelineError, ValueError):
    """
    A key combination that must identify a single row occurs more than once.
    """

    def __init__(self, columns: Iterable[str], duplicate_count: int):
        self.columns: List[str] = list(columns)
        self.duplicate_count = duplicate_count
        super().__init__(
            f'{duplicate_count} duplicated row(s) for key column(s) {self.columns}'
            )


class NullKeyError(PipelineError, ValueError):
    """
    A key column holds missing values, so rows cannot be identified by it.
    """

    def __init__(self, column: str, null_count: int):
        self.column = column
        self.null_count = null_count
        super().__init__(f'{null_count} null value(s) in key column `{column}`')


# ------------------------------------------------------------
# CONTRACT CHECKS
# ------------------------------------------------------------

def require_columns(df, columns: Iterable[str], table_name: str = 'table') -> None:
    """
    Raise MissingFieldError naming every requested column absent from `df`.
    """

    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise MissingFieldError(missing, table_name)


def require_present(df, columns: Iterable[str]) -> None:
    for col in columns:
        null_count = int(df[col].isna().sum())
        if null_count > 0:
            raise NullKeyError(col, null_count)


def require_unique(df, columns: List[str]) -> None:
    duplicate_count = int(df.duplicated(subset=columns).sum())
    if duplicate_count > 0:
        raise DuplicateObservationError(columns, duplicate_count)


# =============================================================================
# END OF SCRIPT
# =============================================================================
