# =============================================================================
# Pipeline Report & Logs
# =============================================================================
# - Collect info, warnings and errors raised while running the pipeline
# - Echo every message so runs can be followed from the console


from typing import Dict, List


Report = Dict[str, List[str]]


def init_report() -> Report:

    return {
        'errors': [],
        'warnings': [],
        'info': []
    }


def log_info(message: str, report: Report) -> None:
    print(f'[INFO] {message}')
    report['info'].append(message)


def log_warning(message: str, report: Report) -> None:
    print(f'[WARNING] {message}')
    report['warnings'].append(message)


def log_error(message: str, report: Report) -> None:
    print(f'[ERROR] {message}')
    report['errors'].append(message)


def has_errors(report: Report) -> bool:
    return bool(report['errors'])


# =============================================================================
# END OF SCRIPT
# =============================================================================
