from datetime import datetime, timezone

from prefect.runtime import task_run

from cyclone_swi import BaseETL


def parse_run_timestamp(date_str: str | None, time_str: str | None) -> int | None:
    """Epoch seconds (UTC) of a ``YYYY-MM-DD/HH-MM-SS`` archive run directory."""
    if not date_str or date_str.strip() == "":
        return None
    try:
        # Full run directory: date and time of day
        dt = datetime.strptime(f"{date_str} {time_str}", "%Y-%m-%d %H-%M-%S")
    except ValueError:
        try:
            # Fallback to date-only directories
            dt = datetime.strptime(date_str, "%Y-%m-%d")
        except ValueError:
            return None
    return int(dt.replace(tzinfo=timezone.utc).timestamp())


def format_timestamp(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def generate_task_run_name(step_name: str):
    def _generate_name():
        etl: BaseETL = task_run.get_parameters()["etl"]
        return f"{etl.name} - {step_name}"

    return _generate_name
