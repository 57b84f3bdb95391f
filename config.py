import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        export_dir: Path,
        trend_months: int,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.export_dir = export_dir
        self.trend_months = trend_months


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("EXPENSES_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "expenses.db"
    database_url = os.getenv("EXPENSES_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("EXPENSES_TIMEZONE", "Africa/Lagos")
    export_dir = Path(
        os.getenv("EXPENSES_EXPORT_DIR", str(data_dir / "exports"))
    ).resolve()
    trend_months = int(os.getenv("EXPENSES_TREND_MONTHS", "6"))
    return Settings(
        database_url=database_url,
        timezone=timezone,
        export_dir=export_dir,
        trend_months=trend_months,
    )
