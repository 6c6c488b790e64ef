"""
Configuration for the earthquake browser, read from the environment

Values come from QUAKEVIEW_* variables, optionally placed in a .env file.
"""
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

ENV_PREFIX = "QUAKEVIEW_"

DEFAULT_CSV_URL = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_month.csv"


class ViewerSettings(BaseModel):
    csv_url: str = DEFAULT_CSV_URL
    timeout: float = Field(10.0, gt=0)
    max_retries: int = Field(3, ge=1)
    retry_delay: float = Field(1.0, ge=0)
    cache_ttl: float = Field(300.0, ge=0)
    chunk_size: int = Field(100, ge=1)
    rejection_warning_threshold: float = Field(0.10, ge=0, le=1)
    page_size: int = Field(50, ge=1)
    overscan: int = Field(3, ge=0)
    log_dir: str = "app_log"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ViewerSettings":
        """
        Build settings from QUAKEVIEW_* variables

        Unset variables keep their defaults; invalid values raise
        pydantic.ValidationError.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw.strip() != "":
                values[name] = raw.strip()
        return cls(**values)
