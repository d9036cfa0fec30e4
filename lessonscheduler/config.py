"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import ParseError
from .domain.models import WEEKDAY_NAMES, WorkingHoursConfig
from .domain.recurrence import DEFAULT_MAX_OCCURRENCES
from .domain.time_of_day import parse_time_of_day


class WorkingHoursSettings(BaseModel):
    """Working hours used when no profile service is configured."""
    start_time: str = "9:00 AM"
    end_time: str = "6:00 PM"
    slot_interval_minutes: int = 60
    working_days: List[str] = Field(default_factory=lambda: list(WEEKDAY_NAMES))

    @field_validator("slot_interval_minutes")
    @classmethod
    def validate_interval(cls, value: int) -> int:
        """Ensure slot interval is positive."""
        if value <= 0:
            raise ValueError("slot_interval_minutes must be greater than zero")
        return value

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, value: List[str]) -> List[str]:
        """Normalise weekday names and drop duplicates."""
        by_lower = {name.lower(): name for name in WEEKDAY_NAMES}
        invalid_days = [day for day in value if day.strip().lower() not in by_lower]
        if invalid_days:
            raise ValueError(f"working_days must be weekday names, got {invalid_days}")
        # Preserve order while removing duplicates
        deduped: List[str] = []
        for day in value:
            name = by_lower[day.strip().lower()]
            if name not in deduped:
                deduped.append(name)
        return deduped

    @model_validator(mode="after")
    def validate_window(self) -> "WorkingHoursSettings":
        """Ensure the configured window opens before it closes."""
        try:
            start = parse_time_of_day(self.start_time)
            end = parse_time_of_day(self.end_time)
        except ParseError as exc:
            raise ValueError(exc.message) from exc
        if end <= start:
            raise ValueError("end_time must be later than start_time")
        return self

    def to_domain(self) -> WorkingHoursConfig:
        return WorkingHoursConfig(
            start_time=self.start_time,
            end_time=self.end_time,
            slot_interval_minutes=self.slot_interval_minutes,
            working_days=frozenset(self.working_days),
        )


class ApiSettings(BaseModel):
    """Connection to the coaching platform's RPC endpoints."""
    base_url: str
    token: str = ""
    timeout_seconds: float = 30.0

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {value!r}")
        return value.rstrip("/")


class AppConfig(BaseModel):
    """Application configuration."""
    coach_id: str
    timezone: str = "America/New_York"
    working_hours: WorkingHoursSettings = Field(default_factory=WorkingHoursSettings)
    api: Optional[ApiSettings] = None
    send_email: bool = True
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES
    data_file: Optional[Path] = None
    log_level: str = "WARNING"

    @field_validator("max_occurrences")
    @classmethod
    def validate_max_occurrences(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_occurrences must be greater than zero")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        # Relative data files are resolved next to the config file
        if config.data_file is not None and not config.data_file.is_absolute():
            config = config.model_copy(update={"data_file": config_path.parent / config.data_file})

        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
