"""Pydantic configuration models for tinywins."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator


class PathsConfig(BaseModel):
    """File paths configuration."""

    data_db: Path = Path("~/tinywins/tinywins.db")
    export_dir: Path = Path("~/tinywins/exports")
    log_file: Path = Path("~/tinywins/tinywins.log")

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.data_db = self.data_db.expanduser()
        self.export_dir = self.export_dir.expanduser()
        self.log_file = self.log_file.expanduser()
        return self


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    json_mode: bool = Field(default=False, alias="json")

    model_config = {"populate_by_name": True}

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class StoreConfig(BaseModel):
    """Habit store behaviour."""

    # Off: completing twice in a day counts twice, as the app always has.
    dedupe_same_day: bool = False


class TinyWinsConfig(BaseModel):
    """Main configuration model."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "TinyWinsConfig":
        """Create config from dict, accepting plain-string paths."""
        if "paths" in data and isinstance(data["paths"], dict):
            for key in ["data_db", "export_dir", "log_file"]:
                if isinstance(data["paths"].get(key), str):
                    data["paths"][key] = Path(data["paths"][key])
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")
