"""Settings for schemigrate."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemigrateSettings(BaseSettings):
    """Runtime configuration, read from ``SCHEMIGRATE_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SCHEMIGRATE_",
        env_file=".env",
        extra="ignore",
    )

    strict_objects: bool = Field(
        default=True,
        description="Report keys not declared by an object field",
    )
    unambiguous_unions: bool = Field(
        default=True,
        description="Reject values matched by more than one union variant",
    )
    batch_max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Worker threads used by MigrationEngine.run_batch",
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level used by the command line interface",
    )
