"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    DatabaseSchema     → database.yaml
    LoggingSchema      → logging.yaml
    FeaturesSchema     → features.yaml
    SecuritySchema     → security.yaml
    ConcurrencySchema  → concurrency.yaml
    NotesSchema        → notes.yaml
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ServerSchema(_StrictBase):
    host: str
    port: int


class CorsSchema(_StrictBase):
    origins: list[str]


class PaginationSchema(_StrictBase):
    default_limit: int
    max_limit: int


class TimeoutsSchema(_StrictBase):
    health_check: int


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    api_prefix: str
    docs_enabled: bool
    server: ServerSchema
    cors: CorsSchema
    pagination: PaginationSchema
    timeouts: TimeoutsSchema


# =============================================================================
# database.yaml
# =============================================================================


class BrokerSchema(_StrictBase):
    queue_name: str
    result_expiry_seconds: int


class RedisSchema(_StrictBase):
    host: str
    port: int
    db: int
    broker: BrokerSchema


class DatabaseSchema(_StrictBase):
    driver: Literal["postgresql+asyncpg", "sqlite+aiosqlite"]
    host: str
    port: int
    name: str
    user: str
    pool_size: int
    max_overflow: int
    pool_timeout: int
    pool_recycle: int
    echo: bool
    echo_pool: bool
    redis: RedisSchema


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: Literal["json", "console"]
    handlers: HandlersSchema


# =============================================================================
# features.yaml
# =============================================================================


class FeaturesSchema(_StrictBase):
    api_rate_limit_enabled: bool
    api_request_logging: bool
    api_detailed_errors: bool
    attachments_enabled: bool
    admin_api_enabled: bool
    trash_sweep_enabled: bool


# =============================================================================
# security.yaml
# =============================================================================


class ApiTokenSchema(_StrictBase):
    ttl_days: int = Field(gt=0)
    byte_length: int = Field(ge=16)


class PasswordSchema(_StrictBase):
    min_length: int = Field(ge=1)


class ThrottleSchema(_StrictBase):
    limit: int = Field(gt=0)
    period_seconds: int = Field(gt=0)


class RateLimitingSchema(_StrictBase):
    path_prefix: str
    per_ip: ThrottleSchema
    per_token: ThrottleSchema


class SecuritySchema(_StrictBase):
    api_tokens: ApiTokenSchema
    passwords: PasswordSchema
    rate_limiting: RateLimitingSchema
    default_session_timeout: int = Field(gt=0)


# =============================================================================
# concurrency.yaml
# =============================================================================


class ThreadPoolSchema(_StrictBase):
    max_workers: int


class ShutdownSchema(_StrictBase):
    drain_seconds: int


class ConcurrencySchema(_StrictBase):
    thread_pool: ThreadPoolSchema
    shutdown: ShutdownSchema


# =============================================================================
# notes.yaml
# =============================================================================


class TrashSchema(_StrictBase):
    retention_days: int = Field(gt=0)
    sweep_cron: str


class AttachmentsSchema(_StrictBase):
    storage_path: str
    max_file_bytes: int = Field(gt=0)


class SearchSchema(_StrictBase):
    max_results: int = Field(gt=0)


class NotesSchema(_StrictBase):
    default_max_size: int = Field(gt=0)
    trash: TrashSchema
    attachments: AttachmentsSchema
    search: SearchSchema
