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
    RemoteSchema       → remote.yaml
    SyncSchema         → sync.yaml
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class TimeoutsSchema(_StrictBase):
    remote_api: float
    sync_pass: float


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    timeouts: TimeoutsSchema


# =============================================================================
# database.yaml
# =============================================================================


class DatabaseSchema(_StrictBase):
    url: str
    echo: bool


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
    format: str
    handlers: HandlersSchema


# =============================================================================
# remote.yaml
# =============================================================================


class RemoteTablesSchema(_StrictBase):
    public_notes: str
    synced_notes: str
    likes: str
    comments: str


class RemoteBucketsSchema(_StrictBase):
    profile_images: str


class CircuitBreakerSchema(_StrictBase):
    fail_max: int
    timeout_duration: int


class RemoteSchema(_StrictBase):
    base_url: str
    use_native_upsert: bool
    tables: RemoteTablesSchema
    buckets: RemoteBucketsSchema
    circuit_breaker: CircuitBreakerSchema


# =============================================================================
# sync.yaml
# =============================================================================


class CodecSchema(_StrictBase):
    wire_format: Literal["archive", "rtf"]


class RetrySchema(_StrictBase):
    max_attempts: int
    backoff_multiplier: float
    backoff_max: float


class NoteSyncSchema(_StrictBase):
    enabled: bool
    max_concurrent_uploads: int
    retry: RetrySchema


class SocialSchema(_StrictBase):
    toggle_via_rpc: bool


class SyncSchema(_StrictBase):
    codec: CodecSchema
    notes: NoteSyncSchema
    social: SocialSchema
