# DAVSync Configuration Schema
# Pydantic models for YAML configuration validation

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from davsync.sync.discovery import CachePolicy


class StorageConfig(BaseModel):
    """Locations of the persisted registry and sync state."""

    registry_path: str = Field(default="~/.config/davsync/registry.yaml", description="Accounts and folders file")
    state_path: str = Field(default="~/.config/davsync/sync_state.yaml", description="Folder sync markers file")

    @field_validator("registry_path", "state_path")
    @classmethod
    def expand_paths(cls, v: str) -> str:
        """Expand ~ in paths."""
        return str(Path(v).expanduser())


class CacheConfig(BaseModel):
    """Eviction policy for cached folders."""

    retention_days: int | None = Field(
        default=None, ge=0, description="Days a cached folder is kept. None = keep forever."
    )
    max_cached_per_account: int | None = Field(
        default=None, ge=0, description="Maximum cached folders per account. None = unbounded."
    )

    def to_policy(self) -> CachePolicy:
        """Convert to the policy used by discovery."""
        return CachePolicy(retention_days=self.retention_days, max_cached=self.max_cached_per_account)


class PluginsConfig(BaseModel):
    """Factories of the external collaborators, as 'module:attribute' paths."""

    transport: str | None = Field(default=None, description="Factory returning a Transport")
    targets: str | None = Field(default=None, description="Factory returning a dict of LocalKind to TargetManager")

    @field_validator("transport", "targets")
    @classmethod
    def check_import_path(cls, v: str | None) -> str | None:
        """Require 'module:attribute' form."""
        if v is None:
            return None
        module_name, sep, attr = v.partition(":")
        if not sep or not module_name or not attr:
            raise ValueError(f"expected 'module:attribute', got '{v}'")
        return v


class SyncConfig(BaseModel):
    """Sync run settings."""

    max_parallel_accounts: int = Field(default=1, ge=1, description="Accounts synced at the same time by --all")


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")


class DavSyncConfig(BaseModel):
    """Root configuration model for DAVSync."""

    storage: StorageConfig = Field(default_factory=StorageConfig, description="Storage settings")
    cache: CacheConfig = Field(default_factory=CacheConfig, description="Cached folder policy")
    plugins: PluginsConfig = Field(default_factory=PluginsConfig, description="Collaborator factories")
    sync: SyncConfig = Field(default_factory=SyncConfig, description="Sync settings")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")
