"""
HeartSmiles Backend — Application Configuration
=================================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types, and provides a singleton `settings` object.
       The request pipeline never reads `settings` directly: it receives a
       frozen `PipelineConfig` derived from it, so tests can build their own.
Who:   Imported by main.py (app factory) and the process entry points.
When:  Loaded once at module import time; read-only afterwards.

Missing secrets are NOT fatal:
    JWT_SECRET absence is logged at startup and surfaces later as an
    explicit failure of the auth collaborator. The API keeps answering
    health checks and non-auth resources in the meantime.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from app.services.origin_matcher import (
    ExactOrigin,
    OriginRule,
    PreviewDeploymentOrigin,
)

# ── Static Origin Literals ────────────────────────────────────────────────
# Local development frontends plus the known deployed frontends.
LOCAL_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:3002",
    "http://localhost:3003",
)
DEPLOYED_ORIGINS = (
    "https://heart-smiles-frontend-deployment-2mkr2p0k8-sara-devis-projects.vercel.app",
    "https://heart-smiles-frontend.vercel.app",
)
# Vercel preview deployments of the frontend project
PREVIEW_ORIGIN = PreviewDeploymentOrigin(
    scheme="https://",
    host_prefix="heart-smiles-frontend",
    host_suffix=".vercel.app",
)

API_PREFIX = "/api"
RESOURCE_SEGMENTS = (
    "auth",
    "participants",
    "programs",
    "staff",
    "upload",
    "export",
    "import",
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Variable names follow the deployment platform's conventions
    (NODE_ENV, VERCEL, VERCEL_ENV ...) so the same project settings
    work unchanged across hosts.
    """

    # ── Security ──────────────────────────────────────────────────────────
    # Required by the auth collaborator. Absence is logged, not fatal.
    jwt_secret: Optional[str] = Field(default=None)

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)

    # What: Operating mode. Only "production" redacts error details.
    node_env: str = Field(default="development")

    # What: Serverless host markers. Either one switches off port listening.
    vercel: Optional[str] = Field(default=None)
    vercel_env: Optional[str] = Field(default=None)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Optional; each contributes one extra exact-match origin when present.
    frontend_url: Optional[str] = Field(default=None)
    vercel_url: Optional[str] = Field(default=None)
    next_public_vercel_url: Optional[str] = Field(default=None)

    # ── Rate Limiting ─────────────────────────────────────────────────────
    rate_limit_max: int = Field(default=100, ge=1)
    rate_limit_window_seconds: int = Field(default=15 * 60, ge=1)

    # ── Request Bodies ────────────────────────────────────────────────────
    # 10 MiB for both JSON and form-encoded bodies
    body_limit_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)

    log_level: str = Field(default="INFO")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("node_env")
    @classmethod
    def normalize_node_env(cls, v: str) -> str:
        return v.strip().lower() or "development"

    @property
    def is_production(self) -> bool:
        return self.node_env == "production"

    @property
    def is_serverless(self) -> bool:
        """
        What: True when a serverless host invokes the app per request.
        Why:  In that mode the process must not bind a port itself.
        """
        return self.vercel == "1" or bool(self.vercel_env)

    def missing_required(self) -> List[str]:
        """Names of required variables that are absent or empty."""
        missing = []
        if not self.jwt_secret:
            missing.append("JWT_SECRET")
        return missing

    def origin_rules(self) -> Tuple[OriginRule, ...]:
        """
        Build the CORS allow-list from literals and optional settings.

        Absent values are dropped here, before any matching happens,
        so they can never be compared as an empty string.
        """
        configured = [
            self.frontend_url,
            f"https://{self.vercel_url}" if self.vercel_url else None,
            f"https://{self.next_public_vercel_url}" if self.next_public_vercel_url else None,
        ]
        literals = [*LOCAL_ORIGINS, *configured, *DEPLOYED_ORIGINS]
        rules: List[OriginRule] = [ExactOrigin(value) for value in literals if value]
        rules.append(PREVIEW_ORIGIN)
        return tuple(rules)


@dataclass(frozen=True)
class PipelineConfig:
    """
    Immutable snapshot of everything the request pipeline needs.

    Built once from Settings by the app factory (or directly by tests)
    and passed into every middleware constructor.
    """

    origin_rules: Tuple[OriginRule, ...]
    production: bool = False
    rate_limit_max: int = 100
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_exempt_paths: Tuple[str, ...] = (
        "/api/health",
        "/health",
        "/api/test",
        "/test",
    )
    trusted_proxy_hops: int = 1
    body_limit_bytes: int = 10 * 1024 * 1024
    api_prefix: str = API_PREFIX
    jwt_secret_configured: bool = False

    @classmethod
    def from_settings(cls, source: Settings) -> "PipelineConfig":
        return cls(
            origin_rules=source.origin_rules(),
            production=source.is_production,
            rate_limit_max=source.rate_limit_max,
            rate_limit_window_seconds=source.rate_limit_window_seconds,
            body_limit_bytes=source.body_limit_bytes,
            jwt_secret_configured="JWT_SECRET" not in source.missing_required(),
        )


# Singleton instance, immutable after startup
settings = Settings()
