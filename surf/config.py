from __future__ import annotations
from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    # Scan
    TIMEOUT_MS: int = Field(default=5000, gt=0)
    MAX_CONCURRENCY: int = Field(default=10, gt=0)
    RESULT_TTL_S: int = Field(default=3600, ge=0)  # 0 keeps finished scans forever

    # Probing
    PROBE_SCHEMES: list[str] = Field(default_factory=lambda: ["https", "http"])
    VERIFY_TLS: bool = True
    HTTP2: bool = False
    RANDOM_UA: bool = True
    PROXY_URL: str | None = Field(default=None)

    # DNS (empty means use the OS resolver)
    DNS_SERVERS: list[str] = Field(default_factory=list)

    # Output
    OUTDIR: str = Field(default="surf-results")
    LOG_LEVEL: str = Field(default="INFO")

    model_config = {"env_prefix": "SURF_", "env_file": ".env", "env_file_encoding": "utf-8"}
