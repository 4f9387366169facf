"""
Global configuration entry‑point.

▪ Loads environment variables from `.env` (if present)
▪ Exposes a single cached `get_settings()` accessor
▪ Components never read settings directly; `snapshot.factory` turns them
  into explicit constructor arguments
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ──────────────────────────────────────────────────────────────
# 0. Load .env early so that pydantic can pick up the variables
# ──────────────────────────────────────────────────────────────
load_dotenv()

DEFAULT_CORE_RPC = "https://main.confluxrpc.com"
DEFAULT_ESPACE_RPC = "https://evm.confluxrpc.com"


# ──────────────────────────────────────────────────────────────
# 1. Settings object (use everywhere instead of os.getenv)
# ──────────────────────────────────────────────────────────────
class _Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    # --- General process switches ------------------------------------------------
    LOG_LEVEL: str = Field("INFO")  # DEBUG / INFO / WARNING / ERROR

    # --- Datasets ------------------------------------------------------------------
    DATA_DIR: str = Field("data")
    POOL_STATS_FILE: str = Field("poolStats.json")
    ROSTER_FILE: str = Field("teslaSnapshot.json")

    # --- RPC endpoints -------------------------------------------------------------
    CORE_RPC_URL: str = Field(DEFAULT_CORE_RPC)
    ESPACE_RPC_URL: str = Field(DEFAULT_ESPACE_RPC)
    RPC_TIMEOUT: float = Field(30.0)  # seconds

    # --- Contracts (no defaults: must come from the environment) ------------------
    CORE_V1_POOL_ADDRESS: str = Field("")
    ESPACE_V1_POOL_ADDRESS: str = Field("")
    ESPACE_V2_POOL_ADDRESS: str = Field("")
    ESPACE_ABC_TOKEN_ADDRESS: str = Field("")

    # --- Throttling / retry --------------------------------------------------------
    PROBE_DELAY_MS: int = Field(200)  # between binary-search probes
    ROSTER_PROBE_DELAY_MS: int = Field(2000)
    ROSTER_CALL_DELAY_MS: int = Field(2000)  # before each staker lookup
    RETRY_ATTEMPTS: int = Field(3)
    RETRY_DELAY_MS: int = Field(2000)

    # --- Schedule ------------------------------------------------------------------
    SNAPSHOT_TIMEZONE: Optional[str] = Field(None)  # None → process-local time
    POOL_SNAPSHOT_DAYS: List[int] = Field(default_factory=lambda: [1, 11, 21])
    ROSTER_SNAPSHOT_DATES: List[str] = Field(
        default_factory=lambda: ["20241021", "20241101", "20250110", "20250209"]
    )
    ROSTER_ANCHOR_DATE: str = Field("20250209")
    ROSTER_INTERVAL_DAYS: int = Field(15)

    # --- Roster scaling (external tokenomics assumptions) --------------------------
    ROSTER_POS_UNIT: int = Field(1000)
    ROSTER_POS_VOTE_DIVISOR: int = Field(5)
    ROSTER_TOKEN_DECIMALS: int = Field(18)
    ROSTER_TOKEN_VOTE_DIVISOR: int = Field(188)

    @field_validator("LOG_LEVEL")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        v_up = v.upper()
        if v_up not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v_up

    @field_validator("ROSTER_SNAPSHOT_DATES")
    @classmethod
    def _validate_dates(cls, v: List[str]) -> List[str]:
        for item in v:
            if len(item) != 8 or not item.isdigit():
                raise ValueError(f"ROSTER_SNAPSHOT_DATES entry {item!r} is not YYYYMMDD")
        return v

    @field_validator("ROSTER_ANCHOR_DATE")
    @classmethod
    def _validate_anchor(cls, v: str) -> str:
        if len(v) != 8 or not v.isdigit():
            raise ValueError("ROSTER_ANCHOR_DATE must be YYYYMMDD")
        return v

    @field_validator("RETRY_ATTEMPTS", "ROSTER_INTERVAL_DAYS")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    # helpful computed values -----------------------------------------------------
    @property
    def pool_stats_path(self) -> Path:
        return Path(self.DATA_DIR) / self.POOL_STATS_FILE

    @property
    def roster_path(self) -> Path:
        return Path(self.DATA_DIR) / self.ROSTER_FILE


@lru_cache(maxsize=1)
def get_settings() -> _Settings:
    """Singleton accessor – import this everywhere."""
    return _Settings()
