"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="OT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Order Tracking Dashboard API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for local settings files.")
    timezone: str = Field(
        default="America/Sao_Paulo",
        description="Wall-clock timezone of the ERP/logistics exports and business-day boundaries.",
    )

    # Source layout
    erp_sheet_name: str = Field(default="Pag", description="Preferred worksheet in the ERP workbook.")
    logistics_delivery_column_index: int = Field(
        default=28,
        ge=0,
        description="Positional column (0-based, column AC) holding the carrier delivery timestamp.",
    )
    unrecognized_phase: str = Field(
        default="Unknown",
        description="Phase assigned when no classification rule matches (Unknown or Cancelled).",
    )

    # SLA defaults (used until thresholds are saved through the settings API)
    default_max_business_days: int = Field(default=5, ge=0)
    default_sla_picking_hours: float = Field(default=24.0, ge=0.0)
    default_sla_packing_hours: float = Field(default=24.0, ge=0.0)
    default_sla_available_hours: float = Field(default=48.0, ge=0.0)
    default_sla_billed_hours: float = Field(default=48.0, ge=0.0)
    default_sla_dispatched_hours: float = Field(default=96.0, ge=0.0)
    default_sla_delivered_hours: float = Field(default=120.0, ge=0.0)

    # Record store
    store_page_size: int = Field(default=1000, ge=1, description="Rows per paginated read (server limit).")
    store_write_batch_size: int = Field(default=500, ge=1, description="Rows per insert/upsert request.")

    # External lookups
    route_sheet_url: Optional[str] = Field(
        default="https://docs.google.com/spreadsheets/d/1dTljUAvscAY-PpaiCkGnUK_ikgcB0S2Xzi2cK8I-GJM/export?format=csv&gid=0",
        description="Published CSV mapping person names to route labels.",
    )
    excluded_routes: tuple[str, ...] = Field(
        default=(
            "CAMPOS DOS GOYTACAZES",
            "CARAPEBUS",
            "#N/A",
            'E.A.MACHA"',
            "MACAÉ",
            "SÃO JOÃO DA BARRA",
            "TOCOS",
            "TRAVESSÃO",
        ),
        description="Route labels in the published sheet that are placeholders, not routes.",
    )
    holidays_api_url: str = Field(default="https://date.nager.at/api/v3/PublicHolidays")
    holidays_country_code: str = Field(default="BR")
    http_timeout_seconds: float = Field(default=15.0, ge=0.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", "excluded_routes", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
