"""File-based persistence for SLA settings."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ..config import settings
from ..models.domain import SlaThresholds

logger = logging.getLogger(__name__)

SETTINGS_FILE = "sla_settings.json"


def default_thresholds() -> SlaThresholds:
    return SlaThresholds(
        max_business_days=settings.default_max_business_days,
        picking_hours=settings.default_sla_picking_hours,
        packing_hours=settings.default_sla_packing_hours,
        available_hours=settings.default_sla_available_hours,
        billed_hours=settings.default_sla_billed_hours,
        dispatched_hours=settings.default_sla_dispatched_hours,
        delivered_hours=settings.default_sla_delivered_hours,
    )


class SettingsStore:
    """Thin wrapper around the data root for the SLA thresholds JSON file."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.path = self.root / SETTINGS_FILE

    def load_thresholds(self) -> SlaThresholds:
        defaults = default_thresholds()
        if not self.path.exists():
            return defaults
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read {self.path}, using default SLA thresholds: {e}")
            return defaults
        if not isinstance(payload, dict):
            logger.warning(f"Ignoring malformed SLA settings in {self.path}")
            return defaults
        return SlaThresholds.from_dict(payload, defaults)

    def save_thresholds(self, thresholds: SlaThresholds) -> SlaThresholds:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(thresholds.to_dict(), handle, ensure_ascii=False, indent=2)
        logger.info(f"Saved SLA thresholds to {self.path}")
        return thresholds
