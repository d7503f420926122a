"""File-based persistence helpers for plan exports."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from ..config import settings
from ..models.delivery import FarmerDelivery
from ..services.outputs.delivery_formatter import deliveries_to_csv, delivery_to_json


class FileStorage:
    """Thin wrapper around the data root for storing JSON and CSV plan exports."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.output_root = self.root / "outputs"
        self.output_root.mkdir(parents=True, exist_ok=True)

    def make_run_directory(self, prefix: str = "plan") -> Path:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        path = self.output_root / f"{prefix}_{timestamp}"
        path.mkdir(parents=True, exist_ok=False)
        return path

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent)

    def write_csv(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(content)

    def export_plan(self, deliveries: Sequence[FarmerDelivery], metadata: dict[str, Any]) -> Path:
        """Write ``summary.json`` and ``trips.csv`` for one planned shift and return the run directory."""

        run_dir = self.make_run_directory(prefix="plan")
        summary = {
            "metadata": metadata,
            "trip_count": len(deliveries),
            "deliveries": [delivery_to_json(delivery) for delivery in deliveries],
        }
        self.write_json(run_dir / "summary.json", summary)
        self.write_csv(run_dir / "trips.csv", deliveries_to_csv(deliveries))
        return run_dir
