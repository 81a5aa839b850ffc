from __future__ import annotations
import json
from pathlib import Path
from typing import Iterable, Dict, Any

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column
from shiptrack.infrastructure.config import settings
from shiptrack.infrastructure.database import Base


class EventLog:
    """
    Append-only JSON-lines file holding one shipment event record per line.
    """

    def __init__(self, path: Path):
        self._path = path
        self._path.touch(exist_ok=True)

    def append(self, record: Dict[str, Any]) -> bool:
        if self._exists(record["shipmentId"], record["id"]):
            return False

        with self._path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")
        return True

    def _exists(self, shipment_id: str, event_id: str) -> bool:
        return any(r["id"] == event_id for r in self.load_partition(shipment_id))

    def load_all(self) -> Iterable[Dict[str, Any]]:
        with self._path.open(encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    yield json.loads(line)

    def load_partition(self, shipment_id: str) -> Iterable[Dict[str, Any]]:
        return (r for r in self.load_all() if r["shipmentId"] == shipment_id)


class ShipmentEventModel(Base):
    __tablename__ = settings.events_table

    shipment_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    timestamp: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    details: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    # duplicate-check lookup; not unique
    __table_args__ = (Index("ix_shipment_events_dedup", "shipment_id", "status", "timestamp"),)
