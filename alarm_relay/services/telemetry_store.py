"""
Telemetry Store

Append-only JSON-array files for sensor readings and images.

Each file is guarded by its own lock so concurrent read-modify-write
cycles never lose an append. Writes go to a temp file and are renamed
into place, so readers never see a half-written array.
"""

import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from ..common.exceptions import NotFoundError, StorageError, ValidationError
from ..common.logging_setup import get_service_logger

logger = get_service_logger("telemetry")

SENSOR_FIELDS = ("sensorType", "value", "timestamp")
IMAGE_FIELDS = ("image", "timestamp")


def missing_fields(entry: Any, required: Iterable[str]) -> list[str]:
    """
    Names of required fields that are absent, null or empty strings.

    Numeric zero and False count as present.
    """
    if not isinstance(entry, dict):
        return list(required)
    return [name for name in required if entry.get(name) is None or entry.get(name) == ""]


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp, or None if it isn't one"""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def select_latest(records: list[dict]) -> dict | None:
    """
    Record with the greatest timestamp.

    On ties, or when either timestamp can't be parsed, the later record
    in the sequence wins.
    """
    latest = None
    latest_ts = None
    for record in records:
        current_ts = parse_timestamp(record.get("timestamp"))
        if latest is not None and latest_ts and current_ts and latest_ts > current_ts:
            continue
        latest, latest_ts = record, current_ts
    return latest


@dataclass
class BatchCount:
    accepted: int = 0
    rejected: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"accepted": self.accepted, "rejected": self.rejected}


@dataclass
class BatchResult:
    """Accepted/rejected counts from a batch update"""
    sensors: BatchCount = field(default_factory=BatchCount)
    images: BatchCount = field(default_factory=BatchCount)

    def to_dict(self) -> dict[str, Any]:
        return {"sensors": self.sensors.to_dict(), "images": self.images.to_dict()}


class JsonArrayFile:
    """A single JSON array on disk with a writer lock"""

    def __init__(self, path: Path):
        self.path = path
        self.lock = threading.Lock()

    def ensure_exists(self) -> None:
        with self.lock:
            if not self.path.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._write([])
                logger.info(f"Created {self.path}", extra={"path": str(self.path)})

    def read(self) -> list[dict]:
        with self.lock:
            return self._read()

    def extend(self, records: list[dict]) -> None:
        if not records:
            return
        with self.lock:
            data = self._read()
            data.extend(records)
            self._write(data)

    def _read(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"{self.path.name} is not valid JSON: {e}", str(self.path)) from e
        except OSError as e:
            raise StorageError(f"cannot read {self.path.name}: {e}", str(self.path)) from e

        if not isinstance(data, list):
            raise StorageError(f"{self.path.name} does not hold a JSON array", str(self.path))
        return data

    def _write(self, data: list[dict]) -> None:
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            temp_path.replace(self.path)
        except OSError as e:
            raise StorageError(f"cannot write {self.path.name}: {e}", str(self.path)) from e


class TelemetryStore:
    """Sensor and image persistence"""

    def __init__(self, sensor_path: Path, image_path: Path):
        self.sensors = JsonArrayFile(sensor_path)
        self.images = JsonArrayFile(image_path)

    def ensure_files(self) -> None:
        """Create empty arrays for any file that doesn't exist yet"""
        self.sensors.ensure_exists()
        self.images.ensure_exists()

    def append_sensor(self, entry: Any) -> dict[str, Any]:
        record = _build_record(entry, SENSOR_FIELDS)
        self.sensors.extend([record])
        logger.debug(
            f"Sensor reading stored: {record['sensorType']}",
            extra={"sensor_type": record["sensorType"]},
        )
        return record

    def append_image(self, entry: Any) -> dict[str, Any]:
        record = _build_record(entry, IMAGE_FIELDS)
        self.images.extend([record])
        logger.debug("Image stored", extra={"image_timestamp": record["timestamp"]})
        return record

    def append_batch(self, sensors: list[Any], images: list[Any]) -> BatchResult:
        """
        Append every valid entry of both lists.

        Entries missing required fields are dropped and counted as rejected.
        """
        result = BatchResult()

        sensor_records = _collect(sensors, SENSOR_FIELDS, result.sensors)
        image_records = _collect(images, IMAGE_FIELDS, result.images)

        self.sensors.extend(sensor_records)
        self.images.extend(image_records)

        if result.sensors.rejected or result.images.rejected:
            logger.warning(
                f"Batch update dropped {result.sensors.rejected} sensor(s) "
                f"and {result.images.rejected} image(s) with missing fields",
                extra=result.to_dict(),
            )
        else:
            logger.info("Batch update stored", extra=result.to_dict())

        return result

    def read_all_sensors(self) -> list[dict]:
        return self.sensors.read()

    def read_all_images(self) -> list[dict]:
        return self.images.read()

    def latest_image(self) -> dict:
        latest = select_latest(self.images.read())
        if latest is None:
            raise NotFoundError("No image data available")
        return latest


def _build_record(entry: Any, required: tuple[str, ...]) -> dict[str, Any]:
    missing = missing_fields(entry, required)
    if missing:
        raise ValidationError(missing)
    return {name: entry[name] for name in required}


def _collect(entries: list[Any], required: tuple[str, ...], count: BatchCount) -> list[dict]:
    records = []
    for entry in entries:
        if missing_fields(entry, required):
            count.rejected += 1
            continue
        records.append({name: entry[name] for name in required})
        count.accepted += 1
    return records
