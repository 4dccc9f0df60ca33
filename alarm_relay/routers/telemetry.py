"""
Telemetry Router

Sensor and image data:
- Single sensor reading / image uploads
- Batch upload of both
- Latest image and full listings

Handlers are sync so file I/O runs in the threadpool.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from ..common.exceptions import ValidationError
from ..dependencies.services import get_telemetry_store
from ..services.telemetry_store import TelemetryStore

router = APIRouter()


@router.post("/sensor-data")
def receive_sensor_data(
    payload: Any = Body(default=None),
    store: TelemetryStore = Depends(get_telemetry_store),
):
    """Receive a sensor reading: {sensorType, value, timestamp}."""
    store.append_sensor(payload)
    return {"message": "Sensor data received successfully"}


@router.post("/all-image-data")
def receive_image_data(
    payload: Any = Body(default=None),
    store: TelemetryStore = Depends(get_telemetry_store),
):
    """Receive an image: {image, timestamp}."""
    store.append_image(payload)
    return {"message": "Image data received successfully"}


@router.post("/batch-update")
def batch_update(
    payload: Any = Body(default=None),
    store: TelemetryStore = Depends(get_telemetry_store),
):
    """
    Store many sensor readings and images at once.

    Both arrays are required (either may be empty). Entries missing
    fields are skipped; the response says how many were skipped.
    """
    if not isinstance(payload, dict):
        payload = {}

    missing = [
        name for name in ("sensors", "images")
        if not isinstance(payload.get(name), list)
    ]
    if missing:
        raise ValidationError(missing)

    result = store.append_batch(payload["sensors"], payload["images"])
    return {"message": "Batch update received successfully", **result.to_dict()}


@router.get("/latest-image")
def latest_image(store: TelemetryStore = Depends(get_telemetry_store)):
    """Most recent image by timestamp. 404 if there are none."""
    record = store.latest_image()
    return {"image": record["image"], "timestamp": record["timestamp"]}


@router.get("/sensor-data")
def list_sensor_data(store: TelemetryStore = Depends(get_telemetry_store)):
    return store.read_all_sensors()


@router.get("/image-data")
def list_image_data(store: TelemetryStore = Depends(get_telemetry_store)):
    return store.read_all_images()
