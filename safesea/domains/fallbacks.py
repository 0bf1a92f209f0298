"""
Placeholder records shown while the backend is unreachable.

Every record carries `"placeholder": True` and a "Development Mode" marker so
it can never be mistaken for real telemetry, even after it leaves the
`Degraded` wrapper.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

DEV_BOAT_ID = "DEV-BOAT-001"


def _iso(now: datetime, minutes_ago: float = 0) -> str:
    return (now - timedelta(minutes=minutes_ago)).isoformat()


def fallback_weather(now: datetime | None = None) -> list[dict[str, Any]]:
    now = now or datetime.now(timezone.utc)
    return [
        {
            "id": 1,
            "temperature": 25,
            "humidity": 60,
            "windSpeed": 2.5,  # m/s
            "condition": "Partly Cloudy",
            "location": "Development Mode",
            "pressure": 1013,
            "visibility": 10,
            "timestamp": _iso(now),
            "placeholder": True,
        }
    ]


def fallback_locations(now: datetime | None = None) -> list[dict[str, Any]]:
    now = now or datetime.now(timezone.utc)
    return [
        {
            "id": 1,
            "Latitude": -6.2088,
            "Longitude": 106.8456,
            "Timestamp": _iso(now),
            "BoatID": DEV_BOAT_ID,
            "address": "Development Mode - Jakarta, Indonesia",
            "accuracy": 10,
            "placeholder": True,
        }
    ]


def fallback_alerts(now: datetime | None = None) -> list[dict[str, Any]]:
    now = now or datetime.now(timezone.utc)
    alerts = [
        ("high_001", "Weather", "SEVERE STORM WARNING: Wind speeds exceeding 25 m/s detected. Seek immediate shelter!", 0, "High"),
        ("med_002", "Navigation", "Shallow water detected ahead. Reduce speed and navigate carefully.", 5, "Medium"),
        ("low_003", "Weather", "Tide change expected in next 30 minutes. Plan accordingly.", 10, "Low"),
        ("high_004", "Safety", "EMERGENCY: Engine temperature critical! Reduce speed immediately!", 2, "High"),
        ("med_005", "Equipment", "GPS signal weak. Switch to backup navigation system.", 7.5, "Medium"),
    ]
    return [
        {
            "AlertID": alert_id,
            "AlertType": alert_type,
            "Message": f"{message} (Development Mode)",
            "Timestamp": _iso(now, minutes_ago),
            "Severity": severity,
            "BoatID": DEV_BOAT_ID,
            "placeholder": True,
        }
        for alert_id, alert_type, message, minutes_ago, severity in alerts
    ]
