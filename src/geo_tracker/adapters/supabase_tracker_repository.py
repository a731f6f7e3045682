"""Supabase-backed tracker repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from geo_tracker.domain.telemetry import TelemetrySample
from geo_tracker.domain.trackers import TrackerRecord
from geo_tracker.services.sync import TrackerRepository


@dataclass
class SupabaseTrackerRepository(TrackerRepository):
    """Supabase implementation for tracker sessions and locations."""

    client: Client

    def get_or_create_tracker(
        self, tracker_id: str, user_agent: str | None = None
    ) -> TrackerRecord:
        """Return the tracker row, inserting it when missing."""
        response = (
            self.client.table("trackers")
            .select("id, created_at")
            .eq("id", tracker_id)
            .limit(1)
            .execute()
        )
        if response.data:
            return _to_record(response.data[0])

        response = (
            self.client.table("trackers")
            .upsert(
                {"id": tracker_id, "user_agent": user_agent},
                on_conflict="id",
                ignore_duplicates=True,
            )
            .execute()
        )
        if response.data:
            return _to_record(response.data[0])
        # Another writer created the row between the select and the upsert.
        return TrackerRecord(id=tracker_id, created_at=None)

    def add_location(self, tracker_id: str, sample: TelemetrySample) -> None:
        """Insert one location row for a tracker."""
        response = (
            self.client.table("tracker_locations")
            .insert(
                {
                    "tracker_id": tracker_id,
                    "latitude": sample.latitude,
                    "longitude": sample.longitude,
                    "accuracy": sample.accuracy,
                    "captured_at": sample.timestamp.isoformat(),
                    "device_info": sample.device_info.to_record(),
                    "ip": sample.ip,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to add tracker location")


def _to_record(row: dict[str, object]) -> TrackerRecord:
    created_at = row.get("created_at")
    return TrackerRecord(
        id=str(row["id"]),
        created_at=(
            datetime.fromisoformat(created_at) if isinstance(created_at, str) else None
        ),
    )
