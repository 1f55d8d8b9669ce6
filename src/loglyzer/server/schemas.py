"""JSON wire contract for the stats feed."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..core.stats import StatsSnapshot


class IpCount(BaseModel):
    ip: str
    count: int = Field(ge=0)


class PathCount(BaseModel):
    path: str
    count: int = Field(ge=0)


class BucketCount(BaseModel):
    bucket_start: datetime = Field(description="UTC start of the bucket.")
    count: int = Field(ge=0)


class StatsResponse(BaseModel):
    """Full current snapshot; no pagination."""

    total: int = Field(ge=0, description="Admitted records.")
    unparsable: int = Field(ge=0, description="Lines that did not parse.")
    filtered: int = Field(ge=0, description="Parsed records outside the time window.")
    status_codes: dict[str, int] = Field(default_factory=dict, description="Status code -> count.")
    top_ips: list[IpCount] = Field(default_factory=list)
    top_paths: list[PathCount] = Field(default_factory=list)
    time_series: list[BucketCount] = Field(default_factory=list)
    bucket_seconds: int = Field(ge=1)

    @classmethod
    def from_snapshot(cls, snap: StatsSnapshot) -> StatsResponse:
        return cls(
            total=snap.total,
            unparsable=snap.unparsable,
            filtered=snap.filtered,
            status_codes={str(code): n for code, n in snap.status_codes},
            top_ips=[IpCount(ip=ip, count=n) for ip, n in snap.top_ips],
            top_paths=[PathCount(path=p, count=n) for p, n in snap.top_paths],
            time_series=[BucketCount(bucket_start=ts, count=n) for ts, n in snap.time_series],
            bucket_seconds=snap.bucket_seconds,
        )


def snapshot_to_dict(snap: StatsSnapshot) -> dict:
    """JSON-ready dict for a snapshot (datetimes as ISO-8601 strings)."""
    return StatsResponse.from_snapshot(snap).model_dump(mode="json")
