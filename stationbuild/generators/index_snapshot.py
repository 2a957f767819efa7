import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from station_libs.point_index.index import Index, Point, Source
from station_libs.point_index.results import RebuildReport


def write_json(file_path: Path, data: Dict) -> bool:
    try:
        with open(file_path, "w") as f:
            json.dump(data, f, indent=2)
        print(f"✅ Successfully wrote to {file_path}")
        return True
    except OSError as e:
        print(f"❌ Error writing to {file_path}: {e}")
        return False


def point_to_dict(point: Point) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": point.id,
        "name": point.name,
        "addr": point.addr,
        "kind": point.kind.name.lower(),
        "writable": point.writable,
    }
    if point.enums:
        data["enums"] = list(point.enums)
    if point.unit is not None:
        data["unit"] = point.unit
    return data


def source_to_dict(source: Source) -> Dict[str, Any]:
    return {
        "id": source.id,
        "name": source.name,
        "path": source.path,
        "points": [point_to_dict(p) for _, p in sorted(source.points.items())],
    }


class IndexSnapshotGenerator:
    """Writes the published point index as a JSON snapshot."""

    def __init__(self, index: Index, output_path: Path, report: Optional[RebuildReport] = None, station_name: Optional[str] = None):
        self.index = index
        self.output_path = Path(output_path)
        self.report = report
        self.station_name = station_name

    def build(self) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "generated_at": datetime.now(tz=timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
            "station": self.station_name,
            "total_sources": self.index.num_sources(),
            "total_points": self.index.num_points(),
        }
        if self.report is not None:
            metadata["rebuild"] = {
                "elapsed_seconds": round(self.report.elapsed_seconds, 6),
                "components_scanned": self.report.components_scanned,
                "failed": self.report.num_failed,
                "collisions": self.report.collisions,
            }
        sources = sorted(self.index.sources(), key=lambda s: s.path)
        return {
            "metadata": metadata,
            "sources": [source_to_dict(s) for s in sources],
        }

    def generate(self) -> bool:
        print("\n--- Generating Point Index Snapshot ---")
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        return write_json(self.output_path, self.build())
