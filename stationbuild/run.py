from pathlib import Path
import logging
import shutil
from datetime import date

from stationbuild.validation.station import StationValidator
from stationbuild.generators.index_snapshot import IndexSnapshotGenerator

from station_libs.config_models.index_settings import load_index_settings
from station_libs.point_index.engine import ReindexEngine
from station_libs.point_index.errors import RebuildFailure


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def main():
    project_root = Path(__file__).parent.parent
    config_base_dir = project_root / "config_sources"
    station_file = config_base_dir / "station_definition.yaml"
    settings_file = config_base_dir / "index_settings.yaml"
    snapshot_out = project_root / "artifacts" / "point_index" / "point_index.json"

    settings = load_index_settings(settings_file)
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    tree = StationValidator(station_file).validate()
    if tree is None:
        raise SystemExit(1)

    engine = ReindexEngine(tree, settings)
    try:
        report = engine.rebuild()
    except RebuildFailure:
        raise SystemExit(1)

    if not IndexSnapshotGenerator(engine.index, snapshot_out, report=report, station_name=tree.name).generate():
        raise SystemExit(1)

    # Also write a dated copy under artifacts/point_index/YYYY-MM-DD/
    dated_dir = snapshot_out.parent / date.today().isoformat()
    dated_dir.mkdir(parents=True, exist_ok=True)
    shutil.copy2(snapshot_out, dated_dir / snapshot_out.name)


if __name__ == "__main__":
    main()
