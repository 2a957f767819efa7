import copy
from pathlib import Path
from typing import Dict, List

import pytest

from station_libs.config_models.station_models import StationDefinition
from station_libs.point_index.station_tree import StationTree


def _comp(name: str, type_: str, children: List[Dict] = None, **extra) -> Dict:
    comp = {"name": name, "type": type_}
    comp.update(extra)
    if children:
        comp["children"] = children
    return comp


STATION = {
    "name": "test_station",
    "version": "1.0.0",
    "root": _comp("station", "baja:Station", [
        _comp("Services", "baja:ServiceContainer", [
            _comp("SecurityService", "baja:Service", [
                _comp("Users", "baja:Folder", [
                    _comp("Login Count", "control:NumericPoint"),
                ]),
            ]),
        ]),
        _comp("Drivers", "baja:Folder", [
            _comp("Net", "driver:DeviceNetwork", [
                _comp("AHU-1", "driver:Device", handle="a1", children=[
                    _comp("points", "driver:PointDeviceExt", [
                        _comp("Supply Temp", "control:NumericPoint", facets={"units": "°F"}, out={"value": 55.5}),
                        _comp("Supply Setpoint", "control:NumericWritable", facets={"units": "null"}),
                        _comp("Fan Cmd", "control:BooleanWritable", out={"value": True}),
                        _comp("Fan Status", "control:BooleanPoint"),
                        _comp("Occupancy", "control:EnumWritable", facets={"range": "{unocc=0,occ=1,standby=2}"}),
                        _comp("Mode", "control:EnumPoint", facets={"range": "{}"}),
                        _comp("Label", "control:StringPoint"),
                        _comp("Sub Folder", "driver:PointFolder", [
                            _comp("OA Damper", "control:NumericWritable"),
                        ]),
                    ]),
                ]),
                _comp("Loose", "driver:PointDeviceExt", [
                    _comp("Orphan Temp", "control:NumericPoint"),
                ]),
            ]),
        ]),
        _comp("Logic", "baja:Folder", [
            _comp("Zone Temp", "control:NumericPoint", handle="f00"),
        ]),
    ]),
}


def find(tree: StationTree, slot_path: str):
    for comp in tree.all_components():
        if comp.slot_path == slot_path:
            return comp
    raise KeyError(slot_path)


@pytest.fixture
def station_definition() -> StationDefinition:
    return StationDefinition.model_validate(copy.deepcopy(STATION))


@pytest.fixture
def tree(station_definition: StationDefinition) -> StationTree:
    return StationTree(station_definition)


@pytest.fixture
def config_base_dir() -> Path:
    return Path(__file__).parent.parent / "config_sources"


@pytest.fixture
def component(tree: StationTree):
    """Look up a component of the test tree by its slot path."""
    def _lookup(slot_path: str):
        return find(tree, slot_path)
    return _lookup
