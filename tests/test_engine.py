import logging
import threading

import pytest

from station_libs.point_index.classifier import PointKind
from station_libs.point_index.engine import ReindexEngine, index_node, make_point
from station_libs.point_index.errors import RebuildFailure, RebuildInProgressError
from station_libs.point_index.index import Index
from station_libs.point_index.results import EngineState, NodeOutcome, SkipReason
from station_libs.point_index.sources import SourceResolver
from station_libs.point_index.station_tree import StationTree


ENGINE_LOGGER = "station_libs.point_index.engine"
AHU = "slot:/Drivers/Net/AHU$2d1"


class _HookedTree:
    """Wraps a tree and runs a hook while enumeration is halfway through."""

    def __init__(self, tree, hook=None, fail_at=None):
        self._tree = tree
        self.hook = hook
        self.fail_at = fail_at

    def all_components(self):
        comps = self._tree.all_components()
        for i, comp in enumerate(comps):
            if self.fail_at is not None and i == self.fail_at:
                raise RuntimeError("component space unavailable")
            if self.hook is not None and i == len(comps) // 2:
                self.hook()
            yield comp

    def resolve_handle(self, handle):
        return self._tree.resolve_handle(handle)


def _snapshot(index: Index):
    return {
        (source.id, addr, point.id)
        for source in index.sources()
        for addr, point in source.points.items()
    }


def test_rebuild_indexes_points(tree):
    engine = ReindexEngine(tree)
    assert engine.state == EngineState.IDLE
    assert engine.index.num_sources() == 0

    report = engine.rebuild()

    index = engine.index
    assert engine.state == EngineState.COMPLETED
    assert report.state == EngineState.COMPLETED
    assert report.components_scanned == 22
    assert report.num_sources == index.num_sources() == 4
    assert report.num_points == index.num_points() == 9
    assert report.num_failed == 0
    assert report.collisions == 0
    assert report.skipped[SkipReason.UNSUPPORTED_POINT] == 1
    assert report.skipped[SkipReason.EXCLUDED_SOURCE] == 1
    assert report.skipped[SkipReason.NOT_A_POINT] == 11
    assert index.sealed

    ahu = index.get_source("a1")
    assert sorted(ahu.points) == [
        "ai.points.SupplyTemp",
        "av.points.SupplySetpoint",
        "bi.points.FanStatus",
        "bv.points.FanCmd",
        "ei.points.Mode",
        "ev.points.Occupancy",
    ]


def test_rebuild_point_details(tree, component):
    engine = ReindexEngine(tree)
    engine.rebuild()
    ahu = engine.index.get_source("a1")

    temp = ahu.get_point("ai.points.SupplyTemp")
    assert temp.name == "Supply Temp"
    assert temp.unit == "°F"
    assert temp.enums is None
    assert temp.kind == PointKind.ANALOG_INPUT
    assert temp.node is component(f"{AHU}/points/Supply$20Temp")
    assert temp.id == "pt:" + temp.node.handle[2:]

    # literal 'null' unit means no unit
    assert ahu.get_point("av.points.SupplySetpoint").unit is None
    assert ahu.get_point("ev.points.Occupancy").enums == ("unocc", "occ", "standby")
    assert ahu.get_point("ei.points.Mode").enums is None

    logic = [s for s in engine.index.sources() if s.path == "/Logic"][0]
    assert logic.get_point("ai.ZoneTemp").id == "pt:f00"


def test_rebuild_is_idempotent(station_definition):
    tree = StationTree(station_definition)
    engine = ReindexEngine(tree)
    engine.rebuild()
    first = _snapshot(engine.index)
    engine.rebuild()
    assert _snapshot(engine.index) == first

    # a fresh tree from the same definition gets the same identities
    other = ReindexEngine(StationTree(station_definition))
    other.rebuild()
    assert _snapshot(other.index) == first


def test_rebuild_logs_summary(tree, caplog):
    caplog.set_level(logging.DEBUG, logger=ENGINE_LOGGER)
    ReindexEngine(tree).rebuild()
    messages = [r.getMessage() for r in caplog.records]
    assert "Reindex started..." in messages
    assert any(m.startswith("Reindex complete [") and m.endswith("4 sources, 9 points]") for m in messages)
    assert any(m.startswith("Unsupported point: Label") for m in messages)
    assert any(m.startswith("Source not found for point: Login Count") for m in messages)
    assert "Total components searched in station: 22" in messages


def test_failing_node_is_isolated(tree, component, monkeypatch, caplog):
    caplog.set_level(logging.INFO, logger=ENGINE_LOGGER)
    broken = component(f"{AHU}/points/Supply$20Temp")

    def _boom(attr):
        raise RuntimeError("facets unreadable")

    monkeypatch.setattr(broken, "get", _boom)
    engine = ReindexEngine(tree)
    report = engine.rebuild()

    assert engine.state == EngineState.COMPLETED
    assert report.num_failed == 1
    assert report.failures[0].node is broken
    assert isinstance(report.failures[0].error, RuntimeError)
    assert engine.index.num_points() == 8
    assert engine.index.lookup_point("a1", "ai.points.SupplyTemp") is None
    assert engine.index.lookup_point("a1", "bv.points.FanCmd") is not None

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "FAILED to index: Supply Temp" in errors[0].getMessage()
    assert errors[0].exc_info is not None


def test_failing_classification_is_isolated(tree, component, monkeypatch):
    broken = component("slot:/Logic/Zone$20Temp")

    def _boom(spec):
        raise TypeError("type info unavailable")

    monkeypatch.setattr(broken, "is_type", _boom)
    report = ReindexEngine(tree).rebuild()
    assert report.num_failed == 1
    assert report.num_points == 8


class _UnprintableError(RuntimeError):
    def __str__(self):
        raise ValueError("no str")


def test_unprintable_node_error_is_isolated(tree, component, monkeypatch, caplog):
    caplog.set_level(logging.INFO, logger=ENGINE_LOGGER)
    broken = component(f"{AHU}/points/Supply$20Temp")

    def _boom(attr):
        raise _UnprintableError()

    monkeypatch.setattr(broken, "get", _boom)
    engine = ReindexEngine(tree)
    report = engine.rebuild()

    assert engine.state == EngineState.COMPLETED
    assert report.num_failed == 1
    assert isinstance(report.failures[0].error, _UnprintableError)
    assert engine.index.num_points() == 8

    errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
    assert errors == ["FAILED to index: Supply Temp [slot:/Drivers/Net/AHU$2d1/points/Supply$20Temp]: <unprintable _UnprintableError>"]


def test_interrupted_rebuild_leaves_failed_state(tree, component, monkeypatch):
    engine = ReindexEngine(tree)
    engine.rebuild()
    previous = engine.index
    broken = component(f"{AHU}/points/Supply$20Temp")

    def _interrupt(attr):
        raise KeyboardInterrupt()

    monkeypatch.setattr(broken, "get", _interrupt)
    with pytest.raises(KeyboardInterrupt):
        engine.rebuild()

    assert engine.state == EngineState.FAILED
    assert not engine.running
    assert engine.last_report.state == EngineState.FAILED
    assert isinstance(engine.last_report.error, KeyboardInterrupt)
    assert engine.index is previous

    # lock was released, so the next rebuild runs
    monkeypatch.undo()
    engine.rebuild()
    assert engine.state == EngineState.COMPLETED
    assert engine.index.num_points() == 9


def test_enumeration_failure_keeps_previous_index(tree, caplog):
    hooked = _HookedTree(tree)
    engine = ReindexEngine(hooked)
    engine.rebuild()
    previous = engine.index

    hooked.fail_at = 5
    caplog.set_level(logging.INFO, logger=ENGINE_LOGGER)
    with pytest.raises(RebuildFailure) as excinfo:
        engine.rebuild()

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert engine.index is previous
    assert engine.index.num_points() == 9
    assert engine.state == EngineState.FAILED
    assert engine.last_report.state == EngineState.FAILED
    assert isinstance(engine.last_report.error, RuntimeError)
    assert any("Reindex FAILED" in r.getMessage() for r in caplog.records if r.levelno == logging.ERROR)

    # administrative trigger does not raise; a later rebuild recovers
    engine.trigger_rebuild()
    assert engine.index is previous
    hooked.fail_at = None
    engine.trigger_rebuild()
    assert engine.state == EngineState.COMPLETED
    assert engine.index is not previous


def test_readers_keep_their_snapshot(tree):
    hooked = _HookedTree(tree)
    engine = ReindexEngine(hooked)
    engine.rebuild()
    before = engine.index
    before_snapshot = _snapshot(before)
    seen_during = []

    hooked.hook = lambda: seen_during.append(engine.index)
    engine.rebuild()

    assert seen_during == [before]
    assert engine.index is not before
    assert _snapshot(before) == before_snapshot
    assert _snapshot(engine.index) == before_snapshot


def test_overlapping_rebuild_is_rejected(tree, caplog):
    entered = threading.Event()
    release = threading.Event()

    def _block():
        entered.set()
        release.wait(5)

    engine = ReindexEngine(_HookedTree(tree, hook=_block))
    worker = threading.Thread(target=engine.rebuild)
    worker.start()
    try:
        assert entered.wait(5)
        assert engine.running
        with pytest.raises(RebuildInProgressError):
            engine.rebuild()
        caplog.set_level(logging.WARNING, logger=ENGINE_LOGGER)
        engine.trigger_rebuild()
        assert any("trigger rejected" in r.getMessage() for r in caplog.records)
    finally:
        release.set()
        worker.join(5)

    assert engine.state == EngineState.COMPLETED
    assert engine.index.num_points() == 9


def test_at_steady_state(tree, caplog):
    caplog.set_level(logging.INFO, logger=ENGINE_LOGGER)
    engine = ReindexEngine(tree)
    engine.at_steady_state()
    assert engine.index.num_sources() == 4
    assert any(r.getMessage().startswith("Point index ready [version=") for r in caplog.records)


def test_index_node_results(tree, component):
    resolver = SourceResolver(Index())
    assert index_node(tree.root, resolver).reason == SkipReason.NOT_A_POINT
    assert index_node(component(f"{AHU}/points/Label"), resolver).reason == SkipReason.UNSUPPORTED_POINT

    result = index_node(component(f"{AHU}/points/Fan$20Cmd"), resolver)
    assert result.outcome == NodeOutcome.INDEXED
    assert result.ok
    assert result.point.addr == "bv.points.FanCmd"
    assert result.source.id == "a1"

    again = index_node(component(f"{AHU}/points/Fan$20Cmd"), resolver)
    assert again.replaced is result.point


def test_index_node_reports_address_collision(tree, component, monkeypatch):
    # two components whose slot names only differ by escaped characters collapse onto one address
    temp = component(f"{AHU}/points/Supply$20Temp")
    twin = component(f"{AHU}/points/Supply$20Setpoint")
    monkeypatch.setattr(twin, "is_type", temp.is_type)
    monkeypatch.setattr(twin, "_slot_path", f"{AHU}/points/Supply$2dTemp")

    report = ReindexEngine(tree).rebuild()
    assert report.collisions == 1
    assert report.num_points == 8


def test_make_point_without_facets(tree, component):
    index = Index()
    resolver = SourceResolver(index)
    node = component(f"{AHU}/points/Fan$20Status")
    source = resolver.resolve(node)
    point = make_point(source, node, PointKind.BINARY_INPUT)
    assert point.unit is None
    assert point.enums is None
    assert point.addr == "bi.points.FanStatus"
