from __future__ import annotations

import logging
import threading
import time
from importlib.metadata import PackageNotFoundError, version as package_version
from typing import Optional

from station_libs.config_models.index_settings import IndexSettings

from .classifier import PointKind, build_point_address, classify, is_control_point
from .enum_range import parse_enum_range
from .errors import RebuildFailure, RebuildInProgressError
from .ids import point_id
from .index import Index, Point, Source
from .results import EngineState, NodeOutcome, NodeResult, RebuildReport, SkipReason, describe_error, describe_node
from .sources import SourceResolver
from .tree import ComponentTree, Node

logger = logging.getLogger(__name__)

DISTRIBUTION_NAME = "station-point-index"


def _module_version() -> str:
	try:
		return package_version(DISTRIBUTION_NAME)
	except PackageNotFoundError:
		return "unknown"


def make_point(source: Source, node: Node, kind: PointKind) -> Point:
	"""Build the Point for a classified component under its resolved source."""
	addr = build_point_address(source, node, kind)
	unit = None
	enums = None

	facets = node.get("facets")
	if facets is not None:
		unit = facets.get("units")
		if unit == "null":
			unit = None
		if kind.multi_state:
			enum_range = facets.get("range")
			if enum_range is not None:
				enums = parse_enum_range(str(enum_range))

	return Point(
		id=point_id(node),
		name=node.display_name,
		addr=addr,
		kind=kind,
		enums=tuple(enums) if enums else None,
		unit=unit,
		node=node,
	)


def index_node(node: Node, resolver: SourceResolver) -> NodeResult:
	"""Classify, resolve and insert one component. Never raises."""
	try:
		kind = classify(node)
		if kind is None:
			if is_control_point(node):
				return NodeResult.skipped(node, SkipReason.UNSUPPORTED_POINT)
			return NodeResult.skipped(node, SkipReason.NOT_A_POINT)

		if node.parent is None:
			return NodeResult.skipped(node, SkipReason.NO_PARENT)

		source = resolver.resolve(node)
		if source is None:
			return NodeResult.skipped(node, SkipReason.EXCLUDED_SOURCE)

		point = make_point(source, node, kind)
		replaced = source.add_point(point)
		return NodeResult.indexed(node, point, source, replaced)
	except Exception as e:
		return NodeResult.failed(node, e)


class ReindexEngine:
	"""Rebuilds the point index from the component tree and publishes it.

	Each rebuild fills a fresh Index; the published reference is replaced
	only once the whole tree has been walked, so readers holding `index`
	always see a complete snapshot. Overlapping rebuilds are rejected.
	"""

	def __init__(self, tree: ComponentTree, settings: Optional[IndexSettings] = None):
		self._tree = tree
		self._settings = settings or IndexSettings()
		self._lock = threading.Lock()
		self._state = EngineState.IDLE
		self._last_report: Optional[RebuildReport] = None

		self._index = Index()
		self._index.seal()

	@property
	def index(self) -> Index:
		"""The currently published index snapshot."""
		return self._index

	@property
	def state(self) -> EngineState:
		"""Outcome of the last rebuild, or RUNNING while one is in progress.

		COMPLETED and FAILED are resting states like IDLE: the engine never
		goes back to IDLE, and any of the three accepts a new trigger.
		"""
		return self._state

	@property
	def last_report(self) -> Optional[RebuildReport]:
		return self._last_report

	@property
	def settings(self) -> IndexSettings:
		return self._settings

	@property
	def tree(self) -> ComponentTree:
		return self._tree

	@property
	def running(self) -> bool:
		return self._state == EngineState.RUNNING

	def at_steady_state(self) -> None:
		"""Initial rebuild once the hosting station is up."""
		self.trigger_rebuild()
		logger.info(f"Point index ready [version={_module_version()}]")

	def trigger_rebuild(self) -> None:
		"""Administrative rebuild action. Outcome is only visible in the log and the index."""
		try:
			self.rebuild()
		except RebuildInProgressError as e:
			logger.warning(f"Reindex trigger rejected: {e}")
		except RebuildFailure:
			# already logged with its cause by rebuild()
			return

	def rebuild(self) -> RebuildReport:
		if not self._lock.acquire(blocking=False):
			raise RebuildInProgressError("a rebuild is already running")
		try:
			return self._rebuild()
		finally:
			self._lock.release()

	def _rebuild(self) -> RebuildReport:
		logger.info("Reindex started...")
		self._state = EngineState.RUNNING
		report = RebuildReport()
		t1 = time.monotonic()

		try:
			index = Index()
			resolver = SourceResolver(index, self._settings)
			for node in self._tree.all_components():
				result = index_node(node, resolver)
				report.record(result)
				self._log_result(result)
			index.seal()
		except Exception as e:
			self._mark_failed(report, t1, e)
			logger.error(f"Reindex FAILED after {report.elapsed_seconds:.3f}s: {describe_error(e)}", exc_info=True)
			raise RebuildFailure(f"Reindex failed: {describe_error(e)}") from e
		except BaseException as e:
			self._mark_failed(report, t1, e)
			logger.error(f"Reindex interrupted after {report.elapsed_seconds:.3f}s: {type(e).__name__}")
			raise

		# publish
		self._index = index

		report.elapsed_seconds = time.monotonic() - t1
		report.num_sources = index.num_sources()
		report.num_points = index.num_points()
		report.state = EngineState.COMPLETED
		self._last_report = report
		self._state = EngineState.COMPLETED

		logger.debug(f"Total components searched in station: {report.components_scanned}")
		if report.num_failed:
			logger.warning(f"Reindex skipped {report.num_failed} components due to errors")
		logger.info(f"Reindex complete [{report.summary()}]")
		return report

	def _mark_failed(self, report: RebuildReport, t1: float, error: BaseException) -> None:
		report.elapsed_seconds = time.monotonic() - t1
		report.state = EngineState.FAILED
		report.error = error
		self._last_report = report
		self._state = EngineState.FAILED

	def _log_result(self, result: NodeResult) -> None:
		if result.outcome == NodeOutcome.FAILED:
			logger.error(
				f"FAILED to index: {describe_node(result.node)}: {describe_error(result.error)}",
				exc_info=result.error,
			)
		elif result.outcome == NodeOutcome.SKIPPED:
			if result.reason in (SkipReason.NO_PARENT, SkipReason.EXCLUDED_SOURCE):
				logger.debug(f"Source not found for point: {describe_node(result.node)} ({result.reason.value})")
			elif result.reason == SkipReason.UNSUPPORTED_POINT:
				logger.debug(f"Unsupported point: {describe_node(result.node)}")
		elif result.replaced is not None:
			logger.debug(
				f"Address '{result.point.addr}' in source '{result.source.id}' reassigned "
				f"from {result.replaced.id} to {result.point.id}"
			)
