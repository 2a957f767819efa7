from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .classifier import PointKind
from .errors import SealedIndexError


@dataclass(frozen=True)
class Point:
	id: str
	name: str
	addr: str
	kind: PointKind
	enums: Optional[Tuple[str, ...]] = None
	unit: Optional[str] = None
	# originating component, kept for write-back only
	node: Any = field(default=None, compare=False, repr=False)

	@property
	def writable(self) -> bool:
		return self.kind.writable


class Source:
	"""A device or equipment grouping that owns a set of points keyed by address."""

	def __init__(self, id: str, name: str, path: str, slot_path: str, node: Any = None):
		self.id = id
		self.name = name
		self.path = path
		self.slot_path = slot_path
		self.node = node
		self._points: Dict[str, Point] = {}
		self._sealed = False

	def __repr__(self) -> str:
		return f"Source(id={self.id!r}, name={self.name!r}, path={self.path!r}, points={len(self._points)})"

	@property
	def points(self) -> Mapping[str, Point]:
		return MappingProxyType(self._points)

	def add_point(self, point: Point) -> Optional[Point]:
		"""Insert a point by address. An existing point with the same address is
		replaced and returned."""
		if self._sealed:
			raise SealedIndexError(f"Source '{self.id}' belongs to a published index")
		replaced = self._points.get(point.addr)
		self._points[point.addr] = point
		return replaced

	def get_point(self, addr: str) -> Optional[Point]:
		return self._points.get(addr)

	def num_points(self) -> int:
		return len(self._points)

	def seal(self) -> None:
		self._sealed = True


class Index:
	"""Two-level index: source id -> Source -> address -> Point.

	An index is filled once by a rebuild and sealed before it is published.
	"""

	def __init__(self):
		self._sources: Dict[str, Source] = {}
		self._sealed = False

	def _check_mutable(self) -> None:
		if self._sealed:
			raise SealedIndexError("Published index cannot be modified")

	def clear(self) -> None:
		self._check_mutable()
		self._sources.clear()

	def add_source(self, source: Source) -> None:
		self._check_mutable()
		self._sources[source.id] = source

	def get_source(self, source_id: str) -> Optional[Source]:
		return self._sources.get(source_id)

	def num_sources(self) -> int:
		return len(self._sources)

	def num_points(self) -> int:
		return sum(s.num_points() for s in self._sources.values())

	def sources(self) -> List[Source]:
		return list(self._sources.values())

	def __iter__(self) -> Iterator[Source]:
		return iter(self.sources())

	def __len__(self) -> int:
		return len(self._sources)

	def lookup_point(self, source_id: str, addr: str) -> Optional[Point]:
		source = self._sources.get(source_id)
		if source is None:
			return None
		return source.get_point(addr)

	def find_point(self, point_id: str) -> Optional[Point]:
		for source in self._sources.values():
			for point in source.points.values():
				if point.id == point_id:
					return point
		return None

	@property
	def sealed(self) -> bool:
		return self._sealed

	def seal(self) -> None:
		for source in self._sources.values():
			source.seal()
		self._sealed = True
