from __future__ import annotations

from typing import Optional

from station_libs.config_models.index_settings import IndexSettings

from .ids import source_id
from .index import Index, Source
from .slot_path import strip_scheme, unescape
from .tree import Node


class SourceResolver:
	"""Resolves the source (device or equipment) a point belongs to.

	Sources are created on first use and cached in the index being built,
	so every resolved parent component yields exactly one Source per rebuild.
	"""

	def __init__(self, index: Index, settings: Optional[IndexSettings] = None):
		self._index = index
		self._settings = settings or IndexSettings()

	def resolve(self, point: Node) -> Optional[Source]:
		parent = point.parent
		if parent is None:
			return None

		comp = self.find_source_node(parent)

		sid = source_id(comp)
		source = self._index.get_source(sid)
		if source is not None:
			return source

		slot_path = strip_scheme(comp.slot_path)
		path = unescape(slot_path)
		if self.is_excluded(path):
			return None

		source = Source(sid, comp.display_name, path, slot_path, node=comp)
		self._index.add_source(source)
		return source

	def find_source_node(self, orig: Node) -> Node:
		"""Walk up to the device when orig is the points extension directly under it."""
		p = orig.parent
		if p is None:
			return orig
		if orig.is_type(self._settings.point_device_ext_type) and p.is_type(self._settings.device_type):
			return p
		return orig

	def is_excluded(self, path: str) -> bool:
		return any(path.startswith(prefix) for prefix in self._settings.excluded_path_prefixes)
