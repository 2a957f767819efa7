"""Read and write-back helpers for API layers serving the published index."""

from __future__ import annotations

from typing import Optional

from .ids import handle_from_point_id
from .index import Index, Point, Source
from .tree import ComponentTree, Node, StatusValue


def lookup_point(index: Index, source_id: str, addr: str) -> Optional[Point]:
	return index.lookup_point(source_id, addr)


def lookup_source(index: Index, source_id: str) -> Optional[Source]:
	return index.get_source(source_id)


def source_count(index: Index) -> int:
	return index.num_sources()


def resolve_point_node(tree: ComponentTree, point: Point) -> Optional[Node]:
	"""Find the component a point was built from, via its handle."""
	return tree.resolve_handle(handle_from_point_id(point.id))


def read_point_value(point: Point, tree: Optional[ComponentTree] = None) -> Optional[StatusValue]:
	"""Current 'out' value of a point, or None if it has none.

	Uses the point's own back-reference, or resolves it through tree.
	"""
	node = point.node
	if node is None and tree is not None:
		node = resolve_point_node(tree, point)
	if node is None:
		return None
	out = node.get("out")
	if isinstance(out, StatusValue):
		return out
	return None
