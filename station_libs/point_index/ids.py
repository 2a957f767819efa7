from __future__ import annotations

from .tree import Node


HANDLE_SCHEME = "h:"
POINT_ID_PREFIX = "pt:"


def handle_suffix(handle: str) -> str:
	if not handle.startswith(HANDLE_SCHEME) or len(handle) == len(HANDLE_SCHEME):
		raise ValueError(f"Invalid component handle '{handle}'")
	return handle[len(HANDLE_SCHEME):]


def source_id(node: Node) -> str:
	"""Source id for a component: its handle without the 'h:' scheme."""
	return handle_suffix(node.handle)


def point_id(node: Node) -> str:
	return POINT_ID_PREFIX + handle_suffix(node.handle)


def handle_from_point_id(pid: str) -> str:
	"""Inverse of point_id(), used to write back to the originating component."""
	if not pid.startswith(POINT_ID_PREFIX):
		raise ValueError(f"Invalid point id '{pid}'")
	return HANDLE_SCHEME + pid[len(POINT_ID_PREFIX):]
