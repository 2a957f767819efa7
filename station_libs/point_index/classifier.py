from __future__ import annotations

import enum
from typing import TYPE_CHECKING, List, Optional, Tuple

from .errors import AddressingError
from .slot_path import path_to_address_suffix, relative_slot_path, strip_scheme
from .tree import Node

if TYPE_CHECKING:
	from .index import Source


CONTROL_POINT_TYPE = "control:ControlPoint"


class PointKind(str, enum.Enum):
	"""Indexable point kinds. The value is the address prefix."""
	ANALOG_INPUT = "ai"
	ANALOG_OUTPUT = "av"
	BINARY_INPUT = "bi"
	BINARY_OUTPUT = "bv"
	MULTI_STATE_INPUT = "ei"
	MULTI_STATE_OUTPUT = "ev"

	@property
	def prefix(self) -> str:
		return self.value

	@property
	def writable(self) -> bool:
		return self in (PointKind.ANALOG_OUTPUT, PointKind.BINARY_OUTPUT, PointKind.MULTI_STATE_OUTPUT)

	@property
	def multi_state(self) -> bool:
		return self in (PointKind.MULTI_STATE_INPUT, PointKind.MULTI_STATE_OUTPUT)


# Writable types are subtypes of their read-only counterparts, so they go first.
_KIND_BY_TYPE: List[Tuple[str, PointKind]] = [
	("control:NumericWritable", PointKind.ANALOG_OUTPUT),
	("control:NumericPoint", PointKind.ANALOG_INPUT),
	("control:BooleanWritable", PointKind.BINARY_OUTPUT),
	("control:BooleanPoint", PointKind.BINARY_INPUT),
	("control:EnumWritable", PointKind.MULTI_STATE_OUTPUT),
	("control:EnumPoint", PointKind.MULTI_STATE_INPUT),
]


def classify(node: Node) -> Optional[PointKind]:
	for type_spec, kind in _KIND_BY_TYPE:
		if node.is_type(type_spec):
			return kind
	return None


def is_control_point(node: Node) -> bool:
	return node.is_type(CONTROL_POINT_TYPE)


def point_address(kind: Optional[PointKind], suffix: str) -> str:
	if kind is None:
		raise AddressingError(f"Unsupported point type for address suffix '{suffix}'")
	return f"{kind.prefix}.{suffix}"


def build_point_address(source: "Source", node: Node, kind: Optional[PointKind]) -> str:
	"""Address of a point relative to its source, e.g. 'av.Points.ZoneTemp'."""
	relative = relative_slot_path(strip_scheme(node.slot_path), source.slot_path)
	return point_address(kind, path_to_address_suffix(relative))
