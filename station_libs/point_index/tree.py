from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple


COMPONENT_TYPE = "baja:Component"

# type spec -> supertype spec
BASE_TYPES: Mapping[str, Optional[str]] = {
	COMPONENT_TYPE: None,
	"baja:Folder": COMPONENT_TYPE,
	"baja:Station": COMPONENT_TYPE,
	"baja:Service": COMPONENT_TYPE,
	"baja:ServiceContainer": COMPONENT_TYPE,
	"control:ControlPoint": COMPONENT_TYPE,
	"control:NumericPoint": "control:ControlPoint",
	"control:NumericWritable": "control:NumericPoint",
	"control:BooleanPoint": "control:ControlPoint",
	"control:BooleanWritable": "control:BooleanPoint",
	"control:EnumPoint": "control:ControlPoint",
	"control:EnumWritable": "control:EnumPoint",
	"control:StringPoint": "control:ControlPoint",
	"control:StringWritable": "control:StringPoint",
	"driver:DeviceNetwork": COMPONENT_TYPE,
	"driver:Device": COMPONENT_TYPE,
	"driver:PointDeviceExt": COMPONENT_TYPE,
	"driver:PointFolder": "baja:Folder",
}


@dataclass(frozen=True)
class StatusValue:
	"""Value of a control point's 'out' slot."""
	value: Any
	status: str = "ok"


class Node(Protocol):
	"""Read-only view of one component in the station tree."""

	@property
	def name(self) -> str: ...

	@property
	def display_name(self) -> str: ...

	@property
	def parent(self) -> Optional["Node"]: ...

	@property
	def handle(self) -> str: ...

	@property
	def slot_path(self) -> str: ...

	@property
	def type_spec(self) -> str: ...

	def is_type(self, spec: str) -> bool: ...

	def get(self, attr: str) -> Any: ...


class ComponentTree(Protocol):
	def all_components(self) -> Iterable[Node]: ...

	def resolve_handle(self, handle: str) -> Optional[Node]: ...


class TypeRegistry:
	"""Single-inheritance type lineage keyed by 'module:TypeName' specs.

	Unknown specs are treated as direct subtypes of baja:Component.
	"""

	def __init__(self, extra: Optional[Mapping[str, str]] = None):
		self._supertypes: Dict[str, Optional[str]] = dict(BASE_TYPES)
		self._lineage_cache: Dict[str, Tuple[str, ...]] = {}
		if extra:
			self.register_all(extra)

	def register(self, spec: str, supertype: str) -> None:
		if spec in self._supertypes:
			raise ValueError(f"Type '{spec}' is already registered")
		if supertype not in self._supertypes:
			raise ValueError(f"Unknown supertype '{supertype}' for type '{spec}'")
		self._supertypes[spec] = supertype
		self._lineage_cache.clear()

	def register_all(self, types: Mapping[str, str]) -> None:
		"""Register a batch of types in any order, as long as every supertype resolves."""
		pending = dict(types)
		while pending:
			ready = [s for s, sup in pending.items() if sup in self._supertypes]
			if not ready:
				unresolved = ", ".join(f"{s} -> {sup}" for s, sup in sorted(pending.items()))
				raise ValueError(f"Unresolvable supertypes: {unresolved}")
			for spec in ready:
				self.register(spec, pending.pop(spec))

	def is_known(self, spec: str) -> bool:
		return spec in self._supertypes

	def lineage(self, spec: str) -> Tuple[str, ...]:
		"""Return spec followed by all of its supertypes, most specific first."""
		cached = self._lineage_cache.get(spec)
		if cached is not None:
			return cached
		chain: List[str] = []
		current: Optional[str] = spec
		while current is not None:
			chain.append(current)
			current = self._supertypes.get(current, COMPONENT_TYPE)
		result = tuple(chain)
		self._lineage_cache[spec] = result
		return result

	def is_type(self, spec: str, target: str) -> bool:
		return target in self.lineage(spec)
