from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set

import yaml
from pydantic import ValidationError

from station_libs.config_models.station_models import ComponentDefinition, StationDefinition

from .errors import StationDefinitionError
from .ids import HANDLE_SCHEME
from .slot_path import SLOT_SCHEME, escape, unescape
from .tree import StatusValue, TypeRegistry


class Component:
	"""A component of an in-memory station tree."""

	def __init__(
		self,
		name: str,
		type_spec: str,
		handle: str,
		registry: TypeRegistry,
		parent: Optional["Component"] = None,
		display_name: Optional[str] = None,
		attributes: Optional[Mapping[str, Any]] = None,
	):
		self._name = name
		self._type_spec = type_spec
		self._handle = handle
		self._registry = registry
		self._parent = parent
		self._display_name = display_name
		self._attributes: Dict[str, Any] = dict(attributes or {})
		self._children: List[Component] = []
		if parent is None:
			self._slot_path = SLOT_SCHEME + "/"
		elif parent._parent is None:
			self._slot_path = parent._slot_path + name
		else:
			self._slot_path = parent._slot_path + "/" + name
		if parent is not None:
			parent._children.append(self)

	def __repr__(self) -> str:
		return f"Component({self._slot_path!r}, type={self._type_spec!r}, handle={self._handle!r})"

	@property
	def name(self) -> str:
		return self._name

	@property
	def display_name(self) -> str:
		if self._display_name is not None:
			return self._display_name
		return unescape(self._name)

	@property
	def parent(self) -> Optional["Component"]:
		return self._parent

	@property
	def children(self) -> List["Component"]:
		return list(self._children)

	@property
	def handle(self) -> str:
		return self._handle

	@property
	def slot_path(self) -> str:
		return self._slot_path

	@property
	def type_spec(self) -> str:
		return self._type_spec

	def is_type(self, spec: str) -> bool:
		return self._registry.is_type(self._type_spec, spec)

	def get(self, attr: str) -> Any:
		return self._attributes.get(attr)

	def walk(self) -> Iterator["Component"]:
		"""Depth-first, pre-order."""
		stack = [self]
		while stack:
			comp = stack.pop()
			yield comp
			stack.extend(reversed(comp._children))


class StationTree:
	"""Component tree built from a StationDefinition.

	Handles not fixed in the definition are assigned as increasing hex
	numbers in depth-first order, skipping any that are fixed, so the same
	definition always yields the same handles.
	"""

	def __init__(self, definition: StationDefinition):
		self.definition = definition
		try:
			self.registry = TypeRegistry(definition.types)
		except ValueError as e:
			raise StationDefinitionError(f"Invalid type declarations in station '{definition.name}': {e}") from e
		self._by_handle: Dict[str, Component] = {}
		self._reserved = self._collect_fixed_handles(definition.root)
		self._next_handle = 1
		self.root = self._build(definition.root, None)

	@property
	def name(self) -> str:
		return self.definition.name

	def _collect_fixed_handles(self, root: ComponentDefinition) -> Set[str]:
		fixed: Set[str] = set()
		stack = [root]
		while stack:
			comp_def = stack.pop()
			if comp_def.handle is not None:
				handle = comp_def.handle.lower()
				if handle in fixed:
					raise StationDefinitionError(f"Duplicate handle '{comp_def.handle}' in station '{self.definition.name}'")
				fixed.add(handle)
			stack.extend(comp_def.children)
		return fixed

	def _allocate_handle(self) -> str:
		while True:
			candidate = format(self._next_handle, "x")
			self._next_handle += 1
			if candidate not in self._reserved:
				return candidate

	def _build(self, comp_def: ComponentDefinition, parent: Optional[Component]) -> Component:
		try:
			slot_name = escape(comp_def.name)
		except ValueError as e:
			raise StationDefinitionError(str(e)) from e

		handle = comp_def.handle.lower() if comp_def.handle is not None else self._allocate_handle()
		attributes: Dict[str, Any] = {}
		if comp_def.facets is not None:
			attributes["facets"] = comp_def.facets.model_dump(exclude_none=True)
		if comp_def.out is not None:
			attributes["out"] = StatusValue(comp_def.out.value, comp_def.out.status.value)

		comp = Component(
			name=slot_name,
			type_spec=comp_def.type,
			handle=HANDLE_SCHEME + handle,
			registry=self.registry,
			parent=parent,
			display_name=comp_def.display_name,
			attributes=attributes,
		)
		self._by_handle[comp.handle] = comp
		for child_def in comp_def.children:
			self._build(child_def, comp)
		return comp

	def all_components(self) -> List[Component]:
		return list(self.root.walk())

	def resolve_handle(self, handle: str) -> Optional[Component]:
		return self._by_handle.get(handle)

	def __len__(self) -> int:
		return len(self._by_handle)


def load_station_definition(path: Path) -> StationDefinition:
	"""Load and validate a station definition YAML file."""
	path = Path(path)
	if not path.is_file():
		raise StationDefinitionError(f"Station definition not found at '{path}'")
	try:
		with open(path, "r", encoding="utf-8") as f:
			loaded = yaml.safe_load(f)
	except yaml.YAMLError as e:
		raise StationDefinitionError(f"Error loading station YAML '{path}': {e}") from e
	if loaded is None:
		raise StationDefinitionError(f"Station YAML '{path}' is empty")
	try:
		return StationDefinition.model_validate(loaded)
	except ValidationError as e:
		raise StationDefinitionError(f"Invalid station definition '{path}':\n{e}") from e


def load_station(path: Path) -> StationTree:
	return StationTree(load_station_definition(path))
