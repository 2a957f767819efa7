# station_libs/config_models/station_models.py

import enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class StatusFlag(str, enum.Enum):
    OK = "ok"
    FAULT = "fault"
    STALE = "stale"
    DOWN = "down"
    OVERRIDDEN = "overridden"
    NULL = "null"


# --- Component level models ---

class FacetsDefinition(BaseModel):
    """Display facets attached to a control point."""
    units: Optional[str] = Field(None, description="Engineering unit symbol, e.g. '°F'. The literal 'null' means no unit.")
    range: Optional[str] = Field(None, description="Enum range descriptor for multi-state points, e.g. '{off=0,on=1}'.")
    precision: Optional[int] = Field(None, description="Display precision for numeric points.")
    model_config = {"extra": "forbid"}


class StatusValueDefinition(BaseModel):
    """Current output value of a control point together with its status flag."""
    value: Any = Field(None, description="Current value (number, bool or ordinal name).")
    status: StatusFlag = Field(StatusFlag.OK, description="Status flag reported with the value.")
    model_config = {"extra": "forbid"}


class ComponentDefinition(BaseModel):
    name: str = Field(..., description="Slot name of the component. May contain characters that need slot escaping.")
    type: str = Field("baja:Component", description="Type spec in 'module:TypeName' form.")
    display_name: Optional[str] = Field(None, description="Optional display name. Defaults to the unescaped slot name.")
    handle: Optional[str] = Field(None, description="Optional fixed handle (hex). Assigned in traversal order when omitted.")
    facets: Optional[FacetsDefinition] = Field(None, description="Optional facets for control points.")
    out: Optional[StatusValueDefinition] = Field(None, description="Optional current output value for control points.")
    children: List["ComponentDefinition"] = Field(default_factory=list, description="Child components in slot order.")
    model_config = {"extra": "forbid"}

    @field_validator("name")
    @classmethod
    def name_has_no_separator(cls, v: str) -> str:
        if not v:
            raise ValueError("component name must not be empty")
        if "/" in v:
            raise ValueError(f"component name '{v}' must not contain '/'")
        return v

    @field_validator("type")
    @classmethod
    def type_is_spec(cls, v: str) -> str:
        module, _, type_name = v.partition(":")
        if not module or not type_name:
            raise ValueError(f"type '{v}' must be in 'module:TypeName' form")
        return v

    @field_validator("handle")
    @classmethod
    def handle_is_hex(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v or any(c not in "0123456789abcdefABCDEF" for c in v):
            raise ValueError(f"handle '{v}' must be a hex number")
        return v

    @model_validator(mode="after")
    def unique_child_names(self):
        seen = set()
        for child in self.children:
            if child.name in seen:
                raise ValueError(f"duplicate child name '{child.name}' under '{self.name}'")
            seen.add(child.name)
        return self


ComponentDefinition.model_rebuild()


# --- Station definition ---

class StationDefinition(BaseModel):
    name: str = Field(..., description="Station name.")
    version: str = Field("0.0.0", description="Version of the station definition.")
    types: Dict[str, str] = Field(
        default_factory=dict,
        description="Additional type specs mapped to their supertype spec, e.g. 'bacnet:BacnetDevice: driver:Device'.",
    )
    root: ComponentDefinition = Field(..., description="Station root component. Its own slot path is 'slot:/'.")
    model_config = {"extra": "forbid"}

    @field_validator("types")
    @classmethod
    def types_are_specs(cls, v: Dict[str, str]) -> Dict[str, str]:
        for spec, supertype in v.items():
            for s in (spec, supertype):
                module, _, type_name = s.partition(":")
                if not module or not type_name:
                    raise ValueError(f"type '{s}' must be in 'module:TypeName' form")
        return v
