"""Node parameter values and the per-node parameter store."""

from __future__ import annotations

import numbers
from collections.abc import Iterator, MutableMapping, Sequence
from typing import Annotated, Any, Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _ParamBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class FloatParam(_ParamBase):
    type: Literal["float"] = "float"
    value: float


class IntParam(_ParamBase):
    type: Literal["int"] = "int"
    value: int


class BoolParam(_ParamBase):
    type: Literal["bool"] = "bool"
    value: bool


class Vec2Param(_ParamBase):
    type: Literal["vec2"] = "vec2"
    value: tuple[float, float]


class Vec3Param(_ParamBase):
    type: Literal["vec3"] = "vec3"
    value: tuple[float, float, float]


class StringParam(_ParamBase):
    type: Literal["string"] = "string"
    value: str


ParamValue = Annotated[
    FloatParam | IntParam | BoolParam | Vec2Param | Vec3Param | StringParam,
    Field(discriminator="type"),
]

_PARAM_VARIANTS = (FloatParam, IntParam, BoolParam, Vec2Param, Vec3Param, StringParam)

param_value_adapter: TypeAdapter[ParamValue] = TypeAdapter(ParamValue)


def param_value(obj: Any) -> ParamValue:
    """Convert a plain Python, numpy (or TOML) value to a parameter value.

    Mapping:
    - bool -> BoolParam
    - integral number -> IntParam
    - other real number -> FloatParam
    - str -> StringParam
    - sequence or 1-d array of 2 numbers -> Vec2Param
    - sequence or 1-d array of 3 numbers -> Vec3Param

    numpy scalars and arrays are unwrapped first. Parameter values are
    returned unchanged.

    Raises:
        TypeError: If the value has no parameter representation.

    """
    if isinstance(obj, _PARAM_VARIANTS):
        return obj
    if isinstance(obj, np.ndarray | np.generic):
        obj = obj.tolist()
    # bool before int: bool is an int subclass
    if isinstance(obj, bool):
        return BoolParam(value=obj)
    if isinstance(obj, numbers.Integral):
        return IntParam(value=int(obj))
    if isinstance(obj, numbers.Real):
        return FloatParam(value=float(obj))
    if isinstance(obj, str):
        return StringParam(value=obj)
    if isinstance(obj, Sequence) and all(
        isinstance(x, numbers.Real) and not isinstance(x, bool) for x in obj
    ):
        if len(obj) == 2:  # noqa: PLR2004
            return Vec2Param(value=(float(obj[0]), float(obj[1])))
        if len(obj) == 3:  # noqa: PLR2004
            return Vec3Param(value=(float(obj[0]), float(obj[1]), float(obj[2])))
    msg = f"Cannot convert {obj!r} to a parameter value"
    raise TypeError(msg)


class NodeParams(MutableMapping[str, ParamValue]):
    """Key-sorted mapping from parameter name to value.

    Keys that were never set are absent; kind-specific defaults are applied
    by the compute function, not stored here.
    """

    __slots__ = ("_values",)

    def __init__(self, values: dict[str, ParamValue] | None = None) -> None:
        self._values: dict[str, ParamValue] = dict(values or {})

    def __getitem__(self, key: str) -> ParamValue:
        return self._values[key]

    def __setitem__(self, key: str, value: ParamValue) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v.value!r}" for k, v in self.items())
        return f"NodeParams({inner})"

    def copy(self) -> NodeParams:
        return NodeParams(self._values)

    def fingerprint_data(self) -> list[list[Any]]:
        """Return a JSON-serializable, key-sorted snapshot of the parameters."""
        return [[key, value.model_dump(mode="json")] for key, value in self.items()]
