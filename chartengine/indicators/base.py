"""Base classes and types for the indicator framework."""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from chartengine.config import settings
from chartengine.core.enums import IndicatorType, ParameterKind, SeriesRole
from chartengine.core.exceptions import ChartEngineError, InvalidParameterError

MAIN_PANE = "main"

_COLOR_PATTERN = re.compile(r"^(#[0-9a-fA-F]{3,8}|rgba?\([^)]*\))$")


@dataclass(frozen=True)
class OHLCPoint:
    """Single OHLC candle.

    This is the ONLY input to all indicators. Sequences are ordered
    ascending by time with no duplicate timestamps.
    """
    time: datetime
    open: float
    high: float
    low: float
    close: float


@dataclass(frozen=True)
class ParameterSpec:
    """One configurable input of an indicator.

    Attributes:
        name: Key in the parameter map (unique per indicator)
        kind: Number, Color, Boolean or Enum
        default: Value used when the key is missing or rejected
        label: Human-readable label for configuration forms
        minimum: Inclusive lower bound (Number only)
        maximum: Inclusive upper bound (Number only)
        step: UI increment (Number only)
        options: Allowed values (Enum only)
    """
    name: str
    kind: ParameterKind
    default: Any
    label: str = ""
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    step: Optional[float] = None
    options: Tuple[str, ...] = ()

    @property
    def integral(self) -> bool:
        """True for Number parameters whose default is an int."""
        return (
            self.kind is ParameterKind.NUMBER
            and isinstance(self.default, int)
            and not isinstance(self.default, bool)
        )

    def validate(self, value: Any) -> Any:
        """Validate and coerce a supplied value.

        Args:
            value: Raw value from a parameter map

        Returns:
            Coerced value (int for integral numbers, float otherwise)

        Raises:
            ValueError: If the value has the wrong kind or is out of bounds
        """
        if self.kind is ParameterKind.NUMBER:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"expected a number, got {type(value).__name__}")
            if value != value:
                raise ValueError("NaN is not a valid number")
            if self.minimum is not None and value < self.minimum:
                raise ValueError(f"{value} is below minimum {self.minimum}")
            if self.maximum is not None and value > self.maximum:
                raise ValueError(f"{value} is above maximum {self.maximum}")
            if self.integral:
                if int(value) != value:
                    raise ValueError(f"expected an integer, got {value}")
                return int(value)
            return float(value)

        if self.kind is ParameterKind.BOOLEAN:
            if not isinstance(value, bool):
                raise ValueError(f"expected a boolean, got {type(value).__name__}")
            return value

        if self.kind is ParameterKind.COLOR:
            if not isinstance(value, str) or not _COLOR_PATTERN.match(value.strip()):
                raise ValueError(f"expected a #hex, rgb() or rgba() color, got {value!r}")
            return value.strip()

        if value not in self.options:
            raise ValueError(f"expected one of {list(self.options)}, got {value!r}")
        return value

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "kind": self.kind.value,
            "default": self.default,
            "label": self.label or self.name,
        }
        if self.kind is ParameterKind.NUMBER:
            data.update(minimum=self.minimum, maximum=self.maximum, step=self.step)
        if self.kind is ParameterKind.ENUM:
            data["options"] = list(self.options)
        return data


def number(
    name: str,
    default: float,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
    step: Optional[float] = None,
    label: str = "",
) -> ParameterSpec:
    """Shorthand for a Number parameter."""
    if step is None and isinstance(default, int):
        step = 1
    return ParameterSpec(name, ParameterKind.NUMBER, default, label, minimum, maximum, step)


def color(name: str, default: str, label: str = "") -> ParameterSpec:
    """Shorthand for a Color parameter."""
    return ParameterSpec(name, ParameterKind.COLOR, default, label)


def boolean(name: str, default: bool, label: str = "") -> ParameterSpec:
    """Shorthand for a Boolean parameter."""
    return ParameterSpec(name, ParameterKind.BOOLEAN, default, label)


@dataclass(frozen=True)
class ResolvedParameters:
    """Validated parameter map plus the fields that were rejected.

    Every name from the descriptor is present in ``values``; rejected
    entries hold the default and the reason lives in ``rejected``.
    """
    values: Mapping[str, Any]
    rejected: Mapping[str, str] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    @property
    def ok(self) -> bool:
        return not self.rejected

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.values)


@dataclass(frozen=True)
class IndicatorDescriptor:
    """Static description of an indicator kind.

    Attributes:
        id: Registry key, stable across releases (persistence key)
        display_name: Name shown to users
        category: Indicator classification
        wants_own_pane: True if output is drawn in a dedicated subplot pane
        pane_height_share: Fraction of total chart height for that pane
        parameters: Every configurable input, in form order
        value_range: Initial value-axis range for the indicator's pane
        description: Brief description
    """
    id: str
    display_name: str
    category: IndicatorType
    wants_own_pane: bool = False
    pane_height_share: float = field(
        default_factory=lambda: settings.LAYOUT.default_pane_share
    )
    parameters: Tuple[ParameterSpec, ...] = ()
    value_range: Optional[Tuple[float, float]] = None
    description: str = ""

    def __post_init__(self):
        if not 0.0 < self.pane_height_share <= 1.0:
            raise ValueError(
                f"{self.id}: pane_height_share must be in (0, 1], got {self.pane_height_share}"
            )
        names = [spec.name for spec in self.parameters]
        if len(names) != len(set(names)):
            raise ValueError(f"{self.id}: duplicate parameter names in {names}")

    @property
    def pane_id(self) -> str:
        return self.id if self.wants_own_pane else MAIN_PANE

    def parameter_names(self) -> List[str]:
        return [spec.name for spec in self.parameters]

    def defaults(self) -> Dict[str, Any]:
        return {spec.name: spec.default for spec in self.parameters}

    def resolve(
        self,
        supplied: Optional[Mapping[str, Any]] = None,
        strict: bool = False,
    ) -> ResolvedParameters:
        """Resolve a (possibly partial) parameter map against this descriptor.

        Unknown keys are ignored, missing keys take their default and
        invalid values fall back to the default with the reason recorded.

        Args:
            supplied: Parameter map from the configuration surface
            strict: Raise instead of falling back on rejected values

        Returns:
            ResolvedParameters

        Raises:
            InvalidParameterError: If strict and any value was rejected
        """
        supplied = supplied or {}
        values: Dict[str, Any] = {}
        rejected: Dict[str, str] = {}

        for spec in self.parameters:
            if spec.name not in supplied:
                values[spec.name] = spec.default
                continue
            try:
                values[spec.name] = spec.validate(supplied[spec.name])
            except ValueError as e:
                values[spec.name] = spec.default
                rejected[spec.name] = str(e)

        if rejected and strict:
            raise InvalidParameterError(self.id, rejected)

        return ResolvedParameters(values=values, rejected=rejected)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "category": self.category.value,
            "wants_own_pane": self.wants_own_pane,
            "pane_height_share": self.pane_height_share,
            "value_range": list(self.value_range) if self.value_range else None,
            "description": self.description,
            "parameters": [spec.to_dict() for spec in self.parameters],
        }


@dataclass(frozen=True)
class Projection:
    """Continuation of a series past the last candle."""
    times: Tuple[datetime, ...]
    values: Tuple[Optional[float], ...]


@dataclass(frozen=True)
class OutputSeries:
    """One drawable series produced by an indicator.

    ``values`` is aligned 1:1 with the OHLC sequence; ``None`` means
    "no value" at that index.
    """
    label: str
    values: Tuple[Optional[float], ...]
    role: SeriesRole = SeriesRole.LINE
    pane: str = MAIN_PANE
    style: Mapping[str, Any] = field(default_factory=dict)
    text: Optional[Tuple[Optional[str], ...]] = None
    projection: Optional[Projection] = None

    def __post_init__(self):
        # Accept lists from calculators but store tuples
        object.__setattr__(self, "values", tuple(self.values))
        if self.text is not None:
            object.__setattr__(self, "text", tuple(self.text))

    @property
    def is_main(self) -> bool:
        return self.pane == MAIN_PANE

    def first_valid_index(self) -> Optional[int]:
        for i, value in enumerate(self.values):
            if value is not None:
                return i
        return None

    def defined(self) -> List[float]:
        return [v for v in self.values if v is not None]


IndicatorCalculator = Callable[[Sequence[OHLCPoint], ResolvedParameters], List[OutputSeries]]


@dataclass(frozen=True)
class IndicatorDefinition:
    """Registry entry: descriptor plus calculator.

    Implements the uniform contract (configure / compute / describe)
    without exposing the calculator's recurrence state.
    """
    descriptor: IndicatorDescriptor
    calculator: IndicatorCalculator

    @property
    def id(self) -> str:
        return self.descriptor.id

    def describe(self) -> IndicatorDescriptor:
        return self.descriptor

    def configure(
        self,
        params: Optional[Mapping[str, Any]] = None,
        strict: bool = False,
    ) -> ResolvedParameters:
        return self.descriptor.resolve(params, strict=strict)

    def compute(
        self,
        data: Sequence[OHLCPoint],
        params: Optional[Any] = None,
    ) -> List[OutputSeries]:
        """Compute output series for the given data.

        Args:
            data: OHLC sequence
            params: ResolvedParameters or raw parameter map

        Returns:
            Output series with pane assignment applied

        Raises:
            ChartEngineError: If the calculator broke length alignment
        """
        if not isinstance(params, ResolvedParameters):
            params = self.configure(params)

        series = self.calculator(data, params)
        pane = self.descriptor.pane_id
        result = []
        for s in series:
            if len(s.values) != len(data):
                raise ChartEngineError(
                    f"{self.id}: series '{s.label}' has {len(s.values)} values "
                    f"for {len(data)} points"
                )
            result.append(replace(s, pane=pane) if s.pane != pane else s)
        return result


@dataclass(frozen=True)
class IndicatorInstance:
    """An indicator bound to one OHLC sequence and one resolved parameter map.

    Instances are immutable: a parameter or data change produces a new
    instance with freshly computed series.
    """
    definition: IndicatorDefinition
    data: Tuple[OHLCPoint, ...]
    parameters: ResolvedParameters
    series: Tuple[OutputSeries, ...]

    @classmethod
    def build(
        cls,
        definition: IndicatorDefinition,
        data: Sequence[OHLCPoint],
        params: Optional[Mapping[str, Any]] = None,
    ) -> "IndicatorInstance":
        data = tuple(data)
        resolved = params if isinstance(params, ResolvedParameters) else definition.configure(params)
        series = tuple(definition.compute(data, resolved))
        return cls(definition=definition, data=data, parameters=resolved, series=series)

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def descriptor(self) -> IndicatorDescriptor:
        return self.definition.descriptor

    def with_parameters(self, params: Optional[Mapping[str, Any]]) -> "IndicatorInstance":
        return IndicatorInstance.build(self.definition, self.data, params)

    def with_data(self, data: Sequence[OHLCPoint]) -> "IndicatorInstance":
        return IndicatorInstance.build(self.definition, data, self.parameters)

    def get_series(self, label: str) -> Optional[OutputSeries]:
        for s in self.series:
            if s.label == label:
                return s
        return None
