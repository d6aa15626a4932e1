"""Indicator registry and instantiation dispatcher."""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from chartengine.core.enums import IndicatorType
from chartengine.core.exceptions import IndicatorRegistrationError, UnknownIndicatorError
from chartengine.logger import logger

from .base import (
    IndicatorCalculator,
    IndicatorDefinition,
    IndicatorDescriptor,
    IndicatorInstance,
    OHLCPoint,
    ParameterSpec,
)


class IndicatorRegistry:
    """Central registry of all indicator definitions.

    Registration happens once at import time; afterwards the registry is
    read-only, so lookups need no locking.
    """

    def __init__(self):
        self._definitions: Dict[str, IndicatorDefinition] = {}

    def register(self, indicator_id: str, definition: IndicatorDefinition):
        """Register an indicator definition.

        Args:
            indicator_id: Stable indicator id (e.g., "sma", "rsi")
            definition: Descriptor plus calculator

        Raises:
            IndicatorRegistrationError: On duplicate or mismatched id
        """
        if indicator_id != definition.descriptor.id:
            raise IndicatorRegistrationError(
                f"Registry key '{indicator_id}' does not match descriptor id "
                f"'{definition.descriptor.id}'"
            )
        if indicator_id in self._definitions:
            raise IndicatorRegistrationError(f"Indicator already registered: {indicator_id}")

        self._definitions[indicator_id] = definition
        logger.debug(f"Registered indicator: {indicator_id}")

    def get(self, indicator_id: str) -> Optional[IndicatorDefinition]:
        """Get the definition for an indicator id, or None."""
        return self._definitions.get(indicator_id)

    def require(self, indicator_id: str) -> IndicatorDefinition:
        """Get the definition for an indicator id.

        Raises:
            UnknownIndicatorError: If the id is not registered
        """
        definition = self._definitions.get(indicator_id)
        if definition is None:
            raise UnknownIndicatorError(indicator_id, self.list_ids())
        return definition

    def create(
        self,
        indicator_id: str,
        data: Sequence[OHLCPoint],
        params: Optional[Mapping[str, Any]] = None,
    ) -> Optional[IndicatorInstance]:
        """Instantiate an indicator over the given data.

        Unknown ids are a no-op: configuration may reference stale ids.

        Args:
            indicator_id: Registry id
            data: OHLC sequence
            params: Partial parameter map (missing keys use defaults)

        Returns:
            IndicatorInstance, or None if the id is not registered
        """
        definition = self._definitions.get(indicator_id)
        if definition is None:
            logger.warning(f"Unknown indicator '{indicator_id}', ignoring")
            return None

        instance = IndicatorInstance.build(definition, data, params)
        for name, reason in instance.parameters.rejected.items():
            logger.warning(f"{indicator_id}: rejected parameter '{name}' ({reason}), using default")
        return instance

    def describe(self, indicator_id: str) -> Optional[IndicatorDescriptor]:
        """Get the static descriptor for an indicator id, or None."""
        definition = self._definitions.get(indicator_id)
        return definition.descriptor if definition else None

    def list_ids(self) -> List[str]:
        """List all registered indicator ids."""
        return sorted(self._definitions.keys())

    def is_registered(self, indicator_id: str) -> bool:
        """Check if indicator is registered."""
        return indicator_id in self._definitions

    def descriptors(self) -> List[IndicatorDescriptor]:
        return [self._definitions[i].descriptor for i in self.list_ids()]


# Global registry instance
INDICATOR_REGISTRY = IndicatorRegistry()


def indicator(
    indicator_id: str,
    display_name: str,
    category: IndicatorType,
    parameters: Sequence[ParameterSpec] = (),
    subplot: bool = False,
    value_range: Optional[Tuple[float, float]] = None,
    description: str = "",
    **descriptor_fields,
):
    """Decorator to register an indicator calculator.

    Usage:
        @indicator("sma", "Simple Moving Average", IndicatorType.TREND,
                   parameters=[number("period", 14, 1, 200)])
        def calculate_sma(data, params):
            ...
    """
    def decorator(func: IndicatorCalculator):
        descriptor = IndicatorDescriptor(
            id=indicator_id,
            display_name=display_name,
            category=category,
            wants_own_pane=subplot,
            parameters=tuple(parameters),
            value_range=value_range,
            description=description,
            **descriptor_fields,
        )
        INDICATOR_REGISTRY.register(indicator_id, IndicatorDefinition(descriptor, func))
        return func
    return decorator


def create_indicator(
    indicator_id: str,
    data: Sequence[OHLCPoint],
    params: Optional[Mapping[str, Any]] = None,
) -> Optional[IndicatorInstance]:
    """Instantiate a registered indicator (None for unknown ids)."""
    return INDICATOR_REGISTRY.create(indicator_id, data, params)


def describe_indicator(indicator_id: str) -> Optional[IndicatorDescriptor]:
    """Descriptor for a registered indicator (None for unknown ids)."""
    return INDICATOR_REGISTRY.describe(indicator_id)


def list_indicators() -> List[str]:
    """List all registered indicators.

    Returns:
        Sorted list of indicator ids
    """
    return INDICATOR_REGISTRY.list_ids()
