"""Chart session - the host-facing facade.

Owns the OHLC sequence, the selection-ordered indicator instances, the
pane layout and the axis sync controller. Every parameter or data change
replaces the affected IndicatorInstance with a freshly computed one.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from chartengine.config import settings
from chartengine.config.settings import AxisConfig, LayoutConfig
from chartengine.core.exceptions import UnknownIndicatorError
from chartengine.data.ohlc import validate_ohlc
from chartengine.indicators.base import (
    IndicatorDefinition,
    IndicatorDescriptor,
    IndicatorInstance,
    OHLCPoint,
    OutputSeries,
    ResolvedParameters,
)
from chartengine.indicators.registry import INDICATOR_REGISTRY, IndicatorRegistry
from chartengine.logger import logger

from .axis_sync import AxisSyncController, ValueRange, padded_range
from .layout import PaneLayout, compute_layout
from .payload import ChartPayload, build_payload


class ChartSession:
    """One chart: data, selected indicators, layout and axis state.

    Pattern:
    - Selection order is the list order of ``_selection``
    - Instances are immutable; updates swap in a new instance
    - Calculator failures are logged and contained here (the indicator
      stays selected with no series)
    """

    def __init__(
        self,
        data: Sequence[OHLCPoint] = (),
        registry: Optional[IndicatorRegistry] = None,
        layout_config: Optional[LayoutConfig] = None,
        axis_config: Optional[AxisConfig] = None,
    ):
        """Initialize chart session.

        Args:
            data: Ascending OHLC sequence (validated)
            registry: Indicator registry (defaults to the global one)
            layout_config: Layout constants (defaults to settings.LAYOUT)
            axis_config: Axis constants (defaults to settings.AXIS)
        """
        self._registry = registry or INDICATOR_REGISTRY
        self._layout_config = layout_config or settings.LAYOUT
        self._axis_config = axis_config or settings.AXIS
        self._data: Tuple[OHLCPoint, ...] = tuple(validate_ohlc(data))
        self._selection: List[str] = []
        self._instances: Dict[str, IndicatorInstance] = {}
        self._layout: PaneLayout = compute_layout([], self._layout_config)
        self.axis = AxisSyncController(config=self._axis_config)
        self._refresh_layout(reset_time=True)

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    @property
    def data(self) -> Tuple[OHLCPoint, ...]:
        return self._data

    def set_data(self, data: Sequence[OHLCPoint]):
        """Replace the OHLC sequence and recompute every selected indicator."""
        self._data = tuple(validate_ohlc(data))
        logger.info(f"Chart data replaced: {len(self._data)} points, "
                    f"recomputing {len(self._selection)} indicators")
        for indicator_id in self._selection:
            self._instances[indicator_id] = self._build(
                self._instances[indicator_id].definition,
                self._instances[indicator_id].parameters,
            )
        self._refresh_layout(reset_time=True)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, indicator_id: str, params: Optional[Mapping[str, Any]] = None) -> Optional[IndicatorInstance]:
        """Select an indicator (append to the selection order).

        Re-selecting an already selected id reconfigures it in place.

        Returns:
            The new instance, or None for unknown ids
        """
        definition = self._registry.get(indicator_id)
        if definition is None:
            logger.warning(f"Cannot select unknown indicator '{indicator_id}'")
            return None

        instance = self._build(definition, params)
        if indicator_id not in self._instances:
            self._selection.append(indicator_id)
            logger.debug(f"Selected {indicator_id} at position {len(self._selection) - 1}")
        self._instances[indicator_id] = instance
        self._refresh_layout()
        return instance

    def deselect(self, indicator_id: str) -> bool:
        """Remove an indicator from the chart. Returns False if it was not selected."""
        if indicator_id not in self._instances:
            return False
        self._selection.remove(indicator_id)
        del self._instances[indicator_id]
        logger.debug(f"Deselected {indicator_id}")
        self._refresh_layout()
        return True

    def update_parameters(self, indicator_id: str, params: Optional[Mapping[str, Any]]) -> IndicatorInstance:
        """Replace a selected indicator's instance with one built from new parameters.

        Raises:
            UnknownIndicatorError: If the indicator is not selected
        """
        current = self._instances.get(indicator_id)
        if current is None:
            raise UnknownIndicatorError(indicator_id, list(self._selection))
        instance = self._build(current.definition, params)
        self._instances[indicator_id] = instance
        self._refresh_layout()
        return instance

    def move(self, indicator_id: str, position: int):
        """Move a selected indicator to a new position in the selection order.

        Raises:
            UnknownIndicatorError: If the indicator is not selected
        """
        if indicator_id not in self._instances:
            raise UnknownIndicatorError(indicator_id, list(self._selection))
        self._selection.remove(indicator_id)
        position = max(0, min(position, len(self._selection)))
        self._selection.insert(position, indicator_id)
        self._refresh_layout()

    def is_selected(self, indicator_id: str) -> bool:
        return indicator_id in self._instances

    def selected_ids(self) -> List[str]:
        return list(self._selection)

    def instances(self) -> List[IndicatorInstance]:
        return [self._instances[i] for i in self._selection]

    def instance(self, indicator_id: str) -> Optional[IndicatorInstance]:
        return self._instances.get(indicator_id)

    def descriptors(self) -> List[IndicatorDescriptor]:
        return [self._instances[i].descriptor for i in self._selection]

    # ------------------------------------------------------------------
    # Configuration surface
    # ------------------------------------------------------------------

    def load_configuration(self, configuration: Mapping[str, Mapping[str, Any]]):
        """Select indicators from an {id: {name: value}} map, in map order.

        Unknown ids are skipped; partial maps use defaults.
        """
        for indicator_id, params in configuration.items():
            if not self._registry.is_registered(indicator_id):
                logger.warning(f"Skipping unknown indicator '{indicator_id}' in configuration")
                continue
            self.select(indicator_id, params or {})

    def export_configuration(self) -> Dict[str, Dict[str, Any]]:
        """Resolved {id: {name: value}} map for every selected indicator."""
        return {
            indicator_id: self._instances[indicator_id].parameters.as_dict()
            for indicator_id in self._selection
        }

    # ------------------------------------------------------------------
    # Renderer output
    # ------------------------------------------------------------------

    def series(self) -> List[OutputSeries]:
        """All output series in selection order."""
        result: List[OutputSeries] = []
        for instance in self.instances():
            result.extend(instance.series)
        return result

    def layout(self) -> PaneLayout:
        return self._layout

    def payload(self) -> ChartPayload:
        """Declarative renderer payload (see chartengine.chart.payload)."""
        return build_payload(self)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build(self, definition: IndicatorDefinition, params: Optional[Mapping[str, Any]]) -> IndicatorInstance:
        """Compute an instance; a failing calculator yields an instance with no series."""
        try:
            instance = IndicatorInstance.build(definition, self._data, params)
        except Exception:
            logger.exception(f"{definition.id}: calculation failed, rendering without series")
            if not isinstance(params, ResolvedParameters):
                params = definition.configure(params)
            return IndicatorInstance(
                definition=definition,
                data=self._data,
                parameters=params,
                series=(),
            )

        for name, reason in instance.parameters.rejected.items():
            logger.warning(f"{definition.id}: rejected parameter '{name}' ({reason}), using default")
        logger.debug(f"Computed {definition.id}: {len(instance.series)} series over {len(self._data)} points")
        return instance

    def _initial_ranges(self) -> Dict[str, ValueRange]:
        padding = self._axis_config.value_padding
        ranges: Dict[str, ValueRange] = {}

        main = padded_range([p.high for p in self._data] + [p.low for p in self._data], padding)
        ranges[self._layout.main.id] = main or (0.0, 1.0)

        for pane in self._layout.subplots:
            instance = self._instances[pane.id]
            if instance.descriptor.value_range is not None:
                ranges[pane.id] = tuple(instance.descriptor.value_range)
                continue
            values = [v for s in instance.series for v in s.values]
            ranges[pane.id] = padded_range(values, padding) or (0.0, 1.0)
        return ranges

    def _refresh_layout(self, reset_time: bool = False):
        self._layout = compute_layout(self.descriptors(), self._layout_config)
        initial = self._initial_ranges()
        self.axis.apply_layout(self._layout, initial)

        if reset_time and self._data:
            self.axis.reset_value_range(self._layout.main.id, *initial[self._layout.main.id])
            self.axis.reset_time_range(self._data[0].time, self._data[-1].time)
