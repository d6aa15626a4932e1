"""Pane layout engine.

Partitions the vertical chart space (0 = bottom, 1 = top) into the main
price pane and one stacked pane per subplot indicator, in selection
order. From top to bottom the stack is:

    main pane | main margin | subplot 1 | ... | subplot N | time-axis strip
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from chartengine.config import settings
from chartengine.config.settings import LayoutConfig
from chartengine.core.exceptions import LayoutError
from chartengine.indicators.base import MAIN_PANE, IndicatorDescriptor
from chartengine.logger import logger

Domain = Tuple[float, float]


def axis_key(axis_name: str) -> str:
    """Renderer layout key for a short axis name ("y2" -> "yaxis2", "x" -> "xaxis")."""
    return f"{axis_name[0]}axis{axis_name[1:]}"


@dataclass(frozen=True)
class Pane:
    """One horizontal strip of the chart.

    Attributes:
        id: "main" or the indicator id that owns the pane
        domain: (start, end) vertical extent, start < end
        is_main: True for the price pane
        value_axis: Short renderer axis name ("y", "y2", ...)
        time_axis: Short renderer axis name ("x", "x2", ...)
        title: Display title
    """
    id: str
    domain: Domain
    is_main: bool
    value_axis: str
    time_axis: str
    title: str = ""

    @property
    def height(self) -> float:
        return self.domain[1] - self.domain[0]

    @property
    def value_axis_key(self) -> str:
        return axis_key(self.value_axis)

    @property
    def time_axis_key(self) -> str:
        return axis_key(self.time_axis)


@dataclass(frozen=True)
class PaneLayout:
    """Ordered panes (top to bottom) plus the reserved strips."""
    panes: Tuple[Pane, ...]
    main_margin_domain: Domain
    time_axis_domain: Domain

    @property
    def main(self) -> Pane:
        return self.panes[0]

    @property
    def subplots(self) -> Tuple[Pane, ...]:
        return self.panes[1:]

    def pane_ids(self) -> List[str]:
        return [pane.id for pane in self.panes]

    def get(self, pane_id: str) -> Optional[Pane]:
        for pane in self.panes:
            if pane.id == pane_id:
                return pane
        return None

    def by_axis_index(self, index: int) -> Optional[Pane]:
        """Pane for renderer axis number (1 = main, 2 = first subplot, ...)."""
        if 1 <= index <= len(self.panes):
            return self.panes[index - 1]
        return None

    def total_share(self) -> float:
        """Sum of all pane heights plus margin and time-axis strip."""
        margin = self.main_margin_domain[1] - self.main_margin_domain[0]
        strip = self.time_axis_domain[1] - self.time_axis_domain[0]
        return sum(pane.height for pane in self.panes) + margin + strip

    def to_renderer_layout(self) -> Dict[str, Any]:
        """Declarative axis layout for the renderer.

        Every time axis matches the main one; only the bottom pane shows
        time tick labels, placed in the time-axis strip.
        """
        layout: Dict[str, Any] = {}
        bottom = self.panes[-1]
        for pane in self.panes:
            layout[pane.value_axis_key] = {
                "domain": list(pane.domain),
                "anchor": pane.time_axis,
                "side": "right",
                "title": pane.title,
            }
            time_axis: Dict[str, Any] = {
                "domain": [0.0, 1.0],
                "anchor": pane.value_axis,
                "showticklabels": pane is bottom,
            }
            if not pane.is_main:
                time_axis["matches"] = "x"
            layout[pane.time_axis_key] = time_axis
        return layout


def compute_layout(
    active_indicators: Sequence[IndicatorDescriptor],
    config: Optional[LayoutConfig] = None,
) -> PaneLayout:
    """Compute pane domains for the active indicators.

    Only indicators that want their own pane contribute; they stack below
    the main pane in the given (selection) order. The main pane gets
    ``1 - sum(shares) - time_axis_share - main_margin_share``, floored at
    ``min_main_share``. When the floor applies, subplot shares are scaled
    down proportionally so the stack still totals 1.0.

    Args:
        active_indicators: Descriptors in selection order
        config: Layout constants (defaults to settings.LAYOUT)

    Returns:
        PaneLayout

    Raises:
        LayoutError: If a pane id repeats or the fixed strips leave no room
    """
    cfg = config or settings.LAYOUT
    strip = cfg.time_axis_share
    margin = cfg.main_margin_share

    subplots = [d for d in active_indicators if d.wants_own_pane]
    ids = [d.id for d in subplots]
    if len(ids) != len(set(ids)) or MAIN_PANE in ids:
        raise LayoutError(f"Duplicate pane ids in {ids}")

    shares = [d.pane_height_share for d in subplots]
    total = sum(shares)
    main_height = 1.0 - total - strip - margin

    if main_height < cfg.min_main_share:
        main_height = cfg.min_main_share
        available = 1.0 - main_height - strip - margin
        if available < 0 or (subplots and available == 0):
            raise LayoutError(
                f"No room for subplots: strip {strip} + margin {margin} "
                f"+ main {main_height} exceed the chart"
            )
        if total > 0:
            scale = available / total
            shares = [share * scale for share in shares]
            logger.debug(
                f"Main pane floored at {main_height:.2f}; "
                f"scaled {len(subplots)} subplot shares by {scale:.3f}"
            )

    main_start = 1.0 - main_height
    panes = [Pane(MAIN_PANE, (main_start, 1.0), True, "y", "x", "Price")]
    # Without subplots the margin closes exactly on the time-axis strip
    margin_domain = (main_start - margin if subplots else strip, main_start)

    cursor = margin_domain[0]
    for position, (descriptor, share) in enumerate(zip(subplots, shares), start=2):
        end = cursor
        # The last pane closes exactly on the time-axis strip
        start = strip if position == len(subplots) + 1 else end - share
        panes.append(Pane(
            id=descriptor.id,
            domain=(start, end),
            is_main=False,
            value_axis=f"y{position}",
            time_axis=f"x{position}",
            title=descriptor.display_name,
        ))
        cursor = start

    return PaneLayout(tuple(panes), margin_domain, (0.0, strip))
