"""
Renderer payload models
Declarative output of a chart session: series, panes and axis ranges
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field


class ProjectionPayload(BaseModel):
    """Series continuation past the last candle"""
    times: List[datetime]
    values: List[Optional[float]]


class SeriesPayload(BaseModel):
    """One trace for the renderer"""
    indicator_id: str
    label: str
    role: str  # line, band, histogram, marker
    pane: str = "main"
    value_axis: str = "y"
    time_axis: str = "x"
    values: List[Optional[float]]
    text: Optional[List[Optional[str]]] = None
    style: Dict[str, Any] = Field(default_factory=dict)
    projection: Optional[ProjectionPayload] = None


class PanePayload(BaseModel):
    """One horizontal strip of the chart"""
    id: str
    title: str = ""
    domain: Tuple[float, float]
    is_main: bool = False
    value_axis: str
    time_axis: str


class AxisRangePayload(BaseModel):
    """Canonical axis state"""
    time_range: Optional[Tuple[datetime, datetime]] = None
    value_ranges: Dict[str, Tuple[float, float]] = Field(default_factory=dict)


class ChartPayload(BaseModel):
    """Everything the renderer needs for one frame"""
    times: List[datetime]
    open: List[float]
    high: List[float]
    low: List[float]
    close: List[float]
    series: List[SeriesPayload] = Field(default_factory=list)
    panes: List[PanePayload] = Field(default_factory=list)
    main_margin_domain: Tuple[float, float]
    time_axis_domain: Tuple[float, float]
    axes: AxisRangePayload = Field(default_factory=AxisRangePayload)
    renderer_layout: Dict[str, Any] = Field(default_factory=dict)
    configuration: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


def build_payload(session) -> ChartPayload:
    """
    Build the renderer payload for a chart session

    Args:
        session: ChartSession

    Returns:
        ChartPayload (serialize with model_dump_json())
    """
    layout = session.layout()
    data = session.data

    series = []
    for instance in session.instances():
        for s in instance.series:
            pane = layout.get(s.pane) or layout.main
            projection = None
            if s.projection is not None:
                projection = ProjectionPayload(
                    times=list(s.projection.times),
                    values=list(s.projection.values),
                )
            series.append(SeriesPayload(
                indicator_id=instance.id,
                label=s.label,
                role=s.role.value,
                pane=pane.id,
                value_axis=pane.value_axis,
                time_axis=pane.time_axis,
                values=list(s.values),
                text=list(s.text) if s.text is not None else None,
                style=dict(s.style),
                projection=projection,
            ))

    panes = [
        PanePayload(
            id=pane.id,
            title=pane.title,
            domain=pane.domain,
            is_main=pane.is_main,
            value_axis=pane.value_axis,
            time_axis=pane.time_axis,
        )
        for pane in layout.panes
    ]

    return ChartPayload(
        times=[p.time for p in data],
        open=[p.open for p in data],
        high=[p.high for p in data],
        low=[p.low for p in data],
        close=[p.close for p in data],
        series=series,
        panes=panes,
        main_margin_domain=layout.main_margin_domain,
        time_axis_domain=layout.time_axis_domain,
        axes=AxisRangePayload(
            time_range=session.axis.time_range,
            value_ranges=session.axis.value_ranges(),
        ),
        renderer_layout=layout.to_renderer_layout(),
        configuration=session.export_configuration(),
    )
