"""Tests for the axis synchronization controller."""
import math
import pytest
from datetime import datetime, timedelta, timezone

from chartengine.config.settings import AxisConfig
from chartengine.core.enums import DragState, IndicatorType
from chartengine.chart.axis_sync import AxisSyncController, AxisUpdate, padded_range
from chartengine.chart.layout import compute_layout
from chartengine.indicators import IndicatorDescriptor

START = datetime(2025, 1, 2, 9, 30)
END = START + timedelta(hours=3)


def _layout(subplots):
    return compute_layout([
        IndicatorDescriptor(
            id=f"osc{k}",
            display_name=f"Oscillator {k}",
            category=IndicatorType.MOMENTUM,
            wants_own_pane=True,
            pane_height_share=0.15,
        )
        for k in range(subplots)
    ])


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def controller():
    """Controller over main + two subplots with home ranges set."""
    layout = _layout(2)
    ctrl = AxisSyncController(config=AxisConfig(zoom_sensitivity=2.0, reconcile_interval_seconds=1.0))
    ctrl.apply_layout(layout, {"main": (0.0, 10.0), "osc0": (0.0, 100.0), "osc1": (-5.0, 5.0)})
    ctrl.reset_time_range(START, END)
    return ctrl


class TestTimeAxisBroadcast:
    """The shared time range reaches every pane."""

    @pytest.mark.parametrize("subplots", [0, 1, 2, 3, 4])
    def test_every_pane_gets_canonical_range_after_reconcile(self, subplots):
        layout = _layout(subplots)
        ctrl = AxisSyncController(layout)
        ctrl.reset_time_range(START, END)

        new_range = (START + timedelta(minutes=30), END - timedelta(minutes=30))
        update = ctrl.set_time_range(*new_range)

        expected_keys = {f"{pane.time_axis_key}.range" for pane in layout.panes}
        assert set(update.changes) == expected_keys
        assert all(value == list(new_range) for value in update.changes.values())

        # Renderer applied the update to the main pane only
        stale = {pane_id: (START, END) for pane_id in layout.pane_ids()}
        stale["main"] = new_range
        corrections = ctrl.reconcile(stale)

        assert set(corrections) == set(layout.pane_ids()) - {"main"}
        shown = {**stale, **corrections}
        assert all(shown[pane_id] == new_range for pane_id in layout.pane_ids())

    def test_reconcile_is_idempotent(self, controller):
        aligned = {pane_id: (START, END) for pane_id in controller.pane_ids()}

        assert controller.reconcile(aligned) == {}
        assert controller.reconcile(aligned) == {}

    def test_missing_pane_counts_as_drifted(self, controller):
        corrections = controller.reconcile({"main": (START, END)})

        assert set(corrections) == {"osc0", "osc1"}

    def test_inverted_range_is_ignored(self, controller):
        assert controller.set_time_range(END, START) is None
        assert controller.time_range == (START, END)

    def test_maybe_reconcile_respects_interval(self):
        clock = FakeClock(100.0)
        ctrl = AxisSyncController(_layout(1), AxisConfig(reconcile_interval_seconds=1.0), clock=clock)
        ctrl.reset_time_range(START, END)
        drifted = {"main": (START, END)}

        assert ctrl.maybe_reconcile(drifted) == {"osc0": (START, END)}
        assert ctrl.maybe_reconcile(drifted, now=100.5) is None
        assert ctrl.maybe_reconcile(drifted, now=101.5) == {"osc0": (START, END)}


class TestValueAxisDrag:
    """Drag-to-zoom on one pane's value axis."""

    def test_drag_zooms_about_start_center(self, controller):
        assert controller.pointer_down("main", y=100.0, plot_height=200.0)
        assert controller.state is DragState.DRAGGING_VALUE_AXIS
        assert controller.dragging_pane == "main"

        # Half the plot height down: factor = e^(2 * 0.5)
        update = controller.pointer_move(200.0)

        half = 5.0 * math.e
        assert controller.value_range("main") == pytest.approx((5.0 - half, 5.0 + half))
        assert update.changes["yaxis.range"] == pytest.approx([5.0 - half, 5.0 + half])
        assert update.changes["yaxis.autorange"] is False

    def test_drag_up_narrows(self, controller):
        controller.pointer_down("osc0", y=100.0, plot_height=100.0)

        controller.pointer_move(50.0)

        half = 50.0 * math.exp(-1.0)
        assert controller.value_range("osc0") == pytest.approx((50.0 - half, 50.0 + half))

    def test_moves_are_relative_to_drag_start(self, controller):
        controller.pointer_down("main", y=0.0, plot_height=100.0)
        controller.pointer_move(50.0)
        controller.pointer_move(0.0)

        assert controller.value_range("main") == pytest.approx((0.0, 10.0))

    def test_drag_leaves_other_panes_untouched(self, controller):
        before = controller.value_ranges()
        time_before = controller.time_range

        controller.pointer_down("osc1", y=10.0, plot_height=100.0)
        update = controller.pointer_move(60.0)

        after = controller.value_ranges()
        assert after["main"] == before["main"]
        assert after["osc0"] == before["osc0"]
        assert after["osc1"] != before["osc1"]
        assert controller.time_range == time_before
        assert set(update.changes) == {"yaxis3.range", "yaxis3.autorange"}

    def test_release_paths_are_idempotent(self, controller):
        controller.pointer_down("main", y=0.0, plot_height=100.0)

        assert controller.pointer_up() is True
        assert controller.pointer_up() is False
        assert controller.pointer_leave() is False
        assert controller.cancel() is False
        assert controller.state is DragState.IDLE

    @pytest.mark.parametrize("release", ["pointer_up", "pointer_leave", "cancel"])
    def test_every_release_returns_to_idle(self, controller, release):
        controller.pointer_down("main", y=0.0, plot_height=100.0)

        assert getattr(controller, release)() is True
        assert controller.state is DragState.IDLE
        assert controller.pointer_move(40.0) is None

    def test_move_while_idle_is_ignored(self, controller):
        before = controller.value_ranges()

        assert controller.pointer_move(500.0) is None
        assert controller.value_ranges() == before

    def test_pointer_down_on_unknown_pane(self, controller):
        assert controller.pointer_down("nope", y=0.0, plot_height=100.0) is False
        assert controller.pointer_down("main", y=0.0, plot_height=0.0) is False
        assert controller.state is DragState.IDLE

    def test_removing_dragged_pane_cancels_drag(self, controller):
        controller.pointer_down("osc1", y=0.0, plot_height=100.0)

        controller.apply_layout(_layout(1))

        assert controller.state is DragState.IDLE
        assert controller.value_range("osc1") is None
        assert controller.value_range("osc0") == (0.0, 100.0)


class TestRelayoutEvents:
    """Renderer relayout events fold into the canonical state."""

    def test_partial_time_range_from_subplot(self, controller):
        new_start = START + timedelta(minutes=15)

        update = controller.handle_relayout({"xaxis2.range[0]": new_start.isoformat()})

        assert controller.time_range == (new_start, END)
        assert update.changes["xaxis.range"] == [new_start, END]
        assert update.changes["xaxis3.range"] == [new_start, END]

    def test_full_time_range(self, controller):
        new_range = [START + timedelta(minutes=5), START + timedelta(minutes=50)]

        controller.handle_relayout({"xaxis.range": new_range})

        assert controller.time_range == tuple(new_range)

    def test_value_range_only_affects_its_pane(self, controller):
        update = controller.handle_relayout({"yaxis2.range": [10, 90]})

        assert controller.value_range("osc0") == (10.0, 90.0)
        assert controller.value_range("main") == (0.0, 10.0)
        assert "xaxis.range" not in update.changes

    def test_autorange_restores_home(self, controller):
        controller.set_value_range("osc1", -1.0, 1.0)
        controller.set_time_range(START + timedelta(minutes=1), END)

        controller.handle_relayout({"yaxis3.autorange": True, "xaxis.autorange": True})

        assert controller.value_range("osc1") == (-5.0, 5.0)
        assert controller.time_range == (START, END)

    def test_utc_string_normalized_to_naive_range(self, controller):
        update = controller.handle_relayout({"xaxis.range[0]": "2025-01-02T10:00:00Z"})

        assert controller.time_range == (datetime(2025, 1, 2, 10, 0), END)
        assert update.changes["xaxis2.range"] == [datetime(2025, 1, 2, 10, 0), END]

    def test_offset_string_converted_to_utc(self, controller):
        controller.handle_relayout({"xaxis.range[1]": "2025-01-02T13:30:00+02:00"})

        assert controller.time_range == (START, datetime(2025, 1, 2, 11, 30))

    def test_four_digit_fraction(self, controller):
        controller.handle_relayout({"xaxis2.range": ["2025-01-02 09:32:43.6364", "2025-01-02 11:00:00"]})

        assert controller.time_range == (
            datetime(2025, 1, 2, 9, 32, 43, 636400),
            datetime(2025, 1, 2, 11, 0),
        )

    def test_aware_canonical_range_accepts_naive_strings(self):
        aware_start = START.replace(tzinfo=timezone.utc)
        aware_end = END.replace(tzinfo=timezone.utc)
        ctrl = AxisSyncController(_layout(1))
        ctrl.reset_time_range(aware_start, aware_end)

        ctrl.handle_relayout({"xaxis.range[0]": "2025-01-02T10:00:00"})

        assert ctrl.time_range == (datetime(2025, 1, 2, 10, 0, tzinfo=timezone.utc), aware_end)

    def test_malformed_time_is_ignored(self, controller, loguru_messages):
        update = controller.handle_relayout({"xaxis.range[0]": "not a time", "yaxis2.range": [10, 90]})

        assert controller.time_range == (START, END)
        assert controller.value_range("osc0") == (10.0, 90.0)
        assert "xaxis.range" not in update.changes
        assert any(level == "WARNING" and "not a time" in msg for level, msg in loguru_messages)

    def test_malformed_full_range_is_ignored(self, controller):
        assert controller.handle_relayout({"xaxis.range": "2025-01-02"}) is None
        assert controller.time_range == (START, END)

    def test_unrelated_keys_ignored(self, controller):
        assert controller.handle_relayout({"dragmode": "pan", "yaxis9.range": [0, 1]}) is None


class TestSubscription:
    """Explicit subscribe / unsubscribe contract."""

    def test_subscribers_receive_updates(self, controller):
        received = []
        unsubscribe = controller.subscribe(received.append)

        controller.set_time_range(START, END - timedelta(minutes=1))
        controller.set_value_range("main", 1.0, 2.0)
        unsubscribe()
        controller.set_value_range("main", 3.0, 4.0)

        assert [u.source for u in received] == ["time", "value"]
        assert all(isinstance(u, AxisUpdate) for u in received)

    def test_unsubscribe_unknown_callback(self, controller):
        assert controller.unsubscribe(lambda update: None) is False

    def test_reconcile_notifies_only_on_drift(self, controller):
        received = []
        controller.subscribe(received.append)
        aligned = {pane_id: (START, END) for pane_id in controller.pane_ids()}

        controller.reconcile(aligned)
        controller.reconcile({"main": (START, END)})

        assert [u.source for u in received] == ["reconcile"]
        assert set(received[0].changes) == {"xaxis2.range", "xaxis3.range"}


class TestPaddedRange:
    """Initial range helper."""

    def test_pads_span(self):
        assert padded_range([1.0, None, 3.0], 0.1) == pytest.approx((0.8, 3.2))

    def test_zero_span(self):
        assert padded_range([50.0, 50.0], 0.1) == pytest.approx((45.0, 55.0))
        assert padded_range([0.0], 0.5) == pytest.approx((-0.5, 0.5))

    def test_nothing_defined(self):
        assert padded_range([None, None], 0.1) is None
