from examguard.data.focus import FocusMonitor, ManualFocusSource
from examguard.engine.accumulator import ViolationAccumulator
from examguard.utils.violations import ViolationKind


def make_monitor(camera_on=True):
    kinds = []
    acc = ViolationAccumulator(max_violations=5, on_violation=kinds.append)
    if camera_on:
        acc.camera_started()
    source = ManualFocusSource()
    monitor = FocusMonitor(acc)
    monitor.attach(source)
    return acc, source, monitor, kinds


def test_hidden_and_blur_count_with_their_kinds():
    acc, source, _, kinds = make_monitor()

    source.visibility_changed(hidden=True)
    assert acc.state.tab_focused is False
    source.visibility_changed(hidden=False)
    assert acc.state.tab_focused is True

    source.blur()
    source.focus()

    assert kinds == [ViolationKind.TAB_SWITCH, ViolationKind.WINDOW_BLUR]
    assert acc.state.violations == 2
    assert acc.state.tab_focused is True


def test_hidden_while_camera_inactive_is_not_counted():
    acc, source, _, kinds = make_monitor(camera_on=False)
    source.visibility_changed(hidden=True)
    source.blur()

    assert kinds == []
    assert acc.state.violations == 0
    assert acc.state.tab_focused is False


def test_rapid_toggling_counts_every_event():
    acc, source, _, _ = make_monitor()
    for _ in range(3):
        source.blur()
        source.focus()
    assert acc.state.violations == 3


def test_detach_stops_delivery():
    acc, source, monitor, _ = make_monitor()
    monitor.detach()
    source.blur()
    assert acc.state.violations == 0
    assert acc.state.tab_focused is True
    assert monitor.source is None


def test_attach_replaces_previous_source():
    acc, first, monitor, _ = make_monitor()
    second = ManualFocusSource()
    monitor.attach(second)

    first.blur()
    assert acc.state.violations == 0
    second.blur()
    assert acc.state.violations == 1


def test_unsubscribe_is_idempotent():
    source = ManualFocusSource()
    calls = []
    unsubscribe = source.on_visible(lambda: calls.append(1))
    unsubscribe()
    unsubscribe()
    source.focus()
    assert calls == []
