import pytest

from examguard.engine.accumulator import (
    ViolationAccumulator,
    apply_presence,
    apply_violation,
)
from examguard.engine.results import ProctoringState
from examguard.utils.violations import ViolationKind


def test_threshold_correctness():
    acc = ViolationAccumulator(max_violations=5)
    for _ in range(4):
        acc.record("tab_switch")
    assert acc.state.violations == 4
    assert acc.state.is_disqualified is False

    acc.record("tab_switch")
    assert acc.state.violations == 5
    assert acc.state.is_disqualified is True


def test_disqualified_is_absorbing():
    acc = ViolationAccumulator(max_violations=2)
    history = []
    for kind in ["no_face", "tab_switch", "window_blur", "no_face"]:
        acc.record(kind)
        history.append((acc.state.violations, acc.state.is_disqualified))

    assert history == [(1, False), (2, True), (2, True), (2, True)]
    assert acc.record("tab_switch") is False


def test_callbacks_fire_per_violation_and_once_on_disqualify():
    kinds, disqualified = [], []
    acc = ViolationAccumulator(
        max_violations=3,
        on_violation=kinds.append,
        on_disqualify=lambda: disqualified.append(True),
    )
    for kind in ["no_face", "window_blur", "tab_switch", "tab_switch", "no_face"]:
        acc.record(kind)

    assert kinds == [ViolationKind.NO_FACE, ViolationKind.WINDOW_BLUR, ViolationKind.TAB_SWITCH]
    assert disqualified == [True]
    assert acc.counts == {
        ViolationKind.NO_FACE: 1,
        ViolationKind.WINDOW_BLUR: 1,
        ViolationKind.TAB_SWITCH: 1,
    }


def test_callback_errors_do_not_escape():
    def boom(*args):
        raise RuntimeError("host bug")

    acc = ViolationAccumulator(max_violations=1, on_violation=boom, on_disqualify=boom)
    assert acc.record("no_face") is True
    assert acc.state.is_disqualified is True


def test_max_violations_validation_and_immutability():
    with pytest.raises(ValueError):
        ViolationAccumulator(max_violations=0)

    acc = ViolationAccumulator(max_violations=3)
    with pytest.raises(AttributeError):
        acc.max_violations = 10


def test_unknown_kind_rejected():
    with pytest.raises(ValueError):
        ViolationAccumulator().record("phone_detected")


def test_apply_violation_is_pure():
    state = ProctoringState()
    after = apply_violation(state, max_violations=1)
    assert state.violations == 0
    assert after.violations == 1 and after.is_disqualified
    assert apply_violation(after, max_violations=1) is after


def test_presence_counts_falling_edge_only():
    state = ProctoringState()
    state, lost = apply_presence(state, False)
    assert lost is True and state.face_detected is False

    state, lost = apply_presence(state, False)
    assert lost is False

    state, lost = apply_presence(state, True)
    assert lost is False and state.face_detected is True


def test_sustained_absence_counts_once():
    acc = ViolationAccumulator()
    for face in [True, False, False, False]:
        acc.observe_presence(face)
    assert acc.state.violations == 1


def test_each_reappearance_rearms_no_face():
    acc = ViolationAccumulator()
    for face in [True, False, True, False, False, True]:
        acc.observe_presence(face)
    assert acc.state.violations == 2


def test_first_check_without_face_counts():
    acc = ViolationAccumulator()
    assert acc.observe_presence(False) is True
    assert acc.state.violations == 1


def test_presence_after_disqualification_does_not_count():
    acc = ViolationAccumulator(max_violations=1)
    acc.record("tab_switch")
    acc.observe_presence(True)
    assert acc.observe_presence(False) is False
    assert acc.state.violations == 1
    assert acc.state.face_detected is False


def test_focus_requires_active_camera():
    acc = ViolationAccumulator()
    assert acc.focus_lost("tab_switch") is False
    assert acc.state.tab_focused is False
    assert acc.state.violations == 0

    acc.camera_started()
    assert acc.focus_lost("window_blur") is True
    acc.focus_regained()
    assert acc.state.tab_focused is True
    assert acc.state.violations == 1


def test_camera_transitions():
    acc = ViolationAccumulator()
    acc.camera_failed("Permission denied")
    assert acc.state.error == "Permission denied"
    assert acc.state.camera_enabled is False

    acc.camera_started()
    assert acc.state.camera_enabled is True
    assert acc.state.error is None

    acc.camera_stopped()
    assert acc.state.camera_enabled is False


def test_state_snapshot_keys():
    assert ProctoringState().to_dict() == {
        "cameraEnabled": False,
        "faceDetected": True,
        "multipleFaces": False,
        "tabFocused": True,
        "violations": 0,
        "isDisqualified": False,
        "error": None,
    }
