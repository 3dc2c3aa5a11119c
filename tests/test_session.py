import asyncio
import base64

import numpy as np
import pytest

from examguard.cfg import ProctoringConfig
from examguard.data.camera import DeviceError
from examguard.data.focus import ManualFocusSource
from examguard.service.proctoring import ProctoringSession
from examguard.utils.violations import ViolationKind

from conftest import StreamFactory, face_frame, solid_frame, to_bgr


def run(coro):
    return asyncio.run(coro)


def make_session(frames=None, fail=None, **config):
    factory = StreamFactory(frames, fail=fail)
    focus = ManualFocusSource()
    events = {"violations": [], "disqualified": 0}

    def on_disqualify():
        events["disqualified"] += 1

    session = ProctoringSession(
        ProctoringConfig(**config),
        on_violation=events["violations"].append,
        on_disqualify=on_disqualify,
        session_id="attempt-1",
        stream_factory=factory,
        focus_source=focus,
    )
    return session, factory, focus, events


def test_start_and_idempotent_stop(skin_bgr):
    session, factory, _, _ = make_session([skin_bgr])

    async def scenario():
        assert await session.start_camera() is True
        assert session.state.camera_enabled is True
        assert session.state.error is None
        assert session.sampling is True
        # Already active
        assert await session.start_camera() is True
        assert len(factory.streams) == 1

        session.stop_camera()
        assert session.state.camera_enabled is False
        session.stop_camera()
        assert session.state.camera_enabled is False
        assert session.sampling is False

    run(scenario())
    camera = factory.streams[0].video
    assert camera.is_open is False
    assert camera.close_calls == 1
    assert factory.streams[0].audio.is_open is False


def test_device_failure_sets_error_and_allows_retry(skin_bgr):
    session, factory, _, _ = make_session([skin_bgr], fail="Permission denied")

    async def scenario():
        assert await session.start_camera() is False
        assert session.state.camera_enabled is False
        assert session.state.error == "Permission denied"
        assert session.sampling is False

        factory.fail = None
        assert await session.start_camera() is True
        assert session.state.error is None
        session.stop_camera()

    run(scenario())


def test_failure_without_message_uses_default_text():
    def factory(config):
        raise DeviceError()

    session = ProctoringSession(ProctoringConfig(), stream_factory=factory)
    assert run(session.start_camera()) is False
    assert session.state.error == "Camera access denied"


def test_sustained_absence_yields_one_violation(skin_bgr, black_bgr):
    session, _, _, events = make_session([skin_bgr, black_bgr, black_bgr, black_bgr])

    async def scenario():
        await session.start_camera()
        results = [session.check_presence() for _ in range(4)]
        session.stop_camera()
        return results

    results = run(scenario())
    assert [r.face_detected for r in results] == [True, False, False, False]
    assert session.state.violations == 1
    assert events["violations"] == [ViolationKind.NO_FACE]
    assert session.state.face_detected is False


def test_unclassifiable_frame_is_skipped(skin_bgr):
    tiny = np.zeros((1, 1, 3), dtype=np.uint8)
    session, _, _, _ = make_session([tiny, skin_bgr])

    async def scenario():
        await session.start_camera()
        first = session.check_presence()
        second = session.check_presence()
        session.stop_camera()
        return first, second

    first, second = run(scenario())
    assert first is None
    assert second.face_detected is True
    assert session.state.violations == 0
    assert session.state.error is None


def test_end_to_end_disqualification(skin_bgr, black_bgr):
    session, factory, focus, events = make_session([skin_bgr, black_bgr], max_violations=2)

    async def scenario():
        await session.start_camera()
        session.check_presence()
        session.check_presence()
        assert session.state.violations == 1
        focus.visibility_changed(hidden=True)

    run(scenario())
    state = session.state
    assert state.violations == 2
    assert state.is_disqualified is True
    assert events["disqualified"] == 1
    assert events["violations"] == [ViolationKind.NO_FACE, ViolationKind.TAB_SWITCH]

    # Disqualification releases the camera
    assert state.camera_enabled is False
    assert factory.streams[0].video.is_open is False

    focus.blur()
    session.add_violation("no_face")
    assert session.state.violations == 2
    assert events["disqualified"] == 1
    assert run(session.start_camera()) is False


def test_timer_drives_presence_checks(black_bgr):
    session, _, _, events = make_session([black_bgr], check_interval_ms=10)

    async def scenario():
        await session.start_camera()
        await asyncio.sleep(0.15)
        session.stop_camera()

    run(scenario())
    assert session.last_presence is not None
    assert session.last_presence.face_detected is False
    assert session.state.violations == 1
    assert events["violations"] == [ViolationKind.NO_FACE]


def test_capture_frame_returns_jpeg_data_url():
    session, _, _, _ = make_session([to_bgr(face_frame())])
    assert session.capture_frame() is None

    async def scenario():
        await session.start_camera()
        url = session.capture_frame()
        session.stop_camera()
        return url

    url = run(scenario())
    prefix = "data:image/jpeg;base64,"
    assert url.startswith(prefix)
    assert base64.b64decode(url[len(prefix):])[:2] == b"\xff\xd8"
    assert session.capture_frame() is None


def test_capture_frame_without_frames():
    session, _, _, _ = make_session([])

    async def scenario():
        await session.start_camera()
        url = session.capture_frame()
        session.stop_camera()
        return url

    assert run(scenario()) is None


def test_context_manager_releases_on_error(skin_bgr):
    session, factory, focus, _ = make_session([skin_bgr])

    async def scenario():
        async with session:
            assert session.state.camera_enabled is True
            raise RuntimeError("exam crashed")

    with pytest.raises(RuntimeError):
        run(scenario())

    assert session.state.camera_enabled is False
    assert factory.streams[0].video.is_open is False
    # Focus source detached on close
    focus.blur()
    assert session.state.violations == 0


def test_close_returns_report_and_finishes_session(skin_bgr):
    session, _, focus, _ = make_session([skin_bgr], max_violations=3)

    async def scenario():
        await session.start_camera()
        focus.blur()
        session.add_violation(ViolationKind.TAB_SWITCH)
        return session.close()

    report = run(scenario())
    assert report.violations == 2
    assert report.passed is True

    data = report.to_dict()
    assert data["session_id"] == "attempt-1"
    assert data["proctoring_violations"] == 2
    assert data["max_violations"] == 3
    assert data["violations_by_kind"] == {"window_blur": 1, "tab_switch": 1}
    assert data["started_at"] is not None and data["ended_at"] is not None

    assert run(session.start_camera()) is False


def test_manual_violation_counts_without_camera():
    session = ProctoringSession(ProctoringConfig(max_violations=1))
    assert session.add_violation("tab_switch") is True
    assert session.state.is_disqualified is True
    assert session.report().passed is False


def test_cancelled_start_releases_camera(skin_bgr):
    session, factory, _, _ = make_session([skin_bgr])
    factory.delay = 0.2

    async def scenario():
        task = asyncio.create_task(session.start_camera())
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        session.close()
        # Let the device open finish in its worker thread
        await asyncio.sleep(0.4)

    run(scenario())
    assert len(factory.streams) == 1
    assert factory.streams[0].video.is_open is False
    assert factory.streams[0].audio.is_open is False
    assert session.state.camera_enabled is False


def test_concurrent_starts_acquire_once(skin_bgr):
    session, factory, _, _ = make_session([skin_bgr])
    factory.delay = 0.05

    async def scenario():
        results = await asyncio.gather(session.start_camera(), session.start_camera())
        assert results == [True, True]
        assert len(factory.streams) == 1
        session.close()

    run(scenario())
    assert factory.streams[0].video.is_open is False


def test_audio_level_follows_stream(skin_bgr):
    session, factory, _, _ = make_session([skin_bgr])
    factory.level = 0.25

    async def scenario():
        assert session.audio_level is None
        await session.start_camera()
        assert session.audio_level == pytest.approx(0.25)
        session.stop_camera()
        assert session.audio_level is None

    run(scenario())
