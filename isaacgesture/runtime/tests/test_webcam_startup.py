import pytest

from isaacgesture.core.config import DEFAULT_PRESET
from isaacgesture.runtime import run_webcam
from isaacgesture.sensor.webcam_mp import CameraError


class FakeKeyboard:
    def __init__(self):
        self.closed = False

    def send(self, sig):
        pass

    def close(self):
        self.closed = True


@pytest.fixture
def quiet_startup(monkeypatch):
    monkeypatch.setattr(run_webcam, "_build_preset", lambda: DEFAULT_PRESET)
    monkeypatch.setattr(run_webcam, "init_enabled", lambda *a, **k: None)


def test_camera_not_opened_when_uinput_fails(monkeypatch, quiet_startup):
    opened = []

    def no_uinput(keys):
        raise PermissionError("/dev/uinput")

    monkeypatch.setattr(run_webcam.UInputKeyboard, "create", staticmethod(no_uinput))
    monkeypatch.setattr(run_webcam, "WebcamPoseSrc", lambda **kw: opened.append(kw))

    with pytest.raises(PermissionError):
        run_webcam.main()
    assert opened == []


def test_camera_error_closes_keyboard(monkeypatch, quiet_startup):
    kb = FakeKeyboard()
    seen = {}

    def no_camera(**kw):
        seen.update(kw)
        raise CameraError("cannot open camera 0")

    monkeypatch.setattr(run_webcam.UInputKeyboard, "create", staticmethod(lambda keys: kb))
    monkeypatch.setattr(run_webcam, "WebcamPoseSrc", no_camera)

    assert run_webcam.main() == 1
    assert kb.closed is True
    assert seen["min_conf"] == DEFAULT_PRESET.tracking.min_conf
