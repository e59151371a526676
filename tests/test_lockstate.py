import subprocess

import pytest

from pulsarbattery import lockstate


@pytest.mark.parametrize(
    "returncode, stdout, expected",
    [
        (0, "yes\n", True),
        (0, "no\n", False),
        (1, "", False),
    ],
)
def test_logind_locked_hint(mocker, monkeypatch, returncode, stdout, expected):
    monkeypatch.setenv("XDG_SESSION_ID", "4")
    run = mocker.patch("pulsarbattery.lockstate.subprocess.run",
                       return_value=subprocess.CompletedProcess([], returncode, stdout=stdout))

    assert lockstate._logind_locked() is expected
    assert run.call_args[0][0][:3] == ["loginctl", "show-session", "4"]


def test_missing_loginctl_is_unlocked(mocker):
    mocker.patch("pulsarbattery.lockstate.subprocess.run", side_effect=FileNotFoundError)

    assert lockstate._logind_locked() is False


def test_platform_dispatch(mocker):
    mocker.patch.object(lockstate.sys, "platform", "linux")
    probe = mocker.patch("pulsarbattery.lockstate._logind_locked", return_value=True)

    assert lockstate.is_session_locked() is True
    probe.assert_called_once_with()
