import subprocess

import pytest
from google.auth import exceptions as auth_exceptions

from autoneg_controller.core.errors import EmptyProjectError, ProjectDetectionError
from autoneg_controller.providers.gcp import project as project_module
from autoneg_controller.providers.gcp.project import GCLOUD_PROJECT_COMMAND, determine_project_id


def _fake_gcloud(returncode=0, stdout="", stderr=""):
    calls = []

    def fake_run(args, capture_output=False, text=False, check=False):
        calls.append(args)
        if check and returncode != 0:
            raise subprocess.CalledProcessError(returncode, args, output=stdout, stderr=stderr)
        return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)

    return fake_run, calls


def _not_called(*_args, **_kwargs):
    raise AssertionError("gcloud must not be invoked on GCE")


def test_metadata_project_on_gce(monkeypatch, logger) -> None:
    monkeypatch.setattr(project_module, "on_gce", lambda request: True)
    monkeypatch.setattr(project_module, "metadata_project_id", lambda request: "proj-a")
    monkeypatch.setattr(project_module.subprocess, "run", _not_called)

    assert determine_project_id(logger) == "proj-a"


def test_metadata_failure_is_wrapped(monkeypatch, logger) -> None:
    cause = auth_exceptions.TransportError("metadata unreachable")

    def failing_metadata(request):
        raise cause

    monkeypatch.setattr(project_module, "on_gce", lambda request: True)
    monkeypatch.setattr(project_module, "metadata_project_id", failing_metadata)
    monkeypatch.setattr(project_module.subprocess, "run", _not_called)

    with pytest.raises(ProjectDetectionError) as excinfo:
        determine_project_id(logger)

    assert "error when getting project ID from compute metadata" in str(excinfo.value)
    assert "metadata unreachable" in str(excinfo.value)
    assert excinfo.value.__cause__ is cause


def test_gcloud_project_off_gce(monkeypatch, logger) -> None:
    fake_run, calls = _fake_gcloud(stdout="proj-b\n")
    monkeypatch.setattr(project_module, "on_gce", lambda request: False)
    monkeypatch.setattr(project_module.subprocess, "run", fake_run)

    assert determine_project_id(logger) == "proj-b"
    assert calls == [GCLOUD_PROJECT_COMMAND]
    assert GCLOUD_PROJECT_COMMAND == ["gcloud", "config", "get-value", "core/project", "-q"]


def test_gcloud_empty_value(monkeypatch, logger) -> None:
    fake_run, _ = _fake_gcloud(stdout="  \n")
    monkeypatch.setattr(project_module, "on_gce", lambda request: False)
    monkeypatch.setattr(project_module.subprocess, "run", fake_run)

    with pytest.raises(EmptyProjectError, match="gcloud command returned empty project value"):
        determine_project_id(logger)


def test_gcloud_failure_includes_stderr(monkeypatch, logger) -> None:
    fake_run, _ = _fake_gcloud(returncode=1, stderr="not logged in")
    monkeypatch.setattr(project_module, "on_gce", lambda request: False)
    monkeypatch.setattr(project_module.subprocess, "run", fake_run)

    with pytest.raises(ProjectDetectionError) as excinfo:
        determine_project_id(logger)

    assert not isinstance(excinfo.value, EmptyProjectError)
    assert "not logged in" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, subprocess.CalledProcessError)


def test_gcloud_failure_without_stderr(monkeypatch, logger) -> None:
    fake_run, _ = _fake_gcloud(returncode=2)
    monkeypatch.setattr(project_module, "on_gce", lambda request: False)
    monkeypatch.setattr(project_module.subprocess, "run", fake_run)

    with pytest.raises(ProjectDetectionError) as excinfo:
        determine_project_id(logger)

    assert "stderr=" not in str(excinfo.value)


def test_gcloud_not_installed(monkeypatch, logger) -> None:
    def missing(*_args, **_kwargs):
        raise FileNotFoundError(2, "No such file or directory", "gcloud")

    monkeypatch.setattr(project_module, "on_gce", lambda request: False)
    monkeypatch.setattr(project_module.subprocess, "run", missing)

    with pytest.raises(ProjectDetectionError, match="error when running gcloud command"):
        determine_project_id(logger)


class FakeSession:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


def test_metadata_calls_share_one_session(monkeypatch, logger) -> None:
    sessions = []
    requests_seen = []

    def fake_session():
        session = FakeSession()
        sessions.append(session)
        return session

    def probe(request):
        requests_seen.append(request)
        return True

    def lookup(request):
        requests_seen.append(request)
        return "proj-a"

    monkeypatch.setattr(project_module.requests, "Session", fake_session)
    monkeypatch.setattr(project_module, "on_gce", probe)
    monkeypatch.setattr(project_module, "metadata_project_id", lookup)

    assert determine_project_id(logger) == "proj-a"
    assert len(sessions) == 1
    assert sessions[0].closed
    assert requests_seen[0] is requests_seen[1]
    assert requests_seen[0].session is sessions[0]


def test_caller_session_is_left_open(monkeypatch, logger) -> None:
    session = FakeSession()
    fake_run, _ = _fake_gcloud(stdout="proj-b\n")
    monkeypatch.setattr(project_module, "on_gce", lambda request: False)
    monkeypatch.setattr(project_module.subprocess, "run", fake_run)

    assert determine_project_id(logger, session=session) == "proj-b"
    assert not session.closed
