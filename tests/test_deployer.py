from dataclasses import replace

import pytest

from conftest import FakeRunner, FakeView
from dist_deployer.config.storage import SettingsStore
from dist_deployer.services.deployer import (
    DeploymentRunner,
    DeployOutcome,
    DeployState,
    DeployView,
    RemoteClearFailure,
    RemoteCopyFailure,
    ValidationError,
    failure_area,
    validate_config,
)
from dist_deployer.services.process_runner import ProcessResult


@pytest.fixture
def store(tmp_path):
    return SettingsStore(directory=tmp_path / "settings")


def _runner(view, store, process_runner):
    return DeploymentRunner(
        view, store, process_runner, ssh_program="ssh", scp_program="scp", expand_source=False
    )


# ---- validation

@pytest.mark.parametrize(
    "field, value, reason",
    [
        ("source_path", "/definitely/not/here", "source_missing"),
        ("remote_host", "", "host_missing"),
        ("remote_host", "   ", "host_missing"),
        ("remote_user", "", "user_missing"),
        ("remote_dest", "\t", "dest_missing"),
        ("key_path", "/no/such/key", "key_missing"),
    ],
)
def test_validation_reasons(valid_config, field, value, reason):
    with pytest.raises(ValidationError) as info:
        validate_config(replace(valid_config, **{field: value}))
    assert info.value.reason == reason


def test_validation_messages_are_distinct(valid_config):
    messages = set()
    for field in ("remote_host", "remote_user", "remote_dest", "key_path"):
        with pytest.raises(ValidationError) as info:
            validate_config(replace(valid_config, **{field: ""}))
        messages.add(str(info.value))
    assert len(messages) == 4


def test_source_must_be_a_directory(valid_config):
    with pytest.raises(ValidationError) as info:
        validate_config(replace(valid_config, source_path=valid_config.key_path))
    assert info.value.reason == "source_missing"


def test_valid_config_passes(valid_config):
    validate_config(valid_config)


# ---- flow

def test_missing_source_aborts_before_any_process(valid_config, store):
    view, proc = FakeView(), FakeRunner()
    busy = []
    runner = _runner(view, store, proc)
    runner.on_busy_changed(busy.append)

    outcome = runner.deploy(replace(valid_config, source_path="/nope"))

    assert outcome is DeployOutcome.INVALID
    assert proc.calls == []
    assert view.confirmations == []
    assert len(view.warnings) == 1
    assert busy == []
    assert runner.busy is False
    assert not store.path().exists()


def test_declined_confirmation_has_no_side_effects(valid_config, store):
    view, proc = FakeView(answer=False), FakeRunner()

    outcome = _runner(view, store, proc).deploy(valid_config)

    assert outcome is DeployOutcome.ABORTED
    assert proc.calls == []
    assert not store.path().exists()
    assert view.lines == ["Deployment cancelled."]
    assert "/var/www/html" in view.confirmations[0]
    assert "10.0.0.5" in view.confirmations[0]


def test_successful_deploy_scenario(valid_config, store):
    view = FakeView()
    saved_before_clear = []
    proc = FakeRunner(on_run=lambda program, args: saved_before_clear.append(store.path().exists()))
    busy = []
    runner = _runner(view, store, proc)
    runner.on_busy_changed(busy.append)

    outcome = runner.deploy(valid_config)

    assert outcome is DeployOutcome.SUCCEEDED
    assert view.lines == [
        "Clearing remote directory: /var/www/html",
        f"Copying files from {valid_config.source_path}...",
        "Deployment Complete Successfully!",
    ]
    assert len(view.successes) == 1
    assert view.errors == []
    assert saved_before_clear[0] is True
    assert store.load() == valid_config
    assert [c[0] for c in proc.calls] == ["ssh", "scp"]
    assert proc.calls[0][-1] == "rm -rf /var/www/html/*"
    assert proc.calls[1][-1] == "deploy@10.0.0.5:/var/www/html"
    assert busy == [True, False]
    assert runner.state is DeployState.IDLE


def test_failed_clear_never_copies(valid_config, store):
    view = FakeView()
    proc = FakeRunner([ProcessResult(255, stderr="Permission denied (publickey).\n")])
    busy = []
    runner = _runner(view, store, proc)
    runner.on_busy_changed(busy.append)

    outcome = runner.deploy(valid_config)

    assert outcome is DeployOutcome.FAILED
    assert len(proc.calls) == 1
    assert proc.calls[0][0] == "ssh"
    assert "Permission denied (publickey)." in view.errors[0]
    assert "Permission denied (publickey)." in view.lines[-1]
    assert view.successes == []
    assert busy == [True, False]


def test_failed_copy_reports_stderr(valid_config, store):
    view = FakeView()
    proc = FakeRunner([ProcessResult(0), ProcessResult(1, stderr="scp: /var/www/html: No such file or directory")])

    outcome = _runner(view, store, proc).deploy(valid_config)

    assert outcome is DeployOutcome.FAILED
    assert len(proc.calls) == 2
    assert "No such file or directory" in view.errors[0]
    assert view.lines[-1].startswith("Error: ")


def test_step_failure_types(valid_config, store):
    runner = _runner(FakeView(), store, FakeRunner([ProcessResult(2, stderr="x")]))
    with pytest.raises(RemoteClearFailure) as info:
        runner._clear(valid_config, runner.process_runner)
    assert info.value.exit_code == 2
    assert info.value.stderr == "x"

    runner = _runner(FakeView(), store, FakeRunner([ProcessResult(3, stderr="y")]))
    with pytest.raises(RemoteCopyFailure):
        runner._copy(valid_config, runner.process_runner)


def test_missing_executable_is_a_failure(valid_config, store):
    view = FakeView()

    class _Missing(FakeRunner):
        def run(self, program, args):
            super().run(program, args)
            raise FileNotFoundError(2, "No such file or directory", program)

    proc = _Missing()
    runner = _runner(view, store, proc)

    assert runner.deploy(valid_config) is DeployOutcome.FAILED
    assert len(proc.calls) == 1
    assert "ssh" in view.errors[0]
    assert runner.busy is False


def test_settings_save_failure_is_reported(valid_config, store, monkeypatch):
    view, proc = FakeView(), FakeRunner()

    def _boom(cfg):
        raise PermissionError("read-only")

    monkeypatch.setattr(store, "save", _boom)
    runner = _runner(view, store, proc)

    assert runner.deploy(valid_config) is DeployOutcome.FAILED
    assert proc.calls == []
    assert "read-only" in view.errors[0]
    assert runner.busy is False


def test_unexpected_error_still_clears_busy(valid_config, store):
    class _Broken(FakeRunner):
        def run(self, program, args):
            raise RuntimeError("bug")

    runner = _runner(FakeView(), store, _Broken())
    with pytest.raises(RuntimeError):
        runner.deploy(valid_config)
    assert runner.busy is False
    assert runner.state is DeployState.IDLE


def test_reentrant_deploy_is_refused(valid_config, store):
    view = FakeView()
    nested = []
    runner = None

    def _on_run(program, args):
        if not nested:
            nested.append(runner.deploy(valid_config))

    proc = FakeRunner(on_run=_on_run)
    runner = _runner(view, store, proc)

    assert runner.deploy(valid_config) is DeployOutcome.SUCCEEDED
    assert nested == [DeployOutcome.ABORTED]
    assert len(proc.calls) == 2
    assert "A deployment is already running." in view.lines


def test_per_call_runner_overrides_default(valid_config, store):
    default, override = FakeRunner(), FakeRunner()

    _runner(FakeView(), store, default).deploy(valid_config, override)

    assert default.calls == []
    assert len(override.calls) == 2


def test_fake_view_satisfies_view_protocol():
    assert isinstance(FakeView(), DeployView)
    assert not isinstance(object(), DeployView)


def test_failure_area_names_the_step():
    assert failure_area(RemoteClearFailure("x")) == "CLR"
    assert failure_area(RemoteCopyFailure("x")) == "CPY"
    assert failure_area(PermissionError("ro")) == "SAVE"
    assert failure_area(RuntimeError("bug")) == "DEP"


def test_failure_is_logged_with_step_error_id(valid_config, store, caplog):
    view = FakeView()
    proc = FakeRunner([ProcessResult(0), ProcessResult(1, stderr="lost connection")])

    with caplog.at_level("ERROR", logger="dist_deployer"):
        _runner(view, store, proc).deploy(valid_config)

    ids = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Error-ID=")]
    assert len(ids) == 1
    err_id = ids[0].split("=", 1)[1]
    assert err_id.startswith("CPY-")
    assert f"Error code: {err_id}" in view.errors[0]
