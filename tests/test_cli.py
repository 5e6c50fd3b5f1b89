import pytest

import tempest_data.cli as cli


def _run(monkeypatch, args, env=None):
    calls = {"config": None, "logging": None}
    for key in list(cli.os.environ):
        if key.startswith("TEMPEST_DATA_"):
            monkeypatch.delenv(key)
    for key, value in (env or {}).items():
        monkeypatch.setenv(key, value)

    def _run_collector(config):
        calls["config"] = config
        return 0

    def _setup_logging(*, verbose, logfile):
        calls["logging"] = (verbose, logfile)

    monkeypatch.setattr(cli, "run_collector", _run_collector)
    monkeypatch.setattr(cli, "setup_logging", _setup_logging)
    exit_code = cli.main(args)
    return calls, exit_code


def test_short_flags(monkeypatch):
    calls, exit_code = _run(
        monkeypatch,
        ["-v", "-o", "tempest.log", "-d", "tempest.tsv", "-s", "tempest.json"],
    )
    assert exit_code == 0
    config = calls["config"]
    assert config.verbose is True
    assert config.logfile == "tempest.log"
    assert config.datafile == "tempest.tsv"
    assert config.statefile == "tempest.json"
    assert calls["logging"] == (True, "tempest.log")


def test_long_flags_and_types(monkeypatch):
    calls, exit_code = _run(
        monkeypatch,
        ["--port", "50333", "--bind-host", "127.0.0.1", "--no-statefile-fsync", "--datafile-fsync"],
    )
    assert exit_code == 0
    config = calls["config"]
    assert config.port == 50333
    assert config.bind_host == "127.0.0.1"
    assert config.statefile_fsync is False
    assert config.datafile_fsync is True


def test_defaults_without_flags(monkeypatch):
    calls, exit_code = _run(monkeypatch, [])
    assert exit_code == 0
    assert calls["config"].port == 50222
    assert calls["config"].verbose is False
    assert calls["logging"] == (False, None)


def test_env_used_when_flag_absent(monkeypatch):
    calls, _ = _run(monkeypatch, [], env={"TEMPEST_DATA_STATEFILE": "/var/tmp/state.json"})
    assert calls["config"].statefile == "/var/tmp/state.json"


def test_invalid_port_exits(monkeypatch):
    with pytest.raises(SystemExit) as excinfo:
        _run(monkeypatch, ["--port", "not-a-port"])
    assert excinfo.value.code == 2
    with pytest.raises(SystemExit):
        _run(monkeypatch, ["--port", "70000"])


def test_exit_code_from_collector(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda **_kwargs: None)
    monkeypatch.setattr(cli, "run_collector", lambda config: 1)
    assert cli.main([]) == 1
