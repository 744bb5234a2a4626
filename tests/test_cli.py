"""Tests for the command-line front end."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from psstats import cli
from psstats.cli import ArgumentParseError, UsageError, build_config, parse_args, parse_interval
from psstats.config import ConnectionOptions, SamplerConfig
from psstats.connector import ConnectorError
from psstats.models import ConnectionSpec, ConnectionStrategy


class _FakeConnector:
    instances: list["_FakeConnector"] = []
    fail_with: Exception | None = None

    def __init__(self) -> None:
        self.spec: ConnectionSpec | None = None
        self.closed = False
        _FakeConnector.instances.append(self)

    @property
    def handle(self) -> object:
        return object()

    def connect(self, spec: ConnectionSpec) -> object:
        if _FakeConnector.fail_with is not None:
            raise _FakeConnector.fail_with
        self.spec = spec
        return self.handle

    def close(self) -> None:
        self.closed = True


class _FakeSampler:
    instances: list["_FakeSampler"] = []

    def __init__(self, handle: Any, config: SamplerConfig) -> None:
        self.config = config
        self.ran = False
        self.cleaned_up = False
        _FakeSampler.instances.append(self)

    def run(self) -> None:
        self.ran = True

    def cleanup(self) -> None:
        self.cleaned_up = True


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch) -> None:
    _FakeConnector.instances = []
    _FakeConnector.fail_with = None
    _FakeSampler.instances = []
    monkeypatch.setattr(cli, "Connector", _FakeConnector)
    monkeypatch.setattr(cli, "Sampler", _FakeSampler)
    monkeypatch.setattr(cli, "load_config", SamplerConfig)
    monkeypatch.setattr(cli, "configure_logging", lambda debug: None)


def test_positional_delay_and_count() -> None:
    assert parse_interval(["2", "5"]) == (2, 5)
    assert parse_interval(["3"]) == (3, None)
    assert parse_interval([]) == (None, None)


def test_non_integer_delay_is_a_parse_error() -> None:
    with pytest.raises(ArgumentParseError):
        parse_interval(["x"])


def test_too_many_positionals_is_a_usage_error() -> None:
    with pytest.raises(UsageError):
        parse_interval(["1", "2", "3", "4"])


@pytest.mark.parametrize("value", ["1_0", " 2 ", "2.0", "", "\u0663"])
def test_only_plain_decimal_integers_are_accepted(value: str) -> None:
    with pytest.raises(ArgumentParseError):
        parse_interval([value])


def test_signed_decimal_delay_is_accepted() -> None:
    assert parse_interval(["+2", "05"]) == (2, 5)


def test_negative_port_is_a_parse_error() -> None:
    with pytest.raises(ArgumentParseError):
        build_config(parse_args(["--host=db1", "--port=-5"]))


def test_build_config_defaults() -> None:
    config = build_config(parse_args([]))

    assert config == SamplerConfig()


def test_build_config_collects_flags() -> None:
    args = parse_args(["--host=db1", "--port=3307", "--user", "monitor", "--limit=5", "--totals", "2", "10"])

    config = build_config(args)

    assert config.delay == 2
    assert config.count == 10
    assert config.limit == 5
    assert config.totals is True
    assert config.connection == ConnectionOptions(host="db1", port=3307, user="monitor")


def test_command_line_overrides_config_file() -> None:
    base = SamplerConfig(view="file_io_latency", limit=20).with_connection(defaults_file="/etc/monitor.cnf")

    config = build_config(parse_args(["--limit=3"]), base)

    assert config.view == "file_io_latency"
    assert config.limit == 3
    assert config.connection.defaults_file == "/etc/monitor.cnf"


def test_unknown_view_is_a_usage_error() -> None:
    with pytest.raises(UsageError):
        build_config(parse_args(["--view=mutex_latency"]))


def test_main_runs_sampler_with_components(capsys: pytest.CaptureFixture[str]) -> None:
    status = cli.main(["--host=db1", "--port=3307", "2", "5"])

    assert status == 0
    connector = _FakeConnector.instances[0]
    assert connector.spec is not None
    assert connector.spec.strategy is ConnectionStrategy.BY_COMPONENTS
    assert connector.spec.components() == {"host": "db1", "port": "3307"}
    assert connector.closed is True
    sampler = _FakeSampler.instances[0]
    assert sampler.ran and sampler.cleaned_up
    assert (sampler.config.delay, sampler.config.count) == (2, 5)


def test_main_uses_implicit_defaults_file() -> None:
    status = cli.main([])

    assert status == 0
    spec = _FakeConnector.instances[0].spec
    assert spec is not None
    assert spec.strategy is ConnectionStrategy.BY_DEFAULTS_FILE
    assert spec.defaults_file == ""


def test_main_rejects_host_with_socket(capsys: pytest.CaptureFixture[str]) -> None:
    status = cli.main(["--host=db1", "--socket=/tmp/s"])

    assert status == 1
    assert "Do not specify --host and --socket together" in capsys.readouterr().out
    assert _FakeConnector.instances == []


def test_main_rejects_socket_with_port(capsys: pytest.CaptureFixture[str]) -> None:
    status = cli.main(["--socket=/tmp/s", "--port=3307"])

    assert status == 1
    assert "Do not specify --socket and --port together" in capsys.readouterr().out
    assert _FakeConnector.instances == []


def test_main_too_many_arguments(capsys: pytest.CaptureFixture[str]) -> None:
    status = cli.main(["1", "2", "3", "4"])

    assert status == 1
    assert "Usage: ps-stats" in capsys.readouterr().out
    assert _FakeSampler.instances == []


def test_main_bad_delay_is_fatal(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="psstats.cli"):
        status = cli.main(["x"])

    assert status == 1
    assert "Unable to parse delay" in caplog.text
    assert _FakeConnector.instances == []


def test_main_bad_port_is_fatal() -> None:
    assert cli.main(["--port=abc"]) == 1


def test_main_too_many_arguments_wins_over_help(capsys: pytest.CaptureFixture[str]) -> None:
    status = cli.main(["--help", "1", "2", "3"])

    assert status == 1
    out = capsys.readouterr().out
    assert "ps-stats: Too many arguments" in out
    assert "Usage: ps-stats <options> [delay [count]]" in out


def test_main_negative_port_is_fatal(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="psstats.cli"):
        status = cli.main(["--host=db1", "--port=-5"])

    assert status == 1
    assert "Unable to parse port" in caplog.text
    assert _FakeConnector.instances == []


def test_main_help_and_version(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--help"]) == 0
    assert "Usage: ps-stats <options> [delay [count]]" in capsys.readouterr().out

    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == f"ps-stats version {cli.__version__}"
    assert _FakeConnector.instances == []


def test_main_connection_failure(caplog: pytest.LogCaptureFixture) -> None:
    _FakeConnector.fail_with = ConnectorError("Failed to connect to MySQL: refused")

    with caplog.at_level(logging.ERROR, logger="psstats.cli"):
        status = cli.main(["--host=db1"])

    assert status == 1
    assert "refused" in caplog.text
    assert _FakeConnector.instances[0].closed is True
    assert _FakeSampler.instances == []
