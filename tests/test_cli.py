import json

import pytest

from workload import cli
from workload.filters import STANDARD_FILTERS


class ContextTransport:
    def __init__(self, transport):
        self.transport = transport

    async def __aenter__(self):
        return self.transport

    async def __aexit__(self, *exc):
        return None


@pytest.fixture
def patched(monkeypatch, transport):
    monkeypatch.setattr(cli, "HttpxTransport", lambda timeout=None: ContextTransport(transport))
    return transport


def test_build_config_from_arguments():
    args = cli.build_parser().parse_args(
        ["--max", "30", "--filter", "WD", "--filter", "EX", "-H", "Accept: text/plain", "2,POST,http://h/,hi", "http://h/x"]
    )
    config = cli.build_config(args)
    assert config.max_per_minute == 30
    assert config.filters == [STANDARD_FILTERS["WD"], STANDARD_FILTERS["EX"]]
    assert config.headers == {"Accept": "text/plain"}
    assert [(r.weight, r.method, r.url, r.body) for r in config.requests] == [
        (2, "POST", "http://h/", "hi"),
        (1, "GET", "http://h/x", None),
    ]


def test_build_config_from_file(tmp_path):
    path = tmp_path / "conf.json"
    path.write_text(json.dumps({"max": 1, "requests": [{"url": "http://h/"}]}))
    config = cli.build_config(cli.build_parser().parse_args(["-f", str(path)]))
    assert config.max_per_minute == 1


def test_no_requests_is_an_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == 2
    assert "invalid arguments" in capsys.readouterr().err


def test_unknown_filter_is_an_error():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--filter", "XX", "http://h/"])
    assert excinfo.value.code == 2


def test_bad_rate_is_an_error(patched):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--redis", "", "--max", "0", "http://h/"])
    assert excinfo.value.code == 2


def test_run_prints_visits(patched, capsys):
    cli.main(["--redis", "", "--max", "6000", "--duration", "0.1", "http://h/"])
    out = capsys.readouterr().out.splitlines()
    assert patched.calls
    assert len(out) == len(patched.calls)
    assert out[0] == "200 OK GET http://h/"


def test_silent(patched, capsys):
    cli.main(["--silent", "--redis", "", "--max", "6000", "--duration", "0.1", "http://h/"])
    assert patched.calls
    assert capsys.readouterr().out == ""


def test_zero_duration_stops_right_away(patched, capsys):
    cli.main(["--redis", "", "--duration", "0", "http://h/"])
    assert patched.calls == []
    assert capsys.readouterr().out == ""
