import json

import pytest

from workload.config import WorkloadConfig, load_config, parse_headers, parse_request_line
from workload.errors import InvalidRate, InvalidTemplateSet, UnknownFilter
from workload.filters import STANDARD_FILTERS
from workload.models import RequestTemplate
from workload.scheduler import Scheduler


def test_parse_headers():
    assert parse_headers([]) == {}
    assert parse_headers(["Accept: text/plain"]) == {"Accept": "text/plain"}
    assert parse_headers(["A: 1", "B:2", "garbage", ": no-name"]) == {"A": "1", "B": "2"}
    assert parse_headers(["X-Time: 12:30"]) == {"X-Time": "12:30"}


def test_parse_request_line_url_only():
    t = parse_request_line("http://example.com")
    assert (t.weight, t.method, t.url, t.body) == (1, "GET", "http://example.com", None)


def test_parse_request_line_all_fields():
    t = parse_request_line('2,POST,http://example.com,"Hello, World"')
    assert t.weight == 2
    assert t.method == "POST"
    assert t.url == "http://example.com"
    assert t.body == "Hello, World"


def test_parse_request_line_method_without_weight():
    t = parse_request_line("put,http://example.com/x")
    assert (t.weight, t.method) == (1, "PUT")


def test_parse_request_line_requires_url():
    with pytest.raises(InvalidTemplateSet):
        parse_request_line("3,POST")


def test_from_mapping_defaults():
    config = WorkloadConfig.from_mapping({"requests": [{"url": "http://a"}]})
    assert config.max_per_minute == 12
    assert config.filters == []
    assert config.headers == {}
    assert config.requests == [RequestTemplate(url="http://a")]


def test_from_mapping_filters_win_over_filter():
    def mine(req):
        return None

    config = WorkloadConfig.from_mapping(
        {"requests": ["http://a"], "filters": ["EX", mine], "filter": "WD"}
    )
    assert config.filters == [STANDARD_FILTERS["EX"], mine]


def test_from_mapping_single_filter():
    config = WorkloadConfig.from_mapping({"requests": ["http://a"], "filter": "wh"})
    assert config.filters == [STANDARD_FILTERS["WH"]]


def test_from_mapping_unknown_filter():
    with pytest.raises(UnknownFilter):
        WorkloadConfig.from_mapping({"requests": ["http://a"], "filters": ["NOPE"]})


def test_load_config(tmp_path):
    path = tmp_path / "workload.json"
    path.write_text(json.dumps({
        "max": 60,
        "headers": {"Accept": "application/json"},
        "requests": [
            {"url": "http://example.com"},
            {"weight": 3, "method": "post", "url": "http://example.com/foo", "body": "hi",
             "headers": {"Content-Type": "text/plain"}},
        ],
    }))
    config = load_config(path)
    assert config.max_per_minute == 60
    assert config.headers == {"Accept": "application/json"}
    second = config.requests[1]
    assert (second.weight, second.method, second.body) == (3, "POST", "hi")
    assert dict(second.headers) == {"Content-Type": "text/plain"}


def test_load_config_rejects_non_object(tmp_path):
    path = tmp_path / "workload.json"
    path.write_text("[]")
    with pytest.raises(InvalidTemplateSet):
        load_config(path)


def test_zero_rate_in_mapping_is_kept_and_rejected(transport):
    config = WorkloadConfig.from_mapping({"max": 0, "requests": ["http://a"]})
    assert config.max_per_minute == 0
    with pytest.raises(InvalidRate):
        Scheduler(config, transport)
