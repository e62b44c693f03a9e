from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
import yaml

from cmdmux.engine.types import Result, RunMetadata, TaskOutput
from cmdmux.output.formats import dump_result, load_result, supported_formats


def _result() -> Result:
    started = datetime(2024, 5, 17, 12, 30, 1, 123456, tzinfo=timezone.utc)
    return Result(
        metadata=RunMetadata(started=started, ended=started + timedelta(seconds=1, microseconds=7)),
        tasks={
            0: TaskOutput(""),
            1: TaskOutput("test\n"),
            2: TaskOutput("multi\nline: yes\n  indented\n"),
            3: TaskOutput("0"),
        },
    )


def test_supported_formats() -> None:
    assert supported_formats() == ["json", "yaml"]


@pytest.mark.parametrize("fmt", ["json", "yaml"])
def test_reserialization_is_stable(fmt: str) -> None:
    text = dump_result(_result(), fmt)
    loaded = load_result(text, fmt)

    assert loaded == _result()
    assert dump_result(loaded, fmt) == text


def test_json_layout() -> None:
    data = json.loads(dump_result(_result(), "json"))

    assert data["metadata"] == {
        "started": "2024-05-17T12:30:01.123456+00:00",
        "ended": "2024-05-17T12:30:02.123463+00:00",
    }
    assert list(data["tasks"]) == ["0", "1", "2", "3"]
    assert data["tasks"]["1"] == {"stdout": "test\n"}


def test_yaml_keeps_timestamps_and_outputs_as_strings() -> None:
    data = yaml.safe_load(dump_result(_result(), "yaml"))

    assert isinstance(data["metadata"]["started"], str)
    assert data["tasks"]["3"]["stdout"] == "0"


def test_whole_second_timestamps_keep_precision() -> None:
    started = datetime(2024, 1, 1, tzinfo=timezone.utc)
    result = Result(RunMetadata(started, started), {0: TaskOutput("")})

    data = result.to_dict()

    assert data["metadata"]["started"] == "2024-01-01T00:00:00.000000+00:00"


def test_unknown_format_raises() -> None:
    with pytest.raises(ValueError):
        dump_result(_result(), "xml")
    with pytest.raises(ValueError):
        load_result("{}", "xml")
