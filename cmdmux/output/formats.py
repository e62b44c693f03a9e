import json
from typing import Any, Callable

import yaml

from cmdmux.engine.types import Result


def _dump_json(data: dict) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def _dump_yaml(data: dict) -> str:
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


_DUMPERS: dict[str, Callable[[dict], str]] = {
    "json": _dump_json,
    "yaml": _dump_yaml,
}

_LOADERS: dict[str, Callable[[str], Any]] = {
    "json": json.loads,
    "yaml": yaml.safe_load,
}


def supported_formats() -> list[str]:
    return sorted(_DUMPERS)


def dump_result(result: Result, fmt: str) -> str:
    if fmt not in _DUMPERS:
        raise ValueError(f"unknown output format: {fmt}")
    return _DUMPERS[fmt](result.to_dict())


def load_result(text: str, fmt: str) -> Result:
    if fmt not in _LOADERS:
        raise ValueError(f"unknown output format: {fmt}")
    return Result.from_dict(_LOADERS[fmt](text))
