import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

import yaml

from .types import CommandFileError, CommandSpec, UnsupportedCommandFileError

logger = logging.getLogger(__name__)


def _parse_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CommandFileError("invalid YAML") from exc


def _parse_toml(text: str) -> Any:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise CommandFileError("invalid TOML") from exc


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise CommandFileError("invalid JSON") from exc


# extension -> (format name, parser)
CODECS: dict[str, tuple[str, Callable[[str], Any]]] = {
    ".yaml": ("YAML", _parse_yaml),
    ".yml": ("YAML", _parse_yaml),
    ".toml": ("TOML", _parse_toml),
    ".json": ("JSON", _parse_json),
}


def load_commands(path: str | Path) -> list[CommandSpec]:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise CommandFileError(f"Command file not found: {pure_path}")

    if not pure_path.is_file():
        raise CommandFileError(f"Command file path is not a file: {pure_path}")

    fmt, parser = _detect_format(pure_path)
    raw_file = _parse_file(pure_path, fmt, parser)
    commands = _build_commands(pure_path, raw_file)
    logger.debug("loaded %d command(s) from %s", len(commands), pure_path)
    return commands


def resolve_commands(inline: Iterable[str], files: Iterable[str | Path]) -> list[str]:
    """Inline commands first, then every file's commands in the order given."""
    commands = list(inline)
    for path in files:
        commands.extend(item.command for item in load_commands(path))
    return commands


def _detect_format(path: Path) -> tuple[str, Callable[[str], Any]]:
    suffix = path.suffix.lower()
    if suffix not in CODECS:
        expected = ", ".join(sorted(CODECS))
        raise UnsupportedCommandFileError(
            f"Non supported file extension: {path.suffix}, expected one of: {expected}"
        )
    return CODECS[suffix]


def _parse_file(path: Path, fmt: str, parser: Callable[[str], Any]) -> Mapping[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CommandFileError(f"{path}: can't be read") from exc

    try:
        raw_file = parser(text)
    except CommandFileError as exc:
        raise CommandFileError(f"{path}: {exc}") from exc.__cause__

    if not isinstance(raw_file, Mapping):
        raise CommandFileError(
            f"{path}: {fmt} parsed succesfully but top-level value in not an object: {type(raw_file)}"
        )

    return raw_file


def _build_commands(path: Path, raw: Mapping[str, Any]) -> list[CommandSpec]:
    if "commands" not in raw:
        raise CommandFileError(f"{path}: Missing 'commands' field")

    if not isinstance(raw["commands"], list):
        raise CommandFileError(
            f"{path}: 'commands' must be a list, got {type(raw['commands'])}"
        )

    if len(raw["commands"]) < 1:
        raise CommandFileError(f"{path}: There must be at least one command in the file")

    return [
        _build_command(path, index, fields)
        for index, fields in enumerate(raw["commands"])
    ]


def _build_command(path: Path, index: int, fields: Any) -> CommandSpec:
    keys = {"command"}

    if not isinstance(fields, Mapping):
        raise CommandFileError(f"{path}: commands[{index}] must be a mapping")

    for field in fields.keys():
        if field not in keys:
            raise CommandFileError(f"{path}: commands[{index}]: Can't process: {field}")

    if "command" not in fields:
        raise CommandFileError(f"{path}: commands[{index}]: missing 'command'")

    command = fields["command"]

    if not isinstance(command, str):
        raise CommandFileError(f"{path}: commands[{index}]: The command should be a string")

    if len(command.strip()) < 1:
        raise CommandFileError(f"{path}: commands[{index}]: Command missing")

    return CommandSpec(command)
