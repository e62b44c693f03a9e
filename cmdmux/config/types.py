from dataclasses import dataclass, field

OUTPUT_FORMATS = ("json", "yaml")
DEFAULT_PROGRAM = "/bin/sh -c"
DEFAULT_STDERR_TAIL = 3


@dataclass(frozen=True)
class CommandSpec:
    command: str


@dataclass
class RunConfig:
    program: list[str]
    commands: list[str] = field(default_factory=list)
    stderr_tail: int = DEFAULT_STDERR_TAIL
    parallelism: int | None = None
    output_format: str | None = None
    experimental: bool = False

    def validate(self) -> None:
        if len(self.program) < 1:
            raise ConfigError("The program prefix can't be empty")

        if self.stderr_tail < 0:
            raise ConfigError(
                f"The stderr length must be non-negative, got {self.stderr_tail}"
            )

        if self.parallelism is not None and self.parallelism < 1:
            raise ConfigError(
                f"The parallelism must be a positive integer, got {self.parallelism}"
            )

        if self.output_format is not None and self.output_format not in OUTPUT_FORMATS:
            raise ConfigError(f"Unknown stdout format: {self.output_format}")

        if not self.experimental:
            if self.output_format is not None:
                raise ConfigError("experimental flag required (stdout)")
            if self.parallelism is not None:
                raise ConfigError("experimental flag required (parallelism)")

        if len(self.commands) < 1:
            raise ConfigError("No commands given, use --command or --file")

    def effective_parallelism(self) -> int:
        if self.parallelism is None:
            return max(len(self.commands), 1)
        return self.parallelism


class ConfigError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class CommandFileError(ConfigError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnsupportedCommandFileError(CommandFileError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
