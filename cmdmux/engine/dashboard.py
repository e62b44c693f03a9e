from __future__ import annotations

from rich.console import Console, Group
from rich.live import Live
from rich.text import Text

from .registry import TaskRegistry
from .types import State, Task, TaskStatus


def status_label(status: TaskStatus) -> Text:
    if status.state is State.PENDING:
        return Text("PENDING", style="yellow")
    if status.state is State.RUNNING:
        return Text("RUNNING", style="yellow")
    outcome = status.outcome
    if outcome is not None and outcome.success:
        return Text("SUCCESS (0)", style="green")
    code = "unknown" if outcome is None or outcome.exit_code is None else str(outcome.exit_code)
    return Text(f"FAILED ({code})", style="red")


class Dashboard:
    """Terminal view of the registry, written to stderr.

    While the run is live it is drawn on the alternate screen; the final draw
    goes to the normal terminal so it stays visible after exit.
    """

    def __init__(self, console: Console | None = None, *, screen: bool = True):
        self.console = console if console is not None else Console(stderr=True)
        self.screen = screen
        self._live: Live | None = None

    def render(self, registry: TaskRegistry, *, final: bool = False) -> Group:
        lines: list[Text] = []
        for task in registry:
            lines.extend(self._render_task(task))

        done = registry.count(State.COMPLETED)
        lines.append(Text(""))
        footer = Text(f"Running... {done}/{len(registry)} completed")
        if final:
            footer.append(" DONE", style="bold")
        lines.append(footer)
        return Group(*lines)

    def _render_task(self, task: Task) -> list[Text]:
        lines = [Text(f"⇒ ({task.id}) {task.command.strip()}")]
        lines.append(Text(" ↳ Status: ").append_text(status_label(task.status)))
        if task.recent_stderr:
            lines.append(Text(" ↳ Stderr: "))
            for line in task.recent_stderr:
                lines.append(Text(f"   |> {line}", style="dim"))
        return lines

    def start(self) -> None:
        if self._live is not None:
            return
        self._live = Live(
            console=self.console,
            screen=self.screen,
            transient=True,
            auto_refresh=False,
            redirect_stdout=False,
            redirect_stderr=False,
        )
        self._live.start()

    def draw(self, registry: TaskRegistry, *, final: bool = False) -> None:
        if final:
            self.close()
            self.console.print(self.render(registry, final=True))
            return

        self.start()
        self._live.update(self.render(registry), refresh=True)

    def close(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None
