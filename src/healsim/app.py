"""healsim - Terminal dashboard built on Textual."""

import time
from enum import Enum

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.logging import TextualHandler
from textual.widgets import DataTable, Footer, Static

from healsim.config import SimulatorSettings, get_settings
from healsim.engine import SimulationEngine
from healsim.logging import get_logger, setup_logging
from healsim.models import (
    HealthStatus,
    LogEntry,
    LogType,
    Process,
    ProcessStatus,
    SystemFile,
    SystemHealth,
)

logger = get_logger(__name__)

STATUS_COLORS = {
    ProcessStatus.RUNNING: "green",
    ProcessStatus.CRASHED: "red",
    ProcessStatus.FROZEN: "cyan",
    ProcessStatus.HIGH_LOAD: "yellow",
}

HEALTH_COLORS = {
    HealthStatus.HEALTHY: "green",
    HealthStatus.WARNING: "yellow",
    HealthStatus.CRITICAL: "red",
}

LOG_COLORS = {
    LogType.INFO: "blue",
    LogType.WARNING: "yellow",
    LogType.ERROR: "red",
    LogType.SUCCESS: "green",
}


class SortKey(Enum):
    """Sort keys for the process table."""

    CPU = "cpu"
    MEM = "mem"
    PID = "pid"
    STATUS = "status"


def format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{size:5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def format_age(seconds: float) -> str:
    """Format an elapsed time as a short '12s' / '3m' / '2h' string."""
    seconds = max(0.0, seconds)
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m"
    return f"{int(seconds // 3600)}h"


def usage_bar(percent: float, color: str, width: int = 20) -> str:
    """Render a percentage as a Rich-markup bar."""
    filled = min(width, max(0, int(percent / (100 / width))))
    return f"[{color}]█[/{color}]" * filled + "[dim]░[/dim]" * (width - filled)


class HealthHeader(Static):
    """Header widget showing the aggregate system health."""

    DEFAULT_CSS = """
    HealthHeader {
        height: auto;
        min-height: 5;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HealthHeader."""
        super().__init__(*args, **kwargs)
        self._health: SystemHealth | None = None

    @property
    def health(self) -> SystemHealth | None:
        return self._health

    def compose(self) -> ComposeResult:
        """Compose the header layout."""
        yield Horizontal(
            Static(self._get_status_info(), id="status-info"),
            Static(self._get_usage_info(), id="usage-info"),
        )

    def update_health(self, health: SystemHealth) -> None:
        """Update the header from a health snapshot."""
        self._health = health
        self._refresh_display()

    def _refresh_display(self) -> None:
        try:
            self.query_one("#status-info", Static).update(self._get_status_info())
            self.query_one("#usage-info", Static).update(self._get_usage_info())
        except Exception:
            pass  # Widget not mounted yet

    def _get_status_info(self) -> str:
        health = self._health
        if health is None:
            return "Loading system health..."
        color = HEALTH_COLORS[health.status]
        return (
            f"Status: [bold {color}]{health.status.value.upper()}[/bold {color}]\n"
            f"Processes: {health.healthy_processes}/{health.total_processes} healthy, "
            f"{health.faulty_processes} faulty\n"
            f"Files: {health.total_files - health.corrupted_files}/{health.total_files} intact, "
            f"{health.corrupted_files} corrupted"
        )

    def _get_usage_info(self) -> str:
        health = self._health
        if health is None:
            return "Loading usage..."
        return (
            f"CPU \\[{usage_bar(health.cpu_usage, 'green')}] {health.cpu_usage:5.1f}%\n"
            f"Mem \\[{usage_bar(health.memory_usage, 'cyan')}] {health.memory_usage:5.1f}%"
        )


class ProcessTable(Container):
    """Container for the simulated process table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._current_pids: set[int] = set()
        self._sort_key: SortKey = SortKey.CPU
        self._sort_reverse: bool = True

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        self._sort_key = keys[(keys.index(self._sort_key) + 1) % len(keys)]
        self._sort_reverse = self._sort_key in (SortKey.CPU, SortKey.MEM)
        return self._sort_key

    def compose(self) -> ComposeResult:
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"
        table.add_column("PID", key="pid", width=6)
        table.add_column("NAME", key="name", width=22)
        table.add_column("STATUS", key="status", width=11)
        table.add_column("CPU%", key="cpu", width=7)
        table.add_column("MEM", key="mem", width=9)
        table.add_column("BEAT", key="beat", width=5)

    def update_processes(self, processes: list[Process], now: float | None = None) -> None:
        """
        Update the table with new process data.

        Rows are keyed by pid and updated cell by cell. Rows for new pids
        are appended, rows for vanished pids are removed, and a changed
        sort order is applied to the existing rows with the cursor kept on
        the same process.
        """
        table = self.query_one("#process-table", DataTable)
        now = time.time() if now is None else now
        ordered = self._sort_processes(processes)
        new_pids = {p.pid for p in ordered}

        for pid in self._current_pids - new_pids:
            table.remove_row(str(pid))
        for process in ordered:
            if process.pid in self._current_pids:
                self._update_row(table, str(process.pid), process, now)
            else:
                table.add_row(*self._cells(process, now), key=str(process.pid))
        self._current_pids = new_pids

        rank = {str(p.pid): index for index, p in enumerate(ordered)}
        current_keys = [row.key.value for row in table.ordered_rows]
        if current_keys != list(rank):
            selected = self._selected_row_key(table)
            table.sort("pid", key=lambda pid: rank[pid])
            if selected is not None:
                table.move_cursor(row=table.get_row_index(selected))

    @staticmethod
    def _selected_row_key(table: DataTable) -> str | None:
        if table.row_count == 0:
            return None
        try:
            return table.coordinate_to_cell_key(table.cursor_coordinate).row_key.value
        except Exception:
            return None

    def _sort_processes(self, processes: list[Process]) -> list[Process]:
        key_func = {
            SortKey.CPU: lambda p: p.cpu,
            SortKey.MEM: lambda p: p.memory,
            SortKey.PID: lambda p: p.pid,
            SortKey.STATUS: lambda p: p.status.value,
        }
        return sorted(processes, key=key_func[self._sort_key], reverse=self._sort_reverse)

    @staticmethod
    def _cells(process: Process, now: float) -> tuple[str, ...]:
        color = STATUS_COLORS[process.status]
        return (
            str(process.pid),
            process.name[:22],
            f"[{color}]{process.status.value}[/{color}]",
            f"{process.cpu:5.1f}",
            f"{process.memory:6.1f}M",
            format_age(now - process.heartbeat),
        )

    def _update_row(self, table: DataTable, row_key: str, process: Process, now: float) -> None:
        try:
            for column, value in zip(
                ("pid", "name", "status", "cpu", "mem", "beat"), self._cells(process, now)
            ):
                table.update_cell(row_key, column, value)
        except Exception:
            pass  # Row may have been removed


class FileTable(Container):
    """Container for the simulated file table."""

    DEFAULT_CSS = """
    FileTable {
        height: 1fr;
        border: solid $secondary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize FileTable."""
        super().__init__(*args, **kwargs)
        self._current_ids: set[str] = set()

    def compose(self) -> ComposeResult:
        yield DataTable(id="file-table")

    def on_mount(self) -> None:
        table = self.query_one("#file-table", DataTable)
        table.cursor_type = "row"
        table.add_column("NAME", key="name", width=14)
        table.add_column("PATH", key="path", width=28)
        table.add_column("SIZE", key="size", width=7)
        table.add_column("CHECKSUM", key="checksum", width=14)
        table.add_column("STATE", key="state", width=10)

    def selected_file_id(self) -> str | None:
        """Return the id of the file under the cursor, if any."""
        table = self.query_one("#file-table", DataTable)
        if table.row_count == 0:
            return None
        try:
            row_key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key
        except Exception:
            return None
        return row_key.value

    def update_files(self, files: list[SystemFile]) -> None:
        """Update the table; files are never added or removed after start."""
        table = self.query_one("#file-table", DataTable)
        for file in files:
            cells = self._cells(file)
            if file.id in self._current_ids:
                try:
                    for column, value in zip(("name", "path", "size", "checksum", "state"), cells):
                        table.update_cell(file.id, column, value)
                except Exception:
                    pass  # Row may have been removed
            else:
                table.add_row(*cells, key=file.id)
                self._current_ids.add(file.id)

    @staticmethod
    def _cells(file: SystemFile) -> tuple[str, ...]:
        state = "[red]corrupted[/red]" if file.corrupted else "[green]ok[/green]"
        return (
            file.name,
            file.path,
            format_bytes(file.size),
            file.checksum[:12],
            state,
        )


class LogPanel(Static):
    """Newest-first view of the simulated system log."""

    DEFAULT_CSS = """
    LogPanel {
        height: 12;
        padding: 0 1;
        border: solid $accent;
        overflow-y: auto;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__("No events yet.", *args, **kwargs)
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        return self._entries

    def update_logs(self, entries: list[LogEntry]) -> None:
        self._entries = entries
        lines = []
        for entry in entries:
            color = LOG_COLORS[entry.type]
            stamp = time.strftime("%H:%M:%S", time.localtime(entry.timestamp))
            lines.append(
                f"[dim]{stamp}[/dim] [{color}]{entry.type.value:<7}[/{color}] "
                f"[bold]{escape(entry.event)}[/bold]: {escape(entry.description)}"
            )
        self.update("\n".join(lines) if lines else "No events yet.")


class HealsimApp(App):
    """Main healsim dashboard."""

    TITLE = "healsim"
    SUB_TITLE = "Self-Healing OS Simulator"

    CSS = """
    Screen {
        layout: vertical;
    }

    #health-header {
        dock: top;
        height: auto;
        min-height: 6;
    }

    Horizontal {
        height: auto;
    }

    #status-info {
        width: 1fr;
        padding-right: 2;
    }

    #usage-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("i", "inject", "Inject faults"),
        ("h", "heal", "Heal all"),
        ("r", "repair", "Repair file"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(
        self,
        engine: SimulationEngine | None = None,
        settings: SimulatorSettings | None = None,
    ) -> None:
        """Initialize the HealsimApp."""
        super().__init__()
        self._settings = settings or get_settings()
        self._engine = engine or SimulationEngine(self._settings)

    @property
    def engine(self) -> SimulationEngine:
        return self._engine

    def compose(self) -> ComposeResult:
        yield HealthHeader(id="health-header")
        yield ProcessTable()
        yield FileTable()
        yield LogPanel(id="log-panel")
        yield Footer()

    def on_mount(self) -> None:
        """Start the engine when the app is mounted."""
        self._engine.start()
        # Tables add their columns in their own on_mount
        self.call_after_refresh(self.refresh_view)
        self.set_interval(self._settings.refresh_interval, self.refresh_view)

    def on_unmount(self) -> None:
        """Make sure the drift thread does not outlive the app."""
        self._engine.stop()

    def refresh_view(self) -> None:
        """Pull a consistent snapshot from the engine and redraw."""
        try:
            state = self._engine.get_state()
            self.query_one("#health-header", HealthHeader).update_health(state.health)
            self.query_one(ProcessTable).update_processes(state.processes)
            self.query_one(FileTable).update_files(state.files)
            self.query_one("#log-panel", LogPanel).update_logs(state.logs)
        except Exception:
            logger.exception("Dashboard refresh failed")

    def action_inject(self) -> None:
        faults = self._engine.inject_faults()
        if faults:
            names = ", ".join(f"{f.type.value} on {f.target_name}" for f in faults)
            self.notify(f"Injected {len(faults)} fault(s): {names}", severity="warning")
        else:
            self.notify("No eligible targets for fault injection")
        self.refresh_view()

    def action_heal(self) -> None:
        results = self._engine.heal_faults()
        if results:
            self.notify(f"Healed {len(results)} entit{'y' if len(results) == 1 else 'ies'}")
        else:
            self.notify("No faults detected")
        self.refresh_view()

    def action_repair(self) -> None:
        file_id = self.query_one(FileTable).selected_file_id()
        if file_id is None:
            self.notify("No file selected", severity="warning")
            return
        result = self._engine.repair_file(file_id)
        self.notify(result.message, severity="information" if result.success else "warning")
        self.refresh_view()

    def action_sort(self) -> None:
        new_sort_key = self.query_one(ProcessTable).cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")
        self.refresh_view()

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._engine.stop()
        self.exit()


def main() -> None:
    """Entry point for the healsim dashboard."""
    settings = get_settings()
    setup_logging(settings.log_level, handler=TextualHandler())
    app = HealsimApp(settings=settings)
    app.run()


if __name__ == "__main__":
    main()
