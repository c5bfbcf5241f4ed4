from __future__ import annotations

import argparse
import asyncio
import logging
import shlex
import subprocess
import sys
import threading
from collections.abc import Sequence

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.widgets import Footer, Header, LoadingIndicator, Log, Static
from textual.worker import Worker, WorkerState

from .gcp_api import (
    ComputeInstancesSource,
    DemoInventorySource,
    InventoryFetcher,
    InventorySource,
    SshTarget,
    is_gcloud_available,
)
from .models import Event, FetchFailed, FetchSucceeded, Key, KeyPressed, LaunchSession, Phase
from .selection import SelectionMachine
from .settings import DEFAULT_CONFIG_PATH, DEFAULT_SETTINGS, Settings, load_settings, resolve_project_id
from .tui_logging import TuiLogHandler, TuiLogMessage, configure_logging
from .view import render_state

logger = logging.getLogger(__name__)

FETCH_WORKER_NAME = "fetch-inventory"


class GceTuiApp(App[None]):
    TITLE = "GCE TUI"
    SUB_TITLE = "gcloud compute ssh"
    AUTO_FOCUS = None
    CSS = """
    #loading {
        height: 3;
    }

    #inventory-view {
        height: 1fr;
        padding: 1 2;
    }

    #activity-log {
        height: 8;
        border-top: solid $primary;
    }
    """
    BINDINGS = [
        Binding("up,k", "send_key('up')", "Up", show=False),
        Binding("down,j", "send_key('down')", "Down", show=False),
        Binding("enter", "send_key('enter')", "SSH"),
        Binding("q,escape", "send_key('q')", "Quit", priority=True),
        Binding("ctrl+c", "send_key('ctrl+c')", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        *,
        project_id: str,
        source: InventorySource | None = None,
        settings: Settings = DEFAULT_SETTINGS,
        gcloud_available: bool | None = None,
    ) -> None:
        super().__init__()
        self.project_id = project_id
        self.settings = settings
        self.fetcher = InventoryFetcher(source if source is not None else ComputeInstancesSource())
        self.gcloud_available = is_gcloud_available() if gcloud_available is None else gcloud_available
        self.machine = SelectionMachine()
        self._log_handler: TuiLogHandler | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield LoadingIndicator(id="loading")
        yield Static(id="inventory-view")
        activity_log = Log(highlight=False, max_lines=500, auto_scroll=True, id="activity-log")
        activity_log.can_focus = False
        yield activity_log
        yield Footer()

    def on_mount(self) -> None:
        self._log_handler = TuiLogHandler(self, self.query_one("#activity-log", Log))
        logging.getLogger().addHandler(self._log_handler)

        if not self.gcloud_available:
            logger.warning("gcloud not found. SSH sessions will be simulated.")
            self.notify("gcloud not found; SSH sessions are simulated.", severity="warning")
        self._render()
        self.fetch_inventory(self.project_id)

    def on_unmount(self) -> None:
        if self._log_handler is not None:
            logging.getLogger().removeHandler(self._log_handler)
            self._log_handler = None

    @work(exclusive=True, exit_on_error=False, name=FETCH_WORKER_NAME)
    async def fetch_inventory(self, project_id: str) -> FetchSucceeded | FetchFailed:
        """Fetch on a daemon thread; exit does not wait for an outstanding call."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[FetchSucceeded | FetchFailed] = loop.create_future()

        def run() -> None:
            result = self.fetcher.fetch(project_id)
            try:
                loop.call_soon_threadsafe(_resolve, future, result)
            except RuntimeError:
                logger.debug("Discarding fetch result for %s; the app has exited.", project_id)

        threading.Thread(target=run, name=FETCH_WORKER_NAME, daemon=True).start()
        return await future

    @on(Worker.StateChanged)
    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.worker.name != FETCH_WORKER_NAME:
            return

        if event.worker.state == WorkerState.SUCCESS:
            result = event.worker.result
            if isinstance(result, (FetchSucceeded, FetchFailed)):
                self.handle_event(result)
            return

        if event.worker.state == WorkerState.ERROR:
            logger.error("Instance fetch crashed: %s", event.worker.error)
            self.handle_event(FetchFailed(cause=str(event.worker.error)))

    def on_tui_log_message(self, message: TuiLogMessage) -> None:
        try:
            self.query_one("#activity-log", Log).write_line(message.text)
        except NoMatches:
            return

    def action_send_key(self, name: str) -> None:
        self.handle_event(KeyPressed(Key.from_name(name)))

    def handle_event(self, event: Event) -> None:
        effect = self.machine.dispatch(event)
        if self.machine.terminated:
            self.exit()
            return
        if effect is not None:
            self.launch_session(effect)
        self._render()

    def launch_session(self, effect: LaunchSession) -> None:
        record = effect.record
        command = SshTarget(
            record=record,
            project_id=self.project_id,
            extra_args=self.settings.ssh_args(),
        ).build_ssh_command()

        if not self.gcloud_available:
            logger.info("Simulated SSH session for %s (%s): %s", record.name, record.zone, shlex.join(command))
            return

        logger.info("Starting SSH session for %s (%s).", record.name, record.zone)
        try:
            with self.suspend():
                result = subprocess.run(command, check=False)
        except OSError as error:
            logger.error("Failed to start SSH session for %s: %s", record.name, error)
            return
        if result.returncode == 0:
            logger.info("SSH session ended for %s.", record.name)
        else:
            logger.warning("SSH session for %s exited with code %d.", record.name, result.returncode)

    def _command_preview(self) -> str:
        record = self.machine.state.selected
        if record is None:
            return ""
        return shlex.join(
            SshTarget(record=record, project_id=self.project_id, extra_args=self.settings.ssh_args()).build_ssh_command()
        )

    def _render(self) -> None:
        state = self.machine.state
        try:
            self.query_one("#loading", LoadingIndicator).display = state.phase is Phase.LOADING
            self.query_one("#inventory-view", Static).update(
                render_state(state, self.project_id, self._command_preview())
            )
        except NoMatches:
            return


def _resolve(future: asyncio.Future[FetchSucceeded | FetchFailed], result: FetchSucceeded | FetchFailed) -> None:
    if not future.done():
        future.set_result(result)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pick a Compute Engine VM and open gcloud compute ssh")
    parser.add_argument("--project", default=None, help="GCP project ID (defaults to $GCP_PROJECT_ID)")
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="YAML file with project and SSH defaults",
    )
    parser.add_argument("--demo", action="store_true", help="List built-in demo instances instead of calling GCP")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        configure_logging(args.log_level, args.log_file)
    except ValueError as error:
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(2)

    settings = load_settings(args.config)
    project_id = resolve_project_id(args.project, settings)
    if project_id is None:
        print("Error: GCP_PROJECT_ID environment variable not set.", file=sys.stderr)
        sys.exit(1)

    source: InventorySource = DemoInventorySource() if args.demo else ComputeInstancesSource()
    app = GceTuiApp(project_id=project_id, source=source, settings=settings)
    try:
        app.run()
    except KeyboardInterrupt:
        pass
    finally:
        _restore_terminal_state()


def _restore_terminal_state() -> None:
    if not sys.stdout.isatty():
        return
    try:
        sys.stdout.write("\x1b[?1000l\x1b[?1002l\x1b[?1003l\x1b[?1006l\x1b[?1015l\x1b[?25h")
        sys.stdout.flush()
    except OSError:
        pass
    if not sys.stdin.isatty():
        return
    try:
        subprocess.run(
            ["stty", "sane"],
            check=False,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError:
        pass


if __name__ == "__main__":
    main()
