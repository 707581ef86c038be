"""Command-line interface for unistt."""

import argparse
import json
import logging
import signal
import sys
import time
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from unistt.config import BackendConfig, Settings, get_settings
from unistt.coordinator import STT
from unistt.exceptions import UnisttError
from unistt.models import Mode, Result, Segment, Status
from unistt.protocol import STTBackend
from unistt.registry import (
    create_backend,
    get_backend_description,
    get_registered_backends,
)
from unistt.streams import Dispatcher, ImmediateDispatcher, QueueDispatcher

console = Console()

# Seconds to wait for a final result after done()
FINAL_RESULT_GRACE_S = 5.0


class SignalHandler:
    """Reusable signal handler for graceful stop."""

    def __init__(self) -> None:
        self.stop_requested = False

    def __call__(self, signum: int, frame: object) -> None:
        self.stop_requested = True

    def install(self) -> None:
        """Install signal handlers for SIGINT and SIGTERM."""
        signal.signal(signal.SIGINT, self)
        signal.signal(signal.SIGTERM, self)

    def should_stop(self) -> bool:
        """Check if stop was requested."""
        return self.stop_requested


class ListenSession:
    """Tracks what a ``listen`` run has seen on the coordinator's streams."""

    def __init__(self, output_format: str = "text") -> None:
        self.output_format = output_format
        self.final_results: list[Result] = []
        self.failures: list[Exception] = []
        self.status = Status.IDLE
        self.started = False
        self.done_requested = False
        self.active_seen = False

    @property
    def finished(self) -> bool:
        """Whether the backend settled after a session."""
        if not self.started:
            return False
        if self.status == Status.UNAVAILABLE:
            return True
        if not self.active_seen or self.status != Status.IDLE:
            return False
        return bool(self.final_results) or self.done_requested

    def on_status(self, status: Status) -> None:
        self.status = status
        if status in (Status.PREPARING, Status.RECORDING, Status.PROCESSING):
            self.active_seen = True
        if self.output_format == "text":
            console.print(f"[dim]status: {status.value}[/dim]")

    def on_result(self, result: Result) -> None:
        if result.is_final:
            self.final_results.append(result)
        if self.output_format == "json":
            if result.is_final:
                console.print_json(json.dumps(result.to_dict(), ensure_ascii=False))
            return
        if result.is_final:
            console.print(f"[green]✓[/green] [bold]{result.text}[/bold] "
                          f"[dim]({result.locale}, {result.confidence:.2f})[/dim]")
        else:
            console.print(f"[dim]… {result.text}[/dim]")

    def on_failure(self, error: Exception) -> None:
        self.failures.append(error)
        console.print(f"[red]Error:[/red] {error}")


def _configure_logging(verbose: bool) -> None:
    """Route log records through rich when verbose output is requested."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _make_dispatcher(settings: Settings) -> Dispatcher:
    """Create the delivery context configured in settings."""
    if settings.delivery.mode == "immediate":
        return ImmediateDispatcher()
    return QueueDispatcher()


def _build_script(text: str, locale: str) -> list[Result]:
    """Turn text into word-by-word interim results and one final result.

    Args:
        text: Text the scripted backend should "recognize".
        locale: Locale attached to the results.

    Returns:
        Interim results followed by the final result, empty for blank text.
    """
    segments = [Segment(text=word, confidence=1.0) for word in text.split()]
    script = [
        Result.from_segments(segments[: i + 1], locale=locale)
        for i in range(len(segments) - 1)
    ]
    if segments:
        script.append(Result.from_segments(segments, locale=locale, is_final=True))
    return script


def _backend_config(args: argparse.Namespace, settings: Settings) -> BackendConfig:
    """Merge command-line overrides into the configured backend section."""
    updates: dict[str, object] = {}
    if args.backend:
        updates["name"] = args.backend
    if args.transcript:
        updates["transcript"] = Path(args.transcript)
    if args.interval is not None:
        updates["interval_s"] = args.interval
    data = settings.backend.model_dump()
    data.update(updates)
    return BackendConfig.model_validate(data)


def _backend_availability(name: str, settings: Settings) -> str:
    """Describe whether a backend can be used with the configured settings."""
    data = settings.backend.model_dump()
    data["name"] = name
    try:
        backend = create_backend(BackendConfig.model_validate(data))
    except UnisttError:
        return "[red]error[/red]"
    except ValueError:
        return "[yellow]not configured[/yellow]"
    return "[green]yes[/green]" if backend.available else "[red]no[/red]"


def cmd_list_backends(args: argparse.Namespace) -> int:
    """List registered backends and whether they are available."""
    try:
        settings = get_settings(Path(args.config) if args.config else None)
    except UnisttError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    names = get_registered_backends()
    if not names:
        console.print("[yellow]No backends registered.[/yellow]")
        return 0

    table = Table(title="STT Backends")
    table.add_column("Name", style="cyan")
    table.add_column("Available")
    table.add_column("Description", style="white")

    for name in sorted(names):
        table.add_row(
            name,
            _backend_availability(name, settings),
            get_backend_description(name),
        )

    console.print(table)
    return 0


def cmd_listen(args: argparse.Namespace) -> int:
    """Attach a backend, start a session and print what it recognizes."""
    try:
        settings = get_settings(Path(args.config) if args.config else None)
        backend_config = _backend_config(args, settings)
        backend: STTBackend = create_backend(backend_config)
    except UnisttError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1
    except ValueError as e:
        console.print(f"[red]Invalid option:[/red] {e}")
        return 1

    coordinator_config = settings.coordinator
    dispatcher = _make_dispatcher(settings)
    try:
        stt = STT(
            locale=args.locale or coordinator_config.locale,
            mode=Mode(args.mode) if args.mode else coordinator_config.mode,
            contextual_strings=args.context or coordinator_config.contextual_strings,
            dispatcher=dispatcher,
        )
    except ValueError as e:
        console.print(f"[red]Invalid option:[/red] {e}")
        return 1
    stt.disabled = coordinator_config.disabled

    if backend_config.name == "scripted" and args.text:
        from unistt.backends.scripted import ScriptedBackend

        backend = ScriptedBackend(
            script=_build_script(args.text, stt.locale),
            available_locales=backend_config.locales,
        )

    duration = args.duration
    if args.done or (duration is None and backend_config.name == "scripted"):
        duration = 0.0

    session = ListenSession(output_format=args.format)
    with stt:
        stt.status_stream.subscribe(session.on_status)
        stt.results.subscribe(session.on_result)
        stt.failures.subscribe(session.on_failure)
        stt.backend = backend

        if not stt.available:
            console.print(f"[red]Error:[/red] backend '{backend_config.name}' is not available")
            return 1
        if stt.disabled:
            console.print("[yellow]Recognition is disabled in settings.[/yellow]")
            return 0

        sig_handler = SignalHandler()
        sig_handler.install()

        if args.format == "text":
            console.print(f"[bold]Listening[/bold] [dim]({backend_config.name}, {stt.locale})[/dim]")
            console.print("[dim]Press Ctrl+C to stop[/dim]\n")

        stt.start()
        session.started = True
        _wait_for_session(stt, dispatcher, session, sig_handler, duration)

        locales = stt.available_locales

    if args.format == "text":
        locale_summary = ", ".join(sorted(locales)) if locales else "unknown"
        console.print(f"\n[dim]Final results: {len(session.final_results)} | "
                      f"Failures: {len(session.failures)} | "
                      f"Available locales: {locale_summary}[/dim]")
    return 1 if session.failures and not session.final_results else 0


def _wait_for_session(
    stt: STT,
    dispatcher: Dispatcher,
    session: ListenSession,
    sig_handler: SignalHandler,
    duration: float | None,
) -> None:
    """Pump forwarded events until the session settles or is interrupted."""
    start_time = time.monotonic()
    done_requested = False

    def should_return() -> bool:
        return session.finished or sig_handler.should_stop()

    while not should_return():
        if not done_requested and duration is not None:
            if time.monotonic() - start_time >= duration:
                stt.done()
                done_requested = True
                session.done_requested = True
                start_time = time.monotonic()
        elif done_requested and time.monotonic() - start_time >= FINAL_RESULT_GRACE_S:
            break

        if isinstance(dispatcher, QueueDispatcher):
            dispatcher.run_until(should_return, timeout=0.1)
        else:
            time.sleep(0.1)

    if sig_handler.should_stop():
        console.print("\n[yellow]Stopping...[/yellow]")
        stt.stop()
        if isinstance(dispatcher, QueueDispatcher):
            dispatcher.drain()


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="unistt",
        description="A common front for speech-to-text backends",
    )
    parser.add_argument(
        "--config",
        "-c",
        help="Path to settings.yml config file",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list-backends command
    list_parser = subparsers.add_parser(
        "list-backends",
        help="List registered STT backends",
    )
    list_parser.set_defaults(func=cmd_list_backends)

    # listen command
    listen_parser = subparsers.add_parser(
        "listen",
        help="Run a recognition session and print its results",
    )
    listen_parser.add_argument(
        "--backend",
        "-b",
        help="Backend name (from list-backends)",
    )
    listen_parser.add_argument(
        "--transcript",
        "-t",
        help="Transcript file for the replay backend (.json, .yml or plain text)",
    )
    listen_parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between replayed words",
    )
    listen_parser.add_argument(
        "--text",
        help="Text for the scripted backend to recognize",
    )
    listen_parser.add_argument(
        "--locale",
        "-l",
        help="Recognition locale, e.g. en_US",
    )
    listen_parser.add_argument(
        "--mode",
        "-m",
        choices=[m.value for m in Mode],
        help="Recognition mode hint",
    )
    listen_parser.add_argument(
        "--context",
        action="append",
        help="Contextual phrase (repeatable)",
    )
    listen_parser.add_argument(
        "--duration",
        "-d",
        type=float,
        help="Call done() after this many seconds (default: wait for the backend)",
    )
    listen_parser.add_argument(
        "--done",
        action="store_true",
        help="Call done() right after start and wait for the final result",
    )
    listen_parser.add_argument(
        "--format",
        "-f",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    listen_parser.set_defaults(func=cmd_listen)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
