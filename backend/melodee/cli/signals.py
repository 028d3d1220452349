"""SIGINT handling for long-running CLI commands."""
import signal
import threading
from contextlib import contextmanager

from rich.console import Console

console = Console()


@contextmanager
def cancel_on_interrupt():
    """Yield an event that is set on Ctrl-C instead of raising KeyboardInterrupt.

    A second Ctrl-C falls back to the default handler.
    """
    cancel = threading.Event()

    def handle(signum, frame):
        if cancel.is_set():
            signal.default_int_handler(signum, frame)
        cancel.set()
        console.print("[yellow]Interrupt received, stopping after current files...[/yellow]")

    if threading.current_thread() is not threading.main_thread():
        yield cancel
        return

    previous = signal.signal(signal.SIGINT, handle)
    try:
        yield cancel
    finally:
        signal.signal(signal.SIGINT, previous)
