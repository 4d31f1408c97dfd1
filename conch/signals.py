"""
Conch signal hooks: graceful shutdown and reload for interactive sessions.

What this module provides
- ReadWriteLock: many concurrent readers or one writer.
- SignalManager: owns the interrupt and reload hook lists. It is constructed once by
  the application entry point and handed to whatever needs to register hooks.

Signals
- SIGHUP runs the reload hooks; the process keeps running.
- SIGINT, SIGTERM and SIGALRM run the interrupt hooks, then end the process with
  status 0.

Threading
- start() must be called from the main thread (Python only delivers signals there).
  The installed handlers merely enqueue the signal number; a daemon listener thread
  runs the hooks, so hooks never execute inside a signal handler frame.
- Hooks run under the read side of their lock; registration takes the write side.
  Registration is valid before start() and after stop().

Example
    signals = SignalManager()
    signals.start()
    shell.run(signals=signals)  # saves the history if the session is interrupted
"""
import os
import queue
import signal
import threading
from contextlib import contextmanager

from rich.console import Console
from rich.text import Text

from .utils import *

RELOAD_SIGNALS = tuple(getattr(signal, name) for name in ("SIGHUP",) if hasattr(signal, name))
INTERRUPT_SIGNALS = tuple(getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGALRM") if hasattr(signal, name))


class ReadWriteLock:
    """
    Reader-preferring read/write lock built on a condition variable.
    """

    def __init__(self):
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def reading(self):
        with self._condition:
            while self._writing:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if not self._readers:
                    self._condition.notify_all()

    @contextmanager
    def writing(self):
        with self._condition:
            while self._writing or self._readers:
                self._condition.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._condition:
                self._writing = False
                self._condition.notify_all()


class SignalManager:
    """
    Process signal listener dispatching to registered hooks.

    Parameters
    - exit: callable(status) ending the process after the interrupt hooks ran
      (default os._exit, since the listener is not the main thread).
    - stderr: rich console receiving the hook execution reports.
    """

    def __init__(self, *, exit=Unset, stderr=Unset):
        exit = coalesce(exit, os._exit)
        if not callable(exit):
            raise TypeError("signal manager exit must be callable")
        self._exit = exit
        self._stderr = coalesce(stderr, Console(stderr=True))
        self._interrupt_hooks = []
        self._interrupt_lock = ReadWriteLock()
        self._reload_hooks = []
        self._reload_lock = ReadWriteLock()
        self._queue = queue.SimpleQueue()
        self._listener = None
        self._previous = {}

    @property
    def active(self):
        return self._listener is not None

    # ── Registration ──────────────────────────────────────────────────────────

    def on_interrupt(self, hook, /):
        """Register a hook run before the process ends on SIGINT/SIGTERM/SIGALRM."""
        if not callable(hook):
            raise TypeError("interrupt hook must be callable")
        with self._interrupt_lock.writing():
            self._interrupt_hooks.append(hook)
        return hook

    def on_reload(self, hook, /):
        """Register a hook run on SIGHUP."""
        if not callable(hook):
            raise TypeError("reload hook must be callable")
        with self._reload_lock.writing():
            self._reload_hooks.append(hook)
        return hook

    def off_interrupt(self, hook, /):
        with self._interrupt_lock.writing():
            try:
                self._interrupt_hooks.remove(hook)
            except ValueError:
                pass

    def off_reload(self, hook, /):
        with self._reload_lock.writing():
            try:
                self._reload_hooks.remove(hook)
            except ValueError:
                pass

    # ── Dispatch ──────────────────────────────────────────────────────────────

    def dispatch(self, signum, /):
        """
        Run the hooks registered for a signal number.

        Reload signals run the reload hooks and return; any other signal runs the
        interrupt hooks and calls exit(0).
        """
        if signum in RELOAD_SIGNALS:
            with self._reload_lock.reading():
                for hook in self._reload_hooks:
                    self._run_hook(hook)
            return

        try:
            with self._interrupt_lock.reading():
                for hook in self._interrupt_hooks:
                    self._stderr.print(Text(f"exec interrupt hook func name: {qualname(hook)}"))
                    self._run_hook(hook)
        finally:
            self._exit(0)

    def _run_hook(self, hook):
        # a failing hook must not stop the listener thread
        try:
            hook()
        except Exception as error:
            self._stderr.print(Text(f"hook {qualname(hook)} failed: {error}"))

    def _handler(self, signum, frame):
        self._queue.put(signum)

    def _listen(self):
        while (signum := self._queue.get()) is not None:
            self.dispatch(signum)

    def start(self):
        """
        Install the signal handlers and start the listener thread (main thread only).
        """
        if self._listener is not None:
            return
        for signum in INTERRUPT_SIGNALS + RELOAD_SIGNALS:
            self._previous[signum] = signal.signal(signum, self._handler)
        self._listener = threading.Thread(target=self._listen, name="conch-signals", daemon=True)
        self._listener.start()

    def stop(self):
        """
        Restore the previous signal handlers and stop the listener thread.
        """
        if self._listener is None:
            return
        for signum, previous in self._previous.items():
            signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        self._previous.clear()
        self._queue.put(None)
        if self._listener is not threading.current_thread():
            self._listener.join()
        self._listener = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc_info):
        self.stop()


__all__ = (
    "RELOAD_SIGNALS",
    "INTERRUPT_SIGNALS",
    "ReadWriteLock",
    "SignalManager",
)
