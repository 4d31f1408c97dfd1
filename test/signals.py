"""
Signal hooks behavioral tests (SignalManager, ReadWriteLock).

Scope
- Validate hook registration and removal.
- Validate dispatch: interrupt hooks run in order then exit(0); reload hooks keep running.
- Validate handler installation and restoration.
- Validate ReadWriteLock exclusion.

Conventions
- Test method names follow CamelCase per project convention.
- Dispatch is exercised directly; no real signal is sent to the test process.
"""
import io
import signal
import threading
import unittest
from unittest import TestCase

from rich.console import Console

from conch import SignalManager, ReadWriteLock, INTERRUPT_SIGNALS, RELOAD_SIGNALS


class TestSignalManager(TestCase):
    """Behavioral tests for SignalManager."""

    def setUp(self):
        self.exits = []
        self.calls = []
        self.buffer = io.StringIO()
        self.signals = SignalManager(
            exit=self.exits.append,
            stderr=Console(file=self.buffer, color_system=None, width=200),
        )

    def testInterruptRunsHooksInOrderThenExits(self):
        self.signals.on_interrupt(lambda: self.calls.append("first"))
        self.signals.on_interrupt(lambda: self.calls.append("second"))
        self.signals.dispatch(signal.SIGINT)
        self.assertEqual(self.calls, ["first", "second"])
        self.assertEqual(self.exits, [0])

    def testInterruptWithoutHooksExits(self):
        self.signals.dispatch(signal.SIGTERM)
        self.assertEqual(self.exits, [0])

    def testInterruptReportsHookNames(self):
        def save_history():
            pass

        self.signals.on_interrupt(save_history)
        self.signals.dispatch(signal.SIGINT)
        self.assertIn("exec interrupt hook func name:", self.buffer.getvalue())
        self.assertIn("save_history", self.buffer.getvalue())

    @unittest.skipUnless(RELOAD_SIGNALS, "no reload signal on this platform")
    def testReloadRunsHooksWithoutExit(self):
        self.signals.on_reload(lambda: self.calls.append("reload"))
        self.signals.on_interrupt(lambda: self.calls.append("interrupt"))
        self.signals.dispatch(RELOAD_SIGNALS[0])
        self.assertEqual(self.calls, ["reload"])
        self.assertEqual(self.exits, [])

    def testFailingInterruptHookStillExits(self):
        def broken():
            raise RuntimeError("hook failed")

        self.signals.on_interrupt(broken)
        self.signals.on_interrupt(lambda: self.calls.append("after"))
        self.signals.dispatch(signal.SIGINT)
        self.assertEqual(self.calls, ["after"])
        self.assertEqual(self.exits, [0])
        self.assertIn("hook failed", self.buffer.getvalue())

    @unittest.skipUnless(RELOAD_SIGNALS, "no reload signal on this platform")
    def testFailingReloadHookDoesNotStopOthers(self):
        def broken():
            raise RuntimeError("reload failed")

        self.signals.on_reload(broken)
        self.signals.on_reload(lambda: self.calls.append("reload"))
        self.signals.dispatch(RELOAD_SIGNALS[0])
        self.assertEqual(self.calls, ["reload"])
        self.assertEqual(self.exits, [])

    def testListenerSurvivesFailingHook(self):
        done = threading.Event()

        def broken():
            raise RuntimeError("hook failed")

        self.signals.on_interrupt(broken)
        self.signals.on_interrupt(done.set)
        with self.signals:
            self.signals._handler(signal.SIGINT, None)
            self.assertTrue(done.wait(5))
            done.clear()
            self.signals._handler(signal.SIGINT, None)
            self.assertTrue(done.wait(5))
        self.assertEqual(self.exits, [0, 0])

    def testRemovedHooksDoNotRun(self):
        hook = self.signals.on_interrupt(lambda: self.calls.append("hook"))
        self.signals.off_interrupt(hook)
        self.signals.off_interrupt(hook)
        self.signals.dispatch(signal.SIGINT)
        self.assertEqual(self.calls, [])

    def testHooksMustBeCallable(self):
        with self.assertRaises(TypeError):
            self.signals.on_interrupt("hook")
        with self.assertRaises(TypeError):
            self.signals.on_reload(42)

    def testExitMustBeCallable(self):
        with self.assertRaises(TypeError):
            SignalManager(exit=0)

    def testStartInstallsAndStopRestoresHandlers(self):
        previous = {signum: signal.getsignal(signum) for signum in INTERRUPT_SIGNALS + RELOAD_SIGNALS}
        with self.signals:
            self.assertTrue(self.signals.active)
            self.assertEqual(signal.getsignal(signal.SIGINT), self.signals._handler)
        self.assertFalse(self.signals.active)
        for signum, handler in previous.items():
            self.assertEqual(signal.getsignal(signum), handler)

    def testQueuedSignalIsDispatchedByListener(self):
        done = threading.Event()
        self.signals.on_interrupt(done.set)
        with self.signals:
            self.signals._handler(signal.SIGINT, None)
            self.assertTrue(done.wait(5))
        self.assertEqual(self.exits, [0])


class TestReadWriteLock(TestCase):
    """Behavioral tests for ReadWriteLock."""

    def testReadersShareTheLock(self):
        lock = ReadWriteLock()
        with lock.reading():
            with lock.reading():
                pass

    def testWriterWaitsForReaders(self):
        lock = ReadWriteLock()
        written = threading.Event()

        def write():
            with lock.writing():
                written.set()

        with lock.reading():
            writer = threading.Thread(target=write)
            writer.start()
            self.assertFalse(written.wait(0.1))
        writer.join(5)
        self.assertTrue(written.is_set())

    def testReaderWaitsForWriter(self):
        lock = ReadWriteLock()
        read = threading.Event()

        def reader():
            with lock.reading():
                read.set()

        with lock.writing():
            thread = threading.Thread(target=reader)
            thread.start()
            self.assertFalse(read.wait(0.1))
        thread.join(5)
        self.assertTrue(read.is_set())


if __name__ == "__main__":
    unittest.main()
