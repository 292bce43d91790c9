import os
import subprocess
import threading
import time

from logs import log_warn


class ActivityGenerator:
    """
    Background disk load for the active phase.

    Reads the block device with O_DIRECT `dd` bursts until the duration runs
    out or `cancel()` is called. If the device cannot be read there is no
    I/O at all, the generator just occupies the same window.
    """

    def __init__(self, device, duration, block_size="1M", count=128):
        self.device = device
        self.duration = duration
        self.block_size = block_size
        self.count = count
        self.bursts = 0
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._proc = None
        self._thread = None

    @property
    def readable(self):
        return bool(self.device) and os.access(self.device, os.R_OK)

    def command(self):
        return [
            "dd", f"if={self.device}", "of=/dev/null",
            f"bs={self.block_size}", f"count={self.count}",
            "iflag=direct", "status=none",
        ]

    def start(self):
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="activity", daemon=True)
        self._thread.start()
        return self

    def _run(self):
        deadline = time.monotonic() + self.duration
        if not self.readable:
            self._stop_event.wait(self.duration)
            return

        while not self._stop_event.is_set() and time.monotonic() < deadline:
            with self._lock:
                if self._stop_event.is_set():
                    break
                try:
                    self._proc = subprocess.Popen(
                        self.command(), stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
                    )
                except OSError as e:
                    log_warn(f"cannot run dd on {self.device}: {e}")
                    self._proc = None
                    self._stop_event.wait(max(0.0, deadline - time.monotonic()))
                    return
            if self._proc.wait() == 0:
                self.bursts += 1

    def cancel(self):
        """Stop immediately, killing any burst in flight, and wait for the thread."""
        self._stop_event.set()
        with self._lock:
            proc = self._proc
        if proc is not None and proc.poll() is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def __enter__(self):
        return self.start()

    def __exit__(self, *exc):
        self.cancel()
        return False
