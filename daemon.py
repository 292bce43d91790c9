import os
import signal
import subprocess
import time
from dataclasses import dataclass
from typing import Optional

import psutil

from errors import StartFailure
from logs import log_info, log_warn

DAEMON_NAME = "nvme-led-daemon"
SERVICE_NAME = "nvme-led.service"
STOP_TIMEOUT = 5


def resolve_effective_process(pid, expected_name, process_table=psutil):
    """
    Find the process that actually runs the daemon after spawning `pid`.

    The launched binary may exec into another image or hand off to a child.
    If `pid` still carries `expected_name` it is the daemon; otherwise its
    first child (lowest PID) is adopted. `process_table` only needs a
    psutil-like `Process(pid)` returning objects with `name()` and
    `children()`, so tests can pass a fake one.
    """
    try:
        proc = process_table.Process(pid)
        if proc.name() == expected_name:
            return pid
        children = proc.children()
    except psutil.NoSuchProcess as e:
        raise StartFailure(f"pid {pid} disappeared during warm-up") from e
    except psutil.AccessDenied as e:
        raise StartFailure(f"access denied inspecting pid {pid}") from e

    if not children:
        raise StartFailure(f"pid {pid} is not {expected_name} and has no child process")
    return min(child.pid for child in children)


@dataclass
class DaemonHandle:
    popen: subprocess.Popen
    pid: int
    spawned_pid: int


class DaemonManager:
    def __init__(self, binary, warmup=0.6, name=DAEMON_NAME, service=SERVICE_NAME,
                 process_table=psutil):
        self.binary = str(binary)
        self.warmup = warmup
        self.name = name
        self.service = service
        self.process_table = process_table
        self.current: Optional[DaemonHandle] = None

    def stop_existing(self):
        """
        Stop any daemon we did not start ourselves: the systemd service first,
        then every leftover process with the daemon's name.
        """
        try:
            subprocess.run(["systemctl", "stop", self.service],
                           stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
                           timeout=15, check=False)
        except FileNotFoundError:
            pass
        except subprocess.TimeoutExpired:
            log_warn(f"systemctl stop {self.service} timed out")

        leftovers = []
        for proc in psutil.process_iter(['name']):
            if proc.info['name'] == self.name:
                leftovers.append(proc)
        if not leftovers:
            return

        log_info(f"Stopping {len(leftovers)} running {self.name} instance(s)")
        for proc in leftovers:
            try:
                proc.terminate()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                pass
        _, alive = psutil.wait_procs(leftovers, timeout=STOP_TIMEOUT)
        for proc in alive:
            try:
                proc.kill()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                pass

    def start(self, conf_path) -> DaemonHandle:
        if self.current is not None:
            self.stop(self.current)
        self.stop_existing()

        try:
            popen = subprocess.Popen(
                [self.binary, "--config", str(conf_path)],
                stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise StartFailure(f"cannot launch {self.binary}: {e}") from e

        time.sleep(self.warmup)

        if popen.poll() is not None:
            raise StartFailure(f"{self.binary} exited with code {popen.returncode}")

        try:
            pid = resolve_effective_process(popen.pid, self.name, self.process_table)
        except StartFailure:
            self._terminate(popen)
            raise

        if pid != popen.pid:
            log_info(f"{self.name} re-executed, following child pid {pid}")
        self.current = DaemonHandle(popen=popen, pid=pid, spawned_pid=popen.pid)
        return self.current

    def stop(self, handle: Optional[DaemonHandle]):
        """Terminate the daemon behind `handle`. Never raises if it is already gone."""
        if handle is None:
            return
        if handle.pid != handle.spawned_pid:
            try:
                proc = psutil.Process(handle.pid)
                proc.terminate()
                _, alive = psutil.wait_procs([proc], timeout=STOP_TIMEOUT)
                for p in alive:
                    p.kill()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                pass
        self._terminate(handle.popen)
        if self.current is handle:
            self.current = None

    @staticmethod
    def _terminate(popen):
        if popen.poll() is not None:
            return
        try:
            os.kill(popen.pid, signal.SIGTERM)
            popen.wait(timeout=STOP_TIMEOUT)
        except ProcessLookupError:
            # Already terminated
            pass
        except subprocess.TimeoutExpired:
            log_warn(f"pid {popen.pid} ignored SIGTERM, killing")
            try:
                os.kill(popen.pid, signal.SIGKILL)
                popen.wait(timeout=STOP_TIMEOUT)
            except (ProcessLookupError, subprocess.TimeoutExpired):
                pass
