class BenchError(Exception):
    """Base class for harness errors."""


class FatalConfigError(BenchError):
    """Pre-flight problem that makes the whole sweep impossible."""


class StartFailure(BenchError):
    """Daemon could not be launched or its effective PID resolved."""
