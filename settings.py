import os
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from errors import FatalConfigError

# Environment variable -> settings field
ENV_VARS = {
    "DAEMON_BIN": "daemon_bin",
    "BASE_CONFIG": "base_config",
    "CONF_PATH": "conf_path",
    "NVME_DEVICE": "nvme_device",
    "SAMPLE_SECONDS_IDLE": "sample_seconds_idle",
    "SAMPLE_SECONDS_ACTIVE": "sample_seconds_active",
    "WARMUP": "warmup",
    "CSV_OUT": "csv_out",
    "SETTLE": "settle",
}


class BenchSettings(BaseModel):
    daemon_bin: str = "/usr/local/bin/nvme-led-daemon"
    base_config: str = "/etc/nvme-led-daemon.conf"
    conf_path: str = "/run/nvme-led-bench.toml"
    nvme_device: str = "/dev/nvme0n1"

    # Whole seconds: pidstat samples once per second for the same window
    sample_seconds_idle: int = Field(default=15, gt=0)
    sample_seconds_active: int = Field(default=15, gt=0)
    warmup: float = Field(default=0.6, ge=0)
    # Pause after stopping the daemon before the next profile starts
    settle: float = Field(default=1.0, ge=0)

    csv_out: Optional[str] = None

    @classmethod
    def from_env(cls, environ=None, **overrides):
        """
        Build settings from the environment, the way the shell harness was
        parameterized. Unset or empty variables fall back to the defaults;
        keyword overrides (e.g. from the CLI) win over both.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for var, field in ENV_VARS.items():
            raw = environ.get(var, "")
            if raw.strip():
                values[field] = raw.strip()
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValidationError as e:
            raise FatalConfigError(f"invalid settings: {e}") from e
