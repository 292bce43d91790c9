import re
from pathlib import Path

from errors import FatalConfigError

OVERRIDE_KEYS = ("interval_ms", "read_blink_ms", "write_blink_ms")

KEY_PATTERNS = {key: re.compile(rf'^\s*{key}\s*=') for key in OVERRIDE_KEYS}


def profile_overrides(profile):
    return {key: getattr(profile, key) for key in OVERRIDE_KEYS}


def synthesize_config(base_text: str, profile) -> str:
    """
    Rewrites the polling keys of a daemon config for one profile.

    The first `key = ...` line of each override key is replaced in place,
    any later duplicate is passed through untouched, and keys the base does
    not mention are appended once at the end. Every other line, comments and
    line endings included, is kept byte for byte.
    """
    values = profile_overrides(profile)
    seen = set()
    out = []

    for line in base_text.splitlines(keepends=True):
        for key, pattern in KEY_PATTERNS.items():
            if key in seen or not pattern.match(line):
                continue
            seen.add(key)
            ending = line[len(line.rstrip('\r\n')):]
            line = f"{key} = {values[key]}{ending}"
            break
        out.append(line)

    missing = [key for key in OVERRIDE_KEYS if key not in seen]
    if missing and out and not out[-1].endswith('\n'):
        out.append('\n')
    for key in missing:
        out.append(f"{key} = {values[key]}\n")

    return ''.join(out)


def write_profile_config(base_path, conf_path, profile) -> Path:
    """Render the transient config for `profile` from the base config file."""
    try:
        with open(base_path, newline='') as f:
            base_text = f.read()
    except OSError as e:
        raise FatalConfigError(f"cannot read base config {base_path}: {e}") from e

    conf_path = Path(conf_path)
    try:
        conf_path.parent.mkdir(parents=True, exist_ok=True)
        with open(conf_path, 'w', newline='') as f:
            f.write(synthesize_config(base_text, profile))
    except OSError as e:
        raise FatalConfigError(f"cannot write {conf_path}: {e}") from e
    return conf_path
