"""Safe file I/O: atomic JSON writes, YAML reads, env-file loading."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional, Union

import yaml


def ensure_dir(path: Union[str, Path]) -> Path:
    """Create directory and parents if needed, return Path."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def read_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML file and return parsed contents."""
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def write_json_atomic(path: Union[str, Path], data: Any, indent: int = 2) -> Path:
    """Write JSON to a temp file in the target directory, then rename over ``path``.

    Readers never observe a half-written file; on failure the previous file is
    left untouched and the temp file is removed.
    """
    p = Path(path)
    ensure_dir(p.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent)
            f.write("\n")
        os.replace(tmp_name, p)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return p


def load_env_file(
    path: Union[str, Path], environ: Optional[MutableMapping[str, str]] = None
) -> bool:
    """Load KEY=VALUE pairs from an env file into ``environ`` (default os.environ).

    - Skips comments (lines starting with #) and blank lines
    - Accepts an ``export `` prefix, as written by direnv-style files
    - Strips surrounding quotes from values
    - Never overwrites existing environment variables

    Returns False when the file does not exist.
    """
    target = os.environ if environ is None else environ
    p = Path(path)
    if not p.is_file():
        return False

    with open(p, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export "):].lstrip()
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
                value = value[1:-1]
            target.setdefault(key, value)
    return True
