from __future__ import annotations

import os
import platform
from pathlib import Path


def config_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "UsageBar"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "UsageBar"
    return Path.home() / ".config" / "usagebar"
