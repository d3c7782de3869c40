from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional


def append_log(log_path: Optional[Path], level: str, message: str) -> None:
    if log_path is None:
        return
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        line = f"{timestamp} [{level}] {message}\n"
        with log_path.open("a", encoding="utf-8") as f:
            f.write(line)
    except Exception:
        return
