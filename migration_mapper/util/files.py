"""
File utility functions.
"""

import json
from pathlib import Path
from typing import Any


def ensure_dir(path: str | Path) -> Path:
    """Ensure directory exists, creating if necessary."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def write_text(path: str | Path, content: str) -> None:
    """Write text to file, creating parent directories if needed."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content)


def write_json(path: str | Path, data: Any) -> None:
    """Write data as indented JSON, creating parent directories if needed."""
    write_text(path, json.dumps(data, indent=2, default=str) + "\n")
