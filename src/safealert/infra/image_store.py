# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import time
from pathlib import Path


class DiskImageStorage:
    """Writes uploaded profile pictures under ``root`` and returns their public path."""

    def __init__(self, root: Path, *, url_prefix: str = "/uploads") -> None:
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def save(self, filename: str, data: bytes) -> str:
        safe_name = Path(filename or "image").name
        name = f"{int(time.time() * 1000)}-{safe_name}"
        (self.root / name).write_bytes(data)
        return f"{self.url_prefix}/{name}"
