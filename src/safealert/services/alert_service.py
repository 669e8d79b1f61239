# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Dict, List

# Static for now; there is no alert collection yet.
EMERGENCY_MESSAGES = (
    "Emergency: Flood alert in Dhaka at 03:40 PM, June 13, 2025",
    "Alert: Road closure on Main Street due to accident",
)


def get_emergency_messages() -> List[Dict[str, str]]:
    return [{"text": text} for text in EMERGENCY_MESSAGES]
