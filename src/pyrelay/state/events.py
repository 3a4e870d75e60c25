"""Provenance tags for state-store writes."""

from __future__ import annotations

from enum import StrEnum


class IngestionSource(StrEnum):
    """Which engine component produced a state-store write."""

    FLEET = "fleet"
    FOCUS = "focus"
    CONTROL = "control"
