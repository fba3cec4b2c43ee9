"""Textual TUI for ImpulseSense.

Live dashboard: score, excitement history, active gating and trigger log.
"""

from impulsesense.tui.app import ImpulseTUI

__all__ = ["ImpulseTUI"]
