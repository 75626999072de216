from __future__ import annotations

from .outputs import OutputWriter
from .step_summary import render_step_summary, write_step_summary

__all__ = [
    "OutputWriter",
    "render_step_summary",
    "write_step_summary",
]
