"""Timeline assembly and combo consolidation."""

from .assembler import build_timed_timeline
from .consolidator import apply_combo_optimization, combo_label

__all__ = ["build_timed_timeline", "apply_combo_optimization", "combo_label"]
