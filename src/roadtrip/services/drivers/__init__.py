"""Driver rotation overlay exports."""

from .rotation import assign_drivers, extract_fuel_stop_indices, format_drive_time

__all__ = ["assign_drivers", "extract_fuel_stop_indices", "format_drive_time"]
