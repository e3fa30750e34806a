"""Dispatch board scheduling core: bookings, gestures, optimistic edits and route planning"""

__version__ = "1.0.0"
