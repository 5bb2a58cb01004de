"""
Get Set Time - availability-to-timeslot engine for the booking flow.
"""

__version__ = "0.1.0"
