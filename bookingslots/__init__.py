"""
bookingslots - bookable time slots for shared resources.
"""

__version__ = "0.1.0"
