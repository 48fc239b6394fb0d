"""
availabilityfinder - Resolve bookable time windows for freelancers.
"""

__version__ = "0.1.0"
