"""BloodMatch: proximity matching for blood donors, blood banks and hospitals."""

__version__ = "0.1.0"
