"""Core infrastructure shared by every Daybook subsystem."""
