"""Harvester for the Open Heritage 3D project catalogue."""

__version__ = "1.0.0"
