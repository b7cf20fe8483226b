"""Scrollshot - scrolling screenshot capture and stitching service."""

__version__ = "0.3.0"
