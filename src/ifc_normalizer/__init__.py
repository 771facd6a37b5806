"""Align IFC element properties with the BIM Portal property catalog."""

__version__ = "0.1.0"
