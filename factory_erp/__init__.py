"""Order, shipment and cash tracking for a small manufacturing shop."""

__version__ = "1.0.0"
