"""PrintForge: expression engine for receipt and label templates."""

__version__ = "0.1.0"
