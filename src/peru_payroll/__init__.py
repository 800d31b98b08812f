"""Net pay calculator for Peru: AFP, 5th-category tax, bonuses and aliquots."""

__version__ = "0.1.0"
