"""
Grocery Sales Analytics

Batch analytics report over the store transaction exports.
"""

__version__ = "1.0.0"
