"""
OrderBridge - multi-supplier pricing, product search and order submission
"""

__version__ = "1.0.0"
