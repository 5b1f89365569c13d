"""
Grocery point-of-sale cleaning pipeline.
"""

__version__ = "0.1.0"
