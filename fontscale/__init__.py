"""
Resize terminal fonts, persist them in the X resource database, and keep them
at the same physical size across monitors of different pixel density.
"""

__version__ = '0.3.0'
