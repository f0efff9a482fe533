"""
Regression backends.
"""

from carstats.regression.backends.cpu import CPUQRBackend

__all__ = ["CPUQRBackend"]
