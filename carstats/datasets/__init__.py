"""
Reference datasets.
"""

from carstats.datasets.mtcars import MTCARS_SCHEMA, RESPONSE, load_mtcars

__all__ = [
    "MTCARS_SCHEMA",
    "RESPONSE",
    "load_mtcars",
]
