"""
cppmini Command-Line Interface
==============================

This package provides the ``cppmini`` command-line tool, a Click-based
front end to the compile-and-run pipeline.
"""

__all__ = ["cppmini"]
