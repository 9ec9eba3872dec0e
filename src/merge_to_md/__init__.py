"""Merge source files into a single Markdown document with a File Index."""

__version__ = "0.1.0"
