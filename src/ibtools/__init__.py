"""Infobase synchronization state tooling.

Generates and compares synthetic synchronization states for source
projects and target infobases without loading either side into a
running development environment.
"""

__version__ = "0.3.0"
