"""
Read-only bridge over the Things 3 database.

Subpackages:
- store: connection, row decoding, epoch calibration and list queries
- cli: console front-end over the read facade
"""

__version__ = "0.1.0"
