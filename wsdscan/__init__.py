# (c) Copyright Datacraft, 2026
"""WS-Scan network scanner driver."""

__version__ = '1.0.0'
