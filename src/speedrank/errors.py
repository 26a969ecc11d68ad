# Copyright (c) Syntropy Systems
"""Exceptions raised by speedrank components."""


class SpeedRankError(Exception):
    """Base error for speedrank."""


class StorageError(SpeedRankError):
    """Error from the key-value storage backend."""
