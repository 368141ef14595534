# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Stock exceptions."""

from __future__ import annotations


class StockError(Exception):
    """Base exception for Stock errors."""

    pass


class InvalidPathError(StockError, ValueError):
    """Raised when a path string or segment sequence cannot be parsed."""

    pass


class NotASubPathError(StockError, ValueError):
    """Raised when a path is expected to be nested under another one but is not."""

    pass


class UnregisteredObserverError(StockError, KeyError):
    """Raised when removing an observer that is not registered at the path."""

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0]) if self.args else ''


class UnmappedPathError(StockError, KeyError):
    """Raised when a proxy cannot map a virtual path onto the underlying tree."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ''
