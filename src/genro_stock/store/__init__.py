# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Stock package - Observable value tree.

This package provides the Stock class, the owner of a nested value tree
with path-scoped reads, writes and subscriptions.

The package is organized into:
- core: Main Stock class with get/set/reset and observer delegation

Path handling lives in ``genro_stock.paths`` and notification in
``genro_stock.observers``.

Example:
    >>> from genro_stock import Stock
    >>> stock = Stock()
    >>> stock.set_value('config.name', 'MyApp')
    >>> stock['config.name']
    'MyApp'
"""

from .core import Stock

__all__ = ["Stock"]
