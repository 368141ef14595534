# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Stock proxies.

A proxy intercepts get/set/watch calls made against a Stock, rewrites the
path and reshapes the value. Available proxies:
- IdentityProxy: forwards everything unchanged (the default)
- MappingProxy: renames and reshapes a subtree through a path map

Example:
    >>> from genro_stock.proxy import MappingProxy
    >>> proxy = MappingProxy({'first': 'user.givenName'})
    >>> proxy.get_value('first', stock.get_value)
"""

from .base import IdentityProxy, StockProxy
from .mapping import MappingProxy

__all__ = [
    'StockProxy',
    'IdentityProxy',
    'MappingProxy',
]
