# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""ProfileForm - Example of a form editing a renamed slice of a Stock.

A didactic example showing how a MappingProxy lets a consumer work with
its own layout ('name.first', 'name.last') while the data lives elsewhere
in the shared tree ('user.givenName', 'user.familyName').
"""

from __future__ import annotations

from typing import Any

from genro_stock import MappingProxy, Stock


class ProfileForm:
    """A form bound to a Stock through a MappingProxy.

    Example:
        >>> stock = Stock({'user': {'givenName': 'Ada', 'familyName': 'Lovelace'}})
        >>> form = ProfileForm(stock)
        >>> form.read('name')
        {'first': 'Ada', 'last': 'Lovelace'}
        >>> form.write('name.last', 'King')
        >>> stock['user.familyName']
        'King'
    """

    MAP = {
        'name.first': 'user.givenName',
        'name.last': 'user.familyName',
    }

    def __init__(self, stock: Stock, mount: str = 'profile') -> None:
        self.stock = stock
        self.mount = mount
        self.proxy = MappingProxy(self.MAP, mount)
        self._cleanups: list = []

    def _full(self, path: str) -> str:
        return f"{self.mount}.{path}" if path else self.mount

    def read(self, path: str = '') -> Any:
        return self.proxy.get_value(self._full(path), self.stock.get_value)

    def write(self, path: str, value: Any) -> None:
        self.proxy.set_value(self._full(path), value, self.stock.set_value)

    def bind(self, path: str, callback) -> None:
        """Call ``callback`` with the virtual value each time it changes."""
        self._cleanups.append(
            self.proxy.watch(self._full(path), callback, self.stock.watch)
        )

    def close(self) -> None:
        for cleanup in self._cleanups:
            cleanup()
        self._cleanups.clear()


if __name__ == '__main__':
    stock = Stock({'user': {'givenName': 'Ada', 'familyName': 'Lovelace'}})
    form = ProfileForm(stock)
    form.bind('name', lambda name: print('name changed:', name))
    stock.watch_batch_updates(lambda update: print('batch:', [str(p) for p in update.paths]))

    form.write('name.last', 'King')
    form.write('name', {'first': 'Augusta', 'last': 'Byron'})
    print(form.read())
    form.close()
