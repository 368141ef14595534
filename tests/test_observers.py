# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for ObserverBucket and ObserverRegistry."""

import logging

import pytest

from genro_stock import (
    ROOT,
    BatchUpdate,
    ObserverBucket,
    ObserverRegistry,
    Path,
    UnregisteredObserverError,
)


class TestObserverBucket:
    """Tests for ObserverBucket."""

    def test_add_returns_unique_keys(self):
        """Test every registration gets its own key."""
        bucket = ObserverBucket()
        key1 = bucket.add(print)
        key2 = bucket.add(print)
        assert key1 != key2
        assert len(bucket) == 2
        assert key1 in bucket

    def test_call_in_insertion_order(self):
        """Test observers fire in registration order."""
        calls = []
        bucket = ObserverBucket()
        bucket.add(lambda v: calls.append(('first', v)))
        bucket.add(lambda v: calls.append(('second', v)))
        bucket.call(1)
        assert calls == [('first', 1), ('second', 1)]

    def test_remove_and_is_empty(self):
        """Test removal empties the bucket."""
        bucket = ObserverBucket()
        key = bucket.add(print)
        assert not bucket.is_empty()
        bucket.remove(key)
        assert bucket.is_empty()
        with pytest.raises(KeyError):
            bucket.remove(key)


class TestRegistration:
    """Tests for watch/unwatch and lookup."""

    def test_watch_marks_path_observed(self):
        """Test is_observed after watch."""
        registry = ObserverRegistry()
        registry.watch('a.b', print)
        assert registry.is_observed('a.b')
        assert registry.is_observed('a[b]')
        assert not registry.is_observed('a')
        assert not registry.is_observed('a.b.c')

    def test_cleanup_removes_bucket(self):
        """Test removing the last observer deletes the bucket."""
        registry = ObserverRegistry()
        cleanup = registry.watch('a', print)
        cleanup()
        assert not registry.is_observed('a')
        assert len(registry) == 0

    def test_cleanup_removes_only_its_observer(self):
        """Test cleanup leaves other observers at the same path."""
        calls = []
        registry = ObserverRegistry()
        cleanup = registry.watch('a', lambda v: calls.append('first'))
        registry.watch('a', lambda v: calls.append('second'))
        cleanup()
        assert registry.is_observed('a')
        registry.notify_all({'a': 1})
        assert calls == ['second']

    def test_cleanup_is_idempotent(self):
        """Test calling a cleanup twice does nothing the second time."""
        registry = ObserverRegistry()
        cleanup = registry.watch('a', print)
        other = registry.watch('a', print)
        cleanup()
        cleanup()
        assert registry.is_observed('a')
        other()
        other()
        assert not registry.is_observed('a')

    def test_same_observer_twice(self):
        """Test one callable registered twice fires twice."""
        calls = []
        registry = ObserverRegistry()
        registry.watch('a', calls.append)
        registry.watch('a', calls.append)
        registry.notify_all({'a': 1})
        assert calls == [1, 1]

    def test_watch_all_uses_root(self):
        """Test watch_all registers at ROOT."""
        registry = ObserverRegistry()
        registry.watch_all(print)
        assert registry.is_observed(ROOT)
        assert not registry.is_observed('')

    def test_observed_paths(self):
        """Test observed paths are listed in first-registration order."""
        registry = ObserverRegistry()
        registry.watch('b', print)
        registry.watch('a', print)
        registry.watch('b', print)
        assert registry.observed_paths() == [Path('b'), Path('a')]

    def test_iter_observers(self):
        """Test observers at one exact path can be listed."""
        registry = ObserverRegistry()
        registry.watch('a', print)
        assert list(registry.iter_observers('a')) == [print]
        assert list(registry.iter_observers('missing')) == []

    def test_unwatch_unknown_path_raises(self):
        """Test explicit removal from an unobserved path raises."""
        registry = ObserverRegistry()
        with pytest.raises(UnregisteredObserverError, match="'a' is not observed"):
            registry.unwatch('a', 'obs-1')

    def test_unwatch_unknown_key_raises(self):
        """Test explicit removal of an unknown key raises."""
        registry = ObserverRegistry()
        registry.watch('a', print)
        with pytest.raises(UnregisteredObserverError):
            registry.unwatch('a', 'obs-999')

    def test_unwatch_with_key(self):
        """Test explicit removal with the key returned by observe."""
        registry = ObserverRegistry()
        key = registry.observe('a', print)
        registry.unwatch('a', key)
        assert not registry.is_observed('a')

    def test_permissive_registry_logs(self, caplog):
        """Test raise_on_error=False logs instead of raising."""
        registry = ObserverRegistry(raise_on_error=False)
        with caplog.at_level(logging.WARNING, logger='genro_stock.observers'):
            registry.unwatch('a', 'obs-1')
        assert "not observed" in caplog.text


class TestNotification:
    """Tests for notify_sub_tree, notify_all and the batch channel."""

    def test_sub_tree_notifies_related_paths(self):
        """Test ancestors, the path itself and descendants are notified."""
        received = {}
        registry = ObserverRegistry()
        for path in ('a', 'a.b', 'a.b.c', 'x'):
            registry.watch(path, lambda v, p=path: received.setdefault(p, v))
        tree = {'a': {'b': {'c': 3}}, 'x': 0}
        registry.notify_sub_tree('a.b', tree)
        assert received == {'a': {'b': {'c': 3}}, 'a.b': {'c': 3}, 'a.b.c': 3}

    def test_sub_tree_skips_lookalike_prefix(self):
        """Test 'ab' is not notified by a change at 'a'."""
        calls = []
        registry = ObserverRegistry()
        registry.watch('ab', calls.append)
        registry.notify_sub_tree('a', {'a': 1, 'ab': 2})
        assert calls == []

    def test_root_observer_receives_whole_tree(self):
        """Test a ROOT observer is notified by any change."""
        calls = []
        registry = ObserverRegistry()
        registry.watch_all(calls.append)
        tree = {'a': {'b': 1}}
        registry.notify_sub_tree('a.b', tree)
        assert calls == [tree]

    def test_root_change_notifies_everything(self):
        """Test a change at ROOT notifies all paths."""
        calls = []
        registry = ObserverRegistry()
        registry.watch('a', calls.append)
        registry.watch('b.c', calls.append)
        registry.notify_sub_tree(ROOT, {'a': 1, 'b': {'c': 2}})
        assert calls == [1, 2]

    def test_missing_value_notified_as_none(self):
        """Test observers of vanished paths receive None."""
        calls = []
        registry = ObserverRegistry()
        registry.watch('a.b', calls.append)
        registry.notify_all({})
        assert calls == [None]

    def test_notify_all(self):
        """Test notify_all reaches every path."""
        calls = []
        registry = ObserverRegistry()
        registry.watch('x', calls.append)
        registry.watch('y', calls.append)
        registry.notify_all({'x': 1, 'y': 2})
        assert sorted(calls) == [1, 2]

    def test_batch_update_fired_once(self):
        """Test one BatchUpdate carries the affected paths and full tree."""
        updates = []
        registry = ObserverRegistry()
        registry.watch('a', print)
        registry.watch('a.b', print)
        registry.watch('z', print)
        registry.watch_batch_updates(updates.append)
        tree = {'a': {'b': 1}}
        registry.notify_sub_tree('a.b', tree)
        assert len(updates) == 1
        assert isinstance(updates[0], BatchUpdate)
        assert set(updates[0].paths) == {Path('a'), Path('a.b')}
        assert updates[0].values is tree

    def test_batch_update_fired_without_observers(self):
        """Test the batch channel fires even when no path is observed."""
        updates = []
        registry = ObserverRegistry()
        registry.watch_batch_updates(updates.append)
        registry.notify_sub_tree('a', {'a': 1})
        assert updates == [BatchUpdate((), {'a': 1})]

    def test_batch_cleanup_is_idempotent(self):
        """Test the batch cleanup can be called twice."""
        updates = []
        registry = ObserverRegistry()
        cleanup = registry.watch_batch_updates(updates.append)
        cleanup()
        cleanup()
        registry.notify_all({})
        assert updates == []

    def test_observer_exceptions_propagate(self):
        """Test errors raised by observers reach the caller."""
        def boom(value):
            raise RuntimeError("observer failed")

        registry = ObserverRegistry()
        registry.watch('a', boom)
        with pytest.raises(RuntimeError, match="observer failed"):
            registry.notify_all({'a': 1})


class TestReentrancy:
    """Tests for (un)subscribing while a notification pass runs."""

    def test_unsubscribe_self_inside_callback(self):
        """Test removing the last observer from its own callback."""
        calls = []
        registry = ObserverRegistry()

        def once(value):
            calls.append(value)
            cleanup()

        cleanup = registry.watch('a', once)
        registry.notify_all({'a': 1})
        registry.notify_all({'a': 2})
        assert calls == [1]
        assert not registry.is_observed('a')

    def test_subscribe_during_pass_waits_for_next(self):
        """Test observers added mid-pass are not called in that pass."""
        calls = []
        registry = ObserverRegistry()

        def adder(value):
            calls.append(('adder', value))
            registry.watch('a', lambda v: calls.append(('late', v)))
            registry.watch('b', lambda v: calls.append(('late-b', v)))

        cleanup = registry.watch('a', adder)
        registry.notify_all({'a': 1, 'b': 2})
        assert calls == [('adder', 1)]
        cleanup()
        calls.clear()
        registry.notify_all({'a': 3, 'b': 4})
        assert ('late', 3) in calls
        assert ('late-b', 4) in calls

    def test_unsubscribe_other_during_pass(self):
        """Test observers removed mid-pass still fire in that pass."""
        calls = []
        registry = ObserverRegistry()
        registry.watch('a', lambda v: cleanup_b())
        cleanup_b = registry.watch('b', lambda v: calls.append(v))
        registry.notify_all({'a': 1, 'b': 2})
        assert calls == [2]
        assert not registry.is_observed('b')
        registry.notify_all({'a': 1, 'b': 3})
        assert calls == [2]
