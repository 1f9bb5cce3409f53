# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for Changeset, ChangesetContainer and TreeChangesetContainer."""

import logging

import pytest

from genro_changeset import (
    Array2D,
    Changeset,
    ChangesetContainer,
    ConsistencyError,
    Delete,
    Diff,
    Insert,
    InvalidIndexError,
    Item,
    Move,
    Section,
    TreeChangeset,
    TreeChangesetContainer,
    Update,
)
from genro_changeset.tree import item_node, section_node


class Recorder:
    """Subscriber collecting every changeset it receives."""

    def __init__(self):
        self.changesets = []

    def __call__(self, changeset):
        self.changesets.append(changeset)

    @property
    def last(self):
        return self.changesets[-1]


def observed(collection=(), **kwargs):
    container = ChangesetContainer(collection, **kwargs)
    recorder = Recorder()
    container.subscribe('recorder', recorder)
    return container, recorder


class TestChangeset:
    """Tests for the Changeset value."""

    def test_from_patch_derives_diff(self):
        """Test the diff is derived from explicit operations."""
        changeset = Changeset.from_patch(['a', 'b'], [Insert('b', 1)])
        assert changeset.collection == ('a', 'b')
        assert changeset.patch == (Insert('b', 1),)
        assert changeset.diff == Diff(inserts={1})

    def test_from_diff_generates_patch(self):
        """Test the patch is generated from the diff."""
        changeset = Changeset.from_diff(['a', 'c'], Diff(deletes={1}))
        assert changeset.patch == (Delete(1),)

    def test_apply_to_previous_state(self):
        """Test a consumer can replay the patch on its own copy."""
        previous = ['a', 'b', 'c']
        changeset = Changeset.from_diff(['c', 'x', 'a'], Diff(inserts={1}, deletes={1}, moves={(2, 0), (0, 2)}))
        assert changeset.apply_to(previous) == ['c', 'x', 'a']

    def test_tree_changeset_copies_snapshot(self):
        """Test the tree snapshot does not follow later edits."""
        source = Array2D([('A', [])])
        array = source.copy()
        array.append_item('a0', 0)
        changeset = TreeChangeset.from_patch(array, [Insert(item_node('a0'), (0, 0))], source)
        array.remove_all()
        assert changeset.collection.sections_with_items() == [('A', ['a0'])]
        assert changeset.diff == Diff(inserts={(0, 0)})


class TestChangesetContainerMutations:
    """Tests for the flat container mutations."""

    def test_append(self):
        """Test append emits an insert at the last index."""
        container, recorder = observed(['a'])
        container.append('b')
        assert container.collection == ('a', 'b')
        assert recorder.last.patch == (Insert('b', 1),)
        assert recorder.last.diff == Diff(inserts={1})
        assert recorder.last.collection == ('a', 'b')

    def test_insert(self):
        """Test insert at a position."""
        container, recorder = observed(['a', 'c'])
        container.insert('b', 1)
        assert list(container) == ['a', 'b', 'c']
        assert recorder.last.patch == (Insert('b', 1),)

    def test_insert_contents(self):
        """Test inserting several elements emits consecutive inserts."""
        container, recorder = observed(['a', 'd'])
        container.insert_contents(['b', 'c'], 1)
        assert container.collection == ('a', 'b', 'c', 'd')
        assert recorder.last.patch == (Insert('b', 1), Insert('c', 2))
        assert recorder.last.diff == Diff(inserts={1, 2})

    def test_extend(self):
        """Test extend appends at the end."""
        container, recorder = observed(['a'])
        container.extend(iter(['b', 'c']))
        assert recorder.last.patch == (Insert('b', 1), Insert('c', 2))

    def test_setitem(self):
        """Test indexed assignment emits an update."""
        container, recorder = observed(['a', 'b'])
        container[1] = 'B'
        assert container[1] == 'B'
        assert recorder.last.patch == (Update(1, 'B'),)
        assert recorder.last.diff == Diff(updates={1})

    def test_remove_at(self):
        """Test remove_at returns the element and emits a delete."""
        container, recorder = observed(['a', 'b', 'c'])
        assert container.remove_at(1) == 'b'
        assert container.collection == ('a', 'c')
        assert recorder.last.patch == (Delete(1),)

    def test_remove_last(self):
        """Test remove_last removes the final element."""
        container, recorder = observed(['a', 'b'])
        assert container.remove_last() == 'b'
        assert recorder.last.patch == (Delete(1),)

    def test_remove_last_on_empty_raises(self):
        """Test remove_last on an empty container fails without emitting."""
        container, recorder = observed()
        with pytest.raises(InvalidIndexError):
            container.remove_last()
        assert recorder.changesets == []

    def test_remove_all_deletes_descending(self):
        """Test remove_all emits one delete per element, last first."""
        container, recorder = observed(['a', 'b', 'c'])
        container.remove_all()
        assert len(container) == 0
        assert recorder.last.patch == (Delete(2), Delete(1), Delete(0))
        assert recorder.last.diff == Diff(deletes={0, 1, 2})

    def test_remove_all_on_empty_emits_empty_patch(self):
        """Test an empty edit still emits a changeset."""
        container, recorder = observed()
        container.remove_all()
        assert recorder.last.patch == ()
        assert recorder.last.diff.is_empty

    def test_move(self):
        """Test move emits a single move."""
        container, recorder = observed(['a', 'b', 'c'])
        container.move(0, 2)
        assert container.collection == ('b', 'c', 'a')
        assert recorder.last.diff == Diff(moves={(0, 2)})

    def test_invalid_index_changes_nothing(self):
        """Test a bad index raises before any change or emission."""
        container, recorder = observed(['a'])
        with pytest.raises(InvalidIndexError):
            container.insert('x', 3)
        with pytest.raises(InvalidIndexError):
            container[1] = 'x'
        with pytest.raises(InvalidIndexError):
            container.remove_at(-1)
        with pytest.raises(InvalidIndexError):
            container.insert_contents(['x', 'y'], 2)
        assert container.collection == ('a',)
        assert recorder.changesets == []
        assert container.changeset is None

    def test_patch_replays_on_previous_snapshot(self):
        """Test each emitted patch turns the previous snapshot into the new one."""
        container, recorder = observed(['a', 'b', 'c'])
        snapshots = [container.collection]
        container.append('d')
        snapshots.append(container.collection)
        container.move(3, 0)
        snapshots.append(container.collection)
        container.remove_all()
        snapshots.append(container.collection)
        for previous, changeset in zip(snapshots, recorder.changesets):
            assert tuple(changeset.apply_to(list(previous))) == changeset.collection

    def test_changeset_property(self):
        """Test the last changeset is kept on the container."""
        container, recorder = observed(['a'])
        container.append('b')
        assert container.changeset is recorder.last


class TestChangesetContainerUpdates:
    """Tests for descriptive updates, replace and batches."""

    def test_descriptive_update(self):
        """Test a custom edit reports its own operations."""
        container, recorder = observed(['a', 'b'])

        def swap(items):
            items.reverse()
            return [Move(1, 0)]

        container.descriptive_update(swap)
        assert container.collection == ('b', 'a')
        assert recorder.last.patch == (Move(1, 0),)

    def test_descriptive_update_failure_changes_nothing(self):
        """Test an exception in the update leaves the collection alone."""
        container, recorder = observed(['a'])

        def broken(items):
            items.clear()
            raise RuntimeError('boom')

        with pytest.raises(RuntimeError):
            container.descriptive_update(broken)
        assert container.collection == ('a',)
        assert recorder.changesets == []

    def test_replace_with_diff(self):
        """Test replace generates the patch from the diff."""
        container, recorder = observed(['a', 'b', 'c'])
        diff = Diff(inserts={1}, deletes={1}, moves={(2, 0), (0, 2)})
        container.replace(['c', 'x', 'a'], diff)
        assert container.collection == ('c', 'x', 'a')
        assert recorder.last.diff is diff
        assert recorder.last.patch == (Delete(1), Move(1, 0), Move(1, 1), Insert('x', 1))

    def test_replace_with_wrong_size_raises(self):
        """Test a diff that does not fit the current collection is rejected."""
        container, recorder = observed(['a', 'b'])
        with pytest.raises(ConsistencyError):
            container.replace(['a', 'b', 'c'], Diff())
        assert container.collection == ('a', 'b')
        assert recorder.changesets == []

    def test_replace_with_malformed_diff_raises(self):
        """Test a contradictory diff is rejected."""
        container, _ = observed(['a'])
        with pytest.raises(ConsistencyError):
            container.replace(['a'], Diff(deletes={0}, updates={0}))

    def test_verify_catches_wrong_diff(self):
        """Test verify replays the patch and rejects a mismatch."""
        container, recorder = observed(['a', 'b'], verify=True)
        with pytest.raises(ConsistencyError):
            container.replace(['b', 'a'], Diff())
        assert container.collection == ('a', 'b')
        assert recorder.changesets == []

    def test_verify_accepts_correct_edits(self):
        """Test verify lets consistent edits through."""
        container, recorder = observed(['a', 'b'], verify=True)
        container.append('c')
        container.replace(['b', 'a', 'c'], Diff(moves={(0, 1)}))
        assert container.collection == ('b', 'a', 'c')
        assert len(recorder.changesets) == 2

    def test_unverified_wrong_diff_is_trusted(self):
        """Test without verify the diff is taken at its word."""
        container, _ = observed(['a', 'b'])
        container.replace(['b', 'a'], Diff())
        assert container.collection == ('b', 'a')

    def test_batch_emits_one_changeset(self):
        """Test a batch concatenates the operations of its mutations."""
        container, recorder = observed(['a', 'b', 'c'])
        with container.batch():
            container.remove_at(1)
            container.append('d')
            container[0] = 'A'
        assert len(recorder.changesets) == 1
        assert recorder.last.patch == (Delete(1), Insert('d', 2), Update(0, 'A'))
        assert recorder.last.diff == Diff(deletes={1}, inserts={2}, updates={0})
        assert recorder.last.collection == ('A', 'c', 'd')

    def test_batch_failure_restores(self):
        """Test an exception in a batch restores the collection and emits nothing."""
        container, recorder = observed(['a', 'b'])
        with pytest.raises(InvalidIndexError):
            with container.batch():
                container.append('c')
                container.remove_at(7)
        assert container.collection == ('a', 'b')
        assert recorder.changesets == []

    def test_nested_batch_joins_outer(self):
        """Test nested batches emit once at the outer end."""
        container, recorder = observed()
        with container.batch():
            container.append('a')
            with container.batch():
                container.append('b')
            assert recorder.changesets == []
        assert recorder.last.patch == (Insert('a', 0), Insert('b', 1))

    def test_container_usable_after_batch(self):
        """Test mutations after a batch emit normally again."""
        container, recorder = observed()
        with container.batch():
            container.append('a')
        container.append('b')
        assert len(recorder.changesets) == 2


class TestSubscriptions:
    """Tests for subscriber management."""

    def test_subscribers_notified_in_order(self):
        """Test callbacks run in registration order."""
        container = ChangesetContainer()
        calls = []
        container.subscribe('first', lambda changeset: calls.append('first'))
        container.subscribe('second', lambda changeset: calls.append('second'))
        container.append('a')
        assert calls == ['first', 'second']

    def test_unsubscribe(self):
        """Test an unsubscribed callback is not called."""
        container, recorder = observed()
        container.unsubscribe('recorder')
        container.unsubscribe('missing')
        container.append('a')
        assert recorder.changesets == []

    def test_subscriber_error_propagates_after_commit(self):
        """Test a failing subscriber does not roll the mutation back."""
        container = ChangesetContainer()

        def failing(changeset):
            raise RuntimeError('subscriber failed')

        container.subscribe('failing', failing)
        with pytest.raises(RuntimeError):
            container.append('a')
        assert container.collection == ('a',)

    def test_debug_logging(self, caplog):
        """Test emitted changesets are logged at debug level."""
        container = ChangesetContainer()
        with caplog.at_level(logging.DEBUG, logger='genro_changeset'):
            container.append('a')
        assert 'Emitting changeset' in caplog.text


class TestTreeChangesetContainer:
    """Tests for the two-level container."""

    def make(self, **kwargs):
        container = TreeChangesetContainer(
            [('A', ['a0', 'a1']), ('B', ['b0'])], **kwargs
        )
        recorder = Recorder()
        container.subscribe('recorder', recorder)
        return container, recorder

    def test_initial_array_is_copied(self):
        """Test an Array2D passed in is not shared."""
        array = Array2D([('A', [])])
        container = TreeChangesetContainer(array)
        array.append_item('x', 0)
        assert container.sections_with_items() == [('A', [])]
        assert len(container) == 1

    def test_append_section(self):
        """Test appending a section with items."""
        container, recorder = self.make()
        container.append_section('C', ['c0'])
        assert container.section_at(2) == 'C'
        assert recorder.last.patch == (Insert(section_node('C', ['c0']), (2,)),)
        assert recorder.last.diff == Diff(inserts={(2,)})

    def test_append_item(self):
        """Test appending an item to a section."""
        container, recorder = self.make()
        container.append_item('b1', 1)
        assert container.item_at((1, 1)) == 'b1'
        assert recorder.last.patch == (Insert(item_node('b1'), (1, 1)),)

    def test_insert_items(self):
        """Test inserting items emits consecutive inserts."""
        container, recorder = self.make()
        container.insert_items(['x', 'y'], (0, 1))
        assert container.sections_with_items()[0] == ('A', ['a0', 'x', 'y', 'a1'])
        assert recorder.last.diff == Diff(inserts={(0, 1), (0, 2)})

    def test_insert_section(self):
        """Test inserting a section at the front."""
        container, recorder = self.make()
        container.insert_section('Z', 0)
        assert container.array.sections() == ['Z', 'A', 'B']
        assert recorder.last.diff == Diff(inserts={(0,)})

    def test_set_section_and_item(self):
        """Test updates carry the new element."""
        container, recorder = self.make()
        container.set_section(0, 'AA')
        assert recorder.last.patch == (Update((0,), Section('AA')),)
        container.set_item((0, 1), 'A1')
        assert recorder.last.patch == (Update((0, 1), Item('A1')),)
        assert recorder.last.diff == Diff(updates={(0, 1)})
        assert container.sections_with_items()[0] == ('AA', ['a0', 'A1'])

    def test_move_section(self):
        """Test moving a section."""
        container, recorder = self.make()
        container.move_section(0, 1)
        assert container.array.sections() == ['B', 'A']
        assert recorder.last.diff == Diff(moves={((0,), (1,))})

    def test_move_item(self):
        """Test moving an item to the front of another section."""
        container, recorder = self.make()
        container.move_item((0, 0), (1, 0))
        assert container.sections_with_items() == [('A', ['a1']), ('B', ['a0', 'b0'])]
        assert recorder.last.patch == (Move((0, 0), (1, 0)),)
        assert recorder.last.diff == Diff(moves={((0, 0), (1, 0))})

    def test_remove_section_and_item(self):
        """Test removals return payloads and emit deletes."""
        container, recorder = self.make()
        assert container.remove_item((0, 0)) == 'a0'
        assert recorder.last.patch == (Delete((0, 0)),)
        assert container.remove_section(1) == 'B'
        assert recorder.last.diff == Diff(deletes={(1,)})

    def test_remove_all_items(self):
        """Test removing every item emits deletes by descending path."""
        container, recorder = self.make()
        container.remove_all_items()
        assert container.sections_with_items() == [('A', []), ('B', [])]
        assert recorder.last.patch == (Delete((1, 0)), Delete((0, 1)), Delete((0, 0)))
        assert recorder.last.diff == Diff(deletes={(0, 0), (0, 1), (1, 0)})

    def test_remove_all_items_and_sections(self):
        """Test clearing emits one delete per section."""
        container, recorder = self.make()
        container.remove_all_items_and_sections()
        assert container.sections_with_items() == []
        assert recorder.last.patch == (Delete((1,)), Delete((0,)))
        assert recorder.last.diff == Diff(deletes={(0,), (1,)})

    def test_invalid_path_changes_nothing(self):
        """Test bad paths raise before any change or emission."""
        container, recorder = self.make()
        with pytest.raises(InvalidIndexError):
            container.insert_item('x', (0, 5))
        with pytest.raises(InvalidIndexError):
            container.append_item('x', 4)
        with pytest.raises(InvalidIndexError):
            container.move_item((0, 0), (3, 0))
        with pytest.raises(InvalidIndexError):
            container.set_item((0,), 'x')
        assert container.sections_with_items() == [('A', ['a0', 'a1']), ('B', ['b0'])]
        assert recorder.changesets == []

    def test_patch_replays_on_previous_snapshot(self):
        """Test a consumer holding the previous array can follow along."""
        container, recorder = self.make()
        mirror = container.array
        container.move_item((1, 0), (0, 0))
        recorder.last.apply_to(mirror)
        container.remove_section(1)
        recorder.last.apply_to(mirror)
        container.append_section('C', ['c0'])
        recorder.last.apply_to(mirror)
        assert mirror == container.array

    def test_batch(self):
        """Test a batch emits one changeset with a path diff."""
        container, recorder = self.make()
        with container.batch():
            container.move_item((0, 1), (1, 1))
            container.remove_section(0)
        assert len(recorder.changesets) == 1
        assert recorder.last.diff == Diff(deletes={(0,)}, moves={((0, 1), (0, 1))})
        assert container.sections_with_items() == [('B', ['b0', 'a1'])]

    def test_batch_failure_restores(self):
        """Test a failing batch restores the array."""
        container, recorder = self.make()
        with pytest.raises(InvalidIndexError):
            with container.batch():
                container.remove_section(0)
                container.remove_section(5)
        assert container.array.sections() == ['A', 'B']
        assert recorder.changesets == []

    def test_descriptive_update(self):
        """Test a custom edit on the array."""
        container, recorder = self.make()

        def rename_all(array):
            operations = []
            for index in range(len(array)):
                array.set_section(index, array.section_at(index).lower())
                operations.append(Update((index,), array[(index,)]))
            return operations

        container.descriptive_update(rename_all)
        assert container.array.sections() == ['a', 'b']
        assert recorder.last.diff == Diff(updates={(0,), (1,)})

    def test_verify_mode(self):
        """Test verify accepts the container's own operations."""
        container, recorder = self.make(verify=True)
        container.move_item((0, 0), (1, 1))
        container.remove_all_items()
        assert len(recorder.changesets) == 2

    def test_verify_rejects_lying_update(self):
        """Test verify catches operations that do not match the edit."""
        container, recorder = self.make(verify=True)
        with pytest.raises(ConsistencyError):
            container.descriptive_update(lambda array: array.remove_section(0) and [])
        assert container.array.sections() == ['A', 'B']
