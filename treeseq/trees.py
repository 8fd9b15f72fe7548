# MIT License
#
# Copyright (c) 2018-2021 Tskit Developers
# Copyright (c) 2017 University of Oxford
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
"""
Module responsible for managing trees and tree sequences.
"""
from __future__ import annotations

import copy
import enum
import logging
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

import treeseq.distances as distances
import treeseq.provenance as provenance
import treeseq.util as util
from treeseq import FORWARD
from treeseq import NODE_IS_SAMPLE
from treeseq import NULL
from treeseq import REVERSE
from treeseq.exceptions import ErrorCode
from treeseq.exceptions import LibraryError
from treeseq.exceptions import NotTrackingSamplesError
from treeseq.tables import IntegrityCheckOptions
from treeseq.tables import TableCollection
from treeseq.tables import TreeSequenceOptions

logger = logging.getLogger(__name__)


class TreeOptions(enum.IntFlag):
    """
    Options controlling the state maintained by a :class:`Tree`.
    """

    #: Maintain the linked lists of the samples beneath each node. Required
    #: by :meth:`Tree.samples` and :meth:`Tree.kc_distance`.
    SAMPLE_LISTS = 1
    #: Do not maintain the number of tracked samples beneath each node.
    NO_SAMPLE_COUNTS = 2


class Interval(NamedTuple):
    """
    A tuple of 2 numbers, ``[left, right)``, defining an interval over the genome.
    """

    left: float | int
    """
    The left hand end of the interval. By convention this value is included
    in the interval
    """
    right: float | int
    """
    The right hand end of the interval. By convention this value is *not*
    included in the interval, i.e., the interval is half-open.
    """

    @property
    def span(self) -> float | int:
        """
        The span of the genome covered by this interval, simply ``right-left``.
        """
        return self.right - self.left

    @property
    def mid(self) -> float | int:
        """
        The middle point of this interval, simply ``left+(right-left)/2``.
        """
        return self.left + (self.right - self.left) / 2


class EdgeDiff(NamedTuple):
    interval: Interval
    edges_out: list
    edges_in: list


@dataclass
class Edge(util.Dataclass):
    """
    An edge in a tree sequence, carrying its ID.

    Modifying the attributes in this class will have **no effect** on the
    underlying tree sequence data.
    """

    __slots__ = ["id", "left", "right", "parent", "child", "metadata"]
    id: int  # noqa A003
    """
    The integer ID of this edge. Varies from 0 to
    :attr:`TreeSequence.num_edges` - 1.
    """
    left: float
    """
    The left coordinate of this edge.
    """
    right: float
    """
    The right coordinate of this edge.
    """
    parent: int
    """
    The integer ID of the parent node for this edge.
    """
    child: int
    """
    The integer ID of the child node for this edge.
    """
    metadata: bytes | dict | None
    """
    The metadata for this edge, decoded if a schema applies.
    """

    @property
    def span(self):
        return self.right - self.left

    @property
    def interval(self):
        return Interval(self.left, self.right)


def _edge_range(order, start, stop, direction):
    if direction == FORWARD:
        return order[start:stop]
    # Reverse ranges run from start down to (but excluding) stop
    return order[stop + 1 : start + 1][::-1]


class TreePosition:
    """
    The position of a tree cursor along the sequence of trees. Moving to
    the next or previous tree records the ranges of the edge insertion and
    removal indexes that must be applied to transform the current tree into
    the new one; the ranges are then read with :meth:`edges_out` and
    :meth:`edges_in`.
    """

    def __init__(self, tree_sequence):
        self.tree_sequence = tree_sequence
        self.index = -1
        self.direction = 0
        self.left = 0
        self.right = 0
        self.in_start = 0
        self.in_stop = 0
        self.in_order = None
        self.out_start = 0
        self.out_stop = 0
        self.out_order = None

    def copy(self):
        return copy.copy(self)

    def set_null(self):
        self.index = -1
        self.left = 0
        self.right = 0

    @property
    def interval(self):
        return Interval(self.left, self.right)

    def edges_out(self):
        """
        Returns the IDs of the edges to remove, in the order of removal.
        """
        return _edge_range(self.out_order, self.out_start, self.out_stop, self.direction)

    def edges_in(self):
        """
        Returns the IDs of the edges to insert, in the order of insertion.
        """
        return _edge_range(self.in_order, self.in_start, self.in_stop, self.direction)

    def next(self):  # noqa A003
        ts = self.tree_sequence
        M = ts.num_edges
        breakpoints = ts.breakpoints(as_array=True)
        left_coords = ts.edges_left
        left_order = ts.indexes_edge_insertion_order
        right_coords = ts.edges_right
        right_order = ts.indexes_edge_removal_order

        if self.index == -1:
            self.right = 0
            self.out_stop = 0
            self.in_stop = 0
            self.direction = FORWARD

        if self.direction == FORWARD:
            left_current_index = self.in_stop
            right_current_index = self.out_stop
        else:
            left_current_index = self.out_stop + 1
            right_current_index = self.in_stop + 1

        left = self.right

        j = right_current_index
        self.out_start = j
        while j < M and right_coords[right_order[j]] == left:
            j += 1
        self.out_stop = j
        self.out_order = right_order

        j = left_current_index
        self.in_start = j
        while j < M and left_coords[left_order[j]] == left:
            j += 1
        self.in_stop = j
        self.in_order = left_order

        self.direction = FORWARD
        self.index += 1
        if self.index == ts.num_trees:
            self.set_null()
        else:
            self.left = left
            self.right = breakpoints[self.index + 1]
        return self.index != -1

    def prev(self):
        ts = self.tree_sequence
        M = ts.num_edges
        breakpoints = ts.breakpoints(as_array=True)
        right_coords = ts.edges_right
        right_order = ts.indexes_edge_removal_order
        left_coords = ts.edges_left
        left_order = ts.indexes_edge_insertion_order

        if self.index == -1:
            self.index = ts.num_trees
            self.left = ts.sequence_length
            self.in_stop = M - 1
            self.out_stop = M - 1
            self.direction = REVERSE

        if self.direction == REVERSE:
            left_current_index = self.out_stop
            right_current_index = self.in_stop
        else:
            left_current_index = self.in_stop - 1
            right_current_index = self.out_stop - 1

        right = self.left

        j = left_current_index
        self.out_start = j
        while j >= 0 and left_coords[left_order[j]] == right:
            j -= 1
        self.out_stop = j
        self.out_order = left_order

        j = right_current_index
        self.in_start = j
        while j >= 0 and right_coords[right_order[j]] == right:
            j -= 1
        self.in_stop = j
        self.in_order = right_order

        self.direction = REVERSE
        self.index -= 1
        if self.index == -1:
            self.set_null()
        else:
            self.left = breakpoints[self.index]
            self.right = right
        return self.index != -1


class Tree:
    """
    A single tree in a :class:`TreeSequence`.

    The :class:`Tree` class is a state-machine which has a state
    corresponding to each of the trees in the parent tree sequence. We
    transition between these states by using the seek functions like
    :meth:`Tree.first`, :meth:`Tree.last`, :meth:`Tree.seek` and
    :meth:`Tree.seek_index`. There is one more state, the so-called "null"
    or "cleared" state. This is the state that a :class:`Tree` is in
    immediately after initialisation;  it has an index of -1, and no edges. We
    can also enter the null state by calling :meth:`Tree.next` on the last
    tree in a sequence, calling :meth:`Tree.prev` on the first tree in a
    sequence or calling calling the :meth:`Tree.clear` method at any time.

    The tree is stored as arrays of node IDs with one entry for each node in
    the tree sequence, plus one extra entry for the *virtual root*, whose
    children are the roots of the tree. Transitions between neighbouring
    trees remove and insert only the edges that differ between them.

    :param TreeSequence tree_sequence: The parent tree sequence.
    :param int options: Bitwise :class:`TreeOptions`.
    :param list tracked_samples: The list of samples to be tracked and
        counted using the :meth:`Tree.num_tracked_samples` method.
    :param bool sample_lists: If True, equivalent to specifying
        ``TreeOptions.SAMPLE_LISTS``.
    """

    def __init__(
        self, tree_sequence, options=0, tracked_samples=None, *, sample_lists=False
    ):
        options = TreeOptions(options)
        if sample_lists:
            options |= TreeOptions.SAMPLE_LISTS
        self._tree_sequence = tree_sequence
        self._options = options
        N = tree_sequence.num_nodes
        self._num_nodes = N
        self._samples = tree_sequence.samples()
        self._sample_index_map = np.full(N + 1, NULL, dtype=np.int32)
        self._sample_index_map[self._samples] = np.arange(
            len(self._samples), dtype=np.int32
        )
        self._tracked = np.zeros(N + 1, dtype=bool)
        if tracked_samples is not None:
            if TreeOptions.NO_SAMPLE_COUNTS in options:
                raise ValueError("Cannot track samples when sample counts are disabled")
            for u in tracked_samples:
                if u < 0 or u >= N:
                    raise LibraryError(ErrorCode.NODE_OUT_OF_BOUNDS)
                if self._sample_index_map[u] == NULL:
                    raise LibraryError(ErrorCode.BAD_SAMPLES)
                if self._tracked[u]:
                    raise LibraryError(ErrorCode.DUPLICATE_SAMPLE)
                self._tracked[u] = True

        self._parent = np.full(N + 1, NULL, dtype=np.int32)
        self._left_child = np.full(N + 1, NULL, dtype=np.int32)
        self._right_child = np.full(N + 1, NULL, dtype=np.int32)
        self._left_sib = np.full(N + 1, NULL, dtype=np.int32)
        self._right_sib = np.full(N + 1, NULL, dtype=np.int32)
        self._num_children = np.zeros(N + 1, dtype=np.int32)
        self._edge = np.full(N + 1, NULL, dtype=np.int32)
        self._num_samples = np.zeros(N + 1, dtype=np.int32)
        self._num_tracked_samples = None
        if TreeOptions.NO_SAMPLE_COUNTS not in options:
            self._num_tracked_samples = np.zeros(N + 1, dtype=np.int32)
        self._left_sample = None
        self._right_sample = None
        self._next_sample = None
        if TreeOptions.SAMPLE_LISTS in options:
            self._left_sample = np.full(N + 1, NULL, dtype=np.int32)
            self._right_sample = np.full(N + 1, NULL, dtype=np.int32)
            self._next_sample = np.full(N + 1, NULL, dtype=np.int32)
        self._make_arrays()
        self.clear()

    def _make_arrays(self):
        # Read-only views of the state arrays handed out to callers
        self._views = {}
        for name in [
            "parent",
            "left_child",
            "right_child",
            "left_sib",
            "right_sib",
            "num_children",
            "edge",
            "num_samples",
            "num_tracked_samples",
            "left_sample",
            "right_sample",
            "next_sample",
        ]:
            array = getattr(self, "_" + name)
            if array is not None:
                view = array.view()
                view.flags.writeable = False
                self._views[name] = view

    def copy(self):
        """
        Returns a deep copy of this tree. The returned tree will have identical state
        to this tree.

        :return: A copy of this tree.
        :rtype: Tree
        """
        copy = type(self).__new__(type(self))
        for name, value in self.__dict__.items():
            if isinstance(value, np.ndarray):
                value = value.copy()
            setattr(copy, name, value)
        copy._position = self._position.copy()
        copy._make_arrays()
        return copy

    @property
    def tree_sequence(self):
        """
        Returns the tree sequence that this tree is from.

        :return: The parent tree sequence for this tree.
        :rtype: :class:`TreeSequence`
        """
        return self._tree_sequence

    @property
    def options(self):
        return self._options

    def __eq__(self, other):
        ret = False
        if type(other) is type(self):
            ret = (
                self._tree_sequence is other._tree_sequence
                and self.index == other.index
            )
        return ret

    def __ne__(self, other):
        return not self.__eq__(other)

    #
    # Topology updates
    #

    def _remove_branch(self, p, c):
        lsib = self._left_sib[c]
        rsib = self._right_sib[c]
        if lsib == NULL:
            self._left_child[p] = rsib
        else:
            self._right_sib[lsib] = rsib
        if rsib == NULL:
            self._right_child[p] = lsib
        else:
            self._left_sib[rsib] = lsib
        self._parent[c] = NULL
        self._left_sib[c] = NULL
        self._right_sib[c] = NULL
        self._num_children[p] -= 1

    def _insert_branch(self, p, c):
        self._parent[c] = p
        u = self._right_child[p]
        if u == NULL:
            self._left_child[p] = c
            self._left_sib[c] = NULL
            self._right_sib[c] = NULL
        else:
            self._right_sib[u] = c
            self._left_sib[c] = u
            self._right_sib[c] = NULL
        self._right_child[p] = c
        self._num_children[p] += 1

    # Roots are the children of the virtual root, but report NULL as their parent
    def _insert_root(self, root):
        self._insert_branch(self._num_nodes, root)
        self._parent[root] = NULL

    def _remove_root(self, root):
        self._remove_branch(self._num_nodes, root)

    def _update_counts(self, parent, child, sign):
        num_samples = self._num_samples
        num_tracked = self._num_tracked_samples
        u = parent
        while u != NULL:
            path_end = u
            path_end_was_root = num_samples[u] > 0
            num_samples[u] += sign * num_samples[child]
            if num_tracked is not None:
                num_tracked[u] += sign * num_tracked[child]
            u = self._parent[u]
        return path_end, path_end_was_root

    def _remove_edge(self, edge_id):
        ts = self._tree_sequence
        p = ts.edges_parent[edge_id]
        c = ts.edges_child[edge_id]
        self._remove_branch(p, c)
        self._num_edges -= 1
        self._edge[c] = NULL

        path_end, path_end_was_root = self._update_counts(p, c, -1)
        if path_end_was_root and self._num_samples[path_end] == 0:
            self._remove_root(path_end)
        if self._num_samples[c] > 0:
            self._insert_root(c)
        if self._left_sample is not None:
            self._update_sample_list(p)

    def _insert_edge(self, edge_id):
        ts = self._tree_sequence
        p = ts.edges_parent[edge_id]
        c = ts.edges_child[edge_id]

        path_end, path_end_was_root = self._update_counts(p, c, 1)
        if self._num_samples[c] > 0:
            self._remove_root(c)
        if self._num_samples[path_end] > 0 and not path_end_was_root:
            self._insert_root(path_end)

        self._insert_branch(p, c)
        self._num_edges += 1
        self._edge[c] = edge_id
        if self._left_sample is not None:
            self._update_sample_list(p)

    def _update_sample_list(self, parent):
        # Rebuild the sample lists on the path from parent to the root by
        # concatenating the lists of each node's children.
        left_sample = self._left_sample
        right_sample = self._right_sample
        next_sample = self._next_sample
        u = parent
        while u != NULL:
            sample_index = self._sample_index_map[u]
            left_sample[u] = sample_index
            right_sample[u] = sample_index
            v = self._left_child[u]
            while v != NULL:
                if left_sample[v] != NULL:
                    if left_sample[u] == NULL:
                        left_sample[u] = left_sample[v]
                        right_sample[u] = right_sample[v]
                    else:
                        next_sample[right_sample[u]] = left_sample[v]
                        right_sample[u] = right_sample[v]
                v = self._right_sib[v]
            u = self._parent[u]

    #
    # Seeking
    #

    def clear(self):
        """
        Resets this tree back to the initial null state. Calling this method
        on a tree already in the null state has no effect.
        """
        N = self._num_nodes
        self._position = TreePosition(self._tree_sequence)
        self._num_edges = 0
        for array in [
            self._parent,
            self._left_child,
            self._right_child,
            self._left_sib,
            self._right_sib,
            self._edge,
        ]:
            array.fill(NULL)
        self._num_children.fill(0)
        self._num_samples.fill(0)
        self._num_samples[self._samples] = 1
        self._num_samples[N] = len(self._samples)
        if self._num_tracked_samples is not None:
            self._num_tracked_samples[:] = self._tracked
            self._num_tracked_samples[N] = np.sum(self._tracked)
        if self._left_sample is not None:
            self._left_sample.fill(NULL)
            self._right_sample.fill(NULL)
            self._next_sample.fill(NULL)
            indexes = np.arange(len(self._samples), dtype=np.int32)
            self._left_sample[self._samples] = indexes
            self._right_sample[self._samples] = indexes
        for u in self._samples:
            self._insert_root(u)

    def next(self):  # noqa A003
        """
        Seeks to the next tree in the sequence. If the tree is in the initial
        null state we seek to the first tree (equivalent to calling :meth:`~Tree.first`).
        Calling ``next`` on the last tree in the sequence results in the tree
        being cleared back into the null initial state (equivalent to calling
        :meth:`~Tree.clear`). The return value of the function indicates whether the
        tree is in a non-null state, and can be used to loop over the trees::

            # Iterate over the trees from left-to-right
            tree = treeseq.Tree(tree_sequence)
            while tree.next():
                # Do something with the tree.
                print(tree.index)
            # tree is now back in the null state.

        :return: True if the tree has been transformed into one of the trees
            in the sequence; False if the tree has been transformed into the
            null state.
        :rtype: bool
        """
        position = self._position
        if not position.next():
            self.clear()
            return False
        for edge_id in position.edges_out():
            self._remove_edge(edge_id)
        for edge_id in position.edges_in():
            self._insert_edge(edge_id)
        return True

    def prev(self):
        """
        Seeks to the previous tree in the sequence. If the tree is in the initial
        null state we seek to the last tree (equivalent to calling :meth:`~Tree.last`).
        Calling ``prev`` on the first tree in the sequence results in the tree
        being cleared back into the null initial state (equivalent to calling
        :meth:`~Tree.clear`).

        :return: True if the tree has been transformed into one of the trees
            in the sequence; False if the tree has been transformed into the
            null state.
        :rtype: bool
        """
        position = self._position
        if not position.prev():
            self.clear()
            return False
        for edge_id in position.edges_out():
            self._remove_edge(edge_id)
        for edge_id in position.edges_in():
            self._insert_edge(edge_id)
        return True

    def first(self):
        """
        Seeks to the first tree in the sequence. This can be called whether
        the tree is in the null state or not.
        """
        self.clear()
        self.next()

    def last(self):
        """
        Seeks to the last tree in the sequence. This can be called whether
        the tree is in the null state or not.
        """
        self.clear()
        self.prev()

    def seek_index(self, index):
        """
        Sets the state to represent the tree at the specified
        index in the parent tree sequence. Negative indexes following the
        standard Python conventions are allowed, i.e., ``index=-1`` will
        seek to the last tree in the sequence.

        :param int index: The tree index to seek to.
        :raises IndexError: If an index outside the acceptable range is provided.
        """
        num_trees = self._tree_sequence.num_trees
        if index < 0:
            index += num_trees
        if index < 0 or index >= num_trees:
            raise IndexError("Index out of bounds")
        current = self.index
        if current == NULL:
            if index < num_trees - index:
                steps, step = index + 1, self.next
            else:
                steps, step = num_trees - index, self.prev
        elif index >= current:
            steps, step = index - current, self.next
        else:
            steps, step = current - index, self.prev
        for _ in range(steps):
            step()

    def seek(self, position):
        """
        Sets the state to represent the tree that covers the specified
        position in the parent tree sequence. After a successful return
        of this method we have ``tree.interval.left`` <= ``position``
        < ``tree.interval.right``.

        :param float position: The position along the sequence length to
            seek to.
        :raises ValueError: If 0 < position or position >=
            :attr:`TreeSequence.sequence_length`.
        """
        if position < 0 or position >= self._tree_sequence.sequence_length:
            raise ValueError("Position out of bounds")
        breakpoints = self._tree_sequence.breakpoints(as_array=True)
        index = np.searchsorted(breakpoints, position, side="right") - 1
        self.seek_index(int(index))

    @property
    def index(self):
        """
        Returns the index this tree occupies in the parent tree sequence.
        This index is zero based, so the first tree in the sequence has index 0.
        The null tree has index -1.

        :return: The index of this tree.
        :rtype: int
        """
        return self._position.index

    @property
    def interval(self):
        """
        Returns the coordinates of the genomic interval that this tree
        represents the history of. The interval is returned as a tuple
        :math:`(l, r)` and is a half-open interval such that the left
        coordinate is inclusive and the right coordinate is exclusive. The null
        tree has interval (0, 0).

        :return: A named tuple (l, r) representing the left-most (inclusive)
            and right-most (exclusive) coordinates of the genomic region
            covered by this tree.
        :rtype: Interval
        """
        return self._position.interval

    @property
    def span(self):
        """
        Returns the genomic distance that this tree spans.
        This is defined as :math:`r - l`, where :math:`(l, r)` is the genomic
        interval returned by :attr:`~Tree.interval`.

        :return: The genomic distance covered by this tree.
        :rtype: float
        """
        return self.interval.span

    @property
    def num_edges(self):
        """
        The total number of edges in this tree.
        """
        return self._num_edges

    @property
    def num_nodes(self):
        """
        Returns the number of nodes in the :class:`TreeSequence` this tree is in.
        Equivalent to ``tree.tree_sequence.num_nodes``.
        """
        return self._num_nodes

    @property
    def virtual_root(self):
        """
        The ID of the virtual root in this tree. This is equal to
        :attr:`TreeSequence.num_nodes`. The virtual root is the parent of
        every root and occupies the last slot of the tree arrays; it is not
        a valid argument to the node query methods.
        """
        return self._num_nodes

    #
    # Array access
    #

    def _check_sample_lists(self):
        if self._left_sample is None:
            raise NotTrackingSamplesError(
                "Sample lists are not maintained by this tree. "
                "Use TreeOptions.SAMPLE_LISTS"
            )

    def _check_tracked_samples(self):
        if self._num_tracked_samples is None:
            raise NotTrackingSamplesError(
                "Tracked sample counts are disabled by TreeOptions.NO_SAMPLE_COUNTS"
            )

    @property
    def parent_array(self):
        """
        A numpy array (dtype=np.int32) encoding the parent of each node
        in this tree, such that ``tree.parent_array[u] == tree.parent(u)``
        for all ``0 <= u <= ts.num_nodes``. The array is read-only and
        reflects the current state of the tree, so it changes as the tree
        is moved along the sequence.
        """
        return self._views["parent"]

    @property
    def left_child_array(self):
        """
        A numpy array (dtype=np.int32) encoding the left child of each node
        in this tree, such that ``tree.left_child_array[u] == tree.left_child(u)``.
        See :attr:`~Tree.parent_array` for details on the semantics.
        """
        return self._views["left_child"]

    @property
    def right_child_array(self):
        """
        A numpy array (dtype=np.int32) encoding the right child of each node
        in this tree. See :attr:`~Tree.parent_array` for details.
        """
        return self._views["right_child"]

    @property
    def left_sib_array(self):
        """
        A numpy array (dtype=np.int32) encoding the left sib of each node
        in this tree. See :attr:`~Tree.parent_array` for details.
        """
        return self._views["left_sib"]

    @property
    def right_sib_array(self):
        """
        A numpy array (dtype=np.int32) encoding the right sib of each node
        in this tree. See :attr:`~Tree.parent_array` for details.
        """
        return self._views["right_sib"]

    @property
    def num_children_array(self):
        return self._views["num_children"]

    @property
    def edge_array(self):
        """
        A numpy array (dtype=np.int32) of the ID of the edge joining each
        node to its parent, or :data:`treeseq.NULL` if there is no such edge.
        """
        return self._views["edge"]

    @property
    def num_samples_array(self):
        return self._views["num_samples"]

    @property
    def num_tracked_samples_array(self):
        self._check_tracked_samples()
        return self._views["num_tracked_samples"]

    @property
    def left_sample_array(self):
        """
        A numpy array (dtype=np.int32) giving, for each node, the index in
        :meth:`TreeSequence.samples` of the first sample in its sample list.
        Only available with ``TreeOptions.SAMPLE_LISTS``.
        """
        self._check_sample_lists()
        return self._views["left_sample"]

    @property
    def right_sample_array(self):
        self._check_sample_lists()
        return self._views["right_sample"]

    @property
    def next_sample_array(self):
        self._check_sample_lists()
        return self._views["next_sample"]

    #
    # Node queries
    #

    def _check_node(self, u):
        if u < 0 or u >= self._num_nodes:
            raise IndexError("Node index out of bounds")
        return u

    def parent(self, u):
        """
        Returns the parent of the specified node. Returns
        :data:`treeseq.NULL` if u is a root or is not a node in
        the current tree.

        :param int u: The node of interest.
        :return: The parent of u.
        :rtype: int
        """
        return self._parent[self._check_node(u)]

    def left_child(self, u):
        """
        Returns the leftmost child of the specified node. Returns
        :data:`treeseq.NULL` if u is a leaf or is not a node in the current
        tree. The left-to-right ordering of children is arbitrary and should
        not be depended on.

        :param int u: The node of interest.
        :return: The leftmost child of u.
        :rtype: int
        """
        return self._left_child[self._check_node(u)]

    def right_child(self, u):
        """
        Returns the rightmost child of the specified node. Returns
        :data:`treeseq.NULL` if u is a leaf or is not a node in the current
        tree.

        :param int u: The node of interest.
        :return: The rightmost child of u.
        :rtype: int
        """
        return self._right_child[self._check_node(u)]

    def left_sib(self, u):
        """
        Returns the sibling node to the left of u, or :data:`treeseq.NULL`
        if u does not have a left sibling.

        :param int u: The node of interest.
        :return: The sibling node to the left of u.
        :rtype: int
        """
        return self._left_sib[self._check_node(u)]

    def right_sib(self, u):
        """
        Returns the sibling node to the right of u, or :data:`treeseq.NULL`
        if u does not have a right sibling.

        :param int u: The node of interest.
        :return: The sibling node to the right of u.
        :rtype: int
        """
        return self._right_sib[self._check_node(u)]

    def edge(self, u):
        """
        Returns the id of the edge encoding the relationship between ``u``
        and its parent, or :data:`treeseq.NULL` if ``u`` is a root or is
        not a node in the current tree.
        """
        return self._edge[self._check_node(u)]

    def num_children(self, u):
        """
        Returns the number of children of the specified node (i.e., ``len(tree.children(u))``)

        :param int u: The node of interest.
        :return: The number of immediate children of the node u in this tree.
        :rtype: int
        """
        return self._num_children[self._check_node(u)]

    def children(self, u):
        """
        Returns the children of the specified node ``u`` as a tuple of integer node IDs.
        If ``u`` is a leaf, return the empty tuple.

        :param int u: The node of interest.
        :return: The children of ``u`` as a tuple of integers
        :rtype: tuple(int)
        """
        children = []
        v = self._left_child[self._check_node(u)]
        while v != NULL:
            children.append(int(v))
            v = self._right_sib[v]
        return tuple(children)

    def parents(self, u):
        """
        Returns an iterator over the path from ``u`` to the root of its
        tree, starting with ``u`` itself and finishing with the root.

        :param int u: The node of interest.
        :raises IndexError: If ``u`` is out of range.
        """
        self._check_node(u)
        return self._path_to_root(u)

    def _path_to_root(self, u):
        while u != NULL:
            yield int(u)
            u = self._parent[u]

    def ancestors(self, u):
        """
        Returns an iterator over the ancestors of node ``u`` in this tree
        (i.e. the chain of parents from ``u`` to the root).
        """
        path = self.parents(u)
        next(path)
        return path

    def time(self, u):
        """
        Returns the time of the specified node. This is equivalently
        to ``tree.tree_sequence.node(u).time``.

        :param int u: The node of interest.
        :return: The time of u.
        :rtype: float
        """
        return self._tree_sequence.nodes_time[self._check_node(u)]

    def branch_length(self, u):
        """
        Returns the length of the branch (in units of time) joining the
        specified node to its parent. This is equivalent to::

            tree.time(tree.parent(u)) - tree.time(u)

        The branch length for a node that has no parent (e.g., a root) is
        defined as zero.

        :param int u: The node of interest.
        :return: The branch length from u to its parent.
        :rtype: float
        """
        ret = 0
        parent = self.parent(u)
        if parent != NULL:
            ret = self.time(parent) - self.time(u)
        return ret

    def depth(self, u):
        """
        Returns the number of nodes on the path from ``u`` to a
        root, not including ``u``. Thus, the depth of a root is
        zero.

        :param int u: The node of interest.
        :return: The depth of u.
        :rtype: int
        """
        depth = 0
        v = self._parent[self._check_node(u)]
        while v != NULL:
            depth += 1
            v = self._parent[v]
        return depth

    def is_sample(self, u):
        """
        Returns True if the specified node is a sample. A node :math:`u` is a
        sample if it has been marked as a sample in the parent tree sequence.

        :param int u: The node of interest.
        :return: True if u is a sample.
        :rtype: bool
        """
        return bool(self._sample_index_map[self._check_node(u)] != NULL)

    def is_leaf(self, u):
        """
        Returns True if the specified node is a leaf. A node :math:`u` is a
        leaf if it has zero children.

        :param int u: The node of interest.
        :return: True if u is a leaf node.
        :rtype: bool
        """
        return bool(self._num_children[self._check_node(u)] == 0)

    def is_internal(self, u):
        """
        Returns True if the specified node is not a leaf.

        :param int u: The node of interest.
        :return: True if u is not a leaf node.
        :rtype: bool
        """
        return not self.is_leaf(u)

    def is_isolated(self, u):
        """
        Returns True if the specified node is isolated in this tree: that is
        it has no parents and no children.

        :param int u: The node of interest.
        :return: True if u is an isolated node.
        :rtype: bool
        """
        return self.num_children(u) == 0 and self.parent(u) == NULL

    def is_root(self, u) -> bool:
        """
        Returns ``True`` if the specified node is a root in this tree (see
        :attr:`~Tree.roots` for the definition of a root). This is exactly
        equivalent to finding the node ID in :attr:`~Tree.roots`, but is more
        efficient.

        :param int u: The node of interest.
        :return: ``True`` if u is a root.
        """
        self._check_node(u)
        return bool(self._parent[u] == NULL and self._num_samples[u] > 0)

    def is_descendant(self, u, v):
        """
        Returns True if the specified node u is a descendant of node v and False
        otherwise. A node :math:`u` is a descendant of another node :math:`v` if
        :math:`v` is on the path from :math:`u` to root. A node is considered
        to be a descendant of itself, so ``tree.is_descendant(u, u)`` will be
        True for any valid node.

        :param int u: The descendant node.
        :param int v: The ancestral node.
        :return: True if u is a descendant of v.
        :rtype: bool
        :raises IndexError: If u or v are not valid node IDs.
        """
        self._check_node(v)
        return v in self.parents(u)

    def mrca(self, *args):
        """
        Returns the most recent common ancestor of the specified nodes.

        :param int `*args`: input node IDs, at least 2 arguments are required.
        :return: The node ID of the most recent common ancestor of the
            input nodes, or :data:`treeseq.NULL` if the nodes do not share
            a common ancestor in the tree.
        :rtype: int
        """
        if len(args) < 2:
            raise ValueError("Must supply at least two arguments")
        mrca = args[0]
        for u in args[1:]:
            mrca = self._pair_mrca(mrca, u)
            if mrca == NULL:
                break
        return mrca

    def _pair_mrca(self, u, v):
        path = set(self.parents(u))
        for w in self.parents(v):
            if w in path:
                return w
        return NULL

    def tmrca(self, *args):
        """
        Returns the time of the most recent common ancestor of the specified
        nodes. This is equivalent to::

            tree.time(tree.mrca(*args))

        :param int `*args`: input node IDs, at least 2 arguments are required.
        :return: The time of the most recent common ancestor of all the nodes.
        :rtype: float
        :raises ValueError: If the nodes do not share a single common ancestor in this
            tree (i.e., if ``tree.mrca(*args) == treeseq.NULL``)
        """
        mrca = self.mrca(*args)
        if mrca == NULL:
            raise ValueError(f"Nodes {args} do not share a common ancestor in the tree")
        return self.time(mrca)

    def num_samples(self, u=None):
        """
        Returns the number of sample nodes in this tree underneath the specified
        node (including the node itself). If u is not specified return
        the total number of samples in the tree.

        :param int u: The node of interest.
        :return: The number of samples in the subtree rooted at u.
        :rtype: int
        """
        if u is None:
            return int(self._num_samples[self._num_nodes])
        return int(self._num_samples[self._check_node(u)])

    def num_tracked_samples(self, u=None):
        """
        Returns the number of samples in the set specified in the
        ``tracked_samples`` parameter of the :meth:`TreeSequence.trees` method
        underneath the specified node. If the input node is not specified,
        return the total number of tracked samples in the tree.

        :param int u: The node of interest.
        :return: The number of samples within the set of tracked samples in
            the subtree rooted at u.
        :rtype: int
        :raises NotTrackingSamplesError: If sample counts are disabled.
        """
        self._check_tracked_samples()
        if u is None:
            return int(self._num_tracked_samples[self._num_nodes])
        return int(self._num_tracked_samples[self._check_node(u)])

    def left_sample(self, u):
        self._check_sample_lists()
        return self._left_sample[self._check_node(u)]

    def right_sample(self, u):
        self._check_sample_lists()
        return self._right_sample[self._check_node(u)]

    def next_sample(self, index):
        self._check_sample_lists()
        return self._next_sample[index]

    def samples(self, u=None):
        """
        Returns an iterator over the numerical IDs of all the sample nodes in
        this tree that are underneath the node with ID ``u``. If ``u`` is a sample,
        it is included in the returned iterator. If ``u`` is not a sample, it is
        possible for the returned iterator to be empty. If ``u`` is not
        specified, return all sample node IDs in the tree.

        :param int u: The node of interest.
        :return: An iterator over all samples in the subtree rooted at u.
        :rtype: collections.abc.Iterable
        :raises NotTrackingSamplesError: If the tree was not created with
            ``TreeOptions.SAMPLE_LISTS``.
        """
        self._check_sample_lists()
        if u is None:
            roots = self.roots
        else:
            roots = [self._check_node(u)]
        return self._sample_generator(roots)

    def _sample_generator(self, roots):
        for root in roots:
            index = self._left_sample[root]
            if index == NULL:
                continue
            stop = self._right_sample[root]
            while True:
                yield int(self._samples[index])
                if index == stop:
                    break
                index = self._next_sample[index]

    #
    # Roots
    #

    @property
    def left_root(self):
        """
        The leftmost root in this tree. If there are multiple roots
        in this tree, they are siblings of this node, and so we can
        use :meth:`.right_sib` to iterate over all roots. The left-to-right
        ordering of roots is arbitrary and should not be depended on.

        :return: The leftmost root in the tree, or :data:`treeseq.NULL`
            if there are no roots.
        :rtype: int
        """
        return self._left_child[self._num_nodes]

    @property
    def roots(self):
        """
        The list of roots in this tree. A root is defined as a unique endpoint of the
        paths starting at samples, subject to the requirement that it is
        ancestral to at least one sample. Thus, isolated samples are roots.

        :return: The list of roots in this tree.
        :rtype: list
        """
        roots = []
        u = self.left_root
        while u != NULL:
            roots.append(int(u))
            u = self._right_sib[u]
        return roots

    @property
    def num_roots(self):
        """
        The number of roots in this tree, as defined in the :attr:`~Tree.roots`
        attribute.

        :rtype: int
        """
        return int(self._num_children[self._num_nodes])

    @property
    def has_single_root(self):
        return self.num_roots == 1

    @property
    def has_multiple_roots(self):
        return self.num_roots > 1

    @property
    def root(self):
        """
        The root of this tree. If the tree contains multiple roots, a ValueError is
        raised indicating that the :attr:`~Tree.roots` attribute should be used instead.

        :return: The root node.
        :rtype: int
        :raises ValueError: if this tree contains more than one root.
        """
        if self.has_multiple_roots:
            raise ValueError("More than one root exists. Use tree.roots instead")
        return self.left_root

    #
    # Traversals
    #

    def preorder(self, u=NULL):
        """
        Returns a numpy array of node ids in `preorder
        <https://en.wikipedia.org/wiki/Tree_traversal#Pre-order_(NLR)>`_. If the node u
        is specified the traversal is rooted at this node (and it will be the first
        element in the returned array). Otherwise, all nodes reachable from the tree
        roots will be returned, with the leftmost root visited first.

        :param int u: If specified, return all nodes in the subtree rooted at u
            (including u) in traversal order.
        :return: Array of node ids
        :rtype: numpy.ndarray (dtype=np.int32)
        """
        if u == NULL:
            stack = self.roots[::-1]
        else:
            stack = [self._check_node(u)]
        nodes = []
        while len(stack) > 0:
            v = stack.pop()
            nodes.append(v)
            c = self._right_child[v]
            while c != NULL:
                stack.append(c)
                c = self._left_sib[c]
        return np.array(nodes, dtype=np.int32)

    def postorder(self, u=NULL):
        """
        Returns a numpy array of node ids in `postorder
        <https://en.wikipedia.org/wiki/Tree_traversal##Post-order_(LRN)>`_. If the node u
        is specified the traversal is rooted at this node (and it will be the last
        element in the returned array). Otherwise, all nodes reachable from the tree
        roots will be returned.

        :param int u: If specified, return all nodes in the subtree rooted at u
            (including u) in traversal order.
        :return: Array of node ids
        :rtype: numpy.ndarray (dtype=np.int32)
        """
        if u == NULL:
            stack = self.roots
        else:
            stack = [self._check_node(u)]
        nodes = []
        while len(stack) > 0:
            v = stack.pop()
            nodes.append(v)
            c = self._left_child[v]
            while c != NULL:
                stack.append(c)
                c = self._right_sib[c]
        return np.array(nodes[::-1], dtype=np.int32)

    def timeasc(self, u=NULL):
        """
        Returns a numpy array of node ids. Starting at `u`, returns the reachable
        descendant nodes in order of increasing time (most recent first), falling
        back to increasing ID if times are equal.
        """
        nodes = self.preorder(u)
        times = self._tree_sequence.nodes_time[nodes]
        return nodes[np.lexsort((nodes, times))]

    def timedesc(self, u=NULL):
        """
        Returns a numpy array of node ids in order of decreasing time, falling
        back to decreasing ID if times are equal.
        """
        return self.timeasc(u)[::-1]

    def nodes(self, root=None, order="preorder"):
        """
        Returns an iterator over the node IDs reachable from the specified node in
        this tree in the specified traversal order. If ``root`` is not given, the
        traversal covers all the roots, leftmost first.

        :param int root: The root of the subtree we are traversing.
        :param str order: The traversal ordering. Currently "preorder",
            "postorder", "timeasc" and "timedesc" are supported.
        :return: An iterator over the node IDs in the tree in some traversal order.
        :rtype: collections.abc.Iterable, int
        """
        methods = {
            "preorder": self.preorder,
            "postorder": self.postorder,
            "timeasc": self.timeasc,
            "timedesc": self.timedesc,
        }
        try:
            iterator = methods[order]
        except KeyError:
            raise ValueError(f"Traversal ordering '{order}' not supported")
        root = NULL if root is None else root
        return iter(iterator(root))

    @property
    def total_branch_length(self):
        """
        Returns the sum of all the branch lengths in this tree (in
        units of time). This is equivalent to::

            sum(tree.branch_length(u) for u in tree.nodes())

        :return: The sum of lengths of branches in this tree.
        :rtype: float
        """
        nodes = self.preorder()
        parents = self._parent[nodes]
        keep = parents != NULL
        time = self._tree_sequence.nodes_time
        return float(np.sum(time[parents[keep]] - time[nodes[keep]]))

    def kc_distance(self, other, lambda_=0.0):
        """
        Returns the Kendall-Colijn distance between the specified pair of trees.
        The ``lambda_`` parameter determines the relative weight of topology
        vs branch lengths in calculating the distance. If ``lambda_`` is 0
        (the default) we only consider topology, and if it is 1 we only
        consider branch lengths. See `Kendall & Colijn (2016)
        <https://academic.oup.com/mbe/article/33/10/2735/2925548>`_ for details.

        Both trees must be created with ``TreeOptions.SAMPLE_LISTS``, have the
        same samples, a single root and no unary nodes.

        :param Tree other: The other tree to compare to.
        :param float lambda_: The KC metric lambda parameter determining the
            relative weight of topology and branch length.
        :return: The computed KC distance between this tree and other.
        :rtype: float
        """
        self._check_sample_lists()
        other._check_sample_lists()
        return distances.tree_kc_distance(self, other, lambda_)


class TreeIterator:
    """
    Simple class providing forward and backward iteration over a tree sequence.
    """

    def __init__(self, tree):
        self.tree = tree
        self.more_trees = True
        self.forward = True

    def __iter__(self):
        return self

    def __reversed__(self):
        self.forward = False
        return self

    def __next__(self):
        if self.forward:
            self.more_trees = self.more_trees and self.tree.next()
        else:
            self.more_trees = self.more_trees and self.tree.prev()
        if not self.more_trees:
            raise StopIteration()
        return self.tree

    def __len__(self):
        return self.tree.tree_sequence.num_trees


class TreeSequence:
    """
    A single tree sequence, as defined by the :ref:`data model <sec_data_model>`.
    A TreeSequence instance can be created from a set of
    :ref:`tables <sec_table_definitions>` using
    :meth:`TableCollection.tree_sequence`, or loaded from a set of text files
    using :func:`treeseq.load`.

    The tree sequence owns an immutable copy of its tables. Use
    :meth:`.dump_tables` to obtain a modifiable copy.
    """

    def __init__(self, tables):
        # The tables must be frozen and pass check_integrity with CHECK_TREES
        self._tables = tables
        nodes = tables.nodes
        edges = tables.edges
        self._nodes_time = nodes.time
        self._nodes_flags = nodes.flags
        self._edges_left = edges.left
        self._edges_right = edges.right
        self._edges_parent = edges.parent
        self._edges_child = edges.child
        self._insertion_order = tables.edge_insertion_order
        self._removal_order = tables.edge_removal_order
        samples = np.flatnonzero(self._nodes_flags & NODE_IS_SAMPLE).astype(np.int32)
        samples.flags.writeable = False
        self._samples = samples
        breakpoints = np.unique(
            np.concatenate(
                [[0], self._edges_left, self._edges_right, [tables.sequence_length]]
            )
        )
        breakpoints.flags.writeable = False
        self._breakpoints = breakpoints

    @classmethod
    def load_tables(cls, tables):
        """
        Creates a tree sequence from a copy of the specified tables, which
        must be sorted, indexed and pass :meth:`TableCollection.check_integrity`
        with ``CHECK_TREES``.

        :param TableCollection tables: The tables to copy.
        :rtype: TreeSequence
        """
        num_trees = tables.check_integrity(IntegrityCheckOptions.CHECK_TREES)
        tables = tables.copy()
        tables._freeze()
        logger.debug(
            f"Creating tree sequence with {tables.nodes.num_rows} nodes, "
            f"{tables.edges.num_rows} edges and {num_trees} trees"
        )
        return cls(tables)

    @classmethod
    def load(cls, file_or_path):
        """
        Loads a tree sequence from the specified file object or path. The
        edge indexes are built if the file does not contain them.
        """
        tables = TableCollection.load(file_or_path)
        options = 0
        if not tables.has_index():
            options = TreeSequenceOptions.BUILD_INDEXES
        return tables.tree_sequence(options)

    def dump(self, file_or_path):
        """
        Writes the tree sequence to the specified path or file object.

        :param str file_or_path: The file object or path to write the TreeSequence to.
        """
        self._tables.dump(file_or_path)

    @property
    def tables(self):
        """
        The immutable tables underlying this tree sequence. Attempting to
        modify them raises an :class:`ImmutableTableError`; use
        :meth:`.dump_tables` to get a modifiable copy.

        :return: The tables underlying this tree sequence.
        :rtype: TableCollection
        """
        return self._tables

    def dump_tables(self):
        """
        Returns a modifiable copy of the :class:`tables<TableCollection>` defining
        this tree sequence.

        :return: A :class:`TableCollection` containing all tables underlying
            the tree sequence.
        :rtype: TableCollection
        """
        return self._tables.copy()

    def equals(self, other, **kwargs):
        """
        Returns True if  `self` and `other` are equal. The keyword arguments
        are passed to :meth:`TableCollection.equals`.
        """
        return self._tables.equals(other._tables, **kwargs)

    def __eq__(self, other):
        if not isinstance(other, TreeSequence):
            return False
        return self.equals(other)

    def __str__(self):
        return (
            f"TreeSequence(sequence_length={self.sequence_length}, "
            f"num_trees={self.num_trees}, num_samples={self.num_samples}, "
            f"num_nodes={self.num_nodes}, num_edges={self.num_edges})"
        )

    @property
    def sequence_length(self):
        """
        Returns the sequence length in this tree sequence. This defines the
        genomic scale over which tree coordinates are defined.

        :return: The length of the sequence in this tree sequence in bases.
        :rtype: float
        """
        return self._tables.sequence_length

    @property
    def time_units(self) -> str:
        """
        String describing the units of the time dimension for this TreeSequence.
        """
        return self._tables.time_units

    @property
    def metadata(self):
        """
        The decoded metadata for this TreeSequence.
        """
        return self._tables.metadata

    @property
    def metadata_schema(self):
        """
        The :class:`treeseq.MetadataSchema` for this TreeSequence.
        """
        return self._tables.metadata_schema

    @property
    def num_nodes(self):
        """
        Returns the number of nodes in this tree sequence.

        :return: The number of nodes in this tree sequence.
        :rtype: int
        """
        return self._tables.nodes.num_rows

    @property
    def num_edges(self):
        """
        Returns the number of edges in this tree sequence.

        :return: The number of edges in this tree sequence.
        :rtype: int
        """
        return self._tables.edges.num_rows

    @property
    def num_sites(self):
        return self._tables.sites.num_rows

    @property
    def num_mutations(self):
        return self._tables.mutations.num_rows

    @property
    def num_migrations(self):
        return self._tables.migrations.num_rows

    @property
    def num_populations(self):
        return self._tables.populations.num_rows

    @property
    def num_individuals(self):
        return self._tables.individuals.num_rows

    @property
    def num_provenances(self):
        return self._tables.provenances.num_rows

    @property
    def num_samples(self):
        """
        Returns the number of sample nodes in this tree sequence.

        :return: The number of sample nodes in this tree sequence.
        :rtype: int
        """
        return len(self._samples)

    @property
    def num_trees(self):
        """
        Returns the number of distinct trees in this tree sequence. This
        is equal to the number of distinct breakpoints along the sequence
        minus one.

        :return: The number of trees in this tree sequence.
        :rtype: int
        """
        return len(self._breakpoints) - 1

    def samples(self):
        """
        Returns an array of the sample node IDs in this tree sequence, in
        increasing order of node ID.

        :return: A numpy array of the node IDs for the samples of interest.
        :rtype: numpy.ndarray (dtype=np.int32)
        """
        return self._samples.copy()

    @property
    def nodes_time(self):
        return self._nodes_time

    @property
    def nodes_flags(self):
        return self._nodes_flags

    @property
    def edges_left(self):
        return self._edges_left

    @property
    def edges_right(self):
        return self._edges_right

    @property
    def edges_parent(self):
        return self._edges_parent

    @property
    def edges_child(self):
        return self._edges_child

    @property
    def indexes_edge_insertion_order(self):
        return self._insertion_order

    @property
    def indexes_edge_removal_order(self):
        return self._removal_order

    def breakpoints(self, as_array=False):
        """
        Returns the breakpoints along the chromosome, including the two extreme points
        0 and L. This is equivalent to::

            iter([0] + [t.interval.right for t in self.trees()])

        By default we return an iterator over the breakpoints as Python float objects;
        if ``as_array`` is True we return them as a read-only numpy array.

        :param bool as_array: If True, return the breakpoints as a numpy array.
        :return: The breakpoints defined by the tree intervals along the sequence.
        :rtype: collections.abc.Iterable or numpy.ndarray
        """
        if as_array:
            return self._breakpoints
        return (float(x) for x in self._breakpoints)

    #
    # Row access
    #

    def _row(self, table, id_):
        if id_ < 0 or id_ >= table.num_rows:
            raise IndexError("ID out of bounds")
        return table[id_]

    def node(self, id_):
        """
        Returns the node row with the specified ID.

        :rtype: NodeTableRow
        """
        return self._row(self._tables.nodes, id_)

    def edge(self, id_):
        """
        Returns the :ref:`edge <sec_edge_table_definition>` in this tree sequence
        with the specified ID.

        :rtype: :class:`Edge`
        """
        row = self._row(self._tables.edges, id_)
        return Edge(
            id=int(id_),
            left=row.left,
            right=row.right,
            parent=row.parent,
            child=row.child,
            metadata=row.metadata,
        )

    def migration(self, id_):
        return self._row(self._tables.migrations, id_)

    def site(self, id_):
        return self._row(self._tables.sites, id_)

    def mutation(self, id_):
        return self._row(self._tables.mutations, id_)

    def population(self, id_):
        return self._row(self._tables.populations, id_)

    def individual(self, id_):
        return self._row(self._tables.individuals, id_)

    def provenance(self, id_):
        return self._row(self._tables.provenances, id_)

    def nodes(self):
        """
        Returns an iterable sequence of all the nodes in this tree sequence.
        """
        return iter(self._tables.nodes)

    def edges(self):
        """
        Returns an iterable sequence of all the :ref:`edges <sec_edge_table_definition>`
        in this tree sequence, in the order in which they are stored.

        :return: An iterable sequence of all edges.
        :rtype: Iterator[:class:`Edge`]
        """
        return (self.edge(j) for j in range(self.num_edges))

    def sites(self):
        return iter(self._tables.sites)

    def mutations(self):
        return iter(self._tables.mutations)

    def migrations(self):
        return iter(self._tables.migrations)

    def populations(self):
        return iter(self._tables.populations)

    def individuals(self):
        return iter(self._tables.individuals)

    def provenances(self):
        return iter(self._tables.provenances)

    #
    # Trees
    #

    def edge_diffs(self, direction=FORWARD):
        """
        Returns an iterator over all the :ref:`edges <sec_edge_table_definition>` that
        are inserted and removed to build the trees as we move from left-to-right along
        the tree sequence. Each iteration yields a named tuple consisting of 3 values,
        ``(interval, edges_out, edges_in)``. The first value, ``interval``, is the
        genomic interval ``(left, right)`` covered by the incoming tree.
        The second, ``edges_out`` is a list of the edges that were just-removed to
        create the tree covering the interval (hence ``edges_out`` will always be empty
        for the first tree). The last value, ``edges_in``, is a list of edges that were
        just inserted to construct the tree covering the current interval.

        :param int direction: The direction of travel along the sequence for
            diffs. Must be one of :data:`.FORWARD` or :data:`.REVERSE`.
        :return: An iterator over the (interval, edges_out, edges_in) tuples.
        :rtype: :class:`collections.abc.Iterable`
        """
        if direction not in (FORWARD, REVERSE):
            raise ValueError("direction must be either treeseq.FORWARD or REVERSE")
        position = TreePosition(self)
        step = position.next if direction == FORWARD else position.prev
        while step():
            edges_out = [self.edge(e) for e in position.edges_out()]
            edges_in = [self.edge(e) for e in position.edges_in()]
            yield EdgeDiff(position.interval, edges_out, edges_in)

    def trees(self, options=0, tracked_samples=None, *, sample_lists=False):
        """
        Returns an iterator over the trees in this tree sequence. Each value
        returned in this iterator is an instance of :class:`Tree`. Upon
        successful termination of the iterator, the tree will be in the
        "cleared" null state.

        The returned iterator supports reversed iteration::

            for tree in reversed(ts.trees()):
                print(tree.interval)

        .. warning:: Do not store the results of this iterator in a list!
           For performance reasons, the same underlying object is used
           for every tree returned which will most likely lead to unexpected
           behaviour. If you wish to obtain a list of trees in a tree sequence
           please use ``[tree.copy() for tree in ts.trees()]``.

        :param int options: Bitwise :class:`TreeOptions`.
        :param list tracked_samples: The list of samples to be tracked and
            counted using the :meth:`Tree.num_tracked_samples` method.
        :param bool sample_lists: If True, provide more efficient access
            to the samples beneath a given node using the
            :meth:`Tree.samples` method.
        :return: An iterator over the Trees in this tree sequence.
        :rtype: collections.abc.Iterable, :class:`Tree`
        """
        tree = Tree(self, options, tracked_samples, sample_lists=sample_lists)
        return TreeIterator(tree)

    def first(self, **kwargs):
        """
        Returns the first tree in this :class:`TreeSequence`. To iterate over all
        trees in the sequence, use the :meth:`.trees` method.

        :param \\**kwargs: Further arguments used as parameters when constructing
            the returned :class:`Tree`.
        :return: The first tree in this tree sequence.
        :rtype: :class:`Tree`.
        """
        tree = Tree(self, **kwargs)
        tree.first()
        return tree

    def last(self, **kwargs):
        """
        Returns the last tree in this :class:`TreeSequence`. To iterate over all
        trees in the sequence, use the :meth:`.trees` method.

        :param \\**kwargs: Further arguments used as parameters when constructing
            the returned :class:`Tree`.
        :return: The last tree in this tree sequence.
        :rtype: :class:`Tree`.
        """
        tree = Tree(self, **kwargs)
        tree.last()
        return tree

    def at(self, position, **kwargs):
        """
        Returns the tree covering the specified genomic location. The returned tree
        will have ``tree.interval.left`` <= ``position`` < ``tree.interval.right``.
        See also :meth:`Tree.seek`.

        :param float position: A genomic location.
        :param \\**kwargs: Further arguments used as parameters when constructing
            the returned :class:`Tree`.
        :return: A new instance of :class:`Tree` positioned to cover the specified
            genomic location.
        :rtype: Tree
        """
        tree = Tree(self, **kwargs)
        tree.seek(position)
        return tree

    def at_index(self, index, **kwargs):
        """
        Returns the tree at the specified index. See also :meth:`Tree.seek_index`.

        :param int index: The index of the required tree.
        :param \\**kwargs: Further arguments used as parameters when constructing
            the returned :class:`Tree`.
        :return: A new instance of :class:`Tree` positioned at the specified index.
        :rtype: Tree
        """
        tree = Tree(self, **kwargs)
        tree.seek_index(index)
        return tree

    def simplify(
        self, samples=None, options=0, map_nodes=False, record_provenance=True
    ):
        """
        Returns a simplified tree sequence that retains only the history of
        the nodes given in the list ``samples``. If ``map_nodes`` is true,
        also return a numpy array whose ``u``-th element is the ID of the node
        in the simplified tree sequence that corresponds to node ``u`` in the
        original tree sequence, or :data:`treeseq.NULL` if node ``u`` is not
        present in the simplified tree sequence.

        See :meth:`TableCollection.simplify` for details of the ``options``.

        :param list[int] samples: A list of node IDs to retain as samples. If
            not specified or None, use all nodes marked with the IS_SAMPLE flag.
        :param int options: Bitwise :class:`SimplifyOptions`.
        :param bool map_nodes: If True, return a tuple containing the resulting
            tree sequence and a numpy array mapping node IDs in the current tree
            sequence to their corresponding node IDs in the returned tree sequence.
        :param bool record_provenance: If True, record details of this call to
            simplify in the returned tree sequence's provenance information
            (Default: True).
        :return: The simplified tree sequence, or (if ``map_nodes`` is True)
            a tuple consisting of the simplified tree sequence and a numpy array
            mapping source node IDs to their corresponding IDs in the new tree
            sequence.
        :rtype: TreeSequence or (TreeSequence, numpy.ndarray)
        """
        tables = self.dump_tables()
        node_map = tables.simplify(samples, options, want_id_map=True)
        if record_provenance:
            tables.add_provenance(
                provenance.make_record(
                    "simplify",
                    samples=None if samples is None else [int(u) for u in samples],
                    options=int(options),
                )
            )
        new_ts = tables.tree_sequence(TreeSequenceOptions.BUILD_INDEXES)
        if map_nodes:
            return new_ts, node_map
        return new_ts

    def kc_distance(self, other, lambda_=0.0):
        """
        Returns the average :meth:`Tree.kc_distance` between pairs of trees
        along the sequence whose intervals overlap. The average is weighted by
        the fraction of the sequence on which each pair of trees overlap.

        :param TreeSequence other: The other tree sequence to compare to.
        :param float lambda_: The KC metric lambda parameter determining the
            relative weight of topology and branch length.
        :return: The computed KC distance between this tree sequence and other.
        :rtype: float
        """
        return distances.ts_kc_distance(self, other, lambda_)


def load(file_or_path):
    """
    Loads a tree sequence from the specified file object or path.

    :param str file_or_path: The file object or path of the ``.trees`` file
        containing the tree sequence we wish to load.
    :return: The tree sequence object containing the information
        stored in the specified file path.
    :rtype: :class:`treeseq.TreeSequence`
    """
    return TreeSequence.load(file_or_path)


__all__ = [
    "TreeOptions",
    "Interval",
    "EdgeDiff",
    "Edge",
    "Tree",
    "TreeIterator",
    "TreeSequence",
    "load",
]
