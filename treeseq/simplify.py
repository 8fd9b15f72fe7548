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
Simplification of a table collection down to the ancestry of a set of samples.
"""
import logging
import sys

import numpy as np

import treeseq
from treeseq import NULL
from treeseq.exceptions import ErrorCode
from treeseq.exceptions import LibraryError

logger = logging.getLogger(__name__)


def overlapping_segments(segments):
    """
    Returns an iterator over the (left, right, X) tuples describing the
    distinct overlapping segments in the specified set.
    """
    S = sorted(segments, key=lambda x: x.left)
    n = len(S)
    # Insert a sentinel at the end for convenience.
    S.append(Segment(sys.float_info.max, 0))
    right = S[0].left
    X = []
    j = 0
    while j < n:
        # Remove any elements of X with right <= left
        left = right
        X = [x for x in X if x.right > left]
        if len(X) == 0:
            left = S[j].left
        while j < n and S[j].left == left:
            X.append(S[j])
            j += 1
        j -= 1
        right = min(x.right for x in X)
        right = min(right, S[j + 1].left)
        yield left, right, X
        j += 1

    while len(X) > 0:
        left = right
        X = [x for x in X if x.right > left]
        if len(X) > 0:
            right = min(x.right for x in X)
            yield left, right, X


class Segment:
    """
    A single segment of ancestry. Each segment has a left and right,
    denoting the loci over which it spans, a node and a next, giving the next
    in the chain.

    The node it records is the *output* node ID.
    """

    __slots__ = ["left", "right", "node", "next"]

    def __init__(self, left=None, right=None, node=None, next_segment=None):
        self.left = left
        self.right = right
        self.node = node
        self.next = next_segment

    def __repr__(self):
        return repr((self.left, self.right, self.node))


class OutputEdge:
    __slots__ = ["left", "right", "parent", "child"]

    def __init__(self, left, right, parent, child):
        self.left = left
        self.right = right
        self.parent = parent
        self.child = child


class Simplifier:
    """
    Simplifies a set of tables to the minimal representation of the ancestry
    of the specified samples. The input tables are read from a copy and the
    output is written back into ``tables``.
    """

    def __init__(self, tables, samples, options=0):
        options = treeseq.SimplifyOptions(options)
        self.options = options
        self.output = tables
        self.input = tables.copy()
        self.reduce_to_site_topology = (
            treeseq.SimplifyOptions.REDUCE_TO_SITE_TOPOLOGY in options
        )
        self.filter_sites = treeseq.SimplifyOptions.FILTER_SITES in options
        self.filter_populations = treeseq.SimplifyOptions.FILTER_POPULATIONS in options
        self.filter_individuals = treeseq.SimplifyOptions.FILTER_INDIVIDUALS in options
        self.filter_nodes = treeseq.SimplifyOptions.NO_FILTER_NODES not in options
        self.update_sample_flags = (
            treeseq.SimplifyOptions.NO_UPDATE_SAMPLE_FLAGS not in options
        )
        self.keep_unary = treeseq.SimplifyOptions.KEEP_UNARY in options
        self.keep_unary_in_individuals = (
            treeseq.SimplifyOptions.KEEP_UNARY_IN_INDIVIDUALS in options
        )
        self.keep_input_roots = treeseq.SimplifyOptions.KEEP_INPUT_ROOTS in options
        self.keep_migrations = treeseq.SimplifyOptions.KEEP_MIGRATIONS in options
        if self.keep_unary and self.keep_unary_in_individuals:
            raise LibraryError(ErrorCode.KEEP_UNARY_MUTUALLY_EXCLUSIVE)

        nodes = self.input.nodes
        num_nodes = nodes.num_rows
        if np.any((samples < 0) | (samples >= num_nodes)):
            raise LibraryError(ErrorCode.NODE_OUT_OF_BOUNDS, "sample")
        if len(np.unique(samples)) != len(samples):
            raise LibraryError(ErrorCode.DUPLICATE_SAMPLE)
        if self.input.migrations.num_rows > 0 and not self.keep_migrations:
            raise LibraryError(ErrorCode.SIMPLIFY_MIGRATIONS_NOT_SUPPORTED)
        self.input.check_integrity(
            treeseq.IntegrityCheckOptions.CHECK_EDGE_ORDERING
            | treeseq.IntegrityCheckOptions.CHECK_SITE_ORDERING
            | treeseq.IntegrityCheckOptions.CHECK_MUTATION_ORDERING
        )

        self.samples = samples
        self.sequence_length = self.input.sequence_length
        self.node_flags = nodes.flags
        self.node_time = nodes.time
        self.node_individual = nodes.individual
        edges = self.input.edges
        self.edge_left = edges.left
        self.edge_right = edges.right
        self.edge_child = edges.child
        self.A_head = [None for _ in range(num_nodes)]
        self.A_tail = [None for _ in range(num_nodes)]
        self.edge_buffer = {}
        self.output_edges = []
        self.output_nodes = []
        self.output_flags = []
        self.node_id_map = np.full(num_nodes, NULL, dtype=np.int32)
        self.is_sample = np.zeros(num_nodes, dtype=bool)
        self.is_sample[samples] = True
        self.sort_offset = -1

        num_mutations = self.input.mutations.num_rows
        self.mutation_node_map = np.full(num_mutations, NULL, dtype=np.int32)
        # We keep a map of input nodes to mutations.
        self.mutation_map = [[] for _ in range(num_nodes)]
        position = self.input.sites.position
        mutation_site = self.input.mutations.site
        mutation_node = self.input.mutations.node
        for mutation_id in range(num_mutations):
            site_position = position[mutation_site[mutation_id]]
            self.mutation_map[mutation_node[mutation_id]].append(
                (site_position, mutation_id)
            )

        if not self.filter_nodes:
            self.output_nodes = list(range(num_nodes))
            self.output_flags = [self.output_flag(u) for u in range(num_nodes)]
            self.node_id_map[:] = np.arange(num_nodes, dtype=np.int32)
            for sample_id in samples:
                self.add_ancestry(sample_id, 0, self.sequence_length, sample_id)
        else:
            for sample_id in samples:
                output_id = self.record_node(sample_id)
                self.add_ancestry(sample_id, 0, self.sequence_length, output_id)

        self.position_lookup = None
        if self.reduce_to_site_topology:
            self.position_lookup = np.hstack([[0], position, [self.sequence_length]])

    def output_flag(self, input_id):
        flags = int(self.node_flags[input_id])
        if self.update_sample_flags:
            flags &= ~treeseq.NODE_IS_SAMPLE
            if self.is_sample[input_id]:
                flags |= treeseq.NODE_IS_SAMPLE
        return flags

    def record_node(self, input_id):
        """
        Adds a new node to the output corresponding to the specified input
        node ID.
        """
        output_id = len(self.output_nodes)
        self.output_nodes.append(input_id)
        self.output_flags.append(self.output_flag(input_id))
        self.node_id_map[input_id] = output_id
        return output_id

    def rewind_node(self, input_id, output_id):
        """
        Remove the mapping for the specified input and output node pair. This is
        done because there are no edges referring to the node.
        """
        assert output_id == len(self.output_nodes) - 1
        self.output_nodes.pop()
        self.output_flags.pop()
        self.node_id_map[input_id] = NULL

    def flush_edges(self):
        """
        Flush the edges to the output after sorting and squashing
        any redundant records.
        """
        num_edges = 0
        for child in sorted(self.edge_buffer.keys()):
            self.output_edges.extend(self.edge_buffer[child])
            num_edges += len(self.edge_buffer[child])
        self.edge_buffer.clear()
        return num_edges

    def record_edge(self, left, right, parent, child):
        """
        Adds an edge to the output list.
        """
        if self.reduce_to_site_topology:
            X = self.position_lookup
            left_index = np.searchsorted(X, left)
            right_index = np.searchsorted(X, right)
            # Slide each endpoint of the interval to the right until it hits
            # a site position. If both map to the same position the edge is
            # discarded, as is one with left = 0 ending before the first site.
            if left_index == right_index or (left_index == 0 and right_index == 1):
                return
            # Remap back to zero if the left end maps to the first site.
            if left_index == 1:
                left_index = 0
            left = X[left_index]
            right = X[right_index]
        if child not in self.edge_buffer:
            self.edge_buffer[child] = [OutputEdge(left, right, parent, child)]
        else:
            last = self.edge_buffer[child][-1]
            if last.right == left:
                last.right = right
            else:
                self.edge_buffer[child].append(OutputEdge(left, right, parent, child))

    def map_mutations(self, left, right, input_id, output_id):
        """
        Map any mutations for the input node ID on the
        interval to its output ID.
        """
        assert output_id != NULL
        for x, mutation_id in self.mutation_map[input_id]:
            if left <= x < right:
                self.mutation_node_map[mutation_id] = output_id

    def add_ancestry(self, input_id, left, right, node):
        tail = self.A_tail[input_id]
        if tail is None:
            x = Segment(left, right, node)
            self.A_head[input_id] = x
            self.A_tail[input_id] = x
        else:
            if tail.right == left and tail.node == node:
                tail.right = right
            else:
                x = Segment(left, right, node)
                tail.next = x
                self.A_tail[input_id] = x

        self.map_mutations(left, right, input_id, node)

    def keeps_unary(self, input_id):
        return self.keep_unary or (
            self.keep_unary_in_individuals and self.node_individual[input_id] >= 0
        )

    def merge_labeled_ancestors(self, S, input_id):
        """
        All ancestry segments in S come together into a new parent.
        The new parent must be assigned and any overlapping segments coalesced.
        """
        output_id = self.node_id_map[input_id]
        is_sample = self.is_sample[input_id]
        keep_unary = self.keeps_unary(input_id)
        if is_sample:
            # Free up the existing ancestry mapping.
            self.A_tail[input_id] = None
            self.A_head[input_id] = None

        prev_right = 0
        for left, right, X in overlapping_segments(S):
            if len(X) == 1:
                ancestry_node = X[0].node
                if is_sample:
                    self.record_edge(left, right, output_id, ancestry_node)
                    ancestry_node = output_id
                elif keep_unary:
                    if output_id == NULL:
                        output_id = self.record_node(input_id)
                    self.record_edge(left, right, output_id, ancestry_node)
            else:
                if output_id == NULL:
                    output_id = self.record_node(input_id)
                ancestry_node = output_id
                for x in X:
                    self.record_edge(left, right, output_id, x.node)
            if is_sample and left != prev_right:
                # Fill in any gaps in the ancestry for the sample
                self.add_ancestry(input_id, prev_right, left, output_id)
            if keep_unary:
                ancestry_node = output_id
            self.add_ancestry(input_id, left, right, ancestry_node)
            prev_right = right

        if is_sample and prev_right != self.sequence_length:
            # If a trailing gap exists in the sample ancestry, fill it in.
            self.add_ancestry(input_id, prev_right, self.sequence_length, output_id)
        if output_id != NULL:
            num_edges = self.flush_edges()
            if self.filter_nodes and num_edges == 0 and not is_sample:
                self.rewind_node(input_id, output_id)

    def extract_ancestry(self, left, right, child):
        S = []
        x = self.A_head[child]

        x_head = None
        x_prev = None
        while x is not None:
            if x.right > left and right > x.left:
                y = Segment(max(x.left, left), min(x.right, right), x.node)
                S.append(y)
                if x.left != y.left:
                    seg_left = Segment(x.left, y.left, x.node)
                    if x_prev is None:
                        x_head = seg_left
                    else:
                        x_prev.next = seg_left
                    x_prev = seg_left
                if x.right != y.right:
                    x.left = y.right
                    seg_right = x
                else:
                    seg_right = x.next
                if x_prev is None:
                    x_head = seg_right
                else:
                    x_prev.next = seg_right
                x = seg_right
            else:
                if x_prev is None:
                    x_head = x
                x_prev = x
                x = x.next
        self.A_head[child] = x_head
        self.A_tail[child] = x_prev
        return S

    def process_parent_edges(self, parent, edge_ids):
        """
        Process all of the edges for a given parent.
        """
        S = []
        for j in edge_ids:
            S.extend(
                self.extract_ancestry(
                    self.edge_left[j], self.edge_right[j], self.edge_child[j]
                )
            )
        if len(S) > 0:
            self.merge_labeled_ancestors(S, parent)

    def insert_input_roots(self):
        youngest_root_time = np.inf
        for input_id in range(len(self.node_id_map)):
            x = self.A_head[input_id]
            if x is not None:
                output_id = self.node_id_map[input_id]
                if output_id == NULL:
                    output_id = self.record_node(input_id)
                while x is not None:
                    if x.node != output_id:
                        self.record_edge(x.left, x.right, output_id, x.node)
                        self.map_mutations(x.left, x.right, input_id, output_id)
                    x = x.next
                self.flush_edges()
                root_time = self.node_time[input_id]
                if root_time < youngest_root_time:
                    youngest_root_time = root_time
        # The edges must be sorted from the point where the edges
        # for the youngest root would be inserted.
        parent_time = self.node_time[
            np.array([self.output_nodes[e.parent] for e in self.output_edges], dtype=int)
        ]
        offset = 0
        while (
            offset < len(self.output_edges) and parent_time[offset] < youngest_root_time
        ):
            offset += 1
        self.sort_offset = offset

    def finalise_nodes(self):
        output_nodes = np.array(self.output_nodes, dtype=np.int64)
        new_nodes = self.input.nodes[output_nodes]
        new_nodes.flags = np.array(self.output_flags, dtype=np.uint32)
        return new_nodes

    def finalise_edges(self):
        edges = self.output.edges
        edges.set_columns(
            left=np.array([e.left for e in self.output_edges], dtype=np.float64),
            right=np.array([e.right for e in self.output_edges], dtype=np.float64),
            parent=np.array([e.parent for e in self.output_edges], dtype=np.int32),
            child=np.array([e.child for e in self.output_edges], dtype=np.int32),
        )

    def finalise_sites(self):
        # Build a map from the old mutation IDs to new IDs. Any mutation that
        # has not been mapped to a node in the output will be removed.
        mutations = self.input.mutations
        sites = self.input.sites
        keep_mutation = self.mutation_node_map != NULL
        mutation_site = mutations.site
        keep_site = np.ones(sites.num_rows, dtype=bool)
        if self.filter_sites:
            keep_site[:] = False
            keep_site[mutation_site[keep_mutation]] = True
        site_id_map = np.full(sites.num_rows, NULL, dtype=np.int32)
        site_id_map[keep_site] = np.arange(np.count_nonzero(keep_site), dtype=np.int32)

        mutation_id_map = np.full(mutations.num_rows, NULL, dtype=np.int32)
        mutation_id_map[keep_mutation] = np.arange(
            np.count_nonzero(keep_mutation), dtype=np.int32
        )
        parent = mutations.parent
        mapped_parent = np.where(parent == NULL, NULL, mutation_id_map[parent])

        new_sites = sites[keep_site]
        new_mutations = mutations[keep_mutation]
        new_mutations.site = site_id_map[mutation_site[keep_mutation]]
        new_mutations.node = self.mutation_node_map[keep_mutation]
        new_mutations.parent = mapped_parent[keep_mutation]
        return new_sites, new_mutations

    def finalise_migrations(self):
        migrations = self.input.migrations
        node = self.node_id_map[migrations.node]
        keep = node != NULL
        new_migrations = migrations[keep]
        new_migrations.node = node[keep]
        return new_migrations

    def finalise_references(self, new_nodes, new_migrations):
        input_populations = self.input.populations
        input_individuals = self.input.individuals
        num_populations = input_populations.num_rows
        num_individuals = input_individuals.num_rows

        keep_population = np.ones(num_populations, dtype=bool)
        if self.filter_populations:
            keep_population[:] = False
            population = new_nodes.population
            keep_population[population[population != NULL]] = True
            keep_population[new_migrations.source] = True
            keep_population[new_migrations.dest] = True
        keep_individual = np.ones(num_individuals, dtype=bool)
        if self.filter_individuals:
            keep_individual[:] = False
            individual = new_nodes.individual
            keep_individual[individual[individual != NULL]] = True

        # The extra trailing entry maps NULL to itself
        population_id_map = np.full(num_populations + 1, NULL, dtype=np.int32)
        population_id_map[:-1][keep_population] = np.arange(
            np.count_nonzero(keep_population), dtype=np.int32
        )
        individual_id_map = np.full(num_individuals + 1, NULL, dtype=np.int32)
        individual_id_map[:-1][keep_individual] = np.arange(
            np.count_nonzero(keep_individual), dtype=np.int32
        )

        new_nodes.population = population_id_map[new_nodes.population]
        new_nodes.individual = individual_id_map[new_nodes.individual]
        new_migrations.source = population_id_map[new_migrations.source]
        new_migrations.dest = population_id_map[new_migrations.dest]
        new_populations = input_populations[keep_population]
        new_individuals = input_individuals[keep_individual]
        new_individuals.parents = individual_id_map[new_individuals.parents]
        return new_populations, new_individuals

    def simplify(self):
        edges = self.input.edges
        parent = edges.parent
        if edges.num_rows > 0:
            # Each parent's edges are contiguous, so split at parent changes
            starts = np.concatenate(
                [[0], np.flatnonzero(parent[1:] != parent[:-1]) + 1, [len(parent)]]
            )
            for start, stop in zip(starts[:-1], starts[1:]):
                self.process_parent_edges(parent[start], range(start, stop))
        if self.keep_input_roots:
            self.insert_input_roots()

        new_nodes = self.finalise_nodes()
        new_sites, new_mutations = self.finalise_sites()
        new_migrations = self.finalise_migrations()
        new_populations, new_individuals = self.finalise_references(
            new_nodes, new_migrations
        )

        output = self.output
        output.nodes.replace_with(new_nodes)
        output.sites.replace_with(new_sites)
        output.mutations.replace_with(new_mutations)
        output.migrations.replace_with(new_migrations)
        output.populations.replace_with(new_populations)
        output.individuals.replace_with(new_individuals)
        self.finalise_edges()
        if self.sort_offset != -1:
            output.sort(
                treeseq.Bookmark(
                    edges=self.sort_offset,
                    sites=output.sites.num_rows,
                    mutations=output.mutations.num_rows,
                    migrations=output.migrations.num_rows,
                ),
                treeseq.SortOptions.NO_CHECK_INTEGRITY,
            )
        return self.node_id_map


def simplify_tables(tables, samples, options=0):
    """
    Simplifies the specified tables in place for the given array of sample
    node IDs, returning the node ID map.
    """
    logger.debug(
        f"Simplifying {tables.nodes.num_rows} nodes and {tables.edges.num_rows} "
        f"edges for {len(samples)} samples"
    )
    simplifier = Simplifier(tables, samples, options)
    node_map = simplifier.simplify()
    logger.debug(
        f"Simplified to {tables.nodes.num_rows} nodes and {tables.edges.num_rows} "
        "edges"
    )
    return node_map
