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
Kendall-Colijn distances between trees and tree sequences.

See Kendall & Colijn (2016):
https://academic.oup.com/mbe/article/33/10/2735/2925548
"""
import numpy as np

from treeseq import NULL
from treeseq.exceptions import ErrorCode
from treeseq.exceptions import LibraryError


class KCVectors:
    """
    Manages the two vectors (m and M) of a tree used to compute the
    KC distance between trees. For any two samples, u and v,
    m and M capture the distance of mrca(u, v) to the root in
    number of edges and time, respectively. The final ``n`` entries hold
    the values for each sample and its own branch.
    """

    def __init__(self, n):
        self.n = n
        self.N = (self.n * (self.n - 1)) // 2
        self.m = np.zeros(self.N + self.n)
        self.M = np.zeros(self.N + self.n)


def check_lambda(lambda_):
    if not 0 <= lambda_ <= 1:
        raise ValueError("Lambda must be in the interval [0, 1]")


def check_kc_tree(tree):
    if tree.num_roots != 1:
        raise LibraryError(ErrorCode.MULTIPLE_ROOTS)
    if np.any(tree.num_children_array[: tree.num_nodes] == 1):
        raise LibraryError(ErrorCode.UNARY_NODES)


def sample_indexes(tree, u):
    """
    Returns an iterator over the indexes in the samples array of the
    samples below u, using the tree's sample lists.
    """
    index = tree.left_sample(u)
    while index != NULL:
        yield index
        if index == tree.right_sample(u):
            break
        index = tree.next_sample(index)


def fill_kc_vectors(tree, kc_vecs):
    root = tree.root
    root_time = tree.time(root)
    sample_index = {u: j for j, u in enumerate(tree.tree_sequence.samples())}
    stack = [(root, 0)]
    while len(stack) > 0:
        u, depth = stack.pop()
        time = root_time - tree.time(u)
        if tree.is_sample(u):
            u_index = sample_index[u]
            update_kc_vectors_single_leaf(kc_vecs, u_index, tree.branch_length(u))
            # An internal sample is the MRCA of itself and everything below it
            for c in tree.children(u):
                for index in sample_indexes(tree, c):
                    update_kc_vectors_pair(kc_vecs, u_index, index, depth, time)

        c1 = tree.left_child(u)
        while c1 != NULL:
            stack.append((c1, depth + 1))
            c2 = tree.right_sib(c1)
            while c2 != NULL:
                update_kc_vectors_all_pairs(tree, kc_vecs, c1, c2, depth, time)
                c2 = tree.right_sib(c2)
            c1 = tree.right_sib(c1)


def update_kc_vectors_single_leaf(kc_vecs, u_index, time):
    kc_vecs.m[kc_vecs.N + u_index] = 1
    kc_vecs.M[kc_vecs.N + u_index] = time


def update_kc_vectors_all_pairs(tree, kc_vecs, c1, c2, depth, time):
    for s1_index in sample_indexes(tree, c1):
        for s2_index in sample_indexes(tree, c2):
            update_kc_vectors_pair(kc_vecs, s1_index, s2_index, depth, time)


def update_kc_vectors_pair(kc_vecs, n1, n2, depth, time):
    if n1 > n2:
        n1, n2 = n2, n1
    pair_index = n2 - n1 - 1 + (-1 * n1 * (n1 - 2 * kc_vecs.n + 1)) // 2

    kc_vecs.m[pair_index] = depth
    kc_vecs.M[pair_index] = time


def norm_kc_vectors(kc_vecs1, kc_vecs2, lambda_):
    vT1 = (kc_vecs1.m * (1 - lambda_)) + (lambda_ * kc_vecs1.M)
    vT2 = (kc_vecs2.m * (1 - lambda_)) + (lambda_ * kc_vecs2.M)
    return float(np.linalg.norm(vT1 - vT2))


def tree_kc_vectors(tree):
    check_kc_tree(tree)
    kc_vecs = KCVectors(tree.tree_sequence.num_samples)
    fill_kc_vectors(tree, kc_vecs)
    return kc_vecs


def tree_kc_distance(tree1, tree2, lambda_=0.0):
    """
    Returns the KC distance between two trees, which must both maintain
    sample lists.
    """
    check_lambda(lambda_)
    if not np.array_equal(
        tree1.tree_sequence.samples(), tree2.tree_sequence.samples()
    ):
        raise LibraryError(ErrorCode.SAMPLES_NOT_EQUAL)
    vecs1 = tree_kc_vectors(tree1)
    vecs2 = tree_kc_vectors(tree2)
    return norm_kc_vectors(vecs1, vecs2, lambda_)


def ts_kc_distance(ts1, ts2, lambda_=0.0):
    """
    Returns the KC distance between two tree sequences, the mean of the
    distances between overlapping trees weighted by the span of their overlap.
    """
    check_lambda(lambda_)
    if not np.array_equal(ts1.samples(), ts2.samples()):
        raise LibraryError(ErrorCode.SAMPLES_NOT_EQUAL)
    if ts1.sequence_length != ts2.sequence_length:
        raise LibraryError(ErrorCode.SEQUENCE_LENGTH_MISMATCH)

    total = 0
    left = 0
    tree1_iter = ts1.trees(sample_lists=True)
    tree1 = next(tree1_iter)
    vecs1 = tree_kc_vectors(tree1)
    for tree2 in ts2.trees(sample_lists=True):
        vecs2 = tree_kc_vectors(tree2)
        while tree1.interval.right < tree2.interval.right:
            span = tree1.interval.right - left
            total += norm_kc_vectors(vecs1, vecs2, lambda_) * span

            left = tree1.interval.right
            tree1 = next(tree1_iter)
            vecs1 = tree_kc_vectors(tree1)
        span = tree2.interval.right - left
        left = tree2.interval.right
        total += norm_kc_vectors(vecs1, vecs2, lambda_) * span

    return total / ts1.sequence_length
