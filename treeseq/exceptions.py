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
Exceptions defined in treeseq.
"""


class TreeSeqException(Exception):
    """
    Superclass of all exceptions raised by treeseq.
    """


class ErrorCode:
    """
    Numeric status codes reported by :class:`LibraryError`. Codes are negative
    and grouped by the kind of object they refer to.
    """

    # Out of bounds ids
    NODE_OUT_OF_BOUNDS = -200
    EDGE_OUT_OF_BOUNDS = -201
    POPULATION_OUT_OF_BOUNDS = -202
    INDIVIDUAL_OUT_OF_BOUNDS = -204
    MIGRATION_OUT_OF_BOUNDS = -205
    SITE_OUT_OF_BOUNDS = -206
    MUTATION_OUT_OF_BOUNDS = -207
    MUTATION_PARENT_OUT_OF_BOUNDS = -208
    # Edges
    NULL_PARENT = -300
    NULL_CHILD = -301
    EDGES_NOT_SORTED_PARENT_TIME = -302
    EDGES_NONCONTIGUOUS_PARENTS = -303
    EDGES_NOT_SORTED_CHILD = -304
    EDGES_NOT_SORTED_LEFT = -305
    BAD_NODE_TIME_ORDERING = -306
    BAD_EDGE_INTERVAL = -307
    DUPLICATE_EDGES = -308
    RIGHT_GREATER_SEQ_LENGTH = -309
    LEFT_LESS_ZERO = -310
    BAD_EDGES_CONTRADICTORY_CHILDREN = -311
    # Sites
    UNSORTED_SITES = -500
    DUPLICATE_SITE_POSITION = -501
    BAD_SITE_POSITION = -502
    # Mutations
    MUTATION_PARENT_DIFFERENT_SITE = -600
    MUTATION_PARENT_EQUAL = -601
    MUTATION_PARENT_AFTER_CHILD = -602
    UNSORTED_MUTATIONS = -604
    MUTATION_TIME_YOUNGER_THAN_NODE = -605
    # Samples
    DUPLICATE_SAMPLE = -700
    BAD_SAMPLES = -701
    # Table collections
    TABLES_NOT_INDEXED = -800
    TABLES_BAD_INDEXES = -801
    BAD_SEQUENCE_LENGTH = -802
    SORT_OFFSET_NOT_SUPPORTED = -803
    TIME_NONFINITE = -804
    SEQUENCE_LENGTH_MISMATCH = -805
    # Migrations
    UNSORTED_MIGRATIONS = -900
    # Simplify
    SIMPLIFY_MIGRATIONS_NOT_SUPPORTED = -1000
    KEEP_UNARY_MUTUALLY_EXCLUSIVE = -1001
    # Trees and tree distances
    MULTIPLE_ROOTS = -1100
    UNARY_NODES = -1101
    SAMPLES_NOT_EQUAL = -1102


_messages = {
    ErrorCode.NODE_OUT_OF_BOUNDS: "Node out of bounds",
    ErrorCode.EDGE_OUT_OF_BOUNDS: "Edge out of bounds",
    ErrorCode.POPULATION_OUT_OF_BOUNDS: "Population out of bounds",
    ErrorCode.INDIVIDUAL_OUT_OF_BOUNDS: "Individual out of bounds",
    ErrorCode.MIGRATION_OUT_OF_BOUNDS: "Migration out of bounds",
    ErrorCode.SITE_OUT_OF_BOUNDS: "Site out of bounds",
    ErrorCode.MUTATION_OUT_OF_BOUNDS: "Mutation out of bounds",
    ErrorCode.MUTATION_PARENT_OUT_OF_BOUNDS: "Mutation parent out of bounds",
    ErrorCode.NULL_PARENT: "Edge in parent is null",
    ErrorCode.NULL_CHILD: "Edge in child is null",
    ErrorCode.EDGES_NOT_SORTED_PARENT_TIME: (
        "Edges must be listed in (time[parent], parent, child, left) order; "
        "time[parent] order violated"
    ),
    ErrorCode.EDGES_NONCONTIGUOUS_PARENTS: (
        "All edges for a given parent must be contiguous"
    ),
    ErrorCode.EDGES_NOT_SORTED_CHILD: (
        "Edges must be listed in (time[parent], parent, child, left) order; "
        "child order violated"
    ),
    ErrorCode.EDGES_NOT_SORTED_LEFT: (
        "Edges must be listed in (time[parent], parent, child, left) order; "
        "left order violated"
    ),
    ErrorCode.BAD_NODE_TIME_ORDERING: "time[parent] must be greater than time[child]",
    ErrorCode.BAD_EDGE_INTERVAL: "Bad edge interval where right <= left",
    ErrorCode.DUPLICATE_EDGES: "Duplicate edges provided",
    ErrorCode.RIGHT_GREATER_SEQ_LENGTH: "Right coordinate > sequence length",
    ErrorCode.LEFT_LESS_ZERO: "Left coordinate must be >= 0",
    ErrorCode.BAD_EDGES_CONTRADICTORY_CHILDREN: (
        "Bad edges: contradictory children for a given parent over an interval"
    ),
    ErrorCode.UNSORTED_SITES: "Sites must be provided in strictly increasing "
    "position order",
    ErrorCode.DUPLICATE_SITE_POSITION: "Duplicate site positions",
    ErrorCode.BAD_SITE_POSITION: "Site positions must be between 0 and "
    "sequence_length",
    ErrorCode.MUTATION_PARENT_DIFFERENT_SITE: "Specified parent mutation is at a "
    "different site",
    ErrorCode.MUTATION_PARENT_EQUAL: "Parent mutation refers to itself",
    ErrorCode.MUTATION_PARENT_AFTER_CHILD: "Parent mutation ID must be < current ID",
    ErrorCode.UNSORTED_MUTATIONS: "Mutations must be provided in non-decreasing "
    "site order and non-increasing time order within each site",
    ErrorCode.MUTATION_TIME_YOUNGER_THAN_NODE: "A mutation's time must be >= the "
    "node time, or be marked as 'unknown'",
    ErrorCode.DUPLICATE_SAMPLE: "Duplicate sample value",
    ErrorCode.BAD_SAMPLES: "Bad sample configuration provided",
    ErrorCode.TABLES_NOT_INDEXED: "Table collection must be indexed",
    ErrorCode.TABLES_BAD_INDEXES: "Table collection indexes inconsistent",
    ErrorCode.BAD_SEQUENCE_LENGTH: "Sequence length must be > 0",
    ErrorCode.SORT_OFFSET_NOT_SUPPORTED: "Unsupported sort offset; only the edge "
    "offset may point inside its table",
    ErrorCode.TIME_NONFINITE: "Times must be finite",
    ErrorCode.SEQUENCE_LENGTH_MISMATCH: "Sequence lengths must be identical",
    ErrorCode.UNSORTED_MIGRATIONS: "Migrations must be sorted by time",
    ErrorCode.SIMPLIFY_MIGRATIONS_NOT_SUPPORTED: "Migrations not currently "
    "supported by simplify unless they are explicitly kept",
    ErrorCode.KEEP_UNARY_MUTUALLY_EXCLUSIVE: "You cannot specify both "
    "KEEP_UNARY and KEEP_UNARY_IN_INDIVIDUALS",
    ErrorCode.MULTIPLE_ROOTS: "Trees with multiple roots not supported",
    ErrorCode.UNARY_NODES: "Unsimplified trees with unary nodes are not supported",
    ErrorCode.SAMPLES_NOT_EQUAL: "Samples must be identical in trees to compare",
}


def strerror(code):
    """
    Returns the message associated with the specified error code.
    """
    return _messages.get(code, f"Unknown error code {code}")


class LibraryError(TreeSeqException):
    """
    Raised when one of the core table or tree operations fails. The numeric
    status is available as the ``code`` attribute.
    """

    def __init__(self, code, detail=None):
        self.code = code
        message = strerror(code)
        if detail is not None:
            message = f"{message}: {detail}"
        super().__init__(message)


class NotTrackingSamplesError(TreeSeqException):
    """
    Sample lists or tracked sample counts were requested from a tree that
    was not constructed with the required options.
    """


class FileFormatError(TreeSeqException):
    """
    Some file format error was detected.
    """


class VersionTooOldError(FileFormatError):
    """
    The version of the file is too old and cannot be read by the library.
    """

    def __init__(self):
        super().__init__(
            "File format version is too old. Please upgrade using "
            "an older version of treeseq"
        )


class VersionTooNewError(FileFormatError):
    """
    The version of the file is too new and cannot be read by the library.
    """

    def __init__(self):
        super().__init__(
            "File format version is too new. Please upgrade treeseq to the "
            "latest version."
        )


class ProvenanceValidationError(TreeSeqException):
    """
    A JSON document did not validate against the provenance schema.
    """


class MetadataRoundtripError(TreeSeqException):
    """
    A metadata value could not be encoded to, or decoded from, its
    byte representation.
    """


class MetadataValidationError(TreeSeqException):
    """
    A metadata object did not validate against the metadata schema.
    """


class MetadataSchemaValidationError(TreeSeqException):
    """
    A metadata schema object did not validate against the metaschema.
    """


class MetadataEncodingError(TreeSeqException):
    """
    A metadata object was of a type that could not be encoded
    """


class ImmutableTableError(ValueError):
    """
    Raised when attempting to modify the tables of a tree sequence.

    Use TreeSequence.dump_tables() to get a mutable copy.
    """
