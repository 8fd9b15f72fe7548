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
Columnar tables and the table collection from which tree sequences are built.
"""
import dataclasses
import enum
import functools
import logging
import numbers
from dataclasses import dataclass
from typing import Dict
from typing import Optional
from typing import Union

import numpy as np

import treeseq
import treeseq.exceptions as exceptions
import treeseq.metadata as metadata
import treeseq.provenance as provenance
import treeseq.simplify as simplifier
import treeseq.util as util
from treeseq import NULL
from treeseq import UNKNOWN_TIME
from treeseq.exceptions import ErrorCode
from treeseq.exceptions import LibraryError

logger = logging.getLogger(__name__)

dataclass_options = {"frozen": True}


class SortOptions(enum.IntFlag):
    """
    Options for :meth:`TableCollection.sort`.
    """

    NONE = 0
    #: Do not run the referential integrity checks before sorting.
    NO_CHECK_INTEGRITY = 1


class ClearOptions(enum.IntFlag):
    """
    Options for :meth:`TableCollection.clear`.
    """

    NONE = 0
    #: Also reset the metadata schemas of the tables.
    CLEAR_METADATA_SCHEMAS = 1
    #: Also reset the top-level metadata and its schema.
    CLEAR_TS_METADATA_AND_SCHEMA = 2
    #: Also remove all provenance records.
    CLEAR_PROVENANCE = 4


class EqualityOptions(enum.IntFlag):
    """
    Options for :meth:`TableCollection.equals`.
    """

    NONE = 0
    #: Exclude all metadata and metadata schemas from the comparison.
    IGNORE_METADATA = 1
    #: Exclude the top-level metadata and its schema from the comparison.
    IGNORE_TS_METADATA = 2
    #: Exclude the provenance table from the comparison.
    IGNORE_PROVENANCE = 4
    #: Exclude the provenance timestamps from the comparison.
    IGNORE_TIMESTAMPS = 8


class IntegrityCheckOptions(enum.IntFlag):
    """
    Options for :meth:`TableCollection.check_integrity`. With no options
    only referential integrity is checked.
    """

    NONE = 0
    CHECK_EDGE_ORDERING = 1
    CHECK_SITE_ORDERING = 2
    CHECK_SITE_DUPLICATES = 4
    CHECK_MUTATION_ORDERING = 8
    CHECK_MIGRATION_ORDERING = 16
    CHECK_INDEXES = 32
    #: All of the ordering checks, the index check and a check that the
    #: edges define a valid tree at every position.
    CHECK_TREES = 64


class SimplifyOptions(enum.IntFlag):
    """
    Options for :meth:`TableCollection.simplify`.
    """

    NONE = 0
    #: Remove sites that have no mutations after simplification.
    FILTER_SITES = 1
    #: Remove populations not referenced by the retained nodes.
    FILTER_POPULATIONS = 2
    #: Remove individuals not referenced by the retained nodes.
    FILTER_INDIVIDUALS = 4
    #: Reduce the topology to what is visible at the site positions.
    REDUCE_TO_SITE_TOPOLOGY = 8
    #: Keep unary nodes that are ancestral to the samples.
    KEEP_UNARY = 16
    #: Keep the roots of the input trees above the samples.
    KEEP_INPUT_ROOTS = 32
    #: Keep unary nodes that are associated with an individual.
    KEEP_UNARY_IN_INDIVIDUALS = 64
    #: Do not remove or renumber any nodes.
    NO_FILTER_NODES = 128
    #: Do not change the sample flags of the nodes.
    NO_UPDATE_SAMPLE_FLAGS = 256
    #: Keep the migrations of retained nodes instead of failing.
    KEEP_MIGRATIONS = 512


class TreeSequenceOptions(enum.IntFlag):
    """
    Options for :meth:`TableCollection.tree_sequence`.
    """

    NONE = 0
    #: Build the edge indexes before creating the tree sequence.
    BUILD_INDEXES = 1


@dataclass
class Bookmark(util.Dataclass):
    """
    Per-table row offsets used by :meth:`TableCollection.sort`. Rows before
    the offset of a table are left in place.
    """

    individuals: int = 0
    nodes: int = 0
    edges: int = 0
    migrations: int = 0
    sites: int = 0
    mutations: int = 0
    populations: int = 0
    provenances: int = 0


@dataclass(**dataclass_options)
class IndividualTableRow(util.Dataclass):
    """
    A row in an :class:`IndividualTable`.
    """

    __slots__ = ["flags", "location", "parents", "metadata"]
    flags: int
    location: np.ndarray
    parents: np.ndarray
    metadata: Optional[Union[bytes, dict]]

    # We need a custom eq for the numpy arrays
    def __eq__(self, other):
        return (
            isinstance(other, IndividualTableRow)
            and self.flags == other.flags
            and np.array_equal(self.location, other.location)
            and np.array_equal(self.parents, other.parents)
            and self.metadata == other.metadata
        )


@dataclass(**dataclass_options)
class NodeTableRow(util.Dataclass):
    """
    A row in a :class:`NodeTable`.
    """

    __slots__ = ["flags", "time", "population", "individual", "metadata"]
    flags: int
    time: float
    population: int
    individual: int
    metadata: Optional[Union[bytes, dict]]


@dataclass(**dataclass_options)
class EdgeTableRow(util.Dataclass):
    """
    A row in an :class:`EdgeTable`.
    """

    __slots__ = ["left", "right", "parent", "child", "metadata"]
    left: float
    right: float
    parent: int
    child: int
    metadata: Optional[Union[bytes, dict]]


@dataclass(**dataclass_options)
class MigrationTableRow(util.Dataclass):
    """
    A row in a :class:`MigrationTable`.
    """

    __slots__ = ["left", "right", "node", "source", "dest", "time", "metadata"]
    left: float
    right: float
    node: int
    source: int
    dest: int
    time: float
    metadata: Optional[Union[bytes, dict]]


@dataclass(**dataclass_options)
class SiteTableRow(util.Dataclass):
    """
    A row in a :class:`SiteTable`.
    """

    __slots__ = ["position", "ancestral_state", "metadata"]
    position: float
    ancestral_state: str
    metadata: Optional[Union[bytes, dict]]


@dataclass(**dataclass_options)
class MutationTableRow(util.Dataclass):
    """
    A row in a :class:`MutationTable`.
    """

    __slots__ = ["site", "node", "parent", "time", "derived_state", "metadata"]
    site: int
    node: int
    parent: int
    time: float
    derived_state: str
    metadata: Optional[Union[bytes, dict]]

    # We need a custom eq here as we have unknown times (nans) to check
    def __eq__(self, other):
        return (
            isinstance(other, MutationTableRow)
            and self.site == other.site
            and self.node == other.node
            and self.derived_state == other.derived_state
            and self.parent == other.parent
            and self.metadata == other.metadata
            and (
                self.time == other.time
                or (
                    util.is_unknown_time(self.time) and util.is_unknown_time(other.time)
                )
            )
        )


@dataclass(**dataclass_options)
class PopulationTableRow(util.Dataclass):
    """
    A row in a :class:`PopulationTable`.
    """

    __slots__ = ["metadata"]
    metadata: Optional[Union[bytes, dict]]


@dataclass(**dataclass_options)
class ProvenanceTableRow(util.Dataclass):
    """
    A row in a :class:`ProvenanceTable`.
    """

    __slots__ = ["timestamp", "record"]
    timestamp: str
    record: str


@dataclass(**dataclass_options)
class TableCollectionIndexes(util.Dataclass):
    """
    The edge insertion and removal orders of a :class:`TableCollection`.
    """

    edge_insertion_order: np.ndarray = None
    edge_removal_order: np.ndarray = None

    def asdict(self):
        return {k: v for k, v in dataclasses.asdict(self).items() if v is not None}

    @property
    def nbytes(self) -> int:
        """
        The number of bytes taken by the indexes
        """
        total = 0
        if self.edge_removal_order is not None:
            total += self.edge_removal_order.nbytes
        if self.edge_insertion_order is not None:
            total += self.edge_insertion_order.nbytes
        return total


def _is_integer_dtype(dtype):
    return np.dtype(dtype).kind in "iu"


def _growth(current, required, increment):
    if required <= current:
        return current
    if increment == 0:
        increment = max(current, 1024)
    return max(required, current + increment)


class BaseTable:
    """
    Superclass of the tables. Not intended for direct instantiation.

    Columns are held in numpy buffers that grow as rows are added. Ragged
    columns (those with a matching ``_offset`` column) are stored as a
    flattened data array plus an offset array of length ``num_rows + 1``.
    """

    # The list of columns in the table. Must be set by subclasses.
    column_names = []
    # The numpy dtype of each non-offset column.
    column_dtypes = {}
    # Columns that must be given to set_columns and append_columns.
    required_columns = []
    # Values stored when an optional fixed-width column is not given.
    default_values = {}
    # Ragged columns that hold UTF-8 text.
    text_columns = []

    def __init__(self, row_class, max_rows_increment=0):
        if max_rows_increment < 0:
            raise ValueError("max_rows_increment must be non-negative")
        self.row_class = row_class
        self._max_rows_increment = max_rows_increment
        self._frozen = False
        self._version = 0
        self._init_storage()

    @classmethod
    @functools.lru_cache
    def _ragged_columns(cls):
        return [c for c in cls.column_names if c + "_offset" in cls.column_names]

    @classmethod
    @functools.lru_cache
    def _fixed_columns(cls):
        ragged = cls._ragged_columns()
        return [
            c for c in cls.column_names if not c.endswith("_offset") and c not in ragged
        ]

    def _init_storage(self):
        self._num_rows = 0
        self._max_rows = 0
        self._buffers = {}
        self._data_lengths = {}
        for name in self._fixed_columns():
            self._buffers[name] = np.zeros(0, dtype=self.column_dtypes[name])
        for name in self._ragged_columns():
            self._buffers[name] = np.zeros(0, dtype=self.column_dtypes[name])
            self._buffers[name + "_offset"] = np.zeros(1, dtype=np.uint64)
            self._data_lengths[name] = 0

    def _check_mutable(self):
        if self._frozen:
            raise exceptions.ImmutableTableError(
                f"{type(self).__name__} belongs to a tree sequence and cannot be "
                "modified. Use TreeSequence.dump_tables() to get a mutable copy."
            )

    def _modified(self):
        self._version += 1

    def _expand_rows(self, additional):
        new_max = _growth(
            self._max_rows, self._num_rows + additional, self._max_rows_increment
        )
        if new_max == self._max_rows:
            return
        n = self._num_rows
        for name in self._fixed_columns():
            buf = np.zeros(new_max, dtype=self.column_dtypes[name])
            buf[:n] = self._buffers[name][:n]
            self._buffers[name] = buf
        for name in self._ragged_columns():
            buf = np.zeros(new_max + 1, dtype=np.uint64)
            buf[: n + 1] = self._buffers[name + "_offset"][: n + 1]
            self._buffers[name + "_offset"] = buf
        self._max_rows = new_max

    def _expand_data(self, name, additional):
        used = self._data_lengths[name]
        current = self._buffers[name].shape[0]
        new_max = _growth(current, used + additional, 0)
        if new_max != current:
            buf = np.zeros(new_max, dtype=self.column_dtypes[name])
            buf[:used] = self._buffers[name][:used]
            self._buffers[name] = buf

    def _column_view(self, name):
        if name.endswith("_offset"):
            return self._buffers[name][: self._num_rows + 1]
        if name in self._data_lengths:
            return self._buffers[name][: self._data_lengths[name]]
        return self._buffers[name][: self._num_rows]

    def _freeze(self):
        # Compact the buffers to their used size and make them read-only
        for name in self.column_names:
            column = self._column_view(name).copy()
            column.flags.writeable = False
            self._buffers[name] = column
        self._max_rows = self._num_rows
        self._frozen = True

    @property
    def num_rows(self) -> int:
        return self._num_rows

    @property
    def max_rows(self) -> int:
        return self._max_rows

    @property
    def max_rows_increment(self) -> int:
        return self._max_rows_increment

    @property
    def nbytes(self) -> int:
        """
        Returns the total number of bytes required to store the data
        in this table. Note that this may not be equal to
        the actual memory footprint.
        """
        d = self.asdict()
        nbytes = 0
        # Some tables don't have a metadata_schema
        metadata_schema = d.pop("metadata_schema", None)
        if metadata_schema is not None:
            nbytes += len(metadata_schema.encode())
        nbytes += sum(col.nbytes for col in d.values())
        return nbytes

    def _column_equal(self, other, name):
        a = self._column_view(name)
        b = other._column_view(name)
        if a.shape != b.shape:
            return False
        if a.dtype.kind == "f":
            # Compare bit patterns so that UNKNOWN_TIME values compare equal
            return np.array_equal(a.view(np.uint64), b.view(np.uint64))
        return np.array_equal(a, b)

    def _compared_columns(self, ignore_metadata):
        columns = self.column_names
        if ignore_metadata:
            columns = [c for c in columns if not c.startswith("metadata")]
        return columns

    def equals(self, other, ignore_metadata=False):
        """
        Returns True if  `self` and `other` are equal. By default, two tables
        are considered equal if their columns and metadata schemas are
        byte-for-byte identical.

        :param other: Another table instance
        :param bool ignore_metadata: If True exclude metadata and metadata schemas
            from the comparison.
        :return: True if other is equal to this table; False otherwise.
        :rtype: bool
        """
        if type(other) is not type(self) or self.num_rows != other.num_rows:
            return False
        if not ignore_metadata and repr(getattr(self, "metadata_schema", "")) != repr(
            getattr(other, "metadata_schema", "")
        ):
            return False
        return all(
            self._column_equal(other, name)
            for name in self._compared_columns(ignore_metadata)
        )

    def assert_equals(self, other, *, ignore_metadata=False):
        """
        Raise an AssertionError for the first found difference between
        this and another table of the same type.

        :param other: Another table instance
        :param bool ignore_metadata: If True exclude metadata and metadata schemas
            from the comparison.
        """
        if type(other) is not type(self):
            raise AssertionError(f"Types differ: self={type(self)} other={type(other)}")

        if self.equals(other, ignore_metadata=ignore_metadata):
            return

        if not ignore_metadata and self.metadata_schema != other.metadata_schema:
            raise AssertionError(
                f"{type(self).__name__} metadata schemas differ: "
                f"self={self.metadata_schema} "
                f"other={other.metadata_schema}"
            )

        for n, (row_self, row_other) in enumerate(zip(self, other)):
            if ignore_metadata:
                row_self = dataclasses.replace(row_self, metadata=None)
                row_other = dataclasses.replace(row_other, metadata=None)
            if row_self != row_other:
                self_dict = dataclasses.asdict(row_self)
                other_dict = dataclasses.asdict(row_other)
                diff_string = []
                for col in self_dict.keys():
                    if isinstance(self_dict[col], np.ndarray):
                        equal = np.array_equal(self_dict[col], other_dict[col])
                    else:
                        equal = self_dict[col] == other_dict[col]
                    if not equal:
                        diff_string.append(
                            f"self.{col}={self_dict[col]} other.{col}={other_dict[col]}"
                        )
                diff_string = "\n".join(diff_string)
                raise AssertionError(
                    f"{type(self).__name__} row {n} differs:\n{diff_string}"
                )

        if self.num_rows != other.num_rows:
            raise AssertionError(
                f"{type(self).__name__} number of rows differ: self={self.num_rows} "
                f"other={other.num_rows}"
            )

        raise AssertionError(
            f"{type(self).__name__} differs in an undetected way"
        )  # pragma: no cover

    def __eq__(self, other):
        return self.equals(other)

    def __len__(self):
        return self.num_rows

    def __iter__(self):
        for j in range(self.num_rows):
            yield self[j]

    def __getattr__(self, name):
        if name in type(self).column_names:
            column = self._column_view(name)
            if self._frozen:
                return column
            return column.copy()
        else:
            raise AttributeError(
                f"{self.__class__.__name__} object has no attribute {name}"
            )

    def __setattr__(self, name, value):
        if name in type(self).column_names:
            d = self.asdict()
            d[name] = value
            self.set_columns(**d)
        else:
            object.__setattr__(self, name, value)

    def _convert_ragged(self, name, raw):
        if name in self.text_columns:
            return raw.tobytes().decode()
        return raw.copy()

    def _make_row(self, j):
        values = {}
        for name in self._fixed_columns():
            values[name] = self._buffers[name][j].item()
        for name in self._ragged_columns():
            offset = self._buffers[name + "_offset"]
            raw = self._buffers[name][int(offset[j]) : int(offset[j + 1])]
            values[name] = self._convert_ragged(name, raw)
        return self.row_class(**values)

    def __getitem__(self, index):
        """
        If passed an integer, return the specified row of this table, decoding
        metadata if it is present. Supports negative indexing, e.g. ``table[-5]``.
        If passed a slice, iterable or array return a new table containing the
        specified rows. Boolean arrays act as a mask.

        :param index: the index of a desired row, a slice of the desired rows, an
            iterable or array of the desired row numbers, or a boolean array to use as
            a mask.
        """
        if isinstance(index, numbers.Integral):
            if index < 0:
                index += len(self)
            if index < 0 or index >= len(self):
                raise IndexError("Index out of bounds")
            return self._make_row(int(index))
        elif isinstance(index, numbers.Number):
            raise TypeError("Index must be integer, slice or iterable")
        elif isinstance(index, slice):
            index = np.arange(*index.indices(len(self)), dtype=np.int64)
        else:
            index = np.asarray(index)
            if index.dtype == np.bool_:
                if len(index) != len(self):
                    raise IndexError("Boolean index must be same length as table")
                index = np.flatnonzero(index)
            index = util.safe_np_int_cast(index, np.int64)
            if np.any(index < -len(self)) or np.any(index >= len(self)):
                raise IndexError("Index out of bounds")
            index = np.where(index < 0, index + len(self), index)
        ret = self.__class__()
        schema = getattr(self, "metadata_schema", None)
        if schema is not None:
            ret.metadata_schema = schema
        ret._write_columns(*self._take_columns(index))
        return ret

    def _append_row(self, **values):
        self._check_mutable()
        self._expand_rows(1)
        j = self._num_rows
        for name in self._fixed_columns():
            self._buffers[name][j] = values[name]
        for name in self._ragged_columns():
            data = values[name]
            self._expand_data(name, len(data))
            start = self._data_lengths[name]
            end = start + len(data)
            self._buffers[name][start:end] = data
            self._data_lengths[name] = end
            self._buffers[name + "_offset"][j + 1] = end
        self._num_rows += 1
        self._modified()
        return j

    def _ragged_value(self, name, value):
        """
        Converts a value for a ragged column given to add_row into a numpy array.
        """
        dtype = self.column_dtypes[name]
        if value is None:
            return np.zeros(0, dtype=dtype)
        if isinstance(value, str):
            value = value.encode()
        if isinstance(value, (bytes, bytearray)):
            return np.frombuffer(bytes(value), dtype=np.int8).astype(dtype)
        value = np.asarray(value)
        if _is_integer_dtype(dtype):
            return util.safe_np_int_cast(value.reshape(-1), dtype)
        return value.reshape(-1).astype(dtype)

    def _prepare_columns(self, columns):
        """
        Validates the specified dictionary of column arrays, returning the
        number of rows and the dictionary of arrays to write.
        """
        for name in self.required_columns:
            if columns.get(name) is None:
                raise TypeError(f"{name} is required")
        unknown = set(columns.keys()) - set(self.column_names)
        if len(unknown) > 0:
            raise TypeError(f"Unknown columns: {sorted(unknown)}")
        arrays = {}
        num_rows = None
        for name in self._fixed_columns():
            value = columns.get(name)
            if value is None:
                continue
            dtype = self.column_dtypes[name]
            if _is_integer_dtype(dtype):
                array = util.safe_np_int_cast(value, dtype)
            else:
                array = np.asarray(value, dtype=dtype)
            if array.ndim != 1:
                raise ValueError(f"Column {name} must be one dimensional")
            if num_rows is None:
                num_rows = array.shape[0]
            elif array.shape[0] != num_rows:
                raise ValueError("Columns must be the same length")
            arrays[name] = array
        for name in self._ragged_columns():
            data = columns.get(name)
            offset = columns.get(name + "_offset")
            if (data is None) != (offset is None):
                raise TypeError(f"{name} and {name}_offset must be specified together")
            if offset is not None and num_rows is None:
                num_rows = len(offset) - 1
        if num_rows is None:
            num_rows = 0
        for name in self._fixed_columns():
            if name not in arrays:
                arrays[name] = np.full(
                    num_rows,
                    self.default_values.get(name, 0),
                    dtype=self.column_dtypes[name],
                )
        for name in self._ragged_columns():
            data = columns.get(name)
            offset = columns.get(name + "_offset")
            dtype = self.column_dtypes[name]
            if data is None:
                arrays[name] = np.zeros(0, dtype=dtype)
                arrays[name + "_offset"] = np.zeros(num_rows + 1, dtype=np.uint64)
            else:
                data = np.asarray(data)
                if data.ndim != 1:
                    raise ValueError(f"Column {name} must be one dimensional")
                arrays[name] = data.astype(dtype, copy=False)
                arrays[name + "_offset"] = util.check_offsets(
                    offset, data.shape[0], num_rows
                )
        return num_rows, arrays

    def _write_columns(self, num_rows, arrays):
        """
        Appends previously validated column arrays to the table.
        """
        self._check_mutable()
        self._expand_rows(num_rows)
        start = self._num_rows
        for name in self._fixed_columns():
            self._buffers[name][start : start + num_rows] = arrays[name]
        for name in self._ragged_columns():
            data = arrays[name]
            self._expand_data(name, data.shape[0])
            begin = self._data_lengths[name]
            self._buffers[name][begin : begin + data.shape[0]] = data
            self._data_lengths[name] = begin + data.shape[0]
            self._buffers[name + "_offset"][start + 1 : start + num_rows + 1] = (
                arrays[name + "_offset"][1:] + np.uint64(begin)
            )
        self._num_rows += num_rows
        self._modified()

    def _take_columns(self, rows):
        arrays = {}
        for name in self._fixed_columns():
            arrays[name] = self._column_view(name)[rows]
        for name in self._ragged_columns():
            arrays[name], arrays[name + "_offset"] = util.take_with_offset(
                rows, self._column_view(name), self._column_view(name + "_offset")
            )
        return len(rows), arrays

    def _permute(self, order):
        """
        Reorders the rows of this table so that row j is the previous row order[j].
        """
        num_rows, arrays = self._take_columns(order)
        self._check_mutable()
        self._init_storage()
        self._write_columns(num_rows, arrays)

    def _set_columns(self, columns):
        num_rows, arrays = self._prepare_columns(columns)
        self._check_mutable()
        self._init_storage()
        self._write_columns(num_rows, arrays)

    def _append_columns(self, columns):
        num_rows, arrays = self._prepare_columns(columns)
        self._write_columns(num_rows, arrays)

    def set_columns(self, **kwargs):
        """
        Sets the values for each column in this table using values
        provided in numpy arrays. Overwrites existing data in all the table columns.
        """
        self._set_columns(kwargs)

    def append_columns(self, **kwargs):
        """
        Appends the specified arrays to the end of the columns of this table.
        """
        self._append_columns(kwargs)

    def append(self, row):
        """
        Adds a new row to this table and returns the ID of the new row.

        :param row-like row: An object that has attributes corresponding to the
            properties of the new row, such as the objects returned by
            ``table[i]``.
        :return: The index of the newly added row.
        :rtype: int
        """
        return self.add_row(
            **{
                column: getattr(row, column)
                for column in self.column_names
                if "_offset" not in column
            }
        )

    def replace_with(self, other):
        # Overwrite the contents of this table with a copy of the other table
        self.set_columns(**other.asdict())

    def clear(self):
        """
        Deletes all rows in this table.
        """
        self._check_mutable()
        self._init_storage()
        self._modified()

    def truncate(self, num_rows):
        """
        Truncates this table so that the only the first ``num_rows`` are retained.

        :param int num_rows: The number of rows to retain in this table.
        """
        self._check_mutable()
        if num_rows < 0 or num_rows > self._num_rows:
            raise ValueError("Table truncation position out of bounds")
        for name in self._ragged_columns():
            self._data_lengths[name] = int(self._buffers[name + "_offset"][num_rows])
        self._num_rows = num_rows
        self._modified()

    def keep_rows(self, keep):
        """
        Updates this table in place so that only the rows for which ``keep``
        is True are retained, in their original order. References to the
        rows from other tables are not updated.

        :param array-like keep: The rows to keep as a boolean array the same
            length as the table.
        :return: The mapping between old and new row IDs as a numpy
            array (dtype int32).
        :rtype: numpy.ndarray (dtype=np.int32)
        """
        if len(keep) != len(self):
            raise ValueError(
                "Argument for keep_rows must be a boolean array of "
                "the same length as the table. "
                f"(need:{len(self)}, got:{len(keep)})"
            )
        keep = np.asarray(keep, dtype=bool)
        id_map = np.full(len(self), NULL, dtype=np.int32)
        rows = np.flatnonzero(keep)
        id_map[rows] = np.arange(rows.shape[0], dtype=np.int32)
        self._permute(rows)
        return id_map

    def copy(self):
        """
        Returns a deep copy of this table
        """
        copy = self.__class__(max_rows_increment=self._max_rows_increment)
        copy.set_columns(**self.asdict())
        return copy

    def asdict(self):
        """
        Returns a dictionary mapping the names of the columns in this table
        to the corresponding numpy arrays.
        """
        ret = {col: getattr(self, col) for col in self.column_names}
        # Not all tables have metadata
        schema = getattr(self, "metadata_schema", None)
        if schema is not None:
            ret["metadata_schema"] = repr(schema)
        return ret


class MetadataTable(BaseTable):
    """
    Base class for tables that have a metadata column.
    """

    def __init__(self, row_class, max_rows_increment=0):
        super().__init__(row_class, max_rows_increment)
        self._metadata_schema = metadata.MetadataSchema.null()

    @property
    def metadata_schema(self) -> metadata.MetadataSchema:
        """
        The :class:`treeseq.MetadataSchema` for this table.
        """
        return self._metadata_schema

    @metadata_schema.setter
    def metadata_schema(self, schema: metadata.MetadataSchema) -> None:
        self._check_mutable()
        if isinstance(schema, str):
            schema = metadata.parse_metadata_schema(schema)
        if not isinstance(schema, metadata.MetadataSchema):
            raise TypeError(
                "Only instances of treeseq.MetadataSchema can be assigned to "
                f"metadata_schema, not {type(schema)}"
            )
        self._metadata_schema = schema

    def _convert_ragged(self, name, raw):
        if name == "metadata":
            return self._metadata_schema.decode_row(raw.tobytes())
        return super()._convert_ragged(name, raw)

    def _encode_metadata(self, value):
        return self._ragged_value(
            "metadata", metadata.to_metadata_bytes(value, self._metadata_schema)
        )

    def row_metadata(self, index, decoder=None):
        """
        Returns the metadata stored for the specified row. Without a decoder
        the raw bytes are returned. If ``decoder`` is a
        :class:`treeseq.MetadataRoundtrip` subclass, the bytes are decoded with
        it, and rows with no metadata decode to None.

        :param int index: The row ID.
        :param decoder: A :class:`treeseq.MetadataRoundtrip` subclass.
        :raises: :class:`treeseq.MetadataRoundtripError` if decoding fails.
        """
        if index < 0 or index >= self.num_rows:
            raise IndexError("Index out of bounds")
        offset = self._buffers["metadata_offset"]
        raw = self._buffers["metadata"][int(offset[index]) : int(offset[index + 1])]
        data = raw.tobytes()
        if decoder is None:
            return data
        return metadata.decode_metadata(data, decoder)

    def packset_metadata(self, metadatas):
        """
        Packs the specified list of metadata values and updates the ``metadata``
        and ``metadata_offset`` columns. The length of the metadatas array
        must be equal to the number of rows in the table.

        :param list metadatas: A list of metadata bytes values.
        """
        packed, offset = util.pack_bytes(metadatas)
        d = self.asdict()
        d["metadata"] = packed
        d["metadata_offset"] = offset
        self.set_columns(**d)

    def set_columns(self, metadata_schema=None, **kwargs):
        """
        Sets the values for each column in this table using values
        provided in numpy arrays. Overwrites existing data in all the table
        columns. If ``metadata_schema`` is given (as a schema or its string
        encoding) it replaces the existing schema.
        """
        self._set_columns(kwargs)
        if metadata_schema is not None:
            self.metadata_schema = metadata_schema

    def drop_metadata(self, *, keep_schema=False):
        """
        Removes all metadata in this table, and the schema unless
        ``keep_schema`` is True.
        """
        data = self.asdict()
        data["metadata"] = []
        data["metadata_offset"][:] = 0
        data.pop("metadata_schema")
        self.set_columns(**data)
        if not keep_schema:
            self.metadata_schema = metadata.MetadataSchema.null()


class IndividualTable(MetadataTable):
    """
    A table defining the individuals in a tree sequence. Individuals have
    a ``flags`` value, a ragged ``location`` column of floats and a ragged
    ``parents`` column of individual IDs.

    :ivar flags: The array of flags values.
    :vartype flags: numpy.ndarray, dtype=np.uint32
    :ivar location: The flattened array of floating point location values.
    :vartype location: numpy.ndarray, dtype=np.float64
    :ivar location_offset: The array of offsets into the location column.
    :vartype location_offset: numpy.ndarray, dtype=np.uint64
    :ivar parents: The flattened array of parent individual ids.
    :vartype parents: numpy.ndarray, dtype=np.int32
    :ivar parents_offset: The array of offsets into the parents column.
    :vartype parents_offset: numpy.ndarray, dtype=np.uint64
    :ivar metadata: The flattened array of binary metadata values.
    :vartype metadata: numpy.ndarray, dtype=np.int8
    :ivar metadata_offset: The array of offsets into the metadata column.
    :vartype metadata_offset: numpy.ndarray, dtype=np.uint64
    """

    column_names = [
        "flags",
        "location",
        "location_offset",
        "parents",
        "parents_offset",
        "metadata",
        "metadata_offset",
    ]
    column_dtypes = {
        "flags": np.uint32,
        "location": np.float64,
        "parents": np.int32,
        "metadata": np.int8,
    }
    required_columns = ["flags"]

    def __init__(self, max_rows_increment=0):
        super().__init__(IndividualTableRow, max_rows_increment)

    def add_row(self, flags=0, location=None, parents=None, metadata=None):
        """
        Adds a new row to this :class:`IndividualTable` and returns the ID of the
        corresponding individual.

        :param int flags: The bitwise flags for the new individual.
        :param array-like location: A list of numeric values or one-dimensional numpy
            array describing the location of this individual. If not specified
            or None, a zero-dimensional location is stored.
        :param array-like parents: A list or array of ids of parent individuals. If not
            specified an empty array is stored.
        :param metadata: Bytes, a :class:`MetadataRoundtrip` instance, or any
            object that is valid metadata for the table's schema.
        :return: The ID of the newly added individual.
        :rtype: int
        """
        return self._append_row(
            flags=flags,
            location=self._ragged_value("location", location),
            parents=self._ragged_value("parents", parents),
            metadata=self._encode_metadata(metadata),
        )

    def packset_location(self, locations):
        """
        Packs the specified list of location values and updates the ``location``
        and ``location_offset`` columns.
        """
        packed, offset = util.pack_arrays(locations)
        d = self.asdict()
        d["location"] = packed
        d["location_offset"] = offset
        self.set_columns(**d)

    def packset_parents(self, parents):
        """
        Packs the specified list of parent values and updates the ``parent``
        and ``parent_offset`` columns.
        """
        packed, offset = util.pack_arrays(parents, np.int32)
        d = self.asdict()
        d["parents"] = packed
        d["parents_offset"] = offset
        self.set_columns(**d)


class NodeTable(MetadataTable):
    """
    A table defining the nodes in a tree sequence.

    :ivar time: The array of time values.
    :vartype time: numpy.ndarray, dtype=np.float64
    :ivar flags: The array of flags values.
    :vartype flags: numpy.ndarray, dtype=np.uint32
    :ivar population: The array of population IDs.
    :vartype population: numpy.ndarray, dtype=np.int32
    :ivar individual: The array of individual IDs that each node belongs to.
    :vartype individual: numpy.ndarray, dtype=np.int32
    :ivar metadata: The flattened array of binary metadata values.
    :vartype metadata: numpy.ndarray, dtype=np.int8
    :ivar metadata_offset: The array of offsets into the metadata column.
    :vartype metadata_offset: numpy.ndarray, dtype=np.uint64
    """

    column_names = [
        "flags",
        "time",
        "population",
        "individual",
        "metadata",
        "metadata_offset",
    ]
    column_dtypes = {
        "time": np.float64,
        "flags": np.uint32,
        "population": np.int32,
        "individual": np.int32,
        "metadata": np.int8,
    }
    required_columns = ["flags", "time"]
    default_values = {"population": NULL, "individual": NULL}

    def __init__(self, max_rows_increment=0):
        super().__init__(NodeTableRow, max_rows_increment)

    def add_row(self, flags=0, time=0, population=-1, individual=-1, metadata=None):
        """
        Adds a new row to this :class:`NodeTable` and returns the ID of the
        corresponding node.

        :param int flags: The bitwise flags for the new node.
        :param float time: The birth time for the new node.
        :param int population: The ID of the population in which the new node was born.
            Defaults to :data:`treeseq.NULL`.
        :param int individual: The ID of the individual in which the new node was born.
            Defaults to :data:`treeseq.NULL`.
        :param metadata: Bytes, a :class:`MetadataRoundtrip` instance, or any
            object that is valid metadata for the table's schema.
        :return: The ID of the newly added node.
        :rtype: int
        """
        return self._append_row(
            flags=flags,
            time=time,
            population=population,
            individual=individual,
            metadata=self._encode_metadata(metadata),
        )


class EdgeTable(MetadataTable):
    """
    A table defining the edges in a tree sequence.

    :ivar left: The array of left coordinates.
    :vartype left: numpy.ndarray, dtype=np.float64
    :ivar right: The array of right coordinates.
    :vartype right: numpy.ndarray, dtype=np.float64
    :ivar parent: The array of parent node IDs.
    :vartype parent: numpy.ndarray, dtype=np.int32
    :ivar child: The array of child node IDs.
    :vartype child: numpy.ndarray, dtype=np.int32
    :ivar metadata: The flattened array of binary metadata values.
    :vartype metadata: numpy.ndarray, dtype=np.int8
    :ivar metadata_offset: The array of offsets into the metadata column.
    :vartype metadata_offset: numpy.ndarray, dtype=np.uint64
    """

    column_names = [
        "left",
        "right",
        "parent",
        "child",
        "metadata",
        "metadata_offset",
    ]
    column_dtypes = {
        "left": np.float64,
        "right": np.float64,
        "parent": np.int32,
        "child": np.int32,
        "metadata": np.int8,
    }
    required_columns = ["left", "right", "parent", "child"]

    def __init__(self, max_rows_increment=0):
        super().__init__(EdgeTableRow, max_rows_increment)

    def add_row(self, left, right, parent, child, metadata=None):
        """
        Adds a new row to this :class:`EdgeTable` and returns the ID of the
        corresponding edge.

        :param float left: The left coordinate (inclusive).
        :param float right: The right coordinate (exclusive).
        :param int parent: The ID of parent node.
        :param int child: The ID of child node.
        :param metadata: Bytes, a :class:`MetadataRoundtrip` instance, or any
            object that is valid metadata for the table's schema.
        :return: The ID of the newly added edge.
        :rtype: int
        """
        return self._append_row(
            left=left,
            right=right,
            parent=parent,
            child=child,
            metadata=self._encode_metadata(metadata),
        )


class MigrationTable(MetadataTable):
    """
    A table defining the migrations in a tree sequence.

    :ivar left: The array of left coordinates.
    :vartype left: numpy.ndarray, dtype=np.float64
    :ivar right: The array of right coordinates.
    :vartype right: numpy.ndarray, dtype=np.float64
    :ivar node: The array of node IDs.
    :vartype node: numpy.ndarray, dtype=np.int32
    :ivar source: The array of source population IDs.
    :vartype source: numpy.ndarray, dtype=np.int32
    :ivar dest: The array of destination population IDs.
    :vartype dest: numpy.ndarray, dtype=np.int32
    :ivar time: The array of time values.
    :vartype time: numpy.ndarray, dtype=np.float64
    """

    column_names = [
        "left",
        "right",
        "node",
        "source",
        "dest",
        "time",
        "metadata",
        "metadata_offset",
    ]
    column_dtypes = {
        "left": np.float64,
        "right": np.float64,
        "node": np.int32,
        "source": np.int32,
        "dest": np.int32,
        "time": np.float64,
        "metadata": np.int8,
    }
    required_columns = ["left", "right", "node", "source", "dest", "time"]

    def __init__(self, max_rows_increment=0):
        super().__init__(MigrationTableRow, max_rows_increment)

    def add_row(self, left, right, node, source, dest, time, metadata=None):
        """
        Adds a new row to this :class:`MigrationTable` and returns its ID.

        :param float left: The left coordinate (inclusive).
        :param float right: The right coordinate (exclusive).
        :param int node: The node ID.
        :param int source: The ID of the source population.
        :param int dest: The ID of the destination population.
        :param float time: The time of the migration event.
        :param metadata: Bytes, a :class:`MetadataRoundtrip` instance, or any
            object that is valid metadata for the table's schema.
        :return: The ID of the newly added migration.
        :rtype: int
        """
        return self._append_row(
            left=left,
            right=right,
            node=node,
            source=source,
            dest=dest,
            time=time,
            metadata=self._encode_metadata(metadata),
        )


class SiteTable(MetadataTable):
    """
    A table defining the sites in a tree sequence.

    :ivar position: The array of site position coordinates.
    :vartype position: numpy.ndarray, dtype=np.float64
    :ivar ancestral_state: The flattened array of ancestral state strings.
    :vartype ancestral_state: numpy.ndarray, dtype=np.int8
    :ivar ancestral_state_offset: The offsets of rows in the ancestral_state
        array.
    :vartype ancestral_state_offset: numpy.ndarray, dtype=np.uint64
    """

    column_names = [
        "position",
        "ancestral_state",
        "ancestral_state_offset",
        "metadata",
        "metadata_offset",
    ]
    column_dtypes = {
        "position": np.float64,
        "ancestral_state": np.int8,
        "metadata": np.int8,
    }
    required_columns = ["position", "ancestral_state", "ancestral_state_offset"]
    text_columns = ["ancestral_state"]

    def __init__(self, max_rows_increment=0):
        super().__init__(SiteTableRow, max_rows_increment)

    def add_row(self, position, ancestral_state, metadata=None):
        """
        Adds a new row to this :class:`SiteTable` and returns the ID of the
        corresponding site.

        :param float position: The position of this site in genome coordinates.
        :param str ancestral_state: The state of this site at the root of the tree.
        :param metadata: Bytes, a :class:`MetadataRoundtrip` instance, or any
            object that is valid metadata for the table's schema.
        :return: The ID of the newly added site.
        :rtype: int
        """
        return self._append_row(
            position=position,
            ancestral_state=self._ragged_value("ancestral_state", ancestral_state),
            metadata=self._encode_metadata(metadata),
        )

    def packset_ancestral_state(self, ancestral_states):
        """
        Packs the specified list of ancestral_state values and updates the
        ``ancestral_state`` and ``ancestral_state_offset`` columns.
        """
        packed, offset = util.pack_strings(ancestral_states)
        d = self.asdict()
        d["ancestral_state"] = packed
        d["ancestral_state_offset"] = offset
        self.set_columns(**d)


class MutationTable(MetadataTable):
    """
    A table defining the mutations in a tree sequence.

    :ivar site: The array of site IDs.
    :vartype site: numpy.ndarray, dtype=np.int32
    :ivar node: The array of node IDs.
    :vartype node: numpy.ndarray, dtype=np.int32
    :ivar time: The array of time values, :data:`UNKNOWN_TIME` where unknown.
    :vartype time: numpy.ndarray, dtype=np.float64
    :ivar derived_state: The flattened array of derived state strings.
    :vartype derived_state: numpy.ndarray, dtype=np.int8
    :ivar derived_state_offset: The offsets of rows in the derived_state array.
    :vartype derived_state_offset: numpy.ndarray, dtype=np.uint64
    :ivar parent: The array of parent mutation IDs.
    :vartype parent: numpy.ndarray, dtype=np.int32
    """

    column_names = [
        "site",
        "node",
        "parent",
        "time",
        "derived_state",
        "derived_state_offset",
        "metadata",
        "metadata_offset",
    ]
    column_dtypes = {
        "site": np.int32,
        "node": np.int32,
        "parent": np.int32,
        "time": np.float64,
        "derived_state": np.int8,
        "metadata": np.int8,
    }
    required_columns = ["site", "node", "derived_state", "derived_state_offset"]
    default_values = {"parent": NULL, "time": UNKNOWN_TIME}
    text_columns = ["derived_state"]

    def __init__(self, max_rows_increment=0):
        super().__init__(MutationTableRow, max_rows_increment)

    def add_row(self, site, node, derived_state, parent=-1, metadata=None, time=None):
        """
        Adds a new row to this :class:`MutationTable` and returns the ID of the
        corresponding mutation.

        :param int site: The ID of the site that this mutation occurs at.
        :param int node: The ID of the first node inheriting this mutation.
        :param str derived_state: The state of the site at this mutation's node.
        :param int parent: The ID of the parent mutation. If not specified,
            defaults to :attr:`NULL`.
        :param metadata: Bytes, a :class:`MetadataRoundtrip` instance, or any
            object that is valid metadata for the table's schema.
        :param float time: The occurrence time for the new mutation. If not
            specified, defaults to ``UNKNOWN_TIME``.
        :return: The ID of the newly added mutation.
        :rtype: int
        """
        return self._append_row(
            site=site,
            node=node,
            parent=parent,
            time=UNKNOWN_TIME if time is None else time,
            derived_state=self._ragged_value("derived_state", derived_state),
            metadata=self._encode_metadata(metadata),
        )

    def packset_derived_state(self, derived_states):
        """
        Packs the specified list of derived_state values and updates the
        ``derived_state`` and ``derived_state_offset`` columns.
        """
        packed, offset = util.pack_strings(derived_states)
        d = self.asdict()
        d["derived_state"] = packed
        d["derived_state_offset"] = offset
        self.set_columns(**d)


class PopulationTable(MetadataTable):
    """
    A table defining the populations referred to in a tree sequence. A
    population has only metadata.

    :ivar metadata: The flattened array of binary metadata values.
    :vartype metadata: numpy.ndarray, dtype=np.int8
    :ivar metadata_offset: The array of offsets into the metadata column.
    :vartype metadata_offset: numpy.ndarray, dtype=np.uint64
    """

    column_names = ["metadata", "metadata_offset"]
    column_dtypes = {"metadata": np.int8}

    def __init__(self, max_rows_increment=0):
        super().__init__(PopulationTableRow, max_rows_increment)

    def add_row(self, metadata=None):
        """
        Adds a new row to this :class:`PopulationTable` and returns the ID of the
        corresponding population.

        :param metadata: Bytes, a :class:`MetadataRoundtrip` instance, or any
            object that is valid metadata for the table's schema.
        :return: The ID of the newly added population.
        :rtype: int
        """
        return self._append_row(metadata=self._encode_metadata(metadata))


class ProvenanceTable(BaseTable):
    """
    A table recording the provenance (i.e., history) of the tables. Each row
    contains a "record" string (recommended format: JSON) and a timestamp.

    :ivar record: The flattened array containing the record strings.
    :vartype record: numpy.ndarray, dtype=np.int8
    :ivar record_offset: The array of offsets into the record column.
    :vartype record_offset: numpy.ndarray, dtype=np.uint64
    :ivar timestamp: The flattened array containing the timestamp strings.
    :vartype timestamp: numpy.ndarray, dtype=np.int8
    :ivar timestamp_offset: The array of offsets into the timestamp column.
    :vartype timestamp_offset: numpy.ndarray, dtype=np.uint64
    """

    column_names = ["timestamp", "timestamp_offset", "record", "record_offset"]
    column_dtypes = {"timestamp": np.int8, "record": np.int8}
    required_columns = ["timestamp", "timestamp_offset", "record", "record_offset"]
    text_columns = ["timestamp", "record"]

    def __init__(self, max_rows_increment=0):
        super().__init__(ProvenanceTableRow, max_rows_increment)

    def _compared_columns(self, ignore_timestamps):
        if ignore_timestamps:
            return ["record", "record_offset"]
        return self.column_names

    def equals(self, other, ignore_timestamps=False):
        """
        Returns True if  `self` and `other` are equal. By default, two provenance
        tables are considered equal if their columns are byte-for-byte identical.

        :param other: Another provenance table instance
        :param bool ignore_timestamps: If True exclude the timestamp column
            from the comparison.
        :return: True if other is equal to this provenance table; False otherwise.
        :rtype: bool
        """
        if type(other) is not type(self) or self.num_rows != other.num_rows:
            return False
        return all(
            self._column_equal(other, name)
            for name in self._compared_columns(ignore_timestamps)
        )

    def assert_equals(self, other, *, ignore_timestamps=False):
        """
        Raise an AssertionError for the first found difference between
        this and another provenance table.

        :param other: Another provenance table instance
        :param bool ignore_timestamps: If True exclude the timestamp column
            from the comparison.
        """
        if type(other) is not type(self):
            raise AssertionError(f"Types differ: self={type(self)} other={type(other)}")

        if self.equals(other, ignore_timestamps=ignore_timestamps):
            return

        for n, (row_self, row_other) in enumerate(zip(self, other)):
            if ignore_timestamps:
                row_self = dataclasses.replace(row_self, timestamp=None)
                row_other = dataclasses.replace(row_other, timestamp=None)
            if row_self != row_other:
                self_dict = dataclasses.asdict(row_self)
                other_dict = dataclasses.asdict(row_other)
                diff_string = []
                for col in self_dict.keys():
                    if self_dict[col] != other_dict[col]:
                        diff_string.append(
                            f"self.{col}={self_dict[col]} other.{col}={other_dict[col]}"
                        )
                diff_string = "\n".join(diff_string)
                raise AssertionError(
                    f"{type(self).__name__} row {n} differs:\n{diff_string}"
                )

        raise AssertionError(
            f"{type(self).__name__} number of rows differ: self={self.num_rows} "
            f"other={other.num_rows}"
        )

    def add_row(self, record, timestamp=None):
        """
        Adds a new row to this ProvenanceTable consisting of the specified record and
        timestamp. If timestamp is not specified, it is automatically generated from
        the current time.

        :param str record: A provenance record, describing the parameters and
            environment used to generate the current set of tables.
        :param str timestamp: A string timestamp. This should be in ISO8601 form.
        :raises ValueError: If the record is empty.
        """
        provenance.check_record(record)
        if timestamp is None:
            timestamp = provenance.timestamp()
        return self._append_row(
            timestamp=self._ragged_value("timestamp", timestamp),
            record=self._ragged_value("record", record),
        )

    def packset_record(self, records):
        """
        Packs the specified list of record values and updates the
        ``record`` and ``record_offset`` columns.
        """
        packed, offset = util.pack_strings(records)
        d = self.asdict()
        d["record"] = packed
        d["record_offset"] = offset
        self.set_columns(**d)

    def packset_timestamp(self, timestamps):
        """
        Packs the specified list of timestamp values and updates the
        ``timestamp`` and ``timestamp_offset`` columns.
        """
        packed, offset = util.pack_strings(timestamps)
        d = self.asdict()
        d["timestamp"] = packed
        d["timestamp_offset"] = offset
        self.set_columns(**d)


class TableCollection:
    """
    A collection of mutable tables defining a tree sequence. Arbitrary
    data can be stored in a TableCollection, but the tables must be sorted,
    indexed and pass the integrity checks before they can be interpreted as a
    tree sequence.

    To obtain an immutable :class:`TreeSequence` instance corresponding to the
    current state of a ``TableCollection``, please use the :meth:`.tree_sequence`
    method.

    :param float sequence_length: The sequence length, which must be positive.
    """

    set_err_text = (
        "Cannot set tables in a table collection: use table.replace_with() instead."
    )

    def __init__(self, sequence_length):
        if sequence_length <= 0:
            raise ValueError("Sequence length must be > 0")
        self._sequence_length = float(sequence_length)
        self._time_units = treeseq.TIME_UNITS_UNKNOWN
        self._metadata_schema = metadata.MetadataSchema.null()
        self._metadata = b""
        self._tables = {
            "individuals": IndividualTable(),
            "nodes": NodeTable(),
            "edges": EdgeTable(),
            "migrations": MigrationTable(),
            "sites": SiteTable(),
            "mutations": MutationTable(),
            "populations": PopulationTable(),
            "provenances": ProvenanceTable(),
        }
        self._indexes = None
        self._index_version = None
        self._frozen = False

    def _table(self, name):
        if self._tables is None:
            raise ValueError("Table collection has been freed")
        return self._tables[name]

    def _check_mutable(self):
        if self._tables is None:
            raise ValueError("Table collection has been freed")
        if self._frozen:
            raise exceptions.ImmutableTableError(
                "Tables belonging to a tree sequence cannot be modified. "
                "Use TreeSequence.dump_tables() to get a mutable copy."
            )

    def _freeze(self):
        for table in self._tables.values():
            table._freeze()
        if self._indexes is not None:
            for array in (
                self._indexes.edge_insertion_order,
                self._indexes.edge_removal_order,
            ):
                array.flags.writeable = False
        self._frozen = True

    @property
    def individuals(self) -> IndividualTable:
        """
        The :ref:`sec_individual_table_definition` in this collection.
        """
        return self._table("individuals")

    @individuals.setter
    def individuals(self, value):
        raise AttributeError(self.set_err_text)

    @property
    def nodes(self) -> NodeTable:
        """
        The :ref:`sec_node_table_definition` in this collection.
        """
        return self._table("nodes")

    @nodes.setter
    def nodes(self, value):
        raise AttributeError(self.set_err_text)

    @property
    def edges(self) -> EdgeTable:
        """
        The :ref:`sec_edge_table_definition` in this collection.
        """
        return self._table("edges")

    @edges.setter
    def edges(self, value):
        raise AttributeError(self.set_err_text)

    @property
    def migrations(self) -> MigrationTable:
        """
        The :ref:`sec_migration_table_definition` in this collection
        """
        return self._table("migrations")

    @migrations.setter
    def migrations(self, value):
        raise AttributeError(self.set_err_text)

    @property
    def sites(self) -> SiteTable:
        """
        The :ref:`sec_site_table_definition` in this collection.
        """
        return self._table("sites")

    @sites.setter
    def sites(self, value):
        raise AttributeError(self.set_err_text)

    @property
    def mutations(self) -> MutationTable:
        """
        The :ref:`sec_mutation_table_definition` in this collection.
        """
        return self._table("mutations")

    @mutations.setter
    def mutations(self, value):
        raise AttributeError(self.set_err_text)

    @property
    def populations(self) -> PopulationTable:
        """
        The :ref:`sec_population_table_definition` in this collection.
        """
        return self._table("populations")

    @populations.setter
    def populations(self, value):
        raise AttributeError(self.set_err_text)

    @property
    def provenances(self) -> ProvenanceTable:
        """
        The :ref:`sec_provenance_table_definition` in this collection.
        """
        return self._table("provenances")

    @provenances.setter
    def provenances(self, value):
        raise AttributeError(self.set_err_text)

    @property
    def indexes(self) -> TableCollectionIndexes:
        """
        The edge insertion and removal indexes, or an empty
        :class:`TableCollectionIndexes` if the collection is not indexed.
        """
        if not self.has_index():
            return TableCollectionIndexes()
        return TableCollectionIndexes(
            edge_insertion_order=self._index_view(self._indexes.edge_insertion_order),
            edge_removal_order=self._index_view(self._indexes.edge_removal_order),
        )

    @indexes.setter
    def indexes(self, indexes):
        self._check_mutable()
        insertion = util.safe_np_int_cast(indexes.edge_insertion_order, np.int32)
        removal = util.safe_np_int_cast(indexes.edge_removal_order, np.int32)
        num_edges = self.edges.num_rows
        if insertion.shape != (num_edges,) or removal.shape != (num_edges,):
            raise ValueError("Edge indexes must have one entry per edge")
        self._indexes = TableCollectionIndexes(
            edge_insertion_order=insertion.copy(),
            edge_removal_order=removal.copy(),
        )
        self._index_version = self.edges._version

    def _index_view(self, array):
        if self._frozen:
            return array
        return array.copy()

    @property
    def edge_insertion_order(self) -> np.ndarray:
        """
        The edge IDs in the order in which they are inserted when iterating
        left-to-right, or None if the collection is not indexed.
        """
        return self.indexes.edge_insertion_order

    @property
    def edge_removal_order(self) -> np.ndarray:
        """
        The edge IDs in the order in which they are removed when iterating
        left-to-right, or None if the collection is not indexed.
        """
        return self.indexes.edge_removal_order

    @property
    def sequence_length(self) -> float:
        """
        The sequence length defining the coordinate space.
        """
        return self._sequence_length

    @sequence_length.setter
    def sequence_length(self, sequence_length):
        self._check_mutable()
        if sequence_length <= 0:
            raise ValueError("Sequence length must be > 0")
        self._sequence_length = float(sequence_length)

    @property
    def time_units(self) -> str:
        """
        The units used for the time dimension of this TableCollection
        """
        return self._time_units

    @time_units.setter
    def time_units(self, time_units: str) -> None:
        self._check_mutable()
        self._time_units = str(time_units)

    @property
    def metadata_schema(self) -> metadata.MetadataSchema:
        """
        The :class:`treeseq.MetadataSchema` for the top-level metadata.
        """
        return self._metadata_schema

    @metadata_schema.setter
    def metadata_schema(self, schema: metadata.MetadataSchema) -> None:
        self._check_mutable()
        # Check the schema is a valid schema instance by roundtripping it.
        self._metadata_schema = metadata.parse_metadata_schema(repr(schema))

    @property
    def metadata(self):
        """
        The decoded top-level metadata for this collection.
        """
        return self._metadata_schema.decode_row(self._metadata)

    @metadata.setter
    def metadata(self, value) -> None:
        self._check_mutable()
        self._metadata = metadata.to_metadata_bytes(value, self._metadata_schema)

    @property
    def metadata_bytes(self) -> bytes:
        """
        The raw bytes of metadata for this TableCollection
        """
        return self._metadata

    @property
    def table_name_map(self) -> Dict:
        """
        Returns a dictionary mapping table names to the corresponding
        table instances. For example, the returned dictionary will contain the
        key "edges" that maps to an :class:`.EdgeTable` instance.
        """
        return {
            "edges": self.edges,
            "individuals": self.individuals,
            "migrations": self.migrations,
            "mutations": self.mutations,
            "nodes": self.nodes,
            "populations": self.populations,
            "provenances": self.provenances,
            "sites": self.sites,
        }

    @property
    def nbytes(self) -> int:
        """
        Returns the total number of bytes required to store the data
        in this table collection. Note that this may not be equal to
        the actual memory footprint.
        """
        return sum(
            (
                8,  # sequence_length takes 8 bytes
                len(self._metadata),
                len(repr(self._metadata_schema).encode()),
                len(self.time_units.encode()),
                self.indexes.nbytes,
                sum(table.nbytes for table in self.table_name_map.values()),
            )
        )

    def __str__(self):
        counts = ", ".join(
            f"{name}={table.num_rows}" for name, table in self.table_name_map.items()
        )
        return (
            f"TableCollection(sequence_length={self.sequence_length}, {counts}, "
            f"indexed={self.has_index()})"
        )

    #
    # Row addition
    #

    def add_individual_row(self, flags=0, location=None, parents=None, metadata=None):
        """
        Adds a row to the individual table, see :meth:`IndividualTable.add_row`.
        """
        self._check_mutable()
        return self.individuals.add_row(
            flags=flags, location=location, parents=parents, metadata=metadata
        )

    def add_node_row(
        self, flags=0, time=0, population=NULL, individual=NULL, metadata=None
    ):
        """
        Adds a row to the node table, see :meth:`NodeTable.add_row`.
        """
        self._check_mutable()
        return self.nodes.add_row(
            flags=flags,
            time=time,
            population=population,
            individual=individual,
            metadata=metadata,
        )

    def add_edge_row(self, left, right, parent, child, metadata=None):
        """
        Adds a row to the edge table, see :meth:`EdgeTable.add_row`.
        """
        self._check_mutable()
        return self.edges.add_row(left, right, parent, child, metadata=metadata)

    def add_migration_row(self, left, right, node, source, dest, time, metadata=None):
        """
        Adds a row to the migration table, see :meth:`MigrationTable.add_row`.
        """
        self._check_mutable()
        return self.migrations.add_row(
            left, right, node, source, dest, time, metadata=metadata
        )

    def add_site_row(self, position, ancestral_state, metadata=None):
        """
        Adds a row to the site table, see :meth:`SiteTable.add_row`.
        """
        self._check_mutable()
        return self.sites.add_row(position, ancestral_state, metadata=metadata)

    def add_mutation_row(
        self, site, node, derived_state, parent=NULL, metadata=None, time=None
    ):
        """
        Adds a row to the mutation table, see :meth:`MutationTable.add_row`.
        """
        self._check_mutable()
        return self.mutations.add_row(
            site, node, derived_state, parent=parent, metadata=metadata, time=time
        )

    def add_population_row(self, metadata=None):
        """
        Adds a row to the population table, see :meth:`PopulationTable.add_row`.
        """
        self._check_mutable()
        return self.populations.add_row(metadata=metadata)

    def add_provenance(self, record, timestamp=None):
        """
        Appends a provenance record to this collection. The timestamp defaults
        to the current time in ISO-8601 format.

        :param str record: The record text, usually a JSON document.
        :param str timestamp: The timestamp of the record.
        :return: The ID of the new provenance row.
        :raises ValueError: If the record is empty.
        """
        self._check_mutable()
        return self.provenances.add_row(record, timestamp=timestamp)

    #
    # Interchange
    #

    def asdict(self):
        """
        Returns the nested dictionary representation of this TableCollection
        used for interchange. The edge indexes are included when they are
        valid.

        :return: The dictionary representation of this table collection.
        :rtype: dict
        """
        ret = {
            "encoding_version": (1, 0),
            "sequence_length": self.sequence_length,
            "time_units": self.time_units,
            "metadata": self.metadata_bytes,
            "metadata_schema": repr(self.metadata_schema),
        }
        for name, table in self.table_name_map.items():
            ret[name] = table.asdict()
        ret["indexes"] = self.indexes.asdict()
        return ret

    @classmethod
    def fromdict(cls, tables_dict):
        """
        Returns a new TableCollection built from the dictionary representation
        returned by :meth:`.asdict`.
        """
        tables = cls(tables_dict["sequence_length"])
        tables.time_units = tables_dict.get("time_units", treeseq.TIME_UNITS_UNKNOWN)
        tables._metadata_schema = metadata.parse_metadata_schema(
            tables_dict.get("metadata_schema", "")
        )
        tables._metadata = bytes(tables_dict.get("metadata", b""))
        for name, table in tables.table_name_map.items():
            if name in tables_dict:
                table.set_columns(**tables_dict[name])
        indexes = tables_dict.get("indexes", {})
        if len(indexes) > 0:
            tables.indexes = TableCollectionIndexes(**indexes)
        return tables

    def copy(self):
        """
        Returns a deep copy of this TableCollection.

        :return: A deep copy of this TableCollection.
        :rtype: treeseq.TableCollection
        """
        return TableCollection.fromdict(self.asdict())

    def deep_copy(self):
        """
        Returns a fully independent copy of this TableCollection, including
        its edge indexes. Equivalent to :meth:`.copy`.
        """
        return self.copy()

    def __getstate__(self):
        return self.asdict()

    # Unpickle support
    def __setstate__(self, state):
        self.__dict__.update(TableCollection.fromdict(state).__dict__)

    def dump(self, file_or_path):
        """
        Writes the table collection to the specified path or file object.

        :param str file_or_path: The file object or path to write the tables to.
        """
        treeseq.formats.dump(self, file_or_path)

    @classmethod
    def load(cls, file_or_path):
        """
        Loads a table collection from the specified path or file object.
        """
        return treeseq.formats.load(file_or_path)

    def free(self):
        """
        Releases the column storage held by this collection. Calling this
        method more than once has no effect; any other use of a freed
        collection raises a ValueError.
        """
        if self._tables is not None:
            logger.debug("Freeing table collection")
        self._tables = None
        self._indexes = None
        self._index_version = None

    #
    # Equality
    #

    def equals(
        self,
        other,
        options=0,
        *,
        ignore_metadata=False,
        ignore_ts_metadata=False,
        ignore_provenance=False,
        ignore_timestamps=False,
    ):
        """
        Returns True if  `self` and `other` are equal. By default, two table
        collections are considered equal if their

        - ``sequence_length`` properties are identical;
        - top-level tree sequence metadata and metadata schemas are
          byte-wise identical;
        - constituent tables are byte-wise identical.

        Some of the requirements in this definition can be relaxed using
        :class:`EqualityOptions` bits in ``options`` or the equivalent keyword
        arguments. Table indexes are not considered in the equality comparison.

        :param TableCollection other: Another table collection.
        :param int options: Bitwise :class:`EqualityOptions`.
        :param bool ignore_metadata: If True *all* metadata and metadata schemas
            will be excluded from the comparison.
        :param bool ignore_ts_metadata: If True the top-level tree sequence
            metadata and metadata schemas will be excluded from the comparison.
        :param bool ignore_provenance: If True the provenance tables are
            not included in the comparison.
        :param bool ignore_timestamps: If True the provenance timestamp column
            is ignored in the comparison.
        :return: True if other is equal to this table collection; False otherwise.
        :rtype: bool
        """
        if type(other) is not type(self):
            return False
        options = EqualityOptions(options)
        ignore_metadata = ignore_metadata or EqualityOptions.IGNORE_METADATA in options
        ignore_ts_metadata = (
            ignore_metadata
            or ignore_ts_metadata
            or EqualityOptions.IGNORE_TS_METADATA in options
        )
        ignore_provenance = (
            ignore_provenance or EqualityOptions.IGNORE_PROVENANCE in options
        )
        ignore_timestamps = (
            ignore_timestamps or EqualityOptions.IGNORE_TIMESTAMPS in options
        )
        if self.sequence_length != other.sequence_length:
            return False
        if self.time_units != other.time_units:
            return False
        if not ignore_ts_metadata and (
            self.metadata_schema != other.metadata_schema
            or self.metadata_bytes != other.metadata_bytes
        ):
            return False
        for name, table in self.table_name_map.items():
            if name == "provenances":
                continue
            if not table.equals(
                getattr(other, name), ignore_metadata=ignore_metadata
            ):
                return False
        if not ignore_provenance and not self.provenances.equals(
            other.provenances, ignore_timestamps=ignore_timestamps
        ):
            return False
        return True

    def assert_equals(
        self,
        other,
        *,
        ignore_metadata=False,
        ignore_ts_metadata=False,
        ignore_provenance=False,
        ignore_timestamps=False,
    ):
        """
        Raise an AssertionError for the first found difference between
        this and another table collection. Note that table indexes are not checked.

        :param TableCollection other: Another table collection.
        :param bool ignore_metadata: If True *all* metadata and metadata schemas
            will be excluded from the comparison.
        :param bool ignore_ts_metadata: If True the top-level tree sequence
            metadata and metadata schemas will be excluded from the comparison.
        :param bool ignore_provenance: If True the provenance tables are
            not included in the comparison.
        :param bool ignore_timestamps: If True the provenance timestamp column
            is ignored in the comparison.
        """
        if type(other) is not type(self):
            raise AssertionError(f"Types differ: self={type(self)} other={type(other)}")

        if self.equals(
            other,
            ignore_metadata=ignore_metadata,
            ignore_ts_metadata=ignore_ts_metadata,
            ignore_provenance=ignore_provenance,
            ignore_timestamps=ignore_timestamps,
        ):
            return

        if not (ignore_metadata or ignore_ts_metadata):
            if self.metadata_schema != other.metadata_schema:
                raise AssertionError(
                    f"Metadata schemas differ: self={self.metadata_schema} "
                    f"other={other.metadata_schema}"
                )
            if self.metadata != other.metadata:
                raise AssertionError(
                    f"Metadata differs: self={self.metadata} other={other.metadata}"
                )

        if self.time_units != other.time_units:
            raise AssertionError(
                f"Time units differs: self={self.time_units} "
                f"other={other.time_units}"
            )

        if self.sequence_length != other.sequence_length:
            raise AssertionError(
                f"Sequence Length"
                f" differs: self={self.sequence_length} other={other.sequence_length}"
            )

        for table_name, table in self.table_name_map.items():
            if table_name != "provenances":
                table.assert_equals(
                    getattr(other, table_name), ignore_metadata=ignore_metadata
                )

        if not ignore_provenance:
            self.provenances.assert_equals(
                other.provenances, ignore_timestamps=ignore_timestamps
            )

        raise AssertionError(
            "TableCollections differ in an undetected way"
        )  # pragma: no cover

    def __eq__(self, other):
        return self.equals(other)

    #
    # Integrity checking
    #

    def _check_ids(self, ids, num_rows, code, allow_null=True):
        lower = NULL if allow_null else 0
        bad = np.flatnonzero((ids < lower) | (ids >= num_rows))
        if len(bad) > 0:
            raise LibraryError(code, f"value {ids[bad[0]]} at index {bad[0]}")

    def _check_intervals(self, left, right):
        L = self.sequence_length
        if len(left) == 0:
            return
        if not np.all(np.isfinite(left)) or np.any(left < 0):
            raise LibraryError(ErrorCode.LEFT_LESS_ZERO)
        if not np.all(np.isfinite(right)) or np.any(right > L):
            raise LibraryError(ErrorCode.RIGHT_GREATER_SEQ_LENGTH)
        if np.any(left >= right):
            raise LibraryError(ErrorCode.BAD_EDGE_INTERVAL)

    def _check_referential_integrity(self):
        nodes = self.nodes
        edges = self.edges
        sites = self.sites
        mutations = self.mutations
        migrations = self.migrations
        individuals = self.individuals
        num_nodes = nodes.num_rows
        num_populations = self.populations.num_rows
        num_individuals = individuals.num_rows

        node_time = nodes.time
        if not np.all(np.isfinite(node_time)):
            raise LibraryError(ErrorCode.TIME_NONFINITE, "node time")
        self._check_ids(
            nodes.population, num_populations, ErrorCode.POPULATION_OUT_OF_BOUNDS
        )
        self._check_ids(
            nodes.individual, num_individuals, ErrorCode.INDIVIDUAL_OUT_OF_BOUNDS
        )
        self._check_ids(
            individuals.parents, num_individuals, ErrorCode.INDIVIDUAL_OUT_OF_BOUNDS
        )

        parent = edges.parent
        child = edges.child
        if np.any(parent == NULL):
            raise LibraryError(ErrorCode.NULL_PARENT)
        if np.any(child == NULL):
            raise LibraryError(ErrorCode.NULL_CHILD)
        self._check_ids(parent, num_nodes, ErrorCode.NODE_OUT_OF_BOUNDS, False)
        self._check_ids(child, num_nodes, ErrorCode.NODE_OUT_OF_BOUNDS, False)
        self._check_intervals(edges.left, edges.right)
        if np.any(node_time[parent] <= node_time[child]):
            raise LibraryError(ErrorCode.BAD_NODE_TIME_ORDERING)

        self._check_ids(migrations.node, num_nodes, ErrorCode.NODE_OUT_OF_BOUNDS, False)
        self._check_ids(
            migrations.source, num_populations, ErrorCode.POPULATION_OUT_OF_BOUNDS, False
        )
        self._check_ids(
            migrations.dest, num_populations, ErrorCode.POPULATION_OUT_OF_BOUNDS, False
        )
        if not np.all(np.isfinite(migrations.time)):
            raise LibraryError(ErrorCode.TIME_NONFINITE, "migration time")
        self._check_intervals(migrations.left, migrations.right)

        position = sites.position
        if np.any(
            ~np.isfinite(position) | (position < 0) | (position >= self.sequence_length)
        ):
            raise LibraryError(ErrorCode.BAD_SITE_POSITION)

        site = mutations.site
        node = mutations.node
        mutation_parent = mutations.parent
        self._check_ids(site, sites.num_rows, ErrorCode.SITE_OUT_OF_BOUNDS, False)
        self._check_ids(node, num_nodes, ErrorCode.NODE_OUT_OF_BOUNDS, False)
        self._check_ids(
            mutation_parent,
            mutations.num_rows,
            ErrorCode.MUTATION_PARENT_OUT_OF_BOUNDS,
        )
        if np.any(mutation_parent == np.arange(mutations.num_rows)):
            raise LibraryError(ErrorCode.MUTATION_PARENT_EQUAL)
        time = mutations.time
        known = ~util.is_unknown_time(time)
        if not np.all(np.isfinite(time[known])):
            raise LibraryError(ErrorCode.TIME_NONFINITE, "mutation time")
        if np.any(time[known] < node_time[node[known]]):
            raise LibraryError(ErrorCode.MUTATION_TIME_YOUNGER_THAN_NODE)

    def _check_edge_ordering(self):
        edges = self.edges
        if edges.num_rows == 0:
            return
        parent = edges.parent
        child = edges.child
        left = edges.left
        parent_time = self.nodes.time[parent]
        if np.any(np.diff(parent_time) < 0):
            raise LibraryError(ErrorCode.EDGES_NOT_SORTED_PARENT_TIME)
        same_parent = parent[1:] == parent[:-1]
        # Each parent's edges must form one contiguous block
        starts = np.concatenate([[True], ~same_parent])
        if len(np.unique(parent[starts])) != np.count_nonzero(starts):
            raise LibraryError(ErrorCode.EDGES_NONCONTIGUOUS_PARENTS)
        if np.any(same_parent & (child[1:] < child[:-1])):
            raise LibraryError(ErrorCode.EDGES_NOT_SORTED_CHILD)
        same_child = same_parent & (child[1:] == child[:-1])
        if np.any(same_child & (left[1:] == left[:-1])):
            raise LibraryError(ErrorCode.DUPLICATE_EDGES)
        if np.any(same_child & (left[1:] < left[:-1])):
            raise LibraryError(ErrorCode.EDGES_NOT_SORTED_LEFT)

    def _check_site_ordering(self, check_duplicates):
        position = self.sites.position
        if np.any(np.diff(position) < 0):
            raise LibraryError(ErrorCode.UNSORTED_SITES)
        if check_duplicates and np.any(np.diff(position) == 0):
            raise LibraryError(ErrorCode.DUPLICATE_SITE_POSITION)

    def _check_mutation_ordering(self):
        mutations = self.mutations
        site = mutations.site
        parent = mutations.parent
        time = mutations.time
        if np.any(np.diff(site) < 0):
            raise LibraryError(ErrorCode.UNSORTED_MUTATIONS)
        has_parent = np.flatnonzero(parent != NULL)
        if np.any(site[parent[has_parent]] != site[has_parent]):
            raise LibraryError(ErrorCode.MUTATION_PARENT_DIFFERENT_SITE)
        if np.any(parent[has_parent] > has_parent):
            raise LibraryError(ErrorCode.MUTATION_PARENT_AFTER_CHILD)
        known = ~util.is_unknown_time(time)
        both_known = known[1:] & known[:-1] & (site[1:] == site[:-1])
        if np.any(both_known & (time[1:] > time[:-1])):
            raise LibraryError(ErrorCode.UNSORTED_MUTATIONS)

    def _check_migration_ordering(self):
        if np.any(np.diff(self.migrations.time) < 0):
            raise LibraryError(ErrorCode.UNSORTED_MIGRATIONS)

    def _check_indexes(self):
        if not self.has_index():
            raise LibraryError(ErrorCode.TABLES_NOT_INDEXED)
        num_edges = self.edges.num_rows
        for order in (
            self._indexes.edge_insertion_order,
            self._indexes.edge_removal_order,
        ):
            if order.shape[0] != num_edges or not np.array_equal(
                np.sort(order), np.arange(num_edges)
            ):
                raise LibraryError(ErrorCode.TABLES_BAD_INDEXES)

    def _check_trees(self):
        edges = self.edges
        left = edges.left
        right = edges.right
        child = edges.child
        order = np.lexsort((left, child))
        same_child = child[order][1:] == child[order][:-1]
        overlaps = left[order][1:] < right[order][:-1]
        if np.any(same_child & overlaps):
            raise LibraryError(ErrorCode.BAD_EDGES_CONTRADICTORY_CHILDREN)
        breakpoints = np.unique(
            np.concatenate([[0], left, right, [self.sequence_length]])
        )
        return len(breakpoints) - 1

    def check_integrity(self, options=0):
        """
        Checks the integrity of this collection, raising a :class:`LibraryError`
        describing the first problem found. With no options only referential
        integrity is checked: that IDs are within range, that coordinates lie
        within the sequence, that node times are finite and that parents are
        older than their children. Further checks are requested with
        :class:`IntegrityCheckOptions`.

        :param int options: Bitwise :class:`IntegrityCheckOptions`.
        :return: The number of trees if ``CHECK_TREES`` is specified, else 0.
        :rtype: int
        """
        options = IntegrityCheckOptions(options)
        if IntegrityCheckOptions.CHECK_TREES in options:
            options |= (
                IntegrityCheckOptions.CHECK_EDGE_ORDERING
                | IntegrityCheckOptions.CHECK_SITE_ORDERING
                | IntegrityCheckOptions.CHECK_SITE_DUPLICATES
                | IntegrityCheckOptions.CHECK_MUTATION_ORDERING
                | IntegrityCheckOptions.CHECK_MIGRATION_ORDERING
                | IntegrityCheckOptions.CHECK_INDEXES
            )
        if not self.sequence_length > 0:
            raise LibraryError(ErrorCode.BAD_SEQUENCE_LENGTH)
        self._check_referential_integrity()
        if IntegrityCheckOptions.CHECK_EDGE_ORDERING in options:
            self._check_edge_ordering()
        if (
            IntegrityCheckOptions.CHECK_SITE_ORDERING in options
            or IntegrityCheckOptions.CHECK_SITE_DUPLICATES in options
        ):
            self._check_site_ordering(
                IntegrityCheckOptions.CHECK_SITE_DUPLICATES in options
            )
        if IntegrityCheckOptions.CHECK_MUTATION_ORDERING in options:
            self._check_mutation_ordering()
        if IntegrityCheckOptions.CHECK_MIGRATION_ORDERING in options:
            self._check_migration_ordering()
        if IntegrityCheckOptions.CHECK_INDEXES in options:
            self._check_indexes()
        if IntegrityCheckOptions.CHECK_TREES in options:
            return self._check_trees()
        return 0

    #
    # Edge indexes
    #

    def has_index(self):
        """
        Returns True if this TableCollection is indexed. The index is
        invalidated by any change to the edge table.
        """
        if self._tables is None:
            raise ValueError("Table collection has been freed")
        return self._indexes is not None and self._index_version == self.edges._version

    def build_index(self):
        """
        Builds the edge insertion and removal indexes on this TableCollection.
        Any existing indexes are automatically dropped. The edges must be sorted.

        Edges are inserted in order of left coordinate, then by decreasing
        parent time, then by parent and child ID. They are removed in order of
        right coordinate, then by increasing parent time, then by parent and
        child ID.
        """
        self._check_mutable()
        self.drop_index()
        self.check_integrity(IntegrityCheckOptions.CHECK_EDGE_ORDERING)
        edges = self.edges
        parent_time = self.nodes.time[edges.parent]
        insertion = np.lexsort((edges.child, edges.parent, -parent_time, edges.left))
        removal = np.lexsort((edges.child, edges.parent, parent_time, edges.right))
        self._indexes = TableCollectionIndexes(
            edge_insertion_order=insertion.astype(np.int32),
            edge_removal_order=removal.astype(np.int32),
        )
        self._index_version = edges._version
        logger.debug(f"Built edge indexes for {edges.num_rows} edges")

    def drop_index(self):
        """
        Drops any indexes present on this table collection. If the tables are not
        currently indexed this method has no effect.
        """
        self._check_mutable()
        self._indexes = None
        self._index_version = None

    #
    # Sorting
    #

    def sort(self, bookmark=None, options=0):
        """
        Sorts the tables in place.

        Edges from ``bookmark.edges`` onwards are sorted as follows:

        - time of parent, then
        - parent node ID, then
        - child node ID, then
        - left endpoint.

        Sites are sorted by position, and sites with the same position retain
        their relative ordering. Mutations are sorted by site, then by
        decreasing time where both times are known; others retain their
        relative ordering. The mutation ``site`` and ``parent`` columns are
        remapped to the new row IDs. Migrations are sorted by ``time``,
        ``source``, ``dest``, ``left`` and ``node`` values.

        The site, mutation and migration bookmarks must either be zero or
        equal to the number of rows in the table, in which case the table
        is left alone. The node, individual, population and provenance tables
        are not affected and their bookmarks must be zero. Sorting drops the
        edge indexes.

        :param Bookmark bookmark: The per-table offsets where sorting starts.
        :param int options: Bitwise :class:`SortOptions`.
        """
        self._check_mutable()
        bookmark = Bookmark() if bookmark is None else bookmark
        options = SortOptions(options)
        for name in ["individuals", "nodes", "populations", "provenances"]:
            if getattr(bookmark, name) != 0:
                raise LibraryError(ErrorCode.SORT_OFFSET_NOT_SUPPORTED, name)
        bounds_codes = {
            "edges": ErrorCode.EDGE_OUT_OF_BOUNDS,
            "migrations": ErrorCode.MIGRATION_OUT_OF_BOUNDS,
            "sites": ErrorCode.SITE_OUT_OF_BOUNDS,
            "mutations": ErrorCode.MUTATION_OUT_OF_BOUNDS,
        }
        for name, code in bounds_codes.items():
            offset = getattr(bookmark, name)
            num_rows = self.table_name_map[name].num_rows
            if offset < 0 or offset > num_rows:
                raise LibraryError(code, f"{name} bookmark {offset}")
            if name != "edges" and offset not in (0, num_rows):
                raise LibraryError(ErrorCode.SORT_OFFSET_NOT_SUPPORTED, name)
        if SortOptions.NO_CHECK_INTEGRITY not in options:
            self.check_integrity()

        self.drop_index()
        self._sort_edges(bookmark.edges)
        if bookmark.migrations == 0:
            self._sort_migrations()
        if bookmark.sites == 0 or bookmark.mutations == 0:
            self._sort_sites_and_mutations()
        logger.debug(
            f"Sorted {self.edges.num_rows} edges from {bookmark.edges}, "
            f"{self.sites.num_rows} sites, {self.mutations.num_rows} mutations "
            f"and {self.migrations.num_rows} migrations"
        )

    def _sort_edges(self, start):
        edges = self.edges
        if edges.num_rows - start < 2:
            return
        parent = edges.parent[start:]
        order = np.lexsort(
            (
                edges.left[start:],
                edges.child[start:],
                parent,
                self.nodes.time[parent],
            )
        )
        edges._permute(np.concatenate([np.arange(start), order + start]))

    def _sort_migrations(self):
        migrations = self.migrations
        if migrations.num_rows < 2:
            return
        order = np.lexsort(
            (
                migrations.node,
                migrations.left,
                migrations.dest,
                migrations.source,
                migrations.time,
            )
        )
        migrations._permute(order)

    def _sort_sites_and_mutations(self):
        sites = self.sites
        mutations = self.mutations
        site_order = np.argsort(sites.position, kind="stable")
        site_map = np.zeros(sites.num_rows, dtype=np.int32)
        site_map[site_order] = np.arange(sites.num_rows, dtype=np.int32)
        sites._permute(site_order)

        site = site_map[mutations.site]
        time = mutations.time
        known = ~util.is_unknown_time(time)

        def cmp_mutation(i, j):
            ret = site[i] - site[j]
            if ret == 0 and known[i] and known[j]:
                ret = np.sign(time[j] - time[i])
            if ret == 0:
                ret = i - j
            return ret

        mutation_order = np.array(
            sorted(range(mutations.num_rows), key=functools.cmp_to_key(cmp_mutation)),
            dtype=np.int64,
        )
        mutation_map = np.zeros(mutations.num_rows, dtype=np.int32)
        mutation_map[mutation_order] = np.arange(mutations.num_rows, dtype=np.int32)
        parent = mutations.parent
        parent = np.where(parent == NULL, NULL, mutation_map[parent]).astype(np.int32)
        mutations.site = site
        mutations.parent = parent
        mutations._permute(mutation_order)

    def full_sort(self, options=0):
        """
        Sorts all the tables from the start. Equivalent to
        ``sort(Bookmark(), options)``.
        """
        self.sort(Bookmark(), options)

    #
    # Other operations
    #

    def clear(self, options=0):
        """
        Remove all rows of the data tables, optionally remove provenance, metadata
        schemas and ts-level metadata. The edge indexes are dropped.

        :param int options: Bitwise :class:`ClearOptions`.
        """
        self._check_mutable()
        options = ClearOptions(options)
        for name, table in self.table_name_map.items():
            if name != "provenances":
                table.clear()
        if ClearOptions.CLEAR_PROVENANCE in options:
            self.provenances.clear()
        if ClearOptions.CLEAR_METADATA_SCHEMAS in options:
            for name, table in self.table_name_map.items():
                if name != "provenances":
                    table.metadata_schema = metadata.MetadataSchema.null()
        if ClearOptions.CLEAR_TS_METADATA_AND_SCHEMA in options:
            self._metadata = b""
            self._metadata_schema = metadata.MetadataSchema.null()
        self.drop_index()

    def simplify(self, samples=None, options=0, want_id_map=False):
        """
        Simplifies the tables in place to retain only the information necessary
        to reconstruct the tree sequence describing the given ``samples``.
        Unless ``NO_FILTER_NODES`` is given, this can change the ID of the
        nodes, so that the node ``samples[k]`` will have ID ``k`` in the
        result. The remaining nodes keep their relative order.

        Tables operated on by this function must be sorted (see
        :meth:`TableCollection.sort`), have children be born strictly after their
        parents, and the intervals on which any node is a child must be
        disjoint.

        :param list[int] samples: A list of node IDs to retain as samples. If
            not specified or None, use all nodes marked with the IS_SAMPLE flag.
        :param int options: Bitwise :class:`SimplifyOptions`.
        :param bool want_id_map: If True return the node ID map.
        :return: A numpy array mapping node IDs in the input tables to their
            IDs in the simplified tables, with :data:`treeseq.NULL` for nodes
            that were removed, or None if ``want_id_map`` is False.
        :rtype: numpy.ndarray (dtype=np.int32)
        """
        self._check_mutable()
        if samples is None:
            flags = self.nodes.flags
            samples = np.flatnonzero(flags & treeseq.NODE_IS_SAMPLE).astype(np.int32)
        else:
            samples = util.safe_np_int_cast(samples, np.int32).reshape(-1)
        node_map = simplifier.simplify_tables(self, samples, options)
        self.drop_index()
        if want_id_map:
            return node_map
        return None

    def tree_sequence(self, options=0):
        """
        Returns a :class:`TreeSequence` instance from the tables defined in this
        :class:`TableCollection`. The tree sequence takes a deep copy of the
        tables, so later changes to this collection do not affect it. The
        tables must be indexed (see :meth:`.build_index`) unless
        ``TreeSequenceOptions.BUILD_INDEXES`` is given, and must pass
        :meth:`.check_integrity` with ``CHECK_TREES``.

        :param int options: Bitwise :class:`TreeSequenceOptions`.
        :return: A :class:`TreeSequence` instance reflecting the structures
            defined in this set of tables.
        :rtype: treeseq.TreeSequence
        """
        if TreeSequenceOptions.BUILD_INDEXES in TreeSequenceOptions(options):
            self.build_index()
        if not self.has_index():
            raise LibraryError(ErrorCode.TABLES_NOT_INDEXED)
        return treeseq.TreeSequence.load_tables(self)


__all__ = [
    "SortOptions",
    "ClearOptions",
    "EqualityOptions",
    "IntegrityCheckOptions",
    "SimplifyOptions",
    "TreeSequenceOptions",
    "Bookmark",
    "IndividualTableRow",
    "NodeTableRow",
    "EdgeTableRow",
    "MigrationTableRow",
    "SiteTableRow",
    "MutationTableRow",
    "PopulationTableRow",
    "ProvenanceTableRow",
    "TableCollectionIndexes",
    "IndividualTable",
    "NodeTable",
    "EdgeTable",
    "MigrationTable",
    "SiteTable",
    "MutationTable",
    "PopulationTable",
    "ProvenanceTable",
    "TableCollection",
]
