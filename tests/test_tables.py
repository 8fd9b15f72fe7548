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
Test cases for the tables and the table collection.
"""
import dataclasses
import pickle

import numpy as np
import pytest

import tests.tsutil as tsutil
import treeseq
import treeseq.exceptions as exceptions
from treeseq.exceptions import ErrorCode


def simple_tables():
    """
    Returns unsorted tables for two samples and a root, with a site and
    two mutations.
    """
    tables = treeseq.TableCollection(10)
    tables.nodes.add_row(flags=treeseq.NODE_IS_SAMPLE, time=0)
    tables.nodes.add_row(flags=treeseq.NODE_IS_SAMPLE, time=0)
    tables.nodes.add_row(time=1)
    tables.nodes.add_row(time=2)
    tables.edges.add_row(5, 10, 3, 1)
    tables.edges.add_row(0, 5, 2, 0)
    tables.edges.add_row(0, 5, 2, 1)
    tables.edges.add_row(5, 10, 3, 0)
    tables.edges.add_row(0, 5, 3, 2)
    return tables


class TestNodeTable:
    def test_simple_example(self):
        t = treeseq.NodeTable()
        t.add_row(flags=0, time=1, population=2, individual=0, metadata=b"123")
        t.add_row(flags=1, time=2, population=3, individual=1, metadata=b"\xf0")
        assert len(t) == 2
        assert t.num_rows == 2
        assert dataclasses.astuple(t[0]) == (0, 1, 2, 0, b"123")
        assert dataclasses.astuple(t[1]) == (1, 2, 3, 1, b"\xf0")
        assert t[0].flags == 0
        assert t[0].time == 1
        assert t[0].population == 2
        assert t[0].individual == 0
        assert t[0].metadata == b"123"
        assert t[0] == t[-2]
        assert t[1] == t[-1]
        with pytest.raises(IndexError):
            t.__getitem__(-3)
        with pytest.raises(IndexError):
            t.__getitem__(2)

    def test_add_row_defaults(self):
        t = treeseq.NodeTable()
        assert t.add_row() == 0
        assert t.time[0] == 0
        assert t.flags[0] == 0
        assert t.population[0] == treeseq.NULL
        assert t.individual[0] == treeseq.NULL
        assert len(t.metadata) == 0
        assert t.metadata_offset[0] == 0

    def test_add_row_bad_metadata(self):
        t = treeseq.NodeTable()
        with pytest.raises(TypeError):
            t.add_row(metadata=123)

    def test_optional_population(self):
        for num_rows in [0, 10, 100]:
            flags = list(range(num_rows))
            time = list(range(num_rows))
            table = treeseq.NodeTable()
            table.set_columns(flags=flags, time=time)
            assert list(table.population) == [-1 for _ in range(num_rows)]
            assert list(table.individual) == [-1 for _ in range(num_rows)]
            assert list(table.flags) == flags
            assert list(table.time) == time
            assert list(table.metadata_offset) == [0] * (num_rows + 1)

    def test_column_dtypes(self):
        t = treeseq.NodeTable()
        t.add_row(time=1)
        assert t.flags.dtype == np.uint32
        assert t.time.dtype == np.float64
        assert t.population.dtype == np.int32
        assert t.individual.dtype == np.int32
        assert t.metadata.dtype == np.int8
        assert t.metadata_offset.dtype == np.uint64

    def test_columns_are_copies(self):
        t = treeseq.NodeTable()
        t.add_row(time=1)
        time = t.time
        time[0] = 100
        assert t.time[0] == 1

    def test_set_column_attribute(self):
        t = treeseq.NodeTable()
        for j in range(5):
            t.add_row(time=j)
        t.time = np.arange(5) + 10
        assert list(t.time) == [10, 11, 12, 13, 14]
        with pytest.raises(ValueError):
            t.time = np.arange(4)


class TestEdgeTable:
    def test_simple_example(self):
        t = treeseq.EdgeTable()
        t.add_row(left=0, right=1, parent=2, child=3, metadata=b"123")
        t.add_row(1, 2, 3, 4, b"\xf0")
        assert len(t) == 2
        assert dataclasses.astuple(t[0]) == (0, 1, 2, 3, b"123")
        assert dataclasses.astuple(t[1]) == (1, 2, 3, 4, b"\xf0")
        assert t[0].left == 0
        assert t[0].right == 1
        assert t[0].parent == 2
        assert t[0].child == 3
        assert t[0].metadata == b"123"

    @pytest.mark.parametrize(
        "left, right, parent, child",
        [(0, 1, 0, 1), (0.25, 0.5, 10, 2), (1e-9, 1e9, 2**31 - 1, 0)],
    )
    def test_add_row_round_trip(self, left, right, parent, child):
        t = treeseq.EdgeTable()
        j = t.add_row(left, right, parent, child)
        row = t[j]
        assert (row.left, row.right, row.parent, row.child) == (
            left,
            right,
            parent,
            child,
        )

    def test_add_row_defaults(self):
        t = treeseq.EdgeTable()
        assert t.add_row(0, 0, 0, 0) == 0
        assert len(t.metadata) == 0
        assert t.metadata_offset[0] == 0

    def test_add_row_bad_data(self):
        t = treeseq.EdgeTable()
        with pytest.raises(TypeError):
            t.add_row()
        with pytest.raises(TypeError):
            t.add_row(0, 0, 0, 0, metadata=123)


class TestSiteTable:
    def test_simple_example(self):
        t = treeseq.SiteTable()
        t.add_row(position=0, ancestral_state="1", metadata=b"2")
        t.add_row(1, "2", b"\xf0")
        assert len(t) == 2
        assert dataclasses.astuple(t[0]) == (0, "1", b"2")
        assert dataclasses.astuple(t[1]) == (1, "2", b"\xf0")
        assert t[0].position == 0
        assert t[0].ancestral_state == "1"

    def test_packset_ancestral_state(self):
        t = treeseq.SiteTable()
        for j in range(3):
            t.add_row(position=j, ancestral_state="x")
        t.packset_ancestral_state(["A", "CC", ""])
        assert [site.ancestral_state for site in t] == ["A", "CC", ""]
        assert list(t.ancestral_state_offset) == [0, 1, 3, 3]


class TestMutationTable:
    def test_simple_example(self):
        t = treeseq.MutationTable()
        t.add_row(site=0, node=1, derived_state="2", parent=3, metadata=b"4", time=5)
        t.add_row(1, 2, "3", 4, b"\xf0", 6)
        assert len(t) == 2
        assert dataclasses.astuple(t[0]) == (0, 1, 3, 5, "2", b"4")
        assert dataclasses.astuple(t[1]) == (1, 2, 4, 6, "3", b"\xf0")
        assert t[0].derived_state == "2"

    def test_add_row_defaults(self):
        t = treeseq.MutationTable()
        t.add_row(0, 0, "1")
        assert t[0].parent == treeseq.NULL
        assert treeseq.is_unknown_time(t[0].time)
        assert t[0] == t[0]

    def test_set_columns_default_time(self):
        t = treeseq.MutationTable()
        derived_state, offset = treeseq.util.pack_strings(["A", "T"])
        t.set_columns(
            site=[0, 0],
            node=[0, 1],
            derived_state=derived_state,
            derived_state_offset=offset,
        )
        assert np.all(treeseq.is_unknown_time(t.time))
        assert list(t.parent) == [-1, -1]


class TestIndividualTable:
    def test_simple_example(self):
        t = treeseq.IndividualTable()
        t.add_row(flags=0, location=[], parents=[], metadata=b"123")
        t.add_row(flags=1, location=(0, 1, 2, 3), parents=(4, 5, 6, 7), metadata=b"")
        assert len(t) == 2
        assert t[0].flags == 0
        assert list(t[0].location) == []
        assert list(t[0].parents) == []
        assert t[0].metadata == b"123"
        assert t[1].flags == 1
        assert list(t[1].location) == [0, 1, 2, 3]
        assert list(t[1].parents) == [4, 5, 6, 7]
        assert t[1].metadata == b""
        assert list(t.location_offset) == [0, 0, 4]
        assert list(t.parents_offset) == [0, 0, 4]

    def test_add_row_defaults(self):
        t = treeseq.IndividualTable()
        assert t.add_row() == 0
        assert t.flags[0] == 0
        assert len(t.location) == 0
        assert len(t.parents) == 0

    def test_packset_location(self):
        t = treeseq.IndividualTable()
        t.add_row(flags=0)
        t.add_row(flags=1)
        t.packset_location([[0.125, 2], [1]])
        assert list(t[0].location) == [0.125, 2]
        assert list(t[1].location) == [1]


class TestPopulationTable:
    def test_simple_example(self):
        t = treeseq.PopulationTable()
        t.add_row(metadata=b"\xf0")
        t.add_row()
        assert len(t) == 2
        assert t[0].metadata == b"\xf0"
        assert t[1].metadata == b""


class TestMigrationTable:
    def test_simple_example(self):
        t = treeseq.MigrationTable()
        t.add_row(left=0, right=1, node=2, source=3, dest=4, time=5, metadata=b"6")
        t.add_row(1, 2, 3, 4, 5, 6, b"\xf0")
        assert len(t) == 2
        assert dataclasses.astuple(t[0]) == (0, 1, 2, 3, 4, 5, b"6")
        assert dataclasses.astuple(t[1]) == (1, 2, 3, 4, 5, 6, b"\xf0")


class TestProvenanceTable:
    def test_simple_example(self):
        t = treeseq.ProvenanceTable()
        t.add_row(timestamp="0", record="1")
        t.add_row("2", "1")  # The orders are reversed for default timestamp.
        assert len(t) == 2
        assert dataclasses.astuple(t[0]) == ("0", "1")
        assert dataclasses.astuple(t[1]) == ("1", "2")

    def test_default_timestamp(self):
        t = treeseq.ProvenanceTable()
        t.add_row("a record")
        assert len(t[0].timestamp) > 0

    @pytest.mark.parametrize("record", ["", None])
    def test_empty_record(self, record):
        t = treeseq.ProvenanceTable()
        with pytest.raises(ValueError):
            t.add_row(record)
        assert len(t) == 0

    def test_equals_ignore_timestamps(self):
        t1 = treeseq.ProvenanceTable()
        t2 = treeseq.ProvenanceTable()
        t1.add_row("record", timestamp="now")
        t2.add_row("record", timestamp="then")
        assert not t1.equals(t2)
        assert t1.equals(t2, ignore_timestamps=True)


class TestRaggedColumns:
    def test_set_columns_with_offsets(self):
        t = treeseq.NodeTable()
        metadata, offset = treeseq.util.pack_bytes([b"a", b"", b"bcd"])
        t.set_columns(
            flags=[0, 0, 0], time=[0, 1, 2], metadata=metadata, metadata_offset=offset
        )
        assert [row.metadata for row in t] == [b"a", b"", b"bcd"]
        assert list(t.metadata_offset) == [0, 1, 1, 4]

    @pytest.mark.parametrize(
        "offset",
        [
            [1, 1, 1, 4],  # Does not start at zero
            [0, 2, 1, 4],  # Not monotone
            [0, 1, 1, 3],  # Does not end at the data length
            [0, 1, 4],  # Wrong length
        ],
    )
    def test_bad_offsets(self, offset):
        t = treeseq.NodeTable()
        with pytest.raises(ValueError):
            t.set_columns(
                flags=[0, 0, 0],
                time=[0, 1, 2],
                metadata=np.zeros(4, dtype=np.int8),
                metadata_offset=offset,
            )
        assert len(t) == 0

    def test_data_without_offset(self):
        t = treeseq.NodeTable()
        with pytest.raises(TypeError):
            t.set_columns(flags=[0], time=[0], metadata=b"x")

    def test_missing_required_column(self):
        t = treeseq.EdgeTable()
        with pytest.raises(TypeError):
            t.set_columns(left=[0], right=[1], parent=[0])

    def test_unknown_column(self):
        t = treeseq.EdgeTable()
        with pytest.raises(TypeError):
            t.set_columns(left=[0], right=[1], parent=[0], child=[1], time=[0])

    def test_unequal_lengths(self):
        t = treeseq.EdgeTable()
        with pytest.raises(ValueError):
            t.set_columns(left=[0, 1], right=[1], parent=[0], child=[1])

    def test_append_columns(self):
        t = treeseq.SiteTable()
        t.add_row(0, "A")
        state, offset = treeseq.util.pack_strings(["CC", "G"])
        t.append_columns(
            position=[1, 2], ancestral_state=state, ancestral_state_offset=offset
        )
        assert [site.ancestral_state for site in t] == ["A", "CC", "G"]
        assert list(t.ancestral_state_offset) == [0, 1, 3, 4]


class TestTableOperations:
    def make_table(self, num_rows=10):
        t = treeseq.NodeTable()
        for j in range(num_rows):
            t.add_row(flags=j % 2, time=j, metadata=f"row_{j}".encode())
        return t

    def test_truncate(self):
        t = self.make_table()
        t.truncate(4)
        assert len(t) == 4
        assert list(t.time) == [0, 1, 2, 3]
        assert t[3].metadata == b"row_3"
        assert t.metadata_offset[-1] == len(t.metadata)
        j = t.add_row(time=100, metadata=b"new")
        assert j == 4
        assert t[4].metadata == b"new"

    @pytest.mark.parametrize("num_rows", [-1, 11])
    def test_truncate_errors(self, num_rows):
        t = self.make_table()
        with pytest.raises(ValueError):
            t.truncate(num_rows)

    def test_clear(self):
        t = self.make_table()
        t.clear()
        assert len(t) == 0
        assert len(t.metadata) == 0

    def test_keep_rows(self):
        t = self.make_table()
        id_map = t.keep_rows(t.flags == 1)
        assert list(t.time) == [1, 3, 5, 7, 9]
        assert list(id_map) == [-1, 0, -1, 1, -1, 2, -1, 3, -1, 4]

    def test_keep_rows_bad_length(self):
        t = self.make_table()
        with pytest.raises(ValueError):
            t.keep_rows([True])

    def test_slice(self):
        t = self.make_table()
        s = t[2:5]
        assert isinstance(s, treeseq.NodeTable)
        assert list(s.time) == [2, 3, 4]
        assert [row.metadata for row in s] == [b"row_2", b"row_3", b"row_4"]

    def test_index_array(self):
        t = self.make_table()
        s = t[[9, 0, -1]]
        assert list(s.time) == [9, 0, 9]

    def test_boolean_mask(self):
        t = self.make_table()
        s = t[t.time >= 8]
        assert list(s.time) == [8, 9]
        with pytest.raises(IndexError):
            t[np.ones(3, dtype=bool)]

    def test_bad_indexes(self):
        t = self.make_table()
        with pytest.raises(IndexError):
            t[[10]]
        with pytest.raises(TypeError):
            t[1.5]

    def test_copy(self):
        t1 = self.make_table()
        t2 = t1.copy()
        assert t1 is not t2
        assert t1 == t2
        t2.add_row()
        assert t1 != t2
        assert len(t1) == 10

    def test_pickle(self):
        t = self.make_table()
        assert pickle.loads(pickle.dumps(t)) == t

    def test_equality(self):
        t1 = self.make_table()
        t2 = self.make_table()
        assert t1 == t2
        assert t1.equals(t2)
        t2.truncate(9)
        assert t1 != t2
        assert t1 != treeseq.EdgeTable()
        assert t1 != None  # noqa: E711

    def test_equality_ignore_metadata(self):
        t1 = self.make_table()
        t2 = self.make_table()
        t2.packset_metadata([b""] * 10)
        assert not t1.equals(t2)
        assert t1.equals(t2, ignore_metadata=True)
        with pytest.raises(AssertionError):
            t1.assert_equals(t2)
        t1.assert_equals(t2, ignore_metadata=True)

    def test_append(self):
        t1 = self.make_table()
        t2 = treeseq.NodeTable()
        for row in t1:
            t2.append(row)
        assert t1 == t2

    def test_max_rows_increment(self):
        with pytest.raises(ValueError):
            treeseq.NodeTable(max_rows_increment=-1)
        t = treeseq.NodeTable(max_rows_increment=1024)
        t.add_row()
        assert t.max_rows == 1024
        assert t.max_rows_increment == 1024

    def test_asdict(self):
        t = self.make_table(3)
        d = t.asdict()
        assert set(d.keys()) == set(t.column_names) | {"metadata_schema"}
        assert d["metadata_schema"] == ""
        t2 = treeseq.NodeTable()
        t2.set_columns(**d)
        assert t == t2


class TestTableCollection:
    @pytest.mark.parametrize("sequence_length", [0, -1])
    def test_bad_sequence_length(self, sequence_length):
        with pytest.raises(ValueError):
            treeseq.TableCollection(sequence_length)

    def test_set_bad_sequence_length(self):
        tables = treeseq.TableCollection(1)
        with pytest.raises(ValueError):
            tables.sequence_length = 0
        assert tables.sequence_length == 1

    def test_table_references(self):
        tables = treeseq.TableCollection(1)
        assert isinstance(tables.nodes, treeseq.NodeTable)
        assert tables.nodes is tables.nodes
        with pytest.raises(AttributeError):
            tables.nodes = treeseq.NodeTable()

    def test_add_rows(self):
        tables = treeseq.TableCollection(1)
        assert tables.add_population_row() == 0
        assert tables.add_individual_row(flags=1, location=[1, 2]) == 0
        assert tables.add_node_row(flags=1, time=0, population=0, individual=0) == 0
        assert tables.add_node_row(time=1) == 1
        assert tables.add_edge_row(0, 1, 1, 0) == 0
        assert tables.add_site_row(0.5, "A") == 0
        assert tables.add_mutation_row(0, 0, "T", time=0.5) == 0
        assert tables.add_migration_row(0, 1, 0, 0, 0, 0.25) == 0
        assert tables.add_provenance("record") == 0
        assert tables.nodes[0].individual == 0
        assert tables.edges[0] == treeseq.EdgeTableRow(0, 1, 1, 0, b"")
        assert tables.mutations[0].time == 0.5
        tables.check_integrity()

    def test_add_empty_provenance(self):
        tables = treeseq.TableCollection(1)
        with pytest.raises(ValueError):
            tables.add_provenance("")

    def test_str(self):
        tables = simple_tables()
        s = str(tables)
        assert "nodes=4" in s
        assert "edges=5" in s

    def test_table_name_map(self):
        tables = treeseq.TableCollection(1)
        assert set(tables.table_name_map.keys()) == {
            "individuals",
            "nodes",
            "edges",
            "migrations",
            "sites",
            "mutations",
            "populations",
            "provenances",
        }

    def test_asdict_fromdict(self):
        tables = tsutil.all_fields_tables()
        d = tables.asdict()
        assert d["sequence_length"] == tables.sequence_length
        assert "indexes" in d
        other = treeseq.TableCollection.fromdict(d)
        other.assert_equals(tables)
        assert other.has_index()
        assert np.array_equal(other.edge_insertion_order, tables.edge_insertion_order)

    def test_pickle(self):
        tables = tsutil.all_fields_tables()
        other = pickle.loads(pickle.dumps(tables))
        assert tables == other
        assert other.has_index()

    def test_nbytes(self):
        tables = tsutil.all_fields_tables()
        assert tables.nbytes > sum(t.nbytes for t in tables.table_name_map.values())


class TestCopy:
    def test_copy_equal(self):
        tables = tsutil.all_fields_tables()
        for copy in [tables.copy(), tables.deep_copy()]:
            assert copy is not tables
            assert copy == tables
            assert copy.equals(tables)
            copy.assert_equals(tables)

    def test_copy_isolation(self):
        tables = tsutil.all_fields_tables()
        copy = tables.deep_copy()
        copy.nodes.add_row(time=100)
        copy.edges.truncate(1)
        copy.provenances.clear()
        copy.metadata = {"changed": True}
        assert copy != tables
        assert tables.nodes.num_rows == copy.nodes.num_rows - 1
        assert tables.edges.num_rows > 1
        assert tables.provenances.num_rows > 0
        assert tables.metadata == {
            "description": "a tree sequence with data in all fields"
        }

    def test_copy_keeps_index(self):
        tables = tsutil.single_tree_tables()
        copy = tables.deep_copy()
        assert copy.has_index()
        copy.edges.add_row(0, 1000, 0, 1)
        assert not copy.has_index()
        assert tables.has_index()


class TestEquality:
    def test_equal_empty(self):
        t1 = treeseq.TableCollection(1)
        t2 = treeseq.TableCollection(1)
        assert t1 == t2
        assert t1.equals(t2)
        t1.assert_equals(t2)

    def test_other_types(self):
        tables = treeseq.TableCollection(1)
        assert tables != []
        assert tables != tables.nodes
        with pytest.raises(AssertionError):
            tables.assert_equals(None)

    def test_sequence_length(self):
        t1 = treeseq.TableCollection(1)
        t2 = treeseq.TableCollection(2)
        assert t1 != t2
        with pytest.raises(AssertionError, match="Sequence Length"):
            t1.assert_equals(t2)

    def test_time_units(self):
        t1 = treeseq.TableCollection(1)
        t2 = treeseq.TableCollection(1)
        t2.time_units = "generations"
        assert t1 != t2

    def test_table_contents(self):
        t1 = simple_tables()
        t2 = simple_tables()
        t2.nodes.truncate(3)
        assert t1 != t2
        with pytest.raises(AssertionError, match="NodeTable"):
            t1.assert_equals(t2)

    def test_indexes_not_compared(self):
        t1 = tsutil.single_tree_tables()
        t2 = t1.copy()
        t2.drop_index()
        assert t1 == t2

    def test_ignore_metadata(self):
        t1 = simple_tables()
        t2 = simple_tables()
        t2.edges.packset_metadata([b"x"] * t2.edges.num_rows)
        assert not t1.equals(t2)
        assert t1.equals(t2, ignore_metadata=True)
        assert t1.equals(t2, treeseq.EqualityOptions.IGNORE_METADATA)
        t1.assert_equals(t2, ignore_metadata=True)

    def test_ignore_ts_metadata(self):
        t1 = simple_tables()
        t2 = simple_tables()
        t2.metadata_schema = treeseq.MetadataSchema.permissive_json()
        t2.metadata = {"a": 1}
        assert not t1.equals(t2)
        assert t1.equals(t2, ignore_ts_metadata=True)
        assert t1.equals(t2, treeseq.EqualityOptions.IGNORE_TS_METADATA)
        assert t1.equals(t2, treeseq.EqualityOptions.IGNORE_METADATA)
        with pytest.raises(AssertionError, match="Metadata schemas differ"):
            t1.assert_equals(t2)

    def test_ignore_provenance(self):
        t1 = simple_tables()
        t2 = simple_tables()
        t2.add_provenance("record")
        assert not t1.equals(t2)
        assert t1.equals(t2, ignore_provenance=True)
        assert t1.equals(t2, treeseq.EqualityOptions.IGNORE_PROVENANCE)
        t1.assert_equals(t2, ignore_provenance=True)

    def test_ignore_timestamps(self):
        t1 = simple_tables()
        t2 = simple_tables()
        t1.add_provenance("record", timestamp="2020")
        t2.add_provenance("record", timestamp="2021")
        assert not t1.equals(t2)
        assert t1.equals(t2, ignore_timestamps=True)
        assert t1.equals(t2, treeseq.EqualityOptions.IGNORE_TIMESTAMPS)
        with pytest.raises(AssertionError, match="ProvenanceTable"):
            t1.assert_equals(t2)
        t1.assert_equals(t2, ignore_timestamps=True)


class TestSort:
    def test_sort_edges(self):
        tables = simple_tables()
        tables.sort()
        edges = tables.edges
        parent_time = tables.nodes.time[edges.parent]
        keys = list(zip(parent_time, edges.parent, edges.child, edges.left))
        assert keys == sorted(keys)
        tables.check_integrity(treeseq.IntegrityCheckOptions.CHECK_EDGE_ORDERING)

    def test_sort_preserves_rows(self):
        tables = simple_tables()
        before = {(e.left, e.right, e.parent, e.child) for e in tables.edges}
        tables.sort()
        after = {(e.left, e.right, e.parent, e.child) for e in tables.edges}
        assert before == after

    def test_full_sort(self):
        t1 = simple_tables()
        t2 = simple_tables()
        t1.sort()
        t2.full_sort()
        assert t1 == t2

    def test_sort_drops_index(self):
        tables = tsutil.single_tree_tables()
        assert tables.has_index()
        tables.sort()
        assert not tables.has_index()

    def test_sort_sites_and_mutations(self):
        tables = simple_tables()
        tables.sites.add_row(5, "A")
        tables.sites.add_row(1, "C")
        tables.mutations.add_row(site=0, node=0, derived_state="T")
        tables.mutations.add_row(site=1, node=2, derived_state="G", time=1)
        tables.mutations.add_row(site=1, node=0, derived_state="A", parent=1, time=0)
        tables.sort()
        assert list(tables.sites.position) == [1, 5]
        assert list(tables.mutations.site) == [0, 0, 1]
        assert [m.derived_state for m in tables.mutations] == ["G", "A", "T"]
        assert list(tables.mutations.parent) == [-1, 0, -1]
        tables.check_integrity(treeseq.IntegrityCheckOptions.CHECK_MUTATION_ORDERING)

    def test_sort_mutations_by_time(self):
        tables = simple_tables()
        tables.sites.add_row(1, "A")
        tables.mutations.add_row(site=0, node=0, derived_state="T", time=0.5)
        tables.mutations.add_row(site=0, node=2, derived_state="G", time=1.5)
        tables.sort()
        assert list(tables.mutations.time) == [1.5, 0.5]

    def test_sort_migrations(self):
        tables = simple_tables()
        tables.populations.add_row()
        tables.populations.add_row()
        tables.migrations.add_row(0, 1, 0, 1, 0, time=2)
        tables.migrations.add_row(0, 1, 1, 0, 1, time=1)
        tables.sort()
        assert list(tables.migrations.time) == [1, 2]
        assert list(tables.migrations.node) == [1, 0]

    def test_bookmark_only_sorts_suffix(self):
        tables = simple_tables()
        # Rows before the bookmark are left as they are
        first = tables.edges[0]
        tables.sort(treeseq.Bookmark(edges=1))
        assert tables.edges[0] == first
        rest = tables.edges[1:]
        parent_time = tables.nodes.time[rest.parent]
        keys = list(zip(parent_time, rest.parent, rest.child, rest.left))
        assert keys == sorted(keys)

    @pytest.mark.parametrize(
        "name", ["individuals", "nodes", "populations", "provenances"]
    )
    def test_bad_bookmark_offset(self, name):
        tables = simple_tables()
        bookmark = treeseq.Bookmark(**{name: 1})
        with pytest.raises(treeseq.LibraryError) as info:
            tables.sort(bookmark)
        assert info.value.code == ErrorCode.SORT_OFFSET_NOT_SUPPORTED

    def test_bookmark_out_of_bounds(self):
        tables = simple_tables()
        with pytest.raises(treeseq.LibraryError) as info:
            tables.sort(treeseq.Bookmark(edges=tables.edges.num_rows + 1))
        assert info.value.code == ErrorCode.EDGE_OUT_OF_BOUNDS

    def test_partial_site_bookmark(self):
        tables = simple_tables()
        tables.sites.add_row(1, "A")
        tables.sites.add_row(2, "A")
        with pytest.raises(treeseq.LibraryError) as info:
            tables.sort(treeseq.Bookmark(sites=1))
        assert info.value.code == ErrorCode.SORT_OFFSET_NOT_SUPPORTED
        tables.sort(treeseq.Bookmark(sites=2))

    def test_integrity_checked(self):
        tables = simple_tables()
        tables.edges.add_row(0, 1, 0, 100)
        with pytest.raises(treeseq.LibraryError) as info:
            tables.sort()
        assert info.value.code == ErrorCode.NODE_OUT_OF_BOUNDS


class TestIndexes:
    def test_build_index(self):
        tables = simple_tables()
        tables.sort()
        assert not tables.has_index()
        assert tables.edge_insertion_order is None
        tables.build_index()
        assert tables.has_index()
        num_edges = tables.edges.num_rows
        for order in [tables.edge_insertion_order, tables.edge_removal_order]:
            assert order.dtype == np.int32
            assert sorted(order) == list(range(num_edges))

    def test_index_ordering(self):
        tables = tsutil.wf_sim(6, 8, seed=5, num_loci=10)
        tables.sort()
        tables.build_index()
        edges = tables.edges
        time = tables.nodes.time
        insertion = tables.edge_insertion_order
        keys = [
            (edges.left[e], -time[edges.parent[e]], edges.parent[e], edges.child[e])
            for e in insertion
        ]
        assert keys == sorted(keys)
        removal = tables.edge_removal_order
        keys = [
            (edges.right[e], time[edges.parent[e]], edges.parent[e], edges.child[e])
            for e in removal
        ]
        assert keys == sorted(keys)

    def test_unsorted_edges(self):
        tables = simple_tables()
        with pytest.raises(treeseq.LibraryError) as info:
            tables.build_index()
        assert info.value.code in (
            ErrorCode.EDGES_NOT_SORTED_PARENT_TIME,
            ErrorCode.EDGES_NONCONTIGUOUS_PARENTS,
            ErrorCode.EDGES_NOT_SORTED_CHILD,
            ErrorCode.EDGES_NOT_SORTED_LEFT,
        )
        assert not tables.has_index()

    def test_drop_index(self):
        tables = tsutil.single_tree_tables()
        tables.drop_index()
        assert not tables.has_index()
        tables.drop_index()
        assert not tables.has_index()

    def test_edge_change_invalidates(self):
        tables = tsutil.single_tree_tables()
        tables.edges.set_columns(**tables.edges.asdict())
        assert not tables.has_index()

    def test_other_changes_keep_index(self):
        tables = tsutil.single_tree_tables()
        tables.sites.add_row(1, "A")
        tables.nodes.add_row(time=10)
        assert tables.has_index()

    def test_set_indexes(self):
        tables = tsutil.single_tree_tables()
        indexes = tables.indexes
        tables.drop_index()
        tables.indexes = indexes
        assert tables.has_index()
        with pytest.raises(ValueError):
            tables.indexes = treeseq.TableCollectionIndexes(
                edge_insertion_order=[0], edge_removal_order=[0]
            )

    def test_indexes_asdict(self):
        tables = tsutil.single_tree_tables()
        d = tables.indexes.asdict()
        assert set(d.keys()) == {"edge_insertion_order", "edge_removal_order"}
        tables.drop_index()
        assert tables.indexes.asdict() == {}


class TestIntegrity:
    def check_error(self, tables, code, options=0):
        with pytest.raises(treeseq.LibraryError) as info:
            tables.check_integrity(options)
        assert info.value.code == code
        assert info.value.code < 0

    def test_valid(self):
        tables = simple_tables()
        assert tables.check_integrity() == 0
        tables.sort()
        tables.build_index()
        assert tables.check_integrity(treeseq.IntegrityCheckOptions.CHECK_TREES) == 2

    def test_node_out_of_bounds(self):
        tables = simple_tables()
        tables.edges.add_row(0, 1, 10, 0)
        self.check_error(tables, ErrorCode.NODE_OUT_OF_BOUNDS)

    def test_null_parent(self):
        tables = simple_tables()
        tables.edges.add_row(0, 1, treeseq.NULL, 0)
        self.check_error(tables, ErrorCode.NULL_PARENT)

    def test_bad_time_ordering(self):
        tables = simple_tables()
        tables.edges.add_row(0, 1, 0, 2)
        self.check_error(tables, ErrorCode.BAD_NODE_TIME_ORDERING)

    def test_bad_interval(self):
        tables = simple_tables()
        tables.edges.add_row(2, 2, 2, 0)
        self.check_error(tables, ErrorCode.BAD_EDGE_INTERVAL)

    def test_right_greater_than_sequence_length(self):
        tables = simple_tables()
        tables.edges.add_row(0, 11, 2, 0)
        self.check_error(tables, ErrorCode.RIGHT_GREATER_SEQ_LENGTH)

    def test_left_less_than_zero(self):
        tables = simple_tables()
        tables.edges.add_row(-1, 1, 2, 0)
        self.check_error(tables, ErrorCode.LEFT_LESS_ZERO)

    def test_nonfinite_time(self):
        tables = simple_tables()
        tables.nodes.add_row(time=np.inf)
        self.check_error(tables, ErrorCode.TIME_NONFINITE)

    def test_population_out_of_bounds(self):
        tables = simple_tables()
        tables.nodes.add_row(population=0)
        self.check_error(tables, ErrorCode.POPULATION_OUT_OF_BOUNDS)

    def test_site_position(self):
        tables = simple_tables()
        tables.sites.add_row(10, "A")
        self.check_error(tables, ErrorCode.BAD_SITE_POSITION)

    def test_unsorted_sites(self):
        tables = simple_tables()
        tables.sites.add_row(2, "A")
        tables.sites.add_row(1, "A")
        tables.check_integrity()
        self.check_error(
            tables,
            ErrorCode.UNSORTED_SITES,
            treeseq.IntegrityCheckOptions.CHECK_SITE_ORDERING,
        )

    def test_duplicate_sites(self):
        tables = simple_tables()
        tables.sites.add_row(1, "A")
        tables.sites.add_row(1, "A")
        tables.check_integrity(treeseq.IntegrityCheckOptions.CHECK_SITE_ORDERING)
        self.check_error(
            tables,
            ErrorCode.DUPLICATE_SITE_POSITION,
            treeseq.IntegrityCheckOptions.CHECK_SITE_DUPLICATES,
        )

    def test_mutation_parent_after_child(self):
        tables = simple_tables()
        tables.sites.add_row(1, "A")
        tables.mutations.add_row(0, 0, "T", parent=1)
        tables.mutations.add_row(0, 0, "G")
        tables.check_integrity()
        self.check_error(
            tables,
            ErrorCode.MUTATION_PARENT_AFTER_CHILD,
            treeseq.IntegrityCheckOptions.CHECK_MUTATION_ORDERING,
        )

    def test_mutation_parent_equal(self):
        tables = simple_tables()
        tables.sites.add_row(1, "A")
        tables.mutations.add_row(0, 0, "T", parent=0)
        self.check_error(tables, ErrorCode.MUTATION_PARENT_EQUAL)

    def test_mutation_time_younger_than_node(self):
        tables = simple_tables()
        tables.sites.add_row(1, "A")
        tables.mutations.add_row(0, 2, "T", time=0.5)
        self.check_error(tables, ErrorCode.MUTATION_TIME_YOUNGER_THAN_NODE)

    def test_unsorted_edges(self):
        tables = simple_tables()
        tables.check_integrity()
        with pytest.raises(treeseq.LibraryError):
            tables.check_integrity(treeseq.IntegrityCheckOptions.CHECK_EDGE_ORDERING)

    def test_not_indexed(self):
        tables = simple_tables()
        tables.sort()
        self.check_error(
            tables,
            ErrorCode.TABLES_NOT_INDEXED,
            treeseq.IntegrityCheckOptions.CHECK_INDEXES,
        )

    def test_contradictory_children(self):
        tables = treeseq.TableCollection(1)
        tables.nodes.add_row(flags=treeseq.NODE_IS_SAMPLE, time=0)
        tables.nodes.add_row(time=1)
        tables.nodes.add_row(time=2)
        tables.edges.add_row(0, 1, 1, 0)
        tables.edges.add_row(0, 1, 2, 0)
        tables.build_index()
        self.check_error(
            tables,
            ErrorCode.BAD_EDGES_CONTRADICTORY_CHILDREN,
            treeseq.IntegrityCheckOptions.CHECK_TREES,
        )
        with pytest.raises(treeseq.LibraryError):
            tables.tree_sequence()


class TestClear:
    def make_tables(self):
        tables = tsutil.all_fields_tables()
        tables.edges.metadata_schema = treeseq.MetadataSchema.permissive_json()
        return tables

    def test_clear(self):
        tables = self.make_tables()
        tables.clear()
        for name, table in tables.table_name_map.items():
            if name == "provenances":
                assert table.num_rows > 0
            else:
                assert table.num_rows == 0
        assert not tables.has_index()
        assert tables.edges.metadata_schema == treeseq.MetadataSchema.permissive_json()
        assert tables.metadata_schema == treeseq.MetadataSchema.permissive_json()
        assert len(tables.metadata_bytes) > 0

    def test_clear_provenance(self):
        tables = self.make_tables()
        tables.clear(treeseq.ClearOptions.CLEAR_PROVENANCE)
        assert tables.provenances.num_rows == 0

    def test_clear_metadata_schemas(self):
        tables = self.make_tables()
        tables.clear(treeseq.ClearOptions.CLEAR_METADATA_SCHEMAS)
        for name, table in tables.table_name_map.items():
            if name != "provenances":
                assert table.metadata_schema == treeseq.MetadataSchema.null()
        assert tables.metadata_schema == treeseq.MetadataSchema.permissive_json()

    def test_clear_ts_metadata(self):
        tables = self.make_tables()
        tables.clear(treeseq.ClearOptions.CLEAR_TS_METADATA_AND_SCHEMA)
        assert tables.metadata_schema == treeseq.MetadataSchema.null()
        assert tables.metadata_bytes == b""
        assert tables.edges.metadata_schema == treeseq.MetadataSchema.permissive_json()

    def test_clear_all(self):
        tables = self.make_tables()
        tables.clear(
            treeseq.ClearOptions.CLEAR_PROVENANCE
            | treeseq.ClearOptions.CLEAR_METADATA_SCHEMAS
            | treeseq.ClearOptions.CLEAR_TS_METADATA_AND_SCHEMA
        )
        expected = treeseq.TableCollection(tables.sequence_length)
        expected.time_units = tables.time_units
        tables.assert_equals(expected)


class TestFree:
    def test_free(self):
        tables = simple_tables()
        tables.free()
        with pytest.raises(ValueError):
            tables.nodes
        with pytest.raises(ValueError):
            tables.has_index()
        with pytest.raises(ValueError):
            tables.add_node_row()

    def test_free_twice(self):
        tables = simple_tables()
        tables.free()
        tables.free()
        with pytest.raises(ValueError):
            tables.edges

    def test_free_does_not_affect_copies(self):
        tables = tsutil.single_tree_tables()
        copy = tables.copy()
        ts = tables.tree_sequence()
        tables.free()
        assert copy.nodes.num_rows == 3
        assert ts.num_nodes == 3
        assert ts.first().num_roots == 1


class TestTreeSequenceConversion:
    def test_not_indexed(self):
        tables = simple_tables()
        tables.sort()
        with pytest.raises(treeseq.LibraryError) as info:
            tables.tree_sequence()
        assert info.value.code == ErrorCode.TABLES_NOT_INDEXED

    def test_build_indexes_option(self):
        tables = simple_tables()
        tables.sort()
        ts = tables.tree_sequence(treeseq.TreeSequenceOptions.BUILD_INDEXES)
        assert ts.num_trees == 2
        assert tables.has_index()

    def test_tables_unchanged(self):
        tables = tsutil.all_fields_tables()
        copy = tables.copy()
        ts = tables.tree_sequence()
        tables.assert_equals(copy)
        ts.tables.assert_equals(copy)
        ts.dump_tables().assert_equals(copy)

    def test_original_tables_remain_usable(self):
        tables = tsutil.single_tree_tables()
        ts = tables.tree_sequence()
        tables.nodes.add_row(time=5)
        assert tables.nodes.num_rows == 4
        assert ts.num_nodes == 3


class TestImmutableTables:
    @pytest.fixture
    def ts(self):
        return tsutil.all_fields_ts()

    def test_add_row(self, ts):
        with pytest.raises(treeseq.ImmutableTableError):
            ts.tables.nodes.add_row(time=1)
        with pytest.raises(treeseq.ImmutableTableError):
            ts.tables.add_edge_row(0, 1, 0, 1)
        with pytest.raises(ValueError):
            ts.tables.add_provenance("record")

    @pytest.mark.parametrize(
        "method, args",
        [
            ("sort", []),
            ("build_index", []),
            ("drop_index", []),
            ("clear", []),
            ("simplify", [[0, 1]]),
        ],
    )
    def test_collection_methods(self, ts, method, args):
        with pytest.raises(treeseq.ImmutableTableError):
            getattr(ts.tables, method)(*args)

    def test_table_methods(self, ts):
        with pytest.raises(treeseq.ImmutableTableError):
            ts.tables.edges.clear()
        with pytest.raises(treeseq.ImmutableTableError):
            ts.tables.edges.truncate(0)
        with pytest.raises(treeseq.ImmutableTableError):
            ts.tables.nodes.time = np.zeros(ts.num_nodes)
        with pytest.raises(treeseq.ImmutableTableError):
            ts.tables.sites.metadata_schema = treeseq.MetadataSchema.permissive_json()

    def test_set_attributes(self, ts):
        with pytest.raises(treeseq.ImmutableTableError):
            ts.tables.sequence_length = 100
        with pytest.raises(treeseq.ImmutableTableError):
            ts.tables.time_units = "years"
        with pytest.raises(treeseq.ImmutableTableError):
            ts.tables.metadata = {}

    def test_arrays_read_only(self, ts):
        time = ts.tables.nodes.time
        assert not time.flags.writeable
        with pytest.raises(ValueError):
            time[0] = 1
        assert not ts.tables.edge_insertion_order.flags.writeable

    def test_dump_tables_mutable(self, ts):
        tables = ts.dump_tables()
        tables.nodes.add_row(time=100)
        assert tables.nodes.time.flags.writeable
        assert tables.nodes.num_rows == ts.num_nodes + 1


class TestLibraryError:
    def test_codes_unique_with_messages(self):
        codes = [value for name, value in vars(ErrorCode).items() if name.isupper()]
        assert len(codes) == len(set(codes))
        for code in codes:
            assert code < 0
            assert not exceptions.strerror(code).startswith("Unknown error code")

    def test_unknown_code(self):
        assert exceptions.strerror(-12345) == "Unknown error code -12345"

    def test_code_and_detail(self):
        err = treeseq.LibraryError(ErrorCode.NODE_OUT_OF_BOUNDS, "edge 3")
        assert err.code == ErrorCode.NODE_OUT_OF_BOUNDS
        assert str(err) == "Node out of bounds: edge 3"
        assert isinstance(err, treeseq.TreeSeqException)

    def test_bad_sort_offset_code(self):
        tables = tsutil.two_tree_tables()
        tables.sites.add_row(0.5, "A")
        tables.sites.add_row(0.6, "A")
        with pytest.raises(treeseq.LibraryError) as info:
            tables.sort(treeseq.Bookmark(sites=1))
        assert info.value.code == ErrorCode.SORT_OFFSET_NOT_SUPPORTED
        assert str(info.value).endswith(": sites")
