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
Reading and writing table collections in the kastore based ``.trees``
file format. Each column is stored as a named array in the store, along
with a small record of the format name and version.
"""
import logging
import uuid

import kastore
import numpy as np

import treeseq
import treeseq.exceptions as exceptions

logger = logging.getLogger(__name__)

FORMAT_NAME = "treeseq.trees"
FORMAT_VERSION = (1, 0)

# Column keys that may be absent from a file; all others are required. Metadata
# is optional only where another column fixes the number of rows.
OPTIONAL_KEYS = {
    "edges/metadata",
    "edges/metadata_offset",
    "migrations/metadata",
    "migrations/metadata_offset",
    "mutations/time",
}


def _encode_text(text):
    return np.frombuffer(text.encode(), dtype=np.int8)


def _decode_text(array, key):
    try:
        return np.asarray(array, dtype=np.int8).tobytes().decode()
    except UnicodeDecodeError as err:
        raise exceptions.FileFormatError(f"Key '{key}' is not valid UTF-8") from err


def dump(tables, file_or_path):
    """
    Writes the specified table collection to the given path or file object.
    The edge indexes are stored if the tables are indexed.
    """
    data = {
        "format/name": _encode_text(FORMAT_NAME),
        "format/version": np.array(FORMAT_VERSION, dtype=np.uint32),
        "uuid": _encode_text(str(uuid.uuid4())),
        "sequence_length": np.array([tables.sequence_length], dtype=np.float64),
        "time_units": _encode_text(tables.time_units),
        "metadata": np.frombuffer(tables.metadata_bytes, dtype=np.int8),
        "metadata_schema": _encode_text(repr(tables.metadata_schema)),
    }
    for name, table in tables.table_name_map.items():
        for column, value in table.asdict().items():
            if column == "metadata_schema":
                value = _encode_text(value)
            data[f"{name}/{column}"] = value
    if tables.has_index():
        indexes = tables.indexes
        data["indexes/edge_insertion_order"] = indexes.edge_insertion_order
        data["indexes/edge_removal_order"] = indexes.edge_removal_order
    kastore.dump(data, file_or_path)
    logger.debug(
        f"Wrote {len(data)} arrays in format version "
        f"{FORMAT_VERSION[0]}.{FORMAT_VERSION[1]}"
    )


def _check_format(data):
    for key in ["format/name", "format/version", "sequence_length"]:
        if key not in data:
            raise exceptions.FileFormatError(f"Required key '{key}' not found")
    name = _decode_text(data["format/name"], "format/name")
    if name != FORMAT_NAME:
        raise exceptions.FileFormatError(f"Unknown file format '{name}'")
    version = data["format/version"]
    if len(version) != 2:
        raise exceptions.FileFormatError("Malformed format version")
    if version[0] < FORMAT_VERSION[0]:
        raise exceptions.VersionTooOldError()
    if version[0] > FORMAT_VERSION[0]:
        raise exceptions.VersionTooNewError()
    if len(data["sequence_length"]) != 1:
        raise exceptions.FileFormatError("Malformed sequence_length")


def _tables_dict(data):
    tables_dict = {
        "sequence_length": float(data["sequence_length"][0]),
        "time_units": _decode_text(
            data.get("time_units", _encode_text(treeseq.TIME_UNITS_UNKNOWN)),
            "time_units",
        ),
        "metadata": np.asarray(data.get("metadata", []), dtype=np.int8).tobytes(),
        "metadata_schema": _decode_text(
            data.get("metadata_schema", []), "metadata_schema"
        ),
    }
    table_classes = {
        "individuals": treeseq.IndividualTable,
        "nodes": treeseq.NodeTable,
        "edges": treeseq.EdgeTable,
        "migrations": treeseq.MigrationTable,
        "sites": treeseq.SiteTable,
        "mutations": treeseq.MutationTable,
        "populations": treeseq.PopulationTable,
        "provenances": treeseq.ProvenanceTable,
    }
    for name, table_class in table_classes.items():
        columns = {}
        for column in table_class.column_names + ["metadata_schema"]:
            key = f"{name}/{column}"
            if key in data:
                value = data[key]
                if column == "metadata_schema":
                    value = _decode_text(value, key)
                columns[column] = value
            elif column != "metadata_schema" and key not in OPTIONAL_KEYS:
                raise exceptions.FileFormatError(f"Required key '{key}' not found")
        tables_dict[name] = columns

    insertion = data.get("indexes/edge_insertion_order")
    removal = data.get("indexes/edge_removal_order")
    if (insertion is None) != (removal is None):
        raise exceptions.FileFormatError("Both edge indexes must be present")
    if insertion is not None:
        tables_dict["indexes"] = {
            "edge_insertion_order": insertion,
            "edge_removal_order": removal,
        }
    return tables_dict


def load(file_or_path):
    """
    Reads a table collection from the specified path or file object.

    :raises FileFormatError: If the file is not in the ``.trees`` format or
        is missing required data.
    :raises VersionTooOldError: If the file was written in an older major
        version of the format.
    :raises VersionTooNewError: If the file was written in a newer major
        version of the format.
    """
    try:
        with kastore.load(file_or_path, read_all=True) as store:
            data = dict(store)
    except kastore.FileFormatError as err:
        raise exceptions.FileFormatError(str(err)) from err
    _check_format(data)
    tables_dict = _tables_dict(data)
    try:
        tables = treeseq.TableCollection.fromdict(tables_dict)
    except (ValueError, TypeError) as err:
        raise exceptions.FileFormatError(f"Bad column data: {err}") from err
    version = data["format/version"]
    logger.debug(
        f"Read tables with {tables.nodes.num_rows} nodes and "
        f"{tables.edges.num_rows} edges in format version {version[0]}.{version[1]}"
    )
    return tables


__all__ = []
