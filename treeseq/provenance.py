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
Provenance records. Each row of a provenance table holds a timestamp and a
free text record; records written by treeseq itself are JSON documents
describing the operation and the environment it ran in, validated against
``provenance.schema.json``.
"""
import copy
import datetime
import importlib.metadata
import json
import os.path
import platform

import jsonschema

import treeseq.exceptions as exceptions
from . import _version

__version__ = _version.treeseq_version

SCHEMA_VERSION = "1.0.0"
SOFTWARE_NAME = "treeseq"

# Distributions whose versions are reported in every environment record.
LIBRARIES = ("kastore", "numpy")


def check_record(record):
    """
    Raises a ValueError if the specified provenance record is missing or
    empty. Records are otherwise free text.
    """
    if record is None or len(record) == 0:
        raise ValueError("Provenance records must not be empty")


def get_environment(extra_libs=None, include_treeseq=True):
    """
    Returns a dictionary describing the operating system, the Python
    interpreter and the versions of the libraries treeseq depends on.
    Entries in ``extra_libs`` are added to the libraries section.
    """
    libs = {
        name: {"version": importlib.metadata.version(name)} for name in LIBRARIES
    }
    if include_treeseq:
        libs[SOFTWARE_NAME] = {"version": __version__}
    if extra_libs is not None:
        libs.update(extra_libs)
    return {
        "os": {
            "system": platform.system(),
            "node": platform.node(),
            "release": platform.release(),
            "version": platform.version(),
            "machine": platform.machine(),
        },
        "python": {
            "implementation": platform.python_implementation(),
            "version": platform.python_version(),
        },
        "libraries": libs,
    }


def get_provenance_dict(parameters=None):
    """
    Returns a provenance document for an operation performed by treeseq
    with the specified parameters.
    """
    return {
        "schema_version": SCHEMA_VERSION,
        "software": {"name": SOFTWARE_NAME, "version": __version__},
        "parameters": parameters,
        "environment": get_environment(include_treeseq=False),
    }


def make_record(command, **parameters):
    """
    Returns the JSON text of a provenance document for the named command.
    """
    return json.dumps(get_provenance_dict({"command": command, **parameters}))


def timestamp():
    """
    Returns the current time as an ISO 8601 string in UTC, as used for
    provenance records.
    """
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


_schema = None


def get_schema():
    """
    Returns a copy of the provenance schema as a dict.
    """
    global _schema
    if _schema is None:
        schema_file = os.path.join(os.path.dirname(__file__), "provenance.schema.json")
        with open(schema_file) as f:
            _schema = json.load(f)
    return copy.deepcopy(_schema)


def validate_provenance(provenance):
    """
    Validates the specified dict-like object against the provenance schema.

    :param dict provenance: The provenance document to validate.
    :raises ProvenanceValidationError: If the document does not conform to
        the schema.
    """
    try:
        jsonschema.validate(provenance, get_schema())
    except jsonschema.exceptions.ValidationError as ve:
        raise exceptions.ProvenanceValidationError(str(ve)) from ve
