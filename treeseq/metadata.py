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
Classes for metadata decoding, encoding and validation.

The tables store metadata as opaque bytes. Two ways of giving those bytes
meaning are provided here: a :class:`MetadataRoundtrip` capability supplied
by the caller for each row, and a JSON :class:`MetadataSchema` attached to a
table and validated with jsonschema.
"""
from __future__ import annotations

import abc
import collections
import copy
import functools
import json
import pprint
from typing import Any
from typing import Mapping

import jsonschema

import treeseq.exceptions as exceptions
import treeseq.util as util


class MetadataRoundtrip(metaclass=abc.ABCMeta):
    """
    Superclass of caller supplied metadata types. A subclass knows how to
    turn an instance into bytes and how to build an instance back from the
    stored bytes. Either direction may fail, in which case a
    :class:`MetadataRoundtripError` is raised by the table methods.
    """

    @abc.abstractmethod
    def encode(self) -> bytes:
        raise NotImplementedError  # pragma: no cover

    @classmethod
    @abc.abstractmethod
    def decode(cls, data: bytes) -> MetadataRoundtrip:
        raise NotImplementedError  # pragma: no cover


class JSONMetadata(MetadataRoundtrip):
    """
    A :class:`MetadataRoundtrip` holding a JSON object, stored as canonical
    JSON text.
    """

    def __init__(self, value: Mapping[str, Any] | None = None) -> None:
        self.value = {} if value is None else dict(value)

    def __eq__(self, other):
        return isinstance(other, JSONMetadata) and self.value == other.value

    def __repr__(self):
        return f"JSONMetadata({self.value!r})"

    def encode(self) -> bytes:
        return util.canonical_json(self.value).encode()

    @classmethod
    def decode(cls, data: bytes) -> JSONMetadata:
        value = json.loads(data.decode())
        if not isinstance(value, dict):
            raise TypeError(f"Expected a JSON object, found {type(value).__name__}")
        return cls(value)


def encode_metadata(value: MetadataRoundtrip) -> bytes:
    """
    Encodes the specified :class:`MetadataRoundtrip` instance, wrapping any
    failure in a :class:`MetadataRoundtripError`.
    """
    try:
        encoded = value.encode()
    except Exception as e:
        raise exceptions.MetadataRoundtripError(
            f"Could not encode metadata of type {type(value).__name__}: {e}"
        ) from e
    if not isinstance(encoded, (bytes, bytearray)):
        raise exceptions.MetadataRoundtripError(
            f"encode() must return bytes, found {type(encoded).__name__}"
        )
    return bytes(encoded)


def decode_metadata(data: bytes, decoder: type[MetadataRoundtrip]) -> Any:
    """
    Decodes the specified bytes using the ``decode`` classmethod of the
    specified :class:`MetadataRoundtrip` subclass. Empty metadata decodes
    to None.
    """
    if len(data) == 0:
        return None
    try:
        return decoder.decode(bytes(data))
    except Exception as e:
        raise exceptions.MetadataRoundtripError(
            f"Could not decode metadata using {decoder.__name__}: {e}"
        ) from e


def to_metadata_bytes(metadata, schema: MetadataSchema) -> bytes:
    """
    Returns the bytes to store for a row's metadata argument. A
    :class:`MetadataRoundtrip` instance is encoded directly, anything else
    goes through the table's schema.
    """
    if isinstance(metadata, MetadataRoundtrip):
        return encode_metadata(metadata)
    if metadata is None:
        metadata = schema.empty_value
    return schema.validate_and_encode_row(metadata)


def replace_root_refs(obj):
    if type(obj) is list:
        return [replace_root_refs(j) for j in obj]
    elif type(obj) is dict:
        ret = {k: replace_root_refs(v) for k, v in obj.items()}
        if ret.get("$ref") == "#":
            ret["$ref"] = "#/definitions/root"
        return ret
    else:
        return obj


# Schemas are Draft7 schemas with a required top-level codec.
TreeSeqMetadataSchemaValidator = jsonschema.validators.extend(
    jsonschema.validators.Draft7Validator
)
deref_meta_schema: Mapping[str, Any] = copy.deepcopy(
    TreeSeqMetadataSchemaValidator.META_SCHEMA
)
# Only the top level requires a codec, so references to the top-level schema
# are rewritten to point at a copy in the definitions.
deref_meta_schema = replace_root_refs(deref_meta_schema)
deref_meta_schema["definitions"]["root"] = copy.deepcopy(deref_meta_schema)
deref_meta_schema["codec"] = {"type": "string"}
deref_meta_schema["required"] = ["codec"]
deref_meta_schema["properties"]["type"] = {"enum": ["object", ["object", "null"]]}
# Change the schema URL to avoid jsonschema's cache
deref_meta_schema["$schema"] = "http://json-schema.org/draft-07/schema#treeseq"
TreeSeqMetadataSchemaValidator.META_SCHEMA = deref_meta_schema


class AbstractMetadataCodec(metaclass=abc.ABCMeta):
    """
    Superclass of all MetadataCodecs.
    """

    def __init__(self, schema: Mapping[str, Any]) -> None:
        raise NotImplementedError  # pragma: no cover

    @classmethod
    def is_schema_trivial(self, schema: Mapping) -> bool:
        return False

    @abc.abstractmethod
    def encode(self, obj: Any) -> bytes:
        raise NotImplementedError  # pragma: no cover

    @abc.abstractmethod
    def decode(self, encoded: bytes) -> Any:
        raise NotImplementedError  # pragma: no cover


codec_registry = {}


def register_metadata_codec(
    codec_cls: type[AbstractMetadataCodec], codec_id: str
) -> None:
    """
    Register a metadata codec class under the identifier used for it in the
    ``codec`` key of a schema, replacing any class previously registered
    under the same identifier.

    :param str codec_id: String to use to refer to the codec in the schema.
    """
    codec_registry[codec_id] = codec_cls


class JSONCodec(AbstractMetadataCodec):
    @classmethod
    def is_schema_trivial(self, schema: Mapping) -> bool:
        return len(schema.get("properties", {})) == 0

    def __init__(self, schema: Mapping[str, Any]) -> None:
        # Default values are filled in on decode, top level only
        self.defaults = {
            key: prop["default"]
            for key, prop in schema.get("properties", {}).items()
            if "default" in prop
        }

    def encode(self, obj: Any) -> bytes:
        try:
            return util.canonical_json(obj).encode()
        except TypeError as e:
            raise exceptions.MetadataEncodingError(
                f"Could not encode metadata: {e}"
            ) from e

    def decode(self, encoded: bytes) -> Any:
        if len(encoded) == 0:
            result = {}
        else:
            result = json.loads(bytes(encoded).decode())
        if isinstance(result, dict):
            return dict(self.defaults, **result)
        else:
            return result


register_metadata_codec(JSONCodec, "json")


class NOOPCodec(AbstractMetadataCodec):
    def __init__(self, schema: Mapping[str, Any]) -> None:
        pass

    def encode(self, data: bytes) -> bytes:
        return bytes(data)

    def decode(self, data: bytes) -> bytes:
        return bytes(data)


def validate_bytes(data: bytes | None) -> None:
    if data is not None and not isinstance(data, (bytes, bytearray)):
        raise TypeError(
            f"If no encoding is set metadata should be bytes, found {type(data)}"
        )


class MetadataSchema:
    """
    Class for validating, encoding and decoding metadata.

    :param dict schema: A dict containing a valid JSONSchema object, or None
        for raw bytes metadata.
    """

    def __init__(self, schema: Mapping[str, Any] | None) -> None:
        self._schema = schema
        self._bypass_validation = False

        if schema is None:
            self._string = ""
            self._validate_row = validate_bytes
            self.codec_instance = NOOPCodec({})
            self.empty_value = b""
        else:
            try:
                TreeSeqMetadataSchemaValidator.check_schema(schema)
            except jsonschema.exceptions.SchemaError as ve:
                raise exceptions.MetadataSchemaValidationError(str(ve)) from ve
            try:
                codec_cls = codec_registry[schema["codec"]]
            except KeyError:
                raise exceptions.MetadataSchemaValidationError(
                    f"Unrecognised metadata codec '{schema['codec']}'. "
                    f"Valid options are {str(list(codec_registry.keys()))}."
                )
            self.codec_instance = codec_cls(schema)
            self._string = util.canonical_json(schema)
            self._validate_row = TreeSeqMetadataSchemaValidator(schema).validate
            self._bypass_validation = codec_cls.is_schema_trivial(schema)
            # If None is allowed at the top level it is used as the empty value
            if "type" in schema and "null" in schema["type"]:
                self.empty_value = None
            else:
                self.empty_value = {}

    def __repr__(self) -> str:
        return self._string

    def __str__(self) -> str:
        if isinstance(self._schema, collections.OrderedDict):
            s = pprint.pformat(dict(self._schema))
        else:
            s = pprint.pformat(self._schema)
        return f"treeseq.MetadataSchema({s})"

    def __eq__(self, other) -> bool:
        return isinstance(other, MetadataSchema) and self._string == other._string

    @property
    def schema(self) -> Mapping[str, Any] | None:
        # Return a copy to avoid unintentional mutation
        return copy.deepcopy(self._schema)

    def asdict(self) -> Mapping[str, Any] | None:
        """
        Returns a dict representation of this schema.
        """
        return self.schema

    def validate_and_encode_row(self, row: Any) -> bytes:
        """
        Validate a row of metadata against this schema and return the encoded
        representation (bytes) using the codec specified in the schema.
        """
        if not self._bypass_validation:
            try:
                self._validate_row(row)
            except jsonschema.exceptions.ValidationError as ve:
                raise exceptions.MetadataValidationError(str(ve)) from ve
        return self.encode_row(row)

    def encode_row(self, row: Any) -> bytes:
        """
        Encode a row of metadata to bytes without validating it.
        """
        return self.codec_instance.encode(row)

    def decode_row(self, row: bytes) -> Any:
        """
        Decode an encoded row (bytes) of metadata using the codec specified in
        the schema. No validation against the schema is performed.
        """
        return self.codec_instance.decode(row)

    @staticmethod
    def permissive_json():
        """
        The simplest, permissive JSON schema. Only specifies the JSON codec and has
        no constraints on the properties.
        """
        return MetadataSchema({"codec": "json"})

    @staticmethod
    def null():
        """
        The null schema which defines no properties and results in raw bytes
        being returned on accessing metadata column.
        """
        return MetadataSchema(None)


# Often many replicate tree sequences are processed with identical schemas, so cache them
@functools.lru_cache(maxsize=128)
def parse_metadata_schema(encoded_schema: str) -> MetadataSchema:
    """
    Create a schema object from its string encoding.

    :param str encoded_schema: The string encoded schema.
    :return: A MetadataSchema.
    """
    if encoded_schema == "":
        return MetadataSchema.null()
    else:
        try:
            decoded = json.loads(
                encoded_schema, object_pairs_hook=collections.OrderedDict
            )
        except json.decoder.JSONDecodeError:
            raise ValueError(f"Metadata schema is not JSON, found {encoded_schema}")
        return MetadataSchema(decoded)


__all__ = [
    "MetadataRoundtrip",
    "JSONMetadata",
    "MetadataSchema",
    "encode_metadata",
    "decode_metadata",
    "parse_metadata_schema",
    "register_metadata_codec",
]
