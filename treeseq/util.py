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
Module responsible for various utility functions used in other modules.
"""
import dataclasses
import json

import numpy as np

from treeseq import UNKNOWN_TIME


# Extra methods for dataclasses
class Dataclass:
    def replace(self, **kwargs):
        """
        Return a new instance of this dataclass, with the specified attributes
        overwritten by new values.

        :return: A new instance of the same type
        """
        return dataclasses.replace(self, **kwargs)

    def asdict(self, **kwargs):
        """
        Return a new dict which maps field names to their corresponding values
        in this dataclass.
        """
        return dataclasses.asdict(self, **kwargs)


def canonical_json(obj):
    """
    Returns string of encoded JSON with keys sorted and whitespace removed to enable
    byte-level comparison of encoded data.

    :param Any obj: Python object to encode
    :return: The encoded string
    :rtype: str
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"))


def is_unknown_time(time):
    """
    Returns True for values equal to the specific NaN used as
    :data:`UNKNOWN_TIME`. A NaN is not equal to itself, so the comparison
    is done on the bit pattern. Other NaN values return False. Either single
    floats or arrays can be passed.

    :param time: Value or array to check.
    :type time: Union[float, array-like]
    :return: A single boolean or array of booleans the same shape as ``time``.
    :rtype: Union[bool, numpy.ndarray[bool]]
    """
    return np.asarray(time, dtype=np.float64).view(np.uint64) == np.float64(
        UNKNOWN_TIME
    ).view(np.uint64)


def safe_np_int_cast(int_array, dtype, copy=False):
    """
    Casts the specified array to the specified integer dtype, checking bounds
    so that values can't silently wrap around.

    If copy=False, and the original array is a numpy array of exactly the same dtype
    required, simply return the original rather than making a copy.
    """
    if not isinstance(int_array, np.ndarray):
        int_array = np.array(int_array)
        copy = False
    if int_array.size == 0:
        return int_array.astype(dtype, copy=copy)  # Allow empty arrays of any type
    try:
        return int_array.astype(dtype, casting="safe", copy=copy)
    except TypeError:
        if int_array.dtype == np.dtype("O"):
            raise TypeError("Cannot convert to a rectangular array.")
        bounds = np.iinfo(dtype)
        if np.any(int_array < bounds.min) or np.any(int_array > bounds.max):
            raise OverflowError(f"Cannot convert safely to {dtype} type")
        if int_array.dtype.kind == "i" and np.dtype(dtype).kind == "u":
            # Allow casting from int to unsigned int, since we have checked bounds
            casting = "unsafe"
        else:
            # Raise a TypeError when we try to convert from, e.g., a float.
            casting = "same_kind"
        return int_array.astype(dtype, casting=casting, copy=copy)


def check_offsets(offset, data_length, num_rows):
    """
    Checks that the specified offset array describes ``num_rows`` consecutive
    slices of a ragged column of length ``data_length``, raising a ValueError
    if not. Returns the offsets as an array of dtype uint64.
    """
    offset = np.asarray(offset)
    if offset.ndim != 1 or offset.shape[0] != num_rows + 1:
        raise ValueError(
            f"Offset array must have length num_rows + 1 = {num_rows + 1}"
        )
    if offset.size > 0 and offset.dtype.kind == "i" and np.any(offset < 0):
        raise ValueError("Offsets must be non-negative")
    offset = offset.astype(np.uint64)
    if offset[0] != 0:
        raise ValueError("Offsets must begin at zero")
    if offset[-1] != data_length:
        raise ValueError("Final offset must be equal to the length of the data")
    if np.any(np.diff(offset.astype(np.int64)) < 0):
        raise ValueError("Offsets must be non-decreasing")
    return offset


def take_with_offset(rows, data, offset):
    """
    Returns the (data, offset) pair for the ragged column values in the
    specified rows, in the order given.
    """
    rows = np.asarray(rows, dtype=np.int64)
    starts = offset[:-1].astype(np.int64)[rows]
    lens = np.diff(offset.astype(np.int64))[rows]
    new_offset = np.zeros(rows.shape[0] + 1, dtype=np.uint64)
    new_offset[1:] = np.cumsum(lens)
    if rows.shape[0] == 0:
        return data[:0].copy(), new_offset
    index = np.repeat(starts - new_offset[:-1].astype(np.int64), lens) + np.arange(
        int(new_offset[-1])
    )
    return data[index], new_offset


#
# Pack/unpack lists of data into flattened numpy arrays.
#


def pack_bytes(data):
    """
    Packs the specified list of bytes into a flattened numpy array of 8 bit integers
    and corresponding offsets.

    :param list[bytes] data: The list of bytes values to encode.
    :return: The tuple (packed, offset) of numpy arrays representing the flattened
        input data and offsets.
    :rtype: numpy.ndarray (dtype=np.int8), numpy.ndarray (dtype=np.uint64)
    """
    offset = np.zeros(len(data) + 1, dtype=np.uint64)
    offset[1:] = np.cumsum([len(value) for value in data])
    column = np.frombuffer(b"".join(bytes(value) for value in data), dtype=np.int8)
    return column.copy(), offset


def unpack_bytes(packed, offset):
    """
    Unpacks a list of bytes from the specified numpy arrays of packed byte
    data and corresponding offsets.

    :param numpy.ndarray packed: The flattened array of byte values.
    :param numpy.ndarray offset: The array of offsets into the ``packed`` array.
    :return: The list of bytes values unpacked from the parameter arrays.
    :rtype: list[bytes]
    """
    return [
        packed[int(offset[j]) : int(offset[j + 1])].tobytes()
        for j in range(offset.shape[0] - 1)
    ]


def pack_strings(strings, encoding="utf8"):
    """
    Packs the specified list of strings into a flattened numpy array of 8 bit integers
    and corresponding offsets using the specified text encoding.

    :param list[str] data: The list of strings to encode.
    :param str encoding: The text encoding to use when converting string data
        to bytes.
    :return: The tuple (packed, offset) of numpy arrays representing the flattened
        input data and offsets.
    :rtype: numpy.ndarray (dtype=np.int8), numpy.ndarray (dtype=np.uint64)
    """
    return pack_bytes([s.encode(encoding) for s in strings])


def unpack_strings(packed, offset, encoding="utf8"):
    """
    Unpacks a list of strings from the specified numpy arrays of packed byte
    data and corresponding offsets using the specified text encoding.
    """
    return [b.decode(encoding) for b in unpack_bytes(packed, offset)]


def pack_arrays(list_of_lists, dtype=np.float64):
    """
    Packs the specified list of numeric lists into a flattened numpy array
    of the specified dtype with corresponding offsets.

    :param list[list] list_of_lists: The list of numeric lists to encode.
    :param dtype: The dtype for the packed array, defaults to float64
    :return: The tuple (packed, offset) of numpy arrays representing the flattened
        input data and offsets.
    :rtype: numpy.array (dtype=dtype), numpy.array (dtype=np.uint64)
    """
    offset = np.zeros(len(list_of_lists) + 1, dtype=np.uint64)
    offset[1:] = np.cumsum([len(value) for value in list_of_lists])
    if len(list_of_lists) == 0:
        return np.zeros(0, dtype=dtype), offset
    data = np.concatenate(
        [np.asarray(value, dtype=dtype).reshape(-1) for value in list_of_lists]
        + [np.zeros(0, dtype=dtype)]
    )
    return data.astype(dtype, copy=False), offset


def unpack_arrays(packed, offset):
    """
    Unpacks a list of arrays from the specified numpy array of packed
    data and its associated offset array.
    """
    return [
        packed[int(offset[j]) : int(offset[j + 1])]
        for j in range(offset.shape[0] - 1)
    ]
