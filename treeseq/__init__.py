# MIT License
#
# Copyright (c) 2018-2019 Tskit Developers
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
import numpy as np

#: Special reserved value representing a null ID.
NULL = -1

#: Node flag value indicating that it is a sample.
NODE_IS_SAMPLE = 1

#: Constant representing the forward direction of travel (i.e.,
#: increasing genomic coordinate values).
FORWARD = 1

#: Constant representing the reverse direction of travel (i.e.,
#: decreasing genomic coordinate values).
REVERSE = -1

#: Special NAN value used to indicate unknown mutation times. Compare
#: with :func:`is_unknown_time`, as NAN values are never equal.
UNKNOWN_TIME = float(np.array(0x7FF811136E10F13A, dtype=np.uint64).view(np.float64))

#: The default time units string.
TIME_UNITS_UNKNOWN = "unknown"

from treeseq.exceptions import *  # NOQA
from treeseq.provenance import __version__  # NOQA
from treeseq.provenance import validate_provenance  # NOQA
from treeseq.util import is_unknown_time  # NOQA
from treeseq.metadata import *  # NOQA
from treeseq.tables import *  # NOQA
from treeseq.trees import *  # NOQA
import treeseq.formats  # NOQA
