import importlib.metadata
import logging

__version__ = importlib.metadata.version("sps-fdmt")

log = logging.getLogger(__package__)


class InvalidBandOrder(ValueError):
    """Exception raised when the top of a band lies below its bottom."""


class InvalidDMRange(ValueError):
    """Exception raised when the requested DM search range is negative or inverted."""


class InvalidBlockShape(ValueError):
    """Exception raised when the input data cannot be interpreted as a
    (time, frequency) block.
    """


from sps_fdmt.blocks import Band, InputBlock, OutputBlock, split  # noqa: E402
from sps_fdmt.fdmt import transform  # noqa: E402

__all__ = [
    "Band",
    "InputBlock",
    "InvalidBandOrder",
    "InvalidBlockShape",
    "InvalidDMRange",
    "OutputBlock",
    "split",
    "transform",
]
