"""Data blocks and band geometry used by the FDMT recursion."""

import math

import numpy as np
from attr import attrib, attrs, cmp_using
from attr.validators import instance_of

from sps_fdmt import InvalidBandOrder, InvalidBlockShape
from sps_fdmt.constants import KDM, MIN_ACCUMULATOR_BYTES


def accumulator_dtype(dtype):
    """
    Returns the dtype that channel sums of `dtype` data are accumulated in.

    Types narrower than 32 bits are widened within their kind so that summing
    many channels does not wrap around. Wider types are kept as they are.
    """
    dtype = np.dtype(dtype)
    if dtype.itemsize >= MIN_ACCUMULATOR_BYTES:
        return dtype
    if dtype.kind == "f":
        return np.dtype(np.float32)
    if dtype.kind == "u":
        return np.dtype(np.uint32)
    return np.dtype(np.int32)


@attrs(frozen=True, slots=True)
class Band:
    """
    The frequency extent and time sampling of a block of channels.

    Attributes
    ----------
    f_hi: float
        Frequency of the top of the band, in MHz

    f_lo: float
        Frequency of the bottom of the band, in MHz

    t_samp: float
        Sampling time, in seconds
    """

    f_hi = attrib(converter=float)
    f_lo = attrib(converter=float)
    t_samp = attrib(converter=float)

    @f_lo.validator
    def _validate_order(self, attribute, value):
        if self.f_hi < value:
            raise InvalidBandOrder(
                f"Top of the band ({self.f_hi} MHz) must not be below "
                f"the bottom ({value} MHz)"
            )

    @t_samp.validator
    def _validate_t_samp(self, attribute, value):
        if not value > 0:
            raise ValueError(f"Sampling time must be positive, got {value}")

    @property
    def delta(self):
        """Dispersion delay across the band at unit DM, in seconds."""
        return KDM * (self.f_lo**-2 - self.f_hi**-2)

    @property
    def dm_step(self):
        """Natural DM step of FDMT for this band, in pc/cc.

        Infinite for a band of zero width, which has no dispersion across it.
        """
        if self.delta == 0:
            return math.inf
        return self.t_samp / self.delta

    def delay_samples(self, dm):
        """Delay across the band at the given DM, in units of samples."""
        return dm / self.dm_step

    def trial_dms(self, trials):
        """DM in pc/cc of each trial delay (in samples across this band)."""
        trials = np.asarray(trials, dtype=float)
        if self.delta == 0:
            # Every trial of a zero-width band is the zero-DM trial
            return np.zeros_like(trials)
        return trials * self.dm_step


@attrs(slots=True)
class InputBlock:
    """
    A block of intensity data covering a contiguous run of channels.

    The data is always laid out channel-major, with shape (n_channels, n_time),
    and the first row is the channel at the top of the band. Blocks produced by
    `split` are views of their parent's data.
    """

    data = attrib(type=np.ndarray, eq=cmp_using(eq=np.array_equal))
    band = attrib(validator=instance_of(Band))

    @data.validator
    def _validate_data(self, attribute, value):
        if np.ndim(value) != 2:
            raise InvalidBlockShape(
                f"Input block must be 2-D, got {np.ndim(value)} dimensions"
            )
        if value.shape[0] < 1 or value.shape[1] < 1:
            raise InvalidBlockShape(
                f"Input block needs at least one channel and one sample, "
                f"got shape {value.shape}"
            )

    @property
    def n_channels(self):
        return self.data.shape[0]

    @property
    def shape(self):
        return self.data.shape

    def __getitem__(self, index):
        return self.data[index]

    @property
    def n_time(self):
        return self.data.shape[1]

    @property
    def channel_step(self):
        """Width of a single channel, in MHz."""
        return (self.band.f_hi - self.band.f_lo) / self.n_channels

    @property
    def dm_step(self):
        return self.band.dm_step

    def split(self):
        return split(self)


@attrs(slots=True)
class OutputBlock:
    """
    The dedispersed time series of one recursion node.

    Attributes
    ----------
    data: np.ndarray
        Array of shape (n_trials, n_time). Row k holds the time series for the
        trial delay y_min + k.

    y_min: int
        First trial, as a delay in samples across `band`

    y_max: int
        Last trial (inclusive), as a delay in samples across `band`

    band: Band
        The band the trial delays are measured across
    """

    dm_axis = 0
    time_axis = 1

    data = attrib(type=np.ndarray, eq=cmp_using(eq=np.array_equal))
    y_min = attrib(converter=int)
    y_max = attrib(converter=int)
    band = attrib(validator=instance_of(Band))

    @y_max.validator
    def _validate_trials(self, attribute, value):
        if value < self.y_min:
            raise ValueError(f"y_max ({value}) must not be below y_min ({self.y_min})")
        if self.data.shape[self.dm_axis] != value - self.y_min + 1:
            raise ValueError(
                f"Output data has {self.data.shape[self.dm_axis]} trials, "
                f"expected {value - self.y_min + 1}"
            )

    @classmethod
    def allocate(cls, block, y_min, y_max):
        """Zero-initialised output covering trials y_min..y_max of `block`."""
        data = np.zeros(
            (y_max - y_min + 1, block.n_time), dtype=accumulator_dtype(block.data.dtype)
        )
        return cls(data=data, y_min=y_min, y_max=y_max, band=block.band)

    @property
    def shape(self):
        return self.data.shape

    def __getitem__(self, index):
        return self.data[index]

    @property
    def n_trials(self):
        return self.y_max - self.y_min + 1

    @property
    def n_time(self):
        return self.data.shape[self.time_axis]

    @property
    def trials(self):
        """Trial delays in samples, one per row of `data`."""
        return np.arange(self.y_min, self.y_max + 1)

    @property
    def dms(self):
        """DM of each trial in pc/cc."""
        return self.band.trial_dms(self.trials)

    @property
    def dm_range(self):
        dm_lo, dm_hi = self.band.trial_dms([self.y_min, self.y_max])
        return float(dm_lo), float(dm_hi)


def split(block):
    """
    Splits a block into a head and a tail at the channel where half of the
    dispersion delay across the band has been accumulated.

    Parameters
    ----------
    block: InputBlock
        Block with at least two channels.

    Returns
    -------
    head: InputBlock
        The channels at the top of the band.

    tail: InputBlock
        The remaining channels at the bottom of the band.
    """
    if block.n_channels < 2:
        raise InvalidBlockShape("Cannot split a block with a single channel")
    band = block.band
    step = block.channel_step

    f_mid = (0.5 * band.f_lo**-2 + 0.5 * band.f_hi**-2) ** -0.5
    i = int(round((band.f_hi - f_mid) / step))
    # Keep both halves non-empty for very wide fractional bandwidths
    i = min(max(i, 1), block.n_channels - 1)

    head_band = Band(band.f_hi, band.f_hi - i * step, band.t_samp)
    tail_band = Band(max(band.f_hi - (i + 1) * step, band.f_lo), band.f_lo, band.t_samp)

    head = InputBlock(data=block.data[:i], band=head_band)
    tail = InputBlock(data=block.data[i:], band=tail_band)
    return head, tail
