"""Recursive Fast Dispersion Measure Transform (FDMT)."""

import logging
import math
from time import time

import numba
import numpy as np
from prometheus_client import Summary

from sps_fdmt import InvalidBlockShape, InvalidDMRange
from sps_fdmt.blocks import Band, InputBlock, OutputBlock, split

log = logging.getLogger(__name__)

fdmt_processing_time = Summary(
    "fdmt_transform_seconds",
    "Duration of running the FDMT on a single block of intensity data",
)


@numba.njit(parallel=True, boundscheck=False)
def merge(head, tail, out, y_min, head_y_min, tail_y_min, delta, head_delta, tail_delta):
    """
    Combine the transforms of the head and tail of a band into the transform of
    the whole band.

    Parameters:
    head (ndarray): Transform of the head, shape (n_head_trials, n_time).
    tail (ndarray): Transform of the tail, shape (n_tail_trials, n_time).
    out (ndarray): Output array, shape (n_trials, n_time). Every row is written.
    y_min (int): Trial of the first row of `out`.
    head_y_min (int): Trial of the first row of `head`.
    tail_y_min (int): Trial of the first row of `tail`.
    delta (float): Dispersion delay across the whole band at unit DM.
    head_delta (float): Dispersion delay across the head at unit DM.
    tail_delta (float): Dispersion delay across the tail at unit DM.

    Returns: out
    """
    n_samp = out.shape[1]
    for i in numba.prange(out.shape[0]):
        y = y_min + i
        # yh = delay across head band
        yh = math.floor(y * head_delta / delta + 0.5)
        # yt = delay across tail band
        yt = math.floor(y * tail_delta / delta + 0.5)
        # yb = delay at interface between head and tail
        yb = y - yh - yt
        ih = yh - head_y_min
        it = yt - tail_y_min
        # The tail starts yh + yb samples after the top of the band
        shift = yh + yb
        for j in range(n_samp):
            out[i, j] = head[ih, j] + tail[it, (j + shift) % n_samp]
    return out


def rescale_trial(y, delta, sub_delta):
    """Convert a trial delay across a band into a delay across one of its sub-bands."""
    return math.trunc(y * sub_delta / delta + 0.5)


def transform_recursive(block, y_min, y_max):
    """
    Transform a block over the trial delays y_min..y_max (inclusive), in samples
    across the block's band.

    Parameters
    ----------
    block: InputBlock
        The block to transform.

    y_min: int
        First trial delay.

    y_max: int
        Last trial delay.

    Returns
    -------
    out: OutputBlock
        The freshly allocated transform of the block.
    """
    out = OutputBlock.allocate(block, y_min, y_max)

    if block.n_channels == 1:
        # Only the first trial of a single channel is filled
        out.data[0] = block.data[0]
        return out

    head, tail = split(block)
    delta = block.band.delta

    transformed_head = transform_recursive(
        head,
        rescale_trial(y_min, delta, head.band.delta),
        rescale_trial(y_max, delta, head.band.delta),
    )
    transformed_tail = transform_recursive(
        tail,
        rescale_trial(y_min, delta, tail.band.delta),
        rescale_trial(y_max, delta, tail.band.delta),
    )

    merge(
        transformed_head.data,
        transformed_tail.data,
        out.data,
        out.y_min,
        transformed_head.y_min,
        transformed_tail.y_min,
        delta,
        head.band.delta,
        tail.band.delta,
    )
    return out


def transform(data, f_hi, f_lo, t_samp, dm_min, dm_max, time_axis=1, num_threads=None):
    """
    Computes the DM transform of a block of intensity data.

    Parameters
    ==========
    data: np.ndarray
        2-D intensity data. The channel along the frequency axis with index 0
        must be the highest frequency channel.
    f_hi: float
        Frequency of the top of the band, in MHz
    f_lo: float
        Frequency of the bottom of the band, in MHz
    t_samp: float
        Sampling time, in seconds
    dm_min: float
        Lowest DM that must be covered, in pc/cc
    dm_max: float
        Highest DM that must be covered, in pc/cc
    time_axis: int
        Axis of `data` that is time. 1 for data shaped (nchan, nsamp), 0 for
        data shaped (nsamp, nchan).
    num_threads: int
        Number of threads used to merge trials. Uses numba's current setting
        if None.

    Returns
    =======
    out: OutputBlock
        The transform, with `out.data` shaped (n_trials, nsamp) and trials given
        as delays in samples across the full band. `out.dms` gives the DM of
        each row.
    """
    if dm_min < 0:
        raise InvalidDMRange(f"Minimum DM must not be negative, got {dm_min}")
    if dm_max < dm_min:
        raise InvalidDMRange(
            f"Maximum DM ({dm_max}) must not be below the minimum ({dm_min})"
        )
    if time_axis not in (0, 1):
        raise InvalidBlockShape(f"time_axis must be 0 or 1, got {time_axis}")

    data = np.asarray(data)
    if data.ndim != 2:
        raise InvalidBlockShape(f"Input data must be 2-D, got {data.ndim} dimensions")
    if time_axis == 0:
        data = data.T

    block = InputBlock(data=data, band=Band(f_hi, f_lo, t_samp))
    dm_step = block.dm_step

    # Convert DMs to delays in sample space
    y_min = math.trunc(dm_min / dm_step)
    y_max = math.ceil(dm_max / dm_step)
    log.debug(
        f"FDMT of {block.n_channels} channels x {block.n_time} samples between "
        f"{f_lo} and {f_hi} MHz, trials {y_min} to {y_max} "
        f"(dm_step = {dm_step:.4f} pc/cc)"
    )

    if num_threads is not None:
        numba.set_num_threads(min(num_threads, numba.config.NUMBA_NUM_THREADS))

    t1 = time()
    with fdmt_processing_time.time():
        out = transform_recursive(block, y_min, y_max)
    log.debug(f"FDMT time: {time() - t1:.2f} s")

    return out
