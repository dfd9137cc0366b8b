import logging

import click
import numpy as np

from sps_fdmt.config_utils import apply_logging_config, load_config
from sps_fdmt.constants import FREQ_BOTTOM, FREQ_TOP, TSAMP
from sps_fdmt.fdmt import transform

log = logging.getLogger(__name__)


def override(value, config_value):
    return config_value if value is None else value


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--data-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Numpy .npy file containing a 2-D block of intensity data.",
    required=True,
)
@click.option(
    "--output-file",
    type=click.Path(dir_okay=False),
    help="Numpy .npz file the transform is written to.",
    required=True,
)
@click.option(
    "--config-file",
    default="sps_fdmt_config.yml",
    type=str,
    help="Name of used config. Default: sps_fdmt_config.yml",
)
@click.option(
    "--config-options",
    default="{}",
    type=str,
    help=(
        "Additional options that overwrite the config options. Provide a string that would define a python dictionary"
        """For example use --config-options '{"fdmt": {"dm_max": 100.0}}' """
    ),
)
@click.option("--f-hi", type=float, help="Top of the band in MHz. Overrides config.")
@click.option("--f-lo", type=float, help="Bottom of the band in MHz. Overrides config.")
@click.option("--t-samp", type=float, help="Sampling time in s. Overrides config.")
@click.option("--dm-min", type=float, help="Minimum DM. Overrides config.")
@click.option("--dm-max", type=float, help="Maximum DM. Overrides config.")
@click.option(
    "--time-axis",
    type=click.IntRange(0, 1),
    help="Axis of the input data that is time. Overrides config.",
)
@click.option(
    "--num-threads",
    type=int,
    help="Number of threads used to merge trials. Overrides config.",
)
def run_fdmt(
    data_file,
    output_file,
    config_file,
    config_options,
    f_hi,
    f_lo,
    t_samp,
    dm_min,
    dm_max,
    time_axis,
    num_threads,
):
    """Run the FDMT on a block of intensity data stored in a .npy file."""
    config = load_config(config_file, config_options)
    apply_logging_config(config)
    fdmt_config = config.fdmt

    f_hi = override(f_hi, fdmt_config.get("f_hi", FREQ_TOP))
    f_lo = override(f_lo, fdmt_config.get("f_lo", FREQ_BOTTOM))
    t_samp = override(t_samp, fdmt_config.get("t_samp", TSAMP))
    dm_min = override(dm_min, fdmt_config.get("dm_min", 0.0))
    dm_max = override(dm_max, fdmt_config.get("dm_max", 0.0))
    time_axis = override(time_axis, fdmt_config.get("time_axis", 1))
    num_threads = override(num_threads, fdmt_config.get("num_threads", None))

    data = np.load(data_file)
    log.info(f"Loaded data with shape {data.shape}.")

    out = transform(
        data,
        f_hi,
        f_lo,
        t_samp,
        dm_min,
        dm_max,
        time_axis=time_axis,
        num_threads=num_threads,
    )
    dm_lo, dm_hi = out.dm_range
    log.info(
        f"Computed {out.n_trials} trials from DM {dm_lo:.3f} to {dm_hi:.3f} pc/cc."
    )

    np.savez(
        output_file,
        dedisp=out.data,
        dms=out.dms,
        y_min=out.y_min,
        y_max=out.y_max,
    )
    log.info(f"Saved transform to {output_file}")


if __name__ == "__main__":
    run_fdmt()
