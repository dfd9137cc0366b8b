import ast
import logging
import os

from omegaconf import OmegaConf

log_stream = logging.StreamHandler()
log = logging.getLogger(__name__)

DATE_FORMAT = "%b %d %H:%M:%S"


def load_config(config_file="sps_fdmt_config.yml", cli_config_string="{}"):
    """
    Builds the FDMT configuration from up to three layers.

    The packaged `config_file` is overridden by a file of the same name in the
    current directory, which is in turn overridden by `cli_config_string`.
    Missing files are skipped.

    The keys read by `run-fdmt` are:
    ```
    fdmt:
      f_hi, f_lo: band edges, in MHz
      t_samp: sampling time, in seconds
      dm_min, dm_max: DM range to cover, in pc/cc
      time_axis: axis of the input data that is time
      num_threads: number of threads used to merge trials
    logging:
      format: string for the `logging.formatter`
      level: logging level for the root logger
      file_logging: whether to also log to `file`
      file: path of the log file
      modules:
        module_name: logging level for the logger `module_name`
    ```

    Parameters
    ----------
    config_file: str
        Name of config file. Default: "sps_fdmt_config.yml"

    cli_config_string: str
        String defining a python dictionary of overrides. Default: "{}"

    Returns
    -------
    The merged `omegaconf` configuration object.
    """
    layers = []
    for config_dir in (os.path.dirname(__file__), os.getcwd()):
        config_path = os.path.join(config_dir, config_file)
        if os.path.isfile(config_path):
            layers.append(OmegaConf.load(config_path))
    layers.append(OmegaConf.create(ast.literal_eval(cli_config_string)))
    return OmegaConf.merge(*layers)


def apply_logging_config(config):
    """
    Sets up the root logger from the 'logging' section of the configuration.

    Messages go to stderr and, when `file_logging` is set, also to `file`.
    Loggers listed under `modules` get their own level.
    """
    logging_config = config.logging
    formatter = logging.Formatter(fmt=logging_config.format, datefmt=DATE_FORMAT)

    if log_stream not in logging.root.handlers:
        logging.root.addHandler(log_stream)
    log_stream.setFormatter(formatter)

    if logging_config.get("file_logging", False):
        log_file = logging_config.get("file", "./logs/sps_fdmt.log")
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logging.root.addHandler(file_handler)

    logging.root.setLevel(logging_config.level.upper())
    log.debug("Set default level to: %s", logging_config.level)

    for module_name, level in logging_config.get("modules", {}).items():
        logging.getLogger(module_name).setLevel(level.upper())
        log.debug("Set %s level to: %s", module_name, level)
