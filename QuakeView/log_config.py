import logging
import os

LOG_FILE = "quakeview.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(log_dir: str = "app_log", level: str = "INFO") -> str:
    """
    Send all QuakeView logging to <log_dir>/quakeview.log

    The terminal belongs to the TUI, so nothing is logged to the console.

    Returns:
        Path of the log file
    """
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    log_path = os.path.join(log_dir, LOG_FILE)
    logging.basicConfig(
        filename=log_path,
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Keep urllib3 connection chatter out of the file
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return log_path
