import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("homegate")


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logging for command line use. Library code never calls this."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler()
        ]
    )

    # handle urllib3 connection pool chatter
    urllib3_logger = logging.getLogger("urllib3")
    urllib3_logger.setLevel(logging.WARNING)
