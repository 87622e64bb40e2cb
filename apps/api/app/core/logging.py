import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=(level or "INFO").upper(), format=LOG_FORMAT)
