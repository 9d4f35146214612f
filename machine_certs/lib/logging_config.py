"""JSON logging for provisioning runs.

Bootstrap, issuance and descriptor steps log through LOGGER; each record is
one JSON object on stderr.
"""

import logging

from pythonjsonlogger import jsonlogger

LOGGER_NAME = "machine_certs"
LOG_FORMAT = "%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Emits only the keys an operator needs to follow a provisioning run.

    ``levelname`` is reported as ``level``; module, process and thread
    attributes are dropped.
    """

    allowed_fields = frozenset(
        {
            "timestamp",
            "level",
            "message",
            "exc_info",
            "funcName",
            "lineno",
        }
    )

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["level"] = log_record.pop("levelname")

        for key in [key for key in log_record if key not in self.allowed_fields]:
            log_record.pop(key)


def _setup_logger() -> logging.Logger:
    """Attach the JSON stream handler to the machine_certs logger once."""
    logger = logging.getLogger(LOGGER_NAME)

    if any(isinstance(h.formatter, CustomJsonFormatter) for h in logger.handlers):
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(CustomJsonFormatter(fmt=LOG_FORMAT, timestamp=True))

    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    # Library and script records stay out of the root logger's handlers
    logger.propagate = False

    return logger


LOGGER = _setup_logger()
