"""
Multi-purpose logger for vendorspy.

Every record is emitted as a JSON-serialized LogLine so downstream log
collectors can parse caller information without a custom formatter.
"""

import inspect
import logging
from datetime import datetime

from pydantic import BaseModel


class LogLine(BaseModel):
    """
    Represents a line in the vendorspy log
    """

    time: str
    level: str
    caller_file: str
    caller_name: str
    caller_line: int
    message: str


class VendorspyLogger:
    """
    Logger class
    """

    def __init__(self, name: str = "vendorspy") -> None:
        self.logger = logging.getLogger(name)
        if self.logger.level == logging.NOTSET:
            self.logger.setLevel(logging.INFO)

    def log(self, debug_message: str, level: int, sanitized_error_message: str = "") -> None:
        """
        Log the debug and sanitized messages using the logger
        """
        debug_message = debug_message.replace("'", '"').replace("\n", " ")
        sanitized_error_message = sanitized_error_message.replace("'", '"').replace("\n", " ")
        if sanitized_error_message:
            debug_message = f"{debug_message} ({sanitized_error_message})"

        caller_frame = inspect.currentframe().f_back
        caller_file = caller_frame.f_code.co_filename.replace("\\", "/").split("/")[-1]
        caller_name = caller_frame.f_code.co_name
        caller_line = caller_frame.f_lineno

        line = LogLine(
            time=str(datetime.now()),
            level=logging.getLevelName(level),
            caller_file=caller_file,
            caller_name=caller_name,
            caller_line=caller_line,
            message=debug_message,
        )
        self.logger.log(level=level, msg=line.model_dump_json())
