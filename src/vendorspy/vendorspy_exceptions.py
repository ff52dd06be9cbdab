"""
This file contains various exceptions used by vendorspy
"""


class VendorspyException(Exception):
    """
    Exceptions raised by vendorspy while loading its configuration
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
