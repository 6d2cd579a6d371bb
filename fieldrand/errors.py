"""
fieldrand/errors.py

Exception types raised by the toolkit.
"""


class InvalidArgument(ValueError):
    """An argument is outside the domain a function is defined on."""
