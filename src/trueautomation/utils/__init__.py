# This file makes trueautomation.utils a Python package and exposes key utilities.

from .locators import by_name, by_ta, escape_css, set_inner_html
from .logger import setup_logger

__all__ = [
    "by_name",
    "by_ta",
    "escape_css",
    "set_inner_html",
    "setup_logger",
]
