# This file makes trueautomation.core a Python package and exposes key classes.

from .config_loader import ConfigLoader
from .session import Builder, SessionBootstrap, SessionHandle

__all__ = [
    "ConfigLoader",
    "Builder",
    "SessionBootstrap",
    "SessionHandle",
]
