"""exceptions.py

Exceptions specific to Paglop.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union


class PaglopException(Exception):
    """Base exception for Paglop.

    Can be used to catch any exception that Paglop may throw.
    """


# Config


class ConfigError(PaglopException):
    """Base exception for configuration errors.

    Attributes
    ----------
    config_name : str
        The name of the config file, without its suffix.
    """

    def __init__(self, *args, config_name: str):
        super().__init__(*args)
        self.config_name = config_name


class ConfigReadError(ConfigError):
    """A config file could not be read."""


class ConfigDecodeError(ConfigError):
    """A config file could not be parsed."""


# Corpus


class CorpusLoadError(PaglopException):
    """The startup corpus could not be loaded.

    Raised when the corpus directory cannot be listed or one of its files
    cannot be opened. A chain built from a partial corpus is not worth running
    with, so this is fatal at startup.

    Attributes
    ----------
    path : Path
        The directory or file that failed.
    """

    def __init__(self, *args, path: Union[str, Path]):
        super().__init__(*args)
        self.path = Path(path)
