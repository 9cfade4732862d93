"""config.py

Interface for Paglop's configuration and config files.
"""

from __future__ import annotations

from collections import UserDict
from pathlib import Path
from string import Template
from typing import Any, Union

import toml

import paglop
from paglop.exceptions import ConfigDecodeError, ConfigError, ConfigReadError
from paglop.util import map_reduce

_configvars = {
    "botversion": paglop.__version__
}


class ConfigDict(UserDict):  # pylint: disable=too-many-ancestors
    """Wrapper around a `dict` useful for deserialized config files.

    Do not use this class directly, use `Config` instead.
    """

    def __getitem__(self, key):
        value = map_reduce(key, self.data)
        if isinstance(value, str):
            value = Template(value).safe_substitute(_configvars)
        elif isinstance(value, list):
            value = [
                Template(elem).safe_substitute(_configvars) if isinstance(elem, str) else elem
                for elem in value
            ]
        elif isinstance(value, dict) and not isinstance(value, ConfigDict):
            value = ConfigDict(value)
        return value

    def __setitem__(self, key, value):
        *parents, tail = key.split(".")
        target = self.data
        for parent in parents:
            target = target.setdefault(parent, {})
        if isinstance(value, ConfigDict):
            value = value.data
        target[tail] = value

    def __contains__(self, key):
        try:
            map_reduce(key, self.data)
        except (KeyError, TypeError):
            return False
        return True

    def __repr__(self):
        return f"<{self.__class__.__name__} {super().__repr__()}>"

    def get(self, key: str, default: Any = None) -> Any:
        """Extends `dict.get` with dotted-subkey access.

        See `Config` for details on dotted-subkey access.

        Parameters
        ----------
        key : str
            They key to look up; may be a dotted-subkey.
        default : Any, optional
            Value to return if `key` was not found. Will *not* undergo
            substitution.
        """
        try:
            return self[key]
        except (KeyError, TypeError):
            return default


# pylint: disable=too-many-ancestors
class Config(ConfigDict):
    """A wrapper around a parsed TOML configuration file.

    Provides typical `dict`-like access with default values. Since these config
    files very often contain nested sections, methods that take a dictionary
    key as an argument have been expanded to allow dot-delimited keys that
    specify sequential access into nested sections. For example::

        self.get('Markov.LeaderLength')
        # Is the same as:
        self.get('Markov').get('LeaderLength')

    In addition, string values are automatically subject to template expansion
    for some global variables, such as ``$botversion``.

    Parameters
    ----------
    path : str or Path object
        Path to a TOML configuration file.
    *args, **kwargs
        Any extra arguments are passed to the `ConfigDict` constructor.

    Attributes
    ----------
    path : Path
        The file associated with this config, i.e. where it will be loaded from.
    """

    def __init__(self, path: Union[str, Path], *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.path = Path(path)

    @property
    def name(self) -> str:
        """The name of this config, i.e. its file name without suffix."""
        return self.path.stem

    def load(self):
        """Load (or reload) the associated TOML config file.

        Reloading will update any existing keys and add any keys that were not
        present originally.

        Raises
        ------
        ConfigReadError
            If the config file could not be read.
        ConfigDecodeError
            If there were any errors while parsing the config file.
        """
        try:
            self.update(toml.load(self.path))
        except toml.TomlDecodeError as ex:
            raise ConfigDecodeError(
                f"Failed to parse config file at '{self.path}'",
                config_name=self.name) from ex
        except OSError as ex:
            raise ConfigReadError(
                f"Could not read config file at '{self.path}'",
                config_name=self.name) from ex

    def require(self, *keys: str):
        """Ensure that each of the given (dotted) keys is set.

        Raises
        ------
        ConfigError
            If any of the keys is missing or empty.
        """
        for key in keys:
            if not self.get(key):
                raise ConfigError(f"'{key}' is not defined", config_name=self.name)
