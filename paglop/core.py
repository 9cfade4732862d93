"""core.py

Paglop's core wires everything together: it reads the configuration, sets up
logging, teaches the Markov chain its corpus, and hands the chain to the IRC
connection for the rest of the bot's life.
"""

from __future__ import annotations

import asyncio
import logging
import logging.config
import signal
from copy import deepcopy
from pathlib import Path
from typing import Union

import appdirs

from paglop.config import Config
from paglop.corpus import LineLogger, initialize_chain
from paglop.handler import DEFAULT_REPLY_WORDS, MessageHandler
from paglop.markov import ChainSettings
from paglop.protocol.irc import IRCClient, configure

# Minimal initial logging format for any messages before the config is read and
# user logging configuration is applied.
logging.basicConfig(
    style="{",
    format="{asctime} {levelname:7} {message}",
    datefmt="%T",
    level=logging.ERROR,
)

CONFIG_NAME = "paglop"


def default_config_path() -> Path:
    """Return the path of the config file used when none is given."""
    config_dir = Path(appdirs.user_config_dir("Paglop", appauthor=False, roaming=True))
    return config_dir / f"{CONFIG_NAME}.toml"


class Core:
    """Paglop in his entirety.

    Parameters
    ----------
    config_path : str or Path, optional
        Path to Paglop's TOML configuration file; defaults to
        ``<user_config_dir>/Paglop/paglop.toml``.
    data_dir : str or Path, optional
        The corpus directory. Takes precedence over ``Core.DataDir`` in the
        config, which in turn defaults to ``<user_data_dir>/Paglop``.
    eventloop : asyncio.AbstractEventLoop, optional
        The asyncio event loop to use. If unspecified, a new loop is created.
    verbose : bool, optional
        Log everything at ``DEBUG`` level, regardless of configuration.

    Raises
    ------
    ConfigError
        The configuration file could not be read or is missing something.
    CorpusLoadError
        The corpus could not be loaded.

    Attributes
    ----------
    config : Config
    chain : Chain
    client : IRCClient
    """

    def __init__(
        self,
        config_path: Union[str, Path] = None,
        data_dir: Union[str, Path] = None,
        eventloop: asyncio.AbstractEventLoop = None,
        verbose: bool = False,
    ):
        self.logger = logging.getLogger("Paglop")
        self._shutdown_reason = None

        # Read config
        self.config = Config(Path(config_path) if config_path else default_config_path())
        self.config.load()
        if "Core" not in self.config:
            self.config["Core"] = {}

        if data_dir:
            self._data_dir = Path(data_dir)
        elif "Core.DataDir" in self.config:
            self._data_dir = Path(self.config["Core.DataDir"]).expanduser()
        else:
            self._data_dir = Path(appdirs.user_data_dir("Paglop", appauthor=False, roaming=True))

        self._init_logging(verbose)
        irc_settings = configure(self.config)

        self.logger.info("Initializing Markov chain...")
        settings = ChainSettings.from_config(self.config.get("Markov", {}))
        self.chain = initialize_chain(self._data_dir, settings)

        line_logger = LineLogger(self._data_dir) if self.config.get("Markov.AutoLog", True) else None
        self.handler = MessageHandler(
            self.chain,
            irc_settings.nickname,
            ignore=irc_settings.ignore,
            reply_words=self.config.get("Markov.ReplyWords", DEFAULT_REPLY_WORDS),
            line_logger=line_logger,
        )

        # Nothing below may fail, or the loop would leak
        if eventloop is None:
            eventloop = asyncio.new_event_loop()
            asyncio.set_event_loop(eventloop)
        self.eventloop = eventloop
        signal.signal(signal.SIGTERM, lambda x, y: self.quit("Terminated"))
        self.client = IRCClient(irc_settings, self.handler, eventloop=eventloop)

    @property
    def data_dir(self) -> Path:
        """Get the path to Paglop's corpus directory."""
        return self._data_dir

    def _init_logging(self, verbose: bool = False):
        """Initialize logging configuration."""
        defaults = {
            "Level": "INFO",
            "Enabled": ["console"],
            "Formatters": {
                "default": {
                    "style": "{",
                    "format": "{asctime} {levelname:7} [{name}] {message}",
                    "datefmt": "%T",
                }
            },
            "Handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": "INFO",
                    "formatter": "default",
                }
            },
        }

        log_sec = {**defaults, **deepcopy(self.config.data.get("Logging", {}))}
        # Ensure the default formatter is always available
        log_sec["Formatters"] = {
            **log_sec.get("Formatters", {}),
            **defaults["Formatters"],
        }
        handlers = {name: dict(handler) for name, handler in log_sec["Handlers"].items()}
        for handler in handlers.values():
            # Normalize file paths
            if "filename" in handler:
                log_file = Path(handler["filename"]).expanduser()
                log_file.parent.mkdir(parents=True, exist_ok=True)
                handler["filename"] = log_file
            if verbose:
                handler["level"] = "DEBUG"

        logging.config.dictConfig({
            "version": 1,  # dictConfig schema version (required)
            "loggers": {
                "Paglop": {
                    "level": "DEBUG" if verbose else log_sec["Level"],
                    "handlers": log_sec["Enabled"],
                    "propagate": False,
                }
            },
            "formatters": log_sec["Formatters"],
            "handlers": handlers,
        })

    def run(self) -> int:
        """Connect and start Paglop's event loop."""
        connected = self.eventloop.run_until_complete(
            self.client.connect_to_network(self.config.get("IRC.ConnectTimeout", 30)))
        if not connected:
            self.client.close_worker()
            self.eventloop.close()
            return 1
        retcode = 0
        try:
            self.eventloop.run_forever()
        except KeyboardInterrupt:
            self.logger.info("Interrupt received, shutting down.")
        except Exception:
            self.logger.exception("Unhandled exception raised, shutting down.")
            retcode = 1
        finally:
            self._shutdown()
            self.logger.debug("Closing event loop")
            self.eventloop.close()
        return retcode

    def quit(self, reason: str = None):
        """Shut down Paglop.

        If `reason` is given, it is passed along to the IRC server as the quit
        message.
        """
        self.logger.debug("Stopping event loop")
        self.eventloop.stop()
        self.logger.info("Shutting down Paglop" + (f' with reason "{reason}"' if reason else ""))
        self._shutdown_reason = reason

    def _shutdown(self):
        """Disconnect from IRC, if still connected, and let the chain settle."""
        if self.client.connected:
            self.logger.debug("Disconnecting from IRC")
            try:
                self.eventloop.run_until_complete(self.client.quit(self._shutdown_reason))
            except Exception:
                self.logger.exception("Exception occurred while disconnecting.")
        self.logger.debug("Waiting for pending chain work")
        self.client.close_worker()

