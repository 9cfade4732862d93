"""protocol/irc.py

IRC protocol implementation.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional, Union

import pydle

from paglop.config import Config
from paglop.exceptions import ConfigError
from paglop.handler import MessageHandler, Reply

logger = logging.getLogger("Paglop.IRC")

DEFAULT_PORT = 6667
DEFAULT_TLS_PORT = 6697


@dataclass
class IRCSettings:
    """Connection details for a single IRC network."""

    nickname: str
    hostname: str
    port: int
    tls: bool = False
    password: Optional[str] = None
    username: Optional[str] = None
    realname: Optional[str] = None
    alt_nicks: list[str] = field(default_factory=list)
    channels: list[str] = field(default_factory=list)
    ignore: list[str] = field(default_factory=list)

    @property
    def address(self) -> str:
        return f"{self.hostname}:{self.port}"


def configure(cfg: Config) -> IRCSettings:
    """Set up an IRC connection based on the given parsed configuration.

    Raises
    ------
    ConfigError
        If ``IRC.Nickname`` or ``IRC.Server`` is missing.
    """
    cfg.require("IRC.Nickname", "IRC.Server")
    tls = cfg.get("IRC.UseTLS", False)
    host, _, port = cfg["IRC.Server"].partition(":")
    try:
        port = int(port) if port else (DEFAULT_TLS_PORT if tls else DEFAULT_PORT)
    except ValueError:
        raise ConfigError(
            f"Invalid port in 'IRC.Server': {port!r}", config_name=cfg.name) from None
    nickname = cfg["IRC.Nickname"]
    return IRCSettings(
        nickname=nickname,
        hostname=host,
        port=port,
        tls=tls,
        password=cfg.get("IRC.Password"),
        username=cfg.get("IRC.Username", nickname),
        realname=cfg.get("IRC.Realname", nickname),
        alt_nicks=cfg.get("IRC.Alt_Nicks", []),
        # De-duplicate while keeping the configured order
        channels=list(dict.fromkeys(cfg.get("IRC.Channels", []))),
        ignore=cfg.get("IRC.Ignore", []),
    )


class IRCClient(pydle.Client):
    """Paglop's IRC connection.

    Joins the configured channels once connected and passes every message and
    action it sees along to a `MessageHandler`, sending back any reply.

    Parameters
    ----------
    settings : IRCSettings
        Where and as whom to connect.
    handler : MessageHandler
        Decides what to do with each line. Calls are made one at a time, in the
        order lines arrive, on a dedicated worker thread.
    """

    def __init__(self, settings: IRCSettings, handler: MessageHandler, **kwargs):
        super().__init__(
            settings.nickname,
            settings.alt_nicks,
            settings.username,
            settings.realname,
            **kwargs,
        )
        self.settings = settings
        self.handler = handler
        self.worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="Paglop-Chain")

    async def run_handler(self, func, *args):
        """Run a synchronous `handler` method on the worker thread."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.worker, func, *args)

    def close_worker(self):
        """Finish any queued handler calls and stop the worker thread."""
        self.worker.shutdown(wait=True)

    async def connect_to_network(self, timeout: Union[int, float] = 30) -> bool:
        """Connect to the configured server.

        Returns
        -------
        bool
            Whether or not the connection succeeded.
        """
        settings = self.settings
        logger.info(f"Connecting to server {settings.address} ...")
        try:
            await asyncio.wait_for(
                self.connect(
                    settings.hostname,
                    settings.port,
                    tls=settings.tls,
                    tls_verify=False,
                    password=settings.password,
                ),
                timeout,
            )
        except OSError as ex:
            logger.error(f"Connection to {settings.address} failed: {ex}")
            return False
        except asyncio.TimeoutError:
            logger.error(f"Connection to {settings.address} timed out.")
            return False
        return True

    async def send_reply(self, reply: Reply):
        """Send a `Reply` as either a message or an action."""
        if reply.action:
            await self.ctcp(reply.destination, "ACTION", reply.text)
        else:
            await self.message(reply.destination, reply.text)

    def _reply_target(self, target: str, source: str) -> str:
        """Return where to answer a line sent by `source` to `target`."""
        return target if self.is_channel(target) else source

    # Pydle handlers

    async def on_connect(self):
        """Handle successful connection registration.

        Pydle calls this after ``RPL_ENDOFMOTD`` or ``ERR_NOMOTD``.
        """
        await super().on_connect()
        logger.info(f"Connected to {self.settings.address} as {self.nickname}")
        for channel in self.settings.channels:
            logger.info(f"Joining channel {channel}")
            await self.join(channel)

    async def on_message(self, target, source, message):
        """Handler for channel and private messages (PRIVMSG)."""
        await super().on_message(target, source, message)
        where = self._reply_target(target, source)
        reply = await self.run_handler(self.handler.on_message, source, where, message)
        if reply is not None:
            await self.send_reply(reply)

    async def on_ctcp_action(self, by, target, contents):
        """Handler for actions (CTCP ACTION)."""
        where = self._reply_target(target, by)
        await self.run_handler(self.handler.on_action, by, where, contents)

    async def on_disconnect(self, expected: bool):
        """Handle disconnection from server."""
        if not expected:
            logger.error(f"Lost connection to {self.settings.address}.")
        await super().on_disconnect(expected)
