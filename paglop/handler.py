"""handler.py

Decides what Paglop does with each line of chat: learn from it, or answer it.
Protocol implementations feed lines in and send whatever `Reply` comes back.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from paglop.corpus import LineLogger
from paglop.markov import Chain

logger = logging.getLogger("Paglop.Handler")

ACTION_PREFIX = "ACTION "
DEFAULT_REPLY_WORDS = 10

# Lines like "paglop: hi", "paglop, hi", or "paglop hi"
PATTERN_ADDRESSED = re.compile(r"^(\w+)[:,.]*\s*(.*)")

# Votes aren't conversation
IGNORED_REQUESTS = frozenset({"++", "--"})


@dataclass
class Reply:
    """Something for the protocol to send.

    Attributes
    ----------
    destination : str
        Where to send the reply.
    text : str
        The content of the reply.
    action : bool
        Whether the reply should be sent as an action (``/me``) instead of
        a plain message.
    """

    destination: str
    text: str
    action: bool = False


class MessageHandler:
    """Routes incoming lines to a `Chain`.

    Lines that aren't addressed to the bot are learned. Lines that are get
    answered with a sentence generated on their topic; they aren't learned,
    since what people say *to* a bot tends to be gibberish.

    Parameters
    ----------
    chain : Chain
        The chain to learn from and generate with.
    nickname : str
        The bot's own name, used to tell when it's being addressed.
    ignore : Iterable[str], optional
        Names whose lines are dropped entirely, e.g. other bots.
    reply_words : int, optional
        Limit passed to `Chain.generate_on_topic` for replies.
    line_logger : LineLogger, optional
        If given, every learned line is also written to disk.
    """

    def __init__(self, chain: Chain, nickname: str, *, ignore: Iterable[str] = (),
                 reply_words: int = DEFAULT_REPLY_WORDS,
                 line_logger: Optional[LineLogger] = None):
        self.chain = chain
        self.nickname = nickname
        self.ignore = {name.casefold() for name in ignore}
        self.reply_words = reply_words
        self.line_logger = line_logger

    def is_me(self, name: str) -> bool:
        """Check if `name` refers to the bot."""
        return name.casefold() == self.nickname.casefold()

    def learn(self, where: str, line: str):
        """Add `line` to the chain, and to the line log if enabled."""
        self.chain.add_line(line)
        if self.line_logger is not None:
            self.line_logger.log(where, line)

    def on_message(self, nick: str, where: str, body: str) -> Optional[Reply]:
        """Handle a line of chat.

        Parameters
        ----------
        nick : str
            Who sent the line.
        where : str
            Where the line was sent, and where any reply should go.
        body : str
            The line itself.

        Returns
        -------
        Optional[Reply]
            The bot's answer, if it has one.
        """
        if self.is_me(nick) or nick.casefold() in self.ignore:
            return None
        match = PATTERN_ADDRESSED.match(body)
        if match is None or not self.is_me(match[1]):
            self.learn(where, body)
            return None
        request = match[2]
        if request in IGNORED_REQUESTS:
            return None

        output = self.chain.generate_on_topic(self.reply_words, request).strip()
        logger.debug(f"Generated reply to {nick} in {where}: {output!r}")
        if not output:
            return None
        if output.startswith(ACTION_PREFIX):
            return Reply(where, output[len(ACTION_PREFIX):], action=True)
        return Reply(where, output)

    def on_action(self, nick: str, where: str, body: str):
        """Handle an action (``/me``) line.

        Actions are learned with an ``ACTION`` prefix so that the bot may
        later perform them itself.
        """
        if self.is_me(nick) or nick.casefold() in self.ignore:
            return
        self.learn(where, f"{ACTION_PREFIX}{body}")
