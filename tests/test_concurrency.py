from __future__ import annotations

import asyncio
import threading

from paglop.corpus import LineLogger
from paglop.handler import MessageHandler
from paglop.protocol.irc import IRCClient, IRCSettings

from .conftest import DOG, FOX, seeded_chain


def test_learning_while_generating():
    chain = seeded_chain()
    chain.add_line(FOX)
    errors = []

    def learn():
        try:
            for i in range(500):
                chain.add_line(f"{DOG} number {i}")
        except Exception as ex:  # pragma: no cover
            errors.append(ex)

    def talk():
        try:
            for _ in range(500):
                chain.generate_on_topic(10, "lazy fox")
                chain.generate(10)
        except Exception as ex:  # pragma: no cover
            errors.append(ex)

    threads = [threading.Thread(target=learn), threading.Thread(target=talk)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert errors == []
    assert chain.frequency["dog"] == 500


def test_irc_lines_handled_in_arrival_order(tmp_path):
    chain = seeded_chain()
    handler = MessageHandler(chain, "paglop", line_logger=LineLogger(tmp_path))
    settings = IRCSettings(nickname="paglop", hostname="localhost", port=6667)
    loop = asyncio.new_event_loop()
    client = IRCClient(settings, handler, eventloop=loop)
    lines = [f"line number {i} of the chatter" for i in range(50)]

    async def deliver():
        await asyncio.gather(
            *(client.run_handler(handler.on_message, "alice", "#chat", line) for line in lines))

    try:
        loop.run_until_complete(deliver())
    finally:
        client.close_worker()
        loop.close()
    assert (tmp_path / "autolog-#chat.txt").read_text().splitlines() == lines
    assert chain.frequency["chatter"] == 50
