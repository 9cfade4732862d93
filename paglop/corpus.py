"""corpus.py

Loading the startup corpus into a chain, and recording learned lines back into
the corpus directory.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Union

from paglop.exceptions import CorpusLoadError
from paglop.markov import Chain, ChainSettings

logger = logging.getLogger("Paglop.Corpus")

CORPUS_SUFFIX = ".txt"
AUTOLOG_PREFIX = "autolog-"


def initialize_chain(directory: Union[str, Path], settings: ChainSettings = None,
                     chain: Chain = None) -> Chain:
    """Build a chain from every ``.txt`` file in `directory`.

    Files are read in whatever order the file system lists them.

    Parameters
    ----------
    directory : str or Path
        The corpus directory.
    settings : ChainSettings, optional
        Settings for a newly created chain. Ignored if `chain` is given.
    chain : Chain, optional
        An existing chain to add the corpus to.

    Raises
    ------
    CorpusLoadError
        If the directory could not be listed or a corpus file could not be
        opened.
    """
    directory = Path(directory)
    if chain is None:
        chain = Chain(settings)
    try:
        filenames = os.listdir(directory)
    except OSError as ex:
        raise CorpusLoadError(
            f"Could not read corpus directory '{directory}': {ex}", path=directory) from ex
    for filename in filenames:
        if not filename.endswith(CORPUS_SUFFIX):
            continue
        path = directory / filename
        logger.debug(f"Loading corpus file {path}")
        try:
            with open(path, encoding="utf-8", errors="replace") as file:
                chain.build(file)
        except OSError as ex:
            raise CorpusLoadError(
                f"Could not open corpus file '{path}': {ex}", path=path) from ex
    stats = chain.stats()
    logger.info(
        f"Chain holds {stats['leaders']:,} leaders and {stats['words']:,} distinct "
        f"words ({stats['total']:,} total)")
    return chain


class LineLogger:
    """Appends learned lines to per-channel files in the corpus directory.

    Since the files end in ``.txt``, they become part of the corpus the next
    time the chain is initialized. Failures are logged and otherwise ignored;
    losing a line of chat isn't worth interrupting the bot over.

    Parameters
    ----------
    directory : str or Path
        Where to write the log files.
    """

    _unsafe_chars = re.compile(r"[^\w#&+.-]")

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, channel: str) -> Path:
        """Return the log file path for `channel`."""
        name = self._unsafe_chars.sub("_", channel)
        return self.directory / f"{AUTOLOG_PREFIX}{name}{CORPUS_SUFFIX}"

    def log(self, channel: str, line: str):
        """Append `line` to the log file for `channel`."""
        path = self.path_for(channel)
        try:
            with open(path, "a", encoding="utf-8") as file:
                file.write(f"{line}\n")
        except OSError as ex:
            logger.error(f"Error writing to {path} for logging: {ex}")
