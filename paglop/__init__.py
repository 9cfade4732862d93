"""
Paglop is an IRC bot that babbles. It learns how its channels talk from a corpus
of text files and from everything said around it, and answers whoever
addresses it with a sentence grown from a bidirectional Markov chain around
the most unusual word they used.

:license: ISC
"""

from __future__ import annotations

__version__ = "0.3.0"

from .markov import Chain as Chain
from .markov import ChainSettings as ChainSettings
