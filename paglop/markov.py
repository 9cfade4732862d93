"""Markov

Paglop's voice: a bidirectional Markov chain built from lines of text. Every
line the bot sees is recorded as leader/successor pairs (for walking forward)
and leader/predecessor pairs (for walking backward), along with how often each
word has been seen. Sentences are grown outward in both directions from a
leader containing the least familiar word of whatever the bot was asked.

The algorithm is the one presented in the "Design and Implementation" chapter
of The Practice of Programming (Kernighan and Pike), extended with a backward
table so that generation can start in the middle of a sentence.
"""

from __future__ import annotations

import logging
import random
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from paglop.common.enums import Direction
from paglop.util import gen_repr

logger = logging.getLogger("Paglop.Markov")

# Stands in for "nothing", i.e. the edges of a recorded line. It can never be
# a real word since lines are split on whitespace.
BOUNDARY = ""

DEFAULT_LEADER_LEN = 2
DEFAULT_EARLY_STOP_THRESHOLD = 10
DEFAULT_MIN_LINE_LENGTH = 5

# Type aliases
Chooser = Callable[[Sequence[str]], str]
NoveltyCheck = Callable[[str, str], bool]
Start = Union[str, Sequence[str], None]


def make_key(words: Iterable[str]) -> str:
    """Return the map key for a leader."""
    return " ".join(words)


def split_key(key: str) -> list[str]:
    """Return the words of a leader key, boundary placeholders included."""
    return key.split(" ")


def bad_line(line: str, min_length: int = DEFAULT_MIN_LINE_LENGTH,
             comment_prefix: str = "#") -> bool:
    """Check whether an entire line should be ignored.

    Comments and lines too short to say anything are skipped.
    """
    return line.startswith(comment_prefix) or len(line) < min_length


def bad_word(word: str) -> bool:
    """Check whether a single word should be left out of the chain.

    Words with a dangling quote or a partial parenthetical make for lopsided
    output, so they are dropped.
    """
    quotes = word.count('"')
    if quotes not in (0, 2):
        return True
    if ("(" in word or ")" in word) and not (word[0] == "(" and word[-1] == ")"):
        return True
    return False


def is_novel(candidate: str, sentence: str) -> bool:
    """Default acceptance test for sentences generated on a topic.

    A candidate is good enough if it isn't simply the request parroted back and
    holds more than a single word. Both are compared word by word, so boundary
    placeholders and stray whitespace don't make an echo look new.
    """
    words = candidate.split()
    return words != sentence.split() and len(words) > 1


@dataclass(frozen=True)
class ChainSettings:
    """Tunables for a `Chain`.

    Attributes
    ----------
    leader_len : int
        Number of words in a leader. Fixed for the lifetime of a chain.
    early_stop_threshold : int
        Once a walk holds more than this many words, it stops at the first
        word that looks like the end (forward) or start (backward) of
        a sentence.
    allow_bare_anchor : bool
        Whether a leader consisting of only the topic word and boundary
        placeholders may be used as an anchor.
    min_line_length : int
        Lines shorter than this are not learned.
    comment_prefix : str
        Lines starting with this are not learned.
    sentence_enders : str
        Characters that end a sentence when walking forward.
    """

    leader_len: int = DEFAULT_LEADER_LEN
    early_stop_threshold: int = DEFAULT_EARLY_STOP_THRESHOLD
    allow_bare_anchor: bool = False
    min_line_length: int = DEFAULT_MIN_LINE_LENGTH
    comment_prefix: str = "#"
    sentence_enders: str = ".!?"

    def __post_init__(self):
        if self.leader_len < 1:
            raise ValueError("Leader length must be at least 1")

    @classmethod
    def from_config(cls, section: Mapping[str, Any]) -> ChainSettings:
        """Create settings from the ``Markov`` section of a config file."""
        return cls(
            leader_len=section.get("LeaderLength", DEFAULT_LEADER_LEN),
            early_stop_threshold=section.get(
                "EarlyStopThreshold", DEFAULT_EARLY_STOP_THRESHOLD),
            allow_bare_anchor=section.get("AllowBareAnchor", False),
            min_line_length=section.get("MinLineLength", DEFAULT_MIN_LINE_LENGTH),
        )


class Chain:
    """A bidirectional Markov chain of words.

    Parameters
    ----------
    settings : ChainSettings, optional
        Tunables for learning and generation; defaults are used if omitted.
    chooser : Callable[[Sequence[str]], str], optional
        Picks one item from a non-empty sequence. Defaults to `random.choice`;
        pass the ``choice`` method of a seeded `random.Random` for repeatable
        output.
    accept : Callable[[str, str], bool], optional
        Decides whether a sentence generated for a request is good enough to
        return, given ``(candidate, request)``. Defaults to `is_novel`.

    Attributes
    ----------
    forward : dict[str, list[str]]
        Maps a leader key to every word seen right after it.
    backward : dict[str, list[str]]
        Maps a leader key to every word seen right before it.
    frequency : dict[str, int]
        Maps each word to the number of times it has been seen.

    Notes
    -----
    All access goes through a single re-entrant lock, so a chain may be fed
    from one thread while sentences are generated on another. The tables
    themselves should be treated as read-only outside of this class.
    """

    def __init__(self, settings: ChainSettings = None, *,
                 chooser: Optional[Chooser] = None,
                 accept: Optional[NoveltyCheck] = None):
        self.settings = settings or ChainSettings()
        self.forward: dict[str, list[str]] = {}
        self.backward: dict[str, list[str]] = {}
        self.frequency: dict[str, int] = {}
        self._choose = chooser or random.choice
        self._accept = accept or is_novel
        self._lock = threading.RLock()

    def __repr__(self):
        attrs = ["leader_len"]
        return gen_repr(self, attrs, leaders=len(self.forward), words=len(self.frequency))

    @property
    def leader_len(self) -> int:
        """The number of words in each leader."""
        return self.settings.leader_len

    def _start_leader(self, start: Start) -> list[str]:
        if not start:
            return [BOUNDARY] * self.leader_len
        if isinstance(start, str):
            return split_key(start)
        return list(start)

    # Learning

    def add_word(self, word: str):
        """Count another occurrence of `word`."""
        with self._lock:
            self.frequency[word] = self.frequency.get(word, 0) + 1

    def add_line(self, line: str):
        """Learn a single line of text.

        Comments and very short lines are ignored entirely, as are individual
        words rejected by `bad_word`. Each line is learned on its own; the
        leader preceding its first word is made of boundary placeholders.
        """
        settings = self.settings
        if bad_line(line, settings.min_line_length, settings.comment_prefix):
            return
        with self._lock:
            prev = [BOUNDARY] * self.leader_len
            for word in line.split():
                if bad_word(word):
                    continue
                self.add_word(word)
                self.forward.setdefault(make_key(prev), []).append(word)
                before, prev = prev[0], prev[1:] + [word]
                self.backward.setdefault(make_key(prev), []).append(before)

    def build(self, source: Iterable[str]):
        """Learn every line from `source`.

        Parameters
        ----------
        source : Iterable[str]
            An open text file or any other iterable of lines. Reading stops
            quietly at the first error, keeping whatever was learned so far.
        """
        try:
            for line in source:
                self.add_line(line.rstrip("\r\n"))
        except (OSError, UnicodeDecodeError) as ex:
            logger.debug(f"Stopped reading corpus source early: {ex}")

    # Generation

    def generate_core(self, direction: Direction, start: Start = None,
                      max_words: int = 10) -> list[str]:
        """Walk the chain from `start`, returning the words visited.

        Parameters
        ----------
        direction : Direction
            Whether to walk forward through successors or backward through
            predecessors.
        start : str or sequence of str, optional
            The leader to begin from, either as words or as a key. If empty or
            omitted, the walk begins at the start of a line.
        max_words : int
            The most steps to take. The chain may contain cycles, so this is
            what guarantees the walk ends.

        Returns
        -------
        list[str]
            The starting leader's words followed (or, walking backward,
            preceded) by each word chosen. Boundary placeholders in the
            starting leader are kept.
        """
        forward = direction is Direction.FORWARD
        threshold = self.settings.early_stop_threshold
        with self._lock:
            table = self.forward if forward else self.backward
            start_words = self._start_leader(start)
            leader = deque(start_words, maxlen=len(start_words))
            words = deque(start_words)
            for _ in range(max_words):
                choices = table.get(make_key(leader))
                if not choices:
                    break
                word = self._choose(choices)
                if forward:
                    leader.append(word)
                    words.append(word)
                else:
                    # Reached the beginning of a recorded line
                    if word == BOUNDARY:
                        break
                    leader.appendleft(word)
                    words.appendleft(word)
                if len(words) > threshold and self._sentence_edge(direction, word):
                    break
            return list(words)

    def _sentence_edge(self, direction: Direction, word: str) -> bool:
        """Check if `word` looks like the end or start of a sentence."""
        if direction is Direction.FORWARD:
            return word[-1] in self.settings.sentence_enders
        return word[0].isupper()

    def generate(self, max_words: int) -> str:
        """Return a sentence of at most `max_words` words from the chain."""
        return make_key(self.generate_core(Direction.FORWARD, None, max_words))

    def generate_forward(self, start: Start, max_words: int) -> str:
        """Return text continuing on from `start`."""
        return make_key(self.generate_core(Direction.FORWARD, start, max_words))

    def generate_backward(self, end: Start, max_words: int) -> str:
        """Return text leading up to `end`."""
        return make_key(self.generate_core(Direction.BACKWARD, end, max_words))

    # Topics

    def score_words(self, sentence: str) -> list[tuple[str, int]]:
        """Pair each word of `sentence` with the number of times it was seen."""
        with self._lock:
            return [(word, self.frequency.get(word, 0)) for word in sentence.split()]

    def rank_by_rarity(self, sentence: str) -> list[tuple[str, int]]:
        """Order the words of `sentence` from least to most familiar.

        Words never seen before come first. Ties keep their order in the
        sentence.
        """
        return sorted(self.score_words(sentence), key=lambda pair: pair[1])

    def find_anchor_leader(self, word: str) -> str:
        """Pick a leader key containing `word` to grow a sentence around.

        Scans every known leader, so this is linear in the size of the chain.
        Leaders that are nothing but `word` and boundary placeholders are
        skipped unless ``allow_bare_anchor`` is set. If no leader contains the
        word, the word itself is returned.
        """
        allow_bare = self.settings.allow_bare_anchor
        with self._lock:
            candidates = [
                key for key in self.forward
                if word in split_key(key) and (allow_bare or key.strip() != word)
            ]
            if not candidates:
                return word
            if len(candidates) == 1:
                return candidates[0]
            return self._choose(candidates)

    def generate_from_anchor(self, max_words: int, word: str) -> str:
        """Grow a sentence in both directions around a leader holding `word`."""
        with self._lock:
            anchor = self.find_anchor_leader(word)
            logger.debug(f"Chosen anchor for {word!r}: {anchor!r}")
            before = self.generate_core(Direction.BACKWARD, anchor, max_words)
            after = self.generate_core(Direction.FORWARD, anchor, max_words)
        # The forward walk repeats the anchor, which the backward walk already
        # ends with.
        if len(after) < self.leader_len + 1:
            after = []
        else:
            after = after[self.leader_len:]
        return make_key(before + after)

    def generate_on_topic(self, max_words: int, sentence: str) -> str:
        """Return a sentence on the same topic as `sentence`.

        The words of `sentence` are tried from least to most familiar, since
        the rarest word is the most likely to be what it's about. The first
        generated sentence that passes the acceptance check wins. If none do,
        the last one generated is returned anyway.

        Parameters
        ----------
        max_words : int
            Limit on the number of steps taken in each direction.
        sentence : str
            The text to respond to.
        """
        result = None
        with self._lock:
            for word, score in self.rank_by_rarity(sentence):
                logger.debug(f"Trying topic word {word!r} (seen {score} times)")
                result = self.generate_from_anchor(max_words, word)
                if self._accept(result, sentence):
                    return result
            if result is None:
                # Nothing to go on
                return self.generate(max_words)
        return result

    def stats(self) -> dict[str, int]:
        """Return the number of leaders, distinct words, and total words."""
        with self._lock:
            return {
                "leaders": len(self.forward),
                "words": len(self.frequency),
                "total": sum(self.frequency.values()),
            }
