"""common/enums.py

Various enumerations used throughout Paglop's codebase.
"""

from enum import Enum, unique


@unique
class Direction(Enum):
    """Which way a walk over the Markov chain travels.

    A `FORWARD` walk appends successors of the current leader, while
    a `BACKWARD` walk prepends predecessors until it reaches the start of
    a recorded line.
    """

    FORWARD = 1
    BACKWARD = 2
