from __future__ import annotations

import random
from pathlib import Path

import pytest

from paglop.markov import Chain, ChainSettings

FOX = "the quick brown fox jumps"
DOG = "a lazy dog sleeps all day"
MOON = "jumps over the moon tonight"


def seeded_chain(seed: int = 1234, **kwargs) -> Chain:
    settings = kwargs.pop("settings", None) or ChainSettings(**kwargs)
    return Chain(settings, chooser=random.Random(seed).choice)


@pytest.fixture
def chain() -> Chain:
    return seeded_chain()


@pytest.fixture
def fox_chain() -> Chain:
    chain = seeded_chain()
    chain.add_line(FOX)
    return chain


@pytest.fixture
def corpus_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "corpus"
    directory.mkdir()
    (directory / "fox.txt").write_text(f"# animals\n{FOX}\n{DOG}\n")
    (directory / "notes.md").write_text("these words should never be learned\n")
    return directory
