from __future__ import annotations

import logging

import pytest

from paglop.corpus import LineLogger, initialize_chain
from paglop.exceptions import CorpusLoadError
from paglop.markov import Chain, ChainSettings

from .conftest import DOG, FOX


def test_initialize_chain_reads_txt_files_only(corpus_dir):
    chain = initialize_chain(corpus_dir)
    assert isinstance(chain, Chain)
    assert chain.forward[" "] == ["the", "a"]
    assert "never" not in chain.frequency
    assert "animals" not in chain.frequency


def test_initialize_chain_uses_settings(corpus_dir):
    chain = initialize_chain(corpus_dir, ChainSettings(leader_len=3))
    assert chain.leader_len == 3
    assert chain.forward["the quick brown"] == ["fox"]


def test_initialize_existing_chain(corpus_dir):
    chain = Chain()
    chain.add_line("something learned earlier")
    assert initialize_chain(corpus_dir, chain=chain) is chain
    assert chain.forward[" "] == ["something", "the", "a"]


def test_missing_corpus_directory_is_fatal(tmp_path):
    missing = tmp_path / "nope"
    with pytest.raises(CorpusLoadError) as excinfo:
        initialize_chain(missing)
    assert excinfo.value.path == missing


def test_unopenable_corpus_file_is_fatal(corpus_dir):
    (corpus_dir / "broken.txt").mkdir()
    with pytest.raises(CorpusLoadError) as excinfo:
        initialize_chain(corpus_dir)
    assert excinfo.value.path == corpus_dir / "broken.txt"


def test_line_logger_feeds_next_startup(corpus_dir):
    line_logger = LineLogger(corpus_dir)
    line_logger.log("#chat", "brand new words here")
    line_logger.log("#chat", "and some more")
    path = line_logger.path_for("#chat")
    assert path == corpus_dir / "autolog-#chat.txt"
    assert path.read_text() == "brand new words here\nand some more\n"
    chain = initialize_chain(corpus_dir)
    assert chain.frequency["brand"] == 1
    assert chain.frequency["fox"] == 1


def test_line_logger_sanitizes_channel_names(tmp_path):
    assert LineLogger(tmp_path).path_for("../#evil/chan").name == "autolog-.._#evil_chan.txt"


def test_line_logger_errors_are_logged(tmp_path, caplog):
    line_logger = LineLogger(tmp_path / "missing")
    with caplog.at_level(logging.ERROR, logger="Paglop.Corpus"):
        line_logger.log("#chat", f"{FOX} {DOG}")
    assert "Error writing to" in caplog.text
