import json
import sys

import pytest

from gitkarma.karma import KarmaConfig, KarmaResolver, karma
from gitkarma.model import Block, CommitMetadata, ConfigError


def make_block(summary: str = "", mail: str = "<alice@example.com>", commit_id: str = "a" * 40) -> Block:
    block = Block(commit_id, 1)
    block.meta = CommitMetadata({"author": "Alice", "author-mail": mail, "summary": summary})
    return block


def test_marker_wins_over_author():
    config = KarmaConfig(karma={"alice@example.com": 3})
    assert karma(make_block("fix #karma_7"), config) == 7


def test_marker_zero_wins_over_author():
    config = KarmaConfig(karma={"alice@example.com": 3})
    assert karma(make_block("#karma_0 revert"), config) == 0


def test_author_karma():
    config = KarmaConfig(karma={"alice@example.com": 3})
    assert karma(make_block("fix"), config) == 3


def test_author_karma_bracketed_key():
    config = KarmaConfig(karma={"<alice@example.com>": 4})
    assert karma(make_block("fix"), config) == 4


def test_default_karma():
    config = KarmaConfig(karma={"bob@example.com": 3})
    assert karma(make_block("fix"), config) == 0
    assert karma(make_block("fix"), KarmaConfig()) == 0


def test_marker_boundaries():
    config = KarmaConfig()
    assert karma(make_block("abc#karma_3"), config) == 0
    assert karma(make_block("#karma_3x"), config) == 0
    assert karma(make_block("#karma_"), config) == 0
    assert karma(make_block("(#karma_3)"), config) == 3
    assert karma(make_block("#karma_12 and #karma_5"), config) == 12


def test_resolver_cache(monkeypatch):
    calls = []

    def counting_karma(block, config):
        calls.append(block.commit_id)
        return karma(block, config)

    monkeypatch.setattr(sys.modules["gitkarma.karma"], "karma", counting_karma)
    resolver = KarmaResolver(KarmaConfig(karma={"alice@example.com": 3}))

    assert resolver(make_block("fix")) == 3
    assert resolver(make_block("fix")) == 3
    assert len(calls) == 1

    # same commit id, other metadata
    assert resolver(make_block("#karma_9")) == 9
    assert resolver(make_block("#karma_9", commit_id="b" * 40)) == 9
    assert len(calls) == 3


def test_load_config(tmp_path):
    path = tmp_path / "karma.json"
    path.write_text(json.dumps({
        "karma": {"alice@example.com": 2},
        "url": {"commit": "https://example.com/{commit}", "author": ""},
        "file": {"extension": ".htm"},
    }))
    config = KarmaConfig.load_from_json_file(str(path))

    assert config.karma == {"alice@example.com": 2}
    assert config.url.commit == "https://example.com/{commit}"
    assert config.file.extension == ".htm"


@pytest.mark.parametrize("content", ["{}", '{"karma": null}', '{"url": {"commit": "x"}}'])
def test_load_config_without_karma(tmp_path, content):
    path = tmp_path / "karma.json"
    path.write_text(content)
    assert KarmaConfig.load_from_json_file(str(path)).karma == {}


@pytest.mark.parametrize("content", [
    "{not json",
    "[1, 2]",
    '{"karma": {"alice@example.com": -1}}',
    '{"karma": {"alice@example.com": "lots"}}',
    '{"karma": ["alice@example.com"]}',
])
def test_load_config_invalid(tmp_path, content):
    path = tmp_path / "karma.json"
    path.write_text(content)
    with pytest.raises(ConfigError):
        KarmaConfig.load_from_json_file(str(path))


def test_load_config_missing(tmp_path):
    with pytest.raises(ConfigError):
        KarmaConfig.load_from_json_file(str(tmp_path / "nothing.json"))
