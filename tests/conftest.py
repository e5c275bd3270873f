import json
import os

import git
import pytest
from git import Actor

ALICE = Actor("Alice", "alice@example.com")
BOB = Actor("Bob", "bob@example.com")


def write_and_commit(repo: git.Repo, files: dict, message: str, author: Actor):
    paths = []
    for name, content in files.items():
        path = os.path.join(repo.working_tree_dir, name)
        paths.append(path)
        mode = "wb" if isinstance(content, bytes) else "w"
        with open(path, mode) as f:
            f.write(content)
    repo.index.add(paths)
    return repo.index.commit(message, author=author, committer=author)


@pytest.fixture(scope="session")
def karma_repo(tmp_path_factory):
    """
    a.txt: lines 1-3 by alice, 4-5 by bob
    b.txt: bob only
    empty.txt: no lines
    logo.bin: binary
    """
    root = tmp_path_factory.mktemp("karma_repo")
    repo = git.Repo.init(root)
    write_and_commit(
        repo,
        {
            "a.txt": "one\ntwo\nthree\n",
            "empty.txt": "",
            "logo.bin": b"\x89PNG\x00\x01\x02",
        },
        "init",
        ALICE,
    )
    write_and_commit(
        repo,
        {
            "a.txt": "one\ntwo\nthree\nfour\nfive\n",
            "b.txt": "x\n",
        },
        "more lines",
        BOB,
    )
    return repo


@pytest.fixture(scope="session")
def karma_config_file(tmp_path_factory):
    path = tmp_path_factory.mktemp("config") / "karma.json"
    path.write_text(json.dumps({
        "karma": {"alice@example.com": 2},
        "url": {"commit": "https://example.com/commit/{commit}", "author": "mailto:{author}"},
        "file": {"extension": ".html"},
    }))
    return str(path)


@pytest.fixture(scope="session")
def submodule_repo(tmp_path_factory):
    """
    m.txt: alice
    vendored: submodule, a gitlink to a commit of another repository
    """
    vendored = git.Repo.init(tmp_path_factory.mktemp("vendored"))
    vendored_commit = write_and_commit(vendored, {"lib.txt": "lib\n"}, "lib", BOB)

    repo = git.Repo.init(tmp_path_factory.mktemp("submodule_repo"))
    write_and_commit(repo, {"m.txt": "main\n"}, "main", ALICE)
    repo.git.update_index("--add", "--cacheinfo", f"160000,{vendored_commit.hexsha},vendored")
    repo.index.commit("add vendored", author=ALICE, committer=ALICE)
    return repo
