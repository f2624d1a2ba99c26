from pathlib import Path
from typing import Dict, Iterable, Optional

import pytest
from git import Actor, Repo

from smell_history.services import create_git_manager

AUTHOR = Actor("Ada Lovelace", "ada@example.com")
START = 1609502400
DAY = 86400


class RepoBuilder:
    """Builds small histories with fixed authors and one day between commits."""

    def __init__(self, path: Path):
        self.path = path
        self.repo = Repo.init(path)
        self._day = 0

    def commit(
        self,
        message: str,
        files: Optional[Dict[str, str]] = None,
        removed: Iterable[str] = (),
        parents: Optional[Iterable[str]] = None,
    ) -> str:
        for name, content in (files or {}).items():
            target = self.path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
            self.repo.index.add([name])
        removed = list(removed)
        if removed:
            self.repo.index.remove(removed, working_tree=True)

        self._day += 1
        # raw git date: 2021-01-<day> 12:00 UTC
        date = f"{START + (self._day - 1) * DAY} +0000"
        commit = self.repo.index.commit(
            message,
            parent_commits=(
                [self.repo.commit(p) for p in parents] if parents is not None else None
            ),
            author=AUTHOR,
            committer=AUTHOR,
            author_date=date,
            commit_date=date,
        )
        return commit.hexsha

    def checkout(self, commit: str) -> None:
        """Move the current branch, index and work tree to commit."""
        self.repo.head.reset(commit, index=True, working_tree=True)


@pytest.fixture
def repo_root(tmp_path):
    root = tmp_path / "repos"
    root.mkdir()
    return root


@pytest.fixture
def git_manager(repo_root):
    return create_git_manager(str(repo_root), chunk_size=64)


@pytest.fixture
def history(repo_root):
    """
    A repository named "sample" with a merge:

        c1 -- c2 ------ merge
          \\           /
           `-- c3 ----'
    """
    builder = RepoBuilder(repo_root / "sample")
    c1 = builder.commit(
        "Initial commit",
        files={"README.md": "hello\n", "src/main.py": "line\n" * 5},
    )
    c2 = builder.commit(
        "Rename main to app",
        files={"README.md": "hello main\n", "src/app.py": "line\n" * 5},
        removed=["src/main.py"],
    )
    builder.repo.create_head("mainline", c2)

    builder.checkout(c1)
    c3 = builder.commit(
        "Add notes",
        files={"README.md": "hello side\n", "notes.txt": "remember\n"},
    )
    merge = builder.commit(
        "Merge mainline",
        files={"README.md": "hello merged\n", "src/app.py": "line\n" * 5},
        removed=["src/main.py"],
        parents=[c2, c3],
    )
    return {"c1": c1, "c2": c2, "c3": c3, "merge": merge, "builder": builder}


@pytest.fixture
def repo_builder(repo_root):
    """Factory for additional repositories under the repository root."""
    return lambda name: RepoBuilder(repo_root / name)
