"""Git repository fixtures shared by the test suites."""

import json
import subprocess
from pathlib import Path
from typing import Dict, Optional

from gitadapter.config import Settings
from gitadapter.resolver import SyncOptions, resolve_options


def git(cwd: Path, *args: str) -> str:
    """Run a git command and return its stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True
    )
    return result.stdout.strip()


def create_remote(base: Path, files: Dict[str, str], name: str = "remote.git") -> tuple[Path, Path]:
    """
    Create a bare "remote" repository with one commit on master.

    Returns:
        (remote_path, seed_path); the seed is a working clone used to push
        further commits and tags
    """
    remote = base / name
    seed = base / f"{name}-seed"
    base.mkdir(parents=True, exist_ok=True)

    git(base, "init", "--bare", str(remote))
    git(remote, "symbolic-ref", "HEAD", "refs/heads/master")

    git(base, "init", str(seed))
    git(seed, "symbolic-ref", "HEAD", "refs/heads/master")
    git(seed, "config", "user.name", "Test User")
    git(seed, "config", "user.email", "test@example.com")
    git(seed, "config", "commit.gpgsign", "false")
    git(seed, "config", "tag.gpgsign", "false")
    git(seed, "remote", "add", "origin", str(remote))

    commit_files(seed, files, "Initial commit")
    return remote, seed


def commit_files(seed: Path, files: Dict[str, str], message: str, push: bool = True) -> str:
    """Write files in the seed clone, commit them and push; returns the commit sha."""
    for relative, content in files.items():
        path = seed / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    git(seed, "add", "--all")
    git(seed, "commit", "-m", message)
    if push:
        git(seed, "push", "origin", "HEAD:refs/heads/master")
    return git(seed, "rev-parse", "HEAD")


def push_branch(seed: Path, branch: str, files: Dict[str, str], message: str) -> str:
    """Commit files on a new branch forked from the seed's HEAD and push it."""
    git(seed, "checkout", "-b", branch)
    sha = commit_files(seed, files, message, push=False)
    git(seed, "push", "origin", f"{branch}:refs/heads/{branch}")
    git(seed, "checkout", "master")
    return sha


def push_tag(seed: Path, tag: str) -> None:
    git(seed, "tag", tag)
    git(seed, "push", "origin", f"refs/tags/{tag}")


def make_options(
    clone_root: Path,
    url: str,
    ref: Optional[str] = None,
    namespaced: bool = True,
    clone_path: Optional[Path] = None
) -> SyncOptions:
    """Resolve options for ``url`` the way the adapter would."""
    settings = Settings(clone_root=clone_root, namespace_clones=namespaced)
    body = {"url": url}
    if ref is not None:
        body["ref"] = ref
    if clone_path is not None:
        body["clone_path"] = str(clone_path)
    return resolve_options(json.dumps(body), settings)
