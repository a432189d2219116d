"""Repository synchronization: converge a local directory onto a remote reference."""

import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from git import Repo, GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from git.remote import FetchInfo, Remote

from ..errors import (
    CloneFailedError,
    FetchFailedError,
    OccupiedInvalidPathError,
    PullFailedError,
    UnresolvableReferenceError,
    WorktreeError,
)
from ..resolver import SyncOptions
from .reference import Reference, ReferenceKind

REMOTE_NAME = "origin"


class RepositoryAlreadyExists(Exception):
    """Clone target is already occupied; the caller opens it instead."""


@dataclass
class SyncResult:
    """Outcome of a successful synchronization."""
    working_tree: Path
    reference: str
    commit: str
    cloned: bool
    fetch_up_to_date: bool
    pull_up_to_date: bool
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["working_tree"] = str(self.working_tree)
        return result


class RepositorySynchronizer:
    """
    Brings the directory at ``options.local_path`` to a clean checkout of
    ``options.reference`` at the remote's latest state.

    Every pass runs the full sequence: clone-or-open, fetch, reset, clean,
    checkout, pull. Steps that find nothing to do succeed quietly, so calling
    it repeatedly converges instead of failing. No locking is done; callers
    must not run two passes against the same path at once.
    """

    def __init__(self, options: SyncOptions, logger: Optional[logging.Logger] = None):
        self.options = options
        self.reference: Reference = options.parsed_reference
        self.local_path = options.local_path
        self.logger = logger or logging.getLogger('gitadapter.git_sync.synchronizer')

    def synchronize(self) -> SyncResult:
        """
        Run one synchronization pass.

        Returns:
            SyncResult describing the checked-out tree

        Raises:
            SyncError: one of its subclasses, naming the step that failed
        """
        self.logger.info(f"Synchronizing {self.options.remote_url} ({self.reference}) into {self.local_path}")

        self._ensure_directory()
        repo, cloned = self._clone_or_open()
        fetch_up_to_date = self._fetch(repo)
        working_tree = self._working_tree(repo)
        self._reset(repo)
        self._clean(repo)
        target_kind = self._checkout(repo)
        pull_up_to_date = self._pull(repo, target_kind)

        commit = repo.head.commit.hexsha
        if pull_up_to_date and fetch_up_to_date and not cloned:
            message = f"Already up to date at {self.reference} ({commit[:12]})"
        else:
            message = f"Synchronized to {self.reference} ({commit[:12]})"
        self.logger.info(message)

        return SyncResult(
            working_tree=working_tree,
            reference=self.reference.raw,
            commit=commit,
            cloned=cloned,
            fetch_up_to_date=fetch_up_to_date,
            pull_up_to_date=pull_up_to_date,
            message=message,
        )

    def _ensure_directory(self) -> None:
        try:
            self.local_path.mkdir(parents=True, exist_ok=True)
        except FileExistsError as e:
            raise OccupiedInvalidPathError(f"{self.local_path} exists and is not a directory", cause=e)
        except OSError as e:
            raise OccupiedInvalidPathError(f"cannot create {self.local_path}: {e}", cause=e)

    def _clone_or_open(self) -> Tuple[Repo, bool]:
        try:
            return self._clone(), True
        except RepositoryAlreadyExists:
            self.logger.debug(f"Repository already exists at {self.local_path}, opening it")
            return self._open(), False

    def _clone(self) -> Repo:
        if any(self.local_path.iterdir()):
            raise RepositoryAlreadyExists(str(self.local_path))

        clone_kwargs = {}
        if self.reference.is_symbolic:
            clone_kwargs["branch"] = self.reference.name

        self.logger.info(f"Cloning {self.options.remote_url} to {self.local_path}")
        try:
            return Repo.clone_from(self.options.remote_url, str(self.local_path), **clone_kwargs)
        except GitCommandError as e:
            self.logger.error(f"Git clone failed: {e}")
            raise CloneFailedError(f"cloning {self.options.remote_url} failed: {e.stderr.strip() or e}", cause=e)

    def _open(self) -> Repo:
        try:
            repo = Repo(str(self.local_path))
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            self.logger.error(f"{self.local_path} is occupied and is not a git repository")
            raise OccupiedInvalidPathError(
                f"directory {self.local_path} already exists and is not a git repository", cause=e
            )

        if repo.bare:
            self.logger.error(f"{self.local_path} is a bare repository")
            raise OccupiedInvalidPathError(
                f"directory {self.local_path} holds a bare repository with no working tree"
            )
        return repo

    def _origin(self, repo: Repo) -> Remote:
        """Return the origin remote, pointing it at the configured URL."""
        url = self.options.remote_url
        if REMOTE_NAME not in [remote.name for remote in repo.remotes]:
            self.logger.warning(f"Remote '{REMOTE_NAME}' missing in {self.local_path}, adding {url}")
            return repo.create_remote(REMOTE_NAME, url)

        origin = repo.remote(REMOTE_NAME)
        if origin.url != url:
            self.logger.warning(f"Remote '{REMOTE_NAME}' points at {origin.url}, resetting to {url}")
            origin.set_url(url)
        return origin

    def _fetch(self, repo: Repo) -> bool:
        """Fetch every branch and tag, overwriting local tracking refs."""
        self.logger.debug("Fetching from remote")
        try:
            infos = self._origin(repo).fetch(force=True, tags=True)
        except (GitCommandError, ValueError) as e:
            self.logger.error(f"Failed to fetch from remote: {e}")
            raise FetchFailedError(f"fetching {self.options.remote_url} failed: {e}", cause=e)

        up_to_date = all(info.flags & FetchInfo.HEAD_UPTODATE for info in infos)
        if up_to_date:
            self.logger.debug("Remote has nothing new")
        return up_to_date

    def _working_tree(self, repo: Repo) -> Path:
        if repo.working_tree_dir is None:
            raise OccupiedInvalidPathError(f"repository at {self.local_path} has no working tree")
        return Path(repo.working_tree_dir)

    def _reset(self, repo: Repo) -> None:
        if not repo.head.is_valid():
            self.logger.debug("Repository has no commits yet, skipping reset")
            return

        self.logger.debug("Resetting working tree to HEAD")
        try:
            repo.head.reset(index=True, working_tree=True)
        except GitCommandError as e:
            raise WorktreeError(f"hard reset of {self.local_path} failed: {e}", cause=e)

    def _clean(self, repo: Repo) -> None:
        self.logger.debug("Removing untracked files")
        try:
            repo.git.clean("-f", "-d", "-x")
        except GitCommandError as e:
            raise WorktreeError(f"cleaning {self.local_path} failed: {e}", cause=e)

    def _rev_parse(self, repo: Repo, spec: str) -> Optional[str]:
        try:
            return repo.git.rev_parse("--verify", "--quiet", f"{spec}^{{commit}}")
        except GitCommandError:
            return None

    def _resolve_kind(self, repo: Repo) -> ReferenceKind:
        """Decide whether an unqualified name is a branch, a tag or a revision."""
        name = self.reference.name
        if self.reference.kind is not ReferenceKind.UNQUALIFIED:
            return self.reference.kind
        # origin/HEAD is a symref to the default branch, not a branch of its own
        if name != "HEAD" and (
            self._rev_parse(repo, f"refs/remotes/{REMOTE_NAME}/{name}") or self._rev_parse(repo, f"refs/heads/{name}")
        ):
            return ReferenceKind.BRANCH
        if self._rev_parse(repo, f"refs/tags/{name}"):
            return ReferenceKind.TAG
        return ReferenceKind.REVISION

    def _checkout(self, repo: Repo) -> ReferenceKind:
        """Check out the reference; returns how it was interpreted."""
        kind = self._resolve_kind(repo)
        name = self.reference.name
        self.logger.debug(f"Checking out {kind.value} {name}")

        try:
            if kind is ReferenceKind.BRANCH:
                remote_ref = f"{REMOTE_NAME}/{name}"
                if self._rev_parse(repo, f"refs/heads/{name}"):
                    repo.git.checkout("--force", name)
                elif self._rev_parse(repo, f"refs/remotes/{remote_ref}"):
                    repo.git.checkout("--force", "-B", name, "--track", remote_ref)
                else:
                    raise UnresolvableReferenceError(f"branch '{name}' does not exist on {self.options.remote_url}")
                return kind

            if kind is ReferenceKind.TAG:
                commit = self._rev_parse(repo, f"refs/tags/{name}")
            else:
                commit = self._rev_parse(repo, name)
            if commit is None:
                raise UnresolvableReferenceError(f"reference '{self.reference}' does not resolve to a commit")
            repo.git.checkout("--force", "--detach", commit)
            return kind
        except GitCommandError as e:
            raise WorktreeError(f"checkout of {self.reference} failed: {e}", cause=e)

    def _pull(self, repo: Repo, kind: ReferenceKind) -> bool:
        """
        Force HEAD onto the remote tip of the checked-out branch or tag.

        Returns True when HEAD already matched.
        """
        name = self.reference.name
        if kind is ReferenceKind.BRANCH:
            refspec = f"+refs/heads/{name}:refs/remotes/{REMOTE_NAME}/{name}"
            tip = f"refs/remotes/{REMOTE_NAME}/{name}"
        elif kind is ReferenceKind.TAG:
            refspec = f"+refs/tags/{name}:refs/tags/{name}"
            tip = f"refs/tags/{name}"
        else:
            # a bare revision has no remote tip to follow
            return True

        self.logger.debug(f"Pulling {refspec}")
        try:
            repo.remote(REMOTE_NAME).fetch(refspec)
            target = self._rev_parse(repo, tip)
            if target is None:
                raise PullFailedError(f"{tip} is missing after fetch")
            if repo.head.commit.hexsha == target:
                self.logger.debug("Already up to date")
                return True
            repo.head.reset(target, index=True, working_tree=True)
        except (GitCommandError, ValueError) as e:
            self.logger.error(f"Failed to pull {name}: {e}")
            raise PullFailedError(f"pulling {self.reference} failed: {e}", cause=e)
        return False


def synchronize(options: SyncOptions, logger: Optional[logging.Logger] = None) -> SyncResult:
    """Synchronize ``options.local_path`` with the remote; see RepositorySynchronizer."""
    return RepositorySynchronizer(options, logger).synchronize()
