"""
Git Entry Reader

OBJECTIVE:
Read CVE entries out of a local cvelist checkout at any commit, and walk the
history between two commits to find which entries changed.

APPROACH:
1. Resolve a revision (full or short hash, branch, HEAD) to a commit
2. Look the entry path up in the commit's tree
3. Use the git blob id as the content hash: it covers the raw bytes only,
   so re-serializing the JSON elsewhere never changes it
4. Check the embedded CVE_data_meta.ID against the id implied by the path

The repository is never fetched or mutated here; callers hand in a checkout.
"""

import logging
import posixpath
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import pygit2
import pygit2.enums

from .cve_entry import CVEEntry, parse_cve_entry
from .exceptions import IdentifierMismatch, NotFound, ReadFailure
from .locator import ENTRY_SUFFIX, cve_id_to_path, path_to_cve_id

logger = logging.getLogger(__name__)


def blob_hash(data: bytes) -> str:
    """Git blob id of raw bytes, identical to what the repository stores"""
    return str(pygit2.hash(data))


class GitEntryReader:
    """Reads and diffs CVE entries in a local git checkout"""

    def __init__(self, repo: Union[str, Path, pygit2.Repository]):
        if isinstance(repo, pygit2.Repository):
            self.repo = repo
        else:
            try:
                self.repo = pygit2.Repository(str(repo))
            except (pygit2.GitError, KeyError) as e:
                raise ReadFailure(f"Cannot open repository at {repo}: {e}")
        logger.debug(f"Opened upstream repository at {self.repo.path}")

    def _commit(self, commit_ref: str) -> pygit2.Commit:
        try:
            return self.repo.revparse_single(commit_ref).peel(pygit2.Commit)
        except (KeyError, ValueError) as e:
            raise NotFound(f"Unknown revision {commit_ref!r}: {e}", commit_ref=commit_ref)
        except pygit2.GitError as e:
            raise ReadFailure(f"Cannot resolve revision {commit_ref!r}: {e}")

    def resolve_commit(self, commit_ref: str) -> str:
        """Return the full hex hash for a revision"""
        return str(self._commit(commit_ref).id)

    def read_entry_at(self, commit_ref: str, path: str) -> Tuple[CVEEntry, str]:
        """
        Read and parse the entry stored at path in commit_ref

        Returns:
            (entry, blob_hash)

        Raises:
            NotFound: Unknown revision or no blob at path
            ReadFailure: Git error or undecodable entry
            IdentifierMismatch: Embedded id differs from the id implied by path
        """
        expected_id = posixpath.basename(path)
        if expected_id.endswith(ENTRY_SUFFIX):
            expected_id = expected_id[:-len(ENTRY_SUFFIX)]

        commit = self._commit(commit_ref)
        try:
            obj = commit.tree[path]
        except KeyError:
            raise NotFound(f"No entry at {path} in {commit_ref}",
                           cve_id=expected_id, commit_ref=commit_ref, path=path)
        except pygit2.GitError as e:
            raise ReadFailure(f"Cannot read {path} at {commit_ref}: {e}",
                              cve_id=expected_id, path=path)

        if not isinstance(obj, pygit2.Blob):
            raise NotFound(f"{path} is not a file in {commit_ref}",
                           cve_id=expected_id, commit_ref=commit_ref, path=path)

        try:
            entry = parse_cve_entry(obj.data, path)
        except ReadFailure as e:
            e.cve_id = expected_id
            raise

        if entry.cve_id != expected_id:
            raise IdentifierMismatch(
                f"Entry at {path} carries id {entry.cve_id}",
                cve_id=expected_id, embedded_id=entry.cve_id, path=path)

        return entry, str(obj.id)

    def read_cve(self, commit_ref: str, cve_id: str) -> Tuple[CVEEntry, str, str]:
        """Locate and read one identifier; returns (entry, blob_hash, path)"""
        path = cve_id_to_path(cve_id)
        entry, content_hash = self.read_entry_at(commit_ref, path)
        return entry, content_hash, path

    def is_ancestor(self, ancestor_ref: str, descendant_ref: str) -> bool:
        """True if ancestor_ref is descendant_ref or one of its ancestors"""
        ancestor = self._commit(ancestor_ref).id
        descendant = self._commit(descendant_ref).id
        if ancestor == descendant:
            return True
        return self.repo.descendant_of(descendant, ancestor)

    def _walk_tree(self, tree: pygit2.Tree, prefix: str = '') -> Iterator[str]:
        for obj in tree:
            path = f"{prefix}{obj.name}"
            if isinstance(obj, pygit2.Tree):
                yield from self._walk_tree(obj, path + '/')
            elif isinstance(obj, pygit2.Blob):
                yield path

    def changed_cve_ids(self, new_ref: str, old_ref: Optional[str] = None) -> List[str]:
        """
        Identifiers whose entry files were added or modified between two commits

        Without old_ref every entry in new_ref's tree is returned. Deleted
        entries are left out, and files that are not entries are ignored.
        """
        new_commit = self._commit(new_ref)
        if old_ref is None:
            paths = self._walk_tree(new_commit.tree)
        else:
            old_commit = self._commit(old_ref)
            diff = self.repo.diff(old_commit, new_commit)
            paths = (
                delta.new_file.path for delta in diff.deltas
                if delta.status != pygit2.enums.DeltaStatus.DELETED
            )

        cve_ids = set()
        for path in paths:
            cve_id = path_to_cve_id(path)
            if cve_id:
                cve_ids.add(cve_id)
            else:
                logger.debug(f"Ignoring non-entry path {path}")

        logger.info(f"🔍 {len(cve_ids):,} changed entries between "
                    f"{old_ref or 'empty tree'} and {new_ref}")
        return sorted(cve_ids)
