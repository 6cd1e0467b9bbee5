"""Git history for a user's data root."""

from __future__ import annotations

from pathlib import Path

from dulwich import porcelain
from dulwich.repo import Repo

from app.errors import TodoError
from app.todo_utils import _atomic_write


def _lookup_packed_ref(packed_refs: Path, ref_name: str) -> str | None:
    if not packed_refs.exists():
        return None
    try:
        contents = packed_refs.read_text(encoding="utf-8")
    except OSError:
        return None

    for line in contents.splitlines():
        if not line or line.startswith("#") or line.startswith("^"):
            continue
        sha, _, name = line.partition(" ")
        if name.strip() == ref_name:
            return sha
    return None


def _read_head_state(data_root: Path) -> tuple[Path | None, str | None]:
    """Return the ref file HEAD points at (if symbolic) and its commit sha."""
    git_dir = data_root / ".git"
    head_path = git_dir / "HEAD"
    if not head_path.exists():
        return None, None

    try:
        head_contents = head_path.read_text(encoding="utf-8").strip()
    except OSError:
        return None, None

    if not head_contents.startswith("ref:"):
        return None, head_contents or None

    ref_name = head_contents.partition("ref:")[2].strip()
    if not ref_name:
        return None, None
    ref_path = git_dir / ref_name
    if ref_path.exists():
        try:
            return ref_path, ref_path.read_text(encoding="utf-8").strip() or None
        except OSError:
            return ref_path, None
    return ref_path, _lookup_packed_ref(git_dir / "packed-refs", ref_name)


def _resolve_git_head(data_root: Path) -> str | None:
    return _read_head_state(data_root)[1]


def _restore_git_head(
    data_root: Path,
    ref_path: Path | None,
    previous_head: str | None,
) -> None:
    head_path = data_root / ".git" / "HEAD"

    if ref_path is None:
        if previous_head is None or not head_path.exists():
            return
        try:
            head_path.write_text(f"{previous_head}\n", encoding="utf-8")
        except OSError:
            return
        return

    try:
        if previous_head is None:
            if ref_path.exists():
                ref_path.unlink()
        else:
            ref_path.parent.mkdir(parents=True, exist_ok=True)
            ref_path.write_text(f"{previous_head}\n", encoding="utf-8")
    except OSError:
        return


def _ensure_git_repo(data_root: Path) -> Repo:
    git_dir = data_root / ".git"
    try:
        if git_dir.exists():
            return Repo(data_root)
        return porcelain.init(data_root)
    except Exception as exc:
        raise TodoError(
            "GIT_ERROR",
            "Git repository could not be initialized.",
            {"path": str(data_root)},
        ) from exc


def _commit_change(repo: Repo, relative_path: Path, operation: str) -> str:
    repo.get_worktree().stage([str(relative_path)])
    commit_message = f"{operation}: {relative_path.as_posix()}"
    commit_sha = porcelain.commit(repo, message=commit_message)
    if isinstance(commit_sha, bytes):
        return commit_sha.decode("ascii")
    return str(commit_sha)


def _rollback_change(
    repo: Repo | None,
    target_path: Path,
    relative_path: Path,
    original_content: str | None,
) -> None:
    """Restore a file's previous content, or remove it if it was just created."""
    if original_content is None:
        try:
            if target_path.exists():
                target_path.unlink()
        except OSError:
            pass
    else:
        _atomic_write(target_path, original_content)
    if repo is None:
        return
    try:
        repo.get_worktree().stage([str(relative_path)])
    except Exception:
        pass
