"""
Idempotency guards — checks and mutations that are safe to repeat.

Every installer starts from one of these: an existence check that
short-circuits when the work is already done, or a mutation that only
happens when its marker is absent.  Re-running a guard-protected step
therefore converges instead of duplicating work.
"""

from __future__ import annotations

import logging
from pathlib import Path

from onboard.core.context import RunContext
from onboard.core.errors import InstallError

logger = logging.getLogger(__name__)


def path_exists(path: Path | str) -> bool:
    """True if *path* exists (following symlinks) or is a symlink."""
    p = Path(path)
    return p.exists() or p.is_symlink()


def file_contains(path: Path | str, marker: str) -> bool:
    """True if the file exists and contains *marker*.

    An unreadable file counts as "not containing" the marker.
    """
    try:
        return marker in Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return False


def append_guarded_block(
    ctx: RunContext,
    path: Path,
    marker: str,
    block: str,
) -> bool:
    """Append *block* to *path* unless *marker* is already present.

    Returns:
        True if the block was appended.

    Raises:
        InstallError: The file could not be written.
    """
    if file_contains(path, marker):
        ctx.journal.info("zshrc", f"block already present, skipping: {marker}")
        return False

    if ctx.dry_run:
        ctx.journal.info("zshrc", f"DRY-RUN: would append block: {marker}")
        return False

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            f.write("\n" + block + "\n")
    except OSError as e:
        raise InstallError(f"cannot append to {path}: {e}") from e

    ctx.journal.info("zshrc", f"appended block: {marker}")
    return True


def clone_or_pull(ctx: RunContext, step: str, remote: str, dest: Path) -> None:
    """Clone *remote* into *dest*, or pull if it is already a checkout."""
    if path_exists(dest / ".git"):
        ctx.journal.info(step, f"repo exists, pulling: {dest}")
        ctx.runner.run(step, ["git", "-C", dest, "pull"], env=ctx.env())
        return

    ctx.journal.info(step, f"cloning {remote} → {dest}")
    ctx.runner.run(step, ["git", "clone", remote, dest], env=ctx.env())


def ensure_symlink(
    ctx: RunContext,
    step: str,
    source: Path | str,
    link: Path | str,
    *,
    sudo: bool = True,
) -> bool:
    """Create *link* → *source* unless *link* already exists.

    Returns:
        True if a link was created.
    """
    if path_exists(link):
        ctx.journal.info(step, f"symlink already exists: {link}")
        return False

    argv = ["ln", "-s", str(source), str(link)]
    if sudo:
        ctx.runner.sudo(step, argv)
    else:
        ctx.runner.run(step, argv)
    return True


def require_any(paths: list[Path], what: str) -> Path:
    """Return the first existing path, or raise ``InstallError``."""
    for p in paths:
        if path_exists(p):
            return p
    listed = ", ".join(str(p) for p in paths)
    raise InstallError(f"{what} not found (looked in {listed})")
