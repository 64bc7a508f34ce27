"""Filesystem helpers for dotlink: link inspection, copies and platform link mechanics."""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path

from .models import LinkFacts, PathKind

logger = logging.getLogger(__name__)

_WINDOWS_VERBATIM_PREFIX = "\\\\?\\"


def is_junction(path: Path) -> bool:
    """Return ``True`` if ``path`` is a Windows directory junction."""

    if os.name != "nt":
        return False
    try:
        st = os.lstat(path)
    except OSError:
        return False
    return bool(
        st.st_file_attributes & stat.FILE_ATTRIBUTE_REPARSE_POINT
        and st.st_reparse_tag == stat.IO_REPARSE_TAG_MOUNT_POINT
    )


def is_link(path: Path) -> bool:
    """Return ``True`` for symbolic links and Windows directory junctions."""

    return os.path.islink(path) or is_junction(path)


def read_link(path: Path) -> str:
    """Return the raw target string stored in the link at ``path``."""

    target = os.readlink(path)
    if target.startswith(_WINDOWS_VERBATIM_PREFIX):
        target = target[len(_WINDOWS_VERBATIM_PREFIX) :]
    return target


def inspect_path(path: Path) -> LinkFacts:
    """Report whether ``path`` exists, whether it is a link, and its target.

    A dangling link still counts as existing, since something occupies the
    path, but is flagged as ``dangling``.
    """

    if is_link(path):
        return LinkFacts(
            path=path,
            exists=True,
            is_link=True,
            target=read_link(path),
            dangling=not path.exists(),
        )
    return LinkFacts(path=path, exists=path.exists(), is_link=False)


def ensure_parent(path: Path, mode: int | None = None) -> None:
    """Ensure the parent directory exists, optionally forcing its permission bits."""

    parent = path.parent
    parent.mkdir(parents=True, exist_ok=True)
    if mode is not None:
        os.chmod(parent, mode)


def copy_entry(source: Path, destination: Path) -> None:
    """Copy ``source`` to ``destination`` preserving metadata; directories recursively."""

    ensure_parent(destination)

    if is_link(source):
        destination.symlink_to(read_link(source))
    elif source.is_dir():
        shutil.copytree(
            source,
            destination,
            symlinks=True,
            copy_function=shutil.copy2,
            dirs_exist_ok=False,
        )
    else:
        shutil.copy2(source, destination)


def remove_path(path: Path) -> None:
    """Delete ``path`` whether it is a file, directory, or link."""

    if not path.exists() and not is_link(path):
        return
    if is_junction(path):
        os.rmdir(path)
        return
    if path.is_symlink() or path.is_file():
        path.unlink()
        return
    shutil.rmtree(path)


class LinkCapability:
    """How links are created and removed on the current platform."""

    name = "symlink"
    #: ``True`` when directories need an alternate mechanism instead of a plain symlink.
    directory_needs_alternate = False

    def create_link(self, link: Path, target: Path, kind: PathKind) -> None:
        link.symlink_to(str(target), target_is_directory=kind is PathKind.DIRECTORY)

    def remove_link(self, link: Path) -> None:
        link.unlink()


class PosixLinks(LinkCapability):
    """Plain symbolic links for files and directories."""


class WindowsLinks(LinkCapability):
    """Symbolic links for files, directory junctions for directories."""

    name = "junction"
    directory_needs_alternate = True

    def create_link(self, link: Path, target: Path, kind: PathKind) -> None:
        if kind is PathKind.DIRECTORY:
            import _winapi

            _winapi.CreateJunction(str(target), str(link))
            return
        super().create_link(link, target, kind)

    def remove_link(self, link: Path) -> None:
        if is_junction(link):
            os.rmdir(link)
            return
        super().remove_link(link)


def detect_capability(os_name: str | None = None) -> LinkCapability:
    """Return the link capability for ``os_name`` (default: the running platform)."""

    os_name = os_name or os.name
    capability: LinkCapability = WindowsLinks() if os_name == "nt" else PosixLinks()
    logger.debug("Using %s link capability", capability.name)
    return capability
