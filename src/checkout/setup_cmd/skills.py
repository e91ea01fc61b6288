"""Symlink skill prompt files into the assistant's commands directory."""

import glob
import os
from dataclasses import dataclass, field
from typing import List

from checkout.errors import NotFound

DEFAULT_COMMANDS_DIR = os.path.join("~", ".claude", "commands")


@dataclass
class SkillLinkResult:
    linked: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)


def skill_files(source_dir):
    """Markdown prompt files directly inside ``source_dir``, sorted by name."""
    if not os.path.isdir(source_dir):
        raise NotFound(f"Skills directory not found: {source_dir}")
    return sorted(glob.glob(os.path.join(source_dir, "*.md")))


def skills_target(target_dir=None, namespace=""):
    target = os.path.expanduser(target_dir or DEFAULT_COMMANDS_DIR)
    if namespace:
        target = os.path.join(target, namespace)
    return os.path.abspath(target)


def link_skills(source_dir, target_dir=None, namespace="") -> SkillLinkResult:
    """Link every skill file into ``<target_dir>/<namespace>/``.

    Existing symlinks are repointed; regular files are never overwritten.
    """
    source_dir = os.path.abspath(os.path.expanduser(source_dir))
    target = skills_target(target_dir, namespace)
    result = SkillLinkResult()
    files = skill_files(source_dir)
    os.makedirs(target, exist_ok=True)

    for source in files:
        name = os.path.basename(source)
        dest = os.path.join(target, name)
        if os.path.islink(dest):
            if os.path.realpath(dest) == os.path.realpath(source):
                result.unchanged.append(name)
                continue
            os.remove(dest)
        elif os.path.exists(dest):
            result.skipped.append(name)
            continue
        os.symlink(source, dest)
        result.linked.append(name)
    return result


def unlink_skills(source_dir, target_dir=None, namespace="") -> SkillLinkResult:
    """Remove the symlinks in the target directory that point into ``source_dir``."""
    source_dir = os.path.realpath(os.path.expanduser(source_dir))
    target = skills_target(target_dir, namespace)
    result = SkillLinkResult()
    if not os.path.isdir(target):
        return result
    for name in sorted(os.listdir(target)):
        dest = os.path.join(target, name)
        if not os.path.islink(dest):
            continue
        if os.path.dirname(os.path.realpath(dest)) == source_dir:
            os.remove(dest)
            result.removed.append(name)
    return result
