"""Worktree setup: link shared directories, copy config files and run the trust command.

Every step raises AuxiliarySetupFailure on error; setup_worktree collects
those into warnings so a usable worktree is never failed by its setup.
"""

import os
import shutil
import subprocess
from typing import List

from checkout.errors import AuxiliarySetupFailure


def setup_worktree(worktree_path, source_root, config) -> List[str]:
    """Run all auxiliary setup steps and return one warning per failed step."""
    warnings = []
    steps = [
        (_link_shared_dir, name) for name in config.shared_dirs
    ] + [
        (_copy_config_file, name) for name in config.copy_files
    ]
    for step, name in steps:
        try:
            step(source_root, worktree_path, name)
        except AuxiliarySetupFailure as e:
            warnings.append(str(e))
    if config.trust_command:
        try:
            _run_trust_command(worktree_path, config.trust_command)
        except AuxiliarySetupFailure as e:
            warnings.append(str(e))
    return warnings


def _link_shared_dir(source_root, dest_root, name):
    """Symlink source_root/name into dest_root when it exists in the source only."""
    source = os.path.join(source_root, name)
    dest = os.path.join(dest_root, name)
    if not os.path.isdir(source) or os.path.lexists(dest):
        return
    try:
        os.makedirs(os.path.dirname(dest), exist_ok=True)
        os.symlink(source, dest, target_is_directory=True)
    except OSError as e:
        raise AuxiliarySetupFailure(f"symlink {name}", str(e))


def _copy_config_file(source_root, dest_root, name):
    """Copy source_root/name into dest_root unless the worktree already has it."""
    source = os.path.join(source_root, name)
    dest = os.path.join(dest_root, name)
    if not os.path.isfile(source) or os.path.lexists(dest):
        return
    try:
        os.makedirs(os.path.dirname(dest), exist_ok=True)
        shutil.copy2(source, dest)
    except OSError as e:
        raise AuxiliarySetupFailure(f"copy {name}", str(e))


def _run_trust_command(worktree_path, command):
    """Run the trust command in the worktree if its executable is on PATH."""
    if shutil.which(command[0]) is None:
        return
    label = " ".join(command)
    try:
        result = subprocess.run(command, cwd=worktree_path, capture_output=True, text=True)
    except OSError as e:
        raise AuxiliarySetupFailure(label, str(e))
    if result.returncode != 0:
        raise AuxiliarySetupFailure(label, result.stderr.strip() or f"exit status {result.returncode}")
