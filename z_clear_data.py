#!/usr/bin/env python3
"""
Remove local ledger state: SQLite databases, log files and Python caches
"""

from pathlib import Path
import shutil

# (label, glob pattern, is_directory)
TARGETS = [
    ("__pycache__ directories", "__pycache__", True),
    (".db files", "*.db", False),
    (".log files", "*.log", False),
    (".pyc files", "*.pyc", False),
]


def _remove(path, is_directory):
    if is_directory:
        shutil.rmtree(path)
    else:
        path.unlink()


def clear_data(root=None):
    """
    Recursively delete ledger databases, logs and caches under ``root``

    Args:
        root (Path, optional): Directory to clean (defaults to the current directory)

    Returns:
        dict: Count of removed entries per target label
    """
    root = Path(root) if root else Path.cwd()
    print(f"=== Clearing ledger data under {root} ===")

    counts = {}
    for label, pattern, is_directory in TARGETS:
        removed = 0
        for path in root.rglob(pattern):
            if not path.exists():
                continue
            try:
                _remove(path, is_directory)
            except OSError as e:
                print(f"   ✗ Failed to remove {path}: {e}")
                continue
            print(f"   ✓ Removed: {path}")
            removed += 1
        counts[label] = removed

    print("\n=== Cleanup Complete ===")
    for label, removed in counts.items():
        print(f"  - {label}: {removed}")
    return counts


if __name__ == '__main__':
    clear_data()
