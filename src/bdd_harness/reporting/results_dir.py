"""Results directory housekeeping between runs."""

from __future__ import annotations

import shutil
from pathlib import Path

HISTORY_DIRNAME = 'history'


def clean_results_dir(
    results_dir: Path,
    *,
    keep: tuple[str, ...] = (HISTORY_DIRNAME,),
) -> list[Path]:
    """Remove everything in *results_dir* except the entries named in *keep*.

    The report renderer's trend charts read ``history/``, so it survives
    and is created if missing. Returns the removed paths.
    """
    removed: list[Path] = []
    if results_dir.exists():
        for entry in sorted(results_dir.iterdir()):
            if entry.name in keep:
                continue
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
            removed.append(entry)

    (results_dir / HISTORY_DIRNAME).mkdir(parents=True, exist_ok=True)
    return removed
