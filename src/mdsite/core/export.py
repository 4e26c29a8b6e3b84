"""Export: write rendered outputs under the output directory"""

import logging
from pathlib import Path

from mdsite.core.render import RenderResult


logger = logging.getLogger(__name__)


def write_result(result: RenderResult, output_dir: Path) -> Path:
    """Write one rendered output; parent directories are created as needed.

    Returns the written path.
    """
    dest = output_dir / result.path
    if output_dir.resolve() not in dest.resolve().parents:
        raise ValueError(f"Output path escapes the output directory: {result.path}")
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(result.contents, encoding='utf-8')
    return dest


def write_results(results: list[RenderResult], output_dir: Path) -> list[Path]:
    """Write every result in order. A later result for the same path overwrites an earlier one."""
    seen: set[Path] = set()
    written = []
    for r in results:
        if r.path in seen:
            logger.warning("Overwriting %s (produced more than once)", r.path)
        seen.add(r.path)
        written.append(write_result(r, output_dir))
    return written
