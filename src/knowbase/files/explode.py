"""
Explode a row-based file into one text file per row, each ready to be added
to the knowledge base as its own fragment.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

logger = logging.getLogger(__name__)


def resolve_delimiter(delimiter: Optional[str]) -> str:
    """Map the CLI spelling (``\\t`` or a literal character) to a csv delimiter."""
    if not delimiter or delimiter == "\\t":
        return "\t"
    return delimiter[0]


def column_name(headers: Sequence[str], col: int) -> str:
    if len(headers) > col:
        return headers[col]
    return f"col_{col}"


def explode(
    path: Union[str, Path],
    *,
    out_dir: Optional[Union[str, Path]] = None,
    delimiter: str = "\t",
    with_headers: bool = False,
) -> List[Path]:
    """
    Write ``NNNN_<basename>`` files with ``header:\\tvalue`` lines, one per row.

    Files land in ``<dir of path>/<basename>.exploded`` unless ``out_dir`` is
    given, in which case it is resolved relative to the source directory.
    """
    src = Path(path)
    base = src.name
    target = src.parent / (Path(out_dir) if out_dir else Path(base + ".exploded"))
    target.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    headers: List[str] = []
    with src.open(newline="", encoding="utf-8") as handle:
        reader = csv.reader(handle, delimiter=resolve_delimiter(delimiter))
        for row, record in enumerate(reader, start=1):
            if row == 1 and with_headers:
                headers = list(record)
                continue

            outfile = target / f"{row - 1:04d}_{base}"
            logger.debug("writing %s", outfile)
            lines = [f"{column_name(headers, j)}:\t{value}\n" for j, value in enumerate(record)]
            outfile.write_text("".join(lines), encoding="utf-8")
            written.append(outfile)

    return written
