"""
Batch question answering over a delimited file.

Each input row becomes one question; the answer and its confidence score are
appended as two extra columns in the output file.
"""

from __future__ import annotations

import csv
import logging
import time
from pathlib import Path
from typing import Mapping, Union

from knowbase.clients.proxy import ModelRef, ProviderProxy
from knowbase.files.explode import column_name, resolve_delimiter
from knowbase.memory.sql.repositories import FragmentsRepo
from .answer import ask

logger = logging.getLogger(__name__)


def render_row(headers, record) -> str:
    return "\n".join(
        f"<{column_name(headers, j)}>\n  {value}\n</{column_name(headers, j)}>"
        for j, value in enumerate(record)
    )


def fill(
    in_path: Union[str, Path],
    out_path: Union[str, Path],
    *,
    repo: FragmentsRepo,
    proxy: ProviderProxy,
    embed_model: Union[str, ModelRef],
    llm_model: Union[str, ModelRef],
    limits: Mapping[str, int],
    system_prompt: str = "",
    delimiter: str = "\t",
    with_headers: bool = False,
) -> int:
    """
    Answer every row of ``in_path`` into ``out_path``.

    :returns: Number of rows answered.
    """
    sep = resolve_delimiter(delimiter)
    answered = 0
    input_total = output_total = 0
    headers: list[str] = []

    with open(in_path, newline="", encoding="utf-8") as src, open(
        out_path, "w", newline="", encoding="utf-8"
    ) as dst:
        reader = csv.reader(src, delimiter=sep)
        writer = csv.writer(dst, delimiter=sep)

        for row, record in enumerate(reader, start=1):
            start = time.perf_counter()
            if row == 1 and with_headers:
                headers = list(record)
                writer.writerow(record + ["answer", "confidence_score"])
                continue

            ans = ask(
                render_row(headers, record),
                repo=repo,
                proxy=proxy,
                embed_model=embed_model,
                llm_model=llm_model,
                limits=limits,
                system_prompt=system_prompt,
            )
            writer.writerow(record + [ans.answer, f"{ans.confidence_score:.3f}"])
            dst.flush()
            answered += 1
            input_total += ans.input_tokens
            output_total += ans.output_tokens

            logger.debug(
                "Fill row=%d confidence=%.3f took=%.2fs input-tokens=%d output-tokens=%d "
                "input-tokens-total=%d output-tokens-total=%d",
                row,
                ans.confidence_score,
                time.perf_counter() - start,
                ans.input_tokens,
                ans.output_tokens,
                input_total,
                output_total,
            )

    return answered
