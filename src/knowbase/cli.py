from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .clients import build_proxy
from .config import Config
from .errors import KnowbaseError
from .files.explode import explode
from .memory.ingest import ingest_files
from .memory.sql import FragmentsRepo, open_store
from .memory.vec.distance import VectorDistance
from .retrieval.answer import ask
from .retrieval.fill import fill
from .retrieval.search import parse_limits, search

logger = logging.getLogger("knowbase")

LIMIT_HELP = (
    "Maximum number of documents to return, e.g. --limit 5. Can be broken down by "
    "label: --limit QA:3 --limit policies:2 --limit procedures:1 returns up to 6 fragments."
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="knowbase",
        description="Build a knowledge base from files and answer questions against it.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config TOML (defaults to ./config.toml).")
    parser.add_argument("--db", type=str, default=None, help="Path to database file (overrides config).")
    parser.add_argument("--embed-model", type=str, default=None, help="provider/model used for embeddings.")
    parser.add_argument("--llm-model", type=str, default=None, help="provider/model used for answers.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>", required=True)

    add_cmd = subparsers.add_parser("add", help="Add files to the knowledge base.")
    add_cmd.add_argument("files", nargs="+", type=Path)
    add_cmd.add_argument("--label", type=str, default=None, help="Label for the fragments (overrides config).")

    search_cmd = subparsers.add_parser("search", help="Search the knowledge base for documents.")
    search_cmd.add_argument("query", nargs="+")
    search_cmd.add_argument("--limit", action="append", default=None, help=LIMIT_HELP)
    search_cmd.add_argument("--emit", action="store_true", help="Print fragment content as well as names.")

    prompt_cmd = subparsers.add_parser("prompt", help="Ask a question about the knowledge base.")
    prompt_cmd.add_argument("question", nargs="+")
    prompt_cmd.add_argument("--limit", action="append", default=None, help=LIMIT_HELP)
    prompt_cmd.add_argument("--system-prompt", type=str, default=None)

    explode_cmd = subparsers.add_parser(
        "explode", help="Split a row based file into one file per row."
    )
    explode_cmd.add_argument("files", nargs="+", type=Path)
    explode_cmd.add_argument("--out", type=str, default=None, help="Directory for the resulting files.")
    explode_cmd.add_argument("--delimiter", "-d", type=str, default="\\t", help="Column delimiter.")
    explode_cmd.add_argument("--with-headers", action="store_true")

    fill_cmd = subparsers.add_parser(
        "fill", help="Answer every row of a delimited file, appending answer columns."
    )
    fill_cmd.add_argument("--in", dest="in_path", type=Path, required=True)
    fill_cmd.add_argument("--out", dest="out_path", type=Path, required=True)
    fill_cmd.add_argument("--limit", action="append", default=None, help=LIMIT_HELP)
    fill_cmd.add_argument("--delimiter", "-d", type=str, default="\\t")
    fill_cmd.add_argument("--with-headers", action="store_true")
    fill_cmd.add_argument("--system-prompt", type=str, default=None)

    return parser


class Session:
    """Resolved settings plus the lazily opened store and provider proxy."""

    def __init__(self, args: argparse.Namespace, config: Config) -> None:
        self.args = args
        self.config = config
        self.db_path = args.db or config.core.DB_PATH
        self.embed_model = args.embed_model or config.core.EMBED_MODEL
        self.llm_model = args.llm_model or config.core.LLM_MODEL
        self.distance = VectorDistance()
        self._repo: Optional[FragmentsRepo] = None
        self._proxy = None

    @property
    def repo(self) -> FragmentsRepo:
        if self._repo is None:
            conn = open_store(self.db_path, self.distance)
            self._repo = FragmentsRepo(conn, self.distance)
        return self._repo

    @property
    def proxy(self):
        if self._proxy is None:
            self._proxy = build_proxy(self.config.providers)
        return self._proxy

    def limits(self) -> Dict[str, int]:
        return parse_limits(getattr(self.args, "limit", None) or self.config.retrieval.LIMITS)

    def system_prompt(self) -> str:
        prompt = getattr(self.args, "system_prompt", None)
        return prompt if prompt is not None else self.config.retrieval.SYSTEM_PROMPT

    def close(self) -> None:
        if self._repo is not None:
            self._repo.conn.close()


def _cmd_add(session: Session) -> None:
    label = session.args.label or session.config.retrieval.DEFAULT_LABEL
    ingest_files(
        session.args.files,
        repo=session.repo,
        proxy=session.proxy,
        model=session.embed_model,
        label=label,
    )


def _cmd_search(session: Session) -> None:
    query = " ".join(session.args.query)
    fragments = search(
        query,
        repo=session.repo,
        proxy=session.proxy,
        model=session.embed_model,
        limits=session.limits(),
    )
    for frag in fragments:
        logger.debug("Found fragment id=%d label=%s name=%s", frag.id, frag.label, frag.name)
        print(frag.name)
        if session.args.emit:
            print(frag.content)
            print()


def _cmd_prompt(session: Session) -> None:
    question = " ".join(session.args.question)
    ans = ask(
        question,
        repo=session.repo,
        proxy=session.proxy,
        embed_model=session.embed_model,
        llm_model=session.llm_model,
        limits=session.limits(),
        system_prompt=session.system_prompt(),
    )
    logger.info(
        "llm statistics tokens-input=%d tokens-output=%d tokens-total=%d model=%s "
        "confidence=%.3f sources=%d",
        ans.input_tokens,
        ans.output_tokens,
        ans.input_tokens + ans.output_tokens,
        ans.model,
        ans.confidence_score,
        len(ans.sources),
    )
    print(ans.answer)


def _cmd_explode(session: Session) -> None:
    args = session.args
    for path in args.files:
        explode(path, out_dir=args.out, delimiter=args.delimiter, with_headers=args.with_headers)


def _cmd_fill(session: Session) -> None:
    args = session.args
    rows = fill(
        args.in_path,
        args.out_path,
        repo=session.repo,
        proxy=session.proxy,
        embed_model=session.embed_model,
        llm_model=session.llm_model,
        limits=session.limits(),
        system_prompt=session.system_prompt(),
        delimiter=args.delimiter,
        with_headers=args.with_headers,
    )
    logger.info("Answered %d rows into %s", rows, args.out_path)


COMMANDS = {
    "add": _cmd_add,
    "search": _cmd_search,
    "prompt": _cmd_prompt,
    "explode": _cmd_explode,
    "fill": _cmd_fill,
}


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = Config.load(args.config)
    except KnowbaseError as exc:
        logger.error("got error loading config: %s", exc)
        return 1

    if args.verbose or config.core.VERBOSE:
        logging.getLogger().setLevel(logging.DEBUG)

    session = Session(args, config)
    try:
        COMMANDS[args.command](session)
    except (KnowbaseError, OSError) as exc:
        logger.error("got error running knowbase: %s", exc)
        return 1
    finally:
        session.close()
        session.distance.log_statistics()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
