from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from app.modules.flashcards.client import GenerationClient
from app.modules.flashcards.errors import GenerationFailure
from app.modules.flashcards.generator import generate_flashcards_sync
from app.modules.flashcards.models.flashcards import FlashcardBatch, batch_adapter


def _load_text(args: argparse.Namespace) -> str:
    if args.text and args.text_file:
        raise SystemExit("Provide either --text or --text-file, not both")
    if args.text_file:
        text = Path(args.text_file).read_text(encoding="utf-8")
    elif args.text:
        text = args.text
    else:
        raise SystemExit("--text or --text-file is required")
    if not text.strip():
        raise SystemExit("Please enter some text to generate flashcards.")
    return text


def _dump(batch: FlashcardBatch) -> str:
    return json.dumps(batch_adapter.dump_python(batch), indent=2, ensure_ascii=False)


def _add_text_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--text", "-t", help="Text to turn into flashcards")
    parser.add_argument("--text-file", help="Path to a file containing the text")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="flashcards-gen", description="Flashcards generator CLI"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    g = sub.add_parser("generate", help="Generate flashcards locally with the model")
    _add_text_args(g)

    r = sub.add_parser(
        "request", help="Generate flashcards through a generation endpoint"
    )
    _add_text_args(r)
    r.add_argument("--endpoint", help="Generation endpoint URL (default from settings)")
    r.add_argument("--timeout", type=float, default=None, help="Timeout in seconds")

    args = parser.parse_args(argv)
    if args.cmd == "generate":
        text = _load_text(args)
        print(_dump(generate_flashcards_sync(text)))
        return 0
    if args.cmd == "request":
        text = _load_text(args)
        client = GenerationClient(args.endpoint, timeout=args.timeout)
        try:
            batch = asyncio.run(client.generate(text))
        except GenerationFailure as e:
            print(e.message)
            return 1
        print(_dump(batch))
        return 0

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
