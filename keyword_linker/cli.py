import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from keyword_linker.config import PipelineConfig, RedirectMode
from keyword_linker.errors import KeywordLinkerError
from keyword_linker.pipeline import LinkingPipeline

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keyword-linker",
        description="Link keywords in documents to knowledge base entities.",
    )
    parser.add_argument("--config", required=True, help="Pipeline config JSON file.")
    parser.add_argument("--input", nargs="+", required=True, help="Input document files.")
    parser.add_argument("--output", help="Write results to this JSONL file instead of stdout.")
    parser.add_argument("--language", help="Document language when none is given.")
    parser.add_argument(
        "--redirect-mode",
        choices=[m.value for m in RedirectMode],
        help="Override the configured redirect handling.",
    )
    parser.add_argument(
        "--max-suggestions", type=int, help="Override the configured number of suggestions."
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ...).",
    )
    return parser


def load_config(args: argparse.Namespace) -> PipelineConfig:
    data = json.loads(Path(args.config).read_text(encoding="utf-8"))
    linking = dict(data.get("linking") or {})
    if args.redirect_mode:
        linking["redirect_mode"] = args.redirect_mode
    if args.max_suggestions is not None:
        linking["max_suggestions"] = args.max_suggestions
    data["linking"] = linking
    if args.language:
        data["language"] = args.language
    return PipelineConfig.from_dict(data)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        pipeline = LinkingPipeline(load_config(args))
    except (KeywordLinkerError, KeyError, OSError, ValueError) as exc:
        parser.error(f"invalid configuration: {exc}")

    if args.output:
        results = pipeline.run(args.input, output_path=args.output)
        logger.info(f"Wrote {len(results)} results to {args.output}")
        return 0

    for result in pipeline.iter_results(args.input):
        print(json.dumps(result, ensure_ascii=False), flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
