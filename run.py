"""Project root entry point for the web API and command line tools."""

from __future__ import annotations

import argparse
import json
import sys


def _print_response(response) -> int:
    print(json.dumps(response.body, indent=2, ensure_ascii=False))
    return 0 if response.ok else 1


def serve(args) -> int:
    from magicl10n.web import create_app

    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


def submit(args) -> int:
    from magicl10n.config import initialize_app
    from magicl10n.pipeline.orchestrator import LocalizationPipeline

    pipeline = LocalizationPipeline.from_config(initialize_app())
    return _print_response(pipeline.submit_translation_request(args.manifest_url))


def retrieve(args) -> int:
    from magicl10n.config import initialize_app
    from magicl10n.pipeline.orchestrator import LocalizationPipeline

    pipeline = LocalizationPipeline.from_config(initialize_app())
    return _print_response(pipeline.retrieve_translation_result(args.master_job_id))


def parallel_data(args) -> int:
    from magicl10n.tools.parallel_data import export_directory

    written = export_directory(args.files_dir, args.output_dir, args.base)
    for path in written:
        print(path)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="magic-l10n", description="Machine translation for module language files")
    commands = parser.add_subparsers(dest="command", required=True)

    serve_parser = commands.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=5500)
    serve_parser.add_argument("--debug", action="store_true")
    serve_parser.set_defaults(func=serve)

    submit_parser = commands.add_parser("submit", help="Submit a package for translation")
    submit_parser.add_argument("manifest_url")
    submit_parser.set_defaults(func=submit)

    retrieve_parser = commands.add_parser("retrieve", help="Check on a master job and fetch its result")
    retrieve_parser.add_argument("master_job_id")
    retrieve_parser.set_defaults(func=retrieve)

    parallel_parser = commands.add_parser("parallel-data", help="Export parallel data CSVs from language files")
    parallel_parser.add_argument("files_dir", help="Directory holding <code>.json language files")
    parallel_parser.add_argument("--output-dir", default=None)
    parallel_parser.add_argument("--base", default="en")
    parallel_parser.set_defaults(func=parallel_data)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
