"""Entry point for the rtcsignal CLI."""

import asyncio

from rtcsignal.cli.arg_parser import parse_args


def main(argv: list[str] | None = None) -> None:
    """Entry point for the rtcsignal CLI."""
    args = parse_args(argv)
    try:
        if args.command == "serve":
            from rtcsignal.cli.serve import run_serve

            exit_code = asyncio.run(run_serve(
                host=args.host,
                port=args.port,
                prefix=args.prefix,
                config_path=args.config,
                api_key=args.api_key,
                log_dir=args.log_dir,
                verbose=args.verbose,
            ))
        elif args.command == "probe":
            from rtcsignal.cli.probe import run_probe

            exit_code = asyncio.run(run_probe(args.url, prefix=args.prefix, api_key=args.api_key))
        else:
            print(f"Unknown command: {args.command}")
            exit_code = 1
        raise SystemExit(exit_code)
    except KeyboardInterrupt:
        # Handle Ctrl+C
        pass
