"""Command line interface for filesender package."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from rich.logging import RichHandler

from .cli_progress import TransferProgress, console, render_configuration_summary
from .coordinator import TransferCoordinator
from .models import Endpoints, ErrorInfo, FileDescriptor, TransferConfig, TransferOptions
from .services.classifier import classify, validate_file
from .services.credentials import JsonFileTokenStore
from .utils.cancellation import CancellationToken


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ABORTED = 130


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug or --log-level is provided.
    Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    if silent or (not debug and not log_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
        console=console,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    # httpx/httpcore are chatty at DEBUG
    logging.getLogger("httpcore").setLevel(max(level, logging.INFO))
    return logging.getLevelName(level)


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_env_file(path: Path, override: bool = False) -> None:
    if not path.exists():
        raise CLIError(f"env file not found: {path}")
    if not path.is_file():
        raise CLIError(f"env path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(value.strip())
        if override or key not in os.environ:
            os.environ[key] = value


def _resolve_default_env_file() -> Optional[Path]:
    default_env = Path(".env")
    return default_env if default_env.exists() and default_env.is_file() else None


def _parse_meta(items: Optional[Sequence[str]]) -> Dict[str, Any]:
    meta: Dict[str, Any] = {}
    for item in items or ():
        if "=" not in item:
            raise CLIError(f"metadata must be KEY=VALUE, got: {item!r}")
        key, value = item.split("=", 1)
        key = key.strip()
        if not key:
            raise CLIError(f"metadata key is empty: {item!r}")
        meta[key] = _strip_optional_quotes(value.strip())
    return meta


def _build_config(args: argparse.Namespace) -> TransferConfig:
    env_config = TransferConfig.from_env()
    credentials_file = args.credentials_file or env_config.credentials_file
    return TransferConfig(
        base_url=args.base_url if args.base_url is not None else env_config.base_url,
        timeout=args.timeout if args.timeout is not None else env_config.timeout,
        credentials_file=Path(credentials_file).expanduser() if credentials_file else None,
    )


def _describe_error(error: Optional[ErrorInfo]) -> str:
    if error is None:
        return "unknown error"
    status = f" (HTTP {error.status})" if error.status is not None else ""
    return f"{error.kind.value}{status}: {error.message}"


async def _run_send(
    file: FileDescriptor,
    endpoints: Endpoints,
    meta: Dict[str, Any],
    force_base64: bool,
    config: TransferConfig,
) -> int:
    token_store = JsonFileTokenStore(config.credentials_file) if config.credentials_file else None
    cancellation = CancellationToken()

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancellation.cancel)
        handles_sigint = True
    except (NotImplementedError, RuntimeError):
        handles_sigint = False

    progress = TransferProgress(file.name, file.size_bytes)
    progress.start()
    try:
        async with TransferCoordinator(config=config, token_store=token_store) as sender:
            result = await sender.send_file(
                file,
                TransferOptions(
                    endpoints=endpoints,
                    meta=meta,
                    on_progress=progress.get_callback(),
                    cancellation=cancellation,
                    force_base64=force_base64,
                ),
            )
    finally:
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)

    if result.ok:
        progress.complete(success=True, message=f"ref={result.file_ref}" if result.file_ref else None)
        return EXIT_OK
    if result.aborted:
        progress.complete(success=False, message="aborted")
        return EXIT_ABORTED
    progress.complete(success=False, message=_describe_error(result.error))
    if result.response_body is not None:
        console.print(result.response_body)
    return EXIT_FAILED


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="send-file",
        description="Send a file to the API, choosing multipart or base64 JSON by file type.",
    )
    parser.add_argument("source", nargs="?", type=Path, help="File to send")
    parser.add_argument("--audio-endpoint", default=None, help="Endpoint for audio files")
    parser.add_argument("--doc-endpoint", default=None, help="Endpoint for documents and images")
    parser.add_argument(
        "-m",
        "--meta",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Metadata field sent with the file (repeatable)",
    )
    parser.add_argument(
        "-f",
        "--field",
        default=None,
        help="Request field carrying the file (default depends on file type)",
    )
    parser.add_argument(
        "--force-base64",
        action="store_true",
        help="Never use the audio route (images still go as base64, documents as multipart)",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="API base URL (default from FILESENDER_BASE_URL)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Request timeout in seconds (default from FILESENDER_TIMEOUT or 30)",
    )
    parser.add_argument(
        "--credentials-file",
        type=Path,
        default=None,
        help="JSON file with stored tokens (default from FILESENDER_CREDENTIALS_FILE)",
    )
    parser.add_argument(
        "--allow-ext",
        action="append",
        default=None,
        metavar="EXT",
        help="Reject files whose extension is not listed (repeatable)",
    )
    parser.add_argument("--max-size", type=int, default=None, help="Reject files larger than this many bytes")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="send-file (from filesender)",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _resolve_default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return EXIT_FAILED

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    if args.source is None:
        parser.print_help()
        return EXIT_OK

    try:
        source = Path(args.source).expanduser()
        if not source.is_file():
            raise CLIError(f"source is not a file: {source}")
        if not args.audio_endpoint or not args.doc_endpoint:
            raise CLIError("both --audio-endpoint and --doc-endpoint are required")

        file = FileDescriptor.from_path(source)
        if args.allow_ext or args.max_size:
            try:
                validate_file(file, args.allow_ext or (), args.max_size)
            except ValueError as exc:
                raise CLIError(str(exc)) from exc

        meta = _parse_meta(args.meta)
        if args.field:
            meta[args.field] = file
        config = _build_config(args)
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILED

    endpoints = Endpoints(audio=args.audio_endpoint, doc=args.doc_endpoint)
    strategy = classify(file, args.force_base64)
    render_configuration_summary(
        {
            "Source": str(source),
            "Type": file.mime_type or "(unknown)",
            "Strategy": strategy.value,
            "Endpoint": endpoints.for_strategy(strategy),
            "Base URL": config.base_url or "(relative)",
            "Credentials": str(config.credentials_file) if config.credentials_file else "-",
            "Metadata": ", ".join(k for k in meta if meta[k] is not file) or "-",
            "Env File": str(used_env_file) if used_env_file else "-",
            "Logging": effective_log_mode,
        }
    )

    try:
        return asyncio.run(_run_send(file, endpoints, meta, args.force_base64, config))
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return EXIT_ABORTED


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
