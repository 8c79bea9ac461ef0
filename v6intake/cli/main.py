# v6intake/cli/main.py
import argparse
import json
import logging
import pathlib
import sys
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from v6intake.config import IntakeConfig, Workspace
from v6intake.confirm import AutoConfirmer, Confirmer, TerminalConfirmer
from v6intake.core.errors import ConfirmationDeclined, IntakeError
from v6intake.core.metrics import MetricsCollector
from v6intake.pipeline import IntakePipeline
from v6intake.workspace.model import load_model
from v6intake.workspace.reset import reset_workspace
from v6intake.workspace.state import PhaseStateStore

logger = logging.getLogger("v6intake.cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_ABORTED = 2


def setup_cli_logging(log_level_str: str = "INFO", log_file: Optional[pathlib.Path] = None) -> None:
    """Configures logging for the CLI: stdout, plus an appending log file if given."""
    numeric_level = getattr(logging, log_level_str.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level_str}")

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode="a"))

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s [%(levelname)s] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )
    logger.debug("CLI logging initialized at level %s.", log_level_str.upper())
    if log_file:
        logger.debug("Logging additionally to file: %s", log_file)


def build_config(args: argparse.Namespace) -> IntakeConfig:
    config = IntakeConfig.from_file(args.config) if args.config else IntakeConfig()
    overrides: Dict[str, Any] = {
        "base_output_directory": args.base_dir,
        "min_addresses": args.min_addresses,
        "entropy_bit_length": args.entropy_bits,
        "entropy_threshold": args.entropy_threshold,
        "emit_frequency": args.emit_frequency,
        "output_encoding": args.output_encoding,
        "output_file_name": args.output_file,
    }
    return config.with_overrides(overrides)


def build_confirmer(args: argparse.Namespace) -> Confirmer:
    if getattr(args, "yes", False):
        return AutoConfirmer()
    return TerminalConfirmer()


# --- Command Handler Functions ---
def handle_intake(args: argparse.Namespace, config: IntakeConfig) -> int:
    metrics = MetricsCollector()
    pipeline = IntakePipeline(
        config,
        build_confirmer(args),
        metrics=metrics,
        progress_bars_enabled=args.progress_bars,
    )
    try:
        summary = pipeline.run(args.input_file, args.encoding)
    finally:
        logger.debug("Intake metrics: %s", json.dumps(metrics.snapshot(), default=str))
    print(summary.model_dump_json(indent=2))
    return EXIT_OK


def handle_status(args: argparse.Namespace, config: IntakeConfig) -> int:
    workspace = Workspace(config)
    phase = PhaseStateStore(workspace.state_file).read()
    status: Dict[str, Any] = {
        "base_output_directory": str(workspace.base_dir),
        "phase": phase.value,
        "model_path": None,
        "model_name": None,
    }
    model_path = Workspace.most_recent_file(workspace.model_dir)
    if model_path is not None:
        status["model_path"] = str(model_path)
        status["model_name"] = load_model(model_path).name
    print(json.dumps(status, indent=2))
    return EXIT_OK


def handle_reset(args: argparse.Namespace, config: IntakeConfig) -> int:
    base_dir = Workspace(config).base_dir
    build_confirmer(args).confirm(
        f"Delete all files under '{base_dir}'? Directories are kept.",
        f"Exiting. Nothing under '{base_dir}' was deleted.",
    )
    deleted = reset_workspace(base_dir)
    print(json.dumps({"base_output_directory": str(base_dir), "files_deleted": deleted}, indent=2))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="v6intake",
        description="v6intake: prepare an IPv6 seed list and start a fresh scan campaign.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose", action="store_const", const="DEBUG", dest="log_level",
        help="Enable verbose (DEBUG level) logging to stdout."
    )
    parser.add_argument("--log-file", type=pathlib.Path, help="Path to a file for logging (appends).")
    parser.add_argument("--config", type=pathlib.Path, help="Path to a JSON configuration file.")
    parser.add_argument("--progress-bars", action="store_true", help="Show progress bars for long stages.")
    parser.add_argument("--base-dir", help="Base output directory of the workspace.")
    parser.add_argument("--min-addresses", type=int, help="Recommended minimum number of input addresses.")
    parser.add_argument("--entropy-bits", type=int, help="Number of low-order bits to score for entropy.")
    parser.add_argument("--entropy-threshold", type=float, help="Addresses scoring at or above this are dropped.")
    parser.add_argument("--emit-frequency", type=int, help="Log progress every this many addresses.")
    parser.add_argument("--output-encoding", help="Encoding of written address files (bin or text).")
    parser.add_argument(
        "--output-file", help="Running output address file, relative to the base directory unless absolute."
    )
    parser.set_defaults(log_level="INFO")

    command_subparsers = parser.add_subparsers(dest="command", title="Commands", required=True)

    intake_parser = command_subparsers.add_parser("intake", help="Seed the workspace from an address file.")
    intake_parser.add_argument("input_file", type=pathlib.Path, help="File of IPv6 addresses.")
    intake_parser.add_argument(
        "--encoding", default="text",
        help="Input encoding: 'bin' (packed 16-byte values) or 'text' (one address per line)."
    )
    intake_parser.add_argument("-y", "--yes", action="store_true", help="Approve all confirmation prompts.")
    intake_parser.set_defaults(handler_func=handle_intake)

    status_parser = command_subparsers.add_parser("status", help="Show the current pipeline phase and model.")
    status_parser.set_defaults(handler_func=handle_status)

    reset_parser = command_subparsers.add_parser("reset", help="Delete all files in the workspace.")
    reset_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation.")
    reset_parser.set_defaults(handler_func=handle_reset)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_cli_logging(args.log_level, args.log_file)

    try:
        config = build_config(args)
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_FAILURE
    except IntakeError as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    try:
        return args.handler_func(args, config)
    except ConfirmationDeclined as e:
        logger.warning("%s", e)
        return EXIT_ABORTED
    except IntakeError as e:
        logger.error("Command '%s' failed: %s", args.command, e, exc_info=True)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
