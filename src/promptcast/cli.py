"""Command-line interface for the promptcast project."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Coroutine, Sequence
from pathlib import Path
from typing import Any, cast

from openai import OpenAIError
from pydantic import ValidationError

from promptcast import __version__
from promptcast.core.descriptors import load_descriptor
from promptcast.core.errors import PreconditionError, PromptcastError, ResponseValidationError
from promptcast.core.safety import mask_pii, scrub_for_logging
from promptcast.parsers import PromptParser, get_default_parser

EXIT_FAILURE = 1
EXIT_PRECONDITION = 2


class CliError(RuntimeError):
    """Exception raised for anticipated CLI failures."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: int = EXIT_FAILURE,
        details: Any | None = None,
        error_type: str | None = None,
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.details = details
        self.error_type = error_type or type(self).__name__


def main(argv: Sequence[str] | None = None, *, prompt_parser: PromptParser | None = None) -> int:
    """Parse *argv*, execute the requested command and return the exit code."""
    parser = _build_parser()
    args_namespace = parser.parse_args(argv)
    command = getattr(args_namespace, "command", None)
    if command is None:
        parser.print_help()
        return EXIT_FAILURE
    try:
        target = prompt_parser or get_default_parser()
        result = asyncio.run(command(target, args_namespace))
        _write_json_output({"result": result}, args_namespace.output_path)
        exit_code = 0
    except CliError as error:
        _emit_error(error)
        exit_code = error.exit_code
    except PreconditionError as error:
        cli_error = CliError(str(error), exit_code=EXIT_PRECONDITION, error_type=type(error).__name__)
        _emit_error(cli_error)
        exit_code = cli_error.exit_code
    except ResponseValidationError as error:
        details = {"path": error.path, "expected": error.expected, "actual": error.actual}
        cli_error = CliError(str(error), details=details, error_type=type(error).__name__)
        _emit_error(cli_error)
        exit_code = cli_error.exit_code
    except (PromptcastError, OpenAIError) as error:
        cli_error = CliError(str(error), error_type=type(error).__name__)
        _emit_error(cli_error)
        exit_code = cli_error.exit_code
    except KeyboardInterrupt as error:  # pragma: no cover - manual interruption
        cli_error = CliError("Aborted by user", exit_code=130, details=str(error))
        _emit_error(cli_error)
        exit_code = cli_error.exit_code
    return exit_code


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promptcast",
        description="Answer natural-language prompts with typed, schema-validated values.",
    )
    parser.add_argument("--version", action="version", version=f"promptcast {__version__}")
    subparsers = parser.add_subparsers(dest="command_name")

    _add_command(subparsers, "bool", "Answer the prompt with true or false.", _command_bool)

    categorize_parser = _add_command(
        subparsers, "categorize", "Classify the prompt as one of the allowed values.", _command_categorize,
    )
    categorize_parser.add_argument(
        "--value",
        dest="allowed_values",
        action="append",
        required=True,
        help="An allowed category; repeat for each value.",
    )

    list_parser = _add_command(
        subparsers, "list", "Answer the prompt with a bounded list of values.", _command_list,
    )
    list_parser.add_argument(
        "--value",
        dest="allowed_values",
        action="append",
        help="An allowed value; repeat for each value. Omit to accept any string.",
    )
    list_parser.add_argument("--min", dest="min_values", type=int, default=1, help="Minimum number of values.")
    list_parser.add_argument("--max", dest="max_values", type=int, default=5, help="Maximum number of values.")

    _add_command(subparsers, "string", "Answer the prompt with free text.", _command_string)

    type_parser = _add_command(
        subparsers, "type", "Answer the prompt with a value matching a type descriptor.", _command_type,
    )
    type_parser.add_argument(
        "--descriptor",
        dest="descriptor_path",
        required=True,
        help="JSON file containing the type descriptor.",
    )

    return parser


def _add_command(subparsers: Any, name: str, help_text: str, handler: Any) -> argparse.ArgumentParser:
    command_parser = cast("argparse.ArgumentParser", subparsers.add_parser(name, help=help_text))
    command_parser.set_defaults(command=handler)
    command_parser.add_argument("prompt", help="The prompt text, or '-' to read it from stdin.")
    command_parser.add_argument(
        "--high-capability",
        dest="high_capability_model",
        action="store_true",
        help="Use the higher-capability (and higher-cost) model.",
    )
    command_parser.add_argument(
        "--output",
        "--out",
        dest="output_path",
        help="Optional path to write the JSON result to (default: stdout).",
    )
    return command_parser


def _read_prompt(args: argparse.Namespace) -> str:
    prompt = cast("str", args.prompt)
    if prompt == "-":
        return sys.stdin.read()
    return prompt


def _command_bool(parser: PromptParser, args: argparse.Namespace) -> Coroutine[Any, Any, bool]:
    return parser.as_bool(_read_prompt(args), high_capability_model=args.high_capability_model)


def _command_categorize(parser: PromptParser, args: argparse.Namespace) -> Coroutine[Any, Any, str]:
    return parser.categorize(
        _read_prompt(args),
        args.allowed_values,
        high_capability_model=args.high_capability_model,
    )


def _command_list(parser: PromptParser, args: argparse.Namespace) -> Coroutine[Any, Any, list[str]]:
    return parser.as_list(
        _read_prompt(args),
        args.allowed_values,
        args.min_values,
        args.max_values,
        high_capability_model=args.high_capability_model,
    )


def _command_string(parser: PromptParser, args: argparse.Namespace) -> Coroutine[Any, Any, str]:
    return parser.as_string(_read_prompt(args), high_capability_model=args.high_capability_model)


def _command_type(parser: PromptParser, args: argparse.Namespace) -> Coroutine[Any, Any, Any]:
    raw_descriptor = _read_json(Path(args.descriptor_path))
    try:
        descriptor = load_descriptor(raw_descriptor)
    except ValidationError as error:
        message = f"Invalid type descriptor in {args.descriptor_path}"
        raise CliError(message, exit_code=EXIT_PRECONDITION, details=error.errors(include_url=False)) from error
    return parser.as_type(_read_prompt(args), descriptor, high_capability_model=args.high_capability_model)


def _read_json(path: Path) -> object:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as error:
        message = f"File not found: {path}"
        raise CliError(message, exit_code=EXIT_PRECONDITION) from error
    except OSError as error:
        message = f"Unable to read {path}: {error}"  # pragma: no cover - defensive guard
        raise CliError(message) from error
    try:
        return cast("object", json.loads(text))
    except json.JSONDecodeError as error:
        message = f"Failed to parse JSON from {path}: {error}"
        raise CliError(message, exit_code=EXIT_PRECONDITION) from error


def _write_json_output(payload: Any, output_path: str | None) -> None:
    serialized = json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)
    if output_path in {None, "", "-"}:
        sys.stdout.write(serialized + "\n")
        sys.stdout.flush()
        return
    path = Path(cast("str", output_path))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialized + "\n", encoding="utf-8")


def _emit_error(error: CliError) -> None:
    payload: dict[str, Any] = {
        "status": "error",
        "message": mask_pii(str(error)),
        "type": error.error_type,
    }
    if error.details is not None:
        payload["details"] = scrub_for_logging(error.details)
    serialized = json.dumps(payload, ensure_ascii=False, sort_keys=True, default=str)
    sys.stderr.write(serialized + "\n")
    sys.stderr.flush()


__all__ = ["CliError", "main"]
