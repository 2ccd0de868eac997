from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .assembler import DEFAULT_BUFFER_SIZE, Emitter
from .encoder import CompileError, encode
from .instructions import describe
from .interpreter import SequenceInterpreter, StepLimitExceeded

DEFAULT_OUTPUT_PATH = "a.asm"

logger = logging.getLogger(__name__)


def _read_source(path: str) -> str:
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return source_path.read_text(encoding="utf-8")


def _write_output(path: str, data: str) -> None:
    output_path = Path(path)
    output_path.write_text(data, encoding="utf-8")


def _to_input_bytes(data: str) -> bytes:
    return data.encode("utf-8")


def _buffer_size(value: str) -> int:
    try:
        size = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid buffer size: '{value}'") from None
    if size < 1:
        raise argparse.ArgumentTypeError(f"buffer size must be positive, got {size}")
    return size


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Compile Brainfuck to FASM x86-64 assembly")
    parser.add_argument("source", nargs="?", help="Path to Brainfuck source file")
    parser.add_argument(
        "-o",
        "--output",
        help=f"Destination file for emitted assembly (default: {DEFAULT_OUTPUT_PATH})",
    )
    parser.add_argument(
        "-b",
        "--buffer-size",
        type=_buffer_size,
        default=DEFAULT_BUFFER_SIZE,
        help=f"Length of the Brainfuck buffer in bytes (default: {DEFAULT_BUFFER_SIZE})",
    )
    parser.add_argument(
        "--dump-ir",
        action="store_true",
        help="Print the encoded instruction sequence to stdout",
    )
    parser.add_argument(
        "--run",
        action="store_true",
        help="Execute the program with the reference interpreter instead of only compiling",
    )
    parser.add_argument(
        "--input",
        help="Optional input string supplied to the program when running",
        default="",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.source is None:
        print("No input file specified!", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    try:
        source_text = _read_source(args.source)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Could not read file {args.source}: {exc}", file=sys.stderr)
        return 1

    try:
        sequence = encode(source_text)
    except CompileError as exc:
        print(f"Compilation error: {exc}", file=sys.stderr)
        return 1

    if args.dump_ir:
        for instruction in sequence:
            sys.stdout.write(describe(instruction) + "\n")

    output_path = args.output
    if output_path is None and not args.run:
        output_path = DEFAULT_OUTPUT_PATH

    if output_path is not None:
        assembly = Emitter().emit(sequence, args.buffer_size)
        try:
            _write_output(output_path, assembly)
        except OSError as exc:
            print(f"Failed to write assembly to {output_path}: {exc}", file=sys.stderr)
            return 1
        logger.info("Wrote %s", output_path)

    if args.run:
        interpreter = SequenceInterpreter(buffer_size=args.buffer_size)
        try:
            output = interpreter.run(sequence, input_data=_to_input_bytes(args.input))
        except (IndexError, StepLimitExceeded) as exc:
            print(f"Runtime error: {exc}", file=sys.stderr)
            return 1
        # program output is raw bytes, bypass the text layer
        sys.stdout.flush()
        sys.stdout.buffer.write(output)
        sys.stdout.buffer.flush()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
