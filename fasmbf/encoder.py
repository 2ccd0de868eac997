from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .instructions import (
    COUNTED_OPERATORS,
    Input,
    InstructionSequence,
    LoopBegin,
    LoopEnd,
    Output,
)

logger = logging.getLogger(__name__)


class CompileError(Exception):
    pass


class UnbalancedLoopError(CompileError):
    """Raised for a ``]`` without an open loop or a ``[`` that is never closed."""

    def __init__(self, bracket: str, position: int, line: int, column: int) -> None:
        self.bracket = bracket
        self.position = position
        self.line = line
        self.column = column
        super().__init__(
            f"Unmatched '{bracket}' at line {line}, column {column} (offset {position})"
        )


def _locate(source: str, position: int) -> Tuple[int, int]:
    line = source.count("\n", 0, position) + 1
    column = position - (source.rfind("\n", 0, position) + 1) + 1
    return line, column


def _unbalanced(source: str, bracket: str, position: int) -> UnbalancedLoopError:
    line, column = _locate(source, position)
    return UnbalancedLoopError(bracket, position, line, column)


class Encoder:
    """Turns Brainfuck source into a run-length encoded instruction sequence.

    Consecutive identical ``+ - > <`` characters collapse into one counted
    instruction. Any other character ends the current run, including comment
    characters, so ``"+x+"`` encodes to two ``Add(1)`` instructions. Loops are
    numbered in the order they are opened.
    """

    def encode(self, source: str) -> InstructionSequence:
        sequence: InstructionSequence = []
        # (loop id, offset of its '[')
        open_loops: List[Tuple[int, int]] = []
        next_loop_id = 0
        run_char: Optional[str] = None
        run_count = 0

        for index, char in enumerate(source):
            if char in COUNTED_OPERATORS:
                if char == run_char:
                    run_count += 1
                    continue
                if run_char is not None:
                    sequence.append(COUNTED_OPERATORS[run_char](run_count))
                run_char, run_count = char, 1
                continue

            if run_char is not None:
                sequence.append(COUNTED_OPERATORS[run_char](run_count))
            run_char, run_count = None, 0

            if char == "[":
                open_loops.append((next_loop_id, index))
                sequence.append(LoopBegin(next_loop_id))
                next_loop_id += 1
            elif char == "]":
                if not open_loops:
                    raise _unbalanced(source, "]", index)
                loop_id, _ = open_loops.pop()
                sequence.append(LoopEnd(loop_id))
            elif char == ".":
                sequence.append(Output())
            elif char == ",":
                sequence.append(Input())

        if run_char is not None:
            sequence.append(COUNTED_OPERATORS[run_char](run_count))

        if open_loops:
            _, position = open_loops[-1]
            raise _unbalanced(source, "[", position)

        logger.debug(
            "Encoded %d characters into %d instructions (%d loops)",
            len(source),
            len(sequence),
            next_loop_id,
        )
        return sequence


def encode(source: str) -> InstructionSequence:
    return Encoder().encode(source)


__all__ = ["CompileError", "UnbalancedLoopError", "Encoder", "encode"]
