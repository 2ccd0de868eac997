from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Type, Union


def _check_count(count: int) -> None:
    if count < 1:
        raise ValueError(f"Instruction count must be at least 1, got {count}")


def _check_loop_id(loop_id: int) -> None:
    if loop_id < 0:
        raise ValueError(f"Loop id must be non-negative, got {loop_id}")


# === Instructions ===


@dataclass(frozen=True)
class Add:
    count: int

    def __post_init__(self) -> None:
        _check_count(self.count)


@dataclass(frozen=True)
class Sub:
    count: int

    def __post_init__(self) -> None:
        _check_count(self.count)


@dataclass(frozen=True)
class MoveForward:
    count: int

    def __post_init__(self) -> None:
        _check_count(self.count)


@dataclass(frozen=True)
class MoveBackward:
    count: int

    def __post_init__(self) -> None:
        _check_count(self.count)


@dataclass(frozen=True)
class LoopBegin:
    loop_id: int

    def __post_init__(self) -> None:
        _check_loop_id(self.loop_id)


@dataclass(frozen=True)
class LoopEnd:
    loop_id: int

    def __post_init__(self) -> None:
        _check_loop_id(self.loop_id)


@dataclass(frozen=True)
class Output:
    pass


@dataclass(frozen=True)
class Input:
    pass


Instruction = Union[Add, Sub, MoveForward, MoveBackward, LoopBegin, LoopEnd, Output, Input]
InstructionSequence = List[Instruction]

# Characters folded into counted runs.
COUNTED_OPERATORS: Dict[str, Type[Union[Add, Sub, MoveForward, MoveBackward]]] = {
    "+": Add,
    "-": Sub,
    ">": MoveForward,
    "<": MoveBackward,
}

# Characters that always produce exactly one instruction.
SINGLE_OPERATORS = "[].,"


def describe(instruction: Instruction) -> str:
    """Render an instruction compactly, e.g. ``Add(3)`` or ``Output``."""
    name = type(instruction).__name__
    if isinstance(instruction, (Add, Sub, MoveForward, MoveBackward)):
        return f"{name}({instruction.count})"
    if isinstance(instruction, (LoopBegin, LoopEnd)):
        return f"{name}({instruction.loop_id})"
    if isinstance(instruction, (Output, Input)):
        return name
    raise TypeError(f"Unknown instruction: {instruction!r}")


__all__ = [
    "Add",
    "Sub",
    "MoveForward",
    "MoveBackward",
    "LoopBegin",
    "LoopEnd",
    "Output",
    "Input",
    "Instruction",
    "InstructionSequence",
    "COUNTED_OPERATORS",
    "SINGLE_OPERATORS",
    "describe",
]
