from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Optional

from .assembler import DEFAULT_BUFFER_SIZE
from .instructions import (
    Add,
    Input,
    Instruction,
    InstructionSequence,
    LoopBegin,
    LoopEnd,
    MoveBackward,
    MoveForward,
    Output,
    Sub,
)


class StepLimitExceeded(RuntimeError):
    """Raised when execution exceeds the configured step budget."""


@dataclass
class ExecutionState:
    step: int
    pc: int
    instruction: Optional[Instruction]
    pointer: int
    cell: int
    output_length: int


@dataclass
class SequenceInterpreter:
    """Executes an instruction sequence on the same machine the emitted code targets.

    The tape holds ``buffer_size`` bytes with the pointer starting at the
    midpoint. Input and output are raw bytes. Reading past the end of the
    input leaves the cell unchanged, as a zero-byte ``read`` does.
    """

    buffer_size: int = DEFAULT_BUFFER_SIZE

    tape: bytearray = field(init=False, repr=False)
    pointer: int = field(init=False, repr=False)
    output_buffer: bytearray = field(init=False, repr=False)
    steps: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.buffer_size < 1:
            raise ValueError(f"Buffer size must be a positive integer, got {self.buffer_size}")
        self.reset()

    def reset(self) -> None:
        self.tape = bytearray(self.buffer_size)
        self.pointer = self.buffer_size // 2
        self.output_buffer = bytearray()
        self.steps = 0

    def run(
        self,
        sequence: InstructionSequence,
        input_data: Optional[Iterable[int]] = None,
        max_steps: Optional[int] = None,
    ) -> bytes:
        self.reset()
        input_iter = iter(bytes(input_data or b""))
        jump_map = self._build_jump_map(sequence)
        pc = 0
        while pc < len(sequence):
            self._check_budget(max_steps)
            pc = self._execute_instruction(sequence[pc], pc, jump_map, input_iter)
            self.steps += 1
        return bytes(self.output_buffer)

    def step(
        self,
        sequence: InstructionSequence,
        input_data: Optional[Iterable[int]] = None,
        max_steps: Optional[int] = None,
    ) -> Iterator[ExecutionState]:
        self.reset()
        input_iter = iter(bytes(input_data or b""))
        jump_map = self._build_jump_map(sequence)
        pc = 0
        while pc < len(sequence):
            self._check_budget(max_steps)
            instruction = sequence[pc]
            pc = self._execute_instruction(instruction, pc, jump_map, input_iter)
            self.steps += 1
            yield self._snapshot(pc, instruction)

    def _check_budget(self, max_steps: Optional[int]) -> None:
        if max_steps is not None and self.steps >= max_steps:
            raise StepLimitExceeded("Program exceeded allowed step count")

    def _execute_instruction(
        self,
        instruction: Instruction,
        pc: int,
        jump_map: Dict[int, int],
        input_iter: Iterator[int],
    ) -> int:
        new_pc = pc + 1
        if isinstance(instruction, Add):
            self.tape[self.pointer] = (self.tape[self.pointer] + instruction.count) % 256
        elif isinstance(instruction, Sub):
            self.tape[self.pointer] = (self.tape[self.pointer] - instruction.count) % 256
        elif isinstance(instruction, MoveForward):
            self._move(instruction.count)
        elif isinstance(instruction, MoveBackward):
            self._move(-instruction.count)
        elif isinstance(instruction, LoopBegin):
            if self.tape[self.pointer] == 0:
                new_pc = jump_map[pc] + 1
        elif isinstance(instruction, LoopEnd):
            if self.tape[self.pointer] != 0:
                new_pc = jump_map[pc] + 1
        elif isinstance(instruction, Output):
            self.output_buffer.append(self.tape[self.pointer])
        elif isinstance(instruction, Input):
            value = next(input_iter, None)
            if value is not None:
                self.tape[self.pointer] = value
        else:
            raise TypeError(f"Unhandled instruction: {instruction!r}")
        return new_pc

    def _move(self, delta: int) -> None:
        pointer = self.pointer + delta
        if pointer >= self.buffer_size:
            raise IndexError("Pointer moved beyond the end of the buffer.")
        if pointer < 0:
            raise IndexError("Pointer moved before start of the buffer.")
        self.pointer = pointer

    def _snapshot(self, pc: int, instruction: Instruction) -> ExecutionState:
        return ExecutionState(
            step=self.steps,
            pc=pc,
            instruction=instruction,
            pointer=self.pointer,
            cell=self.tape[self.pointer],
            output_length=len(self.output_buffer),
        )

    def _build_jump_map(self, sequence: InstructionSequence) -> Dict[int, int]:
        jump_map: Dict[int, int] = {}
        begins: Dict[int, int] = {}
        for index, instruction in enumerate(sequence):
            if isinstance(instruction, LoopBegin):
                begins[instruction.loop_id] = index
            elif isinstance(instruction, LoopEnd):
                if instruction.loop_id not in begins:
                    raise ValueError(f"LoopEnd({instruction.loop_id}) at {index} has no LoopBegin")
                start = begins.pop(instruction.loop_id)
                jump_map[start] = index
                jump_map[index] = start
        if begins:
            loop_id = next(iter(begins))
            raise ValueError(f"LoopBegin({loop_id}) is never closed")
        return jump_map


__all__ = [
    "ExecutionState",
    "SequenceInterpreter",
    "StepLimitExceeded",
]
