from __future__ import annotations

import logging
from typing import List

from .encoder import encode
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

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 30000

HEADER = (
    "format ELF64 executable\n"
    "segment readable executable\n"
    "entry main\n"
    "define SYS_exit     60\n"
    "define SYS_write    1\n"
    "define SYS_read     0\n"
    "define stdout       1\n"
    "define stdin        0\n"
    "define exit_success 0\n"
)

FOOTER = (
    "mov rax, SYS_exit\n"
    "mov rdi, exit_success\n"
    "syscall\n"
    "segment readable writable\n"
)

CELL = "byte [buf+rbx]"

# add/sub r64 take a sign-extended imm32
MAX_POINTER_IMMEDIATE = 2**31 - 1


def _move_pointer(mnemonic: str, count: int) -> str:
    parts: List[str] = []
    while count > MAX_POINTER_IMMEDIATE:
        parts.append(f"{mnemonic} rbx, {MAX_POINTER_IMMEDIATE}\n")
        count -= MAX_POINTER_IMMEDIATE
    parts.append(f"{mnemonic} rbx, {count}\n")
    return "".join(parts)


def _syscall_on_cell(syscall: str, descriptor: str) -> str:
    return (
        "lea rcx, [buf+rbx]\n"
        f"mov rax, {syscall}\n"
        f"mov rdi, {descriptor}\n"
        "mov rsi, rcx\n"
        "mov rdx, 1\n"
        "syscall\n"
    )


class Emitter:
    """Renders an instruction sequence as FASM source for Linux x86-64.

    ``rbx`` holds the tape pointer as an offset into ``buf``. The pointer
    starts at the middle of the buffer so programs can move either way.
    """

    def emit(self, sequence: InstructionSequence, buffer_size: int) -> str:
        if buffer_size < 1:
            raise ValueError(f"Buffer size must be a positive integer, got {buffer_size}")
        parts: List[str] = [HEADER, "main:\n", f"mov rbx, {buffer_size // 2}\n"]
        for instruction in sequence:
            parts.append(self.render(instruction))
        parts.append(FOOTER)
        parts.append(f"buf: rb {buffer_size}\n")
        return "".join(parts)

    def render(self, instruction: Instruction) -> str:
        # byte immediates must fit in 8 bits; add/sub wrap the cell identically
        if isinstance(instruction, Add):
            return f"add {CELL}, {instruction.count % 256}\n"
        if isinstance(instruction, Sub):
            return f"sub {CELL}, {instruction.count % 256}\n"
        if isinstance(instruction, MoveForward):
            return _move_pointer("add", instruction.count)
        if isinstance(instruction, MoveBackward):
            return _move_pointer("sub", instruction.count)
        if isinstance(instruction, LoopBegin):
            return (
                f"cmp {CELL}, 0\n"
                f"je .EndLoop{instruction.loop_id}\n"
                f".BeginLoop{instruction.loop_id}:\n"
            )
        if isinstance(instruction, LoopEnd):
            return (
                f"cmp {CELL}, 0\n"
                f"jne .BeginLoop{instruction.loop_id}\n"
                f".EndLoop{instruction.loop_id}:\n"
            )
        if isinstance(instruction, Output):
            return _syscall_on_cell("SYS_write", "stdout")
        if isinstance(instruction, Input):
            return _syscall_on_cell("SYS_read", "stdin")
        raise TypeError(f"Unhandled instruction: {instruction!r}")


def emit(sequence: InstructionSequence, buffer_size: int = DEFAULT_BUFFER_SIZE) -> str:
    return Emitter().emit(sequence, buffer_size)


class FasmCompiler:
    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self.buffer_size = buffer_size
        self.emitter = Emitter()

    def compile(self, source: str) -> str:
        sequence = encode(source)
        assembly = self.emitter.emit(sequence, self.buffer_size)
        logger.debug(
            "Emitted %d bytes of assembly for a %d byte buffer",
            len(assembly),
            self.buffer_size,
        )
        return assembly


def compile_source(source: str, buffer_size: int = DEFAULT_BUFFER_SIZE) -> str:
    return FasmCompiler(buffer_size).compile(source)


__all__ = [
    "DEFAULT_BUFFER_SIZE",
    "Emitter",
    "FasmCompiler",
    "compile_source",
    "emit",
]
