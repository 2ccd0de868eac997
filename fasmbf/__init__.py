from .assembler import DEFAULT_BUFFER_SIZE, Emitter, FasmCompiler, compile_source, emit
from .encoder import CompileError, Encoder, UnbalancedLoopError, encode
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
    describe,
)
from .interpreter import ExecutionState, SequenceInterpreter, StepLimitExceeded

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
    "describe",
    "CompileError",
    "UnbalancedLoopError",
    "Encoder",
    "encode",
    "DEFAULT_BUFFER_SIZE",
    "Emitter",
    "FasmCompiler",
    "compile_source",
    "emit",
    "ExecutionState",
    "SequenceInterpreter",
    "StepLimitExceeded",
]
