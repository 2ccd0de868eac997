from __future__ import annotations

import logging
from typing import List

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from fasmbf.assembler import DEFAULT_BUFFER_SIZE, Emitter
from fasmbf.encoder import CompileError, encode
from fasmbf.instructions import InstructionSequence, describe
from fasmbf.interpreter import SequenceInterpreter, StepLimitExceeded

logger = logging.getLogger(__name__)

MAX_RUN_STEPS = 1_000_000


def _string_to_input_bytes(data: str) -> bytes:
    return data.encode("utf-8")


class CompileRequest(BaseModel):
    source: str
    buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, ge=1)


class CompileResponse(BaseModel):
    assembly: str
    instructions: List[str]
    buffer_size: int


class RunRequest(BaseModel):
    source: str
    input: str = ""
    buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, ge=1)
    max_steps: int = Field(default=100000, ge=1, le=MAX_RUN_STEPS)


class RunResponse(BaseModel):
    output: str
    steps: int
    pointer: int


def _encode_or_422(source: str) -> InstructionSequence:
    try:
        return encode(source)
    except CompileError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


def create_app() -> FastAPI:
    code_emitter = Emitter()
    app = FastAPI(title="fasmbf API", version="0.1.0")

    @app.post("/api/compile", response_model=CompileResponse)
    def compile_program(payload: CompileRequest) -> CompileResponse:
        sequence = _encode_or_422(payload.source)
        assembly = code_emitter.emit(sequence, payload.buffer_size)
        logger.debug("Compiled %d instructions", len(sequence))
        return CompileResponse(
            assembly=assembly,
            instructions=[describe(instruction) for instruction in sequence],
            buffer_size=payload.buffer_size,
        )

    @app.post("/api/run", response_model=RunResponse)
    def run_program(payload: RunRequest) -> RunResponse:
        sequence = _encode_or_422(payload.source)
        interpreter = SequenceInterpreter(buffer_size=payload.buffer_size)
        try:
            output = interpreter.run(
                sequence,
                input_data=_string_to_input_bytes(payload.input),
                max_steps=payload.max_steps,
            )
        except (StepLimitExceeded, IndexError) as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=str(exc),
            ) from exc

        # one character per output byte
        return RunResponse(
            output=output.decode("latin-1"),
            steps=interpreter.steps,
            pointer=interpreter.pointer,
        )

    return app


__all__ = ["create_app"]
