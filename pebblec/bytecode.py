from __future__ import annotations
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional


class OpCode(IntEnum):
    # Stack
    PUSH = 0x01            # operand: i64 immediate
    POP = 0x02

    # Arithmetic
    ADD = 0x03
    SUB = 0x04
    MUL = 0x05
    DIV = 0x06

    # Memory: address taken from the stack
    LOAD = 0x07            # pop addr; push mem[addr]
    STORE = 0x08           # pop value, pop addr; mem[addr] = value

    # Control flow: target taken from the stack
    JUMP = 0x09            # pop target
    JUMP_IF = 0x0A         # pop target, pop cond; jump if cond != 0

    # Comparisons (push 0/1)
    EQUAL = 0x0B
    LESS = 0x0C

    PRINT = 0x0D

    LESS_EQUAL = 0x0E
    GREATER_EQUAL = 0x0F

    HALT = 0xFF


# Every operand is a little-endian two's-complement i64.
OPERAND = struct.Struct("<q")
OPERAND_SIZE = OPERAND.size

OPS_WITH_OPERAND = frozenset({OpCode.PUSH})


def encode_operand(value: int) -> bytes:
    return OPERAND.pack(value)


def decode_operand(code: bytes, offset: int) -> int:
    return OPERAND.unpack_from(code, offset)[0]


def instruction_size(op: OpCode) -> int:
    return 1 + OPERAND_SIZE if op in OPS_WITH_OPERAND else 1


@dataclass
class Instruction:
    offset: int
    op: OpCode
    arg: Optional[int] = None

    @property
    def size(self) -> int:
        return instruction_size(self.op)

    def __str__(self) -> str:
        text = f"{self.offset:04x}  {self.op.name}"
        if self.arg is not None:
            text += f" {self.arg}"
        return text


def disassemble(code: bytes) -> List[Instruction]:
    """Decode a program buffer into its instructions, in order.

    Raises ValueError on a byte that is not an opcode or on a PUSH whose
    operand runs past the end of the buffer.
    """
    instrs: List[Instruction] = []
    pc = 0
    while pc < len(code):
        byte = code[pc]
        try:
            op = OpCode(byte)
        except ValueError:
            raise ValueError(f"Invalid opcode 0x{byte:02x} at offset {pc}") from None
        arg = None
        if op in OPS_WITH_OPERAND:
            if pc + 1 + OPERAND_SIZE > len(code):
                raise ValueError(f"Truncated operand for {op.name} at offset {pc}")
            arg = decode_operand(code, pc + 1)
        instrs.append(Instruction(pc, op, arg))
        pc += instruction_size(op)
    return instrs


def format_listing(code: bytes) -> str:
    return "\n".join(str(instr) for instr in disassemble(code))
