from __future__ import annotations
import logging
from typing import Dict, List, Optional
from . import ast as A
from .bytecode import OpCode, OPERAND_SIZE, encode_operand

logger = logging.getLogger(__name__)

_BINARY_OPS = {
    A.BinaryOp.ADD: OpCode.ADD,
    A.BinaryOp.SUB: OpCode.SUB,
    A.BinaryOp.MUL: OpCode.MUL,
    A.BinaryOp.DIV: OpCode.DIV,
    A.BinaryOp.EQUALS: OpCode.EQUAL,
    A.BinaryOp.LESS_THAN: OpCode.LESS,
}


class CodeGen:
    """Compiles a statement list into a flat bytecode program.

    Branches always take their target from the operand stack, so every
    jump is emitted as ``PUSH target`` followed by ``JUMP``/``JUMP_IF``.
    Forward targets are emitted as a placeholder PUSH and patched once
    the destination offset is known.
    """

    def __init__(self):
        self.code = bytearray()
        # name -> memory address, assigned on first reference
        self.variables: Dict[str, int] = {}

    def generate(self, program: List[A.Stmt]) -> bytes:
        self.code = bytearray()
        self.variables = {}
        for st in program:
            self._emit_stmt(st)
        self._emit(OpCode.HALT)
        logger.debug("generated %d bytes, %d variables", len(self.code), len(self.variables))
        return bytes(self.code)

    # Emission helpers
    def _emit(self, op: OpCode, arg: Optional[int] = None) -> int:
        offset = len(self.code)
        self.code.append(op)
        if arg is not None:
            self.code += encode_operand(arg)
        return offset

    def _emit_placeholder(self) -> int:
        """Emit ``PUSH 0`` and return the offset of its operand for patching."""
        return self._emit(OpCode.PUSH, 0) + 1

    def _patch(self, operand_offset: int, value: int):
        self.code[operand_offset:operand_offset + OPERAND_SIZE] = encode_operand(value)

    def _address_of(self, name: str) -> int:
        addr = self.variables.get(name)
        if addr is None:
            addr = len(self.variables)
            self.variables[name] = addr
            logger.debug("allocated address %d for '%s'", addr, name)
        return addr

    # Statements
    def _emit_block(self, stmts: List[A.Stmt]):
        for st in stmts:
            self._emit_stmt(st)

    def _emit_stmt(self, st: A.Stmt):
        if isinstance(st, (A.Let, A.Assign)):
            # STORE pops the value first, so the address goes underneath it
            self._emit(OpCode.PUSH, self._address_of(st.name))
            self._emit_expr(st.value)
            self._emit(OpCode.STORE)
        elif isinstance(st, A.Print):
            self._emit_expr(st.value)
            self._emit(OpCode.PRINT)
        elif isinstance(st, A.If):
            self._emit_if(st)
        elif isinstance(st, A.While):
            self._emit_while(st)
        else:
            raise TypeError(f"Unknown statement {st!r}")

    def _emit_branch_if_false(self, cond: A.Expr) -> int:
        # JUMP_IF branches on non-zero, so invert the condition first
        self._emit_expr(cond)
        self._emit(OpCode.PUSH, 0)
        self._emit(OpCode.EQUAL)
        target = self._emit_placeholder()
        self._emit(OpCode.JUMP_IF)
        return target

    def _emit_if(self, st: A.If):
        else_target = self._emit_branch_if_false(st.cond)
        self._emit_block(st.then_block)
        end_target = self._emit_placeholder()
        self._emit(OpCode.JUMP)
        self._patch(else_target, len(self.code))
        self._emit_block(st.else_block)
        self._patch(end_target, len(self.code))

    def _emit_while(self, st: A.While):
        loop_start = len(self.code)
        exit_target = self._emit_branch_if_false(st.cond)
        self._emit_block(st.body)
        # jump back to top
        self._emit(OpCode.PUSH, loop_start)
        self._emit(OpCode.JUMP)
        self._patch(exit_target, len(self.code))

    # Expressions
    def _emit_expr(self, e: A.Expr):
        if isinstance(e, A.Number):
            self._emit(OpCode.PUSH, e.value)
        elif isinstance(e, A.Variable):
            self._emit(OpCode.PUSH, self._address_of(e.name))
            self._emit(OpCode.LOAD)
        elif isinstance(e, A.Binary):
            if e.op is A.BinaryOp.GREATER_THAN:
                # a > b  is  b < a
                self._emit_expr(e.right)
                self._emit_expr(e.left)
                self._emit(OpCode.LESS)
            else:
                self._emit_expr(e.left)
                self._emit_expr(e.right)
                self._emit(_BINARY_OPS[e.op])
        else:
            raise TypeError(f"Unknown expression {e!r}")
