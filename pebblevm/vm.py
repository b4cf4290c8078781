from __future__ import annotations
import logging
from enum import Enum, auto
from typing import Callable, Dict, List, Optional
from pebblec.bytecode import OpCode, OPERAND_SIZE, decode_operand

logger = logging.getLogger(__name__)

DEFAULT_STACK_LIMIT = 1024

_MASK64 = (1 << 64) - 1
_SIGN64 = 1 << 63


def _wrap64(value: int) -> int:
    """Reduce an int to signed 64-bit two's complement."""
    value &= _MASK64
    return value - (1 << 64) if value & _SIGN64 else value


def _div64(a: int, b: int) -> int:
    # i64 division truncates toward zero; Python's // floors
    q = abs(a) // abs(b)
    return _wrap64(-q if (a < 0) != (b < 0) else q)


class VMError(RuntimeError):
    """Base class for fatal errors raised while executing bytecode."""


class StackUnderflowError(VMError):
    def __init__(self):
        super().__init__("Stack underflow")


class StackOverflowError(VMError):
    def __init__(self, limit: int):
        super().__init__(f"Stack overflow (limit {limit})")
        self.limit = limit


class InvalidOpcodeError(VMError):
    def __init__(self, opcode: int):
        super().__init__(f"Invalid opcode: 0x{opcode:02x}")
        self.opcode = opcode


class InvalidAddressError(VMError):
    def __init__(self, address: int):
        super().__init__(f"Out of memory at address: {address}")
        self.address = address


class DivisionByZeroError(VMError):
    def __init__(self):
        super().__init__("Division by zero")


class VMState(Enum):
    NOT_STARTED = auto()
    RUNNING = auto()
    HALTED = auto()


class PebbleVM:
    def __init__(
        self,
        program: bytes,
        stack_limit: int = DEFAULT_STACK_LIMIT,
        output_callback: Optional[Callable[[str], None]] = None,
    ):
        if isinstance(stack_limit, bool) or not isinstance(stack_limit, int) or stack_limit <= 0:
            raise ValueError(f"stack_limit must be a positive integer, got {stack_limit!r}")
        self.program = bytes(program)
        self.stack_limit = stack_limit
        self._output_callback = output_callback

        self.pc: int = 0
        self.stack: List[int] = []              # operand stack
        self.memory: Dict[int, int] = {}        # sparse data memory
        self.state = VMState.NOT_STARTED

    @property
    def halted(self) -> bool:
        return self.state is VMState.HALTED

    def get_stack(self) -> List[int]:
        return list(self.stack)

    def get_memory(self) -> Dict[int, int]:
        return dict(self.memory)

    def _output(self, text: str):
        """Output text via callback or print."""
        if self._output_callback:
            self._output_callback(text)
        else:
            print(text, end="")

    def _push(self, value: int):
        if len(self.stack) >= self.stack_limit:
            raise StackOverflowError(self.stack_limit)
        self.stack.append(value)

    def _pop(self) -> int:
        if not self.stack:
            raise StackUnderflowError()
        return self.stack.pop()

    def _fetch(self) -> int:
        if self.pc >= len(self.program):
            raise InvalidAddressError(self.pc)
        byte = self.program[self.pc]
        self.pc += 1
        return byte

    def _fetch_operand(self) -> int:
        if self.pc + OPERAND_SIZE > len(self.program):
            raise InvalidAddressError(self.pc)
        value = decode_operand(self.program, self.pc)
        self.pc += OPERAND_SIZE
        return value

    def _check_target(self, target: int) -> int:
        if target < 0 or target >= len(self.program):
            raise InvalidAddressError(target)
        return target

    def _check_address(self, addr: int) -> int:
        if addr < 0:
            raise InvalidAddressError(addr)
        return addr

    def run(self):
        if self.state is VMState.HALTED:
            return
        self.state = VMState.RUNNING
        try:
            while self.execute_next():
                pass
        except VMError as e:
            logger.debug("execution failed at pc=%d: %s", self.pc, e)
            raise

    def execute_next(self) -> bool:
        """Execute one instruction. Returns False once the VM has halted."""
        if self.state is VMState.HALTED:
            return False
        self.state = VMState.RUNNING

        byte = self._fetch()
        try:
            op = OpCode(byte)
        except ValueError:
            raise InvalidOpcodeError(byte) from None

        if op is OpCode.PUSH:
            self._push(self._fetch_operand())

        elif op is OpCode.POP:
            self._pop()

        elif op in (OpCode.ADD, OpCode.SUB, OpCode.MUL, OpCode.DIV):
            b = self._pop(); a = self._pop()
            if op is OpCode.ADD:
                res = _wrap64(a + b)
            elif op is OpCode.SUB:
                res = _wrap64(a - b)
            elif op is OpCode.MUL:
                res = _wrap64(a * b)
            else:  # DIV
                if b == 0:
                    raise DivisionByZeroError()
                res = _div64(a, b)
            self._push(res)

        elif op is OpCode.LOAD:
            addr = self._check_address(self._pop())
            self._push(self.memory.get(addr, 0))

        elif op is OpCode.STORE:
            value = self._pop()
            addr = self._check_address(self._pop())
            self.memory[addr] = value

        elif op is OpCode.JUMP:
            self.pc = self._check_target(self._pop())

        elif op is OpCode.JUMP_IF:
            target = self._pop()
            cond = self._pop()
            if cond != 0:
                self.pc = self._check_target(target)

        elif op in (OpCode.EQUAL, OpCode.LESS, OpCode.LESS_EQUAL, OpCode.GREATER_EQUAL):
            b = self._pop(); a = self._pop()
            if op is OpCode.EQUAL:
                res = int(a == b)
            elif op is OpCode.LESS:
                res = int(a < b)
            elif op is OpCode.LESS_EQUAL:
                res = int(a <= b)
            else:  # GREATER_EQUAL
                res = int(a >= b)
            self._push(res)

        elif op is OpCode.PRINT:
            self._output(f"Output: {self._pop()}\n")

        elif op is OpCode.HALT:
            self.state = VMState.HALTED
            logger.debug("halted at pc=%d, stack depth %d", self.pc, len(self.stack))
            return False

        else:
            raise InvalidOpcodeError(byte)

        return True
