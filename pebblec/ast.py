from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Union


class BinaryOp(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    EQUALS = "=="
    LESS_THAN = "<"
    GREATER_THAN = ">"


# Expressions
@dataclass
class Number:
    value: int

@dataclass
class Variable:
    name: str

@dataclass
class Binary:
    left: Expr
    op: BinaryOp
    right: Expr

Expr = Union[Number, Variable, Binary]

# Statements
@dataclass
class Let:
    name: str
    value: Expr

@dataclass
class Assign:
    name: str
    value: Expr

@dataclass
class If:
    cond: Expr
    then_block: List[Stmt]
    else_block: List[Stmt] = field(default_factory=list)

@dataclass
class While:
    cond: Expr
    body: List[Stmt]

@dataclass
class Print:
    value: Expr

Stmt = Union[Let, Assign, If, While, Print]
