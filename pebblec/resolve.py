from __future__ import annotations
from typing import List, Set
from . import ast as A


class ResolveError(Exception):
    def __init__(self, name: str):
        super().__init__(f"Undeclared variable '{name}'")
        self.name = name


def check_declarations(program: List[A.Stmt]) -> None:
    """Reject any variable read or assigned before its ``let``.

    The compiler itself allocates an address for any unseen name, so this
    pass is opt-in. There are no scopes: a ``let`` anywhere, including
    inside a branch or loop body, declares the name for all code after it
    in source order.
    """
    _DeclarationChecker().check_block(program)


class _DeclarationChecker:
    def __init__(self):
        self.declared: Set[str] = set()

    def check_block(self, stmts: List[A.Stmt]):
        for st in stmts:
            self._check_stmt(st)

    def _check_stmt(self, st: A.Stmt):
        if isinstance(st, A.Let):
            self._check_expr(st.value)
            self.declared.add(st.name)
        elif isinstance(st, A.Assign):
            self._require(st.name)
            self._check_expr(st.value)
        elif isinstance(st, A.Print):
            self._check_expr(st.value)
        elif isinstance(st, A.If):
            self._check_expr(st.cond)
            self.check_block(st.then_block)
            self.check_block(st.else_block)
        elif isinstance(st, A.While):
            self._check_expr(st.cond)
            self.check_block(st.body)
        else:
            raise TypeError(f"Unknown statement {st!r}")

    def _check_expr(self, e: A.Expr):
        if isinstance(e, A.Variable):
            self._require(e.name)
        elif isinstance(e, A.Binary):
            self._check_expr(e.left)
            self._check_expr(e.right)

    def _require(self, name: str):
        if name not in self.declared:
            raise ResolveError(name)
