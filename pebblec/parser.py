import logging
from typing import Iterable, List, Optional
from .tokens import Token, TokenType
from .lexer import Lexer
from . import ast as A

logger = logging.getLogger(__name__)

_COMPARISON_OPS = {
    TokenType.EQUAL_EQUAL: A.BinaryOp.EQUALS,
    TokenType.LESS: A.BinaryOp.LESS_THAN,
    TokenType.GREATER: A.BinaryOp.GREATER_THAN,
}

_ADDITIVE_OPS = {
    TokenType.PLUS: A.BinaryOp.ADD,
    TokenType.MINUS: A.BinaryOp.SUB,
}

_MULTIPLICATIVE_OPS = {
    TokenType.STAR: A.BinaryOp.MUL,
    TokenType.SLASH: A.BinaryOp.DIV,
}

class ParseError(Exception):
    def __init__(self, message: str, line: int, col: int):
        super().__init__(message)
        self.line = line
        self.col = col

class Parser:
    """Recursive-descent parser with one token of lookahead.

    Accepts any iterable of tokens, including a lazy Lexer, and pulls
    from it only as far as the grammar needs.
    """

    def __init__(self, tokens: Iterable[Token]):
        self._tokens = iter(tokens)
        self._prev: Optional[Token] = None
        self._current: Optional[Token] = next(self._tokens, None)

    def parse(self) -> List[A.Stmt]:
        stmts: List[A.Stmt] = []
        while not self._is_at_end():
            stmts.append(self._statement())
        logger.debug("parsed %d top-level statements", len(stmts))
        return stmts

    # Helpers
    def _match(self, *types: TokenType) -> bool:
        for t in types:
            if self._check(t):
                self._advance()
                return True
        return False

    def _consume(self, type_: TokenType, msg: str) -> Token:
        if self._check(type_):
            return self._advance()
        raise self._error(msg)

    def _check(self, type_: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._current.type == type_

    def _advance(self) -> Token:
        self._prev = self._current
        self._current = next(self._tokens, None)
        return self._prev

    def _is_at_end(self) -> bool:
        return self._current is None

    def _error(self, msg: str) -> ParseError:
        tok = self._current
        if tok is None:
            line, col = (self._prev.line, self._prev.col) if self._prev else (1, 1)
            return ParseError(f"{msg} (found end of input)", line, col)
        return ParseError(f"{msg} (found '{tok.lexeme}')", tok.line, tok.col)

    # Grammar
    def _block(self) -> List[A.Stmt]:
        if not self._match(TokenType.LEFT_PAREN):
            return [self._statement()]
        stmts: List[A.Stmt] = []
        while not self._is_at_end() and not self._check(TokenType.RIGHT_PAREN):
            stmts.append(self._statement())
        self._consume(TokenType.RIGHT_PAREN, "Expected ')' after block")
        return stmts

    def _statement(self) -> A.Stmt:
        if self._match(TokenType.LET):
            name = self._consume(TokenType.IDENTIFIER, "Expected variable name after 'let'").lexeme
            self._consume(TokenType.EQUAL, "Expected '=' after variable name")
            value = self._expression()
            self._consume(TokenType.SEMICOLON, "Expected ';' after variable declaration")
            return A.Let(name, value)
        if self._match(TokenType.IF):
            cond = self._expression()
            then_block = self._block()
            else_block: List[A.Stmt] = []
            if self._match(TokenType.ELSE):
                else_block = self._block()
            return A.If(cond, then_block, else_block)
        if self._match(TokenType.WHILE):
            cond = self._expression()
            body = self._block()
            return A.While(cond, body)
        if self._match(TokenType.PRINT):
            value = self._expression()
            self._consume(TokenType.SEMICOLON, "Expected ';' after print statement")
            return A.Print(value)
        if self._match(TokenType.IDENTIFIER):
            name = self._prev.lexeme
            self._consume(TokenType.EQUAL, "Expected '=' after variable name")
            value = self._expression()
            self._consume(TokenType.SEMICOLON, "Expected ';' after assignment")
            return A.Assign(name, value)
        raise self._error("Expected statement")

    def _expression(self) -> A.Expr:
        return self._comparison()

    def _binary(self, operand, ops) -> A.Expr:
        expr = operand()
        while not self._is_at_end() and self._current.type in ops:
            op = ops[self._advance().type]
            right = operand()
            expr = A.Binary(expr, op, right)
        return expr

    def _comparison(self) -> A.Expr:
        return self._binary(self._additive, _COMPARISON_OPS)

    def _additive(self) -> A.Expr:
        return self._binary(self._multiplicative, _ADDITIVE_OPS)

    def _multiplicative(self) -> A.Expr:
        return self._binary(self._primary, _MULTIPLICATIVE_OPS)

    def _primary(self) -> A.Expr:
        if self._match(TokenType.NUMBER):
            return A.Number(self._prev.literal)
        if self._match(TokenType.IDENTIFIER):
            return A.Variable(self._prev.lexeme)
        if self._match(TokenType.LEFT_PAREN):
            expr = self._expression()
            self._consume(TokenType.RIGHT_PAREN, "Expected ')' after expression")
            return expr
        raise self._error("Expected expression")


def parse_source(source: str) -> List[A.Stmt]:
    return Parser(Lexer(source)).parse()
