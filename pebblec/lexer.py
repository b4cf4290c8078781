import logging
from typing import Iterator, List
from .tokens import Token, TokenType, KEYWORDS, INT64_MAX

logger = logging.getLogger(__name__)

_SINGLE = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    ';': TokenType.SEMICOLON,
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '<': TokenType.LESS,
    '>': TokenType.GREATER,
}


def _is_ident_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == '_')


def _is_ident_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == '_')


class LexError(Exception):
    def __init__(self, message: str, line: int, col: int):
        super().__init__(message)
        self.line = line
        self.col = col


class Lexer:
    """Turns source text into tokens.

    Iterating a Lexer scans lazily from the start of the source every
    time; each iteration keeps its own position, so several can be live
    at once. End of input ends the iteration, an unrecognised character
    raises LexError.
    """

    def __init__(self, source: str):
        self.source = source

    def __iter__(self) -> Iterator[Token]:
        return _Scanner(self.source).scan()

    def tokenize(self) -> List[Token]:
        tokens = list(self)
        logger.debug("lexed %d tokens", len(tokens))
        return tokens


class _Scanner:
    def __init__(self, source: str):
        self.source = source
        self.start = 0
        self.current = 0
        self.line = 1
        self.col = 1

    def scan(self) -> Iterator[Token]:
        while True:
            self._skip_trivia()
            if self._is_at_end():
                return
            self.start = self.current
            yield self._scan_token()

    def _is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def _advance(self) -> str:
        ch = self.source[self.current]
        self.current += 1
        if ch == '\n':
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _peek(self) -> str:
        if self._is_at_end():
            return "\0"
        return self.source[self.current]

    def _peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return "\0"
        return self.source[self.current + 1]

    def _match(self, expected: str) -> bool:
        if self._peek() != expected:
            return False
        self._advance()
        return True

    def _skip_trivia(self):
        while not self._is_at_end():
            c = self._peek()
            if c.isspace():
                self._advance()
            elif c == '/' and self._peek_next() == '/':
                # comment until end of line
                while self._peek() != '\n' and not self._is_at_end():
                    self._advance()
            else:
                return

    def _make_token(self, type_: TokenType, line: int, col: int, literal=None) -> Token:
        text = self.source[self.start:self.current]
        return Token(type_, text, line, col, literal)

    def _scan_token(self) -> Token:
        line, col = self.line, self.col
        c = self._advance()

        if c in _SINGLE:
            return self._make_token(_SINGLE[c], line, col)
        if c == '=':
            type_ = TokenType.EQUAL_EQUAL if self._match('=') else TokenType.EQUAL
            return self._make_token(type_, line, col)
        if c.isascii() and c.isdigit():
            return self._number(line, col)
        if _is_ident_start(c):
            return self._identifier(line, col)

        raise LexError(f"Unexpected character {c!r}", line, col)

    def _number(self, line: int, col: int) -> Token:
        while self._peek().isascii() and self._peek().isdigit():
            self._advance()
        text = self.source[self.start:self.current]
        value = int(text)
        if value > INT64_MAX:
            raise LexError(f"Integer literal {text} does not fit in 64 bits", line, col)
        return self._make_token(TokenType.NUMBER, line, col, value)

    def _identifier(self, line: int, col: int) -> Token:
        while _is_ident_char(self._peek()):
            self._advance()
        text = self.source[self.start:self.current]
        type_ = KEYWORDS.get(text, TokenType.IDENTIFIER)
        return self._make_token(type_, line, col)
