"""
Tokenizer for ISC DHCP lease files
Splits dhcpd.leases text into brackets, statement terminators, words and
recognized keywords
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from lease_errors import LeaseLexError
from lease_keywords import DeclarationKeyword, LeaseKeyword

logger = logging.getLogger(__name__)

BRACKETS = '()[]{}'
TERMINATOR = ';'
COMMENT = '#'
QUOTE = '"'
ESCAPE = '\\'


class TokenKind(Enum):
    BRACKET = "bracket"
    TERMINATOR = "terminator"
    WORD = "word"
    OPTION = "option"
    DECLARATION = "declaration"


@dataclass(frozen=True)
class Token:
    """A single lexical item of a lease file"""
    kind: TokenKind
    text: str
    keyword: Optional[Union[LeaseKeyword, DeclarationKeyword]] = None

    @classmethod
    def bracket(cls, char: str) -> 'Token':
        return cls(TokenKind.BRACKET, char)

    @classmethod
    def terminator(cls) -> 'Token':
        return cls(TokenKind.TERMINATOR, TERMINATOR)

    @classmethod
    def word(cls, text: str) -> 'Token':
        return cls(TokenKind.WORD, text)

    @classmethod
    def option(cls, keyword: LeaseKeyword) -> 'Token':
        return cls(TokenKind.OPTION, keyword.value, keyword)

    @classmethod
    def declaration(cls, keyword: DeclarationKeyword) -> 'Token':
        return cls(TokenKind.DECLARATION, keyword.value, keyword)

    def is_terminator(self) -> bool:
        return self.kind is TokenKind.TERMINATOR

    def is_bracket(self, char: str) -> bool:
        return self.kind is TokenKind.BRACKET and self.text == char

    def is_option(self, keyword: LeaseKeyword) -> bool:
        return self.kind is TokenKind.OPTION and self.keyword is keyword

    def __str__(self) -> str:
        return self.text


def classify_word(word: str) -> Token:
    """Turn a bare word into a declaration, lease option or plain word token"""
    declaration = DeclarationKeyword.lookup(word)
    if declaration is not None:
        return Token.declaration(declaration)

    option = LeaseKeyword.lookup(word)
    if option is not None:
        return Token.option(option)

    return Token.word(word)


def _read_quoted(text: str, pos: int) -> Tuple[str, int]:
    """
    Read a double-quoted string starting at the opening quote

    Returns:
        Tuple of (decoded string, position after the closing quote)

    Raises:
        LeaseLexError: If input ends before the closing quote
    """
    chars = []
    pos += 1
    end = len(text)

    while pos < end:
        c = text[pos]
        if c == ESCAPE:
            pos += 1
            if pos >= end:
                raise LeaseLexError("Unexpected end of input after backslash")
            escaped = text[pos]
            if escaped in (ESCAPE, QUOTE):
                chars.append(escaped)
            else:
                # Unknown escapes such as octal bytes are kept verbatim
                chars.append(ESCAPE)
                chars.append(escaped)
        elif c == QUOTE:
            return ''.join(chars), pos + 1
        else:
            chars.append(c)
        pos += 1

    raise LeaseLexError("Unterminated quoted string")


def _read_word(text: str, pos: int) -> Tuple[str, int]:
    """Read a bare word up to whitespace or a statement terminator"""
    start = pos
    end = len(text)
    while pos < end and not text[pos].isspace() and text[pos] != TERMINATOR:
        pos += 1
    return text[start:pos], pos


def tokenize(text: str) -> List[Token]:
    """
    Split lease file text into tokens

    Args:
        text: Full content of a dhcpd.leases file

    Returns:
        List of tokens in source order

    Raises:
        LeaseLexError: On an unterminated quoted string
    """
    tokens = []
    pos = 0
    end = len(text)

    while pos < end:
        c = text[pos]

        if c in BRACKETS:
            tokens.append(Token.bracket(c))
            pos += 1
        elif c == COMMENT:
            newline = text.find('\n', pos)
            pos = end if newline == -1 else newline
        elif c.isspace():
            pos += 1
        elif c == QUOTE:
            value, pos = _read_quoted(text, pos)
            tokens.append(Token.word(value))
        elif c == TERMINATOR:
            tokens.append(Token.terminator())
            pos += 1
        else:
            word, pos = _read_word(text, pos)
            tokens.append(classify_word(word))

    logger.debug(f"Tokenized {len(text)} characters into {len(tokens)} tokens")
    return tokens
