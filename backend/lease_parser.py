"""
DHCP Lease Parser
Parses ISC DHCP Server lease file (dhcpd.leases) into Lease records

Grammar handled here:

    file        := (directive | lease)*
    directive   := ("authoring-byte-order" | "server-duid") VALUE ";"
    lease       := "lease" IP "{" statement* "}"
    statement   := date-stmt | hardware | uid | hostname | binding | set
    date-stmt   := ("starts" | "ends" | "tstp" | "tsfp" | "atsfp" | "cltt")
                   WEEKDAY DATE TIME [TIMEZONE] ";"
    binding     := ["next" | "rewind"] "binding" "state" STATE ";"
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from lease_date import Date
from lease_errors import LeaseFileError, LeaseLexError, LeaseParseError
from lease_keywords import DeclarationKeyword, LeaseKeyword
from lease_lexer import Token, TokenKind, tokenize
from leases import BindingState, Hardware, Lease, LeaseBuilder, Leases

logger = logging.getLogger(__name__)

# Scalar statements that may appear outside of lease blocks. Their values are
# not needed for lease lookups.
TOP_LEVEL_DIRECTIVES = ('authoring-byte-order', 'server-duid')

VENDOR_CLASS_IDENTIFIER = 'vendor-class-identifier'

# Lease keyword -> (builder attribute, name used in error messages)
DATE_STATEMENTS = {
    LeaseKeyword.STARTS: ('starts', 'start'),
    LeaseKeyword.ENDS: ('ends', 'end'),
    LeaseKeyword.TSTP: ('tstp', 'tstp'),
    LeaseKeyword.TSFP: ('tsfp', 'tsfp'),
    LeaseKeyword.ATSFP: ('atsfp', 'atsfp'),
    LeaseKeyword.CLTT: ('cltt', 'cltt'),
}

BINDING_STATES = {state.value: state for state in BindingState}


@dataclass(frozen=True)
class ParserResult:
    """Outcome of a successful parse"""
    leases: Leases


class TokenStream:
    """Cursor over a token list with one token of lookahead"""

    def __init__(self, tokens: List[Token]):
        self._tokens = tokens
        self._pos = 0

    def peek(self) -> Optional[Token]:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def advance(self) -> Optional[Token]:
        token = self.peek()
        if token is not None:
            self._pos += 1
        return token


def _describe(token: Optional[Token]) -> str:
    return f"'{token}'" if token is not None else "end of input"


def _expect_value(stream: TokenStream, what: str) -> Token:
    """Consume the next token as a statement value"""
    token = stream.peek()
    if token is None or token.is_terminator():
        raise LeaseParseError(f"{what} expected, found {_describe(token)}")
    return stream.advance()


def _expect_terminator(stream: TokenStream, after: str) -> None:
    token = stream.peek()
    if token is None or not token.is_terminator():
        raise LeaseParseError(f"Semicolon expected after '{after}', found {_describe(token)}")
    stream.advance()


def unquote(value: str) -> str:
    """Remove every double quote character from a hostname value"""
    return value.replace('"', '')


def parse_date(stream: TokenStream, name: str) -> Date:
    """
    Parse the tail of a date statement: WEEKDAY DATE TIME [TIMEZONE] ";"

    Args:
        stream: Token stream positioned after the date keyword
        name: Field name used in error messages ("start", "end", ...)

    Returns:
        Parsed Date

    Raises:
        LeaseParseError: If a component or the terminator is missing
        LeaseDateError: If the components do not form a valid date
    """
    parts = []
    for component in ('Weekday', 'Date', 'Time'):
        token = stream.peek()
        if token is None or token.is_terminator():
            raise LeaseParseError(f"{component} expected for \"{name}\" date, found {_describe(token)}")
        parts.append(str(stream.advance()))

    timezone = None
    token = stream.peek()
    if token is None:
        raise LeaseParseError(f"Timezone or semicolon expected for \"{name}\" date")
    if not token.is_terminator():
        timezone = str(stream.advance())
        token = stream.peek()
        if token is None:
            raise LeaseParseError(f"Semicolon expected after timezone for \"{name}\" date")
        if not token.is_terminator():
            raise LeaseParseError(
                f"Semicolon expected after timezone for \"{name}\" date, found {_describe(token)}"
            )
    stream.advance()

    weekday, date, time = parts
    return Date.from_tokens(weekday, date, time, timezone)


def parse_binding_state(stream: TokenStream) -> BindingState:
    """
    Parse "binding state STATE ;" with the stream on the 'binding' keyword

    Used for plain, 'next' and 'rewind' binding state statements.
    """
    stream.advance()

    token = stream.peek()
    if token is None or not token.is_option(LeaseKeyword.STATE):
        raise LeaseParseError(f"Expected 'state' after 'binding', found {_describe(token)}")
    stream.advance()

    token = stream.peek()
    if token is None or token.kind is not TokenKind.WORD or token.text not in BINDING_STATES:
        raise LeaseParseError(f"Expected binding value, found {_describe(token)}")
    state = BINDING_STATES[token.text]
    stream.advance()

    _expect_terminator(stream, f"binding state {state}")
    return state


def _parse_qualified_binding_state(stream: TokenStream, qualifier: LeaseKeyword) -> BindingState:
    stream.advance()
    token = stream.peek()
    if token is None or not token.is_option(LeaseKeyword.BINDING):
        raise LeaseParseError(f"Expected 'binding' after '{qualifier}', found {_describe(token)}")
    return parse_binding_state(stream)


def _parse_set(stream: TokenStream, lease: LeaseBuilder) -> None:
    token = stream.peek()
    if token is None or token.kind is not TokenKind.WORD:
        raise LeaseParseError(f"Value name expected after 'set', found {_describe(token)}")
    name = stream.advance().text

    token = stream.peek()
    if token is None or token.kind is not TokenKind.WORD or token.text != '=':
        raise LeaseParseError(f"'=' expected after 'set {name}', found {_describe(token)}")
    stream.advance()

    token = stream.peek()
    if token is None or token.kind is not TokenKind.WORD:
        raise LeaseParseError(f"Value expected after 'set {name} =', found {_describe(token)}")
    value = stream.advance().text

    _expect_terminator(stream, f"set {name}")

    # Other variables (ddns names and the like) are accepted and dropped
    if name == VENDOR_CLASS_IDENTIFIER:
        lease.vendor_class_identifier = value


def parse_lease_body(stream: TokenStream, lease: LeaseBuilder) -> None:
    """
    Parse statements of a lease block into lease until the closing brace

    The closing brace is left in the stream for the caller. Reaching the end
    of input also returns; the caller reports the missing brace.

    Raises:
        LeaseParseError: On an unknown or malformed statement
    """
    while True:
        token = stream.peek()
        if token is None or token.is_bracket('}'):
            return

        keyword = token.keyword if token.kind is TokenKind.OPTION else None

        if keyword in DATE_STATEMENTS:
            attr, name = DATE_STATEMENTS[keyword]
            stream.advance()
            setattr(lease, attr, parse_date(stream, name))
        elif keyword is LeaseKeyword.HARDWARE:
            stream.advance()
            h_type = str(_expect_value(stream, "Hardware type"))
            mac = str(_expect_value(stream, "MAC address"))
            _expect_terminator(stream, "hardware")
            lease.hardware = Hardware(h_type=h_type, mac=mac)
        elif keyword is LeaseKeyword.UID:
            stream.advance()
            lease.uid = str(_expect_value(stream, "Client identifier"))
            _expect_terminator(stream, "uid")
        elif keyword is LeaseKeyword.CLIENT_HOSTNAME:
            stream.advance()
            lease.client_hostname = unquote(str(_expect_value(stream, "Client hostname")))
            _expect_terminator(stream, "client-hostname")
        elif keyword is LeaseKeyword.HOSTNAME:
            stream.advance()
            lease.hostname = unquote(str(_expect_value(stream, "Hostname")))
            _expect_terminator(stream, "hostname")
        elif keyword is LeaseKeyword.BINDING:
            lease.binding_state = parse_binding_state(stream)
        elif keyword is LeaseKeyword.NEXT:
            lease.next_binding_state = _parse_qualified_binding_state(stream, keyword)
        elif keyword is LeaseKeyword.REWIND:
            lease.rewind_binding_state = _parse_qualified_binding_state(stream, keyword)
        elif keyword is LeaseKeyword.SET:
            stream.advance()
            _parse_set(stream, lease)
        else:
            raise LeaseParseError(f"Unexpected option '{token}'")


def _parse_lease(stream: TokenStream) -> Lease:
    stream.advance()

    token = stream.peek()
    if token is None:
        raise LeaseParseError("IP address expected")
    lease = LeaseBuilder(ip=str(stream.advance()))

    token = stream.peek()
    if token is None or not token.is_bracket('{'):
        raise LeaseParseError(f"Expected '{{' after lease {lease.ip}, found {_describe(token)}")
    stream.advance()

    parse_lease_body(stream, lease)

    token = stream.peek()
    if token is None or not token.is_bracket('}'):
        raise LeaseParseError(f"Expected end of section with '}}', found {_describe(token)}")
    stream.advance()

    return lease.build()


def _skip_directive(stream: TokenStream, name: str) -> None:
    stream.advance()
    if stream.peek() is None:
        raise LeaseParseError(f"Value for {name} expected")
    stream.advance()
    _expect_terminator(stream, name)


def parse_tokens(tokens: List[Token]) -> ParserResult:
    """
    Build the lease collection from a token list

    Raises:
        LeaseParseError: On the first grammar error; nothing is returned
    """
    stream = TokenStream(tokens)
    leases = Leases()

    while True:
        token = stream.peek()
        if token is None:
            break

        if token.kind is TokenKind.DECLARATION and token.keyword is DeclarationKeyword.LEASE:
            leases.push(_parse_lease(stream))
        elif token.kind is TokenKind.WORD and token.text in TOP_LEVEL_DIRECTIVES:
            _skip_directive(stream, token.text)
        else:
            raise LeaseParseError(f"Unexpected {_describe(token)}")

    return ParserResult(leases=leases)


def parse(text: str) -> ParserResult:
    """
    Parse the full text of a dhcpd.leases file

    Args:
        text: Lease file content

    Returns:
        ParserResult holding leases in file order

    Raises:
        LeaseFileError: If the text cannot be tokenized or parsed
    """
    result = parse_tokens(tokenize(text))
    logger.debug(f"Parsed {len(result.leases)} lease declarations")
    return result


class LeaseParser:
    """Parser for ISC DHCP Server lease files"""

    def __init__(self, leases_path: str):
        """
        Initialize lease parser

        Args:
            leases_path: Path to dhcpd.leases file
        """
        self.leases_path = leases_path
        logger.debug(f"Initialized LeaseParser with path: {leases_path}")

    def read_leases_file(self) -> str:
        """
        Read the DHCP leases file

        Returns:
            Content of the leases file

        Raises:
            FileNotFoundError: If leases file doesn't exist
            PermissionError: If file is not readable
            LeaseLexError: If the file is not valid UTF-8
        """
        try:
            with open(self.leases_path, 'r', encoding='utf-8') as f:
                content = f.read()
            logger.debug(f"Read {len(content)} bytes from leases file")
            return content
        except FileNotFoundError:
            logger.error(f"Leases file not found: {self.leases_path}")
            raise
        except PermissionError:
            logger.error(f"Permission denied reading leases file: {self.leases_path}")
            raise
        except UnicodeDecodeError as e:
            logger.error(f"Leases file is not valid UTF-8: {self.leases_path}")
            raise LeaseLexError(f"Leases file is not valid UTF-8 at byte {e.start}") from e

    def parse_leases(self) -> Leases:
        """
        Parse all lease declarations from the leases file

        Raises:
            LeaseFileError: If the file content is malformed
        """
        content = self.read_leases_file()
        try:
            leases = parse(content).leases
        except LeaseFileError as e:
            logger.error(f"Invalid lease file {self.leases_path}: {str(e)}")
            raise

        logger.info(f"Parsed {len(leases)} leases from {self.leases_path}")
        return leases

    def get_active_leases(self, active_at: Optional[Date] = None) -> List[Lease]:
        """
        Get the lease currently holding each address

        Args:
            active_at: Point in time to check, defaults to now (UTC)

        Returns:
            One active Lease per IP address, ordered by first appearance
        """
        if active_at is None:
            active_at = Date.now()

        active = self.parse_leases().active_per_ip(active_at)

        logger.debug(f"Found {len(active)} active leases at {active_at}")
        return active
