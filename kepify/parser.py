"""
Proposal parser

Turns a KEP document into a Proposal, or into a ParseError describing why it
could not. A KEP is a metadata block delimited by `---` lines followed by
free-form Markdown:

    ---
    title: Support: multi-cluster
    owning-sig: sig-multicluster
    reviewers:
      - "@alice"
      - "@bob"
    status: provisional
    ---
    # Summary
    ...

The metadata block is a small line-oriented subset of YAML. Only the first
colon on a line separates key from value, so `title: Support: multi-cluster`
keeps its second colon. Keys this tool does not know about (approvers, stage,
milestone, ...) are skipped together with anything indented beneath them.

Parse failures are returned, not raised: the caller decides whether one bad
document stops the run.
"""
import re
from dataclasses import dataclass, field
from typing import Optional, Union

from kepify.config import CONFIG

# ----------------------------
# Regexes
# ----------------------------

LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")  # keeps each line's terminator
MARKER_RE = re.compile(rf"^{re.escape(CONFIG['boundary_marker'])}\s*$")
COMMENT_RE = re.compile(r"^\s*#")
KEY_RE = re.compile(r"^([A-Za-z0-9][\w.-]*):(.*)$")  # key: value, column 0 only
ITEM_RE = re.compile(r"^\s*-(?:\s+(.*))?$")  # - item
FLOW_LIST_RE = re.compile(r"^\[(.*)\](?:\s+#.*)?$")  # [a, b]
FLOW_ITEM_RE = re.compile(r"""\s*(?:"[^"]*"|'[^']*'|[^,]+)""")  # one [a, "b, c"] item
QUOTED_RE = re.compile(r"""^(["'])(.*?)\1(?:\s+#.*)?$""")  # "value" # comment
INLINE_COMMENT_RE = re.compile(r"\s+#.*$")

# ----------------------------
# Recognised metadata keys
# ----------------------------

SCALAR_FIELDS = {
    'title': 'title',
    'owning-sig': 'owning_sig',
    'editor': 'editor',
    'creation-date': 'creation_date',
    'last-updated': 'last_updated',
    'status': 'status',
}

SEQUENCE_FIELDS = {
    'participating-sigs': 'participating_sigs',
    'reviewers': 'reviewers',
    'authors': 'authors',
    'see-also': 'see_also',
    'replaces': 'replaces',
    'superseded-by': 'superseded_by',
}

# ParseError reasons
INVALID_ENCODING = 'invalid-encoding'
MISSING_BLOCK = 'missing-metadata-block'
UNTERMINATED_BLOCK = 'unterminated-metadata-block'
MALFORMED_LINE = 'malformed-line'
DUPLICATE_KEY = 'duplicate-key'
MISSING_FIELD = 'missing-field'


# ----------------------------
# Results
# ----------------------------

@dataclass(frozen=True)
class Proposal:
    title: str
    owning_sig: str
    status: str
    participating_sigs: tuple = ()
    reviewers: tuple = ()
    authors: tuple = ()
    editor: str = ''
    creation_date: str = ''
    last_updated: str = ''
    see_also: tuple = ()
    replaces: tuple = ()
    superseded_by: tuple = ()
    contents: str = ''


@dataclass(frozen=True)
class ParseError:
    """Why a document could not be turned into a Proposal."""
    reason: str
    message: str
    line: Optional[int] = None  # 1-based, None when not tied to a line

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"line {self.line}: {self.message}"


ParseResult = Union[Proposal, ParseError]


# ----------------------------
# Utility helpers
# ----------------------------

def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def _is_comment(value: str) -> bool:
    return value.startswith("#")


def _scalar(value: str) -> str:
    """Trim, drop a trailing ` # comment`, then one pair of quotes: "v1.19" -> v1.19"""
    value = value.strip()
    quoted = QUOTED_RE.match(value)
    if quoted:
        return quoted.group(2)
    if _is_comment(value):
        return ""
    return INLINE_COMMENT_RE.sub("", value)


def _is_known(key: Optional[str]) -> bool:
    return key in SCALAR_FIELDS or key in SEQUENCE_FIELDS


def find_metadata_block(lines: list[str]) -> Union[tuple[int, int], ParseError]:
    """
    Locate the metadata block.

    Returns (index of first metadata line, index of closing marker line).
    The opening marker is optional; leading blank lines are skipped.
    """
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1

    opened = start < len(lines) and MARKER_RE.match(_strip_eol(lines[start]))
    if opened:
        start += 1
    elif start < len(lines) and not KEY_RE.match(_strip_eol(lines[start])):
        # plain Markdown; a later `---` is a horizontal rule, not a closing marker
        return ParseError(MISSING_BLOCK, "no '---' delimited metadata block found")

    for index in range(start, len(lines)):
        if MARKER_RE.match(_strip_eol(lines[index])):
            return start, index

    if opened:
        return ParseError(
            UNTERMINATED_BLOCK,
            "metadata block is never closed with '---'",
            line=start,
        )
    return ParseError(MISSING_BLOCK, "no '---' delimited metadata block found")


# ----------------------------
# State container
# ----------------------------

@dataclass
class ParseState:
    values: dict = field(default_factory=dict)  # metadata key -> str | list
    current_key: Optional[str] = None
    accepts_items: bool = False  # current key ended with a bare ':'
    line_no: int = 0
    error: Optional[ParseError] = None


# ----------------------------
# Parser class
# ----------------------------

class ProposalParser:
    def __init__(self):
        self.state = ParseState()

    def build(self, lines: list[str]) -> ParseResult:
        block = find_metadata_block(lines)
        if isinstance(block, ParseError):
            return block
        start, closing = block

        for index in range(start, closing):
            self.state.line_no = index + 1
            self._handle_line(_strip_eol(lines[index]))
            if self.state.error is not None:
                return self.state.error

        missing = [k for k in CONFIG['required_fields'] if not self.state.values.get(k)]
        if missing:
            return ParseError(
                MISSING_FIELD,
                f"missing required field(s): {', '.join(missing)}",
            )

        return self._make_proposal(contents="".join(lines[closing:]))

    # ---- per-line handler ----
    def _handle_line(self, line: str) -> None:
        if not line.strip() or COMMENT_RE.match(line):
            return
        s = self.state

        key_match = KEY_RE.match(line)
        if key_match:
            self._open_key(key_match.group(1), key_match.group(2).strip())
            return

        item_match = ITEM_RE.match(line)
        if item_match:
            self._add_item((item_match.group(1) or "").strip())
            return

        # nested structure under a key we don't read
        if line[0].isspace() and s.current_key is not None and not _is_known(s.current_key):
            return

        self._fail(MALFORMED_LINE, f"unrecognised metadata line {line.strip()!r}")

    def _open_key(self, key: str, value: str) -> None:
        s = self.state
        s.current_key = key
        s.accepts_items = not value or _is_comment(value)
        if not _is_known(key):
            return
        if key in s.values:
            self._fail(DUPLICATE_KEY, f"'{key}' is set more than once")
            return

        if key in SCALAR_FIELDS:
            s.values[key] = _scalar(value)
            return

        if s.accepts_items:
            s.values[key] = []
            return
        flow = FLOW_LIST_RE.match(value)
        if flow is None:
            self._fail(MALFORMED_LINE, f"'{key}' expects a list, got {value!r}")
            return
        items = [m.strip() for m in FLOW_ITEM_RE.findall(flow.group(1))]
        s.values[key] = [_scalar(item) for item in items if item]

    def _add_item(self, value: str) -> None:
        s = self.state
        if s.current_key is None:
            self._fail(MALFORMED_LINE, "list item does not belong to any key")
        elif not _is_known(s.current_key):
            return
        elif s.current_key in SCALAR_FIELDS:
            self._fail(MALFORMED_LINE, f"'{s.current_key}' takes a single value, not a list")
        elif not s.accepts_items:
            self._fail(MALFORMED_LINE, f"'{s.current_key}' already has an inline list")
        elif not value or _is_comment(value):
            self._fail(MALFORMED_LINE, f"empty list item under '{s.current_key}'")
        else:
            s.values[s.current_key].append(_scalar(value))

    def _fail(self, reason: str, message: str) -> None:
        self.state.error = ParseError(reason, message, line=self.state.line_no)

    def _make_proposal(self, contents: str) -> Proposal:
        values = self.state.values
        kwargs = {attr: values.get(key, "") for key, attr in SCALAR_FIELDS.items()}
        kwargs.update({attr: tuple(values.get(key, ())) for key, attr in SEQUENCE_FIELDS.items()})
        return Proposal(contents=contents, **kwargs)


# ----------------------------
# Entry points
# ----------------------------

def parse_text(text: str) -> ParseResult:
    return ProposalParser().build(LINE_RE.findall(text))


def parse_bytes(data: bytes) -> ParseResult:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        return ParseError(INVALID_ENCODING, f"not valid UTF-8 ({e.reason} at byte {e.start})")
    return parse_text(text)


def parse(stream) -> ParseResult:
    """Parse a KEP from a binary file object. The caller owns (and closes) the stream."""
    return parse_bytes(stream.read())
