import re
import typing

from loguru import logger

from gitkarma.model import Block, CommitMetadata, LineEntry, ParseError

HEADER_REGEX = re.compile(r"^([0-9a-f]{4,64}) (\d+) (\d+)(?: (\d+))?$")
METADATA_REGEX = re.compile(r"^([a-z][a-z-]*)(?: (.*))?$")
CODE_MARKER = "\t"

# git repeats these on every hunk, they describe the hunk rather than the commit
HUNK_FIELDS = frozenset({"filename", "previous"})


def split_trace(raw: str) -> typing.List[str]:
    """ split porcelain output on LF only, CR may be part of a source line """
    if not raw:
        return []
    lines = raw.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


class BlameParser(object):
    """
    streaming state machine over one file's `git blame --porcelain` trace

    it owns a single pending block and the metadata memo of this file.
    a new block starts at the first header, or at a header declaring a
    group length while the pending block already declared one.
    """

    def __init__(self):
        self.blocks: typing.List[Block] = []
        self.memo: typing.Dict[str, CommitMetadata] = dict()

        self._pending: typing.Optional[Block] = None
        self._pending_meta: typing.Dict[str, str] = dict()
        self._pending_line_no: int = 0
        self._next_line: int = 0

    def feed(self, line: str, line_no: int):
        if line.startswith(CODE_MARKER):
            self._on_code(line[len(CODE_MARKER):], line_no)
            return

        header = HEADER_REGEX.match(line)
        if header:
            commit_id, _, final_line, group_length = header.groups()
            self._on_header(
                commit_id,
                int(final_line),
                int(group_length) if group_length is not None else None,
                line_no,
            )
            return

        metadata = METADATA_REGEX.match(line)
        if metadata:
            key, value = metadata.groups()
            self._on_metadata(key, value if value is not None else "", line_no)
            return

        raise ParseError(f"unrecognized trace syntax: {line!r}", line_no)

    def close(self) -> typing.List[Block]:
        if self._pending is not None:
            self._complete()
        return self.blocks

    def _on_header(self, commit_id: str, final_line: int, group_length: typing.Optional[int], line_no: int):
        if final_line < 1:
            raise ParseError(f"invalid final line number: {final_line}", line_no)

        if self._pending is None:
            self._pending = Block(commit_id, group_length)
            self._pending_line_no = line_no
        elif group_length is not None and self._pending.group_length is not None:
            self._complete()
            self._pending = Block(commit_id, group_length)
            self._pending_line_no = line_no
        elif group_length is not None:
            self._pending.group_length = group_length

        self._next_line = final_line

    def _on_metadata(self, key: str, value: str, line_no: int):
        if self._pending is None:
            raise ParseError(f"metadata before any header: {key}", line_no)

        if key in HUNK_FIELDS:
            self._pending.hunk_meta[key] = value
        else:
            self._pending_meta[key] = value

    def _on_code(self, text: str, line_no: int):
        if self._pending is None:
            raise ParseError("code line before any header", line_no)

        self._pending.lines.append(LineEntry(number=self._next_line, text=text))
        self._next_line += 1

    def _complete(self):
        block = self._pending
        if self._pending_meta:
            known = self.memo.get(block.commit_id)
            if known is None:
                known = CommitMetadata()
                self.memo[block.commit_id] = known
            known.fields.update(self._pending_meta)
        elif block.commit_id not in self.memo:
            raise ParseError(
                f"commit {block.commit_id} reappeared before its metadata was recorded",
                self._pending_line_no,
            )
        block.meta = self.memo[block.commit_id]

        if block.group_length is not None:
            if len(block.lines) < block.group_length:
                raise ParseError(
                    f"truncated hunk of {block.commit_id}: "
                    f"{len(block.lines)} of {block.group_length} lines",
                    self._pending_line_no,
                )
            if len(block.lines) > block.group_length:
                logger.warning(
                    f"hunk of {block.commit_id} has {len(block.lines)} lines, declared {block.group_length}"
                )

        self.blocks.append(block)
        self._pending = None
        self._pending_meta = dict()


def parse_blocks(trace_lines: typing.Iterable[str]) -> typing.List[Block]:
    """
    parse one file's porcelain trace into ordered blocks

    raises ParseError on any unrecognized line, on a commit reappearing
    without metadata ever recorded, and on truncated hunks.
    an empty trace is an empty file and gives no blocks.
    """
    parser = BlameParser()
    for line_no, each in enumerate(trace_lines, start=1):
        parser.feed(each, line_no)
    return parser.close()
