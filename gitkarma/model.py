import typing

from pydantic import BaseModel, ConfigDict


class LineEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    text: str


class CommitMetadata(object):
    """ commit fields from a blame trace, unknown fields kept as they are """

    KEY_AUTHOR = "author"
    KEY_AUTHOR_MAIL = "author-mail"
    KEY_AUTHOR_TIME = "author-time"
    KEY_COMMITTER = "committer"
    KEY_SUMMARY = "summary"

    def __init__(self, fields: typing.Dict[str, str] = None):
        self.fields: typing.Dict[str, str] = dict(fields or {})

    def get(self, key: str, default: typing.Optional[str] = None) -> typing.Optional[str]:
        return self.fields.get(key, default)

    def __getitem__(self, key: str) -> str:
        return self.fields[key]

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def __len__(self) -> int:
        return len(self.fields)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CommitMetadata):
            return NotImplemented
        return self.fields == other.fields

    def __repr__(self) -> str:
        return f"CommitMetadata({self.fields!r})"

    @property
    def author(self) -> str:
        return self.fields.get(self.KEY_AUTHOR, "")

    @property
    def author_mail(self) -> str:
        # porcelain wraps the address: <someone@example.com>
        return self.fields.get(self.KEY_AUTHOR_MAIL, "").strip().lstrip("<").rstrip(">")

    @property
    def author_time(self) -> typing.Optional[int]:
        value = self.fields.get(self.KEY_AUTHOR_TIME)
        if value is None or not value.isdigit():
            return None
        return int(value)

    @property
    def committer(self) -> str:
        return self.fields.get(self.KEY_COMMITTER, "")

    @property
    def summary(self) -> str:
        return self.fields.get(self.KEY_SUMMARY, "")


class Block(object):
    """ one hunk of a file: contiguous lines owned by a single commit """

    def __init__(self, commit_id: str, group_length: typing.Optional[int] = None):
        self.commit_id: str = commit_id
        self.group_length: typing.Optional[int] = group_length
        self.lines: typing.List[LineEntry] = []
        self.meta: CommitMetadata = CommitMetadata()
        # fields git repeats on every hunk (filename, previous)
        self.hunk_meta: typing.Dict[str, str] = dict()

    def __len__(self) -> int:
        return len(self.lines)

    def __repr__(self) -> str:
        return f"Block({self.commit_id[:8]}, group_length={self.group_length}, lines={len(self.lines)})"

    @property
    def first_line(self) -> typing.Optional[int]:
        return self.lines[0].number if self.lines else None

    @property
    def last_line(self) -> typing.Optional[int]:
        return self.lines[-1].number if self.lines else None


class FileContext(object):
    def __init__(self, name: str):
        self.name: str = name
        self.blocks: typing.List[Block] = []

    @property
    def line_count(self) -> int:
        return sum(len(each) for each in self.blocks)


class RuntimeContext(object):
    """ shared data between components """
    def __init__(self):
        self.files: typing.Dict[str, FileContext] = dict()
        # tracked files ignored during collection, eg: binaries
        self.skipped: typing.List[str] = []

    def blocks_by_file(self) -> typing.Dict[str, typing.List[Block]]:
        return {name: each.blocks for name, each in self.files.items()}


class GitKarmaException(Exception):
    pass


class ParseError(GitKarmaException):
    def __init__(self, message: str, line_no: typing.Optional[int] = None):
        if line_no is not None:
            message = f"trace line {line_no}: {message}"
        super().__init__(message)
        self.line_no = line_no


class ConfigError(GitKarmaException):
    pass


class AggregationInvariantViolation(GitKarmaException):
    pass
