import json
import re
import typing

from loguru import logger
from pydantic import BaseModel, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gitkarma.model import Block, ConfigError

# explicit override inside a commit message, eg: "fix parser #karma_5"
KARMA_MARKER_REGEX = re.compile(r"(?<!\w)#karma_(\d+)\b")


class UrlConfig(BaseModel):
    # templates consumed by page renderers, eg: https://host/repo/commit/{commit}
    commit: str = ""
    author: str = ""


class FileConfig(BaseModel):
    extension: str = ".html"


class KarmaConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GITKARMA_")

    # author identity (mail) -> karma
    karma: typing.Dict[str, int] = dict()
    url: UrlConfig = UrlConfig()
    file: FileConfig = FileConfig()

    @field_validator("karma")
    @classmethod
    def karma_not_negative(cls, value: typing.Dict[str, int]) -> typing.Dict[str, int]:
        for author, each in value.items():
            if each < 0:
                raise ValueError(f"negative karma for {author}: {each}")
        return value

    @classmethod
    def load_from_json_file(cls, config_file: str) -> "KarmaConfig":
        try:
            with open(config_file, encoding="utf-8") as f:
                content = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"failed to read config {config_file}: {e}") from e

        if not isinstance(content, dict):
            raise ConfigError(f"not a valid config object: {config_file}")
        # null is as good as absent: nobody has karma
        content = {k: v for k, v in content.items() if v is not None}

        try:
            config = cls(**content)
        except ValidationError as e:
            raise ConfigError(f"invalid config {config_file}: {e}") from e

        logger.info(f"load karma of {len(config.karma)} authors from {config_file}")
        return config


def marker_karma(summary: str) -> typing.Optional[int]:
    found = KARMA_MARKER_REGEX.search(summary)
    if not found:
        return None
    return int(found.group(1))


def karma(block: Block, config: KarmaConfig) -> int:
    """
    karma of a block

    1. `#karma_<n>` marker in the commit summary
    2. karma of the author mail from config
    3. zero
    """
    override = marker_karma(block.meta.summary)
    if override is not None:
        return override

    author_mail = block.meta.author_mail
    if author_mail in config.karma:
        return config.karma[author_mail]

    # config may keep the bracketed porcelain form
    raw_mail = block.meta.get(block.meta.KEY_AUTHOR_MAIL)
    if raw_mail and raw_mail in config.karma:
        return config.karma[raw_mail]
    return 0


class KarmaResolver(object):
    """ karma bound to one config, cached per commit and the fields karma depends on """

    def __init__(self, config: KarmaConfig = None):
        if not config:
            config = KarmaConfig()
        self.config = config
        self._cache: typing.Dict[typing.Tuple[str, str, str], int] = dict()

    def __call__(self, block: Block) -> int:
        key = (block.commit_id, block.meta.summary, block.meta.get(block.meta.KEY_AUTHOR_MAIL, ""))
        if key not in self._cache:
            self._cache[key] = karma(block, self.config)
        return self._cache[key]
