import re
import stat
import typing
from concurrent.futures import ThreadPoolExecutor, as_completed

import git
from git import Repo
from git.index.fun import S_IFGITLINK
from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict
from tqdm import tqdm

from gitkarma.model import FileContext, GitKarmaException, RuntimeContext
from gitkarma.parser import parse_blocks, split_trace

# git looks at the same prefix when guessing binary content
BINARY_SNIFF_SIZE = 8000


class CollectorConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GITKARMA_")

    repo_root: str = "."

    # file name include regex
    include_regex: str = ""
    include_file_list: typing.List[str] = []

    # blame workers
    workers: int = 4


class Collector(object):
    def __init__(self, config: CollectorConfig = None):
        if not config:
            config = CollectorConfig()
        self.config = config

    def collect_metadata(self) -> RuntimeContext:
        exc = self._check_env()
        if exc:
            raise GitKarmaException(f"not a git repository: {self.config.repo_root}") from exc

        logger.info("git blame collecting ...")
        ctx = RuntimeContext()
        git_repo = git.Repo(self.config.repo_root)
        file_list = self._collect_files(git_repo, ctx)
        self._collect_blames(git_repo, file_list, ctx)

        logger.info("blame ready")
        return ctx

    def _check_env(self) -> typing.Optional[BaseException]:
        try:
            repo = git.Repo(self.config.repo_root, search_parent_directories=True)
            # if changed after search
            self.config.repo_root = repo.working_tree_dir
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
            return e
        return None

    @staticmethod
    def _is_binary(blob: git.Blob) -> bool:
        return b"\0" in blob.data_stream.read(BINARY_SNIFF_SIZE)

    @staticmethod
    def _is_submodule(blob: git.Blob) -> bool:
        # gitlink entries point to a commit of another repository
        return stat.S_IFMT(blob.mode) == S_IFGITLINK

    def _collect_files(self, git_repo: Repo, ctx: RuntimeContext) -> typing.List[str]:
        """collect all text files which tracked by git"""
        git_track_files = {each[1].path: each[1] for each in git_repo.index.iter_blobs()}

        if self.config.include_file_list:
            logger.info("use specific file list")
            candidates = []
            for each in self.config.include_file_list:
                if each not in git_track_files:
                    logger.warning(f"specific file {each} not in git track, ignored")
                    continue
                candidates.append(each)
            # END file list loop
        else:
            include_regex = None
            if self.config.include_regex:
                include_regex = re.compile(self.config.include_regex)
            candidates = [
                each for each in git_track_files
                if not include_regex or include_regex.match(each)
            ]

        ret = []
        for each in sorted(candidates):
            if self._is_submodule(git_track_files[each]):
                logger.debug(f"skip submodule: {each}")
                ctx.skipped.append(each)
                continue
            if self._is_binary(git_track_files[each]):
                logger.debug(f"skip binary file: {each}")
                ctx.skipped.append(each)
                continue
            ret.append(each)

        logger.info(f"file {len(ret)} collected, {len(ctx.skipped)} skipped")
        return ret

    @staticmethod
    def _collect_blame(git_repo: Repo, file_path: str) -> FileContext:
        raw = git_repo.git.blame("--porcelain", "--", file_path)
        file_ctx = FileContext(file_path)
        file_ctx.blocks = parse_blocks(split_trace(raw))
        logger.debug(f"file {file_path}: {len(file_ctx.blocks)} blocks")
        return file_ctx

    def _collect_blames(self, git_repo: Repo, file_list: typing.List[str], ctx: RuntimeContext):
        results: typing.Dict[str, FileContext] = dict()
        with ThreadPoolExecutor(max_workers=max(self.config.workers, 1)) as ex:
            futs = [ex.submit(self._collect_blame, git_repo, each) for each in file_list]
            for fut in tqdm(as_completed(futs), total=len(futs)):
                file_ctx = fut.result()
                results[file_ctx.name] = file_ctx

        # keep the tracked order whatever the completion order
        for each in file_list:
            ctx.files[each] = results[each]
