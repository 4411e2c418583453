"""固定版本归档拉取器

职责:
- https 下载（已存在且校验通过的归档直接复用）
- sha256 校验，不一致时删除文件并中止
- tar 解压到工具链目录
- 源码发布的工具（ninja）解压后自举，产物安装到独立的 bin 目录

fetch_all() 分三个阶段：全部下载并校验 → 全部解压 → 自举。
任一归档校验失败时，没有任何归档会被解压或使用。
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import sys
import tarfile
import urllib.error
import urllib.request
from collections.abc import Callable, Iterable
from pathlib import Path

from fipsbuild.core.exceptions import (
    BuildConfigurationError,
    ChecksumMismatchError,
    DownloadError,
    ValidationError,
)
from fipsbuild.core.models import ExecutionContext, FetchedArtifact, ToolSpec
from fipsbuild.core.toolchain.pins import PYTHON_PLACEHOLDER
from fipsbuild.utils.net import validate_url_scheme
from fipsbuild.utils.shell import CommandExecutor, run_cmd

logger = logging.getLogger(__name__)

Downloader = Callable[[str, Path], None]


def urlretrieve_download(url: str, dest: Path) -> None:
    """默认下载实现"""
    try:
        urllib.request.urlretrieve(url, str(dest))  # nosec B310 - scheme 已校验
    except (urllib.error.HTTPError, urllib.error.URLError, OSError) as e:
        dest.unlink(missing_ok=True)
        raise DownloadError(f"下载失败: {url} - {e}") from e


def sha256_of(path: Path) -> str:
    sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


class ArtifactFetcher:
    """工具链归档拉取器 - 下载、校验、解压、自举"""

    def __init__(
        self,
        download_dir: Path,
        toolchain_dir: Path,
        *,
        downloader: Downloader | None = None,
        executor: CommandExecutor | None = None,
        timeout: int | None = None,
    ) -> None:
        self.download_dir = download_dir
        self.toolchain_dir = toolchain_dir
        self.downloader = downloader or urlretrieve_download
        self.executor = executor
        self.timeout = timeout

    def fetch_all(
        self, specs: Iterable[ToolSpec], context: ExecutionContext,
    ) -> list[FetchedArtifact]:
        """拉取全部工具，返回按输入顺序排列的产物"""
        specs = list(specs)
        verified = [(spec, self.download(spec)) for spec in specs]
        artifacts = [self.extract(spec, archive) for spec, archive in verified]
        for art in artifacts:
            self.bootstrap(art, context)
        return artifacts

    def download(self, spec: ToolSpec) -> Path:
        """下载并校验归档，返回本地路径"""
        try:
            validate_url_scheme(spec.url, context=f"{spec.name} {spec.version}")
        except ValidationError as e:
            raise DownloadError(str(e)) from e

        if not spec.sha256:
            raise ChecksumMismatchError(
                f"{spec.name} {spec.version} 未固定校验和，拒绝下载: {spec.url}"
            )

        dest = self.download_dir / f"{spec.name}-{spec.version}" / spec.archive_name
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DownloadError(f"无法创建下载目录 {dest.parent}: {e}") from e

        if dest.exists():
            logger.info("  缓存命中: %s", dest)
            self._verify_checksum(spec, dest)
            return dest

        partial = dest.with_name(dest.name + ".part")
        logger.info("  下载 %s %s: %s", spec.name, spec.version, spec.url)
        try:
            partial.unlink(missing_ok=True)
            self.downloader(spec.url, partial)
            if not partial.is_file():
                raise DownloadError(f"下载未产生文件: {spec.url}")
            self._verify_checksum(spec, partial)
            os.replace(partial, dest)
        except OSError as e:
            raise DownloadError(f"保存归档失败 {dest}: {e}") from e
        logger.info("  已保存: %s", dest)
        return dest

    def _verify_checksum(self, spec: ToolSpec, path: Path) -> None:
        try:
            actual = sha256_of(path)
        except OSError as e:
            raise DownloadError(f"读取归档失败 {path}: {e}") from e
        if actual != spec.sha256:
            path.unlink(missing_ok=True)
            raise ChecksumMismatchError(
                f"校验和不匹配 {spec.name} {spec.version} ({path.name}): "
                f"期望 {spec.sha256}, 实际 {actual}"
            )
        logger.info("  校验和通过: %s", path.name)

    def extract(self, spec: ToolSpec, archive: Path) -> FetchedArtifact:
        """解压到 toolchain_dir/<root_dir>，已有同名目录先删除"""
        root = self.toolchain_dir / spec.root_dir
        try:
            if root.is_dir():
                shutil.rmtree(root)
            elif root.exists():
                root.unlink()
            self.toolchain_dir.mkdir(parents=True, exist_ok=True)
            with tarfile.open(archive) as tf:
                tf.extractall(path=str(self.toolchain_dir), filter="data")  # noqa: S202
        except (OSError, tarfile.TarError) as e:
            raise DownloadError(f"解压失败 {archive}: {e}") from e
        if not root.is_dir():
            raise DownloadError(
                f"归档 {archive.name} 解压后未找到目录 {spec.root_dir}"
            )
        logger.info("  已解压: %s -> %s", spec.name, root)
        return FetchedArtifact(
            spec=spec, archive=archive, sha256=spec.sha256, root=root,
        )

    def bootstrap(self, artifact: FetchedArtifact, context: ExecutionContext) -> None:
        """执行工具自带的自举命令，并把产出的可执行文件安装到 bin 目录"""
        spec = artifact.spec
        if not spec.bootstrap_cmd:
            return
        cmd = [
            sys.executable if part == PYTHON_PLACEHOLDER else part
            for part in spec.bootstrap_cmd
        ]
        run_cmd(
            cmd, context=context.with_work_dir(artifact.root),
            label=f"{spec.name} 自举", error=BuildConfigurationError,
            executor=self.executor, timeout=self.timeout,
        )
        if spec.bootstrap_product:
            self._install_product(artifact)

    @staticmethod
    def _install_product(artifact: FetchedArtifact) -> None:
        spec = artifact.spec
        product = artifact.root / spec.bootstrap_product
        if not product.is_file():
            raise BuildConfigurationError(f"{spec.name} 自举后未生成 {product}")
        target = artifact.bin_dir / spec.executable
        try:
            artifact.bin_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(product, target)
        except OSError as e:
            raise BuildConfigurationError(f"安装 {spec.name} 到 {target} 失败: {e}") from e
        logger.info("  已安装: %s -> %s", product.name, target)
