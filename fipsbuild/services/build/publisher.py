"""产物发布：把两个静态库移动到调用方指定的路径"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from fipsbuild.core.exceptions import PublishError
from fipsbuild.core.models import BuildOutput

logger = logging.getLogger(__name__)


class ArtifactPublisher:
    """静态库发布器"""

    def publish(
        self, output: BuildOutput, dest_libcrypto: Path, dest_libssl: Path,
    ) -> dict[str, str]:
        """先检查两个源文件和目标目录，全部就绪后再移动"""
        moves = [(output.libcrypto, dest_libcrypto), (output.libssl, dest_libssl)]
        for src, _ in moves:
            if not src.is_file():
                raise PublishError(f"构建产物不存在: {src}")
        for _, dest in moves:
            self._ensure_writable(dest)

        published: dict[str, str] = {}
        for src, dest in moves:
            try:
                shutil.move(str(src), str(dest))
            except OSError as e:
                done = ", ".join(f"{k} -> {v}" for k, v in published.items())
                partial = f"；已发布: {done}" if done else "；尚未发布任何产物"
                raise PublishError(f"移动失败 {src} -> {dest}: {e}{partial}") from e
            logger.info("已发布: %s -> %s", src.name, dest)
            published[src.name] = str(dest)
        return published

    @staticmethod
    def _ensure_writable(dest: Path) -> None:
        if dest.is_dir():
            raise PublishError(f"目标路径是目录: {dest}")
        parent = dest.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PublishError(f"无法创建目标目录 {parent}: {e}") from e
        if not os.access(parent, os.W_OK):
            raise PublishError(f"目标目录不可写: {parent}")
