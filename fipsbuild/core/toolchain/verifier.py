"""工具版本校验

把刚拉取的工具放到搜索路径最前面，通过该搜索路径解析可执行文件，
确认解析结果位于产物目录内（防止系统工具遮蔽），再比对上报版本。
"""

from __future__ import annotations

import logging
import re

from fipsbuild.core.exceptions import ToolVersionMismatchError
from fipsbuild.core.models import ExecutionContext, FetchedArtifact
from fipsbuild.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)


def parse_version(output: str, pattern: str) -> str:
    """从版本输出中提取版本号，无法解析时返回空串"""
    m = re.search(pattern, output.strip(), re.MULTILINE)
    return m.group(1) if m else ""


class VersionVerifier:
    """逐个校验工具版本"""

    def __init__(self, executor: CommandExecutor | None = None) -> None:
        self.executor = executor

    def verify(
        self, artifact: FetchedArtifact, context: ExecutionContext,
    ) -> ExecutionContext:
        """校验单个工具，返回以该工具目录为首的新上下文"""
        spec = artifact.spec
        ctx = context.with_path_head(artifact.bin_dir)

        resolved = ctx.resolve(spec.executable)
        if resolved is None or not artifact.owns(resolved):
            raise ToolVersionMismatchError(
                spec.name, spec.version,
                f"{spec.executable} 解析到产物目录之外: {resolved}",
            )

        ex = self.executor or get_executor()
        r = ex.execute([str(resolved), *spec.version_args], context=ctx)
        actual = parse_version(r.stdout or r.stderr, spec.version_pattern) if r.success else ""
        if actual != spec.version:
            raise ToolVersionMismatchError(spec.name, spec.version, actual)

        logger.info("  版本校验通过: %s %s (%s)", spec.name, actual, resolved)
        return ctx

    def verify_all(
        self, artifacts: list[FetchedArtifact], context: ExecutionContext,
    ) -> ExecutionContext:
        ctx = context
        for art in artifacts:
            ctx = self.verify(art, ctx)
        return ctx
