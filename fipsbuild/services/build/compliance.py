"""合规校验：构建成功不代表 FIPS 代码路径真正生效，需要工具自报"""

from __future__ import annotations

import logging

from fipsbuild.core.exceptions import ComplianceCheckError
from fipsbuild.core.models import BuildOutput, ExecutionContext
from fipsbuild.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)

DEFAULT_MARKER = "1"


class ComplianceVerifier:
    """运行 `bssl isfips` 并与合规标记逐字比对"""

    def __init__(
        self, marker: str = DEFAULT_MARKER,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.marker = marker
        self.executor = executor

    def verify(self, output: BuildOutput, context: ExecutionContext) -> str:
        if not output.bssl.is_file():
            raise ComplianceCheckError(f"合规检查工具不存在: {output.bssl}")
        ex = self.executor or get_executor()
        r = ex.execute(
            [str(output.bssl), "isfips"],
            context=context.with_work_dir(output.build_dir),
        )
        reported = r.stdout.strip()
        if not r.success or reported != self.marker:
            raise ComplianceCheckError(
                f"合规断言失败: bssl isfips 输出 {reported!r} (rc={r.returncode}), "
                f"期望 {self.marker!r}"
            )
        logger.info("合规校验通过: bssl isfips = %s", reported)
        return reported
