"""外部命令执行工具：统一子进程调用

通过 CommandExecutor 协议抽象子进程执行，编排各步骤只依赖协议，
测试时注入 fake 实现即可，无需真实工具链也无需 patch subprocess。

所有调用都显式携带 ExecutionContext：可执行文件只在上下文的搜索路径中解析，
子进程的 PATH / HOME 只来自上下文。
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Protocol

from fipsbuild.core.exceptions import FipsBuildError
from fipsbuild.core.models import ExecutionContext

logger = logging.getLogger(__name__)

# 错误信息中保留的输出尾部长度
OUTPUT_TAIL = 2000


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def tail(self, limit: int = OUTPUT_TAIL) -> str:
        text = (self.stderr.strip() or self.stdout.strip())
        return text[-limit:]


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议：抽象子进程调用"""

    def execute(
        self,
        cmd: list[str],
        *,
        context: ExecutionContext,
        timeout: int | None = None,
    ) -> CommandResult:
        """在给定上下文中执行命令并返回结果"""
        ...


# =========================================================================
# 默认实现: 本地执行器
# =========================================================================

class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(
        self,
        cmd: list[str],
        *,
        context: ExecutionContext,
        timeout: int | None = None,
    ) -> CommandResult:
        program = context.resolve(cmd[0])
        if program is None:
            return CommandResult(
                returncode=127, stdout="",
                stderr=f"{cmd[0]}: 在上下文搜索路径中未找到 ({context.path})",
            )
        try:
            r = subprocess.run(
                [str(program), *cmd[1:]],
                capture_output=True, text=True,
                cwd=context.work_dir, env=context.environ(os.environ),
                check=False, timeout=timeout or None,
            )
        except subprocess.TimeoutExpired as e:
            return CommandResult(
                returncode=-1, stdout="",
                stderr=f"命令超时 ({e.timeout}s): {' '.join(cmd)}",
            )
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )


# =========================================================================
# 全局默认执行器（可替换）
# =========================================================================

_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


# =========================================================================
# 便捷函数
# =========================================================================

def run_cmd(
    cmd: list[str],
    *,
    context: ExecutionContext,
    label: str = "cmd",
    error: type[FipsBuildError] = FipsBuildError,
    executor: CommandExecutor | None = None,
    timeout: int | None = None,
) -> CommandResult:
    """执行命令，非零退出码抛出指定的异常类型

    Args:
        cmd: 命令参数列表，cmd[0] 在上下文搜索路径中解析
        context: 执行上下文
        label: 日志 / 错误信息中的步骤标签
        error: 失败时抛出的异常类型
        executor: 命令执行器，默认使用全局执行器
        timeout: 超时秒数，None 或 0 表示不限
    """
    ex = executor or get_executor()
    logger.info("  %s: %s (cwd=%s)", label, " ".join(cmd), context.work_dir)
    r = ex.execute(cmd, context=context, timeout=timeout)
    if r.stdout:
        logger.debug("  %s stdout:\n%s", label, r.stdout[-OUTPUT_TAIL:])
    if not r.success:
        raise error(f"{label} 失败 (rc={r.returncode}): {r.tail()}")
    return r
