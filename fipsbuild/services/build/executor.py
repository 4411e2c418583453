"""嵌套构建执行器

职责:
- 清理旧的构建目录
- cmake 配置（工具链描述文件 + FIPS + Release + -fPIC）
- ninja 编译
- ninja 测试目标 + 直接运行 FIPS 自检程序

任何一步非零退出都立即抛出对应异常，不重试。
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from fipsbuild.core.config import Config
from fipsbuild.core.exceptions import (
    BuildConfigurationError,
    CompileError,
    TestFailureError,
)
from fipsbuild.core.models import BuildOutput, IsolatedEnvironment
from fipsbuild.utils.shell import CommandExecutor, run_cmd

logger = logging.getLogger(__name__)


class NestedBuildExecutor:
    """BoringSSL 嵌套构建执行器"""

    def __init__(
        self, source_dir: Path, config: Config,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.source_dir = source_dir
        self.config = config
        self.executor = executor

    @property
    def build_dir(self) -> Path:
        return self.source_dir / self.config.build_subdir

    @property
    def _timeout(self) -> int | None:
        return self.config.command_timeout or None

    def configure_args(self, env: IsolatedEnvironment) -> list[str]:
        return [
            "cmake",
            "-GNinja",
            f"-DCMAKE_TOOLCHAIN_FILE={env.toolchain_file}",
            "-DFIPS=1",
            "-DCMAKE_BUILD_TYPE=Release",
            "-DCMAKE_C_FLAGS=-fPIC",
            "-DCMAKE_CXX_FLAGS=-fPIC",
            "..",
        ]

    def compile_args(self) -> list[str]:
        cmd = ["ninja"]
        if self.config.jobs:
            cmd += ["-j", str(self.config.jobs)]
        return cmd

    def clean(self) -> Path:
        """删除旧构建目录并重新创建"""
        if not (self.source_dir / "CMakeLists.txt").is_file():
            raise BuildConfigurationError(
                f"源码目录无效（缺少 CMakeLists.txt）: {self.source_dir}"
            )
        try:
            if self.build_dir.exists():
                logger.info("清理旧构建目录: %s", self.build_dir)
                shutil.rmtree(self.build_dir)
            self.build_dir.mkdir(parents=True)
        except OSError as e:
            raise BuildConfigurationError(f"无法准备构建目录 {self.build_dir}: {e}") from e
        return self.build_dir

    def configure(self, env: IsolatedEnvironment) -> None:
        run_cmd(
            self.configure_args(env),
            context=env.context.with_work_dir(self.build_dir),
            label="cmake 配置", error=BuildConfigurationError,
            executor=self.executor, timeout=self._timeout,
        )

    def compile(self, env: IsolatedEnvironment) -> None:
        run_cmd(
            self.compile_args(),
            context=env.context.with_work_dir(self.build_dir),
            label="ninja 编译", error=CompileError,
            executor=self.executor, timeout=self._timeout,
        )

    def run_tests(self, env: IsolatedEnvironment) -> None:
        run_cmd(
            ["ninja", self.config.test_target],
            context=env.context.with_work_dir(self.build_dir),
            label=f"ninja {self.config.test_target}", error=TestFailureError,
            executor=self.executor, timeout=self._timeout,
        )

    def run_self_test(self, env: IsolatedEnvironment) -> None:
        exe = self.build_dir / self.config.self_test
        if not exe.is_file():
            raise TestFailureError(f"FIPS 自检程序不存在: {exe}")
        run_cmd(
            [str(exe)],
            context=env.context.with_work_dir(self.build_dir),
            label="FIPS 自检", error=TestFailureError,
            executor=self.executor, timeout=self._timeout,
        )

    def outputs(self) -> BuildOutput:
        """构建目录内各产物的固定位置（不检查存在性）"""
        b = self.build_dir
        return BuildOutput(
            build_dir=b,
            libcrypto=b / self.config.libcrypto,
            libssl=b / self.config.libssl,
            bssl=b / self.config.bssl_tool,
            self_test=b / self.config.self_test,
        )
