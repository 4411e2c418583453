"""隔离环境装配

搜索路径 = 已拉取工具的 bin 目录（按固定顺序）+ 最小系统后备目录，
从不合并调用方原有的 PATH。HOME 指向工作目录下的私有目录，
并在其中生成 CMake 工具链描述文件，写入解析出的 clang / clang++ 绝对路径。
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from fipsbuild.core.exceptions import BuildConfigurationError
from fipsbuild.core.models import ExecutionContext, FetchedArtifact, IsolatedEnvironment
from fipsbuild.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

TOOLCHAIN_FILE = "toolchain"


def render_toolchain_file(c_compiler: Path, cxx_compiler: Path) -> str:
    return (
        f'set(CMAKE_C_COMPILER "{c_compiler}")\n'
        f'set(CMAKE_CXX_COMPILER "{cxx_compiler}")\n'
    )


class EnvironmentAssembler:
    """隔离执行环境装配器"""

    def __init__(self, home_dir: Path, system_path: Sequence[str]) -> None:
        self.home_dir = home_dir
        self.system_path = tuple(system_path)

    def base_context(self, work_dir: str | Path = ".") -> ExecutionContext:
        """只含系统后备目录的上下文（工具拉取、自举阶段使用）"""
        return ExecutionContext(
            search_path=self.system_path,
            home=str(self.home_dir),
            work_dir=str(work_dir),
        )

    def assemble(self, artifacts: Sequence[FetchedArtifact]) -> IsolatedEnvironment:
        by_name = {a.spec.name: a for a in artifacts}
        clang = by_name.get("clang")
        if clang is None:
            raise BuildConfigurationError("隔离环境缺少 clang 工具链")

        go_env = {
            "GOPATH": str(self.home_dir / "go"),
            "GOCACHE": str(self.home_dir / ".cache" / "go-build"),
        }
        go = by_name.get("go")
        if go is not None:
            go_env["GOROOT"] = str(go.root)

        search_path = tuple(str(a.bin_dir) for a in artifacts) + self.system_path
        ctx = ExecutionContext(
            search_path=search_path,
            home=str(self.home_dir),
            work_dir=str(self.home_dir),
        ).with_env(**go_env)

        c_compiler = self._resolve_owned(ctx, "clang", clang)
        cxx_compiler = self._resolve_owned(ctx, "clang++", clang)

        toolchain_file = self.home_dir / TOOLCHAIN_FILE
        try:
            self.home_dir.mkdir(parents=True, exist_ok=True)
            atomic_write(toolchain_file, render_toolchain_file(c_compiler, cxx_compiler))
        except OSError as e:
            raise BuildConfigurationError(f"无法写入工具链描述文件 {toolchain_file}: {e}") from e
        logger.info("隔离环境已装配: PATH=%s HOME=%s", ctx.path, ctx.home)
        logger.info("  工具链描述文件: %s", toolchain_file)
        return IsolatedEnvironment(
            context=ctx,
            toolchain_file=toolchain_file,
            c_compiler=c_compiler,
            cxx_compiler=cxx_compiler,
        )

    @staticmethod
    def _resolve_owned(
        ctx: ExecutionContext, name: str, artifact: FetchedArtifact,
    ) -> Path:
        path = ctx.resolve(name)
        if path is None or not artifact.owns(path):
            raise BuildConfigurationError(
                f"{name} 未解析到固定工具链目录 {artifact.root}: {path}"
            )
        return path
