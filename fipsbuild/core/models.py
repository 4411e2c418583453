"""核心数据模型

平台描述、固定版本工具定义、已拉取产物、执行上下文、构建产物集中定义。
其他模块统一从此处导入，避免 toolchain ↔ services 之间的循环依赖。
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

# 子进程可继承的宿主环境变量，其余（GOROOT、CC、CFLAGS、CMAKE_* 等）一律丢弃
HOST_ENV_PASSTHROUGH = frozenset((
    "LANG", "LANGUAGE", "LC_ALL", "LC_CTYPE", "LC_MESSAGES",
    "TERM", "TMPDIR", "TZ", "USER", "LOGNAME",
))

# =========================================================================
# 平台
# =========================================================================


@dataclass(frozen=True)
class Platform:
    """OS + CPU 架构组合，启动时计算一次"""

    os: str
    arch: str

    @property
    def key(self) -> str:
        """清单中使用的平台键，如 linux-x86_64"""
        return f"{self.os.lower()}-{self.arch}"

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"


# =========================================================================
# 工具链
# =========================================================================


@dataclass(frozen=True)
class ToolSpec:
    """单个固定版本工具的定义（每个 工具 × 平台 一条）"""

    name: str
    version: str
    url: str
    sha256: str
    root_dir: str                      # 归档解压后的顶层目录名
    bin_dir: str = "bin"               # 相对 root_dir，空串表示顶层
    binary: str = ""                   # 版本探测使用的可执行文件，默认同 name
    version_args: tuple[str, ...] = ("--version",)
    version_pattern: str = r"(\d+\.\d+\.\d+)"
    bootstrap_cmd: tuple[str, ...] = ()  # 源码发布的工具需要先自举
    bootstrap_product: str = ""        # 自举产出的可执行文件（相对 root_dir），安装到 bin_dir

    @property
    def executable(self) -> str:
        return self.binary or self.name

    @property
    def archive_name(self) -> str:
        return self.url.rstrip("/").split("/")[-1]


@dataclass
class FetchedArtifact:
    """已下载、已校验、已解压的工具归档"""

    spec: ToolSpec
    archive: Path
    sha256: str
    root: Path

    @property
    def bin_dir(self) -> Path:
        return self.root / self.spec.bin_dir if self.spec.bin_dir else self.root

    def owns(self, path: str | Path) -> bool:
        """判断某个已解析路径是否位于本产物目录内"""
        try:
            Path(path).resolve().relative_to(self.root.resolve())
        except ValueError:
            return False
        return True


# =========================================================================
# 执行上下文
# =========================================================================


@dataclass(frozen=True)
class ExecutionContext:
    """外部命令执行上下文（不可变）

    每次外部调用都显式传入，编排器从不修改自身进程的 PATH / HOME。
    变更通过 with_* 方法返回新实例。
    """

    search_path: tuple[str, ...] = ()
    home: str = ""
    work_dir: str = "."
    env_overrides: tuple[tuple[str, str], ...] = ()

    @property
    def path(self) -> str:
        return os.pathsep.join(self.search_path)

    def with_path_head(self, directory: str | Path) -> ExecutionContext:
        entry = str(directory)
        rest = tuple(p for p in self.search_path if p != entry)
        return replace(self, search_path=(entry, *rest))

    def with_work_dir(self, work_dir: str | Path) -> ExecutionContext:
        return replace(self, work_dir=str(work_dir))

    def with_env(self, **overrides: str) -> ExecutionContext:
        merged = dict(self.env_overrides)
        merged.update(overrides)
        return replace(self, env_overrides=tuple(sorted(merged.items())))

    def resolve(self, name: str) -> Path | None:
        """仅在上下文自身的搜索路径中查找可执行文件"""
        if os.sep in name:
            return Path(name) if Path(name).exists() else None
        if not self.search_path:
            return None
        found = shutil.which(name, path=self.path)
        return Path(found) if found else None

    def environ(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """生成子进程环境变量

        base 中只保留 HOST_ENV_PASSTHROUGH 列出的变量，PATH / HOME
        及工具链相关变量只来自上下文。
        """
        env = {
            k: v for k, v in (base or {}).items()
            if k in HOST_ENV_PASSTHROUGH
        }
        env["PATH"] = self.path
        if self.home:
            env["HOME"] = self.home
        env.update(dict(self.env_overrides))
        return env


# =========================================================================
# 构建产物
# =========================================================================


@dataclass
class BuildOutput:
    """嵌套构建产出的文件"""

    build_dir: Path
    libcrypto: Path
    libssl: Path
    bssl: Path
    self_test: Path


@dataclass(frozen=True)
class IsolatedEnvironment:
    """嵌套构建使用的隔离环境：执行上下文 + 生成的工具链描述文件"""

    context: ExecutionContext
    toolchain_file: Path
    c_compiler: Path
    cxx_compiler: Path
