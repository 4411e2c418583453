"""固定版本工具链常量表

版本取自 BoringCrypto 模块安全策略中指定的构建环境:
Clang 12.0.0 / Go 1.16.5 / Ninja 1.10.2 / CMake 3.20.1。

每个受支持平台必须定义 REQUIRED_TOOLS 中的全部工具，
registry.validate_pins() 在启动时检查完整性。
"""

from __future__ import annotations

from fipsbuild.core.models import ToolSpec

REQUIRED_TOOLS = ("clang", "go", "ninja", "cmake")

CLANG_VERSION = "12.0.0"
GO_VERSION = "1.16.5"
NINJA_VERSION = "1.10.2"
CMAKE_VERSION = "3.20.1"

# 自举命令中的占位符，运行时替换为宿主 Python 解释器
PYTHON_PLACEHOLDER = "{python}"

_LLVM_RELEASES = "https://github.com/llvm/llvm-project/releases/download"
_GO_RELEASES = "https://dl.google.com/go"
_NINJA_RELEASES = "https://github.com/ninja-build/ninja/archive/refs/tags"
_CMAKE_RELEASES = "https://github.com/Kitware/CMake/releases/download"

# TODO: 按 Kitware 发布的 cmake-3.20.1-SHA-256.txt 填入 cmake-3.20.1-linux-aarch64.tar.gz
# 的摘要。未填入前 validate_pins() 报告该项缺失，linux-aarch64 在平台门禁处即被拒绝，
# 不会下载任何归档；可用 --manifest 提供已核对的摘要。
CMAKE_AARCH64_SHA256 = ""


def _clang(triple: str, sha256: str) -> ToolSpec:
    root = f"clang+llvm-{CLANG_VERSION}-{triple}"
    return ToolSpec(
        name="clang",
        version=CLANG_VERSION,
        url=f"{_LLVM_RELEASES}/llvmorg-{CLANG_VERSION}/{root}.tar.xz",
        sha256=sha256,
        root_dir=root,
        version_pattern=r"clang version (\S+)",
    )


def _go(goarch: str, sha256: str) -> ToolSpec:
    return ToolSpec(
        name="go",
        version=GO_VERSION,
        url=f"{_GO_RELEASES}/go{GO_VERSION}.linux-{goarch}.tar.gz",
        sha256=sha256,
        root_dir="go",
        version_args=("version",),
        version_pattern=r"go version go(\S+)",
    )


def _ninja() -> ToolSpec:
    # 源码发布，两个平台共用同一归档；解压后用 configure.py 自举，
    # 只把生成的 ninja 安装到 bin/，源码目录不进入搜索路径
    return ToolSpec(
        name="ninja",
        version=NINJA_VERSION,
        url=f"{_NINJA_RELEASES}/v{NINJA_VERSION}.tar.gz",
        sha256="ce35865411f0490368a8fc383f29071de6690cbadc27704734978221f25e2bed",
        root_dir=f"ninja-{NINJA_VERSION}",
        version_pattern=r"^(\S+)",
        bootstrap_cmd=(PYTHON_PLACEHOLDER, "configure.py", "--bootstrap"),
        bootstrap_product="ninja",
    )


def _cmake(arch: str, sha256: str) -> ToolSpec:
    root = f"cmake-{CMAKE_VERSION}-linux-{arch}"
    return ToolSpec(
        name="cmake",
        version=CMAKE_VERSION,
        url=f"{_CMAKE_RELEASES}/v{CMAKE_VERSION}/{root}.tar.gz",
        sha256=sha256,
        root_dir=root,
        version_pattern=r"cmake version (\S+)",
    )


# 平台键 -> 按使用顺序排列的工具定义
PINS: dict[str, tuple[ToolSpec, ...]] = {
    "linux-x86_64": (
        _clang(
            "x86_64-linux-gnu-ubuntu-20.04",
            "a9ff205eb0b73ca7c86afc6432eed1c2d49133bd0d49e47b15be59bbf0dd292e",
        ),
        _go(
            "amd64",
            "b12c23023b68de22f74c0524f10b753e7b08b1504cb7e417eccebdd3fae49061",
        ),
        _ninja(),
        _cmake(
            "x86_64",
            "b8c141bd7a6d335600ab0a8a35e75af79f95b837f736456b5532f4d717f20a09",
        ),
    ),
    "linux-aarch64": (
        _clang(
            "aarch64-linux-gnu",
            "d05f0b04fb248ce1e7a61fcd2087e6be8bc4b06b2cc348792f383abf414dec48",
        ),
        _go(
            "arm64",
            "d5446b46ef6f36fdffa852f73dfbbe78c1ddf010b99fa4964944b9ae8b4d6799",
        ),
        _ninja(),
        _cmake("aarch64", CMAKE_AARCH64_SHA256),
    ),
}
