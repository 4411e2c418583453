"""测试共享 fixture：fake 命令执行器 + 离线工具链归档

整体结构:

  FakeToolchain      为 linux-x86_64 生成 4 个假工具 tar.gz（目录布局与真实固定
                     版本一致），并写出仅覆盖 url / sha256 的清单文件
  FakeDownloader     按 URL 返回归档字节，记录每次下载
  FakeExecutor       按可执行文件名返回预设输出，记录全部调用；
                     ninja 编译时在构建目录生成产物文件

整条流水线因此可以离线、无真实工具链地跑通。
"""

from __future__ import annotations

import hashlib
import io
import tarfile
from dataclasses import dataclass, field
from pathlib import Path

import pytest
import yaml

from fipsbuild.core.config import Config
from fipsbuild.core.exceptions import DownloadError
from fipsbuild.core.models import ExecutionContext, Platform
from fipsbuild.core.toolchain.pins import PINS
from fipsbuild.services.container import ServiceContainer
from fipsbuild.utils.logger import reset_logging
from fipsbuild.utils.shell import CommandResult

LINUX_X86 = Platform("Linux", "x86_64")

VERSION_OUTPUT = {
    "clang": "clang version 12.0.0\nTarget: x86_64-unknown-linux-gnu\nThread model: posix\n",
    "go": "go version go1.16.5 linux/amd64\n",
    "ninja": "1.10.2\n",
    "cmake": "cmake version 3.20.1\n\nCMake suite maintained and supported by Kitware.\n",
}

BUILD_PRODUCTS = (
    "crypto/libcrypto.a",
    "ssl/libssl.a",
    "tool/bssl",
    "util/fipstools/test_fips",
)

# 工具名 -> 归档内（相对 root_dir）的文件
TOOL_FILES = {
    "clang": ("bin/clang", "bin/clang++"),
    "go": ("bin/go",),
    "ninja": ("configure.py", "ninja"),
    "cmake": ("bin/cmake",),
}


def make_tar(root_dir: str, files: tuple[str, ...]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        info = tarfile.TarInfo(root_dir)
        info.type = tarfile.DIRTYPE
        info.mode = 0o755
        tf.addfile(info)
        for rel in files:
            data = f"#!/bin/sh\n# {rel}\n".encode()
            info = tarfile.TarInfo(f"{root_dir}/{rel}")
            info.size = len(data)
            info.mode = 0o755
            tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@dataclass
class FakeToolchain:
    manifest: Path
    urls: dict[str, str] = field(default_factory=dict)
    payloads: dict[str, bytes] = field(default_factory=dict)

    def tamper(self, tool: str) -> None:
        url = self.urls[tool]
        self.payloads[url] = self.payloads[url] + b"\x00tampered"


class FakeDownloader:
    def __init__(self, payloads: dict[str, bytes]) -> None:
        self.payloads = payloads
        self.calls: list[str] = []

    def __call__(self, url: str, dest: Path) -> None:
        self.calls.append(url)
        if url not in self.payloads:
            raise DownloadError(f"下载失败: {url} - 404")
        dest.write_bytes(self.payloads[url])


class FakeExecutor:
    """CommandExecutor 的 fake 实现

    overrides 的键为可执行文件名，或 "文件名 第一个参数"（如 "ninja run_tests"）。
    """

    def __init__(self) -> None:
        self.calls: list[tuple[list[str], ExecutionContext]] = []
        self.overrides: dict[str, CommandResult] = {}
        self.versions = dict(VERSION_OUTPUT)
        self.isfips = "1\n"

    def execute(
        self, cmd: list[str], *, context: ExecutionContext, timeout: int | None = None,
    ) -> CommandResult:
        self.calls.append((list(cmd), context))
        name = Path(cmd[0]).name
        full = " ".join([name, *cmd[1:2]])
        if full in self.overrides:
            return self.overrides[full]
        if name in self.versions and cmd[1:] in (["--version"], ["version"]):
            return CommandResult(0, self.versions[name], "")
        if name in self.overrides:
            return self.overrides[name]
        if name == "ninja" and cmd[1:2] != ["run_tests"]:
            for rel in BUILD_PRODUCTS:
                p = Path(context.work_dir) / rel
                p.parent.mkdir(parents=True, exist_ok=True)
                p.write_text(f"fake {rel}\n")
        if name == "bssl":
            return CommandResult(0, self.isfips, "")
        return CommandResult(0, "", "")

    def commands(self) -> list[str]:
        return [" ".join([Path(c[0]).name, *c[1:]]) for c, _ in self.calls]


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    reset_logging()


@pytest.fixture()
def toolchain(tmp_path: Path) -> FakeToolchain:
    """与 linux-x86_64 固定版本布局一致的假工具归档 + 覆盖清单"""
    tc = FakeToolchain(manifest=tmp_path / "pins.yml")
    overrides: dict[str, dict[str, str]] = {}
    for spec in PINS[LINUX_X86.key]:
        payload = make_tar(spec.root_dir, TOOL_FILES[spec.name])
        url = f"https://mirror.test/{spec.name}-{spec.version}.tar.gz"
        tc.urls[spec.name] = url
        tc.payloads[url] = payload
        overrides[spec.name] = {
            "url": url,
            "sha256": hashlib.sha256(payload).hexdigest(),
        }
    tc.manifest.write_text(yaml.safe_dump({"platforms": {LINUX_X86.key: overrides}}))
    return tc


@pytest.fixture()
def source_dir(tmp_path: Path) -> Path:
    src = tmp_path / "boringssl"
    src.mkdir()
    (src / "CMakeLists.txt").write_text("project(BoringSSL)\n")
    return src


@pytest.fixture()
def config(tmp_path: Path, toolchain: FakeToolchain, source_dir: Path) -> Config:
    return Config(
        work_dir=str(tmp_path / "work"),
        source_dir=str(source_dir),
        manifest=str(toolchain.manifest),
    )


@pytest.fixture()
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def downloader(toolchain: FakeToolchain) -> FakeDownloader:
    return FakeDownloader(toolchain.payloads)


@pytest.fixture()
def container(config: Config, executor: FakeExecutor, downloader: FakeDownloader) -> ServiceContainer:
    return ServiceContainer(config=config, executor=executor, downloader=downloader)
