"""平台门禁

只支持 Linux x86_64 / aarch64。门禁在任何下载或构建之前执行，
不满足时直接抛出 UnsupportedPlatformError，不产生任何副作用。
"""

from __future__ import annotations

import logging
import platform as _platform

from fipsbuild.core.exceptions import UnsupportedPlatformError
from fipsbuild.core.models import Platform

logger = logging.getLogger(__name__)

SUPPORTED_OS = "Linux"
SUPPORTED_ARCHES = ("x86_64", "aarch64")

# uname -m 在部分发行版 / 容器里的别名
_ARCH_ALIASES = {
    "amd64": "x86_64",
    "arm64": "aarch64",
}

SUPPORTED_PLATFORMS = tuple(Platform(SUPPORTED_OS, arch) for arch in SUPPORTED_ARCHES)


def detect_platform(system: str | None = None, machine: str | None = None) -> Platform:
    """读取当前 OS 与 CPU 架构（参数用于测试注入）"""
    os_name = system if system is not None else _platform.system()
    arch = machine if machine is not None else _platform.machine()
    arch = _ARCH_ALIASES.get(arch.lower(), arch)
    return Platform(os=os_name, arch=arch)


def is_supported(plat: Platform) -> bool:
    return plat in SUPPORTED_PLATFORMS


def ensure_supported(plat: Platform) -> Platform:
    """平台不受支持时抛出 UnsupportedPlatformError"""
    if not is_supported(plat):
        supported = ", ".join(str(p) for p in SUPPORTED_PLATFORMS)
        raise UnsupportedPlatformError(
            f"不支持的平台 {plat}，仅支持: {supported}"
        )
    logger.info("平台检查通过: %s", plat)
    return plat


def platform_from_key(key: str) -> Platform:
    """把 linux-x86_64 形式的键还原为 Platform"""
    os_part, sep, arch = key.partition("-")
    if not sep or not arch:
        raise ValueError(f"无效的平台键: {key}（期望形如 linux-x86_64）")
    return detect_platform(system=os_part.capitalize(), machine=arch)
