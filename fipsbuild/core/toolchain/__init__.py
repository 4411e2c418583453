"""固定版本工具链模块

- pins.py: 平台 -> 工具定义常量表
- registry.py: 清单覆盖与完整性校验
- fetcher.py: 下载、校验、解压、自举
- verifier.py: 版本校验
- environment.py: 隔离环境装配
"""

from fipsbuild.core.toolchain.environment import EnvironmentAssembler
from fipsbuild.core.toolchain.fetcher import ArtifactFetcher
from fipsbuild.core.toolchain.registry import PinRegistry, validate_pins
from fipsbuild.core.toolchain.verifier import VersionVerifier

__all__ = [
    "ArtifactFetcher",
    "EnvironmentAssembler",
    "PinRegistry",
    "VersionVerifier",
    "validate_pins",
]
