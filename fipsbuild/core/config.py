"""集中配置管理

工作目录、源码目录、构建产物相对路径、合规标记等统一在此定义。
支持从 YAML 文件加载 + CLI 参数覆盖；版本 / URL / 校验和不属于配置，
它们是 core.toolchain.pins 中的固定常量（可选清单覆盖）。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any

import yaml

from fipsbuild.core.exceptions import ConfigError
from fipsbuild.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """编排全局配置"""

    # 目录
    work_dir: str = "work"
    source_dir: str = "boringssl"
    build_subdir: str = "build"
    manifest: str = ""
    report_file: str = ""

    # 隔离环境
    system_path: list[str] = field(default_factory=lambda: ["/usr/bin", "/bin"])

    # 嵌套构建
    jobs: int = 0
    command_timeout: int = 0
    test_target: str = "run_tests"
    self_test: str = "util/fipstools/test_fips"

    # 构建产物（相对构建目录）
    bssl_tool: str = "tool/bssl"
    libcrypto: str = "crypto/libcrypto.a"
    libssl: str = "ssl/libssl.a"

    # 合规校验
    compliance_marker: str = "1"

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = "configs/default.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"配置文件无效: {path}: {e}") from e
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置字段无效: {path}: {e}") from e
        cfg.extra = extra
        cfg.validate()
        return cfg

    def override(self, **values: Any) -> Config:
        """用非空参数覆盖配置（CLI 选项），返回自身"""
        for k, v in values.items():
            if v is None:
                continue
            if not hasattr(self, k):
                raise ConfigError(f"未知配置项: {k}")
            setattr(self, k, v)
        self.validate()
        return self

    def validate(self) -> None:
        for name in ("jobs", "command_timeout"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} 必须是整数: {value!r}")
        if not isinstance(self.compliance_marker, str):
            raise ConfigError(
                f"compliance_marker 必须是字符串（YAML 中请加引号）: {self.compliance_marker!r}"
            )
        if not isinstance(self.system_path, list) or not all(
            isinstance(p, str) for p in self.system_path
        ):
            raise ConfigError(f"system_path 必须是目录字符串列表: {self.system_path!r}")
        if self.jobs < 0:
            raise ConfigError(f"jobs 不能为负数: {self.jobs}")
        if self.command_timeout < 0:
            raise ConfigError(f"command_timeout 不能为负数: {self.command_timeout}")
        if not self.compliance_marker:
            raise ConfigError("compliance_marker 不能为空")
        if not self.system_path:
            raise ConfigError("system_path 至少需要一个系统目录")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "configs/default.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
