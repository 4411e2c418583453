"""固定版本注册表

职责:
- 以 pins.PINS 为基线，可选地从 YAML 清单覆盖版本 / URL / 校验和
- 启动时校验完整性：每个受支持平台都定义了全部必需工具
- 按平台选出唯一一组 ToolSpec

清单格式:
    platforms:
      linux-x86_64:
        clang:
          version: "12.0.0"
          url: https://...
          sha256: ...
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import fields, replace
from pathlib import Path
from typing import Any

import yaml

from fipsbuild.core.exceptions import ConfigError, UnsupportedPlatformError, ValidationError
from fipsbuild.core.models import Platform, ToolSpec
from fipsbuild.core.platform_gate import SUPPORTED_PLATFORMS
from fipsbuild.core.toolchain.pins import PINS, REQUIRED_TOOLS
from fipsbuild.utils.net import validate_url_scheme
from fipsbuild.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

_SHA256_RE = re.compile(r"^[0-9a-f]{64}$")
_OVERRIDABLE = frozenset(("version", "url", "sha256", "root_dir", "bin_dir"))


class PinRegistry:
    """工具链固定版本注册表"""

    def __init__(self, manifest_path: str | Path | None = None) -> None:
        self.manifest_path = Path(manifest_path) if manifest_path else None
        self._pins: dict[str, tuple[ToolSpec, ...]] | None = None

    @property
    def pins(self) -> dict[str, tuple[ToolSpec, ...]]:
        if self._pins is None:
            self._pins = self.load()
        return self._pins

    def load(self) -> dict[str, tuple[ToolSpec, ...]]:
        """加载基线常量并叠加清单覆盖"""
        pins = dict(PINS)
        if self.manifest_path is None:
            return pins
        if not self.manifest_path.exists():
            raise ConfigError(f"固定版本清单不存在: {self.manifest_path}")

        try:
            data = load_yaml(self.manifest_path)
        except (ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"固定版本清单无效: {self.manifest_path}: {e}") from e
        overrides = data.get("platforms") or {}
        if not isinstance(overrides, dict):
            raise ConfigError(f"清单 platforms 段必须是映射: {self.manifest_path}")

        for key, tools in overrides.items():
            if key not in pins:
                raise ConfigError(f"清单中的平台不受支持: {key}")
            tools = tools or {}
            if not isinstance(tools, dict):
                raise ConfigError(f"清单平台 {key} 必须是 工具名 -> 字段 的映射")
            pins[key] = self._apply_overrides(key, pins[key], tools)
        logger.info("已加载固定版本清单: %s", self.manifest_path)
        return pins

    def _apply_overrides(
        self, key: str, specs: tuple[ToolSpec, ...], tools: dict[str, Any],
    ) -> tuple[ToolSpec, ...]:
        by_name = {s.name: s for s in specs}
        for name, values in tools.items():
            if name not in by_name:
                raise ConfigError(f"清单中的工具未知: {key}/{name}")
            values = values or {}
            if not isinstance(values, dict):
                raise ConfigError(f"清单工具 {key}/{name} 必须是字段映射")
            unknown = set(values) - _OVERRIDABLE
            if unknown:
                raise ConfigError(
                    f"清单字段不可覆盖: {key}/{name}: {sorted(unknown)}"
                )
            by_name[name] = replace(
                by_name[name], **{k: str(v) for k, v in values.items()},
            )
            logger.info("  覆盖 %s/%s: %s", key, name, sorted(values))
        return tuple(by_name[s.name] for s in specs)

    def tools_for(self, plat: Platform) -> tuple[ToolSpec, ...]:
        """返回平台对应的唯一一组工具定义"""
        specs = self.pins.get(plat.key)
        if specs is None:
            raise UnsupportedPlatformError(f"平台 {plat} 没有固定工具链定义")
        return specs

    def check(self, plat: Platform | None = None) -> None:
        """完整性校验，存在问题时抛出 ValidationError（details 列出全部问题）

        指定 plat 时只校验该平台，否则校验全部受支持平台。
        """
        platforms = (plat,) if plat is not None else SUPPORTED_PLATFORMS
        problems = validate_pins(self.pins, platforms)
        if problems:
            raise ValidationError(
                f"固定版本表不完整 ({len(problems)} 处问题)", details=problems,
            )

    def list_tools(self, plat: Platform) -> list[dict[str, str]]:
        """格式化工具列表用于查询"""
        return [
            {
                "name": s.name,
                "version": s.version,
                "url": s.url,
                "sha256": s.sha256,
            }
            for s in self.tools_for(plat)
        ]

    def to_manifest(self) -> dict[str, Any]:
        """导出为清单格式，可编辑后通过 --manifest 回灌"""
        return {
            "platforms": {
                key: {
                    s.name: {
                        "version": s.version,
                        "url": s.url,
                        "sha256": s.sha256,
                    }
                    for s in specs
                }
                for key, specs in self.pins.items()
            },
        }


def validate_pins(
    pins: dict[str, tuple[ToolSpec, ...]],
    platforms: Iterable[Platform] = SUPPORTED_PLATFORMS,
) -> list[str]:
    """检查给定平台（默认全部受支持平台）都有完整且合法的工具定义，返回问题列表"""
    problems: list[str] = []
    for plat in platforms:
        specs = pins.get(plat.key)
        if not specs:
            problems.append(f"{plat.key}: 缺少工具链定义")
            continue
        names = [s.name for s in specs]
        for required in REQUIRED_TOOLS:
            if required not in names:
                problems.append(f"{plat.key}: 缺少工具 {required}")
        dupes = {n for n in names if names.count(n) > 1}
        for name in sorted(dupes):
            problems.append(f"{plat.key}: 工具重复定义 {name}")
        for spec in specs:
            problems.extend(_validate_spec(plat.key, spec))
    return problems


def _validate_spec(key: str, spec: ToolSpec) -> list[str]:
    problems: list[str] = []
    label = f"{key}/{spec.name}"
    for f in fields(spec):
        if f.name in ("version", "url", "sha256", "root_dir") and not getattr(spec, f.name):
            problems.append(f"{label}: {f.name} 为空")
    if spec.sha256 and not _SHA256_RE.match(spec.sha256):
        problems.append(f"{label}: sha256 不是 64 位小写十六进制")
    if spec.url:
        try:
            validate_url_scheme(spec.url, context=label)
        except ValidationError as e:
            problems.append(str(e))
    try:
        re.compile(spec.version_pattern)
    except re.error as e:
        problems.append(f"{label}: version_pattern 无效: {e}")
    return problems
