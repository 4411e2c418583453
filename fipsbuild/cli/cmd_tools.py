"""CLI：工具链固定版本查询与校验命令"""

from __future__ import annotations

import click

from fipsbuild.cli import PipelineAbort
from fipsbuild.core.exceptions import FipsBuildError, ValidationError
from fipsbuild.core.platform_gate import (
    SUPPORTED_PLATFORMS,
    detect_platform,
    is_supported,
    platform_from_key,
)
from fipsbuild.core.toolchain import PinRegistry
from fipsbuild.utils.yaml_io import save_yaml

_PLATFORM_KEYS = [p.key for p in SUPPORTED_PLATFORMS]


def register(group: click.Group) -> None:
    group.add_command(tools)
    group.add_command(check_pins)
    group.add_command(show_platform)


@click.command()
@click.option("--platform", "platform_key", type=click.Choice(_PLATFORM_KEYS), default=None,
              help="平台键（默认当前平台）")
@click.option("--manifest", default=None, help="固定版本清单")
@click.option("--export", "export_path", default=None, help="把全部平台的固定版本导出为清单 YAML")
def tools(platform_key: str | None, manifest: str | None, export_path: str | None) -> None:
    """列出平台对应的固定版本工具"""
    registry = PinRegistry(manifest_path=manifest)
    try:
        if export_path:
            save_yaml(export_path, registry.to_manifest())
            click.echo(f"已导出: {export_path}")
            return
        plat = platform_from_key(platform_key) if platform_key else detect_platform()
        entries = registry.list_tools(plat)
    except FipsBuildError as e:
        raise PipelineAbort(e) from e
    click.echo(f"平台: {plat.key}")
    for t in entries:
        click.echo(f"  {t['name']:8s} {t['version']:10s} {t['url']}")
        click.echo(f"  {'':8s} sha256={t['sha256']}")


@click.command(name="check-pins")
@click.option("--manifest", default=None, help="固定版本清单")
def check_pins(manifest: str | None) -> None:
    """校验每个受支持平台的固定版本表是否完整"""
    try:
        PinRegistry(manifest_path=manifest).check()
    except ValidationError as e:
        for d in e.details:
            click.echo(f"  [FAIL] {d}", err=True)
        raise PipelineAbort(e) from e
    except FipsBuildError as e:
        raise PipelineAbort(e) from e
    click.echo(f"固定版本表完整: {', '.join(_PLATFORM_KEYS)}")


@click.command(name="platform")
def show_platform() -> None:
    """显示当前平台及是否受支持"""
    plat = detect_platform()
    status = "受支持" if is_supported(plat) else "不受支持"
    click.echo(f"{plat.key} ({status})")
