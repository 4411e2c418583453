"""CLI：构建编排命令"""

from __future__ import annotations

from pathlib import Path

import click

from fipsbuild.cli import PipelineAbort, configure_logging
from fipsbuild.core.config import Config
from fipsbuild.core.exceptions import FipsBuildError


def register(group: click.Group) -> None:
    group.add_command(build)


def load_config(
    config_path: str, *, source_dir: str | None = None, work_dir: str | None = None,
    manifest: str | None = None, jobs: int | None = None, report: str | None = None,
) -> Config:
    """配置文件 + CLI 覆盖"""
    try:
        cfg = Config.from_file(config_path)
        return cfg.override(
            source_dir=source_dir, work_dir=work_dir,
            manifest=manifest, jobs=jobs, report_file=report,
        )
    except FipsBuildError as e:
        raise PipelineAbort(e) from e


@click.command()
@click.argument("dest_libcrypto", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("dest_libssl", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--config", "-c", "config_path", default="configs/default.yml", help="配置文件路径")
@click.option("--source-dir", default=None, help="BoringSSL 源码目录（覆盖配置）")
@click.option("--work-dir", default=None, help="工作目录（覆盖配置）")
@click.option("--manifest", default=None, help="固定版本清单（覆盖内置常量）")
@click.option("--jobs", "-j", type=int, default=None, help="ninja 并行数，0 表示由 ninja 决定")
@click.option("--report", default=None, help="运行报告 JSON 路径")
def build(
    dest_libcrypto: Path, dest_libssl: Path, config_path: str,
    source_dir: str | None, work_dir: str | None, manifest: str | None,
    jobs: int | None, report: str | None,
) -> None:
    """拉取固定工具链，以 FIPS 模式构建 BoringSSL 并发布 libcrypto.a / libssl.a"""
    from fipsbuild.services.container import ServiceContainer
    from fipsbuild.services.orchestrator import BuildPlan, Orchestrator

    cfg = load_config(
        config_path, source_dir=source_dir, work_dir=work_dir,
        manifest=manifest, jobs=jobs, report=report,
    )
    orchestrator = Orchestrator(ServiceContainer(config=cfg))
    plan = BuildPlan(dest_libcrypto=dest_libcrypto, dest_libssl=dest_libssl)
    try:
        result = orchestrator.run(plan)
    except FipsBuildError as e:
        step = orchestrator.report.failed_step if orchestrator.report else ""
        raise PipelineAbort(e, step=step) from e
    for name, dest in sorted(result.steps[-1].detail.items()):
        click.echo(f"{name} -> {dest}")


def orchestrator_main() -> None:
    """fips-orchestrator <dest-libcrypto> <dest-libssl> 入口"""
    configure_logging()
    build(prog_name="fips-orchestrator")
