"""fipsbuild 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
编排失败统一转换为 PipelineAbort：输出一行错误并以失败类别对应的退出码结束。
"""

import os

import click

from fipsbuild import __version__
from fipsbuild.core.exceptions import FipsBuildError
from fipsbuild.utils.logger import setup_logging


class PipelineAbort(click.ClickException):
    """携带失败类别退出码的 click 异常"""

    def __init__(self, error: FipsBuildError, step: str = "") -> None:
        where = f"[{step}] " if step else ""
        super().__init__(f"{where}{error.code}: {error}")
        self.exit_code = error.exit_code


def configure_logging() -> None:
    setup_logging(
        level=os.getenv("FIPSBUILD_LOG_LEVEL", "INFO"),
        json_output=os.getenv("FIPSBUILD_LOG_JSON", "") == "1",
    )


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """fipsbuild - 固定版本工具链 + BoringSSL FIPS 构建编排"""
    configure_logging()


# 注册各领域子命令
from fipsbuild.cli.cmd_build import register as _reg_build  # noqa: E402
from fipsbuild.cli.cmd_tools import register as _reg_tools  # noqa: E402

_reg_build(main)
_reg_tools(main)
