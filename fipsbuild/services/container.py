"""服务容器：统一依赖注入

编排各步骤通过容器获取协作者，同一容器内实例共享（懒加载）。
命令执行器和下载函数在容器构造时注入，测试中替换为 fake 即可
离线、无真实工具链地跑通整条流水线。

目录约定（均位于 config.work_dir 下）:
  downloads/   下载的归档
  toolchains/  解压后的工具链
  home/        私有 HOME，含 toolchain 描述文件
  report.json  运行报告（config.report_file 可覆盖）

用法:
    container = ServiceContainer(config=cfg)
    report = Orchestrator(container).run(plan)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fipsbuild.core.config import Config
    from fipsbuild.core.toolchain import (
        ArtifactFetcher,
        EnvironmentAssembler,
        PinRegistry,
        VersionVerifier,
    )
    from fipsbuild.core.toolchain.fetcher import Downloader
    from fipsbuild.services.build import (
        ArtifactPublisher,
        ComplianceVerifier,
        NestedBuildExecutor,
    )
    from fipsbuild.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(
        self,
        config: Config | None = None,
        *,
        executor: CommandExecutor | None = None,
        downloader: Downloader | None = None,
    ) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from fipsbuild.core.config import get_config
            config = get_config()
        self._config = config
        self._executor = executor
        self._downloader = downloader

    @property
    def config(self) -> Config:
        return self._config

    # ---- 目录 ----

    @property
    def work_dir(self) -> Path:
        return Path(self._config.work_dir).resolve()

    @property
    def report_path(self) -> Path:
        if self._config.report_file:
            return Path(self._config.report_file)
        return self.work_dir / "report.json"

    # ---- 工具链 ----

    @property
    def registry(self) -> PinRegistry:
        if "registry" not in self._instances:
            from fipsbuild.core.toolchain import PinRegistry
            self._instances["registry"] = PinRegistry(
                manifest_path=self._config.manifest or None,
            )
        return self._instances["registry"]  # type: ignore[return-value]

    @property
    def fetcher(self) -> ArtifactFetcher:
        if "fetcher" not in self._instances:
            from fipsbuild.core.toolchain import ArtifactFetcher
            self._instances["fetcher"] = ArtifactFetcher(
                download_dir=self.work_dir / "downloads",
                toolchain_dir=self.work_dir / "toolchains",
                downloader=self._downloader,
                executor=self._executor,
                timeout=self._config.command_timeout or None,
            )
        return self._instances["fetcher"]  # type: ignore[return-value]

    @property
    def verifier(self) -> VersionVerifier:
        if "verifier" not in self._instances:
            from fipsbuild.core.toolchain import VersionVerifier
            self._instances["verifier"] = VersionVerifier(executor=self._executor)
        return self._instances["verifier"]  # type: ignore[return-value]

    @property
    def assembler(self) -> EnvironmentAssembler:
        if "assembler" not in self._instances:
            from fipsbuild.core.toolchain import EnvironmentAssembler
            self._instances["assembler"] = EnvironmentAssembler(
                home_dir=self.work_dir / "home",
                system_path=self._config.system_path,
            )
        return self._instances["assembler"]  # type: ignore[return-value]

    # ---- 构建 ----

    @property
    def builder(self) -> NestedBuildExecutor:
        if "builder" not in self._instances:
            from fipsbuild.services.build import NestedBuildExecutor
            self._instances["builder"] = NestedBuildExecutor(
                source_dir=Path(self._config.source_dir).resolve(),
                config=self._config,
                executor=self._executor,
            )
        return self._instances["builder"]  # type: ignore[return-value]

    @property
    def compliance(self) -> ComplianceVerifier:
        if "compliance" not in self._instances:
            from fipsbuild.services.build import ComplianceVerifier
            self._instances["compliance"] = ComplianceVerifier(
                marker=self._config.compliance_marker,
                executor=self._executor,
            )
        return self._instances["compliance"]  # type: ignore[return-value]

    @property
    def publisher(self) -> ArtifactPublisher:
        if "publisher" not in self._instances:
            from fipsbuild.services.build import ArtifactPublisher
            self._instances["publisher"] = ArtifactPublisher()
        return self._instances["publisher"]  # type: ignore[return-value]
