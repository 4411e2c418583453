"""构建编排器 - 顺序执行 7 步流水线

职责：
- 按固定顺序执行步骤，首个失败即停止并重新抛出
- 每步计时并记录到报告
- 无论成功失败都落盘 JSON 报告（中间目录一律不清理，便于排查）
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from fipsbuild.core.exceptions import (
    BuildConfigurationError,
    ComplianceCheckError,
    DownloadError,
    FipsBuildError,
    PublishError,
)
from fipsbuild.services.container import ServiceContainer
from fipsbuild.services.orchestrator.models import (
    BuildPlan,
    PipelineReport,
    PipelineState,
    StepRecord,
)
from fipsbuild.services.orchestrator.steps import PipelineSteps
from fipsbuild.utils.yaml_io import save_json

logger = logging.getLogger(__name__)

Step = Callable[[BuildPlan, PipelineState], dict[str, Any]]

_STEP_ERRORS: dict[str, type[FipsBuildError]] = {
    "fetch_tools": DownloadError,
    "assemble_env": BuildConfigurationError,
    "nested_build": BuildConfigurationError,
    "verify_compliance": ComplianceCheckError,
    "publish": PublishError,
}


class Orchestrator:
    """7 步构建编排器"""

    def __init__(self, container: ServiceContainer | None = None) -> None:
        self.c = container or ServiceContainer()
        self.steps = PipelineSteps(self.c)
        self.report: PipelineReport | None = None

    def pipeline(self) -> list[tuple[str, Step]]:
        s = self.steps
        return [
            ("platform_gate", s.platform_gate),
            ("fetch_tools", s.fetch_tools),
            ("verify_versions", s.verify_versions),
            ("assemble_env", s.assemble_env),
            ("nested_build", s.nested_build),
            ("verify_compliance", s.verify_compliance),
            ("publish", s.publish),
        ]

    def run(self, plan: BuildPlan) -> PipelineReport:
        """执行编排流程，失败时报告落盘后重新抛出原异常"""
        report = PipelineReport(plan=plan)
        self.report = report
        state = PipelineState()
        pending = self.pipeline()
        try:
            while pending:
                name, step = pending.pop(0)
                self._run_step(name, step, plan, state, report)
        except FipsBuildError:
            report.steps.extend(
                StepRecord(step=name, status="skipped") for name, _ in pending
            )
            raise
        finally:
            self._save_report(report)
        logger.info("编排完成: %s, %s", plan.dest_libcrypto, plan.dest_libssl)
        return report

    def _run_step(
        self, name: str, step: Step, plan: BuildPlan,
        state: PipelineState, report: PipelineReport,
    ) -> None:
        start = time.monotonic()
        try:
            try:
                detail = step(plan, state)
            except OSError as e:
                # 各步骤已包装可预期的文件系统错误，这里兜底归入该步骤的失败类别
                error_cls = _STEP_ERRORS.get(name, FipsBuildError)
                raise error_cls(f"{name} 文件系统错误: {e}") from e
        except FipsBuildError as e:
            report.steps.append(StepRecord(
                step=name, status="failed",
                duration=time.monotonic() - start,
                detail={"error": str(e)},
            ))
            report.failed_step = name
            report.error_code = e.code
            report.error_message = str(e)
            logger.error("步骤 %s 失败 [%s]: %s", name, e.code, e)
            raise
        report.steps.append(StepRecord(
            step=name, status="done",
            duration=time.monotonic() - start, detail=detail,
        ))

    def _save_report(self, report: PipelineReport) -> None:
        path = Path(self.c.report_path)
        try:
            save_json(path, report.to_dict())
        except OSError as e:
            logger.warning("报告写入失败 %s: %s", path, e)
            return
        logger.info("运行报告: %s", path)
