"""编排器数据模型

数据类：
- BuildPlan: 一次编排的输入
- PipelineState: 步骤之间传递的中间结果
- StepRecord / PipelineReport: 执行报告
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fipsbuild.core.models import (
    BuildOutput,
    FetchedArtifact,
    IsolatedEnvironment,
    Platform,
    ToolSpec,
)


@dataclass
class BuildPlan:
    """编排计划：两个发布目标路径"""

    dest_libcrypto: Path
    dest_libssl: Path
    # 测试注入用，默认探测当前平台
    platform: Platform | None = None


@dataclass
class PipelineState:
    """步骤间共享的中间结果，由前一步写入、后一步读取"""

    platform: Platform | None = None
    specs: tuple[ToolSpec, ...] = ()
    artifacts: list[FetchedArtifact] = field(default_factory=list)
    environment: IsolatedEnvironment | None = None
    output: BuildOutput | None = None
    published: dict[str, str] = field(default_factory=dict)


@dataclass
class StepRecord:
    """单步执行记录"""

    step: str
    status: str  # "done", "failed", "skipped"
    duration: float = 0.0
    detail: dict[str, Any] = field(default_factory=dict)


@dataclass
class PipelineReport:
    """编排执行报告"""

    plan: BuildPlan
    steps: list[StepRecord] = field(default_factory=list)
    error_code: str = ""
    error_message: str = ""
    failed_step: str = ""

    @property
    def success(self) -> bool:
        return not self.error_code and all(s.status == "done" for s in self.steps)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "dest_libcrypto": str(self.plan.dest_libcrypto),
            "dest_libssl": str(self.plan.dest_libssl),
            "failed_step": self.failed_step,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "steps": [
                {
                    "step": s.step, "status": s.status,
                    "duration": round(s.duration, 3), "detail": s.detail,
                }
                for s in self.steps
            ],
        }
