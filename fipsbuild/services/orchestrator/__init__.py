"""构建编排器模块

- models.py: 计划 / 中间状态 / 报告
- steps.py: 7 个步骤实现
- orchestrator.py: 顺序执行与报告落盘
"""

from fipsbuild.services.orchestrator.models import BuildPlan, PipelineReport, PipelineState
from fipsbuild.services.orchestrator.orchestrator import Orchestrator
from fipsbuild.services.orchestrator.steps import PipelineSteps

__all__ = [
    "BuildPlan",
    "Orchestrator",
    "PipelineReport",
    "PipelineState",
    "PipelineSteps",
]
