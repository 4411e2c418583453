"""编排器步骤实现 - 7 步流水线

步骤顺序：
1. platform_gate - 平台门禁
2. fetch_tools - 下载 + 校验 + 解压全部固定工具
3. verify_versions - 逐个校验工具版本
4. assemble_env - 装配隔离环境
5. nested_build - 清理、配置、编译、测试、自检
6. verify_compliance - bssl isfips 合规校验
7. publish - 发布两个静态库

每个步骤返回写入报告的 detail 字典，失败时抛出 FipsBuildError 子类。
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fipsbuild.services.container import ServiceContainer
    from fipsbuild.services.orchestrator.models import BuildPlan, PipelineState

from fipsbuild.core.exceptions import FipsBuildError
from fipsbuild.core.platform_gate import detect_platform, ensure_supported

logger = logging.getLogger(__name__)


class PipelineSteps:
    """编排步骤集合"""

    def __init__(self, container: ServiceContainer) -> None:
        self.c = container

    def platform_gate(self, plan: BuildPlan, state: PipelineState) -> dict[str, Any]:
        """步骤1: 平台门禁，不满足时不做任何下载或构建"""
        plat = ensure_supported(plan.platform or detect_platform())
        state.platform = plat
        registry = self.c.registry
        registry.check(plat)
        state.specs = registry.tools_for(plat)
        logger.info(
            "[Step 1] 平台 %s，工具: %s",
            plat, ", ".join(f"{s.name}@{s.version}" for s in state.specs),
        )
        return {"platform": plat.key, "tools": [s.name for s in state.specs]}

    def fetch_tools(self, plan: BuildPlan, state: PipelineState) -> dict[str, Any]:
        """步骤2: 拉取全部工具，任一校验失败则不解压任何归档"""
        state.artifacts = self.c.fetcher.fetch_all(
            state.specs, self.c.assembler.base_context(),
        )
        logger.info("[Step 2] 工具拉取完成: %d 个", len(state.artifacts))
        return {
            a.spec.name: {"archive": str(a.archive), "sha256": a.sha256}
            for a in state.artifacts
        }

    def verify_versions(self, plan: BuildPlan, state: PipelineState) -> dict[str, Any]:
        """步骤3: 每个工具置于搜索路径首位后探测版本"""
        self.c.verifier.verify_all(state.artifacts, self.c.assembler.base_context())
        logger.info("[Step 3] 版本校验完成")
        return {a.spec.name: a.spec.version for a in state.artifacts}

    def assemble_env(self, plan: BuildPlan, state: PipelineState) -> dict[str, Any]:
        """步骤4: 装配隔离环境并生成工具链描述文件"""
        env = self.c.assembler.assemble(state.artifacts)
        state.environment = env
        logger.info("[Step 4] 隔离环境就绪")
        return {
            "path": env.context.path,
            "home": env.context.home,
            "toolchain_file": str(env.toolchain_file),
        }

    def nested_build(self, plan: BuildPlan, state: PipelineState) -> dict[str, Any]:
        """步骤5: 嵌套构建 + 测试 + FIPS 自检"""
        env = self._require_env(state)
        b = self.c.builder
        b.clean()
        b.configure(env)
        b.compile(env)
        b.run_tests(env)
        b.run_self_test(env)
        state.output = b.outputs()
        logger.info("[Step 5] 构建与测试完成: %s", b.build_dir)
        return {"build_dir": str(b.build_dir)}

    def verify_compliance(self, plan: BuildPlan, state: PipelineState) -> dict[str, Any]:
        """步骤6: 合规标记校验"""
        env = self._require_env(state)
        if state.output is None:
            raise FipsBuildError("合规校验前缺少构建产物")
        reported = self.c.compliance.verify(state.output, env.context)
        logger.info("[Step 6] FIPS 模式确认")
        return {"isfips": reported}

    def publish(self, plan: BuildPlan, state: PipelineState) -> dict[str, Any]:
        """步骤7: 发布静态库到调用方路径"""
        if state.output is None:
            raise FipsBuildError("发布前缺少构建产物")
        state.published = self.c.publisher.publish(
            state.output, plan.dest_libcrypto, plan.dest_libssl,
        )
        logger.info("[Step 7] 产物已发布")
        return dict(state.published)

    @staticmethod
    def _require_env(state: PipelineState):
        if state.environment is None:
            raise FipsBuildError("隔离环境尚未装配")
        return state.environment
