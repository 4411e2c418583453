"""嵌套构建模块

- executor.py: cmake 配置 → ninja 编译 → 测试目标 → FIPS 自检程序
- compliance.py: bssl isfips 合规标记校验
- publisher.py: 静态库发布到调用方路径
"""

from fipsbuild.services.build.compliance import ComplianceVerifier
from fipsbuild.services.build.executor import NestedBuildExecutor
from fipsbuild.services.build.publisher import ArtifactPublisher

__all__ = ["ArtifactPublisher", "ComplianceVerifier", "NestedBuildExecutor"]
