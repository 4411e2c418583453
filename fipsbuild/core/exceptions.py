"""统一异常体系

所有编排失败均继承 FipsBuildError，每类失败对应一个稳定的 code 与进程退出码。
CLI 层据此输出单行错误提示并以对应退出码结束，流水线任何一步都不做重试。
"""

from __future__ import annotations


class FipsBuildError(Exception):
    """编排基础异常"""

    code: str = "UNKNOWN"
    exit_code: int = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(FipsBuildError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"
    exit_code = 2


class ValidationError(FipsBuildError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"
    exit_code = 2

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class UnsupportedPlatformError(FipsBuildError):
    """当前 OS / CPU 架构不在支持列表内"""

    code = "UNSUPPORTED_PLATFORM"
    exit_code = 10


class DownloadError(FipsBuildError):
    """工具链归档下载失败"""

    code = "DOWNLOAD_FAILURE"
    exit_code = 11


class ChecksumMismatchError(FipsBuildError):
    """归档 sha256 与固定值不一致"""

    code = "CHECKSUM_MISMATCH"
    exit_code = 12


class ToolVersionMismatchError(FipsBuildError):
    """工具上报的版本与固定版本不一致"""

    code = "TOOL_VERSION_MISMATCH"
    exit_code = 13

    def __init__(self, tool: str, expected: str, actual: str) -> None:
        super().__init__(
            f"工具版本不匹配: {tool} 期望 {expected}, 实际 {actual or '<无法解析>'}"
        )
        self.tool = tool
        self.expected = expected
        self.actual = actual


class BuildConfigurationError(FipsBuildError):
    """cmake 配置（或工具自举）失败"""

    code = "BUILD_CONFIGURATION_FAILURE"
    exit_code = 14


class CompileError(FipsBuildError):
    """ninja 编译失败"""

    code = "COMPILE_FAILURE"
    exit_code = 15


class TestFailureError(FipsBuildError):
    """库自带测试或 FIPS 自检程序失败"""

    __test__ = False  # 避免被 pytest 当作测试类收集

    code = "TEST_FAILURE"
    exit_code = 16


class ComplianceCheckError(FipsBuildError):
    """构建成功但工具未上报 FIPS 模式"""

    code = "COMPLIANCE_CHECK_FAILURE"
    exit_code = 17


class PublishError(FipsBuildError):
    """产物移动到目标路径失败"""

    code = "PUBLISH_FAILURE"
    exit_code = 18
