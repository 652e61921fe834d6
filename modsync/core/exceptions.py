"""统一异常体系

所有业务异常继承 ModSyncError，CLI 层据此输出友好提示并以非零状态退出。

按传播策略分为两类:
  - 依赖解析路径上的异常（RegistryQueryError / ArtifactResolutionError /
    OperationTimeoutError）会被 DependencyResolutionError 包装；发生在依赖上时中止整个同步，
    发生在顶层模块自身时只记为该模块失败
  - 单模块导入失败（ImportSubmissionError）仅记录到该模块的结果，不中止同步
"""

from __future__ import annotations


class ModSyncError(Exception):
    """同步引擎基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(ModSyncError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(ModSyncError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"


class AuthenticationError(ModSyncError):
    """无法获取访问令牌"""

    code = "AUTH_ERROR"


class RegistryQueryError(ModSyncError):
    """模块仓库查询失败（网络错误或响应无法解析）"""

    code = "REGISTRY_QUERY_FAILED"


class ArtifactResolutionError(ModSyncError):
    """无法定位模块包的下载地址"""

    code = "ARTIFACT_RESOLUTION_FAILED"


class AccountError(ModSyncError):
    """目标账户 API 调用失败"""

    code = "ACCOUNT_ERROR"

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ImportSubmissionError(AccountError):
    """导入请求被目标账户拒绝"""

    code = "IMPORT_SUBMISSION_FAILED"


class OperationTimeoutError(ModSyncError):
    """重定向链或导入轮询超过上限"""

    code = "TIMEOUT"


class DependencyResolutionError(ModSyncError):
    """模块解析失败

    module 为出错的模块，depth 为出错时的递归深度。depth=0 表示顶层模块自身失败，
    同步循环只把它记为该模块失败；depth>0 表示某个依赖失败，整个同步过程中止。
    """

    code = "DEPENDENCY_RESOLUTION_FAILED"

    def __init__(self, message: str, module: str = "", depth: int = 0) -> None:
        super().__init__(message)
        self.module = module
        self.depth = depth

    @property
    def is_top_level(self) -> bool:
        return self.depth == 0
