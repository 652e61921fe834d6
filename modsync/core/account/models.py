"""目标账户数据模型"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ProvisioningState(str, Enum):
    """模块导入的生命周期状态"""

    UNKNOWN = ""
    CREATED = "Created"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    CANCELLED = "Cancelled"
    CREATING = "Creating"
    UPDATING = "Updating"
    CONTENT_RETRIEVED = "ContentRetrieved"
    CONTENT_DOWNLOADED = "ContentDownloaded"
    CONTENT_VALIDATED = "ContentValidated"
    CONNECTION_TYPE_IMPORTED = "ConnectionTypeImported"
    CONTENT_STORED = "ContentStored"
    MODULE_DATA_STORED = "ModuleDataStored"
    ACTIVITIES_STORED = "ActivitiesStored"
    MODULE_IMPORT_RUNBOOK_COMPLETE = "ModuleImportRunbookComplete"
    RUNNING_IMPORT_MODULE_RUNBOOK = "RunningImportModuleRunbook"

    @classmethod
    def parse(cls, value: str | None) -> ProvisioningState:
        """大小写不敏感；未知状态视为 UNKNOWN（按进行中处理）"""
        text = (value or "").strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in (ProvisioningState.CREATED, ProvisioningState.SUCCEEDED,
                        ProvisioningState.FAILED)

    @property
    def is_success(self) -> bool:
        return self in (ProvisioningState.CREATED, ProvisioningState.SUCCEEDED)


@dataclass
class InstalledModule:
    """目标账户中的一个模块"""

    name: str
    version: str = ""
    state: ProvisioningState = ProvisioningState.UNKNOWN
    is_global: bool = False

    @classmethod
    def from_resource(cls, data: dict[str, Any]) -> InstalledModule:
        """从 ARM 资源 JSON 构造"""
        props = data.get("properties") or {}
        return cls(
            name=data.get("name", ""),
            version=props.get("version") or "",
            state=ProvisioningState.parse(props.get("provisioningState")),
            is_global=bool(props.get("isGlobal", False)),
        )
