#!/usr/bin/env python3
"""自动化作业入口

由调度平台以作业参数的形式调用，参数直接覆盖配置文件中的同名项。

用法:
    # 更新账户中所有 Azure SDK 模块
    python scripts/run_sync_job.py --resource-group rg --account acct --subscription sub

    # 更新全部模块，并重试上次导入失败的模块
    python scripts/run_sync_job.py --resource-group rg --account acct --all-modules --force

    # 导入一个新模块（连同依赖）
    python scripts/run_sync_job.py --resource-group rg --account acct --new-module Az.Storage
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from modsync.core.config import Config
from modsync.core.exceptions import ModSyncError
from modsync.services.container import ServiceContainer
from modsync.utils.logger import setup_logging

logger = logging.getLogger(__name__)


def build_config(args: argparse.Namespace) -> Config:
    cfg = Config.from_file(args.config)
    for attr, value in (
        ("subscription_id", args.subscription),
        ("resource_group", args.resource_group),
        ("automation_account", args.account),
        ("runtime_version", args.runtime),
        ("auth_mode", args.auth_mode),
    ):
        if value:
            setattr(cfg, attr, value)
    return cfg


def main() -> int:
    parser = argparse.ArgumentParser(description="同步自动化账户中的模块")
    parser.add_argument("--config", default=os.getenv("MODSYNC_CONFIG", "configs/default.yml"))
    parser.add_argument("--subscription", default="", help="订阅 ID")
    parser.add_argument("--resource-group", default="", help="资源组")
    parser.add_argument("--account", default="", help="自动化账户名")
    parser.add_argument("--runtime", choices=("5.1", "7.2"), default="", help="运行时版本")
    parser.add_argument("--auth-mode", choices=("token", "managed_identity"), default="")
    parser.add_argument("--all-modules", action="store_true", help="更新全部模块（默认仅 Azure SDK 模块）")
    parser.add_argument("--force", action="store_true", help="重试上次导入失败的模块")
    parser.add_argument("--new-module", default="", help="导入新模块")
    parser.add_argument("--new-module-version", default=None, help="新模块的版本（默认最新）")
    args = parser.parse_args()

    setup_logging(
        level=os.getenv("MODSYNC_LOG_LEVEL", "INFO"),
        json_output=os.getenv("MODSYNC_LOG_JSON", "") == "1",
    )

    container = ServiceContainer(build_config(args))
    try:
        if args.new_module:
            report = container.sync.import_new(args.new_module, args.new_module_version)
        else:
            report = container.sync.run(
                update_azure_only=not args.all_modules, force=args.force,
            )
    except ModSyncError as e:
        logger.error("同步中止 [%s]: %s", e.code, e)
        return 1

    summary = report.summary()
    logger.info(
        "作业完成: %d 个模块, 更新 %d, 失败 %d",
        summary["total"], summary["updated"], summary["failed"],
    )
    return 0 if report.success else 1


if __name__ == "__main__":
    sys.exit(main())
