"""模块导入编排

提交导入请求后轮询目标账户，直到导入进入终态:
  Created / Succeeded → 成功
  Failed 或状态查询出错 → 失败
  超过 max_polls 次仍未结束 → 超时

单个模块导入失败只影响该模块，不向上抛出异常。
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from modsync.core.account.models import ProvisioningState
from modsync.core.exceptions import AccountError
from modsync.core.protocols import AccountProvider

logger = logging.getLogger(__name__)


class JobPhase(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


_PHASE_RANK = {
    JobPhase.SUBMITTED: 0,
    JobPhase.POLLING: 1,
    JobPhase.SUCCEEDED: 2,
    JobPhase.FAILED: 2,
    JobPhase.TIMED_OUT: 2,
}


@dataclass
class ImportJob:
    """一次导入尝试"""

    module: str
    version: str
    artifact_url: str
    submitted_at: float = field(default_factory=time.time)
    phase: JobPhase = JobPhase.SUBMITTED
    last_state: ProvisioningState = ProvisioningState.UNKNOWN
    polls: int = 0
    error: str = ""

    def advance(self, phase: JobPhase) -> None:
        """推进阶段，只能向前"""
        if _PHASE_RANK[phase] <= _PHASE_RANK[self.phase]:
            raise ValueError(
                f"导入任务 {self.module} 不能从 {self.phase.value} 转到 {phase.value}"
            )
        self.phase = phase

    def fail(self, message: str, phase: JobPhase = JobPhase.FAILED) -> None:
        self.error = message
        self.advance(phase)

    @property
    def done(self) -> bool:
        return _PHASE_RANK[self.phase] == 2

    @property
    def succeeded(self) -> bool:
        return self.phase is JobPhase.SUCCEEDED

    def to_dict(self) -> dict[str, str]:
        return {
            "module": self.module,
            "version": self.version,
            "phase": self.phase.value,
            "state": self.last_state.value,
            "error": self.error,
        }


class ImportOrchestrator:
    """导入提交 + 状态轮询"""

    def __init__(
        self,
        account: AccountProvider,
        *,
        poll_interval: float = 5.0,
        max_polls: int = 120,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._account = account
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self._sleep = sleep

    def submit_and_wait(
        self, name: str, artifact_url: str, *, version: str = "latest",
    ) -> ImportJob:
        job = ImportJob(module=name, version=version, artifact_url=artifact_url)
        logger.info("提交导入: %s@%s <- %s", name, version, artifact_url,
                    extra={"sync_module": name, "sync_version": version})
        try:
            handle = self._account.import_module(name, artifact_url)
        except AccountError as e:
            job.fail(str(e))
            logger.error("导入提交失败: %s - %s", name, e)
            return job

        job.advance(JobPhase.POLLING)
        while handle is not None and not handle.state.is_terminal:
            job.last_state = handle.state
            if job.polls >= self.max_polls:
                job.fail(
                    f"等待 {job.polls} 次后导入仍未结束 (state={handle.state.value or 'unset'})",
                    JobPhase.TIMED_OUT,
                )
                logger.error("导入超时: %s - %s", name, job.error)
                return job
            self._sleep(self.poll_interval)
            job.polls += 1
            try:
                handle = self._account.get_module(name)
            except AccountError as e:
                job.fail(f"查询导入状态失败: {e}")
                logger.error("查询导入状态失败: %s - %s", name, e)
                return job

        if handle is None:
            job.fail("账户中找不到正在导入的模块")
            logger.error("导入失败: %s - %s", name, job.error)
            return job

        job.last_state = handle.state
        if handle.state.is_success:
            job.advance(JobPhase.SUCCEEDED)
            logger.info("导入成功: %s@%s (state=%s, polls=%d)",
                        name, version, handle.state.value, job.polls)
        else:
            job.fail(f"导入失败 (state={handle.state.value})")
            logger.error("导入失败: %s@%s", name, version)
        return job
