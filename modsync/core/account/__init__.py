"""目标自动化账户访问"""

from modsync.core.account.client import AutomationAccountClient
from modsync.core.account.models import InstalledModule, ProvisioningState

__all__ = [
    "AutomationAccountClient",
    "InstalledModule",
    "ProvisioningState",
]
