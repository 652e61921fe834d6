"""模块仓库访问

拆分说明:
- models.py: 数据模型（ModuleDescriptor / DependencySpec）
- spec_parser.py: 依赖声明解析
- registry.py: 仓库元数据查询
- locator.py: 包下载地址定位（跟随重定向）
"""

from modsync.core.gallery.locator import ArtifactLocator
from modsync.core.gallery.models import DependencySpec, ModuleDescriptor
from modsync.core.gallery.registry import RegistryClient
from modsync.core.gallery.spec_parser import parse_dependencies

__all__ = [
    "ArtifactLocator",
    "DependencySpec",
    "ModuleDescriptor",
    "RegistryClient",
    "parse_dependencies",
]
