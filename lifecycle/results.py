"""生命周期操作的选项与结果结构

安装、迁移、备份、卸载都不通过异常报告业务失败，而是返回这里的结果对象：
``errors`` 表示操作失败的原因，``warnings`` 表示被降级处理、不影响整体
成功的问题，``steps_completed`` 记录已完成的步骤。Web 页面与 CLI
使用同一结构，便于统一测试。
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class MigrationReport:
    """迁移执行结果

    Attributes:
        final_version: 执行结束后的版本（最后一个成功迁移的版本）。
        applied: 本次成功执行的迁移版本，按执行顺序排列。
        errors: 失败信息；非空时其后的迁移均未执行。
    """
    final_version: str
    applied: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass
class BackupResult:
    """备份结果"""
    success: bool
    backup_file: Optional[str] = None
    error: Optional[str] = None


@dataclass
class UninstallOptions:
    """卸载选项

    Attributes:
        silent: 静默模式，CLI 只输出 JSON 结果（--silent / --yes-to-all）。
        auto: 自动模式，不询问确认（--auto）。
        no_backup: 跳过备份步骤（--no-backup）。
    """
    silent: bool = False
    auto: bool = False
    no_backup: bool = False


@dataclass
class InstallOptions:
    """安装选项

    Attributes:
        skip_menu: 不创建菜单链接。
        force: 配置文件已存在时仍然执行安装（重新安装）。
    """
    skip_menu: bool = False
    force: bool = False


@dataclass
class LifecycleResult:
    """安装/卸载的通用结果结构"""
    success: bool = False
    steps_completed: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class UninstallResult(LifecycleResult):
    """卸载结果，backup_file 为本次生成的备份文件路径"""
    backup_file: Optional[str] = None


@dataclass
class InstallResult(LifecycleResult):
    """安装结果，version 为安装完成后的组件版本"""
    version: Optional[str] = None
