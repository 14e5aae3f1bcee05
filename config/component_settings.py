"""组件配置文件（config.env）的读写。

每个已安装组件在 ``{components_dir}/{component}/`` 下拥有一个 dotenv 格式的
配置文件，保存数据库地址、表前缀、访问地址、加密密钥等环境相关配置。
安装器生成该文件，卸载器删除该文件；其存在与否也被用作"已安装"的标记。
"""
import os
from typing import Optional

from pydantic_settings import BaseSettings

from config.settings import settings


class ComponentSettings(BaseSettings):
    """单个组件的基础配置。

    文件中的键统一带 ``COMPONENT_`` 前缀，例如 ``COMPONENT_VERSION``。

    Attributes:
        name: 组件命名空间（如 ``commerce``）。
        version: 安装时写入的组件版本。
        installed_at: 安装时间，``%Y-%m-%d %H:%M:%S`` 格式。
        database_url: 组件使用的数据库连接URL。
        table_prefix: 组件表前缀，通常为 ``{name}_``。
        base_url: 站点根地址。
        admin_url: 后台根地址。
        encryption_key: 组件私有的加密密钥。
    """

    name: str
    version: str = "0.0.0"
    installed_at: str = ""
    database_url: str = ""
    table_prefix: str = ""
    base_url: str = ""
    admin_url: str = ""
    encryption_key: str = ""

    class Config:
        env_prefix = "COMPONENT_"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


def component_dir(component: str, components_dir: Optional[str] = None) -> str:
    """返回组件目录路径。"""
    return os.path.join(components_dir or settings.components_dir, component)


def config_file_path(component: str,
                     components_dir: Optional[str] = None) -> str:
    """返回组件配置文件路径。"""
    return os.path.join(
        component_dir(component, components_dir), settings.config_file_name
    )


def _quote(value: str) -> str:
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def write_component_settings(path: str,
                             component_settings: ComponentSettings) -> None:
    """将组件配置写入 dotenv 格式文件（覆盖已有文件）。

    Args:
        path: 目标文件路径，父目录不存在时自动创建。
        component_settings: 要写入的配置。
    """
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    env_lines = [
        f"# Component configuration: {component_settings.name}",
        "# Generated by the component installer, removed on uninstall",
        "",
    ]
    for key, value in component_settings.model_dump().items():
        env_lines.append(f"COMPONENT_{key.upper()}={_quote(value)}")

    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(env_lines) + "\n")


def load_component_settings(path: str) -> Optional[ComponentSettings]:
    """读取组件配置文件。

    Args:
        path: 配置文件路径。

    Returns:
        ComponentSettings 对象，文件不存在时返回 None。
    """
    if not os.path.exists(path):
        return None
    return ComponentSettings(_env_file=path)
