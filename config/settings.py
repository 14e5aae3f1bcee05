"""全局配置管理

所有用户可配置项均通过 .env 文件设置，运行时自动加载到此处。

使用方式：
    1. 手动创建 .env 文件，例如 ``DATABASE_URL=sqlite:///data/admin.db``
    2. 或直接通过环境变量覆盖（变量名不区分大小写）
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用配置 - 所有字段均可通过 .env 或环境变量覆盖"""

    # ========== 数据库 ==========
    database_url: str = "sqlite:///data/admin.db"

    # ========== 组件目录 ==========
    # 每个组件在此目录下拥有 {component}/config.env 与 {component}/backups/
    components_dir: str = "components"
    config_file_name: str = "config.env"
    backup_dir_name: str = "backups"

    # ========== 后台菜单 ==========
    admin_base_url: str = "/admin"
    menu_start_order: int = 100

    # ========== 日志 ==========
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# 全局配置实例
settings = Settings()
