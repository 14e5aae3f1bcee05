"""组件依赖：检查依赖是否满足、计算安装顺序、检测循环依赖。

依赖在 ``ComponentConfig.dependencies`` 中声明，例如
``[("widgets", "1.1.0"), ("audit", None)]``：第二项是最低版本要求，
None 表示任意已安装版本均可。
"""
from typing import Dict, List, Optional, Sequence

from config.component_config import ComponentConfig, component_configs
from database import DatabaseManager
from .migrations import compare_versions


class CircularDependencyError(ValueError):
    """组件之间存在循环依赖。

    Attributes:
        cycle: 构成环的组件名称，首尾相同，如 ``["a", "b", "a"]``。
    """

    def __init__(self, cycle: List[str]) -> None:
        super().__init__(f"Circular dependency: {' -> '.join(cycle)}")
        self.cycle = cycle


def is_dependency_met(db: DatabaseManager, name: str,
                      min_version: Optional[str] = None) -> bool:
    """依赖组件是否已安装且版本不低于 min_version。"""
    version = db.component_config(name).get_version()
    if version is None:
        return False
    return min_version is None or compare_versions(version, min_version) >= 0


def check_dependencies(db: DatabaseManager,
                       component: ComponentConfig) -> List[str]:
    """检查组件声明的依赖。

    Returns:
        未满足依赖的说明，全部满足时为空列表。
    """
    problems = []
    for name, min_version in component.dependencies:
        version = db.component_config(name).get_version()
        if version is None:
            problems.append(f"Dependency {name} is not installed")
        elif (min_version is not None
              and compare_versions(version, min_version) < 0):
            problems.append(
                f"Dependency {name} version {version} does not meet "
                f"requirement {min_version}"
            )
    return problems


def installed_dependents(db: DatabaseManager, component: str,
                         configs: Optional[Dict[str, ComponentConfig]] = None
                         ) -> List[str]:
    """依赖 component 的已安装组件，按名称排序。"""
    configs = component_configs if configs is None else configs
    return sorted(
        name for name, config in configs.items()
        if name != component
        and any(dep == component for dep, _ in config.dependencies)
        and db.registry.is_installed(name)
    )


def _dependency_graph(configs: Dict[str, ComponentConfig]
                      ) -> Dict[str, List[str]]:
    # 未注册的依赖不参与排序
    return {
        name: [dep for dep, _ in config.dependencies if dep in configs]
        for name, config in configs.items()
    }


def detect_circular_dependencies(
        names: Optional[Sequence[str]] = None,
        configs: Optional[Dict[str, ComponentConfig]] = None) -> List[str]:
    """从 names 出发沿依赖深度优先查找环。

    Returns:
        找到的第一个环（首尾相同），无环时为空列表。
    """
    configs = component_configs if configs is None else configs
    graph = _dependency_graph(configs)
    starts = list(configs) if names is None else list(names)
    done = set()
    path: List[str] = []

    def visit(node: str) -> List[str]:
        path.append(node)
        for dep in graph.get(node, []):
            if dep in path:
                return path[path.index(dep):] + [dep]
            if dep not in done:
                cycle = visit(dep)
                if cycle:
                    return cycle
        path.pop()
        done.add(node)
        return []

    for name in starts:
        if name not in done:
            cycle = visit(name)
            if cycle:
                return cycle
    return []


def installation_order(names: Optional[Sequence[str]] = None,
                       configs: Optional[Dict[str, ComponentConfig]] = None
                       ) -> List[str]:
    """按依赖关系排序：被依赖的组件排在依赖它的组件之前。

    names 声明的已注册依赖会被递归纳入结果。

    Args:
        names: 要安装的组件，默认全部已注册组件。
        configs: 组件定义注册表，默认 component_configs。

    Raises:
        KeyError: names 中有未注册的组件。
        CircularDependencyError: 存在循环依赖。
    """
    configs = component_configs if configs is None else configs
    starts = list(configs) if names is None else list(names)
    for name in starts:
        if name not in configs:
            raise KeyError(f"Unknown component: {name}")

    cycle = detect_circular_dependencies(starts, configs)
    if cycle:
        raise CircularDependencyError(cycle)

    graph = _dependency_graph(configs)
    order: List[str] = []

    def visit(node: str) -> None:
        if node in order:
            return
        for dep in graph[node]:
            visit(dep)
        order.append(node)

    for name in starts:
        visit(name)
    return order
