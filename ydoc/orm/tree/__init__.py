"""树形结构模块

提供物化路径树的纯函数构件：
- build_path: 由父路径和 slug 计算物化路径
- is_path_descendant / is_descendant_node: 基于路径前缀的祖先判断
- build_tree_list: 扁平列表组装为嵌套树
"""

from .path_builder import PATH_SEPARATOR, build_path, descendant_prefix
from .ancestry import is_path_descendant, is_descendant_node
from .tree_utils import build_tree_list

__all__ = [
    "PATH_SEPARATOR",
    "build_path",
    "descendant_prefix",
    "is_path_descendant",
    "is_descendant_node",
    "build_tree_list",
]
