"""build_tree_list 测试"""

from ydoc.orm.tree import build_tree_list


class TestBuildTreeList:
    """扁平列表组装为嵌套树测试"""

    def test_empty(self):
        assert build_tree_list([]) == []

    def test_nested(self):
        """测试多级嵌套与同级排序"""
        nodes = [
            {"id": 1, "parent_id": None, "sort_order": 2.0},
            {"id": 2, "parent_id": None, "sort_order": 1.0},
            {"id": 3, "parent_id": 1, "sort_order": 2.0},
            {"id": 4, "parent_id": 1, "sort_order": 1.0},
            {"id": 5, "parent_id": 4, "sort_order": 1.0},
        ]
        tree = build_tree_list(nodes, sort_key=lambda n: n["sort_order"])

        assert [n["id"] for n in tree] == [2, 1]
        folder = tree[1]
        assert [n["id"] for n in folder["children"]] == [4, 3]
        assert folder["children"][0]["children"][0]["id"] == 5

    def test_orphan_becomes_root(self):
        """测试父节点不在列表中的节点视为根节点"""
        tree = build_tree_list([{"id": 7, "parent_id": 99}])
        assert tree[0]["id"] == 7
        assert tree[0]["children"] == []

    def test_input_not_modified(self):
        nodes = [{"id": 1, "parent_id": None}]
        build_tree_list(nodes)
        assert "children" not in nodes[0]
