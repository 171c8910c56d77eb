"""分数索引排序计算测试

测试 ydoc.orm.sortable.ordering 的纯函数：
1. at_end / before_reference / after_reference
2. is_already_at_position
3. 重复序号检测与重新编号
"""

from types import SimpleNamespace

import pytest

from ydoc.exceptions import ReferenceNotSiblingException
from ydoc.orm.sortable import (
    Position,
    at_end,
    before_reference,
    after_reference,
    relative_to_reference,
    is_already_at_position,
    has_duplicate_orders,
    renumber,
    sort_siblings,
)


def node(id, sort_order):
    return SimpleNamespace(id=id, sort_order=sort_order)


@pytest.fixture
def siblings():
    # A=1, B=2, C=3
    return [node(3, 3.0), node(1, 1.0), node(2, 2.0)]


class TestAtEnd:
    """末尾位置测试"""

    def test_no_siblings(self):
        assert at_end([]) == 1.0

    def test_after_max(self, siblings):
        assert at_end(siblings) == 4.0

    def test_with_fractional_values(self):
        assert at_end([node(1, 0.25), node(2, 0.5)]) == 1.5


class TestBeforeReference:
    """参照节点之前测试"""

    def test_midpoint_with_predecessor(self, siblings):
        """测试与前一个节点取中点"""
        assert before_reference(siblings, 2) == 1.5

    def test_first_reference_halves(self, siblings):
        """测试参照节点是第一个时取一半"""
        assert before_reference(siblings, 1) == 0.5

    def test_first_reference_non_positive(self):
        """测试参照节点序号非正时减 1"""
        assert before_reference([node(1, 0.0), node(2, 1.0)], 1) == -1.0
        assert before_reference([node(1, -2.0)], 1) == -3.0

    def test_exclude_id(self, siblings):
        """测试排除节点后参照节点成为第一个"""
        assert before_reference(siblings, 2, exclude_id=1) == 1.0

    def test_reference_not_sibling(self, siblings):
        with pytest.raises(ReferenceNotSiblingException) as exc_info:
            before_reference(siblings, 99)
        assert "is not a sibling" in exc_info.value.message
        assert exc_info.value.reference_id == 99

    def test_excluded_reference_not_sibling(self, siblings):
        """测试被排除的节点不能作为参照"""
        with pytest.raises(ReferenceNotSiblingException):
            before_reference(siblings, 2, exclude_id=2)


class TestAfterReference:
    """参照节点之后测试"""

    def test_midpoint_with_successor(self, siblings):
        assert after_reference(siblings, 1) == 1.5
        assert after_reference(siblings, 2) == 2.5

    def test_last_reference(self, siblings):
        assert after_reference(siblings, 3) == 4.0

    def test_reference_not_sibling(self, siblings):
        with pytest.raises(ReferenceNotSiblingException):
            after_reference(siblings, 42)

    def test_relative_dispatch(self, siblings):
        """测试按 position 分派"""
        assert relative_to_reference(siblings, 2, Position.BEFORE) == 1.5
        assert relative_to_reference(siblings, 2, "after") == 2.5


class TestIsAlreadyAtPosition:
    """已在目标位置判断测试"""

    def test_already_last(self, siblings):
        assert is_already_at_position(siblings, 3, None) is True
        assert is_already_at_position(siblings, 2, None) is False

    def test_before(self, siblings):
        assert is_already_at_position(siblings, 1, 2, Position.BEFORE) is True
        assert is_already_at_position(siblings, 3, 2, Position.BEFORE) is False

    def test_after(self, siblings):
        assert is_already_at_position(siblings, 3, 2, Position.AFTER) is True
        assert is_already_at_position(siblings, 1, 2, "after") is False

    def test_unknown_nodes(self, siblings):
        assert is_already_at_position(siblings, 99, None) is False
        assert is_already_at_position(siblings, 1, 99, Position.BEFORE) is False

    def test_ties_broken_by_id(self):
        """测试序号相同时按 id 决定先后"""
        tied = [node(2, 1.0), node(1, 1.0)]
        assert [s.id for s in sort_siblings(tied)] == [1, 2]
        assert is_already_at_position(tied, 1, 2, Position.BEFORE) is True


class TestRenumber:
    """重复检测与重新编号测试"""

    def test_has_duplicate_orders(self, siblings):
        assert has_duplicate_orders(siblings) is False
        assert has_duplicate_orders(siblings + [node(4, 2.0)]) is True

    def test_renumber_keeps_order(self):
        items = [node(5, 2.0), node(3, 1.0), node(4, 1.0)]
        result = [(s.id, order) for s, order in renumber(items)]
        assert result == [(3, 1.0), (4, 2.0), (5, 3.0)]
