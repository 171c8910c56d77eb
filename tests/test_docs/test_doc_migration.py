"""启动数据修复测试

直接写入缺少 slug / path / JRN 或 sort_order 重复的历史数据，验证 DocMigrationSweeper 各步骤
"""

import re

import pytest

from ydoc.config import DocStoreSettings
from ydoc.docs import Doc, DocStore, DocType


class TestMigrationSweeper:
    """数据修复测试"""

    @pytest.fixture(autouse=True)
    def setup_db(self, doc_session):
        self.session = doc_session()
        self.store = DocStore(self.session)

    def legacy(self, jrn, doc_type=DocType.DOCUMENT, parent_id=None, slug=None, path=None, sort_order=0.0, title=None):
        """写入一条历史数据（绕过创建流程）"""
        doc = Doc(
            jrn=jrn,
            slug=slug,
            path=path,
            doc_type=doc_type.value,
            space_id=1,
            parent_id=parent_id,
            sort_order=sort_order,
            content_metadata={"title": title} if title else None,
        )
        self.session.add(doc)
        self.session.commit()
        return doc

    def test_fills_slug_path_and_jrn(self):
        """测试补齐 slug、path 与新格式 JRN"""
        folder = self.legacy("legacy-folder", DocType.FOLDER, title="Old Folder")
        child = self.legacy("legacy-child", parent_id=folder.id, sort_order=1.0)

        report = self.store.sweeper.run()

        assert report.ok
        assert report.repaired["migrate_slugs"] == 2
        assert report.repaired["migrate_paths"] == 2
        assert report.repaired["migrate_jrns"] == 2

        folder = self.store.read_by_id(folder.id)
        child = self.store.read_by_id(child.id)
        assert re.fullmatch(r"old-folder-\d+", folder.slug)
        assert re.fullmatch(r"legacy-child-\d+", child.slug)
        assert folder.path == f"/{folder.slug}"
        assert child.path == f"{folder.path}/{child.slug}"
        assert folder.jrn == f"jrn:/global:docs:folder/{folder.slug}"
        assert child.jrn == f"jrn:/global:docs:document/{child.slug}"

    def test_same_title_gets_distinct_slugs(self):
        a = self.legacy("jrn:one", title="Same")
        b = self.legacy("jrn:two", title="Same", sort_order=1.0)

        self.store.sweeper.migrate_slugs()

        assert a.slug != b.slug

    def test_jrn_uses_existing_slug(self):
        doc = self.legacy("old-style-id", slug="kept", path="/kept")

        report = self.store.sweeper.run()

        assert report.repaired["migrate_slugs"] == 0
        assert self.store.read_by_id(doc.id).jrn == "jrn:/global:docs:document/kept"

    def test_jrn_workspace_from_settings(self):
        store = DocStore(self.session, DocStoreSettings(jrn_workspace="/acme"))
        doc = self.legacy("old-style-id", DocType.FOLDER, slug="team", path="/team")

        store.sweeper.run()

        assert self.store.read_by_id(doc.id).jrn == "jrn:/acme:docs:folder/team"

    def test_new_format_jrn_untouched(self):
        doc = self.legacy("jrn:/global:docs:document/fine", slug="fine", path="/fine")

        report = self.store.sweeper.run()

        assert report.total == 0
        assert self.store.read_by_id(doc.id).jrn == "jrn:/global:docs:document/fine"

    def test_paths_use_existing_parent_path(self):
        parent = self.legacy("jrn:p", DocType.FOLDER, slug="p", path="/p")
        child = self.legacy("jrn:c", parent_id=parent.id, slug="c")

        self.store.sweeper.run()

        assert self.store.read_by_id(child.id).path == "/p/c"

    def test_deleted_rows_keep_empty_path(self):
        doc = Doc(jrn="jrn:gone", slug="gone", doc_type="document", space_id=1, sort_order=1.0)
        self.session.add(doc)
        self.session.commit()
        self.store.soft_delete(doc.id)

        self.store.sweeper.migrate_paths()

        assert self.store.read_by_id(doc.id).path is None

    def test_cyclic_parents_do_not_hang(self):
        """测试历史数据中的父子环不会导致死循环"""
        a = self.legacy("jrn:cyc-a", DocType.FOLDER, slug="cyc-a")
        b = self.legacy("jrn:cyc-b", DocType.FOLDER, parent_id=a.id, slug="cyc-b", sort_order=1.0)
        a.parent_id = b.id
        self.session.commit()

        report = self.store.sweeper.run()

        assert report.ok
        assert self.store.read_by_id(a.id).path
        assert self.store.read_by_id(b.id).path

    def test_duplicate_sort_orders_renumbered(self):
        """测试同级重复 sort_order 按当前顺序重新编号"""
        a = self.legacy("jrn:dup-a", slug="dup-a", path="/dup-a", sort_order=5.0)
        b = self.legacy("jrn:dup-b", slug="dup-b", path="/dup-b", sort_order=5.0)
        c = self.legacy("jrn:dup-c", slug="dup-c", path="/dup-c", sort_order=3.0)

        report = self.store.sweeper.run()

        assert report.repaired["migrate_sort_orders"] == 3
        assert self.store.read_by_id(c.id).sort_order == 1.0
        assert self.store.read_by_id(a.id).sort_order == 2.0
        assert self.store.read_by_id(b.id).sort_order == 3.0

    def test_distinct_sort_orders_untouched(self):
        self.legacy("jrn:u-a", slug="u-a", path="/u-a", sort_order=1.5)
        self.legacy("jrn:u-b", slug="u-b", path="/u-b", sort_order=4.0)

        assert self.store.sweeper.run().repaired["migrate_sort_orders"] == 0

    def test_failed_pass_does_not_stop_others(self, monkeypatch):
        """测试某一步失败只记录失败，后续步骤照常执行"""
        doc = self.legacy("old-style", slug="later", path=None)

        def boom():
            raise RuntimeError("boom")

        monkeypatch.setattr(self.store.sweeper, "migrate_paths", boom)

        report = self.store.sweeper.run()

        assert not report.ok
        assert report.failures == {"migrate_paths": "boom"}
        assert report.repaired["migrate_jrns"] == 1
        assert self.store.read_by_id(doc.id).jrn == "jrn:/global:docs:document/later"

    def test_startup_migrations_disabled(self):
        store = DocStore(self.session, DocStoreSettings(run_migrations_on_startup=False))
        assert store.run_startup_migrations() is None

    def test_startup_migrations_enabled(self):
        self.legacy("legacy-x", title="X")

        report = self.store.run_startup_migrations()

        assert report.ok
        assert report.total > 0
