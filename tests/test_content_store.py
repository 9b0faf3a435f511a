"""Tests for the directory content store."""

import json
from datetime import datetime

from conftest import item_record, write_items
from pagemark.content import DirectoryContentStore


class TestDirectoryContentStore:
    """Tests for DirectoryContentStore."""

    def test_get_item(self, tmp_path):
        """Test an item file becomes a ContentItem snapshot."""
        write_items(
            tmp_path,
            [
                item_record(
                    43,
                    "page",
                    title="Example Page",
                    slug="example-page",
                    date="2024-01-01 12:00:00",
                    modified="2024-01-02 08:00:00",
                    excerpt="Summary",
                    categories=["News", "Updates"],
                    permalink="https://example.com/example-page/",
                    template="landing",
                )
            ],
        )

        item = DirectoryContentStore(tmp_path).get_item(43)

        assert item.type == "page"
        assert item.title == "Example Page"
        assert item.raw_content_html == "<p>Body of item 43</p>"
        assert item.created_at == datetime(2024, 1, 1, 12, 0, 0)
        assert item.modified_at == datetime(2024, 1, 2, 8, 0, 0)
        assert item.categories == ("News", "Updates")
        assert item.status == "publish"
        assert item.template == "landing"
        assert item.filename == "page-example-page-43.md"

    def test_modified_defaults_to_date(self, tmp_path):
        """Test items without a modified date."""
        write_items(tmp_path, [item_record(1)])
        item = DirectoryContentStore(tmp_path).get_item(1)
        assert item.modified_at == item.created_at

    def test_missing_item(self, tmp_path):
        """Test unknown ids."""
        assert DirectoryContentStore(tmp_path).get_item(1) is None

    def test_missing_directory(self, tmp_path):
        """Test a missing content directory is an empty store."""
        store = DirectoryContentStore(tmp_path / "nope")
        assert store.query_item_ids(["post"], ["publish"]) == []

    def test_yaml_and_lists(self, tmp_path):
        """Test YAML files and files holding several items."""
        (tmp_path / "pages.yaml").write_text(
            "- {id: 1, type: page, title: One, date: 2024-01-01 10:00:00}\n"
            "- {id: 2, type: page, title: Two, date: 2024-01-02 10:00:00}\n",
            encoding="utf-8",
        )
        store = DirectoryContentStore(tmp_path)
        assert store.query_item_ids(["page"], ["publish"]) == [2, 1]
        assert store.get_item(1).title == "One"

    def test_query_filters_and_order(self, tmp_path):
        """Test type/status filters, newest-first order and limit."""
        write_items(
            tmp_path,
            [
                item_record(1),
                item_record(2, status="draft"),
                item_record(3),
                item_record(4, "page"),
                item_record(5),
            ],
        )
        store = DirectoryContentStore(tmp_path)

        assert store.query_item_ids(["post"], ["publish"]) == [5, 3, 1]
        assert store.query_item_ids(["post"], ["publish", "draft"], limit=2) == [5, 3]
        assert store.query_item_ids(["post", "page"], ["publish"]) == [5, 4, 3, 1]

    def test_invalid_files_skipped(self, tmp_path, caplog):
        """Test broken files and invalid entries are logged and skipped."""
        write_items(tmp_path, [item_record(1)])
        (tmp_path / "broken.json").write_text("{", encoding="utf-8")
        (tmp_path / "invalid.json").write_text(json.dumps({"id": "x"}), encoding="utf-8")

        store = DirectoryContentStore(tmp_path)

        assert store.query_item_ids(["post"], ["publish"]) == [1]
        assert "broken.json" in caplog.text
        assert "invalid.json" in caplog.text

    def test_duplicate_ids_keep_first(self, tmp_path):
        """Test the first file wins on duplicate ids."""
        (tmp_path / "a.json").write_text(json.dumps(item_record(1, title="First")), encoding="utf-8")
        (tmp_path / "b.json").write_text(json.dumps(item_record(1, title="Second")), encoding="utf-8")

        assert DirectoryContentStore(tmp_path).get_item(1).title == "First"

    def test_reload(self, tmp_path):
        """Test reload picks up new files."""
        store = DirectoryContentStore(tmp_path)
        assert store.get_item(1) is None

        write_items(tmp_path, [item_record(1)])
        assert store.get_item(1) is None
        store.reload()
        assert store.get_item(1) is not None

    def test_layout_provider(self, tmp_path):
        """Test modules and templates are served to the page-builder adapter."""
        write_items(
            tmp_path,
            [
                item_record(
                    1,
                    template="default",
                    modules={"right-sidebar": [{"id": 7, "type": "mod-text", "html": "<p>Aside</p>"}]},
                )
            ],
        )
        store = DirectoryContentStore(tmp_path)

        (module,) = store.get_modules(1)["right-sidebar"]
        assert store.installed() is True
        assert (module.id, module.type, module.hidden) == (7, "mod-text", False)
        assert store.render_module(module) == "<p>Aside</p>"
        assert store.get_template(1) == "default"
        assert store.get_modules(2) == {}
        assert store.get_template(2) is None
