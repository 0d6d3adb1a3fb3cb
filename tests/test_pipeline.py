"""End-to-end: engine -> normalize -> price filter -> classify -> JSON export."""

import asyncio
import json

import pytest

from storefront_harvester.config import HarvestConfig
from storefront_harvester.engines import pool_engine
from storefront_harvester.export.json_exporter import JSONExporter, batch_filename
from storefront_harvester.pipeline import load_exported_products, reclassify, run_harvest
from storefront_harvester.taxonomy import Taxonomy
from conftest import FakeRenderer, FakeResponse, FakeSession

SHOP = "https://gear.example/products.json"


def _product(pid, title, price):
    return {"id": pid, "title": title, "vendor": "Gear Co", "variants": [{"price": price, "available": True}]}


@pytest.fixture
def session(monkeypatch):
    fake = FakeSession({
        f"{SHOP}?page=1&limit=3": FakeResponse(200, {"products": [
            _product(1, "Travel Backpack", "80.00"),
            _product(2, "Trail Laptop Sleeve", "45.00"),
            _product(3, "Sticker", "2.00"),
        ]}),
        f"{SHOP}?page=2&limit=3": FakeResponse(200, {"products": [
            _product(4, "Mystery Box", "30.00"),
        ]}),
    })
    monkeypatch.setattr(pool_engine, "create_session", lambda: fake)
    return fake


@pytest.fixture
def config():
    return HarvestConfig(
        endpoints=[SHOP],
        page_size=3,
        inter_page_delay=0,
        max_workers=1,
        minimum_price=25,
        cache_path="",
        render_fallback=False,
        batch_size=1,
    )


def test_run_harvest(session, config, memory_cache):
    result = asyncio.run(run_harvest(config, cache=memory_cache, renderer=FakeRenderer()))

    assert [p.id for p in result.per_endpoint[SHOP]] == [1, 2, 3, 4]
    assert [p.id for p in result.filtered] == [1, 2, 4]
    assert {name: [p.id for p in items] for name, items in result.collections.items()} == {
        "accessories": [1],
        "electronics": [2],
        "uncategorized": [4],
    }
    summary = result.summary
    assert summary["total_products_fetched"] == 4
    assert summary["total_products_after_filter"] == 3
    assert summary["products_filtered_out"] == 1
    assert summary["minimum_price_threshold"] == 25
    assert summary["vendors"] == 1
    assert summary["failed_endpoints"] == []
    assert summary["endpoints"] == [SHOP]


def test_custom_taxonomy(session, config, memory_cache):
    taxonomy = Taxonomy.from_dict({"mystery": {"keywords": ["mystery"], "priority": 1}})
    result = asyncio.run(run_harvest(config, cache=memory_cache, taxonomy=taxonomy, renderer=FakeRenderer()))
    assert [p.id for p in result.collections["mystery"]] == [4]
    assert [p.id for p in result.collections["uncategorized"]] == [1, 2]


def test_json_export_layout(session, config, memory_cache, tmp_path):
    result = asyncio.run(run_harvest(config, cache=memory_cache, renderer=FakeRenderer()))
    result.collections["accessories"].append(result.collections["electronics"][0])

    JSONExporter().export(result, str(tmp_path), batch_size=config.batch_size)

    per_endpoint = json.loads((tmp_path / "products_gear_example.json").read_text())
    assert [p["id"] for p in per_endpoint] == [1, 2, 3, 4]
    assert json.loads((tmp_path / "accessories" / "products.json").read_text())[0]["id"] == 1
    assert json.loads((tmp_path / "accessories" / "products_2.json").read_text())[0]["id"] == 2
    summary = json.loads((tmp_path / "summary.json").read_text())
    assert summary["total_products_after_filter"] == 3


def test_batch_filename():
    assert batch_filename(0) == "products.json"
    assert batch_filename(1) == "products_2.json"
    assert batch_filename(4) == "products_5.json"


class TestReclassify:
    def test_exported_files_are_reclassified(self, session, config, memory_cache, tmp_path):
        result = asyncio.run(run_harvest(config, cache=memory_cache, renderer=FakeRenderer()))
        JSONExporter().export(result, str(tmp_path), batch_size=10)

        taxonomy = Taxonomy.from_dict({"mystery": {"keywords": ["mystery"], "priority": 1}})
        again = reclassify(str(tmp_path), config, taxonomy)

        assert {name: [p.id for p in items] for name, items in again.collections.items()} == {
            "uncategorized": [1, 2],
            "mystery": [4],
        }
        assert again.per_endpoint == {}
        assert again.summary["total_products_fetched"] == 4
        assert again.summary["endpoints"] == ["products_gear_example"]
        assert again.filtered[0].price == 80.0

    def test_category_directories_are_not_read(self, tmp_path):
        (tmp_path / "products_a.json").write_text(json.dumps([{"id": 1, "title": "Backpack"}]))
        (tmp_path / "accessories").mkdir()
        (tmp_path / "accessories" / "products_2.json").write_text(json.dumps([{"id": 2}]))
        (tmp_path / "products_bad.json").write_text(json.dumps({"not": "a list"}))

        loaded = load_exported_products(str(tmp_path))

        assert list(loaded) == ["products_a"]
        assert [p.title for p in loaded["products_a"]] == ["Backpack"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_exported_products(str(tmp_path / "absent"))


def test_export_removes_stale_batches(session, config, memory_cache, tmp_path):
    stale = tmp_path / "accessories" / "products_7.json"
    stale.parent.mkdir()
    stale.write_text("[]")

    result = asyncio.run(run_harvest(config, cache=memory_cache, renderer=FakeRenderer()))
    JSONExporter().export(result, str(tmp_path), batch_size=1)

    assert not stale.exists()
    assert (tmp_path / "accessories" / "products.json").exists()
