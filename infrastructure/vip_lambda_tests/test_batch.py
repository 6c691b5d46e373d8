import pytest
from conftest import count

from vip_access.batch import batch as batch_mod
from vip_access.batch.batch import read_products, run_batch
from vip_access.store.store import (
    BLOCKED_ENTITIES, FRAUD_LOGS, ORDERS, SUBSCRIPTIONS, USERS, VIP_CREDENTIALS, StoreConfig,
)

CATALOG = (
    "name,price,billing_interval\n"
    "Course A,49.90,monthly\n"
    "Ebook,,\n"
)


@pytest.fixture()
def catalog(tmp_path):
    path = tmp_path / "products.csv"
    path.write_text(CATALOG)
    return path


def test_read_products_keeps_strings_and_blanks(catalog):
    products = read_products(catalog)
    assert products == [
        {"name": "Course A", "price": "49.90", "billing_interval": "monthly"},
        {"name": "Ebook", "price": "", "billing_interval": ""},
    ]


def test_read_products_column_order_irrelevant(tmp_path):
    path = tmp_path / "products.csv"
    path.write_text("billing_interval,name,price\nyearly,Pass,10\n")
    assert read_products(path) == [{"billing_interval": "yearly", "name": "Pass", "price": "10"}]


def test_run_batch_processes_every_pair_in_order(store, catalog, capsys):
    store.create_document(USERS, {"id": "u1", "name": "Alice", "email": "a@b.com"})
    store.create_document(USERS, {"id": "u2", "name": "Temp", "email": "t@tempmail.com"})
    store.create_document(USERS, {"id": "u3", "name": "Blocked", "email": "b@b.com"})
    store.create_document(BLOCKED_ENTITIES, {"user_id": "u3"})

    outcomes = run_batch(store, catalog)

    assert len(outcomes) == 6
    by_user = {}
    for o in outcomes:
        by_user.setdefault(o["user"]["id"], []).append(o)

    for user_id, rows in by_user.items():
        assert [r["product"]["name"] for r in rows] == ["Course A", "Ebook"]

    assert {r["result"]["status"] for r in by_user["u1"]} == {"success"}
    assert {r["result"]["status"] for r in by_user["u2"]} == {"fraud"}
    assert {r["result"]["status"] for r in by_user["u3"]} == {"fraud"}

    assert count(store, VIP_CREDENTIALS) == 2
    assert count(store, SUBSCRIPTIONS) == 2
    assert count(store, FRAUD_LOGS) == 4

    prices = sorted(o["price"] for o in store.list_documents(ORDERS))
    assert prices == [0, 49.9]

    out = capsys.readouterr().out
    assert "User Alice access to Course A: {'status': 'success'" in out
    assert len([line for line in out.splitlines() if line.startswith("User ")]) == 6


def test_run_batch_continues_after_grant_error(store, catalog, monkeypatch):
    store.create_document(USERS, {"id": "u1", "name": "Alice", "email": "a@b.com"})
    statuses = iter(["error", "success"])

    def fake_grant(store_, user, product):
        return {"status": next(statuses), "message": "x"}
    monkeypatch.setattr(batch_mod, "create_vip_access", fake_grant)

    outcomes = run_batch(store, catalog)
    assert [o["result"]["status"] for o in outcomes] == ["error", "success"]


def test_run_batch_missing_catalog_is_fatal(store, tmp_path):
    with pytest.raises(FileNotFoundError):
        run_batch(store, tmp_path / "missing.csv")


def test_run_batch_no_users(store, catalog):
    assert run_batch(store, catalog) == []


def test_main_exits_nonzero_on_fatal_error(store, tmp_path, monkeypatch):
    monkeypatch.setattr(batch_mod, "load_config", lambda: StoreConfig(
        region=store.config.region,
        table_prefix=store.config.table_prefix,
        products_csv=str(tmp_path / "missing.csv"),
    ))

    with pytest.raises(SystemExit) as exc:
        batch_mod.main()
    assert exc.value.code == 1


def test_main_runs_full_batch(store, catalog, monkeypatch, capsys):
    store.create_document(USERS, {"id": "u1", "name": "Alice", "email": "a@b.com"})
    monkeypatch.setattr(batch_mod, "load_config", lambda: StoreConfig(
        region=store.config.region,
        table_prefix=store.config.table_prefix,
        products_csv=str(catalog),
    ))

    batch_mod.main()

    assert "VIP access process completed successfully!" in capsys.readouterr().out
    assert count(store, VIP_CREDENTIALS) == 2
