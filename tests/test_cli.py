from __future__ import annotations

import json

from checkout_engine.cli import main

from conftest import CATALOG_ROWS, CUSTOMER_ROWS


def _write_fixtures(tmp_path):
    catalog = tmp_path / "catalog.json"
    catalog.write_text(json.dumps(CATALOG_ROWS), encoding="utf-8")
    customers = tmp_path / "customers.json"
    customers.write_text(json.dumps(CUSTOMER_ROWS), encoding="utf-8")
    return catalog, customers


def test_replay_rapid_script(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    catalog, _ = _write_fixtures(tmp_path)
    script = tmp_path / "sale.keys"
    script.write_text("# two hammers, cash\ntype:2*HAM001\n\nPageDown\nF12\n", encoding="utf-8")
    output = tmp_path / "out.json"

    code = main([str(script), "--catalog", str(catalog), "--output", str(output)])

    assert code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert [step["input"] for step in payload["steps"]] == ["type:2*HAM001", "PageDown", "F12"]
    assert len(payload["invoices"]) == 1
    invoice = payload["invoices"][0]
    assert invoice["invoice_number"].startswith("QC-")
    assert invoice["total"] == "3000.00"
    assert payload["state"]["step"] == "products"


def test_replay_reports_errors_and_stdout(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    catalog, customers = _write_fixtures(tmp_path)
    script = tmp_path / "wizard.keys"
    script.write_text("PageDown\nTab\nw\n", encoding="utf-8")

    code = main(
        [str(script), "--catalog", str(catalog), "--customers", str(customers), "--profile", "wizard"]
    )

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["steps"][0]["error"] == "NO_CUSTOMER"
    assert payload["steps"][2]["command"] == "walk_in"
    assert payload["state"]["step"] == "products"
    assert "error" in payload["effects"]
    assert payload["invoices"] == []
