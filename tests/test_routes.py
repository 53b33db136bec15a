import json
from io import BytesIO

import pytest

from openpyxl import load_workbook

from rate_manager import END_YEAR, START_YEAR


def test_index_serves_page(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.mimetype == "text/html"
    body = resp.get_data(as_text=True)
    assert "<title>Test &lt;Income&gt;</title>" in body
    assert body.count('data-year="') == END_YEAR - START_YEAR + 1


def test_any_path_serves_page(client):
    resp = client.get("/some/deep/link")
    assert resp.status_code == 200
    assert 'id="incomeChart"' in resp.get_data(as_text=True)


def test_unknown_api_path_is_404(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_api_rates(client):
    data = client.get("/api/rates").get_json()
    assert data["start_year"] == START_YEAR
    assert data["end_year"] == END_YEAR
    assert len(data["rates"]) == END_YEAR - START_YEAR + 1
    assert data["rates"][0] == {"index": 0, "year": 1980, "rate": 226.7408, "interpolated": False}


def test_api_rate_single_year(client):
    data = client.get("/api/rates/1987").get_json()
    assert data["year"] == 1987
    assert data["interpolated"] is True

    resp = client.get("/api/rates/1900")
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_api_convert_get(client):
    data = client.get("/api/convert?year=2024&man_yen=500").get_json()
    assert data["year"] == 2024
    assert data["rate"] == 151.3663
    assert data["man_yen"] == 500.0
    assert data["display"] == "$33,032"


def test_api_convert_get_invalid_amount_is_not_an_error(client):
    resp = client.get("/api/convert?year=2024&man_yen=abc")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["usd"] == 0.0
    assert data["display"] == "-"


def test_api_convert_get_bad_year(client):
    resp = client.get("/api/convert?year=1850&man_yen=500")
    assert resp.status_code == 400
    assert "1850" in resp.get_json()["error"]
    assert client.get("/api/convert?man_yen=500").status_code == 400


def test_api_convert_post(client):
    resp = client.post("/api/convert", json={"amounts": {"2024": 500, "2025": "0"}})
    assert resp.status_code == 200
    data = resp.get_json()
    assert len(data["rows"]) == END_YEAR - START_YEAR + 1
    by_year = {r["year"]: r for r in data["rows"]}
    assert by_year[2024]["display"] == "$33,032"
    assert by_year[2025]["display"] == "-"
    assert data["total_display"] == "$33,032"


def test_api_convert_post_rejects_bad_body(client):
    assert client.post("/api/convert", json={"amounts": [1, 2]}).status_code == 400
    assert client.post("/api/convert", data="not json").status_code == 400
    assert client.post("/api/convert", json={"amounts": {"3000": 1}}).status_code == 400


def test_api_export_json(client):
    data = client.get("/api/export").get_json()
    assert data["title"] == "Test <Income>"
    assert data["yen_per_man"] == 10000
    assert len(data["rates"]) == END_YEAR - START_YEAR + 1
    assert "exported_at" in data


def test_api_export_xlsx(client):
    resp = client.get("/api/export.xlsx")
    assert resp.status_code == 200
    assert "attachment" in resp.headers["Content-Disposition"]
    wb = load_workbook(BytesIO(resp.data))
    ws = wb["Rates"]
    assert ws["A1"].value == "Test <Income>"
    assert ws["A4"].value == "Year"
    assert ws["A5"].value == 1980
    assert ws["B5"].value == 226.7408
    assert ws["C11"].value == "Interpolated"  # 1986
    assert ws.max_row == 4 + END_YEAR - START_YEAR + 1


def test_static_path_serves_page(client):
    resp = client.get("/static/anything.css")
    assert resp.status_code == 200
    assert 'id="incomeChart"' in resp.get_data(as_text=True)


def test_api_convert_huge_amount_stays_valid_json(client):
    resp = client.get("/api/convert?year=2024&man_yen=1e306")
    assert resp.status_code == 200
    body = json.loads(resp.get_data(as_text=True), parse_constant=_reject_constant)
    assert body["usd"] == 0.0
    assert body["display"] == "-"

    resp = client.post("/api/convert", json={"amounts": {"2024": 1e306, "2025": 500}})
    body = json.loads(resp.get_data(as_text=True), parse_constant=_reject_constant)
    assert body["total_usd"] == pytest.approx(500 * 10000 / 148.2193)
    assert body["total_display"] == "$33,734"


def _reject_constant(name):
    raise ValueError(f"non-standard JSON constant: {name}")
