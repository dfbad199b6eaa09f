"""Tests for the deal-desk CLI."""

import json
import sys
from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

from deal_desk.cli import app
from deal_desk.underwriting import calculate_max_loan_for_dscr

runner = CliRunner()

DEALS_YAML = """\
deals:
  - property_name: Harbor Condo
    state: FL
    property_type: CONDO
    year_built: 1968
    purchase_price: 420000
    monthly_rent: 2600
    hoa_fees: 450
    loan_amount: 378000
    interest_rate: 7.25
  - property_name: Maple Duplex
    state: TX
    property_type: DUPLEX
    year_built: 2015
    purchase_price: 250000
    after_repair_value: 340000
    rehab_costs: 15000
    monthly_rent: 3200
    loan_amount: 187500
    interest_rate: 6.0
"""


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    # The CLI callback rebinds loguru to the runner's (now closed) stderr
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def deals_file(tmp_path: Path) -> Path:
    path = tmp_path / "deals.yaml"
    path.write_text(DEALS_YAML, encoding="utf-8")
    return path


def test_underwrite_json() -> None:
    result = runner.invoke(
        app,
        ["underwrite", "--price", "500000", "--rent", "4000", "--loan", "375000", "--rate", "7.5", "--json"],
    )
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["noi"] == pytest.approx(28260)
    assert data["is_bank_ready"] is False
    assert data["expense_breakdown"]["property_taxes"] == pytest.approx(6000)


def test_underwrite_table() -> None:
    result = runner.invoke(app, ["underwrite", "--price", "200000", "--rent", "1800"])
    assert result.exit_code == 0, result.output
    assert "NOI" in result.stdout
    assert "not bank-ready" in result.stdout


def test_underwrite_requires_price() -> None:
    result = runner.invoke(app, ["underwrite", "--rent", "1800"])
    assert result.exit_code != 0


def test_underwrite_bad_config(tmp_path: Path) -> None:
    bad = tmp_path / "bad.yaml"
    bad.write_text("underwriting:\n  vacancy_rate: 1.5\n", encoding="utf-8")
    result = runner.invoke(app, ["underwrite", "--price", "1", "--rent", "1", "--config", str(bad)])
    assert result.exit_code == 1
    assert "Config error" in result.stdout


def test_missing_config_file(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["underwrite", "--price", "1", "--rent", "1", "--config", str(tmp_path / "missing.yaml")]
    )
    assert result.exit_code == 1


def test_score_json() -> None:
    result = runner.invoke(
        app,
        ["score", "--dscr", "2.0", "--cap-rate", "10", "--coc", "15", "--price", "300000",
         "--type", "SINGLE_FAMILY", "--json"],
    )
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["breakdown"]["dscr_score"] == 100
    assert data["breakdown"]["cap_rate_score"] == 95
    assert data["grade"] in {"A", "B", "C", "D", "F"}


def test_score_table() -> None:
    result = runner.invoke(
        app,
        ["score", "--dscr", "1.75", "--cap-rate", "12", "--coc", "12", "--price", "300000",
         "--type", "TOWNHOUSE"],
    )
    assert result.exit_code == 0, result.output
    assert "85 (A)" in result.stdout
    assert "Excellent investment opportunity" in result.stdout
    assert "+ Strong debt service coverage" in result.stdout


def test_rent_json_seeded() -> None:
    args = ["rent", "--zip", "90210", "--beds", "3", "--baths", "2", "--seed", "42", "--json"]
    first = runner.invoke(app, args)
    second = runner.invoke(app, args)
    assert first.exit_code == 0, first.output
    data = json.loads(first.stdout)
    assert data["estimated_rent"] == 3462
    assert data["rent_range"] == {"low": 3112, "high": 3812}
    assert data["comparables"] == json.loads(second.stdout)["comparables"]


def test_rent_table_with_amenities() -> None:
    result = runner.invoke(
        app, ["rent", "--zip", "75201", "--beds", "2", "--baths", "1", "-a", "garage", "-a", "pool"]
    )
    assert result.exit_code == 0, result.output
    assert "Amenities" in result.stdout
    assert "Estimated rent" in result.stdout


def test_analyze_ranks_and_exports(deals_file: Path, tmp_path: Path) -> None:
    csv_path = tmp_path / "out.csv"
    json_path = tmp_path / "out.json"
    result = runner.invoke(
        app, ["analyze", str(deals_file), "--csv", str(csv_path), "--json-out", str(json_path)]
    )
    assert result.exit_code == 0, result.output
    assert "Ranked Deals" in result.stdout
    assert csv_path.exists()
    exported = json.loads(json_path.read_text(encoding="utf-8"))
    assert [r["deal"]["property_name"] for r in exported["results"]] == ["Maple Duplex", "Harbor Condo"]


def test_analyze_json(deals_file: Path) -> None:
    result = runner.invoke(app, ["analyze", str(deals_file), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data[0]["deal"]["property_name"] == "Maple Duplex"


def test_analyze_bad_deal_file(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("- purchase_price: 1\n  asking_price: 2\n", encoding="utf-8")
    result = runner.invoke(app, ["analyze", str(path)])
    assert result.exit_code == 1
    assert "asking_price" in result.stdout


def test_compare(tmp_path: Path) -> None:
    weak = tmp_path / "weak.json"
    strong = tmp_path / "strong.json"
    weak.write_text(
        json.dumps({"property_name": "Harbor Condo", "property_type": "CONDO", "year_built": 1968,
                    "purchase_price": 420000, "monthly_rent": 2600, "hoa_fees": 450,
                    "loan_amount": 378000, "interest_rate": 7.25}),
        encoding="utf-8",
    )
    strong.write_text(
        json.dumps({"property_name": "Maple Duplex", "property_type": "DUPLEX", "year_built": 2015,
                    "purchase_price": 250000, "after_repair_value": 340000, "rehab_costs": 15000,
                    "monthly_rent": 3200, "loan_amount": 187500, "interest_rate": 6.0}),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["compare", str(weak), str(strong), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["winner"] == 2
    assert data["scores"][1] > data["scores"][0]
    assert data["reasons"][0].startswith("Deal 2 has higher overall score")


def test_max_loan() -> None:
    result = runner.invoke(app, ["max-loan", "--noi", "30000", "--rate", "7"])
    assert result.exit_code == 0, result.output
    expected = calculate_max_loan_for_dscr(1.25, 30000, 7, 30)
    assert f"${expected:,.0f}" in result.stdout


def test_break_even() -> None:
    result = runner.invoke(
        app, ["break-even", "--opex", "12000", "--debt-service", "12000", "--vacancy", "0"]
    )
    assert result.exit_code == 0, result.output
    assert "$2,000/mo" in result.stdout


def test_break_even_json_full_vacancy() -> None:
    result = runner.invoke(app, ["break-even", "--opex", "12000", "--vacancy", "1", "--json"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {"break_even_rent": 0.0}


RECORDS_YAML = """\
- id: harbor
  status: rejected
  property_name: Harbor Condo
  city: Miami
  state: FL
  property_type: CONDO
  purchase_price: 420000
  monthly_rent: 2600
  hoa_fees: 450
  loan_amount: 378000
  interest_rate: 7.25
- id: maple
  status: analyzing
  property_name: Maple Duplex
  city: Austin
  state: TX
  property_type: DUPLEX
  purchase_price: 250000
  monthly_rent: 3200
  loan_amount: 187500
  interest_rate: 6.0
- id: oak
  status: closed
  property_name: Oak Fourplex
  city: Columbus
  state: OH
  property_type: FOURPLEX
  purchase_price: 400000
  monthly_rent: 4800
  loan_amount: 300000
  interest_rate: 6.5
"""


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    path = tmp_path / "records.yaml"
    path.write_text(RECORDS_YAML, encoding="utf-8")
    return path


def _analyzed_names(records_file: Path, *options: str) -> list[str]:
    result = runner.invoke(app, ["analyze", str(records_file), "--json", *options])
    assert result.exit_code == 0, result.output
    return [row["deal"]["property_name"] for row in json.loads(result.stdout)]


class TestAnalyzeFilters:
    def test_no_filters_keeps_all(self, records_file: Path) -> None:
        assert sorted(_analyzed_names(records_file)) == ["Harbor Condo", "Maple Duplex", "Oak Fourplex"]

    def test_state(self, records_file: Path) -> None:
        assert _analyzed_names(records_file, "--state", "tx") == ["Maple Duplex"]

    def test_price_bounds(self, records_file: Path) -> None:
        assert _analyzed_names(records_file, "--max-price", "300000") == ["Maple Duplex"]
        assert sorted(_analyzed_names(records_file, "--min-price", "400000")) == ["Harbor Condo", "Oak Fourplex"]

    def test_status_repeatable(self, records_file: Path) -> None:
        names = _analyzed_names(records_file, "--status", "closed", "--status", "REJECTED")
        assert sorted(names) == ["Harbor Condo", "Oak Fourplex"]

    def test_type_and_search(self, records_file: Path) -> None:
        assert _analyzed_names(records_file, "--type", "condo") == ["Harbor Condo"]
        assert _analyzed_names(records_file, "--search", "austin") == ["Maple Duplex"]

    def test_min_dscr_drops_weak_deal(self, records_file: Path) -> None:
        assert "Harbor Condo" not in _analyzed_names(records_file, "--min-dscr", "1.25")

    def test_no_match_table(self, records_file: Path) -> None:
        result = runner.invoke(app, ["analyze", str(records_file), "--state", "NY"])
        assert result.exit_code == 0, result.output
        assert "Maple Duplex" not in result.stdout
        assert "No deals to display" in result.stdout


def test_analyze_non_numeric_field(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("- purchase_price: 250k\n  monthly_rent: 2000\n", encoding="utf-8")
    result = runner.invoke(app, ["analyze", str(path)])
    assert result.exit_code == 1
    assert "Could not load deals" in result.stdout
    assert "purchase_price" in result.stdout


def test_blank_config_value(tmp_path: Path) -> None:
    cfg = tmp_path / "blank.yaml"
    cfg.write_text("underwriting:\n  vacancy_rate:\n", encoding="utf-8")
    result = runner.invoke(app, ["underwrite", "--price", "1", "--rent", "1", "--config", str(cfg)])
    assert result.exit_code == 1
    assert "Config error" in result.stdout
    assert "vacancy_rate" in result.stdout


def test_portfolio_json(records_file: Path) -> None:
    result = runner.invoke(app, ["portfolio", str(records_file), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["total_deals"] == 3
    assert data["active_deals"] == 1
    assert data["deals_by_status"] == {"REJECTED": 1, "ANALYZING": 1, "CLOSED": 1}
    assert data["total_portfolio_value"] == pytest.approx(1070000)
    assert data["average_dscr"] > 1.25


def test_portfolio_table(records_file: Path) -> None:
    result = runner.invoke(app, ["portfolio", str(records_file)])
    assert result.exit_code == 0, result.output
    assert "Active deals" in result.stdout
    assert "ANALYZING" in result.stdout
    assert "$1,070,000" in result.stdout


def test_portfolio_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["portfolio", str(tmp_path / "none.yaml")])
    assert result.exit_code == 1
    assert "Could not load deals" in result.stdout
