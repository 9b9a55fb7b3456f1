import pytest

from config.settings import settings
from run.explain_question import main


@pytest.fixture(autouse=True)
def sample_metadata(monkeypatch):
    monkeypatch.setattr(settings, "metadata_path", None)


def test_prints_plan_and_sql(capsys):
    assert main(["freight cost of shipped orders", "--limit", "3"]) == 0

    output = capsys.readouterr().out
    assert "shipped orders" in output
    assert "SELECT SUM(orders.freight) AS freight_cost" in output
    assert "WHERE orders.shipped_date IS NOT NULL\nLIMIT 3" in output


def test_group_by_passed_through(capsys):
    assert main(["total revenue per customer", "--group-by", "customers.company_name"]) == 0
    assert "GROUP BY customers.company_name" in capsys.readouterr().out


def test_unmatched_question_fails(capsys):
    assert main(["what is the weather like"]) == 1
    assert "No business concepts or metrics match" in capsys.readouterr().out


def test_metadata_file_option(tmp_path, capsys):
    path = tmp_path / "semantic.json"
    path.write_text(
        '{"tables": [{"tableName": "visits"}], '
        '"metrics": [{"name": "visit count", "calculation": "COUNT(*)", "dependencies": [{"table": "visits"}]}]}',
        encoding="utf-8",
    )

    assert main(["visit count", "--metadata", str(path)]) == 0
    assert "SELECT COUNT(*) AS visit_count\nFROM visits" in capsys.readouterr().out
