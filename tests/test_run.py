import pytest
import requests

import heritage.harvest as harvest
import heritage.run as run
from heritage.scrapers.listing import ListingStructureError
from heritage.types import ScrapeResult


def test_format_summary_lists_all_counts():
    out = run.format_summary(
        ScrapeResult(projects_found=4, new_projects=3, updated_projects=1, new_details=2, details_missing=1),
        database="sqlite:///heritage.db",
    )
    assert "Total projects found: 4" in out
    assert "New projects added: 3" in out
    assert "Projects updated: 1" in out
    assert "New project details added: 2" in out
    assert "Project details updated: 0" in out
    assert "Projects without details: 1" in out
    assert "Write failures" not in out
    assert out.endswith("Database location: sqlite:///heritage.db")


def test_scrape_exits_non_zero_on_structural_failure(monkeypatch, sqlite_engine):
    def broken(engine, **kwargs):
        raise ListingStructureError('Table with id="demo" not found')

    monkeypatch.setattr(harvest, "run", broken)
    args = run.parse_args(["scrape"])
    assert run.cmd_scrape(sqlite_engine, args) == 1


def test_scrape_exits_non_zero_when_listing_unreachable(monkeypatch, sqlite_engine):
    def broken(engine, **kwargs):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(harvest, "run", broken)
    assert run.cmd_scrape(sqlite_engine, run.parse_args(["scrape"])) == 1


def test_scrape_prints_summary(monkeypatch, sqlite_engine, capsys):
    seen = {}

    def fake(engine, **kwargs):
        seen.update(kwargs)
        return ScrapeResult(projects_found=2, new_projects=2)

    monkeypatch.setattr(harvest, "run", fake)
    args = run.parse_args(["scrape", "--dry-run", "--max-concurrency", "2", "--skip-datacite"])
    assert run.cmd_scrape(sqlite_engine, args) == 0
    assert "Total projects found: 2" in capsys.readouterr().out
    assert seen["dry_run"] is True
    assert seen["skip_datacite"] is True
    assert seen["workers"] == 2


def test_main_init_creates_schema(monkeypatch, tmp_path):
    for key in ("DATABASE_URL", "DATABASE_PRIVATE_URL", "POSTGRES_URL", "POSTGRESQL_URL"):
        monkeypatch.delenv(key, raising=False)
    db_file = tmp_path / "heritage.db"
    monkeypatch.setenv("HERITAGE_DB_PATH", str(db_file))

    assert run.main(["init"]) == 0
    assert db_file.exists()


@pytest.mark.parametrize("value", ["0", "-3", "many"])
def test_max_concurrency_flag_rejects_bad_values(value):
    with pytest.raises(SystemExit) as exc:
        run.parse_args(["scrape", "--max-concurrency", value])
    assert exc.value.code == 2


def test_check_exit_code_follows_report(sqlite_engine, capsys):
    from heritage.store import upsert_project
    from heritage.types import ProjectStub

    assert run.cmd_check(sqlite_engine) == 1
    upsert_project(
        sqlite_engine,
        ProjectStub(name="Colosseum", country="Italy", doi="10.1/c", status="Complete", collectors="CyArk"),
    )
    assert run.cmd_check(sqlite_engine) == 0
    assert "Total projects: 1" in capsys.readouterr().out
