from heritage.doctor import format_report, run_doctor
from heritage.store import upsert_project, upsert_project_details
from heritage.types import DataType, Download, ProjectDetail, ProjectStub


def test_empty_database_report(sqlite_engine):
    report = run_doctor(sqlite_engine)
    assert report.ok is False
    assert report.sample is None
    text = format_report(report)
    assert "No detailed project found with license info" in text
    assert "Total projects: 0" in text
    assert "run `scrape` first" in text


def test_report_with_sample(monkeypatch, sqlite_engine):
    monkeypatch.setenv("SCRAPER_SKIP_DATACITE", "1")
    upsert_project(
        sqlite_engine,
        ProjectStub(name="Colosseum", country="Italy", doi="10.1/c", status="Complete", collectors="CyArk"),
    )
    upsert_project_details(
        sqlite_engine,
        ProjectDetail(
            doi="10.1/c",
            license="CC BY 4.0",
            center_lat=41.89,
            center_lng=12.49,
            data_types=[DataType("LiDAR", "2GB", "P40", "TLS")],
            downloads=[Download("f0", "a.zip"), Download("f1", "b.zip")],
        ),
    )

    report = run_doctor(sqlite_engine)
    text = format_report(report)
    assert report.ok is True
    assert "Project: Colosseum" in text
    assert "Center Coordinates: 41.89, 12.49" in text
    assert "Data Types: LiDAR (2GB)" in text
    assert "Download Files: 2 file(s) available" in text
    assert "Has Point Cloud: No" in text
    assert "Projects with license info: 1" in text
    assert any("SCRAPER_SKIP_DATACITE" in w for w in report.warnings)
