import json

from sqlalchemy import text

from heritage.store import (
    detail_params,
    dump_json_list,
    get_stats,
    list_projects,
    sample_project,
    upsert_project,
    upsert_project_details,
)
from heritage.types import DataType, Entity, LatLng, ProjectDetail, ProjectStub


def _stub(doi="10.1/a", name="Site A", **kw):
    base = dict(name=name, country="USA", doi=doi, status="Complete", collectors="C")
    base.update(kw)
    return ProjectStub(**base)


def test_upsert_project_reports_new_then_update(sqlite_engine):
    assert upsert_project(sqlite_engine, _stub()) is True
    assert upsert_project(sqlite_engine, _stub(status="Archived")) is False

    with sqlite_engine.begin() as conn:
        rows = conn.execute(text("SELECT doi, status FROM heritage_projects")).all()
    assert rows == [("10.1/a", "Archived")]


def test_empty_collections_are_stored_as_null():
    assert dump_json_list(None) is None
    assert dump_json_list([]) is None
    params = detail_params(ProjectDetail(doi="10.1/a", contributors=None, data_types=None))
    assert params["contributors_json"] is None
    assert params["data_types_json"] is None
    assert params["datacite_json"] is None


def test_detail_nested_values_serialize_at_boundary(sqlite_engine):
    detail = ProjectDetail(
        doi="10.1/a",
        bbox=[LatLng(1.0, 2.0)],
        data_types=[DataType("LiDAR", "2GB", "X", "TLS")],
        contributors=[Entity("Alice", "https://a.org"), Entity("Bob")],
        site_authority=[Entity("Ministry")],
        datacite={"data": {"id": "10.1/a"}},
    )
    assert upsert_project_details(sqlite_engine, detail) is True
    assert upsert_project_details(sqlite_engine, detail) is False

    with sqlite_engine.begin() as conn:
        row = conn.execute(text("SELECT * FROM project_details")).mappings().one()
    assert json.loads(row["bbox_json"]) == [{"lat": 1.0, "lng": 2.0}]
    assert json.loads(row["data_types_json"]) == [
        {"type": "LiDAR", "size": "2GB", "device_name": "X", "device_type": "TLS"}
    ]
    assert json.loads(row["contributors_json"]) == [
        {"name": "Alice", "link": "https://a.org"},
        {"name": "Bob", "link": None},
    ]
    assert json.loads(row["site_authority"]) == [{"name": "Ministry", "link": None}]
    assert json.loads(row["datacite_json"]) == {"data": {"id": "10.1/a"}}
    assert row["funders_json"] is None


def test_details_may_land_without_a_stub(sqlite_engine):
    assert upsert_project_details(sqlite_engine, ProjectDetail(doi="10.9/orphan")) is True


def test_list_projects_orders_by_name_and_coerces_nulls(sqlite_engine):
    upsert_project(sqlite_engine, _stub(doi="10.1/b", name="Zeta", project_link="https://z"))
    upsert_project(sqlite_engine, _stub(doi="10.1/a", name="Alpha"))
    upsert_project_details(
        sqlite_engine, ProjectDetail(doi="10.1/b", reuse_score="4", publication_date="2020")
    )

    assert list_projects(sqlite_engine) == [
        {
            "project_name": "Alpha",
            "country": "USA",
            "status": "Complete",
            "project_link": "",
            "reuse_score": "",
            "publication_date": "",
        },
        {
            "project_name": "Zeta",
            "country": "USA",
            "status": "Complete",
            "project_link": "https://z",
            "reuse_score": "4",
            "publication_date": "2020",
        },
    ]


def test_stats_and_sample(sqlite_engine):
    upsert_project(sqlite_engine, _stub(doi="10.1/a"))
    upsert_project(sqlite_engine, _stub(doi="10.1/b", name="Other"))
    upsert_project_details(
        sqlite_engine,
        ProjectDetail(
            doi="10.1/a",
            license="CC0",
            point_cloud_iframe="https://viewer",
            site_description="<p>abc</p>",
            contributors=[Entity("Alice")],
        ),
    )

    assert get_stats(sqlite_engine) == {
        "total_projects": 2,
        "projects_with_details": 1,
        "projects_with_license": 1,
        "projects_with_pointcloud": 1,
        "projects_with_datacite": 0,
    }
    sample = sample_project(sqlite_engine)
    assert sample["doi"] == "10.1/a"
    assert sample["contributors"] == [{"name": "Alice", "link": None}]
    assert sample["data_types"] == []
    assert sample["has_datacite"] is False
    assert sample["description_length"] == len("<p>abc</p>")


def test_sample_none_when_no_license(sqlite_engine):
    upsert_project(sqlite_engine, _stub())
    assert sample_project(sqlite_engine) is None
