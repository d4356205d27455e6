"""Open Heritage 3D - project browser.

Thin read-only view over ``GET /api/projects``. Sorting is done here rather
than by the grid headers: text compares case-insensitively, dates and reuse
scores compare as dates and numbers.
"""

import os
import sys

import requests
import streamlit as st

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from streamlit_app.frames import COLUMNS, filter_frame, sort_frame, to_frame  # noqa: E402

API_URL = os.getenv("HERITAGE_API_URL", "http://localhost:8000").rstrip("/")


@st.cache_data(ttl=300)
def _load_projects() -> list[dict]:
    r = requests.get(f"{API_URL}/api/projects", timeout=15)
    r.raise_for_status()
    return r.json()


st.set_page_config(page_title="Open Heritage 3D", layout="wide")
st.title("Open Heritage 3D Projects")

try:
    projects = _load_projects()
except requests.RequestException as exc:
    st.error(f"Could not load projects from {API_URL}: {exc}")
    st.stop()

if not projects:
    st.info("No projects found. Run `python -m heritage.run scrape` first.")
    st.stop()

query = st.text_input("Filter by name or country", "")
c1, c2 = st.columns([3, 1])
sort_by = c1.selectbox("Sort by", list(COLUMNS), format_func=COLUMNS.get)
descending = c2.checkbox("Descending", value=False)

frame = sort_frame(filter_frame(to_frame(projects), query), sort_by, descending)

st.caption(f"{len(frame)} of {len(projects)} projects")
st.dataframe(
    frame,
    hide_index=True,
    use_container_width=True,
    column_config={
        "project_name": st.column_config.TextColumn(COLUMNS["project_name"]),
        "country": st.column_config.TextColumn(COLUMNS["country"]),
        "status": st.column_config.TextColumn(COLUMNS["status"]),
        "project_link": st.column_config.LinkColumn(COLUMNS["project_link"]),
        "reuse_score": st.column_config.NumberColumn(COLUMNS["reuse_score"]),
        "publication_date": st.column_config.DateColumn(COLUMNS["publication_date"]),
    },
)
