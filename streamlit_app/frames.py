"""Frame helpers for the project browser, kept free of Streamlit calls."""

import pandas as pd

COLUMNS = {
    "project_name": "Project",
    "country": "Country",
    "status": "Status",
    "project_link": "Link",
    "reuse_score": "Reuse Score",
    "publication_date": "Published",
}

TEXT_COLUMNS = ("project_name", "country", "status", "project_link")


def to_frame(rows: list[dict]) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=list(COLUMNS))
    df["reuse_score"] = pd.to_numeric(df["reuse_score"], errors="coerce")
    df["publication_date"] = pd.to_datetime(df["publication_date"], errors="coerce")
    return df


def filter_frame(df: pd.DataFrame, query: str) -> pd.DataFrame:
    if not query:
        return df
    mask = df["project_name"].str.contains(query, case=False, regex=False) | df[
        "country"
    ].str.contains(query, case=False, regex=False)
    return df[mask]


def sort_frame(df: pd.DataFrame, column: str, descending: bool = False) -> pd.DataFrame:
    # Text sorts ignore case; dates and scores sort by value with blanks last
    key = (lambda s: s.fillna("").str.lower()) if column in TEXT_COLUMNS else None
    return df.sort_values(
        column, ascending=not descending, key=key, na_position="last", kind="stable"
    )
