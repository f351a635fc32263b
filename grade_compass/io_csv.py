import logging
from typing import Iterable, List, Optional

import pandas as pd

from grade_compass.config import DEFAULT_MAX_SCORE
from grade_compass.models import GradeComponent, new_id

logger = logging.getLogger(__name__)

# Column labels used by the data editor in the app
EDITOR_COLUMNS = ["ID", "Name", "Weight", "Score", "Max score"]

_ALIASES = {
    "component": "name",
    "assessment": "name",
    "weight (%)": "weight",
    "weight_%": "weight",
    "max score": "max_score",
    "maxscore": "max_score",
    "max": "max_score",
    "out of": "max_score",
}

# ------------------------
# CSV helpers (UI-side)
# ------------------------

def _normalise_cols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    renames = {c: _ALIASES[c] for c in df.columns if c in _ALIASES and _ALIASES[c] not in df.columns}
    if renames:
        df = df.rename(columns=renames)
    return df


def read_csv_upload(uploaded_file) -> pd.DataFrame:
    try:
        df = pd.read_csv(uploaded_file)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise ValueError(f"Could not read CSV: {e}") from e
    return _normalise_cols(df)


def validate_components_csv(df: pd.DataFrame) -> pd.DataFrame:
    """
    Check an uploaded frame has the columns we need and reshape it into
    editor layout. Score and max score are optional.
    """
    required = {"name", "weight"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(
            f"Missing columns: {sorted(missing)}. Expected: Name, Weight, Score (optional), Max score (optional)."
        )

    out = pd.DataFrame(
        {
            "ID": [None] * len(df),
            "Name": df["name"].astype("string").str.strip(),
            "Weight": pd.to_numeric(df["weight"], errors="coerce"),
            "Score": pd.to_numeric(df["score"], errors="coerce") if "score" in df.columns else float("nan"),
            "Max score": (
                pd.to_numeric(df["max_score"], errors="coerce")
                if "max_score" in df.columns
                else DEFAULT_MAX_SCORE
            ),
        }
    )
    return out.reset_index(drop=True)


def _blank(value) -> bool:
    return value is None or bool(pd.isna(value))


def carry_over_ids(df: pd.DataFrame, components: Iterable[GradeComponent]) -> pd.DataFrame:
    """
    Give uploaded rows the id of the existing component with the same name,
    so re-saving an upload updates components instead of replacing them.
    """
    ids_by_name = {}
    for c in components:
        ids_by_name.setdefault(c.name.strip().lower(), c.id)

    df = df.copy()
    used = set()
    ids = []
    for component_id, name in zip(df["ID"], df["Name"]):
        if _blank(component_id) and not _blank(name):
            match = ids_by_name.get(str(name).strip().lower())
            if match is not None and match not in used:
                component_id = match
        if not _blank(component_id):
            used.add(component_id)
        ids.append(None if _blank(component_id) else component_id)
    df["ID"] = pd.Series(ids, index=df.index, dtype=object)
    return df


def parse_components(df: pd.DataFrame) -> List[GradeComponent]:
    """
    Turn an editor-layout frame into components. Rows without a name or a
    weight are dropped; a blank score means not graded yet.
    """
    rows = []
    for idx, row in df.iterrows():
        name = row.get("Name")
        weight = row.get("Weight")
        if _blank(name) or not str(name).strip() or _blank(weight):
            logger.debug("Skipping incomplete row %s", idx)
            continue

        score = row.get("Score")
        max_score = row.get("Max score")
        component_id = row.get("ID")

        score_value: Optional[float] = None if _blank(score) else float(score)
        rows.append(
            GradeComponent(
                id=new_id() if _blank(component_id) or not str(component_id) else str(component_id),
                name=str(name).strip(),
                weight=float(weight),
                score=score_value,
                max_score=DEFAULT_MAX_SCORE if _blank(max_score) else float(max_score),
                is_completed=score_value is not None,
            )
        )
    return rows


def components_to_frame(components: Iterable[GradeComponent]) -> pd.DataFrame:
    records = [
        {
            "ID": c.id,
            "Name": c.name,
            "Weight": c.weight,
            "Score": c.score if c.score is not None else float("nan"),
            "Max score": c.max_score,
        }
        for c in components
    ]
    df = pd.DataFrame(records, columns=EDITOR_COLUMNS)
    return df.astype({"Weight": float, "Score": float, "Max score": float})


def components_to_csv(components: Iterable[GradeComponent]) -> str:
    df = components_to_frame(components).drop(columns=["ID"])
    return df.to_csv(index=False)


def weight_breakdown(components: Iterable[GradeComponent]) -> pd.DataFrame:
    """
    Per-component contribution for the progress chart:
    earned points, points lost on graded work and still-open weight.
    """
    records = []
    for c in components:
        if c.counts_towards_grade and c.max_score:
            earned = c.score / c.max_score * c.weight
            records.append({"Component": c.name, "Earned": earned, "Lost": c.weight - earned, "Remaining": 0.0})
        else:
            records.append({"Component": c.name, "Earned": 0.0, "Lost": 0.0, "Remaining": c.weight})
    return pd.DataFrame(records, columns=["Component", "Earned", "Lost", "Remaining"]).set_index("Component")
