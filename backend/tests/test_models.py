from mindy.db.base import Base
from mindy.db import models  # noqa: F401  ensure models are loaded


def test_metadata_contains_core_tables() -> None:
    table_names = set(Base.metadata.tables.keys())

    assert {"users", "routines", "chat_analyses", "activity_log"}.issubset(table_names)


def test_routines_are_unique_per_user_and_day() -> None:
    routines = Base.metadata.tables["routines"]
    unique_columns = [
        tuple(column.name for column in constraint.columns)
        for constraint in routines.constraints
        if constraint.__class__.__name__ == "UniqueConstraint"
    ]

    assert ("user_id", "start_date") in unique_columns


def test_chat_analyses_are_unique_per_user_and_day() -> None:
    analyses = Base.metadata.tables["chat_analyses"]
    unique_columns = [
        tuple(column.name for column in constraint.columns)
        for constraint in analyses.constraints
        if constraint.__class__.__name__ == "UniqueConstraint"
    ]

    assert ("user_id", "analysis_date") in unique_columns
