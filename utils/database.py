from typing import Any, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


def row_to_dict(row: tuple, cursor) -> dict[str, Any]:
    """
    Map a database row tuple to a dict keyed by the cursor's column names.

    Works for both psycopg2 and sqlite3 cursors, which expose the column name
    as the first item of each ``cursor.description`` entry.
    """
    column_names = [desc[0] for desc in cursor.description]
    return dict(zip(column_names, row))


def row_to_model_with_cursor(row: tuple, model_class: type[T], cursor) -> T:
    """
    Convert a database row tuple to a Pydantic BaseModel instance using cursor description.

    Args:
        row: Database row tuple
        model_class: Pydantic BaseModel class
        cursor: Database cursor with executed query

    Returns:
        Instance of the specified model class
    """
    return model_class(**row_to_dict(row, cursor))
