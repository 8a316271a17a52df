import logging
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from database.postgres.orm import DatabaseError, adapt_query, get_connection
from utils.database import row_to_model_with_cursor
from utils.errors import StoreError

logger = logging.getLogger(__name__)


class User(BaseModel):
    id: str
    username: str
    profile_picture: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def get_user_by_id(user_id: str) -> Optional[User]:
    conn = get_connection()
    cur = conn.cursor()
    try:
        cur.execute(
            adapt_query("SELECT * FROM users WHERE id = %(id)s"),
            {"id": user_id},
        )
        row = cur.fetchone()
        return row_to_model_with_cursor(row, User, cur) if row else None
    except DatabaseError as e:
        logger.error(f"Error getting user {user_id}: {e}")
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()


def create_user(
    user_id: str,
    username: str,
    profile_picture: Optional[str] = None,
) -> User:
    """Insert the user, or return the existing row if the id is already taken."""
    conn = get_connection()
    cur = conn.cursor()
    try:
        sql = """
            INSERT INTO users (id, username, profile_picture)
            VALUES (%(id)s, %(username)s, %(profile_picture)s)
            ON CONFLICT (id) DO NOTHING
            RETURNING *
        """
        cur.execute(
            adapt_query(sql),
            {"id": user_id, "username": username, "profile_picture": profile_picture},
        )
        row = cur.fetchone()
        if row is None:
            # Lost the race to a concurrent insert of the same id
            cur.execute(
                adapt_query("SELECT * FROM users WHERE id = %(id)s"),
                {"id": user_id},
            )
            row = cur.fetchone()
        conn.commit()
        return row_to_model_with_cursor(row, User, cur)
    except DatabaseError as e:
        conn.rollback()
        logger.error(f"Error creating user {user_id}: {e}")
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()


def update_profile_picture(user_id: str, profile_picture: str) -> Optional[User]:
    conn = get_connection()
    cur = conn.cursor()
    try:
        cur.execute(
            adapt_query(
                """
                UPDATE users
                SET profile_picture = %(profile_picture)s, updated_at = CURRENT_TIMESTAMP
                WHERE id = %(id)s
                RETURNING *
                """
            ),
            {"profile_picture": profile_picture, "id": user_id},
        )
        row = cur.fetchone()
        conn.commit()
        return row_to_model_with_cursor(row, User, cur) if row else None
    except DatabaseError as e:
        conn.rollback()
        logger.error(f"Error updating profile picture for user {user_id}: {e}")
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()


def list_friends(user_id: str) -> List[User]:
    """Return the user's friends in the order the friendships were established."""
    conn = get_connection()
    cur = conn.cursor()
    try:
        cur.execute(
            adapt_query(
                """
                SELECT u.* FROM user_friends uf
                JOIN users u ON u.id = uf.friend_id
                WHERE uf.user_id = %(id)s
                ORDER BY uf.id ASC
                """
            ),
            {"id": user_id},
        )
        rows = cur.fetchall()
        return [row_to_model_with_cursor(r, User, cur) for r in rows]
    except DatabaseError as e:
        logger.error(f"Error listing friends for user {user_id}: {e}")
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()


def are_friends(user_id: str, other_user_id: str) -> bool:
    conn = get_connection()
    cur = conn.cursor()
    try:
        cur.execute(
            adapt_query(
                "SELECT 1 FROM user_friends WHERE user_id = %(a)s AND friend_id = %(b)s"
            ),
            {"a": user_id, "b": other_user_id},
        )
        return cur.fetchone() is not None
    except DatabaseError as e:
        logger.error(f"Error checking friendship ({user_id},{other_user_id}): {e}")
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()
