import logging
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from database.postgres.orm import DatabaseError, adapt_query, get_connection
from utils.database import row_to_model_with_cursor
from utils.errors import StoreError

logger = logging.getLogger(__name__)


class Message(BaseModel):
    id: int
    sender_id: str
    receiver_id: str
    content: Optional[str] = None
    media: Optional[str] = None
    created_at: datetime


class ConversationMessage(Message):
    sender_username: Optional[str] = None
    sender_profile_picture: Optional[str] = None
    receiver_username: Optional[str] = None
    receiver_profile_picture: Optional[str] = None


def create_message(
    sender_id: str,
    receiver_id: str,
    content: Optional[str],
    media: Optional[str],
) -> Message:
    conn = get_connection()
    cur = conn.cursor()
    try:
        sql = """
            INSERT INTO messages (sender_id, receiver_id, content, media)
            VALUES (%(sender_id)s, %(receiver_id)s, %(content)s, %(media)s)
            RETURNING *
        """
        cur.execute(
            adapt_query(sql),
            {
                "sender_id": sender_id,
                "receiver_id": receiver_id,
                "content": content,
                "media": media,
            },
        )
        row = cur.fetchone()
        conn.commit()
        return row_to_model_with_cursor(row, Message, cur)
    except DatabaseError as e:
        conn.rollback()
        logger.error(f"Error creating message ({sender_id} -> {receiver_id}): {e}")
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()


def list_conversation(user_id: str, other_user_id: str) -> List[ConversationMessage]:
    """Messages exchanged in either direction between the two users, oldest first."""
    conn = get_connection()
    cur = conn.cursor()
    try:
        cur.execute(
            adapt_query(
                """
                SELECT m.*,
                       s.username AS sender_username,
                       s.profile_picture AS sender_profile_picture,
                       r.username AS receiver_username,
                       r.profile_picture AS receiver_profile_picture
                FROM messages m
                LEFT JOIN users s ON s.id = m.sender_id
                LEFT JOIN users r ON r.id = m.receiver_id
                WHERE (m.sender_id = %(a)s AND m.receiver_id = %(b)s)
                   OR (m.sender_id = %(b)s AND m.receiver_id = %(a)s)
                ORDER BY m.created_at ASC, m.id ASC
                """
            ),
            {"a": user_id, "b": other_user_id},
        )
        rows = cur.fetchall()
        return [row_to_model_with_cursor(r, ConversationMessage, cur) for r in rows]
    except DatabaseError as e:
        logger.error(f"Error listing conversation ({user_id},{other_user_id}): {e}")
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()
