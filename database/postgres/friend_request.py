import logging
import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from database.postgres.orm import DatabaseError, IntegrityError, adapt_query, get_connection
from utils.database import row_to_dict, row_to_model_with_cursor
from utils.errors import StoreError, ValidationError

logger = logging.getLogger(__name__)

FriendRequestStatus = Literal["pending", "accepted", "declined"]


class FriendRequest(BaseModel):
    id: str
    requester_id: str
    recipient_id: str
    status: FriendRequestStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PendingFriendRequest(FriendRequest):
    requester_username: str
    requester_profile_picture: Optional[str] = None


def get_friend_request(request_id: str) -> Optional[FriendRequest]:
    conn = get_connection()
    cur = conn.cursor()
    try:
        cur.execute(
            adapt_query("SELECT * FROM friend_requests WHERE id = %(id)s"),
            {"id": request_id},
        )
        row = cur.fetchone()
        return row_to_model_with_cursor(row, FriendRequest, cur) if row else None
    except DatabaseError as e:
        logger.error(f"Error getting friend request {request_id}: {e}")
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()


def get_pending_between(user_id: str, other_user_id: str) -> Optional[FriendRequest]:
    """Find a pending request between the two users, whichever of them sent it."""
    conn = get_connection()
    cur = conn.cursor()
    try:
        cur.execute(
            adapt_query(
                """
                SELECT * FROM friend_requests
                WHERE status = 'pending'
                  AND ((requester_id = %(a)s AND recipient_id = %(b)s)
                    OR (requester_id = %(b)s AND recipient_id = %(a)s))
                """
            ),
            {"a": user_id, "b": other_user_id},
        )
        row = cur.fetchone()
        return row_to_model_with_cursor(row, FriendRequest, cur) if row else None
    except DatabaseError as e:
        logger.error(f"Error finding pending request ({user_id},{other_user_id}): {e}")
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()


def create_friend_request(requester_id: str, recipient_id: str) -> FriendRequest:
    conn = get_connection()
    cur = conn.cursor()
    try:
        sql = """
            INSERT INTO friend_requests (id, requester_id, recipient_id, status)
            VALUES (%(id)s, %(requester_id)s, %(recipient_id)s, 'pending')
            RETURNING *
        """
        cur.execute(
            adapt_query(sql),
            {
                "id": str(uuid.uuid4()),
                "requester_id": requester_id,
                "recipient_id": recipient_id,
            },
        )
        row = cur.fetchone()
        conn.commit()
        return row_to_model_with_cursor(row, FriendRequest, cur)
    except IntegrityError as e:
        conn.rollback()
        logger.warning(
            f"Pending friend request already exists ({requester_id}, {recipient_id}): {e}"
        )
        raise ValidationError("Friend request already pending between these users") from e
    except DatabaseError as e:
        conn.rollback()
        logger.error(
            f"Error creating friend request ({requester_id} -> {recipient_id}): {e}"
        )
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()


def list_pending_for_recipient(recipient_id: str) -> List[PendingFriendRequest]:
    conn = get_connection()
    cur = conn.cursor()
    try:
        cur.execute(
            adapt_query(
                """
                SELECT fr.*,
                       u.username AS requester_username,
                       u.profile_picture AS requester_profile_picture
                FROM friend_requests fr
                JOIN users u ON u.id = fr.requester_id
                WHERE fr.recipient_id = %(recipient_id)s AND fr.status = 'pending'
                ORDER BY fr.created_at ASC
                """
            ),
            {"recipient_id": recipient_id},
        )
        rows = cur.fetchall()
        return [row_to_model_with_cursor(r, PendingFriendRequest, cur) for r in rows]
    except DatabaseError as e:
        logger.error(f"Error listing pending requests for {recipient_id}: {e}")
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()


def accept_friend_request(request_id: str) -> Optional[FriendRequest]:
    """
    Mark the request accepted and add each party to the other's friend set.

    The status update and both friend rows are written in one transaction.
    The inserts ignore existing rows, so accepting an already accepted request
    leaves the friend sets unchanged, and re-running it after a partial
    failure restores the symmetric friendship.

    Returns None when the request does not exist or has been declined.
    """
    conn = get_connection()
    cur = conn.cursor()
    try:
        cur.execute(
            adapt_query(
                """
                UPDATE friend_requests
                SET status = 'accepted', updated_at = CURRENT_TIMESTAMP
                WHERE id = %(id)s AND status <> 'declined'
                RETURNING *
                """
            ),
            {"id": request_id},
        )
        row = cur.fetchone()
        if not row:
            conn.rollback()
            return None
        request = FriendRequest(**row_to_dict(row, cur))

        cur.execute(
            adapt_query(
                """
                INSERT INTO user_friends (user_id, friend_id)
                VALUES (%(requester)s, %(recipient)s), (%(recipient)s, %(requester)s)
                ON CONFLICT (user_id, friend_id) DO NOTHING
                """
            ),
            {"requester": request.requester_id, "recipient": request.recipient_id},
        )
        conn.commit()
        return request
    except DatabaseError as e:
        conn.rollback()
        logger.error(f"Error accepting friend request {request_id}: {e}")
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()


def decline_friend_request(request_id: str) -> Optional[FriendRequest]:
    """Move a pending request to declined. Returns None if it was not pending."""
    conn = get_connection()
    cur = conn.cursor()
    try:
        cur.execute(
            adapt_query(
                """
                UPDATE friend_requests
                SET status = 'declined', updated_at = CURRENT_TIMESTAMP
                WHERE id = %(id)s AND status = 'pending'
                RETURNING *
                """
            ),
            {"id": request_id},
        )
        row = cur.fetchone()
        conn.commit()
        return row_to_model_with_cursor(row, FriendRequest, cur) if row else None
    except DatabaseError as e:
        conn.rollback()
        logger.error(f"Error declining friend request {request_id}: {e}")
        raise StoreError() from e
    finally:
        cur.close()
        conn.close()
