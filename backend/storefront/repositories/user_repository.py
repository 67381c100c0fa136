"""
User Repository - Data Access Layer for Users

Lists users with the distributor their email domain belongs to and applies
admin role/name changes.
"""
from typing import List, Optional, Tuple

from storefront.domain.user import User, UserUpdate
from storefront.core.database import get_db_connection_dict

USER_SELECT = """
    SELECT
        u.id, u.email, u.name, u.role, u.created_at,
        d.id as distributor_id, d.name as distributor_name
    FROM users u
    LEFT JOIN distributors d
        ON LOWER(d.email_domain) = LOWER(SPLIT_PART(u.email, '@', 2))
"""


class UserRepository:
    """
    Repository for User data access
    """

    def find_all(
        self,
        role: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[User], int]:
        """
        Find users, newest first

        Returns:
            Tuple of (list of users, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if role:
                conditions.append("u.role = %s")
                params.append(role)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM users u
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                {USER_SELECT}
                WHERE {where_clause}
                ORDER BY u.created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return [User(**dict(row)) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, user_id: str) -> Optional[User]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {USER_SELECT}
                WHERE u.id = %s
            """, (user_id,))

            row = cursor.fetchone()
            return User(**dict(row)) if row else None

        finally:
            cursor.close()
            conn.close()

    def update(self, user_id: str, payload: UserUpdate) -> Optional[User]:
        """Partial update; returns None when the user does not exist"""
        fields = payload.model_dump(exclude_unset=True, exclude_none=True)
        if not fields:
            return self.find_by_id(user_id)

        set_clause = ", ".join(f"{column} = %s" for column in fields)
        params = list(fields.values()) + [user_id]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE users
                SET {set_clause}
                WHERE id = %s
                RETURNING id
            """, params)
            row = cursor.fetchone()
            conn.commit()

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(user_id) if row else None
