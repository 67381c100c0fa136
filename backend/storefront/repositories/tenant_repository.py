"""
Tenant Repository - Data Access Layer for Distributors and their Domains

Handles all database queries for distributors (tenants) and their custom
domains, returning domain models.
"""
from typing import List, Optional, Sequence
from decimal import Decimal

from psycopg2.extras import Json

from storefront.domain.tenant import (
    Tenant,
    Distributor,
    DistributorDomain,
    DistributorCreate,
    DistributorUpdate,
    DomainStatus,
)
from storefront.core.database import get_db_connection_dict

TENANT_COLUMNS = "d.id, d.name, d.logo_url, d.brand_color"

DISTRIBUTOR_COLUMNS = """
    id, name, email_domain, logo_url, brand_color,
    default_discount_percent, created_at, updated_at
"""

DOMAIN_COLUMNS = """
    id, distributor_id, domain, status, last_checked_at, details,
    created_at, updated_at
"""


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TenantRepository:
    """
    Repository for distributor/tenant data access
    """

    @staticmethod
    def _map_row_to_tenant(row: dict) -> Tenant:
        return Tenant(
            id=row['id'],
            name=row['name'],
            logo_url=row.get('logo_url'),
            brand_color=row.get('brand_color')
        )

    @staticmethod
    def _map_row_to_domain(row: dict) -> DistributorDomain:
        return DistributorDomain(**dict(row))

    # ------------------------------------------------------------------
    # Tenant lookups (used by TenantResolver)
    # ------------------------------------------------------------------

    def find_by_email_domains(self, domains: Sequence[str]) -> Optional[Tenant]:
        """
        Find the first distributor whose email domain is one of `domains`

        Args:
            domains: Candidate host names, already lowercased
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {TENANT_COLUMNS}
                FROM distributors d
                WHERE LOWER(d.email_domain) = ANY(%s)
                ORDER BY d.id
                LIMIT 1
            """, (list(domains),))

            row = cursor.fetchone()
            return self._map_row_to_tenant(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_by_name_fragment(self, fragment: str) -> Optional[Tenant]:
        """Find the first distributor whose name contains `fragment` (case-insensitive)"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {TENANT_COLUMNS}
                FROM distributors d
                WHERE d.name ILIKE %s
                ORDER BY d.id
                LIMIT 1
            """, (f"%{_escape_like(fragment)}%",))

            row = cursor.fetchone()
            return self._map_row_to_tenant(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_by_verified_domain(self, host: str) -> Optional[Tenant]:
        """Find the distributor owning a *verified* custom domain equal to host"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {TENANT_COLUMNS}
                FROM distributor_domains dd
                JOIN distributors d ON d.id = dd.distributor_id
                WHERE dd.domain = %s AND dd.status = %s
                ORDER BY dd.id
                LIMIT 1
            """, (host, DomainStatus.VERIFIED.value))

            row = cursor.fetchone()
            return self._map_row_to_tenant(row) if row else None

        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Distributor administration
    # ------------------------------------------------------------------

    def find_all(self) -> List[Distributor]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {DISTRIBUTOR_COLUMNS}
                FROM distributors
                ORDER BY name
            """)
            return [Distributor(**dict(row)) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, distributor_id: int, include_domains: bool = True) -> Optional[Distributor]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {DISTRIBUTOR_COLUMNS}
                FROM distributors
                WHERE id = %s
            """, (distributor_id,))

            row = cursor.fetchone()
            if not row:
                return None

            data = dict(row)
            if include_domains:
                cursor.execute(f"""
                    SELECT {DOMAIN_COLUMNS}
                    FROM distributor_domains
                    WHERE distributor_id = %s
                    ORDER BY created_at DESC
                """, (distributor_id,))
                data['domains'] = [self._map_row_to_domain(r) for r in cursor.fetchall()]

            return Distributor(**data)

        finally:
            cursor.close()
            conn.close()

    def create(self, payload: DistributorCreate) -> Distributor:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO distributors (
                    name, email_domain, logo_url, brand_color, default_discount_percent
                ) VALUES (%s, %s, %s, %s, %s)
                RETURNING {DISTRIBUTOR_COLUMNS}
            """, (
                payload.name,
                payload.email_domain,
                payload.logo_url,
                payload.brand_color,
                payload.default_discount_percent
            ))
            row = cursor.fetchone()
            conn.commit()
            return Distributor(**dict(row))

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update(self, distributor_id: int, payload: DistributorUpdate) -> Optional[Distributor]:
        """Partial update; returns None when the distributor does not exist"""
        fields = payload.model_dump(exclude_unset=True)
        if not fields:
            return self.find_by_id(distributor_id, include_domains=False)

        set_clause = ", ".join(f"{column} = %s" for column in fields)
        params = list(fields.values()) + [distributor_id]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE distributors
                SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING {DISTRIBUTOR_COLUMNS}
            """, params)
            row = cursor.fetchone()
            conn.commit()
            return Distributor(**dict(row)) if row else None

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update_default_discount(self, distributor_id: int, percent: Optional[Decimal]) -> Optional[Distributor]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE distributors
                SET default_discount_percent = %s, updated_at = NOW()
                WHERE id = %s
                RETURNING {DISTRIBUTOR_COLUMNS}
            """, (percent, distributor_id))
            row = cursor.fetchone()
            conn.commit()
            return Distributor(**dict(row)) if row else None

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Custom domains
    # ------------------------------------------------------------------

    def find_domains(self, distributor_id: int) -> List[DistributorDomain]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {DOMAIN_COLUMNS}
                FROM distributor_domains
                WHERE distributor_id = %s
                ORDER BY created_at DESC
            """, (distributor_id,))
            return [self._map_row_to_domain(r) for r in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def add_domain(self, distributor_id: int, domain: str) -> Optional[DistributorDomain]:
        """
        Register a pending domain

        Returns:
            The new record, or None when the distributor already has it
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id FROM distributor_domains
                WHERE distributor_id = %s AND domain = %s
            """, (distributor_id, domain))
            if cursor.fetchone():
                return None

            cursor.execute(f"""
                INSERT INTO distributor_domains (distributor_id, domain, status)
                VALUES (%s, %s, %s)
                RETURNING {DOMAIN_COLUMNS}
            """, (distributor_id, domain, DomainStatus.PENDING.value))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_domain(row)

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete_domain(self, distributor_id: int, domain_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM distributor_domains
                WHERE id = %s AND distributor_id = %s
            """, (domain_id, distributor_id))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update_domain_status(
        self,
        distributor_id: int,
        domain_id: int,
        status: DomainStatus,
        details: Optional[dict] = None
    ) -> Optional[DistributorDomain]:
        """Record the outcome of an external verification check"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE distributor_domains
                SET status = %s, details = %s, last_checked_at = NOW(), updated_at = NOW()
                WHERE id = %s AND distributor_id = %s
                RETURNING {DOMAIN_COLUMNS}
            """, (
                DomainStatus(status).value,
                Json(details) if details is not None else None,
                domain_id,
                distributor_id
            ))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_domain(row) if row else None

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
