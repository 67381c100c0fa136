"""
Product Repository - Data Access Layer for Products

Handles all database queries for products and returns Product domain models.
"""
from typing import List, Optional, Tuple, Dict, Iterable
from storefront.domain.product import Product, ProductCreate, ProductUpdate
from storefront.core.database import get_db_connection_dict

PRODUCT_SELECT = """
    SELECT
        p.id, p.sku, p.name, p.description, p.category,
        p.price, p.stock, p.image, p.created_at, p.updated_at,
        r.rating, COALESCE(r.review_count, 0) as review_count
    FROM products p
    LEFT JOIN (
        SELECT product_id, ROUND(AVG(rating)::numeric, 2) as rating, COUNT(*) as review_count
        FROM reviews
        GROUP BY product_id
    ) r ON r.product_id = p.id
"""


class ProductRepository:
    """
    Repository for Product data access

    All SQL queries for products are centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        """Map a database row to the Product domain model"""
        return Product(
            id=row['id'],
            sku=row.get('sku'),
            name=row['name'],
            description=row.get('description'),
            category=row.get('category'),
            price=row['price'],
            stock=row.get('stock') or 0,
            image=row.get('image'),
            rating=row.get('rating'),
            review_count=row.get('review_count') or 0,
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )

    def find_by_id(self, product_id: int) -> Optional[Product]:
        """
        Find product by ID

        Args:
            product_id: Internal product ID

        Returns:
            Product or None if not found
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {PRODUCT_SELECT}
                WHERE p.id = %s
            """, (product_id,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_product(row)

        finally:
            cursor.close()
            conn.close()

    def find_by_ids(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Products keyed by id; missing ids are simply absent"""
        ids = list(set(product_ids))
        if not ids:
            return {}

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {PRODUCT_SELECT}
                WHERE p.id = ANY(%s)
            """, (ids,))

            return {row['id']: self._map_row_to_product(row) for row in cursor.fetchall()}

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        """
        Find products with filters

        Args:
            category: Filter by category (case-insensitive)
            search: Search in name or SKU
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            Tuple of (list of products, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if category:
                conditions.append("LOWER(p.category) = LOWER(%s)")
                params.append(category)

            if search:
                conditions.append("(p.name ILIKE %s OR p.sku ILIKE %s)")
                search_term = f"%{search}%"
                params.extend([search_term, search_term])

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM products p
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                {PRODUCT_SELECT}
                WHERE {where_clause}
                ORDER BY p.created_at DESC, p.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            products = [self._map_row_to_product(row) for row in cursor.fetchall()]
            return products, total

        finally:
            cursor.close()
            conn.close()

    def create(self, payload: ProductCreate) -> Product:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO products (sku, name, description, category, price, stock, image)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING id, sku, name, description, category, price, stock, image,
                          created_at, updated_at
            """, (
                payload.sku,
                payload.name,
                payload.description,
                payload.category,
                payload.price,
                payload.stock,
                payload.image
            ))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_product(row)

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update(self, product_id: int, payload: ProductUpdate) -> Optional[Product]:
        """Partial update; returns None when the product does not exist"""
        fields = payload.model_dump(exclude_unset=True)
        if not fields:
            return self.find_by_id(product_id)

        set_clause = ", ".join(f"{column} = %s" for column in fields)
        params = list(fields.values()) + [product_id]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE products
                SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING id, sku, name, description, category, price, stock, image,
                          created_at, updated_at
            """, params)
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_product(row) if row else None

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete(self, product_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM products WHERE id = %s", (product_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
