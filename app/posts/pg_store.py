from __future__ import annotations

from typing import Any

import structlog
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import ConnectionPool

from app.core.config import settings
from app.core.retry import retryable
from app.posts.models import PostPage, PostQuery, PostRecord, TermRecord
from app.posts.store import PostStore

logger = structlog.get_logger(__name__)

_POST_COLUMNS = """
    id, post_type, status, title, content, excerpt, slug, author, parent,
    menu_order, password, link, post_date, post_modified, meta
"""

_ORDER_COLUMNS = {
    "date": "post_date",
    "id": "id",
    "modified": "post_modified",
    "slug": "slug",
    "title": "LOWER(title)",
    "menu_order": "menu_order",
}


class PostgresPostStore(PostStore):
    def __init__(
        self,
        dsn: str | None = None,
        pool: ConnectionPool | None = None,
    ) -> None:
        self.dsn = dsn or settings.postgres_dsn
        if pool is None:
            max_size = settings.postgres_pool_size + settings.postgres_pool_max_overflow
            pool = ConnectionPool(
                conninfo=self.dsn,
                min_size=1,
                max_size=max_size,
                kwargs={"row_factory": dict_row},
                check=ConnectionPool.check_connection,
            )
        self.pool = pool
        if settings.db_auto_create:
            self._ensure_tables()

    def close(self) -> None:
        self.pool.close()

    @retryable("post_store")
    def ping(self) -> None:
        with self._get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                cur.fetchone()

    @retryable("post_store")
    def get_post(self, post_id: int) -> PostRecord | None:
        with self._get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {_POST_COLUMNS} FROM posts WHERE id = %(post_id)s",
                    {"post_id": post_id},
                )
                row = cur.fetchone()
        return self._row_to_post(row) if row else None

    @retryable("post_store")
    def get_term(self, taxonomy: str, term_id: int) -> TermRecord | None:
        with self._get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id, taxonomy, name, slug, link
                    FROM terms
                    WHERE taxonomy = %(taxonomy)s AND id = %(term_id)s
                    """,
                    {"taxonomy": taxonomy, "term_id": term_id},
                )
                row = cur.fetchone()
        return TermRecord(**row) if row else None

    @retryable("post_store")
    def list_posts(self, query: PostQuery) -> PostPage:
        where_clauses = ["post_type = %(post_type)s"]
        params: dict[str, Any] = {
            "post_type": query.post_type,
            "limit": query.per_page,
            "offset": query.start,
        }

        if query.statuses:
            where_clauses.append("status = ANY(%(statuses)s)")
            params["statuses"] = query.statuses

        if query.include:
            where_clauses.append("id = ANY(%(include)s)")
            params["include"] = query.include

        if query.exclude:
            where_clauses.append("NOT (id = ANY(%(exclude)s))")
            params["exclude"] = query.exclude

        if query.slugs:
            where_clauses.append("slug = ANY(%(slugs)s)")
            params["slugs"] = query.slugs

        if query.parent:
            where_clauses.append("parent = ANY(%(parent)s)")
            params["parent"] = query.parent

        if query.search:
            where_clauses.append(
                "(title ILIKE %(search)s OR content ILIKE %(search)s OR excerpt ILIKE %(search)s)"
            )
            params["search"] = f"%{query.search}%"

        where_sql = " AND ".join(where_clauses)
        direction = "ASC" if query.order == "asc" else "DESC"
        if query.orderby == "include" and query.include:
            order_sql = "array_position(%(include)s::int[], id)"
        else:
            column = _ORDER_COLUMNS.get(query.orderby, "post_date")
            order_sql = f"{column} {direction}, id {direction}"

        with self._get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT COUNT(*) AS total FROM posts WHERE {where_sql}", params)
                total = int(cur.fetchone()["total"])
                cur.execute(
                    f"""
                    SELECT {_POST_COLUMNS}
                    FROM posts
                    WHERE {where_sql}
                    ORDER BY {order_sql}
                    LIMIT %(limit)s OFFSET %(offset)s
                    """,
                    params,
                )
                rows = cur.fetchall()

        return PostPage(items=[self._row_to_post(row) for row in rows], total=total)

    def upsert_post(self, post: PostRecord) -> None:
        with self._get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO posts (
                        id, post_type, status, title, content, excerpt, slug, author,
                        parent, menu_order, password, link, post_date, post_modified, meta
                    )
                    VALUES (
                        %(id)s, %(post_type)s, %(status)s, %(title)s, %(content)s,
                        %(excerpt)s, %(slug)s, %(author)s, %(parent)s, %(menu_order)s,
                        %(password)s, %(link)s, %(date)s, %(modified)s, %(meta)s
                    )
                    ON CONFLICT (id)
                    DO UPDATE SET
                        post_type = EXCLUDED.post_type,
                        status = EXCLUDED.status,
                        title = EXCLUDED.title,
                        content = EXCLUDED.content,
                        excerpt = EXCLUDED.excerpt,
                        slug = EXCLUDED.slug,
                        author = EXCLUDED.author,
                        parent = EXCLUDED.parent,
                        menu_order = EXCLUDED.menu_order,
                        password = EXCLUDED.password,
                        link = EXCLUDED.link,
                        post_date = EXCLUDED.post_date,
                        post_modified = EXCLUDED.post_modified,
                        meta = EXCLUDED.meta
                    """,
                    {**post.model_dump(exclude={"meta"}), "meta": Json(post.meta)},
                )
            conn.commit()

    def upsert_term(self, term: TermRecord) -> None:
        with self._get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO terms (id, taxonomy, name, slug, link)
                    VALUES (%(id)s, %(taxonomy)s, %(name)s, %(slug)s, %(link)s)
                    ON CONFLICT (taxonomy, id)
                    DO UPDATE SET
                        name = EXCLUDED.name,
                        slug = EXCLUDED.slug,
                        link = EXCLUDED.link
                    """,
                    term.model_dump(),
                )
            conn.commit()

    def _get_conn(self):
        return self.pool.connection()

    def _ensure_tables(self) -> None:
        with self._get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS posts (
                        id INTEGER PRIMARY KEY,
                        post_type TEXT NOT NULL DEFAULT 'post',
                        status TEXT NOT NULL DEFAULT 'publish',
                        title TEXT NOT NULL DEFAULT '',
                        content TEXT NOT NULL DEFAULT '',
                        excerpt TEXT NOT NULL DEFAULT '',
                        slug TEXT NOT NULL DEFAULT '',
                        author INTEGER NOT NULL DEFAULT 0,
                        parent INTEGER NOT NULL DEFAULT 0,
                        menu_order INTEGER NOT NULL DEFAULT 0,
                        password TEXT NOT NULL DEFAULT '',
                        link TEXT NOT NULL DEFAULT '',
                        post_date TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                        post_modified TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                        meta JSONB NOT NULL DEFAULT '{}'::jsonb
                    )
                    """
                )
                cur.execute(
                    """
                    CREATE INDEX IF NOT EXISTS posts_type_status_idx
                    ON posts (post_type, status)
                    """
                )
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS terms (
                        id INTEGER NOT NULL,
                        taxonomy TEXT NOT NULL,
                        name TEXT NOT NULL,
                        slug TEXT NOT NULL DEFAULT '',
                        link TEXT NOT NULL DEFAULT '',
                        PRIMARY KEY (taxonomy, id)
                    )
                    """
                )
            conn.commit()

    @staticmethod
    def _row_to_post(row: dict[str, Any]) -> PostRecord:
        return PostRecord(
            id=row["id"],
            post_type=row["post_type"],
            status=row["status"],
            title=row["title"],
            content=row["content"],
            excerpt=row["excerpt"],
            slug=row["slug"],
            author=row["author"],
            parent=row["parent"],
            menu_order=row["menu_order"],
            password=row["password"],
            link=row["link"],
            date=row["post_date"],
            modified=row["post_modified"],
            meta=row["meta"] or {},
        )
