"""Create the append-only price ledger, current_prices view and menu snapshots."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

from menu_audit.infrastructure.database.models.base import DEFAULT_DB_SCHEMA

# Revision identifiers, used by Alembic.
revision = "20260101_0001_audit_trail"
down_revision = None
branch_labels = None
depends_on = None


def _qualified(name: str) -> str:
    schema = DEFAULT_DB_SCHEMA
    return f'"{schema}".{name}' if schema else name


def upgrade() -> None:
    schema = DEFAULT_DB_SCHEMA

    op.create_table(
        "price_ledger",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=False),
            primary_key=True,
            nullable=False,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column(
            "ledger_seq",
            sa.BigInteger(),
            sa.Identity(always=True),
            nullable=False,
        ),
        # No foreign key: entries must survive product deletion.
        sa.Column("product_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="TRY"),
        sa.Column("change_reason", sa.Text(), nullable=True),
        sa.Column("changed_by", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint("price >= 0", name="ck_price_ledger_price_non_negative"),
        sa.UniqueConstraint("ledger_seq", name="uq_price_ledger_ledger_seq"),
        schema=schema,
    )
    op.create_index(
        "ix_price_ledger_product_created",
        "price_ledger",
        ["product_id", "created_at"],
        schema=schema,
    )
    op.create_index("ix_price_ledger_created_at", "price_ledger", ["created_at"], schema=schema)

    op.execute(
        f"""
        CREATE VIEW {_qualified("current_prices")} AS
        SELECT DISTINCT ON (product_id)
            product_id,
            price,
            currency,
            change_reason,
            changed_by,
            created_at AS effective_from
        FROM {_qualified("price_ledger")}
        ORDER BY product_id, created_at DESC, ledger_seq DESC
        """
    )

    op.create_table(
        "menu_snapshots",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=False),
            primary_key=True,
            nullable=False,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("organization_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("snapshot_data", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("hash", sa.String(length=64), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("published_by", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint(
            "organization_id",
            "version",
            name="uq_menu_snapshots_org_version",
        ),
        sa.CheckConstraint("version >= 1", name="ck_menu_snapshots_version_positive"),
        schema=schema,
    )
    op.create_index(
        "ix_menu_snapshots_org_version",
        "menu_snapshots",
        ["organization_id", "version"],
        schema=schema,
    )
    op.create_index("ix_menu_snapshots_hash", "menu_snapshots", ["hash"], schema=schema)

    op.execute(
        f"""
        CREATE OR REPLACE FUNCTION {_qualified("prevent_append_only_mutation")}()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'table % is append-only: % is not allowed', TG_TABLE_NAME, TG_OP
                USING ERRCODE = 'P0001';
        END;
        $$ LANGUAGE plpgsql
        """
    )
    for table in ("price_ledger", "menu_snapshots"):
        op.execute(
            f"""
            CREATE TRIGGER {table}_append_only
            BEFORE UPDATE OR DELETE ON {_qualified(table)}
            FOR EACH ROW EXECUTE FUNCTION {_qualified("prevent_append_only_mutation")}()
            """
        )


def downgrade() -> None:
    schema = DEFAULT_DB_SCHEMA
    for table in ("menu_snapshots", "price_ledger"):
        op.execute(f"DROP TRIGGER IF EXISTS {table}_append_only ON {_qualified(table)}")
    op.execute(f"DROP FUNCTION IF EXISTS {_qualified('prevent_append_only_mutation')}()")

    op.drop_index("ix_menu_snapshots_hash", table_name="menu_snapshots", schema=schema)
    op.drop_index("ix_menu_snapshots_org_version", table_name="menu_snapshots", schema=schema)
    op.drop_table("menu_snapshots", schema=schema)

    op.execute(f"DROP VIEW IF EXISTS {_qualified('current_prices')}")
    op.drop_index("ix_price_ledger_created_at", table_name="price_ledger", schema=schema)
    op.drop_index("ix_price_ledger_product_created", table_name="price_ledger", schema=schema)
    op.drop_table("price_ledger", schema=schema)
