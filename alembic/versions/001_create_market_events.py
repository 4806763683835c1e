"""001: create market_events table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE market_events (
            id              BIGSERIAL       PRIMARY KEY,
            seq             BIGINT          NOT NULL,
            event_type      VARCHAR(30)     NOT NULL,
            market_id       BIGINT,
            actor           VARCHAR(128)    NOT NULL,
            payload         JSON            NOT NULL,
            emitted_at      TIMESTAMPTZ     NOT NULL,
            indexed_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_market_event_type CHECK (
                event_type IN (
                    'MARKET_CREATED',
                    'SET_MINTED',
                    'SWAP_EXECUTED',
                    'PAIRS_REDEEMED',
                    'MARKET_RESOLVED',
                    'WINNINGS_REDEEMED',
                    'FEE_RECIPIENT_UPDATED'
                )
            )
        );
    """)
    op.execute("CREATE INDEX idx_market_events_market ON market_events (market_id, seq);")
    op.execute("COMMENT ON TABLE market_events IS 'Engine event index — Append-Only, observability only';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS market_events CASCADE;")
