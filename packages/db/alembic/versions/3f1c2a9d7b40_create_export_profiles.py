# This project was developed with assistance from AI tools.
"""create field_mapping_profiles and audit_events

Revision ID: 3f1c2a9d7b40
Revises:
Create Date: 2026-10-12 09:41:07.214388

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '3f1c2a9d7b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'field_mapping_profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('org_id', sa.String(length=255), nullable=False),
        sa.Column('profile_name', sa.String(length=255), nullable=False),
        sa.Column(
            'platform',
            sa.Enum(
                'MISMO_34', 'ENCOMPASS', 'LENDINGPAD', 'ARIVE', 'LENDINGWISE', 'CUSTOM',
                name='export_platform',
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column('schema_version', sa.String(length=20), nullable=False),
        sa.Column('extension_namespace', sa.String(length=10), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('core_field_mapping', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('extension_field_mapping', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('validation_rules', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_field_mapping_profiles_org_id'), 'field_mapping_profiles', ['org_id'], unique=False,
    )
    op.create_index(
        op.f('ix_field_mapping_profiles_is_default'), 'field_mapping_profiles', ['is_default'], unique=False,
    )

    op.create_table(
        'audit_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('prev_hash', sa.String(length=64), nullable=True),
        sa.Column('org_id', sa.String(length=255), nullable=True),
        sa.Column('user_id', sa.String(length=255), nullable=True),
        sa.Column('event_type', sa.String(length=100), nullable=False),
        sa.Column('profile_id', sa.String(length=36), nullable=True),
        sa.Column('event_data', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_audit_events_org_id'), 'audit_events', ['org_id'], unique=False)
    op.create_index(op.f('ix_audit_events_event_type'), 'audit_events', ['event_type'], unique=False)
    op.create_index(op.f('ix_audit_events_profile_id'), 'audit_events', ['profile_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_audit_events_profile_id'), table_name='audit_events')
    op.drop_index(op.f('ix_audit_events_event_type'), table_name='audit_events')
    op.drop_index(op.f('ix_audit_events_org_id'), table_name='audit_events')
    op.drop_table('audit_events')
    op.drop_index(op.f('ix_field_mapping_profiles_is_default'), table_name='field_mapping_profiles')
    op.drop_index(op.f('ix_field_mapping_profiles_org_id'), table_name='field_mapping_profiles')
    op.drop_table('field_mapping_profiles')
