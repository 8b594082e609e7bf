"""initial schema: users, materials, material_history, alarm_rules, smtp_config, alarm_run_logs

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7e10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MATERIAL_STATUS = ('PENDING', 'SENT', 'DELIVERED', 'RETURNED', 'COMPLETED', 'CANCELED')
MATERIAL_TYPE = ('MOTOR_AC', 'MOTOR_DC', 'ENCODER', 'DRIVER', 'INVERTER', 'MONITOR', 'COMPUTER', 'OTHER')
USER_ROLE = ('USER', 'PLANNER', 'ADMIN', 'DEVELOPER')
ALARM_TYPE = ('TIME_IN_STAGE', 'TIME_TOTAL', 'NEW_ITEM', 'MATERIAL_COUNT')


def upgrade() -> None:
    # users
    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=300), nullable=False),
        sa.Column('matricula', sa.String(length=50), nullable=False),
        sa.Column('role', sa.Enum(*USER_ROLE, name='userrole'), nullable=False),
        sa.Column('avatar', sa.String(length=500), nullable=True),
        sa.Column('is_first_access', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('matricula'),
        sa.PrimaryKeyConstraint('id')
    )

    # materials
    op.create_table('materials',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_number', sa.String(length=100), nullable=False),
        sa.Column('order_number', sa.String(length=100), nullable=False),
        sa.Column('equipment_details', sa.String(length=500), nullable=False),
        sa.Column('order_type', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('material_type', sa.Enum(*MATERIAL_TYPE, name='materialtype'), nullable=False),
        sa.Column('shipment_code', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('sap_code', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('company', sa.String(length=200), nullable=False, server_default=''),
        sa.Column('carrier', sa.String(length=200), nullable=False, server_default=''),
        sa.Column('ship_date', sa.String(length=30), nullable=True),
        sa.Column('shipment_date', sa.String(length=30), nullable=True),
        sa.Column('status', sa.Enum(*MATERIAL_STATUS, name='materialstatus'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=300), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_by', sa.String(length=300), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('deleted_by', sa.String(length=300), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deletion_reason', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_materials_deleted', 'materials', ['deleted'])

    # material_history
    op.create_table('material_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('material_id', sa.Integer(), nullable=False),
        sa.Column('field', sa.String(length=100), nullable=False),
        sa.Column('old_value', sa.Text(), nullable=False, server_default=''),
        sa.Column('new_value', sa.Text(), nullable=False, server_default=''),
        sa.Column('updated_by', sa.String(length=300), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['material_id'], ['materials.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_material_history_material_id', 'material_history', ['material_id'])

    # alarm_rules
    op.create_table('alarm_rules',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('type', sa.Enum(*ALARM_TYPE, name='alarmtype'), nullable=False),
        sa.Column('condition', sa.Text(), nullable=True),
        sa.Column('value', sa.Integer(), nullable=True),
        sa.Column('recipients', sa.Text(), nullable=False, server_default=''),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.String(length=300), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_checked_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    # smtp_config (단일 행)
    op.create_table('smtp_config',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('server', sa.String(length=300), nullable=False),
        sa.Column('port', sa.Integer(), nullable=False, server_default='25'),
        sa.Column('from_email', sa.String(length=300), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    # alarm_run_logs
    op.create_table('alarm_run_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('processed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('triggered', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('errors', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notifications_sent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notifications_failed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duration_seconds', sa.Float(), nullable=False, server_default='0'),
        sa.Column('executed_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    op.drop_table('alarm_run_logs')
    op.drop_table('smtp_config')
    op.drop_table('alarm_rules')
    op.drop_index('ix_material_history_material_id', table_name='material_history')
    op.drop_table('material_history')
    op.drop_index('ix_materials_deleted', table_name='materials')
    op.drop_table('materials')
    op.drop_table('users')
    sa.Enum(name='alarmtype').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='materialtype').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='materialstatus').drop(op.get_bind(), checkfirst=True)
