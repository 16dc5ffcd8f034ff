"""Initial beam authorization schema.

Revision ID: 001
Revises: 
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Staff and workgroups
    op.create_table(
        'staff',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('first_name', sa.String(length=128), nullable=True),
        sa.Column('last_name', sa.String(length=128), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_staff_id', 'staff', ['id'])
    op.create_index('ix_staff_username', 'staff', ['username'], unique=True)

    op.create_table(
        'workgroups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False, unique=True),
    )
    op.create_index('ix_workgroups_id', 'workgroups', ['id'])

    op.create_table(
        'workgroup_leaders',
        sa.Column('workgroup_id', sa.Integer(), sa.ForeignKey('workgroups.id'), primary_key=True),
        sa.Column('staff_id', sa.Integer(), sa.ForeignKey('staff.id'), primary_key=True),
    )

    # Controls and destinations
    op.create_table(
        'control_groups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False, unique=True),
        sa.Column('leader_workgroup_id', sa.Integer(), sa.ForeignKey('workgroups.id'), nullable=False),
    )
    op.create_index('ix_control_groups_id', 'control_groups', ['id'])
    op.create_index('ix_control_groups_leader_workgroup_id', 'control_groups', ['leader_workgroup_id'])

    op.create_table(
        'credited_controls',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('control_groups.id'), nullable=False),
        sa.Column('weight', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_credited_controls_id', 'credited_controls', ['id'])
    op.create_index('ix_credited_controls_group_id', 'credited_controls', ['group_id'])

    op.create_table(
        'beam_destinations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False, unique=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('weight', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_beam_destinations_id', 'beam_destinations', ['id'])

    # Verifications
    op.create_table(
        'control_verifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('credited_control_id', sa.Integer(), sa.ForeignKey('credited_controls.id'), nullable=False),
        sa.Column('beam_destination_id', sa.Integer(), sa.ForeignKey('beam_destinations.id'), nullable=False),
        sa.Column('verification_id', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('verification_date', sa.DateTime(), nullable=True),
        sa.Column('verified_by_id', sa.Integer(), sa.ForeignKey('staff.id'), nullable=True),
        sa.Column('expiration_date', sa.DateTime(), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('modified_by_id', sa.Integer(), sa.ForeignKey('staff.id'), nullable=False),
        sa.Column('modified_date', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('credited_control_id', 'beam_destination_id', name='uq_control_destination'),
    )
    op.create_index('ix_control_verifications_id', 'control_verifications', ['id'])
    op.create_index('ix_control_verifications_credited_control_id', 'control_verifications', ['credited_control_id'])
    op.create_index('ix_control_verifications_beam_destination_id', 'control_verifications', ['beam_destination_id'])
    op.create_index('ix_control_verifications_expiration_date', 'control_verifications', ['expiration_date'])

    op.create_table(
        'verification_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'control_verification_id',
            sa.Integer(),
            sa.ForeignKey('control_verifications.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('credited_control_id', sa.Integer(), sa.ForeignKey('credited_controls.id'), nullable=False),
        sa.Column('beam_destination_id', sa.Integer(), sa.ForeignKey('beam_destinations.id'), nullable=False),
        sa.Column('verification_id', sa.Integer(), nullable=False),
        sa.Column('verification_date', sa.DateTime(), nullable=True),
        sa.Column('verified_by_id', sa.Integer(), sa.ForeignKey('staff.id'), nullable=True),
        sa.Column('expiration_date', sa.DateTime(), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('modified_by_id', sa.Integer(), sa.ForeignKey('staff.id'), nullable=False),
        sa.Column('modified_date', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_verification_history_id', 'verification_history', ['id'])
    op.create_index('ix_verification_history_control_verification_id', 'verification_history', ['control_verification_id'])
    op.create_index('ix_verification_history_credited_control_id', 'verification_history', ['credited_control_id'])
    op.create_index('ix_verification_history_beam_destination_id', 'verification_history', ['beam_destination_id'])

    # Director's authorizations
    op.create_table(
        'authorizations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('authorization_date', sa.DateTime(), nullable=False),
        sa.Column('authorized_by_id', sa.Integer(), sa.ForeignKey('staff.id'), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('modified_by_id', sa.Integer(), sa.ForeignKey('staff.id'), nullable=True),
        sa.Column('modified_date', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_authorizations_id', 'authorizations', ['id'])

    op.create_table(
        'destination_authorizations',
        sa.Column('beam_destination_id', sa.Integer(), sa.ForeignKey('beam_destinations.id'), primary_key=True),
        sa.Column('authorization_id', sa.Integer(), sa.ForeignKey('authorizations.id'), primary_key=True),
        sa.Column('beam_mode', sa.String(length=64), nullable=False, server_default='None'),
        sa.Column('cw_limit', sa.Float(), nullable=True),
        sa.Column('expiration_date', sa.DateTime(), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
    )
    op.create_index('ix_destination_authorizations_authorization_id', 'destination_authorizations', ['authorization_id'])


def downgrade() -> None:
    op.drop_table('destination_authorizations')
    op.drop_table('authorizations')
    op.drop_table('verification_history')
    op.drop_table('control_verifications')
    op.drop_table('beam_destinations')
    op.drop_table('credited_controls')
    op.drop_table('control_groups')
    op.drop_table('workgroup_leaders')
    op.drop_table('workgroups')
    op.drop_table('staff')
