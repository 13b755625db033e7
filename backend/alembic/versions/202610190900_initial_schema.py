from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202610190900_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'files',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('file_url', sa.String(), nullable=False),
        sa.Column('bucket', sa.String(), nullable=False),
        sa.Column('object_name', sa.String(), nullable=False),
        sa.Column('preview_image', sa.String(), nullable=True),
        sa.Column('preview_object_name', sa.String(), nullable=True),
        sa.Column('content_type', sa.String(), nullable=True),
        sa.Column('size', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('creator', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('scheduled_delete_date', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_files_name', 'files', ['name'])
    op.create_index('ix_files_type', 'files', ['type'])
    op.create_index('ix_files_creator', 'files', ['creator'])
    op.create_index('ix_files_created_at', 'files', ['created_at'])
    op.create_index('ix_files_scheduled_delete_date', 'files', ['scheduled_delete_date'])

    op.create_table(
        'file_grants',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('file_id', sa.String(length=36), sa.ForeignKey('files.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.UniqueConstraint('file_id', 'user_id', name='uq_file_grants_file_user'),
    )
    op.create_index('ix_file_grants_file_id', 'file_grants', ['file_id'])
    op.create_index('ix_file_grants_user_id', 'file_grants', ['user_id'])

    op.create_table(
        'file_invites',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('file_id', sa.String(length=36), sa.ForeignKey('files.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('file_id', 'email', name='uq_file_invites_file_email'),
    )
    op.create_index('ix_file_invites_file_id', 'file_invites', ['file_id'])
    op.create_index('ix_file_invites_email', 'file_invites', ['email'])


def downgrade() -> None:
    op.drop_table('file_invites')
    op.drop_table('file_grants')
    op.drop_table('files')
    op.drop_table('users')
