"""Create admin, template, certificate and activity log tables"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3a7c5e1f9b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create admin_users table
    op.create_table(
        'admin_users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(100), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index(op.f('ix_admin_users_email'), 'admin_users', ['email'])

    # Create certificate_templates table
    op.create_table(
        'certificate_templates',
        sa.Column('id', sa.String(100), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('background_color', sa.String(32), nullable=False, server_default='#FFFFFF'),
        sa.Column('accent_color', sa.String(32), nullable=False, server_default='#C9A227'),
        sa.Column('background_image', sa.Text(), nullable=True),
        sa.Column('border_style', sa.String(20), nullable=False, server_default='classic'),
        sa.Column('width', sa.Integer(), nullable=False, server_default='800'),
        sa.Column('height', sa.Integer(), nullable=False, server_default='566'),
        sa.Column('show_seal', sa.Boolean(), server_default=sa.true()),
        sa.Column('show_qr_code', sa.Boolean(), server_default=sa.true()),
        sa.Column('elements', sa.JSON(), nullable=False),
        sa.Column('is_system', sa.Boolean(), server_default=sa.false()),
        sa.Column('is_default', sa.Boolean(), server_default=sa.false()),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    # Create certificates table
    op.create_table(
        'certificates',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('certificate_number', sa.String(20), nullable=False),
        sa.Column('certificate_type', sa.String(30), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='valid'),
        sa.Column('trainee_name', sa.String(200), nullable=False),
        sa.Column('trainee_photo', sa.Text(), nullable=True),
        sa.Column('trainer_name', sa.String(200), nullable=True),
        sa.Column('trainer_photo', sa.Text(), nullable=True),
        sa.Column('center_name', sa.String(200), nullable=True),
        sa.Column('center_logo', sa.Text(), nullable=True),
        sa.Column('certificate_title', sa.Text(), nullable=True),
        sa.Column('training_program_name', sa.String(300), nullable=False),
        sa.Column('atc_code', sa.String(20), nullable=True),
        sa.Column('date_of_issue', sa.String(10), nullable=False),
        sa.Column('place_of_issue', sa.String(200), nullable=True),
        sa.Column('expiry_date', sa.String(10), nullable=True),
        sa.Column('chairperson_name', sa.String(200), nullable=True),
        sa.Column('chairperson_title', sa.String(200), nullable=True),
        sa.Column('legal_disclaimer', sa.Text(), nullable=True),
        sa.Column('show_seal', sa.Boolean(), nullable=True),
        sa.Column('show_qr_code', sa.Boolean(), nullable=True),
        sa.Column('template_id', sa.String(100), nullable=True),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['template_id'], ['certificate_templates.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('certificate_number')
    )
    op.create_index(op.f('ix_certificates_certificate_number'), 'certificates', ['certificate_number'])

    # Create activity_logs table
    op.create_table(
        'activity_logs',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('admin_id', sa.String(36), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('resource_type', sa.String(50), nullable=True),
        sa.Column('resource_id', sa.String(100), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_activity_logs_admin_id'), 'activity_logs', ['admin_id'])
    op.create_index(op.f('ix_activity_logs_created_at'), 'activity_logs', ['created_at'])


def downgrade():
    op.drop_index(op.f('ix_activity_logs_created_at'), table_name='activity_logs')
    op.drop_index(op.f('ix_activity_logs_admin_id'), table_name='activity_logs')
    op.drop_table('activity_logs')
    op.drop_index(op.f('ix_certificates_certificate_number'), table_name='certificates')
    op.drop_table('certificates')
    op.drop_table('certificate_templates')
    op.drop_index(op.f('ix_admin_users_email'), table_name='admin_users')
    op.drop_table('admin_users')
