"""Initial Real Estate Portfolio schema

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19

Money as INTEGER CENTS (BIGINT). Full-text search via generated tsvector
columns with GIN indexes. Predefined categories are seeded here.
"""
from datetime import datetime
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUM_NAMES = [
    'projecttype', 'projectstatus', 'australianstate', 'accesspermission',
    'categorytype', 'phasestatus', 'notificationtype', 'notificationentitytype',
    'digestfrequency', 'digesttype', 'emailstatus', 'commententitytype',
    'securityeventtype', 'auditaction',
]

# (id, type, display_name, parent_id); parents precede children
PREDEFINED_CATEGORIES = [
    ('construction_team', 'contact', 'Construction Team', None),
    ('general_contractor', 'contact', 'Builder/General Contractor', 'construction_team'),
    ('site_supervisor', 'contact', 'Site Supervisor', 'construction_team'),
    ('trades', 'contact', 'Trades', None),
    ('electrician', 'contact', 'Electrician', 'trades'),
    ('plumber', 'contact', 'Plumber', 'trades'),
    ('carpenter', 'contact', 'Carpenter', 'trades'),
    ('hvac', 'contact', 'HVAC Specialist', 'trades'),
    ('painter', 'contact', 'Painter', 'trades'),
    ('flooring', 'contact', 'Flooring Specialist', 'trades'),
    ('roofing', 'contact', 'Roofer', 'trades'),
    ('drywall', 'contact', 'Drywall Specialist', 'trades'),
    ('windows_doors', 'contact', 'Windows & Doors', 'trades'),
    ('landscaping', 'contact', 'Landscaper', 'trades'),
    ('professional_services', 'contact', 'Professional Services', None),
    ('architect', 'contact', 'Architect', 'professional_services'),
    ('engineer', 'contact', 'Engineer', 'professional_services'),
    ('inspector', 'contact', 'Building Inspector', 'professional_services'),
    ('realtor', 'contact', 'Real Estate Agent', 'professional_services'),
    ('supplier', 'contact', 'Supplier', None),
    ('materials', 'cost', 'Materials', None),
    ('labor', 'cost', 'Labor', None),
    ('permits_fees', 'cost', 'Permits & Fees', None),
    ('professional', 'cost', 'Professional Services', None),
    ('equipment', 'cost', 'Equipment Rental', None),
    ('utilities', 'cost', 'Utilities', None),
    ('insurance', 'cost', 'Insurance', None),
    ('contingency', 'cost', 'Contingency', None),
    ('demolition', 'cost', 'Demolition', None),
    ('foundation', 'cost', 'Foundation', None),
    ('electrical', 'cost', 'Electrical', None),
    ('plumbing', 'cost', 'Plumbing', None),
    ('carpentry', 'cost', 'Carpentry', None),
    ('painting', 'cost', 'Painting', None),
    ('specialty', 'cost', 'Specialty Work', None),
    ('design', 'cost', 'Design Services', None),
    ('photos', 'document', 'Photos', None),
    ('receipts', 'document', 'Receipts', None),
    ('invoices', 'document', 'Invoices', None),
    ('contracts', 'document', 'Contracts', None),
    ('permits', 'document', 'Permits', None),
    ('plans', 'document', 'Plans & Drawings', None),
    ('inspections', 'document', 'Inspection Reports', None),
    ('warranties', 'document', 'Warranties', None),
    ('correspondence', 'document', 'Correspondence', None),
    ('milestone', 'event', 'Milestone', None),
    ('meeting', 'event', 'Meeting', None),
    ('inspection', 'event', 'Inspection', None),
    ('delivery', 'event', 'Delivery', None),
    ('status_change', 'event', 'Status Change', None),
    ('issue', 'event', 'Issue/Problem', None),
    ('completion', 'event', 'Completion', None),
]


def _timestamps(soft_delete: bool = True) -> list:
    columns = [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]
    if soft_delete:
        columns.append(sa.Column('deleted_at', sa.DateTime(), nullable=True))
    return columns


def upgrade() -> None:
    # === USERS ===
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('firebase_uid', sa.String(128), unique=True, nullable=False, index=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('first_name', sa.String(100), nullable=False, server_default=''),
        sa.Column('last_name', sa.String(100), nullable=False, server_default=''),
        sa.Column('email_verified', sa.Boolean(), default=False),
        *_timestamps(),
    )

    # === ADDRESSES ===
    op.create_table(
        'addresses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('street_number', sa.String(20), nullable=False),
        sa.Column('street_name', sa.String(255), nullable=False),
        sa.Column('street_type', sa.String(50), nullable=True),
        sa.Column('suburb', sa.String(100), nullable=False),
        sa.Column('state', sa.Enum('NSW', 'VIC', 'QLD', 'WA', 'SA', 'TAS', 'ACT', 'NT', name='australianstate'), nullable=False),
        sa.Column('postcode', sa.String(4), nullable=False),
        sa.Column('country', sa.String(50), default='Australia'),
        sa.Column('formatted_address', sa.Text(), nullable=True),
        *_timestamps(),
    )

    # === PROJECTS ===
    op.create_table(
        'projects',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('address_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('addresses.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('project_type', sa.Enum('renovation', 'new_build', 'development', 'maintenance', name='projecttype'), nullable=False),
        sa.Column('status', sa.Enum('planning', 'active', 'on_hold', 'completed', 'archived', name='projectstatus'), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        # Money as INTEGER CENTS (BIGINT)
        sa.Column('total_budget', sa.BigInteger(), nullable=True),
        sa.Column(
            'search_vector',
            postgresql.TSVECTOR(),
            sa.Computed("to_tsvector('english', coalesce(name, '') || ' ' || coalesce(description, ''))", persisted=True),
        ),
        *_timestamps(),
        sa.CheckConstraint('total_budget IS NULL OR total_budget > 0', name='ck_project_budget_positive'),
    )
    op.create_index('ix_projects_search_vector', 'projects', ['search_vector'], postgresql_using='gin')

    # === PROJECT ACCESS (partners) ===
    op.create_table(
        'project_access',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True, index=True),
        sa.Column('invited_email', sa.String(255), nullable=True, index=True),
        sa.Column('permission', sa.Enum('read', 'write', name='accesspermission'), nullable=False),
        sa.Column('invited_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('invited_at', sa.DateTime(), nullable=True),
        sa.Column('invitation_token', sa.String(64), nullable=True, unique=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    # === CATEGORIES ===
    categories = op.create_table(
        'categories',
        sa.Column('id', sa.String(100), primary_key=True),
        sa.Column('type', sa.Enum('contact', 'cost', 'document', 'event', name='categorytype'), nullable=False, index=True),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('parent_id', sa.String(100), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_custom', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('id', 'type', name='uq_categories_id_type'),
    )

    # === CONTACTS ===
    op.create_table(
        'contacts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('company', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('mobile', sa.String(50), nullable=True),
        sa.Column('address_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('addresses.id', ondelete='SET NULL'), nullable=True),
        sa.Column('category_id', sa.String(100), sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column(
            'search_vector',
            postgresql.TSVECTOR(),
            sa.Computed(
                "to_tsvector('english', coalesce(first_name, '') || ' ' || coalesce(last_name, '') "
                "|| ' ' || coalesce(company, '') || ' ' || coalesce(email, '') || ' ' || coalesce(notes, ''))",
                persisted=True,
            ),
        ),
        *_timestamps(),
    )
    op.create_index('ix_contacts_search_vector', 'contacts', ['search_vector'], postgresql_using='gin')

    op.create_table(
        'project_contact',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('contact_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('contacts.id', ondelete='CASCADE'), nullable=False, index=True),
        *_timestamps(),
    )

    # === COSTS ===
    op.create_table(
        'costs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category_id', sa.String(100), sa.ForeignKey('categories.id'), nullable=False, index=True),
        sa.Column('date', sa.DateTime(), nullable=False, index=True),
        sa.Column('contact_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('contacts.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column(
            'search_vector',
            postgresql.TSVECTOR(),
            sa.Computed("to_tsvector('english', coalesce(description, ''))", persisted=True),
        ),
        *_timestamps(),
        sa.CheckConstraint('amount > 0', name='ck_cost_amount_positive'),
    )
    op.create_index('ix_costs_search_vector', 'costs', ['search_vector'], postgresql_using='gin')

    # === DOCUMENTS ===
    op.create_table(
        'documents',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.String(255), nullable=False),
        sa.Column('blob_url', sa.String(1024), nullable=False),
        sa.Column('category_id', sa.String(100), sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('uploaded_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column(
            'search_vector',
            postgresql.TSVECTOR(),
            sa.Computed("to_tsvector('english', coalesce(file_name, ''))", persisted=True),
        ),
        *_timestamps(),
    )
    op.create_index('ix_documents_search_vector', 'documents', ['search_vector'], postgresql_using='gin')

    # === EVENTS ===
    op.create_table(
        'events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('category_id', sa.String(100), sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )

    # === DOCUMENT LINKS ===
    for table, column, parent in (
        ('cost_documents', 'cost_id', 'costs'),
        ('contact_documents', 'contact_id', 'contacts'),
        ('event_documents', 'event_id', 'events'),
    ):
        op.create_table(
            table,
            sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
            sa.Column(column, postgresql.UUID(as_uuid=True), sa.ForeignKey(f'{parent}.id', ondelete='CASCADE'), nullable=False, index=True),
            sa.Column('document_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('documents.id', ondelete='CASCADE'), nullable=False, index=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint(column, 'document_id', name=f'uq_{table}_pair'),
        )

    # === PHASES ===
    op.create_table(
        'phases',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phase_number', sa.Integer(), nullable=False),
        sa.Column('phase_type', sa.String(100), nullable=True),
        sa.Column('planned_start_date', sa.DateTime(), nullable=True),
        sa.Column('planned_end_date', sa.DateTime(), nullable=True),
        sa.Column('actual_start_date', sa.DateTime(), nullable=True),
        sa.Column('actual_end_date', sa.DateTime(), nullable=True),
        sa.Column('progress', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.Enum('planned', 'in-progress', 'complete', 'delayed', name='phasestatus'), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('progress >= 0 AND progress <= 100', name='ck_phase_progress_range'),
    )

    # === NOTIFICATIONS ===
    op.create_table(
        'notifications',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=True),
        sa.Column('type', sa.Enum('cost_added', 'large_expense', 'document_uploaded', 'timeline_event', 'partner_invited', 'comment_added', name='notificationtype'), nullable=False),
        sa.Column('entity_type', sa.Enum('cost', 'document', 'event', 'project', name='notificationentitytype'), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_notifications_user_read', 'notifications', ['user_id', 'read'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])
    op.create_index('ix_notifications_project_id', 'notifications', ['project_id'])

    op.create_table(
        'notification_preferences',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('email_on_cost', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('email_on_large_expense', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('email_on_document', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('email_on_timeline', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('email_on_comment', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('email_digest_frequency', sa.Enum('immediate', 'daily', 'weekly', 'never', name='digestfrequency'), nullable=False, server_default='immediate'),
        sa.Column('timezone', sa.String(50), nullable=False, server_default='Australia/Sydney'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    # === EMAIL ===
    op.create_table(
        'email_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('email_type', sa.String(50), nullable=False),
        sa.Column('recipient', sa.String(255), nullable=False),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('status', sa.Enum('sent', 'delivered', 'failed', 'bounced', 'complained', name='emailstatus'), nullable=False, index=True),
        sa.Column('resend_id', sa.String(255), nullable=True, index=True),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'digest_queue',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('notification_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('notifications.id', ondelete='CASCADE'), nullable=False),
        sa.Column('digest_type', sa.Enum('daily', 'weekly', name='digesttype'), nullable=False),
        sa.Column('scheduled_for', sa.DateTime(), nullable=False),
        sa.Column('processed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_digest_queue_due', 'digest_queue', ['scheduled_for'], postgresql_where=sa.text('processed = false'))
    op.create_index('ix_digest_queue_user_processed', 'digest_queue', ['user_id', 'processed'])

    # === VENDOR RATINGS ===
    op.create_table(
        'vendor_ratings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('contact_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('contacts.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('review', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_vendor_rating_range'),
        sa.UniqueConstraint('user_id', 'contact_id', 'project_id', name='uq_vendor_rating_user_contact_project'),
    )

    # === COMMENTS ===
    op.create_table(
        'comments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('entity_type', sa.Enum('cost', 'document', 'event', name='commententitytype'), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('parent_comment_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('comments.id', ondelete='CASCADE'), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('char_length(content) BETWEEN 1 AND 2000', name='ck_comment_content_length'),
    )
    op.create_index('ix_comments_entity', 'comments', ['entity_type', 'entity_id'])

    # === SECURITY + AUDIT ===
    op.create_table(
        'security_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('event_type', sa.Enum(
            '2fa_enabled', '2fa_disabled', '2fa_login_success', '2fa_login_failure',
            'backup_code_generated', 'backup_code_used', 'backup_downloaded',
            name='securityeventtype',
        ), nullable=False),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_security_events_user_created', 'security_events', ['user_id', 'created_at'])
    op.create_index('ix_security_events_event_type', 'security_events', ['event_type'])

    op.create_table(
        'audit_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=True, index=True),
        sa.Column('action', sa.Enum(
            'created', 'updated', 'deleted', 'uploaded', 'linked', 'invited', 'accepted', 'revoked',
            name='auditaction',
        ), nullable=False, index=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('changes', postgresql.JSONB(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
    )

    # === SEED PREDEFINED CATEGORIES ===
    now = datetime.utcnow()
    op.bulk_insert(
        categories,
        [
            {
                'id': category_id,
                'type': category_type,
                'display_name': display_name,
                'parent_id': parent_id,
                'is_custom': False,
                'is_archived': False,
                'created_by_id': None,
                'created_at': now,
            }
            for category_id, category_type, display_name, parent_id in PREDEFINED_CATEGORIES
        ],
    )


def downgrade() -> None:
    for table in (
        'audit_log', 'security_events', 'comments', 'vendor_ratings', 'digest_queue',
        'email_logs', 'notification_preferences', 'notifications', 'phases',
        'event_documents', 'contact_documents', 'cost_documents', 'events',
        'documents', 'costs', 'project_contact', 'contacts', 'categories',
        'project_access', 'projects', 'addresses', 'users',
    ):
        op.drop_table(table)

    for enum_name in ENUM_NAMES:
        op.execute(f'DROP TYPE IF EXISTS {enum_name}')
