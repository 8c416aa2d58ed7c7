"""Initial database schema

Revision ID: 001
Revises: 
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _tenant():
    return sa.Column('tenant', sa.String(length=64), sa.ForeignKey('tenants.name'), nullable=False)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    # Create tenants table
    op.create_table('tenants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('display_name', sa.String(length=128), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('plan', sa.String(length=32), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('preferences', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    # Create company_settings table
    op.create_table('company_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant', sa.String(length=64), sa.ForeignKey('tenants.name'), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('city', sa.String(length=128), nullable=True),
        sa.Column('state', sa.String(length=128), nullable=True),
        sa.Column('zip_code', sa.String(length=32), nullable=True),
        sa.Column('country', sa.String(length=64), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('vat_number', sa.String(length=64), nullable=True),
        sa.Column('registration_number', sa.String(length=64), nullable=True),
        sa.Column('bank_details', sa.Text(), nullable=True),
        sa.Column('default_quote_terms', sa.Text(), nullable=True),
        sa.Column('default_invoice_terms', sa.Text(), nullable=True),
        sa.Column('footer_text', sa.Text(), nullable=True),
        sa.Column('primary_color', sa.String(length=16), nullable=True),
        sa.Column('default_tax_rate', sa.Float(), nullable=True),
        sa.Column('currency', sa.String(length=8), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant')
    )

    # Create document_sequences table
    op.create_table('document_sequences',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('doc_type', sa.String(length=16), nullable=False),
        sa.Column('last_value', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant', 'doc_type', name='uq_document_sequence')
    )
    op.create_index('ix_document_sequences_tenant', 'document_sequences', ['tenant'])

    # Create customers table
    op.create_table('customers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('city', sa.String(length=128), nullable=True),
        sa.Column('state', sa.String(length=128), nullable=True),
        sa.Column('zip_code', sa.String(length=32), nullable=True),
        sa.Column('country', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=128), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_customers_tenant', 'customers', ['tenant'])
    op.create_index('ix_customers_tenant_name', 'customers', ['tenant', 'name'])

    # Create suppliers table
    op.create_table('suppliers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact_name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('payment_terms', sa.String(length=128), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_suppliers_tenant', 'suppliers', ['tenant'])

    # Create catalog_items table
    op.create_table('catalog_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_catalog_items_tenant', 'catalog_items', ['tenant'])

    # Create projects table
    op.create_table('projects',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('deadline', sa.Date(), nullable=True),
        sa.Column('completed_date', sa.Date(), nullable=True),
        sa.Column('budget_cents', sa.Integer(), nullable=True),
        sa.Column('deposit_invoice_id', sa.Integer(), nullable=True),
        sa.Column('final_invoice_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_projects_tenant', 'projects', ['tenant'])
    op.create_index('ix_projects_customer_id', 'projects', ['customer_id'])
    op.create_index('ix_projects_tenant_status', 'projects', ['tenant', 'status'])

    # Create quotes and quote_items tables
    op.create_table('quotes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('quote_number', sa.String(length=64), nullable=False),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=True),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('subtotal_cents', sa.Integer(), nullable=False),
        sa.Column('discount_cents', sa.Integer(), nullable=False),
        sa.Column('tax_rate', sa.Float(), nullable=False),
        sa.Column('tax_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('terms', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('accepted_by', sa.String(length=255), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        sa.Column('converted_invoice_id', sa.Integer(), nullable=True),
        sa.Column('created_by', sa.String(length=128), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant', 'quote_number', name='uq_quote_number')
    )
    op.create_index('ix_quotes_tenant', 'quotes', ['tenant'])
    op.create_index('ix_quotes_customer_id', 'quotes', ['customer_id'])
    op.create_index('ix_quotes_project_id', 'quotes', ['project_id'])
    op.create_index('ix_quotes_tenant_status', 'quotes', ['tenant', 'status'])

    op.create_table('quote_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('quote_id', sa.Integer(), sa.ForeignKey('quotes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('catalog_item_id', sa.Integer(), sa.ForeignKey('catalog_items.id'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_quote_items_quote_id', 'quote_items', ['quote_id'])

    # Create invoices, invoice_items and payments tables
    op.create_table('invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('invoice_number', sa.String(length=64), nullable=False),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=True),
        sa.Column('quote_id', sa.Integer(), sa.ForeignKey('quotes.id'), nullable=True),
        sa.Column('invoice_type', sa.String(length=16), nullable=False),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('subtotal_cents', sa.Integer(), nullable=False),
        sa.Column('discount_cents', sa.Integer(), nullable=False),
        sa.Column('tax_rate', sa.Float(), nullable=False),
        sa.Column('tax_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('amount_paid_cents', sa.Integer(), nullable=False),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('issued_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('terms', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=128), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant', 'invoice_number', name='uq_invoice_number')
    )
    op.create_index('ix_invoices_tenant', 'invoices', ['tenant'])
    op.create_index('ix_invoices_customer_id', 'invoices', ['customer_id'])
    op.create_index('ix_invoices_project_id', 'invoices', ['project_id'])
    op.create_index('ix_invoices_quote_id', 'invoices', ['quote_id'])
    op.create_index('ix_invoices_tenant_status', 'invoices', ['tenant', 'status'])
    op.create_index('ix_invoices_tenant_due', 'invoices', ['tenant', 'due_date'])

    op.create_table('invoice_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), sa.ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('catalog_item_id', sa.Integer(), sa.ForeignKey('catalog_items.id'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_invoice_items_invoice_id', 'invoice_items', ['invoice_id'])

    op.create_table('payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('invoice_id', sa.Integer(), sa.ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('method', sa.String(length=32), nullable=False),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('recorded_by', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payments_tenant', 'payments', ['tenant'])
    op.create_index('ix_payments_invoice_id', 'payments', ['invoice_id'])

    # Create inventory_items before purchase order lines reference it
    op.create_table('inventory_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('unit_of_measure', sa.String(length=16), nullable=False),
        sa.Column('current_stock', sa.Float(), nullable=False),
        sa.Column('reorder_point', sa.Float(), nullable=False),
        sa.Column('reorder_quantity', sa.Float(), nullable=False),
        sa.Column('location', sa.String(length=128), nullable=True),
        sa.Column('cost_cents', sa.Integer(), nullable=False),
        sa.Column('last_purchase_price_cents', sa.Integer(), nullable=True),
        sa.Column('preferred_supplier_id', sa.Integer(), sa.ForeignKey('suppliers.id'), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant', 'sku', name='uq_inventory_sku')
    )
    op.create_index('ix_inventory_items_tenant', 'inventory_items', ['tenant'])

    # Create purchase_orders and purchase_order_items tables
    op.create_table('purchase_orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('po_number', sa.String(length=64), nullable=False),
        sa.Column('supplier_id', sa.Integer(), sa.ForeignKey('suppliers.id'), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=True),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('expected_delivery_date', sa.Date(), nullable=True),
        sa.Column('delivery_address', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=24), nullable=False),
        sa.Column('subtotal_cents', sa.Integer(), nullable=False),
        sa.Column('tax_rate', sa.Float(), nullable=False),
        sa.Column('tax_cents', sa.Integer(), nullable=False),
        sa.Column('shipping_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('supplier_reference', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('terms', sa.Text(), nullable=True),
        sa.Column('received_date', sa.Date(), nullable=True),
        sa.Column('created_by', sa.String(length=128), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant', 'po_number', name='uq_po_number')
    )
    op.create_index('ix_purchase_orders_tenant', 'purchase_orders', ['tenant'])
    op.create_index('ix_purchase_orders_supplier_id', 'purchase_orders', ['supplier_id'])
    op.create_index('ix_purchase_orders_project_id', 'purchase_orders', ['project_id'])
    op.create_index('ix_purchase_orders_tenant_status', 'purchase_orders', ['tenant', 'status'])

    op.create_table('purchase_order_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('purchase_order_id', sa.Integer(),
                  sa.ForeignKey('purchase_orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=16), nullable=True),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('received_quantity', sa.Float(), nullable=False),
        sa.Column('inventory_item_id', sa.Integer(), sa.ForeignKey('inventory_items.id'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_purchase_order_items_purchase_order_id', 'purchase_order_items', ['purchase_order_id'])

    # Create inventory_transactions table
    op.create_table('inventory_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('inventory_item_id', sa.Integer(), sa.ForeignKey('inventory_items.id'), nullable=False),
        sa.Column('transaction_type', sa.String(length=16), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('stock_after', sa.Float(), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=True),
        sa.Column('purchase_order_id', sa.Integer(), sa.ForeignKey('purchase_orders.id'), nullable=True),
        sa.Column('unit_cost_cents', sa.Integer(), nullable=True),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('transaction_date', sa.DateTime(), nullable=False),
        sa.Column('created_by', sa.String(length=128), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_inventory_transactions_tenant', 'inventory_transactions', ['tenant'])
    op.create_index('ix_inventory_transactions_inventory_item_id', 'inventory_transactions', ['inventory_item_id'])
    op.create_index('ix_inventory_transactions_project_id', 'inventory_transactions', ['project_id'])
    op.create_index('ix_inventory_transactions_purchase_order_id', 'inventory_transactions', ['purchase_order_id'])
    op.create_index('ix_inventory_transactions_tenant_date', 'inventory_transactions', ['tenant', 'transaction_date'])

    # Create employees, timesheets and expenses tables
    op.create_table('employees',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('position', sa.String(length=128), nullable=True),
        sa.Column('department', sa.String(length=128), nullable=True),
        sa.Column('hire_date', sa.Date(), nullable=True),
        sa.Column('hourly_rate_cents', sa.Integer(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_employees_tenant', 'employees', ['tenant'])

    op.create_table('timesheets',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id'), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=True),
        sa.Column('work_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('break_minutes', sa.Integer(), nullable=False),
        sa.Column('hours', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('approved_by', sa.String(length=128), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_timesheets_tenant', 'timesheets', ['tenant'])
    op.create_index('ix_timesheets_employee_id', 'timesheets', ['employee_id'])
    op.create_index('ix_timesheets_project_id', 'timesheets', ['project_id'])
    op.create_index('ix_timesheets_tenant_date', 'timesheets', ['tenant', 'work_date'])
    op.create_index('ix_timesheets_tenant_status', 'timesheets', ['tenant', 'status'])

    op.create_table('expenses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('expense_date', sa.Date(), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=True),
        sa.Column('supplier_id', sa.Integer(), sa.ForeignKey('suppliers.id'), nullable=True),
        sa.Column('payment_method', sa.String(length=32), nullable=True),
        sa.Column('reimbursable', sa.Boolean(), nullable=False),
        sa.Column('approved', sa.Boolean(), nullable=False),
        sa.Column('approved_by', sa.String(length=128), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_expenses_tenant', 'expenses', ['tenant'])
    op.create_index('ix_expenses_project_id', 'expenses', ['project_id'])
    op.create_index('ix_expenses_tenant_date', 'expenses', ['tenant', 'expense_date'])

    # Create stored_files table
    op.create_table('stored_files',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _tenant(),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('content_type', sa.String(length=128), nullable=False),
        sa.Column('size_bytes', sa.Integer(), nullable=False),
        sa.Column('storage_key', sa.String(length=512), nullable=False),
        sa.Column('related_type', sa.String(length=32), nullable=False),
        sa.Column('related_id', sa.Integer(), nullable=False),
        sa.Column('uploaded_by', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('storage_key')
    )
    op.create_index('ix_stored_files_tenant', 'stored_files', ['tenant'])
    op.create_index('ix_stored_files_tenant_related', 'stored_files', ['tenant', 'related_type', 'related_id'])


def downgrade() -> None:
    # Drop in reverse dependency order; indexes go with their tables
    for table in (
        'stored_files',
        'expenses',
        'timesheets',
        'employees',
        'inventory_transactions',
        'purchase_order_items',
        'purchase_orders',
        'inventory_items',
        'payments',
        'invoice_items',
        'invoices',
        'quote_items',
        'quotes',
        'projects',
        'catalog_items',
        'suppliers',
        'customers',
        'document_sequences',
        'company_settings',
        'tenants',
    ):
        op.drop_table(table)
