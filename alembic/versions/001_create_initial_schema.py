"""Create initial database schema with all tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables for FinHome."""

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=True),
        sa.Column('preferred_currency', sa.String(length=3), server_default='VND', nullable=False),
        sa.Column('subscription_tier', sa.String(length=20), server_default='free', nullable=False),
        sa.Column('is_admin', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('experience_points', sa.Integer(), server_default='0', nullable=False),
        sa.Column('level', sa.Integer(), server_default='1', nullable=False),
        sa.Column('current_streak', sa.Integer(), server_default='0', nullable=False),
        sa.Column('longest_streak', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_activity_date', sa.Date(), nullable=True),
        sa.Column('exports_generated', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_savings_optimized', sa.Numeric(precision=15, scale=2), server_default='0', nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "subscription_tier IN ('free', 'premium', 'professional')",
            name='check_user_subscription_tier',
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    # Create subscriptions table
    op.create_table(
        'subscriptions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tier', sa.String(length=20), server_default='free', nullable=False),
        sa.Column('status', sa.String(length=20), server_default='active', nullable=False),
        sa.Column('billing_cycle', sa.String(length=10), nullable=True),
        sa.Column('current_period_start', sa.DateTime(), nullable=True),
        sa.Column('current_period_end', sa.DateTime(), nullable=True),
        sa.Column('cancel_at_period_end', sa.Boolean(), server_default='false', nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'trialing', 'past_due', 'canceled', 'unpaid')",
            name='check_subscription_status',
        ),
        sa.CheckConstraint("tier IN ('free', 'premium', 'professional')", name='check_subscription_tier'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_subscriptions_user_id'), 'subscriptions', ['user_id'], unique=True)

    # Create expense_wallets table
    op.create_table(
        'expense_wallets',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('wallet_type', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('balance', sa.Numeric(precision=15, scale=2), server_default='0', nullable=False),
        sa.Column('currency', sa.String(length=3), server_default='VND', nullable=False),
        sa.Column('icon', sa.String(length=50), server_default='wallet', nullable=False),
        sa.Column('color', sa.String(length=7), server_default='#3B82F6', nullable=False),
        sa.Column('bank_name', sa.String(length=100), nullable=True),
        sa.Column('account_number', sa.String(length=50), nullable=True),
        sa.Column('is_default', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('include_in_budget', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "wallet_type IN ('cash', 'bank_account', 'credit_card', 'e_wallet', 'investment', 'other')",
            name='check_wallet_type',
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_expense_wallets_id'), 'expense_wallets', ['id'], unique=False)
    op.create_index(op.f('ix_expense_wallets_user_id'), 'expense_wallets', ['user_id'], unique=False)
    op.create_index('idx_expense_wallets_user_active', 'expense_wallets', ['user_id', 'is_active'], unique=False)

    # Create expense_categories table
    op.create_table(
        'expense_categories',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('category_type', sa.String(length=10), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('category_key', sa.String(length=50), nullable=False),
        sa.Column('icon', sa.String(length=50), server_default='tag', nullable=False),
        sa.Column('color', sa.String(length=7), server_default='#6B7280', nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
        sa.CheckConstraint("category_type IN ('expense', 'income')", name='check_category_type'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_expense_categories_id'), 'expense_categories', ['id'], unique=False)
    op.create_index(op.f('ix_expense_categories_user_id'), 'expense_categories', ['user_id'], unique=False)
    op.create_index(
        'idx_expense_categories_type_order', 'expense_categories', ['category_type', 'sort_order'], unique=False
    )

    # Create recurring_transactions table (referenced by expense_transactions)
    op.create_table(
        'recurring_transactions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('wallet_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('transaction_type', sa.String(length=10), nullable=False),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('transfer_to_wallet_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('frequency', sa.String(length=10), nullable=False),
        sa.Column('frequency_interval', sa.Integer(), server_default='1', nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('max_occurrences', sa.Integer(), nullable=True),
        sa.Column('next_due_date', sa.Date(), nullable=False),
        sa.Column('occurrences_created', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_processed_at', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "transaction_type IN ('income', 'expense', 'transfer')", name='check_recurring_transaction_type'
        ),
        sa.CheckConstraint(
            "frequency IN ('daily', 'weekly', 'monthly', 'yearly')", name='check_recurring_frequency'
        ),
        sa.CheckConstraint('frequency_interval BETWEEN 1 AND 365', name='check_recurring_frequency_interval'),
        sa.CheckConstraint('amount > 0', name='check_recurring_amount_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['wallet_id'], ['expense_wallets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['expense_categories.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['transfer_to_wallet_id'], ['expense_wallets.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_recurring_transactions_id'), 'recurring_transactions', ['id'], unique=False)
    op.create_index(op.f('ix_recurring_transactions_user_id'), 'recurring_transactions', ['user_id'], unique=False)
    op.create_index(
        op.f('ix_recurring_transactions_next_due_date'), 'recurring_transactions', ['next_due_date'], unique=False
    )
    op.create_index(
        'idx_recurring_transactions_active_due', 'recurring_transactions', ['is_active', 'next_due_date'], unique=False
    )

    # Create expense_transactions table
    op.create_table(
        'expense_transactions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('wallet_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('transaction_type', sa.String(length=10), nullable=False),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), server_default='VND', nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('category_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('transfer_to_wallet_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('transfer_fee', sa.Numeric(precision=15, scale=2), server_default='0', nullable=False),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('merchant_name', sa.String(length=200), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('recurring_transaction_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_confirmed', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "transaction_type IN ('income', 'expense', 'transfer')", name='check_transaction_type'
        ),
        sa.CheckConstraint('amount > 0', name='check_transaction_amount_positive'),
        sa.CheckConstraint('transfer_fee >= 0', name='check_transfer_fee_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['wallet_id'], ['expense_wallets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['expense_categories.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['transfer_to_wallet_id'], ['expense_wallets.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(
            ['recurring_transaction_id'], ['recurring_transactions.id'], ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_expense_transactions_id'), 'expense_transactions', ['id'], unique=False)
    op.create_index(op.f('ix_expense_transactions_user_id'), 'expense_transactions', ['user_id'], unique=False)
    op.create_index(op.f('ix_expense_transactions_wallet_id'), 'expense_transactions', ['wallet_id'], unique=False)
    op.create_index(
        op.f('ix_expense_transactions_category_id'), 'expense_transactions', ['category_id'], unique=False
    )
    op.create_index(
        op.f('ix_expense_transactions_transaction_date'), 'expense_transactions', ['transaction_date'], unique=False
    )
    op.create_index(
        'idx_expense_transactions_user_date', 'expense_transactions', ['user_id', 'transaction_date'], unique=False
    )
    op.create_index(
        'idx_expense_transactions_wallet_date', 'expense_transactions', ['wallet_id', 'transaction_date'], unique=False
    )

    # Create expense_budgets table
    op.create_table(
        'expense_budgets',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('budget_period', sa.String(length=10), server_default='monthly', nullable=False),
        sa.Column('budget_method', sa.String(length=20), server_default='manual', nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_budget', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('category_budgets', sa.JSON(), nullable=False),
        sa.Column('alert_threshold_percentage', sa.Integer(), server_default='80', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
        sa.CheckConstraint('end_date >= start_date', name='check_budget_end_after_start'),
        sa.CheckConstraint('total_budget > 0', name='check_budget_total_positive'),
        sa.CheckConstraint("budget_period IN ('weekly', 'monthly', 'yearly')", name='check_budget_period'),
        sa.CheckConstraint('alert_threshold_percentage BETWEEN 1 AND 100', name='check_budget_alert_threshold'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_expense_budgets_id'), 'expense_budgets', ['id'], unique=False)
    op.create_index(op.f('ix_expense_budgets_user_id'), 'expense_budgets', ['user_id'], unique=False)
    op.create_index(
        'idx_expense_budgets_user_dates', 'expense_budgets', ['user_id', 'start_date', 'end_date'], unique=False
    )

    # Create expense_goals table
    op.create_table(
        'expense_goals',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('goal_type', sa.String(length=20), server_default='general_savings', nullable=False),
        sa.Column('target_amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('current_amount', sa.Numeric(precision=15, scale=2), server_default='0', nullable=False),
        sa.Column('monthly_target', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('deadline', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='active', nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('active', 'completed', 'paused', 'cancelled')", name='check_goal_status'
        ),
        sa.CheckConstraint('target_amount > 0', name='check_goal_target_positive'),
        sa.CheckConstraint('current_amount >= 0', name='check_goal_current_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_expense_goals_id'), 'expense_goals', ['id'], unique=False)
    op.create_index(op.f('ix_expense_goals_user_id'), 'expense_goals', ['user_id'], unique=False)
    op.create_index(op.f('ix_expense_goals_status'), 'expense_goals', ['status'], unique=False)
    op.create_index('idx_expense_goals_user_status', 'expense_goals', ['user_id', 'status'], unique=False)

    # Create goal_contributions table
    op.create_table(
        'goal_contributions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('goal_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('wallet_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('contribution_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('amount > 0', name='check_contribution_amount_positive'),
        sa.ForeignKeyConstraint(['goal_id'], ['expense_goals.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['wallet_id'], ['expense_wallets.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_goal_contributions_goal_id'), 'goal_contributions', ['goal_id'], unique=False)

    # Create financial_plans table
    op.create_table(
        'financial_plans',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('plan_name', sa.String(length=255), nullable=False),
        sa.Column('plan_description', sa.Text(), nullable=True),
        sa.Column('plan_type', sa.String(length=20), server_default='home_purchase', nullable=False),
        sa.Column('status', sa.String(length=20), server_default='draft', nullable=False),
        sa.Column('purchase_price', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('down_payment', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('additional_costs', sa.Numeric(precision=15, scale=2), server_default='0', nullable=False),
        sa.Column('monthly_income', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('monthly_expenses', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('current_savings', sa.Numeric(precision=15, scale=2), server_default='0', nullable=False),
        sa.Column('other_debts', sa.Numeric(precision=15, scale=2), server_default='0', nullable=False),
        sa.Column('expected_rental_income', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('expected_appreciation_rate', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('investment_horizon_years', sa.Integer(), nullable=True),
        sa.Column('is_public', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('cached_calculations', sa.JSON(), nullable=True),
        sa.Column('calculations_last_updated', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "plan_type IN ('home_purchase', 'investment', 'upgrade', 'refinance')", name='check_plan_type'
        ),
        sa.CheckConstraint("status IN ('draft', 'active', 'completed', 'archived')", name='check_plan_status'),
        sa.CheckConstraint('purchase_price > 0', name='check_plan_purchase_price_positive'),
        sa.CheckConstraint('down_payment >= 0', name='check_plan_down_payment_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_financial_plans_id'), 'financial_plans', ['id'], unique=False)
    op.create_index(op.f('ix_financial_plans_user_id'), 'financial_plans', ['user_id'], unique=False)
    op.create_index(op.f('ix_financial_plans_status'), 'financial_plans', ['status'], unique=False)
    op.create_index('idx_financial_plans_user_status', 'financial_plans', ['user_id', 'status'], unique=False)

    # Create plan_status_history table
    op.create_table(
        'plan_status_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('plan_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('previous_status', sa.String(length=20), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('changed_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('changed_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['plan_id'], ['financial_plans.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_plan_status_history_plan_id'), 'plan_status_history', ['plan_id'], unique=False)

    # Create plan_milestones table
    op.create_table(
        'plan_milestones',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('plan_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='pending', nullable=False),
        sa.Column('priority', sa.String(length=10), server_default='medium', nullable=False),
        sa.Column('required_amount', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('current_amount', sa.Numeric(precision=15, scale=2), server_default='0', nullable=False),
        sa.Column('target_date', sa.Date(), nullable=True),
        sa.Column('completed_date', sa.Date(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "category IN ('financial', 'legal', 'property', 'admin', 'personal')", name='check_milestone_category'
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'in_progress', 'completed', 'cancelled')", name='check_milestone_status'
        ),
        sa.CheckConstraint("priority IN ('low', 'medium', 'high')", name='check_milestone_priority'),
        sa.ForeignKeyConstraint(['plan_id'], ['financial_plans.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_plan_milestones_id'), 'plan_milestones', ['id'], unique=False)
    op.create_index(op.f('ix_plan_milestones_plan_id'), 'plan_milestones', ['plan_id'], unique=False)

    # Create user_achievements table
    op.create_table(
        'user_achievements',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('achievement_id', sa.String(length=50), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('unlocked_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'achievement_id', name='uq_user_achievement'),
    )
    op.create_index(op.f('ix_user_achievements_user_id'), 'user_achievements', ['user_id'], unique=False)

    # Create user_activities table
    op.create_table(
        'user_activities',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('activity_type', sa.String(length=50), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('resource_type', sa.String(length=50), nullable=True),
        sa.Column('resource_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_activities_user_id'), 'user_activities', ['user_id'], unique=False)
    op.create_index(
        'idx_user_activities_user_created', 'user_activities', ['user_id', 'created_at'], unique=False
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table('user_activities')
    op.drop_table('user_achievements')
    op.drop_table('plan_milestones')
    op.drop_table('plan_status_history')
    op.drop_table('financial_plans')
    op.drop_table('goal_contributions')
    op.drop_table('expense_goals')
    op.drop_table('expense_budgets')
    op.drop_table('expense_transactions')
    op.drop_table('recurring_transactions')
    op.drop_table('expense_categories')
    op.drop_table('expense_wallets')
    op.drop_table('subscriptions')
    op.drop_table('users')
