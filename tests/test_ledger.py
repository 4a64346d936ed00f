import json

import pytest

from finance_tracker.budgets import OVER_BUDGET
from finance_tracker.errors import (
    CategoryInUseError,
    DistributionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from finance_tracker.ledger import FinanceLedger
from finance_tracker.storage import LedgerStore


@pytest.fixture
def ledger(tmp_path):
    return FinanceLedger(LedgerStore(tmp_path), current_month='2024-05')


def test_income_contribution_credits_savings_goal(ledger):
    goal = ledger.add_savings_goal('Emergency fund', 1000)
    ledger.deposit_to_savings_goal(goal.id, 300)

    txn = ledger.add_transaction(
        500, 'income', 'salary', '2024-05-05',
        savings_goal_id=goal.id, savings_contribution=200,
    )

    assert ledger.get_savings_goal(goal.id).current_amount == 500
    stored = ledger.store.get_transactions()[0]
    assert stored.id == txn.id
    assert stored.amount == 500
    assert stored.savings_contribution == 200
    # the cached view and a fresh store read agree
    assert ledger.store.get_savings_goals()[0].current_amount == 500


def test_contribution_larger_than_amount_is_rejected_before_writing(ledger):
    goal = ledger.add_savings_goal('Trip', 1000)
    with pytest.raises(ValidationError):
        ledger.add_transaction(100, 'income', 'salary', '2024-05-05',
                               savings_goal_id=goal.id, savings_contribution=150)
    assert ledger.store.get_transactions() == []
    assert ledger.get_savings_goal(goal.id).current_amount == 0


def test_contribution_only_allowed_on_income(ledger):
    goal = ledger.add_savings_goal('Trip', 1000)
    with pytest.raises(ValidationError):
        ledger.add_transaction(100, 'expense', 'food', '2024-05-05',
                               savings_goal_id=goal.id, savings_contribution=10)


def test_contribution_to_unknown_goal_is_rejected(ledger):
    with pytest.raises(ValidationError):
        ledger.add_transaction(100, 'income', 'salary', '2024-05-05',
                               savings_goal_id='nope', savings_contribution=10)
    assert ledger.transactions == []


def test_goal_untouched_when_transaction_not_persisted(ledger, monkeypatch):
    goal = ledger.add_savings_goal('Trip', 1000)
    monkeypatch.setattr(ledger.store, 'add_transaction', lambda txn: [])
    with pytest.raises(PersistenceError):
        ledger.add_transaction(500, 'income', 'salary', '2024-05-05',
                               savings_goal_id=goal.id, savings_contribution=200)
    assert ledger.store.get_savings_goals()[0].current_amount == 0


def test_unsaved_goal_credit_is_reported(ledger, monkeypatch):
    goal = ledger.add_savings_goal('Trip', 1000)
    ledger.deposit_to_savings_goal(goal.id, 300)
    write_table = ledger.store.write_table

    def failing_goal_writes(table, value):
        if table == 'savingsGoals':
            return False
        return write_table(table, value)

    monkeypatch.setattr(ledger.store, 'write_table', failing_goal_writes)
    with pytest.raises(PersistenceError):
        ledger.add_transaction(500, 'income', 'salary', '2024-05-05',
                               savings_goal_id=goal.id, savings_contribution=200)
    assert ledger.store.get_savings_goals()[0].current_amount == 300
    assert ledger.get_savings_goal(goal.id).current_amount == 300
    assert len(ledger.transactions) == 1

    with pytest.raises(PersistenceError):
        ledger.deposit_to_savings_goal(goal.id, 50)
    assert ledger.get_savings_goal(goal.id).current_amount == 300


def test_failed_writes_leave_the_cache_matching_storage(ledger, monkeypatch):
    monkeypatch.setattr(ledger.store, 'write_table', lambda table, value: False)
    with pytest.raises(PersistenceError):
        ledger.add_category('Pets', 'Heart', '#123456', 'expense')
    assert [c.name for c in ledger.categories] == [c.name for c in ledger.store.get_categories()]
    with pytest.raises(PersistenceError):
        ledger.add_wallet('Travel')
    assert ledger.wallets == ledger.store.get_wallets()


def test_category_type_must_match_transaction_type(ledger):
    with pytest.raises(ValidationError):
        ledger.add_transaction(10, 'income', 'food', '2024-05-01')
    with pytest.raises(ValidationError):
        ledger.add_transaction(10, 'expense', 'missing-category', '2024-05-01')


def test_invalid_amount_type_and_date_are_rejected(ledger):
    with pytest.raises(ValidationError):
        ledger.add_transaction(-1, 'expense', 'food', '2024-05-01')
    with pytest.raises(ValidationError):
        ledger.add_transaction(1, 'gift', 'food', '2024-05-01')
    with pytest.raises(ValidationError):
        ledger.add_transaction(1, 'expense', 'food', '05/01/2024')
    with pytest.raises(ValidationError):
        ledger.add_transaction(float('inf'), 'expense', 'food', '2024-05-01')
    assert ledger.store.get_transactions() == []


def test_monthly_stats_follow_current_month(ledger):
    ledger.add_transaction(1000, 'income', 'salary', '2024-05-01')
    ledger.add_transaction(250, 'expense', 'food', '2024-05-31')
    ledger.add_transaction(100, 'investment', 'stocks', '2024-05-15')
    ledger.add_transaction(999, 'expense', 'food', '2024-06-01')

    stats = ledger.monthly_stats()
    assert stats.total_income == 1000
    assert stats.total_expenses == 250
    assert stats.net_profit == 650

    ledger.set_current_month('2024-06')
    assert ledger.monthly_stats().total_expenses == 999
    assert ledger.annual_stats().total_expenses == 1249


def test_editing_a_transaction_does_not_touch_the_goal(ledger):
    goal = ledger.add_savings_goal('Trip', 1000)
    txn = ledger.add_transaction(500, 'income', 'salary', '2024-05-05',
                                 savings_goal_id=goal.id, savings_contribution=200)
    ledger.update_transaction(txn.id, description='bonus', amount=600)
    assert ledger.store.get_transactions()[0].amount == 600
    assert ledger.get_savings_goal(goal.id).current_amount == 200

    with pytest.raises(ValidationError):
        ledger.update_transaction(txn.id, amount=100)
    with pytest.raises(ValidationError):
        ledger.update_transaction(txn.id, colour='red')

    ledger.delete_transaction(txn.id)
    assert ledger.transactions == []
    assert ledger.get_savings_goal(goal.id).current_amount == 200


def test_category_with_transactions_cannot_be_deleted(ledger):
    category = ledger.add_category('Pets', 'Heart', '#123456', 'expense')
    txn = ledger.add_transaction(30, 'expense', category.id, '2024-05-02')

    with pytest.raises(CategoryInUseError) as excinfo:
        ledger.delete_category(category.id)
    assert excinfo.value.count == 1
    assert ledger.get_category(category.id) is not None

    with pytest.raises(ValidationError):
        ledger.update_category(category.id, type='income')

    ledger.delete_transaction(txn.id)
    ledger.delete_category(category.id)
    assert ledger.get_category(category.id) is None
    assert ledger.category_display(category.id)[0] == 'Outros'


def test_deposit_validation(ledger):
    goal = ledger.add_savings_goal('Trip', 1000)
    with pytest.raises(NotFoundError):
        ledger.deposit_to_savings_goal('missing', 10)
    with pytest.raises(ValidationError):
        ledger.deposit_to_savings_goal(goal.id, 0)
    assert ledger.deposit_to_savings_goal(goal.id, 150).current_amount == 150
    assert ledger.deposit_to_savings_goal(goal.id, 50).current_amount == 200


def test_explicit_goal_edit_can_lower_current_amount(ledger):
    goal = ledger.add_savings_goal('Trip', 1000)
    ledger.deposit_to_savings_goal(goal.id, 400)
    ledger.update_savings_goal(goal.id, current_amount=100)
    assert ledger.get_savings_goal(goal.id).current_amount == 100


def test_savings_goal_requires_positive_target(ledger):
    with pytest.raises(ValidationError):
        ledger.add_savings_goal('Nothing', 0)


def test_budget_status_for_current_month(ledger):
    ledger.add_financial_goal('food', 100)
    ledger.add_transaction(120, 'expense', 'food', '2024-05-10')
    [evaluation] = ledger.budget_status()
    assert evaluation.status == OVER_BUDGET
    assert evaluation.percentage == 100.0

    with pytest.raises(ValidationError):
        ledger.add_financial_goal('salary', 100)
    with pytest.raises(ValidationError):
        ledger.add_financial_goal('food', 0)


def test_budget_cannot_move_to_a_non_expense_category(ledger):
    goal = ledger.add_financial_goal('food', 100)
    with pytest.raises(ValidationError):
        ledger.update_financial_goal(goal.id, category_id='salary')
    with pytest.raises(ValidationError):
        ledger.update_financial_goal(goal.id, category_id='missing')
    assert ledger.store.get_financial_goals()[0].category_id == 'food'

    ledger.update_financial_goal(goal.id, category_id='transport')
    assert ledger.financial_goals[0].category_id == 'transport'
    with pytest.raises(NotFoundError):
        ledger.update_financial_goal('missing', monthly_limit=50)


def test_income_source_distribution_is_validated(ledger):
    with pytest.raises(DistributionError):
        ledger.add_income_source('Channel', [('marketing', 30), ('equipment', 20), ('free_profit', 40)])
    assert ledger.store.get_income_sources() == []

    source = ledger.add_income_source(
        'Channel', [('marketing', 30), ('equipment', 0), {'walletId': 'free_profit', 'percentage': 70}]
    )
    stored = ledger.store.get_income_sources()[0]
    assert [d.wallet_id for d in stored.distributions] == ['marketing', 'free_profit']
    assert ledger.suggested_split(source.id, 1000) == {'marketing': 300.0, 'free_profit': 700.0}

    with pytest.raises(DistributionError):
        ledger.update_income_source(source.id, distributions=[('marketing', 50)])
    ledger.update_income_source(source.id, name='Podcast')
    assert ledger.store.get_income_sources()[0].name == 'Podcast'


def test_wallet_movements_feed_monthly_stats(ledger):
    wallet = ledger.add_wallet('Travel')
    ledger.add_wallet_transaction(wallet.id, 200, 'credit', date='2024-05-02')
    ledger.add_wallet_transaction(wallet.id, 50, 'debit', date='2024-05-20')
    with pytest.raises(ValidationError):
        ledger.add_wallet_transaction(wallet.id, 50, 'refund', date='2024-05-20')

    stats = {s.wallet.id: s for s in ledger.wallet_stats()}
    assert stats[wallet.id].balance == 150


def test_subscribers_hear_about_changes(ledger):
    seen = []
    listener = ledger.subscribe(seen.append)
    goal = ledger.add_savings_goal('Trip', 1000)
    ledger.add_transaction(100, 'income', 'salary', '2024-05-01',
                           savings_goal_id=goal.id, savings_contribution=10)
    assert seen == ['savingsGoals', 'transactions', 'savingsGoals']

    ledger.unsubscribe(listener)
    ledger.delete_savings_goal(goal.id)
    assert seen == ['savingsGoals', 'transactions', 'savingsGoals']


def test_settings_update_and_backup_round_trip(ledger, tmp_path):
    ledger.update_settings(display_name='Ana', privacy_mode=True)
    ledger.add_transaction(42, 'expense', 'food', '2024-05-03')
    with pytest.raises(ValidationError):
        ledger.update_settings(theme='dark')

    other = FinanceLedger(LedgerStore(tmp_path / 'restore'), current_month='2024-05')
    assert other.import_data(ledger.export_data())
    assert other.settings.display_name == 'Ana'
    assert other.monthly_stats().total_expenses == 42

    assert other.import_data(json.dumps({'transactions': []}))
    assert other.transactions == []
    assert other.settings.display_name == 'Ana'
    assert not other.import_data('not json')
