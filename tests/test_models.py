from finance_tracker.models import (
    DEFAULT_CATEGORIES,
    IncomeSource,
    SavingsGoal,
    Transaction,
    UserSettings,
)


def test_transaction_round_trips_camel_case_keys():
    data = {
        'id': 't1',
        'amount': 500,
        'type': 'income',
        'categoryId': 'salary',
        'description': 'May salary',
        'date': '2024-05-05',
        'createdAt': '2024-05-05T12:00:00Z',
        'savingsGoalId': 'trip',
        'savingsContribution': 200,
        'legacyField': 'ignored',
    }
    txn = Transaction.from_dict(data)
    assert txn.category_id == 'salary'
    assert txn.savings_contribution == 200.0
    out = txn.to_dict()
    assert out['categoryId'] == 'salary'
    assert out['savingsGoalId'] == 'trip'
    assert 'legacyField' not in out


def test_optional_fields_are_omitted():
    txn = Transaction('t2', 10.0, 'expense', 'food', '', '2024-05-01', '')
    out = txn.to_dict()
    assert 'savingsGoalId' not in out
    assert 'savingsContribution' not in out


def test_income_source_serializes_nested_distributions():
    source = IncomeSource.from_dict({
        'id': 's1',
        'name': 'Channel',
        'distributions': [{'walletId': 'marketing', 'percentage': 40}, 'junk'],
    })
    assert len(source.distributions) == 1
    assert source.to_dict()['distributions'] == [{'walletId': 'marketing', 'percentage': 40.0}]


def test_savings_goal_defaults():
    goal = SavingsGoal.from_dict({'id': 'g', 'name': 'Car', 'targetAmount': 1000})
    assert goal.current_amount == 0.0
    assert goal.deadline is None


def test_settings_defaults_and_keys():
    settings = UserSettings.from_dict({'privacyMode': True})
    assert settings.display_name == 'Usuário'
    assert settings.currency == 'BRL'
    assert settings.to_dict() == {'displayName': 'Usuário', 'currency': 'BRL', 'privacyMode': True}


def test_default_categories_cover_every_type():
    assert {c.type for c in DEFAULT_CATEGORIES} == {'income', 'expense', 'investment'}
    assert len({c.id for c in DEFAULT_CATEGORIES}) == len(DEFAULT_CATEGORIES)
