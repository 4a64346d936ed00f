import json
import logging

from finance_tracker.models import Category, DEFAULT_CATEGORIES, DEFAULT_WALLETS, Transaction
from finance_tracker.storage import LedgerStore


def _txn(txn_id, amount=10.0, day='2024-05-01'):
    return Transaction(txn_id, amount, 'expense', 'food', '', day, '2024-05-01T00:00:00Z')


def test_missing_tables_fall_back_to_defaults(tmp_path):
    store = LedgerStore(tmp_path)
    assert store.get_transactions() == []
    assert [c.id for c in store.get_categories()] == [c.id for c in DEFAULT_CATEGORIES]
    assert [w.id for w in store.get_wallets()] == [w.id for w in DEFAULT_WALLETS]
    assert store.get_settings().currency == 'BRL'


def test_corrupted_table_is_logged_and_ignored(tmp_path, caplog):
    store = LedgerStore(tmp_path)
    store.get_path('transactions').write_text('{not json', encoding='utf-8')
    with caplog.at_level(logging.WARNING, logger='finance_tracker.storage'):
        assert store.get_transactions() == []
    assert 'transactions' in caplog.text


def test_wrong_shape_and_bad_records_are_skipped(tmp_path):
    store = LedgerStore(tmp_path)
    store.get_path('goals').write_text('{"a": 1}', encoding='utf-8')
    assert store.get_financial_goals() == []

    store.get_path('transactions').write_text(
        json.dumps([_txn('ok').to_dict(), {'amount': 5}, 'junk']), encoding='utf-8'
    )
    assert [t.id for t in store.get_transactions()] == ['ok']


def test_transactions_are_stored_newest_first(tmp_path):
    store = LedgerStore(tmp_path)
    store.add_transaction(_txn('first'))
    result = store.add_transaction(_txn('second'))
    assert [t.id for t in result] == ['second', 'first']
    assert [t.id for t in store.get_transactions()] == ['second', 'first']


def test_update_merges_fields_and_ignores_unknown_ids(tmp_path):
    store = LedgerStore(tmp_path)
    store.add_transaction(_txn('a', amount=10))
    result = store.update_transaction('a', {'amount': 25.0, 'description': 'lunch'})
    assert result[0].amount == 25.0
    assert result[0].description == 'lunch'
    assert result[0].category_id == 'food'

    unchanged = store.update_transaction('missing', {'amount': 1.0})
    assert [t.amount for t in unchanged] == [25.0]


def test_update_rejects_unknown_fields(tmp_path):
    import pytest
    from finance_tracker.errors import ValidationError

    store = LedgerStore(tmp_path)
    store.add_transaction(_txn('a'))
    with pytest.raises(ValidationError):
        store.update_transaction('a', {'colour': 'red'})


def test_delete_filters_by_id(tmp_path):
    store = LedgerStore(tmp_path)
    store.add_transaction(_txn('a'))
    store.add_transaction(_txn('b'))
    assert [t.id for t in store.delete_transaction('a')] == ['b']


def test_adding_a_category_persists_the_defaults_too(tmp_path):
    store = LedgerStore(tmp_path)
    custom = Category('pets', 'Pets', 'Heart', '#000000', 'expense')
    categories = store.add_category(custom)
    assert len(categories) == len(DEFAULT_CATEGORIES) + 1
    assert store.get_categories()[-1].id == 'pets'


def test_write_failure_is_reported_not_raised(tmp_path):
    blocker = tmp_path / 'not-a-dir'
    blocker.write_text('x', encoding='utf-8')
    store = LedgerStore(blocker / 'ledger')
    assert store.write_table('transactions', []) is False
    returned = store.add_transaction(_txn('a'))
    assert returned[0].id == 'a'
    assert store.get_transactions() == []
    assert store.is_persisted('transactions', returned) is False


def test_is_persisted_compares_against_the_table_file(tmp_path):
    store = LedgerStore(tmp_path)
    saved = store.add_transaction(_txn('a'))
    assert store.is_persisted('transactions', saved)
    assert not store.is_persisted('transactions', saved + [_txn('b')])
    assert not store.is_persisted('goals', [])


def test_export_bundles_every_table(tmp_path):
    store = LedgerStore(tmp_path)
    store.add_transaction(_txn('a'))
    data = json.loads(store.export_all_data())
    assert set(data) == {
        'transactions', 'categories', 'goals', 'savingsGoals', 'incomeSources',
        'wallets', 'walletTransactions', 'settings', 'exportedAt',
    }
    assert data['transactions'][0]['id'] == 'a'


def test_import_only_overwrites_tables_present(tmp_path):
    store = LedgerStore(tmp_path)
    store.add_category(Category('pets', 'Pets', 'Heart', '#000000', 'expense'))
    store.add_transaction(_txn('old'))
    categories_before = [c.to_dict() for c in store.get_categories()]

    document = json.dumps({'transactions': [_txn('new').to_dict()]})
    assert store.import_all_data(document) is True

    assert [t.id for t in store.get_transactions()] == ['new']
    assert [c.to_dict() for c in store.get_categories()] == categories_before


def test_import_export_restores_another_store(tmp_path):
    source = LedgerStore(tmp_path / 'a')
    source.add_transaction(_txn('a'))
    target = LedgerStore(tmp_path / 'b')
    assert target.import_all_data(source.export_all_data())
    assert [t.to_dict() for t in target.get_transactions()] == [t.to_dict() for t in source.get_transactions()]


def test_malformed_import_writes_nothing(tmp_path):
    store = LedgerStore(tmp_path)
    store.add_transaction(_txn('keep'))

    assert store.import_all_data('{broken') is False
    assert store.import_all_data('[1, 2]') is False
    bad_table = json.dumps({'transactions': [_txn('new').to_dict()], 'categories': 'nope'})
    assert store.import_all_data(bad_table) is False
    bad_record = json.dumps({'transactions': [{'amount': 'ten', 'id': 'x'}]})
    assert store.import_all_data(bad_record) is False

    assert [t.id for t in store.get_transactions()] == ['keep']
