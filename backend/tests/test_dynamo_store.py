"""
Tests for DynamoStore against a mocked boto3 Table.
"""
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from shared.dynamo import DynamoStore, to_dynamo
from shared.errors import DuplicateKeyError, NotFoundError, StoreError, ValidationError


def client_error(code, operation='UpdateItem'):
    return ClientError({'Error': {'Code': code, 'Message': code}}, operation)


@pytest.fixture
def table():
    return MagicMock()


@pytest.fixture
def task_store(table):
    return DynamoStore(
        'tasks', 'id',
        entity='Task',
        indexes={'sponsorId': 'SponsorIndex'},
        set_attributes=('submissions',),
        table=table
    )


class TestReads:

    def test_find_by_key_normalizes_sets(self, task_store, table):
        table.get_item.return_value = {'Item': {'id': 't1', 'submissions': {'s2', 's1'}}}

        item = task_store.find_by_key('t1')

        table.get_item.assert_called_once_with(Key={'id': 't1'})
        assert item['submissions'] == ['s1', 's2']

    def test_find_by_key_missing_set_reads_as_empty_list(self, task_store, table):
        table.get_item.return_value = {'Item': {'id': 't1'}}

        assert task_store.find_by_key('t1')['submissions'] == []

    def test_find_by_key_absent(self, task_store, table):
        table.get_item.return_value = {}

        assert task_store.find_by_key('nope') is None

    def test_find_many_uses_index(self, task_store, table):
        table.query.return_value = {'Items': [{'id': 't1', 'sponsorId': 'w'}]}

        items = task_store.find_many({'sponsorId': 'w', 'status': 'open'})

        table.scan.assert_not_called()
        kwargs = table.query.call_args.kwargs
        assert kwargs['IndexName'] == 'SponsorIndex'
        assert 'KeyConditionExpression' in kwargs
        assert 'FilterExpression' in kwargs
        assert [i['id'] for i in items] == ['t1']

    def test_find_many_scans_without_index(self, task_store, table):
        table.scan.return_value = {'Items': []}

        task_store.find_many({'status': 'open'})

        table.query.assert_not_called()
        assert 'FilterExpression' in table.scan.call_args.kwargs

    def test_find_many_ignores_none_filters(self, task_store, table):
        table.scan.return_value = {'Items': []}

        task_store.find_many({'status': None})

        assert table.scan.call_args.kwargs == {}

    def test_find_many_follows_pagination(self, task_store, table):
        table.scan.side_effect = [
            {'Items': [{'id': 't1'}], 'LastEvaluatedKey': {'id': 't1'}},
            {'Items': [{'id': 't2'}]},
        ]

        items = task_store.find_many()

        assert [i['id'] for i in items] == ['t1', 't2']
        assert table.scan.call_args_list[1].kwargs['ExclusiveStartKey'] == {'id': 't1'}

    def test_find_by_keys_skips_missing(self, task_store, table):
        table.get_item.side_effect = lambda Key: {'Item': {'id': Key['id']}} if Key['id'] == 't1' else {}

        items = task_store.find_by_keys(['t1', 'missing', 't1'])

        assert [i['id'] for i in items] == ['t1']
        assert table.get_item.call_count == 2


class TestInsert:

    def test_conditional_put_with_timestamps(self, task_store, table):
        task_store.insert({'id': 't1', 'reward': 1.5, 'submissions': []})

        kwargs = table.put_item.call_args.kwargs
        assert kwargs['ConditionExpression'] == 'attribute_not_exists(#k)'
        assert kwargs['ExpressionAttributeNames'] == {'#k': 'id'}
        item = kwargs['Item']
        assert item['reward'] == Decimal('1.5')
        assert 'submissions' not in item  # empty sets are not stored
        assert item['createdAt'] == item['updatedAt']

    def test_non_empty_set_stored_as_set(self, task_store, table):
        created = task_store.insert({'id': 't1', 'submissions': ['s1']})

        assert table.put_item.call_args.kwargs['Item']['submissions'] == {'s1'}
        assert created['submissions'] == ['s1']

    def test_duplicate_key(self, task_store, table):
        table.put_item.side_effect = client_error('ConditionalCheckFailedException', 'PutItem')

        with pytest.raises(DuplicateKeyError) as exc_info:
            task_store.insert({'id': 't1'})
        assert exc_info.value.message == 'Task already exists'

    def test_missing_key(self, task_store, table):
        with pytest.raises(StoreError):
            task_store.insert({'title': 'no id'})
        table.put_item.assert_not_called()

    def test_other_client_error_is_store_error(self, task_store, table):
        table.put_item.side_effect = client_error('ProvisionedThroughputExceededException', 'PutItem')

        with pytest.raises(StoreError) as exc_info:
            task_store.insert({'id': 't1'})
        assert 'Throughput' not in exc_info.value.message


class TestUpdateAndDelete:

    def test_update_sets_fields_and_protects_managed_ones(self, task_store, table):
        table.update_item.return_value = {'Attributes': {'id': 't1', 'title': 'New'}}

        task_store.update_by_key('t1', {'title': 'New', 'id': 'x', 'submissions': ['s9'], 'createdAt': 'x'})

        kwargs = table.update_item.call_args.kwargs
        assert kwargs['Key'] == {'id': 't1'}
        assert kwargs['ConditionExpression'] == 'attribute_exists(#k)'
        assert kwargs['UpdateExpression'] == 'SET #updatedAt = :updatedAt, #f0 = :v0'
        assert kwargs['ExpressionAttributeNames']['#f0'] == 'title'
        assert kwargs['ExpressionAttributeValues'][':v0'] == 'New'

    def test_update_missing_item(self, task_store, table):
        table.update_item.side_effect = client_error('ConditionalCheckFailedException')

        with pytest.raises(NotFoundError):
            task_store.update_by_key('nope', {'title': 'x'})

    def test_delete_returns_old_item(self, task_store, table):
        table.delete_item.return_value = {'Attributes': {'id': 't1', 'sponsorId': 'w'}}

        deleted = task_store.delete_by_key('t1')

        assert table.delete_item.call_args.kwargs['ReturnValues'] == 'ALL_OLD'
        assert deleted['sponsorId'] == 'w'

    def test_delete_missing_item(self, task_store, table):
        table.delete_item.side_effect = client_error('ConditionalCheckFailedException', 'DeleteItem')

        with pytest.raises(NotFoundError):
            task_store.delete_by_key('t1')

    def test_delete_requiring_empty_set(self, task_store, table):
        table.delete_item.return_value = {'Attributes': {'id': 't1'}}

        task_store.delete_by_key('t1', require_empty=('submissions',))

        kwargs = table.delete_item.call_args.kwargs
        assert kwargs['ConditionExpression'] == 'attribute_exists(#k) AND attribute_not_exists(#e0)'
        assert kwargs['ExpressionAttributeNames'] == {'#k': 'id', '#e0': 'submissions'}

    def test_delete_refused_while_set_has_members(self, task_store, table):
        table.delete_item.side_effect = client_error('ConditionalCheckFailedException', 'DeleteItem')
        table.get_item.return_value = {'Item': {'id': 't1', 'submissions': {'s1'}}}

        with pytest.raises(ValidationError) as exc_info:
            task_store.delete_by_key('t1', require_empty=('submissions',))
        assert exc_info.value.details == {'attributes': ['submissions']}

    def test_delete_requiring_empty_set_on_missing_item(self, task_store, table):
        table.delete_item.side_effect = client_error('ConditionalCheckFailedException', 'DeleteItem')
        table.get_item.return_value = {}

        with pytest.raises(NotFoundError):
            task_store.delete_by_key('t1', require_empty=('submissions',))

    def test_require_empty_only_on_set_attributes(self, task_store, table):
        with pytest.raises(StoreError):
            task_store.delete_by_key('t1', require_empty=('title',))
        table.delete_item.assert_not_called()


class TestSetMutations:
    """Back-reference sets are only ever changed through ADD / DELETE."""

    def test_add_to_set(self, task_store, table):
        table.update_item.return_value = {'Attributes': {'id': 't1', 'submissions': {'s1'}}}

        result = task_store.add_to_set('t1', 'submissions', 's1')

        kwargs = table.update_item.call_args.kwargs
        assert kwargs['UpdateExpression'].startswith('ADD #a :v')
        assert kwargs['ExpressionAttributeNames']['#a'] == 'submissions'
        assert kwargs['ExpressionAttributeValues'][':v'] == {'s1'}
        assert kwargs['ConditionExpression'] == 'attribute_exists(#k)'
        assert result['submissions'] == ['s1']

    def test_remove_from_set(self, task_store, table):
        table.update_item.return_value = {'Attributes': {'id': 't1'}}

        result = task_store.remove_from_set('t1', 'submissions', 's1')

        assert table.update_item.call_args.kwargs['UpdateExpression'].startswith('DELETE #a :v')
        assert result['submissions'] == []

    def test_set_mutation_on_missing_parent(self, task_store, table):
        table.update_item.side_effect = client_error('ConditionalCheckFailedException')

        with pytest.raises(NotFoundError):
            task_store.add_to_set('gone', 'submissions', 's1')

    def test_only_declared_set_attributes(self, task_store, table):
        with pytest.raises(StoreError):
            task_store.add_to_set('t1', 'title', 'x')
        table.update_item.assert_not_called()


def test_to_dynamo_converts_nested_floats():
    assert to_dynamo({'a': [1.25, {'b': 2.0}], 'c': 3}) == {'a': [Decimal('1.25'), {'b': Decimal('2.0')}], 'c': 3}
