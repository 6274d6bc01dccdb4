"""
DynamoDB entity stores.

Each DynamoStore owns one table and addresses items by their natural key.
Back-reference collections (Sponsor.taskIds, Task.submissions, ...) are
string sets mutated only through ADD / DELETE update expressions, so two
concurrent writers never lose each other's updates.
"""
import boto3
from datetime import datetime, timezone
from decimal import Decimal
from functools import reduce
from typing import Any, Dict, Iterable, List, Optional, Sequence
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError
from .config import config
from .errors import DuplicateKeyError, JobBoardError, NotFoundError, StoreError, ValidationError
from .logging import logger

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)

CONDITIONAL_CHECK_FAILED = 'ConditionalCheckFailedException'

# Maintained by the store itself
TIMESTAMP_FIELDS = ('createdAt', 'updatedAt')


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_dynamo(value: Any) -> Any:
    """Convert floats to Decimal (boto3 rejects float) recursively."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamo(v) for v in value]
    return value


def _as_set(value: Any) -> set:
    if isinstance(value, str):
        return {value}
    return set(value)


def _is_condition_failure(error: ClientError) -> bool:
    return error.response.get('Error', {}).get('Code') == CONDITIONAL_CHECK_FAILED


class DynamoStore:
    """CRUD by natural key over a single DynamoDB table."""

    def __init__(
        self,
        table_name: str,
        key: str,
        entity: str = 'Item',
        indexes: Optional[Dict[str, str]] = None,
        set_attributes: Sequence[str] = (),
        table: Any = None
    ):
        """
        Args:
            table_name: Name of the DynamoDB table
            key: Partition key attribute (the natural key)
            entity: Display name used in error messages
            indexes: attribute -> GSI name, used by find_many
            set_attributes: attributes stored as string sets
            table: Pre-built boto3 Table (tests inject a mock here)
        """
        self.table_name = table_name
        self.key = key
        self.entity = entity
        self.indexes = indexes or {}
        self.set_attributes = tuple(set_attributes)
        self.table = table if table is not None else dynamodb.Table(table_name)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_key(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.table.get_item(Key={self.key: key})
        except ClientError as e:
            self._raise_store_error(e, 'get_item')
        item = response.get('Item')
        return self._normalize(item) if item else None

    def find_many(self, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Equality match on every attribute in `filter`.
        Queries a GSI when one of the attributes is indexed, scans otherwise.
        Pages through LastEvaluatedKey so the result is complete.
        """
        conditions = {k: v for k, v in (filter or {}).items() if v is not None}
        index_attr = next((attr for attr in conditions if attr in self.indexes), None)

        params: Dict[str, Any] = {}
        if index_attr:
            params['IndexName'] = self.indexes[index_attr]
            params['KeyConditionExpression'] = Key(index_attr).eq(conditions[index_attr])

        filters = [Attr(attr).eq(to_dynamo(value)) for attr, value in conditions.items() if attr != index_attr]
        if filters:
            params['FilterExpression'] = reduce(lambda a, b: a & b, filters)

        operation = self.table.query if index_attr else self.table.scan
        items = []
        try:
            while True:
                response = operation(**params)
                items.extend(response.get('Items', []))
                last_key = response.get('LastEvaluatedKey')
                if not last_key:
                    break
                params['ExclusiveStartKey'] = last_key
        except ClientError as e:
            self._raise_store_error(e, 'query' if index_attr else 'scan')

        return [self._normalize(item) for item in items]

    def find_by_keys(self, keys: Iterable[str]) -> List[Dict[str, Any]]:
        """Fetch several items by key, silently skipping missing ones."""
        found = []
        for key in dict.fromkeys(keys):
            item = self.find_by_key(key)
            if item:
                found.append(item)
        return found

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """Put a new item; DuplicateKeyError if the natural key is taken."""
        if not item.get(self.key):
            raise StoreError(f"{self.entity} is missing its key '{self.key}'")

        timestamp = now_iso()
        record = {}
        for attr, value in item.items():
            if attr in self.set_attributes:
                # DynamoDB rejects empty sets; a missing set reads back as []
                if value:
                    record[attr] = _as_set(value)
                continue
            record[attr] = to_dynamo(value)
        record['createdAt'] = timestamp
        record['updatedAt'] = timestamp

        try:
            self.table.put_item(
                Item=record,
                ConditionExpression='attribute_not_exists(#k)',
                ExpressionAttributeNames={'#k': self.key}
            )
        except ClientError as e:
            self._raise_for(e, 'put_item', DuplicateKeyError(f"{self.entity} already exists"))

        logger.info(f"Inserted {self.entity} {record[self.key]} into {self.table_name}")
        return self._normalize(record)

    def update_by_key(self, key: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """SET each patched attribute. Key, set attributes and timestamps are not patchable."""
        protected = (self.key,) + self.set_attributes + TIMESTAMP_FIELDS
        fields = {k: v for k, v in patch.items() if k not in protected}

        names = {'#k': self.key, '#updatedAt': 'updatedAt'}
        values = {':updatedAt': now_iso()}
        assignments = ['#updatedAt = :updatedAt']
        for i, (attr, value) in enumerate(fields.items()):
            names[f'#f{i}'] = attr
            values[f':v{i}'] = to_dynamo(value)
            assignments.append(f'#f{i} = :v{i}')

        try:
            response = self.table.update_item(
                Key={self.key: key},
                UpdateExpression='SET ' + ', '.join(assignments),
                ConditionExpression='attribute_exists(#k)',
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues='ALL_NEW'
            )
        except ClientError as e:
            self._raise_for(e, 'update_item', NotFoundError(f"{self.entity} not found"))

        return self._normalize(response.get('Attributes', {}))

    def delete_by_key(self, key: str, require_empty: Sequence[str] = ()) -> Dict[str, Any]:
        """
        Delete and return the removed item so callers can read its references.

        Args:
            key: Natural key of the item
            require_empty: set attributes that must hold no members. DynamoDB
                drops a set once it is empty, so the check is attribute_not_exists
                and is evaluated atomically with the delete.

        Raises:
            NotFoundError: the item does not exist
            ValidationError: one of require_empty still has members
        """
        names = {'#k': self.key}
        conditions = ['attribute_exists(#k)']
        for i, attr in enumerate(require_empty):
            if attr not in self.set_attributes:
                raise StoreError(f"{attr} is not a set attribute of {self.entity}")
            names[f'#e{i}'] = attr
            conditions.append(f'attribute_not_exists(#e{i})')

        try:
            response = self.table.delete_item(
                Key={self.key: key},
                ConditionExpression=' AND '.join(conditions),
                ExpressionAttributeNames=names,
                ReturnValues='ALL_OLD'
            )
        except ClientError as e:
            if require_empty and _is_condition_failure(e) and self.find_by_key(key) is not None:
                raise ValidationError(
                    f"{self.entity} still has {', '.join(require_empty)}",
                    details={'attributes': list(require_empty)}
                ) from e
            self._raise_for(e, 'delete_item', NotFoundError(f"{self.entity} not found"))

        logger.info(f"Deleted {self.entity} {key} from {self.table_name}")
        return self._normalize(response.get('Attributes', {}))

    def add_to_set(self, key: str, attribute: str, value: Any) -> Dict[str, Any]:
        """Atomic set-union. Idempotent; NotFoundError if the item does not exist."""
        return self._update_set('ADD', key, attribute, value)

    def remove_from_set(self, key: str, attribute: str, value: Any) -> Dict[str, Any]:
        """Atomic set-removal. Idempotent; NotFoundError if the item does not exist."""
        return self._update_set('DELETE', key, attribute, value)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _update_set(self, action: str, key: str, attribute: str, value: Any) -> Dict[str, Any]:
        if attribute not in self.set_attributes:
            raise StoreError(f"{attribute} is not a set attribute of {self.entity}")

        try:
            response = self.table.update_item(
                Key={self.key: key},
                UpdateExpression=f'{action} #a :v SET #updatedAt = :updatedAt',
                ConditionExpression='attribute_exists(#k)',
                ExpressionAttributeNames={'#k': self.key, '#a': attribute, '#updatedAt': 'updatedAt'},
                ExpressionAttributeValues={':v': _as_set(value), ':updatedAt': now_iso()},
                ReturnValues='ALL_NEW'
            )
        except ClientError as e:
            self._raise_for(e, 'update_item', NotFoundError(f"{self.entity} not found"))

        return self._normalize(response.get('Attributes', {}))

    def _normalize(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """String sets come back as sorted lists; missing sets as []."""
        result = dict(item)
        for attr in self.set_attributes:
            result[attr] = sorted(result.get(attr) or [])
        return result

    def _raise_for(self, error: ClientError, operation: str, on_condition_failure: JobBoardError):
        if _is_condition_failure(error):
            raise on_condition_failure from error
        self._raise_store_error(error, operation)

    def _raise_store_error(self, error: ClientError, operation: str):
        logger.error(f"DynamoDB {operation} failed on {self.table_name}: {error}")
        raise StoreError() from error


# ----------------------------------------------------------------------
# Store factories, one per table
# ----------------------------------------------------------------------

def sponsor_store() -> DynamoStore:
    return DynamoStore(
        config.SPONSORS_TABLE, 'walletAddress',
        entity='Sponsor',
        set_attributes=('taskIds',)
    )


def contributor_store() -> DynamoStore:
    return DynamoStore(
        config.CONTRIBUTORS_TABLE, 'email',
        entity='Contributor',
        indexes={'walletAddress': 'WalletIndex'},
        set_attributes=('taskIds',)
    )


def skill_store() -> DynamoStore:
    return DynamoStore(
        config.SKILLS_TABLE, 'id',
        entity='Skill',
        indexes={'name': 'NameIndex'}
    )


def task_store() -> DynamoStore:
    return DynamoStore(
        config.TASKS_TABLE, 'id',
        entity='Task',
        indexes={'sponsorId': 'SponsorIndex'},
        set_attributes=('submissions',)
    )


def submission_store() -> DynamoStore:
    return DynamoStore(
        config.SUBMISSIONS_TABLE, 'id',
        entity='Submission',
        indexes={'taskId': 'TaskIndex'}
    )
