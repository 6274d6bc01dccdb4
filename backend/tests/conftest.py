"""
Shared fixtures: in-memory stores, token helpers and API Gateway events.
"""
import json
import os
import sys

import pytest

os.environ['AUTH_SECRET'] = 'test-secret'
os.environ.setdefault('AWS_REGION', 'us-east-1')
os.environ.setdefault('SPONSORS_TABLE', 'test-sponsors')
os.environ.setdefault('CONTRIBUTORS_TABLE', 'test-contributors')
os.environ.setdefault('SKILLS_TABLE', 'test-skills')
os.environ.setdefault('TASKS_TABLE', 'test-tasks')
os.environ.setdefault('SUBMISSIONS_TABLE', 'test-submissions')

# Add src to path for import
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from shared.errors import DuplicateKeyError, NotFoundError, ValidationError  # noqa: E402
from shared.integrity import IntegrityCoordinator  # noqa: E402
from shared.models import ROLE_PERMISSIONS, Role  # noqa: E402
from shared.tokens import TokenCodec  # noqa: E402

SPONSOR_WALLET = '0x' + 'a' * 40
OTHER_WALLET = '0x' + 'b' * 40
CONTRIBUTOR_WALLET = '0x' + 'c' * 40
CONTRIBUTOR_EMAIL = 'dev@example.com'
OTHER_EMAIL = 'other@example.com'


class FakeStore:
    """
    In-memory stand-in for DynamoStore with the same contract:
    conditional insert, attribute_exists on update/delete, set attributes
    read back as sorted lists.
    """

    def __init__(self, key, entity='Item', set_attributes=()):
        self.key = key
        self.entity = entity
        self.set_attributes = tuple(set_attributes)
        self.items = {}
        self.fail_on = {}

    def _check(self, operation):
        error = self.fail_on.get(operation)
        if error is not None:
            raise error

    def _read(self, item):
        result = dict(item)
        for attr in self.set_attributes:
            result[attr] = sorted(result.get(attr) or [])
        return result

    def find_by_key(self, key):
        self._check('find_by_key')
        item = self.items.get(key)
        return self._read(item) if item else None

    def find_many(self, filter=None):
        conditions = {k: v for k, v in (filter or {}).items() if v is not None}
        return [
            self._read(item) for item in self.items.values()
            if all(item.get(k) == v for k, v in conditions.items())
        ]

    def find_by_keys(self, keys):
        return [self._read(self.items[k]) for k in dict.fromkeys(keys) if k in self.items]

    def insert(self, item):
        self._check('insert')
        key = item[self.key]
        if key in self.items:
            raise DuplicateKeyError(f'{self.entity} already exists')
        record = {}
        for attr, value in item.items():
            if attr in self.set_attributes:
                if value:
                    record[attr] = set(value)
                continue
            record[attr] = value
        record['createdAt'] = record['updatedAt'] = '2024-01-01T00:00:00+00:00'
        self.items[key] = record
        return self._read(record)

    def update_by_key(self, key, patch):
        self._check('update_by_key')
        if key not in self.items:
            raise NotFoundError(f'{self.entity} not found')
        protected = (self.key,) + self.set_attributes + ('createdAt', 'updatedAt')
        self.items[key].update({k: v for k, v in patch.items() if k not in protected})
        return self._read(self.items[key])

    def delete_by_key(self, key, require_empty=()):
        self._check('delete_by_key')
        if key not in self.items:
            raise NotFoundError(f'{self.entity} not found')
        if any(self.items[key].get(attr) for attr in require_empty):
            raise ValidationError(f"{self.entity} still has {', '.join(require_empty)}")
        return self._read(self.items.pop(key))

    def add_to_set(self, key, attribute, value):
        self._check('add_to_set')
        if key not in self.items:
            raise NotFoundError(f'{self.entity} not found')
        self.items[key].setdefault(attribute, set()).add(value)
        return self._read(self.items[key])

    def remove_from_set(self, key, attribute, value):
        self._check('remove_from_set')
        if key not in self.items:
            raise NotFoundError(f'{self.entity} not found')
        remaining = self.items[key].get(attribute, set()) - {value}
        if remaining:
            self.items[key][attribute] = remaining
        else:
            # DynamoDB drops a set attribute once it is empty
            self.items[key].pop(attribute, None)
        return self._read(self.items[key])


@pytest.fixture
def stores():
    return {
        'sponsors': FakeStore('walletAddress', 'Sponsor', set_attributes=('taskIds',)),
        'contributors': FakeStore('email', 'Contributor', set_attributes=('taskIds',)),
        'skills': FakeStore('id', 'Skill'),
        'tasks': FakeStore('id', 'Task', set_attributes=('submissions',)),
        'submissions': FakeStore('id', 'Submission'),
    }


@pytest.fixture
def coordinator(stores):
    counter = iter(range(1, 1000))
    return IntegrityCoordinator(
        sponsors=stores['sponsors'],
        tasks=stores['tasks'],
        submissions=stores['submissions'],
        contributors=stores['contributors'],
        skills=stores['skills'],
        id_factory=lambda: f'id-{next(counter)}',
    )


@pytest.fixture
def submitters(stores):
    """Two registered contributors, one per test wallet."""
    return [
        stores['contributors'].insert({'email': CONTRIBUTOR_EMAIL, 'walletAddress': CONTRIBUTOR_WALLET}),
        stores['contributors'].insert({'email': OTHER_EMAIL, 'walletAddress': OTHER_WALLET}),
    ]


@pytest.fixture
def codec():
    return TokenCodec('test-secret')


@pytest.fixture
def sponsor_token(codec):
    return codec.issue({
        'subjectId': SPONSOR_WALLET,
        'role': Role.SPONSOR,
        'permissions': ROLE_PERMISSIONS[Role.SPONSOR],
    })


@pytest.fixture
def contributor_token(codec):
    return codec.issue({
        'subjectId': CONTRIBUTOR_EMAIL,
        'role': Role.CONTRIBUTOR,
        'permissions': ROLE_PERMISSIONS[Role.CONTRIBUTOR],
    })


def make_sponsor(wallet=SPONSOR_WALLET, **extra):
    return {
        'walletAddress': wallet,
        'name': 'Acme',
        'logo': 'https://example.com/logo.png',
        'description': 'We build things',
        **extra,
    }


def make_task_input(sponsor_id=SPONSOR_WALLET, **extra):
    return {
        'title': 'Build a widget',
        'sponsorId': sponsor_id,
        'logo': 'https://example.com/logo.png',
        'description': 'A widget, built',
        'deadline': '2030-01-01T00:00:00Z',
        'reward': 100,
        'postedTime': '2024-01-01T00:00:00Z',
        'deliverables': ['source code'],
        **extra,
    }


def make_submission_input(task_id, wallet=CONTRIBUTOR_WALLET, **extra):
    return {
        'taskId': task_id,
        'walletAddress': wallet,
        'submissionTime': '2024-02-01T00:00:00Z',
        'content': ['https://example.com/pr/1'],
        **extra,
    }


def make_event(body=None, token=None, cookie_token=None, headers=None, path=None, query=None):
    """Build an API Gateway proxy event."""
    event_headers = dict(headers or {})
    if token:
        event_headers['Authorization'] = f'Bearer {token}'
    if cookie_token:
        event_headers['Cookie'] = f'next-auth.session-token={cookie_token}'
    return {
        'headers': event_headers,
        'body': json.dumps(body) if body is not None else None,
        'pathParameters': path,
        'queryStringParameters': query,
    }


def response_body(response):
    return json.loads(response['body'])
