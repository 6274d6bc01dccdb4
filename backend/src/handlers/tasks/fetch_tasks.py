"""
Fetch Tasks Handler.
POST /tasks/fetch

Body: { "ids": ["id1", "id2"] } for specific tasks, or { "ids": ["*"] } for
every task. Missing ids are skipped.
"""
from shared.auth import get_claims
from shared.dynamo import task_store
from shared.errors import NotFoundError, ValidationError
from shared.guard import require_permission
from shared.models import Permission
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body

ALL_TASKS = '*'


@api_handler
def handler(event, context):
    require_permission(get_claims(event, get_token_codec()), Permission.READ_TASKS)

    ids = parse_body(event).get('ids')
    if not isinstance(ids, list) or not ids:
        raise ValidationError('ids must be a non-empty array')

    store = task_store()
    if ALL_TASKS in ids:
        tasks = store.find_many()
    else:
        tasks = store.find_by_keys(str(task_id) for task_id in ids)

    if not tasks:
        raise NotFoundError('No tasks found')

    return format_response(200, {'tasks': tasks, 'count': len(tasks)})
