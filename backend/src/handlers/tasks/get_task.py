"""
Get Task Handler.
GET /tasks/{id}
"""
from shared.auth import get_claims
from shared.dynamo import task_store
from shared.errors import NotFoundError
from shared.guard import require_permission
from shared.models import Permission
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, get_path_param


@api_handler
def handler(event, context):
    require_permission(get_claims(event, get_token_codec()), Permission.READ_TASKS)

    task_id = get_path_param(event, 'id')
    task = task_store().find_by_key(task_id) if task_id else None
    if not task:
        raise NotFoundError('Task not found')

    return format_response(200, {'task': task})
