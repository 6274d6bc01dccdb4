"""
Delete Task Handler.
DELETE /tasks/{id}

Refused with 400 while the task still has submissions.
"""
from shared.auth import get_claims
from shared.errors import ValidationError
from shared.guard import require_permission, require_role
from shared.integrity import get_coordinator
from shared.models import Permission, Role
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, get_path_param


@api_handler
def handler(event, context):
    claims = require_role(get_claims(event, get_token_codec()), Role.SPONSOR)
    require_permission(claims, Permission.WRITE_TASKS)

    task_id = get_path_param(event, 'id')
    if not task_id:
        raise ValidationError('Task ID is required')

    get_coordinator().delete_task(task_id, claims.subject_id)

    return format_response(200, {
        'message': 'Task deleted successfully',
        'taskId': task_id
    })
