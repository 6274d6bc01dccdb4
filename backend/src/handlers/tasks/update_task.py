"""
Update Task Handler.
PUT /tasks/update
"""
from shared.auth import get_claims
from shared.errors import ValidationError
from shared.guard import require_permission, require_role
from shared.integrity import get_coordinator
from shared.models import Permission, Role
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body
from shared.validation import validate_task


@api_handler
def handler(event, context):
    """Body: { "task": { "id": "...", ...fields to change... } }"""
    claims = require_role(get_claims(event, get_token_codec()), Role.SPONSOR)
    require_permission(claims, Permission.WRITE_TASKS)

    body = parse_body(event)
    task = body.get('task')
    task_id = task.get('id') if isinstance(task, dict) else None
    if not task_id:
        raise ValidationError('Task ID is required')

    patch = validate_task(task, is_update=True)
    updated = get_coordinator().update_task(task_id, patch, claims.subject_id)

    return format_response(200, {
        'message': 'Task updated successfully',
        'task': updated
    })
