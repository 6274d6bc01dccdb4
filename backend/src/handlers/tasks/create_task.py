"""
Create Task Handler.
POST /tasks/create

Inserts the task and links it into the sponsor's taskIds; the task is
removed again if the link cannot be written.
"""
from shared.auth import get_claims
from shared.guard import require_permission, require_role
from shared.integrity import get_coordinator
from shared.models import Permission, Role
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body
from shared.validation import validate_task


@api_handler
def handler(event, context):
    """
    Body: {
        "task": {
            "title": "...", "sponsorId": "<caller wallet>", "logo": "...",
            "description": "...", "deadline": "ISO-8601", "reward": 100,
            "postedTime": "ISO-8601", "deliverables": ["..."], ...
        }
    }
    """
    claims = require_role(get_claims(event, get_token_codec()), Role.SPONSOR)
    require_permission(claims, Permission.WRITE_TASKS)

    body = parse_body(event)
    task_input = validate_task(body.get('task'))

    task = get_coordinator().create_task(task_input, claims.subject_id)

    return format_response(201, {
        'message': 'Task created successfully',
        'task': task
    })
