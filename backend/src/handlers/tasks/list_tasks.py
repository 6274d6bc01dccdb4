"""
List Sponsor Tasks Handler.
GET /sponsors/tasks?status=open

Lists the calling sponsor's own tasks via the SponsorIndex, optionally
filtered by status.
"""
from shared.auth import get_claims
from shared.dynamo import task_store
from shared.errors import ValidationError
from shared.guard import require_role
from shared.models import Role, TaskStatus
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, get_query_param


@api_handler
def handler(event, context):
    claims = require_role(get_claims(event, get_token_codec()), Role.SPONSOR)

    status = get_query_param(event, 'status')
    if status is not None and status not in TaskStatus.ALL:
        raise ValidationError('Invalid status value')

    tasks = task_store().find_many({'sponsorId': claims.subject_id, 'status': status})

    return format_response(200, {'tasks': tasks, 'count': len(tasks)})
