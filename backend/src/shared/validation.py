"""
Request payload validation.
Each validate_* function returns a cleaned copy of the payload or raises
ValidationError listing every problem found.
"""
import re
from datetime import datetime
from numbers import Number
from typing import Any, Dict, List

from .errors import ValidationError
from .models import SkillLevel, SubmissionStatus, TaskPriority, TaskStatus

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
# Polkadot (SS58, base58 starting with 1 or 5) or Ethereum (0x + 40 hex)
POLKADOT_PATTERN = re.compile(r'^[15][1-9A-HJ-NP-Za-km-z]+$')
ETHEREUM_PATTERN = re.compile(r'^0x[0-9a-fA-F]{40}$')

MAX_SKILL_NAME_LENGTH = 100

TASK_REQUIRED_FIELDS = ['title', 'sponsorId', 'logo', 'description', 'deadline', 'reward', 'postedTime']
TASK_LIST_FIELDS = ['requirements', 'deliverables', 'category', 'skills']
SUBMISSION_REQUIRED_FIELDS = ['taskId', 'walletAddress', 'submissionTime']
SPONSOR_REQUIRED_FIELDS = ['walletAddress', 'name', 'logo', 'description']

# Owned by the integrity coordinator, never accepted from clients
TASK_MANAGED_FIELDS = ('id', 'submissions', 'createdAt', 'updatedAt')
SPONSOR_MANAGED_FIELDS = ('taskIds', 'registeredAt', 'verified', 'createdAt', 'updatedAt')
CONTRIBUTOR_MANAGED_FIELDS = ('taskIds', 'joinDate', 'createdAt', 'updatedAt')


def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and EMAIL_PATTERN.match(email) is not None


def is_valid_wallet_address(address: Any) -> bool:
    if not isinstance(address, str):
        return False
    return POLKADOT_PATTERN.match(address) is not None or ETHEREUM_PATTERN.match(address) is not None


def is_valid_date(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        datetime.fromisoformat(value.replace('Z', '+00:00'))
        return True
    except ValueError:
        return False


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _fail(errors: List[str]) -> None:
    if errors:
        raise ValidationError('; '.join(errors), details={'errors': errors})


def _require_dict(payload: Any, name: str) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError(f'{name} is required')
    return payload


def validate_task(task: Any, is_update: bool = False) -> Dict[str, Any]:
    """Validate a task payload for creation (all fields) or update (present fields only)."""
    task = _require_dict(task, 'Task')
    errors = []

    if not is_update:
        missing = [f for f in TASK_REQUIRED_FIELDS if task.get(f) in (None, '')]
        if missing:
            errors.append(f"Missing required fields: {', '.join(missing)}")

    if task.get('sponsorId') is not None and not is_valid_wallet_address(task['sponsorId']):
        errors.append('Valid sponsor wallet address is required')
    for field in ('title', 'description', 'logo'):
        if task.get(field) is not None and not isinstance(task[field], str):
            errors.append(f'Task {field} must be a string')
    for field in ('deadline', 'postedTime'):
        if task.get(field) is not None and not is_valid_date(task[field]):
            errors.append(f'Invalid {field} date')
    if task.get('reward') is not None and (not _is_number(task['reward']) or task['reward'] < 0):
        errors.append('Reward must be a positive number')
    if task.get('maxAccepted') is not None and (not _is_number(task['maxAccepted']) or task['maxAccepted'] < 1):
        errors.append('maxAccepted must be a positive number')
    if task.get('status') is not None and task['status'] not in TaskStatus.ALL:
        errors.append('Invalid status value')
    if task.get('priority') is not None and task['priority'] not in TaskPriority.ALL:
        errors.append('Invalid priority value')
    for field in TASK_LIST_FIELDS:
        if task.get(field) is not None and not isinstance(task[field], list):
            errors.append(f'{field} must be an array')
    if isinstance(task.get('deliverables'), list) and not task['deliverables']:
        errors.append('Deliverables array cannot be empty')

    _fail(errors)
    return {k: v for k, v in task.items() if k not in TASK_MANAGED_FIELDS}


def validate_submission(submission: Any) -> Dict[str, Any]:
    submission = _require_dict(submission, 'Submission')
    errors = []

    missing = [f for f in SUBMISSION_REQUIRED_FIELDS if not submission.get(f)]
    if missing:
        errors.append(f"Missing required fields: {', '.join(missing)}")

    if submission.get('walletAddress') and not is_valid_wallet_address(submission['walletAddress']):
        errors.append('Invalid wallet address format')
    if submission.get('submissionTime') and not is_valid_date(submission['submissionTime']):
        errors.append('Invalid submission time')
    if submission.get('reviewTime') and not is_valid_date(submission['reviewTime']):
        errors.append('Invalid review time')
    if submission.get('status') is not None and submission['status'] not in SubmissionStatus.ALL:
        errors.append('Invalid status value')

    rating = submission.get('rating')
    if rating is not None and (not _is_number(rating) or rating < 0 or rating > 5):
        errors.append('Rating must be a number between 0 and 5')

    if 'isAccepted' in submission and not isinstance(submission['isAccepted'], bool):
        errors.append('isAccepted must be a boolean')
    if submission.get('content') is not None and not isinstance(submission['content'], list):
        errors.append('content must be an array')

    _fail(errors)
    return {k: v for k, v in submission.items() if k not in ('id', 'createdAt', 'updatedAt')}


def validate_sponsor(profile: Any, is_update: bool = False) -> Dict[str, Any]:
    profile = _require_dict(profile, 'Sponsor profile')
    errors = []

    if not is_update:
        missing = [f for f in SPONSOR_REQUIRED_FIELDS if not profile.get(f)]
        if missing:
            errors.append(f"Missing required fields: {', '.join(missing)}")

    if profile.get('walletAddress') and not is_valid_wallet_address(profile['walletAddress']):
        errors.append('Invalid wallet address format')
    if profile.get('contactEmail') and not is_valid_email(profile['contactEmail']):
        errors.append('Invalid contact email format')
    if profile.get('categories') is not None and not isinstance(profile['categories'], list):
        errors.append('categories must be an array')

    _fail(errors)
    return {k: v for k, v in profile.items() if k not in SPONSOR_MANAGED_FIELDS}


def validate_contributor(profile: Any, is_update: bool = False) -> Dict[str, Any]:
    profile = _require_dict(profile, 'Contributor profile')
    errors = []

    if not is_update:
        if not is_valid_email(profile.get('email')):
            errors.append('Invalid email format')
        if not profile.get('displayName'):
            errors.append('Display name is required')
        if not is_valid_wallet_address(profile.get('walletAddress')):
            errors.append('Invalid wallet address format')
    else:
        if profile.get('walletAddress') and not is_valid_wallet_address(profile['walletAddress']):
            errors.append('Invalid wallet address format')

    for field in ('website', 'x', 'discord', 'telegram', 'bio'):
        if profile.get(field) is not None and not isinstance(profile[field], str):
            errors.append(f'{field} must be a string')
    for field in ('contactPreferences', 'preferences', 'reputation', 'contributionStats'):
        if profile.get(field) is not None and not isinstance(profile[field], dict):
            errors.append(f'{field} must be an object')

    skills = profile.get('skills')
    if skills is not None:
        if not isinstance(skills, list):
            errors.append('skills must be an array')
        else:
            for index, entry in enumerate(skills, start=1):
                if not isinstance(entry, dict) or not entry.get('skillId'):
                    errors.append(f'Skill {index} must reference a skillId')
                elif entry.get('level') not in SkillLevel.ALL:
                    errors.append(f'Invalid skill level for skill {index}')

    _fail(errors)
    return {k: v for k, v in profile.items() if k not in CONTRIBUTOR_MANAGED_FIELDS}


def validate_skill_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('Skill name is required and must be a non-empty string')
    name = name.strip()
    if len(name) > MAX_SKILL_NAME_LENGTH:
        raise ValidationError(f'Skill name must be less than {MAX_SKILL_NAME_LENGTH} characters')
    return name
