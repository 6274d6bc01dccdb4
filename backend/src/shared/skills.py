"""
Skill registry and read-side skill name resolution.

Contributors store only {skillId, level}; names are joined in when a profile
is read, so renaming a skill never rewrites contributor documents.
"""
import uuid
from typing import Any, Dict, List

from .dynamo import DynamoStore
from .errors import DuplicateKeyError, NotFoundError
from .logging import logger
from .validation import validate_skill_name


def find_skill_by_name(store: DynamoStore, name: str):
    matches = store.find_many({'name': name})
    return matches[0] if matches else None


def create_skill(store: DynamoStore, name: str) -> Dict[str, Any]:
    """
    Register a new skill with a generated id.

    The name check is a NameIndex lookup ahead of the insert; two concurrent
    creates of the same name can both pass it.
    """
    name = validate_skill_name(name)
    if find_skill_by_name(store, name):
        raise DuplicateKeyError('Skill already exists')

    skill = store.insert({'id': uuid.uuid4().hex, 'name': name})
    logger.info(f"Created skill {skill['id']} ({name})")
    return skill


def rename_skill(store: DynamoStore, skill_id: str, name: str) -> Dict[str, Any]:
    skill = store.find_by_key(skill_id) if skill_id else None
    if skill is None:
        raise NotFoundError('Skill not found')

    name = validate_skill_name(name)
    if name != skill['name']:
        existing = find_skill_by_name(store, name)
        if existing and existing['id'] != skill_id:
            raise DuplicateKeyError('Skill name already exists')

    return store.update_by_key(skill_id, {'name': name})


def enrich_contributor(contributor: Dict[str, Any], store: DynamoStore) -> Dict[str, Any]:
    """Return a copy of the contributor with each skill entry's display name resolved."""
    entries: List[Dict[str, Any]] = contributor.get('skills') or []
    names = {}
    for skill_id in {e.get('skillId') for e in entries if isinstance(e, dict) and e.get('skillId')}:
        skill = store.find_by_key(skill_id)
        # Deleted skills resolve to None rather than failing the read
        names[skill_id] = skill['name'] if skill else None

    enriched = dict(contributor)
    enriched['skills'] = [
        {**entry, 'name': names.get(entry.get('skillId'))}
        for entry in entries if isinstance(entry, dict)
    ]
    return enriched
