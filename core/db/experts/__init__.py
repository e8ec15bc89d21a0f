"""
Expert accounts: profile records, password hashing and login sessions.
"""
from core.db.experts.auth import hash_password, verify_password
from core.db.experts.expert_store import (
    create_expert,
    delete_experts,
    get_credentials_by_email,
    get_deleted_experts,
    get_expert_by_email,
    get_expert_by_id,
    list_experts,
    update_expert,
)
from core.db.experts.sessions import (
    SESSION_TIMEOUT_MINUTES,
    create_session,
    delete_session,
    get_session,
    touch_session,
)

__all__ = [
    "hash_password",
    "verify_password",
    "create_expert",
    "delete_experts",
    "get_credentials_by_email",
    "get_deleted_experts",
    "get_expert_by_email",
    "get_expert_by_id",
    "list_experts",
    "update_expert",
    "SESSION_TIMEOUT_MINUTES",
    "create_session",
    "delete_session",
    "get_session",
    "touch_session",
]
