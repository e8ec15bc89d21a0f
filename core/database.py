"""
Single import point for the storage layer used by routes and tests.
"""
from core.db.alerts import (  # noqa: F401
    get_alert_deliveries_for_expert,
    get_recent_alert_deliveries,
    record_alert_delivery,
)
from core.db.experts import (  # noqa: F401
    SESSION_TIMEOUT_MINUTES,
    create_expert,
    create_session,
    delete_experts,
    delete_session,
    get_credentials_by_email,
    get_deleted_experts,
    get_expert_by_email,
    get_expert_by_id,
    get_session,
    hash_password,
    list_experts,
    touch_session,
    update_expert,
    verify_password,
)
from core.db.schema import ensure_admin_from_env, init_db  # noqa: F401
