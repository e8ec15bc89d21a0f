# Quick reference commands (run from repo root). These are comments only; copy/paste as needed.

# Install the app with test dependencies (includes httpx for TestClient)
# python -m pip install -e ".[test]"

# Run the full test suite (Postgres tests are skipped unless DATABASE_URL is set)
# python -m pytest

# Run focused test files
# python -m pytest tests/test_entitlements.py tests/test_matching.py
# python -m pytest tests/test_inventory.py tests/test_alert_dispatch.py
# python -m pytest tests/test_books.py tests/test_profiles.py tests/test_listing.py
# python -m pytest tests/test_security_headers.py
# python -m pytest tests/test_security_auth.py
# python -m pytest tests/test_session_and_rate_limits.py
# python -m pytest tests/test_routes.py tests/test_wishlist.py
# DATABASE_URL=postgresql://localhost/bookdocker_test python -m pytest tests/test_expert_store.py

# Start the app locally (with env vars loaded)
# python -m dotenv run -- python -m uvicorn app.api:app --reload
# python main.py

# Seed/refresh the admin account on startup
# ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=... python main.py

# Hide the demo experts on a real installation
# SHOW_EXAMPLE_EXPERTS=false python main.py

# Reuse the expert snapshot for up to 30 seconds when matching new books
# SNAPSHOT_MAX_AGE_SECONDS=30 python main.py
