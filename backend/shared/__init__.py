"""
Shared module for code used by the REST API and the CLI.

- shared.config: settings.py, logging.py, constants.py
- shared.infrastructure: db.py, correlation.py, events/ (broadcaster, SSE stream)
- shared.security: auth.py (JWT), rate_limit.py (slowapi)
- shared.utils: exceptions.py, schemas.py

IMPORT EXAMPLES:
    from shared.config.settings import settings
    from shared.infrastructure.db import get_db, safe_commit
    from shared.infrastructure.events import EventBroadcaster, OrderEvent
    from shared.security.auth import current_user_context, require_roles
    from shared.utils.exceptions import NotFoundError, ValidationError
"""
