"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in orgdesk/__init__.py with no default
limits; this module applies granular limits per route category.

Usage:
    from orgdesk.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# Each request launches a headless browser
REPORT_LIMIT = "10/minute"
PUBLIC_LIMIT = "60/minute"
ADMIN_LIMIT = "120/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - PDF export / batch generation:  10/minute
        - Public form + verification:     60/minute
        - Workspace administration:      120/minute
        - Health check:                  exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    for bp_name in ("export_bp", "report_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(REPORT_LIMIT)(bp)

    for bp_name in ("public_forms_bp", "verify_bp", "verify_page_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(PUBLIC_LIMIT)(bp)

    bp = app.blueprints.get("workspace_bp")
    if bp:
        limiter.limit(ADMIN_LIMIT)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured - reports: %s, public: %s, admin: %s",
        REPORT_LIMIT, PUBLIC_LIMIT, ADMIN_LIMIT,
    )
