"""
WSGI / Flask-Migrate entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi db upgrade
    flask --app wsgi render-report report.json -o out.pdf
"""

from orgdesk import create_app

app = create_app()
