# Worker / beat entrypoint:
#   celery -A celery_app worker --loglevel=info
#   celery -A celery_app beat --loglevel=info
from app.core.celery_app import celery_app

__all__ = ["celery_app"]
