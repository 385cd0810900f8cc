"""
Identity provider (Firebase Authentication) client
"""
from __future__ import annotations

import json
import os
import threading
from typing import Optional

import firebase_admin
import structlog
from firebase_admin import auth, credentials, exceptions as firebase_exceptions

from quizrush.errors import ProviderError
from quizrush.services.monitoring import IDENTITY_REQUESTS

logger = structlog.get_logger()


class IdentityProvider:
    """Create, delete and update users by uid; the Firebase app is initialized on first use"""

    def __init__(self, service_account: Optional[str] = None, app_name: str = "quizrush"):
        self.service_account = service_account
        self.app_name = app_name
        self._app = None
        self._lock = threading.Lock()

    def _credentials(self):
        if not self.service_account:
            raise ProviderError("Identity provider is not configured", details="FIREBASE_SERVICE_ACCOUNT not set")
        if os.path.isfile(self.service_account):
            return credentials.Certificate(self.service_account)
        return credentials.Certificate(json.loads(self.service_account))

    def _get_app(self):
        with self._lock:
            if self._app is None:
                self._app = firebase_admin.initialize_app(self._credentials(), name=self.app_name)
                logger.info("firebase_app_initialized", app_name=self.app_name)
        return self._app

    def _call(self, operation: str, func, *args, **kwargs):
        app = self._get_app()
        try:
            result = func(*args, app=app, **kwargs)
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            IDENTITY_REQUESTS.labels(operation=operation, status="error").inc()
            logger.error("identity_request_failed", operation=operation, error=str(e))
            raise ProviderError(f"Failed to {operation.replace('_', ' ')}", details=str(e)) from e
        IDENTITY_REQUESTS.labels(operation=operation, status="success").inc()
        return result

    def create_user(self, email: str, password: str) -> str:
        record = self._call("create_user", auth.create_user, email=email, password=password)
        logger.info("user_created", uid=record.uid)
        return record.uid

    def delete_user(self, uid: str) -> None:
        self._call("delete_user", auth.delete_user, uid)
        logger.info("user_deleted", uid=uid)

    def update_email(self, uid: str, new_email: str) -> None:
        self._call("update_email", auth.update_user, uid, email=new_email)
        logger.info("user_email_updated", uid=uid)
