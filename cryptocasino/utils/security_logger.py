"""
Audit logging for authentication, money movement, game rounds and admin actions.
Each event is a single JSON document appended to the application log.
"""

import logging
from datetime import datetime, timezone
from flask import current_app, g, request
import json


def _request_context():
    """Request id and client address, or placeholders outside a request."""
    try:
        return g.get('request_id', 'N/A'), request.remote_addr
    except RuntimeError:
        return 'N/A', None


class SecurityLogger:
    """Centralized audit event logging"""

    @staticmethod
    def _emit(level, prefix, event_data):
        request_id, ip_address = _request_context()
        event_data.update({
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'request_id': request_id,
            'ip_address': ip_address,
        })
        current_app.logger.log(level, f"{prefix}: {json.dumps(event_data, default=str)}")

    @staticmethod
    def log_authentication_event(event_type: str, user_id: int = None, username: str = None,
                                 success: bool = True, details: dict = None):
        SecurityLogger._emit(
            logging.INFO if success else logging.WARNING,
            'AUTH_EVENT',
            {
                'event_type': 'authentication',
                'sub_type': event_type,
                'user_id': user_id,
                'username': username,
                'success': success,
                'details': details or {},
            }
        )

    @staticmethod
    def log_financial_event(event_type: str, user_id: int, amount: int = None,
                            balance_after: int = None, transaction_id: int = None,
                            details: dict = None):
        """Amounts are in cents."""
        SecurityLogger._emit(
            logging.INFO,
            'FINANCIAL_EVENT',
            {
                'event_type': 'financial',
                'sub_type': event_type,
                'user_id': user_id,
                'amount_cents': amount,
                'balance_after_cents': balance_after,
                'transaction_id': transaction_id,
                'details': details or {},
            }
        )

    @staticmethod
    def log_game_event(event_type: str, user_id: int, game_type: str = None,
                       bet_amount: int = None, win_amount: int = None,
                       game_session_id: int = None, details: dict = None):
        SecurityLogger._emit(
            logging.INFO,
            'GAME_EVENT',
            {
                'event_type': 'game',
                'sub_type': event_type,
                'user_id': user_id,
                'game_type': game_type,
                'bet_amount_cents': bet_amount,
                'win_amount_cents': win_amount,
                'game_session_id': game_session_id,
                'details': details or {},
            }
        )

    @staticmethod
    def log_admin_event(event_type: str, admin_user_id: int, target_user_id: int = None,
                        action: str = None, details: dict = None):
        SecurityLogger._emit(
            logging.WARNING,
            'ADMIN_EVENT',
            {
                'event_type': 'admin',
                'sub_type': event_type,
                'admin_user_id': admin_user_id,
                'target_user_id': target_user_id,
                'action': action,
                'details': details or {},
            }
        )
