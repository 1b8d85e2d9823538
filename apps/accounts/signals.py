from django.conf import settings
from django.contrib.auth.signals import user_login_failed, user_logged_in
from django.dispatch import receiver
from django.core.cache import cache
import logging

logger = logging.getLogger(__name__)


def rate_limit_settings():
    """``(attempts, window seconds, block seconds)`` read at call time."""
    return (
        getattr(settings, 'LOGIN_RATE_LIMIT_ATTEMPTS', 5),
        getattr(settings, 'LOGIN_RATE_LIMIT_WINDOW_SECONDS', 300),
        getattr(settings, 'LOGIN_RATE_LIMIT_BLOCK_SECONDS', 900),
    )


def client_ip(request):
    if not request:
        return '0.0.0.0'
    xff = request.META.get('HTTP_X_FORWARDED_FOR')
    if xff:
        return xff.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', '0.0.0.0')


def login_identifier(credentials):
    """The email if one was given, otherwise the login code."""
    credentials = credentials or {}
    identifier = credentials.get('email') or credentials.get('login_code') or ''
    return identifier.strip().lower()


def block_key(ip, identifier):
    return f"login_block:{ip}:{identifier}" if identifier else f"login_block:{ip}"


def fail_key(ip, identifier):
    return f"login_fail:{ip}:{identifier}" if identifier else f"login_fail:{ip}"


def is_blocked(request, credentials):
    try:
        return bool(cache.get(block_key(client_ip(request), login_identifier(credentials))))
    except Exception:
        # fail open if cache backend unavailable
        logger.warning("Login rate limit cache unavailable", exc_info=True)
        return False


@receiver(user_login_failed)
def on_user_login_failed(sender, credentials, request=None, **kwargs):
    identifier = login_identifier(credentials)
    ip = client_ip(request)
    attempts, window, block = rate_limit_settings()

    try:
        count = cache.get(fail_key(ip, identifier), 0) + 1
        cache.set(fail_key(ip, identifier), count, timeout=window)
    except Exception:
        logger.warning("Login rate limit cache unavailable", exc_info=True)
        return

    if count >= attempts:
        logger.warning(f"Blocking login attempts from {ip} for {identifier or 'unknown identifier'}")
        cache.set(block_key(ip, identifier), 1, timeout=block)


@receiver(user_logged_in)
def on_user_logged_in(sender, request, user, **kwargs):
    """Clear failure and block keys for this ip and identifier."""
    ip = client_ip(request)
    identifiers = {'', (user.email or '').lower(), (user.login_code or '').lower()}
    try:
        for identifier in identifiers:
            cache.delete(fail_key(ip, identifier))
            cache.delete(block_key(ip, identifier))
    except Exception:
        logger.warning("Login rate limit cache unavailable", exc_info=True)
