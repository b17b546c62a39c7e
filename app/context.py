from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional
import logging

from sqlalchemy.engine import Engine

from .application.ports.code_hasher import CodeHasher
from .application.ports.code_sender import CodeSender
from .application.ports.rate_limiter import RateLimiter
from .application.services.key_bundle_service import KeyBundleService
from .application.services.message_service import MessageService
from .application.services.token_service import SessionTokenIssuer
from .application.services.verification_service import VerificationService
from .core.config import Settings
from .database import build_engine
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.otp.logging_sender import LoggingCodeSender
from .infrastructure.otp.twilio_provider import TwilioCodeSender
from .infrastructure.persistence.sqlalchemy.credential_store_sql import SqlCredentialStore
from .infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from .infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter
from .infrastructure.security.passlib_hasher import PasslibCodeHasher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContext:
    """Everything a request handler needs, built once at startup and shared read-only."""
    settings: Settings = field(repr=False)
    engine: Engine
    store: SqlCredentialStore
    tokens: SessionTokenIssuer = field(repr=False)
    verification: VerificationService
    key_bundles: KeyBundleService
    messages: MessageService
    rate_limiter: RateLimiter


def _build_sender(settings: Settings) -> CodeSender:
    if settings.twilio_enabled:
        logger.info("Delivering verification codes through Twilio")
        return TwilioCodeSender(
            settings.TWILIO_ACCOUNT_SID,
            settings.TWILIO_AUTH_TOKEN,
            settings.TWILIO_PHONE_NUMBER,
            expiry_minutes=settings.OTP_EXPIRY_MINUTES,
        )
    logger.warning("Twilio is not configured; verification codes are not delivered")
    return LoggingCodeSender(debug=settings.DEBUG)


def _build_rate_limiter(settings: Settings) -> RateLimiter:
    if settings.REDIS_URL:
        return RedisRateLimiter(url=settings.REDIS_URL)
    return InMemoryRateLimiter()


def build_context(
    settings: Settings,
    engine: Optional[Engine] = None,
    hasher: Optional[CodeHasher] = None,
    sender: Optional[CodeSender] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> AppContext:
    engine = engine or build_engine(settings)
    store = SqlCredentialStore(engine)
    audit = StdAuditLogger()
    tokens = SessionTokenIssuer(secret=settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    verification = VerificationService(
        store=store,
        hasher=hasher or PasslibCodeHasher(),
        sender=sender or _build_sender(settings),
        audit=audit,
        code_ttl=timedelta(minutes=settings.OTP_EXPIRY_MINUTES),
        resend_interval=timedelta(seconds=settings.OTP_RESEND_INTERVAL_SECONDS),
        max_attempts=settings.OTP_MAX_ATTEMPTS,
        new_user_name=settings.NEW_USER_NAME,
    )
    key_bundles = KeyBundleService(
        store=store,
        tokens=tokens,
        audit=audit,
        device_token_ttl=timedelta(days=settings.DEVICE_TOKEN_TTL_DAYS),
    )
    return AppContext(
        settings=settings,
        engine=engine,
        store=store,
        tokens=tokens,
        verification=verification,
        key_bundles=key_bundles,
        messages=MessageService(store=store),
        rate_limiter=rate_limiter or _build_rate_limiter(settings),
    )
