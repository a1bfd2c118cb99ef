import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple
from jose import jwt, JWTError
from passlib.context import CryptContext
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
from os import getenv

from .database import get_engine, is_backend_configured
from .models import AdminUser

log = logging.getLogger(__name__)

SECRET_KEY = getenv("SECRET_KEY", "change-me")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))

ADMIN_SESSION_KEY = "adminSession"
ADMIN_SESSION_EXPIRY_KEY = "adminSessionExpiry"
ADMIN_SESSION_TTL = timedelta(hours=8)
SESSION_CHECK_INTERVAL = 60.0

# Demo-mode admin. Only used when no backend is configured.
DEMO_ADMIN_EMAIL = "admin@looom.shop"
DEMO_ADMIN_PASSWORD = getenv("LOOOM_DEMO_ADMIN_PASSWORD", "admin123")

# First admin for a configured backend, created at startup when set.
SEED_ADMIN_EMAIL = getenv("LOOOM_ADMIN_EMAIL", "")
SEED_ADMIN_PASSWORD = getenv("LOOOM_ADMIN_PASSWORD", "")

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/admin/login")

_demo_hash: Optional[str] = None


def verify_password(plain, hashed):
    return pwd_context.verify(plain, hashed)


def hash_password(pw):
    return pwd_context.hash(pw)


def _demo_admin_hash() -> str:
    global _demo_hash
    if _demo_hash is None:
        _demo_hash = hash_password(DEMO_ADMIN_PASSWORD)
    return _demo_hash


def epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def normalize_credentials(email: str, password: str) -> Tuple[str, str]:
    return (email or "").strip().lower(), (password or "").strip()


def _verify_admin_user(email: str, password: str) -> bool:
    try:
        with Session(get_engine()) as session:
            user = session.exec(select(AdminUser).where(AdminUser.email == email)).first()
    except SQLAlchemyError as e:
        log.error("Admin lookup failed: %s", e)
        return False
    return bool(user) and verify_password(password, user.hashed_password)


def ensure_admin_user(email: str, password: str) -> bool:
    """Create the admin account unless one with this email exists. True if created."""
    email, password = normalize_credentials(email, password)
    if not email or not password:
        return False
    with Session(get_engine()) as session:
        if session.exec(select(AdminUser).where(AdminUser.email == email)).first():
            return False
        session.add(AdminUser(email=email, hashed_password=hash_password(password)))
        session.commit()
    log.info("Seeded admin user %s", email)
    return True


def verify_admin_credentials(email: str, password: str) -> bool:
    email, password = normalize_credentials(email, password)
    if not email or not password:
        return False
    if not is_backend_configured():
        log.info("Demo mode: checking demo admin credentials")
        return email == DEMO_ADMIN_EMAIL and verify_password(password, _demo_admin_hash())
    return _verify_admin_user(email, password)


def start_admin_session(storage, now: datetime) -> int:
    expires = epoch_ms(now + ADMIN_SESSION_TTL)
    storage.set_item(ADMIN_SESSION_KEY, str(epoch_ms(now)))
    storage.set_item(ADMIN_SESSION_EXPIRY_KEY, str(expires))
    return expires


def admin_login(email: str, password: str, storage, now: Optional[datetime] = None) -> bool:
    if not verify_admin_credentials(email, password):
        log.warning("Admin login rejected for %r", normalize_credentials(email, password)[0])
        return False
    start_admin_session(storage, now or datetime.now(timezone.utc))
    log.info("Admin session started")
    return True


def admin_logout(storage) -> None:
    storage.remove_item(ADMIN_SESSION_KEY)
    storage.remove_item(ADMIN_SESSION_EXPIRY_KEY)


def admin_session_expiry(storage) -> Optional[int]:
    if not storage.get_item(ADMIN_SESSION_KEY):
        return None
    try:
        return int(storage.get_item(ADMIN_SESSION_EXPIRY_KEY) or "")
    except ValueError:
        return None


def check_admin_session(storage, now: Optional[datetime] = None) -> bool:
    """True while the stored admin session is live. An expired one is cleared."""
    if storage.get_item(ADMIN_SESSION_KEY) is None and storage.get_item(ADMIN_SESSION_EXPIRY_KEY) is None:
        return False
    expires = admin_session_expiry(storage)
    if expires is not None and epoch_ms(now or datetime.now(timezone.utc)) < expires:
        return True
    log.info("Admin session expired, logging out")
    admin_logout(storage)
    return False


class AdminSessionWatcher:
    """Checks the admin session once per interval and calls ``on_logout`` when it lapses."""

    def __init__(self, check: Callable[[], bool], on_logout: Callable[[], None],
                 interval: float = SESSION_CHECK_INTERVAL):
        self._check = check
        self._on_logout = on_logout
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self) -> bool:
        alive = self._check()
        if not alive:
            self._on_logout()
        return alive

    def _run(self):
        while not self._stop.wait(self.interval):
            if not self.tick():
                break

    def start(self):
        if self._thread is None or not self._thread.is_alive():
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, name="admin-session-watcher", daemon=True)
            self._thread.start()

    def stop(self):
        self._stop.set()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])


def get_current_admin(token: Optional[str] = Depends(oauth2_scheme)):
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = decode_token(token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if payload.get("role") != "admin" or not payload.get("sub"):
        raise HTTPException(status_code=403, detail="Admins only")
    return payload
