import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from opai.core.config import settings

CENT = Decimal("0.01")
RATE_STEP = Decimal("0.0001")

DateLike = Union[date, datetime, str]

def mkdir_safe(path: str):
    Path(path).mkdir(parents=True, exist_ok=True)

def setup_logging(tenant_id: str = "system", *, log_level: str = None):
    logger_name = f"{settings.APP_NAME}.{tenant_id}"
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger
    level = log_level or settings.LOG_LEVEL
    logger.setLevel(getattr(logging, level))
    audit_dir = settings.AUDIT_LOG_PATH
    mkdir_safe(audit_dir)
    logfile = Path(audit_dir) / f"{tenant_id}.log"
    handler = RotatingFileHandler(str(logfile), maxBytes=10_000_000, backupCount=5)
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    if os.getenv("DEV", "").lower() in ("1","true","yes"):
        ch = logging.StreamHandler()
        ch.setFormatter(formatter)
        logger.addHandler(ch)
    logger.propagate = False
    return logger

def round_money(value: float) -> float:
    """Round to cents, half away from zero.

    Goes through ``repr`` so that 0.125 rounds to 0.13 the way a person
    reading the number expects, not the way its binary approximation does.
    Every monetary output of the engine passes through here.
    """
    return float(Decimal(repr(float(value))).quantize(CENT, rounding=ROUND_HALF_UP))

def round_rate(value: float) -> float:
    return float(Decimal(repr(float(value))).quantize(RATE_STEP, rounding=ROUND_HALF_UP))

def to_date(value: Optional[DateLike]) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])

def month_start(value: Optional[DateLike] = None) -> date:
    d = to_date(value) or date.today()
    return d.replace(day=1)

def iso_date(value: Optional[DateLike]) -> Optional[str]:
    d = to_date(value)
    return d.isoformat() if d else None

def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
