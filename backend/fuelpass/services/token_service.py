# Overview: Service-layer operations for the token store; issues tokens and performs the guarded redemption write.

"""
Token store

INVARIANTS:
- A token string identifies exactly one Transaction row.
- Issued tokens start UNUSED with amount and driver set, nothing else.
- The only write after issue is conditional_redeem, which flips
  UNUSED -> USED in one guarded UPDATE. Nothing reopens a USED token.
"""
from __future__ import annotations

import secrets

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Role, TokenStatus, Transaction
from ..money import quantize_amount, to_decimal
from ..validation import ConflictError, NotFoundError, ValidationError, enforce_rules_token_amount
from .concurrency import guarded_update, lock_for_update, run_with_retry
from .directory_service import find_active_user

TOKEN_PREFIX = "TXN-"
TOKEN_RANDOM_BYTES = 5
MAX_TOKEN_ATTEMPTS = 5


def generate_token_string() -> str:
    """TXN- followed by 10 upper-case hex characters."""
    return TOKEN_PREFIX + secrets.token_hex(TOKEN_RANDOM_BYTES).upper()


def find_token(token: str) -> Transaction | None:
    return db.session.query(Transaction).filter_by(token=token).first()


def find_unused_token(token: str, *, lock: bool = False) -> Transaction | None:
    query = db.session.query(Transaction).filter(
        Transaction.token == token,
        Transaction.status == TokenStatus.UNUSED,
    )
    if lock:
        query = lock_for_update(query)
    return query.first()


def issue_token(*, driver_id: int, amount, token: str | None = None) -> Transaction:
    """
    Record a purchased token for a driver.

    Raises:
        NotFoundError: driver missing, soft-deleted or not a DRIVER
        ValidationError: amount not a positive number
        ConflictError: an explicit token string is already taken
    """
    try:
        amount = quantize_amount(to_decimal(amount))
    except ValueError:
        raise ValidationError("amount must be a number")
    enforce_rules_token_amount(amount)

    if find_active_user(driver_id, Role.DRIVER) is None:
        raise NotFoundError("Driver not found")

    explicit = token is not None
    if explicit:
        token = token.strip()
        if not token:
            raise ValidationError("token cannot be blank")

    def _op():
        for _ in range(1 if explicit else MAX_TOKEN_ATTEMPTS):
            candidate = token if explicit else generate_token_string()
            record = Transaction(
                token=candidate,
                amount=amount,
                driver_id=driver_id,
                status=TokenStatus.UNUSED,
            )
            db.session.add(record)
            try:
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                continue
            current_app.logger.info("Issued token %s amount=%s driver_id=%s", record.token, amount, driver_id)
            return record
        if explicit:
            raise ConflictError(f"Token {token} already exists")
        raise ConflictError("Could not allocate a unique token")

    return run_with_retry(_op)


def conditional_redeem(transaction_id: int, fields: dict) -> bool:
    """
    Flip a token to USED and write its redemption fields, only if it is
    still UNUSED. Returns True when exactly this call performed the
    transition. Does not commit.
    """
    values = dict(fields)
    values["status"] = TokenStatus.USED
    matched = guarded_update(
        Transaction,
        where=[Transaction.id == transaction_id, Transaction.status == TokenStatus.UNUSED],
        values=values,
    )
    return matched == 1
