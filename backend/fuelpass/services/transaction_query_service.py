# Overview: Service-layer read paths over tokens and completed sales.

from __future__ import annotations

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Omc, Station, TokenStatus, Transaction
from ..validation import NotFoundError
from .directory_service import find_active_attendant

SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 12
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _with_relations(query):
    return query.options(
        joinedload(Transaction.product_catalog),
        joinedload(Transaction.station),
        joinedload(Transaction.dispenser),
        joinedload(Transaction.pump),
        joinedload(Transaction.pump_attendant),
        joinedload(Transaction.driver),
    )


def _paginate(base_query, page: int | None, limit: int | None) -> dict:
    """
    Offset/limit pagination in the shared list envelope.

    page=None returns every row without pagination metadata.
    """
    if page is None:
        rows = base_query.all()
        return {
            "items": [t.to_detail() for t in rows],
            "count": len(rows),
        }

    limit = min(limit or DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
    limit = max(limit, 1)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + limit - 1) // limit if total > 0 else 1

    rows = base_query.offset((page - 1) * limit).limit(limit).all()

    return {
        "items": [t.to_detail() for t in rows],
        "count": len(rows),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_token_details(token: str) -> dict:
    record = _with_relations(db.session.query(Transaction).filter(Transaction.token == token)).first()
    if record is None:
        raise NotFoundError(f"Token {token} not found")
    return record.to_detail()


def search_tokens(q: str | None) -> list[dict]:
    """Token strings containing q (case-insensitive), newest first."""
    if not q or len(q) < SEARCH_MIN_LENGTH:
        return []
    # % and _ in the query are literal characters.
    pattern = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    rows = (
        db.session.query(Transaction.token)
        .filter(Transaction.token.ilike(f"%{pattern}%", escape="\\"))
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(SEARCH_LIMIT)
        .all()
    )
    return [{"token": row.token} for row in rows]


def get_sales_history(attendant_id: int, page: int | None = None, limit: int | None = None) -> dict:
    """Completed (USED) sales attributed to an attendant."""
    if find_active_attendant(attendant_id) is None:
        raise NotFoundError("Fuel attendant not found")

    base_query = _with_relations(
        db.session.query(Transaction)
        .filter(
            Transaction.pump_attendant_id == attendant_id,
            Transaction.status == TokenStatus.USED,
        )
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
    )
    return _paginate(base_query, page, limit)


def get_transaction_details(transaction_id: int) -> dict:
    record = _with_relations(db.session.query(Transaction).filter(Transaction.id == transaction_id)).first()
    if record is None:
        raise NotFoundError(f"Transaction with ID {transaction_id} not found")

    data = record.to_detail()
    if record.product_catalog is not None:
        omc = record.product_catalog.omc
        data["product_catalog"]["omc"] = {"id": omc.id, "name": omc.name} if omc else None
    if record.station is not None:
        omc = record.station.omc
        data["station"]["omc"] = {"id": omc.id, "name": omc.name} if omc else None
    if record.pump is not None and record.pump.product_catalog is not None:
        data["pump"]["product_catalog"] = {
            "id": record.pump.product_catalog.id,
            "name": record.pump.product_catalog.name,
        }
    return data


def get_filtered_transactions(
    *,
    omc_id: int | None = None,
    station_id: int | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict:
    """
    All tokens (used and unused), newest first.

    station_id takes precedence over omc_id when both are given.
    """
    query = db.session.query(Transaction)
    if station_id:
        query = query.filter(Transaction.station_id == station_id)
    elif omc_id:
        query = query.join(Station, Station.id == Transaction.station_id).filter(Station.omc_id == omc_id)

    base_query = _with_relations(query.order_by(Transaction.created_at.desc(), Transaction.id.desc()))
    return _paginate(base_query, page, limit)


def get_omc_filters(omc_id: int | None = None) -> dict:
    omcs = (
        db.session.query(Omc)
        .filter(Omc.deleted_at.is_(None))
        .order_by(Omc.name.asc())
        .all()
    )

    stations = []
    if omc_id:
        stations = (
            db.session.query(Station)
            .filter(Station.deleted_at.is_(None), Station.omc_id == omc_id)
            .order_by(Station.name.asc())
            .all()
        )

    return {
        "omcs": [{"id": o.id, "name": o.name} for o in omcs],
        "stations": [
            {"id": s.id, "name": s.name, "omc": {"name": s.omc.name}}
            for s in stations
        ],
    }
