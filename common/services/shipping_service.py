from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from uuid import uuid4
from ..db.session import get_session
from ..models.shipping_zone import NonServiceablePincode, ShippingZone, ShippingZonePincode
from ..utils.dto import to_non_serviceable_dto, to_zone_dto
from ..utils.validators import is_valid_pincode
from .logging import log_event


DEFAULT_UNSERVICEABLE_REASON = "This area is not serviceable"

_UNSET = object()


class ZoneNotFoundError(LookupError):
    pass


class PincodeNotFoundError(LookupError):
    pass


def _money(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


class ShippingService:
    """Pincode serviceability checks and shipping zone administration."""

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    def check_pincode(self, pincode: str) -> Dict:
        """Resolve a 6-digit pincode to a delivery decision.

        The block-list is consulted first and wins over zone membership.
        A pincode with no membership and one whose zone is inactive both
        answer ``{"available": False}`` without a reason.
        """
        with self._session_factory() as session:
            blocked = (
                session.query(NonServiceablePincode)
                .filter(NonServiceablePincode.pincode == pincode)
                .first()
            )
            if blocked:
                return {"available": False, "reason": blocked.reason or DEFAULT_UNSERVICEABLE_REASON}

            entry = (
                session.query(ShippingZonePincode)
                .join(ShippingZone, ShippingZone.id == ShippingZonePincode.zone_id)
                .filter(ShippingZonePincode.pincode == pincode)
                .order_by(ShippingZone.sort_order.asc(), ShippingZone.name.asc())
                .first()
            )
            if not entry or not entry.zone.is_active:
                return {"available": False}

            zone = entry.zone
            result = {
                "available": True,
                "zoneName": zone.name,
                "rate": float(zone.rate),
                "estimatedDays": zone.estimated_days,
                "city": entry.city,
                "state": entry.state,
            }
            if zone.free_shipping_threshold is not None:
                result["freeShippingThreshold"] = float(zone.free_shipping_threshold)
            return result

    # --- zones -------------------------------------------------------------

    def list_zones(self) -> List[Dict]:
        with self._session_factory() as session:
            rows = (
                session.query(ShippingZone)
                .order_by(ShippingZone.sort_order.asc(), ShippingZone.name.asc())
                .all()
            )
            zones = []
            for r in rows:
                dto = to_zone_dto(r)
                dto["pincode_count"] = len(r.pincodes)
                zones.append(dto)
            return zones

    def get_zone(self, zone_id: str) -> Dict:
        with self._session_factory() as session:
            zone = self._require_zone(session, zone_id)
            return to_zone_dto(zone, with_pincodes=True)

    def create_zone(
        self,
        *,
        name: str,
        rate,
        description: Optional[str] = None,
        free_shipping_threshold=None,
        estimated_days: Optional[str] = None,
        is_active: bool = True,
        sort_order: int = 0,
    ) -> Dict:
        if not isinstance(name, str) or not name.strip():
            raise ValueError("name required")
        if not isinstance(is_active, bool):
            raise ValueError("is_active must be a boolean")
        with self._session_factory() as session:
            zone = ShippingZone(
                id=str(uuid4()),
                name=name.strip(),
                description=description,
                rate=_money(rate),
                free_shipping_threshold=_money(free_shipping_threshold),
                estimated_days=estimated_days,
                is_active=is_active,
                sort_order=int(sort_order or 0),
            )
            session.add(zone)
            session.flush()
            log_event("info", "shipping.zone_created", zone_id=zone.id, name=zone.name)
            return to_zone_dto(zone)

    def update_zone(
        self,
        zone_id: str,
        *,
        name=_UNSET,
        description=_UNSET,
        rate=_UNSET,
        free_shipping_threshold=_UNSET,
        estimated_days=_UNSET,
        is_active=_UNSET,
        sort_order=_UNSET,
    ) -> Dict:
        """Apply a partial update; omitted fields keep their stored values."""
        with self._session_factory() as session:
            zone = self._require_zone(session, zone_id)
            if name is not _UNSET:
                if not isinstance(name, str) or not name.strip():
                    raise ValueError("name required")
                zone.name = name.strip()
            if description is not _UNSET:
                zone.description = description
            if rate is not _UNSET:
                if rate is None:
                    raise ValueError("rate required")
                zone.rate = _money(rate)
            if free_shipping_threshold is not _UNSET:
                zone.free_shipping_threshold = _money(free_shipping_threshold)
            if estimated_days is not _UNSET:
                zone.estimated_days = estimated_days
            if is_active is not _UNSET:
                if not isinstance(is_active, bool):
                    raise ValueError("is_active must be a boolean")
                zone.is_active = is_active
            if sort_order is not _UNSET:
                zone.sort_order = int(sort_order or 0)
            session.flush()
            log_event("info", "shipping.zone_updated", zone_id=zone_id)
            return to_zone_dto(zone)

    def delete_zone(self, zone_id: str) -> None:
        with self._session_factory() as session:
            zone = self._require_zone(session, zone_id)
            session.delete(zone)
            session.flush()
        log_event("info", "shipping.zone_deleted", zone_id=zone_id)

    # --- zone pincodes -----------------------------------------------------

    def add_pincodes(self, zone_id: str, rows: Iterable[Dict]) -> Dict:
        """Attach pincodes to a zone, skipping any pincode already assigned."""
        with self._session_factory() as session:
            self._require_zone(session, zone_id)
            added = self._insert_pincodes(session, zone_id, list(rows))
        log_event("info", "shipping.pincodes_added", zone_id=zone_id, added=added)
        return {"added": added}

    def import_pincodes(self, zone_id: str, rows: Iterable[Dict]) -> Dict:
        """Bulk import; rows whose pincode is not six digits are dropped."""
        valid = [r for r in rows if is_valid_pincode((r or {}).get("pincode"))]
        if not valid:
            raise ValueError("No valid pincodes found in the data")
        with self._session_factory() as session:
            self._require_zone(session, zone_id)
            inserted = self._insert_pincodes(session, zone_id, valid)
        log_event("info", "shipping.pincodes_imported", zone_id=zone_id, valid=len(valid), inserted=inserted)
        return {"imported": len(valid)}

    def remove_pincode(self, membership_id: str) -> None:
        with self._session_factory() as session:
            row = session.query(ShippingZonePincode).filter(ShippingZonePincode.id == membership_id).first()
            if not row:
                raise PincodeNotFoundError("Pincode not found")
            session.delete(row)
            session.flush()

    def remove_pincodes(self, zone_id: str, pincodes: Iterable[str]) -> Dict:
        codes = list(pincodes)
        with self._session_factory() as session:
            if codes:
                (
                    session.query(ShippingZonePincode)
                    .filter(
                        ShippingZonePincode.zone_id == zone_id,
                        ShippingZonePincode.pincode.in_(codes),
                    )
                    .delete(synchronize_session=False)
                )
        log_event("info", "shipping.pincodes_removed", zone_id=zone_id, count=len(codes))
        return {"removed": len(codes)}

    # --- block-list --------------------------------------------------------

    def list_non_serviceable(self) -> List[Dict]:
        with self._session_factory() as session:
            rows = session.query(NonServiceablePincode).order_by(NonServiceablePincode.pincode.asc()).all()
            return [to_non_serviceable_dto(r) for r in rows]

    def add_non_serviceable(self, pincode: str, reason: Optional[str] = None) -> Dict:
        with self._session_factory() as session:
            existing = (
                session.query(NonServiceablePincode)
                .filter(NonServiceablePincode.pincode == pincode)
                .first()
            )
            if existing:
                return to_non_serviceable_dto(existing)
            entry = NonServiceablePincode(id=str(uuid4()), pincode=pincode, reason=reason or None)
            session.add(entry)
            session.flush()
            log_event("info", "shipping.pincode_blocked", pincode=pincode)
            return to_non_serviceable_dto(entry)

    def remove_non_serviceable(self, entry_id: str) -> None:
        with self._session_factory() as session:
            row = session.query(NonServiceablePincode).filter(NonServiceablePincode.id == entry_id).first()
            if not row:
                raise PincodeNotFoundError("Pincode not found")
            session.delete(row)
            session.flush()
        log_event("info", "shipping.pincode_unblocked", entry_id=entry_id)

    # --- helpers -----------------------------------------------------------

    @staticmethod
    def _require_zone(session, zone_id: str) -> ShippingZone:
        zone = session.query(ShippingZone).filter(ShippingZone.id == zone_id).first()
        if not zone:
            raise ZoneNotFoundError("Zone not found")
        return zone

    @staticmethod
    def _insert_pincodes(session, zone_id: str, rows: List[Dict]) -> int:
        codes = sorted({r.get("pincode") for r in rows})
        taken = {
            p for (p,) in session.query(ShippingZonePincode.pincode)
            .filter(ShippingZonePincode.pincode.in_(codes))
            .all()
        }
        inserted = 0
        for r in rows:
            code = r.get("pincode")
            if code in taken:
                continue
            session.add(
                ShippingZonePincode(
                    id=str(uuid4()),
                    zone_id=zone_id,
                    pincode=code,
                    city=r.get("city"),
                    state=r.get("state"),
                )
            )
            taken.add(code)
            inserted += 1
        session.flush()
        return inserted
