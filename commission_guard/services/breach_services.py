import logging
from typing import List, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_guard.config import Settings
from commission_guard.crud import alert as crud_alert
from commission_guard.crud import contract as crud_contract
from commission_guard.crud import potential_breach as crud_breach
from commission_guard.crud import property as crud_property
from commission_guard.crud import showing as crud_showing
from commission_guard.crud import user as crud_user
from commission_guard.errors import AuthorizationError, NotFound, PersistenceError, ValidationError
from commission_guard.models import Contract, PotentialBreach, User
from commission_guard.schemas.breach import BreachStats, ReportBreachRequest
from commission_guard.schemas.evidence import ALLOWED_EVIDENCE, evidence_adapter
from commission_guard.schemas.public_records import (
    MonitorPublicRecordsRequest,
    MonitorPublicRecordsResponse,
    ScanResults,
)
from commission_guard.services.breach_detection import BreachDetector
from commission_guard.services.dashboard_services import DashboardServices
from commission_guard.services.public_records import PublicRecordsScanner
from commission_guard.utils.normalize import normalize_address

logger = logging.getLogger(__name__)


def ensure_owner(entity, user: User) -> None:
    """Agent-scoped entities are visible to their agent and to admins only."""
    if user.is_admin:
        return
    if entity.agent_id != user.id:
        raise AuthorizationError("You do not have access to this record", agent_id=user.id)


class BreachServices:

    @staticmethod
    async def monitor_public_records_service(
        request: MonitorPublicRecordsRequest,
        user: User,
        db: AsyncSession,
        redis,
        scanner: PublicRecordsScanner,
        settings: Settings,
    ) -> MonitorPublicRecordsResponse:
        """
        Scan public records for a client and persist any new potential breaches.

        Workflow:
        1. Resolve the contract (explicit ``contract_id`` or the caller's contract
           with a client of that name overlapping the requested window).
        2. Query the providers through ``PublicRecordsScanner``.
        3. Classify records with ``BreachDetector`` against the requested window clipped
           to the contract dates (``ValidationError`` when they do not overlap) and
           the contracted agent's identifying strings.
        4. Skip candidates whose (contract, property address, sale date) is already
           held by a non-dismissed breach, or repeated inside this scan.
        5. Persist one pending PotentialBreach with typed evidence plus one
           ``breach`` alert per new candidate, then commit.

        Raises:
            NotFound: no contract could be resolved.
            ValidationError: the requested window misses the contract period.
            AuthorizationError: the contract belongs to another agent.
            PersistenceError: the commit failed.
        """

        # 1. --- Resolve contract ---
        contract = await BreachServices._resolve_contract(request, user, db)
        client = await crud_contract.get_client(db, contract.client_id)
        agent = await crud_user.get_user(db, contract.agent_id)
        window_start, window_end = BreachServices._protected_window(request, contract)

        # 2. --- Scan ---
        outcome = await scanner.scan(
            request.client_name, contract.start_date, contract.end_date, contract.agent_id
        )

        # 3. --- Detect ---
        detector = BreachDetector(settings)
        candidates = detector.detect(
            outcome.records,
            contract_start=window_start,
            contract_end=window_end,
            agent_identifiers=agent.identifying_strings() if agent else [contract.agent_id],
            client_name=request.client_name,
            representation_type=contract.representation_type,
            scanned_at=outcome.scanned_at.date(),
        )

        # 4/5. --- Persist new breaches ---
        seen = await crud_breach.get_open_breach_keys(db, contract.id)
        created: List[PotentialBreach] = []
        try:
            for candidate in candidates:
                key = candidate.dedup_key
                if key in seen:
                    continue
                seen.add(key)

                prop = await crud_property.find_property_by_address(db, candidate.record.property_address)
                showings, visits = await crud_showing.get_client_history(
                    db, contract.agent_id, contract.client_id, prop.id if prop else None
                )
                evidence = detector.build_evidence(candidate, client.full_name, showings, visits)
                agent_on_record = detector.agent_field(candidate.record, contract.representation_type)

                breach = await crud_breach.create_breach(
                    db,
                    agent_id=contract.agent_id,
                    client_id=contract.client_id,
                    contract_id=contract.id,
                    property_id=prop.id if prop else None,
                    property_address=key[0],
                    breach_type=candidate.breach_type,
                    detection_method="public_records",
                    detection_date=outcome.scanned_at,
                    breach_date=candidate.record.sale_date,
                    evidence_data=evidence.model_dump(mode="json"),
                    risk_level=candidate.risk_level,
                    estimated_commission_loss=candidate.estimated_commission_loss,
                    auto_detection_score=candidate.auto_detection_score,
                    status="pending",
                    description=(
                        f"{client.full_name} transacted on {candidate.record.property_address or 'a property'} "
                        f"on {candidate.record.sale_date.isoformat()} through {agent_on_record}"
                    ),
                )
                await crud_alert.create_alert(
                    db,
                    agent_id=contract.agent_id,
                    type="breach",
                    title="Potential Commission Breach",
                    description=(
                        f"Public records show {client.full_name} in a sale during your contract period. "
                        f"Estimated lost commission: ${candidate.estimated_commission_loss:,}."
                    ),
                    severity=candidate.risk_level,
                    contract_id=contract.id,
                    client_id=contract.client_id,
                    breach_id=breach.id,
                )
                created.append(breach)

            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Failed to persist breaches: agent_id=%s contract_id=%s error=%s", user.id, contract.id, e
            )
            raise PersistenceError(str(e), agent_id=user.id, contract_id=str(contract.id))

        if created:
            logger.info("Created %d potential breach(es) for contract %s", len(created), contract.id)
            await DashboardServices.invalidate(redis, contract.agent_id)

        return MonitorPublicRecordsResponse(
            success=True,
            contract_id=contract.id,
            scan_results=ScanResults(
                total_records_found=len(outcome.records),
                breaches_detected=len(candidates),
                breach_records=[c.record for c in candidates],
                estimated_lost_commission=sum(c.estimated_commission_loss for c in candidates),
                data_source=outcome.data_source,
                new_breaches_created=len(created),
                breach_ids=[b.id for b in created],
                providers=outcome.providers,
            ),
            monitoring=outcome.monitoring,
        )

    @staticmethod
    async def report_breach_service(
        request: ReportBreachRequest,
        user: User,
        db: AsyncSession,
        redis,
        settings: Settings,
    ) -> PotentialBreach:
        """ Record a breach found outside public records (client report, GPS, manual). """
        contract = await crud_contract.get_contract(db, request.contract_id)
        if contract is None:
            raise NotFound(f"Contract {request.contract_id} not found")
        ensure_owner(contract, user)

        # --- Validate evidence at ingestion ---
        try:
            evidence = evidence_adapter.validate_python(request.evidence)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid evidence: {e.errors()[0]['msg']}")
        if evidence.kind not in ALLOWED_EVIDENCE[request.breach_type]:
            raise ValidationError(
                f"Evidence of kind '{evidence.kind}' does not support breach type '{request.breach_type}'"
            )

        address = evidence.sale_record.property_address if evidence.kind == "property_sale" else None
        risk_level = BreachDetector(settings).classify_risk(
            request.estimated_commission_loss, request.breach_type, 0
        )

        try:
            breach = await crud_breach.create_breach(
                db,
                agent_id=contract.agent_id,
                client_id=contract.client_id,
                contract_id=contract.id,
                property_id=request.property_id,
                property_address=normalize_address(address) or None,
                breach_type=request.breach_type,
                detection_method=request.detection_method,
                breach_date=request.breach_date,
                evidence_data=evidence.model_dump(mode="json"),
                risk_level=risk_level,
                estimated_commission_loss=request.estimated_commission_loss,
                auto_detection_score=0,
                status="pending",
                description=request.description,
            )
            await crud_alert.create_alert(
                db,
                agent_id=contract.agent_id,
                type="breach",
                title="Potential Commission Breach Reported",
                description=request.description or f"Breach reported via {request.detection_method}",
                severity=risk_level,
                contract_id=contract.id,
                client_id=contract.client_id,
                breach_id=breach.id,
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to report breach: agent_id=%s error=%s", user.id, e)
            raise PersistenceError(str(e), agent_id=user.id)

        await DashboardServices.invalidate(redis, contract.agent_id)
        return await crud_breach.get_breach_detail(db, breach.id)

    @staticmethod
    async def list_breaches_service(
        user: User,
        db: AsyncSession,
        status: Optional[str] = None,
        all_agents: bool = False,
    ) -> List[PotentialBreach]:
        scope = None if (all_agents and user.is_admin) else user.id
        return await crud_breach.list_breaches(db, agent_id=scope, status=status)

    @staticmethod
    async def get_breach_service(breach_id: UUID, user: User, db: AsyncSession) -> PotentialBreach:
        breach = await crud_breach.get_breach_detail(db, breach_id)
        if breach is None:
            raise NotFound(f"Breach {breach_id} not found")
        ensure_owner(breach, user)
        return breach

    @staticmethod
    async def get_stats_service(user: User, db: AsyncSession, all_agents: bool = False) -> BreachStats:
        scope = None if (all_agents and user.is_admin) else user.id
        return BreachStats(**await crud_breach.get_breach_stats(db, agent_id=scope))

    # --- Helpers ---
    @staticmethod
    async def _resolve_contract(request: MonitorPublicRecordsRequest, user: User, db: AsyncSession) -> Contract:
        if request.contract_id:
            contract = await crud_contract.get_contract(db, request.contract_id)
            if contract is None:
                raise NotFound(f"Contract {request.contract_id} not found")
            ensure_owner(contract, user)
            return contract

        contract = await crud_contract.find_contract_for_client(
            db, user.id, request.client_name, request.contract_start_date, request.contract_end_date
        )
        if contract is None:
            raise NotFound(f"No contract found for client '{request.client_name}'")
        return contract

    @staticmethod
    def _protected_window(request: MonitorPublicRecordsRequest, contract: Contract):
        """ Requested window clipped to the contract's own dates; sales outside the contract are never flagged """
        start = max(request.contract_start_date, contract.start_date)
        end = min(request.contract_end_date, contract.end_date)
        if start > end:
            raise ValidationError(
                f"Requested window {request.contract_start_date}..{request.contract_end_date} "
                f"does not overlap contract {contract.id} ({contract.start_date}..{contract.end_date})",
                field="contractStartDate",
            )
        return start, end
