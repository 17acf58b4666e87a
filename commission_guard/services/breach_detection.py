from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
from datetime import date, datetime

from commission_guard.config import Settings
from commission_guard.schemas.evidence import PropertySaleEvidence, ShowingHistoryItem, VisitHistoryItem
from commission_guard.schemas.public_records import NormalizedSaleRecord
from commission_guard.utils.normalize import normalize_address, normalize_name, split_parties

UNKNOWN_AGENT_VALUES = {"", "unknown", "n/a", "none"}


@dataclass
class BreachCandidate:
    record: NormalizedSaleRecord
    breach_type: str
    risk_level: str
    auto_detection_score: int
    estimated_commission_loss: int

    @property
    def dedup_key(self) -> Tuple[str, date]:
        return normalize_address(self.record.property_address), self.record.sale_date


class BreachDetector:
    """
        Decides which normalized sale records are commission breaches for a contract.

        Pure and synchronous: no I/O, no clock reads except through ``scanned_at``.

        1. Candidate rule (``is_candidate``):
           contract_start <= sale_date <= contract_end (both ends inclusive), and the
           agent on the represented side of the sale (buyer agent for buyer
           representation, listing agent for seller representation) is known and does
           not contain any of the contracted agent's identifying strings.
        2. Confidence (``score``), 0-100, monotonic in each input:
           - agent field present: +40
           - name match: +35 exact on the represented side, +15 on the other side only
           - recency relative to the scan: +25 (<=30d), +18 (<=90d), +10 (<=180d), +5 (<=365d)
        3. Risk (``classify_risk``):
           high if loss > threshold, or unauthorized_purchase with score >= 80;
           medium if score >= 50; low otherwise.
    """

    AGENT_PRESENT_POINTS = 40
    EXACT_NAME_POINTS = 35
    OTHER_SIDE_NAME_POINTS = 15
    RECENCY_POINTS = ((30, 25), (90, 18), (180, 10), (365, 5))

    def __init__(self, settings: Settings):
        self.high_risk_loss_threshold = settings.high_risk_loss_threshold

    # --- Rule helpers ---
    @staticmethod
    def agent_field(record: NormalizedSaleRecord, representation_type: str = "buyer") -> Optional[str]:
        return record.listing_agent if representation_type == "seller" else record.buyer_agent

    @staticmethod
    def agent_is_known(agent: Optional[str]) -> bool:
        return normalize_name(agent) not in UNKNOWN_AGENT_VALUES

    @staticmethod
    def is_same_agent(agent: Optional[str], agent_identifiers: Sequence[str]) -> bool:
        haystack = normalize_name(agent)
        return any(normalize_name(ident) and normalize_name(ident) in haystack for ident in agent_identifiers)

    def is_candidate(
        self,
        record: NormalizedSaleRecord,
        contract_start: date,
        contract_end: date,
        agent_identifiers: Sequence[str],
        representation_type: str = "buyer",
    ) -> bool:
        if not (contract_start <= record.sale_date <= contract_end):
            return False
        agent = self.agent_field(record, representation_type)
        if not self.agent_is_known(agent):
            return False
        return not self.is_same_agent(agent, agent_identifiers)

    def score(
        self,
        record: NormalizedSaleRecord,
        client_name: str,
        representation_type: str,
        scanned_at: date,
    ) -> int:
        score = 0

        if self.agent_is_known(self.agent_field(record, representation_type)):
            score += self.AGENT_PRESENT_POINTS

        wanted = normalize_name(client_name)
        buyers, sellers = split_parties(record.buyer_name), split_parties(record.seller_name)
        represented, other = (sellers, buyers) if representation_type == "seller" else (buyers, sellers)
        if wanted in represented:
            score += self.EXACT_NAME_POINTS
        elif wanted in other:
            score += self.OTHER_SIDE_NAME_POINTS

        age_days = max((scanned_at - record.sale_date).days, 0)
        for max_age, points in self.RECENCY_POINTS:
            if age_days <= max_age:
                score += points
                break

        return max(0, min(score, 100))

    def classify_risk(self, estimated_loss: int, breach_type: str, score: int) -> str:
        if estimated_loss > self.high_risk_loss_threshold:
            return "high"
        if breach_type == "unauthorized_purchase" and score >= 80:
            return "high"
        if score >= 50:
            return "medium"
        return "low"

    @staticmethod
    def breach_type_for(representation_type: str) -> str:
        # a buyer client purchasing through someone else vs. a seller listing elsewhere
        return "contract_violation" if representation_type == "seller" else "unauthorized_purchase"

    # --- Main entry point ---
    def detect(
        self,
        records: Sequence[NormalizedSaleRecord],
        contract_start: date,
        contract_end: date,
        agent_identifiers: Sequence[str],
        client_name: str,
        representation_type: str = "buyer",
        scanned_at: Optional[date] = None,
    ) -> List[BreachCandidate]:
        scanned_at = scanned_at or datetime.utcnow().date()
        breach_type = self.breach_type_for(representation_type)

        candidates = []
        for record in records:
            if not self.is_candidate(record, contract_start, contract_end, agent_identifiers, representation_type):
                continue
            score = self.score(record, client_name, representation_type, scanned_at)
            loss = max(record.estimated_lost_commission, 0)
            candidates.append(BreachCandidate(
                record=record,
                breach_type=breach_type,
                risk_level=self.classify_risk(loss, breach_type, score),
                auto_detection_score=score,
                estimated_commission_loss=loss,
            ))
        return candidates

    # --- Evidence ---
    @staticmethod
    def build_evidence(candidate: BreachCandidate, client_name: str, showings=(), visits=()) -> PropertySaleEvidence:
        record = candidate.record
        agent = record.buyer_agent if candidate.breach_type == "unauthorized_purchase" else record.listing_agent
        narrative = (
            f"{client_name} appears on a {record.source} sale record for "
            f"{record.property_address or 'an unknown address'} dated {record.sale_date.isoformat()} "
            f"(price ${record.sale_price:,}) handled by {agent} during the exclusive representation period."
        )
        return PropertySaleEvidence(
            sale_record=record,
            showings=[
                ShowingHistoryItem(
                    showing_id=s.id,
                    property_id=s.property_id,
                    scheduled_date=s.scheduled_date,
                    status=s.status,
                    agent_present=s.agent_present,
                )
                for s in showings
            ],
            visits=[
                VisitHistoryItem(
                    visit_id=v.id,
                    property_id=v.property_id,
                    visit_date=v.visit_date,
                    visit_type=v.visit_type,
                    risk_level=v.risk_level,
                    was_scheduled=v.was_scheduled,
                )
                for v in visits
            ],
            narrative=narrative,
        )
