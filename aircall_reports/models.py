"""
Value types shared by the fetcher, aggregator and report generator
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

INBOUND = 'inbound'
OUTBOUND = 'outbound'


@dataclass(frozen=True)
class CallRecord:
    """One call leg as reported by Aircall"""
    id: Any
    direction: str
    answered_at: Optional[int] = None
    duration: int = 0
    owner_agent_id: Any = None

    @property
    def answered(self) -> bool:
        return bool(self.answered_at)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'CallRecord':
        """
        Build a record from an Aircall call object

        Args:
            data: Call JSON as returned by GET /calls

        Returns:
            CallRecord

        Raises:
            AttributeError: If data or its user is not an object
            TypeError, ValueError: If duration is not an integer
        """
        user = data.get('user') or {}
        return cls(
            id=data.get('id'),
            direction=data.get('direction'),
            answered_at=data.get('answered_at'),
            duration=int(data.get('duration') or 0),
            owner_agent_id=user.get('id')
        )


@dataclass(frozen=True)
class Agent:
    """Roster entry"""
    id: Any
    display_name: str
    email: Optional[str] = None
    availability_status: str = 'unknown'

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Agent':
        return cls(
            id=data.get('id'),
            display_name=data.get('name') or '',
            email=data.get('email'),
            availability_status=data.get('availability_status') or 'unknown'
        )


@dataclass(frozen=True)
class TimeWindow:
    """Half-open [start, end) interval in epoch seconds"""
    start_timestamp: int
    end_timestamp: int
    start_iso: str
    end_iso: str

    def to_params(self) -> Dict[str, int]:
        """Query parameters shared by every page of one fetch"""
        return {'from': self.start_timestamp, 'to': self.end_timestamp}


@dataclass(frozen=True)
class AgentActivity:
    """Aggregated call activity for one agent over one window"""
    agent_id: Any
    name: str
    email: Optional[str] = None
    availability: str = 'unknown'
    total_outbound_calls: int = 0
    answered_outbound_calls: int = 0
    missed_outbound_calls: int = 0
    total_inbound_calls: int = 0
    answered_inbound_calls: int = 0
    total_talk_time_minutes: float = 0
    inbound_talk_time_minutes: float = 0
    outbound_talk_time_minutes: float = 0
    call_ids: Tuple[Any, ...] = ()
    truncated: bool = False
    fetch_error: Optional[str] = None

    @classmethod
    def failed(cls, agent: Agent, reason: str) -> 'AgentActivity':
        """Zero-valued activity for an agent whose calls could not be fetched"""
        return cls(
            agent_id=agent.id,
            name=agent.display_name,
            email=agent.email,
            availability=agent.availability_status,
            fetch_error=reason
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the field names the Slack renderer expects"""
        data = {
            'user_id': self.agent_id,
            'name': self.name,
            'email': self.email,
            'availability': self.availability,
            'totalCalls': self.total_outbound_calls,
            'answeredCalls': self.answered_outbound_calls,
            'missedCalls': self.missed_outbound_calls,
            'totalDurationMinutes': self.total_talk_time_minutes,
            'outboundCalls': self.total_outbound_calls,
            'answeredOutboundCalls': self.answered_outbound_calls,
            'inboundCalls': self.total_inbound_calls,
            'answeredInboundCalls': self.answered_inbound_calls,
            'inboundDurationMinutes': self.inbound_talk_time_minutes,
            'outboundDurationMinutes': self.outbound_talk_time_minutes,
            'callCount': len(self.call_ids),
            'callIds': list(self.call_ids),
        }
        if self.truncated:
            data['truncated'] = True
        if self.fetch_error:
            data['error'] = self.fetch_error
        return data


@dataclass(frozen=True)
class ActivityOk:
    """Agent whose calls were fetched and aggregated"""
    agent: Agent
    activity: AgentActivity

    def to_activity(self) -> AgentActivity:
        return self.activity


@dataclass(frozen=True)
class ActivityFailed:
    """Agent whose call fetch failed upstream"""
    agent: Agent
    reason: str

    def to_activity(self) -> AgentActivity:
        return AgentActivity.failed(self.agent, self.reason)


AgentOutcome = Union[ActivityOk, ActivityFailed]


@dataclass(frozen=True)
class ActivitySummary:
    """Root report value handed to the Slack renderer"""
    period: str
    window: TimeWindow
    users: List[AgentActivity] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        """True when any agent's call list hit the page ceiling"""
        return any(user.truncated for user in self.users)

    @property
    def failed_agents(self) -> List[AgentActivity]:
        return [user for user in self.users if user.fetch_error]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'period': self.period,
            'startTime': self.window.start_iso,
            'endTime': self.window.end_iso,
            'partial': self.partial,
            'users': [user.to_dict() for user in self.users]
        }


def percentage(part: int, whole: int) -> int:
    """Rounded percentage, half up; 0 when whole is 0"""
    if whole <= 0:
        return 0
    return int(part * 100 / whole + 0.5)
