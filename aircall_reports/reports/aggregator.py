"""
Per-agent call activity rollup

Total calls means outbound dials only. Talk time counts connected
time from answered calls in both directions.
"""

from typing import Any, Dict, Iterable, List, Optional

from aircall_reports.models import (
    INBOUND,
    OUTBOUND,
    Agent,
    AgentActivity,
    CallRecord,
    percentage
)


def answered_seconds(calls: Iterable[CallRecord]) -> int:
    """Connected seconds; unanswered calls count zero whatever their duration"""
    return sum(call.duration for call in calls if call.answered)


def to_minutes(seconds: int) -> float:
    return round(seconds / 60, 2)


def aggregate(calls: List[CallRecord], agent: Optional[Agent] = None) -> AgentActivity:
    """
    Compute activity statistics from one agent's calls

    Args:
        calls: Call records already scoped to the agent
        agent: Roster entry the calls belong to

    Returns:
        AgentActivity
    """
    inbound = [call for call in calls if call.direction == INBOUND]
    outbound = [call for call in calls if call.direction == OUTBOUND]

    answered_outbound = sum(1 for call in outbound if call.answered)
    inbound_seconds = answered_seconds(inbound)
    outbound_seconds = answered_seconds(outbound)

    return AgentActivity(
        agent_id=agent.id if agent else None,
        name=agent.display_name if agent else '',
        email=agent.email if agent else None,
        availability=agent.availability_status if agent else 'unknown',
        total_outbound_calls=len(outbound),
        answered_outbound_calls=answered_outbound,
        missed_outbound_calls=len(outbound) - answered_outbound,
        total_inbound_calls=len(inbound),
        answered_inbound_calls=sum(1 for call in inbound if call.answered),
        total_talk_time_minutes=to_minutes(inbound_seconds + outbound_seconds),
        inbound_talk_time_minutes=to_minutes(inbound_seconds),
        outbound_talk_time_minutes=to_minutes(outbound_seconds),
        call_ids=tuple(call.id for call in calls)
    )


def summarize(activities: List[AgentActivity]) -> Dict[str, Any]:
    """
    Roster-wide totals by summing per-agent results

    Args:
        activities: One entry per roster agent

    Returns:
        Dictionary of totals
    """
    total_outbound = sum(a.total_outbound_calls for a in activities)
    answered_outbound = sum(a.answered_outbound_calls for a in activities)

    return {
        'total_outbound_calls': total_outbound,
        'answered_outbound_calls': answered_outbound,
        'missed_outbound_calls': sum(a.missed_outbound_calls for a in activities),
        'total_inbound_calls': sum(a.total_inbound_calls for a in activities),
        'answered_inbound_calls': sum(a.answered_inbound_calls for a in activities),
        'total_talk_time_minutes': round(sum(a.total_talk_time_minutes for a in activities), 2),
        'inbound_talk_time_minutes': round(sum(a.inbound_talk_time_minutes for a in activities), 2),
        'outbound_talk_time_minutes': round(sum(a.outbound_talk_time_minutes for a in activities), 2),
        'answer_rate': percentage(answered_outbound, total_outbound),
        'failed_agents': sum(1 for a in activities if a.fetch_error),
    }
