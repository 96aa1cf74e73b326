"""导入前预览统计"""
from typing import Dict, List

from .alert_parser import AlertRecord, parse
from .extractors import DEFAULT_HOST, parse_datetime


def summarize(alerts: List[AlertRecord]) -> Dict:
    """统计告警数量、时间范围和主机"""
    timestamps = [t for t in (parse_datetime(a.timestamp) for a in alerts) if t is not None]

    hosts = []
    for alert in alerts:
        if alert.host != DEFAULT_HOST and alert.host not in hosts:
            hosts.append(alert.host)

    return {
        "totalMessages": len(alerts),
        "dateRange": {
            "start": min(timestamps).isoformat() if timestamps else None,
            "end": max(timestamps).isoformat() if timestamps else None,
        },
        "hostsCount": len(hosts),
        "hosts": hosts,
    }


def preview_stats(document: str) -> Dict:
    return summarize(parse(document))
