"""告警HTML解析器

支持两种导出格式：
- 表格格式：每个 <tr> 是一条告警
- 消息流格式（Telegram导出）：每个 div.message.default 是一条告警
"""
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import List, Optional
import re
import logging

from bs4 import BeautifulSoup

from . import extractors
from .extractors import Fragment
from ..utils.exceptions import AlertExtractionError

logger = logging.getLogger(__name__)

DIALECT_TABLE = "table"
DIALECT_MESSAGES = "messages"

MESSAGE_SEVERITY_MAP = {
    "disaster": extractors.SEVERITY_CRITICAL,
    "critical": extractors.SEVERITY_CRITICAL,
    "high": extractors.SEVERITY_HIGH,
    "average": extractors.SEVERITY_WARNING,
    "warning": extractors.SEVERITY_WARNING,
    "low": extractors.SEVERITY_LOW,
    "information": extractors.SEVERITY_LOW,
}

# 例如 "23.02.2022 10:12:45 UTC-05:00"
_MESSAGE_DATE = re.compile(r"(\d{2})\.(\d{2})\.(\d{4})\s+(\d{2}):(\d{2}):(\d{2})")
_LINE_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")


@dataclass
class AlertRecord:
    """标准化后的告警记录"""
    problem_id: str
    timestamp: str
    status: str
    severity: str
    host: str
    alert_type: str
    description: str
    interface: Optional[str] = None
    provider: Optional[str] = None
    duration_seconds: int = 0
    embedding: Optional[List[float]] = None

    def to_dict(self, include_embedding: bool = True) -> dict:
        data = asdict(self)
        if not include_embedding:
            data.pop("embedding")
        return data


def detect_dialect(soup: BeautifulSoup) -> Optional[str]:
    """根据文档结构判断格式"""
    if soup.select_one("div.message.default"):
        return DIALECT_MESSAGES
    if soup.find("tr"):
        return DIALECT_TABLE
    return None


def parse(document: str) -> List[AlertRecord]:
    """解析HTML文档，返回告警列表"""
    soup = BeautifulSoup(document or "", "html.parser")
    dialect = detect_dialect(soup)

    if dialect == DIALECT_MESSAGES:
        return parse_messages(soup)
    if dialect == DIALECT_TABLE:
        return parse_tabular(soup)

    logger.warning("Document contains neither table rows nor message containers")
    return []


def parse_tabular(soup: BeautifulSoup) -> List[AlertRecord]:
    """表格格式：逐行提取"""
    alerts = []

    for index, row in enumerate(soup.find_all("tr")):
        cells = row.find_all(["td", "th"])
        if not cells or all(cell.name == "th" for cell in cells):
            continue

        try:
            alert = parse_row(Fragment.from_row(row))
        except Exception as e:
            logger.error(f"Error parsing table row {index}: {e}")
            continue

        if alert.problem_id and alert.host:
            alerts.append(alert)
        else:
            logger.warning(f"Skipping table row {index}: missing problem id or host")

    logger.info(f"Parsed {len(alerts)} alerts from table document")
    return alerts


def parse_row(fragment: Fragment) -> AlertRecord:
    """对单行执行全部字段提取器"""
    if not fragment.text:
        raise AlertExtractionError("Empty table row")

    timestamp = extractors.extract_timestamp(fragment)
    status = extractors.extract_status(fragment)
    host = extractors.extract_host(fragment)

    return AlertRecord(
        problem_id=extractors.extract_problem_id(fragment, host, timestamp),
        timestamp=timestamp,
        status=status,
        severity=extractors.extract_severity(fragment, status),
        host=host,
        interface=extractors.extract_interface(fragment),
        alert_type=extractors.extract_alert_type(fragment),
        provider=extractors.extract_provider(fragment.text),
        duration_seconds=extractors.extract_duration(fragment),
        description=extractors.extract_description(fragment),
    )


def parse_messages(soup: BeautifulSoup) -> List[AlertRecord]:
    """消息流格式：逐条消息提取"""
    alerts = []

    for index, message in enumerate(soup.select("div.message.default")):
        try:
            text_div = message.select_one(".text")
            if text_div is None:
                continue

            body = text_div.decode_contents()
            if not body.strip():
                continue

            date_element = message.select_one(".pull_right.date.details")
            date_title = date_element.get("title") if date_element else None

            alert = parse_message_text(body, date_title)
        except Exception as e:
            logger.error(f"Error parsing message {index}: {e}")
            continue

        if alert is not None and alert.problem_id:
            alerts.append(alert)

    logger.info(f"Parsed {len(alerts)} alerts from message export")
    return alerts


def _labelled(text: str, label: str) -> Optional[str]:
    match = re.search(rf"{label}:\s*(.+?)(?:\n|$)", text, re.IGNORECASE)
    return match.group(1).strip() if match else None


def parse_message_timestamp(date_title: Optional[str]) -> str:
    """解析消息的title时间，按UTC墙上时间处理"""
    if date_title:
        match = _MESSAGE_DATE.search(date_title)
        if match:
            day, month, year, hour, minute, second = (int(g) for g in match.groups())
            try:
                return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc).isoformat()
            except ValueError:
                logger.warning(f"Invalid message date: {date_title}")
    return extractors.utc_now_iso()


def parse_message_text(html_text: str, date_title: Optional[str]) -> Optional[AlertRecord]:
    """解析单条消息正文"""
    text = _TAG.sub("", _LINE_BREAK.sub("\n", html_text))
    text = "\n".join(line.strip() for line in text.split("\n") if line.strip())

    if "✅" in text or "resolved" in text:
        status = extractors.STATUS_OK
    elif "❌" in text or "Problem started" in text:
        status = extractors.STATUS_PROBLEM
    else:
        status = extractors.STATUS_UNKNOWN

    problem_name = _labelled(text, "Problem name")
    host = _labelled(text, "Host")
    severity = _labelled(text, "Severity")
    id_match = re.search(r"Original problem ID:\s*(\d+)", text, re.IGNORECASE)
    problem_id = id_match.group(1) if id_match else None

    duration_seconds = 0
    duration_match = re.search(r"after\s+(\d+)m", text, re.IGNORECASE)
    if duration_match:
        duration_seconds = int(duration_match.group(1)) * 60

    alert_type = extractors.DEFAULT_ALERT_TYPE
    interface = None
    if problem_name:
        alert_type = problem_name
        interface_match = re.search(r"Interface\s+([^:]+?):", problem_name)
        if interface_match:
            interface = interface_match.group(1).strip()

    return AlertRecord(
        problem_id=problem_id,
        timestamp=parse_message_timestamp(date_title),
        status=status,
        severity=MESSAGE_SEVERITY_MAP.get((severity or "").lower(), extractors.SEVERITY_WARNING),
        host=host or extractors.DEFAULT_HOST,
        interface=interface,
        alert_type=alert_type,
        provider=extractors.extract_provider(text),
        duration_seconds=duration_seconds,
        description=text[:extractors.MAX_DESCRIPTION_LENGTH],
    )
