"""告警字段提取器

每个提取器负责从单个告警片段中恢复一个字段。提取策略按顺序执行，
第一个通过校验的结果胜出，全部失败时返回默认值。
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Tuple
import calendar
import re
import logging

from bs4 import Tag
from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

STATUS_PROBLEM = "PROBLEM"
STATUS_OK = "OK"
STATUS_RESOLVED = "RESOLVED"
STATUS_UNKNOWN = "UNKNOWN"

SEVERITY_CRITICAL = "CRITICAL"
SEVERITY_HIGH = "HIGH"
SEVERITY_WARNING = "WARNING"
SEVERITY_LOW = "LOW"

DEFAULT_HOST = "UNKNOWN"
DEFAULT_ALERT_TYPE = "General Alert"
MAX_DESCRIPTION_LENGTH = 500
MAX_HOST_LENGTH = 100
MAX_PROBLEM_ID_LENGTH = 20

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"

# 升级顺序：先匹配到的级别优先
SEVERITY_KEYWORDS = [
    ("CRITICAL", SEVERITY_CRITICAL),
    ("DISASTER", SEVERITY_CRITICAL),
    ("HIGH", SEVERITY_HIGH),
    ("WARNING", SEVERITY_WARNING),
    ("AVERAGE", SEVERITY_WARNING),
    ("LOW", SEVERITY_LOW),
    ("INFORMATION", SEVERITY_LOW),
]

ALERT_TYPE_CATALOG = [
    ("high bandwidth usage", "High bandwidth usage"),
    ("high input bandwidth", "High bandwidth usage"),
    ("high output bandwidth", "High bandwidth usage"),
    ("high error rate", "High error rate"),
    ("link down", "Link down"),
    ("interface down", "Interface down"),
    ("operational status was changed", "Interface status changed"),
    ("is down", "Interface down"),
    ("is up", "Interface up"),
    ("unreachable", "Host unreachable"),
    ("unavailable by icmp ping", "Host unreachable"),
    ("high icmp ping loss", "High ICMP ping loss"),
    ("high icmp ping response time", "High ICMP ping response time"),
    ("high cpu utilization", "High CPU utilization"),
    ("high memory utilization", "High memory utilization"),
    ("has been restarted", "Device restarted"),
    ("bgp", "BGP session"),
]

PROVIDERS = [
    "Cisco", "Juniper", "Huawei", "MikroTik", "Arista", "Fortinet",
    "Palo Alto", "Ubiquiti", "Nokia", "Ericsson", "ZTE", "Extreme Networks",
]

STATUS_WORDS = {STATUS_PROBLEM, STATUS_OK, STATUS_RESOLVED, STATUS_UNKNOWN}

_DESCRIPTION_LABELS = re.compile(r"^(?:Problem|Description|Message|Alert)\s*:\s*", re.IGNORECASE)
_PROBLEM_ID_LABELS = re.compile(r"\b(?:original\s+)?(?:problem|event)\s+id\s*:", re.IGNORECASE)
_HEX_COLOR = re.compile(r"#?([0-9a-f]{6}|[0-9a-f]{3})\b", re.IGNORECASE)
_STYLE_BACKGROUND = re.compile(r"background(?:-color)?\s*:\s*([^;]+)", re.IGNORECASE)

INTERFACE_PATTERNS = [
    re.compile(r"Interface:\s*([^\s,;]+)", re.IGNORECASE),
    re.compile(r"Port:\s*([^\s,;]+)", re.IGNORECASE),
    re.compile(
        r"\b((?:TenGigabitEthernet|GigabitEthernet|FastEthernet|Ethernet|Te|Gi|Fa)\d+(?:[/.:]\d+)*"
        r"|(?:ge|xe|et)-\d+(?:/\d+)+"
        r"|(?:eth|ens|bond|vlan|ether|sfp)\d+)\b",
        re.IGNORECASE,
    ),
    re.compile(r"Interface\s+(\S+?)(?:\([^)]*\))?:", re.IGNORECASE),
]

PROBLEM_ID_PATTERNS = [
    re.compile(r"Problem\s+ID:\s*([\w-]+)", re.IGNORECASE),
    re.compile(r"\bID:\s*([\w-]+)", re.IGNORECASE),
    re.compile(r"#(\d+)"),
    re.compile(r"Event\s+ID:\s*([\w-]+)", re.IGNORECASE),
]

# (正则, 换算为秒的函数)
DURATION_PATTERNS = [
    (re.compile(r"(\d+)\s*h\s*(\d+)\s*m\b", re.IGNORECASE), lambda m: int(m.group(1)) * 3600 + int(m.group(2)) * 60),
    (re.compile(r"(\d+)\s*m\b", re.IGNORECASE), lambda m: int(m.group(1)) * 60),
    (re.compile(r"(\d+)\s*s\b", re.IGNORECASE), lambda m: int(m.group(1))),
    (re.compile(r"(\d+)\s*hours?\b", re.IGNORECASE), lambda m: int(m.group(1)) * 3600),
    (re.compile(r"(\d+)\s*minutes?\b", re.IGNORECASE), lambda m: int(m.group(1)) * 60),
]


@dataclass
class Fragment:
    """单个告警片段（表格行或消息体）"""
    text: str
    cells: List[str] = field(default_factory=list)
    element: Optional[Tag] = None

    @classmethod
    def from_row(cls, row: Tag) -> "Fragment":
        cells = [cell.get_text(" ", strip=True) for cell in row.find_all(["td", "th"])]
        return cls(text=collapse_whitespace(row.get_text(" ", strip=True)), cells=cells, element=row)


Strategy = Tuple[Callable[[Fragment], Optional[str]], Callable[[str], bool]]


def first_valid(strategies: Sequence[Strategy], fragment: Fragment, default=None):
    """按顺序执行策略，返回第一个通过校验的结果"""
    for extract, is_valid in strategies:
        candidate = extract(fragment)
        if candidate is not None:
            candidate = candidate.strip()
            if is_valid(candidate):
                return candidate
    return default


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def _cell(index: int) -> Callable[[Fragment], Optional[str]]:
    def extract(fragment: Fragment) -> Optional[str]:
        if len(fragment.cells) > index:
            return fragment.cells[index]
        return None
    return extract


def _class_hinted(*hints: str) -> Callable[[Fragment], Optional[str]]:
    """查找class包含提示词的元素，取其文本（或title属性）"""
    def extract(fragment: Fragment) -> Optional[str]:
        if fragment.element is None:
            return None

        def matches(classes):
            if not classes:
                return False
            if isinstance(classes, str):
                classes = classes.split()
            return any(hint in c.lower() for c in classes for hint in hints)

        for element in fragment.element.find_all(class_=matches):
            value = element.get_text(" ", strip=True) or element.get("title")
            if value:
                return value
        return None
    return extract


def _regex(pattern: re.Pattern) -> Callable[[Fragment], Optional[str]]:
    def extract(fragment: Fragment) -> Optional[str]:
        match = pattern.search(fragment.text)
        return match.group(1) if match else None
    return extract


def parse_datetime(value: str) -> Optional[datetime]:
    """解析时间字符串，无时区信息时按UTC处理"""
    if not value or len(value) > 64:
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _is_date(value: str) -> bool:
    return parse_datetime(value) is not None


def _is_host(value: str) -> bool:
    return 0 < len(value) <= MAX_HOST_LENGTH and value.upper() not in STATUS_WORDS


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


TIMESTAMP_STRATEGIES: List[Strategy] = [
    (_cell(0), _is_date),
    (_class_hinted("time", "date"), _is_date),
]

HOST_STRATEGIES: List[Strategy] = [
    (_class_hinted("host"), _is_host),
    (_cell(1), _is_host),
    (_regex(re.compile(r"Host:\s*(\S+)", re.IGNORECASE)), _is_host),
]


def extract_timestamp(fragment: Fragment) -> str:
    """提取时间戳（ISO-8601），无法解析时使用当前时间"""
    value = first_valid(TIMESTAMP_STRATEGIES, fragment)
    if value is None:
        return utc_now_iso()
    return parse_datetime(value).isoformat()


def _status_from_color(fragment: Fragment) -> Optional[str]:
    """根据背景色判断状态：偏红为PROBLEM，偏绿为OK"""
    if fragment.element is None:
        return None

    elements = [fragment.element] + fragment.element.find_all(["td", "th", "font", "span"])
    for element in elements:
        colors = []
        if element.get("bgcolor"):
            colors.append(element["bgcolor"])
        style = element.get("style") or ""
        colors.extend(_STYLE_BACKGROUND.findall(style))

        for color in colors:
            status = classify_color(color)
            if status:
                return status
    return None


def classify_color(color: str) -> Optional[str]:
    color = color.strip().lower()
    if "red" in color:
        return STATUS_PROBLEM
    if "green" in color or "lime" in color:
        return STATUS_OK

    match = _HEX_COLOR.search(color)
    if not match:
        return None
    hex_value = match.group(1)
    if len(hex_value) == 3:
        hex_value = "".join(c * 2 for c in hex_value)
    r, g, b = (int(hex_value[i:i + 2], 16) for i in (0, 2, 4))

    if r - max(g, b) >= 0x33:
        return STATUS_PROBLEM
    if g - max(r, b) >= 0x33:
        return STATUS_OK
    return None


def extract_status(fragment: Fragment) -> str:
    """提取告警状态"""
    for cell in fragment.cells:
        if cell.strip().upper() in (STATUS_PROBLEM, STATUS_OK, STATUS_RESOLVED):
            return cell.strip().upper()

    # "Problem ID:" 之类的标签不代表状态
    text = _PROBLEM_ID_LABELS.sub(" ", fragment.text)
    for status in (STATUS_PROBLEM, STATUS_OK, STATUS_RESOLVED):
        if re.search(rf"\b{status}\b", text, re.IGNORECASE):
            return status

    return _status_from_color(fragment) or STATUS_UNKNOWN


def severity_for_status(status: str) -> str:
    return SEVERITY_WARNING if status == STATUS_PROBLEM else SEVERITY_LOW


def extract_severity(fragment: Fragment, status: str) -> str:
    """提取严重级别，未命中关键词时根据状态推断"""
    for keyword, severity in SEVERITY_KEYWORDS:
        if re.search(rf"\b{keyword}\b", fragment.text, re.IGNORECASE):
            return severity
    return severity_for_status(status)


def extract_host(fragment: Fragment) -> str:
    return first_valid(HOST_STRATEGIES, fragment, DEFAULT_HOST)


def extract_interface(fragment: Fragment) -> Optional[str]:
    for pattern in INTERFACE_PATTERNS:
        match = pattern.search(fragment.text)
        if match:
            return match.group(1).strip()
    return None


def extract_alert_type(fragment: Fragment) -> str:
    """提取告警类型"""
    lowered = fragment.text.lower()
    for needle, alert_type in ALERT_TYPE_CATALOG:
        if needle in lowered:
            return alert_type

    match = re.search(r"Problem:\s*(.+?)\s*(?:Duration|Time)", fragment.text, re.IGNORECASE)
    if match and match.group(1).strip():
        return match.group(1).strip()[:100]

    return DEFAULT_ALERT_TYPE


def _base36(value: int) -> str:
    digits = ""
    while True:
        value, remainder = divmod(value, 36)
        digits = _BASE36_DIGITS[remainder] + digits
        if not value:
            return digits


def fallback_problem_id(host: str, timestamp: str) -> str:
    """根据主机和毫秒时间戳生成确定性的ID

    毫秒时间戳用base36编码（8位，到2059年为止），剩余长度保留主机名前11个字符。
    同一毫秒内、主机名前11个字符相同的告警会得到相同的ID。
    """
    parsed = parse_datetime(timestamp)
    epoch_ms = 0
    if parsed:
        epoch_ms = calendar.timegm(parsed.utctimetuple()) * 1000 + parsed.microsecond // 1000
    return f"{_base36(epoch_ms)}-{host}"[:MAX_PROBLEM_ID_LENGTH]


def extract_problem_id(fragment: Fragment, host: str, timestamp: str) -> str:
    for pattern in PROBLEM_ID_PATTERNS:
        match = pattern.search(fragment.text)
        if match:
            return match.group(1)[:MAX_PROBLEM_ID_LENGTH]
    return fallback_problem_id(host, timestamp)


def extract_description(fragment: Fragment) -> str:
    text = collapse_whitespace(fragment.text)
    previous = None
    while previous != text:
        previous = text
        text = _DESCRIPTION_LABELS.sub("", text)
    return text[:MAX_DESCRIPTION_LENGTH]


def extract_duration(fragment: Fragment) -> int:
    """提取持续时间（秒）"""
    for pattern, to_seconds in DURATION_PATTERNS:
        match = pattern.search(fragment.text)
        if match:
            return to_seconds(match)
    return 0


def extract_provider(text: str) -> Optional[str]:
    for provider in PROVIDERS:
        if re.search(rf"\b{re.escape(provider)}\b", text, re.IGNORECASE):
            return provider
    return None
