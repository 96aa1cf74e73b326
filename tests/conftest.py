"""Shared fixtures: sample exports, fake LLM provider and in-memory alert store."""
from unittest.mock import AsyncMock, Mock

import pytest

from netmon_agent.utils.exceptions import StoreError


TABLE_EXPORT = """
<html><body>
<table>
  <tr><th>Time</th><th>Host</th><th>Status</th><th>Problem</th><th>ID</th><th>Severity</th><th>Duration</th></tr>
  <tr bgcolor="#ff0000">
    <td>2024-01-15 10:30:00</td><td>Router-01</td><td>PROBLEM</td>
    <td>Interface GigabitEthernet0/0/1 is down</td><td>Problem ID: 12345</td>
    <td>Severity: HIGH</td><td>Duration: 2h 15m</td>
  </tr>
  <tr bgcolor="#00ff00">
    <td>2024-01-15 12:45:00</td><td>Router-01</td><td>OK</td>
    <td>Interface GigabitEthernet0/0/1 is up</td><td>Problem ID: 12345</td>
  </tr>
</table>
</body></html>
"""

MESSAGE_EXPORT = """
<html><body>
<div class="history">
 <div class="message service" id="message-1">
  <div class="body details">23 February 2022</div>
 </div>
 <div class="message default clearfix" id="message101">
  <div class="body">
   <div class="pull_right date details" title="23.02.2022 10:12:45 UTC-05:00">10:12</div>
   <div class="from_name">Zabbix Bot</div>
   <div class="text">&#10060; Problem started at 10:12:40 on 2022.02.23<br>Problem name: Interface Gi0/1(Uplink to ISP): Link down<br>Host: TRT-core-01<br>Severity: High<br>Original problem ID: 987654</div>
  </div>
 </div>
 <div class="message default clearfix" id="message102">
  <div class="body">
   <div class="pull_right date details" title="23.02.2022 10:27:50 UTC-05:00">10:27</div>
   <div class="from_name">Zabbix Bot</div>
   <div class="text">&#9989; Resolved: Interface Gi0/1(Uplink to ISP): Link down<br>Problem has been resolved at 10:27:45 on 2022.02.23 after 15m<br>Host: TRT-core-01<br>Severity: High<br>Original problem ID: 987654</div>
  </div>
 </div>
 <div class="message default clearfix" id="message103">
  <div class="body">
   <div class="pull_right date details" title="23.02.2022 11:00:00 UTC-05:00">11:00</div>
   <div class="text">Good morning team</div>
  </div>
 </div>
</div>
</body></html>
"""


class FakeStore:
    """In-memory stand-in for AlertStore."""

    def __init__(self, existing=None, search_results=None, rows=None, fallback_rows=None):
        self.existing = set(existing or [])
        self.search_results = search_results or []
        self.rows = rows or []
        self.fallback_rows = fallback_rows or []
        self.missing_embedding = []
        self.inserted = []
        self.uploads = []
        self.executed = []
        self.search_calls = []
        self.fallback_calls = 0
        self.embeddings_set = {}
        self.fail_execute = False
        self.insert_calls = 0
        self.failing_insert_calls = set()

    def exists(self, problem_id):
        return problem_id in self.existing

    def insert_batch(self, records):
        self.insert_calls += 1
        if self.insert_calls in self.failing_insert_calls:
            raise StoreError("connection lost")
        added = []
        for record in records:
            if record.problem_id in self.existing:
                continue
            self.existing.add(record.problem_id)
            self.inserted.append(record)
            added.append(record.problem_id)
        return added

    def insert_upload(self, **kwargs):
        self.uploads.append(kwargs)
        return kwargs

    def upload_history(self, limit=10):
        return self.uploads[-limit:]

    def similarity_search(self, embedding, threshold, limit):
        self.search_calls.append({"embedding": embedding, "threshold": threshold, "limit": limit})
        hits = [row for row in self.search_results if row["similarity"] > threshold]
        return hits[:limit]

    def execute_readonly(self, query, limit=100):
        self.executed.append(query)
        if self.fail_execute:
            raise StoreError('column "hostname" does not exist')
        return self.rows[:limit]

    def fetch_alerts(self, limit=100):
        self.fallback_calls += 1
        return self.fallback_rows[:limit]

    def count_alerts(self):
        return len(self.inserted)

    def alerts_missing_embedding(self):
        return self.missing_embedding

    def set_embedding(self, alert_id, embedding):
        self.embeddings_set[alert_id] = embedding


@pytest.fixture
def table_export():
    return TABLE_EXPORT


@pytest.fixture
def message_export():
    return MESSAGE_EXPORT


@pytest.fixture
def fake_llm():
    llm = Mock()
    llm.embed = AsyncMock(return_value=[0.1] * 8)
    llm.complete = AsyncMock(return_value="Generated answer")
    return llm


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def router_alerts():
    """Retrieval hits for Router-01, ordered by similarity descending."""
    return [
        {
            "problem_id": "12345",
            "host": "Router-01",
            "status": "PROBLEM",
            "severity": "HIGH",
            "timestamp": "2024-01-15T10:30:00+00:00",
            "description": "Interface GigabitEthernet0/0/1 is down",
            "interface": "GigabitEthernet0/0/1",
            "duration_seconds": 8100,
            "similarity": 0.92,
        },
        {
            "problem_id": "12350",
            "host": "Router-01",
            "status": "PROBLEM",
            "severity": "WARNING",
            "timestamp": "2024-01-15T11:05:00+00:00",
            "description": "High CPU utilization (over 90% for 5m)",
            "interface": None,
            "duration_seconds": 0,
            "similarity": 0.85,
        },
        {
            "problem_id": "12360",
            "host": "Router-01",
            "status": "OK",
            "severity": "LOW",
            "timestamp": "2024-01-15T12:45:00+00:00",
            "description": "Interface GigabitEthernet0/0/1 is up",
            "interface": "GigabitEthernet0/0/1",
            "duration_seconds": 0,
            "similarity": 0.71,
        },
        {
            "problem_id": "99999",
            "host": "Switch-07",
            "status": "OK",
            "severity": "LOW",
            "timestamp": "2024-01-10T08:00:00+00:00",
            "description": "Fan speed normal",
            "interface": None,
            "duration_seconds": 0,
            "similarity": 0.40,
        },
    ]
