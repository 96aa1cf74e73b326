"""Field extractor tests"""
from bs4 import BeautifulSoup

from netmon_agent.parsers import extractors
from netmon_agent.parsers.extractors import Fragment


def row_fragment(html: str) -> Fragment:
    soup = BeautifulSoup(f"<table>{html}</table>", "html.parser")
    return Fragment.from_row(soup.find("tr"))


class TestStatus:

    def test_exact_status_cell_wins(self):
        fragment = row_fragment("<tr><td>2024-01-15 10:30:00</td><td>sw1</td><td>OK</td></tr>")
        assert extractors.extract_status(fragment) == "OK"

    def test_problem_id_label_is_not_a_status(self):
        fragment = row_fragment(
            "<tr><td>2024-01-15 10:30:00</td><td>sw1</td><td>Link restored, Problem ID: 42</td></tr>"
        )
        assert extractors.extract_status(fragment) == "UNKNOWN"

    def test_red_background_means_problem(self):
        fragment = row_fragment(
            '<tr bgcolor="#ff0000"><td>2024-01-15 10:30:00</td><td>core-sw-02</td><td>Link flapping</td></tr>'
        )
        assert extractors.extract_status(fragment) == "PROBLEM"

    def test_green_style_on_cell_means_ok(self):
        fragment = row_fragment(
            '<tr><td style="background-color: #22cc22">2024-01-15 10:30:00</td><td>core-sw-02</td></tr>'
        )
        assert extractors.extract_status(fragment) == "OK"

    def test_classify_color(self):
        assert extractors.classify_color("red") == "PROBLEM"
        assert extractors.classify_color("#f00") == "PROBLEM"
        assert extractors.classify_color("lime") == "OK"
        assert extractors.classify_color("#ffffff") is None
        assert extractors.classify_color("transparent") is None


class TestSeverity:

    def test_keyword_found(self):
        fragment = row_fragment("<tr><td>Severity: Disaster</td></tr>")
        assert extractors.extract_severity(fragment, "PROBLEM") == "CRITICAL"

    def test_defaults_to_warning_for_problem(self):
        fragment = row_fragment("<tr><td>Link flapping</td></tr>")
        assert extractors.extract_severity(fragment, "PROBLEM") == "WARNING"

    def test_defaults_to_low_otherwise(self):
        fragment = row_fragment("<tr><td>Link flapping</td></tr>")
        assert extractors.extract_severity(fragment, "OK") == "LOW"
        assert extractors.extract_severity(fragment, "UNKNOWN") == "LOW"

    def test_keyword_requires_word_boundary(self):
        fragment = row_fragment("<tr><td>Highway router flow</td></tr>")
        assert extractors.extract_severity(fragment, "PROBLEM") == "WARNING"


class TestHost:

    def test_host_class_hint(self):
        fragment = row_fragment('<tr><td>2024-01-15</td><td>x</td><td class="hostname">edge-01</td></tr>')
        assert extractors.extract_host(fragment) == "edge-01"

    def test_second_cell(self):
        fragment = row_fragment("<tr><td>2024-01-15</td><td>edge-01</td></tr>")
        assert extractors.extract_host(fragment) == "edge-01"

    def test_status_word_is_not_a_host(self):
        fragment = row_fragment("<tr><td>2024-01-15</td><td>PROBLEM</td><td>Host: edge-02</td></tr>")
        assert extractors.extract_host(fragment) == "edge-02"

    def test_default(self):
        fragment = row_fragment("<tr><td>2024-01-15</td></tr>")
        assert extractors.extract_host(fragment) == "UNKNOWN"


class TestProblemId:

    def test_labelled_id(self):
        fragment = row_fragment("<tr><td>Problem ID: 12345</td></tr>")
        assert extractors.extract_problem_id(fragment, "sw1", "2024-01-15T10:30:00+00:00") == "12345"

    def test_hash_id(self):
        fragment = row_fragment("<tr><td>Ticket #778899 opened</td></tr>")
        assert extractors.extract_problem_id(fragment, "sw1", "2024-01-15T10:30:00+00:00") == "778899"

    def test_fallback_is_deterministic(self):
        first = extractors.fallback_problem_id("sw1", "2024-01-15T10:30:00+00:00")
        second = extractors.fallback_problem_id("sw1", "2024-01-15T10:30:00+00:00")
        # 1705314600000 ms
        assert first == second == "lresa6o0-sw1"

    def test_fallback_keeps_milliseconds(self):
        problem_id = extractors.fallback_problem_id("edge-01", "2024-01-15T10:30:00.123000+00:00")
        assert problem_id == "lresa6rf-edge-01"
        assert problem_id != extractors.fallback_problem_id("edge-01", "2024-01-15T10:30:00+00:00")

    def test_fallback_distinguishes_hosts_in_same_millisecond(self):
        timestamp = "2024-01-15T10:30:00+00:00"
        router_01 = extractors.fallback_problem_id("Router-01", timestamp)
        router_02 = extractors.fallback_problem_id("Router-02", timestamp)

        assert router_01 == "lresa6o0-Router-01"
        assert router_01 != router_02

    def test_fallback_truncates_long_hosts(self):
        problem_id = extractors.fallback_problem_id(
            "datacenter-core-switch-01", "2024-01-15T10:30:00+00:00"
        )
        assert problem_id == "lresa6o0-datacenter-"
        assert len(problem_id) == extractors.MAX_PROBLEM_ID_LENGTH

    def test_base36(self):
        assert extractors._base36(0) == "0"
        assert extractors._base36(35) == "z"
        assert extractors._base36(36) == "10"
        assert extractors._base36(1705314600000) == "lresa6o0"


class TestOtherFields:

    def test_timestamp_from_first_cell(self):
        fragment = row_fragment("<tr><td>2024-01-15 10:30:00</td><td>sw1</td></tr>")
        assert extractors.extract_timestamp(fragment) == "2024-01-15T10:30:00+00:00"

    def test_timestamp_from_class_hint(self):
        fragment = row_fragment(
            '<tr><td>sw1</td><td><span class="event-time" title="2024-01-15 10:30:00"></span></td></tr>'
        )
        assert extractors.extract_timestamp(fragment) == "2024-01-15T10:30:00+00:00"

    def test_duration_variants(self):
        assert extractors.extract_duration(row_fragment("<tr><td>Duration: 2h 15m</td></tr>")) == 8100
        assert extractors.extract_duration(row_fragment("<tr><td>lasted 45m</td></tr>")) == 2700
        assert extractors.extract_duration(row_fragment("<tr><td>flap 30s</td></tr>")) == 30
        assert extractors.extract_duration(row_fragment("<tr><td>down 3 hours</td></tr>")) == 10800
        assert extractors.extract_duration(row_fragment("<tr><td>no duration</td></tr>")) == 0

    def test_interface(self):
        assert extractors.extract_interface(
            row_fragment("<tr><td>Interface: xe-0/0/1 flapping</td></tr>")
        ) == "xe-0/0/1"
        assert extractors.extract_interface(
            row_fragment("<tr><td>GigabitEthernet0/0/1 is down</td></tr>")
        ) == "GigabitEthernet0/0/1"
        assert extractors.extract_interface(row_fragment("<tr><td>CPU high</td></tr>")) is None

    def test_alert_type_catalog_and_default(self):
        assert extractors.extract_alert_type(
            row_fragment("<tr><td>High CPU utilization on sw1</td></tr>")
        ) == "High CPU utilization"
        assert extractors.extract_alert_type(
            row_fragment("<tr><td>Problem: Fan failure Duration: 5m</td></tr>")
        ) == "Fan failure"
        assert extractors.extract_alert_type(row_fragment("<tr><td>something odd</td></tr>")) == "General Alert"

    def test_description_strips_labels_and_truncates(self):
        fragment = row_fragment(f"<tr><td>Description: {'x' * 600}</td></tr>")
        description = extractors.extract_description(fragment)
        assert description == "x" * 500

    def test_provider(self):
        assert extractors.extract_provider("uplink via Cisco ASR") == "Cisco"
        assert extractors.extract_provider("no vendor here") is None
