from __future__ import annotations

import json

import requests

from tems import collector
from tems.schemas import Metric


class _Resp:
    def __init__(self, status_code=204):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


def test_sample_once_fills_metric():
    m = collector.sample_once(hostname="agent-1")
    assert m.hostname == "agent-1"
    assert 0.0 <= m.mem_percent <= 100.0
    assert 0.0 <= m.disk_percent <= 100.0
    assert isinstance(m.network, dict)
    assert isinstance(m.processes, list)
    assert len(m.processes) <= collector.TOP_PROCESSES
    assert m.last_seen == 0


def test_send_posts_metric_without_last_seen(monkeypatch):
    seen = {}

    def fake_post(url, data=None, headers=None, timeout=None):
        seen.update(url=url, body=json.loads(data), timeout=timeout)
        return _Resp(204)

    monkeypatch.setattr(collector.requests, "post", fake_post)
    status, err = collector.send(Metric(hostname="h1", cpu_percent=3.0), url="http://tems/metrics")
    assert (status, err) == (204, None)
    assert seen["url"] == "http://tems/metrics"
    assert seen["body"]["hostname"] == "h1"
    assert "last_seen" not in seen["body"]


def test_send_reports_failure(monkeypatch):
    def refused(*_a, **_k):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(collector.requests, "post", refused)
    status, err = collector.send(Metric(hostname="h1"))
    assert status is None
    assert "refused" in err

    monkeypatch.setattr(collector.requests, "post", lambda *_a, **_k: _Resp(400))
    status, err = collector.send(Metric(hostname="h1"))
    assert status is None
    assert "400" in err


def test_agent_payload_is_accepted_by_service(client, monkeypatch):
    def via_test_client(url, data=None, headers=None, timeout=None):
        return client.post("/metrics", content=data, headers=headers)

    monkeypatch.setattr(collector.requests, "post", via_test_client)
    status, err = collector.send(Metric(hostname="h9", network={"eth0": {}}, processes=[{"pid": 1}]))
    assert status == 204
    assert err is None
    assert client.get("/api").json()["h9"]["processes"] == [{"pid": 1}]


def test_main_single_shot(monkeypatch):
    monkeypatch.setattr(collector, "sample_once", lambda hostname=None: Metric(hostname=hostname or "x"))
    monkeypatch.setattr(collector, "send", lambda m, url: (204, None))
    assert collector.main(["--hostname", "h1"]) == 0

    monkeypatch.setattr(collector, "send", lambda m, url: (None, "refused"))
    assert collector.main([]) == 1
