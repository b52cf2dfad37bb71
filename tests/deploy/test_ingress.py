"""Unit tests for ingress rule synthesis and upsert."""

import asyncio

import pytest

from fndock.cluster.errors import ApiError
from fndock.deploy import IngressError, add_ingress_rule_if_necessary, build_rules, remove_ingress_rule_if_necessary
from fndock.service import FunctionSpec

API_HOST = "192.168.99.100"
DEFAULT_HOST = f"{API_HOST}.nip.io"


def _fn(fid, *events):
    return FunctionSpec(id=fid, handler=f"handler.{fid}", events=list(events))


# ── build_rules ─────────────────────────────────────────────────────


def test_same_host_paths_are_merged():
    functions = [
        _fn("hello", {"type": "http", "path": "/hello"}),
        _fn("bye", {"type": "http", "path": "bye"}),
    ]
    rules = build_rules(functions, fallback_host=DEFAULT_HOST)
    assert rules == [
        {
            "host": DEFAULT_HOST,
            "http": {
                "paths": [
                    {"path": "/hello", "backend": {"serviceName": "hello", "servicePort": 8080}},
                    {"path": "/bye", "backend": {"serviceName": "bye", "servicePort": 8080}},
                ]
            },
        }
    ]


def test_root_path_without_hostname_contributes_nothing():
    functions = [
        _fn("implicit"),
        _fn("root", {"type": "http", "path": "/"}),
        _fn("bare", {"type": "http"}),
    ]
    assert build_rules(functions, fallback_host=DEFAULT_HOST) == []


def test_root_path_with_explicit_hostname_contributes():
    rules = build_rules([_fn("root", {"type": "http", "path": "/", "hostname": "api.example.com"})])
    assert rules == [
        {
            "host": "api.example.com",
            "http": {"paths": [{"path": "/", "backend": {"serviceName": "root", "servicePort": 8080}}]},
        }
    ]


def test_hostname_precedence():
    functions = [
        _fn("a", {"type": "http", "path": "/a", "hostname": "a.example.com"}),
        _fn("b", {"type": "http", "path": "/b"}),
    ]
    rules = build_rules(functions, hostname="run.example.com", fallback_host=DEFAULT_HOST)
    assert [r["host"] for r in rules] == ["a.example.com", "run.example.com"]

    rules = build_rules(functions, fallback_host=DEFAULT_HOST)
    assert [r["host"] for r in rules] == ["a.example.com", DEFAULT_HOST]


def test_non_http_and_invalid_events_are_ignored():
    functions = [
        _fn("queue", {"type": "trigger", "topic": "orders"}),
        _fn("cron", {"type": "schedule", "schedule": "* * * * *"}),
        _fn("broken", {"type": "websocket"}),
    ]
    assert build_rules(functions, fallback_host=DEFAULT_HOST) == []


# ── add_ingress_rule_if_necessary ───────────────────────────────────


def test_no_rules_is_a_noop(fake_client):
    result = asyncio.run(add_ingress_rule_if_necessary(fake_client, "svc", [_fn("hello")], API_HOST))
    assert result is None
    assert fake_client.calls == []


def test_creates_ingress_when_missing(fake_client):
    functions = [
        _fn("hello", {"type": "http", "path": "/hello"}),
        _fn("bye", {"type": "http", "path": "/bye"}),
    ]
    ingress = asyncio.run(add_ingress_rule_if_necessary(fake_client, "svc", functions, API_HOST))

    assert fake_client.writes() == [("create", "ingress-svc")]
    assert ingress["metadata"]["name"] == "ingress-svc"
    assert ingress["metadata"]["labels"] == {"hello": "1", "bye": "1"}
    assert ingress["metadata"]["annotations"] == {
        "kubernetes.io/ingress.class": "nginx",
        "ingress.kubernetes.io/rewrite-target": "/",
    }
    rules = ingress["spec"]["rules"]
    assert len(rules) == 1
    assert rules[0]["host"] == DEFAULT_HOST
    assert len(rules[0]["http"]["paths"]) == 2
    assert "tls" not in ingress["spec"]


def test_updates_existing_ingress_with_extras(fake_client):
    fake_client.items["ingress-svc"] = {"metadata": {"name": "ingress-svc"}, "spec": {"rules": []}}
    tls = [{"hosts": ["api.example.com"], "secretName": "api-tls"}]
    ingress = asyncio.run(
        add_ingress_rule_if_necessary(
            fake_client,
            "svc",
            [_fn("hello", {"type": "http", "path": "/hello"})],
            API_HOST,
            hostname="api.example.com",
            annotations={"cert-manager.io/cluster-issuer": "letsencrypt"},
            tls=tls,
        )
    )
    assert fake_client.writes() == [("update", "ingress-svc")]
    assert ingress["spec"]["tls"] == tls
    assert ingress["spec"]["rules"][0]["host"] == "api.example.com"
    assert ingress["metadata"]["annotations"]["cert-manager.io/cluster-issuer"] == "letsencrypt"
    assert ingress["metadata"]["annotations"]["kubernetes.io/ingress.class"] == "nginx"


def test_update_carries_stored_resource_version(fake_client):
    fake_client.items["ingress-svc"] = {
        "metadata": {"name": "ingress-svc", "resourceVersion": "88"},
        "spec": {"rules": [], "tls": [{"hosts": ["old.example.com"]}]},
    }
    asyncio.run(
        add_ingress_rule_if_necessary(fake_client, "svc", [_fn("hello", {"type": "http", "path": "/hello"})], API_HOST)
    )
    stored = fake_client.items["ingress-svc"]
    assert stored["metadata"]["resourceVersion"] == "88"
    assert "tls" not in stored["spec"]


def test_custom_dns_suffix(fake_client):
    ingress = asyncio.run(
        add_ingress_rule_if_necessary(
            fake_client,
            "svc",
            [_fn("hello", {"type": "http", "path": "/hello"})],
            API_HOST,
            default_dns_resolution="sslip.io",
        )
    )
    assert ingress["spec"]["rules"][0]["host"] == f"{API_HOST}.sslip.io"


def test_api_failure_raises_ingress_error(fake_client):
    fake_client.fail_on["create"] = ApiError(403, "ingresses is forbidden")
    with pytest.raises(IngressError, match="Unable to deploy the ingress rule. Received: ingresses is forbidden"):
        asyncio.run(
            add_ingress_rule_if_necessary(
                fake_client, "svc", [_fn("hello", {"type": "http", "path": "/hello"})], API_HOST
            )
        )


# ── remove_ingress_rule_if_necessary ────────────────────────────────


def test_remove_existing_ingress(fake_client):
    fake_client.items["ingress-svc"] = {"metadata": {"name": "ingress-svc"}}
    assert asyncio.run(remove_ingress_rule_if_necessary(fake_client, "svc")) is True
    assert "ingress-svc" not in fake_client.items


def test_remove_missing_ingress_is_skipped(fake_client):
    assert asyncio.run(remove_ingress_rule_if_necessary(fake_client, "svc")) is False
