"""Tests for ingestion of exported runs."""

import json
from datetime import timedelta

import pytest
import requests

from collection_report.events import RunEmitter
from collection_report.exceptions import RunDataError
from collection_report.models import AssertionOutcome, Cursor, ExecutionRecord, ItemInfo, ParentInfo
from collection_report.ingest import (
    build_parent_index,
    load_run_file,
    load_run_summary,
    replay_events,
    response_from_requests,
)
from collection_report.reporter import HTMLExtraReporter
from collection_report.config import ReporterConfig


def _collection():
    return {
        "info": {"_postman_id": "col-1", "name": "Orders API", "description": "Order service"},
        "item": [
            {"id": "health", "name": "Health", "request": {"method": "GET", "url": "{{host}}/health"}},
            {
                "id": "f-orders",
                "name": "Orders",
                "description": {"content": "Order endpoints", "type": "text/plain"},
                "item": [
                    {"id": "create", "name": "Create order", "request": {"method": "POST"}},
                    {
                        "id": "f-items",
                        "name": "Items",
                        "item": [{"id": "add-item", "name": "Add item"}],
                    },
                ],
            },
        ],
    }


def _execution(ref, item_id, name, iteration=0, assertions=None, response=True):
    data = {
        "cursor": {"ref": ref, "iteration": iteration, "scriptId": "sc"},
        "item": {"id": item_id, "name": name},
        "request": {
            "method": "GET",
            "url": {
                "protocol": "https",
                "host": ["api", "example", "com"],
                "path": ["orders", "1"],
                "query": [{"key": "expand", "value": "items"}],
            },
        },
        "assertions": assertions or [],
    }
    if response:
        data["response"] = {
            "id": "resp",
            "status": "OK",
            "code": 200,
            "header": [{"key": "Content-Type", "value": "application/json"}],
            "stream": {"type": "Buffer", "data": list(b'{"id": 1}')},
            "responseTime": 120,
            "responseSize": 9,
        }
    return data


def _document():
    return {
        "collection": _collection(),
        "environment": {"name": "staging", "values": [{"key": "host", "value": "x"}]},
        "globals": {"values": []},
        "run": {
            "stats": {
                "iterations": {"total": 2, "pending": 0, "failed": 0},
                "assertions": {"total": 4, "pending": 0, "failed": 1},
                "testScripts": {"total": 4, "pending": 0, "failed": 0},
            },
            "timings": {"started": 1000, "completed": 3500, "responseAverage": 120},
            "transfers": {"responseTotal": 36},
            "failures": [
                {
                    "error": {"name": "AssertionError", "message": "expected 1 to equal 2"},
                    "at": "assertion:0 in test-script",
                    "source": {"id": "create", "name": "Create order"},
                    "parent": {"id": "f-orders", "name": "Orders"},
                    "cursor": {"ref": "r2", "iteration": 1},
                }
            ],
            "executions": [
                _execution("r1", "health", "Health", assertions=[{"assertion": "up", "skipped": False}]),
                _execution(
                    "r2",
                    "create",
                    "Create order",
                    assertions=[{"assertion": "created", "skipped": True}],
                ),
                _execution("r3", "add-item", "Add item", response=False),
            ],
        },
    }


class TestBuildParentIndex:
    """Tests for build_parent_index."""

    def test_top_level_item_belongs_to_root(self):
        index = build_parent_index(_collection())
        assert index["health"].id == "col-1"
        assert index["health"].full_name == ""
        assert index["health"].description == "Order service"

    def test_nested_full_names(self):
        index = build_parent_index(_collection())
        assert index["create"].id == "f-orders"
        assert index["create"].full_name == "Orders"
        assert index["create"].description == "Order endpoints"
        assert index["add-item"].full_name == "Orders / Items"

    def test_empty_collection(self):
        index = build_parent_index({})
        assert index == {"": index[""]}


class TestLoadRunSummary:
    """Tests for load_run_summary."""

    def test_metadata(self):
        summary = load_run_summary(_document())
        assert summary.collection.name == "Orders API"
        assert summary.collection.id == "col-1"
        assert summary.environment.name == "staging"
        assert summary.globals.values == []
        assert summary.run.stats.test_scripts.total == 4
        assert summary.run.stats.assertions.failed == 1
        assert summary.run.stats.requests.total == 0
        assert summary.run.timings.completed == 3500
        assert summary.run.transfers.response_total == 36

    def test_executions(self):
        executions = load_run_summary(_document()).run.executions
        assert [e.cursor.ref for e in executions] == ["r1", "r2", "r3"]
        first = executions[0]
        assert first.cursor.script_id == "sc"
        assert first.item.parent.id == "col-1"
        assert first.request["url"] == "https://api.example.com/orders/1?expand=items"
        assert first.response.stream == b'{"id": 1}'
        assert first.response.response_time == 120
        assert first.assertions[0].skipped is False
        assert executions[2].item.parent.full_name == "Orders / Items"
        assert executions[2].response is None

    def test_failures(self):
        failure = load_run_summary(_document()).run.failures[0]
        assert failure.source == "Create order"
        assert failure.parent == "Orders"
        assert failure.at == "assertion:0 in test-script"
        assert failure.cursor.iteration == 1

    def test_missing_sections(self):
        summary = load_run_summary({})
        assert summary.run.executions == []
        assert summary.globals is None
        assert summary.environment is None

    def test_not_a_mapping(self):
        with pytest.raises(RunDataError):
            load_run_summary([1, 2, 3])

    def test_execution_without_ref(self):
        document = _document()
        document["run"]["executions"][0]["cursor"] = {"iteration": 0}
        with pytest.raises(RunDataError) as exc_info:
            load_run_summary(document, source="run.json")
        assert exc_info.value.source == "run.json"

    def test_raw_url_and_string_stream(self):
        document = _document()
        execution = document["run"]["executions"][0]
        execution["request"]["url"] = {"raw": "https://example.com/raw"}
        execution["response"]["stream"] = "plain text"
        first = load_run_summary(document).run.executions[0]
        assert first.request["url"] == "https://example.com/raw"
        assert first.response.stream == b"plain text"


class TestLoadRunFile:
    """Tests for load_run_file."""

    def test_reads_file(self, tmp_path):
        path = tmp_path / "run.json"
        path.write_text(json.dumps(_document()))
        assert len(load_run_file(str(path)).run.executions) == 3

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "run.json"
        path.write_text("{not json")
        with pytest.raises(RunDataError):
            load_run_file(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_run_file(str(tmp_path / "missing.json"))


class TestReplayEvents:
    """Tests for replay_events."""

    def test_end_to_end(self):
        emitter = RunEmitter(load_run_summary(_document()))
        HTMLExtraReporter(emitter, ReporterConfig(report_format="json"), version="6.1.0")
        replay_events(emitter)

        data = json.loads(emitter.exports[0].content)
        assert [g["parent"]["full_name"] for g in data["groups"]] == ["", "Orders", "Orders / Items"]
        assert data["summary"]["skipped_tests"][0]["assertion"] == "created"
        assert data["summary"]["duration"] == "2.5s"
        node = data["groups"][0]["executions"][0]
        assert node["response"]["body"] == '{"id": 1}'
        assert node["cumulative_tests"] == {"passed": 1, "failed": 0, "skipped": 0}


class TestResponseFromRequests:
    """Tests for response_from_requests."""

    def test_adapts_response(self):
        response = requests.Response()
        response.status_code = 201
        response.reason = "Created"
        response._content = b'{"id": 7}'
        response.headers["Content-Type"] = "application/json"
        response.elapsed = timedelta(milliseconds=250)

        adapted = response_from_requests(response)
        assert adapted.code == 201
        assert adapted.status == "Created"
        assert adapted.stream == b'{"id": 7}'
        assert adapted.response_size == 9
        assert adapted.response_time == pytest.approx(250)
        assert {"key": "Content-Type", "value": "application/json"} in adapted.headers
        assert adapted.to_json()["stream"] == b'{"id": 7}'

    def test_live_response_reaches_report(self):
        response = requests.Response()
        response.status_code = 200
        response.reason = "OK"
        response._content = b"pong"
        response.elapsed = timedelta(milliseconds=40)

        summary = load_run_summary({"collection": _collection(), "run": {}})
        summary.run.executions.append(
            ExecutionRecord(
                cursor=Cursor("live-1", 0, "s"),
                item=ItemInfo(id="health", name="Health", parent=ParentInfo(id="col-1", full_name="")),
                request={"method": "GET", "url": "https://api.example.com/health"},
                response=response_from_requests(response),
                assertions=[AssertionOutcome(assertion="is up", skipped=False)],
            )
        )
        emitter = RunEmitter(summary)
        HTMLExtraReporter(emitter, ReporterConfig(report_format="json"))
        replay_events(emitter)

        node = json.loads(emitter.exports[0].content)["groups"][0]["executions"][0]
        assert node["response"]["body"] == "pong"
        assert node["mean"]["time"] == "40ms"
