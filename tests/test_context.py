"""AppContext wiring tests."""

import json

import pytest

from selfexam_rulesets.context import AppContext, history_key
from selfexam_rulesets.models import AssessmentKind
from selfexam_rulesets.storage import MemoryKeyValueStore

from helpers.factories import make_record


def test_default_history_keys(monkeypatch):
    for name in ("SELFEXAM_KEY_PREFIX", "SELFEXAM_EXAM_HISTORY_KEY", "SELFEXAM_SELF_CHECK_HISTORY_KEY"):
        monkeypatch.delenv(name, raising=False)
    assert history_key(AssessmentKind.EXAM) == "@selfexam_exam_history"
    assert history_key(AssessmentKind.SELF_CHECK) == "@selfexam_self_check_history"


def test_history_keys_from_env(monkeypatch):
    monkeypatch.setenv("SELFEXAM_KEY_PREFIX", "app:")
    monkeypatch.setenv("SELFEXAM_EXAM_HISTORY_KEY", "exams")
    assert history_key(AssessmentKind.EXAM) == "app:exams"


def test_build_wires_shared_storage(catalog):
    kv = MemoryKeyValueStore()
    ctx = AppContext.build(catalog, kv)
    assert ctx.history(AssessmentKind.EXAM) is ctx.exam_history
    assert ctx.history(AssessmentKind.SELF_CHECK) is ctx.self_check_history
    assert ctx.self_check.conversation is ctx.conversation
    assert ctx.exam.progress().total == 13


@pytest.mark.asyncio
async def test_load_history_reads_both_lists(catalog, monkeypatch):
    monkeypatch.delenv("SELFEXAM_KEY_PREFIX", raising=False)
    monkeypatch.delenv("SELFEXAM_EXAM_HISTORY_KEY", raising=False)
    record = make_record()
    kv = MemoryKeyValueStore({
        "@selfexam_exam_history": json.dumps([record.model_dump(mode="json")]),
    })
    ctx = AppContext.build(catalog, kv)
    await ctx.load_history()
    assert [r.id for r in ctx.exam_history.records] == [record.id]
    assert len(ctx.self_check_history) == 0


@pytest.mark.asyncio
async def test_completed_exam_reaches_storage(catalog):
    kv = MemoryKeyValueStore()
    ctx = AppContext.build(catalog, kv)
    ctx.exam.start()
    ctx.exam.record_answer("redness", True)
    ctx.exam.complete()
    await ctx.flush()
    stored = json.loads(await kv.get(ctx.exam_history.key))
    assert stored[0]["result"]["red_flags"] == ["redness"]
