from conftest import FakeLoader
from manifest_viewer.manifest import Manifest
from manifest_viewer.reconcile import Reconciler


def test_close_all_happens_before_any_open(calls, display, loader):
    Reconciler(display, loader).reconcile(Manifest(lines=("a.png", "b.png", "c.png")))
    assert calls == [("close_all",), ("open", "a.png"), ("open", "b.png"), ("open", "c.png")]


def test_failed_entry_is_reported_and_rest_still_open(calls, display):
    loader = FakeLoader(calls, failing={"b.png"})

    report = Reconciler(display, loader).reconcile(Manifest(lines=("a.png", "b.png", "c.png")))

    assert ("open", "c.png") in calls
    assert report.opened == 2
    assert report.failed == [("b.png", "cannot open b.png")]


def test_loader_exception_is_contained(calls, display):
    loader = FakeLoader(calls, raising={"a.png"})

    report = Reconciler(display, loader).reconcile(Manifest(lines=("a.png", "b.png")))

    assert calls[-1] == ("open", "b.png")
    assert report.opened == 1
    assert report.failed[0][0] == "a.png"


def test_empty_manifest_still_closes_everything(calls, display, loader):
    report = Reconciler(display, loader).reconcile(Manifest())
    assert calls == [("close_all",)]
    assert report.opened == 0
    assert report.failed == []


def test_first_line_is_loaded_too(calls, display, loader):
    Reconciler(display, loader).reconcile(Manifest(lines=("first.png",)))
    assert ("open", "first.png") in calls
